"""
Location check entry point for geonotify.

Matches a reported location against the active incident set,
queues a webhook delivery task when anything matched, and writes
an audit record of the check.

The audit write and the background delivery are independent: a
subscriber may receive the webhook before, after, or even without
the audit row being committed.
"""

from typing import List
from geonotify.core.errors import DependencyError, LocationValidationError
from geonotify.core.geofence import match_incidents
from geonotify.core.models import (
    DeliveryTask, LocationCheckAudit, LocationCheckRequest,
    LocationCheckResponse, WebhookPayload, utcnow,
)
from geonotify.observability import metrics
from geonotify.observability.logging_setup import get_logger
from geonotify.ports.audit import AuditSinkPort
from geonotify.ports.incidents import IncidentSourcePort
from geonotify.ports.queue import DeliveryQueuePort

log = get_logger("geonotify.location_check")


class LocationCheckService:
    """위치 확인 오케스트레이터"""

    def __init__(self,
                 incidents: IncidentSourcePort,
                 queue: DeliveryQueuePort,
                 audit: AuditSinkPort):
        """
        초기화합니다.

        Args:
            incidents: 활성 사건 조회 포트
            queue: 발송 큐
            audit: 감사 기록 포트
        """
        self.incidents = incidents
        self.queue = queue
        self.audit = audit

    async def check_location(self, request: LocationCheckRequest) -> LocationCheckResponse:
        """
        위치를 확인하고 일치하는 사건 ID를 반환합니다.

        Args:
            request: 위치 확인 요청

        Returns:
            일치한 사건 ID 목록을 포함한 응답

        Raises:
            LocationValidationError: user_id가 양수가 아님
            DependencyError: 사건 조회, 큐 추가(EnqueueFailed) 또는 감사 기록 실패
        """
        if request.user_id <= 0:
            metrics.location_checks.labels(result="invalid").inc()
            raise LocationValidationError(f"invalid user_id: {request.user_id}")

        try:
            incidents = await self.incidents.list_active_incidents()
        except DependencyError:
            metrics.location_checks.labels(result="error").inc()
            log.error(f"사건 목록 조회 실패 user_id:{request.user_id}")
            raise

        with metrics.match_seconds.time():
            matched: List[int] = match_incidents((request.latitude, request.longitude), incidents)

        checked_at = utcnow()
        if matched:
            payload = WebhookPayload(
                user_id=request.user_id,
                latitude=request.latitude,
                longitude=request.longitude,
                locations_ids=matched,
                checked_at=checked_at,
            )
            try:
                await self.queue.enqueue(DeliveryTask(payload=payload))
            except DependencyError as e:
                metrics.enqueue_failures.inc()
                metrics.location_checks.labels(result="error").inc()
                log.error(f"웹훅 작업 큐 추가 실패 user_id:{request.user_id}: {e}")
                raise
            metrics.incidents_matched.inc(len(matched))

        try:
            await self.audit.append(LocationCheckAudit(
                user_id=request.user_id,
                latitude=request.latitude,
                longitude=request.longitude,
                locations_ids=matched,
                checked_at=checked_at,
            ))
        except DependencyError as e:
            metrics.location_checks.labels(result="error").inc()
            log.error(f"위치 확인 감사 기록 실패 user_id:{request.user_id}: {e}")
            raise

        metrics.location_checks.labels(result="matched" if matched else "clear").inc()
        log.debug("위치 확인 완료",
                  user_id=request.user_id,
                  matched=matched)

        return LocationCheckResponse(
            user_id=request.user_id,
            latitude=request.latitude,
            longitude=request.longitude,
            locations_ids=matched,
        )

"""
Service wiring for geonotify.

Builds the storage adapters and application services from settings
so the HTTP app, the dispatchers, and the tests share one graph.
"""

from dataclasses import dataclass
from geonotify.adapters.storage import SQLiteAuditLog, SQLiteDeliveryQueue, SQLiteIncidentStore
from geonotify.common.retry import retry_with_backoff
from geonotify.services import IncidentService, LocationCheckService
from geonotify.settings import Settings


@dataclass
class Services:
    """애플리케이션 의존성 묶음"""
    incidents: SQLiteIncidentStore
    audit: SQLiteAuditLog
    queue: SQLiteDeliveryQueue
    incident_service: IncidentService
    location_check: LocationCheckService

    async def init(self, max_retries: int = 3) -> None:
        """모든 저장소 스키마를 초기화합니다 (일시 오류 시 재시도)."""
        for store in (self.incidents, self.audit, self.queue):
            await retry_with_backoff(store.init, max_retries=max_retries, base_delay=0.5, max_delay=5.0)


def build_services(settings: Settings) -> Services:
    incidents = SQLiteIncidentStore(settings.storage.db_path, settings.storage.busy_timeout_sec)
    audit = SQLiteAuditLog(settings.storage.db_path, settings.storage.busy_timeout_sec)
    queue = SQLiteDeliveryQueue(
        settings.reliability.queue_path,
        settings.reliability.queue_name,
        poll_interval=settings.reliability.queue_poll_interval_sec,
        busy_timeout=settings.storage.busy_timeout_sec,
    )
    return Services(
        incidents=incidents,
        audit=audit,
        queue=queue,
        incident_service=IncidentService(incidents),
        location_check=LocationCheckService(incidents, queue, audit),
    )

"""
Delivery planning for geonotify.

Pure decision logic for the per-task delivery state machine:
pending -> in_flight -> delivered | retry_scheduled | dead_lettered.
"""

from dataclasses import dataclass
from geonotify.common.retry import backoff_delay
from geonotify.core.errors import DeliveryError
from geonotify.core.models import DeliveryState, DeliveryTask


@dataclass(frozen=True)
class DeliveryPlan:
    """실패 후 다음 상태"""
    state: DeliveryState
    delay_sec: float = 0.0
    reason: str = ""


def plan_after_failure(
    task: DeliveryTask,
    error: DeliveryError,
    *,
    max_attempts: int,
    backoff_initial: float,
    backoff_max: float,
    jitter: bool = True
) -> DeliveryPlan:
    """
    발송 실패 후 작업의 다음 상태를 결정합니다.
    
    Args:
        task: 방금 실패한 작업 (attempts는 이전 실패 횟수)
        error: 발송 오류
        max_attempts: 작업당 최대 발송 시도 횟수 (1이면 재시도 없음)
        backoff_initial: 첫 재시도 지연 (초)
        backoff_max: 최대 재시도 지연 (초)
        jitter: 지터 적용 여부
        
    Returns:
        RETRY_SCHEDULED 또는 DEAD_LETTERED 계획
    """
    attempt = task.attempts + 1
    if not error.retryable:
        return DeliveryPlan(DeliveryState.DEAD_LETTERED, reason=f"permanent failure: {error}")
    if attempt >= max_attempts:
        return DeliveryPlan(
            DeliveryState.DEAD_LETTERED,
            reason=f"retries exhausted after {attempt} attempt(s): {error}"
        )
    delay = backoff_delay(attempt, backoff_initial, backoff_max, jitter)
    return DeliveryPlan(DeliveryState.RETRY_SCHEDULED, delay_sec=delay, reason=str(error))

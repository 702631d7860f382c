"""
Delivery planning 단위 테스트

이 모듈은 발송 실패 후 상태 결정 로직을 테스트합니다.
"""

from datetime import datetime, timezone
from hypothesis import given, strategies as st
from geonotify.core.delivery import plan_after_failure
from geonotify.core.errors import DeliveryError
from geonotify.core.models import DeliveryState, DeliveryTask, WebhookPayload


def _plan(task, error, max_attempts=5, jitter=False):
    return plan_after_failure(
        task, error,
        max_attempts=max_attempts,
        backoff_initial=1.0,
        backoff_max=60.0,
        jitter=jitter,
    )


class TestPlanAfterFailure:
    """실패 후 계획 테스트"""

    def test_retryable_failure_is_rescheduled(self, sample_task):
        """재시도 가능한 실패는 재시도 예약"""
        plan = _plan(sample_task, DeliveryError("connection refused"))
        assert plan.state == DeliveryState.RETRY_SCHEDULED
        assert plan.delay_sec == 1.0

    def test_backoff_grows_with_attempts(self, sample_task):
        """지연은 시도 횟수에 따라 지수적으로 증가"""
        delays = [
            _plan(sample_task.model_copy(update={"attempts": n}), DeliveryError("x"), max_attempts=10).delay_sec
            for n in range(4)
        ]
        assert delays == [1.0, 2.0, 4.0, 8.0]

    def test_backoff_is_capped(self, sample_task):
        """지연은 최대값을 넘지 않음"""
        task = sample_task.model_copy(update={"attempts": 20})
        plan = _plan(task, DeliveryError("x"), max_attempts=100)
        assert plan.delay_sec == 60.0

    def test_permanent_failure_is_dead_lettered(self, sample_task):
        """재시도 불가 실패는 즉시 데드레터"""
        plan = _plan(sample_task, DeliveryError("HTTP 404", status=404, retryable=False))
        assert plan.state == DeliveryState.DEAD_LETTERED
        assert "permanent" in plan.reason

    def test_exhausted_retries_are_dead_lettered(self, sample_task):
        """마지막 시도 실패는 데드레터"""
        task = sample_task.model_copy(update={"attempts": 4})
        plan = _plan(task, DeliveryError("timeout"), max_attempts=5)
        assert plan.state == DeliveryState.DEAD_LETTERED
        assert "5 attempt" in plan.reason

    def test_single_attempt_never_retries(self, sample_task):
        """max_attempts=1이면 첫 실패에서 재시도 없음"""
        plan = _plan(sample_task, DeliveryError("timeout"), max_attempts=1)
        assert plan.state == DeliveryState.DEAD_LETTERED

    @given(attempts=st.integers(min_value=0, max_value=50),
           max_attempts=st.integers(min_value=1, max_value=20),
           retryable=st.booleans())
    def test_plan_is_retry_or_dead_letter(self, attempts, max_attempts, retryable):
        """계획은 항상 재시도 또는 데드레터이며 지터 지연은 상한 이하"""
        task = DeliveryTask(
            attempts=attempts,
            payload=WebhookPayload(
                user_id=1, latitude=0, longitude=0, locations_ids=[1],
                checked_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            ),
        )
        plan = _plan(task, DeliveryError("x", retryable=retryable), max_attempts=max_attempts, jitter=True)
        if retryable and attempts + 1 < max_attempts:
            assert plan.state == DeliveryState.RETRY_SCHEDULED
            assert 0 < plan.delay_sec <= 60.0
        else:
            assert plan.state == DeliveryState.DEAD_LETTERED
            assert plan.delay_sec == 0.0

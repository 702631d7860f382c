"""
Webhook dispatcher for geonotify.

A long-running consumer loop that pops delivery tasks from the
durable queue and posts them to the subscriber endpoint. Failed
deliveries are re-pushed with backoff until max_attempts is
reached, then dead-lettered. Any number of dispatchers may share
one queue; the queue's pop-once semantics keeps them apart.
"""

import asyncio
import time
from enum import Enum
from pydantic import ValidationError
from geonotify.common.retry import exponential_backoff
from geonotify.core.delivery import plan_after_failure
from geonotify.core.errors import DeliveryError, DependencyError, EnqueueFailed, SerializationError
from geonotify.core.models import DeliveryState, DeliveryTask, QueuedMessage
from geonotify.observability import metrics
from geonotify.observability.logging_setup import get_logger, with_context
from geonotify.ports.queue import DeliveryQueuePort
from geonotify.ports.webhook import WebhookSenderPort

log = get_logger("geonotify.dispatcher")


def decode_task(msg: QueuedMessage) -> DeliveryTask:
    """큐 원소를 발송 작업으로 복원합니다. 실패 시 SerializationError."""
    try:
        return DeliveryTask.model_validate_json(msg.body)
    except ValidationError as e:
        raise SerializationError(f"queue element {msg.id}: {e.error_count()} validation error(s)") from e


class LoopState(str, Enum):
    """디스패처 루프 상태"""
    IDLE = "idle"
    WAITING = "waiting"
    PROCESSING = "processing"
    STOPPED = "stopped"


class WebhookDispatcher:
    """웹훅 발송 워커 (경쟁 소비자)"""

    def __init__(self,
                 queue: DeliveryQueuePort,
                 sender: WebhookSenderPort,
                 *,
                 name: str = "dispatcher-1",
                 dequeue_timeout: float = 5.0,
                 max_attempts: int = 5,
                 backoff_initial: float = 1.0,
                 backoff_max: float = 60.0,
                 error_backoff_initial: float = 0.5,
                 error_backoff_max: float = 30.0):
        """
        초기화합니다.

        Args:
            queue: 발송 큐
            sender: 웹훅 발송 어댑터
            name: 로그용 워커 이름
            dequeue_timeout: 큐 대기 시간 (초)
            max_attempts: 작업당 최대 발송 시도 횟수 (1이면 재시도 없음)
            backoff_initial: 발송 재시도 초기 지연 (초)
            backoff_max: 발송 재시도 최대 지연 (초)
            error_backoff_initial: 큐 오류 후 초기 대기 (초)
            error_backoff_max: 큐 오류 후 최대 대기 (초)
        """
        self.queue = queue
        self.sender = sender
        self.name = name
        self.dequeue_timeout = dequeue_timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.error_backoff_initial = error_backoff_initial
        self.error_backoff_max = error_backoff_max

        self.state = LoopState.IDLE
        self._running = False

    async def start(self) -> None:
        """
        발송 루프를 실행합니다.

        stop() 호출 또는 태스크 취소 시에만 종료됩니다.
        """
        self._running = True
        consecutive_errors = 0
        metrics.dispatchers_running.inc()
        log.info(f"{self.name} 시작")

        try:
            while self._running:
                self.state = LoopState.WAITING
                try:
                    msg = await self.queue.dequeue(self.dequeue_timeout)
                except DependencyError as e:
                    consecutive_errors += 1
                    metrics.dequeue_errors.inc()
                    log.error(f"{self.name} 큐 조회 오류 (연속 {consecutive_errors}회): {e}")
                    await exponential_backoff(
                        consecutive_errors,
                        self.error_backoff_initial,
                        self.error_backoff_max
                    )
                    continue

                consecutive_errors = 0
                if msg is None:
                    continue

                self.state = LoopState.PROCESSING
                try:
                    await self.process(msg)
                except Exception as e:
                    log.exception(f"{self.name} 원소 처리 중 예기치 않은 오류 id:{msg.id}: {e}")
        finally:
            self.state = LoopState.STOPPED
            metrics.dispatchers_running.dec()
            log.info(f"{self.name} 종료")

    def stop(self) -> None:
        """현재 원소 처리 후 루프를 멈춥니다."""
        self._running = False

    async def process(self, msg: QueuedMessage) -> DeliveryState:
        """
        큐 원소 하나를 처리합니다.

        Args:
            msg: 큐에서 꺼낸 원시 원소

        Returns:
            작업의 최종 상태 (DELIVERED, RETRY_SCHEDULED, DEAD_LETTERED)
        """
        try:
            task = decode_task(msg)
        except SerializationError as e:
            log.error(f"{self.name} 작업 역직렬화 실패, 데드레터로 이동 id:{msg.id}: {e}")
            metrics.deliveries.labels(outcome="malformed").inc()
            await self._dead_letter(msg.body, f"deserialization failed: {e}")
            return DeliveryState.DEAD_LETTERED

        with with_context(task_id=task.task_id, attempt=task.attempts + 1):
            return await self._deliver(task)

    async def _deliver(self, task: DeliveryTask) -> DeliveryState:
        started = time.perf_counter()
        try:
            status = await self.sender.deliver(task)
        except asyncio.CancelledError:
            log.warning(f"{self.name} 발송 중 취소됨, 작업 재적재 task_id:{task.task_id}")
            await asyncio.shield(self._requeue(task, 0.0))
            raise
        except DeliveryError as e:
            metrics.delivery_seconds.observe(time.perf_counter() - started)
            return await self._handle_failure(task, e)
        except Exception as e:
            metrics.delivery_seconds.observe(time.perf_counter() - started)
            log.exception(f"{self.name} 발송 어댑터 오류: {e}")
            return await self._handle_failure(task, DeliveryError(str(e)))

        metrics.delivery_seconds.observe(time.perf_counter() - started)
        metrics.deliveries.labels(outcome="delivered").inc()
        log.info(
            f"{self.name} 웹훅 발송 성공 task_id:{task.task_id} user_id:{task.payload.user_id} "
            f"incidents:{task.payload.locations_ids} status:{status}"
        )
        return DeliveryState.DELIVERED

    async def _handle_failure(self, task: DeliveryTask, error: DeliveryError) -> DeliveryState:
        plan = plan_after_failure(
            task,
            error,
            max_attempts=self.max_attempts,
            backoff_initial=self.backoff_initial,
            backoff_max=self.backoff_max,
        )
        failed = task.next_attempt()

        if plan.state == DeliveryState.RETRY_SCHEDULED:
            metrics.deliveries.labels(outcome="retry").inc()
            log.warning(
                f"{self.name} 웹훅 발송 실패 (시도 {failed.attempts}/{self.max_attempts}): {error}. "
                f"{plan.delay_sec:.1f}초 후 재시도"
            )
            await self._requeue(failed, plan.delay_sec)
            return plan.state

        metrics.deliveries.labels(outcome="dead_lettered").inc()
        log.error(f"{self.name} 웹훅 발송 최종 실패, 데드레터로 이동: {plan.reason}")
        await self._dead_letter(failed.model_dump_json(), plan.reason, failed.attempts, failed.task_id)
        return plan.state

    async def _requeue(self, task: DeliveryTask, delay_sec: float) -> bool:
        try:
            await self.queue.enqueue(task, delay_sec=delay_sec)
            return True
        except EnqueueFailed as e:
            log.error(f"{self.name} 작업 재적재 실패, 작업 유실 task_id:{task.task_id}: {e}")
            return False

    async def _dead_letter(self, body: str, reason: str, attempts: int = 0, task_id: str = None) -> bool:
        try:
            await self.queue.dead_letter(body, reason, attempts, task_id)
            return True
        except DependencyError as e:
            log.error(f"{self.name} 데드레터 기록 실패, 작업 유실: {e}")
            return False

"""
SQLite-based delivery queue for geonotify.

This module implements a durable named FIFO list for webhook
delivery tasks, with delayed re-push for retries and a
dead-letter table for tasks that cannot be delivered.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import List, Optional
from pydantic_core import PydanticSerializationError
from geonotify.adapters.storage._db import connect
from geonotify.core.errors import DependencyError, EnqueueFailed
from geonotify.core.models import DeadLetter, DeliveryTask, QueuedMessage
from geonotify.observability.logging_setup import get_logger

log = get_logger("geonotify.queue")

# SQLite 스키마
SCHEMA = """
PRAGMA journal_mode=WAL;
CREATE TABLE IF NOT EXISTS delivery_queue (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    queue TEXT NOT NULL,
    body TEXT NOT NULL,
    available_at REAL NOT NULL,
    enqueued_at REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_delivery_queue_ready ON delivery_queue(queue, available_at, id);
CREATE TABLE IF NOT EXISTS dead_letters (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    queue TEXT NOT NULL,
    body TEXT NOT NULL,
    reason TEXT NOT NULL,
    attempts INTEGER NOT NULL DEFAULT 0,
    task_id TEXT,
    failed_at REAL NOT NULL
);
"""

# 한 문장으로 꺼내고 지우므로 여러 소비자가 같은 원소를 받지 않음
POP_SQL = """
DELETE FROM delivery_queue
WHERE id = (
    SELECT id FROM delivery_queue
    WHERE queue = ? AND available_at <= ?
    ORDER BY id ASC
    LIMIT 1
)
RETURNING id, body
"""

class SQLiteDeliveryQueue:
    """SQLite 기반 발송 큐"""
    
    def __init__(self, path: str, name: str = "webhook_queue", *,
                 poll_interval: float = 0.2, busy_timeout: float = 5.0):
        """
        초기화합니다.
        
        Args:
            path: SQLite 데이터베이스 파일 경로
            name: 논리 큐 이름 (모든 생산자/소비자가 공유)
            poll_interval: 빈 큐 폴링 간격 (초)
            busy_timeout: 잠금 대기 시간 (초)
        """
        self.path = path
        self.name = name
        self.poll_interval = poll_interval
        self.busy_timeout = busy_timeout
        self._wakeup = asyncio.Event()
        log.info(f"SQLiteDeliveryQueue 초기화: {path}, 큐: {name}")
    
    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with connect(self.path, self.busy_timeout) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteDeliveryQueue 스키마 초기화 완료: {self.path}")
    
    async def enqueue(self, task: DeliveryTask, delay_sec: float = 0.0) -> int:
        """
        작업을 직렬화하여 큐 끝에 추가합니다.
        
        Args:
            task: 발송 작업
            delay_sec: 꺼낼 수 있게 될 때까지의 지연 (초)
            
        Returns:
            생성된 원소의 ID
            
        Raises:
            EnqueueFailed: 직렬화 또는 저장 실패
        """
        try:
            body = task.model_dump_json()
        except (PydanticSerializationError, ValueError) as e:
            raise EnqueueFailed(f"작업 직렬화 실패: {e}") from e
        
        now = time.time()
        try:
            async with connect(self.path, self.busy_timeout) as db:
                cursor = await db.execute(
                    "INSERT INTO delivery_queue (queue, body, available_at, enqueued_at) VALUES (?, ?, ?, ?)",
                    (self.name, body, now + max(0.0, delay_sec), now)
                )
                await db.commit()
                oid = cursor.lastrowid
        except DependencyError as e:
            raise EnqueueFailed(f"큐 추가 실패: {e}") from e
        
        self._wakeup.set()
        return oid
    
    async def _pop(self) -> Optional[QueuedMessage]:
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(POP_SQL, (self.name, time.time()))
            rows = await cursor.fetchall()
            await db.commit()
        if not rows:
            return None
        return QueuedMessage(id=rows[0]["id"], body=rows[0]["body"])
    
    async def dequeue(self, timeout: float) -> Optional[QueuedMessage]:
        """
        가장 오래된 원소를 꺼냅니다 (최대 timeout초 대기).
        
        Args:
            timeout: 최대 대기 시간 (초)
            
        Returns:
            꺼낸 원소 또는 None (시간 초과)
            
        Raises:
            DependencyError: 저장소 접근 실패
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(0.0, timeout)
        
        while True:
            self._wakeup.clear()
            item = await self._pop()
            if item is not None:
                return item
            
            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=min(self.poll_interval, remaining))
            except asyncio.TimeoutError:
                pass
    
    async def dead_letter(self, body: str, reason: str, attempts: int = 0,
                          task_id: Optional[str] = None) -> int:
        """
        처리할 수 없는 원소를 데드레터 테이블에 기록합니다.
        
        Args:
            body: 원시 큐 원소
            reason: 실패 사유
            attempts: 발송 시도 횟수
            task_id: 작업 ID (역직렬화 실패 시 None)
            
        Returns:
            데드레터 항목 ID
        """
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(
                "INSERT INTO dead_letters (queue, body, reason, attempts, task_id, failed_at) VALUES (?, ?, ?, ?, ?, ?)",
                (self.name, body, reason, attempts, task_id, time.time())
            )
            await db.commit()
            return cursor.lastrowid
    
    async def list_dead_letters(self, limit: int = 50) -> List[DeadLetter]:
        """최근 데드레터 항목을 반환합니다."""
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(
                "SELECT id, queue, body, reason, attempts, task_id, failed_at FROM dead_letters "
                "WHERE queue = ? ORDER BY id DESC LIMIT ?",
                (self.name, limit)
            )
            rows = await cursor.fetchall()
        return [
            DeadLetter(
                id=row["id"],
                queue=row["queue"],
                body=row["body"],
                reason=row["reason"],
                attempts=row["attempts"],
                task_id=row["task_id"],
                failed_at=datetime.fromtimestamp(row["failed_at"], timezone.utc),
            )
            for row in rows
        ]
    
    async def size(self) -> int:
        """대기 중인 원소 수 (지연된 재시도 포함)"""
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM delivery_queue WHERE queue = ?", (self.name,))
            result = await cursor.fetchone()
            return result[0] if result else 0
    
    async def dead_letter_count(self) -> int:
        """데드레터 항목 수"""
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM dead_letters WHERE queue = ?", (self.name,))
            result = await cursor.fetchone()
            return result[0] if result else 0
    
    async def ping(self) -> bool:
        """큐 저장소 접근 가능 여부"""
        try:
            async with connect(self.path, self.busy_timeout) as db:
                await db.execute("SELECT 1")
            return True
        except DependencyError as e:
            log.warning(f"큐 저장소 ping 실패: {e}")
            return False

"""
Delivery queue port interface.

This module defines the protocol for the durable FIFO
that decouples match detection from webhook delivery.
"""

from typing import Optional, Protocol
from geonotify.core.models import DeliveryTask, QueuedMessage

class DeliveryQueuePort(Protocol):
    """발송 큐 포트 인터페이스"""
    
    async def enqueue(self, task: DeliveryTask, delay_sec: float = 0.0) -> int:
        """
        작업을 큐 끝에 추가합니다.
        
        Args:
            task: 발송 작업
            delay_sec: 꺼낼 수 있게 될 때까지의 지연 (초)
            
        Returns:
            큐 원소 ID
            
        Raises:
            EnqueueFailed: 직렬화 또는 저장 실패
        """
        ...
    
    async def dequeue(self, timeout: float) -> Optional[QueuedMessage]:
        """
        가장 오래된 원소를 꺼냅니다. timeout 동안 원소가 없으면 None.
        
        Raises:
            DependencyError: 저장소 접근 실패
        """
        ...
    
    async def dead_letter(self, body: str, reason: str, attempts: int = 0,
                          task_id: Optional[str] = None) -> int:
        """
        처리할 수 없는 원소를 데드레터에 기록합니다.
        """
        ...

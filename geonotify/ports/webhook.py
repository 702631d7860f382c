"""
Webhook sender port interface.
"""

from typing import Protocol
from geonotify.core.models import DeliveryTask

class WebhookSenderPort(Protocol):
    """웹훅 발송 포트 인터페이스"""
    
    async def deliver(self, task: DeliveryTask) -> int:
        """
        작업의 페이로드를 구독자에게 POST합니다.
        
        Args:
            task: 발송 작업
            
        Returns:
            HTTP 상태 코드
            
        Raises:
            DeliveryError: 전송 실패 또는 2xx가 아닌 응답
        """
        ...

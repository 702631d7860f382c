"""
Outbound webhook client for geonotify.

This module posts delivery payloads to the configured subscriber
endpoint and classifies failures as retryable or permanent.
"""

import asyncio
import aiohttp
from typing import Optional
from geonotify.core.errors import DeliveryError
from geonotify.core.models import DeliveryTask
from geonotify.observability.logging_setup import get_logger

log = get_logger("geonotify.webhook")

# 재시도하면 성공할 수 있는 HTTP 상태
RETRYABLE_STATUSES = {408, 425, 429}

def is_retryable_status(status: int) -> bool:
    """5xx와 일시적 4xx만 재시도 대상"""
    return status >= 500 or status in RETRYABLE_STATUSES

class WebhookClient:
    """웹훅 구독자 HTTP 클라이언트"""
    
    def __init__(self, url: str, timeout: float = 10.0):
        """
        초기화합니다.
        
        Args:
            url: 구독자 엔드포인트 URL
            timeout: 요청 전체 타임아웃 (초)
        """
        self.url = url
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None
        log.info(f"웹훅 클라이언트 초기화됨 url:{url} timeout:{timeout}")
    
    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        await self.open()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        await self.close()
    
    async def _ensure_session(self) -> None:
        if not self.session or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
    
    async def open(self) -> None:
        """세션을 미리 생성합니다 (여러 디스패처가 공유할 때)."""
        await self._ensure_session()
    
    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
    
    async def deliver(self, task: DeliveryTask) -> int:
        """
        작업의 페이로드를 구독자에게 POST합니다.
        
        Args:
            task: 발송 작업
            
        Returns:
            HTTP 상태 코드 (2xx)
            
        Raises:
            DeliveryError: 전송 실패, 타임아웃 또는 2xx가 아닌 응답
        """
        await self._ensure_session()
        body = task.payload.model_dump_json()
        headers = {
            "Content-Type": "application/json",
            "X-Delivery-Id": task.task_id,
            "X-Delivery-Attempt": str(task.attempts + 1),
        }
        
        try:
            async with self.session.post(self.url, data=body, headers=headers) as resp:
                status = resp.status
                if 200 <= status < 300:
                    return status
                text = await resp.text()
        except aiohttp.InvalidURL as e:
            raise DeliveryError(f"잘못된 웹훅 URL: {self.url}", retryable=False) from e
        except asyncio.TimeoutError as e:
            raise DeliveryError(f"웹훅 요청 타임아웃 ({self.timeout}초)") from e
        except aiohttp.ClientError as e:
            raise DeliveryError(f"웹훅 전송 오류: {e}") from e
        
        raise DeliveryError(
            f"HTTP {status}: {text[:200]}",
            status=status,
            retryable=is_retryable_status(status)
        )

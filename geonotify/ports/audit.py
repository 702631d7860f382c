"""
Audit sink port interface.
"""

from typing import Protocol
from geonotify.core.models import LocationCheckAudit

class AuditSinkPort(Protocol):
    """위치 확인 감사 기록 포트 인터페이스"""
    
    async def append(self, record: LocationCheckAudit) -> None:
        """
        감사 레코드를 추가합니다.
        
        Args:
            record: 위치 확인 결과
        """
        ...

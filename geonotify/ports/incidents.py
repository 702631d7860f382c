"""
Incident source port interface.

This module defines the protocol the location check flow uses
to read the current incident set.
"""

from typing import List, Protocol
from geonotify.core.models import Incident

class IncidentSourcePort(Protocol):
    """사건 조회 포트 인터페이스"""
    
    async def list_active_incidents(self) -> List[Incident]:
        """
        활성 사건을 생성 순서대로 반환합니다.
        
        Returns:
            사건 목록
        """
        ...

"""
Shared SQLite connection helper for the storage adapters.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator
import aiosqlite
from geonotify.core.errors import DependencyError

@asynccontextmanager
async def connect(path: str, timeout: float = 5.0) -> AsyncIterator[aiosqlite.Connection]:
    """
    SQLite 연결을 열고 드라이버 오류를 DependencyError로 변환합니다.
    
    Args:
        path: 데이터베이스 파일 경로
        timeout: 잠금 대기 시간 (초)
    """
    try:
        async with aiosqlite.connect(path, timeout=timeout) as db:
            db.row_factory = aiosqlite.Row
            yield db
    except (aiosqlite.Error, OSError) as e:
        raise DependencyError(f"sqlite({path}) 오류: {e}") from e

"""
SQLite-based incident store for geonotify.

This module implements persistence for incidents, including
the active-incident listing consumed by the geofence matcher.
"""

from datetime import datetime
from typing import List, Optional
from geonotify.adapters.storage._db import connect
from geonotify.core.errors import DependencyError
from geonotify.core.models import Incident, IncidentWrite, utcnow
from geonotify.observability.logging_setup import get_logger

log = get_logger("geonotify.incidents")

# SQLite 스키마
SCHEMA = """
PRAGMA journal_mode=WAL;
CREATE TABLE IF NOT EXISTS incidents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    radius_m REAL NOT NULL,
    active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_incidents_active ON incidents(active, id);
"""

COLUMNS = "id, title, description, latitude, longitude, radius_m, active, created_at, updated_at"

def _row_to_incident(row) -> Incident:
    return Incident(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        radius_m=row["radius_m"],
        active=bool(row["active"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )

def _active_flag(active: Optional[bool]) -> Optional[int]:
    # None은 수정 시 기존 값 유지
    if active is None:
        return None
    return 1 if active else 0

class SQLiteIncidentStore:
    """SQLite 기반 사건 저장소"""
    
    def __init__(self, path: str, busy_timeout: float = 5.0):
        """
        초기화합니다.
        
        Args:
            path: SQLite 데이터베이스 파일 경로
            busy_timeout: 잠금 대기 시간 (초)
        """
        self.path = path
        self.busy_timeout = busy_timeout
        log.info(f"SQLiteIncidentStore 초기화: {path}")
    
    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with connect(self.path, self.busy_timeout) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteIncidentStore 스키마 초기화 완료: {self.path}")
    
    async def create(self, data: IncidentWrite) -> Incident:
        """
        사건을 생성합니다.
        
        Args:
            data: 사건 입력
            
        Returns:
            ID와 타임스탬프가 채워진 사건
        """
        now = utcnow().isoformat(timespec="microseconds")
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(
                "INSERT INTO incidents (title, description, latitude, longitude, radius_m, active, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (data.title, data.description, data.latitude, data.longitude,
                 data.radius_m, 0 if data.active is False else 1, now, now)
            )
            await db.commit()
            incident_id = cursor.lastrowid
        
        incident = await self.get(incident_id)
        if incident is None:
            raise DependencyError(f"생성한 사건을 다시 읽을 수 없음: {incident_id}")
        return incident
    
    async def get(self, incident_id: int) -> Optional[Incident]:
        """ID로 사건을 조회합니다. 없으면 None."""
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(f"SELECT {COLUMNS} FROM incidents WHERE id = ?", (incident_id,))
            row = await cursor.fetchone()
        return _row_to_incident(row) if row else None
    
    async def list_page(self, page: int, page_size: int) -> List[Incident]:
        """
        최신 생성 순으로 사건 페이지를 조회합니다.
        
        Args:
            page: 페이지 번호 (1부터 시작)
            page_size: 페이지 크기
        """
        offset = (page - 1) * page_size
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(
                f"SELECT {COLUMNS} FROM incidents ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                (page_size, offset)
            )
            rows = await cursor.fetchall()
        return [_row_to_incident(row) for row in rows]
    
    async def list_active_incidents(self) -> List[Incident]:
        """활성 사건을 생성 순서대로 반환합니다."""
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(
                f"SELECT {COLUMNS} FROM incidents WHERE active = 1 ORDER BY id ASC"
            )
            rows = await cursor.fetchall()
        return [_row_to_incident(row) for row in rows]
    
    async def update(self, incident_id: int, data: IncidentWrite) -> Optional[Incident]:
        """
        사건을 갱신합니다.
        
        Returns:
            갱신된 사건 또는 None (존재하지 않음)
        """
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(
                "UPDATE incidents SET title = ?, description = ?, latitude = ?, longitude = ?, "
                "radius_m = ?, active = COALESCE(?, active), updated_at = ? WHERE id = ?",
                (data.title, data.description, data.latitude, data.longitude,
                 data.radius_m, _active_flag(data.active), utcnow().isoformat(timespec="microseconds"), incident_id)
            )
            await db.commit()
            updated = cursor.rowcount
        
        if not updated:
            return None
        return await self.get(incident_id)
    
    async def deactivate(self, incident_id: int) -> bool:
        """
        사건을 비활성화합니다 (삭제하지 않음).
        
        Returns:
            대상 사건 존재 여부
        """
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(
                "UPDATE incidents SET active = 0, updated_at = ? WHERE id = ?",
                (utcnow().isoformat(timespec="microseconds"), incident_id)
            )
            await db.commit()
            return cursor.rowcount > 0
    
    async def ping(self) -> bool:
        """저장소 접근 가능 여부"""
        try:
            async with connect(self.path, self.busy_timeout) as db:
                await db.execute("SELECT 1")
            return True
        except DependencyError as e:
            log.warning(f"사건 저장소 ping 실패: {e}")
            return False

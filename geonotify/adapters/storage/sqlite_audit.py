"""
SQLite-based location check audit log for geonotify.

One append-only row per location check, written whether or
not any incident matched.
"""

import json
import time
from datetime import datetime, timezone
from typing import List, Optional
from geonotify.adapters.storage._db import connect
from geonotify.core.models import LocationCheckAudit
from geonotify.observability.logging_setup import get_logger

log = get_logger("geonotify.audit")

# SQLite 스키마
SCHEMA = """
PRAGMA journal_mode=WAL;
CREATE TABLE IF NOT EXISTS location_checks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    incident_ids TEXT NOT NULL,
    checked_at REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_location_checks_checked ON location_checks(checked_at);
"""

class SQLiteAuditLog:
    """SQLite 기반 위치 확인 감사 로그"""
    
    def __init__(self, path: str, busy_timeout: float = 5.0):
        self.path = path
        self.busy_timeout = busy_timeout
        log.info(f"SQLiteAuditLog 초기화: {path}")
    
    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with connect(self.path, self.busy_timeout) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteAuditLog 스키마 초기화 완료: {self.path}")
    
    async def append(self, record: LocationCheckAudit) -> int:
        """
        감사 레코드를 추가합니다.
        
        Args:
            record: 위치 확인 결과
            
        Returns:
            생성된 행 ID
        """
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(
                "INSERT INTO location_checks (user_id, latitude, longitude, incident_ids, checked_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (record.user_id, record.latitude, record.longitude,
                 json.dumps(record.locations_ids), record.checked_at.timestamp())
            )
            await db.commit()
            return cursor.lastrowid
    
    async def list_recent(self, limit: int = 100) -> List[LocationCheckAudit]:
        """최근 감사 레코드를 최신 순으로 반환합니다."""
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(
                "SELECT user_id, latitude, longitude, incident_ids, checked_at FROM location_checks "
                "ORDER BY id DESC LIMIT ?",
                (limit,)
            )
            rows = await cursor.fetchall()
        return [
            LocationCheckAudit(
                user_id=row["user_id"],
                latitude=row["latitude"],
                longitude=row["longitude"],
                locations_ids=json.loads(row["incident_ids"]),
                checked_at=datetime.fromtimestamp(row["checked_at"], timezone.utc),
            )
            for row in rows
        ]
    
    async def count_users_since(self, minutes: int, now: Optional[float] = None) -> int:
        """
        최근 N분 동안 위치 확인을 요청한 고유 사용자 수를 반환합니다.
        
        Args:
            minutes: 조회 구간 (분)
            now: 기준 시각 (Unix timestamp), None이면 현재 시각
        """
        if now is None:
            now = time.time()
        since = now - minutes * 60
        async with connect(self.path, self.busy_timeout) as db:
            cursor = await db.execute(
                "SELECT COUNT(DISTINCT user_id) FROM location_checks WHERE checked_at >= ?",
                (since,)
            )
            result = await cursor.fetchone()
            return result[0] if result else 0

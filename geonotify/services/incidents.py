"""
Incident management service for geonotify.

Validates incident input and delegates persistence to the
incident store. Deactivation flips the active flag; incidents
are never deleted.
"""

from typing import List
from geonotify.adapters.storage.sqlite_incidents import SQLiteIncidentStore
from geonotify.core.errors import IncidentNotFoundError, LocationValidationError
from geonotify.core.models import Incident, IncidentWrite
from geonotify.observability.logging_setup import get_logger

log = get_logger("geonotify.incident_service")


def _validate(data: IncidentWrite) -> None:
    if not data.title.strip():
        raise LocationValidationError("title is required")
    if data.radius_m < 0:
        raise LocationValidationError("radius must be positive")


def _validate_id(incident_id: int) -> None:
    if incident_id <= 0:
        raise LocationValidationError(f"invalid id: {incident_id}")


class IncidentService:
    """사건 CRUD 서비스"""

    def __init__(self, store: SQLiteIncidentStore):
        self.store = store

    async def create(self, data: IncidentWrite) -> Incident:
        """사건을 생성합니다. 새 사건은 항상 활성 상태입니다."""
        _validate(data)
        incident = await self.store.create(data.model_copy(update={"active": True}))
        log.info(f"사건 생성됨 id:{incident.id} title:{incident.title}")
        return incident

    async def list_page(self, page: int, page_size: int) -> List[Incident]:
        """최신 순 사건 페이지"""
        if page < 1 or page_size < 1:
            raise LocationValidationError(
                f"invalid pagination parameters: page={page}, page_size={page_size}"
            )
        return await self.store.list_page(page, page_size)

    async def get(self, incident_id: int) -> Incident:
        _validate_id(incident_id)
        incident = await self.store.get(incident_id)
        if incident is None:
            raise IncidentNotFoundError(incident_id)
        return incident

    async def update(self, incident_id: int, data: IncidentWrite) -> Incident:
        """사건 필드를 갱신합니다. active가 없으면 기존 값을 유지합니다."""
        _validate_id(incident_id)
        _validate(data)
        incident = await self.store.update(incident_id, data)
        if incident is None:
            raise IncidentNotFoundError(incident_id)
        log.info(f"사건 갱신됨 id:{incident_id} active:{incident.active}")
        return incident

    async def deactivate(self, incident_id: int) -> None:
        """사건을 비활성화합니다."""
        _validate_id(incident_id)
        if not await self.store.deactivate(incident_id):
            raise IncidentNotFoundError(incident_id)
        log.info(f"사건 비활성화됨 id:{incident_id}")

"""
Incident management HTTP routes.
"""

from fastapi import APIRouter, Query, Response
from geonotify.adapters.storage.sqlite_audit import SQLiteAuditLog
from geonotify.core.models import Incident, IncidentWrite
from geonotify.services.incidents import IncidentService


def build_incident_router(service: IncidentService,
                          audit: SQLiteAuditLog,
                          *,
                          stats_window_minutes: int = 5,
                          default_page_size: int = 20) -> APIRouter:
    router = APIRouter(prefix="/api/v1/incidents", tags=["incidents"])

    @router.post("", status_code=201, response_model=Incident)
    async def create_incident(data: IncidentWrite):
        """사건 생성"""
        return await service.create(data)

    @router.get("")
    async def list_incidents(page: int = Query(1), page_size: int = Query(default_page_size)):
        """사건 목록 (최신 순)"""
        items = await service.list_page(page, page_size)
        return {
            "items": [item.model_dump(mode="json") for item in items],
            "page": page,
            "page_size": page_size,
        }

    @router.get("/stats")
    async def incidents_stats():
        """최근 구간 내 위치 확인 사용자 수"""
        count = await audit.count_users_since(stats_window_minutes)
        return {"user_count": count}

    @router.get("/{incident_id}", response_model=Incident)
    async def get_incident(incident_id: int):
        return await service.get(incident_id)

    @router.put("/{incident_id}", response_model=Incident)
    async def update_incident(incident_id: int, data: IncidentWrite):
        return await service.update(incident_id, data)

    @router.delete("/{incident_id}", status_code=204)
    async def deactivate_incident(incident_id: int):
        """사건 비활성화"""
        await service.deactivate(incident_id)
        return Response(status_code=204)

    return router

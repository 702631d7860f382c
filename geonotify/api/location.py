"""
Location check HTTP routes.
"""

from fastapi import APIRouter
from geonotify.core.models import LocationCheckRequest, LocationCheckResponse
from geonotify.services.location_check import LocationCheckService


def build_location_router(service: LocationCheckService) -> APIRouter:
    router = APIRouter(prefix="/api/v1/location", tags=["location"])

    @router.post("/check", response_model=LocationCheckResponse)
    async def check_location(request: LocationCheckRequest):
        """위치가 활성 사건 영역에 포함되는지 확인합니다."""
        return await service.check_location(request)

    return router

"""
HTTP application for geonotify.

This module builds the FastAPI application: domain routes plus
health, readiness, metrics, and info endpoints for monitoring
and operational visibility.
"""

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import time
from geonotify.api import build_incident_router, build_location_router, register_exception_handlers
from geonotify.container import Services
from geonotify.core.errors import DependencyError
from geonotify.observability import metrics
from geonotify.observability.logging_setup import get_logger
from geonotify.settings import Settings

log = get_logger("geonotify.http")

def create_app(settings: Settings, services: Services) -> FastAPI:
    """FastAPI 애플리케이션을 생성합니다."""
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="Geofenced incident notification service"
    )

    start_time = time.time()

    register_exception_handlers(app)
    app.include_router(build_location_router(services.location_check))
    app.include_router(build_incident_router(
        services.incident_service,
        services.audit,
        stats_window_minutes=settings.api.stats_window_minutes,
        default_page_size=settings.api.default_page_size,
    ))

    async def _dependency_status() -> dict:
        db_ok = await services.incidents.ping()
        queue_ok = await services.queue.ping()
        return {
            "status": "ok" if db_ok and queue_ok else "degraded",
            "db": "ok" if db_ok else "error",
            "queue": "ok" if queue_ok else "error",
        }

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/api/v1/system/health")
    async def system_health():
        """저장소/큐 상태를 포함한 헬스 체크 (항상 200)"""
        return JSONResponse(await _dependency_status())

    @app.get("/ready")
    async def ready():
        """레디니스 체크 엔드포인트"""
        status = await _dependency_status()
        body = {
            "status": "ready" if status["status"] == "ok" else "not_ready",
            "service": settings.observability.service_name,
            "db": status["db"],
            "queue": status["queue"],
            "timestamp": time.time()
        }
        return JSONResponse(body, status_code=200 if status["status"] == "ok" else 503)

    @app.get("/metrics")
    async def metrics_endpoint():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")

        try:
            metrics.queue_depth.set(await services.queue.size())
            metrics.dead_letter_size.set(await services.queue.dead_letter_count())
        except DependencyError as e:
            log.warning(f"큐 게이지 갱신 실패: {e}")

        return Response(
            generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        uptime = time.time() - start_time
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level,
            "webhook_configured": bool(settings.webhook.url),
            "webhook_workers": settings.webhook.workers
        })

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": {
                "health": "/health",
                "system_health": "/api/v1/system/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "info": "/info",
                "location_check": "/api/v1/location/check",
                "incidents": "/api/v1/incidents",
                "incidents_stats": "/api/v1/incidents/stats"
            }
        })

    return app

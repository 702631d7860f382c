"""
Exception handlers mapping the geonotify error taxonomy to HTTP responses.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from geonotify.core.errors import DependencyError, IncidentNotFoundError, LocationValidationError
from geonotify.observability.logging_setup import get_logger

log = get_logger("geonotify.api")


def register_exception_handlers(app: FastAPI) -> None:
    """도메인 예외 핸들러를 등록합니다."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        log.info(f"잘못된 요청 본문 path:{request.url.path}")
        return JSONResponse(
            status_code=400,
            content={"detail": "invalid request body", "errors": jsonable_errors(exc)}
        )

    @app.exception_handler(LocationValidationError)
    async def validation_handler(request: Request, exc: LocationValidationError):
        log.info(f"입력 검증 실패 path:{request.url.path} error:{exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(IncidentNotFoundError)
    async def not_found_handler(request: Request, exc: IncidentNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(DependencyError)
    async def dependency_handler(request: Request, exc: DependencyError):
        log.error(f"의존성 오류 path:{request.url.path} error:{exc}")
        return JSONResponse(status_code=500, content={"detail": "server error"})


def jsonable_errors(exc: RequestValidationError) -> list:
    """검증 오류를 JSON 직렬화 가능한 형태로 줄입니다."""
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]

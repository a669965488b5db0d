from __future__ import annotations

import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from budget_hotel.api.v1.router import router as api_v1_router
from budget_hotel.config.logging import setup_logging
from budget_hotel.config.settings import settings
from budget_hotel.core.exceptions import BaseAppException, ErrorCode
from budget_hotel.core.logging import get_logger
from budget_hotel.core.middleware import register_middlewares
from budget_hotel.db.init_db import bootstrap
from budget_hotel.utils.datetime_utils import utcnow

logger = get_logger(__name__)


def error_body(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> Dict[str, Any]:
    body = {
        "error": {
            "code": code.value,
            "message": message,
            "details": details or {},
            "timestamp": utcnow().isoformat(),
        }
    }
    request_id = getattr(request.state, "request_id", None) if request is not None else None
    if request_id:
        body["error"]["request_id"] = request_id
    return body


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(BaseAppException)
    async def app_exception_handler(request: Request, exc: BaseAppException):
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}", extra={"error_code": exc.error_code.value})
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(error_body(exc.error_code, exc.message, exc.details, request)),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        fields: Dict[str, list] = {}
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            fields.setdefault(location or "request", []).append(error.get("msg", "invalid"))
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(ErrorCode.VALIDATION_ERROR, "Request validation failed", {"fields": fields}, request),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(ErrorCode.DATABASE_ERROR, "A database error occurred", request=request),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred", request=request),
        )


def create_app() -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers core middleware and exception handlers.
    - Includes the versioned API router under /api/v1.
    - Serves uploaded images under /uploads.
    """
    setup_logging()
    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    register_middlewares(app)
    register_exception_handlers(app)
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    @app.get("/health", tags=["Health"])
    def health() -> Dict[str, str]:
        return {"status": "ok", "environment": settings.ENVIRONMENT}

    # Tables and the administrator account are created on startup outside
    # production; production schemas are managed separately.
    @app.on_event("startup")
    async def on_startup() -> None:
        if not settings.is_production():
            bootstrap()

    return app


app = create_app()

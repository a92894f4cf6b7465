"""FastAPI application entrypoint."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from assembly.api.routes import register_routes
from assembly.core.config import Settings, get_settings
from assembly.core.logging import configure_logging
from assembly.obs import (
    PrometheusMiddleware,
    initialise_tracing,
    instrument_fastapi_app,
    metrics_router,
)
from assembly.services.errors import EligibilityError, EngineError, InputValidationError, NotFoundError

logger = logging.getLogger(__name__)

_ERROR_STATUS: tuple[tuple[type[EngineError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InputValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (EligibilityError, status.HTTP_409_CONFLICT),
)


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Translate engine errors into JSON bodies carrying the stable ``code``."""

    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped in _ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code = mapped
            break
    logger.info(
        "engine error",
        extra={"path": request.url.path, "code": exc.code, "status": status_code},
    )
    return JSONResponse(status_code=status_code, content={"code": exc.code, "detail": str(exc)})


def create_application(settings: Settings | None = None) -> FastAPI:
    """Application factory used by ASGI servers and tests."""
    configure_logging()
    settings = settings or get_settings()

    if settings.enable_tracing:
        initialise_tracing(service_name=settings.app_name, endpoint=settings.otel_exporter_endpoint)

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
    )

    application.add_exception_handler(EngineError, engine_error_handler)
    if settings.enable_metrics:
        application.add_middleware(PrometheusMiddleware)
        application.include_router(metrics_router)
    register_routes(application)

    if settings.enable_tracing:
        instrument_fastapi_app(application)

    return application


app = create_application()

"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from assembly.api.routes import health, meetings, motions


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(motions.router, prefix="/motions", tags=["motions"])
    api_router.include_router(meetings.router, prefix="/meetings", tags=["meetings"])

    application.include_router(api_router)


__all__ = ["register_routes"]

"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from medpulse.config import settings
from medpulse.database import check_database_connection
from medpulse.services.text_generation import DisabledTextGenerator, get_text_generator

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check response model."""

    status: str
    version: str
    environment: str
    database: str
    storage_backend: str
    text_generation: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Basic health status
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Detailed health check with storage and text generation status.

    Returns:
        Detailed health status including dependencies
    """
    if settings.uses_memory_storage:
        db_healthy = True
    else:
        db_healthy = await check_database_connection()

    # Generation failures fall back to fixed text, so they never degrade health
    generation_enabled = not isinstance(get_text_generator(), DisabledTextGenerator)

    return DetailedHealthResponse(
        status="healthy" if db_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        storage_backend=settings.storage_backend,
        text_generation="enabled" if generation_enabled else "fallback_only",
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """
    Simple ping endpoint.

    Returns:
        Pong response
    """
    return {"message": "pong"}

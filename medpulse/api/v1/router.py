"""API v1 router configuration."""

from fastapi import APIRouter

from medpulse.api.v1.endpoints import (
    appointments,
    health,
    notifications,
    sessions,
    settings,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(sessions.router)
api_router.include_router(notifications.router)
api_router.include_router(settings.router)

"""Health check endpoints."""

from fastapi import APIRouter, Request

from coursemarket.config import get_settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - reports the collaborators the services depend on."""
    settings = get_settings()
    state = request.app.state
    return {
        "status": "ready",
        "environment": settings.environment,
        "database": getattr(state, "cassandra_session", None) is not None,
        "storage": settings.firebase_configured,
        "payments": settings.stripe_configured,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }

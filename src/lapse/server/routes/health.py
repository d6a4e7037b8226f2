"""Health check routes."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check(request: Request) -> dict[str, str]:
    """Readiness check endpoint.

    Ready once the reminder service has connected its gateway and
    registered its jobs.
    """
    service = request.app.state.service
    return {"status": "ready" if service.is_initialized else "starting"}

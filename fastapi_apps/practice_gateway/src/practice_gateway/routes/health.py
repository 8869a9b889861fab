"""Health endpoint reporting coordinator bookkeeping."""

from fastapi import APIRouter, Depends

from request_coordinator import RequestCoordinator

from ..dependencies import get_coordinator

router = APIRouter()


@router.get("/health")
async def health_check(coordinator: RequestCoordinator = Depends(get_coordinator)):
    """
    Health check endpoint.

    Returns:
        dict: Status plus the coordinator's in-flight and tracked key counts
    """
    return {
        "status": "healthy",
        "coordinator": coordinator.get_stats(),
    }

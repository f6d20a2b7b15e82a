"""Health check endpoints."""
from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_liveness() -> dict[str, str]:
    """
    Liveness check endpoint.

    Returns 200 OK if the service is running. Not under the callback
    prefix, so it never requires a signature.
    """
    return {"status": "healthy"}

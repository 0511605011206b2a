"""API router - aggregates the management endpoints."""

from fastapi import APIRouter

from snaplink.api.links import router as links_router

router = APIRouter()

router.include_router(links_router)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}

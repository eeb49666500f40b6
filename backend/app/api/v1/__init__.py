"""
Tubely API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter that the application
mounts under the /api/v1 prefix.

Router Structure:
    - /videos: Video file and thumbnail upload, video lookup and listing
"""

import logging

from fastapi import APIRouter

from app.api.v1.videos import router as videos_router


logger = logging.getLogger(__name__)

api_router = APIRouter()

api_router.include_router(
    videos_router,
    prefix="/videos",
    tags=["videos"],
)

loaded_routers: list[str] = ["videos"]

logger.debug("API v1 routers loaded: %s", ", ".join(loaded_routers))


__all__ = ["api_router", "loaded_routers"]

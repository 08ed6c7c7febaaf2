"""Territory engine package.

Tracks per-user influence in H3 cells and the leaderboards derived from it.

The package is organized into:
- routes/: API endpoint handlers organized by domain
- services/: influence ledger, leaderboards, ingestion and read paths
- dependencies.py: construction of the service graph
- models.py: request/response models
"""

from fastapi import APIRouter

from territory.routes import activities, hexes, leaderboards

router = APIRouter()

router.include_router(activities.router, tags=["activities"])
router.include_router(leaderboards.router, tags=["leaderboards"])
router.include_router(hexes.router, tags=["hexes"])

__all__ = ["router"]

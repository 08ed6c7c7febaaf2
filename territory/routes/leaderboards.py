"""API routes for cell, region and global leaderboards."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from config import GLOBAL_LEADERBOARD_LIMIT
from core.api import api_route
from core.h3_cells import BoundingBox
from territory.dependencies import TerritoryEngine, get_engine
from territory.models import (
    CellRankResponse,
    GlobalLeaderboardResponse,
    HexLeaderboardResponse,
    RegionLeaderboardsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/leaderboards")


@router.get("/bbox", response_model=RegionLeaderboardsResponse)
@api_route(logger)
async def get_region_leaderboards(
    min_lat: float,
    min_lng: float,
    max_lat: float,
    max_lng: float,
    engine: TerritoryEngine = Depends(get_engine),
):
    """Leaderboards of every cell inside the bounding box."""
    bbox = BoundingBox(min_lat=min_lat, min_lng=min_lng, max_lat=max_lat, max_lng=max_lng)
    boards = await engine.regions.region_leaderboards(bbox)
    return RegionLeaderboardsResponse(
        leaderboards=[HexLeaderboardResponse.from_document(board) for board in boards],
    )


@router.get("/global", response_model=GlobalLeaderboardResponse)
@api_route(logger)
async def get_global_leaderboard(
    limit: Annotated[int, Query(ge=1, le=100)] = GLOBAL_LEADERBOARD_LIMIT,
    engine: TerritoryEngine = Depends(get_engine),
):
    """Users ranked by the number of cells they lead."""
    return GlobalLeaderboardResponse(leaderboard=await engine.global_leaderboard.top(limit))


@router.get("/{h3_index}/rank", response_model=CellRankResponse)
@api_route(logger)
async def get_user_rank_in_cell(
    h3_index: str,
    user_id: str = Query(..., description="Internal user id"),
    engine: TerritoryEngine = Depends(get_engine),
):
    """The user's position on one cell's board, or null when absent."""
    rank = await engine.regions.user_rank_in_cell(h3_index, user_id)
    return CellRankResponse(h3_index=h3_index, user_id=user_id, rank=rank)

"""API routes for recording activities and reading activity stats."""

import logging

from fastapi import APIRouter, Depends, Query, status

from core.api import api_route
from territory.dependencies import TerritoryEngine, get_engine
from territory.models import (
    ActivityResponse,
    CreateActivityRequest,
    UserActivityStatsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/activities")


@router.post(
    "",
    response_model=ActivityResponse,
    status_code=status.HTTP_201_CREATED,
)
@api_route(logger)
async def create_activity(
    payload: CreateActivityRequest,
    engine: TerritoryEngine = Depends(get_engine),
):
    """Record a finished activity and credit every cell it touched."""
    return await engine.ingestor.create_activity(payload)


@router.get("/stats", response_model=UserActivityStatsResponse)
@api_route(logger)
async def get_user_activity_stats(
    user_id: str = Query(..., description="Internal user id"),
    engine: TerritoryEngine = Depends(get_engine),
):
    """Totals and last-seven-days activity counts for one user."""
    user = await engine.users.get_by_id(user_id)
    return await engine.stats.for_user(user.user_id)

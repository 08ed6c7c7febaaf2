"""API routes for resolving GPS tracks to territory cells."""

import logging

from fastapi import APIRouter

from config import H3_RESOLUTION
from core.api import api_route
from core.exceptions import ValidationError
from core.h3_cells import cells_along_track
from territory.models import TrackCellsRequest, TrackCellsResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/hexes")


@router.post("/track", response_model=TrackCellsResponse)
@api_route(logger)
async def resolve_track(payload: TrackCellsRequest):
    """Cells crossed by a GPS track, in the order they were entered."""
    cells = cells_along_track(payload.coordinates, H3_RESOLUTION)
    if not cells:
        msg = "Track has no valid [lng, lat] coordinates"
        raise ValidationError(msg)
    return TrackCellsResponse(resolution=H3_RESOLUTION, h3_indexes=cells)

"""Read paths: leaderboards inside a region and single-cell rank lookups."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config import H3_RESOLUTION
from core.h3_cells import BoundingBox, cells_in_region, validate_cell_id

if TYPE_CHECKING:
    from db.models import HexLeaderboard
    from db.stores import LeaderboardStore
    from territory.services.leaderboard_service import CellLeaderboard

logger = logging.getLogger(__name__)


class RegionQueries:
    def __init__(
        self,
        leaderboards: LeaderboardStore,
        cell_leaderboard: CellLeaderboard,
        *,
        resolution: int = H3_RESOLUTION,
    ) -> None:
        self._leaderboards = leaderboards
        self._cell_leaderboard = cell_leaderboard
        self._resolution = resolution

    async def region_leaderboards(self, bbox: BoundingBox) -> list[HexLeaderboard]:
        """Boards for exactly the cells intersecting ``bbox``, by cell id."""
        cells = cells_in_region(bbox, self._resolution)
        boards = await self._leaderboards.find_many(cells)
        logger.debug("Found %d leaderboards among %d cells", len(boards), len(cells))
        return sorted(
            (board for board in boards if board.h3_index in cells),
            key=lambda board: board.h3_index,
        )

    async def user_rank_in_cell(self, cell_id: str | int, user_id: str) -> int | None:
        cell = validate_cell_id(cell_id, self._resolution)
        return await self._cell_leaderboard.position_of(cell, user_id)

"""Activity ingestion: persist the activity, then credit every touched cell."""

from __future__ import annotations

import logging
import math
import uuid
from typing import TYPE_CHECKING

from pymongo.errors import PyMongoError

from config import H3_RESOLUTION
from core.exceptions import ResourceNotFoundError, StrideWarsError, ValidationError
from core.h3_cells import validate_cell_id
from core.locks import KeyedLock
from db.models import Activity
from territory.models import ActivityResponse, CellWarning, CreateActivityRequest

if TYPE_CHECKING:
    from db.stores import ActivityStore, HexStore, UserStore
    from territory.services.influence_service import InfluenceLedger
    from territory.services.leaderboard_service import CellLeaderboard

logger = logging.getLogger(__name__)

# Failures worth skipping a cell for; anything else is a bug and propagates.
CELL_ERRORS = (StrideWarsError, PyMongoError)


def validate_activity_request(
    request: CreateActivityRequest,
    resolution: int = H3_RESOLUTION,
) -> tuple[str, list[str]]:
    """Check the request shape; return the normalized user id and cell ids."""
    raw_user_id = (request.user_id or "").strip()
    if not raw_user_id:
        msg = "user_id is required"
        raise ValidationError(msg)
    try:
        parsed = uuid.UUID(raw_user_id)
    except ValueError as exc:
        msg = f"user_id is not a valid UUID: {raw_user_id}"
        raise ValidationError(msg) from exc
    if parsed.int == 0:
        msg = "user_id is required"
        raise ValidationError(msg)

    if not math.isfinite(request.duration) or request.duration <= 0:
        msg = "duration must be positive"
        raise ValidationError(msg)
    if not math.isfinite(request.distance) or request.distance <= 0:
        msg = "distance must be positive"
        raise ValidationError(msg)
    if not request.h3_indexes:
        msg = "at least one H3 index is required"
        raise ValidationError(msg)

    cells = [validate_cell_id(value, resolution) for value in request.h3_indexes]
    return str(parsed), cells


class ActivityIngestor:
    """Drives the ledger and leaderboards for every cell an activity touched."""

    def __init__(
        self,
        activities: ActivityStore,
        hexes: HexStore,
        users: UserStore,
        ledger: InfluenceLedger,
        leaderboard: CellLeaderboard,
        *,
        resolution: int = H3_RESOLUTION,
        cell_locks: KeyedLock | None = None,
    ) -> None:
        self._activities = activities
        self._hexes = hexes
        self._users = users
        self._ledger = ledger
        self._leaderboard = leaderboard
        self._resolution = resolution
        self._cell_locks = cell_locks or KeyedLock()

    async def create_activity(self, request: CreateActivityRequest) -> ActivityResponse:
        user_id, cells = validate_activity_request(request, self._resolution)

        user = await self._users.get(user_id)
        if user is None:
            msg = f"User {user_id} not found"
            raise ResourceNotFoundError(msg, {"user_id": user_id})

        activity = await self._activities.insert(
            Activity(
                user_id=user_id,
                duration=request.duration,
                distance=request.distance,
                h3_indexes=cells,
            ),
        )
        logger.info(
            "Recorded activity %s for user %s across %d cells",
            activity.id,
            user_id,
            len(cells),
        )

        warnings = await self._ensure_hexes(cells)
        processed = 0
        for cell_id in cells:
            warning = await self._credit_cell(cell_id, user_id, user.username)
            if warning is None:
                processed += 1
            else:
                warnings.append(warning)

        if warnings:
            logger.warning(
                "Activity %s finished with %d cell warnings",
                activity.id,
                len(warnings),
            )
        else:
            logger.info("Finished processing all cells for activity %s", activity.id)

        return ActivityResponse(
            activity_id=str(activity.id),
            user_id=activity.user_id,
            duration=activity.duration,
            distance=activity.distance,
            h3_indexes=activity.h3_indexes,
            created_at=activity.created_at,
            cells_processed=processed,
            warnings=warnings,
        )

    async def _ensure_hexes(self, cells: list[str]) -> list[CellWarning]:
        unique_cells = list(dict.fromkeys(cells))
        try:
            existing = await self._hexes.exists_all(unique_cells)
        except PyMongoError:
            logger.warning(
                "Failed to pre-fetch existing hexes; creating individually",
                exc_info=True,
            )
            existing = set()

        warnings: list[CellWarning] = []
        for cell_id in unique_cells:
            if cell_id in existing:
                continue
            try:
                created = await self._hexes.create(cell_id)
            except CELL_ERRORS as exc:
                logger.exception("Failed to create hex %s", cell_id)
                warnings.append(CellWarning(h3_index=cell_id, stage="hex", error=str(exc)))
                continue
            if created:
                logger.info("Created new hex %s", cell_id)
            else:
                logger.info("Hex %s already existed", cell_id)
        return warnings

    async def _credit_cell(
        self,
        cell_id: str,
        user_id: str,
        username: str,
    ) -> CellWarning | None:
        async with self._cell_locks.hold(cell_id):
            try:
                await self._ledger.touch(user_id, cell_id)
            except CELL_ERRORS as exc:
                logger.exception("Failed to update influence for %s", cell_id)
                return CellWarning(h3_index=cell_id, stage="influence", error=str(exc))

            try:
                rank = await self._leaderboard.add_or_create(cell_id, user_id, username)
            except CELL_ERRORS as exc:
                logger.exception("Failed to update leaderboard for %s", cell_id)
                return CellWarning(h3_index=cell_id, stage="leaderboard", error=str(exc))

        logger.debug("User %s holds rank %s in %s", user_id, rank, cell_id)
        return None

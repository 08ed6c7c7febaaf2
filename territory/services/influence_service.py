"""Cell influence ledger: lazy time decay followed by a fixed increment."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from pymongo.errors import PyMongoError

from config import (
    DECAY_RATE_PER_WEEK,
    HOURS_PER_WEEK,
    INITIAL_INFLUENCE,
    MAX_WRITE_ATTEMPTS,
    MIN_DECAY_MULTIPLIER,
)
from core.exceptions import ConcurrentUpdateError, StrideWarsError
from date_utils import get_current_utc_time, hours_between
from db.models import HexInfluence

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from db.stores import InfluenceStore

logger = logging.getLogger(__name__)


def _round_one_decimal(value: float) -> float:
    # Half away from zero; round() would use banker's rounding.
    return math.copysign(math.floor(abs(value) * 10 + 0.5), value) / 10


def decay_multiplier(elapsed_hours: float) -> float:
    """Fraction of the previous score kept after ``elapsed_hours``.

    Linear 10% loss per week, rounded to one decimal, never below 0.1.
    """
    multiplier = _round_one_decimal(
        1 - DECAY_RATE_PER_WEEK * (max(elapsed_hours, 0.0) / HOURS_PER_WEEK),
    )
    if multiplier <= 0:
        return MIN_DECAY_MULTIPLIER
    return multiplier


def decayed_score(old_score: float, elapsed_hours: float) -> float:
    return old_score * decay_multiplier(elapsed_hours) + INITIAL_INFLUENCE


class InfluenceLedger:
    """Owns per-(cell, user) influence scores."""

    def __init__(
        self,
        store: InfluenceStore,
        *,
        clock: Callable[[], datetime] = get_current_utc_time,
        max_attempts: int = MAX_WRITE_ATTEMPTS,
    ) -> None:
        self._store = store
        self._clock = clock
        self._max_attempts = max(1, max_attempts)

    async def get(self, cell_id: str, user_id: str) -> HexInfluence | None:
        return await self._store.get(cell_id, user_id)

    async def touch(self, user_id: str, cell_id: str) -> float:
        """Apply decay-then-increment for one visit and return the new score."""
        for attempt in range(1, self._max_attempts + 1):
            now = self._clock()
            influence = await self._store.get(cell_id, user_id)
            if influence is None:
                influence = HexInfluence(
                    h3_index=cell_id,
                    user_id=user_id,
                    score=INITIAL_INFLUENCE,
                    last_updated=now,
                    first_touched_at=now,
                )
            else:
                elapsed = hours_between(influence.last_updated, now)
                influence.score = decayed_score(influence.score, elapsed)
                influence.last_updated = now

            if await self._store.put(influence):
                return influence.score
            logger.debug(
                "Influence write for user %s in %s lost a race (attempt %d)",
                user_id,
                cell_id,
                attempt,
            )

        msg = f"Influence for user {user_id} in {cell_id} kept changing concurrently"
        raise ConcurrentUpdateError(msg, {"h3_index": cell_id, "user_id": user_id})

    async def touch_many(self, user_id: str, cell_ids: Iterable[str]) -> int:
        """Touch each cell independently; return how many succeeded."""
        touched = 0
        for cell_id in cell_ids:
            try:
                await self.touch(user_id, cell_id)
            except (StrideWarsError, PyMongoError):
                logger.exception("Failed to touch %s for user %s", cell_id, user_id)
                continue
            touched += 1
        return touched

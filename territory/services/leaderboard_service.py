"""Bounded per-cell leaderboards projected from the influence ledger.

Ranking order is score descending. Equal scores keep their persisted order:
an incumbent stays ahead of anyone who ties it later, and a newcomer enters
behind every entry it ties. A touch whose user does not make the cut leaves
the stored board untouched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config import LEADERBOARD_SIZE, MAX_WRITE_ATTEMPTS
from core.exceptions import ConcurrentUpdateError
from date_utils import get_current_utc_time
from db.models import HexLeaderboard, TopUser

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from db.stores import InfluenceStore, LeaderboardStore, UserStore

logger = logging.getLogger(__name__)


def position_in(entries: Sequence[TopUser], user_id: str) -> int | None:
    for idx, entry in enumerate(entries):
        if entry.user_id == user_id:
            return idx + 1
    return None


def rerank(
    entries: Sequence[TopUser],
    candidate: TopUser,
    size: int = LEADERBOARD_SIZE,
) -> tuple[list[TopUser], bool]:
    """Merge ``candidate`` into ``entries`` and keep the best ``size``.

    Returns the new list and whether it differs from ``entries``.
    """
    merged: list[TopUser] = []
    replaced = False
    changed = False
    for entry in entries:
        if entry.user_id != candidate.user_id:
            merged.append(entry)
            continue
        replaced = True
        if entry.score != candidate.score or (
            candidate.username and entry.username != candidate.username
        ):
            merged.append(candidate)
            changed = True
        else:
            merged.append(entry)
    if not replaced:
        merged.append(candidate)
        changed = True

    # sorted() is stable, which is what pins the tie-break.
    ranked = sorted(merged, key=lambda entry: entry.score, reverse=True)[:size]
    if [e.user_id for e in ranked] != [e.user_id for e in entries]:
        changed = True
    return ranked, changed


class CellLeaderboard:
    """Maintains the top contributors of each cell."""

    def __init__(
        self,
        leaderboards: LeaderboardStore,
        influences: InfluenceStore,
        users: UserStore | None = None,
        *,
        size: int = LEADERBOARD_SIZE,
        clock: Callable[[], datetime] = get_current_utc_time,
        max_attempts: int = MAX_WRITE_ATTEMPTS,
    ) -> None:
        self._leaderboards = leaderboards
        self._influences = influences
        self._users = users
        self._size = size
        self._clock = clock
        self._max_attempts = max(1, max_attempts)

    async def get(self, cell_id: str) -> HexLeaderboard | None:
        return await self._leaderboards.get(cell_id)

    async def sync(
        self,
        cell_id: str,
        user_id: str,
        *,
        username: str = "",
    ) -> int | None:
        """Bring the user's ledger score onto the cell's board.

        Returns the user's 1-based rank, or None when the user has no
        influence in the cell or does not make the top of the board.
        """
        for attempt in range(1, self._max_attempts + 1):
            influence = await self._influences.get(cell_id, user_id)
            if influence is None:
                return None
            candidate = TopUser(user_id=user_id, username=username, score=influence.score)

            board = await self._leaderboards.get(cell_id)
            if board is None:
                board = HexLeaderboard(
                    h3_index=cell_id,
                    top_users=[candidate],
                    updated_at=self._clock(),
                )
                if await self._leaderboards.put(board):
                    logger.debug("Created leaderboard for %s led by %s", cell_id, user_id)
                    return 1
                continue

            ranked, changed = rerank(board.top_users, candidate, self._size)
            rank = position_in(ranked, user_id)
            if rank is None:
                return None
            if not changed:
                return rank

            previous_leader = board.leader()
            board.top_users = ranked
            board.updated_at = self._clock()
            if await self._leaderboards.put(board):
                leader = board.leader()
                if previous_leader and leader and leader.user_id != previous_leader.user_id:
                    logger.info(
                        "Cell %s changed hands: %s -> %s",
                        cell_id,
                        previous_leader.user_id,
                        leader.user_id,
                    )
                return rank
            logger.debug(
                "Leaderboard write for %s lost a race (attempt %d)",
                cell_id,
                attempt,
            )

        msg = f"Leaderboard for {cell_id} kept changing concurrently"
        raise ConcurrentUpdateError(msg, {"h3_index": cell_id, "user_id": user_id})

    async def add_or_create(
        self,
        cell_id: str,
        user_id: str,
        username: str | None = None,
    ) -> int | None:
        """Sync the user into the cell's board, creating the board if needed."""
        if username is None:
            username = await self._display_name(user_id)
        return await self.sync(cell_id, user_id, username=username)

    async def position_of(self, cell_id: str, user_id: str) -> int | None:
        """Read-only rank lookup against the persisted board."""
        board = await self._leaderboards.get(cell_id)
        if board is None:
            return None
        return position_in(board.top_users, user_id)

    async def _display_name(self, user_id: str) -> str:
        if self._users is None:
            return ""
        user = await self._users.get(user_id)
        return user.username if user else ""

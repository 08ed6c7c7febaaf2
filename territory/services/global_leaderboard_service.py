"""Global ranking of users by how many cells they currently lead."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from config import GLOBAL_LEADERBOARD_LIMIT
from territory.models import GlobalLeaderboardEntry

if TYPE_CHECKING:
    from db.stores import LeaderboardStore, UserStore

logger = logging.getLogger(__name__)


class GlobalLeaderboard:
    """Full-scan aggregation over every persisted cell leaderboard.

    Each call walks all boards; there is no incrementally maintained
    per-user counter.
    """

    def __init__(self, leaderboards: LeaderboardStore, users: UserStore) -> None:
        self._leaderboards = leaderboards
        self._users = users

    async def top(self, limit: int = GLOBAL_LEADERBOARD_LIMIT) -> list[GlobalLeaderboardEntry]:
        counts: Counter[str] = Counter()
        board_names: dict[str, str] = {}
        boards_seen = 0
        async for board in self._leaderboards.list_all():
            boards_seen += 1
            leader = board.leader()
            if leader is None:
                continue
            counts[leader.user_id] += 1
            if leader.username:
                board_names[leader.user_id] = leader.username

        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[: max(limit, 0)]
        users = await self._users.get_many(user_id for user_id, _ in ranked)
        logger.debug(
            "Aggregated %d leaders across %d boards",
            len(counts),
            boards_seen,
        )
        return [
            GlobalLeaderboardEntry(
                user_id=user_id,
                username=(
                    users[user_id].username
                    if user_id in users
                    else board_names.get(user_id, "")
                ),
                top_count=count,
            )
            for user_id, count in ranked
        ]

"""Repository-style stores used by the territory services.

The services only talk to the narrow protocols below; the Mongo* classes are
the Beanie-backed implementations wired in production. Mutable rows
(influence, leaderboards) are written with compare-and-set on their
``version`` field: ``put`` returns False when another writer got there first
and the caller is expected to re-read and retry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from pymongo.errors import DuplicateKeyError

from db.models import Activity, Hex, HexInfluence, HexLeaderboard, User

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable
    from datetime import datetime

logger = logging.getLogger(__name__)


class HexStore(Protocol):
    async def exists_all(self, cell_ids: Iterable[str]) -> set[str]: ...

    async def create(self, cell_id: str) -> bool: ...


class InfluenceStore(Protocol):
    async def get(self, cell_id: str, user_id: str) -> HexInfluence | None: ...

    async def put(self, influence: HexInfluence) -> bool: ...

    async def count_for_user(self, user_id: str) -> int: ...


class LeaderboardStore(Protocol):
    async def get(self, cell_id: str) -> HexLeaderboard | None: ...

    async def put(self, board: HexLeaderboard) -> bool: ...

    def list_all(self) -> AsyncIterator[HexLeaderboard]: ...

    async def find_many(self, cell_ids: Iterable[str]) -> list[HexLeaderboard]: ...


class ActivityStore(Protocol):
    async def insert(self, activity: Activity) -> Activity: ...

    async def totals_for_user(self, user_id: str) -> tuple[int, float]: ...

    async def created_since(self, user_id: str, since: datetime) -> list[datetime]: ...


class UserStore(Protocol):
    async def get(self, user_id: str) -> User | None: ...

    async def get_by_username(self, username: str) -> User | None: ...

    async def get_by_external_id(self, external_user_id: str) -> User | None: ...

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]: ...

    async def insert(self, user: User) -> bool: ...


class MongoHexStore:
    async def exists_all(self, cell_ids: Iterable[str]) -> set[str]:
        ids = list(dict.fromkeys(cell_ids))
        if not ids:
            return set()
        hexes = await Hex.find({"h3_index": {"$in": ids}}).to_list()
        return {hex_doc.h3_index for hex_doc in hexes}

    async def create(self, cell_id: str) -> bool:
        """Insert the hex; False when it already exists."""
        if await Hex.find_one(Hex.h3_index == cell_id) is not None:
            return False
        try:
            await Hex(h3_index=cell_id).insert()
        except DuplicateKeyError:
            logger.info("Hex %s was created concurrently", cell_id)
            return False
        return True


class MongoInfluenceStore:
    async def get(self, cell_id: str, user_id: str) -> HexInfluence | None:
        return await HexInfluence.find_one(
            HexInfluence.h3_index == cell_id,
            HexInfluence.user_id == user_id,
        )

    async def put(self, influence: HexInfluence) -> bool:
        if influence.id is None:
            try:
                await influence.insert()
            except DuplicateKeyError:
                influence.id = None
                return False
            return True

        expected = influence.version
        result = await HexInfluence.find_one(
            HexInfluence.id == influence.id,
            HexInfluence.version == expected,
        ).update(
            {
                "$set": {
                    "score": influence.score,
                    "last_updated": influence.last_updated,
                },
                "$inc": {"version": 1},
            },
        )
        if not result or result.matched_count == 0:
            return False
        influence.version = expected + 1
        return True

    async def count_for_user(self, user_id: str) -> int:
        return await HexInfluence.find(HexInfluence.user_id == user_id).count()


class MongoLeaderboardStore:
    async def get(self, cell_id: str) -> HexLeaderboard | None:
        return await HexLeaderboard.find_one(HexLeaderboard.h3_index == cell_id)

    async def put(self, board: HexLeaderboard) -> bool:
        if board.id is None:
            try:
                await board.insert()
            except DuplicateKeyError:
                board.id = None
                return False
            return True

        expected = board.version
        result = await HexLeaderboard.find_one(
            HexLeaderboard.id == board.id,
            HexLeaderboard.version == expected,
        ).update(
            {
                "$set": {
                    "top_users": [entry.model_dump() for entry in board.top_users],
                    "updated_at": board.updated_at,
                },
                "$inc": {"version": 1},
            },
        )
        if not result or result.matched_count == 0:
            return False
        board.version = expected + 1
        return True

    async def list_all(self) -> AsyncIterator[HexLeaderboard]:
        async for board in HexLeaderboard.find_all():
            yield board

    async def find_many(self, cell_ids: Iterable[str]) -> list[HexLeaderboard]:
        ids = list(dict.fromkeys(cell_ids))
        if not ids:
            return []
        return (
            await HexLeaderboard.find({"h3_index": {"$in": ids}})
            .sort("h3_index")
            .to_list()
        )


class MongoActivityStore:
    async def insert(self, activity: Activity) -> Activity:
        return await activity.insert()

    async def totals_for_user(self, user_id: str) -> tuple[int, float]:
        """Return (activity count, summed distance) for the user."""
        pipeline: list[dict[str, Any]] = [
            {
                "$group": {
                    "_id": None,
                    "count": {"$sum": 1},
                    "distance": {"$sum": "$distance"},
                },
            },
        ]
        rows = await Activity.find(Activity.user_id == user_id).aggregate(pipeline).to_list()
        if not rows:
            return 0, 0.0
        return int(rows[0].get("count", 0)), float(rows[0].get("distance") or 0.0)

    async def created_since(self, user_id: str, since: datetime) -> list[datetime]:
        activities = await Activity.find(
            Activity.user_id == user_id,
            Activity.created_at >= since,
        ).to_list()
        return [activity.created_at for activity in activities]


class MongoUserStore:
    async def get(self, user_id: str) -> User | None:
        return await User.find_one(User.user_id == user_id)

    async def get_by_username(self, username: str) -> User | None:
        return await User.find_one(User.username == username)

    async def get_by_external_id(self, external_user_id: str) -> User | None:
        return await User.find_one(User.external_user_id == external_user_id)

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        users = await User.find({"user_id": {"$in": ids}}).to_list()
        return {user.user_id: user for user in users}

    async def insert(self, user: User) -> bool:
        try:
            await user.insert()
        except DuplicateKeyError:
            user.id = None
            return False
        return True

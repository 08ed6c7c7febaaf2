from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from db.models import HexInfluence, HexLeaderboard, TopUser, User

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable


class FakeClock:
    """Deterministic stand-in for get_current_utc_time."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 2, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


async def create_user(username: str, external_user_id: str | None = None) -> User:
    user = User(external_user_id=external_user_id or f"ext-{username}", username=username)
    await user.insert()
    return user


async def seed_board(cell_id: str, *entries: tuple[User, float]) -> HexLeaderboard:
    board = HexLeaderboard(
        h3_index=cell_id,
        top_users=[
            TopUser(user_id=user.user_id, username=user.username, score=score)
            for user, score in entries
        ],
    )
    await board.insert()
    return board


@dataclass
class RacingInfluenceStore:
    """In-memory influence store whose first ``conflicts`` writes lose a race."""

    conflicts: int = 0
    rows: dict[tuple[str, str], HexInfluence] = field(default_factory=dict)
    put_calls: int = 0

    async def get(self, cell_id: str, user_id: str) -> HexInfluence | None:
        row = self.rows.get((cell_id, user_id))
        return row.model_copy() if row else None

    async def put(self, influence: HexInfluence) -> bool:
        self.put_calls += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            return False
        influence.version += 1
        self.rows[(influence.h3_index, influence.user_id)] = influence.model_copy()
        return True

    async def count_for_user(self, user_id: str) -> int:
        return sum(1 for _, owner in self.rows if owner == user_id)


@dataclass
class RacingLeaderboardStore:
    conflicts: int = 0
    boards: dict[str, HexLeaderboard] = field(default_factory=dict)

    async def get(self, cell_id: str) -> HexLeaderboard | None:
        board = self.boards.get(cell_id)
        return board.model_copy(deep=True) if board else None

    async def put(self, board: HexLeaderboard) -> bool:
        if self.conflicts > 0:
            self.conflicts -= 1
            return False
        board.version += 1
        self.boards[board.h3_index] = board.model_copy(deep=True)
        return True

    async def list_all(self) -> AsyncIterator[HexLeaderboard]:
        for board in list(self.boards.values()):
            yield board

    async def find_many(self, cell_ids: Iterable[str]) -> list[HexLeaderboard]:
        return [self.boards[c] for c in sorted(set(cell_ids)) if c in self.boards]

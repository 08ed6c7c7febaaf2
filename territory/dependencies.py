"""Construction of the territory service graph.

Every collaborator is built once here and handed to routes through FastAPI
``Depends``; request handlers never instantiate services themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from core.locks import KeyedLock
from db.stores import (
    MongoActivityStore,
    MongoHexStore,
    MongoInfluenceStore,
    MongoLeaderboardStore,
    MongoUserStore,
)
from territory.services import (
    ActivityIngestor,
    ActivityStats,
    CellLeaderboard,
    GlobalLeaderboard,
    InfluenceLedger,
    RegionQueries,
)
from users.service import UserDirectory


@dataclass(frozen=True)
class TerritoryEngine:
    users: UserDirectory
    ledger: InfluenceLedger
    leaderboard: CellLeaderboard
    ingestor: ActivityIngestor
    global_leaderboard: GlobalLeaderboard
    regions: RegionQueries
    stats: ActivityStats


def build_engine() -> TerritoryEngine:
    users = MongoUserStore()
    influences = MongoInfluenceStore()
    leaderboards = MongoLeaderboardStore()
    activities = MongoActivityStore()

    ledger = InfluenceLedger(influences)
    leaderboard = CellLeaderboard(leaderboards, influences, users)
    return TerritoryEngine(
        users=UserDirectory(users),
        ledger=ledger,
        leaderboard=leaderboard,
        ingestor=ActivityIngestor(
            activities,
            MongoHexStore(),
            users,
            ledger,
            leaderboard,
            cell_locks=KeyedLock(),
        ),
        global_leaderboard=GlobalLeaderboard(leaderboards, users),
        regions=RegionQueries(leaderboards, leaderboard),
        stats=ActivityStats(activities, influences),
    )


@lru_cache(maxsize=1)
def get_engine() -> TerritoryEngine:
    return build_engine()

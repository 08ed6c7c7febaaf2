"""Territory engine services."""

from territory.services.activity_service import ActivityIngestor
from territory.services.global_leaderboard_service import GlobalLeaderboard
from territory.services.influence_service import InfluenceLedger
from territory.services.leaderboard_service import CellLeaderboard
from territory.services.region_service import RegionQueries
from territory.services.stats_service import ActivityStats

__all__ = [
    "ActivityIngestor",
    "ActivityStats",
    "CellLeaderboard",
    "GlobalLeaderboard",
    "InfluenceLedger",
    "RegionQueries",
]

"""Database package for MongoDB operations using Beanie ODM.

Modules:
    manager: DatabaseManager owning the lazily created motor client
    models: Beanie Document models for all collections
    stores: Narrow store protocols and their Beanie implementations

Usage:
    from db.models import HexLeaderboard

    board = await HexLeaderboard.find_one(HexLeaderboard.h3_index == cell_id)
"""

from db.manager import DatabaseManager, db_manager

__all__ = [
    "DatabaseManager",
    "db_manager",
]

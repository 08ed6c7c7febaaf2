"""Centralized configuration for environment variables and game tuning.

This module is the single source of truth for configuration used across the
application. Import constants from here rather than calling os.getenv directly
in multiple places.

NOTE: MongoDB connection settings are read by db.manager.DatabaseManager.
"""

from __future__ import annotations

import os
from typing import Final

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        msg = f"{name} must be an integer, got {raw!r}"
        raise RuntimeError(msg) from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        msg = f"{name} must be a number, got {raw!r}"
        raise RuntimeError(msg) from exc


# --- Hex grid ---
# Every stored cell id is at exactly this resolution.
H3_RESOLUTION: Final[int] = _env_int("H3_RESOLUTION", 9)
TRACK_SAMPLE_SPACING_M: Final[float] = _env_float("TRACK_SAMPLE_SPACING_M", 25.0)
MAX_REGION_CELLS: Final[int] = _env_int("MAX_REGION_CELLS", 5000)

# --- Influence decay ---
DECAY_RATE_PER_WEEK: Final[float] = _env_float("DECAY_RATE_PER_WEEK", 0.1)
HOURS_PER_WEEK: Final[float] = 24.0 * 7.0
INITIAL_INFLUENCE: Final[float] = 1.0
MIN_DECAY_MULTIPLIER: Final[float] = 0.1

# --- Leaderboards ---
LEADERBOARD_SIZE: Final[int] = _env_int("LEADERBOARD_SIZE", 5)
GLOBAL_LEADERBOARD_LIMIT: Final[int] = _env_int("GLOBAL_LEADERBOARD_LIMIT", 10)

# Compare-and-set attempts before a write is reported as a conflict
MAX_WRITE_ATTEMPTS: Final[int] = _env_int("MAX_WRITE_ATTEMPTS", 3)


def get_cors_origins() -> list[str]:
    """Return the configured CORS origins, or local development defaults."""
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    if origins:
        return origins
    return [
        "http://localhost:8081",
        "http://localhost:19006",
        "http://127.0.0.1:8081",
        "http://127.0.0.1:19006",
    ]


__all__ = [
    "DECAY_RATE_PER_WEEK",
    "GLOBAL_LEADERBOARD_LIMIT",
    "H3_RESOLUTION",
    "HOURS_PER_WEEK",
    "INITIAL_INFLUENCE",
    "LEADERBOARD_SIZE",
    "MAX_REGION_CELLS",
    "MAX_WRITE_ATTEMPTS",
    "MIN_DECAY_MULTIPLIER",
    "TRACK_SAMPLE_SPACING_M",
    "get_cors_origins",
]

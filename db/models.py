"""Beanie ODM document models for MongoDB collections.

This module defines all document models using Beanie ODM, which provides:
- Automatic Pydantic validation
- Built-in async CRUD operations
- Proper ObjectId/datetime serialization
- Index definitions at the model level

Usage:
    from db.models import HexInfluence, HexLeaderboard

    influence = await HexInfluence.find_one(
        HexInfluence.h3_index == cell, HexInfluence.user_id == user_id
    )
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from beanie import Document, Indexed
from pydantic import BaseModel, Field, field_validator
from pymongo import ASCENDING, DESCENDING, IndexModel

from date_utils import get_current_utc_time, parse_timestamp


def _parse_datetime(v: Any) -> datetime | None:
    if v is None:
        return None
    return parse_timestamp(v)


class User(Document):
    """Internal user record linked to an identity-provider subject."""

    user_id: Indexed(str, unique=True) = Field(default_factory=lambda: str(uuid4()))
    external_user_id: Indexed(str, unique=True)
    username: Indexed(str)
    created_at: datetime = Field(default_factory=get_current_utc_time)

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        return _parse_datetime(v)

    class Settings:
        name = "users"


class Hex(Document):
    """A territory cell. Created the first time any activity touches it."""

    h3_index: Indexed(str, unique=True)
    created_at: datetime = Field(default_factory=get_current_utc_time)

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        return _parse_datetime(v)

    class Settings:
        name = "hexes"


class Activity(Document):
    """A completed run or walk. Append-only."""

    user_id: str
    duration: float
    distance: float
    h3_indexes: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=get_current_utc_time)

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        return _parse_datetime(v)

    class Settings:
        name = "activities"
        indexes = [
            IndexModel(
                [("user_id", ASCENDING), ("created_at", DESCENDING)],
                name="activities_user_created_idx",
            ),
        ]


class HexInfluence(Document):
    """Decaying influence of one user in one cell."""

    h3_index: str
    user_id: str
    score: float = Field(ge=0)
    last_updated: datetime
    first_touched_at: datetime | None = None
    # Bumped on every write; writers compare-and-set on it.
    version: int = 0

    @field_validator("last_updated", "first_touched_at", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        return _parse_datetime(v)

    class Settings:
        name = "hex_influences"
        indexes = [
            IndexModel(
                [("h3_index", ASCENDING), ("user_id", ASCENDING)],
                name="hex_influences_cell_user_idx",
                unique=True,
            ),
            IndexModel([("user_id", ASCENDING)], name="hex_influences_user_idx"),
        ]


class TopUser(BaseModel):
    """One ranked entry of a cell leaderboard."""

    user_id: str
    username: str = ""
    score: float


class HexLeaderboard(Document):
    """Top contributors of one cell, highest score first."""

    h3_index: Indexed(str, unique=True)
    top_users: list[TopUser] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=get_current_utc_time)
    version: int = 0

    @field_validator("updated_at", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        return _parse_datetime(v)

    def leader(self) -> TopUser | None:
        return self.top_users[0] if self.top_users else None

    class Settings:
        name = "hex_leaderboards"


ALL_DOCUMENT_MODELS = [
    User,
    Hex,
    Activity,
    HexInfluence,
    HexLeaderboard,
]

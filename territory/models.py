"""Pydantic models for territory APIs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from db.models import HexLeaderboard


class CreateActivityRequest(BaseModel):
    user_id: str | None = None
    duration: float = Field(default=0.0, description="Duration in seconds")
    distance: float = Field(default=0.0, description="Distance in meters")
    # Legacy clients send 64-bit integers, newer ones hex strings.
    h3_indexes: list[int | str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class CellWarning(BaseModel):
    h3_index: str
    stage: str
    error: str


class ActivityResponse(BaseModel):
    activity_id: str
    user_id: str
    duration: float
    distance: float
    h3_indexes: list[str]
    created_at: datetime
    cells_processed: int = 0
    warnings: list[CellWarning] = Field(default_factory=list)


class TopUserResponse(BaseModel):
    user_id: str
    username: str
    score: float


class HexLeaderboardResponse(BaseModel):
    id: str
    h3_index: str
    top_users: list[TopUserResponse]

    @classmethod
    def from_document(cls, board: HexLeaderboard) -> HexLeaderboardResponse:
        return cls(
            id=str(board.id),
            h3_index=board.h3_index,
            top_users=[
                TopUserResponse(
                    user_id=entry.user_id,
                    username=entry.username,
                    score=entry.score,
                )
                for entry in board.top_users
            ],
        )


class RegionLeaderboardsResponse(BaseModel):
    leaderboards: list[HexLeaderboardResponse]


class GlobalLeaderboardEntry(BaseModel):
    user_id: str
    username: str
    top_count: int


class GlobalLeaderboardResponse(BaseModel):
    leaderboard: list[GlobalLeaderboardEntry]


class CellRankResponse(BaseModel):
    h3_index: str
    user_id: str
    rank: int | None


class TrackCellsRequest(BaseModel):
    coordinates: list[list[float]] = Field(
        default_factory=list,
        description="GPS track as [lng, lat] pairs",
    )

    model_config = ConfigDict(extra="ignore")


class TrackCellsResponse(BaseModel):
    resolution: int
    h3_indexes: list[str]


class UserActivityStatsResponse(BaseModel):
    hexes_visited: int
    activities_recorded: int
    distance_covered: float
    weekly_activities: list[int]

"""API routes for internal user records."""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from core.api import api_route
from db.models import User
from territory.dependencies import TerritoryEngine, get_engine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


class ResolveUserRequest(BaseModel):
    external_user_id: str
    username: str

    model_config = ConfigDict(extra="ignore")


class UserResponse(BaseModel):
    user_id: str
    username: str

    @classmethod
    def from_document(cls, user: User) -> "UserResponse":
        return cls(user_id=user.user_id, username=user.username)


@router.post("", response_model=UserResponse)
@api_route(logger)
async def resolve_user(
    payload: ResolveUserRequest,
    engine: TerritoryEngine = Depends(get_engine),
):
    """Get or create the internal user for an already validated identity."""
    user = await engine.users.get_or_create(payload.external_user_id, payload.username)
    return UserResponse.from_document(user)


@router.get("/by-username/{username}", response_model=UserResponse)
@api_route(logger)
async def get_user_by_username(
    username: str,
    engine: TerritoryEngine = Depends(get_engine),
):
    return UserResponse.from_document(await engine.users.get_by_username(username))


@router.get("/{user_id}", response_model=UserResponse)
@api_route(logger)
async def get_user_by_id(
    user_id: str,
    engine: TerritoryEngine = Depends(get_engine),
):
    return UserResponse.from_document(await engine.users.get_by_id(user_id))

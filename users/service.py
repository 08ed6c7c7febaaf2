"""Internal user records keyed by identity-provider subject."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.exceptions import ResourceNotFoundError, TransientStoreError, ValidationError
from db.models import User

if TYPE_CHECKING:
    from db.stores import UserStore

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 32


class UserDirectory:
    def __init__(self, store: UserStore) -> None:
        self._store = store

    async def get_or_create(self, external_user_id: str, username: str) -> User:
        """Return the user linked to ``external_user_id``, creating it once.

        The caller has already validated the identity with the provider.
        """
        external_user_id = (external_user_id or "").strip()
        username = (username or "").strip()
        if not external_user_id:
            msg = "external_user_id is required"
            raise ValidationError(msg)
        if not username or len(username) > MAX_USERNAME_LENGTH:
            msg = f"username must be 1-{MAX_USERNAME_LENGTH} characters"
            raise ValidationError(msg)

        existing = await self._store.get_by_external_id(external_user_id)
        if existing is not None:
            return existing

        user = User(external_user_id=external_user_id, username=username)
        if await self._store.insert(user):
            logger.info("Created user %s for identity %s", user.user_id, external_user_id)
            return user

        # Lost the insert race to a concurrent request for the same identity.
        existing = await self._store.get_by_external_id(external_user_id)
        if existing is None:
            msg = f"Could not create user for identity {external_user_id}"
            raise TransientStoreError(msg)
        return existing

    async def get_by_id(self, user_id: str) -> User:
        user = await self._store.get(user_id)
        if user is None:
            msg = f"User {user_id} not found"
            raise ResourceNotFoundError(msg, {"user_id": user_id})
        return user

    async def get_by_username(self, username: str) -> User:
        user = await self._store.get_by_username(username)
        if user is None:
            msg = f"User {username} not found"
            raise ResourceNotFoundError(msg, {"username": username})
        return user

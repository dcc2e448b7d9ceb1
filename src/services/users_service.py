"""
Users service - business logic for user records
"""

import logging

from fastapi import Depends

from config.settings import USER_KEY_PREFIX
from database.connection import StoreClient, StoreError, get_store
from models.user import UserCreateRequest, UserUpdateRequest
from services.base_service import (
    BaseService,
    ServiceResult,
    VALIDATION_ERROR,
    CONFLICT,
    RESOURCE_NOT_FOUND,
    STORE_ERROR,
)

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"


class UsersService(BaseService):
    """Service for user CRUD operations"""

    def __init__(self, store: StoreClient):
        super().__init__(store, "users", USER_KEY_PREFIX)

    async def list_users(self) -> ServiceResult:
        """
        List every stored user

        Returns:
            ServiceResult with one {username, firstname, lastname, email}
            entry per user
        """
        try:
            records = await self.list_records()
        except StoreError as e:
            logger.error(f"Error getting users: {e}", exc_info=True)
            return ServiceResult.fail(str(e), STORE_ERROR)

        return ServiceResult.ok([{"username": r["id"], **r["fields"]} for r in records])

    async def create_user(self, request: UserCreateRequest) -> ServiceResult:
        """
        Create a new user

        Args:
            request: Submitted username and profile fields

        Returns:
            ServiceResult with the created username
        """
        if request.missing_fields():
            return ServiceResult.fail("Missing required fields", VALIDATION_ERROR)

        key = self.key_for(request.username)
        try:
            if await self.store.exists(key):
                return ServiceResult.fail("User already exists", CONFLICT)

            await self.store.set_fields(key, request.to_fields())
        except StoreError as e:
            logger.error(f"Error creating user: {e}", exc_info=True)
            return ServiceResult.fail(str(e), STORE_ERROR)

        logger.info(f"Created user: {request.username}")
        return ServiceResult.ok([{"username": request.username}])

    async def get_user(self, username: str) -> ServiceResult:
        key = self.key_for(username)
        try:
            if not await self.store.exists(key):
                return ServiceResult.fail(USER_NOT_FOUND, RESOURCE_NOT_FOUND)
            fields = await self.store.get_all(key)
        except StoreError as e:
            logger.error(f"Error getting user: {e}", exc_info=True)
            return ServiceResult.fail(str(e), STORE_ERROR)

        return ServiceResult.ok([{"username": username, **fields}])

    async def update_user(self, username: str, request: UserUpdateRequest) -> ServiceResult:
        """
        Update the supplied fields of an existing user

        Existence is checked before the update set, so an empty update on
        a missing user is reported as not found.
        """
        key = self.key_for(username)
        try:
            if not await self.store.exists(key):
                return ServiceResult.fail(USER_NOT_FOUND, RESOURCE_NOT_FOUND)

            updates = request.to_updates()
            if not updates:
                return ServiceResult.fail("No fields to update", VALIDATION_ERROR)

            await self.store.set_fields(key, updates)
        except StoreError as e:
            logger.error(f"Error updating user: {e}", exc_info=True)
            return ServiceResult.fail(str(e), STORE_ERROR)

        logger.info(f"Updated user {username}: {sorted(updates)}")
        return ServiceResult.ok([{"username": username}])

    async def delete_user(self, username: str) -> ServiceResult:
        key = self.key_for(username)
        try:
            if not await self.store.exists(key):
                return ServiceResult.fail(USER_NOT_FOUND, RESOURCE_NOT_FOUND)
            await self.store.delete(key)
        except StoreError as e:
            logger.error(f"Error deleting user: {e}", exc_info=True)
            return ServiceResult.fail(str(e), STORE_ERROR)

        logger.info(f"Deleted user: {username}")
        return ServiceResult.ok([{"username": username}])


def get_users_service(store: StoreClient = Depends(get_store)) -> UsersService:
    """Build a users service bound to the application's store client"""
    return UsersService(store)

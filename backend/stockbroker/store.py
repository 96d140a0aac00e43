import json
import logging
from typing import Optional

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from .core.errors import StorageError
from .schemas import CredentialRecord, UserProfile

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "Something went wrong with your saved data. Please try again."


def auth_key(email: str) -> str:
    return f"auth_{email.lower()}"


def user_key(email: str) -> str:
    return f"user_{email.lower()}"


class KeyValueStore:
    """JSON records kept in Redis under the `auth_` and `user_` key families."""

    def __init__(self, client: Redis):
        self.client = client

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning("Key-value store ping failed: %s", e)
            return False

    async def load_json(self, key: str) -> Optional[dict]:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.exception("Read of %s failed", key)
            raise StorageError(RETRY_MESSAGE, code="storage_read", original_exception=e)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.exception("Stored value under %s is not valid JSON", key)
            raise StorageError(RETRY_MESSAGE, code="storage_parse", original_exception=e)

    async def save_json(self, key: str, value: dict) -> None:
        try:
            await self.client.set(key, json.dumps(value))
        except RedisError as e:
            logger.exception("Write of %s failed", key)
            raise StorageError(RETRY_MESSAGE, code="storage_write", original_exception=e)

    async def create_json(self, key: str, value: dict) -> bool:
        """Write `value` only if `key` is unset; False means it already existed."""
        try:
            return bool(await self.client.set(key, json.dumps(value), nx=True))
        except RedisError as e:
            logger.exception("Create of %s failed", key)
            raise StorageError(RETRY_MESSAGE, code="storage_write", original_exception=e)

    async def load_credentials(self, email: str) -> Optional[CredentialRecord]:
        data = await self.load_json(auth_key(email))
        if data is None:
            return None
        try:
            return CredentialRecord.model_validate(data)
        except ValidationError as e:
            logger.exception("Malformed credential record for %s", email)
            raise StorageError(RETRY_MESSAGE, code="storage_parse", original_exception=e)

    async def create_credentials(self, record: CredentialRecord) -> bool:
        return await self.create_json(auth_key(record.email), record.model_dump())

    async def load_profile(self, email: str) -> Optional[UserProfile]:
        data = await self.load_json(user_key(email))
        if data is None:
            return None
        try:
            return UserProfile.model_validate(data)
        except ValidationError as e:
            logger.exception("Malformed profile record for %s", email)
            raise StorageError(RETRY_MESSAGE, code="storage_parse", original_exception=e)

    async def save_profile(self, profile: UserProfile) -> None:
        await self.save_json(user_key(profile.email), profile.model_dump())

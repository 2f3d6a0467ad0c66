"""
Redis/Valkey validation service
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from binding_validator.database.connection import keyvalue_settings, open_redis
from binding_validator.models.enums import BackendKind
from binding_validator.models.validation import ValidationRequest
from binding_validator.services.base_service import BaseValidationService, millis_suffix

logger = logging.getLogger(__name__)

MAX_LISTED_KEYS = 1000

# Checked in order, most specific first
ERROR_SUGGESTIONS = (
    (RedisTimeoutError, "Command timed out",
     "Redis server may be overloaded or network latency is high. Consider increasing COMMAND_TIMEOUT"),
    (RedisConnectionError, "Failed to connect to Redis",
     "Check if Redis server is running, network connectivity, and configuration (host/port/password)"),
    (ResponseError, "Command execution failed",
     "Check command syntax, data types, and the Redis server error message for details"),
    (RedisError, "Redis operation failed", None),
)


class RedisValidationService(BaseValidationService):
    """Key-value validation against the first bound Redis or Valkey service"""

    SERVICE_NAME = "Redis/Valkey"
    KIND = BackendKind.KEYVALUE
    OPERATIONS = {
        "get": "perform_get",
        "read": "perform_get",
        "set": "perform_set",
        "write": "perform_set",
        "delete": "perform_delete",
        "del": "perform_delete",
        "exists": "perform_exists",
        "keys": "perform_keys",
        "listall": "perform_list_all",
    }

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aioredis.Redis]:
        # Settings resolve DNS, so they are built inside the async scope
        conn_settings = await keyvalue_settings(self.credentials)
        logger.info(f"Connecting to Redis/Valkey at {conn_settings.describe()}")
        async with open_redis(conn_settings) as client:
            yield client

    def describe_error(self, error: Exception) -> Tuple[str, str, Optional[str]]:
        for error_class, prefix, suggestion in ERROR_SUGGESTIONS:
            if isinstance(error, error_class):
                return type(error).__name__, f"{prefix}: {error}", suggestion
        return type(error).__name__, f"Unexpected error: {error}", None

    async def perform_get(self, client: aioredis.Redis, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or "test"
        value = await client.get(key)
        if value is None:
            return {"found": False, "key": key, "message": "Key does not exist"}
        return {"found": True, "key": key, "value": value}

    async def perform_set(self, client: aioredis.Redis, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or f"test_{millis_suffix()}"
        value = request.value if request.value is not None else "test_value"
        ttl = request.ttl if request.ttl else None

        if ttl:
            await client.set(key, value, ex=ttl)
            logger.debug(f"Set key {key} with TTL {ttl} seconds")
        else:
            await client.set(key, value)
            logger.debug(f"Set key {key} (no TTL)")

        return {"key": key, "value": value, "ttl": ttl, "set": True}

    async def perform_delete(self, client: aioredis.Redis, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or "test"
        deleted = await client.delete(key)
        return {"key": key, "deleted": bool(deleted)}

    async def perform_exists(self, client: aioredis.Redis, request: ValidationRequest) -> Dict[str, Any]:
        key = request.key or "test"
        exists = await client.exists(key)
        return {"key": key, "exists": bool(exists)}

    async def perform_keys(self, client: aioredis.Redis, request: ValidationRequest) -> Dict[str, Any]:
        pattern = request.pattern or "*"
        keys = sorted(await client.keys(pattern))
        result = {"pattern": pattern, "count": len(keys), "keys": keys}
        if len(keys) > MAX_LISTED_KEYS:
            result["warning"] = "Large number of keys returned. Consider using SCAN for production use."
        return result

    async def perform_list_all(self, client: aioredis.Redis, request: ValidationRequest) -> Dict[str, Any]:
        pattern = request.pattern or "*"
        keys = sorted(await client.keys(pattern))
        if len(keys) > MAX_LISTED_KEYS:
            logger.warning(f"Only listing {MAX_LISTED_KEYS} of {len(keys)} keys. Consider a more specific pattern.")

        pairs = []
        for key in keys[:MAX_LISTED_KEYS]:
            try:
                value = await client.get(key)
            except ResponseError as e:
                # Non-string keys (lists, hashes, ...) cannot be read with GET
                logger.warning(f"Error getting value for key {key}: {e}")
                continue
            pairs.append({"key": key, "value": value})

        return {"key_value_pairs": pairs, "count": len(pairs), "pattern": pattern}

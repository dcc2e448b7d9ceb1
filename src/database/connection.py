"""
Redis store client and connection management
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Optional

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import RedisError

from fastapi import Request

from config import settings

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised for any failed store operation"""


class StoreConnectionError(StoreError):
    """Raised when the initial connection attempt is abandoned"""


@dataclass
class RetryPolicy:
    """Bounded linear-step backoff used for the initial connection"""
    max_retries: int = 10
    step_ms: int = 100
    max_delay_ms: int = 3000
    max_retry_time: float = 60 * 60

    def next_delay(self, attempt: int, elapsed: float) -> Optional[float]:
        """
        Delay in seconds before retrying after failed attempt number `attempt`
        (1-based), or None when the policy gives up.
        """
        if elapsed > self.max_retry_time:
            return None
        if attempt > self.max_retries:
            return None
        return min(attempt * self.step_ms, self.max_delay_ms) / 1000.0

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_retries=settings.REDIS_MAX_RETRIES,
            step_ms=settings.REDIS_RETRY_STEP_MS,
            max_delay_ms=settings.REDIS_MAX_RETRY_DELAY_MS,
            max_retry_time=settings.REDIS_MAX_RETRY_TIME,
        )


def is_connection_refused(error: BaseException) -> bool:
    """True when the error (or its cause) is a refused TCP connection"""
    while error is not None:
        if isinstance(error, ConnectionRefusedError):
            return True
        if "connection refused" in str(error).lower():
            return True
        error = error.__cause__
    return False


class StoreClient:
    """Async client for the hash-per-entity Redis store"""

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        retry_policy: Optional[RetryPolicy] = None,
        atomic_writes: bool = False,
        host: str = "127.0.0.1",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
    ):
        if client is None:
            # Retries are owned by RetryPolicy, not the redis client
            client = redis.Redis(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=True,
                retry=Retry(NoBackoff(), 0),
            )
        self._redis = client
        self.retry_policy = retry_policy or RetryPolicy()
        self.atomic_writes = atomic_writes
        self.host = host
        self.port = port
        self.connected = False
        # Set once the initial connection is abandoned; stays set for the process
        self.unavailable = False

    @classmethod
    def from_settings(cls) -> "StoreClient":
        """Build a client from environment configuration"""
        return cls(
            retry_policy=RetryPolicy.from_settings(),
            atomic_writes=settings.REDIS_ATOMIC_WRITES,
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            password=settings.REDIS_PASSWORD,
        )

    async def connect(self) -> None:
        """
        Establish the connection, retrying transient failures.

        Connection refused is fatal immediately. Otherwise the retry policy
        decides the delay between attempts and when to give up; giving up
        raises StoreConnectionError.
        """
        started = time.monotonic()
        attempt = 0

        while True:
            attempt += 1
            try:
                await self._redis.ping()
                self.connected = True
                logger.info(f"Redis client connected to {self.host}:{self.port}")
                return
            except (RedisError, OSError) as e:
                if is_connection_refused(e):
                    logger.error(f"Redis server refused the connection: {e}")
                    self.unavailable = True
                    raise StoreConnectionError("The server refused the connection") from e

                delay = self.retry_policy.next_delay(attempt, time.monotonic() - started)
                if delay is None:
                    logger.error(f"Giving up on Redis connection after {attempt} attempts: {e}")
                    self.unavailable = True
                    raise StoreConnectionError("Retry attempts exhausted") from e

                logger.warning(f"Redis connection attempt {attempt} failed ({e}), retrying in {delay:.1f}s")
                await asyncio.sleep(delay)

    async def close(self) -> None:
        """Close the underlying connection pool"""
        try:
            await self._redis.aclose()
        finally:
            self.connected = False
        logger.info("Redis connection closed")

    def _ensure_available(self, operation: str) -> None:
        if self.unavailable:
            logger.error(f"Redis {operation} skipped: connection was abandoned at startup")
            raise StoreError(f"{operation} failed: store unavailable")

    async def _call(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        try:
            self._ensure_available(operation)
        except StoreError:
            awaitable.close()
            raise
        try:
            return await awaitable
        except (RedisError, OSError) as e:
            logger.error(f"Redis {operation} failed: {e}")
            raise StoreError(f"{operation} failed") from e

    async def ping(self) -> bool:
        if self.unavailable:
            return False
        try:
            return bool(await self._redis.ping())
        except (RedisError, OSError):
            return False

    async def exists(self, key: str) -> bool:
        return await self._call("EXISTS", self._redis.exists(key)) > 0

    async def get_all(self, key: str) -> Dict[str, str]:
        return await self._call("HGETALL", self._redis.hgetall(key))

    async def set_field(self, key: str, field: str, value: str) -> None:
        await self._call("HSET", self._redis.hset(key, field, value))

    async def set_fields(self, key: str, mapping: Dict[str, str]) -> None:
        """
        Write several hash fields.

        By default each field is a separate HSET, so a failure part-way
        leaves the earlier fields written. In atomic mode all fields go
        in one multi-field HSET.
        """
        if self.atomic_writes:
            await self._call("HSET", self._redis.hset(key, mapping=mapping))
            return
        for field, value in mapping.items():
            await self.set_field(key, field, value)

    async def delete(self, key: str) -> None:
        await self._call("DEL", self._redis.delete(key))

    async def list_keys(self, pattern: str) -> List[str]:
        """Enumerate keys matching a glob pattern using SCAN"""
        self._ensure_available("SCAN")
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
        except (RedisError, OSError) as e:
            logger.error(f"Redis SCAN failed: {e}")
            raise StoreError("SCAN failed") from e
        return sorted(keys)


def get_store(request: Request) -> StoreClient:
    """Get the store client created by the application lifespan"""
    return request.app.state.store

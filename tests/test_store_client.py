"""
Store client tests: hash operations, write modes and connection retry policy
"""

import pytest
from unittest.mock import AsyncMock

from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError

from database import connection
from database.connection import (
    RetryPolicy,
    StoreClient,
    StoreConnectionError,
    StoreError,
    is_connection_refused,
)


class TestHashOperations:
    """Basic key/hash operations against an in-memory Redis"""

    @pytest.mark.asyncio
    async def test_set_and_get_all(self, store):
        await store.set_field("user:alice", "firstname", "Alice")
        await store.set_field("user:alice", "email", "alice@example.com")

        assert await store.get_all("user:alice") == {
            "firstname": "Alice",
            "email": "alice@example.com",
        }

    @pytest.mark.asyncio
    async def test_get_all_missing_key_is_empty(self, store):
        assert await store.get_all("user:nobody") == {}

    @pytest.mark.asyncio
    async def test_exists_and_delete(self, store):
        assert await store.exists("user:bob") is False

        await store.set_field("user:bob", "firstname", "Bob")
        assert await store.exists("user:bob") is True

        await store.delete("user:bob")
        assert await store.exists("user:bob") is False

    @pytest.mark.asyncio
    async def test_list_keys_matches_pattern(self, store, redis_client):
        await store.set_field("user:b", "firstname", "B")
        await store.set_field("user:a", "firstname", "A")
        await redis_client.set("session:xyz", "1")

        assert await store.list_keys("user:*") == ["user:a", "user:b"]

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping() is True


class TestWriteModes:
    """Sequential and atomic multi-field writes"""

    @pytest.mark.asyncio
    async def test_set_fields_sequential(self, store):
        await store.set_fields("user:c", {"firstname": "C", "lastname": "D", "email": "c@d.com"})

        assert await store.get_all("user:c") == {"firstname": "C", "lastname": "D", "email": "c@d.com"}

    @pytest.mark.asyncio
    async def test_set_fields_atomic(self, redis_client):
        store = StoreClient(client=redis_client, atomic_writes=True)
        real_hset = redis_client.hset
        calls = []

        async def counting_hset(*args, **kwargs):
            calls.append(kwargs)
            return await real_hset(*args, **kwargs)

        redis_client.hset = counting_hset

        await store.set_fields("user:e", {"firstname": "E", "lastname": "F", "email": "e@f.com"})

        assert len(calls) == 1
        assert await store.get_all("user:e") == {"firstname": "E", "lastname": "F", "email": "e@f.com"}

    @pytest.mark.asyncio
    async def test_sequential_failure_leaves_earlier_fields(self, store, redis_client):
        real_hset = redis_client.hset
        calls = []

        async def flaky_hset(*args, **kwargs):
            calls.append(args)
            if len(calls) == 2:
                raise RedisConnectionError("connection lost")
            return await real_hset(*args, **kwargs)

        redis_client.hset = flaky_hset

        with pytest.raises(StoreError):
            await store.set_fields("user:g", {"firstname": "G", "lastname": "H", "email": "g@h.com"})

        assert await store.get_all("user:g") == {"firstname": "G"}


class TestStoreErrors:
    """Driver failures surface as StoreError"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,args", [
        ("exists", ("user:x",)),
        ("get_all", ("user:x",)),
        ("set_field", ("user:x", "email", "x@y.com")),
        ("delete", ("user:x",)),
    ])
    async def test_operation_failures_are_wrapped(self, store, redis_client, method, args):
        failing = AsyncMock(side_effect=RedisConnectionError("down"))
        redis_name = {"exists": "exists", "get_all": "hgetall", "set_field": "hset", "delete": "delete"}[method]
        setattr(redis_client, redis_name, failing)

        with pytest.raises(StoreError):
            await getattr(store, method)(*args)

    @pytest.mark.asyncio
    async def test_list_keys_failure_is_wrapped(self, store, redis_client):
        async def broken_scan(*args, **kwargs):
            raise RedisConnectionError("down")
            yield  # pragma: no cover

        redis_client.scan_iter = broken_scan

        with pytest.raises(StoreError):
            await store.list_keys("user:*")

    @pytest.mark.asyncio
    async def test_ping_failure_reports_false(self, store, redis_client):
        redis_client.ping = AsyncMock(side_effect=RedisConnectionError("down"))

        assert await store.ping() is False


class TestRetryPolicy:
    """Delay schedule and give-up conditions"""

    def test_delay_grows_by_step(self):
        policy = RetryPolicy()

        assert policy.next_delay(1, 0) == pytest.approx(0.1)
        assert policy.next_delay(5, 0) == pytest.approx(0.5)

    def test_delay_is_capped(self):
        policy = RetryPolicy(max_retries=100)

        assert policy.next_delay(50, 0) == pytest.approx(3.0)

    def test_gives_up_after_max_retries(self):
        policy = RetryPolicy(max_retries=10)

        assert policy.next_delay(10, 0) is not None
        assert policy.next_delay(11, 0) is None

    def test_gives_up_after_total_retry_time(self):
        policy = RetryPolicy(max_retry_time=3600)

        assert policy.next_delay(1, 3601) is None

    def test_connection_refused_detection(self):
        try:
            try:
                raise ConnectionRefusedError(111, "Connection refused")
            except ConnectionRefusedError as cause:
                raise RedisConnectionError("Error connecting to 127.0.0.1:6379") from cause
        except RedisConnectionError as e:
            assert is_connection_refused(e)

        assert not is_connection_refused(RedisTimeoutError("Timeout reading from socket"))


class TestConnect:
    """Initial connection with retry"""

    @pytest.fixture
    def sleeps(self, monkeypatch):
        recorded = []

        async def fake_sleep(delay):
            recorded.append(delay)

        monkeypatch.setattr(connection.asyncio, "sleep", fake_sleep)
        return recorded

    @pytest.mark.asyncio
    async def test_connect_succeeds_first_try(self, store, sleeps):
        await store.connect()

        assert store.connected is True
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_connect_retries_transient_failures(self, redis_client, sleeps):
        redis_client.ping = AsyncMock(side_effect=[
            RedisTimeoutError("timeout"),
            RedisTimeoutError("timeout"),
            True,
        ])
        store = StoreClient(client=redis_client)

        await store.connect()

        assert store.connected is True
        assert sleeps == [pytest.approx(0.1), pytest.approx(0.2)]

    @pytest.mark.asyncio
    async def test_connect_refused_is_fatal(self, redis_client, sleeps):
        redis_client.ping = AsyncMock(
            side_effect=RedisConnectionError("Error 111 connecting to 127.0.0.1:6379. Connection refused.")
        )
        store = StoreClient(client=redis_client)

        with pytest.raises(StoreConnectionError):
            await store.connect()

        assert redis_client.ping.await_count == 1
        assert sleeps == []
        assert store.connected is False

    @pytest.mark.asyncio
    async def test_connect_gives_up_after_max_retries(self, redis_client, sleeps):
        redis_client.ping = AsyncMock(side_effect=RedisTimeoutError("timeout"))
        store = StoreClient(client=redis_client, retry_policy=RetryPolicy(max_retries=3))

        with pytest.raises(StoreConnectionError):
            await store.connect()

        assert redis_client.ping.await_count == 4
        assert sleeps == [pytest.approx(0.1), pytest.approx(0.2), pytest.approx(0.3)]

    @pytest.mark.asyncio
    async def test_close_marks_disconnected(self, redis_client):
        redis_client.aclose = AsyncMock()
        store = StoreClient(client=redis_client)
        store.connected = True

        await store.close()

        redis_client.aclose.assert_awaited_once()
        assert store.connected is False


class TestAbandonedConnection:
    """After connect gives up, the store stays unavailable"""

    @pytest.mark.asyncio
    async def test_operations_fail_without_contacting_redis(self, redis_client):
        redis_client.ping = AsyncMock(
            side_effect=RedisConnectionError("Error 111 connecting to 127.0.0.1:6379. Connection refused.")
        )
        redis_client.exists = AsyncMock(return_value=1)
        store = StoreClient(client=redis_client)

        with pytest.raises(StoreConnectionError):
            await store.connect()

        assert store.unavailable is True
        with pytest.raises(StoreError):
            await store.exists("user:x")
        with pytest.raises(StoreError):
            await store.list_keys("user:*")
        redis_client.exists.assert_not_awaited()
        assert await store.ping() is False

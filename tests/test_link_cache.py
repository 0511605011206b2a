"""Link cache behavior tests."""

import time
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis
from fakeredis import FakeAsyncRedis

from snaplink.core.exceptions import TransientInfrastructureError
from snaplink.core.redis import LinkCache
from snaplink.schemas.link import CachedLink


def make_record(**overrides) -> CachedLink:
    data = {"key": "abc", "url": "https://example.com", "title": "Example Domain"}
    data.update(overrides)
    return CachedLink(**data)


@pytest.mark.asyncio
async def test_get_missing_key(link_cache: LinkCache) -> None:
    assert await link_cache.get("nope") is None


@pytest.mark.asyncio
async def test_set_then_get(link_cache: LinkCache, redis_client: FakeAsyncRedis) -> None:
    record = make_record(expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc), clicks=4)

    assert await link_cache.set("abc", record)

    assert await link_cache.get("abc") == record
    # Stored as JSON under the prefixed key
    assert '"url":"https://example.com"' in await redis_client.get("link:abc")


@pytest.mark.asyncio
async def test_create_only_does_not_clobber(link_cache: LinkCache) -> None:
    first = make_record(title="First")
    second = make_record(title="Second")

    assert await link_cache.set("abc", first, create_only=True)
    assert not await link_cache.set("abc", second, create_only=True)

    cached = await link_cache.get("abc")
    assert cached is not None
    assert cached.title == "First"


@pytest.mark.asyncio
async def test_plain_set_overwrites(link_cache: LinkCache) -> None:
    await link_cache.set("abc", make_record(title="First"))
    await link_cache.set("abc", make_record(title="Second"))

    cached = await link_cache.get("abc")
    assert cached is not None
    assert cached.title == "Second"


@pytest.mark.asyncio
async def test_expire_at_sets_ttl(link_cache: LinkCache, redis_client: FakeAsyncRedis) -> None:
    expire_at = int(time.time()) + 3600

    await link_cache.set("abc", make_record(), create_only=True, expire_at=expire_at)

    ttl = await redis_client.ttl("link:abc")
    assert 3500 < ttl <= 3600


@pytest.mark.asyncio
async def test_set_without_expiry_persists(link_cache: LinkCache, redis_client: FakeAsyncRedis) -> None:
    await link_cache.set("abc", make_record())

    assert await redis_client.ttl("link:abc") == -1


@pytest.mark.asyncio
async def test_delete(link_cache: LinkCache) -> None:
    await link_cache.set("abc", make_record())

    await link_cache.delete("abc")

    assert await link_cache.get("abc") is None


@pytest.mark.asyncio
async def test_corrupt_entry_is_a_miss(link_cache: LinkCache, redis_client: FakeAsyncRedis) -> None:
    await redis_client.set("link:abc", "{not json")

    assert await link_cache.get("abc") is None


@pytest.mark.asyncio
async def test_custom_prefix(redis_client: FakeAsyncRedis) -> None:
    cache = LinkCache(redis_client, prefix="snap:")

    await cache.set("abc", make_record())

    assert await redis_client.exists("snap:abc") == 1


@pytest.mark.asyncio
async def test_redis_read_and_write_errors_degrade() -> None:
    client = AsyncMock(spec=redis.Redis)
    client.get.side_effect = redis.ConnectionError("down")
    client.set.side_effect = redis.ConnectionError("down")
    cache = LinkCache(client)

    assert await cache.get("abc") is None
    assert await cache.set("abc", make_record()) is False


@pytest.mark.asyncio
async def test_redis_delete_error_is_raised() -> None:
    client = AsyncMock(spec=redis.Redis)
    client.delete.side_effect = redis.ConnectionError("down")
    cache = LinkCache(client)

    with pytest.raises(TransientInfrastructureError) as exc_info:
        await cache.delete("abc")
    assert exc_info.value.status_code == 503

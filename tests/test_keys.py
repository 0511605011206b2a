"""Key normalization and availability tests."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from snaplink.services import link_service
from snaplink.core.exceptions import InvalidKeyError
from snaplink.services.keys import is_key_taken, is_reserved_key, normalize_key, validate_key


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("abc", "abc"),
        ("/abc/", "abc"),
        ("///abc///", "abc"),
        ("docs/intro", "docs/intro"),
        ("/my-link", "my-link"),
        ("привет", "привет"),
        ("東京/2024", "東京/2024"),
        ("🔗/launch", "🔗/launch"),
    ],
)
def test_normalize_valid_keys(raw: str, expected: str) -> None:
    assert normalize_key(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "/a-b/c/", "ÄÖÜ", "x"])
def test_normalize_is_idempotent(raw: str) -> None:
    once = normalize_key(raw)
    assert once is not None
    assert normalize_key(once) == once


@pytest.mark.parametrize(
    "raw",
    [
        "has space",
        "under_score",
        "dot.ted",
        "query?x=1",
        "hash#tag",
        "percent%20",
        "abc\n",
        "tab\tkey",
        "/valid/but!",
    ],
)
def test_normalize_rejects_disallowed_characters(raw: str) -> None:
    assert normalize_key(raw) is None


@pytest.mark.parametrize("raw", ["", "/", "////"])
def test_normalize_rejects_empty_keys(raw: str) -> None:
    assert normalize_key(raw) is None


def test_validate_key() -> None:
    assert validate_key("/abc/") == "abc"

    with pytest.raises(InvalidKeyError) as exc_info:
        validate_key("a b")
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Invalid Key!"


def test_route_segments_are_reserved() -> None:
    assert is_reserved_key("links")
    assert is_reserved_key("health")
    assert not is_reserved_key("abc")


@pytest.mark.parametrize(
    "key",
    ["link/abc/clicks", "link/x", "docs/oauth2-redirect", "links/2", "metrics/extra"],
)
def test_keys_under_route_segments_are_reserved(key: str) -> None:
    assert is_reserved_key(key)


@pytest.mark.parametrize("key", ["linker", "my/link", "blog/post", "documents/1"])
def test_keys_sharing_a_prefix_are_not_reserved(key: str) -> None:
    assert not is_reserved_key(key, ["blog"])


def test_configured_keys_are_reserved() -> None:
    assert is_reserved_key("pricing", ["blog", "pricing"])
    assert not is_reserved_key("pricing", [])


@pytest.mark.asyncio
async def test_reserved_key_is_taken_without_stored_link(db_session: AsyncSession) -> None:
    assert await is_key_taken(db_session, "blog", ["blog"])


@pytest.mark.asyncio
async def test_stored_key_is_taken(db_session: AsyncSession) -> None:
    assert not await is_key_taken(db_session, "abc")

    await link_service.create_link(db_session, key="abc", url="https://example.com")
    await db_session.commit()

    assert await is_key_taken(db_session, "abc")

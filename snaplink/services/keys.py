"""Short key normalization and availability checks."""

import re
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from snaplink.core.exceptions import InvalidKeyError
from snaplink.models.link import Link

# Letters, digits, anything outside ASCII (non-Latin scripts), slashes and hyphens
VALID_KEY_PATTERN = re.compile(r"[0-9A-Za-z\u0080-\U0010FFFF/\-]*")

# First path segments the service routes itself; a link may never shadow them
ROUTE_SEGMENTS = frozenset({"link", "links", "health", "metrics", "docs", "redoc", "openapi.json"})


def normalize_key(raw_key: str) -> str | None:
    """Normalize a requested key.

    Returns the key with leading and trailing slashes removed, or None if it
    contains a disallowed character or nothing is left after stripping.
    """
    if not VALID_KEY_PATTERN.fullmatch(raw_key):
        return None
    key = raw_key.strip("/")
    if not key:
        return None
    return key


def validate_key(raw_key: str) -> str:
    """Normalize a requested key, raising InvalidKeyError if it is unusable."""
    key = normalize_key(raw_key)
    if key is None:
        raise InvalidKeyError()
    return key


def is_reserved_key(key: str, reserved_keys: Iterable[str] = ()) -> bool:
    """Check if a key is reserved by configuration or by the service's own routes.

    A key whose first segment is routed by the service (``link/abc/clicks``,
    ``docs/oauth2-redirect``) is reserved as a whole.
    """
    first_segment = key.split("/", 1)[0]
    return first_segment in ROUTE_SEGMENTS or key in set(reserved_keys)


async def is_key_taken(
    session: AsyncSession,
    key: str,
    reserved_keys: Iterable[str] = (),
) -> bool:
    """Check if a key is reserved or already used by a stored link."""
    if is_reserved_key(key, reserved_keys):
        return True
    result = await session.execute(select(Link.id).where(Link.key == key))
    return result.scalar_one_or_none() is not None

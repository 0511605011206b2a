"""Pydantic schemas."""

from snaplink.schemas.click import ClickUpdate
from snaplink.schemas.link import (
    CachedLink,
    LinkClicksResponse,
    LinkCreate,
    LinkFilters,
    LinkListResponse,
    LinkMetadata,
    LinkResponse,
    MessageResponse,
)

__all__ = [
    "ClickUpdate",
    "CachedLink",
    "LinkClicksResponse",
    "LinkCreate",
    "LinkFilters",
    "LinkListResponse",
    "LinkMetadata",
    "LinkResponse",
    "MessageResponse",
]

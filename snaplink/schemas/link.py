"""Link Pydantic schemas."""

from datetime import datetime, timezone
from typing import Literal
from uuid import UUID

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from snaplink.models.link import as_utc

# Columns a link listing may be ordered by (query value -> model attribute)
SORT_FIELDS = {
    "key": "key",
    "url": "url",
    "title": "title",
    "clicks": "clicks",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "expiresAt": "expires_at",
}

SortField = Literal["key", "url", "title", "clicks", "createdAt", "updatedAt", "expiresAt"]

_uri_adapter = TypeAdapter(AnyUrl)

# Width of the key and user_id columns
KEY_MAX_LENGTH = 191


class LinkCreate(BaseModel):
    """Schema for creating a new link."""

    url: str = Field(min_length=1, description="The destination URL")
    key: str = Field(
        min_length=1,
        max_length=KEY_MAX_LENGTH,
        description="The requested short key",
    )
    expires_at: datetime | None = Field(default=None, description="Optional expiration time")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an absolute URI but keep the string exactly as given."""
        v = v.strip()
        _uri_adapter.validate_python(v)
        return v

    @field_validator("expires_at")
    @classmethod
    def validate_expires_at(cls, v: datetime | None) -> datetime | None:
        """Store expirations in UTC; naive values are read as UTC."""
        if v is None:
            return v
        return as_utc(v)


class LinkMetadata(BaseModel):
    """Preview metadata extracted from a destination page."""

    title: str | None = None
    description: str | None = None
    image: str | None = None


class LinkResponse(BaseModel):
    """Schema for link response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    key: str
    url: str
    title: str | None
    description: str | None
    image: str | None
    archived: bool
    clicks: int
    user_id: str | None
    created_at: datetime
    updated_at: datetime
    expires_at: datetime | None


class LinkListResponse(BaseModel):
    """Schema for paginated link list response."""

    items: list[LinkResponse]
    total: int
    page: int
    page_size: int
    pages: int


class LinkFilters(BaseModel):
    """Filters for listing links."""

    user_id: str | None = None
    search: str | None = None
    sort: SortField | None = None
    page: int = Field(default=1, ge=1)
    include_archived: bool = False


class LinkClicksResponse(BaseModel):
    """Schema for a link's click count."""

    clicks: int


class MessageResponse(BaseModel):
    """Schema for plain acknowledgement responses."""

    message: str


class CachedLink(BaseModel):
    """Cacheable fields of a link, stored as JSON under its key."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    url: str
    title: str | None = None
    description: str | None = None
    image: str | None = None
    archived: bool = False
    clicks: int = 0
    user_id: str | None = None
    expires_at: datetime | None = None

    @property
    def is_expired(self) -> bool:
        """Check if the cached link has expired."""
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) > as_utc(self.expires_at)

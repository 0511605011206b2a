"""Click update messages passed to the background click workers."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class ClickUpdate(BaseModel):
    """A single click to persist for a link.

    ``clicks`` is the count the redirect observed plus one. Workers only use it
    to decide whether to bump; the store always increments by one.
    """

    key: str = Field(min_length=1, description="The key that was redirected")
    clicks: int = Field(ge=1, description="Request-time click count plus one")
    clicked_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when the click occurred",
    )

"""Link services."""

from snaplink.services import link as link_service
from snaplink.services.clicks import ClickUpdater
from snaplink.services.metadata import MetadataFetcher
from snaplink.services.redirect import BotPreview, Redirect, RedirectResolver

__all__ = [
    "link_service",
    "BotPreview",
    "ClickUpdater",
    "MetadataFetcher",
    "Redirect",
    "RedirectResolver",
]

"""Dependency injection utilities for FastAPI routes."""

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from snaplink.core.config import Settings
from snaplink.core.database import get_async_session
from snaplink.core.redis import LinkCache
from snaplink.schemas.link import KEY_MAX_LENGTH
from snaplink.services.metadata import MetadataFetcher
from snaplink.services.redirect import RedirectResolver


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_link_cache(request: Request) -> LinkCache:
    """Link cache opened at startup."""
    return request.app.state.link_cache


def get_metadata_fetcher(request: Request) -> MetadataFetcher:
    """Metadata fetcher opened at startup."""
    return request.app.state.metadata_fetcher


def get_redirect_resolver(request: Request) -> RedirectResolver:
    """Resolver wired to the application's cache and click updater."""
    return RedirectResolver(
        cache=request.app.state.link_cache,
        click_updater=request.app.state.click_updater,
    )


async def get_principal_id(
    x_user_id: Annotated[str | None, Header(max_length=KEY_MAX_LENGTH)] = None,
) -> str | None:
    """Owner of the request as forwarded by the authentication gateway.

    Anonymous requests have no owner.
    """
    return x_user_id or None


# Type aliases for dependency injection
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Cache = Annotated[LinkCache, Depends(get_link_cache)]
Fetcher = Annotated[MetadataFetcher, Depends(get_metadata_fetcher)]
Resolver = Annotated[RedirectResolver, Depends(get_redirect_resolver)]
PrincipalId = Annotated[str | None, Depends(get_principal_id)]
Session = Annotated[AsyncSession, Depends(get_async_session)]

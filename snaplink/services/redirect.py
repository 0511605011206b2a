"""Short key resolution: cache-aside lookup, gating and bot branching."""

from collections.abc import Callable

import structlog
from crawlerdetect import CrawlerDetect
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from snaplink.core.exceptions import LinkGoneError, LinkNotFoundError, MissingKeyError
from snaplink.core.observability import record_redirect
from snaplink.core.redis import LinkCache
from snaplink.schemas.link import CachedLink
from snaplink.services.clicks import ClickUpdater
from snaplink.services.link import get_link_by_key
from snaplink.services.preview import render_link_preview

logger = structlog.get_logger()

_crawler_detect = CrawlerDetect()


def is_automated_client(user_agent: str | None) -> bool:
    """Check if a User-Agent belongs to a crawler or link unfurler."""
    if not user_agent:
        return False
    return _crawler_detect.isCrawler(user_agent)


class Redirect(BaseModel):
    """Send the client on to the destination."""

    url: str


class BotPreview(BaseModel):
    """Serve an Open Graph preview page instead of redirecting."""

    html: str


class RedirectResolver:
    """Resolves short keys for the redirect endpoint.

    Flow:
    1. Check the cache for the link
    2. If cache miss, query database and cache the result
    3. Refuse expired or archived links
    4. Serve crawlers a preview page
    5. Queue a click and redirect everyone else
    """

    def __init__(
        self,
        cache: LinkCache,
        click_updater: ClickUpdater,
        is_bot: Callable[[str | None], bool] = is_automated_client,
    ) -> None:
        self.cache = cache
        self.click_updater = click_updater
        self.is_bot = is_bot

    async def lookup(self, session: AsyncSession, key: str) -> CachedLink:
        """Find a link by key, cache first.

        Raises LinkNotFoundError if neither the cache nor the database has it.
        """
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        link = await get_link_by_key(session, key)
        if link is None:
            raise LinkNotFoundError()

        record = CachedLink.model_validate(link)
        # Only live links are written back, and never over an existing entry
        if not record.archived and not record.is_expired:
            await self.cache.set(key, record, create_only=True)
        logger.debug("Link loaded from database", key=key)
        return record

    async def resolve(
        self,
        session: AsyncSession,
        key: str,
        user_agent: str | None,
    ) -> Redirect | BotPreview:
        """Resolve a key to a redirect or a preview page.

        Raises MissingKeyError for an empty key, LinkNotFoundError for an
        unknown key and LinkGoneError for an expired or archived link.
        """
        if not key:
            record_redirect("bad_request")
            raise MissingKeyError()

        try:
            link = await self.lookup(session, key)
        except LinkNotFoundError:
            logger.info("Redirect failed - link not found", key=key)
            record_redirect("not_found")
            raise

        if link.is_expired:
            logger.info("Redirect blocked - link expired", key=key)
            record_redirect("gone")
            raise LinkGoneError("Link expired")

        if link.archived:
            logger.info("Redirect blocked - link archived", key=key)
            record_redirect("gone")
            raise LinkGoneError("Link archived")

        if self.is_bot(user_agent):
            logger.info("Serving link preview", key=key, user_agent=user_agent)
            record_redirect("preview")
            return BotPreview(
                html=render_link_preview(link.title, link.description, link.image)
            )

        # Fire-and-forget; the redirect never waits on the counter
        self.click_updater.dispatch(key, link.clicks + 1)

        logger.info("Redirecting", key=key)
        record_redirect("redirect")
        return Redirect(url=link.url)

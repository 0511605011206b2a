"""Link service for database operations."""

from datetime import datetime

import structlog
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from snaplink.core.exceptions import (
    LinkAlreadyArchivedError,
    LinkConflictError,
    LinkNotFoundError,
)
from snaplink.core.redis import LinkCache
from snaplink.models.link import Link
from snaplink.schemas.link import SORT_FIELDS, CachedLink, LinkFilters, LinkMetadata

logger = structlog.get_logger()

PAGE_SIZE = 10


async def get_link_by_key(session: AsyncSession, key: str) -> Link | None:
    """Get a link by its key."""
    result = await session.execute(select(Link).where(Link.key == key))
    return result.scalar_one_or_none()


async def create_link(
    session: AsyncSession,
    key: str,
    url: str,
    user_id: str | None = None,
    expires_at: datetime | None = None,
    metadata: LinkMetadata | None = None,
) -> Link:
    """Create a new link.

    Raises LinkConflictError if another link already holds the key.
    """
    metadata = metadata or LinkMetadata()
    link = Link(
        key=key,
        url=url,
        user_id=user_id,
        expires_at=expires_at,
        title=metadata.title,
        description=metadata.description,
        image=metadata.image,
    )
    session.add(link)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise LinkConflictError() from e
    await session.refresh(link)
    return link


async def list_links(
    session: AsyncSession,
    filters: LinkFilters,
) -> tuple[list[Link], int]:
    """Get a page of links matching the filters.

    Returns tuple of (links, total_count).
    """
    conditions = []
    if filters.user_id is not None:
        conditions.append(Link.user_id == filters.user_id)
    if not filters.include_archived:
        conditions.append(Link.archived == False)  # noqa: E712
    if filters.search:
        conditions.append(
            or_(
                Link.url.icontains(filters.search, autoescape=True),
                Link.key.icontains(filters.search, autoescape=True),
                Link.title.icontains(filters.search, autoescape=True),
                Link.description.icontains(filters.search, autoescape=True),
            )
        )

    count_query = select(func.count(Link.id)).where(*conditions)
    total_result = await session.execute(count_query)
    total = total_result.scalar() or 0

    query = select(Link).where(*conditions)
    if filters.sort:
        query = query.order_by(getattr(Link, SORT_FIELDS[filters.sort]).asc())
    query = query.offset((filters.page - 1) * PAGE_SIZE).limit(PAGE_SIZE)

    result = await session.execute(query)
    return list(result.scalars().all()), total


async def archive_link(
    session: AsyncSession,
    cache: LinkCache,
    key: str,
) -> Link:
    """Archive a link so it never redirects again.

    The cached entry is evicted before the caller commits; call
    pin_archived_link once the commit has succeeded.

    Raises LinkNotFoundError if no link holds the key,
    LinkAlreadyArchivedError if it is archived already and
    TransientInfrastructureError if the cache entry cannot be evicted, in
    which case the archive must not be committed.
    """
    link = await get_link_by_key(session, key)
    if link is None:
        raise LinkNotFoundError()
    if link.archived:
        raise LinkAlreadyArchivedError()

    link.archived = True
    await session.flush()

    # Invalidate cache so the next redirect reads the archived flag
    await cache.delete(key)
    return link


async def pin_archived_link(cache: LinkCache, link: Link) -> None:
    """Overwrite the cache entry of a committed archive with the archived record.

    A redirect that read the row before the commit may have written the live
    record back in the meantime. Write-backs only fill empty entries, so none
    can replace this one.
    """
    if not await cache.set(link.key, CachedLink.model_validate(link)):
        logger.error("Archived link not pinned in cache", key=link.key)


async def increment_clicks(
    session: AsyncSession,
    key: str,
    amount: int = 1,
) -> bool:
    """Atomically increment the click count for a link.

    Returns False if no link holds the key.
    """
    result = await session.execute(
        update(Link)
        .where(Link.key == key)
        .values(clicks=Link.clicks + amount)
    )
    return result.rowcount > 0

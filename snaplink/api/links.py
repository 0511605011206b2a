"""Link management endpoints."""

import math
from datetime import datetime, timezone
from typing import Annotated

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, status

from snaplink.core.deps import AppSettings, Cache, Fetcher, PrincipalId, Session
from snaplink.core.exceptions import LinkConflictError, SnaplinkError
from snaplink.core.observability import record_link_operation
from snaplink.core.rate_limit import RATE_LIMIT_API, RATE_LIMIT_CREATE_LINK, limiter
from snaplink.schemas.link import (
    CachedLink,
    LinkClicksResponse,
    LinkCreate,
    LinkFilters,
    LinkListResponse,
    LinkResponse,
    MessageResponse,
    SortField,
)
from snaplink.services import link_service
from snaplink.services.keys import is_key_taken, validate_key

logger = structlog.get_logger()

router = APIRouter(tags=["links"])


def _require_key(key: str) -> str:
    if not key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Key is required!",
        )
    return key


@router.post("/link", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_CREATE_LINK)
async def create_link(
    request: Request,
    link_data: LinkCreate,
    session: Session,
    cache: Cache,
    fetcher: Fetcher,
    settings: AppSettings,
    user_id: PrincipalId,
) -> LinkResponse:
    """Create a new short link.

    The destination is fetched once to capture its title, description and
    preview image for unfurlers.
    """
    try:
        key = validate_key(link_data.key)
        if await is_key_taken(session, key, settings.reserved_keys):
            raise LinkConflictError()

        metadata = await fetcher.fetch(link_data.url)
        link = await link_service.create_link(
            session=session,
            key=key,
            url=link_data.url,
            user_id=user_id,
            expires_at=link_data.expires_at,
            metadata=metadata,
        )
    except SnaplinkError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    await session.commit()

    # Never clobber an existing entry; let Redis expire it with the link
    expires_at = link_data.expires_at
    if expires_at is None or expires_at > datetime.now(timezone.utc):
        await cache.set(
            key,
            CachedLink.model_validate(link),
            create_only=True,
            expire_at=int(expires_at.timestamp()) if expires_at else None,
        )

    logger.info("Link created", key=key, url=link.url, user_id=user_id)
    record_link_operation("create")
    return LinkResponse.model_validate(link)


@router.get("/links", response_model=LinkListResponse)
@limiter.limit(RATE_LIMIT_API)
async def list_links(
    request: Request,
    session: Session,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    search: str | None = None,
    sort: SortField | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    show_archived: Annotated[bool, Query(alias="showArchived")] = False,
) -> LinkListResponse:
    """List links, ten per page."""
    filters = LinkFilters(
        user_id=user_id,
        search=search,
        sort=sort,
        page=page,
        include_archived=show_archived,
    )
    links, total = await link_service.list_links(session, filters)

    return LinkListResponse(
        items=[LinkResponse.model_validate(link) for link in links],
        total=total,
        page=page,
        page_size=link_service.PAGE_SIZE,
        pages=math.ceil(total / link_service.PAGE_SIZE) if total > 0 else 0,
    )


@router.put("/link/{key:path}/archive", response_model=MessageResponse)
@limiter.limit(RATE_LIMIT_API)
async def archive_link(
    request: Request,
    key: str,
    session: Session,
    cache: Cache,
) -> MessageResponse:
    """Archive a link. Archived links answer 410 from then on."""
    _require_key(key)
    try:
        link = await link_service.archive_link(session=session, cache=cache, key=key)
    except SnaplinkError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    await session.commit()
    await link_service.pin_archived_link(cache, link)

    logger.info("Link archived", key=key)
    record_link_operation("archive")
    return MessageResponse(message="Link archived")


@router.get("/link/{key:path}/clicks", response_model=LinkClicksResponse)
@limiter.limit(RATE_LIMIT_API)
async def get_link_clicks(
    request: Request,
    key: str,
    session: Session,
) -> LinkClicksResponse:
    """Get the click count of a link."""
    _require_key(key)
    link = await link_service.get_link_by_key(session, key)
    if not link:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Link not found",
        )
    return LinkClicksResponse(clicks=link.clicks)

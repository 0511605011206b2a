"""Redirect endpoint for short links."""

import structlog
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from snaplink.core.deps import Resolver, Session
from snaplink.core.exceptions import SnaplinkError
from snaplink.core.rate_limit import RATE_LIMIT_REDIRECT, limiter
from snaplink.services.redirect import BotPreview

logger = structlog.get_logger()

router = APIRouter(tags=["redirect"])


@router.get("/{key:path}")
@limiter.limit(RATE_LIMIT_REDIRECT)
async def redirect_to_destination(
    request: Request,
    key: str,
    session: Session,
    resolver: Resolver,
) -> Response:
    """Redirect a short key to its destination.

    Crawlers and link unfurlers get a 200 preview page with Open Graph tags
    instead of the redirect, and are not counted as clicks.
    """
    try:
        outcome = await resolver.resolve(
            session,
            key,
            request.headers.get("User-Agent"),
        )
    except SnaplinkError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if isinstance(outcome, BotPreview):
        return HTMLResponse(content=outcome.html, status_code=status.HTTP_200_OK)

    return RedirectResponse(url=outcome.url, status_code=status.HTTP_302_FOUND)

"""Preview metadata for destination URLs."""

import httpx
import structlog
from bs4 import BeautifulSoup

from snaplink.core.exceptions import TransientInfrastructureError
from snaplink.schemas.link import LinkMetadata

logger = structlog.get_logger()

TITLE_MAX_LENGTH = 120
DESCRIPTION_MAX_LENGTH = 240

# Pages are read up to this size; preview tags sit in the head
MAX_DOCUMENT_BYTES = 512 * 1024


def truncate(text: str | None, length: int) -> str | None:
    """Cut text to ``length`` characters, ending in ``...`` when shortened."""
    if not text or len(text) <= length:
        return text
    return f"{text[:length - 3]}..."


def _meta_content(soup: BeautifulSoup, *, prop: str | None = None, name: str | None = None) -> str | None:
    tag = soup.find("meta", attrs={"property": prop} if prop else {"name": name})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def parse_metadata(html: str) -> LinkMetadata:
    """Extract title, description and first image from an HTML document.

    Open Graph tags win; the document title and description meta tag are used
    when they are missing.
    """
    soup = BeautifulSoup(html, "html.parser")

    title = _meta_content(soup, prop="og:title")
    if title is None and soup.title and soup.title.string:
        title = soup.title.string.strip() or None

    description = _meta_content(soup, prop="og:description") or _meta_content(
        soup, name="description"
    )

    # Prefer the secure variant of the image
    image = _meta_content(soup, prop="og:image:secure_url") or _meta_content(
        soup, prop="og:image"
    )

    return LinkMetadata(
        title=truncate(title, TITLE_MAX_LENGTH),
        description=truncate(description, DESCRIPTION_MAX_LENGTH),
        image=image,
    )


class MetadataFetcher:
    """Fetches destination pages and extracts their preview metadata.

    Failures never abort link creation; they produce empty metadata.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        user_agent: str = "SnaplinkBot/0.1",
        transport: httpx.AsyncBaseTransport | None = None,
        max_bytes: int = MAX_DOCUMENT_BYTES,
    ) -> None:
        self.max_bytes = max_bytes
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent, "Accept": "text/html"},
            transport=transport,
        )

    async def _download(self, url: str) -> str:
        """Read at most ``max_bytes`` of an HTML page; the head is all we need."""
        try:
            async with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise TransientInfrastructureError(
                        f"Fetching {url} returned {response.status_code}"
                    )
                if "html" not in response.headers.get("content-type", ""):
                    raise TransientInfrastructureError(f"{url} is not an HTML document")

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) >= self.max_bytes:
                        break
                encoding = response.encoding or "utf-8"
        except httpx.HTTPError as e:
            raise TransientInfrastructureError(f"Fetching {url} failed: {e}") from e
        return bytes(body[: self.max_bytes]).decode(encoding, errors="replace")

    async def fetch(self, url: str) -> LinkMetadata:
        """Fetch metadata for a URL, or empty metadata if it cannot be read."""
        try:
            html = await self._download(url)
        except TransientInfrastructureError as e:
            logger.warning("Metadata fetch failed", url=url, error=e.message)
            return LinkMetadata()

        metadata = parse_metadata(html)
        logger.debug("Metadata fetched", url=url, title=metadata.title)
        return metadata

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

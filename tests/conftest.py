"""Shared pytest fixtures for API, database, and cache tests."""

import os

# Settings are read at import time by the rate limiter
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")

from pathlib import Path
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis, FakeServer
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from snaplink.core.config import Settings
from snaplink.core.database import Database
from snaplink.core.redis import LinkCache
from snaplink.main import create_app
from snaplink.services.clicks import ClickUpdater
from snaplink.services.metadata import MetadataFetcher

HUMAN_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
BOT_USER_AGENT = "Slackbot-LinkExpanding 1.0 (+https://api.slack.com/robots)"

EXAMPLE_HTML = """<!doctype html>
<html>
  <head>
    <title>Example Domain</title>
    <meta property="og:title" content="Example Domain" />
    <meta property="og:description" content="This domain is for use in examples." />
    <meta property="og:image" content="http://example.com/cover.png" />
    <meta property="og:image:secure_url" content="https://example.com/cover.png" />
  </head>
  <body><h1>Example Domain</h1></body>
</html>
"""


def destination_handler(request: httpx.Request) -> httpx.Response:
    """Stand-in for the destination sites links point at."""
    if request.url.host == "unreachable.test":
        raise httpx.ConnectError("connection refused", request=request)
    if request.url.host == "broken.test":
        return httpx.Response(500, text="oops")
    if request.url.host == "files.test":
        return httpx.Response(200, content=b"%PDF-1.7", headers={"content-type": "application/pdf"})
    return httpx.Response(200, text=EXAMPLE_HTML, headers={"content-type": "text/html; charset=utf-8"})


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'snaplink.db'}",
        rate_limit_enabled=False,
        click_workers=4,
        click_queue_size=1000,
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    db = Database(settings.database_url)
    await db.create_all()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def redis_client() -> AsyncGenerator[FakeAsyncRedis, None]:
    client = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def link_cache(redis_client: FakeAsyncRedis) -> LinkCache:
    return LinkCache(redis_client)


@pytest_asyncio.fixture
async def click_updater(database: Database) -> AsyncGenerator[ClickUpdater, None]:
    updater = ClickUpdater(database.session_factory, workers=4, max_queue_size=1000)
    await updater.start()
    yield updater
    await updater.stop()


@pytest_asyncio.fixture
async def metadata_fetcher() -> AsyncGenerator[MetadataFetcher, None]:
    fetcher = MetadataFetcher(timeout=1.0, transport=httpx.MockTransport(destination_handler))
    yield fetcher
    await fetcher.close()


@pytest.fixture
def app(
    settings: Settings,
    database: Database,
    link_cache: LinkCache,
    click_updater: ClickUpdater,
    metadata_fetcher: MetadataFetcher,
) -> FastAPI:
    application = create_app(settings)
    application.state.database = database
    application.state.link_cache = link_cache
    application.state.click_updater = click_updater
    application.state.metadata_fetcher = metadata_fetcher
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"User-Agent": HUMAN_USER_AGENT},
    ) as ac:
        yield ac

"""Background persistence of link clicks."""

import asyncio
import time

import sentry_sdk
import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snaplink.core.exceptions import ClickUpdateError
from snaplink.core.observability import record_click_update, set_click_queue_depth
from snaplink.schemas.click import ClickUpdate
from snaplink.services.link import increment_clicks

logger = structlog.get_logger()


class ClickUpdater:
    """Persists click counts off the request path.

    Redirects hand clicks to ``dispatch`` which never blocks and never raises.
    A fixed pool of worker tasks drains a bounded queue, each update using its
    own session and an atomic increment. Updates are at-most-once: a full
    queue or a failed increment loses the click.

    Usage:
        updater = ClickUpdater(database.session_factory, workers=4)
        await updater.start()
        updater.dispatch("abc", clicks=8)
        # ... later ...
        await updater.stop()  # Drains queued clicks first
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        workers: int = 4,
        max_queue_size: int = 10000,
    ):
        """Initialize the updater.

        Args:
            session_factory: Factory for the sessions workers write with.
            workers: Number of concurrent worker tasks.
            max_queue_size: Updates held before new ones are dropped.
        """
        self._session_factory = session_factory
        self._worker_count = workers
        self._queue: asyncio.Queue[ClickUpdate] = asyncio.Queue(maxsize=max_queue_size)
        self._workers: list[asyncio.Task] = []
        self._running = False
        self._processed = 0
        self._failed = 0
        self._dropped = 0

    async def start(self) -> None:
        """Start the worker tasks."""
        if self._running:
            logger.warning("Click updater already running")
            return

        self._running = True
        self._workers = [
            asyncio.create_task(self._worker_loop(index), name=f"click-worker-{index}")
            for index in range(self._worker_count)
        ]
        logger.info(
            "Click updater started",
            workers=self._worker_count,
            max_queue_size=self._queue.maxsize,
        )

    async def stop(self) -> None:
        """Process queued updates, then stop the workers."""
        if not self._running:
            return

        await self.drain()
        self._running = False

        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        logger.info("Click updater stopped", **self.stats)

    async def drain(self) -> None:
        """Wait until every queued update has been processed."""
        await self._queue.join()

    def dispatch(self, key: str, clicks: int) -> bool:
        """Queue a click for a key without waiting for it to be stored.

        Returns False if the update was dropped.
        """
        if not self._running:
            logger.warning("Click dropped, updater not running", key=key)
            self._drop()
            return False

        try:
            update = ClickUpdate(key=key, clicks=clicks)
        except ValidationError as e:
            logger.warning("Invalid click update", key=key, clicks=clicks, error=str(e))
            self._drop()
            return False

        try:
            self._queue.put_nowait(update)
        except asyncio.QueueFull:
            logger.warning("Click dropped, queue full", key=key, queue_size=self._queue.qsize())
            self._drop()
            return False

        set_click_queue_depth(self._queue.qsize())
        return True

    def _drop(self) -> None:
        self._dropped += 1
        record_click_update("dropped")

    async def _worker_loop(self, index: int) -> None:
        """Take updates off the queue until cancelled."""
        logger.debug("Click worker started", worker=index)
        while True:
            update = await self._queue.get()
            try:
                await self._apply(update)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._failed += 1
                record_click_update("failed")
                sentry_sdk.capture_exception(e)
                logger.error(
                    "Click update failed",
                    worker=index,
                    key=update.key,
                    error=str(e),
                )
            else:
                self._processed += 1
                record_click_update("processed")
            finally:
                self._queue.task_done()
                set_click_queue_depth(self._queue.qsize())

    async def _apply(self, update: ClickUpdate) -> None:
        """Persist one click with an atomic increment."""
        start_time = time.perf_counter()
        async with self._session_factory() as session:
            try:
                found = await increment_clicks(session, update.key)
                if not found:
                    raise ClickUpdateError(f"No link for key {update.key!r}")
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.debug(
            "Click stored",
            key=update.key,
            clicks=update.clicks,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

    @property
    def is_running(self) -> bool:
        """Check if the updater is running."""
        return self._running

    @property
    def stats(self) -> dict:
        """Get updater statistics."""
        return {
            "running": self._running,
            "queued": self._queue.qsize(),
            "processed": self._processed,
            "failed": self._failed,
            "dropped": self._dropped,
        }

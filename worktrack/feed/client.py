"""
Event feed client.

Two independent producers feed one consumer queue:

- push: realtime postgres_changes subscriptions on orders, comments and
  order_files, one channel per table for the signed-in viewer
- pull: an APScheduler interval job that re-queries each stream every few
  seconds, bounded by the session's cursors

Either producer can fail without affecting the other; a dropped realtime
connection simply leaves the pull job doing the work. Everything
downstream is idempotent, so the overlap between the two is harmless.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import settings
from ..backend import SupabaseBackend
from ..errors import BackendError
from ..sync.context import SyncContext
from ..utils.datetime_utils import format_cursor
from .events import EntityStream, FeedEvent, from_pull_row, from_push_payload

logger = logging.getLogger(__name__)

EventHandler = Callable[[FeedEvent], Awaitable[Any]]

# Operations followed per stream
PUSH_EVENTS: Dict[EntityStream, List[str]] = {
    EntityStream.ORDERS: ["*"],
    EntityStream.COMMENTS: ["INSERT"],
    EntityStream.ORDER_FILES: ["INSERT"],
}

PULL_COLUMNS: Dict[EntityStream, str] = {
    EntityStream.ORDERS: "id,status,client_id",
    EntityStream.COMMENTS: "id,order_id,author_id,is_internal,created_at",
    EntityStream.ORDER_FILES: "id,order_id,uploaded_by,file_name,created_at",
}


class EventFeedClient:
    """Push subscriptions plus periodic pulls for one sync session."""

    def __init__(
        self,
        backend: SupabaseBackend,
        context: SyncContext,
        handler: EventHandler,
        on_error: Optional[Callable[[str], Any]] = None,
        interval_seconds: Optional[int] = None,
    ):
        self.backend = backend
        self.context = context
        self._handler = handler
        self._on_error = on_error

        self.interval_seconds = interval_seconds or settings.sync_interval_seconds
        self.snapshot_limit = settings.status_snapshot_limit
        self.pull_limit = settings.event_pull_limit

        self.scheduler: Optional[AsyncIOScheduler] = None
        self._channels: List[Any] = []
        self._queue: asyncio.Queue = asyncio.Queue()
        self._consumer_task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    # ==================== LIFECYCLE ====================

    async def start(self) -> None:
        """Start the consumer, push subscriptions and the pull timer."""
        if self._running:
            return

        self._running = True
        self._queue = asyncio.Queue()
        self._consumer_task = asyncio.create_task(self._consume())

        await self._subscribe_all()

        self.scheduler = AsyncIOScheduler(timezone=pytz.UTC)
        self.scheduler.add_job(
            self.pull_once,
            IntervalTrigger(seconds=self.interval_seconds),
            id=f"event_pull_{self.context.viewer.id}",
            name="Event Feed Pull",
            next_run_time=datetime.now(pytz.UTC),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(
            f"Event feed started for {self.context.viewer.id} "
            f"({len(self._channels)} push channels, pull every {self.interval_seconds}s)"
        )

    async def stop(self) -> None:
        """Cancel subscriptions, timer and consumer; nothing is delivered afterwards."""
        if not self._running:
            return
        self._running = False

        if self.scheduler:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None

        for channel in self._channels:
            try:
                await self.backend.unsubscribe(channel)
            except BackendError as e:
                logger.warning(f"Failed to remove realtime channel: {e}")
        self._channels = []

        if self._consumer_task:
            self._consumer_task.cancel()
            try:
                await self._consumer_task
            except asyncio.CancelledError:
                pass
            self._consumer_task = None

        self._queue = asyncio.Queue()
        logger.info(f"Event feed stopped for {self.context.viewer.id}")

    # ==================== SNAPSHOT ====================

    async def seed_statuses(self) -> int:
        """Seed the status map from the most recently updated orders."""
        rows = await self.backend.select_rows(
            EntityStream.ORDERS.value,
            "id,status",
            order_by="updated_at",
            descending=True,
            limit=self.snapshot_limit,
        )
        self.context.statuses.seed(
            (row["id"], row["status"]) for row in rows if row.get("id") and row.get("status")
        )
        return len(self.context.statuses)

    # ==================== PUSH ====================

    async def _subscribe_all(self) -> None:
        for stream, events in PUSH_EVENTS.items():
            channel_name = f"{stream.value}-realtime-{self.context.viewer.id}"
            try:
                channel = await self.backend.subscribe(
                    channel_name, stream.value, events, self._push_callback(stream)
                )
                self._channels.append(channel)
            except BackendError as e:
                logger.warning(f"Realtime unavailable for {stream.value}, relying on pull: {e}")

    def _push_callback(self, stream: EntityStream) -> Callable[[Dict[str, Any]], None]:
        def callback(payload: Dict[str, Any]) -> None:
            if not self._running:
                return
            event = from_push_payload(stream, payload)
            if event is not None:
                self._queue.put_nowait(event)

        return callback

    # ==================== PULL ====================

    async def pull_once(self) -> int:
        """
        Re-query all three streams once and enqueue what comes back.

        A failing stream is logged and reported through on_error; the
        others still enqueue their rows.

        Returns:
            Number of rows enqueued
        """
        if not self._running:
            return 0

        streams = [EntityStream.ORDERS, EntityStream.COMMENTS, EntityStream.ORDER_FILES]
        results = await asyncio.gather(
            self._pull_orders(),
            self._pull_since(EntityStream.COMMENTS),
            self._pull_since(EntityStream.ORDER_FILES),
            return_exceptions=True,
        )

        if not self._running:
            return 0

        enqueued = 0
        for stream, result in zip(streams, results):
            if isinstance(result, Exception):
                logger.error(f"Sync pull failed for {stream.value}: {result}")
                if self._on_error:
                    self._on_error(f"Sync failed for {stream.value}: {result}")
                continue
            for row in result:
                self._queue.put_nowait(from_pull_row(stream, row))
                enqueued += 1

        return enqueued

    async def _pull_orders(self) -> List[Dict[str, Any]]:
        return await self.backend.select_rows(
            EntityStream.ORDERS.value,
            PULL_COLUMNS[EntityStream.ORDERS],
            order_by="updated_at",
            descending=True,
            limit=self.snapshot_limit,
        )

    async def _pull_since(self, stream: EntityStream) -> List[Dict[str, Any]]:
        cursor = self.context.dedup.cursor(stream)
        gt = {"created_at": format_cursor(cursor)} if cursor else None
        return await self.backend.select_rows(
            stream.value,
            PULL_COLUMNS[stream],
            gt=gt,
            order_by="created_at",
            limit=self.pull_limit,
        )

    # ==================== CONSUMER ====================

    async def _dispatch(self, event: FeedEvent) -> None:
        try:
            await self._handler(event)
        except Exception as e:
            logger.error(f"Error handling {event.stream.value} event from {event.source.value}: {e}")

    async def _consume(self) -> None:
        """Background consumer loop."""
        while self._running:
            event = await self._queue.get()
            try:
                await self._dispatch(event)
            finally:
                self._queue.task_done()

    async def process_pending(self) -> int:
        """Handle everything currently queued without waiting for the consumer."""
        processed = 0
        while not self._queue.empty():
            event = self._queue.get_nowait()
            try:
                await self._dispatch(event)
            finally:
                self._queue.task_done()
            processed += 1
        return processed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

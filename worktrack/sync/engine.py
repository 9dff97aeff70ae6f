"""
Sync engine: the single consumer of feed events.

Each FeedEvent, from push or pull, goes through the same path:

1. Malformed payloads (no id, no order reference, unknown status) are dropped.
2. Comments and files pass the dedup gate; orders go through the status diff.
3. Surviving events are synthesized into a notification and pushed to the inbox.
4. The row is merged into the local collections.
"""

import logging
from typing import Any, Dict, Optional

from ..errors import MalformedEventError
from ..feed.events import ChangeOperation, EntityStream, EventSource, FeedEvent
from ..models.notification import Notification, NotificationKind
from ..models.order import OrderStatus
from ..notifications.inbox import NotificationInbox
from ..notifications.synthesizer import synthesize
from ..services.order_store import OrderStore
from ..utils.datetime_utils import parse_timestamp
from .context import SyncContext

logger = logging.getLogger(__name__)


class SyncEngine:
    """Reconciles change events into local state and notifications."""

    def __init__(self, context: SyncContext, store: OrderStore, inbox: NotificationInbox):
        self.context = context
        self.store = store
        self.inbox = inbox

    async def handle(self, event: FeedEvent) -> Optional[Notification]:
        """Process one feed event. Returns the notification it produced, if any."""
        try:
            if event.stream == EntityStream.ORDERS:
                return await self._handle_order(event)
            if event.stream == EntityStream.COMMENTS:
                return await self._handle_comment(event)
            if event.stream == EntityStream.ORDER_FILES:
                return await self._handle_file(event)
        except MalformedEventError as e:
            logger.debug(f"Dropping {event.stream.value} event from {event.source.value}: {e}")
        return None

    # ==================== ORDERS ====================

    async def _handle_order(self, event: FeedEvent) -> Optional[Notification]:
        if event.operation == ChangeOperation.DELETE:
            order_id = event.row.get("id")
            if order_id:
                self.store.remove_order(order_id)
            return None

        row = event.new
        order_id = row.get("id")
        raw_status = row.get("status")
        if not order_id or not raw_status:
            raise MalformedEventError("order event without id or status")
        try:
            status = OrderStatus(raw_status)
        except ValueError:
            raise MalformedEventError(f"order {order_id} has unknown status {raw_status!r}")

        if "client_id" in row:
            client_id = row.get("client_id")
        else:
            known = self.store.get_order(order_id)
            client_id = known.client_id if known else None

        transition = self.context.statuses.observe(order_id, status, client_id, self.context.viewer)

        notification = None
        if transition is not None:
            payload = {
                "order_id": order_id,
                "from_status": transition.from_status,
                "to_status": transition.to_status,
            }
            notification = self._notify(NotificationKind.STATUS_CHANGE, payload, None)

        if not self.store.apply_order_row(row):
            await self.store.ensure_order(order_id)

        return notification

    # ==================== COMMENTS ====================

    async def _handle_comment(self, event: FeedEvent) -> Optional[Notification]:
        row = event.new
        self._require_refs(row, EntityStream.COMMENTS)

        self._advance(EntityStream.COMMENTS, event)
        if not self.context.dedup.is_new(EntityStream.COMMENTS, row["id"]):
            return None

        viewer = self.context.viewer
        if row.get("is_internal") and not viewer.is_staff_tier:
            logger.debug(f"Ignoring internal comment {row['id']} for client viewer")
            return None

        author = self.context.profile(row.get("author_id"))
        notification = self._notify(NotificationKind.NEW_COMMENT, row, author)

        if not self.store.apply_comment_row(row):
            await self.store.reload_details()
        return notification

    # ==================== FILES ====================

    async def _handle_file(self, event: FeedEvent) -> Optional[Notification]:
        row = event.new
        self._require_refs(row, EntityStream.ORDER_FILES)

        self._advance(EntityStream.ORDER_FILES, event)
        if not self.context.dedup.is_new(EntityStream.ORDER_FILES, row["id"]):
            return None

        uploader = self.context.profile(row.get("uploaded_by"))
        notification = self._notify(NotificationKind.NEW_FILE, row, uploader)

        if not self.store.apply_file_row(row):
            await self.store.reload_details()
        return notification

    # ==================== HELPERS ====================

    @staticmethod
    def _require_refs(row: Dict[str, Any], stream: EntityStream) -> None:
        if not row.get("id") or not row.get("order_id"):
            raise MalformedEventError(f"{stream.value} row without id or order_id")

    def _advance(self, stream: EntityStream, event: FeedEvent) -> None:
        # Only pulls move the cursor, so a pull can still recover rows push missed
        if event.source == EventSource.PULL:
            self.context.dedup.advance_cursor(stream, parse_timestamp(event.new.get("created_at")))

    def _notify(self, kind: NotificationKind, payload: Dict[str, Any], actor) -> Optional[Notification]:
        order_id = payload.get("order_id")
        draft = synthesize(
            kind,
            payload,
            self.context.viewer,
            actor,
            self.store.order_code(order_id) if order_id else "",
        )
        if draft is None:
            return None
        return self.inbox.push(draft)

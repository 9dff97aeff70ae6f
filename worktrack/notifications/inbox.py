"""
Notification inbox.

Newest-first list of notifications with read state, capped to the most
recent entries. Opening a notification marks it read and makes sure the
referenced order is available locally before asking the UI to navigate.
"""

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional, Protocol

from config import settings
from ..models.notification import Notification, NotificationDraft
from ..models.order import Order

logger = logging.getLogger(__name__)


class OrderLoader(Protocol):
    """What the inbox needs from the local order collection."""

    def has_order(self, order_id: str) -> bool: ...

    async def ensure_order(self, order_id: str) -> Optional[Order]: ...


class NotificationInbox:
    """Ordered, capped, in-memory notification list."""

    def __init__(
        self,
        orders: OrderLoader,
        on_navigate: Optional[Callable[[str], Any]] = None,
        capacity: Optional[int] = None,
    ):
        self._items: List[Notification] = []
        self._orders = orders
        self._on_navigate = on_navigate
        self.capacity = capacity or settings.notification_capacity
        self._counter = 0

    def _generate_id(self) -> str:
        """Generate a unique notification ID."""
        self._counter += 1
        return f"NTF-{datetime.now().strftime('%Y%m%d%H%M%S')}-{self._counter:04d}"

    # ==================== MUTATIONS ====================

    def push(self, draft: NotificationDraft) -> Notification:
        """Prepend a notification; the oldest entries beyond capacity are dropped."""
        item = Notification(
            id=self._generate_id(),
            title=draft.title,
            message=draft.message,
            order_id=draft.order_id,
        )
        self._items = [item] + self._items[: self.capacity - 1]
        logger.debug(f"Notification {item.id}: {item.title} - {item.message}")
        return item

    def mark_read(self, notification_id: str) -> bool:
        for item in self._items:
            if item.id == notification_id:
                item.read = True
                return True
        return False

    def mark_all_read(self) -> None:
        for item in self._items:
            item.read = True

    def clear(self) -> None:
        self._items = []

    async def open(self, notification_id: str) -> Optional[str]:
        """
        Open a notification.

        Marks it read, loads the referenced order once if it is not already
        local, then emits a navigate intent.

        Returns:
            The order id navigated to, or None when there is nothing to open
            or the order could not be retrieved
        """
        item = self.get(notification_id)
        if item is None:
            return None

        item.read = True
        if not item.order_id:
            return None

        if not self._orders.has_order(item.order_id):
            order = await self._orders.ensure_order(item.order_id)
            if order is None:
                logger.info(f"Order {item.order_id} for notification {item.id} is no longer available")
                return None

        if self._on_navigate:
            self._on_navigate(item.order_id)
        return item.order_id

    # ==================== VIEWS ====================

    def get(self, notification_id: str) -> Optional[Notification]:
        for item in self._items:
            if item.id == notification_id:
                return item
        return None

    @property
    def items(self) -> List[Notification]:
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self._items if not item.read)

    def __len__(self) -> int:
        return len(self._items)

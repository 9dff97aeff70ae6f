"""
Local order, comment and file collections.

Holds what the viewer currently has loaded: their visible orders, the
profile directory, and the details (comments and files) of the focused
order. Remote changes are merged in place so the collections stay fresh
without full reloads; rows that arrive incomplete fall back to a fetch.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..backend import SupabaseBackend
from ..errors import BackendError
from ..models.activity import Comment, OrderFile
from ..models.order import Order
from ..models.profile import Profile, Role
from ..notifications.toasts import ToastFeed
from ..utils.datetime_utils import to_aware_utc

logger = logging.getLogger(__name__)

# Columns that only a complete row carries
ORDER_REQUIRED = ("order_code", "title")
COMMENT_REQUIRED = ("content",)
FILE_REQUIRED = ("storage_path",)


def _is_complete(row: Dict[str, Any], required) -> bool:
    return all(key in row for key in required)


class OrderStore:
    """Reconciled local state for one signed-in viewer."""

    def __init__(self, backend: SupabaseBackend, toasts: Optional[ToastFeed] = None):
        self.backend = backend
        self.toasts = toasts or ToastFeed()
        self.viewer: Optional[Profile] = None

        self._orders: Dict[str, Order] = {}
        self.profiles: Dict[str, Profile] = {}

        self.focused_order_id: Optional[str] = None
        self.comments: List[Comment] = []
        self.files: List[OrderFile] = []

        # One fetch per order id at a time
        self._inflight: Dict[str, asyncio.Task] = {}

    # ==================== LOADING ====================

    async def load_orders(self, viewer: Profile) -> List[Order]:
        """Load every order visible to the viewer, newest update first."""
        self.viewer = viewer
        eq = {"client_id": viewer.id} if viewer.role == Role.CLIENT else None
        try:
            rows = await self.backend.select_rows(
                "orders", "*", eq=eq, order_by="updated_at", descending=True
            )
        except BackendError as e:
            logger.error(f"Failed to load orders: {e}")
            self.toasts.error(f"Failed to load orders: {e.message}")
            return self.orders

        self._orders = {}
        for row in rows:
            order = self._parse(Order, row)
            if order:
                self._orders[order.id] = order
        return self.orders

    async def load_profiles(self) -> List[Profile]:
        try:
            rows = await self.backend.select_rows(
                "profiles", "*", order_by="created_at", descending=True
            )
        except BackendError as e:
            logger.error(f"Failed to load profiles: {e}")
            self.toasts.error(f"Failed to load profiles: {e.message}")
            return list(self.profiles.values())

        profiles = [p for p in (self._parse(Profile, row) for row in rows) if p]
        self.profiles = {p.id: p for p in profiles}
        return profiles

    async def focus(self, order_id: Optional[str]) -> None:
        """Select an order and load its comments and files."""
        self.focused_order_id = order_id
        self.comments = []
        self.files = []
        if order_id:
            await self.reload_details()

    async def reload_details(self) -> None:
        """Reload comments and files of the focused order; each failure is reported separately."""
        order_id = self.focused_order_id
        if not order_id:
            return

        comment_filter: Dict[str, Any] = {"order_id": order_id}
        if self.viewer is not None and not self.viewer.is_staff_tier:
            comment_filter["is_internal"] = False

        comments_result, files_result = await asyncio.gather(
            self.backend.select_rows("comments", "*", eq=comment_filter, order_by="created_at"),
            self.backend.select_rows(
                "order_files", "*", eq={"order_id": order_id}, order_by="created_at", descending=True
            ),
            return_exceptions=True,
        )

        if order_id != self.focused_order_id:
            return  # focus moved while loading

        if isinstance(comments_result, Exception):
            logger.error(f"Failed to load comments for {order_id}: {comments_result}")
            self.toasts.error(f"Failed to load comments: {comments_result}")
        else:
            self.comments = [c for c in (self._parse(Comment, r) for r in comments_result) if c]

        if isinstance(files_result, Exception):
            logger.error(f"Failed to load files for {order_id}: {files_result}")
            self.toasts.error(f"Failed to load files: {files_result}")
        else:
            self.files = [f for f in (self._parse(OrderFile, r) for r in files_result) if f]

    async def ensure_order(self, order_id: str) -> Optional[Order]:
        """
        Make sure an order is loaded, fetching it on demand.

        Concurrent callers for the same id share a single fetch. Returns
        None when the order no longer exists or is not visible.
        """
        existing = self._orders.get(order_id)
        if existing is not None:
            return existing

        task = self._inflight.get(order_id)
        if task is None:
            task = asyncio.create_task(self._fetch_order(order_id))
            self._inflight[order_id] = task
            task.add_done_callback(lambda _: self._inflight.pop(order_id, None))
        return await asyncio.shield(task)

    async def _fetch_order(self, order_id: str) -> Optional[Order]:
        try:
            row = await self.backend.fetch_by_id("orders", order_id)
        except BackendError as e:
            logger.warning(f"Could not fetch order {order_id}: {e}")
            return None

        if row is None:
            return None
        order = self._parse(Order, row)
        if order is None:
            return None
        if not self._visible(order):
            logger.debug(f"Order {order_id} is not visible to viewer, not storing it")
            return None
        # Another path may have merged it while we waited
        return self._orders.setdefault(order.id, order)

    # ==================== MERGING REMOTE CHANGES ====================

    def apply_order_row(self, row: Dict[str, Any]) -> bool:
        """
        Merge an inserted/updated order row.

        Known orders are patched with whatever columns the row carries.
        Unknown orders are added only from a complete row the viewer may
        see. Returns False when the row was unknown and incomplete, so the
        caller can fetch it instead.
        """
        order_id = row.get("id")
        if not order_id:
            return False

        existing = self._orders.get(order_id)
        if existing is not None:
            merged = self._parse(Order, {**existing.model_dump(), **row})
            if merged is None:
                return True
            if self._visible(merged):
                self._orders[order_id] = merged
            else:
                self.remove_order(order_id)
            return True

        if not _is_complete(row, ORDER_REQUIRED):
            return False

        order = self._parse(Order, row)
        if order is not None and self._visible(order):
            self._orders[order.id] = order
        return True

    def _visible(self, order: Order) -> bool:
        """Clients only keep their own orders locally."""
        if self.viewer is None or self.viewer.is_staff_tier:
            return True
        return order.client_id == self.viewer.id

    def remove_order(self, order_id: str) -> None:
        self._orders.pop(order_id, None)
        if self.focused_order_id == order_id:
            self.focused_order_id = None
            self.comments = []
            self.files = []

    def apply_comment_row(self, row: Dict[str, Any]) -> bool:
        """
        Append a new comment to the focused order's details.

        Returns False when the details need a reload because the row is
        incomplete.
        """
        if row.get("order_id") != self.focused_order_id:
            return True
        if self.viewer is not None and not self.viewer.is_staff_tier and row.get("is_internal"):
            return True
        if not _is_complete(row, COMMENT_REQUIRED):
            return False
        comment = self._parse(Comment, row)
        if comment and all(c.id != comment.id for c in self.comments):
            self.comments.append(comment)
            self.comments.sort(key=lambda c: to_aware_utc(c.created_at))
        return True

    def apply_file_row(self, row: Dict[str, Any]) -> bool:
        """Prepend a new file to the focused order's details; False means reload needed."""
        if row.get("order_id") != self.focused_order_id:
            return True
        if not _is_complete(row, FILE_REQUIRED):
            return False
        order_file = self._parse(OrderFile, row)
        if order_file and all(f.id != order_file.id for f in self.files):
            self.files.insert(0, order_file)
            self.files.sort(key=lambda f: to_aware_utc(f.created_at), reverse=True)
        return True

    # ==================== VIEWS ====================

    @property
    def orders(self) -> List[Order]:
        return sorted(self._orders.values(), key=lambda o: to_aware_utc(o.updated_at), reverse=True)

    def has_order(self, order_id: str) -> bool:
        return order_id in self._orders

    def get_order(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    def order_code(self, order_id: str) -> str:
        """Human-readable code, or the first 8 characters of the id when unknown."""
        order = self._orders.get(order_id)
        return order.order_code if order else order_id[:8]

    def clear(self) -> None:
        for task in self._inflight.values():
            task.cancel()
        self._inflight = {}
        self.viewer = None
        self._orders = {}
        self.profiles = {}
        self.focused_order_id = None
        self.comments = []
        self.files = []

    @staticmethod
    def _parse(model, row: Dict[str, Any]):
        try:
            return model.model_validate(row)
        except ValidationError as e:
            logger.debug(f"Skipping malformed {model.__name__} row {row.get('id')}: {e}")
            return None

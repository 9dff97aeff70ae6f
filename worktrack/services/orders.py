"""
Order mutations: create, edit, status change and comments.

Authorization is the backend's job; a rejected mutation comes back as a
BackendError and is reported to the user as an error toast. After each
successful mutation the affected local collections are refreshed.
"""

import logging
import random
import string
from datetime import datetime
from typing import Optional

from ..backend import SupabaseBackend
from ..errors import BackendError
from ..models.order import OrderDraft, OrderStatus
from ..models.profile import Profile
from ..notifications.toasts import ToastFeed
from .files import FileService, FileUpload
from .order_store import OrderStore

logger = logging.getLogger(__name__)

ORDER_CODE_CHARS = string.ascii_uppercase + string.digits


def generate_order_code(now: Optional[datetime] = None) -> str:
    """Generate a human-readable order code, e.g. ORD-20260115-7QXA."""
    now = now or datetime.now()
    suffix = "".join(random.choice(ORDER_CODE_CHARS) for _ in range(4))
    return f"ORD-{now.strftime('%Y%m%d')}-{suffix}"


class OrderService:
    """Order and comment mutations for the signed-in viewer."""

    def __init__(
        self,
        backend: SupabaseBackend,
        store: OrderStore,
        files: Optional[FileService] = None,
        toasts: Optional[ToastFeed] = None,
    ):
        self.backend = backend
        self.store = store
        self.toasts = toasts or store.toasts
        self.files = files or FileService(backend, store, self.toasts)

    async def create_order(self, viewer: Profile, draft: OrderDraft) -> Optional[str]:
        """Create an order. Returns the new order id, or None on failure."""
        payload = {
            "order_code": generate_order_code(),
            **draft.to_row(),
            "created_by": viewer.id,
        }
        try:
            row = await self.backend.insert_row("orders", payload)
        except BackendError as e:
            logger.error(f"Could not create order: {e}")
            self.toasts.error(f"Could not create order: {e.message}")
            return None

        logger.info(f"Created order {payload['order_code']} by {viewer.id}")
        self.toasts.success("Order created successfully")
        await self.store.load_orders(viewer)
        return row.get("id")

    async def update_order(self, viewer: Profile, order_id: str, draft: OrderDraft) -> bool:
        try:
            await self.backend.update_row("orders", order_id, draft.to_row())
        except BackendError as e:
            logger.error(f"Could not update order {order_id}: {e}")
            self.toasts.error(f"Could not update order: {e.message}")
            return False

        self.toasts.success("Order updated successfully")
        await self.store.load_orders(viewer)
        return True

    async def update_status(self, viewer: Profile, order_id: str, status: OrderStatus) -> bool:
        try:
            await self.backend.update_row("orders", order_id, {"status": OrderStatus(status).value})
        except BackendError as e:
            logger.error(f"Status update for {order_id} failed: {e}")
            self.toasts.error(f"Status update failed: {e.message}")
            return False

        self.toasts.success("Status updated")
        await self.store.load_orders(viewer)
        if self.store.focused_order_id == order_id:
            await self.store.reload_details()
        return True

    async def post_comment(
        self,
        viewer: Profile,
        order_id: str,
        text: str = "",
        internal: bool = False,
        attachment: Optional[FileUpload] = None,
    ) -> bool:
        """
        Post a comment, optionally with an attachment.

        The attachment is uploaded and recorded first; the comment body then
        notes it. Only staff-tier viewers may mark a comment internal.
        """
        text = (text or "").strip()
        if not text and attachment is None:
            return False

        note = ""
        if attachment is not None:
            try:
                await self.files.store_file(viewer, order_id, attachment, for_comment=True)
            except BackendError as e:
                logger.error(f"Attachment for order {order_id} failed: {e}")
                label = "Attachment save failed" if e.operation.startswith("insert") else "Attachment upload failed"
                self.toasts.error(f"{label}: {e.message}")
                return False
            note = f"\n[Attachment: {attachment.name} | {attachment.category.label}]"

        payload = {
            "order_id": order_id,
            "author_id": viewer.id,
            "content": f"{text or 'Shared an attachment'}{note}",
            "is_internal": bool(internal) if viewer.is_staff_tier else False,
        }
        try:
            await self.backend.insert_row("comments", payload)
        except BackendError as e:
            logger.error(f"Could not post comment on {order_id}: {e}")
            self.toasts.error(f"Could not post comment: {e.message}")
            return False

        self.toasts.success("Comment added")
        if self.store.focused_order_id == order_id:
            await self.store.reload_details()
        return True

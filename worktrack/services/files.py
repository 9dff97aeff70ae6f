"""
Order file uploads and downloads via the order-files storage bucket.

Objects are stored under `<order id>/<epoch ms>-<name>` (comment
attachments under `<order id>/comments/`) and are never overwritten.
Downloads go through short-lived signed URLs.
"""

import logging
import re
import time
from typing import Optional

from pydantic import BaseModel

from ..backend import SupabaseBackend
from ..errors import BackendError
from ..models.activity import FileCategory, OrderFile
from ..models.profile import Profile
from ..notifications.toasts import ToastFeed
from .order_store import OrderStore

logger = logging.getLogger(__name__)


class FileUpload(BaseModel):
    """A file picked by the user, held in memory until uploaded."""
    name: str
    content: bytes
    content_type: Optional[str] = None
    category: FileCategory = FileCategory.DOCUMENT

    @property
    def size(self) -> int:
        return len(self.content)


def safe_file_name(name: str) -> str:
    """Replace whitespace runs with dashes so the name is path-safe."""
    return re.sub(r"\s+", "-", name.strip())


def build_storage_path(order_id: str, name: str, for_comment: bool = False, now_ms: Optional[int] = None) -> str:
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    folder = f"{order_id}/comments" if for_comment else order_id
    return f"{folder}/{stamp}-{safe_file_name(name)}"


class FileService:
    """Uploads files to an order and issues download links."""

    def __init__(self, backend: SupabaseBackend, store: OrderStore, toasts: Optional[ToastFeed] = None):
        self.backend = backend
        self.store = store
        self.toasts = toasts or store.toasts

    async def store_file(
        self,
        viewer: Profile,
        order_id: str,
        upload: FileUpload,
        for_comment: bool = False,
    ) -> OrderFile:
        """
        Upload the object and record it in `order_files`.

        Raises:
            BackendError: if either step fails
        """
        path = build_storage_path(order_id, upload.name, for_comment=for_comment)
        await self.backend.upload_object(path, upload.content, upload.content_type)

        record = {
            "order_id": order_id,
            "uploaded_by": viewer.id,
            "file_name": upload.name,
            "file_size": upload.size,
            "mime_type": upload.content_type,
            "file_category": upload.category.value,
            "storage_path": path,
        }
        row = await self.backend.insert_row("order_files", record)
        logger.info(f"Stored {upload.name} for order {order_id} at {path}")

        # Server-assigned id and created_at come back on the inserted row
        return OrderFile.model_validate({"id": "", **record, **row})

    async def upload(self, viewer: Profile, order_id: str, upload: FileUpload) -> Optional[OrderFile]:
        """Upload a file to an order, reporting the outcome as a toast."""
        try:
            order_file = await self.store_file(viewer, order_id, upload)
        except BackendError as e:
            logger.error(f"Upload to order {order_id} failed: {e}")
            label = "File record failed" if e.operation.startswith("insert") else "Upload failed"
            self.toasts.error(f"{label}: {e.message}")
            return None

        self.toasts.success("File uploaded")
        if self.store.focused_order_id == order_id:
            await self.store.reload_details()
        return order_file

    async def download_url(self, order_file: OrderFile) -> Optional[str]:
        """Signed, time-limited URL for a stored file."""
        try:
            return await self.backend.create_signed_url(order_file.storage_path)
        except BackendError as e:
            logger.error(f"Signed URL for {order_file.storage_path} failed: {e}")
            self.toasts.error(f"Download failed: {e.message}")
            return None

"""Transient user-facing messages (success, error, info)."""

import logging
import uuid
from typing import List

from ..models.notification import Toast, ToastType

logger = logging.getLogger(__name__)


class ToastFeed:
    """Buffer of toasts waiting to be shown; the UI drains it."""

    def __init__(self, max_pending: int = 20):
        self._pending: List[Toast] = []
        self.max_pending = max_pending

    def add(self, toast_type: ToastType, message: str) -> Toast:
        toast = Toast(id=uuid.uuid4().hex[:12], type=ToastType(toast_type), message=message)
        self._pending.append(toast)
        if len(self._pending) > self.max_pending:
            self._pending = self._pending[-self.max_pending:]
        return toast

    def success(self, message: str) -> Toast:
        return self.add(ToastType.SUCCESS, message)

    def error(self, message: str) -> Toast:
        return self.add(ToastType.ERROR, message)

    def info(self, message: str) -> Toast:
        return self.add(ToastType.INFO, message)

    def drain(self) -> List[Toast]:
        """Return and forget all pending toasts."""
        pending, self._pending = self._pending, []
        return pending

    @property
    def pending(self) -> List[Toast]:
        return list(self._pending)

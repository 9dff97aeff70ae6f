"""Notification and toast models. Neither is persisted."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from ..utils.datetime_utils import utc_now


class NotificationKind(str, Enum):
    """Kinds of change events that can produce a notification."""
    STATUS_CHANGE = "status_change"
    NEW_COMMENT = "new_comment"
    NEW_FILE = "new_file"


class NotificationDraft(BaseModel):
    """Synthesized notification content; id and timestamp are assigned by the inbox."""
    kind: NotificationKind
    title: str
    message: str
    order_id: Optional[str] = None


class Notification(BaseModel):
    """An inbox entry shown in the notification panel."""
    id: str
    title: str
    message: str
    created_at: datetime = Field(default_factory=utc_now)
    read: bool = False
    order_id: Optional[str] = None


class ToastType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Toast(BaseModel):
    """Transient message surfaced to the user, e.g. a failed sync query."""
    id: str
    type: ToastType
    message: str
    created_at: datetime = Field(default_factory=utc_now)

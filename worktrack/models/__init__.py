
from .order import (
    Order,
    OrderDraft,
    OrderStatus,
    OrderPriority,
    BusinessType,
    CurrencyCode,
    EscalationLevel,
    STATUS_LABELS,
)
from .profile import Profile, Role
from .activity import Comment, OrderFile, FileCategory, FILE_CATEGORY_LABELS
from .notification import (
    Notification,
    NotificationDraft,
    NotificationKind,
    Toast,
    ToastType,
)

__all__ = [
    "Order",
    "OrderDraft",
    "OrderStatus",
    "OrderPriority",
    "BusinessType",
    "CurrencyCode",
    "EscalationLevel",
    "STATUS_LABELS",
    "Profile",
    "Role",
    "Comment",
    "OrderFile",
    "FileCategory",
    "FILE_CATEGORY_LABELS",
    "Notification",
    "NotificationDraft",
    "NotificationKind",
    "Toast",
    "ToastType",
]

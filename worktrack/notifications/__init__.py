from .synthesizer import synthesize, WORDING_RULES, ViewerTier, ActorRelation
from .inbox import NotificationInbox
from .toasts import ToastFeed

__all__ = [
    "synthesize",
    "WORDING_RULES",
    "ViewerTier",
    "ActorRelation",
    "NotificationInbox",
    "ToastFeed",
]

"""
Notification synthesizer.

Turns a detected change (status transition, new comment, new file) into the
title and message a viewer sees. Wording lives in WORDING_RULES, a table
keyed by (event kind, viewer tier, actor relation); a None in the key
matches anything, and the most specific matching rule wins. Adding a role
or a wording variant means adding a row, not a branch.

Self-authored events never notify their author.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..models.notification import NotificationDraft, NotificationKind
from ..models.order import OrderStatus
from ..models.profile import Profile

logger = logging.getLogger(__name__)


class ViewerTier(str, Enum):
    STAFF = "staff"  # admin or staff
    CLIENT = "client"


class ActorRelation(str, Enum):
    """Who caused the event, relative to the viewer."""
    SELF = "self"
    CLIENT = "client"
    STAFF = "staff"
    UNKNOWN = "unknown"  # no actor, or actor profile not loaded


RuleKey = Tuple[NotificationKind, Optional[ViewerTier], Optional[ActorRelation]]

WORDING_RULES: Dict[RuleKey, Tuple[str, str]] = {
    (NotificationKind.STATUS_CHANGE, None, None): (
        "Order Status Changed",
        "{order_code} moved from {from_label} to {to_label}",
    ),
    (NotificationKind.NEW_COMMENT, ViewerTier.STAFF, ActorRelation.CLIENT): (
        "Client Message",
        "{actor_name} sent a comment on {order_code}",
    ),
    (NotificationKind.NEW_COMMENT, None, None): (
        "New Comment",
        "New comment added on {order_code}",
    ),
    (NotificationKind.NEW_FILE, None, None): (
        "New File Uploaded",
        "{file_name} was uploaded to {order_code}",
    ),
}

# Payload field naming the actor, per event kind
ACTOR_FIELDS: Dict[NotificationKind, str] = {
    NotificationKind.NEW_COMMENT: "author_id",
    NotificationKind.NEW_FILE: "uploaded_by",
}


def viewer_tier(viewer: Profile) -> ViewerTier:
    return ViewerTier.STAFF if viewer.is_staff_tier else ViewerTier.CLIENT


def actor_relation(actor_id: Optional[str], actor: Optional[Profile], viewer: Profile) -> ActorRelation:
    if actor_id and actor_id == viewer.id:
        return ActorRelation.SELF
    if actor is None:
        return ActorRelation.UNKNOWN
    return ActorRelation.STAFF if actor.is_staff_tier else ActorRelation.CLIENT


def find_rule(kind: NotificationKind, tier: ViewerTier, relation: ActorRelation) -> Tuple[str, str]:
    """Look up the most specific wording rule for the key."""
    for key in ((kind, tier, relation), (kind, tier, None), (kind, None, relation), (kind, None, None)):
        if key in WORDING_RULES:
            return WORDING_RULES[key]
    raise KeyError(f"No wording rule for {kind.value}")


def synthesize(
    kind: NotificationKind,
    payload: Dict[str, Any],
    viewer: Profile,
    actor: Optional[Profile],
    order_code: str,
) -> Optional[NotificationDraft]:
    """
    Build a notification draft for one event, or None when it must be skipped.

    Args:
        kind: Event kind
        payload: Event row; for status changes it carries order_id,
            from_status and to_status
        viewer: Signed-in profile the notification is for
        actor: Resolved profile of the comment author / file uploader
        order_code: Human-readable code of the related order

    Returns:
        NotificationDraft, or None for self-authored events
    """
    actor_field = ACTOR_FIELDS.get(kind)
    actor_id = payload.get(actor_field) if actor_field else None
    relation = actor_relation(actor_id, actor, viewer)

    if relation == ActorRelation.SELF:
        return None

    title, template = find_rule(kind, viewer_tier(viewer), relation)

    values = {
        "order_code": order_code,
        "actor_name": actor.display_name if actor else "",
        "file_name": payload.get("file_name") or "A file",
        "from_label": "",
        "to_label": "",
    }
    if kind == NotificationKind.STATUS_CHANGE:
        values["from_label"] = OrderStatus(payload["from_status"]).label
        values["to_label"] = OrderStatus(payload["to_status"]).label

    return NotificationDraft(
        kind=kind,
        title=title,
        message=template.format(**values),
        order_id=payload.get("order_id"),
    )

"""
Raw change records produced by the event feed.

Push callbacks and periodic pulls both produce FeedEvent records so the
consumer treats them identically.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


class EntityStream(str, Enum):
    """Tables the portal follows for changes."""
    ORDERS = "orders"
    COMMENTS = "comments"
    ORDER_FILES = "order_files"


class ChangeOperation(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class EventSource(str, Enum):
    PUSH = "push"
    PULL = "pull"


@dataclass
class FeedEvent:
    """A single row change observed on one stream."""
    stream: EntityStream
    operation: ChangeOperation
    new: Dict[str, Any] = field(default_factory=dict)
    old: Dict[str, Any] = field(default_factory=dict)
    source: EventSource = EventSource.PULL

    @property
    def row(self) -> Dict[str, Any]:
        """The row image that identifies the entity (old image for deletes)."""
        if self.operation == ChangeOperation.DELETE:
            return self.old or self.new
        return self.new


def from_push_payload(stream: EntityStream, payload: Dict[str, Any]) -> Optional[FeedEvent]:
    """
    Build a FeedEvent from a realtime postgres_changes payload.

    The realtime client nests the change under "data" with "type",
    "record" and "old_record"; flatter shapes ("eventType", "new", "old")
    are accepted too. Returns None when the operation is not recognised.
    """
    data = payload.get("data", payload) if isinstance(payload, dict) else {}

    raw_type = data.get("type") or data.get("eventType") or ""
    try:
        operation = ChangeOperation(str(raw_type).upper())
    except ValueError:
        logger.debug(f"Dropping {stream.value} push payload with unknown operation {raw_type!r}")
        return None

    new_row = data.get("record") or data.get("new") or {}
    old_row = data.get("old_record") or data.get("old") or {}

    return FeedEvent(
        stream=stream,
        operation=operation,
        new=dict(new_row),
        old=dict(old_row),
        source=EventSource.PUSH,
    )


def from_pull_row(stream: EntityStream, row: Dict[str, Any]) -> FeedEvent:
    """Wrap a row returned by a periodic pull query."""
    # Pulls cannot tell inserts from updates; orders are treated as updates.
    operation = ChangeOperation.UPDATE if stream == EntityStream.ORDERS else ChangeOperation.INSERT
    return FeedEvent(stream=stream, operation=operation, new=dict(row), source=EventSource.PULL)

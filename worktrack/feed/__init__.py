"""
Event feed: raw change records from realtime push and periodic pull.

The client lives in `worktrack.feed.client`.
"""

from .events import (
    EntityStream,
    ChangeOperation,
    EventSource,
    FeedEvent,
    from_push_payload,
    from_pull_row,
)

__all__ = [
    "EntityStream",
    "ChangeOperation",
    "EventSource",
    "FeedEvent",
    "from_push_payload",
    "from_pull_row",
]

"""
Dedup & cursor store.

Remembers which comment and file ids have already been processed in the
current session and how far each stream's incremental pull has advanced.
`is_new` is the single gate in front of the notification synthesizer, so
an id delivered by both push and pull is only ever handled once.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Set

from ..feed.events import EntityStream
from ..utils.datetime_utils import to_aware_utc

logger = logging.getLogger(__name__)


class DedupStore:
    """Per-stream seen-id sets and monotonic last-seen cursors."""

    def __init__(self, started_at: Optional[datetime] = None):
        self._seen: Dict[EntityStream, Set[str]] = {}
        self._cursors: Dict[EntityStream, Optional[datetime]] = {}
        self.reset(started_at)

    def reset(self, started_at: Optional[datetime] = None) -> None:
        """
        Clear every set and cursor.

        Cursors restart at `started_at` so the first pull of a session only
        sees rows created after sign-in; with None they are cleared.
        """
        start = to_aware_utc(started_at)
        self._seen = {stream: set() for stream in EntityStream}
        self._cursors = {stream: start for stream in EntityStream}

    def is_new(self, stream: EntityStream, entity_id: str) -> bool:
        """Record the id and return True only the first time it is seen."""
        if self.has_seen(stream, entity_id):
            return False
        self._seen[stream].add(entity_id)
        return True

    def has_seen(self, stream: EntityStream, entity_id: str) -> bool:
        return entity_id in self._seen[stream]

    def seen_count(self, stream: EntityStream) -> int:
        return len(self._seen[stream])

    def advance_cursor(self, stream: EntityStream, timestamp: Optional[datetime]) -> Optional[datetime]:
        """Keep the maximum timestamp observed for the stream."""
        ts = to_aware_utc(timestamp)
        current = self._cursors[stream]
        if ts is not None and (current is None or ts > current):
            self._cursors[stream] = ts
        return self._cursors[stream]

    def cursor(self, stream: EntityStream) -> Optional[datetime]:
        return self._cursors[stream]

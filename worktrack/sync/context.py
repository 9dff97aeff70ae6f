"""
Session-scoped sync state.

A SyncContext is built when a viewer signs in and thrown away when they
sign out, so every cache it owns is reset exactly at those two points.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Optional

from ..models.profile import Profile
from ..utils.datetime_utils import utc_now
from .dedup import DedupStore
from .status_diff import StatusDiffEngine


@dataclass
class SyncContext:
    """Everything the sync subsystem remembers for one signed-in viewer."""
    viewer: Profile
    started_at: datetime
    dedup: DedupStore
    statuses: StatusDiffEngine
    profiles: Dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def create(cls, viewer: Profile, started_at: Optional[datetime] = None) -> "SyncContext":
        start = started_at or utc_now()
        return cls(
            viewer=viewer,
            started_at=start,
            dedup=DedupStore(start),
            statuses=StatusDiffEngine(),
        )

    def set_profiles(self, profiles: Iterable[Profile]) -> None:
        self.profiles = {p.id: p for p in profiles}

    def profile(self, profile_id: Optional[str]) -> Optional[Profile]:
        if not profile_id:
            return None
        return self.profiles.get(profile_id)

    def close(self) -> None:
        """Drop all session state; the context must not be reused afterwards."""
        self.dedup.reset(None)
        self.statuses.reset()
        self.profiles = {}

"""
Portal session.

Wires the sync layer together for one signed-in viewer: a fresh
SyncContext, the local order collections, the notification inbox, the
sync engine and the event feed. Signing out (or in as somebody else)
tears all of it down, so nothing cached survives an identity change.
"""

import logging
from typing import Any, Dict, List, Optional

from .backend import SupabaseBackend, get_backend
from .errors import BackendError, EntityNotFoundError, SessionNotActiveError
from .feed.client import EventFeedClient
from .feed.events import EntityStream
from .models.notification import Notification, Toast
from .models.order import Order
from .models.profile import Profile
from .notifications.inbox import NotificationInbox
from .notifications.toasts import ToastFeed
from .services.files import FileService
from .services.order_store import OrderStore
from .services.orders import OrderService
from .services.reports import ReportService
from .sync.context import SyncContext
from .sync.engine import SyncEngine
from .utils.datetime_utils import format_cursor

logger = logging.getLogger(__name__)


class PortalSession:
    """Everything the portal holds for the current viewer."""

    def __init__(self, backend: Optional[SupabaseBackend] = None):
        self.backend = backend or get_backend()
        self.toasts = ToastFeed()
        self._authenticated = False

        self.context: Optional[SyncContext] = None
        self.store: Optional[OrderStore] = None
        self.inbox: Optional[NotificationInbox] = None
        self.engine: Optional[SyncEngine] = None
        self.feed: Optional[EventFeedClient] = None

        self.orders_service: Optional[OrderService] = None
        self.files_service: Optional[FileService] = None
        self.reports: Optional[ReportService] = None

    @property
    def viewer(self) -> Optional[Profile]:
        return self.context.viewer if self.context else None

    @property
    def active(self) -> bool:
        return self.context is not None

    def _require_active(self) -> None:
        if self.context is None:
            raise SessionNotActiveError("No viewer is signed in")

    # ==================== SIGN IN / OUT ====================

    async def sign_in(self, viewer: Profile) -> None:
        """
        Start a sync session for the viewer.

        Loads profiles and visible orders, seeds the status map, then starts
        the event feed. Signing in as a different viewer ends the previous
        session first. The backend is expected to already carry the viewer's
        auth session; sign_in_by_id attaches it.
        """
        if self.context is not None:
            if self.context.viewer.id == viewer.id:
                return
            await self.sign_out()

        context = SyncContext.create(viewer)
        store = OrderStore(self.backend, self.toasts)
        inbox = NotificationInbox(store, on_navigate=self._navigate)
        engine = SyncEngine(context, store, inbox)

        self.context = context
        self.store = store
        self.inbox = inbox
        self.engine = engine
        self.files_service = FileService(self.backend, store, self.toasts)
        self.orders_service = OrderService(self.backend, store, self.files_service, self.toasts)
        self.reports = ReportService(store, self.toasts)

        profiles = await store.load_profiles()
        context.set_profiles(profiles)
        await store.load_orders(viewer)

        self.feed = EventFeedClient(self.backend, context, engine.handle, on_error=self.toasts.error)
        try:
            count = await self.feed.seed_statuses()
            logger.info(f"Seeded {count} order statuses for {viewer.id}")
        except BackendError as e:
            logger.error(f"Status snapshot failed for {viewer.id}: {e}")
            self.toasts.error(f"Sync failed for orders: {e.message}")
        await self.feed.start()

        logger.info(f"Signed in {viewer.display_name} ({viewer.role.value})")

    async def sign_in_by_id(self, profile_id: str, access_token: str, refresh_token: str) -> Profile:
        """
        Attach the viewer's backend session, look up their profile and sign it in.

        Every query of the session then runs under the viewer's row level
        security rather than the bare anon key.

        Raises:
            BackendError: if the tokens are rejected or the lookup fails
            EntityNotFoundError: if the profile is missing or not visible
        """
        if self.context is not None and self.context.viewer.id != profile_id:
            await self.sign_out()

        await self.backend.authenticate(access_token, refresh_token)
        self._authenticated = True

        row = await self.backend.fetch_by_id("profiles", profile_id)
        if row is None:
            await self._detach_backend_session()
            raise EntityNotFoundError(f"Profile {profile_id} not found")
        viewer = Profile.model_validate(row)
        await self.sign_in(viewer)
        return viewer

    async def sign_out(self) -> None:
        """Stop the feed, drop all session state and detach the backend session."""
        if self.context is not None:
            viewer_id = self.context.viewer.id

            if self.feed:
                await self.feed.stop()
            self.context.close()
            if self.store:
                self.store.clear()
            if self.inbox:
                self.inbox.clear()

            self.context = None
            self.store = None
            self.inbox = None
            self.engine = None
            self.feed = None
            self.orders_service = None
            self.files_service = None
            self.reports = None
            logger.info(f"Signed out {viewer_id}")

        await self._detach_backend_session()

    async def _detach_backend_session(self) -> None:
        if not self._authenticated:
            return
        self._authenticated = False
        try:
            await self.backend.sign_out()
        except BackendError as e:
            logger.warning(f"Failed to detach backend session: {e}")

    # ==================== INBOX ====================

    def _navigate(self, order_id: str) -> None:
        if self.store is not None:
            self.store.focused_order_id = order_id

    @property
    def notifications(self) -> List[Notification]:
        self._require_active()
        return self.inbox.items

    @property
    def unread_count(self) -> int:
        self._require_active()
        return self.inbox.unread_count

    def mark_all_read(self) -> None:
        self._require_active()
        self.inbox.mark_all_read()

    async def open(self, notification_id: str) -> Optional[str]:
        """Open a notification; returns the order id navigated to."""
        self._require_active()
        order_id = await self.inbox.open(notification_id)
        if order_id:
            await self.store.focus(order_id)
        return order_id

    # ==================== VIEWS ====================

    @property
    def orders(self) -> List[Order]:
        self._require_active()
        return self.store.orders

    def drain_toasts(self) -> List[Toast]:
        return self.toasts.drain()

    def sync_status(self) -> Dict[str, Any]:
        """Snapshot of the sync layer for the status view."""
        self._require_active()
        dedup = self.context.dedup
        streams = {}
        for stream in EntityStream:
            cursor = dedup.cursor(stream)
            streams[stream.value] = {
                "seen": dedup.seen_count(stream),
                "cursor": format_cursor(cursor) if cursor else None,
            }
        return {
            "viewer_id": self.context.viewer.id,
            "started_at": format_cursor(self.context.started_at),
            "tracked_statuses": len(self.context.statuses),
            "feed_running": bool(self.feed and self.feed.running),
            "pending_events": self.feed.pending if self.feed else 0,
            "streams": streams,
        }


# Singleton
_session: Optional[PortalSession] = None


def get_portal_session() -> PortalSession:
    global _session
    if _session is None:
        _session = PortalSession()
    return _session

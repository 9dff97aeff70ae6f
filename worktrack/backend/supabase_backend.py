"""
Supabase backend adapter.

Thin async wrapper around the Supabase client covering the four capabilities
the portal consumes: row queries, row mutations, realtime change
subscriptions and the order-files storage bucket. Authorization is enforced
server-side by row level security; nothing here re-checks it.

Every failure surfaces as BackendError so callers can handle transport and
authorization problems uniformly.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from supabase import AsyncClient, acreate_client

from config import settings
from ..errors import BackendError

logger = logging.getLogger(__name__)


class SupabaseBackend:
    """Async access to the portal's tables, change feed and storage."""

    def __init__(self, client: Optional[AsyncClient] = None):
        self._client: Optional[AsyncClient] = client
        self.bucket = settings.storage_bucket

    async def connect(self) -> AsyncClient:
        """Create the Supabase client on first use."""
        if self._client is None:
            if not settings.supabase_url or not settings.supabase_anon_key:
                raise BackendError("connect", "Supabase credentials are not configured")
            try:
                self._client = await acreate_client(settings.supabase_url, settings.supabase_anon_key)
                logger.info("Supabase client created")
            except Exception as e:
                raise BackendError("connect", str(e), e) from e
        return self._client

    async def authenticate(self, access_token: str, refresh_token: str) -> None:
        """Attach an existing user session so row level security applies to the viewer."""
        client = await self.connect()
        try:
            await client.auth.set_session(access_token, refresh_token)
        except Exception as e:
            raise BackendError("authenticate", str(e), e) from e

    async def sign_out(self) -> None:
        """Detach the user session; later calls run with the anon key only."""
        client = await self.connect()
        try:
            await client.auth.sign_out()
        except Exception as e:
            raise BackendError("sign out", str(e), e) from e

    # ==================== ROW QUERIES ====================

    async def select_rows(
        self,
        table: str,
        columns: str = "*",
        eq: Optional[Dict[str, Any]] = None,
        gt: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run `select <columns> from <table> where ... order by ... limit ...`.

        Args:
            table: Table name
            columns: Comma separated column list
            eq: Equality filters
            gt: Strictly-greater-than filters (incremental cursors)
            order_by: Column to order by
            descending: Order direction
            limit: Maximum number of rows

        Returns:
            List of row dicts
        """
        client = await self.connect()
        try:
            query = client.table(table).select(columns)
            for column, value in (eq or {}).items():
                query = query.eq(column, value)
            for column, value in (gt or {}).items():
                query = query.gt(column, value)
            if order_by:
                query = query.order(order_by, desc=descending)
            if limit:
                query = query.limit(limit)

            response = await query.execute()
            return list(response.data or [])
        except Exception as e:
            raise BackendError(f"select {table}", str(e), e) from e

    async def fetch_by_id(self, table: str, row_id: str, columns: str = "*") -> Optional[Dict[str, Any]]:
        """Fetch a single row by id, or None when it is missing or not visible."""
        rows = await self.select_rows(table, columns, eq={"id": row_id}, limit=1)
        return rows[0] if rows else None

    # ==================== MUTATIONS ====================

    async def insert_row(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row; the backend assigns id and timestamps."""
        client = await self.connect()
        try:
            response = await client.table(table).insert(payload).execute()
            rows = response.data or []
            return rows[0] if rows else {}
        except Exception as e:
            raise BackendError(f"insert {table}", str(e), e) from e

    async def update_row(self, table: str, row_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update a row by id. Returns the updated row, or None if policy filtered it out."""
        client = await self.connect()
        try:
            response = await client.table(table).update(payload).eq("id", row_id).execute()
            rows = response.data or []
            return rows[0] if rows else None
        except Exception as e:
            raise BackendError(f"update {table}", str(e), e) from e

    # ==================== CHANGE FEED ====================

    async def subscribe(
        self,
        channel_name: str,
        table: str,
        events: Sequence[str],
        callback: Callable[[Dict[str, Any]], None],
    ) -> Any:
        """
        Subscribe to postgres changes on a table.

        Args:
            channel_name: Realtime channel topic
            table: Table to follow
            events: Operations to follow ("INSERT", "UPDATE", "DELETE" or "*")
            callback: Called synchronously with each raw change payload

        Returns:
            The channel handle, to pass to unsubscribe()
        """
        client = await self.connect()
        try:
            channel = client.channel(channel_name)
            for event in events:
                channel.on_postgres_changes(event, callback=callback, schema="public", table=table)
            await channel.subscribe()
            logger.debug(f"Subscribed to {table} changes on {channel_name}")
            return channel
        except Exception as e:
            raise BackendError(f"subscribe {table}", str(e), e) from e

    async def unsubscribe(self, channel: Any) -> None:
        client = await self.connect()
        try:
            await client.remove_channel(channel)
        except Exception as e:
            raise BackendError("unsubscribe", str(e), e) from e

    # ==================== STORAGE ====================

    async def upload_object(self, path: str, content: bytes, content_type: Optional[str] = None) -> None:
        """Upload once; an existing object at the same path is never overwritten."""
        client = await self.connect()
        options: Dict[str, str] = {"upsert": "false"}
        if content_type:
            options["content-type"] = content_type
        try:
            await client.storage.from_(self.bucket).upload(path, content, options)
        except Exception as e:
            raise BackendError("upload", str(e), e) from e

    async def create_signed_url(self, path: str, expires_in: Optional[int] = None) -> str:
        """Issue a time-limited download URL for a stored object."""
        client = await self.connect()
        ttl = expires_in or settings.signed_url_ttl_seconds
        try:
            result = await client.storage.from_(self.bucket).create_signed_url(path, ttl)
        except Exception as e:
            raise BackendError("signed url", str(e), e) from e

        url = None
        if isinstance(result, dict):
            url = result.get("signedURL") or result.get("signedUrl")
        if not url:
            raise BackendError("signed url", "No URL generated")
        return url


# Singleton
_backend: Optional[SupabaseBackend] = None


def get_backend() -> SupabaseBackend:
    """Get the backend singleton."""
    global _backend
    if _backend is None:
        _backend = SupabaseBackend()
    return _backend

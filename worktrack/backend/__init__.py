"""
Backend access for WorkTrack.

Supabase provides rows, row level security, the realtime change feed and
object storage; SupabaseBackend is the only module that talks to it.
"""

from .supabase_backend import SupabaseBackend, get_backend

__all__ = ["SupabaseBackend", "get_backend"]

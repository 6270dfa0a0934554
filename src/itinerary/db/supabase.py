"""Shared Supabase client for the schedule and location repositories."""

import logging
from functools import lru_cache
from supabase import create_client, Client
from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Return the process-wide Supabase client, or None without credentials.

    Creating the client does not open a connection; query failures surface
    from the repositories as persistence errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logger.info("Supabase credentials not configured (missing URL or key); using in-process schedule store")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        return None


def supabase_configured() -> bool:
    return get_supabase_client() is not None

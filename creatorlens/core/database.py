"""
Supabase client for the video metrics store
"""

import logging
from typing import Optional

from supabase import create_client, Client

from .config import Config


logger = logging.getLogger(__name__)

_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Get or create the Supabase client (singleton).

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_SERVICE_KEY is missing
    """
    global _supabase_client

    if _supabase_client is None:
        Config.validate()
        _supabase_client = create_client(Config.SUPABASE_URL, Config.SUPABASE_SERVICE_KEY)
        logger.debug(f"Created Supabase client for {Config.SUPABASE_URL}")

    return _supabase_client


def videos_table(client: Optional[Client] = None):
    """Query builder for the configured videos table."""
    return (client or get_supabase_client()).table(Config.VIDEOS_TABLE)


def reset_supabase_client():
    """Drop the cached client so the next call re-reads configuration."""
    global _supabase_client
    _supabase_client = None

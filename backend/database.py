"""
Database module for Supabase integration.
Creates the shared Supabase client from settings.
"""
from typing import Optional
import logging

from supabase import create_client, Client

from backend.settings import Settings

logger = logging.getLogger(__name__)


def get_supabase_client(settings: Settings) -> Optional[Client]:
    """Get Supabase client instance, or None when credentials are missing."""
    supabase_key = settings.supabase_key
    if not settings.supabase_url or not supabase_key:
        logger.warning("Supabase credentials not configured. Session storage will be disabled.")
        return None

    try:
        return create_client(settings.supabase_url, supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        return None

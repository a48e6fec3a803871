"""
Record Store Factory
====================

Picks the store adapter from settings.
"""

import logging
from typing import Optional

from ..config import Settings, StoreBackend, get_settings
from .base import RecordStore, StoreError
from .postgrest import PostgrestRecordStore
from .sql import SqlRecordStore

logger = logging.getLogger(__name__)


def create_store(settings: Optional[Settings] = None) -> RecordStore:
    """
    Create the configured record store.

    Args:
        settings: Settings to use (default: cached environment settings)

    Returns:
        SqlRecordStore or PostgrestRecordStore

    Raises:
        StoreError: postgrest backend selected without URL/key
    """
    settings = settings or get_settings()

    if settings.store_backend == StoreBackend.POSTGREST:
        if not settings.supabase_url or not settings.supabase_key:
            raise StoreError("SUPABASE_URL and SUPABASE_KEY are required for the postgrest store")
        logger.info(f"Using PostgREST record store at {settings.supabase_url}")
        return PostgrestRecordStore(
            base_url=settings.supabase_url,
            api_key=settings.supabase_key,
            timeout=settings.store_timeout,
        )

    from ..db.session import init_db

    init_db()
    logger.info("Using SQL record store")
    return SqlRecordStore()

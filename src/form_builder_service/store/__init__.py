from __future__ import annotations

import logging
from typing import Optional

from form_builder_service.config import get_settings
from form_builder_service.store.base import FormStore, Record, new_id
from form_builder_service.store.memory import MemoryStore

logger = logging.getLogger(__name__)

_store: Optional[FormStore] = None


def get_store() -> FormStore:
    """
    Process-wide store (singleton).

    `FORM_STORE=supabase` uses the Supabase tables; anything else (or a missing client) falls back
    to the in-memory store.
    """
    global _store
    if _store is not None:
        return _store

    if get_settings().store_backend == "supabase":
        from form_builder_service.store.supabase_store import SupabaseStore, get_supabase_client

        client = get_supabase_client()
        if client is not None:
            _store = SupabaseStore(client)
            return _store
        logger.warning("FORM_STORE=supabase but Supabase is not configured; using in-memory store")

    _store = MemoryStore()
    return _store


def set_store(store: Optional[FormStore]) -> None:
    global _store
    _store = store


__all__ = ["FormStore", "MemoryStore", "Record", "get_store", "new_id", "set_store"]

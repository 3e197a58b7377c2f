"""
Shared dependencies for the Halaqah API.

This module provides:
- PocketBase client management (global instance authenticated on startup)
- The record store every router talks to (PocketBase or in-memory)
- Per-request lookup catalog and clock
- The attendance editing-session registry
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import Depends
from pocketbase import PocketBase

from halaqah.attendance import SessionRegistry
from halaqah.clock import Clock, clock_for
from halaqah.core.lookups import LookupCatalog
from halaqah.data import MemoryStore, PocketBaseStore, RecordStore
from halaqah.data.repositories import load_catalog

from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

# ========================================
# PocketBase Client
# ========================================

# One admin-authenticated client shared by all requests. The PocketBase API is
# stateless; only the authStore is shared and it only ever holds the admin.
_settings = get_settings()
pb_url = _settings.pocketbase_url
pb = PocketBase(pb_url)


async def authenticate_pb() -> None:
    """Authenticate with PocketBase as admin."""
    settings = get_settings()
    try:
        await asyncio.to_thread(
            pb.collection("_superusers").auth_with_password,
            settings.pocketbase_admin_email,
            settings.pocketbase_admin_password,
        )
        logger.info("Successfully authenticated with PocketBase")
    except Exception as e:
        logger.error(f"Failed to authenticate with PocketBase: {e}")
        raise


# ========================================
# Record Store
# ========================================


class StoreState:
    """Process-wide store instance, created lazily from settings."""

    store: RecordStore | None = None


store_state = StoreState()


def create_store(settings: Settings) -> RecordStore:
    if settings.storage_backend == "memory":
        logger.warning("Using in-memory record store (STORAGE_BACKEND=memory); data is lost on restart")
        return MemoryStore()
    return PocketBaseStore(pb)


async def get_store() -> RecordStore:
    """FastAPI dependency returning the configured record store."""
    if store_state.store is None:
        store_state.store = create_store(get_settings())
    return store_state.store


async def get_catalog(store: RecordStore = Depends(get_store)) -> LookupCatalog:
    """Lookup catalog with the store's current class labels."""
    return await load_catalog(store)


def get_clock() -> Clock:
    return clock_for(get_settings().tz)


# ========================================
# Attendance Editing Sessions
# ========================================

session_registry = SessionRegistry()


def get_session_registry() -> SessionRegistry:
    return session_registry


__all__ = [
    "pb",
    "pb_url",
    "authenticate_pb",
    "store_state",
    "create_store",
    "get_store",
    "get_catalog",
    "get_clock",
    "session_registry",
    "get_session_registry",
]

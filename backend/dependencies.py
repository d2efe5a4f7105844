"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from backend.config import get_settings
from backend.db import BackingStore, LocalBackingStore, PostgresDbClient
from backend.errors import StorageError
from backend.kv import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from backend.service import StorageService
from backend.session import SessionRegistry

logger = logging.getLogger(__name__)

_backing_store: BackingStore | None = None
_storage_service: StorageService | None = None
_session_registry: SessionRegistry | None = None
_readiness: "ReadinessState | None" = None


class ReadinessState:
    """
    Tracks whether store initialization has succeeded.

    Data routes stay closed until ``ensure_ready`` succeeds; the last failure
    message is kept verbatim so clients can show it with a retry action.
    """

    def __init__(self):
        self.ready = False
        self.error: Optional[str] = None
        self._lock = threading.Lock()

    def ensure_ready(self, service: StorageService) -> bool:
        with self._lock:
            if self.ready:
                return True
            try:
                service.init()
            except StorageError as e:
                logger.error("Storage initialization failed: %s", e)
                self.error = str(e)
                return False
            self.ready = True
            self.error = None
            return True

    def reset(self) -> None:
        with self._lock:
            self.ready = False
            self.error = None


def _build_kv_store() -> KeyValueStore:
    settings = get_settings()
    if settings.redis_url:
        return RedisKeyValueStore(url=settings.redis_url)
    return InMemoryKeyValueStore()


def get_backing_store() -> BackingStore:
    """
    Return a singleton backing store; the variant is chosen once per process.
    """
    global _backing_store
    if _backing_store:
        return _backing_store

    settings = get_settings()
    if settings.storage_backend == "local":
        _backing_store = LocalBackingStore(
            _build_kv_store(), key_prefix=settings.local_store_prefix
        )
    else:
        _backing_store = PostgresDbClient(settings.database_url)
    logger.info("Using %s backing store", settings.storage_backend)
    return _backing_store


def get_storage_service() -> StorageService:
    global _storage_service
    if _storage_service:
        return _storage_service
    _storage_service = StorageService(get_backing_store())
    return _storage_service


def get_session_registry() -> SessionRegistry:
    global _session_registry
    if _session_registry:
        return _session_registry
    _session_registry = SessionRegistry()
    return _session_registry


def get_readiness() -> ReadinessState:
    global _readiness
    if _readiness:
        return _readiness
    _readiness = ReadinessState()
    return _readiness


def reset_dependencies() -> None:
    """Forget every singleton so the next call rebuilds from settings."""
    global _backing_store, _storage_service, _session_registry, _readiness
    _backing_store = None
    _storage_service = None
    _session_registry = None
    _readiness = None

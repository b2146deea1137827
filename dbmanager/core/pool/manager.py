"""
Process-scoped registry of connection pools.

One pool per ``{ENGINE}_{database}`` key, created lazily on first use.
Host, port and login are not part of the key: two credentials that differ only
in those share a pool.
"""

import atexit
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from dbmanager.core.config import settings
from dbmanager.core.exceptions import BackendError, ConfigurationError, DBManagerError
from dbmanager.models import DatabaseCredentials

from .factory import ConnectionPool, PoolConfig, build_pool_config, create_pool

_log = logging.getLogger(__name__)


def pool_key(credentials: DatabaseCredentials) -> str:
    """Registry key for *credentials*, e.g. ``POSTGRESQL_mat``."""
    if not isinstance(credentials, DatabaseCredentials):
        raise ConfigurationError(
            f"Expected DatabaseCredentials, got {type(credentials).__name__}"
        )
    return f"{credentials.database_type.variant_name}_{credentials.database}"


class PoolManager:
    """Keyed pools with lazy creation, per-key close and bulk close. Thread-safe."""

    def __init__(
        self,
        *,
        max_pool_size: int | None = None,
        min_idle: int | None = None,
        pool_timeout: float | None = None,
        pool_factory: Callable[[PoolConfig], ConnectionPool] = create_pool,
    ) -> None:
        self._max_pool_size = (
            settings.EXTERNAL_DB_POOL_SIZE if max_pool_size is None else max_pool_size
        )
        self._min_idle = settings.EXTERNAL_DB_POOL_MIN_IDLE if min_idle is None else min_idle
        self._pool_timeout = (
            settings.EXTERNAL_DB_POOL_TIMEOUT if pool_timeout is None else pool_timeout
        )
        if self._max_pool_size < 1:
            raise ConfigurationError("max_pool_size must be at least 1")
        if not 0 <= self._min_idle <= self._max_pool_size:
            raise ConfigurationError("min_idle must be between 0 and max_pool_size")
        if self._pool_timeout <= 0:
            raise ConfigurationError("pool_timeout must be positive")

        self._pool_factory = pool_factory
        self._pools: dict[str, ConnectionPool] = {}
        # Serialises pool creation per key; entries are never removed so every
        # caller for a key contends on the same lock.
        self._create_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()
        # Bumped by close_all so pools still being built when it ran are not kept.
        self._generation = 0

    def get_connection(self, credentials: DatabaseCredentials) -> Any:
        """
        Borrow a connection from the pool for *credentials*, creating the pool first if needed.

        Raises ConfigurationError for invalid input and BackendError when the pool
        cannot be opened or cannot hand out a connection. A failed borrow keeps the pool.
        """
        key = pool_key(credentials)
        pool = self._get_or_create(key, credentials)
        try:
            return pool.borrow()
        except DBManagerError:
            raise
        except Exception as e:
            _log.warning("Could not borrow a connection from pool %s: %s", key, e)
            raise BackendError(f"Could not borrow a connection from pool {key}: {e}") from e

    @contextmanager
    def connection(self, credentials: DatabaseCredentials) -> Iterator[Any]:
        """Borrow a connection and return it to its pool on exit."""
        conn = self.get_connection(credentials)
        try:
            yield conn
        finally:
            conn.close()

    def close_pool(self, credentials: DatabaseCredentials) -> None:
        """Close and forget the pool for *credentials*. No-op when there is none."""
        key = pool_key(credentials)
        with self._lock:
            pool = self._pools.pop(key, None)
        if pool is None:
            return
        self._close(key, pool)

    def close_all(self) -> None:
        """Close every pool and empty the registry."""
        with self._lock:
            entries = list(self._pools.items())
            self._pools.clear()
            self._generation += 1
        failures: list[str] = []
        for key, pool in entries:
            try:
                self._close(key, pool)
            except BackendError:
                failures.append(key)
        if failures:
            raise BackendError(f"Failed to close pools: {', '.join(failures)}")

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._pools)

    def stats(self) -> dict[str, int]:
        """Return pool statistics for monitoring."""
        with self._lock:
            pools = list(self._pools.values())
        statuses = [p.status() for p in pools]
        return {
            "pools": len(pools),
            "checked_out": sum(s["checked_out"] for s in statuses),
            "idle_connections": sum(s["idle"] for s in statuses),
        }

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            key = item
        elif isinstance(item, DatabaseCredentials):
            key = pool_key(item)
        else:
            return False
        with self._lock:
            return key in self._pools

    def __len__(self) -> int:
        with self._lock:
            return len(self._pools)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_or_create(self, key: str, credentials: DatabaseCredentials) -> ConnectionPool:
        with self._lock:
            pool = self._pools.get(key)
            if pool is not None:
                _log.debug("Reusing pool %s", key)
                return pool
            create_lock = self._create_locks.setdefault(key, threading.Lock())

        # Build outside the registry lock so unrelated keys are not stalled.
        with create_lock:
            with self._lock:
                pool = self._pools.get(key)
                generation = self._generation
            if pool is not None:
                return pool

            config = build_pool_config(
                credentials,
                maximum_pool_size=self._max_pool_size,
                minimum_idle=self._min_idle,
                connection_timeout=self._pool_timeout,
                pool_name=key,
            )
            try:
                pool = self._pool_factory(config)
            except DBManagerError:
                raise
            except Exception as e:
                _log.warning("Could not open pool %s: %s", key, e)
                raise BackendError(f"Could not open pool {key}: {e}") from e

            with self._lock:
                stale = generation != self._generation
                if not stale:
                    self._pools[key] = pool
            if stale:
                self._close(key, pool)
                raise BackendError(f"Pool {key} was closed while it was being created")
            _log.info(
                "Created pool %s (max_pool_size=%d, min_idle=%d)",
                key,
                self._max_pool_size,
                self._min_idle,
            )
            return pool

    @staticmethod
    def _close(key: str, pool: ConnectionPool) -> None:
        try:
            pool.close()
        except Exception as e:
            _log.warning("Error closing pool %s: %s", key, e)
            raise BackendError(f"Could not close pool {key}: {e}") from e
        _log.info("Closed pool %s", key)


_pool_manager: PoolManager | None = None
_pool_lock = threading.Lock()


def get_pool_manager() -> PoolManager:
    """Return the singleton PoolManager (thread-safe double-checked locking)."""
    global _pool_manager
    if _pool_manager is None:
        with _pool_lock:
            if _pool_manager is None:
                _pool_manager = PoolManager()
                atexit.register(_pool_manager.close_all)
    return _pool_manager

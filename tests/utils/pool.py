"""Test doubles standing in for the pool library."""

import threading
import time
from typing import Any
from unittest.mock import MagicMock

from dbmanager.core.exceptions import BackendError
from dbmanager.core.pool import PoolConfig


class FakePool:
    """Records borrow/close calls; hands out MagicMock connections."""

    def __init__(self, config: PoolConfig) -> None:
        self.config = config
        self.closed = False
        self.borrowed: list[Any] = []
        self.borrow_error: Exception | None = None

    def borrow(self) -> Any:
        if self.closed:
            raise BackendError(f"Pool {self.config.pool_name!r} is closed")
        if self.borrow_error is not None:
            raise self.borrow_error
        conn = MagicMock(name=f"conn-{self.config.pool_name}")
        conn.pool = self
        self.borrowed.append(conn)
        return conn

    def close(self) -> None:
        self.closed = True

    def status(self) -> dict[str, int]:
        return {"checked_out": len(self.borrowed), "idle": 0}


class RecordingPoolFactory:
    """Pool factory that counts construction events per pool name."""

    def __init__(self, *, delay: float = 0.0) -> None:
        self.delay = delay
        self.created: list[FakePool] = []
        self.error: Exception | None = None
        self._lock = threading.Lock()

    def __call__(self, config: PoolConfig) -> FakePool:
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        pool = FakePool(config)
        with self._lock:
            self.created.append(pool)
        return pool

    def created_for(self, key: str) -> list[FakePool]:
        with self._lock:
            return [p for p in self.created if p.config.pool_name == key]

"""In-memory admin session tokens.

The store is created by the application lifespan and handed to request
handlers through dependencies; tests build their own instance. Validation is
a pure read under the shared lock, issuance and sweeping take the lock
exclusively. Expired tokens stay in the table until the next sweep but are
never reported valid.
"""

import asyncio
import logging
import secrets
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator

_logger = logging.getLogger("gateway.sessions")

TOKEN_BYTES = 32
DEFAULT_TTL_SEC = 24 * 60 * 60


class ReadWriteLock:
    """Many concurrent readers or one writer. Waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SessionStore:
    def __init__(self, ttl_sec: float = DEFAULT_TTL_SEC, clock: Callable[[], float] = time.monotonic):
        if ttl_sec <= 0:
            raise ValueError("ttl_sec must be positive")
        self.ttl_sec = ttl_sec
        self._clock = clock
        self._lock = ReadWriteLock()
        self._tokens: dict[str, float] = {}

    def issue(self) -> str:
        """Create a token valid for ``ttl_sec`` from now."""
        token = secrets.token_hex(TOKEN_BYTES)
        with self._lock.write():
            while token in self._tokens:
                token = secrets.token_hex(TOKEN_BYTES)
            self._tokens[token] = self._clock() + self.ttl_sec
            count = len(self._tokens)
        _logger.info("Issued admin session token (active=%d)", count)
        return token

    def validate(self, token: str | None) -> bool:
        if not token:
            return False
        with self._lock.read():
            expiry = self._tokens.get(token)
        return expiry is not None and self._clock() < expiry

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock.write():
            now = self._clock()
            expired = [t for t, expiry in self._tokens.items() if expiry <= now]
            for t in expired:
                del self._tokens[t]
        if expired:
            _logger.info("Swept %d expired session token(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        with self._lock.read():
            return token in self._tokens


async def run_sweeper(store: SessionStore, interval_sec: float, stop_event: asyncio.Event) -> None:
    """Sweep ``store`` every ``interval_sec`` until ``stop_event`` is set."""
    _logger.info("Session sweeper started (interval=%ss)", interval_sec)
    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_sec)
        except asyncio.TimeoutError:
            pass
        if stop_event.is_set():
            break
        try:
            await asyncio.to_thread(store.sweep)
        except Exception:
            _logger.exception("Session sweep failed")
    _logger.info("Session sweeper stopped")

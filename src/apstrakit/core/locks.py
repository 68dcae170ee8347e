"""
Per-key advisory locks.

A :class:`MutexMap` hands out one ``threading.Lock`` per string key, created on
first use and kept for the life of the process. Keys are never evicted; a
long-lived client accumulates one small lock per policy it has touched.

The lock is in-process only. It serialises callers sharing one client, not
independent clients editing the same remote object.

Usage::

    locks = MutexMap()
    with locks.held("bp-1:policy-7"):
        ...  # fetch, mutate, write
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class LockProvider(Protocol):
    """Advisory lock keyed by an arbitrary string."""

    def lock(self, key: str) -> None: ...

    def unlock(self, key: str) -> None: ...


class MutexMap:
    """Lazily created mutexes keyed by string. Thread-safe."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._mutexes: dict[str, threading.Lock] = {}

    def _mutex(self, key: str) -> threading.Lock:
        with self._guard:
            mutex = self._mutexes.get(key)
            if mutex is None:
                mutex = threading.Lock()
                self._mutexes[key] = mutex
            return mutex

    def lock(self, key: str) -> None:
        """Block until the mutex for ``key`` is held. Creates it if needed."""
        self._mutex(key).acquire()
        logger.debug("lock acquired: %s", key)

    def unlock(self, key: str) -> None:
        """
        Release the mutex for ``key``.

        Raises:
            RuntimeError: if the key is unknown or its mutex is not held.
        """
        with self._guard:
            mutex = self._mutexes.get(key)
        if mutex is None:
            raise RuntimeError(f"unlock of unknown mutex {key!r}")
        mutex.release()
        logger.debug("lock released: %s", key)

    def locked(self, key: str) -> bool:
        with self._guard:
            mutex = self._mutexes.get(key)
        return mutex is not None and mutex.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._mutexes)

    @contextmanager
    def held(self, key: str) -> Iterator[None]:
        """Hold the mutex for ``key`` for the duration of the block."""
        self.lock(key)
        try:
            yield
        finally:
            self.unlock(key)


@contextmanager
def holding(provider: LockProvider, key: str) -> Iterator[None]:
    """Like :meth:`MutexMap.held` for any :class:`LockProvider`."""
    provider.lock(key)
    try:
        yield
    finally:
        provider.unlock(key)

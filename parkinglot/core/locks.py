import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class KeyedLock:
    """One lock per key, so unrelated keys never wait on each other.

    Sections guarded by these locks must not ``await``: they are short,
    synchronous check-and-set blocks, which keeps them safe for both asyncio
    tasks and plain threads.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield


class ClaimSet:
    """Non-blocking exclusive claims on keys (e.g. a plate during entry/exit)."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._claimed: set[Hashable] = set()

    def try_claim(self, key: Hashable) -> bool:
        with self._guard:
            if key in self._claimed:
                return False
            self._claimed.add(key)
            return True

    def release(self, key: Hashable) -> None:
        with self._guard:
            self._claimed.discard(key)

    def __contains__(self, key: Hashable) -> bool:
        with self._guard:
            return key in self._claimed

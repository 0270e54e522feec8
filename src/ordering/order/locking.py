"""In-process locks keyed by order (or owner) id.

Status transitions on one order are serialised inside a process; across
processes the aggregate version check turns a lost race into a conflict.
A key's lock is dropped once no caller holds it.
"""

import threading
from weakref import WeakValueDictionary


class KeyLock:
    """A plain lock that can be weakly referenced."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def acquire(self, blocking: bool = True, timeout: float = -1) -> bool:
        return self._lock.acquire(blocking, timeout)

    def release(self) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


class KeyedLocks:
    def __init__(self) -> None:
        self._locks: WeakValueDictionary[str, KeyLock] = WeakValueDictionary()
        self._guard = threading.Lock()

    def for_key(self, key) -> KeyLock:
        with self._guard:
            lock = self._locks.get(str(key))
            if lock is None:
                lock = KeyLock()
                self._locks[str(key)] = lock
            return lock


order_locks = KeyedLocks()
owner_locks = KeyedLocks()

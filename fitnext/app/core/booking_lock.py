from contextlib import contextmanager
import logging
import threading
from typing import Iterator

logger = logging.getLogger(__name__)


class _SessionLockEntry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        # Holders plus waiters; the entry is dropped when this reaches zero
        self.users = 0


_REGISTRY_LOCK = threading.Lock()
_SESSION_LOCKS: dict[int, _SessionLockEntry] = {}


def _checkout(session_id: int) -> _SessionLockEntry:
    with _REGISTRY_LOCK:
        entry = _SESSION_LOCKS.get(session_id)
        if entry is None:
            entry = _SessionLockEntry()
            _SESSION_LOCKS[session_id] = entry
        entry.users += 1
        return entry


def _checkin(session_id: int, entry: _SessionLockEntry) -> None:
    with _REGISTRY_LOCK:
        entry.users -= 1
        if entry.users == 0 and _SESSION_LOCKS.get(session_id) is entry:
            del _SESSION_LOCKS[session_id]


@contextmanager
def session_lock(session_id: int, timeout_s: float = 30.0) -> Iterator[bool]:
    """Serialize capacity writes for one session within this process.

    Yields whether the lock was acquired inside ``timeout_s``; callers treat a
    timeout as contention and retry. The database row lock still guards
    writers from other processes. Registry entries only live while someone
    holds or waits for them.
    """
    entry = _checkout(session_id)
    try:
        acquired = entry.lock.acquire(timeout=timeout_s)
        if not acquired:
            logger.warning("session_lock_timeout", extra={"session_id": session_id})
        try:
            yield acquired
        finally:
            if acquired:
                entry.lock.release()
    finally:
        _checkin(session_id, entry)

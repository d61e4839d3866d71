"""
Per-tournament exclusive sections.

Bracket generation and the report-result -> standings -> advance chain read
match state, decide, then write it back. Two such chains on the same
tournament must not interleave. Different tournaments never contend.

Locks are in-process (FastAPI runs sync endpoints in a threadpool); a
multi-process deployment needs the same discipline from the database.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

_registry_lock = threading.Lock()
_locks: Dict[int, threading.RLock] = {}


def _lock_for(tournament_id: int) -> threading.RLock:
    with _registry_lock:
        lock = _locks.get(tournament_id)
        if lock is None:
            lock = threading.RLock()
            _locks[tournament_id] = lock
        return lock


@contextmanager
def tournament_lock(tournament_id: int) -> Iterator[None]:
    """Hold the exclusive section for *tournament_id*. Re-entrant for the holding thread."""
    lock = _lock_for(tournament_id)
    with lock:
        yield


def forget_tournament(tournament_id: int) -> None:
    """Drop the lock of a deleted tournament."""
    with _registry_lock:
        _locks.pop(tournament_id, None)

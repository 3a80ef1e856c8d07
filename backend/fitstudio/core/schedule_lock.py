"""
Transaction-scoped exclusive lock per schedule.

The capacity allocator must decide "which group gets this seat, or do we
open a new one" one request at a time for a given schedule, while other
schedules proceed in parallel.

On PostgreSQL this is ``pg_advisory_xact_lock``, which the server releases
when the transaction ends. Other dialects (SQLite for local runs and tests)
get a process-local lock per schedule that is released by a session
``after_transaction_end`` hook, so callers never unlock explicitly.
The registry holds those locks weakly; an entry disappears once no
transaction holds or waits on it.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Dict, Optional
import weakref

from sqlalchemy import event, text
from sqlalchemy.orm import Session, SessionTransaction

from fitstudio.database.session_utils import get_dialect_name
from fitstudio.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

_HELD_LOCKS_INFO_KEY = "fitstudio.schedule_locks"

_LOCAL_LOCKS: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
_LOCAL_LOCKS_GUARD = threading.Lock()


def schedule_lock_key(schedule_id: str) -> str:
    return f"schedule:{schedule_id}"


def _local_lock(key: str) -> threading.Lock:
    with _LOCAL_LOCKS_GUARD:
        lock = _LOCAL_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _LOCAL_LOCKS[key] = lock
        return lock


def _held_locks(db: Session) -> Dict[str, Optional[threading.Lock]]:
    return db.info.setdefault(_HELD_LOCKS_INFO_KEY, {})


def acquire_schedule_lock(db: Session, schedule_id: str) -> None:
    """
    Block until this transaction holds the lock for ``schedule_id``.

    Re-acquiring inside the same transaction is a no-op. The lock is held
    until the session's outermost transaction commits or rolls back.
    """
    key = schedule_lock_key(schedule_id)
    held = _held_locks(db)
    if key in held:
        return
    if not db.in_transaction():
        # The release hook fires on transaction end, so there must be one.
        db.begin()

    dialect = get_dialect_name(db)
    started = time.perf_counter()
    if dialect == "postgresql":
        db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key})
        held[key] = None
    else:
        lock = _local_lock(key)
        lock.acquire()
        held[key] = lock
    waited = time.perf_counter() - started

    prometheus_metrics.observe_schedule_lock_wait(dialect, waited)
    if waited > 1.0:
        logger.warning(
            "schedule_lock_slow_acquire",
            extra={"schedule_id": schedule_id, "waited_s": round(waited, 3), "dialect": dialect},
        )


def holds_schedule_lock(db: Session, schedule_id: str) -> bool:
    return schedule_lock_key(schedule_id) in db.info.get(_HELD_LOCKS_INFO_KEY, {})


@event.listens_for(Session, "after_transaction_end")
def _release_schedule_locks(session: Session, transaction: SessionTransaction) -> None:
    # Savepoints end without releasing; only the outermost transaction counts.
    if transaction.parent is not None:
        return
    held = session.info.pop(_HELD_LOCKS_INFO_KEY, None)
    if not held:
        return
    for key, lock in held.items():
        if lock is not None:
            lock.release()
            logger.debug("Released local schedule lock %s", key)

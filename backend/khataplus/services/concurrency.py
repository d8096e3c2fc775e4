# Overview: Transaction helpers shared by every write path (locking, retry, SQLite write lock).

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    On SQLite the write lock comes from begin_write() instead.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Take the SQLite database write lock at the start of a write path.

    BEGIN IMMEDIATE makes concurrent writers queue up behind the busy timeout
    instead of failing at commit. Skipped when the connection already has an
    open transaction (caller owns the unit of work) and on other dialects.
    """
    if db.engine.dialect.name != "sqlite":
        return
    raw = db.session.connection().connection.driver_connection
    if not raw.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Any other exception rolls the session
    back and propagates, so a rejected operation leaves nothing behind.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    if last_exc:
        raise last_exc


def run_unit(func, *, commit: bool):
    """
    Run a write operation either as its own transaction or inside the caller's.

    commit=True: BEGIN (IMMEDIATE on SQLite), run, commit, retried as a whole.
    commit=False: run inside the caller's open transaction; only flushes. The
    caller is responsible for retry and rollback.
    """
    if not commit:
        return func()

    def _op():
        begin_write()
        result = func()
        db.session.commit()
        return result

    return run_with_retry(_op)

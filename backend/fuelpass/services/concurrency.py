# Overview: Service-layer helpers for concurrency; row locks, guarded updates and retry on transient DB failures.

from __future__ import annotations

import time

from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

RETRY_ATTEMPTS = 3
RETRY_BACKOFF_SECONDS = 0.1


def lock_for_update(query):
    """SELECT ... FOR UPDATE. A no-op on SQLite, honored by PostgreSQL/MySQL."""
    return query.with_for_update()


def guarded_update(model, *, where: list, values: dict) -> int:
    """
    Run one UPDATE on `model` filtered by `where` and return how many rows
    matched. The guard is evaluated by the database at write time, so a row
    that changed since it was read is simply not matched. Does not commit.
    """
    stmt = (
        update(model)
        .where(*where)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).rowcount


def run_with_retry(func, *, attempts: int = RETRY_ATTEMPTS, backoff_base: float = RETRY_BACKOFF_SECONDS):
    """
    Call func(), rolling back and retrying with exponential backoff when the
    database reports a lock or deadlock (OperationalError) or a version
    conflict (StaleDataError). Anything else, including domain errors,
    propagates on the first raise.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt == attempts:
                raise
            time.sleep(backoff_base * 2 ** (attempt - 1))

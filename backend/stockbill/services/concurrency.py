# Overview: Retry helper for write operations that can lose a race to another request.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError


def run_with_retry(
    session,
    func,
    *,
    attempts: int = 3,
    backoff_base: float = 0.05,
    retry_on: tuple[type[Exception], ...] = (OperationalError, StaleDataError),
):
    """
    Execute a DB operation with retry on concurrency-related failures.

    The session is rolled back before every retry so ``func`` always starts
    from a clean transaction. The last exception is re-raised once attempts
    are exhausted.
    """
    for attempt in range(attempts):
        try:
            return func()
        except retry_on:
            session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


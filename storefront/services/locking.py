"""Exclusive read-modify-write transactions over a single record.

Rows are loaded ``FOR UPDATE NOWAIT`` where the backend supports it and every
UPDATE/DELETE carries a version check, so a check-then-act sequence either
commits against the state it checked or fails with a retryable ``Conflict``.
"""

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import Conflict
from .logging import log_event

_LOCK_MARKERS = ("lock", "could not obtain", "busy")


def _is_lock_error(exc: OperationalError) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return any(marker in message for marker in _LOCK_MARKERS)


def _is_duplicate(exc: IntegrityError) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return "unique" in message or "duplicate" in message


@contextmanager
def exclusive(session_factory, resource: str):
    try:
        with session_factory() as session:
            yield session
    except StaleDataError as exc:
        log_event("warning", "lock.conflict", resource=resource, reason="stale_version")
        raise Conflict(resource) from exc
    except IntegrityError as exc:
        if not _is_duplicate(exc):
            raise
        log_event("warning", "lock.conflict", resource=resource, reason="duplicate")
        raise Conflict(resource) from exc
    except OperationalError as exc:
        if not _is_lock_error(exc):
            raise
        log_event("warning", "lock.conflict", resource=resource, reason="lock_not_available")
        raise Conflict(resource) from exc


def lock_query(query):
    """Apply a non-blocking row lock; dialects without row locks ignore it."""
    return query.with_for_update(nowait=True)

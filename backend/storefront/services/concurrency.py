# Overview: Service-layer operations for concurrency; transaction boundaries and conditioned updates.

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConcurrencyError, StorefrontError, UpstreamUnavailableError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_immediate() covers it there.
    """
    return query.with_for_update()


def begin_immediate() -> None:
    """Take SQLite's write lock up front so conditioned updates serialize."""
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_atomic(func):
    """
    Run a unit of work that commits on its own, rolling back on any failure.

    Never retries: concurrency failures surface to the caller, who decides
    whether to re-trigger the action.
    - StaleDataError (optimistic version check) -> ConcurrencyError
    - OperationalError / DisconnectionError     -> UpstreamUnavailableError
    """
    try:
        return func()
    except StorefrontError:
        db.session.rollback()
        raise
    except StaleDataError as exc:
        db.session.rollback()
        raise ConcurrencyError(
            "Record was modified by another request",
            details={"cause": str(exc)},
        ) from exc
    except (OperationalError, DisconnectionError) as exc:
        db.session.rollback()
        raise UpstreamUnavailableError(
            "Database unavailable",
            details={"cause": str(exc.orig) if getattr(exc, "orig", None) else str(exc)},
        ) from exc
    except Exception:
        db.session.rollback()
        raise


def conditioned_update(statement) -> int:
    """
    Execute a compare-and-set UPDATE and return the number of affected rows.

    The WHERE clause of `statement` carries the expected current state; zero
    rows means another writer got there first.
    """
    result = db.session.execute(statement.execution_options(synchronize_session=False))
    return result.rowcount

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import StorageError


@contextmanager
def read_scope(session_factory: Callable[[], Session], tx: Session | None = None) -> Iterator[Session]:
    """Reuse the caller's transaction, or open a short-lived read session."""
    if tx is not None:
        yield tx
        return
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def require_transaction(tx: Session | None, operation: str) -> Session:
    if tx is None:
        raise StorageError(
            f"{operation} must run inside a caller-supplied transaction.",
            code="TRANSACTION_REQUIRED",
        )
    return tx


def storage_error(operation: str, exc: SQLAlchemyError) -> StorageError:
    return StorageError(f"{operation} failed: {exc}")


__all__ = ["read_scope", "require_transaction", "storage_error"]

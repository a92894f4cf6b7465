"""Transaction helpers shared by the write services."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.orm import Session


@contextmanager
def serializable_transaction(session: Session) -> Iterator[None]:
    """Run the block under SERIALIZABLE isolation and commit on success.

    SQLite has no isolation levels, so the write lock is taken up front with
    ``BEGIN IMMEDIATE`` instead. Must be entered before the first statement of
    the unit of work.
    """

    bind = session.get_bind()
    if bind is None:
        raise RuntimeError("Session is not bound to an engine")

    if bind.dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))
    else:
        session.execute(text("SET TRANSACTION ISOLATION LEVEL SERIALIZABLE"))

    try:
        yield
        session.commit()
    except Exception:
        session.rollback()
        raise


__all__ = ["serializable_transaction"]

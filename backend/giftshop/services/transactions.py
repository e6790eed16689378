# Overview: Scoped unit-of-work helper for multi-statement writes.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import ConflictError, StoreError
from ..extensions import db


@contextmanager
def atomic(conflict_message: str = "Unique constraint violated"):
    """
    Commit everything added inside the block as one unit.

    On any failure the session is rolled back. Storage errors are translated:
    IntegrityError -> ConflictError, other SQLAlchemyError -> StoreError.
    Non-storage exceptions propagate unchanged.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(conflict_message) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreError("Database error") from exc
    except Exception:
        db.session.rollback()
        raise

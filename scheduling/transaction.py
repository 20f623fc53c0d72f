from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from scheduling.errors import StoreError


@contextmanager
def transaction(action: str = "write"):
    """
    Unit of work for multi-row writes (session row + audit row, or the
    request-then-confirm pair of a direct reservation).

    Everything added or flushed inside the block is committed once at the end.
    Any exception rolls the whole block back; store failures come out as
    StoreError, domain errors are re-raised unchanged.
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error("%s failed, rolled back: %s", action, exc)
        raise StoreError(f"Could not save changes ({action})") from exc
    except Exception:
        db.session.rollback()
        raise

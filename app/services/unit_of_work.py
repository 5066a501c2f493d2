import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.services.errors import LedgerError, TransactionFailed

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, action: str) -> Iterator[Session]:
    """Commit everything done inside the block once, or roll all of it back.

    Ledger errors are re-raised as they are. Anything else, storage errors
    included, surfaces as ``TransactionFailed`` after the rollback has
    completed.
    """
    try:
        yield db
        db.commit()
    except LedgerError as exc:
        db.rollback()
        logger.warning("%s rejected: %s", action, exc.detail)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("%s rolled back after storage error", action, exc_info=True)
        raise TransactionFailed(f"{action} failed; no changes were saved") from exc
    except Exception as exc:
        db.rollback()
        logger.error("%s rolled back after unexpected error", action, exc_info=True)
        raise TransactionFailed(f"{action} failed; no changes were saved") from exc

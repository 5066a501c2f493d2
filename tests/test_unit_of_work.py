import logging

import pytest
from sqlalchemy import func, select

from app.core.logging import configure_logging, reset_logging
from app.models import Customer
from app.services.errors import NotFound, TransactionFailed
from app.services.unit_of_work import atomic


def _customers(db):
    return db.scalar(select(func.count(Customer.id)))


def test_atomic_commits_once(db):
    with atomic(db, "Create customer"):
        db.add(Customer(name="Harbor Mart"))

    assert _customers(db) == 1


def test_atomic_reraises_ledger_errors_untouched(db):
    with pytest.raises(NotFound):
        with atomic(db, "Create customer"):
            db.add(Customer(name="Harbor Mart"))
            db.flush()
            raise NotFound("Customer", 7)

    assert _customers(db) == 0


def test_atomic_wraps_unexpected_errors(db, caplog):
    with caplog.at_level(logging.ERROR, logger="app.services.unit_of_work"):
        with pytest.raises(TransactionFailed) as excinfo:
            with atomic(db, "Create customer"):
                db.add(Customer(name="Harbor Mart"))
                db.flush()
                raise TypeError("unsupported operand")

    assert isinstance(excinfo.value.__cause__, TypeError)
    assert excinfo.value.detail == "Create customer failed; no changes were saved"
    assert "Create customer rolled back after unexpected error" in caplog.text
    assert _customers(db) == 0


@pytest.fixture()
def clean_root_logger():
    root = logging.getLogger()
    level = root.level
    reset_logging()
    yield root
    reset_logging()
    root.setLevel(level)


def test_configure_logging_installs_one_handler(clean_root_logger):
    first = configure_logging("INFO")
    second = configure_logging("DEBUG")

    assert first is second
    assert clean_root_logger.handlers.count(first) == 1
    assert clean_root_logger.level == logging.DEBUG

    reset_logging()
    assert first not in clean_root_logger.handlers
    assert configure_logging() is not first

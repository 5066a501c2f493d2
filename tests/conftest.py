"""
Pytest fixtures for the trading ledger.

Every test gets its own in-memory SQLite database built from the ORM metadata,
plus small factories for master data and a bearer token helper.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.core.security import create_access_token
from app.db.database import Base, get_db
from app.main import app as fastapi_app
from app.models import Customer, Product, Supplier


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def build(role: str = "owner", subject: str = "tester") -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(subject, role)}"}

    return build


@pytest.fixture()
def make_product(db):
    counter = {"n": 0}

    def factory(price="0", unit="piece", is_active=True, sku=None, category=None):
        counter["n"] += 1
        product = Product(
            sku=sku or f"SKU-{counter['n']:03d}",
            name=f"Product {counter['n']}",
            unit=unit,
            category=category,
            price=Decimal(price),
            stock=0,
            is_active=is_active,
        )
        db.add(product)
        db.commit()
        return product

    return factory


@pytest.fixture()
def make_supplier(db):
    def factory(name="Acme Wholesale", opening_balance="0"):
        supplier = Supplier(name=name, opening_balance=Decimal(opening_balance))
        db.add(supplier)
        db.commit()
        return supplier

    return factory


@pytest.fixture()
def make_customer(db):
    def factory(name="Corner Shop", opening_balance="0"):
        customer = Customer(name=name, opening_balance=Decimal(opening_balance))
        db.add(customer)
        db.commit()
        return customer

    return factory

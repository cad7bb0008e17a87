# tests/conftest.py

"""
Shared fixtures for the Product Catalog tests.
Tests run against a throwaway SQLite database unless DATABASE_URL points
elsewhere. Each test runs within its own database transaction, which is
rolled back after the test completes.
"""

import logging
import os

# Must be set before the application modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_product_catalog.db")
os.environ.setdefault("SESSION_SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient

from product_catalog.db import Base, SessionLocal, engine, get_db
from product_catalog.main import app

# Suppress noisy logs during tests for cleaner output
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("product_catalog").setLevel(logging.WARNING)


@pytest.fixture(scope="session", autouse=True)
def setup_database_for_tests():
    # Drop first so data left by an interrupted run cannot leak into this one
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session_for_test():
    """
    Provides a transactional database session for each test function.
    The app's `get_db` dependency is overridden to hand out this session, and
    everything the test wrote is rolled back afterwards.
    """
    connection = engine.connect()
    transaction = connection.begin()
    db = SessionLocal(bind=connection)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    try:
        yield db
    finally:
        db.close()
        transaction.rollback()
        connection.close()
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def client(db_session_for_test):
    """
    Provides a TestClient bound to the per-test session. A fresh client per
    test also means a fresh session cookie, so flash messages never leak.
    """
    with TestClient(app) as test_client:
        yield test_client

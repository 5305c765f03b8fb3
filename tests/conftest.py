"""Pytest configuration and shared fixtures for DebtPath tests.

This module provides database fixtures, test data factories, and helper utilities
for testing the payoff engine, repositories, and CLI without touching a real
application database.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import date
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from debtpath.models import DebtRecord, Profile  # noqa: F401
from debtpath.infra.database import create_session_factory
from debtpath.services.debts import Debt

# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point config at a temporary data directory for every test."""

    monkeypatch.setenv("DEBTPATH_DATA_DIR", str(tmp_path / "instance"))
    monkeypatch.setenv("DEBTPATH_DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("DEBTPATH_DEV_MODE", "false")
    for name in (
        "DEBTPATH_MONTH_CAP",
        "DEBTPATH_PAYOFF_EPSILON",
        "DEBTPATH_SAFE_EXTRA_RATIO",
        "DEBTPATH_PREVIEW_MONTHS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by setup_logging so they don't leak across tests."""

    yield
    package_logger = logging.getLogger("debtpath")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def start() -> date:
    """Fixed simulation anchor so payoff dates are reproducible."""
    return date(2025, 1, 15)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what the repositories expect."""
    return create_session_factory(db_engine)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def debt_record_factory(db_session):
    """Factory for creating persisted debt rows.

    Returns:
        Callable: Function that creates and persists DebtRecord instances
    """

    def _create_debt(
        name: str = "Test Debt",
        principal: float = 1000.00,
        rate: float = 18.0,
        min_payment: float = 25.00,
        user_id: str = "tester",
    ) -> DebtRecord:
        record = DebtRecord(
            user_id=user_id,
            name=name,
            principal=principal,
            rate=rate,
            min_payment=min_payment,
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _create_debt


def make_debt(
    name: str = "Card",
    principal: float = 1000.0,
    rate: float = 18.0,
    min_payment: float = 50.0,
    debt_id: str | None = None,
) -> Debt:
    """Build an engine debt with sensible defaults."""
    return Debt(
        id=debt_id or name.lower().replace(" ", "-"),
        name=name,
        principal=principal,
        rate=rate,
        min_payment=min_payment,
    )


# =============================================================================
# Helpers
# =============================================================================


def assert_float_equal(actual: float, expected: float, tolerance: float = 0.01):
    """Assert that two floats are equal within a tolerance.

    Args:
        actual: Actual value
        expected: Expected value
        tolerance: Maximum allowed difference (default 0.01 = 1 cent)

    Raises:
        AssertionError: If values differ by more than tolerance
    """
    assert (
        abs(actual - expected) < tolerance
    ), f"Expected {expected}, got {actual} (diff: {abs(actual - expected)})"

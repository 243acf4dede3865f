"""
Campaign Calc — Shared pytest fixtures.
"""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Generator, Optional

import pytest
from sqlalchemy import Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

# ─── Environment setup (before any package imports) ───────────────────────────

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("CALCULATION_VERSION", "1.0.0")
os.environ.setdefault("DECIMAL_PRECISION", "28")

# ─── Package imports (after env is set) ───────────────────────────────────────

from campaign_calc.calculations.versions import (  # noqa: E402
    VersionRegistry,
    build_default_registry,
)
from campaign_calc.core.storage_types import StorageDecimal  # noqa: E402
from campaign_calc.services.calculation_engine import CalculationEngine  # noqa: E402
from campaign_calc.services.calculation_service import CalculationService  # noqa: E402

# ─────────────────────────────────────────────────────────────────────────────
# ENGINE FIXTURES
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(scope="function")
def registry() -> VersionRegistry:
    """Fresh registry with version 1.0.0, never shared between tests."""
    return build_default_registry()


@pytest.fixture(scope="function")
def calc_engine(registry: VersionRegistry) -> CalculationEngine:
    return CalculationEngine(registry)


@pytest.fixture(scope="function")
def service(calc_engine: CalculationEngine) -> CalculationService:
    return calc_engine.get_calculation_service()


# ─────────────────────────────────────────────────────────────────────────────
# DATABASE FIXTURES
# ─────────────────────────────────────────────────────────────────────────────


class StorageTestBase(DeclarativeBase):
    pass


class LineItemAmount(StorageTestBase):
    """Throwaway table for exercising the StorageDecimal column type."""

    __tablename__ = "line_item_amounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), default="")
    amount: Mapped[Optional[Decimal]] = mapped_column(StorageDecimal, nullable=True)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """In-memory SQLite session, fresh for every test function."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    StorageTestBase.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture(scope="function")
def line_item_model():
    return LineItemAmount

"""
Pytest fixtures for the cooperative ledger test suite.

Provides:
- Structured logging configuration and a ``captured_logs`` fixture
- A fresh in-memory SQLite database per test (tables created from the ORM)
- Repository, engine and clock fixtures
- Small builders for domain records used across test packages
"""

import json
import logging
from datetime import date, datetime, timezone
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from coop_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from coop_kernel.domain.clock import DeterministicClock
from coop_kernel.domain.dtos import Loan, LoanStatus, Member
from coop_kernel.domain.values import Money
from coop_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from coop_kernel.repository.sqlalchemy_repository import SqlAlchemyLedgerRepository
from coop_modules.engine import CooperativeEngine
from coop_modules.reporting.config import ReportingConfig

TEST_DATABASE_URL = "sqlite:///:memory:"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture coop_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, engine):
            engine.record_payment(...)
            logs = captured_logs()
            assert any(r["message"] == "loan_payment_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("coop_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """A session on a fresh in-memory database with every table created."""
    init_engine_from_url(TEST_DATABASE_URL)
    create_tables()
    session = get_session()
    yield session
    try:
        session.rollback()
        session.close()
    finally:
        reset_engine()


@pytest.fixture
def repository(db_session) -> SqlAlchemyLedgerRepository:
    return SqlAlchemyLedgerRepository(db_session)


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 6, 30, 17, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def reporting_config() -> ReportingConfig:
    return ReportingConfig(entity_name="Koperasi Uji", default_currency="IDR")


@pytest.fixture
def engine(repository, deterministic_clock, reporting_config) -> CooperativeEngine:
    return CooperativeEngine(
        repository, clock=deterministic_clock, config=reporting_config,
    )


@pytest.fixture
def member(repository) -> Member:
    return repository.add_member(Member(member_code="AGT-001", display_name="Siti Rahma"))


# =============================================================================
# Builders
# =============================================================================


def idr(amount) -> Money:
    """Money in IDR from a major-unit amount, e.g. idr("1000000")."""
    return Money.of(str(amount), "IDR")


def make_loan(
    principal: str = "10000000",
    rate: str = "12",
    tenor: int = 10,
    origination: date = date(2024, 1, 15),
    status: LoanStatus = LoanStatus.ACTIVE,
    member_id=None,
    outstanding: str | None = None,
) -> Loan:
    """An in-memory loan with installment = principal / tenor."""
    principal_money = idr(principal)
    return Loan(
        member_id=member_id or uuid4(),
        principal=principal_money,
        annual_rate_percent=rate,
        tenor_months=tenor,
        monthly_installment=principal_money.divide(tenor),
        origination_date=origination,
        status=status,
        outstanding_balance=idr(outstanding) if outstanding is not None else principal_money,
    )


@pytest.fixture
def loan_factory():
    return make_loan

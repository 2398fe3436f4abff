"""
Reporting-specific test fixtures.

Provides:
- ReportingService wired to the test repository
- ``booked_history``: a small cooperative history written through the
  loan service and the repository, as the UI would
"""

from datetime import date

import pytest

from coop_kernel.domain.dtos import AuthorizationStatus, Donation, Due, Expense
from coop_kernel.services.loan_service import LoanService
from coop_modules.reporting.config import ReportingConfig
from coop_modules.reporting.service import ReportingService
from tests.conftest import idr


@pytest.fixture
def reporting_config() -> ReportingConfig:
    """Reporting configuration with opening cash for the test cooperative."""
    return ReportingConfig(
        entity_name="Koperasi Uji",
        default_currency="IDR",
        initial_cash="15000000",
    )


@pytest.fixture
def reporting_service(repository, deterministic_clock, reporting_config) -> ReportingService:
    """ReportingService wired to the test repository."""
    return ReportingService(
        repository, clock=deterministic_clock, config=reporting_config,
    )


@pytest.fixture
def booked_history(repository, member):
    """
    One 10,000,000 loan disbursed 2024-01-15 with three installments paid,
    four months of dues, two approved expenses, one pending expense and one
    donation.  Balanced for every period.
    """
    loans = LoanService(repository)
    loan = loans.originate_loan(member.id, idr("10000000"), "12", 10, date(2024, 1, 15))
    loans.approve_loan(loan.id)
    for number, interest, paid_on in (
        (1, "100000", date(2024, 2, 15)),
        (2, "90000", date(2024, 3, 15)),
        (3, "80000", date(2024, 4, 15)),
    ):
        loans.record_payment(loan.id, number, idr("1000000"), idr(interest), paid_on)

    for month in (1, 2, 3, 4):
        repository.add_due(
            Due(
                member_id=member.id, month=month, year=2024,
                mandatory_amount=idr("50000"), voluntary_amount=idr("100000"),
                mandatory_savings_amount=idr("20000"),
            )
        )
    repository.add_expense(
        Expense("atk", idr("200000"), date(2024, 2, 10), AuthorizationStatus.APPROVED)
    )
    repository.add_expense(
        Expense("listrik", idr("150000"), date(2024, 3, 5), AuthorizationStatus.APPROVED)
    )
    repository.add_expense(
        Expense("rapat", idr("999000"), date(2024, 3, 6), AuthorizationStatus.PENDING)
    )
    repository.add_donation(Donation("pemda", idr("300000"), date(2024, 3, 20)))
    return loans.get_loan(loan.id)

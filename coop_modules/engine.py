"""
CooperativeEngine -- the public API of the loan ledger and period reconciler.

Responsibility:
    One entry point for the UI/API layer.  Wires the loan service and the
    reporting service to a repository and forwards calls; no ledger or
    reporting logic lives here.

Usage:
    with session_scope() as session:
        engine = CooperativeEngine.from_session(session, config=get_active_config())
        result = engine.record_payment(loan_id, 4, PAYOFF, date(2024, 5, 2))

Transactions:
    The engine never commits.  Writes made through one engine instance
    become durable when the caller's transaction commits.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from coop_config import CooperativeConfig
from coop_kernel.domain.amortization import AmortizationResult, compute_amortization
from coop_kernel.domain.clock import Clock
from coop_kernel.domain.dues import DuesTotals
from coop_kernel.domain.dtos import Loan
from coop_kernel.domain.loan_ledger import LoanSchedule
from coop_kernel.domain.values import Money
from coop_kernel.repository.base import LedgerRepository
from coop_kernel.repository.sqlalchemy_repository import SqlAlchemyLedgerRepository
from coop_kernel.services.loan_service import LoanService, PaymentResult
from coop_modules.reporting.config import ReportingConfig
from coop_modules.reporting.models import ReconciliationResult
from coop_modules.reporting.service import ReportingService


class _Payoff(Enum):
    PAYOFF = "payoff"

    def __repr__(self) -> str:
        return "PAYOFF"


PAYOFF = _Payoff.PAYOFF
"""Pass as ``amount_or_payoff`` to settle the whole outstanding balance (pelunasan)."""


def reporting_config_from(config: CooperativeConfig) -> ReportingConfig:
    """Translate deployment settings into the reporting module's config."""
    return ReportingConfig(
        entity_name=config.entity_name,
        default_currency=config.currency,
        initial_cash=config.initial_cash,
        balance_tolerance_units=config.balance_tolerance_units,
    )


class CooperativeEngine:
    """Loan ledger operations and period reconciliation over one repository."""

    def __init__(
        self,
        repository: LedgerRepository,
        clock: Clock | None = None,
        config: CooperativeConfig | ReportingConfig | None = None,
    ):
        if isinstance(config, CooperativeConfig):
            config = reporting_config_from(config)
        self._repository = repository
        self._loans = LoanService(repository)
        self._reporting = ReportingService(repository, clock=clock, config=config)

    @classmethod
    def from_session(
        cls,
        session: Session,
        clock: Clock | None = None,
        config: CooperativeConfig | ReportingConfig | None = None,
    ) -> CooperativeEngine:
        return cls(SqlAlchemyLedgerRepository(session), clock=clock, config=config)

    @property
    def repository(self) -> LedgerRepository:
        return self._repository

    # =====================================================================
    # Loans
    # =====================================================================

    @staticmethod
    def compute_amortization(
        principal: Money,
        annual_rate_percent: Decimal | int | str,
        tenor_months: int,
    ) -> AmortizationResult:
        return compute_amortization(principal, annual_rate_percent, tenor_months)

    def originate_loan(
        self,
        member_id: UUID,
        principal: Money,
        annual_rate_percent: Decimal | int | str,
        tenor_months: int,
        origination_date: date,
    ) -> Loan:
        return self._loans.originate_loan(
            member_id, principal, annual_rate_percent, tenor_months, origination_date,
        )

    def approve_loan(self, loan_id: UUID) -> Loan:
        return self._loans.approve_loan(loan_id)

    def reject_loan(self, loan_id: UUID) -> Loan:
        return self._loans.reject_loan(loan_id)

    def get_loan(self, loan_id: UUID) -> Loan:
        return self._loans.get_loan(loan_id)

    def schedule_for(self, loan_id: UUID) -> LoanSchedule:
        return self._loans.schedule_for(loan_id)

    def record_payment(
        self,
        loan_id: UUID,
        installment_number: int,
        amount_or_payoff: Money | _Payoff | None,
        payment_date: date,
        interest: Money | None = None,
    ) -> PaymentResult:
        """
        Record an installment.

        Args:
            amount_or_payoff: principal portion as Money, ``PAYOFF`` for the
                whole outstanding balance, or None for the suggested
                installment.
            interest: interest portion; None books one month of interest
                on the balance before this payment.
        """
        if amount_or_payoff is PAYOFF:
            return self._loans.record_payment(
                loan_id, installment_number, None, interest, payment_date, payoff=True,
            )
        if amount_or_payoff is not None and not isinstance(amount_or_payoff, Money):
            raise TypeError(
                f"amount_or_payoff must be Money, PAYOFF or None, got {amount_or_payoff!r}"
            )
        return self._loans.record_payment(
            loan_id, installment_number, amount_or_payoff, interest, payment_date,
        )

    def reverse_payment(self, loan_id: UUID, payment_id: UUID) -> Loan:
        return self._loans.reverse_payment(loan_id, payment_id)

    # =====================================================================
    # Reporting
    # =====================================================================

    def reconcile_period(self, start: date, end: date) -> ReconciliationResult:
        return self._reporting.reconcile_period(start, end)

    def dues_totals(
        self,
        start: date,
        end: date,
        member_id: UUID | None = None,
    ) -> DuesTotals:
        return self._reporting.dues_totals(start, end, member_id)

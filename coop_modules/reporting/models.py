"""
Period Reporting Domain Models (``coop_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for the period financial statement: income
and expense breakdowns, the cash roll-forward, and the balance sheet
(neraca) with its self-balancing check.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by
``statements.reconcile`` and returned to callers by ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields are ``Money`` -- never ``float`` or ``Decimal``.
* ``PeriodStatement.delta`` is total assets minus total liabilities and
  equity; a statement is never corrected to make it zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from coop_kernel.domain.values import Money
from coop_kernel.exceptions import BalanceMismatchError


class ReportType(str, Enum):
    """Types of cooperative reports."""

    PERIOD_STATEMENT = "period_statement"


@dataclass(frozen=True)
class ReportMetadata:
    """
    Metadata attached to every report.

    ``generated_at`` is excluded from equality: two statements over
    unchanged books compare equal whenever they were generated.
    """

    report_type: ReportType
    entity_name: str
    currency: str
    generated_at: str = field(compare=False)  # ISO timestamp from the injected clock
    period_start: date
    period_end: date


@dataclass(frozen=True)
class LineItem:
    """A labelled amount, e.g. one expense category."""

    label: str
    amount: Money


# =========================================================================
# Income and expenses (cash in / cash out for the period)
# =========================================================================


@dataclass(frozen=True)
class IncomeBreakdown:
    """Cash received during the period."""

    mandatory_dues: Money
    voluntary_savings: Money
    mandatory_savings: Money
    loan_principal_repaid: Money
    loan_interest: Money
    donations: Money
    total: Money


@dataclass(frozen=True)
class ExpenseBreakdown:
    """Cash paid out during the period."""

    operating_expenses: Money
    loan_disbursements: Money
    by_category: tuple[LineItem, ...]
    total: Money


# =========================================================================
# Balance sheet (neraca) as of period end
# =========================================================================


@dataclass(frozen=True)
class AssetsSection:
    cash_and_bank: Money
    loan_receivables: Money
    total: Money


@dataclass(frozen=True)
class LiabilitiesSection:
    """Member savings the cooperative owes back."""

    mandatory_savings: Money
    voluntary_savings: Money
    total: Money


@dataclass(frozen=True)
class EquitySection:
    """Organisational capital and retained surplus (SHU)."""

    mandatory_dues: Money
    retained_surplus: Money
    total: Money


@dataclass(frozen=True)
class BalanceSheet:
    """
    Assets = Liabilities + Equity is checked, not enforced.

    ``delta`` records by how much the identity fails.
    """

    as_of_date: date
    assets: AssetsSection
    liabilities: LiabilitiesSection
    equity: EquitySection
    total_liabilities_and_equity: Money
    delta: Money
    is_balanced: bool


# =========================================================================
# Period statement
# =========================================================================


@dataclass(frozen=True)
class PeriodStatement:
    """Income, expenses, cash roll-forward and balance sheet for one period."""

    metadata: ReportMetadata
    period_start: date
    period_end: date
    income_breakdown: IncomeBreakdown
    expense_breakdown: ExpenseBreakdown
    opening_balance: Money
    total_income: Money
    total_expenses: Money
    ending_balance: Money
    balance_sheet: BalanceSheet
    is_balanced: bool
    delta: Money


@dataclass(frozen=True)
class ReconciliationResult:
    """
    A statement plus the mismatch error, when there is one.

    The error is returned rather than raised so callers always get the
    statement; ``raise_for_mismatch`` opts into raising.
    """

    statement: PeriodStatement
    error: BalanceMismatchError | None = None

    @property
    def is_balanced(self) -> bool:
        return self.error is None

    def raise_for_mismatch(self) -> PeriodStatement:
        if self.error is not None:
            raise self.error
        return self.statement

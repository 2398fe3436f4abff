"""
Pure period reconciliation functions.

These functions turn the full history of loans, payments, dues, expenses
and donations into a period statement.  ZERO I/O. ZERO side effects.

All monetary values are Money. All inputs/outputs are frozen dataclasses.

Functions in this module follow the coop_kernel/domain/ purity convention:
- No database access
- No clock access (metadata is built by the caller)
- Inputs are never mutated
- Deterministic: same inputs always produce same outputs

Cash roll-forward:
    opening = initial cash + every flow dated before the period
    ending  = opening + income - expenses

Balance sheet as of period end:
    cash and bank     = ending balance
    loan receivables  = outstanding balance of disbursed loans, with
                        principal repaid after period end added back
    liabilities       = mandatory + voluntary savings since inception
    equity            = mandatory dues since inception + retained surplus
    retained surplus  = initial cash + interest + donations - expenses

For consistent books the identity holds exactly.  A stale stored loan
balance, or a payment against a loan that was never disbursed, shows up
as a nonzero delta.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from coop_kernel.domain.dtos import Donation, Due, Expense, Loan, LoanPayment, Period
from coop_kernel.domain.dues import cumulative_through, totals_before, totals_for
from coop_kernel.domain.values import Currency, Money, sum_money
from coop_kernel.exceptions import BalanceMismatchError
from coop_modules.reporting.config import ReportingConfig
from coop_modules.reporting.models import (
    AssetsSection,
    BalanceSheet,
    EquitySection,
    ExpenseBreakdown,
    IncomeBreakdown,
    LiabilitiesSection,
    LineItem,
    PeriodStatement,
    ReconciliationResult,
    ReportMetadata,
)

LOAN_DISBURSEMENT_LABEL = "loan_disbursements"


# =========================================================================
# Helpers
# =========================================================================


def _disbursed_through(loans: Iterable[Loan], as_of: date) -> list[Loan]:
    return [
        loan for loan in loans
        if loan.status.is_disbursed and loan.origination_date <= as_of
    ]


def _disbursed_within(loans: Iterable[Loan], period: Period) -> list[Loan]:
    return [
        loan for loan in loans
        if loan.status.is_disbursed and period.contains(loan.origination_date)
    ]


def _disbursed_before(loans: Iterable[Loan], start: date) -> list[Loan]:
    return [
        loan for loan in loans
        if loan.status.is_disbursed and loan.origination_date < start
    ]


def _approved(expenses: Iterable[Expense]) -> list[Expense]:
    return [e for e in expenses if e.is_approved]


# =========================================================================
# Income and expenses
# =========================================================================


def build_income(
    period: Period,
    payments: Sequence[LoanPayment],
    dues: Sequence[Due],
    donations: Sequence[Donation],
    currency: Currency,
) -> IncomeBreakdown:
    """Dues for months touching the period plus payments and donations dated in it."""
    dues_totals = totals_for(dues, period, currency)
    in_period = [p for p in payments if period.contains(p.payment_date)]
    principal = sum_money((p.principal_portion for p in in_period), currency)
    interest = sum_money((p.interest_portion for p in in_period), currency)
    donated = sum_money(
        (d.amount for d in donations if period.contains(d.date)), currency,
    )
    return IncomeBreakdown(
        mandatory_dues=dues_totals.mandatory,
        voluntary_savings=dues_totals.voluntary,
        mandatory_savings=dues_totals.mandatory_savings,
        loan_principal_repaid=principal,
        loan_interest=interest,
        donations=donated,
        total=dues_totals.total + principal + interest + donated,
    )


def build_expenses(
    period: Period,
    loans: Sequence[Loan],
    expenses: Sequence[Expense],
    currency: Currency,
) -> ExpenseBreakdown:
    """Approved expenses dated in the period plus loans disbursed in it."""
    in_period = [e for e in _approved(expenses) if period.contains(e.date)]

    by_category: dict[str, Money] = {}
    for expense in in_period:
        by_category[expense.category] = (
            by_category.get(expense.category, Money.zero(currency)) + expense.amount
        )
    operating = sum_money(by_category.values(), currency)
    disbursed = sum_money(
        (loan.principal for loan in _disbursed_within(loans, period)), currency,
    )

    lines = [LineItem(label, by_category[label]) for label in sorted(by_category)]
    if disbursed.is_positive:
        lines.append(LineItem(LOAN_DISBURSEMENT_LABEL, disbursed))

    return ExpenseBreakdown(
        operating_expenses=operating,
        loan_disbursements=disbursed,
        by_category=tuple(lines),
        total=operating + disbursed,
    )


def compute_opening_balance(
    start: date,
    loans: Sequence[Loan],
    payments: Sequence[LoanPayment],
    dues: Sequence[Due],
    expenses: Sequence[Expense],
    donations: Sequence[Donation],
    initial_cash: Money,
) -> Money:
    """Initial cash plus every flow dated strictly before ``start``."""
    currency = initial_cash.currency
    inflow = (
        totals_before(dues, start, currency).total
        + sum_money((p.total for p in payments if p.payment_date < start), currency)
        + sum_money((d.amount for d in donations if d.date < start), currency)
    )
    outflow = (
        sum_money((e.amount for e in _approved(expenses) if e.date < start), currency)
        + sum_money((loan.principal for loan in _disbursed_before(loans, start)), currency)
    )
    return initial_cash + inflow - outflow


# =========================================================================
# Balance sheet
# =========================================================================


def compute_loan_receivables(
    as_of: date,
    loans: Sequence[Loan],
    payments: Sequence[LoanPayment],
    currency: Currency,
) -> Money:
    """
    Outstanding balance of disbursed loans as it stood on ``as_of``.

    Stored balances reflect every payment ever recorded, so principal
    repaid after ``as_of`` is added back.
    """
    disbursed = _disbursed_through(loans, as_of)
    loan_ids: set[UUID] = {loan.id for loan in disbursed}
    stored = sum_money((loan.outstanding_balance for loan in disbursed), currency)
    repaid_later = sum_money(
        (
            p.principal_portion for p in payments
            if p.loan_id in loan_ids and p.payment_date > as_of
        ),
        currency,
    )
    return stored + repaid_later


def build_balance_sheet(
    as_of: date,
    cash_and_bank: Money,
    loans: Sequence[Loan],
    payments: Sequence[LoanPayment],
    dues: Sequence[Due],
    expenses: Sequence[Expense],
    donations: Sequence[Donation],
    config: ReportingConfig,
) -> BalanceSheet:
    """Neraca as of ``as_of``; checks the identity within the configured tolerance."""
    currency = cash_and_bank.currency
    receivables = compute_loan_receivables(as_of, loans, payments, currency)
    assets = AssetsSection(
        cash_and_bank=cash_and_bank,
        loan_receivables=receivables,
        total=cash_and_bank + receivables,
    )

    cumulative = cumulative_through(dues, as_of, currency)
    liabilities = LiabilitiesSection(
        mandatory_savings=cumulative.mandatory_savings,
        voluntary_savings=cumulative.voluntary,
        total=cumulative.savings,
    )

    interest = sum_money(
        (p.interest_portion for p in payments if p.payment_date <= as_of), currency,
    )
    donated = sum_money((d.amount for d in donations if d.date <= as_of), currency)
    spent = sum_money(
        (e.amount for e in _approved(expenses) if e.date <= as_of), currency,
    )
    retained_surplus = config.initial_cash_amount + interest + donated - spent
    equity = EquitySection(
        mandatory_dues=cumulative.mandatory,
        retained_surplus=retained_surplus,
        total=cumulative.mandatory + retained_surplus,
    )

    total_le = liabilities.total + equity.total
    delta = assets.total - total_le
    return BalanceSheet(
        as_of_date=as_of,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        total_liabilities_and_equity=total_le,
        delta=delta,
        is_balanced=abs(delta) <= config.tolerance,
    )


# =========================================================================
# Reconciliation
# =========================================================================


def reconcile(
    period: Period,
    loans: Sequence[Loan],
    payments: Sequence[LoanPayment],
    dues: Sequence[Due],
    expenses: Sequence[Expense],
    donations: Sequence[Donation],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> ReconciliationResult:
    """
    Build the period statement from the full history.

    Inputs are complete histories, not period slices: the opening balance
    and the balance sheet need everything before the period too.

    Returns:
        ReconciliationResult whose ``error`` is a BalanceMismatchError
        carrying the delta when the balance sheet does not balance.
    """
    currency = Currency(config.default_currency)

    income = build_income(period, payments, dues, donations, currency)
    spending = build_expenses(period, loans, expenses, currency)
    opening = compute_opening_balance(
        period.start, loans, payments, dues, expenses, donations,
        config.initial_cash_amount,
    )
    ending = opening + income.total - spending.total

    sheet = build_balance_sheet(
        period.end, ending, loans, payments, dues, expenses, donations, config,
    )

    statement = PeriodStatement(
        metadata=metadata,
        period_start=period.start,
        period_end=period.end,
        income_breakdown=income,
        expense_breakdown=spending,
        opening_balance=opening,
        total_income=income.total,
        total_expenses=spending.total,
        ending_balance=ending,
        balance_sheet=sheet,
        is_balanced=sheet.is_balanced,
        delta=sheet.delta,
    )

    error = None
    if not sheet.is_balanced:
        error = BalanceMismatchError(
            period_start=period.start.isoformat(),
            period_end=period.end.isoformat(),
            total_assets=str(sheet.assets.total.amount),
            total_liabilities_and_equity=str(sheet.total_liabilities_and_equity.amount),
            delta=str(sheet.delta.amount),
            currency=currency.code,
        )
    return ReconciliationResult(statement=statement, error=error)


# =========================================================================
# Rendering
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Money -> major-unit decimal string (currency is in the metadata)
    - Decimal -> str (preserving precision)
    - UUID -> str
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - Exceptions -> {"code", "message"}
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Money):
        return str(obj.amount)
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, BaseException):
        return {"code": getattr(obj, "code", type(obj).__name__), "message": str(obj)}
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)

"""
LoanLedger -- pure loan state machine and balance recomputation.

Responsibility:
    Owns a loan's outstanding balance.  Applying or reversing an
    installment payment never adjusts the balance incrementally: the
    balance is recomputed from the full payment set every time, so a bad
    historical write cannot compound.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``LoanService`` loads the loan and its payments, calls these functions
    under a per-loan lock, and persists what they return.

Invariants enforced:
    - outstanding_balance == max(0, principal - sum(principal_portion))
    - installment_number is unique per loan
    - no payment is dated before the loan was originated
    - principal_portion never exceeds the outstanding balance
    - balance zero <=> status paid_off; paid_off only reverts to active
      through a reversal that makes the balance nonzero again

Failure modes:
    - LoanNotActiveError, DuplicateInstallmentError, OverpaymentError,
      InvalidPaymentError, PaymentNotFoundError, InvalidLoanTransitionError.
    Every check happens before anything is computed, so a rejected call
    returns nothing and changes nothing.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from coop_kernel.domain.amortization import compute_amortization, installment_interest
from coop_kernel.domain.dtos import Loan, LoanPayment, LoanStatus, PaymentStatus
from coop_kernel.domain.values import Money, sum_money
from coop_kernel.exceptions import (
    DuplicateInstallmentError,
    InvalidLoanTransitionError,
    InvalidPaymentError,
    LoanNotActiveError,
    OverpaymentError,
    PaymentNotFoundError,
)


def add_months(start: date, months: int) -> date:
    """Same day ``months`` later, clamped to the end of a shorter month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def scheduled_due_date(loan: Loan, installment_number: int) -> date:
    """Installment n falls due n months after origination."""
    return add_months(loan.origination_date, installment_number)


# =========================================================================
# Lifecycle
# =========================================================================


def originate_loan(
    member_id: UUID,
    principal: Money,
    annual_rate_percent: Decimal | int | str,
    tenor_months: int,
    origination_date: date,
    loan_id: UUID | None = None,
) -> Loan:
    """
    Create a pending loan with its installment fixed by the amortization
    calculator.  Nothing is disbursed until the loan is approved.
    """
    terms = compute_amortization(principal, annual_rate_percent, tenor_months)
    return Loan(
        id=loan_id or uuid4(),
        member_id=member_id,
        principal=principal,
        annual_rate_percent=Decimal(str(annual_rate_percent)),
        tenor_months=tenor_months,
        monthly_installment=terms.monthly_installment,
        origination_date=origination_date,
        status=LoanStatus.PENDING,
        outstanding_balance=principal,
    )


def approve_loan(loan: Loan) -> Loan:
    """pending -> active."""
    if loan.status != LoanStatus.PENDING:
        raise InvalidLoanTransitionError(
            str(loan.id), loan.status.value, LoanStatus.ACTIVE.value,
        )
    return loan.with_changes(status=LoanStatus.ACTIVE)


def reject_loan(loan: Loan) -> Loan:
    """pending -> rejected."""
    if loan.status != LoanStatus.PENDING:
        raise InvalidLoanTransitionError(
            str(loan.id), loan.status.value, LoanStatus.REJECTED.value,
        )
    return loan.with_changes(status=LoanStatus.REJECTED)


# =========================================================================
# Recomputation
# =========================================================================


def _payments_of(loan: Loan, payments: Iterable[LoanPayment]) -> list[LoanPayment]:
    return [p for p in payments if p.loan_id == loan.id]


def recompute_outstanding(loan: Loan, payments: Iterable[LoanPayment]) -> Money:
    """max(0, principal - sum of principal portions of the loan's payments)."""
    repaid = sum_money(
        (p.principal_portion for p in _payments_of(loan, payments)),
        loan.principal.currency,
    )
    return (loan.principal - repaid).cap_at_zero()


def ledger_drift(loan: Loan, payments: Iterable[LoanPayment]) -> Money:
    """Stored balance minus recomputed balance; zero for a healthy loan."""
    return loan.outstanding_balance - recompute_outstanding(loan, payments)


def _settle(loan: Loan, payments: Iterable[LoanPayment]) -> Loan:
    outstanding = recompute_outstanding(loan, payments)
    status = loan.status
    if outstanding.is_zero:
        if status == LoanStatus.ACTIVE:
            status = LoanStatus.PAID_OFF
    elif status == LoanStatus.PAID_OFF:
        status = LoanStatus.ACTIVE
    return loan.with_changes(outstanding_balance=outstanding, status=status)


# =========================================================================
# Payments
# =========================================================================


def apply_payment(
    loan: Loan,
    payments: Sequence[LoanPayment],
    installment_number: int,
    principal_portion: Money | None,
    interest_portion: Money,
    payment_date: date,
    *,
    payoff: bool = False,
    payment_id: UUID | None = None,
) -> tuple[Loan, LoanPayment]:
    """
    Record one installment against the loan.

    ``payments`` is the loan's full current payment set.  In payoff mode
    the principal portion is capped at the outstanding balance (and
    defaults to all of it when ``principal_portion`` is None).

    Returns:
        (updated loan, new payment).  The caller persists both.
    """
    loan_ref = str(loan.id)
    if loan.status != LoanStatus.ACTIVE:
        raise LoanNotActiveError(loan_ref, loan.status.value)
    if isinstance(installment_number, bool) or not isinstance(installment_number, int):
        raise InvalidPaymentError(loan_ref, "installment_number must be an integer")
    if installment_number < 1:
        raise InvalidPaymentError(loan_ref, "installment_number must be >= 1")
    if principal_portion is None and not payoff:
        raise InvalidPaymentError(loan_ref, "principal_portion is required")
    if interest_portion.is_negative:
        raise InvalidPaymentError(loan_ref, "interest_portion must not be negative")
    if payment_date < loan.origination_date:
        raise InvalidPaymentError(loan_ref, "payment_date precedes origination")

    own_payments = _payments_of(loan, payments)
    if any(p.installment_number == installment_number for p in own_payments):
        raise DuplicateInstallmentError(loan_ref, installment_number)

    outstanding = recompute_outstanding(loan, own_payments)
    if payoff:
        if principal_portion is None or principal_portion > outstanding:
            principal_portion = outstanding
    if principal_portion.is_negative:
        raise InvalidPaymentError(loan_ref, "principal_portion must not be negative")
    if principal_portion > outstanding:
        raise OverpaymentError(loan_ref, str(principal_portion), str(outstanding))

    if payment_date > scheduled_due_date(loan, installment_number):
        status = PaymentStatus.LATE
    else:
        status = PaymentStatus.ON_TIME

    payment = LoanPayment(
        id=payment_id or uuid4(),
        loan_id=loan.id,
        installment_number=installment_number,
        principal_portion=principal_portion,
        interest_portion=interest_portion,
        payment_date=payment_date,
        status=status,
    )
    return _settle(loan, [*own_payments, payment]), payment


def reverse_payment(
    loan: Loan,
    payments: Sequence[LoanPayment],
    payment_id: UUID,
) -> Loan:
    """
    Remove a payment and recompute the balance from what remains.

    A paid-off loan goes back to active when the balance becomes nonzero.
    """
    own_payments = _payments_of(loan, payments)
    if not any(p.id == payment_id for p in own_payments):
        raise PaymentNotFoundError(str(loan.id), str(payment_id))
    remaining = [p for p in own_payments if p.id != payment_id]
    return _settle(loan, remaining)


def suggest_payment(loan: Loan) -> tuple[Money, Money]:
    """
    Default installment for the payment form.

    Principal is the monthly installment or whatever is left, whichever is
    smaller; interest is one month on the current balance.
    """
    outstanding = loan.outstanding_balance.cap_at_zero()
    principal = min(loan.monthly_installment, outstanding)
    return principal, installment_interest(outstanding, loan.annual_rate_percent)


# =========================================================================
# Schedule
# =========================================================================


@dataclass(frozen=True)
class ScheduledInstallment:
    installment_number: int
    expected_principal: Money
    expected_due_date: date


class LoanSchedule:
    """
    Lazy, restartable view of a loan's installment plan.

    Every iteration starts from installment 1; nothing is precomputed.
    The final installment takes whatever principal the rounded monthly
    installments left over, so the plan always sums to the principal.
    """

    def __init__(self, loan: Loan):
        self._loan = loan

    def __len__(self) -> int:
        return self._loan.tenor_months

    def __iter__(self) -> Iterator[ScheduledInstallment]:
        loan = self._loan
        remaining = loan.principal
        for number in range(1, loan.tenor_months + 1):
            if number == loan.tenor_months:
                expected = remaining
            else:
                expected = min(loan.monthly_installment, remaining)
            remaining = remaining - expected
            yield ScheduledInstallment(
                installment_number=number,
                expected_principal=expected,
                expected_due_date=scheduled_due_date(loan, number),
            )


def schedule_for(loan: Loan) -> LoanSchedule:
    """The loan's installment plan (tenor_months entries)."""
    return LoanSchedule(loan)

"""
LoanService -- serialized writes against a single loan.

Responsibility:
    Loads a loan and its payments, runs the pure loan ledger, and persists
    the new payment and the recomputed loan in the caller's transaction.

Architecture position:
    Kernel > Services -- imperative shell around ``domain.loan_ledger``.

Invariants enforced:
    - Single writer per loan: every write takes an in-process lock keyed
      by loan id and loads the loan with SELECT ... FOR UPDATE.  Both are
      held until the caller's transaction commits or rolls back, so a
      second writer always reads the first writer's committed payments.
      The lock is reentrant: one thread may write the same loan several
      times inside one transaction.  Writes to different loans do not
      block each other.
    - The service flushes through the repository and never commits; the
      caller's ``session_scope`` owns the transaction.
    - A rejected write persists nothing: all ledger checks run before the
      first repository write.

Failure modes:
    - LoanNotFoundError, LoanNotActiveError, DuplicateInstallmentError,
      OverpaymentError, InvalidPaymentError, PaymentNotFoundError,
      InvalidLoanTransitionError, ConstraintViolationError.
    Each is logged with its code and re-raised unchanged.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TypeVar
from uuid import UUID

from coop_kernel.domain import loan_ledger
from coop_kernel.domain.dtos import Loan, LoanPayment
from coop_kernel.domain.loan_ledger import LoanSchedule
from coop_kernel.domain.values import Money
from coop_kernel.exceptions import CooperativeLedgerError
from coop_kernel.logging_config import LogContext, get_logger
from coop_kernel.repository.base import LedgerRepository

logger = get_logger("services.loan")

T = TypeVar("T")


class _LoanLockRegistry:
    """
    One reentrant lock per loan id, shared process-wide.

    Entries are weak: a lock disappears once no writer holds or awaits it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[UUID, threading.RLock] = (
            weakref.WeakValueDictionary()
        )

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, loan_id: UUID) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(loan_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[loan_id] = lock
            return lock


_LOAN_LOCKS = _LoanLockRegistry()


@dataclass(frozen=True)
class PaymentResult:
    """The recomputed loan and the payment that was recorded."""

    loan: Loan
    payment: LoanPayment


class LoanService:
    """
    Loan lifecycle and installment writes.

    Usage:
        with session_scope() as session:
            service = LoanService(SqlAlchemyLedgerRepository(session))
            result = service.record_payment(
                loan_id, 1, Money.of("1000000", "IDR"), None, date(2024, 2, 1),
            )
    """

    def __init__(self, repository: LedgerRepository):
        self._repository = repository

    @contextmanager
    def _locked(self, loan_id: UUID) -> Iterator[Loan]:
        lock = _LOAN_LOCKS.lock_for(loan_id)
        lock.acquire()
        try:
            loan = self._repository.get_loan(loan_id, for_update=True)
        except BaseException:
            lock.release()
            raise
        # released when the caller's transaction ends, not when this block exits
        self._repository.hold_until_transaction_end(lock.release)
        yield loan

    def _logged(self, event: str, loan_id: UUID, action: Callable[[], T]) -> T:
        with LogContext.bind(loan_id=loan_id):
            try:
                return action()
            except CooperativeLedgerError as e:
                logger.warning(
                    f"{event}_rejected",
                    extra={"error_code": e.code},
                    exc_info=True,
                )
                raise

    # =====================================================================
    # Lifecycle
    # =====================================================================

    def originate_loan(
        self,
        member_id: UUID,
        principal: Money,
        annual_rate_percent: Decimal | int | str,
        tenor_months: int,
        origination_date: date,
    ) -> Loan:
        """Create a pending loan."""
        loan = loan_ledger.originate_loan(
            member_id, principal, annual_rate_percent, tenor_months, origination_date,
        )
        self._repository.add_loan(loan)
        logger.info(
            "loan_originated",
            extra={
                "loan_id": str(loan.id),
                "member_id": str(member_id),
                "principal": str(principal),
                "tenor_months": tenor_months,
                "monthly_installment": str(loan.monthly_installment),
            },
        )
        return loan

    def approve_loan(self, loan_id: UUID) -> Loan:
        """pending -> active (the loan is disbursed)."""

        def _approve() -> Loan:
            with self._locked(loan_id) as loan:
                approved = loan_ledger.approve_loan(loan)
                self._repository.save_loan(approved)
            logger.info("loan_approved", extra={"principal": str(approved.principal)})
            return approved

        return self._logged("loan_approval", loan_id, _approve)

    def reject_loan(self, loan_id: UUID) -> Loan:
        """pending -> rejected."""

        def _reject() -> Loan:
            with self._locked(loan_id) as loan:
                rejected = loan_ledger.reject_loan(loan)
                self._repository.save_loan(rejected)
            logger.info("loan_rejected")
            return rejected

        return self._logged("loan_rejection", loan_id, _reject)

    # =====================================================================
    # Payments
    # =====================================================================

    def record_payment(
        self,
        loan_id: UUID,
        installment_number: int,
        principal_portion: Money | None,
        interest_portion: Money | None,
        payment_date: date,
        *,
        payoff: bool = False,
    ) -> PaymentResult:
        """
        Record an installment.

        ``principal_portion=None`` takes the suggested principal (or, with
        ``payoff=True``, the whole outstanding balance).
        ``interest_portion=None`` books one month of interest on the
        balance before this payment.
        """

        def _record() -> PaymentResult:
            with self._locked(loan_id) as loan:
                payments = self._repository.list_payments(loan_id)
                self._warn_on_drift(loan, payments)

                suggested_principal, suggested_interest = loan_ledger.suggest_payment(loan)
                principal = principal_portion
                if principal is None and not payoff:
                    principal = suggested_principal
                interest = interest_portion
                if interest is None:
                    interest = suggested_interest

                updated, payment = loan_ledger.apply_payment(
                    loan,
                    payments,
                    installment_number,
                    principal,
                    interest,
                    payment_date,
                    payoff=payoff,
                )
                self._repository.insert_payment(payment)
                self._repository.save_loan(updated)

            logger.info(
                "loan_payment_recorded",
                extra={
                    "installment_number": installment_number,
                    "principal_portion": payment.principal_portion,
                    "interest_portion": payment.interest_portion,
                    "payment_status": payment.status,
                    "outstanding_balance": updated.outstanding_balance,
                    "loan_status": updated.status,
                    "payoff": payoff,
                },
            )
            return PaymentResult(loan=updated, payment=payment)

        return self._logged("loan_payment", loan_id, _record)

    def reverse_payment(self, loan_id: UUID, payment_id: UUID) -> Loan:
        """Delete a payment and recompute the loan from what remains."""

        def _reverse() -> Loan:
            with self._locked(loan_id) as loan:
                payments = self._repository.list_payments(loan_id)
                updated = loan_ledger.reverse_payment(loan, payments, payment_id)
                self._repository.delete_payment(payment_id, loan_id=loan_id)
                self._repository.save_loan(updated)

            logger.info(
                "loan_payment_reversed",
                extra={
                    "payment_id": payment_id,
                    "outstanding_balance": updated.outstanding_balance,
                    "loan_status": updated.status,
                },
            )
            return updated

        return self._logged("loan_payment_reversal", loan_id, _reverse)

    def _warn_on_drift(self, loan: Loan, payments: list[LoanPayment]) -> None:
        drift = loan_ledger.ledger_drift(loan, payments)
        if not drift.is_zero:
            logger.warning(
                "loan_balance_drift",
                extra={
                    "stored_balance": str(loan.outstanding_balance),
                    "drift": str(drift),
                },
            )

    # =====================================================================
    # Reads
    # =====================================================================

    def get_loan(self, loan_id: UUID) -> Loan:
        return self._repository.get_loan(loan_id)

    def schedule_for(self, loan_id: UUID) -> LoanSchedule:
        return loan_ledger.schedule_for(self._repository.get_loan(loan_id))

    def suggest_payment(self, loan_id: UUID) -> tuple[Money, Money]:
        return loan_ledger.suggest_payment(self._repository.get_loan(loan_id))

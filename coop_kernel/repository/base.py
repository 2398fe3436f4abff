"""
LedgerRepository -- the persistence port the engine depends on.

Responsibility:
    Declares every read and write the loan service and the reconciler
    need.  Implementations return and accept the frozen domain records
    from ``coop_kernel.domain.dtos``, never ORM rows.

Contract for implementations:
    - Writes join the caller's transaction; nothing here commits.
    - ``get_loan(..., for_update=True)`` holds a row lock until the
      caller's transaction ends.
    - Uniqueness violations (one Due per member and month, one payment
      per installment) raise ConstraintViolationError.
    - A missing loan raises LoanNotFoundError.
    - ``hold_until_transaction_end`` runs its callback once the caller's
      outermost transaction ends, whether by commit or rollback.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from uuid import UUID

from coop_kernel.domain.dtos import (
    Donation,
    Due,
    Expense,
    Loan,
    LoanPayment,
    Member,
    Period,
)


class LedgerRepository(ABC):
    """Storage for members, loans, payments, dues, expenses and donations."""

    # Loans -----------------------------------------------------------------

    @abstractmethod
    def get_loan(self, loan_id: UUID, *, for_update: bool = False) -> Loan:
        """Load one loan. Raises LoanNotFoundError."""

    @abstractmethod
    def hold_until_transaction_end(self, release: Callable[[], None]) -> None:
        """Defer ``release`` until the current transaction ends; run it now if none is open."""

    @abstractmethod
    def add_loan(self, loan: Loan) -> Loan:
        """Insert a new loan."""

    @abstractmethod
    def save_loan(self, loan: Loan) -> Loan:
        """Overwrite the stored state of an existing loan."""

    @abstractmethod
    def list_loans(self) -> list[Loan]:
        """Every loan, in origination order."""

    # Payments --------------------------------------------------------------

    @abstractmethod
    def list_payments(self, loan_id: UUID) -> list[LoanPayment]:
        """The loan's payments, by installment number."""

    @abstractmethod
    def list_all_payments(self) -> list[LoanPayment]:
        """Every recorded payment across all loans."""

    @abstractmethod
    def insert_payment(self, payment: LoanPayment) -> LoanPayment:
        """Insert a payment. Raises ConstraintViolationError on a duplicate installment."""

    @abstractmethod
    def delete_payment(self, payment_id: UUID, loan_id: UUID | None = None) -> None:
        """Remove a payment (of ``loan_id``, when given). Raises PaymentNotFoundError."""

    # Dues, expenses, donations, members -------------------------------------

    @abstractmethod
    def list_dues(
        self,
        member_id: UUID | None = None,
        period: Period | None = None,
    ) -> list[Due]:
        """Dues, optionally for one member and/or months intersecting a period."""

    @abstractmethod
    def add_due(self, due: Due) -> Due:
        """Insert a Due. Raises ConstraintViolationError for a second row per month."""

    @abstractmethod
    def list_approved_expenses(self, period: Period | None = None) -> list[Expense]:
        """Approved expenses, optionally dated within a period."""

    @abstractmethod
    def add_expense(self, expense: Expense) -> Expense:
        """Insert an expense."""

    @abstractmethod
    def list_donations(self, period: Period | None = None) -> list[Donation]:
        """Donations, optionally dated within a period."""

    @abstractmethod
    def add_donation(self, donation: Donation) -> Donation:
        """Insert a donation."""

    @abstractmethod
    def add_member(self, member: Member) -> Member:
        """Insert a member."""

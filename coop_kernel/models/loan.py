"""
Module: coop_kernel.models.loan
Responsibility: ORM persistence for member loans and their installment
    payments.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from repository/, services/, domain/, or outer layers.

Invariants enforced:
    - UNIQUE(loan_id, installment_number) on loan_payments: one payment per
      installment per loan.  Checked by the loan ledger first; the
      constraint catches writers that bypass it.
    - Amounts are BigInteger minor units with a currency column.
    - loans.outstanding_balance_units is derived state written only from
      the ledger's recomputation.

Failure modes:
    - IntegrityError on a duplicate installment (uq_loan_payment_installment).
    - IntegrityError on a payment for an unknown loan (foreign key).
"""

from datetime import date
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from coop_kernel.db.base import TimestampedBase, UUIDString


class LoanModel(TimestampedBase):
    """A member loan (pinjaman)."""

    __tablename__ = "loans"

    __table_args__ = (
        Index("idx_loan_member", "member_id"),
        Index("idx_loan_status", "status"),
        CheckConstraint("tenor_months >= 1", name="ck_loan_tenor_positive"),
        CheckConstraint(
            "outstanding_balance_units >= 0", name="ck_loan_outstanding_nonnegative",
        ),
    )

    member_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("members.id"),
        nullable=False,
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    principal_units: Mapped[int] = mapped_column(nullable=False)

    # Exact decimal text, e.g. "12" or "12.5"
    annual_rate_percent: Mapped[str] = mapped_column(String(20), nullable=False)

    tenor_months: Mapped[int] = mapped_column(nullable=False)

    monthly_installment_units: Mapped[int] = mapped_column(nullable=False)

    origination_date: Mapped[date] = mapped_column(nullable=False)

    # pending / active / paid_off / rejected
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    outstanding_balance_units: Mapped[int] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Loan {self.id}: {self.status} {self.outstanding_balance_units} {self.currency}>"


class LoanPaymentModel(TimestampedBase):
    """One installment payment (angsuran)."""

    __tablename__ = "loan_payments"

    __table_args__ = (
        UniqueConstraint(
            "loan_id", "installment_number", name="uq_loan_payment_installment",
        ),
        Index("idx_loan_payment_date", "payment_date"),
        CheckConstraint("installment_number >= 1", name="ck_installment_positive"),
    )

    loan_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("loans.id"),
        nullable=False,
    )

    installment_number: Mapped[int] = mapped_column(nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    principal_units: Mapped[int] = mapped_column(nullable=False)

    interest_units: Mapped[int] = mapped_column(nullable=False)

    payment_date: Mapped[date] = mapped_column(nullable=False)

    # on_time / late
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<LoanPayment {self.loan_id}#{self.installment_number}>"

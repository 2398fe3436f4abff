"""
SqlAlchemyLedgerRepository -- LedgerRepository over the ORM models.

Responsibility:
    Converts between ORM rows and frozen domain records at the persistence
    boundary, and translates database constraint failures into
    ConstraintViolationError.

Architecture position:
    Kernel > Repository -- imperative shell.  Accepts a Session from the
    caller and only ever flushes; the caller owns commit and rollback.

Failure modes:
    - LoanNotFoundError when a loan id has no row.
    - PaymentNotFoundError when deleting a payment that has no row.
    - ConstraintViolationError on IntegrityError.  The session is rolled
      back first, so the caller's transaction restarts clean.

Transaction hooks:
    ``hold_until_transaction_end`` keeps a callback pending until the
    session's outermost transaction commits, rolls back or is closed.
    Pending callbacks live in ``session.info``; one listener per session.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import event, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coop_kernel.domain.dtos import (
    AuthorizationStatus,
    Donation,
    Due,
    DueStatus,
    Expense,
    Loan,
    LoanPayment,
    LoanStatus,
    Member,
    MemberStatus,
    PaymentStatus,
    Period,
)
from coop_kernel.domain.values import Money
from coop_kernel.exceptions import (
    ConstraintViolationError,
    LoanNotFoundError,
    PaymentNotFoundError,
)
from coop_kernel.logging_config import get_logger
from coop_kernel.models import (
    DonationModel,
    DueModel,
    ExpenseModel,
    LoanModel,
    LoanPaymentModel,
    MemberModel,
)
from coop_kernel.repository.base import LedgerRepository

logger = get_logger("repository")


def _month_index(year: int, month: int) -> int:
    return year * 12 + month


_PENDING_RELEASES = "coop_pending_releases"


def _release_pending(session: Session, transaction) -> None:
    if transaction.parent is not None:
        return
    pending = session.info.get(_PENDING_RELEASES)
    while pending:
        pending.pop()()


class SqlAlchemyLedgerRepository(LedgerRepository):
    """
    Repository backed by a caller-owned SQLAlchemy session.

    All public methods return domain records, not ORM entities.
    """

    def __init__(self, session: Session):
        self.session = session

    # =====================================================================
    # Conversion
    # =====================================================================

    def _loan_to_dto(self, row: LoanModel) -> Loan:
        return Loan(
            id=row.id,
            member_id=row.member_id,
            principal=Money.from_minor(row.principal_units, row.currency),
            annual_rate_percent=Decimal(row.annual_rate_percent),
            tenor_months=row.tenor_months,
            monthly_installment=Money.from_minor(
                row.monthly_installment_units, row.currency,
            ),
            origination_date=row.origination_date,
            status=LoanStatus(row.status),
            outstanding_balance=Money.from_minor(
                row.outstanding_balance_units, row.currency,
            ),
        )

    def _copy_loan(self, loan: Loan, row: LoanModel) -> None:
        row.member_id = loan.member_id
        row.currency = loan.principal.currency.code
        row.principal_units = loan.principal.minor_units
        row.annual_rate_percent = str(loan.annual_rate_percent)
        row.tenor_months = loan.tenor_months
        row.monthly_installment_units = loan.monthly_installment.minor_units
        row.origination_date = loan.origination_date
        row.status = loan.status.value
        row.outstanding_balance_units = loan.outstanding_balance.minor_units

    def _payment_to_dto(self, row: LoanPaymentModel) -> LoanPayment:
        return LoanPayment(
            id=row.id,
            loan_id=row.loan_id,
            installment_number=row.installment_number,
            principal_portion=Money.from_minor(row.principal_units, row.currency),
            interest_portion=Money.from_minor(row.interest_units, row.currency),
            payment_date=row.payment_date,
            status=PaymentStatus(row.status),
        )

    def _due_to_dto(self, row: DueModel) -> Due:
        return Due(
            id=row.id,
            member_id=row.member_id,
            month=row.month,
            year=row.year,
            mandatory_amount=Money.from_minor(row.mandatory_units, row.currency),
            voluntary_amount=Money.from_minor(row.voluntary_units, row.currency),
            mandatory_savings_amount=Money.from_minor(
                row.mandatory_savings_units, row.currency,
            ),
            status=DueStatus(row.status),
        )

    def _expense_to_dto(self, row: ExpenseModel) -> Expense:
        return Expense(
            id=row.id,
            category=row.category,
            description=row.description,
            amount=Money.from_minor(row.amount_units, row.currency),
            date=row.date,
            authorization_status=AuthorizationStatus(row.authorization_status),
        )

    def _donation_to_dto(self, row: DonationModel) -> Donation:
        return Donation(
            id=row.id,
            source=row.source,
            amount=Money.from_minor(row.amount_units, row.currency),
            date=row.date,
        )

    def _flush(self, entity: str, constraint: str) -> None:
        try:
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(
                "constraint_violation",
                extra={"entity": entity, "constraint": constraint},
            )
            raise ConstraintViolationError(entity, constraint, str(e.orig)) from e

    # =====================================================================
    # Loans
    # =====================================================================

    def _get_loan_row(self, loan_id: UUID, *, for_update: bool = False) -> LoanModel:
        stmt = select(LoanModel).where(LoanModel.id == loan_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        row = self.session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise LoanNotFoundError(str(loan_id))
        return row

    def get_loan(self, loan_id: UUID, *, for_update: bool = False) -> Loan:
        return self._loan_to_dto(self._get_loan_row(loan_id, for_update=for_update))

    def hold_until_transaction_end(self, release: Callable[[], None]) -> None:
        if not self.session.in_transaction():
            release()
            return
        pending = self.session.info.get(_PENDING_RELEASES)
        if pending is None:
            pending = self.session.info[_PENDING_RELEASES] = []
            event.listen(self.session, "after_transaction_end", _release_pending)
        pending.append(release)

    def add_loan(self, loan: Loan) -> Loan:
        row = LoanModel(id=loan.id)
        self._copy_loan(loan, row)
        self.session.add(row)
        self._flush("loan", "loans_pkey")
        return loan

    def save_loan(self, loan: Loan) -> Loan:
        row = self._get_loan_row(loan.id)
        self._copy_loan(loan, row)
        self._flush("loan", "ck_loan_outstanding_nonnegative")
        return loan

    def list_loans(self) -> list[Loan]:
        stmt = select(LoanModel).order_by(LoanModel.origination_date, LoanModel.id)
        return [self._loan_to_dto(r) for r in self.session.execute(stmt).scalars()]

    # =====================================================================
    # Payments
    # =====================================================================

    def list_payments(self, loan_id: UUID) -> list[LoanPayment]:
        stmt = (
            select(LoanPaymentModel)
            .where(LoanPaymentModel.loan_id == loan_id)
            .order_by(LoanPaymentModel.installment_number)
        )
        return [self._payment_to_dto(r) for r in self.session.execute(stmt).scalars()]

    def list_all_payments(self) -> list[LoanPayment]:
        stmt = select(LoanPaymentModel).order_by(
            LoanPaymentModel.payment_date,
            LoanPaymentModel.loan_id,
            LoanPaymentModel.installment_number,
        )
        return [self._payment_to_dto(r) for r in self.session.execute(stmt).scalars()]

    def insert_payment(self, payment: LoanPayment) -> LoanPayment:
        self.session.add(
            LoanPaymentModel(
                id=payment.id,
                loan_id=payment.loan_id,
                installment_number=payment.installment_number,
                currency=payment.principal_portion.currency.code,
                principal_units=payment.principal_portion.minor_units,
                interest_units=payment.interest_portion.minor_units,
                payment_date=payment.payment_date,
                status=payment.status.value,
            )
        )
        self._flush("loan_payment", "uq_loan_payment_installment")
        return payment

    def delete_payment(self, payment_id: UUID, loan_id: UUID | None = None) -> None:
        row = self.session.get(LoanPaymentModel, payment_id)
        if row is None or (loan_id is not None and row.loan_id != loan_id):
            loan_ref = str(loan_id) if loan_id is not None else "unknown"
            raise PaymentNotFoundError(loan_ref, str(payment_id))
        self.session.delete(row)
        self.session.flush()

    # =====================================================================
    # Dues
    # =====================================================================

    def list_dues(
        self,
        member_id: UUID | None = None,
        period: Period | None = None,
    ) -> list[Due]:
        stmt = select(DueModel)
        if member_id is not None:
            stmt = stmt.where(DueModel.member_id == member_id)
        if period is not None:
            month_index = DueModel.year * 12 + DueModel.month
            stmt = stmt.where(
                month_index >= _month_index(period.start.year, period.start.month),
                month_index <= _month_index(period.end.year, period.end.month),
            )
        stmt = stmt.order_by(DueModel.year, DueModel.month, DueModel.member_id)
        return [self._due_to_dto(r) for r in self.session.execute(stmt).scalars()]

    def add_due(self, due: Due) -> Due:
        self.session.add(
            DueModel(
                id=due.id,
                member_id=due.member_id,
                month=due.month,
                year=due.year,
                currency=due.mandatory_amount.currency.code,
                mandatory_units=due.mandatory_amount.minor_units,
                voluntary_units=due.voluntary_amount.minor_units,
                mandatory_savings_units=due.mandatory_savings_amount.minor_units,
                status=due.status.value,
            )
        )
        self._flush("due", "uq_due_member_month")
        return due

    # =====================================================================
    # Expenses and donations
    # =====================================================================

    def list_approved_expenses(self, period: Period | None = None) -> list[Expense]:
        stmt = select(ExpenseModel).where(
            ExpenseModel.authorization_status == AuthorizationStatus.APPROVED.value
        )
        if period is not None:
            stmt = stmt.where(
                ExpenseModel.date >= period.start,
                ExpenseModel.date <= period.end,
            )
        stmt = stmt.order_by(ExpenseModel.date, ExpenseModel.id)
        return [self._expense_to_dto(r) for r in self.session.execute(stmt).scalars()]

    def add_expense(self, expense: Expense) -> Expense:
        self.session.add(
            ExpenseModel(
                id=expense.id,
                category=expense.category,
                description=expense.description,
                currency=expense.amount.currency.code,
                amount_units=expense.amount.minor_units,
                date=expense.date,
                authorization_status=expense.authorization_status.value,
            )
        )
        self._flush("expense", "expenses_pkey")
        return expense

    def list_donations(self, period: Period | None = None) -> list[Donation]:
        stmt = select(DonationModel)
        if period is not None:
            stmt = stmt.where(
                DonationModel.date >= period.start,
                DonationModel.date <= period.end,
            )
        stmt = stmt.order_by(DonationModel.date, DonationModel.id)
        return [self._donation_to_dto(r) for r in self.session.execute(stmt).scalars()]

    def add_donation(self, donation: Donation) -> Donation:
        self.session.add(
            DonationModel(
                id=donation.id,
                source=donation.source,
                currency=donation.amount.currency.code,
                amount_units=donation.amount.minor_units,
                date=donation.date,
            )
        )
        self._flush("donation", "donations_pkey")
        return donation

    # =====================================================================
    # Members
    # =====================================================================

    def add_member(self, member: Member) -> Member:
        self.session.add(
            MemberModel(
                id=member.id,
                member_code=member.member_code,
                display_name=member.display_name,
                status=member.status.value,
            )
        )
        self._flush("member", "uq_member_code")
        return member

    def get_member(self, member_id: UUID) -> Member | None:
        row = self.session.get(MemberModel, member_id)
        if row is None:
            return None
        return Member(
            id=row.id,
            member_code=row.member_code,
            display_name=row.display_name,
            status=MemberStatus(row.status),
        )

"""
DTOs -- Pure domain entities for the loan ledger and reconciliation.

Responsibility:
    Defines the immutable records that flow between the repository, the
    loan ledger, the dues aggregator and the period reconciler: Member,
    Loan, LoanPayment, Due, Expense, Donation and Period.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies; the repository converts ORM rows to these
    records at the persistence boundary.

Invariants enforced:
    - Every monetary field is a Money value object (never Decimal/float).
    - Records are frozen; changes produce a new record via ``replace``.
    - Period end is never before period start (InvalidPeriodError).
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from coop_kernel.domain.values import Money
from coop_kernel.exceptions import InvalidPeriodError


class MemberStatus(str, Enum):
    """Membership state as kept by the membership subsystem."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class LoanStatus(str, Enum):
    """
    Loan lifecycle.

    pending -> active -> paid_off (and back to active on reversal)
    pending -> rejected
    """

    PENDING = "pending"
    ACTIVE = "active"
    PAID_OFF = "paid_off"
    REJECTED = "rejected"

    @property
    def is_disbursed(self) -> bool:
        """Money left the cooperative's cash for this loan."""
        return self in (LoanStatus.ACTIVE, LoanStatus.PAID_OFF)


class PaymentStatus(str, Enum):
    """Whether an installment was paid by its scheduled due date."""

    ON_TIME = "on_time"
    LATE = "late"


class DueStatus(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"


class AuthorizationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Period:
    """Inclusive calendar date range."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidPeriodError(self.start.isoformat(), self.end.isoformat())

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


@dataclass(frozen=True)
class Member:
    """Identity of a cooperative member. Read-only to the engine."""

    member_code: str
    display_name: str
    status: MemberStatus = MemberStatus.ACTIVE
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class Loan:
    """
    A member loan.

    ``outstanding_balance`` is derived state: it always equals
    ``max(0, principal - sum(principal_portion))`` over the loan's recorded
    payments, and only the loan ledger writes it.
    """

    member_id: UUID
    principal: Money
    annual_rate_percent: Decimal
    tenor_months: int
    monthly_installment: Money
    origination_date: date
    status: LoanStatus
    outstanding_balance: Money
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if isinstance(self.annual_rate_percent, float):
            raise TypeError("annual_rate_percent must not be float")
        if not isinstance(self.annual_rate_percent, Decimal):
            object.__setattr__(
                self, "annual_rate_percent", Decimal(str(self.annual_rate_percent)),
            )

    def with_changes(self, **changes) -> Loan:
        return replace(self, **changes)


@dataclass(frozen=True)
class LoanPayment:
    """One installment payment. Never updated in place."""

    loan_id: UUID
    installment_number: int
    principal_portion: Money
    interest_portion: Money
    payment_date: date
    status: PaymentStatus = PaymentStatus.ON_TIME
    id: UUID = field(default_factory=uuid4)

    @property
    def total(self) -> Money:
        """Total collected for the installment."""
        return self.principal_portion + self.interest_portion


@dataclass(frozen=True)
class Due:
    """
    A member's contributions for one calendar month.

    ``mandatory_amount`` is iuran wajib (organisational capital),
    ``voluntary_amount`` is simpanan sukarela and
    ``mandatory_savings_amount`` is simpanan wajib; both savings are owed
    back to the member.
    """

    member_id: UUID
    month: int
    year: int
    mandatory_amount: Money
    voluntary_amount: Money
    mandatory_savings_amount: Money | None = None
    status: DueStatus = DueStatus.PAID
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be in 1..12, got {self.month}")
        if self.mandatory_savings_amount is None:
            object.__setattr__(
                self,
                "mandatory_savings_amount",
                Money.zero(self.mandatory_amount.currency),
            )

    @property
    def month_start(self) -> date:
        return month_bounds(self.year, self.month)[0]

    @property
    def month_end(self) -> date:
        return month_bounds(self.year, self.month)[1]

    def intersects(self, period: Period) -> bool:
        return self.month_start <= period.end and self.month_end >= period.start


@dataclass(frozen=True)
class Expense:
    """An operating expense; only approved ones reach the reconciler."""

    category: str
    amount: Money
    date: date
    authorization_status: AuthorizationStatus = AuthorizationStatus.PENDING
    description: str = ""
    id: UUID = field(default_factory=uuid4)

    @property
    def is_approved(self) -> bool:
        return self.authorization_status == AuthorizationStatus.APPROVED


@dataclass(frozen=True)
class Donation:
    """Cash received as a gift to the cooperative (donasi)."""

    source: str
    amount: Money
    date: date
    id: UUID = field(default_factory=uuid4)

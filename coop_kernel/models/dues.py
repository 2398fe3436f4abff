"""
Module: coop_kernel.models.dues
Responsibility: ORM persistence for monthly member dues (iuran).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - UNIQUE(member_id, month, year): at most one Due row per member per
      calendar month.

Failure modes:
    - IntegrityError on a second row for the same member and month
      (uq_due_member_month).
"""

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from coop_kernel.db.base import TimestampedBase, UUIDString


class DueModel(TimestampedBase):
    """A member's contributions for one month."""

    __tablename__ = "dues"

    __table_args__ = (
        UniqueConstraint("member_id", "month", "year", name="uq_due_member_month"),
        Index("idx_due_year_month", "year", "month"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_due_month_range"),
    )

    member_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("members.id"),
        nullable=False,
    )

    month: Mapped[int] = mapped_column(nullable=False)

    year: Mapped[int] = mapped_column(nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    # iuran wajib
    mandatory_units: Mapped[int] = mapped_column(nullable=False, default=0)

    # simpanan sukarela
    voluntary_units: Mapped[int] = mapped_column(nullable=False, default=0)

    # simpanan wajib
    mandatory_savings_units: Mapped[int] = mapped_column(nullable=False, default=0)

    # paid / unpaid
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="paid")

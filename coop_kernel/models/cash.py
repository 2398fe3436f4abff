"""
Module: coop_kernel.models.cash
Responsibility: ORM persistence for the cash-book lines the reconciler reads
    besides dues and loans: operating expenses and donations.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

import datetime as dt

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from coop_kernel.db.base import TimestampedBase


class ExpenseModel(TimestampedBase):
    """An operating expense (pengeluaran)."""

    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expense_date", "date"),
        Index("idx_expense_authorization", "authorization_status"),
    )

    category: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str] = mapped_column(String(4000), nullable=False, default="")

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    amount_units: Mapped[int] = mapped_column(nullable=False)

    date: Mapped[dt.date] = mapped_column(nullable=False)

    # pending / approved / rejected
    authorization_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )


class DonationModel(TimestampedBase):
    """Cash received as a donation (donasi)."""

    __tablename__ = "donations"

    __table_args__ = (Index("idx_donation_date", "date"),)

    source: Mapped[str] = mapped_column(String(255), nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    amount_units: Mapped[int] = mapped_column(nullable=False)

    date: Mapped[dt.date] = mapped_column(nullable=False)

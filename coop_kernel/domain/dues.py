"""
Dues aggregation over calendar-month records.

A Due row covers a whole month, so a period "contains" a Due when the two
ranges intersect.  Months with no row contribute zero.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from coop_kernel.domain.dtos import Due, Period
from coop_kernel.domain.values import Currency, Money


@dataclass(frozen=True)
class DuesTotals:
    """Summed contributions for a set of Due rows."""

    mandatory: Money
    voluntary: Money
    mandatory_savings: Money
    count: int

    @property
    def total(self) -> Money:
        return self.mandatory + self.voluntary + self.mandatory_savings

    @property
    def savings(self) -> Money:
        """The portion owed back to members."""
        return self.voluntary + self.mandatory_savings

    @classmethod
    def empty(cls, currency: str | Currency) -> DuesTotals:
        zero = Money.zero(currency)
        return cls(mandatory=zero, voluntary=zero, mandatory_savings=zero, count=0)


def _aggregate(
    dues: Iterable[Due],
    currency: str | Currency,
    include: Callable[[Due], bool],
    member_id: UUID | None,
) -> DuesTotals:
    totals = DuesTotals.empty(currency)
    for due in dues:
        if member_id is not None and due.member_id != member_id:
            continue
        if not include(due):
            continue
        totals = DuesTotals(
            mandatory=totals.mandatory + due.mandatory_amount,
            voluntary=totals.voluntary + due.voluntary_amount,
            mandatory_savings=totals.mandatory_savings + due.mandatory_savings_amount,
            count=totals.count + 1,
        )
    return totals


def totals_for(
    dues: Iterable[Due],
    period: Period,
    currency: str | Currency,
    member_id: UUID | None = None,
) -> DuesTotals:
    """Dues whose month intersects ``period``; all members when member_id is None."""
    return _aggregate(dues, currency, lambda d: d.intersects(period), member_id)


def cumulative_through(
    dues: Iterable[Due],
    as_of: date,
    currency: str | Currency,
    member_id: UUID | None = None,
) -> DuesTotals:
    """Every Due whose month starts on or before ``as_of``."""
    return _aggregate(dues, currency, lambda d: d.month_start <= as_of, member_id)


def totals_before(
    dues: Iterable[Due],
    start: date,
    currency: str | Currency,
    member_id: UUID | None = None,
) -> DuesTotals:
    """Every Due whose month ends before ``start``."""
    return _aggregate(dues, currency, lambda d: d.month_end < start, member_id)

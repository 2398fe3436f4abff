"""
Amortization -- flat-rate loan terms and per-installment interest.

Two interest computations live side by side in the cooperative's books and
are deliberately NOT unified:

* ``compute_amortization`` -- the flat figure printed on loan reports:
  ``interest_total = principal * rate/100 * tenor/12``.
* ``installment_interest`` -- what is actually booked on each installment:
  ``outstanding * rate/100 / 12`` against the balance remaining at payment
  time (reducing-balance style).

For a loan repaid in equal principal installments the second sums to less
than the first whenever rate > 0.  Which one is authoritative is a
question for the cooperative's treasurer.

Pure functions, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from coop_kernel.domain.values import Money
from coop_kernel.exceptions import InvalidLoanTermsError

# percent (100) times months per year (12)
_PERCENT_MONTHS = Decimal("1200")


@dataclass(frozen=True)
class AmortizationResult:
    """Installment parameters fixed when a loan is created."""

    monthly_installment: Money
    interest_total: Money
    total_with_interest: Money


def _as_rate(annual_rate_percent: Decimal | int | str) -> Decimal:
    if isinstance(annual_rate_percent, float):
        raise TypeError("annual_rate_percent must not be float")
    try:
        return Decimal(str(annual_rate_percent))
    except (InvalidOperation, ValueError) as e:
        raise InvalidLoanTermsError(
            "annual_rate_percent", str(annual_rate_percent), "not a number",
        ) from e


def validate_terms(
    principal: Money,
    annual_rate_percent: Decimal | int | str,
    tenor_months: int,
) -> Decimal:
    """
    Check loan terms and return the rate as a Decimal.

    Raises:
        InvalidLoanTermsError: principal <= 0, tenor < 1 or rate < 0.
    """
    rate = _as_rate(annual_rate_percent)
    if not principal.is_positive:
        raise InvalidLoanTermsError("principal", str(principal), "must be positive")
    if isinstance(tenor_months, bool) or not isinstance(tenor_months, int) or tenor_months < 1:
        raise InvalidLoanTermsError(
            "tenor_months", str(tenor_months), "must be an integer >= 1",
        )
    if rate < 0 or not rate.is_finite():
        raise InvalidLoanTermsError(
            "annual_rate_percent", str(rate), "must be zero or positive",
        )
    return rate


def compute_amortization(
    principal: Money,
    annual_rate_percent: Decimal | int | str,
    tenor_months: int,
) -> AmortizationResult:
    """
    Flat-rate terms for a new loan.

    ``monthly_installment`` covers principal only (equal principal
    installments); interest is collected per installment separately.

    Example:
        10,000,000 at 12% over 10 months -> installment 1,000,000,
        interest 1,000,000, total 11,000,000.
    """
    rate = validate_terms(principal, annual_rate_percent, tenor_months)

    interest_total = principal.multiply_by_rate(rate * tenor_months, per=_PERCENT_MONTHS)
    return AmortizationResult(
        monthly_installment=principal.divide(tenor_months),
        interest_total=interest_total,
        total_with_interest=principal + interest_total,
    )


def installment_interest(
    outstanding_balance: Money,
    annual_rate_percent: Decimal | int | str,
) -> Money:
    """One month of interest on the balance remaining at payment time."""
    rate = _as_rate(annual_rate_percent)
    return outstanding_balance.cap_at_zero().multiply_by_rate(rate, per=_PERCENT_MONTHS)

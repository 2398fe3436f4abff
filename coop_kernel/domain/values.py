"""
Values -- Immutable, self-validating money value objects.

Responsibility:
    Provides Currency and Money, the only representation of amounts in the
    engine.  Money stores an integer count of the currency's smallest unit
    so that summing thousands of installments never drifts.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module.

Invariants enforced:
    - Amounts are integers in minor units; float input is rejected.
    - Arithmetic never mixes currencies (CurrencyMismatchError).
    - Scaling by a rate or dividing rounds half-up to the nearest unit,
      exactly once per operation.

Failure modes:
    - TypeError on float or non-integer minor units.
    - ValueError on unknown currency codes or unparsable amounts.
    - CurrencyMismatchError when arithmetic mixes currencies.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from coop_kernel.domain.currency import CurrencyRegistry
from coop_kernel.exceptions import CurrencyMismatchError


def _to_decimal(value: Decimal | int | str, what: str) -> Decimal:
    if isinstance(value, float):
        raise TypeError(f"{what} must not be float, got {value!r}")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid {what}: {value!r}") from e


def _round_units(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Validated and normalized (uppercased) on construction.
    """

    code: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", CurrencyRegistry.validate(self.code))

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount held as integer minor units.

    Contract:
        ``minor_units`` is the count of the currency's smallest unit
        (sen for IDR).  ``amount`` exposes the same value in major units as
        a Decimal for display and serialization.

    Guarantees:
        - Immutable and hashable.
        - Equality is exact: same currency and same unit count.
        - Ordering comparisons refuse to compare across currencies.

    Non-goals:
        - Does NOT convert between currencies.
    """

    minor_units: int
    currency: Currency

    def __post_init__(self) -> None:
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise TypeError(
                f"minor_units must be int, got {type(self.minor_units).__name__}"
            )
        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """
        Create Money from an amount in major units.

        Amounts finer than the currency's minor unit are rounded half-up.

        Raises:
            TypeError: If amount is a float.
            ValueError: If amount is not numeric or the currency is unknown.
        """
        if isinstance(currency, str):
            currency = Currency(currency)
        value = _to_decimal(amount, "amount")
        return cls(_round_units(value.scaleb(currency.decimal_places)), currency)

    @classmethod
    def from_minor(cls, minor_units: int, currency: str | Currency) -> Money:
        """Create Money from a count of minor units."""
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(minor_units, currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        return cls.from_minor(0, currency)

    @classmethod
    def unit(cls, currency: str | Currency) -> Money:
        """The smallest representable amount: one minor unit."""
        return cls.from_minor(1, currency)

    @property
    def amount(self) -> Decimal:
        """Value in major units, always at the currency's precision (0.00, not 0E-2)."""
        exponent = Decimal(1).scaleb(-self.currency.decimal_places)
        return Decimal(self.minor_units).scaleb(-self.currency.decimal_places).quantize(exponent)

    @property
    def is_zero(self) -> bool:
        return self.minor_units == 0

    @property
    def is_positive(self) -> bool:
        return self.minor_units > 0

    @property
    def is_negative(self) -> bool:
        return self.minor_units < 0

    def _check_currency(self, other: Money, operation: str) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(
                self.currency.code, other.currency.code, operation,
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "add")
        return Money(self.minor_units + other.minor_units, self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "subtract")
        return Money(self.minor_units - other.minor_units, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.minor_units, self.currency)

    def __abs__(self) -> Money:
        return Money(abs(self.minor_units), self.currency)

    def multiply_by_rate(
        self,
        rate: Decimal | int | str,
        per: Decimal | int | str = 1,
    ) -> Money:
        """
        Scale by ``rate / per``, rounding half-up to the nearest minor unit.

        The product is formed before dividing, so the result is rounded once.
        """
        factor = _to_decimal(rate, "rate")
        divisor = _to_decimal(per, "per")
        if divisor == 0:
            raise ZeroDivisionError("rate divisor must not be zero")
        value = Decimal(self.minor_units) * factor / divisor
        return Money(_round_units(value), self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        if isinstance(factor, Money):
            return NotImplemented
        return self.multiply_by_rate(factor)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def divide(self, divisor: Decimal | int | str) -> Money:
        """Divide by a scalar, rounding half-up to the nearest minor unit."""
        value = _to_decimal(divisor, "divisor")
        if value == 0:
            raise ZeroDivisionError("Cannot divide Money by zero")
        return Money(_round_units(Decimal(self.minor_units) / value), self.currency)

    def __truediv__(self, divisor: Decimal | int | str) -> Money:
        if isinstance(divisor, Money):
            return NotImplemented
        return self.divide(divisor)

    def cap_at_zero(self) -> Money:
        """max(0, self) -- used wherever a balance could dip below zero."""
        if self.minor_units < 0:
            return Money(0, self.currency)
        return self

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.minor_units < other.minor_units

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.minor_units <= other.minor_units

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.minor_units > other.minor_units

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.minor_units >= other.minor_units

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


def sum_money(amounts: Iterable[Money], currency: str | Currency) -> Money:
    """Sum Money values; an empty iterable sums to zero in ``currency``."""
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total

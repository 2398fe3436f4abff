"""
Reporting Configuration Schema.

Controls what the period statement is measured against: the reporting
currency, the cash the cooperative held before its first recorded
transaction, and how far the balance sheet may be off before it is
reported as unbalanced.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Self

from coop_kernel.domain.currency import CurrencyRegistry
from coop_kernel.domain.values import Money
from coop_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    ``initial_cash`` is in major units of ``default_currency`` (e.g.
    "2500000.00").  ``balance_tolerance_units`` is in minor units; one unit
    absorbs a single half-up rounding step.
    """

    # Entity name shown on reports
    entity_name: str = "Koperasi"

    # Currency every amount in the statement is expressed in
    default_currency: str = "IDR"

    # Cash and bank balance before the first recorded transaction
    initial_cash: str = "0"

    # Allowed |assets - (liabilities + equity)|, in minor units
    balance_tolerance_units: int = 1

    def __post_init__(self):
        if not CurrencyRegistry.is_valid(self.default_currency):
            raise ValueError("default_currency must be a known ISO 4217 code")
        if isinstance(self.initial_cash, float):
            raise TypeError("initial_cash must be given as str, int or Decimal")
        try:
            self.initial_cash = str(Decimal(str(self.initial_cash)))
        except InvalidOperation as e:
            raise ValueError(f"initial_cash is not a number: {self.initial_cash!r}") from e
        if self.balance_tolerance_units < 0:
            raise ValueError("balance_tolerance_units cannot be negative")

    @property
    def initial_cash_amount(self) -> Money:
        return Money.of(self.initial_cash, self.default_currency)

    @property
    def tolerance(self) -> Money:
        return Money.from_minor(self.balance_tolerance_units, self.default_currency)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

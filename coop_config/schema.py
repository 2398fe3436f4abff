"""
Configuration schema (``coop_config.schema``).

Frozen dataclasses describing one cooperative's deployment settings.
Validation happens on construction, so a loaded config is always usable.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from coop_kernel.domain.currency import CurrencyRegistry


@dataclass(frozen=True)
class CooperativeConfig:
    """
    Deployment settings for one cooperative.

    ``initial_cash`` is a major-unit decimal string in ``currency``.
    ``balance_tolerance_units`` is the balance-sheet tolerance in minor
    units.
    """

    entity_name: str
    currency: str = "IDR"
    initial_cash: str = "0"
    balance_tolerance_units: int = 1
    database_url: str = "sqlite:///koperasi.db"
    config_id: str = "default"
    version: int = 1

    def __post_init__(self) -> None:
        if not self.entity_name:
            raise ValueError("entity_name must not be empty")
        if not CurrencyRegistry.is_valid(self.currency):
            raise ValueError(f"Unknown currency code: {self.currency!r}")
        object.__setattr__(self, "currency", CurrencyRegistry.validate(self.currency))
        try:
            Decimal(str(self.initial_cash))
        except InvalidOperation as e:
            raise ValueError(f"initial_cash is not a number: {self.initial_cash!r}") from e
        if isinstance(self.balance_tolerance_units, bool) or not isinstance(
            self.balance_tolerance_units, int
        ):
            raise ValueError("balance_tolerance_units must be an integer")
        if self.balance_tolerance_units < 0:
            raise ValueError("balance_tolerance_units cannot be negative")
        if not self.database_url:
            raise ValueError("database_url must not be empty")

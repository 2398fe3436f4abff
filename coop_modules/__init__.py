"""Cooperative modules: period reporting and the engine facade."""

from coop_modules.engine import PAYOFF, CooperativeEngine, reporting_config_from

__all__ = ["PAYOFF", "CooperativeEngine", "reporting_config_from"]

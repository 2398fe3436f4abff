"""
Period Reporting Module (``coop_modules.reporting``).

Responsibility
--------------
Read-only module that rolls dues, loan payments, donations, approved
expenses and loan disbursements up into a period statement whose balance
sheet must satisfy Assets = Liabilities + Equity.

Invariants enforced
-------------------
* Nothing is written by this module.
* An unbalanced sheet is reported with its delta, never corrected.
"""

from coop_modules.reporting.config import ReportingConfig
from coop_modules.reporting.models import (
    AssetsSection,
    BalanceSheet,
    EquitySection,
    ExpenseBreakdown,
    IncomeBreakdown,
    LiabilitiesSection,
    LineItem,
    PeriodStatement,
    ReconciliationResult,
    ReportMetadata,
    ReportType,
)
from coop_modules.reporting.service import ReportingService
from coop_modules.reporting.statements import reconcile, render_to_dict

__all__ = [
    # Service
    "ReportingService",
    # Config
    "ReportingConfig",
    # Pure functions
    "reconcile",
    "render_to_dict",
    # Models
    "ReportType",
    "ReportMetadata",
    "LineItem",
    "IncomeBreakdown",
    "ExpenseBreakdown",
    "AssetsSection",
    "LiabilitiesSection",
    "EquitySection",
    "BalanceSheet",
    "PeriodStatement",
    "ReconciliationResult",
]

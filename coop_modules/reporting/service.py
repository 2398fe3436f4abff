"""
Reporting Module Service (``coop_modules.reporting.service``).

Responsibility
--------------
Loads the full history through the repository and hands it to the pure
reconciliation in ``statements.py``.  This is a **read-only** service: it
never writes and takes no locks.  Callers wanting a consistent snapshot
run it inside a single transaction.

Architecture position
---------------------
**Modules layer** -- thin glue.  Constructor: ``repository`` + ``clock`` +
``config``.

Failure modes
-------------
* Period end before start -> ``InvalidPeriodError`` before any query.
* An unbalanced sheet is NOT raised: it is logged at WARNING and returned
  as ``ReconciliationResult.error``.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from coop_kernel.domain.clock import Clock, SystemClock
from coop_kernel.domain.dtos import Period
from coop_kernel.domain.dues import DuesTotals, totals_for
from coop_kernel.logging_config import LogContext, get_logger
from coop_kernel.repository.base import LedgerRepository

from coop_modules.reporting.config import ReportingConfig
from coop_modules.reporting.models import (
    ReconciliationResult,
    ReportMetadata,
    ReportType,
)
from coop_modules.reporting.statements import reconcile, render_to_dict

logger = get_logger("modules.reporting.service")


class ReportingService:
    """
    Period statement generation service.

    Guarantees
    ----------
    * No financial logic lives in this class; it only loads and delegates.
    * Clock is injectable, so metadata timestamps are reproducible.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._repository = repository
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()

        logger.info(
            "reporting_service_initialized",
            extra={
                "entity_name": self._config.entity_name,
                "default_currency": self._config.default_currency,
            },
        )

    def _build_metadata(self, report_type: ReportType, period: Period) -> ReportMetadata:
        """Build report metadata with injected clock timestamp."""
        return ReportMetadata(
            report_type=report_type,
            entity_name=self._config.entity_name,
            currency=self._config.default_currency,
            generated_at=self._clock.now().isoformat(),
            period_start=period.start,
            period_end=period.end,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def reconcile_period(self, start: date, end: date) -> ReconciliationResult:
        """
        Produce the period statement for ``start``..``end`` (inclusive).

        Returns:
            ReconciliationResult; ``error`` is set when the balance sheet
            does not balance within tolerance.
        """
        period = Period(start, end)
        with LogContext.bind(period=period):
            result = reconcile(
                period,
                loans=self._repository.list_loans(),
                payments=self._repository.list_all_payments(),
                dues=self._repository.list_dues(),
                expenses=self._repository.list_approved_expenses(),
                donations=self._repository.list_donations(),
                config=self._config,
                metadata=self._build_metadata(ReportType.PERIOD_STATEMENT, period),
            )

            statement = result.statement
            if result.error is None:
                logger.info(
                    "period_reconciled",
                    extra={
                        "total_income": str(statement.total_income),
                        "total_expenses": str(statement.total_expenses),
                        "ending_balance": str(statement.ending_balance),
                    },
                )
            else:
                logger.warning(
                    "balance_sheet_mismatch",
                    extra={
                        "error_code": result.error.code,
                        "total_assets": result.error.total_assets,
                        "total_liabilities_and_equity": (
                            result.error.total_liabilities_and_equity
                        ),
                        "delta": result.error.delta,
                    },
                )
        return result

    def dues_totals(
        self,
        start: date,
        end: date,
        member_id: UUID | None = None,
    ) -> DuesTotals:
        """Dues for months intersecting ``start``..``end``; all members when member_id is None."""
        period = Period(start, end)
        dues = self._repository.list_dues(member_id=member_id, period=period)
        return totals_for(dues, period, self._config.default_currency, member_id)

    def to_dict(self, result: ReconciliationResult) -> dict:
        """Convert a reconciliation result to a plain dict for renderers."""
        return render_to_dict(result)

"""
recon_services.reconciliation_orchestrator -- One batch pass for a program.

Responsibility:
    For each location of a program, in order: POS reconcile, cash
    reconcile, then (when enabled) the POS and cash exception sweeps with
    the cutoff ``date_range.min_date`` minus ``exception_lag_business_days``.
    Collects the per-location summaries into a ProgramReconciliationResult.

Architecture position:
    Services -- orchestration over the cash and POS services.  Builds the
    SQL stores per location from the session the unit of work yields.

Invariants enforced:
    - One location == one unit of work: every store write for a location
      commits together or rolls back together.
    - Locations are processed sequentially; overlapping scopes must not be
      run concurrently by callers.

Failure modes:
    - A store or transition error for one location rolls that location
      back and propagates; earlier locations stay committed.
    - LocationNotFoundError when an explicit location id is unknown.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import date
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session

from recon_config.bridges import build_pos_engine, reconciled_on_policy
from recon_config.schema import ReconConfig
from recon_kernel.domain.business_days import subtract_business_days
from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.domain.types import DateRange, Location, Program
from recon_kernel.logging_config import LogContext, get_logger
from recon_kernel.stores.sql import (
    SqlCashDepositStore,
    SqlLocationStore,
    SqlPaymentStore,
    SqlPosDepositStore,
)
from recon_services._summary_types import (
    CashReconciliationSummary,
    ExceptionSweepSummary,
    PosReconciliationSummary,
)
from recon_services.cash_reconciliation_service import CashReconciliationService
from recon_services.pos_reconciliation_service import PosReconciliationService

logger = get_logger("services.orchestrator")

UnitOfWork = Callable[[], AbstractContextManager[Session]]


@dataclass(frozen=True)
class LocationReconciliationResult:
    """Everything one location's invocation produced."""

    location_id: int
    pos: PosReconciliationSummary
    cash: CashReconciliationSummary
    exceptions: tuple[ExceptionSweepSummary, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "location_id": self.location_id,
            "pos": self.pos.to_dict(),
            "cash": self.cash.to_dict(),
            "exceptions": [e.to_dict() for e in self.exceptions],
        }


@dataclass(frozen=True)
class ProgramReconciliationResult:
    """Per-location results of one program batch pass."""

    run_id: str
    program: Program
    date_range: DateRange
    exceptions_cutoff: date | None
    locations: tuple[LocationReconciliationResult, ...] = field(default_factory=tuple)

    @property
    def total_matched_payments(self) -> int:
        return sum(
            r.pos.total_matched_payments + r.cash.total_matched_payments
            for r in self.locations
        )

    @property
    def total_matched_deposits(self) -> int:
        return sum(
            r.pos.total_matched_deposits + r.cash.total_matched_deposits
            for r in self.locations
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "program": self.program.value,
            "min_date": self.date_range.min_date.isoformat(),
            "max_date": self.date_range.max_date.isoformat(),
            "exceptions_cutoff": (
                self.exceptions_cutoff.isoformat() if self.exceptions_cutoff else None
            ),
            "total_matched_payments": self.total_matched_payments,
            "total_matched_deposits": self.total_matched_deposits,
            "locations": [r.to_dict() for r in self.locations],
        }


class ReconciliationOrchestrator:
    """
    Runs a program's batch pass location by location.

    Contract:
        ``unit_of_work`` is called once per location and must yield a
        Session, committing on clean exit and rolling back on error
        (``recon_kernel.db.session_scope`` does exactly this).
    """

    def __init__(
        self,
        unit_of_work: UnitOfWork,
        config: ReconConfig | None = None,
        clock: Clock | None = None,
    ):
        self.unit_of_work = unit_of_work
        self.config = config or ReconConfig()
        self.clock = clock or SystemClock()

    def exceptions_cutoff(self, date_range: DateRange) -> date:
        return subtract_business_days(
            date_range.min_date,
            self.config.matching.exception_lag_business_days,
        )

    def _build_services(
        self, session: Session
    ) -> tuple[PosReconciliationService, CashReconciliationService]:
        policy = reconciled_on_policy(self.config)
        payments = SqlPaymentStore(session)
        pos = PosReconciliationService(
            payments,
            SqlPosDepositStore(session),
            clock=self.clock,
            engine=build_pos_engine(self.config),
            reconciled_on_policy=policy,
        )
        cash = CashReconciliationService(
            payments,
            SqlCashDepositStore(session),
            clock=self.clock,
            reconciled_on_policy=policy,
        )
        return pos, cash

    def resolve_locations(
        self,
        program: Program,
        location_ids: Sequence[int] | None = None,
    ) -> list[Location]:
        """Explicit ids, else the configured ids, else every location of the program."""
        ids = list(location_ids or self.config.program(program).location_ids)
        with self.unit_of_work() as session:
            store = SqlLocationStore(session)
            if ids:
                return [store.get(location_id, program) for location_id in ids]
            return store.find_by_program(program)

    def run_location(
        self,
        location: Location,
        date_range: DateRange,
        cutoff: date | None,
    ) -> LocationReconciliationResult:
        with self.unit_of_work() as session:
            pos, cash = self._build_services(session)
            pos_summary = pos.reconcile(location, date_range)
            cash_summary = cash.reconcile_cash(location, date_range)
            exceptions: tuple[ExceptionSweepSummary, ...] = ()
            if cutoff is not None:
                exceptions = (
                    pos.set_exceptions(location, cutoff),
                    cash.set_exceptions(location, cutoff),
                )
        return LocationReconciliationResult(
            location_id=location.location_id,
            pos=pos_summary,
            cash=cash_summary,
            exceptions=exceptions,
        )

    def run(
        self,
        program: Program,
        date_range: DateRange,
        locations: Sequence[Location] | None = None,
    ) -> ProgramReconciliationResult:
        run_id = str(uuid4())
        with LogContext.bind(run_id=run_id, program=program.value):
            t0 = time.monotonic()
            program_config = self.config.program(program)
            if not program_config.enabled:
                logger.info("program_disabled", extra={"program_code": program.value})
                return ProgramReconciliationResult(
                    run_id=run_id,
                    program=program,
                    date_range=date_range,
                    exceptions_cutoff=None,
                )

            if locations is None:
                locations = self.resolve_locations(program)
            cutoff = (
                self.exceptions_cutoff(date_range)
                if self.config.matching.sweep_exceptions
                else None
            )

            logger.info(
                "program_reconciliation_started",
                extra={
                    "min_date": date_range.min_date.isoformat(),
                    "max_date": date_range.max_date.isoformat(),
                    "exceptions_cutoff": cutoff.isoformat() if cutoff else None,
                    "location_count": len(locations),
                },
            )
            results = tuple(
                self.run_location(location, date_range, cutoff)
                for location in locations
            )
            result = ProgramReconciliationResult(
                run_id=run_id,
                program=program,
                date_range=date_range,
                exceptions_cutoff=cutoff,
                locations=results,
            )
            logger.info(
                "program_reconciliation_completed",
                extra={
                    "location_count": len(results),
                    "total_matched_payments": result.total_matched_payments,
                    "total_matched_deposits": result.total_matched_deposits,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return result

"""
recon_services.cash_reconciliation_service -- Cash deposits vs daily cash takings.

Responsibility:
    Load a location's unresolved cash deposits and its cash payments
    grouped per fiscal close day, run the pure cash engine, and persist
    the updated records.  Also ages stale cash records into EXCEPTION.

Architecture position:
    Services -- imperative shell over recon_engines.cash and
    recon_engines.exception_sweep, backed by the store protocols.

Invariants enforced:
    - One bulk update per entity type per call.
    - The service flushes through the stores; it never commits.  The
      caller's session_scope makes the call all-or-nothing.
    - The run date comes from the injected Clock.

Failure modes:
    - Store errors propagate unmodified.
    - InvalidStatusTransitionError only if a store hands back a
      terminal record as a candidate.
"""

from __future__ import annotations

import time
from datetime import date

from recon_engines.cash import CashReconciliationEngine
from recon_engines.exception_sweep import ExceptionSweepEngine, ReconciledOnPolicy
from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.domain.status import RECONCILABLE_STATUSES, ReconciliationType
from recon_kernel.domain.types import DateRange, Location, PaymentClassification
from recon_kernel.logging_config import LogContext, get_logger
from recon_kernel.stores.base import CashDepositStore, PaymentStore
from recon_services._summary_types import (
    NO_PENDING_MESSAGE,
    CashReconciliationSummary,
    ExceptionSweepSummary,
)

logger = get_logger("services.cash_reconciliation")


class CashReconciliationService:
    """
    Cash reconciliation for one location at a time.

    Contract:
        ``reconcile_cash`` and ``set_exceptions`` each return a frozen
        summary and never raise for empty input.
    Non-goals:
        - Does not choose dates or locations; the orchestrator does.
    """

    def __init__(
        self,
        payments: PaymentStore,
        deposits: CashDepositStore,
        clock: Clock | None = None,
        engine: CashReconciliationEngine | None = None,
        reconciled_on_policy: ReconciledOnPolicy | None = None,
    ):
        self.payments = payments
        self.deposits = deposits
        self.clock = clock or SystemClock()
        self.engine = engine or CashReconciliationEngine()
        self.sweeper = ExceptionSweepEngine(reconciled_on_policy)

    def reconcile_cash(
        self,
        location: Location,
        date_range: DateRange,
    ) -> CashReconciliationSummary:
        """Match the location's cash deposits to its daily cash totals."""
        with LogContext.bind(
            program=location.program.value,
            location_id=str(location.location_id),
            reconciliation_type=ReconciliationType.CASH.value,
        ):
            t0 = time.monotonic()
            run_date = self.clock.today()

            deposits = self.deposits.find_pending(
                location.program,
                date_range,
                location.pt_location_id,
                RECONCILABLE_STATUSES,
            )
            groups = self.payments.find_aggregated_cash(
                location.program,
                date_range,
                location.location_id,
                RECONCILABLE_STATUSES,
            )
            payment_count = sum(len(g) for g in groups)

            if not deposits or not groups:
                logger.info(
                    "cash_reconciliation_skipped",
                    extra={
                        "deposits_pending": len(deposits),
                        "payments_pending": payment_count,
                        "min_date": date_range.min_date.isoformat(),
                        "max_date": date_range.max_date.isoformat(),
                    },
                )
                return CashReconciliationSummary(
                    location_id=location.location_id,
                    total_deposits_pending=len(deposits),
                    total_payments_pending=payment_count,
                    skipped=True,
                    message=NO_PENDING_MESSAGE,
                )

            outcome = self.engine.reconcile(
                deposits=deposits,
                payment_groups=groups,
                run_date=run_date,
            )
            updated_payments = self.payments.update(outcome.payments)
            updated_deposits = self.deposits.update(outcome.deposits)

            summary = CashReconciliationSummary(
                location_id=location.location_id,
                total_deposits_pending=len(deposits),
                total_payments_pending=payment_count,
                total_matched_payments=outcome.matched_payments,
                total_matched_deposits=outcome.matched_deposits,
                total_payments_in_progress=outcome.in_progress_payments,
                total_deposits_in_progress=outcome.in_progress_deposits,
                total_payments_updated=len(updated_payments),
                total_deposits_updated=len(updated_deposits),
            )
            logger.info(
                "cash_reconciliation_completed",
                extra={
                    **summary.log_extra(),
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return summary

    def set_exceptions(
        self,
        location: Location,
        cutoff: date,
    ) -> ExceptionSweepSummary:
        """Move cash records unresolved on or before ``cutoff`` to EXCEPTION."""
        with LogContext.bind(
            program=location.program.value,
            location_id=str(location.location_id),
            reconciliation_type=ReconciliationType.CASH.value,
        ):
            payments = self.payments.find_exception_candidates(
                location.program,
                cutoff,
                location.location_id,
                PaymentClassification.CASH,
            )
            deposits = self.deposits.find_exception_candidates(
                location.program,
                cutoff,
                location.pt_location_id,
            )

            if not payments and not deposits:
                logger.info(
                    "cash_exceptions_skipped",
                    extra={"cutoff": cutoff.isoformat()},
                )
                return ExceptionSweepSummary(
                    reconciliation_type=ReconciliationType.CASH,
                    location_id=location.location_id,
                    cutoff=cutoff,
                    skipped=True,
                    message=NO_PENDING_MESSAGE,
                )

            outcome = self.sweeper.sweep(
                payments=payments,
                deposits=deposits,
                cutoff=cutoff,
                run_date=self.clock.today(),
            )
            payment_exceptions = self.payments.update(outcome.payments)
            deposit_exceptions = self.deposits.update(outcome.deposits)

            summary = ExceptionSweepSummary(
                reconciliation_type=ReconciliationType.CASH,
                location_id=location.location_id,
                cutoff=cutoff,
                total_payment_exceptions=len(payment_exceptions),
                total_deposit_exceptions=len(deposit_exceptions),
            )
            logger.info("cash_exceptions_set", extra=summary.log_extra())
            return summary

"""
recon_services.pos_reconciliation_service -- Card payments vs card settlements.

Responsibility:
    Load a location's unresolved POS payments and the POS deposits of its
    merchant ids, run the four-round engine, and persist the result.
    Also ages stale POS records into EXCEPTION.

Architecture position:
    Services -- imperative shell over recon_engines.pos and
    recon_engines.exception_sweep, backed by the store protocols.

Invariants enforced:
    - One bulk update per entity type per call.
    - Flush-only: the caller's session_scope owns commit / rollback.
    - The run date comes from the injected Clock.

Failure modes:
    - Store errors propagate unmodified.

Usage:
    service = PosReconciliationService(payment_store, pos_deposit_store, clock)
    with session_scope():
        summary = service.reconcile(location, DateRange(d, d))
"""

from __future__ import annotations

import time
from datetime import date

from recon_engines.exception_sweep import ExceptionSweepEngine, ReconciledOnPolicy
from recon_engines.pos import PosReconciliationEngine
from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.domain.status import RECONCILABLE_STATUSES, ReconciliationType
from recon_kernel.domain.types import DateRange, Location, PaymentClassification
from recon_kernel.logging_config import LogContext, get_logger
from recon_kernel.stores.base import PaymentStore, PosDepositStore
from recon_services._summary_types import (
    NO_PENDING_MESSAGE,
    ExceptionSweepSummary,
    PosReconciliationSummary,
)

logger = get_logger("services.pos_reconciliation")


class PosReconciliationService:
    """
    POS reconciliation for one location at a time.

    Contract:
        ``reconcile`` and ``set_exceptions`` each return a frozen summary;
        an unmatched payment is an outcome, not an error.
    """

    def __init__(
        self,
        payments: PaymentStore,
        deposits: PosDepositStore,
        clock: Clock | None = None,
        engine: PosReconciliationEngine | None = None,
        reconciled_on_policy: ReconciledOnPolicy | None = None,
    ):
        self.payments = payments
        self.deposits = deposits
        self.clock = clock or SystemClock()
        self.engine = engine or PosReconciliationEngine()
        self.sweeper = ExceptionSweepEngine(reconciled_on_policy)

    def reconcile(
        self,
        location: Location,
        date_range: DateRange,
    ) -> PosReconciliationSummary:
        """Run rounds 1-4 for the location's POS payments in ``date_range``."""
        with LogContext.bind(
            program=location.program.value,
            location_id=str(location.location_id),
            reconciliation_type=ReconciliationType.POS.value,
        ):
            t0 = time.monotonic()
            run_date = self.clock.today()

            payments = self.payments.find_pending(
                location.program,
                date_range,
                location.location_id,
                RECONCILABLE_STATUSES,
                PaymentClassification.POS,
            )
            deposits = self.deposits.find_pending(
                location.program,
                date_range,
                location.merchant_ids,
                RECONCILABLE_STATUSES,
            )

            if not payments or not deposits:
                logger.info(
                    "pos_reconciliation_skipped",
                    extra={
                        "deposits_pending": len(deposits),
                        "payments_pending": len(payments),
                        "min_date": date_range.min_date.isoformat(),
                        "max_date": date_range.max_date.isoformat(),
                    },
                )
                return PosReconciliationSummary(
                    location_id=location.location_id,
                    total_deposits_pending=len(deposits),
                    total_payments_pending=len(payments),
                    skipped=True,
                    message=NO_PENDING_MESSAGE,
                )

            logger.info(
                "pos_reconciliation_started",
                extra={
                    "payments_pending": len(payments),
                    "deposits_pending": len(deposits),
                },
            )
            outcome = self.engine.reconcile(
                payments=payments,
                deposits=deposits,
                run_date=run_date,
            )
            updated_payments = self.payments.update(outcome.payments)
            updated_deposits = self.deposits.update(outcome.deposits)

            summary = PosReconciliationSummary(
                location_id=location.location_id,
                total_deposits_pending=len(deposits),
                total_payments_pending=len(payments),
                total_matched_payments=outcome.matched_payments,
                total_matched_deposits=outcome.matched_deposits,
                total_payments_in_progress=outcome.in_progress_payments,
                total_deposits_in_progress=outcome.in_progress_deposits,
                total_payments_updated=len(updated_payments),
                total_deposits_updated=len(updated_deposits),
                matches_by_round={int(r): n for r, n in outcome.matches_by_round.items()},
            )
            logger.info(
                "pos_reconciliation_completed",
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
        """Move POS records unresolved on or before ``cutoff`` to EXCEPTION."""
        with LogContext.bind(
            program=location.program.value,
            location_id=str(location.location_id),
            reconciliation_type=ReconciliationType.POS.value,
        ):
            payments = self.payments.find_exception_candidates(
                location.program,
                cutoff,
                location.location_id,
                PaymentClassification.POS,
            )
            deposits = self.deposits.find_exception_candidates(
                location.program,
                cutoff,
                location.merchant_ids,
            )

            if not payments and not deposits:
                logger.info(
                    "pos_exceptions_skipped",
                    extra={"cutoff": cutoff.isoformat()},
                )
                return ExceptionSweepSummary(
                    reconciliation_type=ReconciliationType.POS,
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
                reconciliation_type=ReconciliationType.POS,
                location_id=location.location_id,
                cutoff=cutoff,
                total_payment_exceptions=len(payment_exceptions),
                total_deposit_exceptions=len(deposit_exceptions),
            )
            logger.info("pos_exceptions_set", extra=summary.log_extra())
            return summary

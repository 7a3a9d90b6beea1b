"""
recon_engines.cash -- Cash deposit matching.

Responsibility:
    Match cash-till deposits against the cash payments of one fiscal close
    day, summed.  A deposit and a day's group match when the normalized
    amounts are equal and neither side has already been matched.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The run date is passed
    in; the engine never reads a clock.

Invariants enforced:
    - Greedy first-fit: deposits are visited in the given order and each
      takes the first eligible group.  No backtracking.
    - A payment already carrying a cash_deposit_id is never linked again.
    - Inputs are not mutated; updated copies are returned.
    - Every loaded record that stays unmatched is refreshed to IN_PROGRESS.

Failure modes:
    - InvalidStatusTransitionError if a terminal record is passed in
      (callers load only PENDING / IN_PROGRESS records).
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import replace
from datetime import date

from recon_engines.tracer import traced_engine
from recon_engines.types import CashReconciliationOutcome
from recon_kernel.domain.amounts import amounts_equal
from recon_kernel.domain.status import MatchStatus, is_reconcilable
from recon_kernel.domain.types import AggregatedPayment, CashDeposit, Payment
from recon_kernel.logging_config import get_logger

logger = get_logger("engines.cash")


class CashReconciliationEngine:
    """
    Pure cash matcher.

    Contract:
        ``reconcile`` returns every deposit and every group member it was
        given, each either MATCH (linked) or IN_PROGRESS.
    Non-goals:
        - Does not split a deposit across days or a day across deposits.
    """

    @staticmethod
    def check_match(group: AggregatedPayment, deposit: CashDeposit) -> bool:
        if group.status == MatchStatus.MATCH or deposit.status == MatchStatus.MATCH:
            return False
        if any(p.cash_deposit_id is not None for p in group.members):
            return False
        return amounts_equal(group.amount, deposit.amount)

    @traced_engine("cash", "1.0", fingerprint_fields=("deposits", "payment_groups", "run_date"))
    def reconcile(
        self,
        *,
        deposits: Sequence[CashDeposit],
        payment_groups: Sequence[AggregatedPayment],
        run_date: date,
    ) -> CashReconciliationOutcome:
        if not deposits or not payment_groups:
            return CashReconciliationOutcome(skipped=True)

        t0 = time.monotonic()
        groups = list(payment_groups)
        settled: list[CashDeposit] = []

        for deposit in deposits:
            for position, group in enumerate(groups):
                if not self.check_match(group, deposit):
                    continue
                members = tuple(
                    p.transition(
                        MatchStatus.MATCH,
                        cash_deposit_id=deposit.id,
                        reconciled_on=run_date,
                    )
                    for p in group.members
                )
                groups[position] = replace(group, members=members)
                deposit = deposit.transition(
                    MatchStatus.MATCH,
                    payment_ids=group.payment_ids,
                    reconciled_on=run_date,
                )
                logger.debug(
                    "cash_deposit_matched",
                    extra={
                        "deposit_id": str(deposit.id),
                        "fiscal_close_date": group.match_date.isoformat(),
                        "amount": str(group.amount),
                        "payment_count": len(group),
                    },
                )
                break
            settled.append(deposit)

        settled = [self._hold(d, run_date) for d in settled]
        payments = tuple(
            self._hold(p, run_date) for group in groups for p in group.members
        )

        outcome = CashReconciliationOutcome(payments=payments, deposits=tuple(settled))
        logger.info(
            "cash_matching_completed",
            extra={
                "deposits": len(deposits),
                "payment_groups": len(payment_groups),
                "matched_deposits": outcome.matched_deposits,
                "matched_payments": outcome.matched_payments,
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            },
        )
        return outcome

    @staticmethod
    def _hold(record: CashDeposit | Payment, run_date: date) -> CashDeposit | Payment:
        if is_reconcilable(record.status):
            return record.transition(MatchStatus.IN_PROGRESS, in_progress_on=run_date)
        return record

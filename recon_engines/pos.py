"""
recon_engines.pos -- Four-round heuristic matching of card payments to deposits.

Responsibility:
    Pair each POS payment with the card settlement it belongs to.  Rounds
    1-3 pair single payments with single deposits of the same amount and
    method under progressively looser time rules; round 4 matches the
    leftovers as (date, method) totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The run date is passed
    in; thresholds come from the constructor.

Invariants enforced:
    - Rounds run strictly 1 -> 2 -> 3 -> 4; a pair found in an earlier
      round is never revisited.
    - Deposits are taken only through DepositIndex.claim, so no deposit
      is matched twice.
    - Round 3 looks at the same-day bucket and, only when that bucket is
      empty, at the previous business day's bucket.
    - Every loaded record that stays unmatched is refreshed to IN_PROGRESS.

Failure modes:
    - InvalidStatusTransitionError if a terminal record is passed in.

Usage:
    engine = PosReconciliationEngine(round_one_minutes=5)
    outcome = engine.reconcile(payments=payments, deposits=deposits,
                               run_date=clock.today())
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from datetime import date
from uuid import UUID

from recon_engines.aggregation import aggregate_deposits, aggregate_payments
from recon_engines.deposit_index import DepositIndex
from recon_engines.tracer import traced_engine
from recon_engines.types import PosReconciliationOutcome
from recon_kernel.domain.amounts import amounts_equal
from recon_kernel.domain.business_days import (
    difference_in_business_days,
    difference_in_minutes,
    previous_business_day,
)
from recon_kernel.domain.status import HeuristicRound, MatchStatus, is_reconcilable
from recon_kernel.domain.types import (
    AggregatedDeposit,
    AggregatedPayment,
    Payment,
    PosDeposit,
)
from recon_kernel.logging_config import get_logger

logger = get_logger("engines.pos")

DEFAULT_ROUND_ONE_MINUTES = 5
DEFAULT_ROUND_THREE_BUSINESS_DAYS = 2

_SINGLE_ROUNDS = (HeuristicRound.ONE, HeuristicRound.TWO, HeuristicRound.THREE)


def verify_round_four(payments: AggregatedPayment, deposits: AggregatedDeposit) -> bool:
    return (
        payments.match_date == deposits.match_date
        and payments.method == deposits.method
        and payments.status != MatchStatus.MATCH
        and deposits.status != MatchStatus.MATCH
        and amounts_equal(payments.amount, deposits.amount)
    )


class PosReconciliationEngine:
    """
    Pure POS matcher.

    Contract:
        ``reconcile`` returns every payment and deposit it was given, each
        either MATCH (with heuristic_match_round and links) or IN_PROGRESS.
    Guarantees:
        - Deterministic for a given input order.
    Non-goals:
        - No partial matches: a deposit is consumed whole or not at all.
    """

    def __init__(
        self,
        round_one_minutes: int = DEFAULT_ROUND_ONE_MINUTES,
        round_three_business_days: int = DEFAULT_ROUND_THREE_BUSINESS_DAYS,
    ) -> None:
        self.round_one_minutes = round_one_minutes
        self.round_three_business_days = round_three_business_days

    # -- round predicates ------------------------------------------------

    def _within_time_window(self, payment: Payment, deposit: PosDeposit) -> bool:
        minutes = difference_in_minutes(payment.timestamp, deposit.timestamp)
        return abs(minutes) <= self.round_one_minutes

    @staticmethod
    def _same_date(payment: Payment, deposit: PosDeposit) -> bool:
        return payment.match_date == deposit.transaction_date

    def _within_business_days(self, payment: Payment, deposit: PosDeposit) -> bool:
        days = difference_in_business_days(payment.timestamp, deposit.timestamp)
        return abs(days) <= self.round_three_business_days

    def _temporal_check(
        self, heuristic_round: HeuristicRound
    ) -> Callable[[Payment, PosDeposit], bool]:
        return {
            HeuristicRound.ONE: self._within_time_window,
            HeuristicRound.TWO: self._same_date,
            HeuristicRound.THREE: self._within_business_days,
        }[heuristic_round]

    # -- matching --------------------------------------------------------

    def _claim_single(
        self,
        heuristic_round: HeuristicRound,
        payment: Payment,
        index: DepositIndex[PosDeposit],
    ) -> PosDeposit | None:
        temporal = self._temporal_check(heuristic_round)

        def eligible(deposit: PosDeposit) -> bool:
            return (
                deposit.status != MatchStatus.MATCH
                and deposit.method == payment.method
                and temporal(payment, deposit)
            )

        on = payment.match_date
        if heuristic_round == HeuristicRound.THREE and not index.has_bucket(
            payment.amount, on, payment.method
        ):
            on = previous_business_day(on)
        return index.claim(payment.amount, on, payment.method, eligible)

    def _run_single_round(
        self,
        heuristic_round: HeuristicRound,
        payments: dict[UUID, Payment],
        deposits: dict[UUID, PosDeposit],
        index: DepositIndex[PosDeposit],
        run_date: date,
    ) -> int:
        matched = 0
        for payment_id, payment in payments.items():
            if payment.status == MatchStatus.MATCH:
                continue
            deposit = self._claim_single(heuristic_round, payment, index)
            if deposit is None:
                continue
            payments[payment_id] = payment.transition(
                MatchStatus.MATCH,
                heuristic_match_round=heuristic_round,
                pos_deposit_id=deposit.id,
                reconciled_on=run_date,
            )
            deposits[deposit.id] = deposit.transition(
                MatchStatus.MATCH,
                heuristic_match_round=heuristic_round,
                payment_id=payment_id,
                reconciled_on=run_date,
            )
            matched += 1
        return matched

    def _run_round_four(
        self,
        payments: dict[UUID, Payment],
        deposits: dict[UUID, PosDeposit],
        index: DepositIndex[PosDeposit],
        run_date: date,
    ) -> int:
        leftover_payments = [p for p in payments.values() if p.status != MatchStatus.MATCH]
        if not leftover_payments or not index:
            return 0

        group_index: DepositIndex[AggregatedDeposit] = DepositIndex(
            aggregate_deposits(list(index))
        )
        matched = 0
        for group in aggregate_payments(leftover_payments):
            deposit_group = group_index.claim(
                group.amount,
                group.match_date,
                group.method,
                lambda candidate: verify_round_four(group, candidate),
            )
            if deposit_group is None:
                continue
            for payment in group.members:
                payments[payment.id] = payment.transition(
                    MatchStatus.MATCH,
                    heuristic_match_round=HeuristicRound.FOUR,
                    round_four_deposit_ids=deposit_group.deposit_ids,
                    reconciled_on=run_date,
                )
            for deposit in deposit_group.members:
                index.remove(deposit)
                deposits[deposit.id] = deposit.transition(
                    MatchStatus.MATCH,
                    heuristic_match_round=HeuristicRound.FOUR,
                    round_four_payment_ids=group.payment_ids,
                    reconciled_on=run_date,
                )
            matched += len(group)
        return matched

    @traced_engine("pos", "1.0", fingerprint_fields=("payments", "deposits", "run_date"))
    def reconcile(
        self,
        *,
        payments: Sequence[Payment],
        deposits: Sequence[PosDeposit],
        run_date: date,
    ) -> PosReconciliationOutcome:
        if not payments or not deposits:
            return PosReconciliationOutcome(skipped=True)

        t0 = time.monotonic()
        payment_state = {p.id: p for p in payments}
        deposit_state = {d.id: d for d in deposits}
        index: DepositIndex[PosDeposit] = DepositIndex(
            d for d in deposits if d.status != MatchStatus.MATCH
        )

        matches_by_round = {r: 0 for r in HeuristicRound}
        for heuristic_round in _SINGLE_ROUNDS:
            matches_by_round[heuristic_round] = self._run_single_round(
                heuristic_round, payment_state, deposit_state, index, run_date
            )
            logger.info(
                "pos_round_completed",
                extra={
                    "round": int(heuristic_round),
                    "matched": matches_by_round[heuristic_round],
                    "deposits_remaining": len(index),
                },
            )

        matches_by_round[HeuristicRound.FOUR] = self._run_round_four(
            payment_state, deposit_state, index, run_date
        )
        logger.info(
            "pos_round_completed",
            extra={
                "round": int(HeuristicRound.FOUR),
                "matched": matches_by_round[HeuristicRound.FOUR],
                "deposits_remaining": len(index),
            },
        )

        for payment_id, payment in payment_state.items():
            if is_reconcilable(payment.status):
                payment_state[payment_id] = payment.transition(
                    MatchStatus.IN_PROGRESS, in_progress_on=run_date
                )
        for deposit in index:
            if is_reconcilable(deposit.status):
                deposit_state[deposit.id] = deposit.transition(
                    MatchStatus.IN_PROGRESS, in_progress_on=run_date
                )

        outcome = PosReconciliationOutcome(
            payments=tuple(payment_state.values()),
            deposits=tuple(deposit_state.values()),
            matches_by_round=matches_by_round,
        )
        logger.info(
            "pos_matching_completed",
            extra={
                "payments": len(payments),
                "deposits": len(deposits),
                "matched_payments": outcome.matched_payments,
                "matched_deposits": outcome.matched_deposits,
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            },
        )
        return outcome

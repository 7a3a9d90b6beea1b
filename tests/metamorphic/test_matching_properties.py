"""
Property tests for the matching engines.

Generates small random books of payments and deposits over a few
adjacent days and checks what must hold for every input:

- Every input record comes back exactly once, as MATCH or IN_PROGRESS.
- No deposit is linked to two payments; links point both ways.
- Linked sides agree on amount and method (single rounds) or on totals
  (round four and cash).
- Same input, same output.
"""

from collections import Counter
from dataclasses import replace
from datetime import date, time
from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from recon_engines.aggregation import aggregate_cash_payments
from recon_engines.cash import CashReconciliationEngine
from recon_engines.pos import PosReconciliationEngine
from recon_kernel.domain.amounts import normalize_amount, sum_amounts
from recon_kernel.domain.status import HeuristicRound, MatchStatus

from tests.builders import cash_deposit, cash_payment, pos_deposit, pos_payment

RUN = date(2023, 1, 12)

# Thu, Fri, Mon, Tue: crosses a weekend
DAYS = [date(2023, 1, 5), date(2023, 1, 6), date(2023, 1, 9), date(2023, 1, 10)]
AMOUNTS = ["5.00", "7.00", "12.00", "17.00", "17.004"]

# =============================================================================
# Strategies
# =============================================================================

times = st.one_of(st.none(), st.builds(time, st.integers(8, 18), st.integers(0, 59)))

pos_payments = st.lists(
    st.builds(
        pos_payment,
        amount=st.sampled_from(AMOUNTS),
        on=st.sampled_from(DAYS),
        at=times,
        code=st.sampled_from(["V", "M"]),
    ),
    max_size=8,
)

pos_deposits = st.lists(
    st.builds(
        pos_deposit,
        amount=st.sampled_from(AMOUNTS),
        on=st.sampled_from(DAYS),
        at=times,
        code=st.sampled_from(["V", "M"]),
    ),
    max_size=8,
)

cash_payments = st.lists(
    st.builds(
        cash_payment,
        amount=st.sampled_from(AMOUNTS),
        close_date=st.sampled_from(DAYS),
        code=st.sampled_from(["CASH", "CHQ"]),
    ),
    max_size=8,
)

cash_deposits = st.lists(
    st.builds(
        cash_deposit,
        amount=st.sampled_from(AMOUNTS + ["24.00", "29.00"]),
        on=st.sampled_from(DAYS),
    ),
    max_size=6,
)

PROPERTY_SETTINGS = settings(
    max_examples=150,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)


# =============================================================================
# POS
# =============================================================================


class TestPosProperties:

    @given(payments=pos_payments, deposits=pos_deposits)
    @PROPERTY_SETTINGS
    def test_every_record_returned_once(self, payments, deposits):
        outcome = PosReconciliationEngine().reconcile(
            payments=payments, deposits=deposits, run_date=RUN
        )
        if outcome.skipped:
            assert not payments or not deposits
            return

        assert Counter(p.id for p in outcome.payments) == Counter(p.id for p in payments)
        assert Counter(d.id for d in outcome.deposits) == Counter(d.id for d in deposits)
        for record in (*outcome.payments, *outcome.deposits):
            assert record.status in (MatchStatus.MATCH, MatchStatus.IN_PROGRESS)

    @given(payments=pos_payments, deposits=pos_deposits)
    @PROPERTY_SETTINGS
    def test_single_round_links_are_one_to_one(self, payments, deposits):
        outcome = PosReconciliationEngine().reconcile(
            payments=payments, deposits=deposits, run_date=RUN
        )
        deposits_by_id = {d.id: d for d in outcome.deposits}

        linked = [p for p in outcome.payments if p.pos_deposit_id is not None]
        assert len({p.pos_deposit_id for p in linked}) == len(linked)
        for payment in linked:
            deposit = deposits_by_id[payment.pos_deposit_id]
            assert deposit.payment_id == payment.id
            assert deposit.heuristic_match_round == payment.heuristic_match_round
            assert payment.heuristic_match_round != HeuristicRound.FOUR
            assert normalize_amount(deposit.amount) == normalize_amount(payment.amount)
            assert deposit.method == payment.method

    @given(payments=pos_payments, deposits=pos_deposits)
    @PROPERTY_SETTINGS
    def test_round_four_totals_balance(self, payments, deposits):
        outcome = PosReconciliationEngine().reconcile(
            payments=payments, deposits=deposits, run_date=RUN
        )
        deposits_by_id = {d.id: d for d in outcome.deposits}
        payments_by_id = {p.id: p for p in outcome.payments}

        groups = {
            p.round_four_deposit_ids
            for p in outcome.payments
            if p.heuristic_match_round == HeuristicRound.FOUR
        }
        for deposit_ids in groups:
            members = [deposits_by_id[i] for i in deposit_ids]
            payment_ids = members[0].round_four_payment_ids
            assert all(d.round_four_payment_ids == payment_ids for d in members)
            assert sum_amounts(d.amount for d in members) == sum_amounts(
                payments_by_id[i].amount for i in payment_ids
            )

    @given(payments=pos_payments, deposits=pos_deposits)
    @PROPERTY_SETTINGS
    def test_matched_counts_agree(self, payments, deposits):
        outcome = PosReconciliationEngine().reconcile(
            payments=payments, deposits=deposits, run_date=RUN
        )
        assert sum(outcome.matches_by_round.values()) == outcome.matched_payments

    @given(payments=pos_payments, deposits=pos_deposits)
    @PROPERTY_SETTINGS
    def test_deterministic(self, payments, deposits):
        engine = PosReconciliationEngine()
        first = engine.reconcile(payments=payments, deposits=deposits, run_date=RUN)
        second = engine.reconcile(payments=payments, deposits=deposits, run_date=RUN)
        assert first == second

    @given(payments=pos_payments, deposits=pos_deposits)
    @PROPERTY_SETTINGS
    def test_second_pass_changes_nothing(self, payments, deposits):
        engine = PosReconciliationEngine()
        first = engine.reconcile(payments=payments, deposits=deposits, run_date=RUN)
        if first.skipped:
            return
        second = engine.reconcile(
            payments=first.payments, deposits=first.deposits, run_date=RUN
        )
        assert second.payments == first.payments
        assert second.deposits == first.deposits


# =============================================================================
# Cash
# =============================================================================


class TestCashProperties:

    @given(payments=cash_payments, deposits=cash_deposits)
    @PROPERTY_SETTINGS
    def test_matched_deposit_equals_linked_day_total(self, payments, deposits):
        outcome = CashReconciliationEngine().reconcile(
            deposits=deposits,
            payment_groups=aggregate_cash_payments(payments),
            run_date=RUN,
        )
        payments_by_id = {p.id: p for p in outcome.payments}

        for deposit in outcome.deposits:
            if deposit.status != MatchStatus.MATCH:
                assert deposit.payment_ids == ()
                continue
            linked = [payments_by_id[i] for i in deposit.payment_ids]
            assert {p.cash_deposit_id for p in linked} == {deposit.id}
            assert len({p.transaction.fiscal_close_date for p in linked}) == 1
            assert sum_amounts(p.amount for p in linked) == normalize_amount(deposit.amount)

    @given(payments=cash_payments, deposits=cash_deposits)
    @PROPERTY_SETTINGS
    def test_each_payment_linked_at_most_once(self, payments, deposits):
        outcome = CashReconciliationEngine().reconcile(
            deposits=deposits,
            payment_groups=aggregate_cash_payments(payments),
            run_date=RUN,
        )
        claimed = Counter(i for d in outcome.deposits for i in d.payment_ids)
        assert all(n == 1 for n in claimed.values())
        matched = sum(1 for p in outcome.payments if p.status == MatchStatus.MATCH)
        assert matched == sum(claimed.values())

    @given(payments=cash_payments, deposits=cash_deposits)
    @PROPERTY_SETTINGS
    def test_amount_scale_does_not_matter(self, payments, deposits):
        """Re-expressing amounts with extra zeros never changes the result."""
        engine = CashReconciliationEngine()
        rescaled = [replace(d, amount=d.amount + Decimal("0.000")) for d in deposits]
        first = engine.reconcile(
            deposits=deposits, payment_groups=aggregate_cash_payments(payments), run_date=RUN
        )
        second = engine.reconcile(
            deposits=rescaled, payment_groups=aggregate_cash_payments(payments), run_date=RUN
        )
        assert [d.status for d in first.deposits] == [d.status for d in second.deposits]

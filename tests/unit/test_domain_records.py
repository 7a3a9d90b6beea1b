"""
Unit tests for the status machine and domain records.

Verifies:
- Transition table (MATCH / EXCEPTION terminal, IN_PROGRESS re-entrant)
- transition() returns a copy and never mutates
- DateRange validation
- Aggregate amount and status rules
"""

from dataclasses import FrozenInstanceError
from datetime import date, datetime, time
from decimal import Decimal

import pytest

from recon_kernel.domain.status import (
    HeuristicRound,
    MatchStatus,
    is_reconcilable,
    validate_transition,
)
from recon_kernel.domain.types import (
    AggregatedDeposit,
    AggregatedPayment,
    DateRange,
    Reconcilable,
)
from recon_kernel.exceptions import (
    InvalidDateRangeError,
    InvalidStatusTransitionError,
)

from tests.builders import cash_deposit, pos_deposit, pos_payment

MON = date(2023, 1, 9)


class TestTransitionTable:

    @pytest.mark.parametrize("target", [
        MatchStatus.IN_PROGRESS, MatchStatus.MATCH, MatchStatus.EXCEPTION,
    ])
    def test_pending_moves_forward(self, target):
        assert validate_transition(MatchStatus.PENDING, target)

    def test_in_progress_is_reentrant(self):
        assert validate_transition(MatchStatus.IN_PROGRESS, MatchStatus.IN_PROGRESS)

    def test_nothing_returns_to_pending(self):
        for status in MatchStatus:
            assert not validate_transition(status, MatchStatus.PENDING)

    @pytest.mark.parametrize("terminal", [MatchStatus.MATCH, MatchStatus.EXCEPTION])
    def test_terminal_statuses(self, terminal):
        for target in MatchStatus:
            assert not validate_transition(terminal, target)
        assert not is_reconcilable(terminal)


class TestRecordTransition:

    def test_returns_updated_copy(self):
        payment = pos_payment("17.00", MON)
        matched = payment.transition(
            MatchStatus.MATCH,
            heuristic_match_round=HeuristicRound.ONE,
            reconciled_on=MON,
        )
        assert matched.status == MatchStatus.MATCH
        assert matched.heuristic_match_round == HeuristicRound.ONE
        assert payment.status == MatchStatus.PENDING
        assert matched.id == payment.id

    def test_terminal_record_cannot_move(self):
        deposit = pos_deposit("17.00", MON, status=MatchStatus.MATCH)
        with pytest.raises(InvalidStatusTransitionError) as exc:
            deposit.transition(MatchStatus.IN_PROGRESS)
        assert exc.value.code == "INVALID_STATUS_TRANSITION"

    def test_records_are_frozen(self):
        payment = pos_payment("17.00", MON)
        with pytest.raises(FrozenInstanceError):
            payment.status = MatchStatus.MATCH


class TestRecordShape:

    def test_payment_timestamp_combines_date_and_time(self):
        payment = pos_payment("1.00", MON, at=time(10, 3))
        assert payment.timestamp == datetime(2023, 1, 9, 10, 3)

    def test_missing_time_is_midnight(self):
        assert pos_deposit("1.00", MON).timestamp == datetime(2023, 1, 9)

    def test_amount_coerced_to_decimal(self):
        payment = pos_payment("1.00", MON)
        assert isinstance(payment.amount, Decimal)

    def test_shared_read_interface(self):
        for record in (pos_payment("1", MON), pos_deposit("1", MON), cash_deposit("1", MON)):
            assert isinstance(record, Reconcilable)

    def test_cash_deposit_method_is_cash(self):
        assert cash_deposit("1", MON).method == "CASH"


class TestDateRange:

    def test_inverted_range_rejected(self):
        with pytest.raises(InvalidDateRangeError) as exc:
            DateRange(date(2023, 1, 10), MON)
        assert exc.value.code == "INVALID_DATE_RANGE"

    def test_contains_is_inclusive(self):
        date_range = DateRange(MON, date(2023, 1, 10))
        assert MON in date_range
        assert date(2023, 1, 10) in date_range
        assert date(2023, 1, 11) not in date_range

    def test_single_day(self):
        assert DateRange.single_day(MON) == DateRange(MON, MON)


class TestAggregates:

    def test_amount_is_normalized_sum(self):
        group = AggregatedPayment(MON, "V", (pos_payment("5.00", MON), pos_payment("7.005", MON)))
        assert group.amount == Decimal("12.01")
        assert len(group) == 2

    def test_status_match_only_when_all_match(self):
        matched = pos_payment("5.00", MON, status=MatchStatus.MATCH)
        pending = pos_payment("7.00", MON)
        assert AggregatedPayment(MON, "V", (matched, pending)).status == MatchStatus.PENDING
        assert AggregatedPayment(MON, "V", (matched,)).status == MatchStatus.MATCH

    def test_status_in_progress_wins_over_pending(self):
        group = AggregatedDeposit(MON, "V", (
            pos_deposit("1", MON),
            pos_deposit("2", MON, status=MatchStatus.IN_PROGRESS),
        ))
        assert group.status == MatchStatus.IN_PROGRESS

    def test_ids_keep_member_order(self):
        first, second = pos_deposit("1", MON), pos_deposit("2", MON)
        assert AggregatedDeposit(MON, "V", (first, second)).deposit_ids == (first.id, second.id)

"""Tests for the exception sweep and its reconciled_on policies."""

from datetime import date

import pytest

from recon_engines.exception_sweep import (
    BusinessDayOffsetPolicy,
    ExceptionSweepEngine,
    RunDatePolicy,
    exception_record_date,
)
from recon_kernel.domain.status import MatchStatus

from tests.builders import cash_deposit, cash_payment, pos_deposit, pos_payment

THU = date(2023, 1, 5)
FRI = date(2023, 1, 6)
MON = date(2023, 1, 9)
RUN = date(2023, 1, 11)


class TestRecordDate:

    def test_cash_payment_uses_fiscal_close_date(self):
        payment = cash_payment("1.00", MON, transaction_date=THU)
        assert exception_record_date(payment) == MON

    def test_pos_payment_uses_transaction_date(self):
        assert exception_record_date(pos_payment("1.00", THU)) == THU

    def test_deposit_dates(self):
        assert exception_record_date(cash_deposit("1.00", FRI)) == FRI
        assert exception_record_date(pos_deposit("1.00", FRI)) == FRI


class TestPolicies:

    def test_run_date(self):
        assert RunDatePolicy().reconciled_on(THU, RUN) == RUN

    def test_two_business_days_after_record(self):
        assert BusinessDayOffsetPolicy().reconciled_on(THU, RUN) == MON

    def test_offset_is_configurable(self):
        assert BusinessDayOffsetPolicy(days=1).reconciled_on(FRI, RUN) == MON


class TestSweep:

    def test_ages_records_on_or_before_cutoff(self):
        old = pos_payment("1.00", THU)
        on_cutoff = pos_payment("2.00", FRI)
        recent = pos_payment("3.00", MON)

        outcome = ExceptionSweepEngine().sweep(
            payments=[old, on_cutoff, recent], deposits=[], cutoff=FRI, run_date=RUN
        )

        assert {p.id for p in outcome.payments} == {old.id, on_cutoff.id}
        for payment in outcome.payments:
            assert payment.status == MatchStatus.EXCEPTION
            assert payment.reconciled_on == RUN

    def test_business_day_offset_policy(self):
        engine = ExceptionSweepEngine(BusinessDayOffsetPolicy(days=2))
        outcome = engine.sweep(
            payments=[],
            deposits=[cash_deposit("1.00", THU, status=MatchStatus.IN_PROGRESS)],
            cutoff=FRI,
            run_date=RUN,
        )
        assert outcome.deposits[0].reconciled_on == MON

    def test_cash_payment_ages_from_close_date(self):
        payment = cash_payment("1.00", MON, transaction_date=THU)
        outcome = ExceptionSweepEngine().sweep(
            payments=[payment], deposits=[], cutoff=FRI, run_date=RUN
        )
        assert outcome.skipped

    @pytest.mark.parametrize("status", [MatchStatus.MATCH, MatchStatus.EXCEPTION])
    def test_terminal_records_are_left_out(self, status):
        outcome = ExceptionSweepEngine().sweep(
            payments=[pos_payment("1.00", THU, status=status)],
            deposits=[pos_deposit("1.00", THU, status=status)],
            cutoff=FRI,
            run_date=RUN,
        )
        assert outcome.skipped

    def test_default_policy_is_run_date(self):
        assert isinstance(ExceptionSweepEngine().policy, RunDatePolicy)

    def test_logs_counts(self, captured_logs):
        ExceptionSweepEngine().sweep(
            payments=[pos_payment("1.00", THU)],
            deposits=[pos_deposit("1.00", THU), pos_deposit("2.00", THU)],
            cutoff=FRI,
            run_date=RUN,
        )
        [record] = [r for r in captured_logs() if r["message"] == "exception_sweep_completed"]
        assert record["payment_exceptions"] == 1
        assert record["deposit_exceptions"] == 2
        assert record["cutoff"] == "2023-01-06"

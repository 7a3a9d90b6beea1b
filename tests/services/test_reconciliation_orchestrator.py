"""
Tests for ReconciliationOrchestrator.

These tests commit through session_scope, so they use the db_engine
fixture directly instead of the rollback-only session fixture.  With
in-memory SQLite every scope shares the one StaticPool connection.
"""

from datetime import date, time

import pytest

from recon_config.schema import MatchingConfig, ProgramConfig, ReconConfig, RuntimeEnv
from recon_kernel.db.engine import session_scope
from recon_kernel.domain.status import MatchStatus
from recon_kernel.domain.types import DateRange, PaymentClassification, Program
from recon_kernel.exceptions import LocationNotFoundError
from recon_kernel.models.payment import PaymentMethodModel
from recon_kernel.stores.sql import (
    SqlCashDepositStore,
    SqlLocationStore,
    SqlPaymentStore,
    SqlPosDepositStore,
)
from recon_services.reconciliation_orchestrator import ReconciliationOrchestrator

from tests.builders import (
    ALL_METHODS,
    LOCATION_ID,
    cash_deposit,
    cash_payment,
    make_location,
    pos_deposit,
    pos_payment,
)

THU = date(2023, 1, 5)
MON = date(2023, 1, 9)
TODAY = DateRange.single_day(MON)
HISTORY = DateRange(date(2023, 1, 1), MON)


@pytest.fixture
def seeded(db_engine):
    """Payment methods, two SBC locations and one LABOUR location, committed."""
    with session_scope() as session:
        for payment_method in ALL_METHODS:
            session.add(PaymentMethodModel.from_dto(payment_method))
        session.flush()
        locations = SqlLocationStore(session)
        locations.add(make_location())
        locations.add(make_location(location_id=2, pt_location_id=20, merchant_ids=(200,)))
        locations.add(make_location(location_id=3, program=Program.LABOUR))


@pytest.fixture
def day_of_activity(seeded):
    """Location 1: one card sale, one cash day, and a stale Thursday sale."""
    with session_scope() as session:
        SqlPaymentStore(session).update([
            pos_payment("17.00", MON, at=time(10, 0)),
            cash_payment("100.00", MON),
            pos_payment("9.99", THU),
        ])
        SqlPosDepositStore(session).update([pos_deposit("17.00", MON, at=time(10, 3))])
        SqlCashDepositStore(session).update([cash_deposit("100.00", MON)])


def _payments(status: MatchStatus, classification=PaymentClassification.POS):
    with session_scope() as session:
        return SqlPaymentStore(session).find_pending(
            Program.SBC, HISTORY, LOCATION_ID, (status,), classification
        )


class TestRun:

    def test_full_pass(self, day_of_activity, clock):
        orchestrator = ReconciliationOrchestrator(session_scope, clock=clock)

        result = orchestrator.run(Program.SBC, TODAY)

        assert [r.location_id for r in result.locations] == [1, 2]
        assert result.exceptions_cutoff == THU
        first = result.locations[0]
        assert first.pos.total_matched_payments == 1
        assert first.cash.total_matched_deposits == 1
        pos_sweep, cash_sweep = first.exceptions
        assert pos_sweep.total_payment_exceptions == 1
        assert cash_sweep.skipped
        assert result.total_matched_payments == 2
        assert result.total_matched_deposits == 2
        assert result.locations[1].pos.skipped

    def test_writes_are_committed(self, day_of_activity, clock):
        ReconciliationOrchestrator(session_scope, clock=clock).run(Program.SBC, TODAY)

        assert len(_payments(MatchStatus.MATCH)) == 1
        assert len(_payments(MatchStatus.MATCH, PaymentClassification.CASH)) == 1
        [aged] = _payments(MatchStatus.EXCEPTION)
        # development config ages by two business days from the record date
        assert aged.reconciled_on == MON

    def test_production_stamps_run_date(self, day_of_activity, clock):
        config = ReconConfig(runtime_env=RuntimeEnv.PRODUCTION)
        clock.advance_days(1)

        ReconciliationOrchestrator(session_scope, config=config, clock=clock).run(
            Program.SBC, TODAY
        )

        [aged] = _payments(MatchStatus.EXCEPTION)
        assert aged.reconciled_on == date(2023, 1, 10)

    def test_sweep_can_be_disabled(self, day_of_activity, clock):
        config = ReconConfig(matching=MatchingConfig(sweep_exceptions=False))

        result = ReconciliationOrchestrator(session_scope, config=config, clock=clock).run(
            Program.SBC, TODAY
        )

        assert result.exceptions_cutoff is None
        assert result.locations[0].exceptions == ()
        assert _payments(MatchStatus.EXCEPTION) == []

    def test_disabled_program(self, seeded, clock):
        config = ReconConfig(programs=(ProgramConfig(Program.SBC, enabled=False),))

        result = ReconciliationOrchestrator(session_scope, config=config, clock=clock).run(
            Program.SBC, TODAY
        )

        assert result.locations == ()
        assert result.to_dict()["locations"] == []

    def test_result_to_dict(self, day_of_activity, clock):
        data = ReconciliationOrchestrator(session_scope, clock=clock).run(
            Program.SBC, TODAY
        ).to_dict()

        assert data["program"] == "SBC"
        assert data["min_date"] == "2023-01-09"
        assert data["exceptions_cutoff"] == "2023-01-05"
        assert data["locations"][0]["pos"]["matches_by_round"]["1"] == 1

    def test_failed_location_rolls_back(self, day_of_activity, clock, monkeypatch):
        def boom(self, deposits):
            raise RuntimeError("deposit write failed")

        monkeypatch.setattr(SqlCashDepositStore, "update", boom)
        orchestrator = ReconciliationOrchestrator(session_scope, clock=clock)

        with pytest.raises(RuntimeError):
            orchestrator.run(Program.SBC, TODAY)

        monkeypatch.undo()
        assert _payments(MatchStatus.MATCH) == []

    def test_run_id_bound_to_logs(self, seeded, clock, captured_logs):
        result = ReconciliationOrchestrator(session_scope, clock=clock).run(Program.SBC, TODAY)

        [started] = [
            r for r in captured_logs() if r["message"] == "program_reconciliation_started"
        ]
        assert started["run_id"] == result.run_id
        assert started["location_count"] == 2


class TestResolveLocations:

    def test_all_locations_of_program(self, seeded):
        orchestrator = ReconciliationOrchestrator(session_scope)
        assert [loc.location_id for loc in orchestrator.resolve_locations(Program.LABOUR)] == [3]

    def test_explicit_ids(self, seeded):
        orchestrator = ReconciliationOrchestrator(session_scope)
        [location] = orchestrator.resolve_locations(Program.SBC, [2])
        assert location.merchant_ids == (200,)

    def test_configured_ids(self, seeded):
        config = ReconConfig(programs=(ProgramConfig(Program.SBC, location_ids=(2,)),))
        orchestrator = ReconciliationOrchestrator(session_scope, config=config)
        assert [loc.location_id for loc in orchestrator.resolve_locations(Program.SBC)] == [2]

    def test_unknown_id(self, seeded):
        orchestrator = ReconciliationOrchestrator(session_scope)
        with pytest.raises(LocationNotFoundError):
            orchestrator.resolve_locations(Program.SBC, [3])


def test_exceptions_cutoff_skips_weekend():
    orchestrator = ReconciliationOrchestrator(session_scope)
    assert orchestrator.exceptions_cutoff(TODAY) == THU
    assert orchestrator.exceptions_cutoff(DateRange.single_day(date(2023, 1, 11))) == MON

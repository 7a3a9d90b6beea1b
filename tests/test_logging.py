"""Tests for recon_kernel.logging_config: JSON lines, run context, setup."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from recon_kernel.exceptions import InvalidDateRangeError
from recon_kernel.logging_config import (
    LogContext,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def lines():
    """Configure logging into a buffer; returns a reader of parsed lines."""
    stream = StringIO()
    configure_logging(stream=stream, level=logging.DEBUG)

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    return _read


log = get_logger("test")


class TestStructuredFormatter:

    def test_base_fields(self, lines):
        log.info("cash_reconciliation_started")

        [record] = lines()
        assert record["level"] == "INFO"
        assert record["message"] == "cash_reconciliation_started"
        assert record["logger"] == "recon_kernel.test"
        assert record["ts"].endswith("+00:00")

    def test_extra_fields_are_top_level(self, lines):
        log.info("pos_round_completed", extra={"round": 3, "matched": 2})

        [record] = lines()
        assert (record["round"], record["matched"]) == (3, 2)

    def test_domain_values_serialized(self, lines):
        deposit_id = uuid4()
        log.info(
            "cash_deposit_matched",
            extra={"deposit_id": deposit_id, "amount": Decimal("558.31"), "on": date(2023, 1, 9)},
        )

        [record] = lines()
        assert record["deposit_id"] == str(deposit_id)
        assert record["amount"] == "558.31"
        assert record["on"] == "2023-01-09"

    def test_context_fields(self, lines):
        LogContext.set(run_id="run-1", program="SBC", location_id="7")
        log.info("pos_reconciliation_started")

        [record] = lines()
        assert record["run_id"] == "run-1"
        assert record["program"] == "SBC"
        assert record["location_id"] == "7"
        assert "reconciliation_type" not in record

    def test_plain_exception(self, lines):
        try:
            raise ValueError("boom")
        except ValueError:
            log.error("store_failed", exc_info=True)

        [record] = lines()
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record
        assert "Traceback" in record["traceback"]

    def test_kernel_exception_fields(self, lines):
        try:
            raise InvalidDateRangeError("2023-01-10", "2023-01-09")
        except InvalidDateRangeError:
            log.error("range_rejected", exc_info=True)

        [record] = lines()
        assert record["exc_code"] == "INVALID_DATE_RANGE"
        assert record["exc_min_date"] == "2023-01-10"
        assert record["exc_max_date"] == "2023-01-09"

    def test_level_threshold(self):
        stream = StringIO()
        configure_logging(stream=stream, level="WARNING")

        log.info("dropped")
        log.warning("kept")

        assert [json.loads(x)["message"] for x in stream.getvalue().splitlines()] == ["kept"]


class TestLogContext:

    def test_set_ignores_none_and_unknown(self):
        LogContext.set(run_id="x", program=None, not_a_field="?")
        assert LogContext.get_all() == {"run_id": "x"}

    def test_clear(self):
        LogContext.set(run_id="x", reconciliation_type="CASH")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_nests_and_restores(self):
        LogContext.set(location_id="1")
        with LogContext.bind(location_id="2", reconciliation_type="POS"):
            assert LogContext.get_all() == {"location_id": "2", "reconciliation_type": "POS"}
        assert LogContext.get_all() == {"location_id": "1"}

    def test_bind_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(run_id="r"):
                raise RuntimeError
        assert LogContext.get_all() == {}

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            run_id="r",
            program="LABOUR",
            location_id="3",
            reconciliation_type="CASH",
        )
        assert len(LogContext.get_all()) == 5


class TestConfigureLogging:

    def test_only_first_call_takes_effect(self):
        configure_logging(stream=StringIO())
        configure_logging(stream=StringIO())
        assert len(logging.getLogger("recon_kernel").handlers) == 1

    def test_reset_allows_reconfiguration(self):
        configure_logging(stream=StringIO())
        reset_logging()
        assert logging.getLogger("recon_kernel").handlers == []

    def test_children_share_the_handler(self, lines):
        get_logger("engines.pos").debug("deep")

        [record] = lines()
        assert record["logger"] == "recon_kernel.engines.pos"

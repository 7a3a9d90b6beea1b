"""
Summary DTOs returned by the reconciliation services.

Every top-level service call returns one of these frozen summaries; the
orchestrator collects them and the CLI prints ``to_dict()`` as JSON.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

from recon_kernel.domain.status import ReconciliationType

NO_PENDING_MESSAGE = "No pending payments or deposits found"


def _jsonable(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, ReconciliationType):
        return value.value
    if isinstance(value, dict):
        return {str(int(k)) if isinstance(k, int) else str(k): _jsonable(v) for k, v in value.items()}
    return value


@dataclass(frozen=True)
class ReconciliationSummary:
    """Counts for one cash or POS matching invocation."""

    reconciliation_type: ReconciliationType
    location_id: int
    total_deposits_pending: int = 0
    total_payments_pending: int = 0
    total_matched_payments: int = 0
    total_matched_deposits: int = 0
    total_payments_in_progress: int = 0
    total_deposits_in_progress: int = 0
    total_payments_updated: int = 0
    total_deposits_updated: int = 0
    skipped: bool = False
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: _jsonable(v) for k, v in asdict(self).items()}

    def log_extra(self) -> dict[str, Any]:
        """to_dict() without "message", which LogRecord reserves."""
        fields = self.to_dict()
        fields.pop("message")
        return fields


@dataclass(frozen=True)
class CashReconciliationSummary(ReconciliationSummary):
    reconciliation_type: ReconciliationType = ReconciliationType.CASH
    location_id: int = 0


@dataclass(frozen=True)
class PosReconciliationSummary(ReconciliationSummary):
    reconciliation_type: ReconciliationType = ReconciliationType.POS
    location_id: int = 0
    # matched payments per heuristic round (1-4)
    matches_by_round: dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ExceptionSweepSummary:
    """Counts for one exception sweep."""

    reconciliation_type: ReconciliationType
    location_id: int
    cutoff: date
    total_payment_exceptions: int = 0
    total_deposit_exceptions: int = 0
    skipped: bool = False
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: _jsonable(v) for k, v in asdict(self).items()}

    def log_extra(self) -> dict[str, Any]:
        """to_dict() without "message", which LogRecord reserves."""
        fields = self.to_dict()
        fields.pop("message")
        return fields

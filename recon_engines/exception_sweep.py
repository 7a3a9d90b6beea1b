"""
recon_engines.exception_sweep -- Age unresolved records into EXCEPTION.

Responsibility:
    Move payments and deposits that are still PENDING or IN_PROGRESS on or
    before an exceptions cutoff date to EXCEPTION, stamping reconciled_on
    according to an injected ReconciledOnPolicy.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Which policy applies is
    decided by configuration (recon_config.reconciled_on_policy), never
    inside this module.

Invariants enforced:
    - EXCEPTION is terminal; already-terminal inputs are left out.
    - Records dated after the cutoff are never touched.
    - Deterministic: reconciled_on depends only on the record date, the
      policy, and the run date passed in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date

from recon_engines.tracer import traced_engine
from recon_engines.types import ExceptionSweepOutcome
from recon_kernel.domain.business_days import add_business_days
from recon_kernel.domain.status import MatchStatus, is_reconcilable
from recon_kernel.domain.types import (
    CashDeposit,
    Payment,
    PaymentClassification,
    PosDeposit,
)
from recon_kernel.logging_config import get_logger

logger = get_logger("engines.exception_sweep")


def exception_record_date(record: Payment | CashDeposit | PosDeposit) -> date:
    """The date an unresolved record ages from."""
    if isinstance(record, Payment):
        if record.classification == PaymentClassification.CASH:
            return record.transaction.fiscal_close_date
        return record.transaction.transaction_date
    if isinstance(record, CashDeposit):
        return record.deposit_date
    return record.transaction_date


class ReconciledOnPolicy(ABC):
    """Decides the reconciled_on date stamped on an EXCEPTION record."""

    @abstractmethod
    def reconciled_on(self, record_date: date, run_date: date) -> date:
        ...


class RunDatePolicy(ReconciledOnPolicy):
    """Production: the date the sweep ran."""

    def reconciled_on(self, record_date: date, run_date: date) -> date:
        return run_date

    def __repr__(self) -> str:
        return "RunDatePolicy()"


class BusinessDayOffsetPolicy(ReconciledOnPolicy):
    """Record date plus a fixed number of business days."""

    def __init__(self, days: int = 2) -> None:
        self.days = days

    def reconciled_on(self, record_date: date, run_date: date) -> date:
        return add_business_days(record_date, self.days)

    def __repr__(self) -> str:
        return f"BusinessDayOffsetPolicy(days={self.days})"


class ExceptionSweepEngine:
    """Pure exception sweep over pre-selected candidates."""

    def __init__(self, policy: ReconciledOnPolicy | None = None) -> None:
        self.policy = policy or RunDatePolicy()

    def _age(self, records: Sequence, cutoff: date, run_date: date) -> tuple:
        aged = []
        for record in records:
            if not is_reconcilable(record.status):
                continue
            record_date = exception_record_date(record)
            if record_date > cutoff:
                continue
            aged.append(
                record.transition(
                    MatchStatus.EXCEPTION,
                    reconciled_on=self.policy.reconciled_on(record_date, run_date),
                )
            )
        return tuple(aged)

    @traced_engine(
        "exception_sweep",
        "1.0",
        fingerprint_fields=("payments", "deposits", "cutoff", "run_date"),
    )
    def sweep(
        self,
        *,
        payments: Sequence[Payment],
        deposits: Sequence[CashDeposit | PosDeposit],
        cutoff: date,
        run_date: date,
    ) -> ExceptionSweepOutcome:
        outcome = ExceptionSweepOutcome(
            payments=self._age(payments, cutoff, run_date),
            deposits=self._age(deposits, cutoff, run_date),
        )
        logger.info(
            "exception_sweep_completed",
            extra={
                "cutoff": cutoff.isoformat(),
                "policy": repr(self.policy),
                "payment_exceptions": len(outcome.payments),
                "deposit_exceptions": len(outcome.deposits),
            },
        )
        return outcome

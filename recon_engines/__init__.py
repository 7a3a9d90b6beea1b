"""
Module: recon_engines
Responsibility:
    Package entrypoint re-exporting the pure matching engines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import recon_kernel.domain and recon_kernel.logging_config.
    MUST NOT import recon_services or recon_kernel.stores.

Invariants enforced:
    - Purity: engines never read a clock; the run date is a parameter.
    - Decimal-only amounts, compared after normalization to cents.
    - Determinism: identical inputs in identical order give identical
      outputs.

Usage:
    from recon_engines import PosReconciliationEngine, CashReconciliationEngine
"""

from recon_engines.aggregation import (
    aggregate_cash_payments,
    aggregate_deposits,
    aggregate_payments,
)
from recon_engines.cash import CashReconciliationEngine
from recon_engines.deposit_index import DepositIndex
from recon_engines.exception_sweep import (
    BusinessDayOffsetPolicy,
    ExceptionSweepEngine,
    ReconciledOnPolicy,
    RunDatePolicy,
    exception_record_date,
)
from recon_engines.pos import PosReconciliationEngine, verify_round_four
from recon_engines.tracer import traced_engine
from recon_engines.types import (
    CashReconciliationOutcome,
    ExceptionSweepOutcome,
    PosReconciliationOutcome,
)

__all__ = [
    "BusinessDayOffsetPolicy",
    "CashReconciliationEngine",
    "CashReconciliationOutcome",
    "DepositIndex",
    "ExceptionSweepEngine",
    "ExceptionSweepOutcome",
    "PosReconciliationEngine",
    "PosReconciliationOutcome",
    "ReconciledOnPolicy",
    "RunDatePolicy",
    "aggregate_cash_payments",
    "aggregate_deposits",
    "aggregate_payments",
    "exception_record_date",
    "traced_engine",
    "verify_round_four",
]

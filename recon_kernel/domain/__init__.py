"""
recon_kernel.domain -- Pure domain layer (zero I/O).

Records, amount and business-day utilities, the match status machine,
and the injectable clock.
"""

from recon_kernel.domain.amounts import amounts_equal, normalize_amount
from recon_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from recon_kernel.domain.status import (
    HeuristicRound,
    MatchStatus,
    ReconciliationType,
)
from recon_kernel.domain.types import (
    AggregatedDeposit,
    AggregatedPayment,
    CashDeposit,
    DateRange,
    Location,
    Payment,
    PaymentClassification,
    PaymentMethod,
    PosDeposit,
    Program,
    Reconcilable,
    Transaction,
)

__all__ = [
    "AggregatedDeposit",
    "AggregatedPayment",
    "CashDeposit",
    "Clock",
    "DateRange",
    "DeterministicClock",
    "HeuristicRound",
    "Location",
    "MatchStatus",
    "Payment",
    "PaymentClassification",
    "PaymentMethod",
    "PosDeposit",
    "Program",
    "Reconcilable",
    "ReconciliationType",
    "SystemClock",
    "Transaction",
    "amounts_equal",
    "normalize_amount",
]

"""
recon_services -- imperative shell around the pure matching engines.

Services load candidates through the store protocols, call the engines
with the run date from an injected Clock, and persist the outcome in one
bulk update per entity type.  They flush, never commit.
"""

from recon_services._summary_types import (
    CashReconciliationSummary,
    ExceptionSweepSummary,
    PosReconciliationSummary,
    ReconciliationSummary,
)
from recon_services.cash_reconciliation_service import CashReconciliationService
from recon_services.pos_reconciliation_service import PosReconciliationService
from recon_services.reconciliation_orchestrator import (
    LocationReconciliationResult,
    ProgramReconciliationResult,
    ReconciliationOrchestrator,
)

__all__ = [
    "CashReconciliationService",
    "CashReconciliationSummary",
    "ExceptionSweepSummary",
    "LocationReconciliationResult",
    "PosReconciliationService",
    "PosReconciliationSummary",
    "ProgramReconciliationResult",
    "ReconciliationOrchestrator",
    "ReconciliationSummary",
]

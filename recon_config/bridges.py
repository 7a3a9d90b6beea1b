"""
Config -> engine bridges.

Translate a ``ReconConfig`` into the objects the pure engines take, so
that environment checks never happen inside an engine.
"""

from __future__ import annotations

from recon_config.schema import ReconConfig
from recon_engines.exception_sweep import (
    BusinessDayOffsetPolicy,
    ReconciledOnPolicy,
    RunDatePolicy,
)
from recon_engines.pos import PosReconciliationEngine


def reconciled_on_policy(config: ReconConfig) -> ReconciledOnPolicy:
    """Production stamps the run date; other environments age by business days."""
    if config.is_production:
        return RunDatePolicy()
    return BusinessDayOffsetPolicy(days=config.matching.exception_aging_business_days)


def build_pos_engine(config: ReconConfig) -> PosReconciliationEngine:
    return PosReconciliationEngine(
        round_one_minutes=config.matching.round_one_minutes,
        round_three_business_days=config.matching.round_three_business_days,
    )

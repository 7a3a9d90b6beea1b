"""
Reconciliation configuration schema.

Frozen dataclasses the loader parses YAML into.  ``ReconConfig`` is the
only object callers receive from ``recon_config.get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique

from recon_kernel.domain.types import Program


@unique
class RuntimeEnv(str, Enum):
    """Deployment environment; decides how exceptions are dated."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"
    TEST = "test"


@dataclass(frozen=True)
class MatchingConfig:
    """Thresholds for the matching rounds and the exception sweep."""

    round_one_minutes: int = 5
    round_three_business_days: int = 2
    # Non-production reconciled_on offset for EXCEPTION records
    exception_aging_business_days: int = 2
    # Sweep cutoff = first day of the range minus this many business days
    exception_lag_business_days: int = 2
    sweep_exceptions: bool = True


@dataclass(frozen=True)
class ProgramConfig:
    """Per-program switches.  Empty location_ids means every location."""

    program: Program
    enabled: bool = True
    location_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class ReconConfig:
    """Complete runtime configuration for one process."""

    runtime_env: RuntimeEnv = RuntimeEnv.DEVELOPMENT
    database_url: str = "sqlite://"
    log_level: str = "INFO"
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    programs: tuple[ProgramConfig, ...] = ()
    checksum: str = ""

    @property
    def is_production(self) -> bool:
        return self.runtime_env == RuntimeEnv.PRODUCTION

    def program(self, program: Program) -> ProgramConfig:
        """Settings for ``program``; defaults when it is not listed."""
        for entry in self.programs:
            if entry.program == program:
                return entry
        return ProgramConfig(program=program)

"""
recon_config -- single public entrypoint for reconciliation configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables.  Returns a frozen ``ReconConfig``.

Architecture position:
    Configuration -- sits above ``recon_kernel`` / ``recon_engines`` and
    below ``recon_services`` and the scripts.  The kernel and engines
    MUST NEVER import from ``recon_config``; ``bridges`` translates the
    config into engine inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through get_active_config().
    - Layering: packaged defaults.yaml < RECON_CONFIG_FILE < environment
      variables (RECON_RUNTIME_ENV, RECON_DATABASE_URL, RECON_LOG_LEVEL).

Failure modes:
    - ``FileNotFoundError`` -- RECON_CONFIG_FILE names a missing file.
    - ``ConfigurationError`` -- a value fails validation.

Audit relevance:
    Every successful call emits a ``RECON_CONFIG_TRACE`` log entry with
    the runtime environment, matching thresholds, and the checksum of the
    merged configuration.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from recon_config.bridges import build_pos_engine, reconciled_on_policy
from recon_config.loader import load_yaml_file, merge, parse_config
from recon_config.schema import (
    MatchingConfig,
    ProgramConfig,
    ReconConfig,
    RuntimeEnv,
)

_logger = logging.getLogger("recon_kernel.config")

_DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"

_ENV_OVERRIDES = {
    "RECON_RUNTIME_ENV": "runtime_env",
    "RECON_DATABASE_URL": "database_url",
    "RECON_LOG_LEVEL": "log_level",
}


def get_active_config(
    config_file: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ReconConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_file: Overlay file; defaults to ``$RECON_CONFIG_FILE``.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        ReconConfig built from the merged layers.

    Raises:
        FileNotFoundError: If the overlay file does not exist.
        ConfigurationError: If validation fails.
    """
    env = os.environ if environ is None else environ

    data = load_yaml_file(_DEFAULTS_FILE)
    sources = [str(_DEFAULTS_FILE)]

    overlay = config_file or env.get("RECON_CONFIG_FILE")
    if overlay:
        data = merge(data, load_yaml_file(Path(overlay)))
        sources.append(str(overlay))

    for var, key in _ENV_OVERRIDES.items():
        if env.get(var):
            data[key] = env[var]
            sources.append(var)

    config = parse_config(data)

    _logger.info(
        "RECON_CONFIG_TRACE",
        extra={
            "trace_type": "RECON_CONFIG_TRACE",
            "runtime_env": config.runtime_env.value,
            "checksum": config.checksum,
            "sources": sources,
            "round_one_minutes": config.matching.round_one_minutes,
            "round_three_business_days": config.matching.round_three_business_days,
            "exception_aging_business_days": config.matching.exception_aging_business_days,
            "exception_lag_business_days": config.matching.exception_lag_business_days,
            "sweep_exceptions": config.matching.sweep_exceptions,
        },
    )
    return config


__all__ = [
    "MatchingConfig",
    "ProgramConfig",
    "ReconConfig",
    "RuntimeEnv",
    "build_pos_engine",
    "get_active_config",
    "reconciled_on_policy",
]

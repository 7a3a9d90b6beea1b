"""
Configuration Loader (``recon_config.loader``).

Responsibility
--------------
Loads YAML files, overlays them, and parses the merged mapping into the
frozen ``recon_config.schema`` dataclasses.  Runtime callers use
``recon_config.get_active_config()``; this module is its internals.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Invalid values raise ``ConfigurationError`` naming the offending key.
* ``compute_checksum`` is a deterministic SHA-256 over canonical JSON.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from recon_config.schema import (
    MatchingConfig,
    ProgramConfig,
    ReconConfig,
    RuntimeEnv,
)
from recon_kernel.domain.types import Program
from recon_kernel.exceptions import ConfigurationError

_LOG_LEVELS = frozenset(logging.getLevelNamesMapping())


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto ``base``.  Lists are replaced, not merged."""
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _non_negative_int(data: Mapping[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(f"matching.{key}", f"must be a non-negative integer, got {value!r}")
    return value


def parse_matching(data: Mapping[str, Any] | None) -> MatchingConfig:
    data = data or {}
    defaults = MatchingConfig()
    sweep = data.get("sweep_exceptions", defaults.sweep_exceptions)
    if not isinstance(sweep, bool):
        raise ConfigurationError("matching.sweep_exceptions", f"must be a boolean, got {sweep!r}")
    return MatchingConfig(
        round_one_minutes=_non_negative_int(
            data, "round_one_minutes", defaults.round_one_minutes
        ),
        round_three_business_days=_non_negative_int(
            data, "round_three_business_days", defaults.round_three_business_days
        ),
        exception_aging_business_days=_non_negative_int(
            data, "exception_aging_business_days", defaults.exception_aging_business_days
        ),
        exception_lag_business_days=_non_negative_int(
            data, "exception_lag_business_days", defaults.exception_lag_business_days
        ),
        sweep_exceptions=sweep,
    )


def _location_ids(data: Mapping[str, Any]) -> tuple[int, ...]:
    value = data.get("location_ids") or ()
    if not isinstance(value, (list, tuple)) or any(
        isinstance(i, bool) or not isinstance(i, int) for i in value
    ):
        raise ConfigurationError(
            "programs.location_ids", f"must be a list of integers, got {value!r}"
        )
    return tuple(value)


def parse_program(data: Mapping[str, Any]) -> ProgramConfig:
    try:
        program = Program(str(data["program"]).upper())
    except KeyError:
        raise ConfigurationError("programs", "every entry needs a 'program' key") from None
    except ValueError:
        raise ConfigurationError("programs.program", f"unknown program {data['program']!r}") from None
    return ProgramConfig(
        program=program,
        enabled=bool(data.get("enabled", True)),
        location_ids=_location_ids(data),
    )


def parse_config(data: Mapping[str, Any]) -> ReconConfig:
    """Parse a merged configuration mapping into a ``ReconConfig``."""
    try:
        runtime_env = RuntimeEnv(str(data.get("runtime_env", "development")).lower())
    except ValueError:
        raise ConfigurationError(
            "runtime_env",
            f"must be one of {[e.value for e in RuntimeEnv]}, got {data.get('runtime_env')!r}",
        ) from None

    log_level = str(data.get("log_level", "INFO")).upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigurationError("log_level", f"unknown level {log_level!r}")

    database_url = data.get("database_url") or "sqlite://"

    return ReconConfig(
        runtime_env=runtime_env,
        database_url=str(database_url),
        log_level=log_level,
        matching=parse_matching(data.get("matching")),
        programs=tuple(parse_program(p) for p in data.get("programs", ()) or ()),
        checksum=compute_checksum(dict(data)),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """Compute SHA-256 checksum of canonical JSON serialization."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()

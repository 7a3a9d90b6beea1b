#!/usr/bin/env python3
"""
Run one reconciliation batch pass for a program and date range.

For every selected location: POS rounds 1-4, cash matching, then the
exception sweeps (cutoff = --from minus the configured lag in business
days).  Each location commits on its own.  Prints the program result as
JSON on stdout.

Usage:
  python3 scripts/run_reconciliation.py --program SBC --from 2023-01-02 --to 2023-01-02
  python3 scripts/run_reconciliation.py --program LABOUR --from 2023-01-02 --to 2023-01-06 \\
      --location 12 --location 14 --database-url postgresql+psycopg2://...

Exit codes:
  0 -- pass completed (unmatched records are not a failure)
  1 -- bad arguments, configuration, or a database error
"""

import argparse
import json
import sys
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}") from None


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Reconcile payments against bank deposits")
    p.add_argument("--program", required=True, help="Program code (SBC, LABOUR)")
    p.add_argument("--from", dest="min_date", type=_parse_date, required=True,
                   help="First transaction date (inclusive, YYYY-MM-DD)")
    p.add_argument("--to", dest="max_date", type=_parse_date, default=None,
                   help="Last transaction date (inclusive); defaults to --from")
    p.add_argument("--location", dest="locations", type=int, action="append", default=None,
                   help="Location id to reconcile (repeatable); default: all locations")
    p.add_argument("--database-url", default=None,
                   help="Database URL (default: configured database_url)")
    p.add_argument("--config", default=None,
                   help="YAML overlay file (default: $RECON_CONFIG_FILE)")
    p.add_argument("--create-tables", action="store_true",
                   help="Create missing tables before running")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from recon_config import get_active_config
    from recon_kernel.db.engine import create_tables, init_engine_from_url, session_scope
    from recon_kernel.domain.types import DateRange, Program
    from recon_kernel.exceptions import ReconKernelError
    from recon_kernel.logging_config import configure_logging
    from recon_services.reconciliation_orchestrator import ReconciliationOrchestrator
    from sqlalchemy.exc import SQLAlchemyError

    try:
        config = get_active_config(args.config)
        configure_logging(level=config.log_level)
        program = Program(args.program.upper())
        date_range = DateRange(args.min_date, args.max_date or args.min_date)
    except (ReconKernelError, ValueError, FileNotFoundError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    try:
        init_engine_from_url(args.database_url or config.database_url)
        if args.create_tables:
            create_tables()

        orchestrator = ReconciliationOrchestrator(session_scope, config=config)
        locations = None
        if args.locations:
            locations = orchestrator.resolve_locations(program, args.locations)
        result = orchestrator.run(program, date_range, locations)
    except (ReconKernelError, SQLAlchemyError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

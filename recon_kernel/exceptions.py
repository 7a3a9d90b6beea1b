"""
Typed Exception Hierarchy for the Reconciliation Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the reconciliation engine (schedulers, the CLI, operators'
tooling) must be able to tell a bad request apart from a broken invariant
without parsing message strings.  Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, log-safe)
  3. Structured DATA as attributes (not just a message string)

Example:
    try:
        date_range = DateRange(min_date, max_date)
    except InvalidDateRangeError as e:
        log.warning("bad range", extra={"code": e.code, "min": e.min_date})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ReconKernelError (base)
    |
    +-- InvalidDateRangeError
    +-- InvalidStatusTransitionError
    +-- LocationNotFoundError
    +-- ConfigurationError

===============================================================================
WHAT IS NOT AN ERROR
===============================================================================

"No pending payments or deposits" is the normal outcome of many runs.  The
services return a skipped summary instead of raising.

Store failures (SQLAlchemy errors raised by ``update`` or the session
commit) are NOT wrapped: they propagate to the caller unmodified and the
whole invocation is rolled back.  The unit of retry is the invocation.
"""


class ReconKernelError(Exception):
    """
    Base exception for all reconciliation kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "RECON_KERNEL_ERROR"


class InvalidDateRangeError(ReconKernelError):
    """Date range lower bound is after its upper bound."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, min_date: str, max_date: str):
        self.min_date = min_date
        self.max_date = max_date
        super().__init__(
            f"Invalid date range: {min_date} is after {max_date}"
        )


class InvalidStatusTransitionError(ReconKernelError):
    """
    A record was asked to leave a terminal status.

    MATCH and EXCEPTION are terminal; only a manual reset outside the
    engine may move a record out of them.
    """

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, record_id: str, current: str, target: str):
        self.record_id = record_id
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move record {record_id} from {current} to {target}"
        )


class LocationNotFoundError(ReconKernelError):
    """No location with the given id exists for the program."""

    code: str = "LOCATION_NOT_FOUND"

    def __init__(self, location_id: int, program: str | None = None):
        self.location_id = location_id
        self.program = program
        if program:
            msg = f"Location {location_id} not found for program {program}"
        else:
            msg = f"Location not found: {location_id}"
        super().__init__(msg)


class ConfigurationError(ReconKernelError):
    """Configuration file or value is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for '{key}': {reason}")

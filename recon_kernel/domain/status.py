"""
Match status lifecycle for payments and deposits.

Transitions are mostly forward.  IN_PROGRESS may be re-entered on every
run (its timestamp is refreshed) while a record stays unresolved.  MATCH
and EXCEPTION are terminal: a record in either is filtered out of every
later candidate pool, and only a manual reset outside the engine brings it
back.
"""

from enum import Enum, IntEnum, unique


@unique
class MatchStatus(str, Enum):
    """Lifecycle status of a payment or deposit."""

    PENDING = "PENDING"  # Created by upstream parsing
    IN_PROGRESS = "IN_PROGRESS"  # Seen by at least one run, still unmatched
    MATCH = "MATCH"  # Paired with a deposit / payment
    EXCEPTION = "EXCEPTION"  # Aged out, flagged for manual audit


# Allowed status transitions (from -> set of valid next states)
ALLOWED_TRANSITIONS: dict[MatchStatus, frozenset[MatchStatus]] = {
    MatchStatus.PENDING: frozenset({
        MatchStatus.IN_PROGRESS,
        MatchStatus.MATCH,
        MatchStatus.EXCEPTION,
    }),
    MatchStatus.IN_PROGRESS: frozenset({
        MatchStatus.IN_PROGRESS,
        MatchStatus.MATCH,
        MatchStatus.EXCEPTION,
    }),
    MatchStatus.MATCH: frozenset(),  # Terminal
    MatchStatus.EXCEPTION: frozenset(),  # Terminal
}

# Statuses a record may hold while it is still a matching candidate
RECONCILABLE_STATUSES: tuple[MatchStatus, ...] = (
    MatchStatus.PENDING,
    MatchStatus.IN_PROGRESS,
)

TERMINAL_STATUSES: frozenset[MatchStatus] = frozenset({
    MatchStatus.MATCH,
    MatchStatus.EXCEPTION,
})


def validate_transition(current: MatchStatus, target: MatchStatus) -> bool:
    """Check if a status transition is valid."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def is_reconcilable(status: MatchStatus) -> bool:
    return status in RECONCILABLE_STATUSES


@unique
class HeuristicRound(IntEnum):
    """
    POS matching passes, in the order they run.

    Each round is more tolerant than the one before it: exact time, same
    calendar day, adjacent business day, then aggregated (date, method)
    groups.
    """

    ONE = 1
    TWO = 2
    THREE = 3
    FOUR = 4


@unique
class ReconciliationType(str, Enum):
    CASH = "CASH"
    POS = "POS"

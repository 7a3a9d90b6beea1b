"""
recon_engines.types -- Immutable outcomes returned by the matching engines.

Outcomes carry the updated records the caller must persist plus the
counts the services fold into their summaries.  They never carry ORM rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from recon_kernel.domain.status import HeuristicRound, MatchStatus
from recon_kernel.domain.types import CashDeposit, Payment, PosDeposit


def _count(records, status: MatchStatus) -> int:
    return sum(1 for r in records if r.status == status)


@dataclass(frozen=True)
class CashReconciliationOutcome:
    """Result of one cash matching pass."""

    payments: tuple[Payment, ...] = ()
    deposits: tuple[CashDeposit, ...] = ()
    skipped: bool = False

    @property
    def matched_payments(self) -> int:
        return _count(self.payments, MatchStatus.MATCH)

    @property
    def matched_deposits(self) -> int:
        return _count(self.deposits, MatchStatus.MATCH)

    @property
    def in_progress_payments(self) -> int:
        return _count(self.payments, MatchStatus.IN_PROGRESS)

    @property
    def in_progress_deposits(self) -> int:
        return _count(self.deposits, MatchStatus.IN_PROGRESS)


@dataclass(frozen=True)
class PosReconciliationOutcome:
    """Result of one four-round POS matching pass."""

    payments: tuple[Payment, ...] = ()
    deposits: tuple[PosDeposit, ...] = ()
    # matched payments per round
    matches_by_round: dict[HeuristicRound, int] = field(
        default_factory=lambda: {r: 0 for r in HeuristicRound}
    )
    skipped: bool = False

    @property
    def matched_payments(self) -> int:
        return _count(self.payments, MatchStatus.MATCH)

    @property
    def matched_deposits(self) -> int:
        return _count(self.deposits, MatchStatus.MATCH)

    @property
    def in_progress_payments(self) -> int:
        return _count(self.payments, MatchStatus.IN_PROGRESS)

    @property
    def in_progress_deposits(self) -> int:
        return _count(self.deposits, MatchStatus.IN_PROGRESS)


@dataclass(frozen=True)
class ExceptionSweepOutcome:
    """Records moved to EXCEPTION by one sweep."""

    payments: tuple[Payment, ...] = ()
    deposits: tuple[CashDeposit | PosDeposit, ...] = ()

    @property
    def skipped(self) -> bool:
        return not self.payments and not self.deposits

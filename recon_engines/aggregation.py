"""
recon_engines.aggregation -- Group payments and deposits by (date, method).

Responsibility:
    Build the run-scoped AggregatedPayment / AggregatedDeposit groups used
    by cash matching (payments per fiscal close day) and by POS round 4
    (both sides per transaction day and method).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Groups come out in first-seen key order and keep member order, so
      the store's deterministic ordering carries through.
    - A group's amount is the normalized sum of its members.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date

from recon_kernel.domain.types import (
    AggregatedDeposit,
    AggregatedPayment,
    CashDeposit,
    Payment,
    PaymentClassification,
    PosDeposit,
    Reconcilable,
)

GroupKey = tuple[date, str]


def by_match_date_and_method(record: Reconcilable) -> GroupKey:
    return (record.match_date, record.method)


def by_fiscal_close_date(payment: Payment) -> GroupKey:
    """Cash payments settle per fiscal close day, whatever the tender."""
    return (payment.transaction.fiscal_close_date, PaymentClassification.CASH.value)


def _group(records: Iterable, key: Callable) -> dict[GroupKey, list]:
    groups: dict[GroupKey, list] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


def aggregate_payments(
    payments: Iterable[Payment],
    key: Callable[[Payment], GroupKey] = by_match_date_and_method,
) -> list[AggregatedPayment]:
    return [
        AggregatedPayment(match_date=on, method=method, members=tuple(members))
        for (on, method), members in _group(payments, key).items()
    ]


def aggregate_deposits(
    deposits: Iterable[PosDeposit | CashDeposit],
    key: Callable[[Reconcilable], GroupKey] = by_match_date_and_method,
) -> list[AggregatedDeposit]:
    return [
        AggregatedDeposit(match_date=on, method=method, members=tuple(members))
        for (on, method), members in _group(deposits, key).items()
    ]


def aggregate_cash_payments(payments: Iterable[Payment]) -> list[AggregatedPayment]:
    return aggregate_payments(payments, key=by_fiscal_close_date)

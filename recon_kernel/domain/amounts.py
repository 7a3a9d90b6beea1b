"""
Amounts -- Decimal-safe normalization and equality for currency amounts.

Responsibility:
    The single place where payment and deposit amounts are brought to a
    comparable form.  Every amount comparison in the engines goes through
    ``amounts_equal``; every index key goes through ``normalize_amount``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts are compared only after quantizing to exactly two decimal
      places (ROUND_HALF_UP).  Two amounts are equal iff their normalized
      Decimals are equal.  Raw floats are never compared.

Failure modes:
    - ValueError on values that cannot be read as a number.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Decimal | int | str | float) -> Decimal:
    """
    Convert a raw amount to Decimal without rounding.

    Floats go through ``str()`` so that 10.1 becomes Decimal("10.1") rather
    than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


def normalize_amount(value: Decimal | int | str | float) -> Decimal:
    """
    Quantize an amount to two decimal places.

    Postconditions:
        - Result has exponent -2 (e.g. Decimal("10.00")).
        - 10.001 -> 10.00, 10.005 -> 10.01 (ROUND_HALF_UP).
    """
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def amounts_equal(
    left: Decimal | int | str | float,
    right: Decimal | int | str | float,
) -> bool:
    """True iff both amounts are identical after two-decimal normalization."""
    return normalize_amount(left) == normalize_amount(right)


def sum_amounts(values: Iterable[Decimal | int | str | float]) -> Decimal:
    """Sum raw amounts exactly, then normalize the total."""
    total = Decimal("0")
    for value in values:
        total += to_decimal(value)
    return normalize_amount(total)

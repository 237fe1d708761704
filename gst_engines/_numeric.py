"""
Decimal conversion and the arithmetic context shared by the engines.

Every engine converts its inputs through ``to_decimal`` and performs its
arithmetic inside ``exact_arithmetic()``. The context is wide enough that
sums and products of invoice-sized amounts are exact, so the order in which
line items are summed cannot change a total.
"""

from __future__ import annotations

from decimal import (
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)

from gst_kernel.exceptions import InvalidInputError

ZERO = Decimal("0")
HUNDRED = Decimal("100")

_EXACT_CONTEXT = Context(
    prec=60,
    rounding=ROUND_HALF_UP,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)


def exact_arithmetic():
    """Context manager applying the engines' wide-precision Decimal context."""
    return localcontext(_EXACT_CONTEXT)


def to_decimal(value: object, field: str) -> Decimal:
    """
    Convert a user-supplied number to a finite Decimal.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion. Booleans are rejected.

    Raises:
        InvalidInputError: If the value is not numeric or not finite.
    """
    if isinstance(value, bool):
        raise InvalidInputError(field, value, "must be a number, not a boolean")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidInputError(field, value, "is not a number") from None
    else:
        raise InvalidInputError(field, value, f"unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise InvalidInputError(field, value, "must be a finite number")
    return result

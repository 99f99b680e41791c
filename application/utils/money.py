"""Decimal <-> gateway minor-unit conversion.

Everything goes through ``Decimal``; floats never take part in arithmetic.
"""
from __future__ import annotations

from decimal import Decimal, Inexact, InvalidOperation, localcontext
from typing import Union

from domain.common.exceptions import InvalidAmountException


AmountLike = Union[Decimal, int, str, float]

# Largest integer a JSON consumer can represent exactly
MAX_SAFE_MINOR_UNITS = 9_007_199_254_740_991


def _as_decimal(amount: AmountLike) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidAmountException(amount, "not a number")
    if isinstance(amount, float):
        amount = str(amount)
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountException(amount, "not a number") from None
    if not value.is_finite():
        raise InvalidAmountException(amount, "not a finite number")
    return value


class MoneyConverter:
    """Convert caller-facing decimal amounts to the integers a gateway expects.

    ``exponent`` is the number of minor units per major unit as a power of
    ten (2 -> cents, 0 -> whole units). Conversion is exact: an amount with
    more precision than the minor unit can carry is rejected instead of
    rounded.
    """

    def __init__(self, exponent: int = 2, max_minor_units: int = MAX_SAFE_MINOR_UNITS) -> None:
        if exponent < 0:
            raise ValueError("exponent must be >= 0")
        self.exponent = exponent
        self.max_minor_units = max_minor_units
        self._quantum = Decimal(1).scaleb(-exponent)

    def to_minor_units(self, amount: AmountLike) -> int:
        value = _as_decimal(amount)
        if value < 0:
            raise InvalidAmountException(amount, "must not be negative")
        # Scale with enough digits that nothing is rounded away
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, len(value.as_tuple().digits) + self.exponent + 1)
            ctx.traps[Inexact] = True
            try:
                minor = value.scaleb(self.exponent)
                integral = minor == minor.to_integral_value()
            except Inexact:
                integral = False
        if not integral:
            raise InvalidAmountException(amount, f"more than {self.exponent} decimal places")
        result = int(minor)
        if result > self.max_minor_units:
            raise InvalidAmountException(amount, "exceeds gateway range")
        return result

    def to_decimal(self, minor_units: int) -> Decimal:
        if isinstance(minor_units, bool) or not isinstance(minor_units, int):
            raise InvalidAmountException(minor_units, "minor units must be an integer")
        if minor_units < 0:
            raise InvalidAmountException(minor_units, "must not be negative")
        if minor_units > self.max_minor_units:
            raise InvalidAmountException(minor_units, "exceeds gateway range")
        return Decimal(minor_units).scaleb(-self.exponent).quantize(self._quantum)


_default_converter = MoneyConverter()


def to_minor_units(amount: AmountLike) -> int:
    return _default_converter.to_minor_units(amount)


def to_decimal(minor_units: int) -> Decimal:
    return _default_converter.to_decimal(minor_units)

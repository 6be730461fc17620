"""Exact decimal amounts used for balances and transfers.

Amounts are plain ``decimal.Decimal`` values. Parsing enforces the bounds
of the storage column (20 integer digits, 18 fractional digits) and all
arithmetic goes through a context that traps rounding, so a computation
either is exact or raises.
"""
from __future__ import annotations

import re
from decimal import (
    Context,
    Decimal,
    Inexact,
    InvalidOperation,
    Overflow,
    Rounded,
)
from typing import Union

from .errors import InvalidAmountError

MAX_INTEGER_DIGITS = 20
MAX_SCALE = 18

# ASCII digits only; Decimal() alone also takes underscores and Unicode digits.
_DECIMAL_LITERAL = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)

_LEDGER_CONTEXT = Context(
    prec=MAX_INTEGER_DIGITS + MAX_SCALE + 10,
    traps=[InvalidOperation, Inexact, Rounded, Overflow],
)

AmountInput = Union[str, Decimal]


def parse_amount(raw: AmountInput, field: str = "amount") -> Decimal:
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if not _DECIMAL_LITERAL.fullmatch(text):
            raise InvalidAmountError(f"{field} must be a valid decimal number")
        try:
            value = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidAmountError(
                f"{field} must be a valid decimal number"
            ) from exc
    else:
        raise InvalidAmountError(f"{field} must be a valid decimal number")

    if not value.is_finite():
        raise InvalidAmountError(f"{field} must be a valid decimal number")

    if value != 0:
        if exceeds_integer_digits(value):
            raise InvalidAmountError(
                f"{field} supports at most {MAX_INTEGER_DIGITS} integer digits"
            )
        if value.adjusted() < -MAX_SCALE or _scale(value) > MAX_SCALE:
            raise InvalidAmountError(
                f"{field} supports at most {MAX_SCALE} decimal places"
            )
    return value


def exceeds_integer_digits(value: Decimal) -> bool:
    """True when ``value`` has more integer digits than a stored balance allows."""
    return value != 0 and value.adjusted() >= MAX_INTEGER_DIGITS


def _scale(value: Decimal) -> int:
    _, _, fraction = format_amount(value).partition(".")
    return len(fraction)


def add_amounts(left: Decimal, right: Decimal) -> Decimal:
    return _LEDGER_CONTEXT.add(left, right)


def subtract_amounts(left: Decimal, right: Decimal) -> Decimal:
    return _LEDGER_CONTEXT.subtract(left, right)


def is_negative(value: Decimal) -> bool:
    return value < 0


def is_positive(value: Decimal) -> bool:
    return value > 0


def format_amount(value: Decimal) -> str:
    """Render ``value`` in canonical form: plain notation, no trailing zeros."""
    if value == 0:
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


__all__ = [
    "MAX_INTEGER_DIGITS",
    "MAX_SCALE",
    "AmountInput",
    "add_amounts",
    "exceeds_integer_digits",
    "format_amount",
    "is_negative",
    "is_positive",
    "parse_amount",
    "subtract_amounts",
]

"""Checked integer arithmetic for balances and values.

Every helper rejects instead of wrapping: results above MAX_UINT256 raise
ArithmeticOverflow and results below zero raise ArithmeticUnderflow.
"""
from decimal import Decimal

from .constants import MAX_UINT256
from .errors import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero


def _checked(result: int) -> int:
    if result > MAX_UINT256:
        raise ArithmeticOverflow(f"Arithmetic overflow: {result}")
    if result < 0:
        raise ArithmeticUnderflow(f"Arithmetic underflow: {result}")
    return result


def checked_add(a: int, b: int) -> int:
    """Add with overflow checking"""
    return _checked(a + b)


def checked_sub(a: int, b: int) -> int:
    """Subtract with underflow checking"""
    return _checked(a - b)


def checked_mul(a: int, b: int) -> int:
    """Multiply with overflow checking"""
    return _checked(a * b)


def checked_div(a: int, b: int) -> int:
    """Floor division, rejecting a zero divisor"""
    if b == 0:
        raise DivisionByZero("Division by zero")
    return _checked(a // b)


def mul_div(a: int, b: int, denominator: int) -> int:
    """a * b / denominator, rounded down"""
    return checked_div(checked_mul(a, b), denominator)


def to_units(amount, decimals=18) -> int:
    """Converts a human readable amount (e.g. 1.5 WETH) to base units."""
    return int(Decimal(str(amount)) * (10**decimals))


def from_units(amount: int, decimals=18) -> float:
    """Converts base units back to a human readable float."""
    return amount / 10**decimals

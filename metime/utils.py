"""Shared utilities used across the booking engine."""

import re


def normalize_phone(value: str) -> str:
    """Strip all whitespace from a phone number.

    Examples:
        >>> normalize_phone("+45 12 34 56 78")
        '+4512345678'
        >>> normalize_phone("  +4512345678 ")
        '+4512345678'
    """
    return re.sub(r"\s", "", value)


def ceil_div(numerator: int, denominator: int) -> int:
    """Integer ceiling division for non-negative numerators.

    Examples:
        >>> ceil_div(45, 15)
        3
        >>> ceil_div(20, 15)
        2
    """
    return -(-numerator // denominator)

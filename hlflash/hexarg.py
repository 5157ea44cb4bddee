"""Parsing of hexadecimal command-line arguments."""

from __future__ import annotations

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def parse_hex(text: str, width: int) -> int:
    """Parse ``text`` as hex digits into an unsigned value of ``width`` bytes.

    Digits are read from the right. Once ``width`` bytes are filled, any
    further digits are dropped, but the first character past that point must
    still be a hex digit. Any other character raises ``ValueError``. An empty
    string gives 0.
    """
    if width < 1:
        raise ValueError("width must be at least one byte")
    value = 0
    for position, char in enumerate(reversed(text)):
        if char not in _HEX_DIGITS:
            raise ValueError(f"invalid hex digit {char!r} in {text!r}")
        if position >= 2 * width:
            break
        value |= int(char, 16) << (4 * position)
    return value
"""
Numeric Literal Interpreter
===========================

This module turns numeric literal text into checked integer values. It is
the only place in the assembler that knows how wide a value may be and what
happens when it is not.

Literal Formats
---------------
| Format      | Prefix | Example     | Sign allowed |
|-------------|--------|-------------|--------------|
| Decimal     | (none) | 42, -7, +3  | yes          |
| Hexadecimal | 0x     | 0xFF        | no           |
| Binary      | 0b     | 0b1010      | no           |
| Octal       | 0o     | 0o177       | no           |

Prefixes are case-insensitive (0XFF == 0xff).

Overflow Policy
---------------
A value that does not fit its target slot is an error, never truncated.

Prefixed literals are raw bit patterns. Their magnitude must fit the slot
width; where a signed value is required the pattern is reinterpreted as
two's complement of that width:

    >>> interpret("0xFFFF", 16, Signedness.SIGNED)
    -1
    >>> interpret("0x1FFFF", 16, Signedness.SIGNED)   # LiteralOverflowError

Decimal literals are checked against the numeric range of the slot:

| Signedness | Range for width w         | Result            |
|------------|---------------------------|-------------------|
| SIGNED     | -2^(w-1) .. 2^(w-1) - 1   | signed value      |
| UNSIGNED   | 0 .. 2^w - 1              | unsigned value    |
| EITHER     | -2^(w-1) .. 2^w - 1       | unsigned pattern  |

EITHER is used by data lists, where `.byte -1` and `.byte 255` both mean
the byte 0xFF.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from vasm.errors import (
    InvalidLiteralError,
    LiteralOverflowError,
    SourceLocation,
)


# =============================================================================
# Literal Types
# =============================================================================

class Base(Enum):
    """Numeric base of a literal, valued by its radix."""
    BIN = 2
    OCT = 8
    DEC = 10
    HEX = 16

    def __str__(self) -> str:
        return {
            Base.BIN: "binary",
            Base.OCT: "octal",
            Base.DEC: "decimal",
            Base.HEX: "hexadecimal",
        }[self]


class Signedness(Enum):
    """How a target slot interprets its bits."""
    SIGNED = "signed"
    UNSIGNED = "unsigned"
    EITHER = "signed or unsigned"

    def __str__(self) -> str:
        return self.value


_PREFIXES: dict[str, Base] = {"0b": Base.BIN, "0o": Base.OCT, "0x": Base.HEX}

_DIGITS: dict[Base, str] = {
    Base.BIN: "01",
    Base.OCT: "01234567",
    Base.DEC: "0123456789",
    Base.HEX: "0123456789abcdef",
}


@dataclass(frozen=True)
class IntegerLiteral:
    """
    A parsed, not yet range-checked numeral.

    Attributes:
        base: Numeric base the literal was written in
        magnitude: Absolute value of the numeral
        negative: True for decimal literals written with '-'
        text: Original spelling, used in error messages
    """
    base: Base
    magnitude: int
    negative: bool = False
    text: str = ""

    @classmethod
    def of(cls, value: int) -> "IntegerLiteral":
        """Build a decimal literal from a Python int."""
        return cls(Base.DEC, abs(value), value < 0, str(value))

    @property
    def is_prefixed(self) -> bool:
        """True for bin/oct/hex literals (raw bit patterns)."""
        return self.base is not Base.DEC

    def value(
        self,
        width: int,
        signedness: Signedness,
        location: Optional[SourceLocation] = None,
    ) -> int:
        """Interpret this literal for a slot of the given width."""
        return interpret_literal(self, width, signedness, location)

    def __str__(self) -> str:
        if self.text:
            return self.text
        if self.base is Base.DEC:
            return f"-{self.magnitude}" if self.negative else str(self.magnitude)
        prefix, fmt = {
            Base.BIN: ("0b", "b"),
            Base.OCT: ("0o", "o"),
            Base.HEX: ("0x", "X"),
        }[self.base]
        return f"{prefix}{self.magnitude:{fmt}}"


# =============================================================================
# Range Helpers
# =============================================================================

def signed_range(width: int) -> tuple[int, int]:
    """Return the inclusive range of a signed field of `width` bits."""
    return -(1 << (width - 1)), (1 << (width - 1)) - 1


def unsigned_range(width: int) -> tuple[int, int]:
    """Return the inclusive range of an unsigned field of `width` bits."""
    return 0, (1 << width) - 1


def fits_signed(value: int, width: int) -> bool:
    lo, hi = signed_range(width)
    return lo <= value <= hi


def fits_unsigned(value: int, width: int) -> bool:
    lo, hi = unsigned_range(width)
    return lo <= value <= hi


def sign_extend(pattern: int, width: int) -> int:
    """Reinterpret the low `width` bits of `pattern` as two's complement."""
    pattern &= (1 << width) - 1
    sign_bit = 1 << (width - 1)
    return (pattern ^ sign_bit) - sign_bit


def to_unsigned(value: int, width: int) -> int:
    """Return the `width`-bit two's-complement pattern of `value`."""
    return value & ((1 << width) - 1)


def split_halves(value: int, half_width: int = 16) -> tuple[int, int]:
    """
    Split a non-negative value into (low, high) halves.

    The low half is `value mod 2^half_width` as an unsigned pattern; the
    high half holds all remaining upper bits.
    """
    return value & ((1 << half_width) - 1), value >> half_width


def join_halves(low: int, high: int, half_width: int = 16) -> int:
    """Recombine halves produced by split_halves()."""
    return (high << half_width) | (low & ((1 << half_width) - 1))


# =============================================================================
# Parsing and Interpretation
# =============================================================================

def parse_literal(
    text: str,
    location: Optional[SourceLocation] = None,
) -> IntegerLiteral:
    """
    Parse literal text into an IntegerLiteral without range checking.

    Args:
        text: Literal spelling ("42", "-7", "0xFF", "0b1010", "0o17")
        location: Element position for error messages

    Returns:
        The parsed literal

    Raises:
        InvalidLiteralError: If the text is not a well-formed literal
    """
    raw = text.strip()
    if not raw:
        raise InvalidLiteralError(text, "empty literal", location)

    lowered = raw.lower()
    negative = False

    if lowered[:2] in _PREFIXES:
        base = _PREFIXES[lowered[:2]]
        digits = lowered[2:]
    else:
        digits = lowered
        if digits[0] in "+-":
            negative = digits[0] == "-"
            digits = digits[1:]
            if digits[:2] in _PREFIXES:
                raise InvalidLiteralError(
                    text, "a sign is only allowed on decimal literals", location
                )
        base = Base.DEC

    if not digits:
        raise InvalidLiteralError(text, f"missing {base} digits", location)

    for ch in digits:
        if ch not in _DIGITS[base]:
            raise InvalidLiteralError(
                text, f"'{ch}' is not a valid {base} digit", location
            )

    return IntegerLiteral(base, int(digits, base.value), negative, raw)


def interpret_literal(
    literal: IntegerLiteral,
    width: int,
    signedness: Signedness,
    location: Optional[SourceLocation] = None,
) -> int:
    """
    Range-check a literal against a slot and return its value.

    Raises:
        LiteralOverflowError: If the literal does not fit the slot
    """
    if literal.is_prefixed:
        lo, hi = unsigned_range(width)
        if literal.magnitude > hi:
            raise LiteralOverflowError(
                str(literal), width, str(signedness), location, (lo, hi)
            )
        if signedness is Signedness.SIGNED:
            return sign_extend(literal.magnitude, width)
        return literal.magnitude

    value = -literal.magnitude if literal.negative else literal.magnitude

    if signedness is Signedness.SIGNED:
        lo, hi = signed_range(width)
    elif signedness is Signedness.UNSIGNED:
        lo, hi = unsigned_range(width)
    else:
        lo, hi = signed_range(width)[0], unsigned_range(width)[1]

    if not lo <= value <= hi:
        raise LiteralOverflowError(
            str(literal), width, str(signedness), location, (lo, hi)
        )

    if signedness is Signedness.EITHER:
        return to_unsigned(value, width)
    return value


def interpret(
    text: str,
    width: int,
    signedness: Signedness,
    location: Optional[SourceLocation] = None,
) -> int:
    """
    Parse and range-check literal text in one step.

    Example:
        >>> interpret("-4", 16, Signedness.SIGNED)
        -4
        >>> interpret("0b11111111", 8, Signedness.SIGNED)
        -1
    """
    return interpret_literal(parse_literal(text, location), width, signedness, location)


def require_fits(
    value: int,
    width: int,
    signedness: Signedness,
    location: Optional[SourceLocation] = None,
    name: Optional[str] = None,
) -> int:
    """
    Range-check an already computed value (e.g. an address half).

    Args:
        value: The value to check
        width: Slot width in bits
        signedness: SIGNED or UNSIGNED
        location: Element position for error messages
        name: How to name the value in the error (defaults to the number)

    Returns:
        The value unchanged

    Raises:
        LiteralOverflowError: If the value does not fit
    """
    if signedness is Signedness.SIGNED:
        lo, hi = signed_range(width)
    else:
        lo, hi = unsigned_range(width)
    if not lo <= value <= hi:
        raise LiteralOverflowError(
            name or str(value), width, str(signedness), location, (lo, hi)
        )
    return value

# =============================================================================
# test_literals.py - Numeric Literal Interpreter Tests
# =============================================================================
# Tests for literal parsing and range checking.
#
# Test coverage includes:
#   - Decimal, hex, binary and octal parsing
#   - Signed / unsigned / either interpretation
#   - Two's complement reinterpretation of prefixed literals
#   - Overflow and malformed literal errors
#   - Address half splitting
# =============================================================================

import pytest

from vasm.assembler.literals import (
    Base,
    IntegerLiteral,
    Signedness,
    fits_signed,
    fits_unsigned,
    interpret,
    join_halves,
    parse_literal,
    require_fits,
    sign_extend,
    split_halves,
    to_unsigned,
)
from vasm.errors import (
    InvalidLiteralError,
    LiteralOverflowError,
    Segment,
    SourceLocation,
)


SIGNED = Signedness.SIGNED
UNSIGNED = Signedness.UNSIGNED
EITHER = Signedness.EITHER


# =============================================================================
# Parsing Tests
# =============================================================================

class TestParseLiteral:
    """Test literal text parsing."""

    def test_decimal(self):
        lit = parse_literal("42")
        assert lit.base is Base.DEC
        assert lit.magnitude == 42
        assert not lit.negative

    def test_negative_decimal(self):
        lit = parse_literal("-7")
        assert lit.negative
        assert lit.magnitude == 7

    def test_plus_sign(self):
        lit = parse_literal("+3")
        assert not lit.negative
        assert lit.magnitude == 3

    def test_hex(self):
        lit = parse_literal("0xFF")
        assert lit.base is Base.HEX
        assert lit.magnitude == 255

    def test_prefix_case_insensitive(self):
        """0X and 0x are the same prefix."""
        assert parse_literal("0XfF").magnitude == 255
        assert parse_literal("0B101").magnitude == 5
        assert parse_literal("0O17").magnitude == 15

    def test_binary(self):
        lit = parse_literal("0b1010")
        assert lit.base is Base.BIN
        assert lit.magnitude == 10

    def test_octal(self):
        lit = parse_literal("0o177")
        assert lit.base is Base.OCT
        assert lit.magnitude == 127

    def test_keeps_text(self):
        assert str(parse_literal("0xFF")) == "0xFF"

    def test_of_int(self):
        lit = IntegerLiteral.of(-4)
        assert lit.negative
        assert lit.magnitude == 4
        assert str(lit) == "-4"

    def test_empty_literal(self):
        with pytest.raises(InvalidLiteralError):
            parse_literal("")

    def test_prefix_without_digits(self):
        with pytest.raises(InvalidLiteralError):
            parse_literal("0x")

    def test_bad_binary_digit(self):
        with pytest.raises(InvalidLiteralError) as exc_info:
            parse_literal("0b102")
        assert "'2'" in str(exc_info.value)

    def test_bad_decimal_digit(self):
        with pytest.raises(InvalidLiteralError):
            parse_literal("12a")

    def test_sign_on_prefixed_literal(self):
        """Only decimal literals may carry a sign."""
        with pytest.raises(InvalidLiteralError):
            parse_literal("-0x10")

    def test_error_carries_location(self):
        location = SourceLocation(Segment.DATA, 3)
        with pytest.raises(InvalidLiteralError) as exc_info:
            parse_literal("0o9", location)
        assert exc_info.value.location == location
        assert str(exc_info.value).startswith(".data[3]: error:")


# =============================================================================
# Interpretation Tests
# =============================================================================

class TestInterpret:
    """Test range checking against slot width and signedness."""

    def test_signed_decimal(self):
        assert interpret("-4", 16, SIGNED) == -4
        assert interpret("32767", 16, SIGNED) == 32767
        assert interpret("-32768", 16, SIGNED) == -32768

    def test_signed_decimal_overflow(self):
        with pytest.raises(LiteralOverflowError):
            interpret("32768", 16, SIGNED)
        with pytest.raises(LiteralOverflowError):
            interpret("-32769", 16, SIGNED)

    def test_unsigned_decimal(self):
        assert interpret("65535", 16, UNSIGNED) == 65535

    def test_unsigned_rejects_negative(self):
        with pytest.raises(LiteralOverflowError):
            interpret("-1", 16, UNSIGNED)

    def test_hex_reinterpreted_as_signed(self):
        """A prefixed literal is a bit pattern: 0xFFFF as signed 16 is -1."""
        assert interpret("0xFFFF", 16, SIGNED) == -1
        assert interpret("0x8000", 16, SIGNED) == -32768
        assert interpret("0x7FFF", 16, SIGNED) == 32767

    def test_binary_reinterpreted_as_signed(self):
        assert interpret("0b11111111", 8, SIGNED) == -1

    def test_hex_unsigned(self):
        assert interpret("0xFFFF", 16, UNSIGNED) == 0xFFFF

    def test_hex_too_wide(self):
        with pytest.raises(LiteralOverflowError):
            interpret("0x1FFFF", 16, SIGNED)
        with pytest.raises(LiteralOverflowError):
            interpret("0x100", 8, UNSIGNED)

    def test_either_accepts_both_spellings(self):
        """Data values may be written signed or unsigned."""
        assert interpret("-1", 8, EITHER) == 0xFF
        assert interpret("255", 8, EITHER) == 0xFF
        assert interpret("-128", 8, EITHER) == 0x80

    def test_either_bounds(self):
        with pytest.raises(LiteralOverflowError):
            interpret("256", 8, EITHER)
        with pytest.raises(LiteralOverflowError):
            interpret("-129", 8, EITHER)

    def test_word_width(self):
        assert interpret("4294967295", 32, EITHER) == 0xFFFFFFFF
        assert interpret("-2147483648", 32, SIGNED) == -(1 << 31)

    def test_overflow_message(self):
        with pytest.raises(LiteralOverflowError) as exc_info:
            interpret("300", 8, UNSIGNED)
        error = exc_info.value
        assert error.width == 8
        assert error.valid_range == (0, 255)
        assert "300" in str(error)
        assert "valid range is 0..255" in str(error)

    def test_literal_value_method(self):
        assert parse_literal("0xFFFE").value(16, SIGNED) == -2

    def test_require_fits(self):
        assert require_fits(0xFFFF, 16, UNSIGNED) == 0xFFFF
        with pytest.raises(LiteralOverflowError):
            require_fits(0x10000, 16, UNSIGNED, name="high half")


# =============================================================================
# Bit Helper Tests
# =============================================================================

class TestBitHelpers:
    """Test range predicates and address halves."""

    def test_fits(self):
        assert fits_signed(-32768, 16)
        assert not fits_signed(32768, 16)
        assert fits_unsigned(65535, 16)
        assert not fits_unsigned(-1, 16)

    def test_sign_extend(self):
        assert sign_extend(0xFFFF, 16) == -1
        assert sign_extend(0x7FFF, 16) == 0x7FFF
        assert sign_extend(0x186A0, 16) == -31072

    def test_to_unsigned(self):
        assert to_unsigned(-1, 16) == 0xFFFF
        assert to_unsigned(-4, 32) == 0xFFFFFFFC

    def test_split_halves(self):
        assert split_halves(100000) == (0x86A0, 0x1)
        assert split_halves(0x12345678) == (0x5678, 0x1234)
        assert split_halves(42) == (42, 0)

    def test_split_join_round_trip(self):
        for address in (0, 1, 0xFFFF, 0x10000, 100000, 0xDEADBEEF):
            assert join_halves(*split_halves(address)) == address

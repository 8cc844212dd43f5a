"""
vasm Error Hierarchy
====================

This module defines the exception hierarchy for the whole assembler core.
All exceptions inherit from VasmError, allowing callers to catch every
assembler-related failure with a single except clause if desired.

Exception Hierarchy
-------------------
VasmError (base)
├── ConfigurationError - invalid assembler configuration
└── AssemblerError (assembly-related)
    ├── InvalidLiteralError - malformed digits for the declared base
    ├── LiteralOverflowError - value does not fit its target slot
    ├── DuplicateSymbolError - label defined more than once
    ├── UndefinedSymbolError - reference to a label that does not exist
    ├── UnresolvedAfterExpansionError - internal resolver invariant broken
    └── TreeFormatError - parse-tree document has the wrong shape

Design Philosophy
-----------------
Every assembly error carries the position of the offending element: the
segment it lives in and its index within that segment. The core never sees
source text, so the segment/index pair is the most precise location it can
report. A front-end that knows line numbers can map them back.

Error messages follow this format:
    .instructions[3]: error: undefined symbol 'lop'
    hint: did you mean 'loop'?
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class VasmError(Exception):
    """
    Base exception for all vasm errors.

        try:
            assembler.assemble(program)
        except VasmError as e:
            print(f"Error: {e}")
    """
    pass


class ConfigurationError(VasmError):
    """
    Invalid assembler configuration.

    Raised when a base address is negative or outside the address space,
    or when the word size is not one the instruction set supports.
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

class Segment(Enum):
    """The two ordered regions of a program."""
    DATA = "data"
    INSTRUCTION = "instructions"

    def __str__(self) -> str:
        return f".{self.value}"


@dataclass(frozen=True)
class SourceLocation:
    """
    Position of an element in the parse tree.

    Attributes:
        segment: Segment holding the element
        index: Index of the element within its segment (0-based)
    """
    segment: Segment
    index: int

    def __str__(self) -> str:
        """Format as '.segment[index]' for error messages."""
        return f"{self.segment}[{self.index}]"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(VasmError):
    """
    Base exception for all assembly errors.

    Attributes:
        message: The error description
        location: Where in the program the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location and hint.

        Example output:
            .data[2]: error: literal '300' does not fit in 8 bits (unsigned)
            hint: valid range is 0..255
        """
        if self.location:
            parts = [f"{self.location}: error: {self.message}"]
        else:
            parts = [f"error: {self.message}"]

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class InvalidLiteralError(AssemblerError):
    """
    Literal text inconsistent with its declared base.

    The front-end guarantees well-formed literals, so this only fires when
    a tree was built by hand or by a faulty front-end.

    Examples:
        - "0x" with no digits
        - "0b102" (digit 2 in a binary literal)
        - "-0x10" (sign on a prefixed literal)
    """

    def __init__(
        self,
        text: str,
        reason: str,
        location: Optional[SourceLocation] = None,
    ):
        self.text = text
        super().__init__(
            f"invalid literal '{text}': {reason}",
            location=location,
        )


class LiteralOverflowError(AssemblerError):
    """
    A numeric value does not fit the bit width of its target slot.

    The slot may be a data element (8/16/32 bits), an instruction
    immediate (16 bits) or one half of an expanded address load.
    """

    def __init__(
        self,
        text: str,
        width: int,
        signedness: str,
        location: Optional[SourceLocation] = None,
        valid_range: Optional[tuple[int, int]] = None,
    ):
        self.text = text
        self.width = width
        self.signedness = signedness
        self.valid_range = valid_range

        hint = None
        if valid_range is not None:
            hint = f"valid range is {valid_range[0]}..{valid_range[1]}"

        super().__init__(
            f"literal '{text}' does not fit in {width} bits ({signedness})",
            location=location,
            hint=hint,
        )


class UndefinedSymbolError(AssemblerError):
    """
    Reference to an undefined label.

    Raised by the reference resolver when an identifier used as a jump
    target or address-load operand has no matching label anywhere in the
    program. Similarly-named symbols are suggested to help catch typos.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined symbol '{symbol}'",
            location=location,
            hint=hint,
        )


class DuplicateSymbolError(AssemblerError):
    """
    Label defined more than once.

    Both segments share one namespace, so a data label and an instruction
    label with the same name also collide. The hint names the original
    definition.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"duplicate symbol '{symbol}'",
            location=location,
            hint=hint,
        )


class UnresolvedAfterExpansionError(AssemblerError):
    """
    An operand was still symbolic after the resolver pass.

    This signals a bug in the expander or resolver, not a user error.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
    ):
        self.symbol = symbol
        super().__init__(
            f"operand '{symbol}' is still unresolved after resolution",
            location=location,
            hint="this is an internal assembler error",
        )


class TreeFormatError(AssemblerError):
    """
    The parse-tree document does not match the expected shape.

    Raised by the tree loader for unknown mnemonics or registers, wrong
    operand counts, or missing fields.
    """
    pass

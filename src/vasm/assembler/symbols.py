"""
Symbol Table and Address Assignment
===================================

This module implements the first assembler pass. It walks the data segment
and then the instruction segment in source order, assigns a byte address
to every element, and registers each label in a shared symbol table.

Address Layout
--------------
    data_base                    instruction_base
    |                            |
    v                            v
    +----------------------------+---------------------------------+
    | .data elements, in order   | .instructions, in order         |
    +----------------------------+---------------------------------+

The instruction segment starts right after the data segment unless an
explicit instruction base is configured. A configured base that overlaps
the data range is reported as a warning: the two segments may live in
separate memories on a Harvard machine.

Element Sizes
-------------
| Element            | Size in bytes                               |
|--------------------|---------------------------------------------|
| Block(size)        | size                                        |
| ByteList(values)   | 1 * len(values)                             |
| ShortList(values)  | 2 * len(values)                             |
| WordList(values)   | 4 * len(values)                             |
| instruction form   | expansion_size(form) * word size in bytes   |

Namespace
---------
Data and instruction labels share one namespace. Labels are case-sensitive,
so 'loop' and 'Loop' are different symbols. Symbols keep their insertion
order, which keeps every listing and image deterministic.
"""

import logging
from dataclasses import dataclass
from functools import reduce
from typing import Callable, Iterator, Optional, Sequence, TYPE_CHECKING

from vasm.cpu import DEFAULT_WORD_SIZE_BITS, word_bytes
from vasm.errors import (
    AssemblerError,
    DuplicateSymbolError,
    Segment,
    SourceLocation,
    UndefinedSymbolError,
)
from vasm.assembler.ast import (
    Block,
    DataElement,
    DataStatement,
    InstructionStatement,
    Program,
)
from vasm.assembler.literals import IntegerLiteral, Signedness, require_fits
from vasm.assembler.pseudo import expansion_size

if TYPE_CHECKING:
    from vasm.assembler.assembler import AssemblerConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Symbol Table
# =============================================================================

@dataclass(frozen=True)
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Label name (case-sensitive)
        address: Byte address of the labeled element
        segment: Segment the label was defined in
        location: Where the label was defined
    """
    name: str
    address: int
    segment: Segment
    location: SourceLocation


class SymbolTable:
    """
    Insertion-ordered table of every label in a program.

    The table is filled during address assignment and frozen once
    resolution completes. A frozen table rejects new definitions.
    """

    def __init__(self):
        self._symbols: dict[str, Symbol] = {}
        self._references: dict[str, list[SourceLocation]] = {}
        self._frozen = False

    def define(
        self,
        name: str,
        address: int,
        segment: Segment,
        location: SourceLocation,
    ) -> Symbol:
        """
        Register a label.

        Raises:
            DuplicateSymbolError: If the name is already defined
            AssemblerError: If the table has been frozen
        """
        if self._frozen:
            raise AssemblerError(
                f"cannot define '{name}': symbol table is frozen",
                location,
                hint="this is an internal assembler error",
            )

        existing = self._symbols.get(name)
        if existing is not None:
            raise DuplicateSymbolError(
                name,
                location=location,
                original_location=existing.location,
            )

        symbol = Symbol(name, address, segment, location)
        self._symbols[name] = symbol
        logger.debug("%s: defined %s = 0x%04X in %s", location, name, address, segment)
        return symbol

    def lookup(self, name: str, location: Optional[SourceLocation] = None) -> Symbol:
        """
        Look up a label.

        Raises:
            UndefinedSymbolError: If the name is not defined, with
                similarly-named symbols as suggestions
        """
        symbol = self._symbols.get(name)
        if symbol is None:
            raise UndefinedSymbolError(
                name,
                location=location,
                similar_symbols=self.find_similar(name),
            )
        return symbol

    def get(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._symbols

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def __len__(self) -> int:
        return len(self._symbols)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SymbolTable):
            return NotImplemented
        return list(self) == list(other)

    def __repr__(self) -> str:
        return f"SymbolTable({self.addresses()!r})"

    def addresses(self) -> dict[str, int]:
        """Return a name -> address mapping in definition order."""
        return {name: sym.address for name, sym in self._symbols.items()}

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def note_reference(self, name: str, location: SourceLocation) -> None:
        """Record that `name` is used as an operand at `location`."""
        self._references.setdefault(name, []).append(location)

    @property
    def references(self) -> dict[str, tuple[SourceLocation, ...]]:
        """Every referenced name with the places it is used."""
        return {name: tuple(locs) for name, locs in self._references.items()}

    def find_similar(self, name: str) -> list[str]:
        """
        Find symbols with similar names for error hints.

        A case-only difference always matches; otherwise names within an
        edit distance of 2 (and a length difference of at most 1) match.
        """
        name_lower = name.lower()
        similar = []

        for sym in self._symbols:
            sym_lower = sym.lower()
            if (
                sym_lower == name_lower or
                abs(len(sym) - len(name)) <= 1 and
                _edit_distance(name_lower, sym_lower) <= 2
            ):
                similar.append(sym)

        return similar[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(
                    1 + min(distances[j], distances[j + 1], new_distances[-1])
                )
        distances = new_distances

    return distances[-1]


# =============================================================================
# Data Sizing
# =============================================================================

@dataclass(frozen=True)
class PlacedData:
    """
    A data element at its final address.

    Attributes:
        address: Address of the element's first byte
        element: The source element
        location: Position in the data segment
        label: Label of the element, if any
        size: Size in bytes
        values: Checked unsigned values (empty for Block)
    """
    address: int
    element: DataElement
    location: SourceLocation
    label: Optional[str]
    size: int
    values: tuple[int, ...] = ()


def element_values(
    element: DataElement,
    location: Optional[SourceLocation] = None,
) -> tuple[int, ...]:
    """
    Range-check the values of a list element.

    Each value may be written signed or unsigned and is returned as the
    unsigned bit pattern of the element width, so '.byte -1' gives 255.

    Raises:
        LiteralOverflowError: If a value does not fit the element width
    """
    if isinstance(element, Block):
        return ()

    width_bits = element.width * 8
    values = []
    for value in element.values:
        if not isinstance(value, IntegerLiteral):
            value = IntegerLiteral.of(value)
        values.append(value.value(width_bits, Signedness.EITHER, location))
    return tuple(values)


def element_size(
    element: DataElement,
    location: Optional[SourceLocation] = None,
    word_size_bits: int = DEFAULT_WORD_SIZE_BITS,
) -> int:
    """
    Return the size of a data element in bytes.

    Raises:
        LiteralOverflowError: If a Block size exceeds the address space
    """
    if isinstance(element, Block):
        if isinstance(element.size, IntegerLiteral):
            return element.size.value(word_size_bits, Signedness.UNSIGNED, location)
        return require_fits(element.size, word_size_bits, Signedness.UNSIGNED, location)
    return element.width * len(element.values)


# =============================================================================
# Layout Pass
# =============================================================================

@dataclass(frozen=True)
class Layout:
    """
    Result of address assignment.

    Attributes:
        symbols: Every label with its address
        data: Placed data elements in source order
        instruction_addresses: Address of each instruction statement
        data_base: First data address
        data_size: Data segment size in bytes
        instruction_base: First instruction address
        instruction_size: Instruction segment size in bytes
        word_size_bits: Machine word size
        warnings: Layout warnings, in the order raised
    """
    symbols: SymbolTable
    data: tuple[PlacedData, ...]
    instruction_addresses: tuple[int, ...]
    data_base: int
    data_size: int
    instruction_base: int
    instruction_size: int
    word_size_bits: int
    warnings: tuple[str, ...] = ()


def _walk(
    statements: Sequence,
    segment: Segment,
    locate: Callable[[int], SourceLocation],
    base: int,
    symbols: SymbolTable,
    place: Callable[[object, int, SourceLocation], tuple[int, object]],
    word_size_bits: int,
) -> tuple[int, tuple]:
    """
    Assign addresses to one segment.

    `place` returns (size, placed_record) for a statement at an address.
    The fold threads only the next free address; records are collected in
    source order and returned with the end address.

    Raises:
        LiteralOverflowError: If an element ends past the address space
    """
    placed = []

    def step(address: int, indexed) -> int:
        index, stmt = indexed
        location = locate(index)
        if stmt.label is not None:
            symbols.define(stmt.label, address, segment, location)
        size, record = place(stmt, address, location)
        last = address + max(size, 1) - 1
        require_fits(
            last, word_size_bits, Signedness.UNSIGNED, location,
            name=f"0x{last:X}",
        )
        placed.append(record)
        return address + size

    end = reduce(step, enumerate(statements), base)
    return end, tuple(placed)


def build_layout(program: Program, config: "AssemblerConfig") -> Layout:
    """
    Run the first pass: assign addresses and build the symbol table.

    Args:
        program: The parsed program
        config: Assembler configuration (bases and word size)

    Returns:
        The Layout with every element placed

    Raises:
        DuplicateSymbolError: If a label is defined twice
        LiteralOverflowError: If a data value or LWI immediate overflows, or
            an element ends past the word-size address space
    """
    word_size_bits = config.word_size_bits
    wb = word_bytes(word_size_bits)
    symbols = SymbolTable()
    warnings: list[str] = []

    def place_data(stmt: DataStatement, address: int, location: SourceLocation):
        size = element_size(stmt.element, location, word_size_bits)
        values = element_values(stmt.element, location)
        return size, PlacedData(address, stmt.element, location, stmt.label, size, values)

    def place_instruction(stmt: InstructionStatement, address: int, location: SourceLocation):
        return expansion_size(stmt.form, word_size_bits, location) * wb, address

    data_end, placed_data = _walk(
        program.data, Segment.DATA, Program.data_location,
        config.data_base_address, symbols, place_data, word_size_bits,
    )
    data_size = data_end - config.data_base_address

    if config.instruction_base_address is None:
        instruction_base = data_end
    else:
        instruction_base = config.instruction_base_address

    code_end, addresses = _walk(
        program.instructions, Segment.INSTRUCTION, Program.instruction_location,
        instruction_base, symbols, place_instruction, word_size_bits,
    )
    instruction_size = code_end - instruction_base

    if (
        config.instruction_base_address is not None
        and data_size > 0 and instruction_size > 0
        and instruction_base < data_end
        and config.data_base_address < code_end
    ):
        message = (
            f"instruction segment 0x{instruction_base:04X}..0x{code_end - 1:04X} "
            f"overlaps data segment 0x{config.data_base_address:04X}..0x{data_end - 1:04X}"
        )
        logger.warning(message)
        warnings.append(message)

    logger.debug(
        "layout: data at 0x%04X (%d bytes), instructions at 0x%04X (%d bytes), %d symbols",
        config.data_base_address, data_size, instruction_base, instruction_size, len(symbols),
    )

    return Layout(
        symbols=symbols,
        data=placed_data,
        instruction_addresses=addresses,
        data_base=config.data_base_address,
        data_size=data_size,
        instruction_base=instruction_base,
        instruction_size=instruction_size,
        word_size_bits=word_size_bits,
        warnings=tuple(warnings),
    )

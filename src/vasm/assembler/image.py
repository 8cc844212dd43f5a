"""
Program Image
=============

This module builds the final output of the assembler core: the placed data
segment, the placed canonical instructions and the frozen symbol table,
together with the layout figures and any warnings.

A ProgramImage is the hand-off point to an encoder. Every operand in it is
numeric and every instruction is canonical; bit-packing into machine words
is left to the consumer.

Output Formats
--------------
to_dict() returns a JSON-ready mapping:

    {
      "word_size": 32,
      "data_base": 0, "data_size": 8,
      "instruction_base": 8, "instruction_size": 12,
      "data": [{"address": 0, "label": "table", "kind": "word",
                "size": 8, "values": [10, 20], "source": ".data[0]"}],
      "instructions": [{"address": 8, "label": "loop", "mnemonic": "ADD",
                        "class": "alu", "operands": {...}, ...}],
      "symbols": [{"name": "table", "address": 0, "segment": "data"}],
      "warnings": []
    }

listing() returns a human-readable assembly listing and symbol_listing()
a plain symbol file, one 'name address segment' entry per line.
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Sequence

from vasm.cpu import Register, get_instruction_class
from vasm.errors import (
    AssemblerError,
    DuplicateSymbolError,
    UndefinedSymbolError,
)
from vasm.assembler.ast import (
    Resolved,
    format_element,
    format_form,
    is_pseudo,
)
from vasm.assembler.pseudo import PlacedInstruction
from vasm.assembler.symbols import Layout, PlacedData, SymbolTable

logger = logging.getLogger(__name__)


# =============================================================================
# Program Image
# =============================================================================

@dataclass(frozen=True)
class ProgramImage:
    """
    A fully resolved program.

    Images compare by value. The symbol table takes part in equality but
    not in the hash.

    Attributes:
        data: Placed data elements in address order
        instructions: Placed canonical instructions in address order
        symbols: Frozen symbol table
        data_base: First data address
        data_size: Data segment size in bytes
        instruction_base: First instruction address
        instruction_size: Instruction segment size in bytes
        word_size_bits: Machine word size
        warnings: Warnings raised while assembling
    """
    data: tuple[PlacedData, ...]
    instructions: tuple[PlacedInstruction, ...]
    symbols: SymbolTable = field(hash=False)
    data_base: int
    data_size: int
    instruction_base: int
    instruction_size: int
    word_size_bits: int
    warnings: tuple[str, ...] = ()

    def symbol_address(self, name: str) -> int:
        """Return the address of a label (raises UndefinedSymbolError)."""
        return self.symbols.lookup(name).address

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return the image as plain, JSON-serializable data."""
        return {
            "word_size": self.word_size_bits,
            "data_base": self.data_base,
            "data_size": self.data_size,
            "instruction_base": self.instruction_base,
            "instruction_size": self.instruction_size,
            "data": [_data_dict(d) for d in self.data],
            "instructions": [_instruction_dict(i) for i in self.instructions],
            "symbols": [
                {
                    "name": sym.name,
                    "address": sym.address,
                    "segment": sym.segment.value,
                }
                for sym in self.symbols
            ],
            "warnings": list(self.warnings),
        }

    def listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            The listing showing addresses, labels and the resolved form of
            every element, followed by the symbol table.
        """
        digits = self.word_size_bits // 4
        lines = []
        lines.append("vasm Assembler Listing")
        lines.append("=" * 60)
        lines.append("")
        lines.append(f"{'Addr':<{digits}}  {'Label':<16}  Source")
        lines.append("-" * 60)

        for d in self.data:
            label = f"{d.label}:" if d.label else ""
            lines.append(f"{d.address:0{digits}X}  {label:<16}  {format_element(d.element)}")

        for i in self.instructions:
            label = f"{i.label}:" if i.label else ""
            text = format_form(i.form)
            if i.expanded_from is not None:
                text = f"{text:<28}; {i.expanded_from}"
            lines.append(f"{i.address:0{digits}X}  {label:<16}  {text}")

        lines.append("")
        lines.append("Symbol Table")
        lines.append("-" * 30)
        for sym in self.symbols:
            lines.append(f"{sym.name:20s} = 0x{sym.address:0{digits}X}  {sym.segment}")
        return "\n".join(lines) + "\n"

    def symbol_listing(self) -> str:
        """
        Get the symbol file contents.

        Format: name address segment (one per line, definition order)
        """
        digits = self.word_size_bits // 4
        lines = ["# Symbol table", "# Generated by vasm"]
        for sym in self.symbols:
            lines.append(f"{sym.name} 0x{sym.address:0{digits}X} {sym.segment.value}")
        return "\n".join(lines) + "\n"


def _operand_value(value: Any) -> Any:
    if isinstance(value, Resolved):
        return value.address
    if isinstance(value, Register):
        return str(value)
    return value


def _instruction_dict(placed: PlacedInstruction) -> dict[str, Any]:
    form = placed.form
    return {
        "address": placed.address,
        "label": placed.label,
        "mnemonic": str(form.op),
        "class": str(get_instruction_class(form.op)),
        "operands": {
            f.name: _operand_value(getattr(form, f.name))
            for f in fields(form)
            if f.name != "op"
        },
        "expanded_from": str(placed.expanded_from) if placed.expanded_from else None,
        "source": str(placed.location),
        "text": format_form(form),
    }


def _data_dict(placed: PlacedData) -> dict[str, Any]:
    return {
        "address": placed.address,
        "label": placed.label,
        "kind": placed.element.kind,
        "size": placed.size,
        "values": list(placed.values),
        "source": str(placed.location),
    }


# =============================================================================
# Image Builder
# =============================================================================

def build_image(
    layout: Layout,
    instructions: Sequence[PlacedInstruction],
    warnings: Sequence[str] = (),
) -> ProgramImage:
    """
    Assemble the final image and validate global postconditions.

    Checks that every label in the placed program maps to exactly one
    symbol at the element's address, that every referenced name is
    defined, and that no pseudo form survived expansion. The symbol table
    is frozen on success.

    Args:
        layout: Result of the layout pass
        instructions: Resolved, placed instructions
        warnings: Warnings from resolution, appended after layout warnings

    Returns:
        The ProgramImage

    Raises:
        DuplicateSymbolError: If a label maps to more than one element
        UndefinedSymbolError: If a referenced name has no symbol
        AssemblerError: If a pseudo form reached the image
    """
    symbols = layout.symbols
    seen: dict[str, Any] = {}

    labeled = [(d.label, d.address, d.location) for d in layout.data if d.label]
    labeled += [(i.label, i.address, i.location) for i in instructions if i.label]

    for name, address, location in labeled:
        if name in seen:
            raise DuplicateSymbolError(name, location=location, original_location=seen[name])
        seen[name] = location
        symbol = symbols.lookup(name, location)
        if symbol.address != address:
            raise AssemblerError(
                f"symbol '{name}' is at 0x{symbol.address:X} but its element is at 0x{address:X}",
                location,
                hint="this is an internal assembler error",
            )

    for name, locations in symbols.references.items():
        if name not in symbols:
            raise UndefinedSymbolError(
                name,
                location=locations[0],
                similar_symbols=symbols.find_similar(name),
            )

    for placed in instructions:
        if is_pseudo(placed.form):
            raise AssemblerError(
                f"pseudo-instruction {placed.form.op} reached the program image",
                placed.location,
                hint="this is an internal assembler error",
            )

    symbols.freeze()
    all_warnings = tuple(layout.warnings) + tuple(warnings)

    logger.debug(
        "image: %d data elements, %d instructions, %d symbols, %d warnings",
        len(layout.data), len(instructions), len(symbols), len(all_warnings),
    )

    return ProgramImage(
        data=layout.data,
        instructions=tuple(instructions),
        symbols=symbols,
        data_base=layout.data_base,
        data_size=layout.data_size,
        instruction_base=layout.instruction_base,
        instruction_size=layout.instruction_size,
        word_size_bits=layout.word_size_bits,
        warnings=all_warnings,
    )

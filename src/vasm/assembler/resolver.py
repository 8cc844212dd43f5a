"""
Reference Resolver
==================

This module implements the second assembler pass. It runs over the fully
expanded instruction stream, after every label has an address, and
replaces each symbolic operand with a number.

Substitution Rules
------------------
| Operand                     | Becomes                                |
|-----------------------------|----------------------------------------|
| Branch/Jump Unresolved(id)  | Resolved(address of id)                |
| Branch/Jump Literal(n)      | Resolved(n), used verbatim             |
| LI Unresolved(id)           | Resolved(address & 0xFFFF)             |
| LHI Unresolved(id)          | Resolved(address >> 16), must fit 16   |

For every label, join_halves(low, high) gives back its address, so the
LI/LHI pair produced by LDA/LIA loads exactly that address.

Segment Checks
--------------
LDA is meant for data labels and LIA for instruction labels. Using one on
the other kind of label still assembles; it is reported as a warning.
"""

import logging
from dataclasses import replace
from typing import Optional, Sequence

from vasm.cpu import IMMEDIATE_BITS, Opcode
from vasm.errors import Segment, SourceLocation, UnresolvedAfterExpansionError
from vasm.assembler.ast import (
    Branch,
    CanonicalForm,
    Jump,
    JumpTarget,
    Literal,
    LoadImm,
    Resolved,
    SetImm,
    Unresolved,
)
from vasm.assembler.literals import Signedness, require_fits, split_halves
from vasm.assembler.pseudo import PlacedInstruction
from vasm.assembler.symbols import Symbol, SymbolTable

logger = logging.getLogger(__name__)


# Segment each address-load pseudo-instruction expects its label in
_EXPECTED_SEGMENT = {
    Opcode.LDA: Segment.DATA,
    Opcode.LIA: Segment.INSTRUCTION,
}

_LABEL_KIND = {
    Segment.DATA: "a data label",
    Segment.INSTRUCTION: "an instruction label",
}


def resolve(
    instructions: Sequence[PlacedInstruction],
    symbols: SymbolTable,
    warnings: Optional[list[str]] = None,
) -> tuple[PlacedInstruction, ...]:
    """
    Substitute every symbolic operand with its address.

    Args:
        instructions: Expanded, placed instructions
        symbols: Complete symbol table from the layout pass
        warnings: List to append segment-mismatch warnings to

    Returns:
        The instructions with every operand numeric

    Raises:
        UndefinedSymbolError: If an identifier names no label
        LiteralOverflowError: If an address high half exceeds 16 bits
        UnresolvedAfterExpansionError: If an operand is still symbolic
    """
    resolved = []
    for placed in instructions:
        form = _resolve_form(placed, symbols, warnings)
        _check_resolved(form, placed.location)
        resolved.append(replace(placed, form=form))

    logger.debug("resolved %d instructions", len(resolved))
    return tuple(resolved)


def _lookup(
    name: str,
    symbols: SymbolTable,
    location: SourceLocation,
) -> Symbol:
    symbols.note_reference(name, location)
    return symbols.lookup(name, location)


def _resolve_target(
    target: JumpTarget,
    symbols: SymbolTable,
    location: SourceLocation,
) -> JumpTarget:
    if isinstance(target, Unresolved):
        symbol = _lookup(target.identifier, symbols, location)
        logger.debug("%s: %s -> 0x%04X", location, target.identifier, symbol.address)
        return Resolved(symbol.address)
    if isinstance(target, Literal):
        return Resolved(int(target.value))
    return target


def _check_segment(
    placed: PlacedInstruction,
    symbol: Symbol,
    warnings: Optional[list[str]],
) -> None:
    expected = _EXPECTED_SEGMENT.get(placed.expanded_from)
    if expected is None or symbol.segment is expected:
        return

    message = (
        f"{placed.location}: {placed.expanded_from} expects {_LABEL_KIND[expected]}, "
        f"but '{symbol.name}' is {_LABEL_KIND[symbol.segment]}"
    )
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)


def _resolve_form(
    placed: PlacedInstruction,
    symbols: SymbolTable,
    warnings: Optional[list[str]],
) -> CanonicalForm:
    form = placed.form
    location = placed.location

    if isinstance(form, (Branch, Jump)):
        return replace(form, target=_resolve_target(form.target, symbols, location))

    if isinstance(form, LoadImm) and isinstance(form.imm, Unresolved):
        symbol = _lookup(form.imm.identifier, symbols, location)
        _check_segment(placed, symbol, warnings)
        low, _ = split_halves(symbol.address, IMMEDIATE_BITS)
        logger.debug("%s: low(%s) = 0x%04X", location, symbol.name, low)
        return replace(form, imm=Resolved(low))

    if isinstance(form, SetImm) and isinstance(form.uimm, Unresolved):
        symbol = _lookup(form.uimm.identifier, symbols, location)
        _, high = split_halves(symbol.address, IMMEDIATE_BITS)
        require_fits(
            high, IMMEDIATE_BITS, Signedness.UNSIGNED, location,
            name=f"high half of '{symbol.name}' (0x{symbol.address:X})",
        )
        logger.debug("%s: high(%s) = 0x%04X", location, symbol.name, high)
        return replace(form, uimm=Resolved(high))

    return form


def _check_resolved(form: CanonicalForm, location: SourceLocation) -> None:
    """Raise if any operand of `form` is still symbolic."""
    if isinstance(form, (Branch, Jump)):
        operand = form.target
    elif isinstance(form, LoadImm):
        operand = form.imm
    elif isinstance(form, SetImm):
        operand = form.uimm
    else:
        return

    if isinstance(operand, (Unresolved, Literal)):
        raise UnresolvedAfterExpansionError(str(operand), location)

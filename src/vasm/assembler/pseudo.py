"""
Pseudo-Instruction Expander
===========================

This module rewrites pseudo-instructions into canonical instruction forms
and range-checks the literal operands of canonical forms.

Expansion Rules
---------------
| Pseudo           | Expansion                                 | Words |
|------------------|-------------------------------------------|-------|
| PUSH r           | SW r, 0($SP); ADDI $SP, $SP, -W           | 2     |
| POP r            | ADDI $SP, $SP, W; LW r, 0($SP)            | 2     |
| LWI r, imm       | LI r, imm              (imm fits 16 bits) | 1     |
|                  | LI r, low16; LHI r, high16   (otherwise)  | 2     |
| LDA r, label     | LI r, label; LHI r, label                 | 2     |
| LIA r, label     | LI r, label; LHI r, label                 | 2     |

W is the word size in bytes. LDA/LIA always take two words, whatever the
label's final address, so sizes never depend on resolution.

Size Function
-------------
expansion_size() predicts how many canonical instructions expand() will
produce, without building them. The symbol table builder uses it to
assign addresses in the first pass. For every form:

    len(expand(form)) == expansion_size(form)

Operand Checking
----------------
| Slot                  | Width     | Signedness |
|-----------------------|-----------|------------|
| imm (ADDI, LI, ...)   | 16        | signed     |
| uimm (ANDI, LHI, ...) | 16        | unsigned   |
| offset (LW, SW, ...)  | 16        | signed     |
| literal jump target   | word size | unsigned   |

Undefined labels are not detected here; identifiers pass through as
Unresolved and are looked up by the resolver.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from vasm.cpu import (
    DEFAULT_WORD_SIZE_BITS,
    IMMEDIATE_BITS,
    Opcode,
    Register,
    word_bytes,
)
from vasm.errors import SourceLocation
from vasm.assembler.ast import (
    Alu,
    Branch,
    CanonicalForm,
    DataShuffle,
    Flop,
    ImmSigned,
    ImmUnsigned,
    InstructionForm,
    InstructionStatement,
    Jump,
    JumpReg,
    JumpTarget,
    Literal,
    LoadAddress,
    LoadImm,
    LoadStore,
    LoadWordImm,
    Pop,
    Program,
    Push,
    SetImm,
    Simple,
    is_pseudo,
)
from vasm.assembler.literals import (
    IntegerLiteral,
    Signedness,
    fits_signed,
    require_fits,
    sign_extend,
    split_halves,
    to_unsigned,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacedInstruction:
    """
    A canonical instruction at its final address.

    Attributes:
        address: Byte address of the instruction
        form: Canonical instruction form
        location: Position of the source statement it came from
        label: Label of the source statement (first expanded word only)
        expanded_from: Pseudo opcode this instruction was expanded from
    """
    address: int
    form: CanonicalForm
    location: SourceLocation
    label: Optional[str] = None
    expanded_from: Optional[Opcode] = None


# =============================================================================
# Size Function
# =============================================================================

def expansion_size(
    form: InstructionForm,
    word_size_bits: int = DEFAULT_WORD_SIZE_BITS,
    location: Optional[SourceLocation] = None,
) -> int:
    """
    Return the number of canonical instructions a form expands to.

    Args:
        form: Any instruction form, canonical or pseudo
        word_size_bits: Machine word size, used by LWI
        location: Statement position for error messages

    Returns:
        1 or 2

    Raises:
        LiteralOverflowError: If an LWI immediate exceeds the word size
    """
    if isinstance(form, (Push, Pop, LoadAddress)):
        return 2
    if isinstance(form, LoadWordImm):
        value = _word_immediate(form, word_size_bits, location)
        return 1 if fits_signed(value, IMMEDIATE_BITS) else 2
    return 1


# =============================================================================
# Expansion
# =============================================================================

def expand(
    form: InstructionForm,
    location: Optional[SourceLocation] = None,
    word_size_bits: int = DEFAULT_WORD_SIZE_BITS,
) -> tuple[CanonicalForm, ...]:
    """
    Expand one form into canonical forms with checked operands.

    Canonical forms come back as a single-element tuple with their literal
    operands replaced by ints. Expanding an already expanded form returns
    it unchanged.

    Args:
        form: Any instruction form
        location: Statement position for error messages
        word_size_bits: Machine word size

    Returns:
        Tuple of canonical forms, in execution order

    Raises:
        LiteralOverflowError: If a literal operand does not fit its slot
    """
    if isinstance(form, Push):
        wb = word_bytes(word_size_bits)
        return (
            LoadStore(Opcode.SW, form.rd, 0, Register.SP),
            ImmSigned(Opcode.ADDI, Register.SP, Register.SP, -wb),
        )

    if isinstance(form, Pop):
        wb = word_bytes(word_size_bits)
        return (
            ImmSigned(Opcode.ADDI, Register.SP, Register.SP, wb),
            LoadStore(Opcode.LW, form.rd, 0, Register.SP),
        )

    if isinstance(form, LoadWordImm):
        value = _word_immediate(form, word_size_bits, location)
        if fits_signed(value, IMMEDIATE_BITS):
            return (LoadImm(Opcode.LI, form.rd, value),)
        low, high = split_halves(to_unsigned(value, word_size_bits), IMMEDIATE_BITS)
        return (
            LoadImm(Opcode.LI, form.rd, sign_extend(low, IMMEDIATE_BITS)),
            SetImm(Opcode.LHI, form.rd, high),
        )

    if isinstance(form, LoadAddress):
        return (
            LoadImm(Opcode.LI, form.rd, form.target),
            SetImm(Opcode.LHI, form.rd, form.target),
        )

    return (_canonicalize(form, location, word_size_bits),)


def expand_segment(
    statements: Sequence[InstructionStatement],
    addresses: Sequence[int],
    word_size_bits: int = DEFAULT_WORD_SIZE_BITS,
) -> tuple[PlacedInstruction, ...]:
    """
    Expand every statement of the instruction segment and place the result.

    Args:
        statements: Instruction statements in source order
        addresses: Address of each statement, from the layout pass
        word_size_bits: Machine word size

    Returns:
        Placed canonical instructions in address order
    """
    wb = word_bytes(word_size_bits)
    placed: list[PlacedInstruction] = []

    for index, (stmt, address) in enumerate(zip(statements, addresses)):
        location = Program.instruction_location(index)
        forms = expand(stmt.form, location, word_size_bits)
        pseudo_op = stmt.form.op if is_pseudo(stmt.form) else None

        if pseudo_op is not None:
            logger.debug(
                "%s: expanded %s into %d instructions",
                location, pseudo_op, len(forms),
            )

        for offset, form in enumerate(forms):
            placed.append(PlacedInstruction(
                address=address + offset * wb,
                form=form,
                location=location,
                label=stmt.label if offset == 0 else None,
                expanded_from=pseudo_op,
            ))

    return tuple(placed)


# =============================================================================
# Operand Checking
# =============================================================================

def _word_immediate(
    form: LoadWordImm,
    word_size_bits: int,
    location: Optional[SourceLocation],
) -> int:
    return _check(form.imm, word_size_bits, Signedness.SIGNED, location)


def _check(value, width: int, signedness: Signedness, location) -> int:
    """Range-check a literal or int operand."""
    if isinstance(value, IntegerLiteral):
        return value.value(width, signedness, location)
    return require_fits(value, width, signedness, location)


def _check_target(
    target: JumpTarget,
    word_size_bits: int,
    location: Optional[SourceLocation],
) -> JumpTarget:
    if isinstance(target, Literal):
        return Literal(_check(target.value, word_size_bits, Signedness.UNSIGNED, location))
    return target


def _canonicalize(
    form: CanonicalForm,
    location: Optional[SourceLocation],
    word_size_bits: int,
) -> CanonicalForm:
    """Replace the literal operands of a canonical form with checked ints."""
    if isinstance(form, (Alu, Flop, DataShuffle, Simple, JumpReg)):
        return form

    if isinstance(form, ImmSigned):
        return replace(form, imm=_check(form.imm, IMMEDIATE_BITS, Signedness.SIGNED, location))

    if isinstance(form, ImmUnsigned):
        return replace(form, uimm=_check(form.uimm, IMMEDIATE_BITS, Signedness.UNSIGNED, location))

    if isinstance(form, LoadStore):
        return replace(form, offset=_check(form.offset, IMMEDIATE_BITS, Signedness.SIGNED, location))

    if isinstance(form, LoadImm):
        if isinstance(form.imm, (IntegerLiteral, int)):
            return replace(form, imm=_check(form.imm, IMMEDIATE_BITS, Signedness.SIGNED, location))
        return form

    if isinstance(form, SetImm):
        if isinstance(form.uimm, (IntegerLiteral, int)):
            return replace(form, uimm=_check(form.uimm, IMMEDIATE_BITS, Signedness.UNSIGNED, location))
        return form

    if isinstance(form, (Branch, Jump)):
        return replace(form, target=_check_target(form.target, word_size_bits, location))

    raise TypeError(f"not an instruction form: {form!r}")

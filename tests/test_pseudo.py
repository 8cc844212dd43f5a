# =============================================================================
# test_pseudo.py - Pseudo-Instruction Expander Tests
# =============================================================================
# Tests for pseudo-instruction expansion and canonical operand checking.
#
# Test coverage includes:
#   - PUSH / POP / LWI / LDA / LIA expansion
#   - expansion_size agreeing with expand for every form
#   - Immediate, offset and jump target range checks
#   - Placement of expanded instructions
# =============================================================================

import pytest

from vasm.cpu import Opcode, Register
from vasm.errors import LiteralOverflowError, Segment, SourceLocation
from vasm.assembler.ast import (
    Alu,
    Branch,
    DataShuffle,
    Flop,
    ImmSigned,
    ImmUnsigned,
    InstructionStatement,
    Jump,
    JumpReg,
    Literal,
    LoadAddress,
    LoadImm,
    LoadStore,
    LoadWordImm,
    Pop,
    Push,
    SetImm,
    Simple,
    Unresolved,
)
from vasm.assembler.literals import IntegerLiteral, join_halves, parse_literal, to_unsigned
from vasm.assembler.pseudo import expand, expand_segment, expansion_size

R = Register


def lit(text: str) -> IntegerLiteral:
    return parse_literal(text)


# =============================================================================
# Pseudo-Instruction Expansion Tests
# =============================================================================

class TestPushPop:
    """Test stack pseudo-instructions."""

    def test_push(self):
        assert expand(Push(R.T0)) == (
            LoadStore(Opcode.SW, R.T0, 0, R.SP),
            ImmSigned(Opcode.ADDI, R.SP, R.SP, -4),
        )

    def test_pop(self):
        assert expand(Pop(R.T0)) == (
            ImmSigned(Opcode.ADDI, R.SP, R.SP, 4),
            LoadStore(Opcode.LW, R.T0, 0, R.SP),
        )

    def test_push_uses_word_size(self):
        forms = expand(Push(R.A0), word_size_bits=16)
        assert forms[1] == ImmSigned(Opcode.ADDI, R.SP, R.SP, -2)


class TestLoadWordImm:
    """Test LWI splitting."""

    def test_small_value_single_li(self):
        assert expand(LoadWordImm(R.T0, lit("100"))) == (
            LoadImm(Opcode.LI, R.T0, 100),
        )

    def test_negative_small_value(self):
        assert expand(LoadWordImm(R.T0, lit("-5"))) == (
            LoadImm(Opcode.LI, R.T0, -5),
        )

    def test_large_value_split(self):
        """100000 = 0x000186A0 needs LI + LHI."""
        forms = expand(LoadWordImm(R.T0, lit("100000")))
        assert len(forms) == 2
        li, lhi = forms
        assert li == LoadImm(Opcode.LI, R.T0, -31072)
        assert lhi == SetImm(Opcode.LHI, R.T0, 1)
        assert join_halves(to_unsigned(li.imm, 16), lhi.uimm) == 100000

    def test_hex_all_ones_is_minus_one(self):
        """0xFFFFFFFF as a signed word is -1, which fits LI."""
        assert expand(LoadWordImm(R.T1, lit("0xFFFFFFFF"))) == (
            LoadImm(Opcode.LI, R.T1, -1),
        )

    def test_negative_large_value(self):
        forms = expand(LoadWordImm(R.T0, lit("-100000")))
        li, lhi = forms
        assert join_halves(to_unsigned(li.imm, 16), lhi.uimm) == to_unsigned(-100000, 32)

    def test_value_beyond_word(self):
        with pytest.raises(LiteralOverflowError):
            expand(LoadWordImm(R.T0, lit("0x100000000")))

    def test_value_beyond_16_bit_word(self):
        with pytest.raises(LiteralOverflowError):
            expand(LoadWordImm(R.T0, lit("100000")), word_size_bits=16)


class TestLoadAddress:
    """Test LDA / LIA expansion."""

    def test_lda(self):
        target = Unresolved("table")
        assert expand(LoadAddress(Opcode.LDA, R.A0, target)) == (
            LoadImm(Opcode.LI, R.A0, target),
            SetImm(Opcode.LHI, R.A0, target),
        )

    def test_lia_always_two_words(self):
        form = LoadAddress(Opcode.LIA, R.A1, Unresolved("main"))
        assert expansion_size(form) == 2
        assert len(expand(form)) == 2


# =============================================================================
# Size Stability Tests
# =============================================================================

ALL_FORMS = [
    Alu(Opcode.ADD, R.V0, R.V0, R.V1),
    Flop(Opcode.FMUL, R.T0, R.T1, R.T2),
    ImmSigned(Opcode.ADDI, R.SP, R.SP, lit("-4")),
    ImmUnsigned(Opcode.ANDI, R.T0, R.T0, lit("0xFF")),
    DataShuffle(Opcode.FLIP, R.T0, R.T1),
    LoadImm(Opcode.LI, R.T0, lit("42")),
    SetImm(Opcode.LHI, R.T0, lit("1")),
    Simple(Opcode.HALT),
    Branch(Opcode.BEZ, R.T2, Unresolved("done")),
    JumpReg(Opcode.JR, R.RA),
    LoadStore(Opcode.LW, R.T0, lit("4"), R.SP),
    Jump(Opcode.JMP, Literal(lit("42"))),
    Push(R.S0),
    Pop(R.S0),
    LoadWordImm(R.T0, lit("7")),
    LoadWordImm(R.T0, lit("0x12345678")),
    LoadAddress(Opcode.LDA, R.A0, Unresolved("x")),
    LoadAddress(Opcode.LIA, R.A0, Unresolved("y")),
]

# LWI values wider than the word are rejected, not sized
SIZE_CASES = [
    pytest.param(form, word_size, id=f"{index}-{type(form).__name__}-{word_size}")
    for word_size in (16, 32)
    for index, form in enumerate(ALL_FORMS)
    if not (isinstance(form, LoadWordImm) and form.imm.magnitude >> word_size)
]


class TestExpansionSize:
    """expansion_size must agree with expand for every form."""

    @pytest.mark.parametrize("form, word_size", SIZE_CASES)
    def test_size_matches_expansion(self, form, word_size):
        assert expansion_size(form, word_size) == len(expand(form, word_size_bits=word_size))

    def test_canonical_forms_are_one_word(self):
        assert expansion_size(Alu(Opcode.SUB, R.T0, R.T1, R.T2)) == 1


# =============================================================================
# Operand Checking Tests
# =============================================================================

class TestOperandChecking:
    """Test literal operands of canonical forms."""

    def test_signed_immediate(self):
        form = ImmSigned(Opcode.ADDI, R.T0, R.T0, lit("0xFFFF"))
        assert expand(form) == (ImmSigned(Opcode.ADDI, R.T0, R.T0, -1),)

    def test_signed_immediate_overflow(self):
        location = SourceLocation(Segment.INSTRUCTION, 5)
        with pytest.raises(LiteralOverflowError) as exc_info:
            expand(ImmSigned(Opcode.ADDI, R.T0, R.T0, lit("40000")), location)
        assert exc_info.value.location == location

    def test_unsigned_immediate(self):
        form = ImmUnsigned(Opcode.ORI, R.T0, R.T0, lit("65535"))
        assert expand(form)[0].uimm == 65535

    def test_unsigned_immediate_rejects_negative(self):
        with pytest.raises(LiteralOverflowError):
            expand(ImmUnsigned(Opcode.ORI, R.T0, R.T0, lit("-1")))

    def test_offset(self):
        assert expand(LoadStore(Opcode.SB, R.T0, lit("-8"), R.FP))[0].offset == -8
        with pytest.raises(LiteralOverflowError):
            expand(LoadStore(Opcode.SB, R.T0, lit("32768"), R.FP))

    def test_literal_jump_target(self):
        assert expand(Jump(Opcode.JMP, Literal(lit("0x2A")))) == (
            Jump(Opcode.JMP, Literal(42)),
        )

    def test_literal_jump_target_unsigned(self):
        with pytest.raises(LiteralOverflowError):
            expand(Jump(Opcode.JMP, Literal(lit("-1"))))

    def test_identifier_passes_through(self):
        form = Branch(Opcode.BNZ, R.T0, Unresolved("nowhere"))
        assert expand(form) == (form,)

    def test_expansion_is_idempotent(self):
        for form in ALL_FORMS:
            for expanded in expand(form):
                assert expand(expanded) == (expanded,)


# =============================================================================
# Placement Tests
# =============================================================================

class TestExpandSegment:
    """Test placing expanded instructions."""

    def test_addresses_and_labels(self):
        statements = [
            InstructionStatement(Push(R.T0), label="save"),
            InstructionStatement(Simple(Opcode.HALT), label="stop"),
        ]
        placed = expand_segment(statements, [100, 108])
        assert [p.address for p in placed] == [100, 104, 108]
        assert [p.label for p in placed] == ["save", None, "stop"]
        assert placed[0].expanded_from is Opcode.PUSH
        assert placed[1].expanded_from is Opcode.PUSH
        assert placed[2].expanded_from is None
        assert placed[1].location == SourceLocation(Segment.INSTRUCTION, 0)

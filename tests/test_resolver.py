# =============================================================================
# test_resolver.py - Reference Resolver Tests
# =============================================================================
# Tests for the second assembler pass: label substitution.
# =============================================================================

import pytest

from vasm.cpu import Opcode, Register
from vasm.errors import (
    LiteralOverflowError,
    Segment,
    SourceLocation,
    UndefinedSymbolError,
    UnresolvedAfterExpansionError,
)
from vasm.assembler.ast import (
    Branch,
    Jump,
    Literal,
    LoadImm,
    Resolved,
    SetImm,
    Simple,
    Unresolved,
)
from vasm.assembler.literals import join_halves
from vasm.assembler.pseudo import PlacedInstruction
from vasm.assembler.resolver import _check_resolved, resolve
from vasm.assembler.symbols import SymbolTable

R = Register
CODE0 = SourceLocation(Segment.INSTRUCTION, 0)


def table(**symbols) -> SymbolTable:
    """Build a symbol table; names starting with 'd' are data labels."""
    result = SymbolTable()
    for i, (name, address) in enumerate(symbols.items()):
        segment = Segment.DATA if name.startswith("d") else Segment.INSTRUCTION
        result.define(name, address, segment, SourceLocation(segment, i))
    return result


def placed(form, expanded_from=None, address=0):
    return PlacedInstruction(address, form, CODE0, expanded_from=expanded_from)


def address_load(name, op=Opcode.LDA):
    target = Unresolved(name)
    return [
        placed(LoadImm(Opcode.LI, R.A0, target), op, 0),
        placed(SetImm(Opcode.LHI, R.A0, target), op, 4),
    ]


# =============================================================================
# Jump Target Tests
# =============================================================================

class TestJumpTargets:
    """Test branch and jump resolution."""

    def test_jump_to_label(self):
        result = resolve([placed(Jump(Opcode.JMP, Unresolved("loop")))], table(loop=8))
        assert result[0].form == Jump(Opcode.JMP, Resolved(8))

    def test_branch_to_label(self):
        form = Branch(Opcode.BEZ, R.T2, Unresolved("done"))
        result = resolve([placed(form)], table(done=0x40))
        assert result[0].form.target == Resolved(0x40)

    def test_literal_target_verbatim(self):
        result = resolve([placed(Jump(Opcode.JMP, Literal(42)))], table())
        assert result[0].form == Jump(Opcode.JMP, Resolved(42))

    def test_undefined_label(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            resolve([placed(Jump(Opcode.JMP, Unresolved("lop")))], table(loop=0))
        error = exc_info.value
        assert error.symbol == "lop"
        assert error.location == CODE0
        assert "loop" in error.similar_symbols

    def test_records_references(self):
        symbols = table(loop=0)
        resolve([placed(Jump(Opcode.JMP, Unresolved("loop")))], symbols)
        assert symbols.references == {"loop": (CODE0,)}

    def test_other_forms_unchanged(self):
        form = Simple(Opcode.NOP)
        assert resolve([placed(form)], table())[0].form == form


# =============================================================================
# Address Half Tests
# =============================================================================

class TestAddressHalves:
    """Test LI / LHI substitution from LDA and LIA."""

    @pytest.mark.parametrize("address", [0, 0x40, 0xFFFF, 0x10000, 100000, 0xFFFFFFFF])
    def test_halves_rebuild_address(self, address):
        result = resolve(address_load("data"), table(data=address))
        low = result[0].form.imm.address
        high = result[1].form.uimm.address
        assert 0 <= low <= 0xFFFF
        assert join_halves(low, high) == address

    def test_high_half_overflow(self):
        with pytest.raises(LiteralOverflowError):
            resolve(address_load("data"), table(data=1 << 32))

    def test_lda_on_data_label_no_warning(self):
        warnings = []
        resolve(address_load("dtable", Opcode.LDA), table(dtable=0), warnings)
        assert warnings == []

    def test_lda_on_instruction_label_warns(self):
        warnings = []
        resolve(address_load("main", Opcode.LDA), table(main=8), warnings)
        assert len(warnings) == 1
        assert "LDA expects a data label" in warnings[0]

    def test_lia_on_data_label_warns(self):
        warnings = []
        resolve(address_load("dbuf", Opcode.LIA), table(dbuf=0), warnings)
        assert len(warnings) == 1
        assert "LIA expects an instruction label" in warnings[0]
        assert "'dbuf' is a data label" in warnings[0]

    def test_undefined_address_label(self):
        with pytest.raises(UndefinedSymbolError):
            resolve(address_load("missing"), table())


# =============================================================================
# Postcondition Tests
# =============================================================================

class TestPostconditions:
    """Test the unresolved-operand check."""

    def test_unresolved_operand_rejected(self):
        with pytest.raises(UnresolvedAfterExpansionError):
            _check_resolved(Jump(Opcode.JMP, Unresolved("loop")), CODE0)

    def test_resolved_operand_accepted(self):
        _check_resolved(Jump(Opcode.JMP, Resolved(4)), CODE0)
        _check_resolved(LoadImm(Opcode.LI, R.T0, 7), CODE0)

# =============================================================================
# test_image.py - Program Image Tests
# =============================================================================
# Tests for image building, global postconditions and output formats.
# =============================================================================

import pytest

from vasm.cpu import Opcode, Register
from vasm.errors import (
    AssemblerError,
    Segment,
    SourceLocation,
    UndefinedSymbolError,
)
from vasm.assembler import AssemblerConfig
from vasm.assembler.ast import (
    DataStatement,
    InstructionStatement,
    Jump,
    Program,
    Push,
    Resolved,
    ShortList,
    Simple,
)
from vasm.assembler.image import build_image
from vasm.assembler.literals import parse_literal
from vasm.assembler.pseudo import PlacedInstruction, expand_segment
from vasm.assembler.resolver import resolve
from vasm.assembler.symbols import build_layout

CODE0 = SourceLocation(Segment.INSTRUCTION, 0)


def sample_program() -> Program:
    return Program(
        data=[DataStatement(ShortList((parse_literal("-1"), parse_literal("2"))), "pair")],
        instructions=[
            InstructionStatement(Simple(Opcode.NOP), "start"),
            InstructionStatement(Jump(Opcode.JMP, Resolved(0)), None),
        ],
    )


def run_passes(program, config=None):
    config = config or AssemblerConfig()
    layout = build_layout(program, config)
    placed = expand_segment(program.instructions, layout.instruction_addresses, config.word_size_bits)
    return layout, resolve(placed, layout.symbols)


class TestBuildImage:
    """Test image construction and validation."""

    def test_build(self):
        layout, instructions = run_passes(sample_program())
        image = build_image(layout, instructions, ["note"])
        assert image.data_size == 4
        assert image.instruction_base == 4
        assert image.instruction_size == 8
        assert image.data[0].values == (0xFFFF, 2)
        assert image.warnings == ("note",)
        assert image.symbols.frozen

    def test_rejects_undefined_reference(self):
        layout, instructions = run_passes(sample_program())
        layout.symbols.note_reference("ghost", CODE0)
        with pytest.raises(UndefinedSymbolError):
            build_image(layout, instructions)

    def test_rejects_pseudo_form(self):
        layout, instructions = run_passes(sample_program())
        bad = instructions + (PlacedInstruction(12, Push(Register.T0), CODE0),)
        with pytest.raises(AssemblerError):
            build_image(layout, bad)

    def test_rejects_misplaced_label(self):
        layout, instructions = run_passes(sample_program())
        moved = (PlacedInstruction(100, Simple(Opcode.NOP), CODE0, label="start"),)
        with pytest.raises(AssemblerError):
            build_image(layout, moved)


class TestImageOutput:
    """Test dict, listing and symbol output."""

    def test_to_dict(self):
        layout, instructions = run_passes(sample_program())
        image = build_image(layout, instructions).to_dict()
        assert image["word_size"] == 32
        assert image["data"] == [{
            "address": 0, "label": "pair", "kind": "short", "size": 4,
            "values": [0xFFFF, 2], "source": ".data[0]",
        }]
        first = image["instructions"][0]
        assert first["mnemonic"] == "NOP"
        assert first["class"] == "simple"
        assert first["operands"] == {}
        assert first["label"] == "start"
        assert first["expanded_from"] is None

    def test_listing_16_bit_addresses(self):
        layout, instructions = run_passes(sample_program(), AssemblerConfig(word_size_bits=16))
        listing = build_image(layout, instructions).listing()
        assert "0004  start:" in listing
        assert ".short -1, 2" in listing
        assert f"{'pair':20s} = 0x0000  .data" in listing

    def test_symbol_listing(self):
        layout, instructions = run_passes(sample_program())
        text = build_image(layout, instructions).symbol_listing()
        assert text.splitlines() == [
            "# Symbol table",
            "# Generated by vasm",
            "pair 0x00000000 data",
            "start 0x00000004 instructions",
        ]


class TestImageIdentity:
    """Test equality and hashing of images."""

    def test_equal_images_hash_equal(self):
        first = build_image(*run_passes(sample_program()))
        second = build_image(*run_passes(sample_program()))
        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_different_labels_differ(self):
        first = build_image(*run_passes(sample_program()))
        renamed = Program(
            data=[DataStatement(ShortList((parse_literal("-1"), parse_literal("2"))), "other")],
            instructions=sample_program().instructions,
        )
        second = build_image(*run_passes(renamed))
        assert first != second

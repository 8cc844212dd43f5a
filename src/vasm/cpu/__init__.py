"""
vasm CPU Package
================

Instruction set definitions of the vasm virtual machine, shared by the
assembler core, the tree loader and the listing writer.

Modules:
    isa: Registers, opcodes, instruction classes, operand shapes and
         word-size constants.

Usage:
    from vasm.cpu import (
        Register,
        Opcode,
        InstructionClass,
        get_opcode,
    )
"""

from vasm.cpu.isa import (
    # Machine constants
    REGISTER_COUNT,
    DEFAULT_WORD_SIZE_BITS,
    SUPPORTED_WORD_SIZES,
    IMMEDIATE_BITS,
    BYTE_WIDTH,
    SHORT_WIDTH,
    WORD_WIDTH,
    word_bytes,
    # Core types
    Register,
    InstructionClass,
    Opcode,
    InstructionInfo,
    # Instruction tables
    OPCODE_TABLE,
    MNEMONICS,
    PSEUDO_INSTRUCTIONS,
    # Lookup functions
    get_register,
    get_opcode,
    get_instruction_info,
    get_instruction_class,
    opcodes_in_class,
    is_pseudo_instruction,
)

__all__ = [
    "REGISTER_COUNT",
    "DEFAULT_WORD_SIZE_BITS",
    "SUPPORTED_WORD_SIZES",
    "IMMEDIATE_BITS",
    "BYTE_WIDTH",
    "SHORT_WIDTH",
    "WORD_WIDTH",
    "word_bytes",
    "Register",
    "InstructionClass",
    "Opcode",
    "InstructionInfo",
    "OPCODE_TABLE",
    "MNEMONICS",
    "PSEUDO_INSTRUCTIONS",
    "get_register",
    "get_opcode",
    "get_instruction_info",
    "get_instruction_class",
    "opcodes_in_class",
    "is_pseudo_instruction",
]

"""
vasm Instruction Set Definition
===============================

This module defines the instruction set of the vasm virtual machine: its
register file, its opcodes grouped by instruction class, and the operand
shapes each class takes. The assembler core, the tree loader and the
listing writer all read their instruction knowledge from here.

Register File
-------------
32 registers with fixed indices. The set is closed: programs cannot add
registers.

| Index  | Names        | Role                        |
|--------|--------------|-----------------------------|
| 0      | ZERO         | Always reads as zero        |
| 1-2    | V0, V1       | Return values               |
| 3-7    | A0..A4       | Arguments                   |
| 8-17   | T0..T9       | Temporaries                 |
| 18-27  | S0..S9       | Saved registers             |
| 28     | SP           | Stack pointer               |
| 29     | FP           | Frame pointer               |
| 30     | RM           | Remainder (DIV/REM results) |
| 31     | RA           | Return address              |

Instruction Classes
-------------------
Each class fixes the operand shape of its instructions:

| Class          | Shape                  | Example             |
|----------------|------------------------|---------------------|
| ALU            | rd, rs, rt             | ADD $V0, $V0, $V1   |
| FLOP           | rd, rs, rt             | FADD $T0, $T1, $T2  |
| IMM_SIGNED     | rd, rs, imm16          | ADDI $SP, $SP, -4   |
| IMM_UNSIGNED   | rd, rs, uimm16         | ANDI $T0, $T0, 0xFF |
| DATA_SHUFFLE   | rd, rs                 | FLIP $T0, $T1       |
| LOAD_IMM       | rd, imm16              | LI $T0, 42          |
| SET_IMM        | rd, uimm16             | LHI $T0, 0x1        |
| SIMPLE         | (none)                 | HALT                |
| BRANCH         | rs, target             | BEZ $T2, done       |
| JUMP_REG       | rs                     | JR $RA              |
| LOAD_STORE     | rd, offset, rbase      | LW $T0, 4, $SP      |
| JUMP           | target                 | JMP loop            |

Pseudo-instructions (PUSH, POP, LWI, LDA, LIA) are listed in
PSEUDO_INSTRUCTIONS. They never reach the program image.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Optional


# =============================================================================
# Machine Constants
# =============================================================================

REGISTER_COUNT = 32

# Default machine word, in bits. Drives instruction size and LWI splitting.
DEFAULT_WORD_SIZE_BITS = 32
SUPPORTED_WORD_SIZES: frozenset[int] = frozenset({16, 32})

# Width of every instruction immediate slot, and of each address half
IMMEDIATE_BITS = 16

# Byte widths of the list data elements
BYTE_WIDTH = 1
SHORT_WIDTH = 2
WORD_WIDTH = 4


def word_bytes(word_size_bits: int) -> int:
    """Return the size of one machine word in bytes."""
    return word_size_bits // 8


# =============================================================================
# Registers
# =============================================================================

class Register(IntEnum):
    """
    vasm registers, valued by their fixed index.

    The enumeration order is the register numbering; do not reorder.
    """
    ZERO = 0
    V0 = 1
    V1 = 2
    A0 = 3
    A1 = 4
    A2 = 5
    A3 = 6
    A4 = 7
    T0 = 8
    T1 = 9
    T2 = 10
    T3 = 11
    T4 = 12
    T5 = 13
    T6 = 14
    T7 = 15
    T8 = 16
    T9 = 17
    S0 = 18
    S1 = 19
    S2 = 20
    S3 = 21
    S4 = 22
    S5 = 23
    S6 = 24
    S7 = 25
    S8 = 26
    S9 = 27
    SP = 28
    FP = 29
    RM = 30
    RA = 31

    def __str__(self) -> str:
        """Assembly spelling, e.g. '$SP'."""
        return f"${self.name}"

    def __format__(self, format_spec: str) -> str:
        # IntEnum formats as its int value by default
        return format(str(self), format_spec)


def get_register(name: str) -> Optional[Register]:
    """
    Look up a register by name, case-insensitively.

    A leading '$' is accepted, so "$sp", "SP" and "sp" all return
    Register.SP.

    Args:
        name: Register token

    Returns:
        The Register, or None if the name is not a register
    """
    key = name.strip().upper()
    if key.startswith("$"):
        key = key[1:]
    return Register.__members__.get(key)


# =============================================================================
# Instruction Classes and Opcodes
# =============================================================================

class InstructionClass(Enum):
    """Operand-shape families of the instruction set."""
    ALU = auto()
    FLOP = auto()
    IMM_SIGNED = auto()
    IMM_UNSIGNED = auto()
    DATA_SHUFFLE = auto()
    LOAD_IMM = auto()
    SET_IMM = auto()
    SIMPLE = auto()
    BRANCH = auto()
    JUMP_REG = auto()
    LOAD_STORE = auto()
    JUMP = auto()
    PSEUDO = auto()

    def __str__(self) -> str:
        return self.name.lower().replace("_", "-")


class Opcode(Enum):
    """Every mnemonic the assembler accepts, canonical and pseudo."""
    # ALU: rd, rs, rt
    ADD = "ADD"
    SUB = "SUB"
    MUL = "MUL"
    MULU = "MULU"
    DIV = "DIV"
    DIVU = "DIVU"
    REM = "REM"
    REMU = "REMU"
    AND = "AND"
    OR = "OR"
    XOR = "XOR"
    NAND = "NAND"
    NOR = "NOR"
    XNOR = "XNOR"
    SLL = "SLL"
    SRL = "SRL"
    SRA = "SRA"
    SLT = "SLT"
    SLTU = "SLTU"

    # Floating point: rd, rs, rt
    FADD = "FADD"
    FSUB = "FSUB"
    FMUL = "FMUL"
    FDIV = "FDIV"

    # Signed immediate: rd, rs, imm16
    ADDI = "ADDI"
    SUBI = "SUBI"
    MULI = "MULI"
    DIVI = "DIVI"
    REMI = "REMI"
    SLTI = "SLTI"
    SLLI = "SLLI"
    SRLI = "SRLI"
    SRAI = "SRAI"

    # Unsigned immediate: rd, rs, uimm16
    ANDI = "ANDI"
    ORI = "ORI"
    XORI = "XORI"
    NANDI = "NANDI"
    NORI = "NORI"
    XNORI = "XNORI"
    SLTIU = "SLTIU"

    # Data shuffle: rd, rs
    FLIP = "FLIP"
    ITOF = "ITOF"
    FTOI = "FTOI"

    # Immediate loads
    LI = "LI"
    LHI = "LHI"

    # No operands
    HALT = "HALT"
    NOP = "NOP"

    # Branches: rs, target
    BEZ = "BEZ"
    BNZ = "BNZ"

    # Register jumps: rs
    JR = "JR"
    JALR = "JALR"

    # Memory: rd, offset, rbase
    LB = "LB"
    LBU = "LBU"
    LH = "LH"
    LHU = "LHU"
    LW = "LW"
    SB = "SB"
    SH = "SH"
    SW = "SW"

    # Absolute jumps: target
    JMP = "JMP"
    JAL = "JAL"

    # Pseudo-instructions
    PUSH = "PUSH"
    POP = "POP"
    LWI = "LWI"
    LDA = "LDA"
    LIA = "LIA"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Static information about one mnemonic.

    Attributes:
        opcode: The opcode
        instruction_class: Operand-shape family
        operands: Operand kinds in source order. Kinds are "register",
                  "literal", "identifier" and "target" (literal or
                  identifier).
    """
    opcode: Opcode
    instruction_class: InstructionClass
    operands: tuple[str, ...]

    @property
    def is_pseudo(self) -> bool:
        return self.instruction_class is InstructionClass.PSEUDO


_SHAPES: dict[InstructionClass, tuple[str, ...]] = {
    InstructionClass.ALU: ("register", "register", "register"),
    InstructionClass.FLOP: ("register", "register", "register"),
    InstructionClass.IMM_SIGNED: ("register", "register", "literal"),
    InstructionClass.IMM_UNSIGNED: ("register", "register", "literal"),
    InstructionClass.DATA_SHUFFLE: ("register", "register"),
    InstructionClass.LOAD_IMM: ("register", "literal"),
    InstructionClass.SET_IMM: ("register", "literal"),
    InstructionClass.SIMPLE: (),
    InstructionClass.BRANCH: ("register", "target"),
    InstructionClass.JUMP_REG: ("register",),
    InstructionClass.LOAD_STORE: ("register", "literal", "register"),
    InstructionClass.JUMP: ("target",),
}

_CLASS_MEMBERS: dict[InstructionClass, tuple[Opcode, ...]] = {
    InstructionClass.ALU: (
        Opcode.ADD, Opcode.SUB, Opcode.MUL, Opcode.MULU, Opcode.DIV,
        Opcode.DIVU, Opcode.REM, Opcode.REMU, Opcode.AND, Opcode.OR,
        Opcode.XOR, Opcode.NAND, Opcode.NOR, Opcode.XNOR, Opcode.SLL,
        Opcode.SRL, Opcode.SRA, Opcode.SLT, Opcode.SLTU,
    ),
    InstructionClass.FLOP: (Opcode.FADD, Opcode.FSUB, Opcode.FMUL, Opcode.FDIV),
    InstructionClass.IMM_SIGNED: (
        Opcode.ADDI, Opcode.SUBI, Opcode.MULI, Opcode.DIVI, Opcode.REMI,
        Opcode.SLTI, Opcode.SLLI, Opcode.SRLI, Opcode.SRAI,
    ),
    InstructionClass.IMM_UNSIGNED: (
        Opcode.ANDI, Opcode.ORI, Opcode.XORI, Opcode.NANDI, Opcode.NORI,
        Opcode.XNORI, Opcode.SLTIU,
    ),
    InstructionClass.DATA_SHUFFLE: (Opcode.FLIP, Opcode.ITOF, Opcode.FTOI),
    InstructionClass.LOAD_IMM: (Opcode.LI,),
    InstructionClass.SET_IMM: (Opcode.LHI,),
    InstructionClass.SIMPLE: (Opcode.HALT, Opcode.NOP),
    InstructionClass.BRANCH: (Opcode.BEZ, Opcode.BNZ),
    InstructionClass.JUMP_REG: (Opcode.JR, Opcode.JALR),
    InstructionClass.LOAD_STORE: (
        Opcode.LB, Opcode.LBU, Opcode.LH, Opcode.LHU, Opcode.LW,
        Opcode.SB, Opcode.SH, Opcode.SW,
    ),
    InstructionClass.JUMP: (Opcode.JMP, Opcode.JAL),
}

# Pseudo-instruction operand shapes
PSEUDO_INSTRUCTIONS: dict[Opcode, tuple[str, ...]] = {
    Opcode.PUSH: ("register",),
    Opcode.POP: ("register",),
    Opcode.LWI: ("register", "literal"),
    Opcode.LDA: ("register", "identifier"),
    Opcode.LIA: ("register", "identifier"),
}


def _build_opcode_table() -> dict[Opcode, InstructionInfo]:
    table: dict[Opcode, InstructionInfo] = {}
    for cls, members in _CLASS_MEMBERS.items():
        for opcode in members:
            table[opcode] = InstructionInfo(opcode, cls, _SHAPES[cls])
    for opcode, shape in PSEUDO_INSTRUCTIONS.items():
        table[opcode] = InstructionInfo(opcode, InstructionClass.PSEUDO, shape)
    return table


# Master table: every opcode appears exactly once
OPCODE_TABLE: dict[Opcode, InstructionInfo] = _build_opcode_table()

MNEMONICS: frozenset[str] = frozenset(op.value for op in OPCODE_TABLE)


# =============================================================================
# Lookup Functions
# =============================================================================

def get_opcode(mnemonic: str) -> Optional[Opcode]:
    """
    Look up an opcode by mnemonic, case-insensitively.

    Args:
        mnemonic: The instruction mnemonic (e.g., "addi")

    Returns:
        The Opcode, or None if the mnemonic is unknown
    """
    return Opcode.__members__.get(mnemonic.strip().upper())


def get_instruction_info(opcode: Opcode) -> InstructionInfo:
    """Return the static information for an opcode."""
    return OPCODE_TABLE[opcode]


def get_instruction_class(opcode: Opcode) -> InstructionClass:
    """Return the instruction class an opcode belongs to."""
    return OPCODE_TABLE[opcode].instruction_class


def opcodes_in_class(instruction_class: InstructionClass) -> tuple[Opcode, ...]:
    """Return every opcode of a class, in table order."""
    return tuple(
        info.opcode for info in OPCODE_TABLE.values()
        if info.instruction_class is instruction_class
    )


def is_pseudo_instruction(opcode: Opcode) -> bool:
    """Check if an opcode is a pseudo-instruction."""
    return opcode in PSEUDO_INSTRUCTIONS

"""
vasm Program Model
==================

This module defines the in-memory form of a parsed vasm program. The
front-end (or the JSON tree loader) builds these objects; the assembler
core only reads them.

Program Structure
-----------------
A Program holds two ordered segments:

    Program
    ├── data:         DataStatement*         (.data)
    └── instructions: InstructionStatement*  (.instructions)

Each statement carries an optional label and one element. An element's
position in its segment (its index) is what error messages report.

Data Elements
-------------
| Element    | Size                    | Example              |
|------------|-------------------------|----------------------|
| Block      | `size` bytes            | .block 16            |
| ByteList   | 1 byte per value        | .byte 1, 0xFF, -1    |
| ShortList  | 2 bytes per value       | .short 1000          |
| WordList   | 4 bytes per value       | .word 10, 20         |

Instruction Forms
-----------------
Canonical forms mirror the instruction classes in vasm.cpu.isa. Pseudo
forms (Push, Pop, LoadWordImm, LoadAddress) only exist before expansion.

Literal operands hold an IntegerLiteral as written by the front-end. After
expansion the same fields hold checked ints, and symbolic operands hold a
JumpTarget:

    Literal(value)       -> literal address, used verbatim
    Unresolved(name)     -> label reference, replaced by the resolver
    Resolved(address)    -> final address (or address half)

All classes are frozen so a Program can be assembled many times without
being changed.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union

from vasm.cpu import Opcode, Register, BYTE_WIDTH, SHORT_WIDTH, WORD_WIDTH
from vasm.errors import Segment, SourceLocation
from vasm.assembler.literals import IntegerLiteral


# =============================================================================
# Jump Targets
# =============================================================================

@dataclass(frozen=True)
class Literal:
    """A literal address operand."""
    value: Union[IntegerLiteral, int]

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Unresolved:
    """A reference to a label not yet looked up."""
    identifier: str

    def __str__(self) -> str:
        return self.identifier


@dataclass(frozen=True)
class Resolved:
    """A label reference after resolution."""
    address: int

    def __str__(self) -> str:
        return f"0x{self.address:04X}"


JumpTarget = Union[Literal, Unresolved, Resolved]

# Value slots: a literal before expansion, an int after
Immediate = Union[IntegerLiteral, int]

# LI / LHI operands may also carry a label reference from LDA/LIA
LoadOperand = Union[IntegerLiteral, int, Unresolved, Resolved]


# =============================================================================
# Canonical Instruction Forms
# =============================================================================

@dataclass(frozen=True)
class Alu:
    """ALU operation: rd <- rs op rt."""
    op: Opcode
    rd: Register
    rs: Register
    rt: Register


@dataclass(frozen=True)
class Flop:
    """Floating point operation: rd <- rs op rt."""
    op: Opcode
    rd: Register
    rs: Register
    rt: Register


@dataclass(frozen=True)
class ImmSigned:
    """Signed immediate operation: rd <- rs op imm16."""
    op: Opcode
    rd: Register
    rs: Register
    imm: Immediate


@dataclass(frozen=True)
class ImmUnsigned:
    """Unsigned immediate operation: rd <- rs op uimm16."""
    op: Opcode
    rd: Register
    rs: Register
    uimm: Immediate


@dataclass(frozen=True)
class DataShuffle:
    """Register-to-register conversion (FLIP, ITOF, FTOI)."""
    op: Opcode
    rd: Register
    rs: Register


@dataclass(frozen=True)
class LoadImm:
    """LI: load a signed 16-bit immediate (or a low address half)."""
    op: Opcode
    rd: Register
    imm: LoadOperand


@dataclass(frozen=True)
class SetImm:
    """LHI: set the upper 16 bits of rd, keeping the lower 16."""
    op: Opcode
    rd: Register
    uimm: LoadOperand


@dataclass(frozen=True)
class Simple:
    """Instruction with no operands (HALT, NOP)."""
    op: Opcode


@dataclass(frozen=True)
class Branch:
    """Conditional branch on rs to target."""
    op: Opcode
    rs: Register
    target: JumpTarget


@dataclass(frozen=True)
class JumpReg:
    """Jump to the address held in rs."""
    op: Opcode
    rs: Register


@dataclass(frozen=True)
class LoadStore:
    """Memory access at rbase + offset."""
    op: Opcode
    rd: Register
    offset: Immediate
    rbase: Register


@dataclass(frozen=True)
class Jump:
    """Absolute jump to target."""
    op: Opcode
    target: JumpTarget


# =============================================================================
# Pseudo-Instruction Forms
# =============================================================================

@dataclass(frozen=True)
class Push:
    """PUSH rd: store rd at the stack top and grow the stack."""
    rd: Register
    op: Opcode = field(default=Opcode.PUSH, init=False)


@dataclass(frozen=True)
class Pop:
    """POP rd: shrink the stack and load its top into rd."""
    rd: Register
    op: Opcode = field(default=Opcode.POP, init=False)


@dataclass(frozen=True)
class LoadWordImm:
    """LWI rd, imm: load a full-word immediate."""
    rd: Register
    imm: IntegerLiteral
    op: Opcode = field(default=Opcode.LWI, init=False)


@dataclass(frozen=True)
class LoadAddress:
    """
    LDA / LIA rd, label: load the address of a label.

    LDA names a data label, LIA an instruction label.
    """
    op: Opcode
    rd: Register
    target: Unresolved


PSEUDO_FORMS = (Push, Pop, LoadWordImm, LoadAddress)

CanonicalForm = Union[
    Alu, Flop, ImmSigned, ImmUnsigned, DataShuffle, LoadImm, SetImm,
    Simple, Branch, JumpReg, LoadStore, Jump,
]

PseudoForm = Union[Push, Pop, LoadWordImm, LoadAddress]

InstructionForm = Union[CanonicalForm, PseudoForm]


def is_pseudo(form: InstructionForm) -> bool:
    """Check if a form must be expanded before placement."""
    return isinstance(form, PSEUDO_FORMS)


# =============================================================================
# Data Elements
# =============================================================================

@dataclass(frozen=True)
class Block:
    """Reserve `size` uninitialized bytes."""
    size: Immediate

    kind: ClassVar[str] = "block"


@dataclass(frozen=True)
class ByteList:
    """Initialized 8-bit values."""
    values: tuple[Immediate, ...]

    kind: ClassVar[str] = "byte"
    width: ClassVar[int] = BYTE_WIDTH

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class ShortList:
    """Initialized 16-bit values."""
    values: tuple[Immediate, ...]

    kind: ClassVar[str] = "short"
    width: ClassVar[int] = SHORT_WIDTH

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class WordList:
    """Initialized 32-bit values."""
    values: tuple[Immediate, ...]

    kind: ClassVar[str] = "word"
    width: ClassVar[int] = WORD_WIDTH

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


DataElement = Union[Block, ByteList, ShortList, WordList]


# =============================================================================
# Statements and Program
# =============================================================================

@dataclass(frozen=True)
class DataStatement:
    """A data element with its optional label."""
    element: DataElement
    label: Optional[str] = None


@dataclass(frozen=True)
class InstructionStatement:
    """An instruction form with its optional label."""
    form: InstructionForm
    label: Optional[str] = None


@dataclass(frozen=True)
class Program:
    """
    A parsed program: the data segment followed by the instruction segment.

    Attributes:
        data: Data statements in source order
        instructions: Instruction statements in source order
    """
    data: tuple[DataStatement, ...] = ()
    instructions: tuple[InstructionStatement, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "data", tuple(self.data))
        object.__setattr__(self, "instructions", tuple(self.instructions))

    @staticmethod
    def data_location(index: int) -> SourceLocation:
        return SourceLocation(Segment.DATA, index)

    @staticmethod
    def instruction_location(index: int) -> SourceLocation:
        return SourceLocation(Segment.INSTRUCTION, index)

    def labels(self) -> list[str]:
        """Every label in source order, data segment first."""
        return [
            stmt.label
            for stmt in (*self.data, *self.instructions)
            if stmt.label is not None
        ]


# =============================================================================
# Formatting
# =============================================================================

def format_form(form: InstructionForm) -> str:
    """
    Render an instruction form in assembly syntax.

    Example:
        >>> format_form(Alu(Opcode.ADD, Register.V0, Register.V0, Register.V1))
        'ADD $V0, $V0, $V1'
    """
    if isinstance(form, LoadStore):
        return f"{form.op} {form.rd}, {form.offset}({form.rbase})"

    if isinstance(form, (Alu, Flop)):
        operands = [form.rd, form.rs, form.rt]
    elif isinstance(form, ImmSigned):
        operands = [form.rd, form.rs, form.imm]
    elif isinstance(form, ImmUnsigned):
        operands = [form.rd, form.rs, form.uimm]
    elif isinstance(form, DataShuffle):
        operands = [form.rd, form.rs]
    elif isinstance(form, (LoadImm, LoadWordImm)):
        operands = [form.rd, form.imm]
    elif isinstance(form, SetImm):
        operands = [form.rd, form.uimm]
    elif isinstance(form, Branch):
        operands = [form.rs, form.target]
    elif isinstance(form, JumpReg):
        operands = [form.rs]
    elif isinstance(form, Jump):
        operands = [form.target]
    elif isinstance(form, (Push, Pop)):
        operands = [form.rd]
    elif isinstance(form, LoadAddress):
        operands = [form.rd, form.target]
    else:
        operands = []

    if not operands:
        return str(form.op)
    return f"{form.op} " + ", ".join(str(o) for o in operands)


def format_element(element: DataElement) -> str:
    """Render a data element in assembly syntax (e.g. '.word 10, 20')."""
    if isinstance(element, Block):
        return f".block {element.size}"
    return f".{element.kind} " + ", ".join(str(v) for v in element.values)

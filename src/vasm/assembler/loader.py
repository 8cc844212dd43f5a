"""
Parse-Tree Loader
=================

This module reads the JSON parse-tree document produced by a vasm
front-end and builds a Program from it. The document is the hand-over
format between the text parser and the assembler core.

Document Format
---------------
    {
      "data": [
        {"label": "table", "kind": "word", "values": ["10", "0x20"]},
        {"kind": "block", "size": "16"}
      ],
      "instructions": [
        {"label": "loop", "mnemonic": "add",
         "operands": [{"register": "$V0"}, {"register": "V0"},
                      {"register": "v1"}]},
        {"mnemonic": "JMP", "operands": [{"identifier": "loop"}]}
      ]
    }

Data kinds are "byte", "short", "word" (with "values") and "block" (with
"size"). Every operand is an object with exactly one key:

| Key          | Meaning                     | Example               |
|--------------|-----------------------------|-----------------------|
| register     | Register name, '$' optional | {"register": "$sp"}   |
| literal      | Numeric literal text        | {"literal": "-4"}     |
| identifier   | Label reference             | {"identifier": "end"} |

Mnemonics and register names are case-insensitive. Labels and identifiers
are case-sensitive. Literal text is kept as written and interpreted by the
assembler core, so range errors are reported there.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from vasm.cpu import (
    InstructionClass,
    Opcode,
    Register,
    get_instruction_info,
    get_opcode,
    get_register,
)
from vasm.errors import SourceLocation, TreeFormatError
from vasm.assembler.ast import (
    Alu,
    Block,
    Branch,
    ByteList,
    DataElement,
    DataShuffle,
    DataStatement,
    Flop,
    ImmSigned,
    ImmUnsigned,
    InstructionForm,
    InstructionStatement,
    Jump,
    JumpReg,
    Literal,
    LoadAddress,
    LoadImm,
    LoadStore,
    LoadWordImm,
    Pop,
    Program,
    Push,
    SetImm,
    ShortList,
    Simple,
    Unresolved,
    WordList,
)
from vasm.assembler.literals import IntegerLiteral, parse_literal

logger = logging.getLogger(__name__)


_LIST_KINDS = {
    "byte": ByteList,
    "short": ShortList,
    "word": WordList,
}

_OPERAND_KEYS = ("register", "literal", "identifier")

# Builders for each instruction class, called with (opcode, *operands)
_BUILDERS: dict[InstructionClass, Callable[..., InstructionForm]] = {
    InstructionClass.ALU: Alu,
    InstructionClass.FLOP: Flop,
    InstructionClass.IMM_SIGNED: ImmSigned,
    InstructionClass.IMM_UNSIGNED: ImmUnsigned,
    InstructionClass.DATA_SHUFFLE: DataShuffle,
    InstructionClass.LOAD_IMM: LoadImm,
    InstructionClass.SET_IMM: SetImm,
    InstructionClass.SIMPLE: Simple,
    InstructionClass.BRANCH: Branch,
    InstructionClass.JUMP_REG: JumpReg,
    InstructionClass.LOAD_STORE: LoadStore,
    InstructionClass.JUMP: Jump,
}

_PSEUDO_BUILDERS: dict[Opcode, Callable[..., InstructionForm]] = {
    Opcode.PUSH: lambda op, rd: Push(rd),
    Opcode.POP: lambda op, rd: Pop(rd),
    Opcode.LWI: lambda op, rd, imm: LoadWordImm(rd, imm),
    Opcode.LDA: LoadAddress,
    Opcode.LIA: LoadAddress,
}


# =============================================================================
# Public Interface
# =============================================================================

def load_program(document: Any) -> Program:
    """
    Build a Program from a parsed JSON document.

    Args:
        document: The decoded document (a dict with "data" and
                  "instructions" lists; both are optional)

    Returns:
        The Program

    Raises:
        TreeFormatError: If the document has the wrong shape
        InvalidLiteralError: If a literal is malformed
    """
    if not isinstance(document, dict):
        raise TreeFormatError("parse tree must be a JSON object")

    unknown = set(document) - {"data", "instructions"}
    if unknown:
        raise TreeFormatError(
            f"unknown top-level key(s): {', '.join(sorted(unknown))}",
            hint="expected 'data' and 'instructions'",
        )

    data = _segment_list(document, "data")
    instructions = _segment_list(document, "instructions")

    program = Program(
        data=tuple(
            _load_data(entry, Program.data_location(i))
            for i, entry in enumerate(data)
        ),
        instructions=tuple(
            _load_instruction(entry, Program.instruction_location(i))
            for i, entry in enumerate(instructions)
        ),
    )

    logger.debug(
        "loaded %d data elements and %d instructions",
        len(program.data), len(program.instructions),
    )
    return program


def load_program_file(filepath: str | Path) -> Program:
    """
    Read and load a JSON parse-tree file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        TreeFormatError: If the file is not valid JSON or has the wrong shape
    """
    filepath = Path(filepath)
    text = filepath.read_text(encoding="utf-8")
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise TreeFormatError(
            f"{filepath}: invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e
    return load_program(document)


# =============================================================================
# Segment Loading
# =============================================================================

def _segment_list(document: dict, key: str) -> list:
    entries = document.get(key, [])
    if not isinstance(entries, list):
        raise TreeFormatError(f"'{key}' must be a list")
    return entries


def _label(entry: dict, location: SourceLocation) -> Optional[str]:
    label = entry.get("label")
    if label is None:
        return None
    if not isinstance(label, str) or not label:
        raise TreeFormatError("label must be a non-empty string", location)
    return label


def _literal(value: Any, location: SourceLocation) -> IntegerLiteral:
    # JSON numbers are accepted as decimal literal text
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise TreeFormatError(f"expected literal text, got {value!r}", location)
    return parse_literal(str(value), location)


def _load_data(entry: Any, location: SourceLocation) -> DataStatement:
    if not isinstance(entry, dict):
        raise TreeFormatError("data element must be an object", location)

    kind = entry.get("kind")
    label = _label(entry, location)

    element: DataElement
    if kind == "block":
        if "size" not in entry:
            raise TreeFormatError("block is missing 'size'", location)
        element = Block(_literal(entry["size"], location))
    elif kind in _LIST_KINDS:
        values = entry.get("values")
        if not isinstance(values, list) or not values:
            raise TreeFormatError(f"{kind} list needs a non-empty 'values' list", location)
        element = _LIST_KINDS[kind](tuple(_literal(v, location) for v in values))
    else:
        raise TreeFormatError(
            f"unknown data kind {kind!r}",
            location,
            hint="expected one of 'byte', 'short', 'word', 'block'",
        )

    return DataStatement(element, label)


def _load_instruction(entry: Any, location: SourceLocation) -> InstructionStatement:
    if not isinstance(entry, dict):
        raise TreeFormatError("instruction must be an object", location)

    mnemonic = entry.get("mnemonic")
    if not isinstance(mnemonic, str):
        raise TreeFormatError("instruction is missing 'mnemonic'", location)

    opcode = get_opcode(mnemonic)
    if opcode is None:
        raise TreeFormatError(f"unknown mnemonic '{mnemonic}'", location)

    operands = entry.get("operands", [])
    if not isinstance(operands, list):
        raise TreeFormatError("'operands' must be a list", location)

    info = get_instruction_info(opcode)
    if len(operands) != len(info.operands):
        raise TreeFormatError(
            f"{opcode} takes {len(info.operands)} operand(s), got {len(operands)}",
            location,
            hint=f"expected: {', '.join(info.operands) or 'no operands'}",
        )

    args = [
        _load_operand(operand, kind, opcode, location)
        for operand, kind in zip(operands, info.operands)
    ]

    if info.is_pseudo:
        form = _PSEUDO_BUILDERS[opcode](opcode, *args)
    else:
        form = _BUILDERS[info.instruction_class](opcode, *args)

    return InstructionStatement(form, _label(entry, location))


def _load_operand(
    operand: Any,
    kind: str,
    opcode: Opcode,
    location: SourceLocation,
):
    """
    Convert one operand object to its model value.

    `kind` is the expected operand kind from the instruction table:
    "register", "literal", "identifier", or "target" (literal or
    identifier).
    """
    if not isinstance(operand, dict) or len(operand) != 1:
        raise TreeFormatError(
            f"operand of {opcode} must be an object with one of "
            f"{', '.join(_OPERAND_KEYS)}",
            location,
        )

    (key, value), = operand.items()
    allowed = ("literal", "identifier") if kind == "target" else (kind,)
    if key not in allowed:
        raise TreeFormatError(
            f"{opcode} expects a {kind.replace('target', 'literal or identifier')} "
            f"operand, got {key}",
            location,
        )

    if key == "register":
        return _register(value, location)
    if key == "literal":
        literal = _literal(value, location)
        return Literal(literal) if kind == "target" else literal

    if not isinstance(value, str) or not value:
        raise TreeFormatError("identifier must be a non-empty string", location)
    return Unresolved(value)


def _register(value: Any, location: SourceLocation) -> Register:
    register = get_register(value) if isinstance(value, str) else None
    if register is None:
        raise TreeFormatError(f"unknown register {value!r}", location)
    return register

"""
vasm Assembler Core
===================

This package turns a parsed vasm program into a fully resolved program
image: every label has an address, every pseudo-instruction is expanded
and every operand is numeric.

Main Components
---------------
- **Assembler**: Main assembler class that runs the passes in order
- **literals**: Numeric literal parsing and range checking
- **ast**: Program model (segments, data elements, instruction forms)
- **symbols**: Symbol table and address assignment (pass 1)
- **pseudo**: Pseudo-instruction expansion and operand checking
- **resolver**: Label substitution (pass 2)
- **image**: Program image, listing and symbol file output
- **loader**: JSON parse-tree document loader

Assembly Process
----------------
1. **Layout (build_layout)**:
   - Walk .data then .instructions in source order
   - Assign addresses, register labels, size pseudo-instructions

2. **Expansion (expand_segment)**:
   - Rewrite PUSH/POP/LWI/LDA/LIA into canonical forms
   - Range-check literal operands

3. **Resolution (resolve)**:
   - Replace label references with addresses or address halves

4. **Image (build_image)**:
   - Validate global postconditions and freeze the symbol table

Example Usage
-------------
>>> from vasm.assembler import Assembler, load_program
>>> program = load_program({
...     "data": [{"label": "table", "kind": "word", "values": ["10", "20"]}],
...     "instructions": [
...         {"label": "loop", "mnemonic": "ADD",
...          "operands": [{"register": "V0"}, {"register": "V0"},
...                       {"register": "V1"}]},
...         {"mnemonic": "JMP", "operands": [{"identifier": "loop"}]},
...     ],
... })
>>> image = Assembler().assemble(program)
>>> image.symbol_address("loop")
8
"""

from vasm.assembler.assembler import (
    Assembler,
    AssemblerConfig,
    assemble,
    assemble_file,
)
from vasm.assembler.ast import (
    Program,
    DataStatement,
    InstructionStatement,
    Block,
    ByteList,
    ShortList,
    WordList,
    Alu,
    Flop,
    ImmSigned,
    ImmUnsigned,
    DataShuffle,
    LoadImm,
    SetImm,
    Simple,
    Branch,
    JumpReg,
    LoadStore,
    Jump,
    Push,
    Pop,
    LoadWordImm,
    LoadAddress,
    Literal,
    Unresolved,
    Resolved,
)
from vasm.assembler.literals import (
    Base,
    Signedness,
    IntegerLiteral,
    parse_literal,
    interpret,
    split_halves,
    join_halves,
)
from vasm.assembler.symbols import Symbol, SymbolTable, Layout, build_layout
from vasm.assembler.pseudo import PlacedInstruction, expand, expansion_size
from vasm.assembler.resolver import resolve
from vasm.assembler.image import ProgramImage, build_image
from vasm.assembler.loader import load_program, load_program_file

__all__ = [
    # Main class and functions
    "Assembler",
    "AssemblerConfig",
    "assemble",
    "assemble_file",
    # Program model
    "Program",
    "DataStatement",
    "InstructionStatement",
    "Block",
    "ByteList",
    "ShortList",
    "WordList",
    "Alu",
    "Flop",
    "ImmSigned",
    "ImmUnsigned",
    "DataShuffle",
    "LoadImm",
    "SetImm",
    "Simple",
    "Branch",
    "JumpReg",
    "LoadStore",
    "Jump",
    "Push",
    "Pop",
    "LoadWordImm",
    "LoadAddress",
    "Literal",
    "Unresolved",
    "Resolved",
    # Literals
    "Base",
    "Signedness",
    "IntegerLiteral",
    "parse_literal",
    "interpret",
    "split_halves",
    "join_halves",
    # Passes
    "Symbol",
    "SymbolTable",
    "Layout",
    "build_layout",
    "PlacedInstruction",
    "expand",
    "expansion_size",
    "resolve",
    "ProgramImage",
    "build_image",
    # Loader
    "load_program",
    "load_program_file",
]

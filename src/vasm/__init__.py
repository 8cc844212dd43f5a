"""
vasm - Assembler Core for the vasm Virtual Machine
==================================================

This package provides the semantic core of an assembler for vasm, a small
RISC-style virtual machine with 32 named registers and a two-segment
(.data / .instructions) program layout.

The core takes a typed parse tree and produces a fully resolved program
image. Tokenizing assembly text and bit-packing instructions into machine
words are left to a front-end and an encoder.

Main Components
---------------
- **cpu**: Instruction set definition
    Registers, opcodes, instruction classes and operand shapes

- **assembler**: Assembler core
    Literal interpretation, address assignment, pseudo-instruction
    expansion, label resolution and program image output

- **cli**: Command-line tool (vasm)
    Assembles a JSON parse-tree document into an image file

Quick Start
-----------
Assemble a parse-tree document:
    >>> from vasm.assembler import Assembler
    >>> asm = Assembler()
    >>> image = asm.assemble_file("loop.json")
    >>> asm.write_image("loop.img.json")

Or use the command-line tool:
    $ vasm loop.json -l loop.lst

Version History
---------------
1.0.0 - Initial release with assembler core, tree loader and CLI
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from vasm.assembler import (
    Assembler,
    AssemblerConfig,
    ProgramImage,
    assemble,
    assemble_file,
)
from vasm.errors import (
    VasmError,
    ConfigurationError,
    AssemblerError,
    InvalidLiteralError,
    LiteralOverflowError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    UnresolvedAfterExpansionError,
    TreeFormatError,
    Segment,
    SourceLocation,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "AssemblerConfig",
    "ProgramImage",
    "assemble",
    "assemble_file",
    # Exception hierarchy
    "VasmError",
    "ConfigurationError",
    "AssemblerError",
    "InvalidLiteralError",
    "LiteralOverflowError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "UnresolvedAfterExpansionError",
    "TreeFormatError",
    "Segment",
    "SourceLocation",
]

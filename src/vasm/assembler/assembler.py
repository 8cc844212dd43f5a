"""
vasm Assembler - Main Interface
===============================

This module provides the Assembler class, the primary interface to the
assembler core. It runs the passes in order and keeps the resulting image
for the output writers.

    Program --build_layout--> Layout --expand_segment--> placed forms
            --resolve--> resolved forms --build_image--> ProgramImage

Example Usage
-------------
>>> from vasm.assembler import Assembler, AssemblerConfig
>>>
>>> asm = Assembler(AssemblerConfig(data_base_address=0x1000))
>>> image = asm.assemble_file("loop.json")
>>> print(asm.get_symbols())
{'table': 4096, 'loop': 4104}
>>>
>>> asm.write_image("loop.img.json")
>>> asm.write_listing("loop.lst")

Command-Line Usage
------------------
The assembler can also be invoked from the command line:

    $ vasm loop.json -o loop.img.json -l loop.lst -s loop.sym

Options:
    -o, --output FILE          Output image file
    -l, --listing FILE         Generate listing file
    -s, --symbols FILE         Generate symbol file
    --data-base ADDR           First data address (default 0)
    --instruction-base ADDR    First instruction address
    --word-size BITS           Machine word size, 16 or 32 (default 32)
    -v, --verbose              Verbose output
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from vasm.cpu import DEFAULT_WORD_SIZE_BITS, REGISTER_COUNT, SUPPORTED_WORD_SIZES
from vasm.errors import AssemblerError, ConfigurationError
from vasm.assembler.ast import Program
from vasm.assembler.image import ProgramImage, build_image
from vasm.assembler.loader import load_program_file
from vasm.assembler.pseudo import expand_segment
from vasm.assembler.resolver import resolve
from vasm.assembler.symbols import build_layout

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class AssemblerConfig:
    """
    Assembler configuration.

    Attributes:
        data_base_address: Address of the first data byte
        instruction_base_address: Address of the first instruction, or
            None to start right after the data segment
        word_size_bits: Machine word size (16 or 32)

    Raises:
        ConfigurationError: If a value is out of range
    """
    data_base_address: int = 0
    instruction_base_address: Optional[int] = None
    word_size_bits: int = DEFAULT_WORD_SIZE_BITS

    def __post_init__(self):
        if self.word_size_bits not in SUPPORTED_WORD_SIZES:
            sizes = ", ".join(str(s) for s in sorted(SUPPORTED_WORD_SIZES))
            raise ConfigurationError(
                f"unsupported word size {self.word_size_bits} (expected one of {sizes})"
            )

        limit = 1 << self.word_size_bits
        for name in ("data_base_address", "instruction_base_address"):
            value = getattr(self, name)
            if value is None:
                continue
            if not 0 <= value < limit:
                raise ConfigurationError(
                    f"{name.replace('_', ' ')} {value:#x} is outside the "
                    f"{self.word_size_bits}-bit address space"
                )

    @property
    def register_count(self) -> int:
        return REGISTER_COUNT


# =============================================================================
# Assembler
# =============================================================================

class Assembler:
    """
    Main vasm assembler class.

    Each call to assemble() runs a fresh pass pipeline with its own symbol
    table, so one Assembler can assemble many programs. Only the most
    recent successful image is kept; a failed assembly clears it.

    Attributes:
        config: Assembler configuration
        verbose: If True, log progress messages at INFO level
    """

    def __init__(
        self,
        config: Optional[AssemblerConfig] = None,
        verbose: bool = False,
    ):
        self._config = config or AssemblerConfig()
        self._verbose = verbose
        self._image: Optional[ProgramImage] = None

    @property
    def config(self) -> AssemblerConfig:
        return self._config

    def _log(self, message: str, *args) -> None:
        logger.log(logging.INFO if self._verbose else logging.DEBUG, message, *args)

    def assemble(self, program: Program) -> ProgramImage:
        """
        Assemble a parsed program.

        Args:
            program: The program to assemble

        Returns:
            The resolved ProgramImage

        Raises:
            AssemblerError: If assembly fails
        """
        self._image = None
        self._log(
            "Assembling %d data elements and %d instructions",
            len(program.data), len(program.instructions),
        )

        layout = build_layout(program, self._config)
        placed = expand_segment(
            program.instructions,
            layout.instruction_addresses,
            self._config.word_size_bits,
        )
        warnings: list[str] = []
        resolved = resolve(placed, layout.symbols, warnings)
        image = build_image(layout, resolved, warnings)

        self._image = image
        self._log(
            "Assembled %d bytes of data and %d bytes of instructions",
            image.data_size, image.instruction_size,
        )
        return image

    def assemble_file(self, filepath: str | Path) -> ProgramImage:
        """
        Assemble a JSON parse-tree document.

        Args:
            filepath: Path to the document

        Returns:
            The resolved ProgramImage

        Raises:
            FileNotFoundError: If the file doesn't exist
            AssemblerError: If loading or assembly fails
        """
        filepath = Path(filepath)
        self._log("Loading %s", filepath)
        return self.assemble(load_program_file(filepath))

    def get_image(self) -> ProgramImage:
        """
        Get the most recent image.

        Raises:
            AssemblerError: If nothing has been assembled successfully
        """
        if self._image is None:
            raise AssemblerError("no program has been assembled")
        return self._image

    def get_symbols(self) -> dict[str, int]:
        """Get the symbol table as a name -> address dictionary."""
        return self.get_image().symbols.addresses()

    def get_listing(self) -> str:
        """Get the assembly listing."""
        return self.get_image().listing()

    def write_image(self, filepath: str | Path) -> None:
        """
        Write the program image as JSON.

        Args:
            filepath: Output file path
        """
        image = self.get_image()
        Path(filepath).write_text(json.dumps(image.to_dict(), indent=2) + "\n")
        self._log("Wrote image to %s", filepath)

    def write_listing(self, filepath: str | Path) -> None:
        """
        Write assembly listing file.

        The listing file shows:
        - Addresses
        - Labels
        - Resolved instructions and data elements
        - Symbol table

        Args:
            filepath: Output file path
        """
        Path(filepath).write_text(self.get_listing())
        self._log("Wrote listing to %s", filepath)

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write symbol table file.

        Args:
            filepath: Output file path
        """
        Path(filepath).write_text(self.get_image().symbol_listing())
        self._log("Wrote symbols to %s", filepath)


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(
    program: Program,
    config: Optional[AssemblerConfig] = None,
) -> ProgramImage:
    """
    Convenience function to assemble a program.

    Args:
        program: The parsed program
        config: Assembler configuration (defaults if omitted)

    Returns:
        The resolved ProgramImage

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler(config).assemble(program)


def assemble_file(
    filepath: str | Path,
    config: Optional[AssemblerConfig] = None,
) -> ProgramImage:
    """
    Convenience function to assemble a JSON parse-tree document.

    Args:
        filepath: Path to the document
        config: Assembler configuration (defaults if omitted)

    Returns:
        The resolved ProgramImage

    Raises:
        AssemblerError: If loading or assembly fails
    """
    return Assembler(config).assemble_file(filepath)

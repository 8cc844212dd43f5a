"""
vasm - Assembler Command-Line Interface
=======================================

This module implements the command-line interface for the vasm assembler.
It reads a JSON parse-tree document (as produced by a vasm front-end),
assembles it, and writes the resolved program image.

Usage Examples
--------------
Basic assembly:
    $ vasm loop.json                 # Writes loop.img.json

With output file:
    $ vasm loop.json -o out.img.json

Generate all output files:
    $ vasm loop.json -o loop.img.json -l loop.lst -s loop.sym

Separate code memory:
    $ vasm --data-base 0x1000 --instruction-base 0x0 loop.json

Verbose mode:
    $ vasm -v loop.json
"""

import logging
from pathlib import Path
from typing import Optional

import click

from vasm import __version__
from vasm.assembler import Assembler, AssemblerConfig
from vasm.assembler.literals import Signedness, interpret
from vasm.cli.errors import handle_cli_exception
from vasm.errors import AssemblerError


# =============================================================================
# CLI Utilities
# =============================================================================

class AddressParamType(click.ParamType):
    """Address option accepting the assembler's literal syntax (42, 0x2A)."""
    name = "address"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return interpret(value, 32, Signedness.UNSIGNED)
        except AssemblerError as e:
            self.fail(f"{value!r} is not a valid address: {e.message}", param, ctx)


ADDRESS = AddressParamType()


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def default_image_path(input_file: Path) -> Path:
    """Return the default image path: loop.json -> loop.img.json."""
    return input_file.with_suffix(".img.json")


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output image file (default: input.img.json)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--data-base",
    type=ADDRESS,
    default=0,
    show_default=True,
    help="Address of the first data byte",
)
@click.option(
    "--instruction-base",
    type=ADDRESS,
    default=None,
    help="Address of the first instruction (default: right after data)",
)
@click.option(
    "--word-size",
    type=click.Choice(["16", "32"]),
    default="32",
    show_default=True,
    help="Machine word size in bits",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="vasm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    data_base: int,
    instruction_base: Optional[int],
    word_size: str,
    verbose: bool,
) -> None:
    """
    Assemble a vasm parse-tree document into a program image.

    INPUT_FILE is the JSON parse-tree document to assemble.

    The image lists every data element and every canonical instruction at
    its final address, with all labels resolved.

    \b
    Examples:
        vasm loop.json                  # Outputs loop.img.json
        vasm loop.json -o out.img.json  # Specify output file
        vasm loop.json -l loop.lst      # Also write a listing
        vasm --word-size 16 loop.json   # 16-bit machine
    """
    setup_logging(verbose)
    output_file = output if output is not None else default_image_path(input_file)

    try:
        config = AssemblerConfig(
            data_base_address=data_base,
            instruction_base_address=instruction_base,
            word_size_bits=int(word_size),
        )
        asm = Assembler(config, verbose=verbose)

        if verbose:
            click.echo(f"Assembling {input_file}...")

        image = asm.assemble_file(input_file)

        asm.write_image(output_file)
        if verbose:
            click.echo(f"Wrote image to {output_file}")

        # Write optional auxiliary files
        if listing:
            asm.write_listing(listing)
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if symbols:
            asm.write_symbols(symbols)
            if verbose:
                click.echo(f"Wrote symbols to {symbols}")

        # Print summary
        if verbose:
            click.echo(
                f"Assembly complete: {image.data_size} data bytes at "
                f"0x{image.data_base:04X}, {len(image.instructions)} instructions "
                f"at 0x{image.instruction_base:04X}"
            )
            click.echo(f"Defined {len(image.symbols)} symbols")
            if image.warnings:
                click.echo(f"{len(image.warnings)} warning(s)")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()

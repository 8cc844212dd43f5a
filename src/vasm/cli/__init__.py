"""
vasm Command-Line Interface
===========================

This package provides the command-line tool for the vasm assembler:

- **vasm**: Assemble a JSON parse-tree document into a program image

The tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["vasm"]

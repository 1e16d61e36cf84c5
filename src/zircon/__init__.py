"""
Zircon - A Small Assembler
==========================

This package compiles Zircon, a line-oriented assembly language
(subroutines, register instructions, symbolic constants and origin
pragmas), into a flat binary machine-code image.

Main Components
---------------
- **reader**: Streaming UTF-8 character reader with position tracking
- **assembler**: Lexer, parser, resolution and emission passes
- **diagnostics**: Error rendering with source context
- **cli**: The zasm command-line tool

Quick Start
-----------
    >>> from zircon import compile_source
    >>> compile_source("ld A, $FF\\n")
    b'>\\xff'

Or use the command-line tool:
    $ zasm boot.zir -o boot.bin -s boot.sym
"""

__version__ = "0.1.0"

# =============================================================================
# Public API Exports
# =============================================================================

from zircon.assembler import Compiler, CompilerState, compile_source, tokenize
from zircon.config import CompilerConfig
from zircon.diagnostics import render_error, render_errors
from zircon.errors import (
    ZirconError,
    DecodeError,
    CompileError,
    LexicalError,
    AssemblySyntaxError,
    ValueRangeError,
    OperandError,
    DuplicateSymbolError,
    OverlapError,
    UnresolvedSymbolError,
    UndefinedSymbolError,
    ErrorCollector,
    CompileFailed,
)
from zircon.span import Span

__all__ = [
    "__version__",
    # Compiler
    "Compiler",
    "CompilerState",
    "CompilerConfig",
    "compile_source",
    "tokenize",
    "Span",
    # Diagnostics
    "render_error",
    "render_errors",
    # Errors
    "ZirconError",
    "DecodeError",
    "CompileError",
    "LexicalError",
    "AssemblySyntaxError",
    "ValueRangeError",
    "OperandError",
    "DuplicateSymbolError",
    "OverlapError",
    "UnresolvedSymbolError",
    "UndefinedSymbolError",
    "ErrorCollector",
    "CompileFailed",
]

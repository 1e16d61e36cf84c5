"""
Zircon Assembler
================

This package turns Zircon source into a flat binary image.

Main Components
---------------
- **Lexer**: Tokenizes a character stream into spanned tokens
- **Parser**: Parses tokens, tracks the address cursor and schedules
  deferred operations
- **resolve_declarations / emit**: Fixpoint symbol resolution and ordered
  emission into a zero-padded buffer
- **Compiler**: Runs the whole pipeline and keeps its results

Compilation Process
-------------------
1. **Lexing**: source bytes -> tokens (+ line-start table); error tokens
   are collected and stop the run before parsing
2. **Parsing**: tokens -> resolution queue + write queue, with the size of
   every write known up front
3. **Resolution**: the resolution queue is swept until every symbol is
   defined, or until a sweep makes no progress
4. **Emission**: the write queue runs in order, patching in symbol values

Example Usage
-------------
>>> from zircon.assembler import compile_source
>>> compile_source("ld $6000*, A\\n")
b'2\\x00`'

Supported Features
------------------
- ld r, n (A B C D E H L), ld nn*, A, ld symbol*, A, jp symbol
- Subroutines (sub name { ... }) with overlap detection
- Constants and aliases (def), 16-bit ROM words (rom)
- Origin pragma (@origin(...))
- Hex ($FF) and decimal literals, // comments
"""

from zircon.assembler.compiler import (
    Compiler,
    CompilerState,
    compile_source,
    lexical_errors,
)
from zircon.assembler.emitter import (
    EmissionContext,
    check_references,
    emit,
    resolve_declarations,
)
from zircon.assembler.lexer import Lexer, Token, TokenType, TokenizerResult, tokenize
from zircon.assembler.operations import (
    DefineAlias,
    DefineSymbol,
    SetAddress,
    SymbolPatch,
    WriteBytes,
)
from zircon.assembler.parser import AllocatedArea, ParseResult, Parser

__all__ = [
    # Main class and functions
    "Compiler",
    "CompilerState",
    "compile_source",
    "lexical_errors",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "TokenizerResult",
    "tokenize",
    # Parser
    "Parser",
    "ParseResult",
    "AllocatedArea",
    # Deferred operations
    "DefineSymbol",
    "DefineAlias",
    "SetAddress",
    "SymbolPatch",
    "WriteBytes",
    # Resolution and emission
    "EmissionContext",
    "resolve_declarations",
    "check_references",
    "emit",
]

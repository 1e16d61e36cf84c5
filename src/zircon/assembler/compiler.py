"""
Zircon Compiler - Main Interface
================================

This module provides the Compiler class, the primary interface for turning
Zircon source into a binary image. It coordinates the lexer, parser and the
resolution/emission passes.

Pipeline
--------
```
PARSING --> RESOLVING --> EMITTING --> DONE
   |            |
   +------------+-------> FAILED
```

Errors are collected within a phase and checked between phases:
lexical errors prevent parsing, parse errors prevent resolution, and
resolution errors prevent emission. A failed run raises CompileFailed
carrying every error found so far.

Example Usage
-------------
>>> from zircon.assembler import Compiler
>>>
>>> compiler = Compiler()
>>> compiler.compile('''
... def screen = $6000
... sub boot {
...     ld A, $FF
...     ld screen*, A
... }
... ''')
b'>\\xff2\\x00`'
>>> compiler.get_symbols()
{'screen': 24576, 'boot': 0}
"""

from enum import Enum, auto
from pathlib import Path
from typing import BinaryIO, NoReturn, Optional, Union
import logging

from zircon.assembler.emitter import (
    EmissionContext,
    check_references,
    emit,
    resolve_declarations,
)
from zircon.assembler.lexer import TokenizerResult, TokenType, tokenize
from zircon.assembler.parser import Parser
from zircon.config import CompilerConfig
from zircon.errors import (
    CompileError,
    CompileFailed,
    DecodeError,
    ErrorCollector,
    LexicalError,
)

logger = logging.getLogger(__name__)


class CompilerState(Enum):
    """Phase a Compiler is in (or finished in)."""
    PARSING = auto()
    RESOLVING = auto()
    EMITTING = auto()
    DONE = auto()
    FAILED = auto()


def lexical_errors(result: TokenizerResult) -> list[CompileError]:
    """
    Convert ERROR tokens into LexicalErrors.

    Error tokens between a // and the end of its line are ignored, since
    the parser never looks at the rest of a comment line.
    """
    errors: list[CompileError] = []
    in_comment = False

    for token in result.tokens:
        if token.type == TokenType.COMMENT_LINE:
            in_comment = True
        elif token.type == TokenType.NEWLINE:
            in_comment = False
        elif token.type == TokenType.ERROR and not in_comment:
            errors.append(LexicalError(token.span.slice(result.text), token.span))

    return errors


class Compiler:
    """
    Main Zircon compiler class.

    A Compiler can be reused; every call to compile() starts from a clean
    state. After a run the source text, line-start table, errors and symbol
    table stay available for reporting.

    Attributes:
        state: Current (or final) CompilerState
        text: Decoded source text of the last run
        line_starts: Offset of the first character of each line
        filename: Name used for the last run
    """

    def __init__(self, config: Optional[CompilerConfig] = None):
        """
        Initialize the compiler.

        Args:
            config: Compiler settings (defaults to CompilerConfig())
        """
        self._config = config or CompilerConfig()
        self._reset()

    def _reset(self) -> None:
        self.state = CompilerState.PARSING
        self.text = ""
        self.line_starts: list[int] = []
        self.filename = "<input>"
        self._errors = ErrorCollector()
        self._context = EmissionContext()
        self._code = b""

    # =========================================================================
    # Compilation
    # =========================================================================

    def compile(
        self,
        source: Union[str, bytes, BinaryIO],
        filename: str = "<input>",
    ) -> bytes:
        """
        Compile source code.

        Args:
            source: Source text, raw UTF-8 bytes, or a binary stream
            filename: Name used in log messages

        Returns:
            The binary image

        Raises:
            CompileFailed: If any phase reported errors
            DecodeError: If the input is not valid UTF-8
        """
        self._reset()
        self.filename = filename
        logger.debug(f"Compiling {filename}")

        try:
            result = tokenize(source, chunk_size=self._config.chunk_size)
        except DecodeError:
            self.state = CompilerState.FAILED
            raise

        self.text = result.text
        self.line_starts = result.lines

        self._errors.extend(lexical_errors(result))
        if self._errors.has_errors():
            self._fail()

        parsed = Parser(result.text, result.tokens).parse()
        self._errors.extend(parsed.errors)
        if self._errors.has_errors():
            self._fail()

        self.state = CompilerState.RESOLVING
        self._errors.extend(resolve_declarations(parsed.resolution_queue, self._context))
        if not self._errors.has_errors():
            self._errors.extend(check_references(parsed.write_queue, self._context))
        if self._errors.has_errors():
            self._fail()

        self.state = CompilerState.EMITTING
        self._code = emit(parsed.write_queue, self._context)

        self.state = CompilerState.DONE
        logger.debug(
            f"Compiled {filename}: {len(self._code)} bytes, "
            f"{len(self._context.declarations)} symbols"
        )
        return self._code

    def compile_file(self, filepath: str | Path) -> bytes:
        """
        Compile a source file, streaming it through the reader.

        Raises:
            CompileFailed: If any phase reported errors
            FileNotFoundError: If the file does not exist
        """
        filepath = Path(filepath)
        with open(filepath, "rb") as stream:
            return self.compile(stream, filename=str(filepath))

    def _fail(self) -> NoReturn:
        self.state = CompilerState.FAILED
        logger.debug(f"{self.filename}: {self._errors.error_count()} errors")
        raise CompileFailed(self._errors.errors)

    # =========================================================================
    # Results
    # =========================================================================

    @property
    def errors(self) -> list[CompileError]:
        """Errors collected by the last run, in the order found."""
        return list(self._errors.errors)

    def has_errors(self) -> bool:
        return self._errors.has_errors()

    def get_error_report(self) -> str:
        """
        Get formatted error report.

        Returns:
            One 'line:column: error: message' paragraph per error and a
            count on the last line
        """
        return self._errors.report()

    def get_code(self) -> bytes:
        """Get the binary image of the last successful run."""
        return self._code

    def get_symbols(self) -> dict[str, int]:
        """
        Get the symbol table.

        Returns:
            Dictionary mapping symbol names to 16-bit values
        """
        return dict(self._context.declarations)

    # =========================================================================
    # Output Files
    # =========================================================================

    def write_binary(self, filepath: str | Path) -> None:
        """Write the raw binary image."""
        Path(filepath).write_bytes(self._code)

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write the symbol table, one 'NAME $XXXX' line per symbol, sorted
        by name.
        """
        lines = [
            f"{name} ${value:04X}"
            for name, value in sorted(self._context.declarations.items())
        ]
        Path(filepath).write_text("\n".join(lines) + "\n" if lines else "")


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_source(
    source: Union[str, bytes, BinaryIO],
    filename: str = "<input>",
    config: Optional[CompilerConfig] = None,
) -> bytes:
    """
    Convenience function to compile source code.

    Args:
        source: Source text, raw UTF-8 bytes, or a binary stream
        filename: Name used in log messages
        config: Compiler settings

    Returns:
        The binary image

    Raises:
        CompileFailed: If compilation fails
    """
    return Compiler(config).compile(source, filename)

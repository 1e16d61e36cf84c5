"""
Zircon Error Hierarchy
======================

This module defines the exception hierarchy for the Zircon assembler.
All exceptions inherit from ZirconError, allowing callers to catch all
assembler-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
ZirconError (base)
├── DecodeError - malformed UTF-8 in the input stream (fatal)
├── CompileError (recoverable, carries a Span)
│   ├── LexicalError - input matching no token shape
│   ├── AssemblySyntaxError - unexpected token, malformed operand
│   ├── ValueRangeError - value too wide for its target
│   ├── OperandError - unsupported operand combination or mnemonic
│   ├── DuplicateSymbolError - symbol declared more than once
│   ├── OverlapError - subroutine address ranges intersect
│   ├── UnresolvedSymbolError - declaration stuck after the fixpoint pass
│   └── UndefinedSymbolError - reference to a symbol never declared
└── CompileFailed - raised once at the end, carrying every CompileError

Design Philosophy
-----------------
Only DecodeError stops the pipeline on the spot. Every CompileError is
collected by an ErrorCollector and compilation continues, so a single run
reports all the problems in the source. The pipeline only gives up between
phases, at which point CompileFailed is raised with the full list.
"""

from typing import Optional

from zircon.span import Span


# =============================================================================
# Base Exception Class
# =============================================================================

class ZirconError(Exception):
    """
    Base exception for all Zircon errors.

        try:
            compile_source(source)
        except ZirconError as e:
            print(f"Error: {e}")
    """
    pass


class DecodeError(ZirconError):
    """
    Malformed byte sequence in the input.

    Raised by the character reader when a lead byte does not start any
    valid UTF-8 sequence, or when the sequence it starts is invalid.
    Unlike every other error this one aborts reading immediately.
    """

    def __init__(self, message: str, byte_offset: Optional[int] = None):
        self.byte_offset = byte_offset
        if byte_offset is not None:
            message = f"{message} (at byte {byte_offset})"
        super().__init__(message)


# =============================================================================
# Compile Errors
# =============================================================================

class CompileError(ZirconError):
    """
    A recoverable diagnostic tied to a location in the source.

    Attributes:
        message: The error description
        span: Where in the source the error occurred
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(self, message: str, span: Span, hint: Optional[str] = None):
        self.message = message
        self.span = span
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format as 'line:column: error: message', plus the hint if any.

        Example output:
            3:8: error: undefined symbol 'bot'
            hint: did you mean 'boot'?
        """
        text = f"{self.span}: error: {self.message}"
        if self.hint:
            text += f"\nhint: {self.hint}"
        return text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompileError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.span == other.span
        )

    def __hash__(self) -> int:
        return hash((type(self), self.message, self.span))


class LexicalError(CompileError):
    """A run of input that matches no token shape (e.g. ``??``)."""

    def __init__(self, text: str, span: Span):
        self.text = text
        super().__init__(f"Failed to parse token '{text}'", span)


class AssemblySyntaxError(CompileError):
    """
    Syntax error in the source.

    Examples:
        - Expected a token of one type, found another
        - Malformed operand
        - Unknown label specifier, declaration or pragma
    """
    pass


class ValueRangeError(CompileError):
    """
    A value does not fit the width of its target.

    Examples:
        - ld A, 300     (A is 8 bits wide)
        - def X = 70000 (literals are 16 bits)
    """
    pass


class OperandError(CompileError):
    """
    An instruction is used with an operand shape it does not implement,
    or the mnemonic itself has no encoder.

    Example:
        ld A, B  ; register-to-register loads are not implemented
    """
    pass


class DuplicateSymbolError(CompileError):
    """Symbol declared more than once."""

    def __init__(self, symbol: str, span: Span):
        self.symbol = symbol
        super().__init__(f"duplicate symbol '{symbol}'", span)


class OverlapError(CompileError):
    """Two subroutines occupy intersecting address ranges."""

    def __init__(self, name: str, other: str, span: Span):
        self.name = name
        self.other = other
        super().__init__(f"Subroutine '{name}' overlaps with '{other}'", span)


class UnresolvedSymbolError(CompileError):
    """
    A declaration could not be resolved because the symbol it depends on
    never became available (missing or circular definitions).
    """

    def __init__(self, symbol: str, waiting_on: str, span: Span):
        self.symbol = symbol
        self.waiting_on = waiting_on
        super().__init__(
            f"Could not resolve declaration '{symbol}': "
            f"'{waiting_on}' is never resolved",
            span,
        )


class UndefinedSymbolError(CompileError):
    """
    Reference to a symbol that was never declared.

    Similarly named symbols are offered as a hint to help catch typos.
    """

    def __init__(
        self,
        symbol: str,
        span: Span,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        hint = None
        if self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(f"undefined symbol '{symbol}'", span, hint=hint)


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects compile errors for batch reporting.

    Each phase adds to the collector instead of raising, then the compiler
    checks has_errors() before moving on to the next phase.

    Example:
        collector = ErrorCollector()
        try:
            ...
        except CompileError as e:
            collector.add(e)

        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self):
        self.errors: list[CompileError] = []

    def add(self, error: CompileError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def extend(self, errors: list[CompileError]) -> None:
        """Add several errors, keeping their order."""
        self.errors.extend(errors)

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def report(self) -> str:
        """
        Format all errors for display, one per paragraph, followed by a
        summary line.
        """
        lines = []
        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        error_word = "error" if len(self.errors) == 1 else "errors"
        lines.append(f"{len(self.errors)} {error_word}")
        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected errors."""
        self.errors.clear()


class CompileFailed(ZirconError):
    """
    Compilation produced one or more CompileErrors.

    Attributes:
        errors: Every error collected before the pipeline stopped, in the
                order they were found
    """

    def __init__(self, errors: list[CompileError]):
        self.errors = list(errors)
        count = len(self.errors)
        error_word = "error" if count == 1 else "errors"
        super().__init__(f"Compilation failed with {count} {error_word}")

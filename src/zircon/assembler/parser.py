"""
Zircon Parser / Assembler
=========================

This module parses the token list produced by the lexer and, in the same
left-to-right pass, schedules the operations that will later build the
binary. It never emits bytes itself.

Grammar
-------
```
program          := (pragma | data-decl | labeled-block | instruction-line)*
labeled-block    := 'sub' ident '{' instruction-line* '}'
instruction-line := mnemonic operand (',' operand)?
data-decl        := 'def' ident '=' (literal | ident)
                  | 'rom' ident ':' literal '=' (ident | literal)
pragma           := '@' 'origin' '(' literal ')'
```

Address Tracking
----------------
Every form the parser accepts has a byte size known statically, so the
parser keeps a 16-bit address cursor that is advanced by exactly the size
of each write it schedules. A label can therefore be registered under its
final address before any of its bytes exist, and references to it (even
forward ones) are patched in at emission time.

Instruction Encoding
--------------------
| Source           | Bytes              |
|------------------|--------------------|
| ld A, $FF        | $3E $FF            |
| ld B, $FF        | $06 $FF            |
| ld $6000*, A     | $32 $00 $60        |
| ld name*, A      | $32 <name lo/hi>   |
| jp name          | $C3 <name lo/hi>   |

Only this subset is implemented; any other operand combination is reported
as an error naming both operand kinds.

Error Recovery
--------------
Errors are collected, never raised out of parse(). After an error the
parser discards tokens up to the next newline and resumes on the following
line, so independent mistakes on separate lines are all reported.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional
import logging

from zircon.assembler.lexer import Token, TokenType
from zircon.assembler.operations import (
    DefineAlias,
    DefineSymbol,
    ResolutionOp,
    SetAddress,
    SymbolPatch,
    WriteBytes,
    WriteOp,
)
from zircon.assembler.types import (
    AddressTarget,
    DataTarget,
    ImmediateTarget,
    RegisterTarget,
    ShortRegister,
    SymbolAddressTarget,
    SymbolImmediateTarget,
    lookup_register,
)
from zircon.errors import (
    AssemblySyntaxError,
    CompileError,
    ErrorCollector,
    OperandError,
    OverlapError,
    ValueRangeError,
)
from zircon.span import Span

logger = logging.getLogger(__name__)


# =============================================================================
# Opcodes
# =============================================================================

# ld r, n
LD_IMMEDIATE_OPCODES = {
    ShortRegister.A: 0x3E,
    ShortRegister.B: 0x06,
    ShortRegister.C: 0x0E,
    ShortRegister.D: 0x16,
    ShortRegister.E: 0x1E,
    ShortRegister.H: 0x26,
    ShortRegister.L: 0x2E,
}

OPCODE_LD_ABSOLUTE_A = 0x32  # ld (nn), A
OPCODE_JP_ABSOLUTE = 0xC3    # jp nn

ADDRESS_SPACE = 0x10000

# Names used in "Expected X, found Y" messages
TOKEN_NAMES = {
    TokenType.INSTRUCTION: "instruction",
    TokenType.LABEL_SPECIFIER: "label specifier",
    TokenType.REGISTER: "register",
    TokenType.DATA_DECLARATION: "data declaration",
    TokenType.IDENTIFIER: "identifier",
    TokenType.HEX_NUMBER: "hex literal",
    TokenType.DEC_NUMBER: "decimal literal",
    TokenType.COMMENT_LINE: "comment",
    TokenType.ERROR: "invalid token",
}


# =============================================================================
# Parse Result
# =============================================================================

@dataclass
class AllocatedArea:
    """Address range occupied by a subroutine, kept for overlap checks."""
    name: str
    range: range
    span: Span

    def overlaps(self, other: range) -> bool:
        """True if the two (non-empty) ranges share at least one address."""
        if not self.range or not other:
            return False
        return other.start < self.range.stop and self.range.start < other.stop


@dataclass
class ParseResult:
    """
    Everything the later passes need from the parser.

    Attributes:
        write_queue: Byte-producing operations in schedule order
        resolution_queue: Symbol-defining operations in schedule order
        areas: Address ranges of every subroutine
        errors: Syntax and semantic errors found while parsing
        address: Cursor position after the last statement
    """
    write_queue: list[WriteOp] = field(default_factory=list)
    resolution_queue: list[ResolutionOp] = field(default_factory=list)
    areas: list[AllocatedArea] = field(default_factory=list)
    errors: list[CompileError] = field(default_factory=list)
    address: int = 0


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses Zircon tokens and schedules deferred operations.

    Usage:
        result = tokenize(source)
        parser = Parser(result.text, result.tokens)
        parsed = parser.parse()
        if parsed.errors:
            ...
    """

    def __init__(self, text: str, tokens: list[Token]):
        """
        Initialize the parser.

        Args:
            text: Decoded source text (token spans index into it)
            tokens: Token list from the lexer
        """
        self._text = text
        self._tokens = tokens
        self._pos = 0
        self._latest_span = Span()
        self._errors = ErrorCollector()

        self._address = 0
        self._areas: list[AllocatedArea] = []
        self._write_queue: list[WriteOp] = []
        self._resolution_queue: list[ResolutionOp] = []

        self._instruction_parsers: dict[str, Callable[[Token], None]] = {
            "ld": self._parse_ld,
            "jp": self._parse_jp,
        }

    def parse(self) -> ParseResult:
        """Parse every statement, collecting errors along the way."""
        self._skip_newlines()
        while self._peek() is not None:
            self._parse_statement()
            self._skip_newlines()

        logger.debug(
            f"Parsed {len(self._tokens)} tokens: {len(self._write_queue)} writes, "
            f"{len(self._resolution_queue)} declarations, "
            f"{self._errors.error_count()} errors"
        )

        return ParseResult(
            write_queue=self._write_queue,
            resolution_queue=self._resolution_queue,
            areas=self._areas,
            errors=list(self._errors.errors),
            address=self._address,
        )

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _text_of(self, token: Token) -> str:
        return token.span.slice(self._text)

    def _describe(self, token: Token) -> str:
        """Human description of a token for error messages."""
        if token.type == TokenType.NEWLINE:
            return "end of line"
        name = TOKEN_NAMES.get(token.type)
        if name is None:
            return f"'{self._text_of(token)}'"
        return f"{name} '{self._text_of(token)}'"

    def _skip_comment_line(self) -> None:
        """If a comment starts here, skip up to (not including) the newline."""
        if self._pos < len(self._tokens) and self._tokens[self._pos].type == TokenType.COMMENT_LINE:
            while self._pos < len(self._tokens) and self._tokens[self._pos].type != TokenType.NEWLINE:
                self._skip()

    def _peek(self) -> Optional[Token]:
        """Current token (comments skipped), or None at end of input."""
        self._skip_comment_line()
        if self._pos >= len(self._tokens):
            return None
        return self._tokens[self._pos]

    def _skip(self) -> None:
        self._latest_span = self._tokens[self._pos].span
        self._pos += 1

    def _advance(self) -> Optional[Token]:
        """Consume and return the current token."""
        token = self._peek()
        if token is not None:
            self._skip()
        return token

    def _check(self, *types: TokenType) -> bool:
        """Check if current token is one of the given types."""
        token = self._peek()
        return token is not None and token.type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        """Match and consume if current token is one of the types."""
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, what: str) -> Token:
        """
        Consume a token of the given type.

        The token is left in place on mismatch, so error recovery never
        swallows the newline that ends the offending line.
        """
        token = self._peek()
        if token is None:
            raise AssemblySyntaxError(f"Expected {what}, found end of input", self._latest_span)
        if token.type != token_type:
            raise AssemblySyntaxError(f"Expected {what}, found {self._describe(token)}", token.span)
        self._skip()
        return token

    def _skip_newlines(self) -> None:
        while self._match(TokenType.NEWLINE):
            pass

    def _recover(self) -> None:
        """Discard the rest of the current line, then any blank lines."""
        while (token := self._peek()) is not None and token.type != TokenType.NEWLINE:
            self._skip()
        self._skip_newlines()

    # =========================================================================
    # Scheduling
    # =========================================================================

    def _write(self, template: bytes, patches: tuple[SymbolPatch, ...] = ()) -> None:
        """Schedule a write and advance the cursor by its size."""
        end = self._address + len(template)
        if end > ADDRESS_SPACE:
            raise ValueRangeError(
                f"Code at ${self._address:04X} runs past the end of the address space",
                self._latest_span,
            )
        self._address = end
        self._write_queue.append(WriteBytes(bytes(template), tuple(patches)))

    def _set_address(self, address: int) -> None:
        self._address = address
        self._write_queue.append(SetAddress(address))

    def _reserve_area(self, name: str, new_range: range, span: Span) -> None:
        """
        Record a subroutine's address range.

        Every earlier area it intersects produces an error for both
        subroutines, each at its own name.
        """
        for area in self._areas:
            if area.overlaps(new_range):
                self._errors.add(OverlapError(name, area.name, span))
                self._errors.add(OverlapError(area.name, name, area.span))

        self._areas.append(AllocatedArea(name, new_range, span))

    # =========================================================================
    # Operands
    # =========================================================================

    def _read_literal(self) -> int:
        """Read a hex or decimal literal (16-bit)."""
        token = self._peek()
        if token is None:
            raise AssemblySyntaxError("Expected a literal, found end of input", self._latest_span)

        text = self._text_of(token)
        if token.type == TokenType.HEX_NUMBER:
            digits = text[1:]
            if not digits:
                raise AssemblySyntaxError(f"Invalid hexadecimal literal '{text}'", token.span)
            value = int(digits, 16)
        elif token.type == TokenType.DEC_NUMBER:
            value = int(text)
        else:
            raise AssemblySyntaxError(
                f"Expected a literal, found {self._describe(token)}", token.span
            )

        self._skip()

        if value > 0xFFFF:
            raise ValueRangeError(f"Number '{value}' is too big to fit into 16 bits", token.span)
        return value

    def _read_data_target(self) -> tuple[DataTarget, Span]:
        """
        Read one operand.

        Tried in order: register, literal (with optional '*'), identifier
        (with optional '*'). The first form that matches wins.

        Returns:
            The operand and the span of all its tokens
        """
        token = self._peek()
        if token is None:
            raise AssemblySyntaxError("Invalid data target", self._latest_span)

        if token.type == TokenType.REGISTER:
            self._skip()
            return RegisterTarget(lookup_register(self._text_of(token))), token.span

        if token.type in (TokenType.HEX_NUMBER, TokenType.DEC_NUMBER):
            value = self._read_literal()
            if self._match(TokenType.STAR):
                return AddressTarget(value), token.span.merge(self._latest_span)
            return ImmediateTarget(value), token.span

        if token.type == TokenType.IDENTIFIER:
            self._skip()
            name = self._text_of(token)
            if self._match(TokenType.STAR):
                return SymbolAddressTarget(name), token.span.merge(self._latest_span)
            return SymbolImmediateTarget(name), token.span

        raise AssemblySyntaxError("Invalid data target", token.span)

    # =========================================================================
    # Instructions
    # =========================================================================

    def _parse_instruction_line(self) -> None:
        token = self._expect(TokenType.INSTRUCTION, "an instruction")
        mnemonic = self._text_of(token).lower()

        parse_instruction = self._instruction_parsers.get(mnemonic)
        if parse_instruction is None:
            raise OperandError(f"Unable to find mnemonic '{mnemonic}'", token.span)
        parse_instruction(token)

    def _parse_ld(self, mnemonic: Token) -> None:
        """ld <destination>, <source>"""
        destination, destination_span = self._read_data_target()
        self._expect(TokenType.COMMA, "','")
        source, source_span = self._read_data_target()

        store_from_a = source == RegisterTarget(ShortRegister.A)

        if (
            isinstance(destination, RegisterTarget)
            and destination.register in LD_IMMEDIATE_OPCODES
            and isinstance(source, ImmediateTarget)
        ):
            register = destination.register
            if source.value > 0xFF:
                raise ValueRangeError(
                    f"Number '{source.value}' is too big to fit into the {register.value} register",
                    source_span,
                )
            self._write(bytes([LD_IMMEDIATE_OPCODES[register], source.value]))

        elif isinstance(destination, AddressTarget) and store_from_a:
            self._write(bytes([OPCODE_LD_ABSOLUTE_A]) + destination.address.to_bytes(2, "little"))

        elif isinstance(destination, SymbolAddressTarget) and store_from_a:
            patch = SymbolPatch(1, destination.name, destination_span)
            self._write(bytes([OPCODE_LD_ABSOLUTE_A, 0, 0]), (patch,))

        else:
            raise OperandError(
                f"'ld' isn't implemented for {destination.describe()} <- {source.describe()}",
                mnemonic.span.merge(self._latest_span),
            )

    def _parse_jp(self, mnemonic: Token) -> None:
        """jp <label>"""
        target = self._expect(TokenType.IDENTIFIER, "a jump target")
        patch = SymbolPatch(1, self._text_of(target), target.span)
        self._write(bytes([OPCODE_JP_ABSOLUTE, 0, 0]), (patch,))

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> None:
        """Parse one top-level statement, recovering on error."""
        token = self._peek()
        try:
            if token.type == TokenType.LABEL_SPECIFIER:
                self._parse_label_block()
            elif token.type == TokenType.DATA_DECLARATION:
                self._parse_data_declaration()
            elif token.type == TokenType.AT:
                self._parse_pragma()
            elif token.type == TokenType.INSTRUCTION:
                self._parse_instruction_line()
            else:
                raise AssemblySyntaxError(f"Unexpected {self._describe(token)}", token.span)
        except CompileError as e:
            self._errors.add(e)
            self._recover()

    def _parse_label_block(self) -> None:
        """sub NAME { instruction-line* }"""
        specifier = self._advance()
        kind = self._text_of(specifier).lower()
        if kind != "sub":
            raise AssemblySyntaxError(f"Unimplemented specifier type '{kind}'", specifier.span)

        name_token = self._expect(TokenType.IDENTIFIER, "a subroutine name")
        name = self._text_of(name_token)

        start_address = self._address
        self._resolution_queue.append(DefineSymbol(name, start_address, name_token.span))

        self._skip_newlines()
        self._parse_block(name)

        self._reserve_area(name, range(start_address, self._address), name_token.span)

    def _parse_block(self, name: str) -> None:
        self._expect(TokenType.OPENING_CURLY, "'{'")
        self._skip_newlines()

        while True:
            token = self._peek()
            if token is None:
                raise AssemblySyntaxError(
                    f"Expected '}}' to close subroutine '{name}', found end of input",
                    self._latest_span,
                )
            if token.type == TokenType.CLOSING_CURLY:
                self._skip()
                return

            try:
                self._parse_instruction_line()
            except CompileError as e:
                self._errors.add(e)
                self._recover()
            self._skip_newlines()

    def _parse_data_declaration(self) -> None:
        """def NAME = value | rom NAME : size = value"""
        keyword = self._advance()
        kind = self._text_of(keyword).lower()

        if kind == "def":
            name_token = self._expect(TokenType.IDENTIFIER, "a symbol name")
            name = self._text_of(name_token)
            self._expect(TokenType.EQUALS, "'='")

            alias = self._match(TokenType.IDENTIFIER)
            if alias is not None:
                self._resolution_queue.append(
                    DefineAlias(name, self._text_of(alias), name_token.span)
                )
            else:
                value = self._read_literal()
                self._resolution_queue.append(DefineSymbol(name, value, name_token.span))

        elif kind == "rom":
            name_token = self._expect(TokenType.IDENTIFIER, "a symbol name")
            name = self._text_of(name_token)
            self._expect(TokenType.COLON, "':'")
            size = self._read_literal()
            size_span = self._latest_span
            self._expect(TokenType.EQUALS, "'='")

            value_token = self._match(TokenType.IDENTIFIER)
            value = None if value_token is not None else self._read_literal()

            if size != 2:
                raise AssemblySyntaxError(f"Invalid data size '{size}', expected 2", size_span)

            self._resolution_queue.append(DefineSymbol(name, self._address, name_token.span))
            if value_token is not None:
                patch = SymbolPatch(0, self._text_of(value_token), value_token.span)
                self._write(bytes(2), (patch,))
            else:
                self._write(value.to_bytes(2, "little"))

        else:
            raise AssemblySyntaxError(
                f"Unimplemented data declaration type '{kind}'", keyword.span
            )

    def _parse_pragma(self) -> None:
        """@origin(address)"""
        self._expect(TokenType.AT, "'@'")
        directive_token = self._expect(TokenType.IDENTIFIER, "a pragma name")
        directive = self._text_of(directive_token)

        if directive.lower() == "origin":
            self._expect(TokenType.OPENING_PAREN, "'('")
            address = self._read_literal()
            self._expect(TokenType.CLOSING_PAREN, "')'")
            self._set_address(address)
        else:
            raise AssemblySyntaxError(
                f"Unknown top level directive '{directive}'", directive_token.span
            )

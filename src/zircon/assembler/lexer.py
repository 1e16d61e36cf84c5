"""
Zircon Lexer
============

This module converts a character stream into a flat list of tokens, each
tagged with its exact source Span.

Token Types
-----------
- Keywords (matched case-insensitively, first match wins):
  INSTRUCTION (ld, st, jp), LABEL_SPECIFIER (sub), REGISTER (a, b, ...,
  hl, ix, iy), DATA_DECLARATION (def, rom)
- IDENTIFIER: any other alphanumeric/underscore word starting with a letter
- HEX_NUMBER: $ followed by hex digits ($FF); the span includes the $
- DEC_NUMBER: plain decimal digits (42)
- Punctuation: { } ( ) * & , = @ :
- NEWLINE: end of line (significant for statement boundaries)
- COMMENT_LINE: the two characters //
- ERROR: a run of non-whitespace that matches nothing above

Comments
--------
Only the // marker is tokenized. The rest of the comment line is lexed as
ordinary tokens and skipped by the parser up to the next NEWLINE.

Error Handling
--------------
The lexer never stops on bad input. A character that cannot start any token
begins an ERROR token that runs to the next whitespace, so ``$FF??`` gives
one HEX_NUMBER and one bounded ERROR token rather than a stream of
single-character noise. Error tokens are reported by the caller after the
whole input has been scanned.

Example
-------
>>> from zircon.assembler.lexer import tokenize
>>> result = tokenize("ld A, $FF\\n")
>>> [token.type.name for token in result.tokens]
['INSTRUCTION', 'REGISTER', 'COMMA', 'HEX_NUMBER', 'NEWLINE']
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import BinaryIO, Iterator, Union
import io
import logging
import string

from zircon.reader import EOF, CharReader, DEFAULT_CHUNK_SIZE
from zircon.span import Span

logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for the Zircon source language."""

    # Keywords
    INSTRUCTION = auto()       # ld, st, jp
    LABEL_SPECIFIER = auto()   # sub
    REGISTER = auto()          # A, B, HL, SP, ...
    DATA_DECLARATION = auto()  # def, rom

    # Values
    IDENTIFIER = auto()
    HEX_NUMBER = auto()   # $FF
    DEC_NUMBER = auto()   # 255

    # Punctuation
    OPENING_CURLY = auto()   # {
    CLOSING_CURLY = auto()   # }
    OPENING_PAREN = auto()   # (
    CLOSING_PAREN = auto()   # )
    STAR = auto()            # * (address-of suffix)
    AMPERSAND = auto()       # &
    COMMA = auto()           # ,
    EQUALS = auto()          # =
    AT = auto()              # @ (pragma prefix)
    COLON = auto()           # :

    # Structure
    NEWLINE = auto()
    COMMENT_LINE = auto()  # //

    # Unidentifiable input
    ERROR = auto()


# =============================================================================
# Keyword Tables
# =============================================================================

INSTRUCTIONS = frozenset({"ld", "st", "jp"})
LABEL_SPECIFIERS = frozenset({"sub"})
REGISTERS = frozenset({
    "a", "b", "c", "d", "e", "f", "h", "l", "i", "r",
    "af", "bc", "de", "hl", "pc", "sp", "ix", "iy",
})
DATA_DECLARATIONS = frozenset({"def", "rom"})

# Checked in order; the sets are disjoint so the order only documents intent
KEYWORD_TABLES = (
    (INSTRUCTIONS, TokenType.INSTRUCTION),
    (LABEL_SPECIFIERS, TokenType.LABEL_SPECIFIER),
    (REGISTERS, TokenType.REGISTER),
    (DATA_DECLARATIONS, TokenType.DATA_DECLARATION),
)


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token: its type and where it sits in the source.

    The token does not carry its text; slice it out of the source with
    ``token.span.slice(text)``.
    """
    type: TokenType
    span: Span

    def __repr__(self) -> str:
        return (
            f"Token({self.type.name}, pos={self.span.pos.start}..{self.span.pos.stop}, "
            f"{self.span.line.start + 1}:{self.span.col.start + 1})"
        )


@dataclass
class TokenizerResult:
    """
    Output of a full scan.

    Attributes:
        tokens: Every token in source order
        lines: Absolute offset of the first character of each line
        text: The decoded source text the spans refer to
    """
    tokens: list[Token]
    lines: list[int]
    text: str

    def error_tokens(self) -> list[Token]:
        """Return the ERROR tokens, in source order."""
        return [t for t in self.tokens if t.type == TokenType.ERROR]


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes Zircon source read through a CharReader.

    Usage:
        lexer = Lexer(CharReader(stream))
        tokens = list(lexer.tokenize())
        lines = lexer.reader.consume_line_starts()
    """

    # Characters that can continue an identifier (besides alphanumerics)
    IDENT_EXTRA = "_"

    SINGLE_CHAR_TOKENS = {
        "\n": TokenType.NEWLINE,
        "{": TokenType.OPENING_CURLY,
        "}": TokenType.CLOSING_CURLY,
        "(": TokenType.OPENING_PAREN,
        ")": TokenType.CLOSING_PAREN,
        "*": TokenType.STAR,
        "&": TokenType.AMPERSAND,
        ",": TokenType.COMMA,
        "=": TokenType.EQUALS,
        "@": TokenType.AT,
        ":": TokenType.COLON,
    }

    def __init__(self, reader: CharReader):
        self.reader = reader

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens until the reader is exhausted.

        Raises:
            DecodeError: If the underlying bytes are not valid UTF-8
        """
        reader = self.reader

        while (char := reader.peek_char()) != EOF:
            if char in self.SINGLE_CHAR_TOKENS:
                reader.next_char()
                yield Token(self.SINGLE_CHAR_TOKENS[char], self._last_char_span())
                continue

            if char.isspace():
                reader.next_char()
                continue

            if char == "/":
                yield self._scan_comment()
                continue

            if char == "$":
                yield self._scan_hex_number()
                continue

            if char in string.digits:
                yield self._scan_decimal_number()
                continue

            if char.isalpha():
                yield self._scan_identifier()
                continue

            yield Token(TokenType.ERROR, self._scan_unidentifiable())

    # =========================================================================
    # Span Helpers
    # =========================================================================

    def _start(self) -> tuple[int, int, int]:
        """Position of the next character, used as a token start."""
        return self.reader.peek_pos, self.reader.peek_line, self.reader.peek_col

    def _span_from(self, start: tuple[int, int, int]) -> Span:
        """Span from `start` to the last consumed character (inclusive)."""
        pos, line, col = start
        reader = self.reader
        return Span(
            pos=range(pos, reader.pos + 1),
            line=range(line, reader.line + 1),
            col=range(col, reader.col + 1),
        )

    def _last_char_span(self) -> Span:
        return Span.point(self.reader.pos, self.reader.line, self.reader.col)

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _consume_while(self, accept) -> None:
        """Consume characters as long as `accept(char)` holds."""
        reader = self.reader
        while (char := reader.peek_char()) != EOF and accept(char):
            reader.next_char()

    def _scan_comment(self) -> Token:
        """Scan '//'; a lone '/' becomes an ERROR token."""
        start = self._start()
        self.reader.next_char()  # consume /

        if self.reader.peek_char() == "/":
            self.reader.next_char()
            return Token(TokenType.COMMENT_LINE, self._span_from(start))

        return Token(TokenType.ERROR, self._span_from(start))

    def _scan_hex_number(self) -> Token:
        """Scan $ followed by any number of hex digits."""
        start = self._start()
        self.reader.next_char()  # consume $
        self._consume_while(lambda c: c in string.hexdigits)
        return Token(TokenType.HEX_NUMBER, self._span_from(start))

    def _scan_decimal_number(self) -> Token:
        start = self._start()
        self._consume_while(lambda c: c in string.digits)
        return Token(TokenType.DEC_NUMBER, self._span_from(start))

    def _scan_identifier(self) -> Token:
        """
        Scan an identifier and classify it against the keyword tables.

        Identifiers start with a letter and continue with letters, digits
        or underscores.
        """
        start = self._start()
        chars = [self.reader.next_char()]
        while (char := self.reader.peek_char()) != EOF and (
            char.isalnum() or char in self.IDENT_EXTRA
        ):
            chars.append(self.reader.next_char())

        word = "".join(chars).lower()
        token_type = TokenType.IDENTIFIER
        for table, keyword_type in KEYWORD_TABLES:
            if word in table:
                token_type = keyword_type
                break

        return Token(token_type, self._span_from(start))

    def _scan_unidentifiable(self) -> Span:
        """Consume a run of non-whitespace characters."""
        start = self._start()
        self._consume_while(lambda c: not c.isspace())
        return self._span_from(start)


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(
    source: Union[str, bytes, BinaryIO],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> TokenizerResult:
    """
    Tokenize a whole input.

    Args:
        source: Source text, raw UTF-8 bytes, or a binary stream
        chunk_size: Bytes requested per read from the stream

    Returns:
        TokenizerResult with the tokens, line-start table and decoded text

    Raises:
        DecodeError: If the input is not valid UTF-8
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    reader = CharReader(source, chunk_size=chunk_size)
    lexer = Lexer(reader)
    tokens = list(lexer.tokenize())

    logger.debug(f"Tokenized {reader.peek_pos} characters into {len(tokens)} tokens")

    return TokenizerResult(
        tokens=tokens,
        lines=reader.consume_line_starts(),
        text=reader.text,
    )

"""
Position-Tracking Character Reader
==================================

This module decodes a byte stream into characters with one character of
lookahead, tracking the absolute character offset, line and column of both
the last consumed character and the next one.

Streaming
---------
The stream is read in fixed-size chunks. UTF-8 characters are up to four
bytes wide, so a character may straddle two reads. When the lead byte
announces more bytes than are buffered, the unread tail is moved to the
front of the buffer and the stream is read again until the character is
complete. The decoded output is therefore the same no matter how the
underlying source fragments its reads.

If the stream ends in the middle of a character, the reader reports end of
input rather than a decode error. A lead byte that cannot start any UTF-8
sequence raises DecodeError.

Position Rules
--------------
- Offset and column advance on every character consumed.
- A newline belongs to the line it terminates: the line number increments
  (and the column resets to 0) on the character *after* the newline.
- The offset of each line's first character is recorded, so diagnostics
  can later print whole source lines.

Example
-------
>>> import io
>>> reader = CharReader(io.BytesIO(b"a\\nb"))
>>> reader.next_char(), reader.line, reader.col
('a', 0, 0)
>>> reader.next_char(), reader.line, reader.col
('\\n', 0, 1)
>>> reader.next_char(), reader.line, reader.col
('b', 1, 0)
>>> reader.consume_line_starts()
[0, 2]
"""

from typing import BinaryIO, Optional
import logging

from zircon.errors import DecodeError

logger = logging.getLogger(__name__)

# Returned by next_char()/peek_char() once the stream is exhausted
EOF = ""

DEFAULT_CHUNK_SIZE = 5_000


def utf8_char_width(lead: int) -> int:
    """
    Return the encoded width of a UTF-8 character from its lead byte.

    Returns 0 for bytes that cannot start a character (continuation bytes,
    overlong lead bytes 0xC0/0xC1 and anything above 0xF4).
    """
    if lead < 0x80:
        return 1
    if 0xC2 <= lead <= 0xDF:
        return 2
    if 0xE0 <= lead <= 0xEF:
        return 3
    if 0xF0 <= lead <= 0xF4:
        return 4
    return 0


class CharReader:
    """
    Reads characters from a binary stream while tracking source positions.

    Usage:
        reader = CharReader(open("main.zir", "rb"))
        while (char := reader.next_char()) != EOF:
            print(char, reader.line, reader.col)
        lines = reader.consume_line_starts()

    Attributes:
        pos, line, col: Position of the last consumed character
        peek_pos, peek_line, peek_col: Position of the next character
    """

    def __init__(self, stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize the reader.

        Args:
            stream: Any object with a read(n) method returning bytes
            chunk_size: Number of bytes requested per read
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        self._stream = stream
        self._chunk_size = chunk_size

        # Undecoded bytes and the read position within them
        self._buffer = bytearray()
        self._offset = 0
        # Bytes already dropped from the front of the buffer
        self._base = 0

        self._char_pos: Optional[int] = None
        self._line = 0
        self._col: Optional[int] = None
        self._was_newline = False

        self._line_starts = [0]
        self._chars: list[str] = []

    # =========================================================================
    # Buffer Management
    # =========================================================================

    def _fill(self) -> bool:
        """Read one chunk onto the end of the buffer. False at end of stream."""
        chunk = self._stream.read(self._chunk_size)
        if not chunk:
            return False
        self._buffer += chunk
        return True

    def _compact(self) -> None:
        """Move the unread tail of the buffer to the front."""
        del self._buffer[:self._offset]
        self._base += self._offset
        self._offset = 0

    def _load_char(self) -> tuple[str, int]:
        """
        Make sure the next whole character is buffered and decode it.

        Returns:
            (character, width in bytes), or (EOF, 0) at end of input
        """
        if self._offset >= len(self._buffer):
            self._compact()
            if not self._fill():
                return EOF, 0

        lead = self._buffer[self._offset]
        width = utf8_char_width(lead)
        if width == 0:
            raise DecodeError(
                f"invalid UTF-8 lead byte 0x{lead:02X}",
                self._base + self._offset,
            )

        if self._offset + width > len(self._buffer):
            self._compact()
            while len(self._buffer) < width:
                if not self._fill():
                    # Truncated trailing character; treat as end of input
                    logger.debug(
                        f"Stream ended inside a {width}-byte character, "
                        f"ignoring {len(self._buffer)} trailing bytes"
                    )
                    return EOF, 0

        raw = bytes(self._buffer[self._offset:self._offset + width])
        try:
            char = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(
                f"invalid UTF-8 sequence {raw.hex(' ').upper()}",
                self._base + self._offset,
            ) from e

        return char, width

    # =========================================================================
    # Character Access
    # =========================================================================

    def next_char(self) -> str:
        """
        Consume and return the next character, or EOF.

        Raises:
            DecodeError: If the input is not valid UTF-8
        """
        char, width = self._load_char()
        if char == EOF:
            return EOF

        self._offset += width

        self._col = 0 if self._col is None else self._col + 1
        self._char_pos = 0 if self._char_pos is None else self._char_pos + 1

        if self._was_newline:
            self._line += 1
            self._col = 0
            self._line_starts.append(self._char_pos)
            self._was_newline = False

        if char == "\n":
            self._was_newline = True

        self._chars.append(char)
        return char

    def peek_char(self) -> str:
        """Return the next character without consuming it, or EOF."""
        char, _ = self._load_char()
        return char

    # =========================================================================
    # Positions
    # =========================================================================

    @property
    def pos(self) -> int:
        """Absolute offset of the last consumed character."""
        return self._char_pos if self._char_pos is not None else 0

    @property
    def line(self) -> int:
        """Line index of the last consumed character."""
        return self._line

    @property
    def col(self) -> int:
        """Column index of the last consumed character."""
        return self._col if self._col is not None else 0

    @property
    def peek_pos(self) -> int:
        """Absolute offset of the next character."""
        return 0 if self._char_pos is None else self._char_pos + 1

    @property
    def peek_line(self) -> int:
        """Line index of the next character."""
        return self._line + 1 if self._was_newline else self._line

    @property
    def peek_col(self) -> int:
        """Column index of the next character."""
        if self._was_newline or self._col is None:
            return 0
        return self._col + 1

    @property
    def text(self) -> str:
        """All characters consumed so far."""
        return "".join(self._chars)

    def consume_line_starts(self) -> list[int]:
        """
        Return the absolute offset of the first character of every line.

        Intended to be called once reading is finished.
        """
        return list(self._line_starts)

# =============================================================================
# test_reader.py - Character Reader Unit Tests
# =============================================================================
# Tests for the streaming UTF-8 character reader.
#
# Test coverage includes:
#   - Offset, line and column bookkeeping (including newline handling)
#   - Lookahead positions
#   - Multi-byte characters split across reads
#   - Truncated and malformed input
#   - Line-start table
# =============================================================================

import io

import pytest

from zircon.errors import DecodeError
from zircon.reader import EOF, CharReader, utf8_char_width


# =============================================================================
# Helpers
# =============================================================================

class FragmentedStream:
    """Binary stream that never returns more than `limit` bytes per read."""

    def __init__(self, data: bytes, limit: int = 1):
        self._data = data
        self._pos = 0
        self._limit = limit

    def read(self, size: int) -> bytes:
        size = min(size, self._limit)
        chunk = self._data[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk


def read_all(reader: CharReader) -> list[tuple[str, int, int, int]]:
    """Drain a reader into (char, pos, line, col) tuples."""
    result = []
    while (char := reader.next_char()) != EOF:
        result.append((char, reader.pos, reader.line, reader.col))
    return result


# =============================================================================
# Position Tracking Tests
# =============================================================================

class TestPositions:
    """Test offset/line/column bookkeeping."""

    def test_positions_through_lines(self):
        """Walk a three-line input checking every counter."""
        reader = CharReader(io.BytesIO(b"\nHello\nWorld"))
        assert reader.line == 0
        assert reader.peek_col == 0
        assert reader.peek_line == 0
        assert reader.peek_pos == 0

        assert reader.next_char() == "\n"
        assert (reader.line, reader.col, reader.pos) == (0, 0, 0)
        assert reader.peek_col == 0
        assert reader.peek_line == 1

        assert reader.next_char() == "H"
        assert (reader.line, reader.col, reader.pos) == (1, 0, 1)
        assert reader.peek_col == 1
        assert reader.peek_line == 1

        assert reader.next_char() == "e"
        assert (reader.line, reader.col, reader.pos) == (1, 1, 2)
        assert reader.peek_col == 2

        for expected in "llo":
            assert reader.next_char() == expected
        assert (reader.line, reader.col, reader.pos) == (1, 4, 5)

        assert reader.next_char() == "\n"
        assert (reader.line, reader.col, reader.pos) == (1, 5, 6)

        assert reader.next_char() == "W"
        assert (reader.line, reader.col, reader.pos) == (2, 0, 7)

        for expected in "orld":
            assert reader.next_char() == expected
        assert reader.peek_col == 5
        assert reader.peek_line == 2

        assert reader.next_char() == EOF

    def test_peek_does_not_advance(self):
        """peek_char() returns the same character until it is consumed."""
        reader = CharReader(io.BytesIO(b"ab"))
        assert reader.peek_char() == "a"
        assert reader.peek_char() == "a"
        assert reader.next_char() == "a"
        assert reader.peek_char() == "b"

    def test_empty_input(self):
        """An empty stream is immediately at end of input."""
        reader = CharReader(io.BytesIO(b""))
        assert reader.peek_char() == EOF
        assert reader.next_char() == EOF
        assert reader.consume_line_starts() == [0]

    def test_line_starts(self):
        """Each line records the offset of its first character."""
        reader = CharReader(io.BytesIO(b"ab\ncd\n\nef"))
        read_all(reader)
        assert reader.consume_line_starts() == [0, 3, 6, 7]

    def test_trailing_newline_opens_no_line(self):
        """A final newline does not start a new (empty) line."""
        reader = CharReader(io.BytesIO(b"ab\n"))
        read_all(reader)
        assert reader.consume_line_starts() == [0]

    def test_text_accumulates(self):
        reader = CharReader(io.BytesIO("ld A, $FF\n".encode()))
        read_all(reader)
        assert reader.text == "ld A, $FF\n"

    def test_rejects_bad_chunk_size(self):
        with pytest.raises(ValueError):
            CharReader(io.BytesIO(b""), chunk_size=0)


# =============================================================================
# UTF-8 Decoding Tests
# =============================================================================

class TestDecoding:
    """Test multi-byte handling and chunk boundaries."""

    @pytest.mark.parametrize("lead,width", [
        (0x41, 1),
        (0xC3, 2),
        (0xE2, 3),
        (0xF0, 4),
        (0x80, 0),   # continuation byte
        (0xC0, 0),   # overlong
        (0xFF, 0),
    ])
    def test_char_width(self, lead, width):
        assert utf8_char_width(lead) == width

    def test_multibyte_characters(self):
        """Multi-byte characters count as one position each."""
        reader = CharReader(io.BytesIO("é€😀x".encode()))
        chars = read_all(reader)
        assert [c for c, _, _, _ in chars] == ["é", "€", "😀", "x"]
        assert [pos for _, pos, _, _ in chars] == [0, 1, 2, 3]

    def test_character_split_across_chunks(self):
        """A character straddling the chunk boundary is reassembled."""
        data = "a€b".encode()  # € is 3 bytes
        reader = CharReader(io.BytesIO(data), chunk_size=2)
        assert [c for c, _, _, _ in read_all(reader)] == ["a", "€", "b"]

    @pytest.mark.parametrize("limit", [1, 2, 3, 5, 7])
    def test_chunking_is_invisible(self, limit):
        """Fragmented reads give the same characters and positions."""
        data = "// señal\nsub main {\n    ld A, $FF 😀\n}\n".encode()
        expected = read_all(CharReader(io.BytesIO(data)))
        fragmented = read_all(CharReader(FragmentedStream(data, limit), chunk_size=4))
        assert fragmented == expected

    def test_truncated_character_is_end_of_input(self):
        """A stream ending mid-character reports end of input."""
        data = "ab".encode() + "€".encode()[:2]
        reader = CharReader(io.BytesIO(data))
        assert reader.next_char() == "a"
        assert reader.next_char() == "b"
        assert reader.next_char() == EOF

    def test_invalid_lead_byte(self):
        """A byte that cannot start a character is a decode error."""
        reader = CharReader(io.BytesIO(b"a\xffb"))
        assert reader.next_char() == "a"
        with pytest.raises(DecodeError) as exc_info:
            reader.next_char()
        assert exc_info.value.byte_offset == 1

    def test_invalid_continuation(self):
        """A lead byte followed by a non-continuation byte is rejected."""
        reader = CharReader(io.BytesIO(b"\xc3A"))
        with pytest.raises(DecodeError):
            reader.next_char()

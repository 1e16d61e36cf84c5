"""
Source Spans
============

A `Span` identifies where a token or diagnostic sits in the source text.
It holds three half-open ranges over the same logical characters:

- ``pos``: absolute character offset from the start of the input
- ``line``: line index (0-based); always exactly one line wide
- ``col``: column index within that line (0-based)

Example
-------
For the source ``"ld A, $FF"`` the hex literal occupies::

    Span(pos=range(6, 9), line=range(0, 1), col=range(6, 9))
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Span:
    """
    Immutable location of a run of characters.

    Attributes:
        pos: Absolute character offset range
        line: Line index range (length 1)
        col: Column index range
    """
    pos: range = range(0, 1)
    line: range = range(0, 1)
    col: range = range(0, 1)

    @classmethod
    def point(cls, pos: int, line: int, col: int) -> "Span":
        """Build a span covering a single character."""
        return cls(range(pos, pos + 1), range(line, line + 1), range(col, col + 1))

    def slice(self, text: str) -> str:
        """Return the source text covered by this span."""
        return text[self.pos.start:self.pos.stop]

    def merge(self, other: "Span") -> "Span":
        """
        Return a span from the start of this span to the end of `other`.

        Both spans are expected to sit on the same line; the line range of
        `self` is kept.
        """
        return Span(
            pos=range(self.pos.start, other.pos.stop),
            line=self.line,
            col=range(self.col.start, other.col.stop),
        )

    def __str__(self) -> str:
        """Format as 'line:column' (1-indexed) for messages."""
        return f"{self.line.start + 1}:{self.col.start + 1}"

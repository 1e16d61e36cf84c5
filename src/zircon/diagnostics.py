"""
Diagnostic Rendering
====================

Formats CompileErrors with their surrounding source, in the style:

```
ERROR: 'ld' isn't implemented for register A <- register B
   | sub boot {
03 |     ld A, B
   |     ^^^^^^^
   | }
```

The line before and the line after the error are shown when they exist.
Line numbers are 1-based and zero-padded to two digits. With colour
enabled the ERROR label and carets are red and the gutter is blue
(ANSI styles from click, stripped again by click.echo when the output is
not a terminal).
"""

from typing import Iterable

import click

from zircon.errors import CompileError


def _style(text: str, fg: str, color: bool) -> str:
    return click.style(text, fg=fg) if color else text


def source_line(text: str, line_starts: list[int], line: int) -> str:
    """Return the text of line `line` without its line terminator."""
    start = line_starts[line]
    end = line_starts[line + 1] if line + 1 < len(line_starts) else len(text)
    return text[start:end].rstrip("\r\n")


def render_error(
    text: str,
    line_starts: list[int],
    error: CompileError,
    color: bool = False,
) -> str:
    """
    Render one error with source context.

    Args:
        text: Decoded source text
        line_starts: Offset of the first character of each line
        error: The error to render
        color: Add ANSI colours

    Returns:
        The multi-line diagnostic (no trailing newline)
    """
    span = error.span
    line = span.line.start
    gutter = _style("|", "blue", color)

    lines = [f"{_style('ERROR', 'red', color)}: {error.message}"]

    if line < len(line_starts):
        if line > 0:
            lines.append(f"   {gutter} {source_line(text, line_starts, line - 1)}")

        number = _style(f"{line + 1:02}", "blue", color)
        lines.append(f"{number} {gutter} {source_line(text, line_starts, line)}")

        carets = _style("^" * max(len(span.col), 1), "red", color)
        lines.append(f"   {gutter} {' ' * span.col.start}{carets}")

        if span.line.stop < len(line_starts):
            lines.append(f"   {gutter} {source_line(text, line_starts, span.line.stop)}")

    if error.hint:
        lines.append(f"hint: {error.hint}")

    return "\n".join(lines)


def render_errors(
    text: str,
    line_starts: list[int],
    errors: Iterable[CompileError],
    max_errors: int = 10,
    color: bool = False,
) -> str:
    """
    Render up to `max_errors` errors, separated by blank lines.

    When errors are left out, the output ends with
    '... and N more errors.'
    """
    errors = list(errors)
    shown = errors[:max(max_errors, 0)]

    blocks = [render_error(text, line_starts, error, color) for error in shown]
    output = "\n\n".join(blocks)

    if len(errors) > len(shown):
        remaining = len(errors) - len(shown)
        summary = f"... and {remaining} more errors."
        output = f"{output}\n\n{summary}" if output else summary

    return output

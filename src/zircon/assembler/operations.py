"""
Deferred Operations
===================

The parser knows the address of every byte it schedules, but not yet the
value of every symbol (a subroutine may jump to a label declared further
down). Instead of emitting bytes straight away it records two ordered
queues of operations that are interpreted after parsing:

Resolution queue
----------------
Operations that define symbols. They are retried until they all succeed
or no further progress can be made (see emitter.resolve_declarations).

- DefineSymbol: NAME is a known value (literal, or an address fixed at
  parse time)
- DefineAlias: NAME takes the value of another symbol, once that one is
  defined

Write queue
-----------
Operations that produce the binary, executed exactly once in schedule order
(see emitter.emit).

- SetAddress: move the output cursor (from @origin)
- WriteBytes: write a byte template, with 16-bit little-endian symbol
  values patched in at given offsets

Every operation is an immutable value that owns all the data it needs, so
the queues stay valid after the parser that built them is discarded.
"""

from dataclasses import dataclass, field
from typing import Union

from zircon.span import Span


# =============================================================================
# Resolution Operations
# =============================================================================

@dataclass(frozen=True)
class DefineSymbol:
    """Define `name` as `value`."""
    name: str
    value: int
    span: Span


@dataclass(frozen=True)
class DefineAlias:
    """Define `name` as the value of `target`, once `target` is known."""
    name: str
    target: str
    span: Span


ResolutionOp = Union[DefineSymbol, DefineAlias]


# =============================================================================
# Write Operations
# =============================================================================

@dataclass(frozen=True)
class SetAddress:
    """Move the output cursor to an absolute address."""
    address: int


@dataclass(frozen=True)
class SymbolPatch:
    """
    Store the value of symbol `name` (16-bit, little-endian) at `offset`
    within the enclosing template.
    """
    offset: int
    name: str
    span: Span

    SIZE = 2


@dataclass(frozen=True)
class WriteBytes:
    """
    Write `template` at the current cursor, after applying `patches`.

    The number of bytes written is always len(template), which is what
    lets the parser advance its address cursor before symbols are known.
    """
    template: bytes
    patches: tuple[SymbolPatch, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.template)


WriteOp = Union[SetAddress, WriteBytes]

"""
Resolution & Emission Engine
============================

This module runs the two passes that follow parsing:

Resolution (fixpoint)
---------------------
The resolution queue is swept repeatedly. Each operation either succeeds
(and leaves the queue) or stays pending because a symbol it depends on is
not defined yet. A sweep that makes no progress while operations remain
means the rest can never succeed (missing or circular definitions): every
remaining operation becomes an UnresolvedSymbolError and resolution stops.
The loop is iterative with an explicit pass counter, so pathological inputs
cannot exhaust the stack.

Emission
--------
Once the symbol table is final, the write queue runs in schedule order
against a single growable buffer. Writing past the end of the buffer
zero-fills the gap, so an @origin jump forward produces a sparse,
zero-padded image.

Example
-------
>>> ctx = EmissionContext()
>>> errors = resolve_declarations([DefineSymbol("X", 0x10, Span())], ctx)
>>> emit([WriteBytes(bytes([0x32, 0, 0]), (SymbolPatch(1, "X", Span()),))], ctx)
>>> bytes(ctx.binary)
b'2\\x10\\x00'
"""

from typing import Iterable, Optional
import logging

from zircon.assembler.operations import (
    DefineAlias,
    DefineSymbol,
    ResolutionOp,
    SetAddress,
    SymbolPatch,
    WriteBytes,
    WriteOp,
)
from zircon.errors import (
    CompileError,
    DuplicateSymbolError,
    UndefinedSymbolError,
    UnresolvedSymbolError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Emission Context
# =============================================================================

class EmissionContext:
    """
    Symbol table plus output buffer, shared by the resolution and emission
    passes (which never run at the same time).

    Attributes:
        address: Output cursor
        binary: The image built so far
        declarations: Symbol name -> 16-bit value
    """

    def __init__(self):
        self.address = 0
        self.binary = bytearray()
        self.declarations: dict[str, int] = {}

    # =========================================================================
    # Symbol Table
    # =========================================================================

    def define(self, name: str, value: int) -> bool:
        """
        Declare a symbol.

        Returns:
            False if `name` was already declared (the table is unchanged)
        """
        if name in self.declarations:
            return False
        self.declarations[name] = value & 0xFFFF
        return True

    def get(self, name: str) -> Optional[int]:
        return self.declarations.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.declarations

    # =========================================================================
    # Output Buffer
    # =========================================================================

    def _reserve_min(self, length: int) -> None:
        """Zero-extend the buffer to at least `length` bytes."""
        if length > len(self.binary):
            self.binary.extend(bytes(length - len(self.binary)))

    def write(self, data: bytes) -> None:
        """Copy `data` at the cursor and advance past it."""
        end = self.address + len(data)
        self._reserve_min(end)
        self.binary[self.address:end] = data
        self.address = end

    def set_address(self, address: int) -> None:
        self.address = address


# =============================================================================
# Resolution Pass
# =============================================================================

def _try_resolve(op: ResolutionOp, ctx: EmissionContext,
                 errors: list[CompileError]) -> bool:
    """
    Attempt one resolution operation.

    Returns:
        True if the operation is finished (defined, or reported as a
        duplicate), False if it must be retried later
    """
    if isinstance(op, DefineSymbol):
        value = op.value
    elif isinstance(op, DefineAlias):
        if op.target not in ctx:
            return False
        value = ctx.get(op.target)
    else:
        raise TypeError(f"unknown resolution operation {op!r}")

    if not ctx.define(op.name, value):
        errors.append(DuplicateSymbolError(op.name, op.span))
    return True


def _waiting_on(op: ResolutionOp) -> str:
    return op.target if isinstance(op, DefineAlias) else op.name


def resolve_declarations(
    queue: Iterable[ResolutionOp],
    ctx: EmissionContext,
) -> list[CompileError]:
    """
    Run the fixpoint pass over the resolution queue.

    Args:
        queue: Resolution operations in schedule order
        ctx: Context whose symbol table is populated

    Returns:
        Errors found (duplicates, and one UnresolvedSymbolError per
        operation left when the sweep stalls); empty on success
    """
    errors: list[CompileError] = []
    pending = list(queue)
    passes = 0

    while pending:
        passes += 1
        remaining = [op for op in pending if not _try_resolve(op, ctx, errors)]
        progress = len(remaining) < len(pending)

        logger.debug(
            f"Resolution pass {passes}: {len(pending) - len(remaining)} resolved, "
            f"{len(remaining)} pending"
        )

        if remaining and not progress:
            logger.warning(f"Resolution stalled with {len(remaining)} pending declarations")
            for op in remaining:
                errors.append(UnresolvedSymbolError(op.name, _waiting_on(op), op.span))
            break

        pending = remaining

    return errors


def _find_similar_symbols(name: str, symbols: Iterable[str]) -> list[str]:
    """
    Find symbols with similar names for error hints.

    Uses simple edit distance heuristic.
    """
    name_lower = name.lower()
    similar = []

    for sym in symbols:
        sym_lower = sym.lower()
        if sym_lower == name_lower or (
            abs(len(sym) - len(name)) <= 1 and _edit_distance(name_lower, sym_lower) <= 2
        ):
            similar.append(sym)

    return sorted(similar)[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(distances[j], distances[j + 1], new_distances[-1]))
        distances = new_distances
    return distances[-1]


def check_references(queue: Iterable[WriteOp], ctx: EmissionContext) -> list[CompileError]:
    """
    Verify every symbol patched into a write is declared.

    Run after a successful resolution pass, so that emission never looks up
    a missing symbol.
    """
    errors: list[CompileError] = []
    for op in queue:
        if not isinstance(op, WriteBytes):
            continue
        for patch in op.patches:
            if patch.name not in ctx:
                similar = _find_similar_symbols(patch.name, ctx.declarations)
                errors.append(UndefinedSymbolError(patch.name, patch.span, similar))
    return errors


# =============================================================================
# Emission Pass
# =============================================================================

def _render(op: WriteBytes, ctx: EmissionContext) -> bytes:
    """Apply symbol patches to a write's template."""
    data = bytearray(op.template)
    for patch in op.patches:
        value = ctx.declarations[patch.name]
        data[patch.offset:patch.offset + SymbolPatch.SIZE] = value.to_bytes(
            SymbolPatch.SIZE, "little"
        )
    return bytes(data)


def emit(queue: Iterable[WriteOp], ctx: EmissionContext) -> bytes:
    """
    Execute the write queue in order.

    Args:
        queue: Write operations in schedule order
        ctx: Context with a fully resolved symbol table

    Returns:
        The finished binary image
    """
    for op in queue:
        if isinstance(op, SetAddress):
            ctx.set_address(op.address)
        elif isinstance(op, WriteBytes):
            ctx.write(_render(op, ctx))
        else:
            raise TypeError(f"unknown write operation {op!r}")

    logger.debug(f"Emitted {len(ctx.binary)} bytes")
    return bytes(ctx.binary)

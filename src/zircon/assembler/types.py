"""
Registers and Operand Forms
===========================

Registers
---------
Short (8-bit) registers: A B C D E F H L I R
Long (16-bit) registers: AF BC DE HL PC SP IX IY

Register names are case-insensitive in source (``a`` and ``A`` are the same
register).

Operand Forms (DataTarget)
--------------------------
| Syntax   | Form                  | Meaning                     |
|----------|-----------------------|-----------------------------|
| A        | RegisterTarget        | a register                  |
| $6000*   | AddressTarget         | the memory at a literal     |
| $FF      | ImmediateTarget       | a literal value             |
| name*    | SymbolAddressTarget   | the memory at a symbol      |
| name     | SymbolImmediateTarget | the value of a symbol       |

Data targets are produced while parsing a single instruction and are not
kept once its bytes have been scheduled.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ShortRegister(Enum):
    """8-bit registers."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    H = "H"
    L = "L"
    I = "I"
    R = "R"


class LongRegister(Enum):
    """16-bit registers and register pairs."""
    AF = "AF"
    BC = "BC"
    DE = "DE"
    HL = "HL"
    PC = "PC"
    SP = "SP"
    IX = "IX"
    IY = "IY"


Register = Union[ShortRegister, LongRegister]


def lookup_register(name: str) -> Optional[Register]:
    """
    Find a register by name, ignoring case.

    Returns:
        The register, or None if `name` is not a register
    """
    name = name.upper()
    for enum in (ShortRegister, LongRegister):
        if name in enum.__members__:
            return enum[name]
    return None


# =============================================================================
# Data Targets
# =============================================================================

@dataclass(frozen=True)
class RegisterTarget:
    register: Register

    def describe(self) -> str:
        return f"register {self.register.value}"


@dataclass(frozen=True)
class AddressTarget:
    """A literal address followed by '*'."""
    address: int

    def describe(self) -> str:
        return f"address ${self.address:04X}"


@dataclass(frozen=True)
class ImmediateTarget:
    value: int

    def describe(self) -> str:
        return f"immediate ${self.value:X}"


@dataclass(frozen=True)
class SymbolAddressTarget:
    """A symbol followed by '*': the memory at the symbol's value."""
    name: str

    def describe(self) -> str:
        return f"address of '{self.name}'"


@dataclass(frozen=True)
class SymbolImmediateTarget:
    name: str

    def describe(self) -> str:
        return f"value of '{self.name}'"


DataTarget = Union[
    RegisterTarget,
    AddressTarget,
    ImmediateTarget,
    SymbolAddressTarget,
    SymbolImmediateTarget,
]

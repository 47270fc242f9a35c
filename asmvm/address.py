"""
Addressing model — where a value lives or is read from.

  RegisterAddress(reg)   rax / rbx / rcx
  StackSlot(index)       sp, sp[N]
  Reference(target)      [X] — the slot named by the value stored at X

A Reference is exactly one level deep. The parser will build a
Reference to a Reference (`[[rax]]`), but resolving one at run time is
an addressing fault rather than a pointer chase.

Display forms are for diagnostics and dumps only; they are not meant
to be parsed back.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Union


class Register(enum.Enum):
    """The closed register set. Source names are the enum values."""
    RAX = "rax"
    RBX = "rbx"
    RCX = "rcx"

    def __str__(self) -> str:
        return self.value


REGISTER_NAMES = {r.value: r for r in Register}


@dataclass(frozen=True)
class RegisterAddress:
    register: Register

    def __str__(self) -> str:
        return str(self.register)


@dataclass(frozen=True)
class StackSlot:
    index: int

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"stack index must be non-negative, got {self.index}")

    def __str__(self) -> str:
        return f"Stack[{self.index}]"


@dataclass(frozen=True)
class Reference:
    target: "Address"

    def __str__(self) -> str:
        return f"[{self.target}]"


Address = Union[RegisterAddress, StackSlot, Reference]


def pointer_text(address: Address) -> str:
    """Raw text of an address held in a Pointer value (printf, concatenation)."""
    if isinstance(address, StackSlot):
        return f"0x{address.index:02X}"
    if isinstance(address, RegisterAddress):
        return str(address.register)
    if isinstance(address, Reference):
        return f"[{pointer_text(address.target)}]"
    raise TypeError(f"not an address: {address!r}")

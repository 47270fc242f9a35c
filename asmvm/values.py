"""
Value model + arithmetic — the machine's ALU.

Runtime values form a closed sum type:

  Integer(int)        signed, wraps at 64 bits like a machine word
  Text(str)           string literal or concatenation result
  Pointer(Address)    produced by `lea`, or by pointer arithmetic
  Uninitialized       default content of every register and stack slot

Every consumer (add, sub, raw_text, display, slot coercion) matches the
four variants exhaustively and raises on anything else.

Addition rules:
  Integer + Integer          → Integer (wrapping)
  Pointer + Integer          → Pointer (StackSlot only)
  Pointer + Pointer          → Pointer (StackSlot + StackSlot only)
  any other combination      → Text, concatenating each raw text form

Subtraction rules:
  Integer - Integer          → Integer (wrapping)
  Pointer - Pointer          → Integer distance (StackSlot only)
  anything else              → SubtractionError
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union

from .address import Address, StackSlot, pointer_text
from .errors import IncompatibleTypes, SubtractionError

__all__ = [
    'Integer', 'Text', 'Pointer', 'Uninitialized', 'UNINITIALIZED',
    'Value', 'Literal', 'Operand', 'add', 'sub', 'raw_text', 'kind_name',
    'wrap64', 'INT_MIN', 'INT_MAX',
]

INT_BITS = 64
_INT_MASK = (1 << INT_BITS) - 1
_INT_SIGN = 1 << (INT_BITS - 1)
INT_MIN = -_INT_SIGN
INT_MAX = _INT_SIGN - 1


def wrap64(value: int) -> int:
    """Wrap an arbitrary Python int to a signed 64-bit two's complement word."""
    value &= _INT_MASK
    return value - (1 << INT_BITS) if value & _INT_SIGN else value


# ──────────────────────────────────────────────
# Value variants
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Integer:
    value: int

    def __post_init__(self):
        object.__setattr__(self, 'value', wrap64(self.value))

    def __str__(self) -> str:
        return f"Integer '{self.value}'"


@dataclass(frozen=True)
class Text:
    value: str

    def __str__(self) -> str:
        return f"String '{self.value}'"


@dataclass(frozen=True)
class Pointer:
    address: Address

    def __str__(self) -> str:
        return f"Pointer {pointer_text(self.address)}"


@dataclass(frozen=True)
class Uninitialized:
    def __str__(self) -> str:
        return "Uninitialized"


UNINITIALIZED = Uninitialized()

Value = Union[Integer, Text, Pointer, Uninitialized]


@dataclass(frozen=True)
class Literal:
    """An operand that carries its value inline (`5`, `"abc"`)."""
    value: Value

    def __str__(self) -> str:
        return str(self.value)


Operand = Union[Literal, Address]


# ──────────────────────────────────────────────
# Formatting helpers
# ──────────────────────────────────────────────

def kind_name(value: Value) -> str:
    """Short variant name used in diagnostics."""
    if isinstance(value, Integer):
        return "Integer"
    if isinstance(value, Text):
        return "String"
    if isinstance(value, Pointer):
        return "Pointer"
    if isinstance(value, Uninitialized):
        return "Uninitialized"
    raise TypeError(f"not a value: {value!r}")


def raw_text(value: Value) -> str:
    """Textual form without the kind prefix. Uninitialized is empty."""
    if isinstance(value, Integer):
        return str(value.value)
    if isinstance(value, Text):
        return value.value
    if isinstance(value, Pointer):
        return pointer_text(value.address)
    if isinstance(value, Uninitialized):
        return ""
    raise TypeError(f"not a value: {value!r}")


# ──────────────────────────────────────────────
# Arithmetic
# ──────────────────────────────────────────────

def _pointer_add(pointer: Pointer, offset: int, other: Value) -> Pointer:
    address = pointer.address
    if not isinstance(address, StackSlot):
        raise IncompatibleTypes(str(pointer), str(other))
    index = address.index + offset
    if index < 0:
        raise IncompatibleTypes(str(pointer), str(other))
    return Pointer(StackSlot(index))


def add(a: Value, b: Value) -> Value:
    """Add two values per the rules in the module docstring."""
    if isinstance(a, Integer) and isinstance(b, Integer):
        return Integer(a.value + b.value)

    if isinstance(a, Pointer):
        if isinstance(b, Integer):
            return _pointer_add(a, b.value, b)
        if isinstance(b, Pointer):
            if not isinstance(b.address, StackSlot):
                raise IncompatibleTypes(str(a), str(b))
            return _pointer_add(a, b.address.index, b)

    return Text(raw_text(a) + raw_text(b))


def sub(a: Value, b: Value) -> Value:
    """Subtract b from a. Only Integer-Integer and slot-slot are legal."""
    if isinstance(a, Integer) and isinstance(b, Integer):
        return Integer(a.value - b.value)

    if (isinstance(a, Pointer) and isinstance(b, Pointer)
            and isinstance(a.address, StackSlot)
            and isinstance(b.address, StackSlot)):
        return Integer(a.address.index - b.address.index)

    raise SubtractionError(str(a), str(b))

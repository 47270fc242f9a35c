"""
Register file — three named general-purpose registers.

  rax   R0   printf format template
  rbx   R1   printf substitution argument
  rcx   R2   scratch

Registers are fixed named fields, not a dict, so every access point
matches the closed Register enum exhaustively. Each one starts out
Uninitialized.
"""

from __future__ import annotations
from typing import Tuple

from .address import Register
from .values import UNINITIALIZED, Value

RegisterSnapshot = Tuple[Value, Value, Value]


class RegisterFile:
    """The machine's register set."""

    __slots__ = ('rax', 'rbx', 'rcx')

    def __init__(self):
        self.rax: Value = UNINITIALIZED
        self.rbx: Value = UNINITIALIZED
        self.rcx: Value = UNINITIALIZED

    def get(self, register: Register) -> Value:
        if register is Register.RAX:
            return self.rax
        if register is Register.RBX:
            return self.rbx
        if register is Register.RCX:
            return self.rcx
        raise ValueError(f"Unknown register: {register!r}")

    def set(self, register: Register, value: Value):
        if register is Register.RAX:
            self.rax = value
        elif register is Register.RBX:
            self.rbx = value
        elif register is Register.RCX:
            self.rcx = value
        else:
            raise ValueError(f"Unknown register: {register!r}")

    # --- Frame save/restore ---

    def snapshot(self) -> RegisterSnapshot:
        """Capture all registers (values are immutable, so a tuple is a copy)."""
        return (self.rax, self.rbx, self.rcx)

    def restore(self, snapshot: RegisterSnapshot):
        self.rax, self.rbx, self.rcx = snapshot

    # --- Display ---

    def display(self) -> str:
        """One-line register state for trace output."""
        return f"rax={self.rax} rbx={self.rbx} rcx={self.rcx}"

    def reset(self):
        self.rax = UNINITIALIZED
        self.rbx = UNINITIALIZED
        self.rcx = UNINITIALIZED

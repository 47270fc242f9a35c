"""
Machine state — register file, fixed-size stack and call-frame stack.

Stack layout:
  stack[0] … stack[stack_size - 1]   one Value per slot, Uninitialized at start

Reads (`get`) and writes (`set`) route on the address variant:

  Literal          value returned directly (read only)
  RegisterAddress  register file
  StackSlot        bounds-checked against the stack length
  Reference        read the inner location, coerce that value to a slot
                   index, then read/write the slot it names

Slot coercion accepts a positive in-range Integer or a StackSlot
Pointer. A Register Pointer, a nested Reference, Text or Uninitialized
is an addressing fault.

Call frames are a strict LIFO list: push appends, pop takes the last.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Type

from .address import Address, Reference, RegisterAddress, StackSlot
from .errors import ReadError, RuntimeMemoryError, SegmentationFault, WriteError
from .regs import RegisterFile, RegisterSnapshot
from .values import (
    UNINITIALIZED, Integer, Literal, Operand, Pointer, Text, Uninitialized, Value,
)

log = logging.getLogger(__name__)

DEFAULT_STACK_SIZE = 64


@dataclass
class CallFrame:
    """Context saved when a call or jump enters a label block."""
    return_pc: int                      # instruction index to resume at
    entered_via_jump: bool              # jmp frames do not restore registers
    return_slot: Optional[Address]      # None for void calls and jumps
    saved_registers: RegisterSnapshot


class MachineState:
    """Registers + stack + call frames, mutated in place by the driver."""

    def __init__(self, stack_size: int = DEFAULT_STACK_SIZE):
        if stack_size <= 0:
            raise ValueError(f"stack_size must be positive, got {stack_size}")
        self.regs = RegisterFile()
        self.stack: List[Value] = [UNINITIALIZED] * stack_size
        self.frames: List[CallFrame] = []

    @property
    def stack_size(self) -> int:
        return len(self.stack)

    # --- Core read/write ---

    def get(self, operand: Operand) -> Value:
        """Read the value an operand denotes."""
        if isinstance(operand, Literal):
            return operand.value
        if isinstance(operand, RegisterAddress):
            return self.regs.get(operand.register)
        if isinstance(operand, StackSlot):
            if operand.index >= len(self.stack):
                raise ReadError(str(operand))
            return self.stack[operand.index]
        if isinstance(operand, Reference):
            index = self._resolve_reference(operand, ReadError)
            return self.stack[index]
        raise TypeError(f"not an operand: {operand!r}")

    def set(self, dest: Address, value: Value):
        """Write a value to a location."""
        if isinstance(dest, RegisterAddress):
            self.regs.set(dest.register, value)
        elif isinstance(dest, StackSlot):
            if dest.index >= len(self.stack):
                raise WriteError(str(dest))
            self.stack[dest.index] = value
        elif isinstance(dest, Reference):
            index = self._resolve_reference(dest, WriteError)
            self.stack[index] = value
        else:
            raise TypeError(f"not an address: {dest!r}")

    # --- Indirection ---

    def _resolve_reference(self, ref: Reference,
                           error: Type[RuntimeMemoryError]) -> int:
        """Follow one level of indirection and return the target slot index."""
        if isinstance(ref.target, Reference):
            raise SegmentationFault("Only single pointers supported")
        pointer = self.get(ref.target)
        index = self.slot_index(pointer, error)
        log.debug("Resolved %s -> Stack[%d]", ref, index)
        return index

    def slot_index(self, value: Value,
                   error: Type[RuntimeMemoryError] = ReadError) -> int:
        """Coerce a value used as a pointer to an in-range slot index."""
        if isinstance(value, Integer):
            if value.value <= 0 or value.value >= len(self.stack):
                raise error(str(value))
            return value.value
        if isinstance(value, Pointer):
            address = value.address
            if isinstance(address, StackSlot):
                if address.index >= len(self.stack):
                    raise error(str(address))
                return address.index
            if isinstance(address, RegisterAddress):
                raise SegmentationFault("Cannot read a register's position")
            if isinstance(address, Reference):
                raise SegmentationFault("Only single pointers supported")
            raise TypeError(f"not an address: {address!r}")
        if isinstance(value, (Text, Uninitialized)):
            raise error(str(value))
        raise TypeError(f"not a value: {value!r}")

    # --- Call frames ---

    def push_frame(self, frame: CallFrame):
        self.frames.append(frame)
        log.debug("Push frame #%d: %s", len(self.frames), frame)

    def pop_frame(self) -> Optional[CallFrame]:
        """Pop the innermost frame, or None when the frame stack is empty."""
        if not self.frames:
            return None
        frame = self.frames.pop()
        log.debug("Pop frame #%d: %s", len(self.frames) + 1, frame)
        return frame

    # --- Display ---

    def format_stack(self) -> List[str]:
        """Stack listing with Uninitialized runs collapsed to one line."""
        lines: List[str] = []
        run_start: Optional[int] = None
        for index, value in enumerate(self.stack):
            if isinstance(value, Uninitialized):
                if run_start is None:
                    run_start = index
                continue
            if run_start is not None:
                lines.append(f"{run_start}..{index - 1}: {UNINITIALIZED}")
                run_start = None
            lines.append(f"{index}: {value}")
        if run_start is not None:
            lines.append(f"{run_start}..{len(self.stack) - 1}: {UNINITIALIZED}")
        return lines

    def display(self) -> str:
        """Multi-line dump of registers and stack."""
        out = [
            f"rax: {self.regs.rax}",
            f"rbx: {self.regs.rbx}",
            f"rcx: {self.regs.rcx}",
            "stack:",
        ]
        out.extend(f"  {line}" for line in self.format_stack())
        return '\n'.join(out)

    def reset(self):
        self.regs.reset()
        self.stack = [UNINITIALIZED] * len(self.stack)
        self.frames.clear()

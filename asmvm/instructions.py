"""
Instruction set for the asmvm language.

Each opcode is a frozen dataclass produced by the parser and consumed
by the execution engine (data effect) and the control-flow engine
(program counter + frames). Operand fields hold Address or Operand
values from the addressing model.

  mov D S         Move(dest, source)
  add D A B       Add(dest, left, right)
  sub D A B       Subtract(dest, left, right)
  lea D A         LoadAddress(dest, source)
  call D L        CallWithReturn(dest, label)
  call L          CallVoid(label)
  jmp L           Jump(label)
  L:              LabelDef(name)
  ret S           Return(operand)
  syscall NAME    Syscall(name)
  leave           End()
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from .address import Address
from .values import Operand


@dataclass(frozen=True)
class Move:
    dest: Address
    source: Operand

    def __str__(self) -> str:
        return f"mov {self.dest} {self.source}"


@dataclass(frozen=True)
class Add:
    dest: Address
    left: Operand
    right: Operand

    def __str__(self) -> str:
        return f"add {self.dest} {self.left} {self.right}"


@dataclass(frozen=True)
class Subtract:
    dest: Address
    left: Operand
    right: Operand

    def __str__(self) -> str:
        return f"sub {self.dest} {self.left} {self.right}"


@dataclass(frozen=True)
class LoadAddress:
    dest: Address
    source: Address

    def __str__(self) -> str:
        return f"lea {self.dest} {self.source}"


@dataclass(frozen=True)
class CallWithReturn:
    dest: Address
    label: str

    def __str__(self) -> str:
        return f"call {self.dest} {self.label}"


@dataclass(frozen=True)
class CallVoid:
    label: str

    def __str__(self) -> str:
        return f"call {self.label}"


@dataclass(frozen=True)
class Jump:
    label: str

    def __str__(self) -> str:
        return f"jmp {self.label}"


@dataclass(frozen=True)
class LabelDef:
    name: str

    def __str__(self) -> str:
        return f"{self.name}:"


@dataclass(frozen=True)
class Return:
    operand: Operand

    def __str__(self) -> str:
        return f"ret {self.operand}"


@dataclass(frozen=True)
class Syscall:
    name: str

    def __str__(self) -> str:
        return f"syscall {self.name}"


@dataclass(frozen=True)
class End:
    def __str__(self) -> str:
        return "leave"


Instruction = Union[Move, Add, Subtract, LoadAddress, CallWithReturn, CallVoid,
                    Jump, LabelDef, Return, Syscall, End]

# Instructions that enter a label block and push a frame
BRANCHING = (CallWithReturn, CallVoid, Jump)


# ──────────────────────────────────────────────
# Program
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Program:
    """Immutable, ordered instruction sequence built once by the loader.

    `line_numbers[i]` is the 1-based source line of `instructions[i]`.
    """
    instructions: Tuple[Instruction, ...]
    line_numbers: Tuple[int, ...] = ()

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self.instructions[index]

    def find_label(self, name: str) -> Optional[int]:
        """Linear scan for the LabelDef named `name`. Returns its index or None."""
        for index, instr in enumerate(self.instructions):
            if isinstance(instr, LabelDef) and instr.name == name:
                return index
        return None

    @property
    def labels(self) -> Dict[str, int]:
        """Label name → index of its first definition."""
        table: Dict[str, int] = {}
        for index, instr in enumerate(self.instructions):
            if isinstance(instr, LabelDef) and instr.name not in table:
                table[instr.name] = index
        return table

    def listing(self) -> str:
        """Human-readable listing: index, source line and instruction."""
        lines: List[str] = []
        lines.append(f"{'IDX':>5}  {'LINE':>5}  INSTRUCTION")
        lines.append("-" * 40)
        for index, instr in enumerate(self.instructions):
            line_num = self.line_numbers[index] if index < len(self.line_numbers) else 0
            indent = "" if isinstance(instr, LabelDef) else "    "
            lines.append(f"{index:>5}  {line_num:>5}  {indent}{instr}")
        return '\n'.join(lines)

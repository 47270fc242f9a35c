"""
Execution engine — the data effect of each instruction.

This half of instruction handling touches registers, stack and output
but never moves the program counter. The control-flow half lives in
control.py; the driver applies them in order:

  1. engine.execute(instr, pc)        data effect
  2. control.transition(instr, pc)    frame pop / pc update

Handlers:
  Move             dest ← source
  Add / Subtract   dest ← left ± right (see values.add / values.sub)
  LoadAddress      dest ← Pointer(source address)
  Syscall printf   emit rax with the first "{}" replaced by rbx
  Call / Jump      push a CallFrame with the register snapshot
  LabelDef / Return / End   no data effect
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, List, Optional

from . import values
from .errors import UnknownSyscallError, WrongTypeError
from .instructions import (
    Add, CallVoid, CallWithReturn, End, Instruction, Jump, LabelDef,
    LoadAddress, Move, Return, Subtract, Syscall,
)
from .memory import CallFrame, MachineState
from .values import Pointer, Text

log = logging.getLogger(__name__)

SUBSTITUTION_MARKER = "{}"

OutputFn = Callable[[str], None]


class ExecutionEngine:
    """Applies instruction data effects to a MachineState.

    Every printf line is appended to `output_lines` and, when given,
    passed to `output` (the CLI passes `print`).
    """

    def __init__(self, state: MachineState, output: Optional[OutputFn] = None):
        self.state = state
        self.output = output
        self.output_lines: List[str] = []
        self._dispatch = self._build_dispatch()

    def execute(self, instr: Instruction, pc: int):
        """Apply `instr`'s data effect. `pc` is the index of `instr`."""
        handler = self._dispatch.get(type(instr))
        if handler is None:
            raise NotImplementedError(f"Instruction {instr} not implemented")
        handler(instr, pc)

    def _build_dispatch(self) -> Dict[type, Callable]:
        return {
            Move:           self._op_move,
            Add:            self._op_add,
            Subtract:       self._op_sub,
            LoadAddress:    self._op_lea,
            CallWithReturn: self._op_call_ret,
            CallVoid:       self._op_call_void,
            Jump:           self._op_jmp,
            Syscall:        self._op_syscall,
            LabelDef:       self._op_nop,
            Return:         self._op_nop,
            End:            self._op_nop,
        }

    # ── Data movement ──

    def _op_move(self, instr: Move, pc: int):
        self.state.set(instr.dest, self.state.get(instr.source))

    def _op_lea(self, instr: LoadAddress, pc: int):
        self.state.set(instr.dest, Pointer(instr.source))

    # ── Arithmetic ──

    def _op_add(self, instr: Add, pc: int):
        result = values.add(self.state.get(instr.left), self.state.get(instr.right))
        self.state.set(instr.dest, result)

    def _op_sub(self, instr: Subtract, pc: int):
        result = values.sub(self.state.get(instr.left), self.state.get(instr.right))
        self.state.set(instr.dest, result)

    # ── Frame construction ──

    def _push_frame(self, pc: int, via_jump: bool, return_slot=None):
        self.state.push_frame(CallFrame(
            return_pc=pc + 1,
            entered_via_jump=via_jump,
            return_slot=return_slot,
            saved_registers=self.state.regs.snapshot(),
        ))

    def _op_call_ret(self, instr: CallWithReturn, pc: int):
        self._push_frame(pc, via_jump=False, return_slot=instr.dest)

    def _op_call_void(self, instr: CallVoid, pc: int):
        self._push_frame(pc, via_jump=False)

    def _op_jmp(self, instr: Jump, pc: int):
        self._push_frame(pc, via_jump=True)

    # ── Syscalls ──

    def _op_syscall(self, instr: Syscall, pc: int):
        if instr.name == 'printf':
            self._printf()
        else:
            raise UnknownSyscallError(instr.name)

    def _printf(self):
        template = self.state.regs.rax
        if not isinstance(template, Text):
            raise WrongTypeError("String", str(template))
        line = template.value
        if SUBSTITUTION_MARKER in line:
            line = line.replace(SUBSTITUTION_MARKER,
                                values.raw_text(self.state.regs.rbx), 1)
        self.output_lines.append(line)
        if self.output is not None:
            self.output(line)

    def _op_nop(self, instr: Instruction, pc: int):
        pass

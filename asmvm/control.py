"""
Control-flow engine — program counter and frame transitions.

Runs after the data effect of each instruction and decides where
execution continues:

  Call / Jump   linear scan for the target LabelDef, pc ← its index
  Return        pop a frame: restore registers (unless entered by jmp),
                store the value into the return slot, resume after the
                call. With no frame left the value ends the program.
  End (leave)   pop a void frame and resume; a frame with a return slot
                is rejected. With no frame left the program ends with
                Integer 0.
  anything else pc advances by one

Run states:
  RUNNING    keep going (next_pc set when control was redirected)
  RETURNED   a frame was unwound, value carried for inspection
  HALTED     terminal value reached
  FAULTED    an error aborted the run (set by the driver)
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .errors import FrameError, LabelNotFoundError
from .instructions import BRANCHING, End, Instruction, Program, Return
from .memory import CallFrame, MachineState
from .values import Integer, Value

log = logging.getLogger(__name__)

TOP_LEVEL_LEAVE_RESULT = Integer(0)


class RunState(enum.Enum):
    RUNNING = 'RUNNING'
    RETURNED = 'RETURNED'
    HALTED = 'HALTED'
    FAULTED = 'FAULTED'


@dataclass(frozen=True)
class Transition:
    """Outcome of one control-flow step.

    `next_pc` is None when the driver should simply advance by one.
    """
    state: RunState
    next_pc: Optional[int] = None
    value: Optional[Value] = None

    @property
    def terminal(self) -> bool:
        return self.state is RunState.HALTED


ADVANCE = Transition(RunState.RUNNING)


class ControlFlow:
    """Applies control effects for one Program against one MachineState."""

    def __init__(self, program: Program, state: MachineState):
        self.program = program
        self.state = state

    def transition(self, instr: Instruction, pc: int) -> Transition:
        if isinstance(instr, BRANCHING):
            return Transition(RunState.RUNNING, next_pc=self.resolve_label(instr.label))
        if isinstance(instr, Return):
            return self._return(instr)
        if isinstance(instr, End):
            return self._leave()
        return ADVANCE

    def resolve_label(self, label: str) -> int:
        index = self.program.find_label(label)
        if index is None:
            raise LabelNotFoundError(label)
        log.debug("Label %s -> #%d", label, index)
        return index

    def _unwind(self, frame: CallFrame):
        if not frame.entered_via_jump:
            self.state.regs.restore(frame.saved_registers)

    def _return(self, instr: Return) -> Transition:
        value = self.state.get(instr.operand)
        frame = self.state.pop_frame()
        if frame is None:
            return Transition(RunState.HALTED, value=value)

        # Registers first, so a register return slot keeps the returned value
        self._unwind(frame)
        if frame.return_slot is not None:
            self.state.set(frame.return_slot, value)
        return Transition(RunState.RETURNED, next_pc=frame.return_pc, value=value)

    def _leave(self) -> Transition:
        frame = self.state.pop_frame()
        if frame is None:
            return Transition(RunState.HALTED, value=TOP_LEVEL_LEAVE_RESULT)

        if frame.return_slot is not None:
            raise FrameError(
                f"`leave` cannot unwind a call that expects a return value "
                f"into {frame.return_slot}")
        self._unwind(frame)
        return Transition(RunState.RETURNED, next_pc=frame.return_pc)

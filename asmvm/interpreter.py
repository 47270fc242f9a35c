"""
Interpreter — the driver loop tying the machine together.

Integrates:
  - Program (parser.load_program)
  - Machine state (memory.py, regs.py)
  - Execution engine (engine.py)
  - Control-flow engine (control.py)
  - Semantic checker (checker.py)

Execution model:
  1. Fetch the instruction at pc
  2. Apply its data effect
  3. Apply its control effect
  4. Terminal value → map to exit code and stop
  5. Otherwise pc ← redirected pc, or pc + 1

Termination:
  - `ret` or `leave` with no frame left (terminal value)
  - pc runs past the last instruction (exit code 0)
  - the first VMError, which is re-raised to the caller

Usage:
    interp = Interpreter(load_program(source))
    code = interp.run()
    print(interp.dump())
"""

from __future__ import annotations
import logging
from typing import List, Optional

from .checker import check_program
from .control import ControlFlow, RunState, Transition
from .engine import ExecutionEngine, OutputFn
from .errors import VMError
from .instructions import Program
from .memory import DEFAULT_STACK_SIZE, MachineState
from .parser import load_program
from .values import Integer, Value

log = logging.getLogger(__name__)

# Exit code for a terminal value that is not an Integer
NON_INTEGER_EXIT = 1

END_OF_PROGRAM_RESULT = Integer(0)


def exit_code_for(value: Value) -> int:
    """Map a terminal value to a process exit code."""
    if isinstance(value, Integer):
        return value.value
    return NON_INTEGER_EXIT


class Interpreter:
    """Runs one Program on one freshly initialised MachineState."""

    def __init__(self, program: Program, *, stack_size: int = DEFAULT_STACK_SIZE,
                 output: Optional[OutputFn] = None):
        self.program = program
        self.state = MachineState(stack_size)
        self.engine = ExecutionEngine(self.state, output)
        self.control = ControlFlow(program, self.state)

        self.pc = 0
        self.steps = 0
        self.run_state = RunState.RUNNING
        self.result: Optional[Value] = None
        self.error: Optional[VMError] = None

        self._trace = False
        self._trace_output: List[str] = []

    @classmethod
    def from_source(cls, source: str, **kwargs) -> "Interpreter":
        return cls(load_program(source), **kwargs)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    @property
    def finished(self) -> bool:
        return self.run_state in (RunState.HALTED, RunState.FAULTED)

    @property
    def output_lines(self) -> List[str]:
        return self.engine.output_lines

    @property
    def exit_code(self) -> Optional[int]:
        if self.result is None:
            return None
        return exit_code_for(self.result)

    def check(self):
        """Run the static semantic check. Raises SemanticError/LabelNotFoundError."""
        try:
            check_program(self.program)
        except VMError as e:
            self._fault(e)
            raise

    def step(self) -> Transition:
        """Execute one instruction and return its control-flow outcome."""
        if self.finished:
            return Transition(self.run_state, value=self.result)

        if not 0 <= self.pc < len(self.program):
            log.debug("pc #%d past end of program", self.pc)
            return self._halt(END_OF_PROGRAM_RESULT)

        pc = self.pc
        instr = self.program[pc]
        if self._trace:
            self._trace_output.append(
                f"#{pc:04d}: {str(instr):28s} {self.state.regs.display()}")
        log.debug("#%04d %s", pc, instr)

        try:
            self.engine.execute(instr, pc)
            transition = self.control.transition(instr, pc)
        except VMError as e:
            if self._trace:
                self._trace_output.append(f"  ERROR: {e}")
            self._fault(e)
            raise

        self.steps += 1
        if transition.terminal:
            self._halt(transition.value)
            return transition

        self.pc = transition.next_pc if transition.next_pc is not None else pc + 1
        return transition

    def run(self, check: bool = True) -> int:
        """Run to termination and return the exit code.

        With `check`, the semantic checker runs first so that a bad
        program fails before any instruction executes.
        """
        if check:
            self.check()
        while not self.finished:
            self.step()
        log.info("Finished after %d steps with %s", self.steps, self.result)
        return self.exit_code

    def _halt(self, value: Value) -> Transition:
        self.result = value
        self.run_state = RunState.HALTED
        return Transition(RunState.HALTED, value=value)

    def _fault(self, error: VMError):
        self.error = error
        self.run_state = RunState.FAULTED

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record one line per executed instruction."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def dump(self) -> str:
        """Final state dump: pc, registers and compressed stack."""
        return f"pc: {self.pc}\n{self.state.display()}"

    def reset(self):
        """Fresh machine state for the same program."""
        self.state.reset()
        self.engine.output_lines.clear()
        self.pc = 0
        self.steps = 0
        self.run_state = RunState.RUNNING
        self.result = None
        self.error = None
        self._trace_output.clear()

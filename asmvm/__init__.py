"""
asmvm — a minimal virtual machine for a line-oriented assembly language
=======================================================================

Three registers (rax, rbx, rcx), a fixed 64-slot stack, Integer /
String / Pointer values and call / jmp / ret / leave control flow.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌──────────────────┐
    │  Source  │───>│  Parser  │───>│ Checker  │───>│   Interpreter    │
    │  (.asm)  │    │ (Program)│    │ (static) │    │ engine + control │
    └──────────┘    └──────────┘    └──────────┘    └──────────────────┘

    - lexer.py / parser.py:   line → tokens → Instruction, text → Program
    - values.py / address.py: value sum type, addressing model, arithmetic
    - regs.py / memory.py:    register file, stack, call frames
    - engine.py:              data effect of each instruction
    - control.py:             label resolution, frame unwind, pc transitions
    - checker.py:             every call/jmp target reaches its terminator
    - interpreter.py:         fetch → execute → control → advance
"""

__version__ = "0.1.0"

from .errors import (
    VMError, ParseError, SemanticError, SemanticErrorKind, RuntimeMemoryError,
    LabelNotFoundError, FrameError,
)
from .parser import load_program, parse_line
from .checker import check_program
from .interpreter import Interpreter, exit_code_for
from .memory import DEFAULT_STACK_SIZE


def run_source(source: str, *, stack_size: int = DEFAULT_STACK_SIZE,
               output=None, check: bool = True) -> Interpreter:
    """Load, check and run program text.

    Full pipeline: load_program -> check_program -> Interpreter.run.

    Args:
        source: Program text, one instruction or label per line.
        stack_size: Number of stack slots (default 64).
        output: Callable receiving each printf line (default: collect only).
        check: Run the semantic checker before executing.

    Returns:
        The finished Interpreter; read `exit_code`, `result`,
        `output_lines` and `dump()` from it. Errors propagate as VMError.
    """
    interp = Interpreter(load_program(source), stack_size=stack_size, output=output)
    interp.run(check=check)
    return interp

"""
Static semantic checker — runs once, before any instruction executes.

Every call/jump target must close its block with a terminator:

  call D L   value call   → block of L must reach `ret`
  call L     void call    → block of L must reach `ret` or `leave`
  jmp L      jump         → block of L must reach `ret` or `leave`

The scan starts at L's LabelDef and walks forward in a straight line.
Reaching a different LabelDef, or the end of the program, before a
terminator is a SemanticError naming L. Nested calls and jumps inside
the block are stepped over, not followed: blocks have no branching of
their own, so one linear pass per target is enough.
"""

from __future__ import annotations
import logging
from typing import Callable, Set, Tuple

from .errors import LabelNotFoundError, SemanticError, SemanticErrorKind
from .instructions import (
    CallVoid, CallWithReturn, End, Instruction, Jump, LabelDef, Program, Return,
)

log = logging.getLogger(__name__)

Terminator = Callable[[Instruction], bool]


def _is_return(instr: Instruction) -> bool:
    return isinstance(instr, Return)


def _is_return_or_leave(instr: Instruction) -> bool:
    return isinstance(instr, (Return, End))


def block_terminates(program: Program, label: str, terminator: Terminator) -> bool:
    """True if the block starting at `label` reaches `terminator` before
    another label or the end of the program.

    Raises LabelNotFoundError if `label` is not defined.
    """
    index = program.find_label(label)
    if index is None:
        raise LabelNotFoundError(label)

    for instr in program.instructions[index + 1:]:
        if isinstance(instr, LabelDef) and instr.name != label:
            return False
        if terminator(instr):
            return True
    return False


def check_program(program: Program):
    """Verify every call/jump target. Raises on the first violation."""
    checked: Set[Tuple[str, SemanticErrorKind]] = set()

    for instr in program.instructions:
        if isinstance(instr, CallWithReturn):
            terminator, kind = _is_return, SemanticErrorKind.RETURN_MISSING
        elif isinstance(instr, (CallVoid, Jump)):
            terminator, kind = _is_return_or_leave, SemanticErrorKind.LEAVE_MISSING
        else:
            continue

        key = (instr.label, kind)
        if key in checked:
            continue
        if not block_terminates(program, instr.label, terminator):
            raise SemanticError(instr.label, kind)
        checked.add(key)

    log.debug("Semantic check passed (%d targets)", len(checked))

"""
Error taxonomy for the asmvm interpreter.

Every failure the machine can report derives from VMError, so the
driver and the CLI can catch one type and print one message.

  ParseError          — malformed line, unknown mnemonic/register, bad literal
  SemanticError       — call/jump target block missing its terminator
  RuntimeMemoryError  — bounds, indirection and type faults at run time
  LabelNotFoundError  — call/jump to a label that is not defined
  FrameError          — `leave` used to unwind a value-returning call

Nothing is retried: the first error raised aborts the run.
"""

from __future__ import annotations
import enum


class VMError(Exception):
    """Base class for every error raised by the machine."""


# ──────────────────────────────────────────────
# Load-time errors
# ──────────────────────────────────────────────

class ParseError(VMError):
    """Raised when a source line cannot be decoded into an instruction."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.message = message
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class SemanticErrorKind(enum.Enum):
    RETURN_MISSING = "RETURN_MISSING"
    LEAVE_MISSING = "LEAVE_MISSING"


class SemanticError(VMError):
    """Raised by the static checker when a label block has no terminator."""
    def __init__(self, label: str, kind: SemanticErrorKind):
        self.label = label
        self.kind = kind
        if kind is SemanticErrorKind.RETURN_MISSING:
            msg = (f"The label '{label}' is used with an expected return value, "
                   f"but no `ret OPERAND` is provided for all code paths")
        else:
            msg = (f"The label '{label}' is used with a leave command, "
                   f"but no `leave` or `ret` is provided for all code paths")
        super().__init__(msg)


# ──────────────────────────────────────────────
# Run-time errors
# ──────────────────────────────────────────────

class RuntimeMemoryError(VMError):
    """Any fault raised while reading, writing or operating on values."""


class ReadError(RuntimeMemoryError):
    def __init__(self, location: str):
        self.location = location
        super().__init__(f"Cannot read at: {location}")


class WriteError(RuntimeMemoryError):
    def __init__(self, location: str):
        self.location = location
        super().__init__(f"Cannot write at: {location}")


class SegmentationFault(RuntimeMemoryError):
    def __init__(self, message: str):
        super().__init__(f"Segmentation fault: {message}")


class OperationError(RuntimeMemoryError):
    """Arithmetic or syscall applied to values of the wrong kind."""


class IncompatibleTypes(OperationError):
    def __init__(self, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(f"Cannot operate: incompatible types ({left}, {right})")


class SubtractionError(OperationError):
    def __init__(self, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(
            f"Cannot operate: attempted subtracting two incompatible types: "
            f"[{left}] - [{right}]")


class WrongTypeError(OperationError):
    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Cannot operate: type {expected} is expected but the actual value was {actual}")


class UnknownSyscallError(OperationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot operate: unknown syscall {name}")


class LabelNotFoundError(VMError):
    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Cannot find jmp destination {label}")


class FrameError(VMError):
    """Raised when a frame is unwound by the wrong terminator."""

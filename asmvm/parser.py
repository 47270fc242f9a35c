"""
Parser + loader for the asmvm language.

One source line decodes to exactly one instruction. The token count
selects the grammar production, then the mnemonic picks the opcode:

  1 token   leave | NAME:
  2 tokens  syscall NAME | jmp LABEL | ret OPERAND | call LABEL
  3 tokens  mov DEST SRC | lea DEST ADDR | call DEST LABEL
  4 tokens  add DEST OP1 OP2 | sub DEST OP1 OP2

Operand sub-grammar (recursive):

  sp          StackSlot(0)
  sp[N]       StackSlot(N)
  [X]         Reference(parse(X))
  rax|rbx|rcx RegisterAddress
  -12         Literal(Integer)
  "text"      Literal(Text)

Parsing never touches machine state. Any malformed line raises
ParseError carrying the line number and text.
"""

from __future__ import annotations
import logging
import re
from typing import Callable, Dict, List

from .address import Address, REGISTER_NAMES, Reference, RegisterAddress, StackSlot
from .errors import ParseError
from .instructions import (
    Add, CallVoid, CallWithReturn, End, Instruction, Jump, LabelDef,
    LoadAddress, Move, Program, Return, Subtract, Syscall,
)
from .lexer import is_comment_or_blank, tokenize
from .values import INT_MAX, INT_MIN, Integer, Literal, Operand, Text

__all__ = ['parse_line', 'parse_address', 'parse_operand', 'load_program', 'SYSCALLS']

log = logging.getLogger(__name__)

SYSCALLS = {'printf'}

_INT_RE = re.compile(r'^[+-]?\d+$')
_SLOT_RE = re.compile(r'^sp\[(\d+)\]$')
_LABEL_RE = re.compile(r'^[A-Za-z_.][A-Za-z0-9_.]*$')


# ──────────────────────────────────────────────
# Operands
# ──────────────────────────────────────────────

def parse_address(text: str, line_num: int = 0) -> Address:
    """Parse a storage location: register, stack slot or reference."""
    compact = ''.join(text.split())

    if compact == 'sp':
        return StackSlot(0)

    m = _SLOT_RE.match(compact)
    if m:
        return StackSlot(int(m.group(1)))

    if compact.startswith('[') and compact.endswith(']'):
        inner = compact[1:-1]
        if not inner:
            raise ParseError("Empty reference '[]'", line_num, text)
        return Reference(parse_address(inner, line_num))

    if compact in REGISTER_NAMES:
        return RegisterAddress(REGISTER_NAMES[compact])

    raise ParseError(f"Address unknown: {text}", line_num, text)


def parse_operand(text: str, line_num: int = 0) -> Operand:
    """Parse a value source: integer or string literal, else an address."""
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return Literal(Text(text[1:-1]))

    if _INT_RE.match(text):
        value = int(text)
        if not INT_MIN <= value <= INT_MAX:
            raise ParseError(f"Integer literal out of range: {text}", line_num, text)
        return Literal(Integer(value))

    try:
        return parse_address(text, line_num)
    except ParseError:
        raise ParseError(f"{text} cannot be parsed as an operand", line_num, text) from None


def _parse_label(text: str, line_num: int) -> str:
    if not _LABEL_RE.match(text):
        raise ParseError(f"Invalid label name: {text}", line_num, text)
    return text


# ──────────────────────────────────────────────
# Productions, keyed by token count
# ──────────────────────────────────────────────

def _unknown(mnem: str, line_num: int) -> ParseError:
    return ParseError(f"Unknown instruction: {mnem}", line_num)


def _parse_1(tokens: List[str], line_num: int) -> Instruction:
    (word,) = tokens
    if word.lower() == 'leave':
        return End()
    if word.endswith(':'):
        return LabelDef(_parse_label(word[:-1], line_num))
    raise _unknown(word, line_num)


def _parse_2(tokens: List[str], line_num: int) -> Instruction:
    mnem, arg = tokens[0].lower(), tokens[1]
    if mnem == 'syscall':
        if arg not in SYSCALLS:
            raise ParseError(f"Unknown syscall: {arg}", line_num)
        return Syscall(arg)
    if mnem == 'jmp':
        return Jump(_parse_label(arg, line_num))
    if mnem == 'ret':
        return Return(parse_operand(arg, line_num))
    if mnem == 'call':
        return CallVoid(_parse_label(arg, line_num))
    raise _unknown(tokens[0], line_num)


def _parse_3(tokens: List[str], line_num: int) -> Instruction:
    mnem, first, second = tokens[0].lower(), tokens[1], tokens[2]
    if mnem == 'mov':
        return Move(parse_address(first, line_num), parse_operand(second, line_num))
    if mnem == 'lea':
        return LoadAddress(parse_address(first, line_num), parse_address(second, line_num))
    if mnem == 'call':
        return CallWithReturn(parse_address(first, line_num), _parse_label(second, line_num))
    raise _unknown(tokens[0], line_num)


def _parse_4(tokens: List[str], line_num: int) -> Instruction:
    mnem = tokens[0].lower()
    if mnem not in ('add', 'sub'):
        raise _unknown(tokens[0], line_num)
    dest = parse_address(tokens[1], line_num)
    left = parse_operand(tokens[2], line_num)
    right = parse_operand(tokens[3], line_num)
    return Add(dest, left, right) if mnem == 'add' else Subtract(dest, left, right)


_PRODUCTIONS: Dict[int, Callable[[List[str], int], Instruction]] = {
    1: _parse_1,
    2: _parse_2,
    3: _parse_3,
    4: _parse_4,
}


def parse_line(line: str, line_num: int = 0) -> Instruction:
    """Decode one source line into one instruction."""
    tokens = tokenize(line, line_num)
    production = _PRODUCTIONS.get(len(tokens))
    if production is None:
        raise ParseError(f"Unknown size of instruction '{line.strip()}'", line_num, line)
    try:
        return production(tokens, line_num)
    except ParseError as e:
        if not e.line_text:
            e.line_text = line
        raise


# ──────────────────────────────────────────────
# Loader
# ──────────────────────────────────────────────

def load_program(source: str) -> Program:
    """Parse program text into an immutable Program.

    Blank lines and lines starting with `;` are skipped. The first bad
    line aborts the load.
    """
    instructions: List[Instruction] = []
    line_numbers: List[int] = []

    for line_num, line in enumerate(source.splitlines(), start=1):
        if is_comment_or_blank(line):
            continue
        instructions.append(parse_line(line, line_num))
        line_numbers.append(line_num)

    log.info("Loaded %d instructions", len(instructions))
    return Program(tuple(instructions), tuple(line_numbers))

"""
Line tokenizer for the asmvm language.

Splits one source line into whitespace-separated tokens, with three
exceptions that keep a span together as a single token:

  "two words"      a double-quoted string literal (quotes are kept)
  sp[ 3 ]          a bracketed index, including any inner whitespace
  [ rax ]          a reference operand

A `;` outside a string starts a trailing comment and ends the line.
Whole-line comments and blank lines are dropped by the loader before
the tokenizer ever sees them.
"""

from __future__ import annotations
from typing import List

from .errors import ParseError

COMMENT_MARKER = ';'


def is_comment_or_blank(line: str) -> bool:
    """True for lines the loader skips without parsing."""
    stripped = line.strip()
    return not stripped or stripped.startswith(COMMENT_MARKER)


def tokenize(line: str, line_num: int = 0) -> List[str]:
    """Split a line into tokens, merging quoted and bracketed spans."""
    tokens: List[str] = []
    buffer: List[str] = []
    in_string = False
    depth = 0

    for ch in line:
        if in_string:
            buffer.append(ch)
            if ch == '"':
                in_string = False
            continue

        if ch == COMMENT_MARKER:
            break
        if ch == '"':
            in_string = True
            buffer.append(ch)
        elif ch == '[':
            depth += 1
            buffer.append(ch)
        elif ch == ']':
            if depth == 0:
                raise ParseError("Unbalanced ']'", line_num, line)
            depth -= 1
            buffer.append(ch)
        elif ch.isspace() and depth == 0:
            if buffer:
                tokens.append(''.join(buffer))
                buffer = []
        else:
            buffer.append(ch)

    if in_string:
        raise ParseError("Unterminated string literal", line_num, line)
    if depth:
        raise ParseError("Unbalanced '['", line_num, line)

    if buffer:
        tokens.append(''.join(buffer))
    return tokens

#!/usr/bin/env python3
"""
asmrun — asmvm program runner CLI

Usage:
    python asmrun.py <input.asm> [--stack-size 64] [--trace] [--listing]
                                 [--check-only] [--no-check] [--verbose]

Runs the program, prints every printf line, then the final register
and stack dump and the exit code. The process exit status is the
program's exit code (an Integer terminal value, or 1 for any other
value); load, check and run errors exit with 1, internal errors with 2.

Examples:
    python asmrun.py examples/nested_calls.asm
    python asmrun.py examples/array_init.asm --trace
    python asmrun.py prog.asm --listing --check-only
"""

import argparse
import logging
import sys
from pathlib import Path

from asmvm import __version__
from asmvm.errors import (
    FrameError, LabelNotFoundError, ParseError, RuntimeMemoryError, SemanticError,
)
from asmvm.interpreter import Interpreter
from asmvm.log import setup_logging
from asmvm.parser import load_program

# Known errors, most specific first: (type, label printed before the message)
ERROR_LABELS = [
    (ParseError, "Parse error"),
    (SemanticError, "Semantic error"),
    (LabelNotFoundError, "Label error"),
    (FrameError, "Frame error"),
    (RuntimeMemoryError, "Memory error"),
]


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...), $ prefix, or decimal."""
    value = value.strip()
    if value.startswith("0x") or value.startswith("0X"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asmrun",
        description="Run an asmvm assembly program",
    )
    parser.add_argument("input", help="Input program file")
    parser.add_argument("--stack-size", default="64", type=parse_int_arg,
                        help="Number of stack slots (default: 64)")
    parser.add_argument("--no-check", action="store_true",
                        help="Skip the static call/jump terminator check")
    parser.add_argument("--check-only", action="store_true",
                        help="Load and check the program, then exit")
    parser.add_argument("--listing", action="store_true",
                        help="Print the parsed program listing before running")
    parser.add_argument("--trace", action="store_true",
                        help="Print an instruction trace after the run")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log progress to stderr")
    parser.add_argument("--log-dir", default=None,
                        help="Also write a DEBUG log file into this directory")
    parser.add_argument("--version", action="version",
                        version=f"asmrun {__version__}")
    return parser


def _error_label(err: Exception) -> str:
    for etype, label in ERROR_LABELS:
        if isinstance(err, etype):
            return label
    return "Error"


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
        log_dir=Path(args.log_dir) if args.log_dir else None,
    )

    try:
        source = Path(args.input).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return 1

    started = False
    try:
        program = load_program(source)
        if args.listing:
            print(program.listing())

        interp = Interpreter(program, stack_size=args.stack_size, output=print)
        interp.enable_trace(args.trace)
        if args.check_only or not args.no_check:
            interp.check()
        if args.check_only:
            print("Semantic check passed")
            return 0

        started = True
        exit_code = interp.run(check=False)

    except (ParseError, SemanticError, LabelNotFoundError, FrameError,
            RuntimeMemoryError) as e:
        if started:
            _print_report(interp, args.trace)
        print(f"{_error_label(e)}: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2

    _print_report(interp, args.trace)
    print(f"Process finished with: {exit_code}")
    return exit_code & 0xFF


def _print_report(interp: Interpreter, trace: bool):
    if trace:
        print(interp.get_trace())
    print(interp.dump())


if __name__ == "__main__":
    sys.exit(main())

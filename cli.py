#!/usr/bin/env python3
"""
Intcode Runner / CLI
====================
Command-line front end for the Intcode VM.

Provides:
  - Program loading from a comma-separated text file
  - Scripted input values, with an interactive prompt once they run out
  - Output printed one value per line as the program emits it
  - Disassembly listing
  - The single-step debugger

Usage:
  python cli.py PROGRAM [-i N ...] [--debug] [--disasm] [--max-steps N]
                [--no-prompt]
"""

from __future__ import annotations
import argparse
import sys

from intcode import Intcode, IntcodeError, disassemble
from channels import QueueReceiver, PrintSender
from debugger import IntcodeDebugger


# ---------------------------------------------------------------------------
#  Program loading
# ---------------------------------------------------------------------------

def load_program(text: str) -> list[int]:
    """Parse a program image: integers separated by commas and/or whitespace."""
    cells = []
    for tok in text.replace(",", " ").split():
        try:
            cells.append(int(tok, 10))
        except ValueError:
            raise ValueError(f"Not an integer: {tok!r}") from None
    return cells


def read_program(path: str) -> list[int]:
    with open(path, "r") as f:
        return load_program(f.read())


# ---------------------------------------------------------------------------
#  Main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Intcode VM runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  python cli.py day09.txt -i 1\n"
               "  python cli.py day05.txt -i 5 --no-prompt\n"
               "  python cli.py day02.txt --disasm\n"
               "  python cli.py day09.txt --debug\n"
    )
    parser.add_argument("program", type=str,
                        help="Program file (comma-separated integers)")
    parser.add_argument("--input", "-i", type=int, action="append", default=[],
                        metavar="N",
                        help="Input value fed before prompting (can repeat)")
    parser.add_argument("--debug", action="store_true",
                        help="Run under the single-step debugger")
    parser.add_argument("--disasm", action="store_true",
                        help="Print a disassembly listing and exit")
    parser.add_argument("--max-steps", type=int, default=None, metavar="N",
                        help="Stop after N instructions (default: run to halt; "
                             "not valid with --debug)")
    parser.add_argument("--no-prompt", action="store_true",
                        help="Fail instead of prompting when inputs run out")
    args = parser.parse_args(argv)
    if args.debug and args.max_steps is not None:
        parser.error("--max-steps cannot be combined with --debug")

    try:
        program = read_program(args.program)
    except (OSError, ValueError) as e:
        print(f"Error loading '{args.program}': {e}", file=sys.stderr)
        return 1

    # ---- Disassemble-only mode ----------------------------------------
    if args.disasm:
        for line in disassemble(program):
            print(line)
        return 0

    vm = Intcode(
        program,
        receiver=QueueReceiver(args.input),
        sender=PrintSender(),
        prompt=None if args.no_prompt else input,
    )

    try:
        if args.debug:
            halted = IntcodeDebugger(vm).run()
            if not halted:
                print(f"Left debugger at pointer {vm.pointer} "
                      f"after {vm.steps} steps.")
        else:
            vm.run(max_steps=args.max_steps)
            if not vm.halted:
                print(f"Stopped after {vm.steps} steps at pointer {vm.pointer}.")
    except IntcodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())

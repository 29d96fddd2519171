"""
Intcode Stepping Debugger
=========================
Interactive single-step shell around an Intcode VM.

After every instruction the VM pauses and the debugger prompts with the
instruction just executed and the new pointer.  Commands are one letter,
read a line at a time:

  c        continue (execute the next instruction, then pause again)
  m        print primary memory
  m x y    print memory x..=y (inclusive)
  p        print the instruction pointer
  i        print the receiver
  o        print the sender
  b        print the relative base

Anything else ends the session; the VM is left paused where it stopped
and can be resumed with run() or another debugger.

Execution goes through Intcode.step() only, so stepping here behaves
exactly like Intcode.run().
"""

from __future__ import annotations
import cmd
from typing import Optional, TextIO

from intcode import Intcode

TAG = "[Debug] "


class IntcodeDebugger(cmd.Cmd):
    """Pause-after-every-instruction shell for one Intcode VM."""

    intro = HELP = (
        "\n"
        "  pick\n"
        "    [c]     continue\n"
        "    [m x y] view mem in range x..=y, ignore = view all\n"
        "    [p]     view pointer\n"
        "    [i]     view input\n"
        "    [o]     view output\n"
        "    [b]     view rel_base\n"
        "    [*]     anything else leaves the debugger\n"
    )
    prompt = TAG + "$ "

    def __init__(self, vm: Intcode, stdin: Optional[TextIO] = None,
                 stdout: Optional[TextIO] = None):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.vm = vm
        self._resume = False

    def _say(self, text: str):
        print(TAG + text, file=self.stdout)

    def _parse_int(self, s: str, default: int) -> int:
        try:
            value = int(s.strip(), 10)
        except ValueError:
            return default
        return value if value >= 0 else default

    # -- Driver --

    def run(self) -> bool:
        """Step the VM to completion, pausing after each instruction.

        Returns True if the program halted, False if the session was left
        early.
        """
        print(self.HELP, file=self.stdout)
        while not self.vm.halted:
            instr = self.vm.step()
            if self.vm.halted:
                break
            self.prompt = (f"{TAG}lastop({str(instr):^24}) "
                           f"pointer({self.vm.pointer:^3}) $ ")
            self._resume = False
            self.cmdloop(intro="")
            if not self._resume:
                return False
        return True

    # -- Line handling --

    def precmd(self, line):
        """Only the first character of the command word is significant."""
        parts = line.split(None, 1)
        if not parts or line == "EOF":
            return line
        rest = parts[1] if len(parts) > 1 else ""
        return f"{parts[0][0]} {rest}".rstrip()

    def emptyline(self):
        """Don't repeat the last command on empty input."""
        pass

    def default(self, line):
        return True

    def do_EOF(self, arg):
        print(file=self.stdout)
        return True

    # ================================================================
    #  Commands
    # ================================================================

    def do_c(self, arg):
        """Continue to the next instruction."""
        self._resume = True
        return True

    def do_m(self, arg):
        """View memory: m [x y]  (inclusive range; no range = all)"""
        parts = arg.split()
        mem = self.vm.memory
        if not parts:
            self._say(f"mem {mem.primary}")
            return
        if len(parts) < 2:
            self._say("expected m x y")
            return
        x = self._parse_int(parts[0], 0)
        top = max(len(mem) - 1, max(mem.aux, default=0))
        y = min(self._parse_int(parts[1], len(mem) - 1), top)
        self._say(f"mem {x}..={y} {mem.dump(x, y)}")

    def do_p(self, arg):
        """View the instruction pointer."""
        self._say(f"pointer {self.vm.pointer}")

    def do_i(self, arg):
        """View the receiver."""
        self._say(f"input {self.vm.receiver!r}")

    def do_o(self, arg):
        """View the sender."""
        self._say(f"output {self.vm.sender!r}")

    def do_b(self, arg):
        """View the relative base."""
        self._say(f"rel_base {self.vm.relative_base}")

"""
Intcode Virtual Machine
=======================
An instruction-step interpreter for Intcode programs: flat sequences of
signed 64-bit integers in which code and data share one address space.

Every step reads the cell under the instruction pointer, splits it into a
two-digit opcode and up to three parameter-mode digits, resolves each
parameter (immediate literal, absolute position, or offset from the
relative base), performs the effect, and moves the pointer.  Input and
output go through injected channel objects (see channels.py), so the
engine never knows whether it is talking to a terminal, a queue, or
another VM.

Instruction encoding (decimal):

    ABCDE
      DE  opcode           01 ADD   02 MUL   03 IN    04 OUT
                           05 JT    06 JF    07 LT    08 EQ
                           09 ARB   99 HLT
       C  mode of param 1  0 position, 1 immediate, 2 relative
       B  mode of param 2
       A  mode of param 3
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from channels import Receiver, Sender, NullReceiver, ListSender

# ---------------------------------------------------------------------------
#  Constants
# ---------------------------------------------------------------------------

MASK64 = (1 << 64) - 1
SIGN64 = 1 << 63

PROMPT = "Input please, human: "


class Mode(enum.IntEnum):
    """Parameter addressing mode, one decimal digit per parameter."""
    POSITION  = 0
    IMMEDIATE = 1
    RELATIVE  = 2

    def __str__(self) -> str:
        return self.name.capitalize()


class Op(enum.IntEnum):
    """The closed set of Intcode operations, keyed by their two-digit code."""
    ADD                  = 1
    MULTIPLY             = 2
    INPUT                = 3
    OUTPUT               = 4
    JUMP_IF_TRUE         = 5
    JUMP_IF_FALSE        = 6
    LESS_THAN            = 7
    EQUALS               = 8
    ADJUST_RELATIVE_BASE = 9
    HALT                 = 99

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


PARAM_COUNT = {
    Op.ADD: 3, Op.MULTIPLY: 3, Op.INPUT: 1, Op.OUTPUT: 1,
    Op.JUMP_IF_TRUE: 2, Op.JUMP_IF_FALSE: 2, Op.LESS_THAN: 3,
    Op.EQUALS: 3, Op.ADJUST_RELATIVE_BASE: 1, Op.HALT: 0,
}

MNEMONICS = {
    Op.ADD: "ADD", Op.MULTIPLY: "MUL", Op.INPUT: "IN", Op.OUTPUT: "OUT",
    Op.JUMP_IF_TRUE: "JT", Op.JUMP_IF_FALSE: "JF", Op.LESS_THAN: "LT",
    Op.EQUALS: "EQ", Op.ADJUST_RELATIVE_BASE: "ARB", Op.HALT: "HLT",
}

# ---------------------------------------------------------------------------
#  Helpers
# ---------------------------------------------------------------------------

def u64(v: int) -> int:
    """Mask to unsigned 64 bits."""
    return v & MASK64

def s64(v: int) -> int:
    """Wrap an arbitrary int to the signed 64-bit range."""
    v = u64(v)
    return v - (1 << 64) if v >= SIGN64 else v

# ---------------------------------------------------------------------------
#  Errors
# ---------------------------------------------------------------------------

class IntcodeError(Exception):
    """Base for every condition the VM reports to its caller."""
    pass

class UnknownOpcodeError(IntcodeError):
    def __init__(self, raw: int, address: Optional[int] = None):
        self.raw = raw
        self.address = address
        where = f" at address {address}" if address is not None else ""
        super().__init__(f"Unknown opcode {raw}{where}")

class InvalidModeError(IntcodeError):
    def __init__(self, mode: int, address: Optional[int] = None,
                 message: str = ""):
        self.mode = int(mode)
        self.address = address
        where = f" at address {address}" if address is not None else ""
        super().__init__(message or f"Invalid parameter mode {self.mode}{where}")

class AddressError(IntcodeError):
    def __init__(self, address: int):
        self.address = address
        super().__init__(f"Negative memory address {address}")

class InputUnavailableError(IntcodeError):
    """The receiver is empty and there is no interactive prompt to fall back on."""
    pass

class HaltError(IntcodeError):
    pass

# ---------------------------------------------------------------------------
#  Memory
# ---------------------------------------------------------------------------

class Memory:
    """Fixed primary store plus a sparse overflow map.

    Addresses below the initial program length live in ``primary``;
    anything at or above it lives in ``aux`` and reads as zero until
    written.  The primary list is never resized.
    """

    def __init__(self, program: Sequence[int]):
        self.primary: list[int] = [int(v) for v in program]
        self.aux: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self.primary)

    def _check_addr(self, addr: int):
        if addr < 0:
            raise AddressError(addr)

    def read(self, addr: int) -> int:
        self._check_addr(addr)
        if addr < len(self.primary):
            return self.primary[addr]
        return self.aux.get(addr, 0)

    def write(self, addr: int, value: int):
        self._check_addr(addr)
        if addr < len(self.primary):
            self.primary[addr] = value
        else:
            self.aux[addr] = value

    def dump(self, start: int, end: int) -> list[int]:
        """Cells ``start..=end`` (inclusive), reading through the overflow map."""
        return [self.read(a) for a in range(start, end + 1)]

# ---------------------------------------------------------------------------
#  Decoder
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Instruction:
    op: Op
    modes: tuple[Mode, ...] = ()

    @property
    def size(self) -> int:
        """Cells occupied: the opcode cell plus one per parameter."""
        return 1 + len(self.modes)

    def __str__(self) -> str:
        if not self.modes:
            return str(self.op)
        return str(self.op) + "(" + ", ".join(str(m) for m in self.modes) + ")"


def decode(raw: int, address: Optional[int] = None) -> Instruction:
    """Split a raw cell into its opcode and per-parameter modes."""
    if raw < 0:
        raise UnknownOpcodeError(raw, address)
    try:
        op = Op(raw % 100)
    except ValueError:
        raise UnknownOpcodeError(raw, address) from None

    modes = []
    digits = raw // 100
    for _ in range(PARAM_COUNT[op]):
        digit = digits % 10
        digits //= 10
        try:
            modes.append(Mode(digit))
        except ValueError:
            raise InvalidModeError(digit, address) from None
    return Instruction(op, tuple(modes))

# ---------------------------------------------------------------------------
#  Disassembler
# ---------------------------------------------------------------------------

def _format_param(mode: Mode, literal: int) -> str:
    if mode == Mode.IMMEDIATE:
        return str(literal)
    if mode == Mode.POSITION:
        return f"[{literal}]"
    return f"[rb{literal:+d}]"


def disasm_one(memory: Memory, addr: int) -> tuple[str, int]:
    """Disassemble one instruction at `addr`. Returns (text, cell_count).

    Cells that do not decode are rendered as ``DATA n`` with size 1.
    """
    raw = memory.read(addr)
    try:
        instr = decode(raw, addr)
    except IntcodeError:
        return f"DATA {raw}", 1
    params = [_format_param(m, memory.read(addr + 1 + i))
              for i, m in enumerate(instr.modes)]
    text = MNEMONICS[instr.op]
    if params:
        text += " " + ", ".join(params)
    return text, instr.size


def disassemble(program: Sequence[int]) -> list[str]:
    """Listing of a whole program image, one line per instruction."""
    memory = Memory(program)
    lines = []
    addr = 0
    while addr < len(memory):
        text, size = disasm_one(memory, addr)
        raw = " ".join(str(v) for v in memory.dump(addr, addr + size - 1))
        lines.append(f"  {addr:>5}: {raw:<40s} {text}")
        addr += size
    return lines

# ---------------------------------------------------------------------------
#  VM
# ---------------------------------------------------------------------------

class Intcode:
    """Intcode VM: one program image, one receiver, one sender."""

    def __init__(self, program: Sequence[int],
                 receiver: Optional[Receiver] = None,
                 sender: Optional[Sender] = None,
                 prompt: Optional[Callable[[str], str]] = input):
        self.memory = Memory(program)
        self.receiver: Receiver = receiver if receiver is not None else NullReceiver()
        self.sender: Sender = sender if sender is not None else ListSender()
        # Called with PROMPT when the receiver runs dry; None disables it.
        self.prompt = prompt

        self.pointer: int = 0
        self.relative_base: int = 0
        self.halted: bool = False

        self.steps: int = 0
        self.last_instruction: Optional[Instruction] = None
        self.last_output: Optional[int] = None
        self.output_count: int = 0

    # -- Parameter resolution --

    def _literal(self, index: int) -> int:
        return self.memory.read(self.pointer + index)

    def _read_param(self, index: int, mode: Mode) -> int:
        literal = self._literal(index)
        if mode == Mode.IMMEDIATE:
            return literal
        if mode == Mode.POSITION:
            return self.memory.read(literal)
        return self.memory.read(self.relative_base + literal)

    def _write_addr(self, index: int, mode: Mode) -> int:
        literal = self._literal(index)
        if mode == Mode.POSITION:
            addr = literal
        elif mode == Mode.RELATIVE:
            addr = self.relative_base + literal
        else:
            raise InvalidModeError(
                mode, self.pointer,
                f"Immediate mode used as write target at address {self.pointer}")
        if addr < 0:
            raise AddressError(addr)
        return addr

    # -- Input --

    def _next_input(self) -> int:
        """Next value from the receiver, falling back to the prompt."""
        value = self.receiver.try_next()
        if value is not None:
            return value
        if self.prompt is None:
            raise InputUnavailableError(
                f"No input available at address {self.pointer}")
        while True:
            try:
                line = self.prompt(PROMPT)
            except EOFError:
                raise InputUnavailableError(
                    f"Input closed at address {self.pointer}") from None
            try:
                return int(line.strip(), 10)
            except ValueError:
                continue

    # =====================================================================
    #  STEP: the core decode/execute loop
    # =====================================================================

    def step(self) -> Instruction:
        """Execute one instruction and return it."""
        if self.halted:
            raise HaltError("VM is halted")

        instr = decode(self.memory.read(self.pointer), self.pointer)
        op, m = instr.op, instr.modes

        if op in (Op.ADD, Op.MULTIPLY, Op.LESS_THAN, Op.EQUALS):
            dst = self._write_addr(3, m[2])
            a = self._read_param(1, m[0])
            b = self._read_param(2, m[1])
            if   op == Op.ADD:       val = s64(a + b)
            elif op == Op.MULTIPLY:  val = s64(a * b)
            elif op == Op.LESS_THAN: val = int(a < b)
            else:                    val = int(a == b)
            self.memory.write(dst, val)
            self.pointer += 4
        elif op in (Op.JUMP_IF_TRUE, Op.JUMP_IF_FALSE):
            cond = self._read_param(1, m[0])
            if (cond != 0) == (op == Op.JUMP_IF_TRUE):
                self.pointer = self._read_param(2, m[1])
            else:
                self.pointer += 3
        elif op == Op.INPUT:
            # Target first: a failed input must leave the VM untouched.
            dst = self._write_addr(1, m[0])
            self.memory.write(dst, self._next_input())
            self.pointer += 2
        elif op == Op.OUTPUT:
            val = self._read_param(1, m[0])
            self.sender.accept(val)
            self.last_output = val
            self.output_count += 1
            self.pointer += 2
        elif op == Op.ADJUST_RELATIVE_BASE:
            self.relative_base = s64(self.relative_base + self._read_param(1, m[0]))
            self.pointer += 2
        elif op == Op.HALT:
            self.halted = True
        else:
            raise IntcodeError(f"No handler for {op!r} at address {self.pointer}")

        self.steps += 1
        self.last_instruction = instr
        return instr

    # -- Run loops --

    def run(self, max_steps: Optional[int] = None) -> int:
        """Run until HALT (or max_steps). Returns instructions executed."""
        count = 0
        while not self.halted:
            if max_steps is not None and count >= max_steps:
                break
            self.step()
            count += 1
        return count

    def run_until_output(self) -> Optional[int]:
        """Run until the next OUTPUT or HALT. Returns the value, or None on halt."""
        seen = self.output_count
        while not self.halted:
            self.step()
            if self.output_count != seen:
                return self.last_output
        return None

    # -- Debug / introspection --

    def dump_state(self) -> str:
        last = str(self.last_instruction) if self.last_instruction else "-"
        return (f"  pointer = {self.pointer}  rel_base = {self.relative_base}  "
                f"halted = {self.halted}\n"
                f"  steps = {self.steps}  last = {last}\n"
                f"  memory = {len(self.memory)} cells + {len(self.memory.aux)} aux")

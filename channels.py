"""
Intcode I/O Channels
====================
Pluggable value sources and sinks for the Intcode VM.

The VM's INPUT instruction pulls from a Receiver and its OUTPUT
instruction pushes into a Sender.  The two are separate capabilities so a
VM can read from one transport and write to another.

Channel hierarchy:
  Receiver             abstract value source
  ├─ NullReceiver      always empty (forces the interactive prompt)
  └─ QueueReceiver     in-process FIFO (tests, scripted input)
  Sender               abstract value sink
  ├─ ListSender        collects every value
  ├─ CallbackSender    forwards each value to a callable
  └─ PrintSender       one value per line on a text stream
  Pipe                 Sender + Receiver over one FIFO, for chaining VMs

Usage:
  from channels import Pipe, QueueReceiver, ListSender
  link = Pipe()
  first = Intcode(program, QueueReceiver([5]), link)
  second = Intcode(program, link, ListSender())
"""

from __future__ import annotations

import abc
import sys
from collections import deque
from typing import Callable, Iterable, Optional, TextIO


# ══════════════════════════════════════════════════════════════════════
#  Abstract bases
# ══════════════════════════════════════════════════════════════════════

class Receiver(abc.ABC):
    """Value source for the INPUT instruction."""

    @abc.abstractmethod
    def try_next(self) -> Optional[int]:
        """Return the next buffered value, or None if nothing is buffered."""


class Sender(abc.ABC):
    """Value sink for the OUTPUT instruction."""

    @abc.abstractmethod
    def accept(self, value: int) -> None:
        """Take one value.  Must not block."""


# ══════════════════════════════════════════════════════════════════════
#  Receivers
# ══════════════════════════════════════════════════════════════════════

class NullReceiver(Receiver):
    def try_next(self) -> Optional[int]:
        return None

    def __repr__(self) -> str:
        return "NullReceiver()"


class QueueReceiver(Receiver):
    """FIFO of pre-loaded values; more can be pushed while the VM runs."""

    def __init__(self, values: Iterable[int] = ()):
        self.queue: deque[int] = deque(values)

    def push(self, value: int):
        self.queue.append(value)

    def extend(self, values: Iterable[int]):
        self.queue.extend(values)

    @property
    def pending(self) -> int:
        return len(self.queue)

    def try_next(self) -> Optional[int]:
        if self.queue:
            return self.queue.popleft()
        return None

    def __repr__(self) -> str:
        return f"QueueReceiver({list(self.queue)})"


# ══════════════════════════════════════════════════════════════════════
#  Senders
# ══════════════════════════════════════════════════════════════════════

class ListSender(Sender):
    """Records every value the VM outputs."""

    def __init__(self):
        self.values: list[int] = []

    def accept(self, value: int) -> None:
        self.values.append(value)

    def drain(self) -> list[int]:
        """Return all recorded values and clear the buffer."""
        out = self.values
        self.values = []
        return out

    def __repr__(self) -> str:
        return f"ListSender({self.values})"


class CallbackSender(Sender):
    def __init__(self, on_value: Callable[[int], None]):
        self.on_value = on_value
        self.count = 0

    def accept(self, value: int) -> None:
        self.count += 1
        self.on_value(value)

    def __repr__(self) -> str:
        return f"CallbackSender(count={self.count})"


class PrintSender(Sender):
    """Writes each value on its own line (stdout unless told otherwise)."""

    def __init__(self, file: Optional[TextIO] = None):
        self.file = file
        self.last: Optional[int] = None

    def accept(self, value: int) -> None:
        self.last = value
        print(value, file=self.file or sys.stdout, flush=True)

    def __repr__(self) -> str:
        return f"PrintSender(last={self.last})"


# ══════════════════════════════════════════════════════════════════════
#  Pipe: both ends in one object
# ══════════════════════════════════════════════════════════════════════

class Pipe(Sender, Receiver):
    """Connects one VM's output to another VM's input.

    Values are buffered until the consumer asks for them; an empty pipe
    reads as None, which lets the consuming VM report that it is waiting.
    """

    def __init__(self, values: Iterable[int] = ()):
        self.queue: deque[int] = deque(values)
        self.sent = 0
        self.received = 0

    def accept(self, value: int) -> None:
        self.sent += 1
        self.queue.append(value)

    def try_next(self) -> Optional[int]:
        if not self.queue:
            return None
        self.received += 1
        return self.queue.popleft()

    def __len__(self) -> int:
        return len(self.queue)

    def __repr__(self) -> str:
        return (f"Pipe({list(self.queue)}, sent={self.sent}, "
                f"received={self.received})")

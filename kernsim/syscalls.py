"""System call argument fetching and dispatch for simulated user processes."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from .layout import UINT_MASK, Syscall
from .mmu import TrapFrame

logger = logging.getLogger(__name__)

Handler = Callable[["UserProcess"], int]


class SyscallError(Exception):
    """Raised when a system call's arguments are invalid; the call returns -1."""


@dataclass
class UserProcess:
    """A process as system calls see it: its memory and saved registers.

    The process owns addresses [0, sz), where sz is the length of memory.
    """

    pid: int
    name: str = ""
    memory: bytearray = field(default_factory=bytearray)
    tf: TrapFrame = field(default_factory=TrapFrame)
    killed: bool = False

    @property
    def sz(self) -> int:
        return len(self.memory)


def _signed(value: int) -> int:
    value &= UINT_MASK
    return value - (1 << 32) if value & 0x80000000 else value


def fetch_int(proc: UserProcess, addr: int) -> int:
    """The 32-bit signed integer at addr in the process's memory."""
    addr &= UINT_MASK
    if addr >= proc.sz or addr + 4 > proc.sz:
        raise SyscallError(f"integer at {addr:#x} lies outside the process")
    return int.from_bytes(proc.memory[addr : addr + 4], "little", signed=True)


def fetch_str(proc: UserProcess, addr: int) -> bytes:
    """The NUL-terminated string at addr, without its terminator."""
    addr &= UINT_MASK
    if addr >= proc.sz:
        raise SyscallError(f"string at {addr:#x} lies outside the process")
    end = proc.memory.find(0, addr)
    if end < 0:
        raise SyscallError(f"string at {addr:#x} is not terminated")
    return bytes(proc.memory[addr:end])


def arg_int(proc: UserProcess, n: int) -> int:
    """The nth 32-bit argument on the user stack."""
    return fetch_int(proc, (proc.tf.esp + 4 + 4 * n) & UINT_MASK)


def arg_ptr(proc: UserProcess, n: int, size: int) -> int:
    """The nth argument as the address of size bytes inside the process."""
    addr = arg_int(proc, n) & UINT_MASK
    if size < 0 or addr >= proc.sz or addr + size > proc.sz:
        raise SyscallError(f"block of {size} bytes at {addr:#x} lies outside the process")
    return addr


def arg_str(proc: UserProcess, n: int) -> bytes:
    """The nth argument as a NUL-terminated string."""
    return fetch_str(proc, arg_int(proc, n))


class SyscallTable:
    """Maps system call numbers to handlers and counts how often each is made."""

    def __init__(self, handlers: Mapping[int, Handler] | None = None) -> None:
        self._handlers: dict[int, Handler] = {}
        self._calls: Counter[int] = Counter()
        self._lock = threading.Lock()
        for num, handler in (handlers or {}).items():
            self.register(num, handler)

    def register(self, num: int, handler: Handler) -> None:
        """Install handler for system call num."""
        if int(num) <= 0:
            raise ValueError(f"system call numbers start at 1, got {num}")
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[int(num)] = handler

    def dispatch(self, proc: UserProcess) -> int:
        """Run the call numbered in eax; its result goes back into eax and is returned."""
        num = _signed(proc.tf.eax)
        handler = self._handlers.get(num) if num > 0 else None
        if handler is None:
            logger.warning("%d %s: unknown sys call %d", proc.pid, proc.name, num)
            result = -1
        else:
            with self._lock:
                self._calls[num] += 1
            try:
                result = handler(proc)
            except SyscallError:
                result = -1
        proc.tf.eax = result & UINT_MASK
        return result

    def count(self, num: int) -> int:
        """How many times system call num has been dispatched."""
        with self._lock:
            return self._calls[int(num)]

    def __contains__(self, num: object) -> bool:
        return num in self._handlers


__all__ = [
    "Syscall",
    "SyscallError",
    "SyscallTable",
    "UserProcess",
    "arg_int",
    "arg_ptr",
    "arg_str",
    "fetch_int",
    "fetch_str",
]
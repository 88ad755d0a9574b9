"""Kernel parameters, memory layout and numbers shared with user programs."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields

UINT_MASK = 0xFFFFFFFF

# Kernel parameters.
NPROC = 64  # maximum number of processes
KSTACKSIZE = 4096  # size of per-process kernel stack
NCPU = 8  # maximum number of CPUs
NOFILE = 16  # open files per process
NFILE = 100  # open files per system
NINODE = 50  # maximum number of active i-nodes
NDEV = 10  # maximum major device number
ROOTDEV = 1  # device number of file system root disk
MAXARG = 32  # max exec arguments
MAXOPBLOCKS = 10  # max number of blocks any FS op writes
LOGSIZE = MAXOPBLOCKS * 3  # max data blocks in on-disk log
NBUF = MAXOPBLOCKS * 3  # size of disk block cache
FSSIZE = 1000  # size of file system in blocks
USERTOP = 0xA0000  # end of user address space

# Memory layout.
EXTMEM = 0x100000  # start of extended memory
PHYSTOP = 0xE000000  # top of physical memory
DEVSPACE = 0xFE000000  # other devices are at high addresses
KERNBASE = 0x80000000  # first kernel virtual address
KERNLINK = KERNBASE + EXTMEM  # address where the kernel is linked

# Hardware interrupt lines, relative to Trap.IRQ0.
IRQ_TIMER = 0
IRQ_KBD = 1
IRQ_COM1 = 4
IRQ_IDE = 14
IRQ_ERROR = 19
IRQ_SPURIOUS = 31


def v2p(addr: int) -> int:
    """Translate a kernel virtual address to a physical address."""
    return (addr - KERNBASE) & UINT_MASK


def p2v(addr: int) -> int:
    """Translate a physical address to a kernel virtual address."""
    return (addr + KERNBASE) & UINT_MASK


class Syscall(enum.IntEnum):
    """System call numbers."""

    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    GETREADCOUNT = 22
    GETTIME = 23
    SETTICKETS = 24
    GETPINFO = 25
    MPROTECT = 26
    MUNPROTECT = 27
    CLONE = 28
    JOIN = 29


class Trap(enum.IntEnum):
    """x86 trap and interrupt vector numbers."""

    DIVIDE = 0
    DEBUG = 1
    NMI = 2
    BRKPT = 3
    OFLOW = 4
    BOUND = 5
    ILLOP = 6
    DEVICE = 7
    DBLFLT = 8
    TSS = 10
    SEGNP = 11
    STACK = 12
    GPFLT = 13
    PGFLT = 14
    FPERR = 16
    ALIGN = 17
    MCHK = 18
    SIMDERR = 19
    IRQ0 = 32
    SYSCALL = 64
    DEFAULT = 500


class OpenFlag(enum.IntFlag):
    """Modes accepted by open."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200


class FileType(enum.IntEnum):
    """Kinds of inode."""

    DIR = 1
    FILE = 2
    DEV = 3


@dataclass
class RtcDate:
    """A wall-clock date as read from the real-time clock."""

    second: int = 0
    minute: int = 0
    hour: int = 0
    day: int = 0
    month: int = 0
    year: int = 0


def _slots() -> list[int]:
    return [0] * NPROC


@dataclass
class ProcessStats:
    """Per-slot scheduling statistics for the whole process table."""

    inuse: list[int] = field(default_factory=_slots)
    tickets: list[int] = field(default_factory=_slots)
    pid: list[int] = field(default_factory=_slots)
    ticks: list[int] = field(default_factory=_slots)

    def __post_init__(self) -> None:
        for column in fields(self):
            values = getattr(self, column.name)
            if len(values) != NPROC:
                raise ValueError(
                    f"{column.name} must have {NPROC} entries, got {len(values)}"
                )

    def set_tickets(self, slot: int, tickets: int) -> None:
        """Record the ticket count of the process in the given slot."""
        if not 0 <= slot < NPROC:
            raise IndexError(f"process slot {slot} out of range")
        self.tickets[slot] = tickets
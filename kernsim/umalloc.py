"""A first-fit free-list allocator over a simulated program break."""

from __future__ import annotations

from dataclasses import dataclass

from .layout import KERNBASE

HEADER_SIZE = 8  # bytes of a block header: next pointer and size
MIN_CORE_UNITS = 4096  # smallest number of units requested from sbrk


class OutOfMemory(MemoryError):
    """Raised when the program break cannot grow any further."""


@dataclass
class _Header:
    ptr: int
    size: int  # in units of HEADER_SIZE, header included


class Heap:
    """Address-ordered circular free list, coalescing neighbours on free.

    Addresses are plain integers; ``brk`` is the current program break.
    """

    def __init__(self, start: int = 0, limit: int = KERNBASE) -> None:
        if start < 0 or limit < start:
            raise ValueError(f"bad heap bounds {start:#x}..{limit:#x}")
        self.start = start
        self.limit = limit
        self.brk = start
        self._base = start - HEADER_SIZE
        self._headers: dict[int, _Header] = {}
        self._freep: int | None = None
        self._allocated: set[int] = set()

    def sbrk(self, n: int) -> int:
        """Move the break by n bytes and return its previous value."""
        new = self.brk + n
        if new > self.limit:
            raise OutOfMemory(f"cannot grow break to {new:#x}")
        if new < self.start:
            raise ValueError(f"cannot shrink break below {self.start:#x}")
        old, self.brk = self.brk, new
        return old

    def malloc(self, nbytes: int) -> int:
        """Allocate nbytes and return the address of the usable memory."""
        if nbytes < 0:
            raise ValueError(f"negative allocation size {nbytes}")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        headers = self._headers
        if self._freep is None:
            headers[self._base] = _Header(self._base, 0)
            self._freep = self._base
        prevp = self._freep
        p = headers[prevp].ptr
        while True:
            block = headers[p]
            if block.size >= nunits:
                if block.size == nunits:
                    headers[prevp].ptr = block.ptr
                else:
                    block.size -= nunits
                    p += block.size * HEADER_SIZE
                    headers[p] = _Header(0, nunits)
                self._freep = prevp
                addr = p + HEADER_SIZE
                self._allocated.add(addr)
                return addr
            if p == self._freep:
                p = self._morecore(nunits)
            prevp = p
            p = headers[p].ptr

    def free(self, addr: int) -> None:
        """Return a block obtained from malloc to the free list."""
        if addr not in self._allocated:
            raise ValueError(f"{addr:#x} is not an allocated block")
        self._allocated.remove(addr)
        self._release(addr - HEADER_SIZE)

    def free_blocks(self) -> list[tuple[int, int]]:
        """Free blocks as (header address, size in bytes), in address order."""
        if self._freep is None:
            return []
        blocks = []
        p = self._headers[self._base].ptr
        while p != self._base:
            block = self._headers[p]
            blocks.append((p, block.size * HEADER_SIZE))
            p = block.ptr
        return sorted(blocks)

    def _release(self, bp: int) -> None:
        headers = self._headers
        p = self._freep
        while not p < bp < headers[p].ptr:
            nxt = headers[p].ptr
            if p >= nxt and (bp > p or bp < nxt):
                break
            p = nxt
        block = headers[bp]
        cur = headers[p]
        if bp + block.size * HEADER_SIZE == cur.ptr:
            upper = headers.pop(cur.ptr)
            block.size += upper.size
            block.ptr = upper.ptr
        else:
            block.ptr = cur.ptr
        if p + cur.size * HEADER_SIZE == bp:
            cur.size += block.size
            cur.ptr = block.ptr
            del headers[bp]
        else:
            cur.ptr = bp
        self._freep = p

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, MIN_CORE_UNITS)
        addr = self.sbrk(nunits * HEADER_SIZE)
        self._headers[addr] = _Header(0, nunits)
        self._release(addr)
        return self._freep
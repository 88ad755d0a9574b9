"""Two-level x86 page tables kept in a simulated pool of physical frames."""

from __future__ import annotations

import struct
from collections.abc import Iterable, Iterator

from .layout import KERNBASE, UINT_MASK, p2v, v2p
from .mmu import (
    PDXSHIFT,
    PGSIZE,
    PTE_P,
    PTE_U,
    PTE_W,
    pdx,
    pg_round_down,
    pg_round_up,
    pte_addr,
    pte_flags,
    ptx,
)

_ENTRY = struct.Struct("<I")
_JUNK = 0x01  # freed frames are filled with this byte
_ADDRESS_LIMIT = 1 << 32


class VmError(Exception):
    """Raised where the kernel would fail a memory operation or panic."""


class FramePool:
    """Physical page frames handed out one page at a time.

    Frames come back filled with junk; callers zero them as they need.
    """

    def __init__(self, nframes: int = 1024, base: int = 0x400000) -> None:
        if nframes < 0:
            raise ValueError(f"negative frame count {nframes}")
        if base <= 0 or base % PGSIZE:
            raise ValueError(f"frame base {base:#x} must be a non-zero page boundary")
        if base + nframes * PGSIZE > _ADDRESS_LIMIT:
            raise ValueError("frames extend past the 32-bit physical address space")
        self.base = base
        self.nframes = nframes
        self._free = [base + i * PGSIZE for i in range(nframes)]
        self._frames: dict[int, bytearray] = {}

    @property
    def available(self) -> int:
        """Number of frames that can still be allocated."""
        return len(self._free)

    def alloc(self) -> int:
        """Take a frame and return its physical address."""
        if not self._free:
            raise VmError("out of memory")
        pa = self._free.pop()
        self._frames[pa] = bytearray([_JUNK]) * PGSIZE
        return pa

    def free(self, pa: int) -> None:
        """Give back a frame obtained from alloc."""
        if pa % PGSIZE or pa not in self._frames:
            raise VmError(f"kfree: {pa:#x} is not an allocated frame")
        del self._frames[pa]
        self._free.append(pa)

    def frame(self, pa: int) -> bytearray:
        """The contents of the allocated frame holding physical address pa."""
        try:
            return self._frames[pg_round_down(pa)]
        except KeyError:
            raise VmError(f"no allocated frame holds {pa:#x}") from None


def _spans(va: int, n: int) -> Iterator[tuple[int, int, int]]:
    if va < 0 or va + n > _ADDRESS_LIMIT:
        raise VmError(f"access of {n} bytes at {va:#x} leaves the address space")
    end = va + n
    while va < end:
        base = pg_round_down(va)
        offset = va - base
        length = min(PGSIZE - offset, end - va)
        yield base, offset, length
        va += length


class AddressSpace:
    """A page directory with its page tables and the user pages they map.

    kernel_map holds (virt, phys_start, phys_end, perm) entries that are mapped
    into every address space built from it, copies included.
    """

    def __init__(
        self,
        pool: FramePool,
        kernel_map: Iterable[tuple[int, int, int, int]] = (),
    ) -> None:
        self.pool = pool
        self.kernel_map = tuple(kernel_map)
        self.pgdir: int | None = self._zeroed_frame()
        try:
            for virt, phys_start, phys_end, perm in self.kernel_map:
                self.map_pages(virt, (phys_end - phys_start) & UINT_MASK, phys_start, perm)
        except VmError:
            self.free()
            raise

    def _directory(self) -> int:
        if self.pgdir is None:
            raise VmError("address space has been freed")
        return self.pgdir

    def _zeroed_frame(self) -> int:
        pa = self.pool.alloc()
        self.pool.frame(pa)[:] = bytes(PGSIZE)
        return pa

    def _entry(self, addr: int) -> int:
        return _ENTRY.unpack_from(self.pool.frame(addr), addr % PGSIZE)[0]

    def _set_entry(self, addr: int, value: int) -> None:
        _ENTRY.pack_into(self.pool.frame(addr), addr % PGSIZE, value & UINT_MASK)

    def walk(self, va: int, alloc: bool = False) -> int | None:
        """Physical address of the entry mapping va, creating its table if asked.

        Returns None when the page table is missing and alloc is false.
        """
        pde_at = self._directory() + pdx(va) * 4
        pde = self._entry(pde_at)
        if pde & PTE_P:
            pgtab = pte_addr(pde)
        else:
            if not alloc:
                return None
            pgtab = self._zeroed_frame()
            self._set_entry(pde_at, pgtab | PTE_P | PTE_W | PTE_U)
        return pgtab + ptx(va) * 4

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering [va, va + size) to frames starting at pa."""
        if size <= 0:
            raise VmError("cannot map an empty range")
        a = pg_round_down(va)
        last = pg_round_down(va + size - 1)
        pa &= UINT_MASK
        while True:
            pte_at = self.walk(a, alloc=True)
            if self._entry(pte_at) & PTE_P:
                raise VmError(f"remap at {a:#x}")
            self._set_entry(pte_at, pa | perm | PTE_P)
            if a == last:
                break
            a = (a + PGSIZE) & UINT_MASK
            pa = (pa + PGSIZE) & UINT_MASK

    def init_user(self, code: bytes) -> None:
        """Place the first program at address 0; it must fit in one page."""
        if len(code) >= PGSIZE:
            raise VmError("init_user: more than a page")
        mem = self._zeroed_frame()
        try:
            self.map_pages(0, PGSIZE, mem, PTE_W | PTE_U)
        except VmError:
            self.pool.free(mem)
            raise
        self.pool.frame(mem)[: len(code)] = code

    def load(self, addr: int, data: bytes, offset: int, sz: int) -> None:
        """Copy sz bytes of data from offset into already mapped pages at addr."""
        if addr % PGSIZE:
            raise VmError("load: addr must be page aligned")
        if offset < 0:
            raise ValueError(f"negative offset {offset}")
        for i in range(0, sz, PGSIZE):
            pte_at = self.walk(addr + i)
            if pte_at is None:
                raise VmError("load: address should exist")
            pa = pte_addr(self._entry(pte_at))
            n = min(sz - i, PGSIZE)
            chunk = data[offset + i : offset + i + n]
            if len(chunk) != n:
                raise VmError(f"load: short read at offset {offset + i}")
            self.pool.frame(pa)[:n] = chunk

    def alloc_user(self, oldsz: int, newsz: int) -> int:
        """Grow the user part from oldsz to newsz with zeroed pages; return the size."""
        if newsz >= KERNBASE:
            raise VmError(f"size {newsz:#x} reaches kernel space")
        if newsz < oldsz:
            return oldsz
        a = pg_round_up(oldsz)
        while a < newsz:
            try:
                mem = self.pool.alloc()
            except VmError as exc:
                self.dealloc_user(newsz, oldsz)
                raise VmError("alloc_user out of memory") from exc
            self.pool.frame(mem)[:] = bytes(PGSIZE)
            try:
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except VmError as exc:
                self.dealloc_user(newsz, oldsz)
                self.pool.free(mem)
                raise VmError("alloc_user out of memory (2)") from exc
            a += PGSIZE
        return newsz

    def dealloc_user(self, oldsz: int, newsz: int) -> int:
        """Free user pages to shrink from oldsz to newsz; return the new size."""
        if newsz >= oldsz:
            return oldsz
        a = pg_round_up(newsz)
        while a < oldsz:
            pte_at = self.walk(a)
            if pte_at is None:
                a = (pdx(a) + 1) << PDXSHIFT
                continue
            pte = self._entry(pte_at)
            if pte & PTE_P:
                pa = pte_addr(pte)
                if pa == 0:
                    raise VmError("kfree")
                self.pool.free(pa)
                self._set_entry(pte_at, 0)
            a += PGSIZE
        return newsz

    def free(self) -> None:
        """Free every user page, every page table and the directory itself."""
        if self.pgdir is None:
            raise VmError("free: no pgdir")
        self.dealloc_user(KERNBASE, 0)
        directory = self.pool.frame(self.pgdir)
        for (pde,) in _ENTRY.iter_unpack(bytes(directory)):
            if pde & PTE_P:
                self.pool.free(pte_addr(pde))
        self.pool.free(self.pgdir)
        self.pgdir = None

    def clear_user(self, uva: int) -> None:
        """Make the page at uva inaccessible to user code."""
        pte_at = self.walk(uva)
        if pte_at is None:
            raise VmError(f"clear_user: no page table for {uva:#x}")
        self._set_entry(pte_at, self._entry(pte_at) & ~PTE_U)

    def copy(self, sz: int) -> AddressSpace:
        """A new address space holding copies of the user pages from PGSIZE to sz."""
        child = AddressSpace(self.pool, self.kernel_map)
        try:
            for i in range(PGSIZE, sz, PGSIZE):
                pte_at = self.walk(i)
                if pte_at is None:
                    raise VmError("copy: pte should exist")
                pte = self._entry(pte_at)
                if not pte & PTE_P:
                    raise VmError("copy: page not present")
                mem = self.pool.alloc()
                self.pool.frame(mem)[:] = self.pool.frame(pte_addr(pte))
                try:
                    child.map_pages(i, PGSIZE, mem, pte_flags(pte))
                except VmError:
                    self.pool.free(mem)
                    raise
        except VmError:
            child.free()
            raise
        return child

    def uva2ka(self, uva: int) -> int | None:
        """Kernel address of the user page at uva, or None if user code cannot reach it."""
        pte_at = self.walk(uva)
        if pte_at is None:
            return None
        pte = self._entry(pte_at)
        if not pte & PTE_P or not pte & PTE_U:
            return None
        return p2v(pte_addr(pte))

    def copy_out(self, va: int, data: bytes) -> None:
        """Copy data to user address va, through user-accessible pages only."""
        buf = memoryview(bytes(data))
        while buf:
            va0 = pg_round_down(va)
            ka = self.uva2ka(va0)
            if ka is None:
                raise VmError(f"copy_out: {va0:#x} is not a user page")
            offset = va - va0
            n = min(PGSIZE - offset, len(buf))
            self.pool.frame(v2p(ka))[offset : offset + n] = buf[:n]
            buf = buf[n:]
            va = va0 + PGSIZE

    def _user_page(self, va: int, write: bool) -> bytearray:
        pte_at = self.walk(va)
        pte = 0 if pte_at is None else self._entry(pte_at)
        need = PTE_P | PTE_U | (PTE_W if write else 0)
        if pte & need != need:
            action = "writing" if write else "reading"
            raise VmError(f"page fault {action} {va:#x}")
        return self.pool.frame(pte_addr(pte))

    def read(self, va: int, n: int) -> bytes:
        """Load n bytes as user code would; a fault raises VmError."""
        if n < 0:
            raise ValueError(f"negative length {n}")
        out = bytearray()
        for page, offset, length in _spans(va, n):
            out += self._user_page(page, write=False)[offset : offset + length]
        return bytes(out)

    def write(self, va: int, data: bytes) -> None:
        """Store data as user code would; a fault raises VmError."""
        data = bytes(data)
        pos = 0
        for page, offset, length in _spans(va, len(data)):
            self._user_page(page, write=True)[offset : offset + length] = data[pos : pos + length]
            pos += length

    def _set_writable(self, addr: int, length: int, size: int, writable: bool) -> None:
        if length <= 0 or addr + length * PGSIZE > size:
            raise VmError("wrong len")
        if addr < 0 or addr % PGSIZE:
            raise VmError(f"wrong addr {addr:#x}")
        for va in range(addr, addr + length * PGSIZE, PGSIZE):
            pte_at = self.walk(va)
            pte = 0 if pte_at is None else self._entry(pte_at)
            if not (pte & PTE_U and pte & PTE_P):
                raise VmError(f"{va:#x} is not a present user page")
            self._set_entry(pte_at, (pte | PTE_W) if writable else (pte & ~PTE_W))

    def protect(self, addr: int, length: int, size: int) -> None:
        """Make length pages from addr read-only; size is the process size."""
        self._set_writable(addr, length, size, writable=False)

    def unprotect(self, addr: int, length: int, size: int) -> None:
        """Make length pages from addr writable again; size is the process size."""
        self._set_writable(addr, length, size, writable=True)
"""x86 memory management: paging arithmetic and descriptor encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

UINT_MASK = 0xFFFFFFFF

# Eflags register.
FL_IF = 0x00000200  # interrupt enable

# Control register flags.
CR0_PE = 0x00000001  # protection enable
CR0_WP = 0x00010000  # write protect
CR0_PG = 0x80000000  # paging
CR4_PSE = 0x00000010  # page size extension

# Segment selectors.
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

# Application segment type bits.
STA_X = 0x8  # executable segment
STA_W = 0x2  # writeable (non-executable segments)
STA_R = 0x2  # readable (executable segments)

# System segment type bits.
STS_T32A = 0x9  # available 32-bit TSS
STS_IG32 = 0xE  # 32-bit interrupt gate
STS_TG32 = 0xF  # 32-bit trap gate

# Paging.
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

# Page table/directory entry flags.
PTE_P = 0x001  # present
PTE_W = 0x002  # writeable
PTE_U = 0x004  # user
PTE_PS = 0x080  # page size


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & UINT_MASK) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & UINT_MASK) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & UINT_MASK


def pg_round_up(sz: int) -> int:
    """Round up to the next page boundary."""
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & UINT_MASK


def pg_round_down(a: int) -> int:
    """Round down to the containing page boundary."""
    return a & ~(PGSIZE - 1) & UINT_MASK


def pte_addr(pte: int) -> int:
    """Physical address held in a page table entry."""
    return pte & UINT_MASK & ~0xFFF


def pte_flags(pte: int) -> int:
    """Flag bits of a page table entry."""
    return pte & 0xFFF


def _pack_bits(obj: object, layout: tuple[tuple[str, int], ...]) -> bytes:
    word = 0
    shift = 0
    for name, width in layout:
        value = getattr(obj, name)
        if not 0 <= value < (1 << width):
            raise ValueError(f"{name}={value} does not fit in {width} bits")
        word |= value << shift
        shift += width
    return word.to_bytes(shift // 8, "little")


def _unpack_bits(data: bytes, layout: tuple[tuple[str, int], ...]) -> dict[str, int]:
    size = sum(width for _, width in layout) // 8
    if len(data) != size:
        raise ValueError(f"expected {size} bytes, got {len(data)}")
    word = int.from_bytes(data, "little")
    values = {}
    for name, width in layout:
        values[name] = word & ((1 << width) - 1)
        word >>= width
    return values


@dataclass
class SegmentDescriptor:
    """An 8-byte GDT segment descriptor."""

    lim_15_0: int = 0
    base_15_0: int = 0
    base_23_16: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    lim_19_16: int = 0
    avl: int = 0
    rsv1: int = 0
    db: int = 0
    g: int = 0
    base_31_24: int = 0

    _LAYOUT: ClassVar[tuple[tuple[str, int], ...]] = (
        ("lim_15_0", 16),
        ("base_15_0", 16),
        ("base_23_16", 8),
        ("type", 4),
        ("s", 1),
        ("dpl", 2),
        ("p", 1),
        ("lim_19_16", 4),
        ("avl", 1),
        ("rsv1", 1),
        ("db", 1),
        ("g", 1),
        ("base_31_24", 8),
    )

    @property
    def base(self) -> int:
        return self.base_15_0 | (self.base_23_16 << 16) | (self.base_31_24 << 24)

    @property
    def limit(self) -> int:
        raw = (self.lim_19_16 << 16) | self.lim_15_0
        return (raw << 12) | 0xFFF if self.g else raw

    def pack(self) -> bytes:
        """Encode as the 8 bytes the processor reads."""
        return _pack_bits(self, self._LAYOUT)

    @classmethod
    def unpack(cls, data: bytes) -> SegmentDescriptor:
        """Decode 8 bytes into a descriptor."""
        return cls(**_unpack_bits(bytes(data), cls._LAYOUT))


def seg(type_: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
    """A 32-bit segment with 4 KiB granularity."""
    base &= UINT_MASK
    limit &= UINT_MASK
    return SegmentDescriptor(
        lim_15_0=(limit >> 12) & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type_,
        s=1,
        dpl=dpl,
        p=1,
        lim_19_16=(limit >> 28) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=1,
        base_31_24=(base >> 24) & 0xFF,
    )


def seg16(type_: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
    """A segment with byte granularity."""
    base &= UINT_MASK
    limit &= UINT_MASK
    return SegmentDescriptor(
        lim_15_0=limit & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type_,
        s=1,
        dpl=dpl,
        p=1,
        lim_19_16=(limit >> 16) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=0,
        base_31_24=(base >> 24) & 0xFF,
    )


def seg_asm(type_: int, base: int, limit: int) -> bytes:
    """Bytes of a ring-0 32-bit segment as laid out by the boot loader."""
    base &= UINT_MASK
    limit &= UINT_MASK
    return struct.pack(
        "<HHBBBB",
        (limit >> 12) & 0xFFFF,
        base & 0xFFFF,
        (base >> 16) & 0xFF,
        0x90 | type_,
        0xC0 | ((limit >> 28) & 0xF),
        (base >> 24) & 0xFF,
    )


def null_seg_asm() -> bytes:
    """Bytes of the null segment descriptor."""
    return bytes(8)


@dataclass
class GateDescriptor:
    """An 8-byte IDT interrupt or trap gate."""

    off_15_0: int = 0
    cs: int = 0
    args: int = 0
    rsv1: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    off_31_16: int = 0

    _LAYOUT: ClassVar[tuple[tuple[str, int], ...]] = (
        ("off_15_0", 16),
        ("cs", 16),
        ("args", 5),
        ("rsv1", 3),
        ("type", 4),
        ("s", 1),
        ("dpl", 2),
        ("p", 1),
        ("off_31_16", 16),
    )

    @property
    def offset(self) -> int:
        return self.off_15_0 | (self.off_31_16 << 16)

    @property
    def is_trap(self) -> bool:
        return self.type == STS_TG32

    def pack(self) -> bytes:
        """Encode as the 8 bytes the processor reads."""
        return _pack_bits(self, self._LAYOUT)

    @classmethod
    def unpack(cls, data: bytes) -> GateDescriptor:
        """Decode 8 bytes into a gate."""
        return cls(**_unpack_bits(bytes(data), cls._LAYOUT))


def make_gate(istrap: bool, sel: int, off: int, dpl: int) -> GateDescriptor:
    """Build an interrupt gate, or a trap gate when istrap is true."""
    off &= UINT_MASK
    return GateDescriptor(
        off_15_0=off & 0xFFFF,
        cs=sel,
        args=0,
        rsv1=0,
        type=STS_TG32 if istrap else STS_IG32,
        s=0,
        dpl=dpl,
        p=1,
        off_31_16=off >> 16,
    )


_TRAPFRAME = struct.Struct("<8I8H3I2H2I2H")


@dataclass
class TrapFrame:
    """Registers saved on the kernel stack when a trap is taken."""

    edi: int = 0
    esi: int = 0
    ebp: int = 0
    oesp: int = 0
    ebx: int = 0
    edx: int = 0
    ecx: int = 0
    eax: int = 0
    gs: int = 0
    fs: int = 0
    es: int = 0
    ds: int = 0
    trapno: int = 0
    err: int = 0
    eip: int = 0
    cs: int = 0
    eflags: int = 0
    esp: int = 0
    ss: int = 0

    SIZE: ClassVar[int] = _TRAPFRAME.size

    def pack(self) -> bytes:
        """Encode in stack layout, padding fields zeroed."""
        try:
            return _TRAPFRAME.pack(
                self.edi, self.esi, self.ebp, self.oesp,
                self.ebx, self.edx, self.ecx, self.eax,
                self.gs, 0, self.fs, 0, self.es, 0, self.ds, 0,
                self.trapno, self.err, self.eip,
                self.cs, 0,
                self.eflags, self.esp,
                self.ss, 0,
            )
        except struct.error as exc:
            raise ValueError(f"trap frame field out of range: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> TrapFrame:
        """Decode a trap frame, ignoring padding."""
        if len(data) != cls.SIZE:
            raise ValueError(f"expected {cls.SIZE} bytes, got {len(data)}")
        (edi, esi, ebp, oesp, ebx, edx, ecx, eax,
         gs, _, fs, _, es, _, ds, _,
         trapno, err, eip,
         cs, _,
         eflags, esp,
         ss, _) = _TRAPFRAME.unpack(data)
        return cls(edi, esi, ebp, oesp, ebx, edx, ecx, eax, gs, fs, es, ds,
                   trapno, err, eip, cs, eflags, esp, ss)
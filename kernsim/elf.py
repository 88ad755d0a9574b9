"""ELF32 executable file and program headers."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

ELF_MAGIC = 0x464C457F  # "\x7FELF" in little endian

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_HEADER = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROGHDR = struct.Struct("<8I")


class ElfError(ValueError):
    """Raised for malformed or truncated ELF data."""


@dataclass
class ElfHeader:
    """The ELF file header."""

    magic: int = ELF_MAGIC
    elf: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    SIZE: ClassVar[int] = _HEADER.size

    @classmethod
    def parse(cls, data: bytes) -> ElfHeader:
        """Read the header at the start of data and check its magic."""
        if len(data) < cls.SIZE:
            raise ElfError(f"truncated ELF header: {len(data)} bytes")
        header = cls(*_HEADER.unpack_from(data, 0))
        if header.magic != ELF_MAGIC:
            raise ElfError(f"bad ELF magic {header.magic:#x}")
        return header

    def pack(self) -> bytes:
        """Encode the header."""
        if len(self.elf) != 12:
            raise ElfError("identification bytes must be 12 long")
        try:
            return _HEADER.pack(
                self.magic, bytes(self.elf), self.type, self.machine,
                self.version, self.entry, self.phoff, self.shoff, self.flags,
                self.ehsize, self.phentsize, self.phnum, self.shentsize,
                self.shnum, self.shstrndx,
            )
        except struct.error as exc:
            raise ElfError(f"header field out of range: {exc}") from exc


@dataclass
class ProgramHeader:
    """One program section header."""

    type: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    flags: int = 0
    align: int = 0

    SIZE: ClassVar[int] = _PROGHDR.size

    @property
    def loadable(self) -> bool:
        return self.type == ELF_PROG_LOAD

    @property
    def executable(self) -> bool:
        return bool(self.flags & ELF_PROG_FLAG_EXEC)

    @property
    def writable(self) -> bool:
        return bool(self.flags & ELF_PROG_FLAG_WRITE)

    @property
    def readable(self) -> bool:
        return bool(self.flags & ELF_PROG_FLAG_READ)

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> ProgramHeader:
        """Read a program header at the given offset."""
        if offset < 0 or offset + cls.SIZE > len(data):
            raise ElfError(f"program header at {offset} lies outside the file")
        return cls(*_PROGHDR.unpack_from(data, offset))

    def pack(self) -> bytes:
        """Encode the program header."""
        try:
            return _PROGHDR.pack(
                self.type, self.off, self.vaddr, self.paddr,
                self.filesz, self.memsz, self.flags, self.align,
            )
        except struct.error as exc:
            raise ElfError(f"program header field out of range: {exc}") from exc


def program_headers(data: bytes) -> list[ProgramHeader]:
    """Parse the file header of data and return all its program headers."""
    header = ElfHeader.parse(data)
    return [
        ProgramHeader.parse(data, header.phoff + i * ProgramHeader.SIZE)
        for i in range(header.phnum)
    ]
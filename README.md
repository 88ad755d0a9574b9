# kernsim

A pure-Python model of the core pieces of a small x86 teaching kernel and its
user-space helpers. It shows how paging, segment and gate descriptors, ELF
headers, a first-fit heap, kernel locks and system-call dispatch fit together,
and you do not need an emulator to run it.

## What is inside

- `kernsim.layout`: kernel parameters (`NPROC`, `NOFILE`, `MAXARG`, ...), the
  memory layout (`KERNBASE`, `PHYSTOP`, `v2p`, `p2v`), the enums `Syscall`,
  `Trap`, `OpenFlag` and `FileType`, and the dataclasses `RtcDate` and
  `ProcessStats` (with `set_tickets`).
- `kernsim.mmu`: paging helpers (`pdx`, `ptx`, `pgaddr`, `pg_round_up`,
  `pg_round_down`, `pte_addr`, `pte_flags`), segment descriptors (`seg`,
  `seg16`, `SegmentDescriptor`), the boot-loader descriptor bytes (`seg_asm`,
  `null_seg_asm`), interrupt and trap gates (`make_gate`, `GateDescriptor`) and
  `TrapFrame`. The descriptor and frame classes have `pack` and `unpack`.
- `kernsim.elf`: `ElfHeader`, `ProgramHeader` and `program_headers` for 32-bit
  ELF files. Truncated data, a bad magic number or an out-of-range field raise
  `ElfError`.
- `kernsim.rand`: `MersenneTwister`, which has `seed`, `genrand` (values in
  `[0, 0x7fffffff]`) and `random_at_most`. If you draw without seeding it first,
  it seeds itself with 4357.
- `kernsim.cstring`: C-style string helpers (`memcmp`, `strcmp`, `strncmp`,
  `strlen`, `strncpy`, `safestrcpy`, `atoi`, `gets`). They take `str` or
  bytes-like values, and a NUL byte ends a string.
- `kernsim.umalloc`: `Heap`, a first-fit free-list allocator over a simulated
  program break. It has `sbrk`, `malloc`, `free` and `free_blocks`, and raises
  `OutOfMemory` when the break cannot grow.
- `kernsim.locks`: `SpinLock` and `SleepLock` between threads. Both work as
  context managers. Misusing a `SpinLock` raises `LockError`.
- `kernsim.vm`: `FramePool` (simulated physical frames) and `AddressSpace`, a
  two-level page table. `AddressSpace` maps pages, grows and shrinks user
  memory, copies address spaces, can do user-mode `read` and `write` that fault
  with `VmError`, and has `protect` / `unprotect` to switch pages between
  read-only and writable.
- `kernsim.syscalls`: `UserProcess`, argument fetching (`fetch_int`,
  `fetch_str`, `arg_int`, `arg_ptr`, `arg_str`) and `SyscallTable`.
  `SyscallTable` dispatches on `eax`, turns a `SyscallError` into -1, logs
  unknown calls and counts each call made.
- `kernsim.shell`: a tokenizer (`tokens`) and a parser (`parse_command`) for
  the shell grammar. The grammar covers commands, `<`, `>`, `>>`, `|`, `;`, `&`
  and parentheses. `split_cd` recognises `cd` lines. Bad input raises
  `ShellSyntaxError`.
- `kernsim.wc`, `kernsim.rm`: small command-line tools.

## Example

```python
from kernsim.vm import FramePool, AddressSpace, VmError
from kernsim.mmu import PGSIZE

pool = FramePool()
space = AddressSpace(pool)
size = space.alloc_user(0, 2 * PGSIZE)
space.write(0, b"hello")
space.protect(0, 1, size)       # page 0 becomes read-only
print(space.read(0, 5))         # b'hello'
try:
    space.write(0, b"x")
except VmError as exc:
    print(exc)                  # page fault writing 0x0
```

```python
from kernsim.shell import parse_command

cmd = parse_command("cat < in.txt | wc > out.txt; echo done &")
print(cmd)
```

## Command-line tools

Count lines, words and bytes of each file, or of standard input when no file
is named:

    kernsim-wc file1.txt file2.txt

Remove files and empty directories. It stops at the first path that cannot be
removed:

    kernsim-rm file1.txt file2.txt

## What it does not do

kernsim models the individual pieces and does not boot or run anything. It has
no process scheduler, no file system, no trap or interrupt handling, and no
system-call handlers of its own: you register them on a `SyscallTable`
yourself. The shell module parses command lines but does not execute them.

## Running the tests

    pip install -e .[test]
    pytest
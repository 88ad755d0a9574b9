import pytest

from kernsim.umalloc import HEADER_SIZE, MIN_CORE_UNITS, Heap, OutOfMemory

START = 0x4000


def test_fresh_heap_has_no_free_blocks():
    heap = Heap(start=START)
    assert heap.free_blocks() == []
    assert heap.brk == START


def test_malloc_lies_inside_break():
    heap = Heap(start=START)
    addr = heap.malloc(100)
    assert START < addr
    assert addr + 100 <= heap.brk


def test_first_malloc_grows_by_minimum_core():
    heap = Heap(start=START)
    heap.malloc(1)
    assert heap.brk - START == MIN_CORE_UNITS * HEADER_SIZE


def test_allocations_do_not_overlap():
    heap = Heap(start=START)
    sizes = [10, 200, 1, 4000, 63, 64, 65]
    spans = sorted((heap.malloc(n), n) for n in sizes)
    for (a, n), (b, _) in zip(spans, spans[1:]):
        assert a + n <= b - HEADER_SIZE


def test_free_everything_coalesces_into_one_block():
    heap = Heap(start=START)
    addrs = [heap.malloc(n) for n in (16, 300, 7, 1024, 50)]
    for addr in addrs[::2] + addrs[1::2]:
        heap.free(addr)
    assert heap.free_blocks() == [(START, heap.brk - START)]


def test_free_then_malloc_reuses_block():
    heap = Heap(start=START)
    heap.malloc(40)
    addr = heap.malloc(40)
    heap.free(addr)
    assert heap.malloc(40) == addr


def test_double_free_rejected():
    heap = Heap(start=START)
    addr = heap.malloc(8)
    heap.free(addr)
    with pytest.raises(ValueError):
        heap.free(addr)


def test_free_unknown_address_rejected():
    heap = Heap(start=START)
    heap.malloc(8)
    with pytest.raises(ValueError):
        heap.free(START + 3)


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        Heap(start=START).malloc(-1)


def test_out_of_memory_when_break_cannot_grow():
    heap = Heap(start=0, limit=1024)
    with pytest.raises(OutOfMemory):
        heap.malloc(1)


def test_out_of_memory_after_exhaustion():
    heap = Heap(start=START, limit=START + MIN_CORE_UNITS * HEADER_SIZE)
    addr = heap.malloc(100)
    assert addr + 100 <= heap.limit
    with pytest.raises(OutOfMemory):
        heap.malloc(MIN_CORE_UNITS * HEADER_SIZE)


def test_large_request_grows_break_enough():
    heap = Heap(start=START)
    addr = heap.malloc(100000)
    assert addr + 100000 <= heap.brk
    heap.free(addr)
    assert heap.free_blocks() == [(START, heap.brk - START)]


def test_sbrk_returns_previous_break():
    heap = Heap(start=START, limit=START + 100)
    assert heap.sbrk(10) == START
    assert heap.sbrk(0) == START + 10
    assert heap.sbrk(-10) == START + 10
    assert heap.brk == START


def test_sbrk_limits():
    heap = Heap(start=START, limit=START + 100)
    with pytest.raises(OutOfMemory):
        heap.sbrk(101)
    with pytest.raises(ValueError):
        heap.sbrk(-1)


def test_bad_bounds_rejected():
    with pytest.raises(ValueError):
        Heap(start=100, limit=50)
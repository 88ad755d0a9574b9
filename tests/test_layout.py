import pytest

from kernsim.layout import (
    EXTMEM,
    KERNBASE,
    KERNLINK,
    NPROC,
    PHYSTOP,
    FileType,
    OpenFlag,
    ProcessStats,
    RtcDate,
    Syscall,
    Trap,
    IRQ_TIMER,
    p2v,
    v2p,
)


def test_v2p_of_kernbase_is_zero():
    assert v2p(KERNBASE) == 0


def test_p2v_of_zero_is_kernbase():
    assert p2v(0) == KERNBASE


@pytest.mark.parametrize("pa", [0, 0x1000, EXTMEM, PHYSTOP - 1, PHYSTOP])
def test_v2p_p2v_round_trip(pa):
    assert v2p(p2v(pa)) == pa


def test_kernlink_translates_to_extmem():
    assert v2p(KERNLINK) == EXTMEM


def test_v2p_wraps_like_unsigned():
    assert v2p(0) == p2v(0)


def test_syscall_lookup_by_number():
    assert Syscall(5) is Syscall.READ
    assert Syscall(22) is Syscall.GETREADCOUNT
    assert Syscall(29) is Syscall.JOIN


def test_syscall_numbers_are_contiguous():
    looked_up = [Syscall(n) for n in range(1, 30)]
    assert [int(s) for s in looked_up] == list(range(1, 30))
    assert len(set(looked_up)) == 29


def test_unknown_syscall_number_rejected():
    with pytest.raises(ValueError):
        Syscall(0)


def test_timer_interrupt_vector():
    assert Trap(Trap.IRQ0 + IRQ_TIMER) is Trap.IRQ0
    assert Trap(64) is Trap.SYSCALL


def test_open_flags_combine():
    mode = OpenFlag(0x201)
    assert mode == OpenFlag.WRONLY | OpenFlag.CREATE
    assert OpenFlag.CREATE in mode
    assert OpenFlag.RDWR not in mode
    assert OpenFlag(0x000) == OpenFlag.RDONLY


def test_file_type_lookup():
    assert FileType(1) is FileType.DIR
    assert FileType(3) is FileType.DEV


def test_rtcdate_defaults_and_equality():
    date = RtcDate(year=2024, month=5)
    assert date.second == 0
    assert date == RtcDate(0, 0, 0, 0, 5, 2024)


def test_process_stats_has_one_entry_per_slot():
    stats = ProcessStats()
    assert len(stats.inuse) == NPROC
    assert len(stats.ticks) == NPROC
    assert sum(stats.tickets) == 0


def test_set_tickets_updates_only_that_slot():
    stats = ProcessStats()
    stats.set_tickets(3, 30)
    assert stats.tickets[3] == 30
    assert sum(stats.tickets) == 30


@pytest.mark.parametrize("slot", [-1, NPROC])
def test_set_tickets_rejects_bad_slot(slot):
    stats = ProcessStats()
    with pytest.raises(IndexError):
        stats.set_tickets(slot, 1)


def test_process_stats_rejects_wrong_length():
    with pytest.raises(ValueError):
        ProcessStats(inuse=[0] * (NPROC - 1))
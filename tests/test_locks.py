import threading

import pytest

from kernsim.locks import LockError, SleepLock, SpinLock


def _run(fn):
    result = {}

    def target():
        try:
            result["value"] = fn()
        except Exception as exc:  # reported back to the test thread
            result["error"] = exc

    thread = threading.Thread(target=target)
    thread.start()
    thread.join(timeout=5)
    return result


def test_spinlock_acquire_and_release():
    lock = SpinLock("time")
    assert not lock.holding()
    lock.acquire()
    assert lock.holding()
    assert lock.locked
    lock.release()
    assert not lock.holding()
    assert not lock.locked


def test_spinlock_double_acquire_raises():
    lock = SpinLock("x")
    lock.acquire()
    with pytest.raises(LockError):
        lock.acquire()
    lock.release()


def test_spinlock_release_unheld_raises():
    with pytest.raises(LockError):
        SpinLock("x").release()


def test_spinlock_context_manager():
    lock = SpinLock("ctx")
    with lock as held:
        assert held.holding()
    assert not lock.holding()


def test_spinlock_records_call_stack_while_held():
    lock = SpinLock("pcs")
    lock.acquire()
    names = [frame.name for frame in lock.pcs]
    assert "test_spinlock_records_call_stack_while_held" in names
    assert len(lock.pcs) <= 10
    lock.release()
    assert lock.pcs == ()


def test_spinlock_other_thread_does_not_hold():
    lock = SpinLock("x")
    with lock:
        assert _run(lock.holding) == {"value": False}
        result = _run(lock.release)
        assert isinstance(result["error"], LockError)
    assert not lock.locked


def test_spinlock_blocks_until_released():
    lock = SpinLock("x")
    got_it = threading.Event()
    seen = []

    def worker():
        lock.acquire()
        seen.append(lock.holding())
        got_it.set()
        lock.release()
        seen.append(lock.holding())

    lock.acquire()
    thread = threading.Thread(target=worker)
    thread.start()
    assert not got_it.wait(timeout=0.1)
    assert seen == []
    lock.release()
    thread.join(timeout=5)
    assert got_it.is_set()
    assert seen == [True, False]
    assert not lock.locked


def test_sleeplock_holding():
    lock = SleepLock("inode")
    assert not lock.holding()
    with lock:
        assert lock.holding()
        assert lock.holder == threading.get_ident()
        assert _run(lock.holding) == {"value": False}
    assert not lock.locked
    assert lock.holder == 0


def test_sleeplock_mutual_exclusion():
    lock = SleepLock("counter")
    state = {"count": 0}
    held = []

    def worker():
        for _ in range(500):
            with lock:
                held.append(lock.holding())
                value = state["count"]
                state["count"] = value + 1

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    assert state["count"] == 4 * 500
    assert len(held) == 4 * 500
    assert all(held)
    assert not lock.locked
    assert lock.holder == 0


def test_sleeplock_waiter_wakes_on_release():
    lock = SleepLock("buf")
    got_it = threading.Event()
    seen = []

    def worker():
        with lock:
            seen.append((lock.holding(), lock.holder == threading.get_ident()))
            got_it.set()

    lock.acquire()
    thread = threading.Thread(target=worker)
    thread.start()
    assert not got_it.wait(timeout=0.1)
    assert seen == []
    lock.release()
    thread.join(timeout=5)
    assert got_it.is_set()
    assert seen == [(True, True)]
    assert not lock.locked


def test_sleeplock_release_does_not_check_holder():
    lock = SleepLock("buf")
    lock.acquire()
    assert _run(lock.release) == {"value": None}
    assert not lock.locked
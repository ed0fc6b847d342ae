import threading

from utils.thread_manager import (
    AtomicCounter,
    FirstErrorSlot,
    ThreadManager,
    WorkerContext,
    default_pool_size,
    run_worker_pool,
)


def test_pool_size_is_half_the_cpus(monkeypatch):
    monkeypatch.setattr("utils.thread_manager._POOL_SIZE", None)
    monkeypatch.setattr("utils.thread_manager.os.cpu_count", lambda: 8)
    assert default_pool_size() == 4

    # Computed once per process
    monkeypatch.setattr("utils.thread_manager.os.cpu_count", lambda: 1)
    assert default_pool_size() == 4

    monkeypatch.setattr("utils.thread_manager._POOL_SIZE", None)
    assert default_pool_size() == 1


def test_first_error_wins():
    slot = FirstErrorSlot()
    first, second = ValueError("first"), ValueError("second")
    assert slot.offer(first)
    assert not slot.offer(second)
    assert slot.error is first


def test_fail_sets_stop_event():
    context = WorkerContext()
    context.fail(RuntimeError("boom"))
    context.fail(RuntimeError("later"))
    assert context.stopped
    assert str(context.fatal.error) == "boom"


def test_worker_pool_runs_every_worker_and_joins():
    counter = AtomicCounter()
    names = set()
    lock = threading.Lock()

    def target():
        counter.add(1)
        with lock:
            names.add(threading.current_thread().name)

    manager = run_worker_pool("test_worker", 3, target)

    assert counter.value == 3
    assert names == {"test_worker-0", "test_worker-1", "test_worker-2"}
    assert manager.alive_threads == []


def test_prune_drops_only_finished_threads():
    manager = ThreadManager()
    release = threading.Event()
    finished = threading.Thread(target=lambda: None)
    running = threading.Thread(target=release.wait)
    pending = threading.Thread(target=lambda: None)
    for name, thread in (("finished", finished), ("running", running), ("pending", pending)):
        manager.register(name, thread)

    finished.start()
    finished.join()
    running.start()
    try:
        assert manager.prune() == 1
        assert [m.name for m in manager.threads] == ["running", "pending"]
    finally:
        release.set()
        running.join()

    assert manager.prune() == 1
    assert [m.name for m in manager.threads] == ["pending"]

import threading

from state.update_progress import ProgressPublisher, UpdateProgress


def test_no_progress_before_start():
    assert ProgressPublisher().snapshot() is None


def test_progress_is_clamped_to_total():
    progress = ProgressPublisher()
    progress.start(10)
    progress.add(7)
    progress.add(7)
    assert progress.snapshot() == UpdateProgress(10, 10)
    assert progress.snapshot().fraction == 1.0


def test_set_total_keeps_current():
    progress = ProgressPublisher()
    progress.start(100)
    progress.add(40)
    progress.set_total(200)
    assert progress.snapshot() == UpdateProgress(40, 200)
    progress.set_total(10)
    assert progress.snapshot() == UpdateProgress(40, 40)


def test_clear():
    progress = ProgressPublisher()
    progress.start(5)
    progress.clear()
    assert progress.snapshot() is None
    progress.add(3)
    assert progress.snapshot() is None


def test_concurrent_updates_never_go_backwards():
    progress = ProgressPublisher()
    progress.start(8 * 1000)
    samples = []
    done = threading.Event()

    def sampler():
        while not done.is_set():
            samples.append(progress.snapshot())

    def writer():
        for _ in range(1000):
            progress.add(1)

    reader = threading.Thread(target=sampler)
    reader.start()
    writers = [threading.Thread(target=writer) for _ in range(8)]
    for t in writers:
        t.start()
    for t in writers:
        t.join()
    done.set()
    reader.join()

    currents = [s.current for s in samples]
    assert currents == sorted(currents)
    assert all(s.current <= s.total for s in samples)
    assert progress.snapshot() == UpdateProgress(8000, 8000)

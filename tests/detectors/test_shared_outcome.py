from __future__ import annotations

import threading

from spamscan.detectors import SharedOutcome


def test_starts_false_and_flips_once() -> None:
    cell = SharedOutcome()
    assert cell.value is False
    assert cell.mark_positive() is True
    assert cell.mark_positive() is False
    assert cell.value is True
    assert bool(cell) is True


def test_never_goes_back_to_false() -> None:
    cell = SharedOutcome()
    cell.mark_positive()
    assert cell.compare_and_set(True, False) is False
    assert cell.value is True


def test_only_one_thread_wins() -> None:
    cell = SharedOutcome()
    start = threading.Barrier(16)
    wins = []

    def worker() -> None:
        start.wait()
        if cell.mark_positive():
            wins.append(threading.get_ident())

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(wins) == 1

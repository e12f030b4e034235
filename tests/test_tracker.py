import threading

import numpy as np

from sparse_oa.oa.tracker import IncumbentTracker


def _support(p, idx):
    s = np.zeros(p)
    s[list(idx)] = 1.0
    return s


def test_observe_strict_improvement_only():
    tr = IncumbentTracker(10.0, _support(4, [0]))
    assert tr.observe(_support(4, [1]), 10.0) is False
    assert tr.best_solution.tolist() == [1.0, 0.0, 0.0, 0.0]
    assert tr.observe(_support(4, [2]), 9.5) is True
    assert tr.best_obj == 9.5
    assert tr.best_solution.tolist() == [0.0, 0.0, 1.0, 0.0]
    assert tr.observe(_support(4, [3]), 12.0) is False
    assert tr.best_obj == 9.5


def test_best_obj_is_running_minimum_for_random_sequences():
    rng = np.random.default_rng(0)
    for _ in range(20):
        values = rng.normal(size=50)
        tr = IncumbentTracker(values[0], _support(3, [0]))
        history = [tr.best_obj]
        for v in values[1:]:
            tr.observe(_support(3, [1]), v)
            history.append(tr.best_obj)
        assert all(b <= a for a, b in zip(history, history[1:]))
        assert tr.best_obj == values.min()


def test_adversarial_sequence_and_nan_never_improve():
    tr = IncumbentTracker(1.0, _support(2, [0]))
    for v in [5.0, 4.0, 3.0, 2.0, 1.0, float("nan"), float("inf")]:
        assert tr.observe(_support(2, [1]), v) is False
    assert tr.best_obj == 1.0
    assert tr.observe(_support(2, [1]), float("-inf")) is True


def test_stored_support_is_not_aliased():
    s = _support(3, [0])
    tr = IncumbentTracker(5.0, s)
    s[:] = 1.0
    assert tr.best_solution.tolist() == [1.0, 0.0, 0.0]

    cand = _support(3, [2])
    tr.observe(cand, 1.0)
    cand[:] = 0.0
    out = tr.best_solution
    out[:] = 7.0
    assert tr.best_solution.tolist() == [0.0, 0.0, 1.0]


def test_cut_counter_starts_at_one():
    tr = IncumbentTracker(0.0, _support(2, []))
    assert tr.cut_count == 1
    assert tr.next_cut() == 2
    obj, sol, count = tr.snapshot()
    assert (obj, count) == (0.0, 2)
    assert sol.tolist() == [0.0, 0.0]


def test_concurrent_observers_keep_global_minimum_and_count():
    n_threads, per_thread, p = 8, 300, 6
    rng = np.random.default_rng(3)
    values = rng.uniform(0.0, 100.0, size=(n_threads, per_thread))
    tr = IncumbentTracker(1000.0, _support(p, [0]))

    def worker(i):
        for v in values[i]:
            tr.next_cut()
            tr.observe(_support(p, [i % p]), v)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert tr.best_obj == values.min()
    winner = int(np.argmin(values.min(axis=1)))
    assert tr.best_solution.tolist() == _support(p, [winner % p]).tolist()
    assert tr.cut_count == 1 + n_threads * per_thread

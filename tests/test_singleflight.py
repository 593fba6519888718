import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from kamacache.singleflight import SingleFlight


def test_returns_function_result():
    flight = SingleFlight()
    assert flight.do("k", lambda: 42) == 42


def test_sequential_calls_run_again():
    flight = SingleFlight()
    runs = []
    flight.do("k", lambda: runs.append(1))
    flight.do("k", lambda: runs.append(1))
    assert len(runs) == 2


def test_exception_propagates():
    flight = SingleFlight()

    def boom():
        raise RuntimeError("fail")

    with pytest.raises(RuntimeError, match="fail"):
        flight.do("k", boom)
    assert flight.do("k", lambda: "recovered") == "recovered"


def test_concurrent_callers_share_one_call():
    flight = SingleFlight()
    entered = threading.Event()
    release = threading.Event()
    follower_runs = []

    def slow():
        entered.set()
        release.wait(5)
        return "shared"

    def follower_fn():
        follower_runs.append(1)
        return "own"

    with ThreadPoolExecutor(max_workers=5) as pool:
        leader = pool.submit(flight.do, "key", slow)
        assert entered.wait(5)
        followers = [pool.submit(flight.do, "key", follower_fn) for _ in range(4)]
        time.sleep(0.2)
        release.set()
        results = [leader.result(5)] + [future.result(5) for future in followers]

    assert results == ["shared"] * 5
    assert follower_runs == []


def test_waiters_receive_leader_error():
    flight = SingleFlight()
    entered = threading.Event()
    release = threading.Event()

    def failing():
        entered.set()
        release.wait(5)
        raise ValueError("bad")

    with ThreadPoolExecutor(max_workers=2) as pool:
        leader = pool.submit(flight.do, "key", failing)
        assert entered.wait(5)
        follower = pool.submit(flight.do, "key", failing)
        time.sleep(0.2)
        release.set()
        with pytest.raises(ValueError, match="bad"):
            leader.result(5)
        with pytest.raises(ValueError, match="bad"):
            follower.result(5)
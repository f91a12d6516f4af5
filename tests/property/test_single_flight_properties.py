"""
Property-based tests for single-flight coalescing.

**Property 11: Coalesced Execution**
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from hypothesis import given, settings, strategies as st

from stitch_sdk.core.single_flight import SingleFlight


class TestCoalescedExecutionProperties:
    """Property tests for SingleFlight."""

    @given(calls=st.integers(min_value=1, max_value=20), value=st.text(max_size=20))
    @settings(max_examples=50)
    def test_sequential_calls_each_execute(self, calls: int, value: str) -> None:
        """
        Property 11: Coalesced Execution
        Calls that do not overlap SHALL each run, and each SHALL return
        its own result unchanged.
        """
        flight: SingleFlight[str] = SingleFlight()

        results = [flight.do(lambda: value) for _ in range(calls)]

        assert results == [value] * calls
        assert flight.executions == calls

    @given(callers=st.integers(min_value=2, max_value=10))
    @settings(max_examples=15, deadline=None)
    def test_overlapping_calls_share_one_execution(self, callers: int) -> None:
        """
        Property 11: Coalesced Execution
        For any number of callers that arrive while an execution is in
        flight, the function SHALL run once and every caller SHALL see
        its result.
        """
        flight: SingleFlight[int] = SingleFlight()
        release = threading.Event()
        started = threading.Event()
        runs = 0

        def work() -> int:
            nonlocal runs
            runs += 1
            started.set()
            release.wait(5)
            return 42

        with ThreadPoolExecutor(max_workers=callers) as pool:
            leader = pool.submit(flight.do, work)
            started.wait(5)
            followers = [pool.submit(flight.do, work) for _ in range(callers - 1)]
            while True:
                call = flight._call
                if call is not None and call.waiters >= callers - 1:
                    break
                time.sleep(0.001)
            release.set()
            results = [f.result(5) for f in [leader, *followers]]

        assert results == [42] * callers
        assert runs == 1

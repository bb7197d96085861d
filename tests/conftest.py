"""Shared test fixtures for synceta."""

import asyncio
from collections.abc import Iterable

from synceta.config import Config, SamplingConfig
from synceta.estimator import EstimatorSnapshot


class ScriptedSource:
    """MetricSource returning scripted readings, repeating the last one.

    An exception instance in the script is raised when reached.
    """

    def __init__(self, values: Iterable[int | Exception]) -> None:
        self._values = list(values)
        self.calls = 0

    def current_dirty_bytes(self) -> int:
        index = min(self.calls, len(self._values) - 1)
        self.calls += 1
        value = self._values[index]
        if isinstance(value, Exception):
            raise value
        return value


async def wait_until(condition, timeout=2.0, interval=0.005):
    """Wait until condition() returns True, or timeout."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            raise TimeoutError(f"Condition not met within {timeout}s")
        await asyncio.sleep(interval)


def make_config(samples_per_second: int = 100, window_seconds: int = 2) -> Config:
    """Create a Config with a fast sample rate for tests."""
    return Config(
        sampling=SamplingConfig(
            samples_per_second=samples_per_second,
            window_seconds=window_seconds,
        )
    )


MEMINFO_SAMPLE = b"""MemTotal:       16303480 kB
MemFree:         8054296 kB
MemAvailable:   12104356 kB
Buffers:          250764 kB
Cached:          3860604 kB
Dirty:              1536 kB
Writeback:             0 kB
HugePages_Total:       0
"""


def make_snapshot(**kwargs) -> EstimatorSnapshot:
    """Create an EstimatorSnapshot with sensible defaults for testing."""
    defaults = {
        "newest": 400,
        "oldest": 600,
        "biggest_size": 1000,
        "done_bytes": 600,
        "percent": 60,
        "throughput": 100.0,
        "eta_seconds": 4.0,
        "valid_count": 2,
        "window_seconds": 2.0,
    }
    defaults.update(kwargs)
    return EstimatorSnapshot(**defaults)

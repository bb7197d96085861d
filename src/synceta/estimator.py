"""Progress estimation over a short window of dirty-bytes samples.

The history is a fixed ring of the most recent samples. Throughput is the
drop between the oldest and newest sample in the ring divided by the window
duration, so it follows changes in flush speed instead of averaging over the
whole run. The peak sample is the 100% baseline for completion percentage.
"""

from dataclasses import dataclass


class ArithmeticIndeterminate(ArithmeticError):
    """A ratio was requested against a zero baseline."""


@dataclass(frozen=True)
class EstimatorSnapshot:
    """Derived progress figures for one tick.

    eta_seconds is None when no forward progress was made over the window
    (throughput <= 0). It is never negative or infinite.
    """

    newest: int
    oldest: int
    biggest_size: int
    done_bytes: int
    percent: int
    throughput: float  # bytes per second, negative when dirtying outpaces flushing
    eta_seconds: float | None
    valid_count: int
    window_seconds: float

    @property
    def eta_known(self) -> bool:
        """Return True if an ETA could be derived."""
        return self.eta_seconds is not None


class SampleHistory:
    """Fixed-capacity ring of the most recent samples.

    head points at the newest sample. sample_index is the zero-based index
    of the newest sample since construction (-1 while empty).
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._slots: list[int | None] = [None] * capacity
        self.head = 0
        self.sample_index = -1

    @property
    def capacity(self) -> int:
        """Return maximum number of samples the history can hold."""
        return len(self._slots)

    @property
    def valid_count(self) -> int:
        """Return number of samples currently inside the window."""
        return min(self.sample_index + 1, self.capacity)

    @property
    def is_empty(self) -> bool:
        """Return True if nothing has been written yet."""
        return self.sample_index < 0

    @property
    def newest(self) -> int | None:
        """Most recently written sample, or None if empty."""
        if self.is_empty:
            return None
        return self._slots[self.head]

    @property
    def oldest(self) -> int | None:
        """Oldest sample still inside the window, or None if empty."""
        if self.is_empty:
            return None
        n = self.capacity
        return self._slots[(self.head + n + 1 - self.valid_count) % n]

    @property
    def slots(self) -> list[int | None]:
        """Read-only access to the raw ring (returns a copy)."""
        return list(self._slots)

    def push(self, value: int) -> None:
        """Write value into the next slot and make it the newest."""
        if not self.is_empty:
            self.head = (self.head + 1) % self.capacity
        self._slots[self.head] = value
        self.sample_index += 1


def completion_percent(done: int, baseline: int) -> int:
    """Return done/baseline as a whole percentage clamped to [0, 100].

    Halves round up (62.5% is 63%).

    Raises:
        ArithmeticIndeterminate: If baseline is zero.
    """
    if baseline == 0:
        raise ArithmeticIndeterminate("percent of a zero baseline")
    return max(0, min(100, (done * 200 + baseline) // (2 * baseline)))


class ProgressEstimator:
    """Windowed progress, throughput and ETA for a draining counter.

    Owned by a single sampling task; not thread-safe.
    """

    def __init__(self, capacity: int, tick_interval: float) -> None:
        if tick_interval <= 0:
            raise ValueError(f"tick_interval must be > 0, got {tick_interval}")
        self.history = SampleHistory(capacity)
        self.tick_interval = tick_interval
        self.biggest_size = 0

    @classmethod
    def from_rate(cls, samples_per_second: int, window_seconds: int) -> "ProgressEstimator":
        """Build an estimator sized for the given sample rate and window."""
        return cls(
            capacity=samples_per_second * window_seconds,
            tick_interval=1 / samples_per_second,
        )

    @property
    def ticks(self) -> int:
        """Number of samples recorded so far."""
        return self.history.sample_index + 1

    @property
    def finished(self) -> bool:
        """Return True once the newest recorded sample is zero.

        The flush has drained the counter; further readings are not needed.
        """
        return self.history.newest == 0

    def record_sample(self, value: int) -> bool:
        """Fold a new reading into the history.

        A zero newest sample means the flush already finished and the
        sampler has not been stopped yet. In that case nothing changes.

        Returns:
            True if the sample was recorded, False if it was skipped.
        """
        if value < 0:
            raise ValueError(f"dirty byte count cannot be negative, got {value}")

        if self.finished:
            return False

        first = self.history.is_empty
        self.history.push(value)
        self.biggest_size = value if first else max(self.biggest_size, value)
        return True

    def snapshot(self) -> EstimatorSnapshot:
        """Compute progress figures from the current history."""
        history = self.history
        if history.is_empty:
            return EstimatorSnapshot(
                newest=0,
                oldest=0,
                biggest_size=0,
                done_bytes=0,
                percent=0,
                throughput=0.0,
                eta_seconds=None,
                valid_count=0,
                window_seconds=0.0,
            )

        newest = history.newest
        oldest = history.oldest
        valid_count = history.valid_count
        window = self.tick_interval * valid_count

        done = max(0, self.biggest_size - newest)
        try:
            percent = completion_percent(done, self.biggest_size)
        except ArithmeticIndeterminate:
            percent = 0

        throughput = (oldest - newest) / window
        eta = newest / throughput if throughput > 0 else None

        return EstimatorSnapshot(
            newest=newest,
            oldest=oldest,
            biggest_size=self.biggest_size,
            done_bytes=done,
            percent=percent,
            throughput=throughput,
            eta_seconds=eta,
            valid_count=valid_count,
            window_seconds=window,
        )

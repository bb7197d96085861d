"""Periodic dirty-bytes sampler rendering a live progress line."""

import asyncio
import sys
from enum import Enum
from typing import TextIO

import structlog

from synceta.estimator import EstimatorSnapshot, ProgressEstimator
from synceta.formatting import format_progress
from synceta.logging import configure_library
from synceta.meminfo import MetricSource, MetricSourceError

log = structlog.get_logger()


class LoopState(Enum):
    """Lifecycle of a SampleLoop."""

    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class ProgressLine:
    """Single terminal line overwritten in place on every render."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self._last_len = 0
        self._finished = False

    def render(self, snapshot: EstimatorSnapshot) -> None:
        """Overwrite the line with a new snapshot and flush the stream."""
        text = format_progress(snapshot)
        padding = " " * max(0, self._last_len - len(text))
        self.stream.write(f"\r{text}{padding}")
        self.stream.flush()
        self._last_len = len(text)

    def finish(self) -> None:
        """Terminate the line with a newline. Only the first call writes."""
        if self._finished:
            return
        self._finished = True
        self.stream.write("\n")
        self.stream.flush()


class SampleLoop:
    """Samples a MetricSource at a fixed interval until stopped.

    Each tick reads the source, records the reading and renders a snapshot.
    A tick has no await inside it, so stop() only ever takes effect in the
    sleep between ticks and a render is never cut short.
    """

    def __init__(
        self,
        source: MetricSource,
        estimator: ProgressEstimator,
        *,
        interval: float,
        line: ProgressLine | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self.source = source
        self.estimator = estimator
        self.interval = interval
        self.line = line or ProgressLine()
        self.state = LoopState.RUNNING
        self.last_snapshot: EstimatorSnapshot | None = None
        self._stop_event = asyncio.Event()

    @property
    def ticks(self) -> int:
        """Number of samples recorded (skipped readings excluded)."""
        return self.estimator.ticks

    def stop(self) -> None:
        """Ask the loop to exit after the current tick."""
        if self.state is LoopState.RUNNING:
            self.state = LoopState.STOPPING
        self._stop_event.set()

    def _tick(self) -> None:
        """Read, record and render one sample.

        Once the counter has reached zero the source is no longer read: it
        may already be quiesced while the flush call is returning.
        """
        if self.estimator.finished:
            return
        self.estimator.record_sample(self.source.current_dirty_bytes())
        snapshot = self.estimator.snapshot()
        self.last_snapshot = snapshot
        self.line.render(snapshot)

    async def run(self) -> None:
        """Sample until stop() is called.

        Raises:
            MetricSourceError: If the source fails. The loop is not retried.
        """
        configure_library()
        log.debug("sample_loop_started", interval=self.interval, source=repr(self.source))
        try:
            self._tick()
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                    break  # Stop requested during sleep
                except asyncio.TimeoutError:
                    pass  # Normal timeout, take the next sample
                self._tick()
        except MetricSourceError as e:
            log.error("sample_failed", error=str(e), ticks=self.ticks)
            raise
        finally:
            self.state = LoopState.STOPPED
            log.debug("sample_loop_stopped", ticks=self.ticks)

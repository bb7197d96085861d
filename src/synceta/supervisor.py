"""Runs the page-cache flush while a SampleLoop reports its progress."""

import asyncio
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

import structlog

from synceta.config import Config
from synceta.estimator import EstimatorSnapshot, ProgressEstimator
from synceta.logging import configure_library
from synceta.meminfo import MeminfoSource, MetricSource, MetricSourceError
from synceta.sampler import ProgressLine, SampleLoop

log = structlog.get_logger()


@dataclass(frozen=True)
class SessionResult:
    """Outcome of one flush session."""

    elapsed: float  # Wall-clock seconds the flush took
    snapshot: EstimatorSnapshot | None  # Last rendered snapshot
    ticks: int  # Samples recorded


class Supervisor:
    """Starts the sampler, performs the flush, then stops and joins the sampler.

    The flush always runs to completion. A sampler failure is re-raised only
    after the flush returned and the sampler was joined.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        source: MetricSource | None = None,
        flush: Callable[[], None] | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.config = config or Config()
        sampling = self.config.sampling
        if source is None:
            source = MeminfoSource(Path(sampling.meminfo_path), sampling.meminfo_field)
        self.source = source
        self.flush = flush if flush is not None else os.sync
        self.stream = stream

    async def run(self) -> SessionResult:
        """Flush the page cache with live progress.

        Raises:
            MetricSourceError: If sampling failed. Raised after the flush
                completed and the sampler was joined.
            Exception: Whatever the flush raised. Takes precedence over a
                sampler error, which is then only logged.
        """
        configure_library()
        sampling = self.config.sampling
        estimator = ProgressEstimator.from_rate(
            sampling.samples_per_second, sampling.window_seconds
        )
        line = ProgressLine(self.stream)
        loop = SampleLoop(self.source, estimator, interval=sampling.interval, line=line)

        log.info(
            "flush_starting",
            samples_per_second=sampling.samples_per_second,
            window_seconds=sampling.window_seconds,
            source=repr(self.source),
        )
        started = time.monotonic()
        task = asyncio.create_task(loop.run())
        try:
            await asyncio.to_thread(self.flush)
        finally:
            elapsed = time.monotonic() - started
            loop.stop()
            sampler_error = await _join(task, line)

        if sampler_error is not None:
            raise sampler_error

        log.info("flush_completed", elapsed=round(elapsed, 3), ticks=loop.ticks)
        return SessionResult(elapsed=elapsed, snapshot=loop.last_snapshot, ticks=loop.ticks)


async def _join(task: asyncio.Task, line: ProgressLine) -> MetricSourceError | None:
    """Wait for the sampler task to exit and terminate the progress line.

    Returns the sampler's source error instead of raising it, so a flush
    error already propagating is not replaced.
    """
    try:
        await task
    except MetricSourceError as e:
        return e
    finally:
        line.finish()
    return None


def run_sync(
    config: Config | None = None,
    *,
    source: MetricSource | None = None,
    flush: Callable[[], None] | None = None,
    stream: TextIO | None = None,
) -> SessionResult:
    """Run a flush session to completion on a fresh event loop."""
    supervisor = Supervisor(config, source=source, flush=flush, stream=stream)
    return asyncio.run(supervisor.run())

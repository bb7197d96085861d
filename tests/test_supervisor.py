"""Tests for the flush supervisor."""

import io
import threading
import time
from pathlib import Path

import pytest
import structlog

from synceta.config import Config
from synceta.meminfo import MeminfoSource, SourceUnavailable
from synceta.supervisor import SessionResult, Supervisor, run_sync
from tests.conftest import ScriptedSource, make_config


class DrainingFlush:
    """Blocking flush that lowers a shared counter while it runs."""

    def __init__(self, start: int, step: int, delay: float = 0.01) -> None:
        self.remaining = start
        self.step = step
        self.delay = delay
        self.finished = threading.Event()

    def __call__(self) -> None:
        while self.remaining > 0:
            time.sleep(self.delay)
            self.remaining = max(0, self.remaining - self.step)
        self.finished.set()

    def current_dirty_bytes(self) -> int:
        return self.remaining


def test_default_source_uses_config_path() -> None:
    """Without an explicit source, the configured meminfo file is sampled."""
    config = Config()
    supervisor = Supervisor(config)
    assert isinstance(supervisor.source, MeminfoSource)
    assert supervisor.source.path == Path("/proc/meminfo")
    assert supervisor.source.field == "Dirty"


@pytest.mark.asyncio
async def test_run_reports_progress_to_completion() -> None:
    """Sampler runs alongside the flush and is joined once it returns."""
    flush = DrainingFlush(start=10_000, step=500)
    stream = io.StringIO()
    supervisor = Supervisor(make_config(), source=flush, flush=flush, stream=stream)

    result = await supervisor.run()

    assert isinstance(result, SessionResult)
    assert flush.finished.is_set()
    assert result.elapsed > 0
    assert result.ticks >= 1
    assert result.snapshot is not None
    assert 0 < result.snapshot.biggest_size <= 10_000
    output = stream.getvalue()
    assert output.startswith("\r")
    assert output.endswith("\n")
    assert output.count("\n") == 1


@pytest.mark.asyncio
async def test_flush_completing_before_next_tick() -> None:
    """An instant flush still yields a clean, terminated line."""
    source = ScriptedSource([4096])
    stream = io.StringIO()
    supervisor = Supervisor(
        make_config(samples_per_second=1),
        source=source,
        flush=lambda: None,
        stream=stream,
    )

    result = await supervisor.run()

    assert result.ticks == 1
    assert source.calls == 1
    assert stream.getvalue().endswith("\n")


@pytest.mark.asyncio
async def test_source_failure_surfaces_after_flush() -> None:
    """A sampler error does not abort the flush and is raised after joining."""
    flush = DrainingFlush(start=1000, step=100)
    source = ScriptedSource([1000, SourceUnavailable("meminfo vanished")])
    stream = io.StringIO()
    supervisor = Supervisor(make_config(), source=source, flush=flush, stream=stream)

    with pytest.raises(SourceUnavailable, match="vanished"):
        await supervisor.run()

    assert flush.finished.is_set()
    assert flush.remaining == 0
    assert stream.getvalue().endswith("\n")


@pytest.mark.asyncio
async def test_flush_error_still_joins_sampler() -> None:
    """If the flush itself raises, the sampler is still stopped and joined."""

    def broken_flush() -> None:
        time.sleep(0.02)
        raise OSError("sync failed")

    source = ScriptedSource([2048])
    stream = io.StringIO()
    supervisor = Supervisor(make_config(), source=source, flush=broken_flush, stream=stream)

    with pytest.raises(OSError, match="sync failed"):
        await supervisor.run()

    calls = source.calls
    time.sleep(0.05)
    assert source.calls == calls
    assert stream.getvalue().endswith("\n")


def test_run_sync() -> None:
    """run_sync drives a whole session on its own event loop."""
    flush = DrainingFlush(start=300, step=100)
    stream = io.StringIO()
    result = run_sync(make_config(), source=flush, flush=flush, stream=stream)
    assert flush.finished.is_set()
    assert result.snapshot is not None
    assert stream.getvalue().endswith("\n")


@pytest.mark.asyncio
async def test_counter_at_zero_is_not_read_again() -> None:
    """Once a zero reading is stored, a quiesced source is left alone."""

    def slow_flush() -> None:
        time.sleep(0.1)

    source = ScriptedSource([1000, 0, SourceUnavailable("quiesced")])
    stream = io.StringIO()
    supervisor = Supervisor(make_config(), source=source, flush=slow_flush, stream=stream)

    result = await supervisor.run()

    assert source.calls == 2
    assert result.ticks == 2
    assert result.snapshot is not None
    assert result.snapshot.percent == 100
    assert stream.getvalue().endswith("\n")


@pytest.mark.asyncio
async def test_flush_error_wins_over_sampler_error() -> None:
    """When both fail, the flush error is the one raised."""

    def broken_flush() -> None:
        time.sleep(0.05)
        raise OSError("sync failed")

    source = ScriptedSource([1000, SourceUnavailable("meminfo vanished")])
    stream = io.StringIO()
    supervisor = Supervisor(make_config(), source=source, flush=broken_flush, stream=stream)

    with pytest.raises(OSError, match="sync failed"):
        await supervisor.run()

    assert source.calls == 2
    assert stream.getvalue().endswith("\n")


@pytest.mark.asyncio
async def test_unconfigured_structlog_keeps_stdout_clean(capsys) -> None:
    """Used as a library, log events never land on stdout."""
    structlog.reset_defaults()
    try:
        flush = DrainingFlush(start=300, step=100)
        stream = io.StringIO()
        await Supervisor(make_config(), source=flush, flush=flush, stream=stream).run()

        assert structlog.is_configured()
        assert capsys.readouterr().out == ""
    finally:
        structlog.reset_defaults()

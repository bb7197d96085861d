"""CLI commands for synceta."""

import click


def _load_config():
    """Load config, exiting with an error message if it is invalid."""
    from synceta import logging as slog
    from synceta.config import Config

    try:
        return Config.load()
    except ValueError as e:
        slog.config_invalid(str(e))
        raise SystemExit(1) from None


@click.group(invoke_without_command=True)
@click.version_option(package_name="synceta")
@click.pass_context
def main(ctx) -> None:
    """Flush the page cache and watch the dirty bytes drain.

    Without a subcommand, behaves like 'synceta run'.
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@main.command()
@click.option("--rate", "-r", type=click.IntRange(min=1), help="Samples per second")
@click.option("--window", "-w", type=click.IntRange(min=1), help="Throughput window in seconds")
@click.option(
    "--meminfo",
    type=click.Path(dir_okay=False, path_type=str),
    help="meminfo-format file to sample",
)
def run(rate: int | None, window: int | None, meminfo: str | None) -> None:
    """Flush all dirty pages to disk, showing progress and ETA."""
    from dataclasses import replace

    from synceta import logging as slog
    from synceta.formatting import format_elapsed, format_size
    from synceta.meminfo import MeminfoSource, MetricSourceError
    from synceta.supervisor import run_sync

    config = _load_config()
    sampling = config.sampling
    if rate is not None:
        sampling = replace(sampling, samples_per_second=rate)
    if window is not None:
        sampling = replace(sampling, window_seconds=window)
    if meminfo is not None:
        sampling = replace(sampling, meminfo_path=meminfo)
    config = replace(config, sampling=sampling)

    slog.configure(config)

    source = MeminfoSource(sampling.meminfo_path, sampling.meminfo_field)
    try:
        slog.flush_started(format_size(source.current_dirty_bytes()))
    except MetricSourceError as e:
        slog.warn(f"Dirty bytes unavailable before flush: {e}")

    try:
        result = run_sync(config, source=source)
    except MetricSourceError as e:
        slog.monitor_failed(str(e))
        raise SystemExit(1) from None

    flushed = result.snapshot.done_bytes if result.snapshot else 0
    slog.flush_completed(format_elapsed(result.elapsed), format_size(flushed))


@main.command()
def status() -> None:
    """Show the current amount of dirty page cache."""
    from synceta import logging as slog
    from synceta.formatting import format_size
    from synceta.meminfo import MeminfoSource, MetricSourceError

    config = _load_config()
    source = MeminfoSource(config.sampling.meminfo_path, config.sampling.meminfo_field)

    try:
        dirty = source.current_dirty_bytes()
    except MetricSourceError as e:
        slog.source_unreadable(str(e))
        raise SystemExit(1) from None

    click.echo(f"Dirty: {format_size(dirty)} ({dirty} bytes)")


@main.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Display current configuration."""
    cfg = _load_config()

    click.echo(f"Config file: {cfg.config_path}")
    click.echo(f"Exists: {cfg.config_path.exists()}")
    click.echo()
    click.echo("[sampling]")
    click.echo(f"  samples_per_second = {cfg.sampling.samples_per_second}")
    click.echo(f"  window_seconds = {cfg.sampling.window_seconds}")
    click.echo(f"  meminfo_path = {cfg.sampling.meminfo_path}")
    click.echo(f"  meminfo_field = {cfg.sampling.meminfo_field}")
    click.echo()
    click.echo("[system]")
    click.echo(f"  log_max_bytes = {cfg.system.log_max_bytes}")
    click.echo(f"  log_backup_count = {cfg.system.log_backup_count}")


@config.command("edit")
def config_edit() -> None:
    """Open config file in editor."""
    import os
    import subprocess

    from synceta import logging as slog

    cfg = _load_config()

    # Create config if it doesn't exist
    if not cfg.config_path.exists():
        cfg.save()
        slog.config_created(str(cfg.config_path))

    editor = os.environ.get("EDITOR", "nano")
    subprocess.run([editor, str(cfg.config_path)])


@config.command("reset")
@click.confirmation_option(prompt="Reset config to defaults?")
def config_reset() -> None:
    """Reset configuration to defaults."""
    from synceta.config import Config

    cfg = Config()
    cfg.save()
    click.echo(f"Config reset to defaults at {cfg.config_path}")


if __name__ == "__main__":
    main()

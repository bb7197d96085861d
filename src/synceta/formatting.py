"""Formatting utilities for the progress line and CLI output."""

from synceta.estimator import EstimatorSnapshot

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB", "EB")

ETA_UNKNOWN = "--:--:--"


def format_size(size: float) -> str:
    """Format a byte count in 1024 steps with no decimals.

    Args:
        size: Byte count, may be negative (e.g. a negative throughput)

    Returns:
        Formatted size: "512B", "2KB", "-3MB"
    """
    unit = 0
    while abs(size) > 1024 and unit < len(SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.0f}{SIZE_UNITS[unit]}"


def format_eta(seconds: float | None) -> str:
    """Format an ETA as HH:MM:SS, or a placeholder when unknown.

    Hours are not wrapped at 24.
    """
    if seconds is None:
        return ETA_UNKNOWN
    eta = int(seconds)
    hours, rest = divmod(eta, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_progress(snapshot: EstimatorSnapshot) -> str:
    """Format one progress line (no carriage return or padding).

    Example: "600B / 1000B 60% | 100B/s | ETA: 00:00:04"
    """
    return (
        f"{format_size(snapshot.done_bytes)} / {format_size(snapshot.biggest_size)} "
        f"{snapshot.percent}% | "
        f"{format_size(snapshot.throughput)}/s | "
        f"ETA: {format_eta(snapshot.eta_seconds)}"
    )


def format_elapsed(seconds: float) -> str:
    """Format an elapsed wall-clock duration for summaries: "1.5s"."""
    return f"{seconds:.1f}s"

"""Configuration system for synceta."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit


@dataclass
class SamplingConfig:
    """Dirty-bytes sampling configuration.

    The history window holds samples_per_second * window_seconds samples.
    A short window reacts quickly to changing flush speed but is noisier.
    """

    samples_per_second: int = 1  # Ticks per second (1 = one sample every 1000ms)
    window_seconds: int = 2  # Seconds of history used for the throughput estimate
    meminfo_path: str = "/proc/meminfo"  # Kernel memory counters
    meminfo_field: str = "Dirty"  # Counter holding unflushed bytes

    @property
    def interval(self) -> float:
        """Seconds between samples."""
        return 1 / self.samples_per_second


@dataclass
class SystemConfig:
    """Log file configuration."""

    log_max_bytes: int = 5 * 1024 * 1024  # Max log file size (5MB)
    log_backup_count: int = 3  # Number of backup log files to keep


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "synceta"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "synceta"

    @property
    def log_path(self) -> Path:
        """JSON Lines log path.

        Logs are expendable persistent state, so they go in XDG_STATE_HOME.
        """
        return self.state_dir / "synceta.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("sampling", "system"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        All defaults come from the dataclass definitions, so Config() and
        Config.load() on a missing file are identical.

        Raises:
            ValueError: If the file cannot be parsed or holds invalid values.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        sys_defaults = defaults.system
        system_data = data.get("system", {})

        return cls(
            sampling=_load_sampling_config(data.get("sampling", {})),
            system=SystemConfig(
                log_max_bytes=system_data.get("log_max_bytes", sys_defaults.log_max_bytes),
                log_backup_count=system_data.get("log_backup_count", sys_defaults.log_backup_count),
            ),
        )


def _load_sampling_config(data: dict) -> SamplingConfig:
    """Load sampling config from TOML data, using dataclass defaults for missing fields."""
    defaults = SamplingConfig()

    samples_per_second = data.get("samples_per_second", defaults.samples_per_second)
    window_seconds = data.get("window_seconds", defaults.window_seconds)

    for name, value in (
        ("samples_per_second", samples_per_second),
        ("window_seconds", window_seconds),
    ):
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"{name} must be an integer, got {value!r}")

    if samples_per_second < 1:
        raise ValueError(f"samples_per_second must be >= 1, got {samples_per_second}")
    if window_seconds < 1:
        raise ValueError(f"window_seconds must be >= 1, got {window_seconds}")

    return SamplingConfig(
        samples_per_second=samples_per_second,
        window_seconds=window_seconds,
        meminfo_path=str(data.get("meminfo_path", defaults.meminfo_path)),
        meminfo_field=str(data.get("meminfo_field", defaults.meminfo_field)),
    )

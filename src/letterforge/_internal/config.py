"""Configuration loading for LetterForge."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from letterforge._internal.errors import ConfigError

DEFAULT_MARKER = "SIG"
DEFAULT_MAX_WORKERS = 100


@dataclass(frozen=True)
class SupervisorConfig:
    """Supervisor and worker settings.

    Attributes:
        max_workers: Largest number of input arguments accepted.
        marker: Argument value that makes a worker wait for an interrupt
            instead of reading a file.
        base_delay: Seconds a file worker sleeps after sending its result.
        delay_step: Extra seconds of sleep per worker index, so that
            completions are staggered.
        marker_timeout: Seconds a marker worker waits before giving up on
            the interrupt.
        marker_ready_timeout: Seconds the supervisor waits for a marker
            worker to arm its interrupt handler before signalling it.
        poll_interval: Seconds between checks of the supervisor wait loop.
        output_dir: Directory that receives the ``file<pid>.hist`` artifacts.
    """

    max_workers: int = DEFAULT_MAX_WORKERS
    marker: str = DEFAULT_MARKER
    base_delay: float = 10.0
    delay_step: float = 3.0
    marker_timeout: float = 10.0
    marker_ready_timeout: float = 5.0
    poll_interval: float = 1.0
    output_dir: Path = field(default_factory=lambda: Path("."))

    def delay_for(self, index: int) -> float:
        """Return the post-result sleep for the worker at ``index``."""
        return self.base_delay + self.delay_step * index

    def validate(self) -> SupervisorConfig:
        """Check value ranges.

        Returns:
            ``self``, so calls can be chained.

        Raises:
            ConfigError: If a value is out of range.
        """
        if self.max_workers < 1:
            msg = f"max_workers must be >= 1, got: {self.max_workers}"
            raise ConfigError(msg)
        if not self.marker:
            msg = "marker must be a non-empty string"
            raise ConfigError(msg)
        for name in ("base_delay", "delay_step", "marker_timeout", "marker_ready_timeout"):
            value = getattr(self, name)
            if value < 0:
                msg = f"{name} must be >= 0, got: {value}"
                raise ConfigError(msg)
        if self.poll_interval <= 0:
            msg = f"poll_interval must be positive, got: {self.poll_interval}"
            raise ConfigError(msg)
        return self


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        msg = f"{name} must be an integer, got: {raw!r}"
        raise ConfigError(msg) from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        msg = f"{name} must be a number, got: {raw!r}"
        raise ConfigError(msg) from None


def load_config() -> SupervisorConfig:
    """Load configuration from environment variables with defaults.

    Environment variables:
        LETTERFORGE_MAX_WORKERS: Argument limit (default: 100).
        LETTERFORGE_MARKER: Marker argument value (default: "SIG").
        LETTERFORGE_BASE_DELAY: Worker post-result delay (default: 10.0).
        LETTERFORGE_DELAY_STEP: Per-index delay increment (default: 3.0).
        LETTERFORGE_MARKER_TIMEOUT: Marker worker timeout (default: 10.0).
        LETTERFORGE_POLL_INTERVAL: Wait-loop interval (default: 1.0).
        LETTERFORGE_OUTPUT_DIR: Artifact directory (default: ".").

    Returns:
        Populated, validated SupervisorConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    defaults = SupervisorConfig()
    config = SupervisorConfig(
        max_workers=_env_int("LETTERFORGE_MAX_WORKERS", defaults.max_workers),
        marker=os.environ.get("LETTERFORGE_MARKER", defaults.marker),
        base_delay=_env_float("LETTERFORGE_BASE_DELAY", defaults.base_delay),
        delay_step=_env_float("LETTERFORGE_DELAY_STEP", defaults.delay_step),
        marker_timeout=_env_float("LETTERFORGE_MARKER_TIMEOUT", defaults.marker_timeout),
        marker_ready_timeout=defaults.marker_ready_timeout,
        poll_interval=_env_float("LETTERFORGE_POLL_INTERVAL", defaults.poll_interval),
        output_dir=Path(os.environ.get("LETTERFORGE_OUTPUT_DIR", str(defaults.output_dir))),
    )
    return config.validate()

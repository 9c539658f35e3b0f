"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from letterforge._internal.config import SupervisorConfig, load_config
from letterforge._internal.errors import ConfigError

_ENV_VARS = (
    "LETTERFORGE_MAX_WORKERS",
    "LETTERFORGE_MARKER",
    "LETTERFORGE_BASE_DELAY",
    "LETTERFORGE_DELAY_STEP",
    "LETTERFORGE_MARKER_TIMEOUT",
    "LETTERFORGE_POLL_INTERVAL",
    "LETTERFORGE_OUTPUT_DIR",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSupervisorConfig:
    """Tests for the SupervisorConfig dataclass."""

    def test_defaults(self):
        """Defaults match the classic supervisor behaviour."""
        config = SupervisorConfig()
        assert config.max_workers == 100
        assert config.marker == "SIG"
        assert config.base_delay == 10.0
        assert config.delay_step == 3.0
        assert config.marker_timeout == 10.0
        assert config.poll_interval == 1.0
        assert config.output_dir == Path(".")

    def test_frozen(self):
        config = SupervisorConfig()
        with pytest.raises(AttributeError):
            config.marker = "STOP"  # type: ignore[misc]

    def test_delay_grows_with_index(self):
        """Worker i sleeps base_delay + delay_step * i."""
        config = SupervisorConfig(base_delay=10.0, delay_step=3.0)
        assert config.delay_for(0) == 10.0
        assert config.delay_for(1) == 13.0
        assert config.delay_for(4) == 22.0

    @pytest.mark.parametrize(
        ("field_name", "value"),
        [
            ("max_workers", 0),
            ("marker", ""),
            ("base_delay", -1.0),
            ("delay_step", -0.5),
            ("marker_timeout", -1.0),
            ("poll_interval", 0.0),
        ],
    )
    def test_validate_rejects(self, field_name: str, value: object):
        config = SupervisorConfig(**{field_name: value})  # type: ignore[arg-type]
        with pytest.raises(ConfigError):
            config.validate()


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_defaults_from_env(self, clean_env: pytest.MonkeyPatch):
        assert load_config() == SupervisorConfig()

    def test_values_from_env(self, clean_env: pytest.MonkeyPatch, tmp_path: Path):
        clean_env.setenv("LETTERFORGE_MAX_WORKERS", "5")
        clean_env.setenv("LETTERFORGE_MARKER", "WAIT")
        clean_env.setenv("LETTERFORGE_BASE_DELAY", "0.5")
        clean_env.setenv("LETTERFORGE_DELAY_STEP", "0.25")
        clean_env.setenv("LETTERFORGE_MARKER_TIMEOUT", "2")
        clean_env.setenv("LETTERFORGE_POLL_INTERVAL", "0.1")
        clean_env.setenv("LETTERFORGE_OUTPUT_DIR", str(tmp_path))

        config = load_config()
        assert config.max_workers == 5
        assert config.marker == "WAIT"
        assert config.base_delay == 0.5
        assert config.delay_step == 0.25
        assert config.marker_timeout == 2.0
        assert config.poll_interval == 0.1
        assert config.output_dir == tmp_path

    def test_invalid_int(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("LETTERFORGE_MAX_WORKERS", "many")
        with pytest.raises(ConfigError, match="must be an integer"):
            load_config()

    def test_invalid_float(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("LETTERFORGE_BASE_DELAY", "soon")
        with pytest.raises(ConfigError, match="must be a number"):
            load_config()

    def test_out_of_range(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("LETTERFORGE_POLL_INTERVAL", "-1")
        with pytest.raises(ConfigError, match="poll_interval must be positive"):
            load_config()

"""Shared test fixtures for the LetterForge test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from letterforge._internal.config import SupervisorConfig

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Empty directory that receives artifacts."""
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


@pytest.fixture
def fast_config(output_dir: Path) -> SupervisorConfig:
    """Supervisor settings with short delays so process tests run quickly."""
    return SupervisorConfig(
        base_delay=0.0,
        delay_step=0.1,
        marker_timeout=30.0,
        marker_ready_timeout=10.0,
        poll_interval=0.05,
        output_dir=output_dir,
    )


@pytest.fixture
def make_input(tmp_path: Path) -> Callable[[str, bytes], Path]:
    """Factory that writes an input file and returns its path."""
    inputs = tmp_path / "inputs"
    inputs.mkdir()

    def _make(name: str, content: bytes) -> Path:
        path = inputs / name
        path.write_bytes(content)
        return path

    return _make

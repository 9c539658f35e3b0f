"""LetterForge: supervise worker processes that histogram letters in files."""

from __future__ import annotations

from letterforge._internal.config import SupervisorConfig, load_config
from letterforge.engine.supervisor import Supervisor, SupervisorResult
from letterforge.histogram.engine import compute_histogram
from letterforge.histogram.models import LetterHistogram

__version__ = "0.1.0"

__all__ = [
    "LetterHistogram",
    "Supervisor",
    "SupervisorConfig",
    "SupervisorResult",
    "compute_histogram",
    "load_config",
]

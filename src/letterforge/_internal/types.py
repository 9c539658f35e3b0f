"""Shared type aliases for LetterForge."""

from __future__ import annotations

from typing import Literal

# Raw per-letter counts, index 0 = 'a' ... index 25 = 'z'.
Counts = tuple[int, ...]

# How a reaped worker ended.
OutcomeStatus = Literal["completed", "no_payload", "input_error", "failed", "signaled"]

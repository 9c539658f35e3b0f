"""Letter frequency counting over raw bytes."""

from __future__ import annotations

import numpy as np

from letterforge.histogram.models import NUM_LETTERS, LetterHistogram

_UPPER_A = ord("A")
_LOWER_A = ord("a")


def compute_histogram(data: bytes) -> LetterHistogram:
    """Count each ASCII letter in ``data``, ignoring case.

    Bytes outside ``A-Z`` and ``a-z`` are ignored. An empty buffer
    yields an all-zero histogram.

    Args:
        data: Raw file contents.

    Returns:
        The 26-entry LetterHistogram.
    """
    arr = np.frombuffer(data, dtype=np.uint8)
    upper = arr[(arr >= _UPPER_A) & (arr < _UPPER_A + NUM_LETTERS)] - _UPPER_A
    lower = arr[(arr >= _LOWER_A) & (arr < _LOWER_A + NUM_LETTERS)] - _LOWER_A
    buckets = np.bincount(np.concatenate((upper, lower)), minlength=NUM_LETTERS)
    return LetterHistogram(counts=tuple(int(c) for c in buckets))

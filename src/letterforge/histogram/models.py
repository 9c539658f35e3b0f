"""Letter histogram value type."""

from __future__ import annotations

import string
from dataclasses import dataclass

from letterforge._internal.types import Counts

LETTERS = string.ascii_lowercase
NUM_LETTERS = len(LETTERS)


@dataclass(frozen=True)
class LetterHistogram:
    """Case-insensitive counts of the 26 letters of a buffer.

    Attributes:
        counts: 26 non-negative integers, index 0 = 'a' ... 25 = 'z'.
    """

    counts: Counts

    def __post_init__(self) -> None:
        if len(self.counts) != NUM_LETTERS:
            msg = f"histogram needs {NUM_LETTERS} counts, got {len(self.counts)}"
            raise ValueError(msg)
        if any(c < 0 for c in self.counts):
            msg = "histogram counts must be non-negative"
            raise ValueError(msg)

    @classmethod
    def empty(cls) -> LetterHistogram:
        return cls(counts=(0,) * NUM_LETTERS)

    @property
    def total(self) -> int:
        """Number of alphabetic bytes that were counted."""
        return sum(self.counts)

    def __getitem__(self, letter: str) -> int:
        return self.counts[LETTERS.index(letter.lower())]

    def items(self) -> list[tuple[str, int]]:
        """Return ``(letter, count)`` pairs in 'a'..'z' order."""
        return list(zip(LETTERS, self.counts, strict=True))

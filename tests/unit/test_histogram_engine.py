"""Tests for the letter histogram engine and value type."""

from __future__ import annotations

import string

import pytest

from letterforge.histogram.engine import compute_histogram
from letterforge.histogram.models import LETTERS, NUM_LETTERS, LetterHistogram

SAMPLES = [
    b"",
    b"Hello World",
    b"The quick brown fox jumps over the lazy dog",
    b"1234567890 !@#$%^&*()\n\t",
    bytes(range(256)),
    b"\xc3\xa9t\xc3\xa9 \xff\x00ZZzz",
    string.ascii_letters.encode() * 3,
]


def _alpha_count(data: bytes) -> int:
    return sum(1 for b in data if chr(b) in string.ascii_letters)


class TestComputeHistogram:
    """Tests for compute_histogram."""

    @pytest.mark.parametrize("data", SAMPLES)
    def test_always_26_non_negative(self, data: bytes):
        """Output always has 26 non-negative entries."""
        hist = compute_histogram(data)
        assert len(hist.counts) == NUM_LETTERS
        assert all(c >= 0 for c in hist.counts)

    @pytest.mark.parametrize("data", SAMPLES)
    def test_sum_matches_alphabetic_bytes(self, data: bytes):
        """Total equals the number of ASCII letters in the buffer."""
        assert compute_histogram(data).total == _alpha_count(data)

    def test_empty_buffer_is_all_zero(self):
        assert compute_histogram(b"") == LetterHistogram.empty()

    def test_no_letters_is_all_zero(self):
        """Digits, punctuation, whitespace and high bytes are ignored."""
        data = bytes(b for b in range(256) if chr(b) not in string.ascii_letters)
        assert compute_histogram(data).counts == (0,) * NUM_LETTERS

    def test_case_insensitive(self):
        """Upper and lower case share one bucket."""
        hist = compute_histogram(b"aAbBzZZ")
        assert hist["a"] == 2
        assert hist["b"] == 2
        assert hist["z"] == 3

    def test_hello_world(self):
        hist = compute_histogram(b"Hello World")
        expected = {"h": 1, "e": 1, "l": 3, "o": 2, "w": 1, "r": 1, "d": 1}
        for letter, count in hist.items():
            assert count == expected.get(letter, 0), letter

    def test_idempotent(self):
        """Running twice on the same buffer gives identical results."""
        data = b"Mississippi River, 1877"
        assert compute_histogram(data) == compute_histogram(data)

    def test_returns_plain_ints(self):
        """Counts are Python ints, so they pickle and format cleanly."""
        hist = compute_histogram(b"abc")
        assert all(type(c) is int for c in hist.counts)


class TestLetterHistogram:
    """Tests for the LetterHistogram dataclass."""

    def test_rejects_wrong_length(self):
        with pytest.raises(ValueError, match="26 counts"):
            LetterHistogram(counts=(1, 2, 3))

    def test_rejects_negative_counts(self):
        with pytest.raises(ValueError, match="non-negative"):
            LetterHistogram(counts=(-1,) + (0,) * 25)

    def test_frozen(self):
        hist = LetterHistogram.empty()
        with pytest.raises(AttributeError):
            hist.counts = (1,) * 26  # type: ignore[misc]

    def test_items_in_alphabetical_order(self):
        hist = LetterHistogram(counts=tuple(range(26)))
        assert [letter for letter, _ in hist.items()] == list(LETTERS)
        assert hist["Z"] == 25

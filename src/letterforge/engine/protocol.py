"""Protocol types for the worker-to-supervisor histogram channel."""

from __future__ import annotations

from dataclasses import dataclass

from letterforge._internal.errors import ProtocolError
from letterforge.histogram.models import NUM_LETTERS, LetterHistogram

PROTOCOL_VERSION = 1

# Worker process exit statuses.
EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_FAILURE = 2


@dataclass(frozen=True)
class HistogramMessage:
    """The single message a file worker writes to its channel.

    A channel carries either one complete message or nothing at all.

    Attributes:
        worker_index: Position of the worker in the argument list.
        counts: 26 letter counts, 'a' first.
        version: Protocol version of the sender.
    """

    worker_index: int
    counts: tuple[int, ...]
    version: int = PROTOCOL_VERSION

    @classmethod
    def from_histogram(cls, worker_index: int, histogram: LetterHistogram) -> HistogramMessage:
        return cls(worker_index=worker_index, counts=histogram.counts)

    def validate(self) -> LetterHistogram:
        """Check the message and return its histogram.

        Raises:
            ProtocolError: On a version mismatch or a malformed payload.
        """
        if self.version != PROTOCOL_VERSION:
            msg = f"unsupported protocol version {self.version} (expected {PROTOCOL_VERSION})"
            raise ProtocolError(msg)
        if len(self.counts) != NUM_LETTERS or not all(
            isinstance(c, int) and c >= 0 for c in self.counts
        ):
            msg = f"worker {self.worker_index} sent a malformed histogram"
            raise ProtocolError(msg)
        return LetterHistogram(counts=tuple(self.counts))

"""Shared table of worker records and termination counters.

The spawn loop inserts records and the reaper thread claims them. Both
go through one lock, and a record is always inserted before the reaper
can see its process sentinel, so every exit the reaper observes already
has a record.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from letterforge._internal.logging import get_logger

if TYPE_CHECKING:
    import multiprocessing.process
    from multiprocessing.connection import Connection
    from multiprocessing.synchronize import Event
    from pathlib import Path

    from letterforge._internal.types import OutcomeStatus

logger = get_logger("engine.registry")


@dataclass(frozen=True)
class WorkerOutcome:
    """How one reaped worker ended.

    Attributes:
        index: Position of the worker's argument.
        argument: The argument the worker processed.
        pid: Process id the worker ran under.
        exit_code: ``Process.exitcode``; negative means killed by a signal.
        status: Summary of the outcome.
        artifact: Path of the written artifact, if any.
    """

    index: int
    argument: str
    pid: int
    exit_code: int
    status: OutcomeStatus
    artifact: Path | None = None


@dataclass
class WorkerRecord:
    """Supervisor-side bookkeeping for one worker.

    Attributes:
        index: Position of the worker's argument (0-based).
        argument: Input argument passed to the worker.
        process: Handle of the spawned process.
        read_end: Supervisor's end of the worker's channel.
        ready: Marker workers only. Set by the child once it can take
            SIGINT; held here until the worker is reaped.
        outcome: Filled in once the worker has been reaped.
    """

    index: int
    argument: str
    process: multiprocessing.process.BaseProcess
    read_end: Connection
    ready: Event | None = None
    outcome: WorkerOutcome | None = None

    @property
    def pid(self) -> int:
        return self.process.pid or 0


@dataclass(frozen=True)
class TerminationCounters:
    """Snapshot of the spawn/reap counters."""

    num_workers: int = 0
    num_reaped: int = 0

    @property
    def done(self) -> bool:
        return self.num_reaped == self.num_workers


class ChannelRegistry:
    """Thread-safe table of worker records plus counters.

    The supervisor's spawn loop registers records and the reaper thread
    claims them. Records are keyed by spawn index, with a side index by
    pid: a pid the OS recycles for a later worker never displaces the
    earlier worker's record. A ``threading.Lock`` protects the table and
    the counters; records are returned in spawn order.
    """

    def __init__(self) -> None:
        self._records: dict[int, WorkerRecord] = {}
        self._by_pid: dict[int, list[int]] = {}
        self._num_workers = 0
        self._num_reaped = 0
        self._lock = threading.Lock()

    def register(self, record: WorkerRecord) -> None:
        """Add a freshly spawned worker and bump ``num_workers``.

        Raises:
            ValueError: If a record with the same index already exists.
        """
        with self._lock:
            if record.index in self._records:
                msg = f"worker {record.index} is already registered"
                raise ValueError(msg)
            self._records[record.index] = record
            self._by_pid.setdefault(record.pid, []).append(record.index)
            self._num_workers += 1
        logger.debug("Registered worker %d (pid=%d)", record.index, record.pid)

    def lookup(self, pid: int) -> WorkerRecord | None:
        """Return the record for ``pid``.

        When the pid was reused, the oldest unreaped record wins, since
        the earlier process must have exited before its pid was handed
        out again.
        """
        with self._lock:
            indices = self._by_pid.get(pid)
            if not indices:
                return None
            for index in indices:
                if self._records[index].outcome is None:
                    return self._records[index]
            return self._records[indices[-1]]

    def pending(self) -> list[WorkerRecord]:
        """Return the records that have not been reaped yet."""
        with self._lock:
            return [r for r in self._records.values() if r.outcome is None]

    def mark_reaped(self) -> int:
        """Count one reaped worker and return the new ``num_reaped``.

        Raises:
            RuntimeError: If more workers are reaped than were spawned.
        """
        with self._lock:
            if self._num_reaped >= self._num_workers:
                msg = f"reaped {self._num_reaped + 1} workers but only {self._num_workers} spawned"
                raise RuntimeError(msg)
            self._num_reaped += 1
            return self._num_reaped

    def complete(self, record: WorkerRecord, outcome: WorkerOutcome) -> None:
        """Attach the final outcome to a reaped worker's record."""
        with self._lock:
            record.outcome = outcome

    def counters(self) -> TerminationCounters:
        with self._lock:
            return TerminationCounters(self._num_workers, self._num_reaped)

    def records(self) -> list[WorkerRecord]:
        """Return every record in spawn order."""
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.index)

    def close_all(self) -> None:
        """Close every read end still open. Used on fatal shutdown."""
        with self._lock:
            records = list(self._records.values())
        for record in records:
            record.read_end.close()

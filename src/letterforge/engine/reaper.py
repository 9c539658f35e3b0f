"""Asynchronous collection of finished workers via a background thread.

The ``CompletionReaper`` subscribes to child-exit events by waiting on
the sentinels of every unreaped worker, plus a wake-up pipe that the
supervisor pokes whenever it registers a new worker. A wake-up is only
an edge: one wake-up may stand for several exits, so each one drains
every worker that has already exited, without blocking.
"""

from __future__ import annotations

import contextlib
import multiprocessing
import threading
from multiprocessing.connection import wait
from typing import TYPE_CHECKING

from letterforge._internal.errors import ProtocolError
from letterforge._internal.logging import get_logger
from letterforge.engine.protocol import EXIT_INPUT_ERROR, EXIT_OK, HistogramMessage
from letterforge.engine.registry import WorkerOutcome
from letterforge.histogram.artifact import write_artifact

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from letterforge._internal.types import OutcomeStatus
    from letterforge.engine.registry import ChannelRegistry, WorkerRecord
    from letterforge.histogram.models import LetterHistogram

logger = get_logger("engine.reaper")


class CompletionReaper:
    """Reaps exited workers and persists their histograms.

    For each exited worker the reaper bumps ``num_reaped``, reads the
    worker's channel, writes the ``file<pid>.hist`` artifact if a
    histogram arrived, and closes the channel's read end. Workers
    killed by a signal are logged and produce no artifact.

    A failure to write an artifact is fatal: the reaper records it in
    ``error`` and stops, and the supervisor re-raises it.

    Attributes:
        error: Fatal exception that stopped the reaper, if any.
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        output_dir: Path,
        *,
        on_outcome: Callable[[WorkerOutcome], None] | None = None,
    ) -> None:
        """Initialize the reaper.

        Args:
            registry: Shared worker table, also written by the spawn loop.
            output_dir: Directory that receives the artifacts.
            on_outcome: Optional callback invoked (on the reaper thread)
                for every reaped worker.
        """
        self._registry = registry
        self._output_dir = output_dir
        self._on_outcome = on_outcome

        self._wake_reader, self._wake_writer = multiprocessing.Pipe(duplex=False)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.error: BaseException | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the reaper background thread."""
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="letterforge-reaper",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Reaper thread started")

    def notify(self) -> None:
        """Wake the reaper so it picks up newly registered workers."""
        # OSError: pipe already closed by stop()
        with contextlib.suppress(OSError):
            self._wake_writer.send_bytes(b"\0")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the reaper thread and release its wake-up pipe.

        The pipe stays open if the thread does not exit within
        ``timeout``, since the thread may still be waiting on it.
        """
        self._stop_event.set()
        self.notify()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Reaper thread did not stop within %.1fs", timeout)
                return
            self._thread = None
        self._wake_writer.close()
        self._wake_reader.close()
        logger.debug("Reaper thread stopped")

    def drain(self) -> int:
        """Reap every worker that has already exited, without blocking.

        Returns:
            Number of workers reaped by this call.

        Raises:
            ArtifactError: If an artifact cannot be written.
        """
        reaped = 0
        while True:
            exited = [
                (record.pid, record.process.exitcode)
                for record in self._registry.pending()
                if record.process.exitcode is not None
            ]
            if not exited:
                return reaped
            for pid, exit_code in exited:
                self._reap(pid, exit_code)
                reaped += 1

    def _run_loop(self) -> None:
        """Main reaper loop running in background thread."""
        while not self._stop_event.is_set():
            sentinels = [record.process.sentinel for record in self._registry.pending()]
            ready = wait([self._wake_reader, *sentinels])

            if self._wake_reader in ready:
                self._clear_wakeups()
            if self._stop_event.is_set():
                break

            try:
                self.drain()
            except Exception as exc:
                logger.exception("Reaper stopped by a fatal error")
                self.error = exc
                break

    def _clear_wakeups(self) -> None:
        with contextlib.suppress(EOFError, OSError):
            while self._wake_reader.poll():
                self._wake_reader.recv_bytes()

    def _reap(self, pid: int, exit_code: int) -> None:
        counters_reaped = self._registry.mark_reaped()
        logger.info(
            "Caught exit of worker pid=%d (status %d), %d reaped so far",
            pid,
            exit_code,
            counters_reaped,
        )

        record = self._registry.lookup(pid)
        if record is None:
            logger.error("No channel registered for worker pid=%d", pid)
            return

        if exit_code < 0:
            logger.warning(
                "Worker %d (pid=%d) terminated abnormally by signal %d",
                record.index,
                pid,
                -exit_code,
            )
            record.read_end.close()
            self._finish(record, exit_code, "signaled")
            return

        artifact: Path | None = None
        try:
            histogram = self._receive(record)
            if histogram is not None:
                artifact = write_artifact(histogram, self._output_dir, pid)
                logger.info(
                    "Read histogram from channel %d and saved it to %s", record.index, artifact
                )
        finally:
            record.read_end.close()

        self._finish(record, exit_code, _status_for(exit_code, artifact), artifact)

    def _receive(self, record: WorkerRecord) -> LetterHistogram | None:
        """Read the worker's message; ``None`` means the channel was empty."""
        conn = record.read_end
        try:
            if not conn.poll():
                return None
            message = conn.recv()
        except (EOFError, OSError):
            return None
        except Exception:
            # Unpickling can fail with almost any exception type
            logger.warning("Worker %d sent an unreadable payload", record.index, exc_info=True)
            return None

        try:
            if not isinstance(message, HistogramMessage):
                msg = f"unexpected payload type {type(message).__name__}"
                raise ProtocolError(msg)
            return message.validate()
        except ProtocolError as exc:
            logger.warning("Discarding payload of worker %d: %s", record.index, exc)
            return None

    def _finish(
        self,
        record: WorkerRecord,
        exit_code: int,
        status: OutcomeStatus,
        artifact: Path | None = None,
    ) -> None:
        outcome = WorkerOutcome(
            index=record.index,
            argument=record.argument,
            pid=record.pid,
            exit_code=exit_code,
            status=status,
            artifact=artifact,
        )
        self._registry.complete(record, outcome)
        if self._on_outcome is not None:
            self._on_outcome(outcome)


def _status_for(exit_code: int, artifact: Path | None) -> OutcomeStatus:
    if artifact is not None:
        return "completed"
    if exit_code == EXIT_OK:
        return "no_payload"
    if exit_code == EXIT_INPUT_ERROR:
        return "input_error"
    return "failed"

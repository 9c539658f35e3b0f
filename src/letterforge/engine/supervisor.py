"""Top-level supervisor: spawn one worker per argument and wait for all."""

from __future__ import annotations

import multiprocessing
import os
import signal
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from letterforge._internal.config import SupervisorConfig
from letterforge._internal.errors import ArtifactError, ChannelError, ConfigError, SpawnError
from letterforge._internal.logging import get_logger
from letterforge.engine.reaper import CompletionReaper
from letterforge.engine.registry import ChannelRegistry, TerminationCounters, WorkerRecord
from letterforge.engine.worker import run_worker_process

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from multiprocessing.process import BaseProcess
    from multiprocessing.synchronize import Event
    from pathlib import Path

    from letterforge.engine.registry import WorkerOutcome

logger = get_logger("engine.supervisor")

_OK_STATUSES = frozenset({"completed", "no_payload"})


def validate_inputs(inputs: Sequence[str], max_workers: int) -> None:
    """Check the argument count before anything is spawned.

    Raises:
        ConfigError: If there are no inputs or more than ``max_workers``.
    """
    if not inputs:
        msg = "No input files provided."
        raise ConfigError(msg)
    if len(inputs) > max_workers:
        msg = f"Too many input files provided. Maximum allowed is {max_workers}."
        raise ConfigError(msg)


@dataclass
class SupervisorResult:
    """Outcome of a completed supervisor run.

    Attributes:
        outcomes: One entry per worker, in argument order.
        counters: Final spawn/reap counters.
        duration_seconds: Wall time of the run.
    """

    outcomes: list[WorkerOutcome] = field(default_factory=list)
    counters: TerminationCounters = field(default_factory=TerminationCounters)
    duration_seconds: float = 0.0

    @property
    def artifacts(self) -> list[Path]:
        return [o.artifact for o in self.outcomes if o.artifact is not None]

    @property
    def failures(self) -> list[WorkerOutcome]:
        """Workers that hit an input error, failed, or were killed."""
        return [o for o in self.outcomes if o.status not in _OK_STATUSES]


class Supervisor:
    """Runs one worker process per input argument.

    Workers are spawned in argument order, each with its own one-way
    pipe. The ``CompletionReaper`` thread collects exits as they happen,
    possibly while later workers are still being spawned. The supervisor
    itself only polls the termination counters until every worker has
    been reaped.

    Attributes:
        inputs: File paths (or the marker value), one per worker.
        config: Supervisor settings.
        registry: Shared worker table and counters.
    """

    def __init__(
        self,
        inputs: Sequence[str],
        config: SupervisorConfig | None = None,
        *,
        on_outcome: Callable[[WorkerOutcome], None] | None = None,
        log_level: int = 20,
    ) -> None:
        """Initialize the supervisor.

        Args:
            inputs: One argument per worker.
            config: Settings; defaults to ``SupervisorConfig()``.
            on_outcome: Optional callback invoked as each worker is reaped.
            log_level: Logging level passed on to the workers.

        Raises:
            ConfigError: If the inputs or settings are invalid.
        """
        self.config = (config or SupervisorConfig()).validate()
        self.inputs = list(inputs)
        validate_inputs(self.inputs, self.config.max_workers)

        self._log_level = log_level
        self._ctx = multiprocessing.get_context("spawn")
        self.registry = ChannelRegistry()
        self._reaper = CompletionReaper(
            self.registry, self.config.output_dir, on_outcome=on_outcome
        )

    def run(self) -> SupervisorResult:
        """Spawn every worker and block until all have been reaped.

        Returns:
            SupervisorResult with one outcome per worker.

        Raises:
            ChannelError: If a worker channel cannot be created.
            SpawnError: If a worker process cannot be started.
            ArtifactError: If an artifact cannot be written.
        """
        logger.info("Starting supervisor for %d input(s)", len(self.inputs))
        start_time = time.monotonic()

        try:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Cannot create output directory {self.config.output_dir}: {exc}"
            raise ArtifactError(msg) from exc

        self._reaper.start()
        try:
            for index, argument in enumerate(self.inputs):
                if self._reaper.error is not None:
                    raise self._reaper.error
                self._spawn(index, argument)

            logger.info("Waiting for all worker processes to terminate...")
            self._wait_for_workers()
        finally:
            self._reaper.stop()
            if not self.registry.counters().done:
                self._abort()

        logger.info("All worker processes have terminated")
        return SupervisorResult(
            outcomes=[r.outcome for r in self.registry.records() if r.outcome is not None],
            counters=self.registry.counters(),
            duration_seconds=time.monotonic() - start_time,
        )

    def _spawn(self, index: int, argument: str) -> None:
        """Create the channel and process for one worker and register it."""
        logger.info("Processing file/command %s", argument)
        try:
            read_end, write_end = self._ctx.Pipe(duplex=False)
        except OSError as exc:
            msg = f"Cannot create channel for worker {index}: {exc}"
            raise ChannelError(msg) from exc

        # The record keeps the event alive until the worker is reaped; a
        # child still unpickling it must find its semaphore.
        ready = self._ctx.Event() if argument == self.config.marker else None
        process = self._ctx.Process(
            target=run_worker_process,
            args=(argument, index, write_end, self.config, ready, self._log_level),
            name=f"letterforge-worker-{index}",
            daemon=False,
        )
        try:
            process.start()
        except OSError as exc:
            read_end.close()
            msg = f"Cannot start worker {index} for {argument!r}: {exc}"
            raise SpawnError(msg) from exc
        finally:
            # The child holds its own copy of the write end now
            write_end.close()

        self.registry.register(
            WorkerRecord(
                index=index,
                argument=argument,
                process=process,
                read_end=read_end,
                ready=ready,
            )
        )
        self._reaper.notify()
        logger.info("Created worker pid=%d for %s", process.pid or 0, argument)

        if ready is not None:
            self._interrupt(index, process, ready)

    def _interrupt(
        self,
        index: int,
        process: BaseProcess,
        ready: Event,
    ) -> None:
        """Send SIGINT to a marker worker once it is ready to take it."""
        if not ready.wait(timeout=self.config.marker_ready_timeout):
            logger.warning("Worker %d did not report ready, interrupting anyway", index)
        pid = process.pid
        if pid is None:
            return
        logger.info("Sending SIGINT to worker %d (pid=%d)", index, pid)
        try:
            os.kill(pid, signal.SIGINT)
        except ProcessLookupError:
            logger.warning("Worker %d (pid=%d) exited before it could be interrupted", index, pid)

    def _wait_for_workers(self) -> None:
        """Poll the counters until ``num_reaped == num_workers``."""
        while True:
            if self._reaper.error is not None:
                raise self._reaper.error
            counters = self.registry.counters()
            if counters.done:
                return
            logger.debug(
                "Waiting: %d of %d workers reaped", counters.num_reaped, counters.num_workers
            )
            time.sleep(self.config.poll_interval)

    def _abort(self) -> None:
        """Kill the workers still running and release every channel."""
        pending = self.registry.pending()
        for record in pending:
            if record.process.is_alive():
                logger.warning("Terminating worker %d (pid=%d)", record.index, record.pid)
                record.process.terminate()
        for record in pending:
            record.process.join(timeout=2.0)
        self.registry.close_all()

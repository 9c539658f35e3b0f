"""Worker process entry point: histogram a file, or wait for an interrupt."""

from __future__ import annotations

import signal
import sys
import time
from typing import TYPE_CHECKING

from letterforge._internal.logging import get_logger, setup_logging
from letterforge.engine.protocol import EXIT_FAILURE, EXIT_INPUT_ERROR, HistogramMessage
from letterforge.histogram.engine import compute_histogram

if TYPE_CHECKING:
    from multiprocessing.connection import Connection
    from multiprocessing.synchronize import Event

    from letterforge._internal.config import SupervisorConfig

logger = get_logger("engine.worker")


def run_worker_process(
    argument: str,
    index: int,
    write_end: Connection,
    config: SupervisorConfig,
    ready: Event | None = None,
    log_level: int = 20,
) -> None:
    """Entry point for a worker subprocess.

    A marker argument makes the worker idle until it is interrupted (or
    ``config.marker_timeout`` passes). Any other argument is a file
    path: the worker sends that file's histogram on ``write_end``,
    sleeps for its staggered delay, and exits 0. A file that cannot be
    opened ends the process with ``EXIT_INPUT_ERROR`` and an empty
    channel.

    Args:
        argument: The input argument assigned to this worker.
        index: Position of the argument (0-based).
        write_end: Write end of this worker's channel.
        config: Supervisor settings (delays, marker value).
        ready: Set once a marker worker can take the interrupt. File
            workers get ``None``.
        log_level: Logging level.
    """
    setup_logging(level=log_level)

    try:
        if argument == config.marker:
            _wait_for_interrupt(index, config.marker_timeout, ready)
        else:
            _histogram_file(argument, index, write_end, config.delay_for(index))
    except Exception:
        logger.exception("Worker %d: failed on %s", index, argument)
        sys.exit(EXIT_FAILURE)
    finally:
        write_end.close()


def _wait_for_interrupt(index: int, timeout: float, ready: Event | None) -> None:
    """Block until SIGINT arrives or ``timeout`` seconds pass.

    SIGINT is blocked before ``ready`` is set and stays blocked until the
    process exits. An interrupt that arrives after the timeout is left
    pending and never kills the worker.
    """
    # A parent started with SIGINT ignored passes SIG_IGN down to us.
    signal.signal(signal.SIGINT, signal.default_int_handler)
    signal.pthread_sigmask(signal.SIG_BLOCK, {signal.SIGINT})
    logger.info("Worker %d waiting for interrupt (timeout %.1fs)", index, timeout)
    if ready is not None:
        ready.set()

    if signal.sigtimedwait({signal.SIGINT}, timeout) is None:
        logger.info("Worker %d timed out waiting for interrupt", index)
    else:
        logger.info("Worker %d interrupted, exiting", index)


def _histogram_file(path: str, index: int, write_end: Connection, delay: float) -> None:
    logger.info("Worker %d opening %s", index, path)
    try:
        with open(path, "rb") as fh:  # noqa: PTH123
            data = fh.read()
    except OSError as exc:
        logger.error("Worker %d cannot open %s: %s", index, path, exc)  # noqa: TRY400
        write_end.close()
        sys.exit(EXIT_INPUT_ERROR)

    histogram = compute_histogram(data)
    logger.debug("Worker %d counted %d letters in %d bytes", index, histogram.total, len(data))

    write_end.send(HistogramMessage.from_histogram(index, histogram))
    write_end.close()

    logger.info("Worker %d sleeping %.1fs before exit", index, delay)
    time.sleep(delay)
    logger.info("Worker %d done with %s", index, path)

"""Reading and writing ``letter=count`` histogram artifacts.

An artifact is a plain text file with exactly 26 lines, one per letter
from 'a' to 'z', each formatted as ``<letter>=<count>``. The file is
named after the pid of the worker that produced it (``file<pid>.hist``),
not after its input file.
"""

from __future__ import annotations

from pathlib import Path

from letterforge._internal.errors import ArtifactError
from letterforge._internal.logging import get_logger
from letterforge.histogram.models import LETTERS, LetterHistogram

logger = get_logger("histogram.artifact")

ARTIFACT_SUFFIX = ".hist"


def artifact_name(pid: int) -> str:
    """Return the artifact file name for a worker pid."""
    return f"file{pid}{ARTIFACT_SUFFIX}"


def render_artifact(histogram: LetterHistogram) -> str:
    """Render a histogram in artifact format."""
    return "".join(f"{letter}={count}\n" for letter, count in histogram.items())


def write_artifact(histogram: LetterHistogram, output_dir: Path, pid: int) -> Path:
    """Write a histogram artifact for the worker ``pid``.

    Args:
        histogram: Counts received from the worker.
        output_dir: Directory to write into.
        pid: Process id of the worker; determines the file name.

    Returns:
        Path of the written artifact.

    Raises:
        ArtifactError: If the file cannot be opened or written.
    """
    path = output_dir / artifact_name(pid)
    try:
        with path.open("w", encoding="ascii") as fh:
            fh.write(render_artifact(histogram))
    except OSError as exc:
        msg = f"Cannot write artifact {path}: {exc}"
        raise ArtifactError(msg) from exc
    logger.debug("Wrote artifact %s (%d letters counted)", path, histogram.total)
    return path


def read_artifact(path: Path) -> LetterHistogram:
    """Parse an artifact file back into a histogram.

    Args:
        path: Artifact to read.

    Returns:
        The parsed LetterHistogram.

    Raises:
        ArtifactError: If the file is missing or not in artifact format.
    """
    try:
        lines = path.read_text(encoding="ascii").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read artifact {path}: {exc}"
        raise ArtifactError(msg) from exc

    if len(lines) != len(LETTERS):
        msg = f"{path}: expected {len(LETTERS)} lines, found {len(lines)}"
        raise ArtifactError(msg)

    counts: list[int] = []
    for lineno, (expected, line) in enumerate(zip(LETTERS, lines, strict=True), start=1):
        letter, sep, value = line.partition("=")
        if not sep or letter != expected or not value.isdigit():
            msg = f"{path}:{lineno}: expected '{expected}=<count>', got {line!r}"
            raise ArtifactError(msg)
        counts.append(int(value))
    return LetterHistogram(counts=tuple(counts))

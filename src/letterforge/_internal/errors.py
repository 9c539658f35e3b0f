"""Custom exception hierarchy for LetterForge."""

from __future__ import annotations


class LetterForgeError(Exception):
    """Base exception for all LetterForge errors.

    All custom exceptions in LetterForge inherit from this class, so any
    supervisor failure can be caught with a single except clause.
    """


class ConfigError(LetterForgeError):
    """Raised when configuration or command-line input is invalid.

    Examples:
        - No input arguments were given.
        - More input arguments than ``max_workers`` were given.
        - An environment variable has an invalid value.
    """


class ChannelError(LetterForgeError):
    """Raised when a worker channel cannot be created."""


class SpawnError(LetterForgeError):
    """Raised when a worker process cannot be started."""


class ArtifactError(LetterForgeError):
    """Raised when a histogram artifact cannot be opened or written.

    This is fatal to the supervisor; artifacts already written are kept.
    """


class ProtocolError(LetterForgeError):
    """Raised when a message read from a worker channel is malformed.

    Examples:
        - The payload is not a ``HistogramMessage``.
        - The message version is not understood.
        - The payload does not carry exactly 26 non-negative counts.
    """

"""
Exception types for fretlab.

Request-time lookups never raise; they degrade to documented defaults.
The exceptions below cover caller input errors (an unusable root note)
and build/test-time integrity failures of the curated data.
"""

from typing import Optional


class FretlabError(Exception):
    """Base class for every error raised by fretlab."""


class InvalidNoteError(FretlabError, ValueError):
    """A note name could not be mapped to a pitch class."""

    def __init__(self, note: str):
        self.note = note
        super().__init__(f"Unknown note name: '{note}'")


class InvalidChordSymbolError(FretlabError, ValueError):
    """A chord symbol has no recognizable root note."""

    def __init__(self, symbol: str, reason: Optional[str] = None):
        self.symbol = symbol
        message = f"Cannot parse chord symbol: '{symbol}'"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class LibraryLoadError(FretlabError):
    """The curated voicing table is missing or structurally malformed."""


class LibraryIntegrityError(FretlabError):
    """
    The curated voicing table contains wrong-note entries.

    Attributes:
        report: The LibraryReport that produced the failure
    """

    def __init__(self, report):
        self.report = report
        super().__init__(
            f"Chord library has {len(report.errors)} wrong-note error(s)"
        )

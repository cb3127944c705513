from __future__ import annotations


class ReviserError(Exception):
    """Base class for revision and storage failures."""


class RevisionCancelled(ReviserError):
    """Raised when the user cancels a run; not reported as a failure."""

    def __init__(self, message: str = "cancelled"):
        super().__init__(message)


class ProviderError(ReviserError):
    """Network or stream failure from the completion provider."""


class StorageError(ReviserError):
    """Naming, read or write failure in the document store."""


class PipelineBusyError(ReviserError):
    """A run is already active (or finished and not yet reset)."""

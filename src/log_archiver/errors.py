"""Exception types raised by the archiving pipeline."""

from __future__ import annotations


class ArchiverError(RuntimeError):
    """Base class for archiver failures that stop a unit of work."""


class ScanError(ArchiverError):
    """Source tree could not be walked; no candidates are returned."""


class DestinationError(ArchiverError):
    """Destination directory could not be created or written."""


class UnsupportedCompressionError(ArchiverError, ValueError):
    """Requested compression kind is not valid for the archiving mode."""


class GroupArchiveError(ArchiverError):
    """One period archive failed as a whole."""

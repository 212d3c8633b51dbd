"""Failures raised while building transfer parts for one Moab version."""

from __future__ import annotations


class ZipPackagingError(Exception):
    """Base class for packaging failures; every one is safe to retry."""


class MoabVersionNotFound(ZipPackagingError):
    """Raised when the Moab version directory to package does not exist."""


class UnreadableFile(ZipPackagingError):
    """Raised when a file in the Moab version cannot be stat'ed."""


class ZipmakerFailure(ZipPackagingError):
    """Raised when the zip utility fails or produces implausibly small parts."""

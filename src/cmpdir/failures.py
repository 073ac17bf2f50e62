"""Failure values captured while scanning a tree."""

from enum import StrEnum


class FailureKind(StrEnum):
    """Kind of filesystem operation that failed."""
    DIRECTORY_LISTING = 'DirectoryListingFailure'  # Could not enumerate subdirectories
    FILE_LISTING = 'FileListingFailure'  # Could not enumerate files
    METADATA = 'MetadataFailure'  # Could not stat a file
    CONTENT_READ = 'ContentReadFailure'  # Could not stream a file's content


class ScanFailure(Exception):
    """A failed filesystem operation, carrying the failing path and the underlying cause.

    The scan engine catches these at their origin and accumulates them next to its result
    instead of letting them abort the walk.
    """

    def __init__(self, kind: FailureKind, path: str, cause: BaseException):
        super().__init__(kind, path, cause)
        self.kind = FailureKind(kind)
        self.path = path
        self.cause = cause

    @property
    def message(self) -> str:
        return str(self.cause) or type(self.cause).__name__

    def __str__(self):
        return f"[{self.kind}] at '{self.path}': {self.message}"

"""Directory tree model produced by a scan and annotated by a comparison."""

from enum import StrEnum
from typing import Iterator, NamedTuple

ROOT_RELATIVE_PATH = '/'


class CmpResult(StrEnum):
    """Classification of a file relative to its counterpart in the other tree."""
    EQUAL = 'Equal'  # Same path, same size and checksum
    ADDED = 'Added'  # Content only present in the target
    DELETED = 'Deleted'  # Content only present in the source
    MOVED = 'Moved'  # Same content found at a different path
    MODIFIED = 'Modified'  # Same path, content differs (or cannot be confirmed)
    DUPLICATED = 'Duplicated'  # Extra target copy of content the source already has
    DEDUPLICATED = 'Deduplicated'  # Surplus source copy of content the target still has


class Classification(NamedTuple):
    """Outcome assigned to one file by a comparison.

    Attributes:
        result: The classification
        links: Relative paths of the counterpart file(s) in the other tree. These are
               identifiers into the sibling tree rather than object references, so either
               tree can be serialized on its own.
    """
    result: CmpResult
    links: tuple[str, ...] = ()


def join_relative(directory: str, name: str) -> str:
    """Join a relative directory path and a name using '/' separators."""
    if directory == ROOT_RELATIVE_PATH:
        return name
    return f"{directory}/{name}"


def content_signature(size: int, checksum: int) -> str:
    """String form of the (size, checksum) content identity."""
    return f"{size}-{checksum:08X}"


class FileEntry:
    """A file found by a scan.

    The checksum is None until Phase B of the scan fills it in, and stays None if the
    content could not be read. The classification starts unset and can be assigned once.
    """

    def __init__(self, name: str, directory: str, size: int, checksum: int | None = None):
        if size < 0:
            raise ValueError(f"Negative file size for {name}: {size}")

        self._name = name
        self._directory = directory
        self._size = size
        self.checksum: int | None = checksum
        self._classification: Classification | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def directory(self) -> str:
        """Relative path of the containing directory ('/' for the scan root)."""
        return self._directory

    @property
    def size(self) -> int:
        return self._size

    @property
    def relative_path(self) -> str:
        return join_relative(self._directory, self._name)

    @property
    def signature(self) -> str | None:
        """Content signature, or None when the checksum is unavailable."""
        if self.checksum is None:
            return None
        return content_signature(self._size, self.checksum)

    @property
    def classification(self) -> Classification | None:
        return self._classification

    def classify(self, result: CmpResult, links: tuple[str, ...] = ()) -> None:
        """Assign the classification of this file.

        Raises:
            ValueError: If the file has already been classified
        """
        if self._classification is not None:
            raise ValueError(
                f"{self.relative_path} is already classified as {self._classification.result}")
        self._classification = Classification(result, tuple(links))

    def reset_classification(self) -> None:
        self._classification = None

    def __repr__(self):
        checksum = 'n/a' if self.checksum is None else f"{self.checksum:08X}"
        result = '' if self._classification is None else self._classification.result
        return f"FileEntry([{self._directory}] {self._name} size={self._size} crc={checksum} cmp={{{result}}})"


class DirectoryNode:
    """A directory of a scanned tree.

    Files and child directories are each kept sorted by name. The traversal order of the
    whole tree derives from this sorting, and the comparison relies on it being stable.
    """

    def __init__(self, absolute_path: str, relative_path: str,
                 files: list[FileEntry] | None = None, children: list['DirectoryNode'] | None = None):
        self.absolute_path = absolute_path
        self.relative_path = relative_path
        self.files: list[FileEntry] = sorted(files or [], key=lambda f: f.name)
        self.children: list[DirectoryNode] = sorted(children or [], key=lambda d: d.name)

    @property
    def name(self) -> str:
        """Last component of the directory path."""
        if self.relative_path != ROOT_RELATIVE_PATH:
            return self.relative_path.rsplit('/', 1)[-1]
        stripped = self.absolute_path.rstrip('/\\')
        return stripped.replace('\\', '/').rsplit('/', 1)[-1] if stripped else self.absolute_path

    def walk(self) -> Iterator['DirectoryNode']:
        """Yield this directory and all descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def iter_files(self) -> Iterator[FileEntry]:
        """Yield all files of the subtree in pre-order, sorted within each directory."""
        for directory in self.walk():
            yield from directory.files

    def __repr__(self):
        return f"DirectoryNode({self.relative_path!r}, files={len(self.files)}, children={len(self.children)})"

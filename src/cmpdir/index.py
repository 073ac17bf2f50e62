"""Path and content lookups over a completed DirectoryTree."""

from typing import Iterator

from .tree import DirectoryNode, FileEntry


class FileIndex:
    """Dual index over the files of one tree.

    The path index maps each file's relative path to its entry. The content index groups
    entries by content signature; each group lists its entries in the tree's pre-order,
    which is the order the comparator pairs them in. Files without a checksum have no
    signature and appear only in the path index and in `unhashed`.
    """

    def __init__(self, tree: DirectoryNode):
        self._tree = tree
        self._by_path: dict[str, FileEntry] = {}
        self._by_content: dict[str, list[FileEntry]] = {}
        self._unhashed: list[FileEntry] = []

    @classmethod
    def from_tree(cls, tree: DirectoryNode) -> 'FileIndex':
        index = cls(tree)
        for entry in tree.iter_files():
            index._add(entry)
        return index

    def _add(self, entry: FileEntry) -> None:
        relative_path = entry.relative_path
        if relative_path in self._by_path:
            raise ValueError(f"Duplicate path in tree: {relative_path}")
        self._by_path[relative_path] = entry

        signature = entry.signature
        if signature is None:
            self._unhashed.append(entry)
        else:
            self._by_content.setdefault(signature, []).append(entry)

    @property
    def tree(self) -> DirectoryNode:
        return self._tree

    @property
    def root_name(self) -> str:
        return self._tree.name

    @property
    def files(self) -> list[FileEntry]:
        """All files in pre-order."""
        return list(self._by_path.values())

    @property
    def unhashed(self) -> list[FileEntry]:
        """Files whose checksum is unavailable, in pre-order."""
        return list(self._unhashed)

    def get(self, relative_path: str) -> FileEntry | None:
        return self._by_path.get(relative_path)

    def signatures(self) -> Iterator[str]:
        """Content signatures in order of first appearance."""
        return iter(self._by_content)

    def group(self, signature: str) -> list[FileEntry]:
        """Entries sharing a content signature, in pre-order (empty if none)."""
        return list(self._by_content.get(signature, ()))

    def __contains__(self, relative_path: str) -> bool:
        return relative_path in self._by_path

    def __len__(self):
        return len(self._by_path)

    def __repr__(self):
        return f"FileIndex({self.root_name!r}: {len(self._by_path)} files, {len(self._by_content)} signatures)"

"""Classification of two indexed trees.

The comparison runs three passes in order; a file classified by one pass is left alone by
the later ones.

1. Path match: a file present at the same relative path on both sides is Equal when size
   and checksum match and Modified otherwise.
2. Moved: within a content signature present on both sides, the still unclassified files
   are paired by position (i-th source with i-th target) and become Moved.
3. Leftovers: for every signature, unclassified source files become Deduplicated (the
   target still holds that content) or Deleted (it does not), and unclassified target
   files become Duplicated or Added likewise.

Content-identical files are treated as interchangeable. Pairing follows traversal order
only; names and path distance play no part in choosing a counterpart.
"""

import logging
from collections import Counter
from typing import Iterable, NamedTuple

from .index import FileIndex
from .tree import CmpResult, DirectoryNode, FileEntry

logger = logging.getLogger(__name__)


class ComparisonResult(NamedTuple):
    source: FileIndex
    target: FileIndex


def _paths(entries: Iterable[FileEntry]) -> tuple[str, ...]:
    return tuple(entry.relative_path for entry in entries)


def _link(source: FileEntry, target: FileEntry, result: CmpResult) -> None:
    source.classify(result, (target.relative_path,))
    target.classify(result, (source.relative_path,))


def _unassigned(entries: Iterable[FileEntry]) -> list[FileEntry]:
    return [entry for entry in entries if entry.classification is None]


def _match_paths(source: FileIndex, target: FileIndex) -> None:
    for source_file in source.files:
        target_file = target.get(source_file.relative_path)
        if target_file is None:
            continue

        # Without both checksums identical content cannot be confirmed
        if source_file.checksum is not None and target_file.checksum is not None \
                and source_file.size == target_file.size and source_file.checksum == target_file.checksum:
            _link(source_file, target_file, CmpResult.EQUAL)
        else:
            _link(source_file, target_file, CmpResult.MODIFIED)


def _match_moved(source: FileIndex, target: FileIndex) -> None:
    for signature in source.signatures():
        target_files = _unassigned(target.group(signature))
        if not target_files:
            continue

        source_files = _unassigned(source.group(signature))
        for source_file, target_file in zip(source_files, target_files):
            _link(source_file, target_file, CmpResult.MOVED)


def _classify_leftovers(source: FileIndex, target: FileIndex) -> None:
    signatures = list(source.signatures())
    signatures.extend(s for s in target.signatures() if not source.group(s))

    for signature in signatures:
        source_group = source.group(signature)
        target_group = target.group(signature)

        if source_group and target_group:
            not_assigned_source = _unassigned(source_group)
            if not_assigned_source:
                links = _paths(target_group)
                for entry in not_assigned_source:
                    entry.classify(CmpResult.DEDUPLICATED, links)
            else:
                links = _paths(source_group)
                for entry in _unassigned(target_group):
                    entry.classify(CmpResult.DUPLICATED, links)
        elif source_group:
            for entry in _unassigned(source_group):
                entry.classify(CmpResult.DELETED)
        else:
            for entry in _unassigned(target_group):
                entry.classify(CmpResult.ADDED)

    # Files with unreadable content only ever match by path
    for entry in _unassigned(source.unhashed):
        entry.classify(CmpResult.DELETED)
    for entry in _unassigned(target.unhashed):
        entry.classify(CmpResult.ADDED)


def compare(source: FileIndex, target: FileIndex) -> None:
    """Classify every file of two indexed trees.

    Each file's classification is assigned exactly once; the two trees are linked only
    through the relative paths stored in the classifications.

    Args:
        source: Index of the source (earlier) tree
        target: Index of the target (later) tree

    Raises:
        ValueError: A file was already classified before the comparison
        RuntimeError: A file remained unclassified after the last pass
    """
    logger.info(f"Comparing {source.root_name} ({len(source)} files) with {target.root_name} ({len(target)} files)")

    _match_paths(source, target)
    _match_moved(source, target)
    _classify_leftovers(source, target)

    leftover = _unassigned(source.files) + _unassigned(target.files)
    if leftover:
        raise RuntimeError(f"{len(leftover)} file(s) left unclassified, first: {leftover[0].relative_path}")

    logger.info(f"Source: {summarize(source.files)}")
    logger.info(f"Target: {summarize(target.files)}")


def compare_trees(source: DirectoryNode, target: DirectoryNode) -> ComparisonResult:
    """Index both trees and classify them, discarding classifications of earlier runs."""
    for entry in source.iter_files():
        entry.reset_classification()
    for entry in target.iter_files():
        entry.reset_classification()

    result = ComparisonResult(FileIndex.from_tree(source), FileIndex.from_tree(target))
    compare(result.source, result.target)
    return result


def count_results(entries: Iterable[FileEntry]) -> dict[CmpResult, int]:
    """Number of files per classification, in CmpResult declaration order, zeros omitted."""
    counts = Counter(entry.classification.result for entry in entries if entry.classification is not None)
    return {result: counts[result] for result in CmpResult if counts[result]}


def summarize(entries: Iterable[FileEntry]) -> str:
    counts = count_results(entries)
    if not counts:
        return "no files"
    return ", ".join(f"{result} {count}" for result, count in counts.items())

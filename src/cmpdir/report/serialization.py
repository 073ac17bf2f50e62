"""JSON documents and msgpack snapshots of scanned and compared trees.

The JSON forms are plain dicts built in a fixed key order, so dumping the same tree twice
produces identical text. The msgpack snapshot keeps what a scan produces (names, sizes and
checksums) and leaves classifications out; a snapshot is meant to be compared again later.
"""

import json
from typing import Any, Iterable, TextIO

import msgpack

from ..comparator import ComparisonResult, count_results
from ..failures import ScanFailure
from ..pairs import PairOutcome
from ..scanner import ScanResult
from ..tree import DirectoryNode, FileEntry

SNAPSHOT_MAGIC = 'cmpdir-tree'
SNAPSHOT_VERSION = 1


def checksum_to_string(checksum: int | None) -> str | None:
    return None if checksum is None else f"{checksum:08X}"


def file_to_dict(entry: FileEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        'name': entry.name,
        'directory': entry.directory,
        'size': entry.size,
        'checksum': checksum_to_string(entry.checksum),
    }
    if entry.classification is not None:
        data['result'] = str(entry.classification.result)
        data['links'] = list(entry.classification.links)
    return data


def tree_to_dict(node: DirectoryNode) -> dict[str, Any]:
    """Nested dict of a directory and everything below it, in traversal order."""
    return {
        'name': node.name,
        'path': node.relative_path,
        'files': [file_to_dict(entry) for entry in node.files],
        'directories': [tree_to_dict(child) for child in node.children],
    }


def failure_to_dict(failure: ScanFailure) -> dict[str, Any]:
    return {
        'kind': str(failure.kind),
        'path': failure.path,
        'message': failure.message,
    }


def scan_to_dict(result: ScanResult) -> dict[str, Any]:
    return {
        'root': result.tree.absolute_path,
        'tree': tree_to_dict(result.tree),
        'failures': [failure_to_dict(failure) for failure in result.failures],
    }


def comparison_to_dict(
    comparison: ComparisonResult,
    source_failures: Iterable[ScanFailure] = (),
    target_failures: Iterable[ScanFailure] = ()
) -> dict[str, Any]:
    """Both classified trees with their scan failures and per-result counts."""
    def side(index, failures):
        return {
            'root': index.tree.absolute_path,
            'summary': {str(result): count for result, count in count_results(index.files).items()},
            'tree': tree_to_dict(index.tree),
            'failures': [failure_to_dict(failure) for failure in failures],
        }

    return {
        'source': side(comparison.source, source_failures),
        'target': side(comparison.target, target_failures),
    }


def pair_outcome_to_dict(outcome: PairOutcome) -> dict[str, Any]:
    return {
        'A': outcome.pair.a,
        'B': outcome.pair.b,
        'result': None if outcome.result is None else str(outcome.result),
        'size_a': outcome.size_a,
        'size_b': outcome.size_b,
        'checksum_a': checksum_to_string(outcome.checksum_a),
        'checksum_b': checksum_to_string(outcome.checksum_b),
        'failure': None if outcome.failure is None else failure_to_dict(outcome.failure),
    }


def dump_json(document: Any, stream: TextIO) -> None:
    json.dump(document, stream, indent=2, ensure_ascii=False)
    stream.write('\n')


def _node_to_list(node: DirectoryNode) -> list[Any]:
    return [
        node.absolute_path,
        node.relative_path,
        [[entry.name, entry.size, entry.checksum] for entry in node.files],
        [_node_to_list(child) for child in node.children],
    ]


def _node_from_list(data: list[Any]) -> DirectoryNode:
    absolute_path, relative_path, file_data, children_data = data
    files = [FileEntry(name, relative_path, size, checksum) for name, size, checksum in file_data]
    children = [_node_from_list(child) for child in children_data]
    return DirectoryNode(absolute_path, relative_path, files, children)


def tree_to_msgpack(tree: DirectoryNode) -> bytes:
    """Serialize a scanned tree to msgpack.

    Returns:
        Msgpack-encoded bytes containing [magic, version, node] where node is
        [absolute_path, relative_path, [[name, size, checksum], ...], [node, ...]]
    """
    result = msgpack.dumps([SNAPSHOT_MAGIC, SNAPSHOT_VERSION, _node_to_list(tree)])
    assert isinstance(result, bytes)
    return result


def tree_from_msgpack(data: bytes) -> DirectoryNode:
    """Rebuild a tree written by tree_to_msgpack, with every file unclassified.

    Raises:
        ValueError: data is not a tree snapshot of a supported version
    """
    try:
        decoded = msgpack.loads(data)
    except (msgpack.UnpackException, ValueError) as e:
        raise ValueError(f"Not a tree snapshot: {e}") from e

    if not isinstance(decoded, list) or len(decoded) != 3 or decoded[0] != SNAPSHOT_MAGIC:
        raise ValueError("Not a tree snapshot")
    if decoded[1] != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported tree snapshot version: {decoded[1]}")

    try:
        return _node_from_list(decoded[2])
    except (TypeError, ValueError) as e:
        raise ValueError(f"Corrupted tree snapshot: {e}") from e

"""Comparison of an explicit list of file pairs, without scanning or indexing."""

import errno
import json
import logging
import os
from pathlib import Path
from typing import Iterable, NamedTuple

from .checksum import CHUNK_SIZE, compute_crc32
from .failures import FailureKind, ScanFailure
from .gateway import FileSystemGateway
from .tree import CmpResult

logger = logging.getLogger(__name__)


class FilePair(NamedTuple):
    """Two paths to compare, as written by the caller."""
    a: str
    b: str


class PairOutcome(NamedTuple):
    """Result of comparing one pair.

    Attributes:
        pair: The compared pair
        result: Equal, Modified, Added (only B exists) or Deleted (only A exists);
                None when the pair could not be classified
        size_a: Size of A, if it exists and could be stat'ed
        size_b: Size of B, likewise
        checksum_a: CRC-32 of A, computed only when the sizes match
        checksum_b: CRC-32 of B, likewise
        failure: Why result is None
    """
    pair: FilePair
    result: CmpResult | None
    size_a: int | None = None
    size_b: int | None = None
    checksum_a: int | None = None
    checksum_b: int | None = None
    failure: ScanFailure | None = None


def load_file_pairs(path: str | os.PathLike) -> list[FilePair]:
    """Read pairs from a JSON array of {"A": ..., "B": ...} objects.

    Raises:
        ValueError: The document is not such an array
    """
    with open(path, 'r', encoding='utf-8') as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(document, list):
        raise ValueError(f"Expected a JSON array of file pairs in {path}")

    pairs = []
    for position, record in enumerate(document):
        if not isinstance(record, dict) or not isinstance(record.get('A'), str) \
                or not isinstance(record.get('B'), str):
            raise ValueError(f"Pair #{position} in {path} must be an object with string fields A and B")
        pairs.append(FilePair(record['A'], record['B']))
    return pairs


def _probe(gateway: FileSystemGateway, path: Path) -> int | None:
    """Size of the file at path, or None if nothing exists there."""
    try:
        return gateway.stat_file(path)
    except ScanFailure as failure:
        if isinstance(failure.cause, (FileNotFoundError, NotADirectoryError)):
            return None
        raise


def compare_file_pair(
    pair: FilePair,
    base_dir: str | os.PathLike | None = None,
    gateway: FileSystemGateway | None = None,
    chunk_size: int = CHUNK_SIZE
) -> PairOutcome:
    """Classify a single pair.

    Args:
        pair: Paths to compare
        base_dir: Directory relative paths of the pair are resolved against (working
                  directory when None)
        gateway: Filesystem access; a default FileSystemGateway when None
        chunk_size: Read size for checksums

    Returns:
        The outcome; failures are reported in it rather than raised
    """
    gateway = gateway if gateway is not None else FileSystemGateway()
    base = Path(base_dir) if base_dir is not None else Path()
    path_a = base / pair.a
    path_b = base / pair.b

    try:
        size_a = _probe(gateway, path_a)
        size_b = _probe(gateway, path_b)
    except ScanFailure as failure:
        return PairOutcome(pair, None, failure=failure)

    if size_a is None and size_b is None:
        cause = FileNotFoundError(errno.ENOENT, "Neither file of the pair exists", str(path_b))
        return PairOutcome(pair, None, failure=ScanFailure(FailureKind.METADATA, str(path_a), cause))
    if size_a is None:
        return PairOutcome(pair, CmpResult.ADDED, size_b=size_b)
    if size_b is None:
        return PairOutcome(pair, CmpResult.DELETED, size_a=size_a)
    if size_a != size_b:
        return PairOutcome(pair, CmpResult.MODIFIED, size_a, size_b)

    try:
        checksum_a = compute_crc32(path_a, chunk_size)
        checksum_b = compute_crc32(path_b, chunk_size)
    except ScanFailure as failure:
        return PairOutcome(pair, None, size_a, size_b, failure=failure)

    result = CmpResult.EQUAL if checksum_a == checksum_b else CmpResult.MODIFIED
    return PairOutcome(pair, result, size_a, size_b, checksum_a, checksum_b)


def compare_file_pairs(
    pairs: Iterable[FilePair],
    base_dir: str | os.PathLike | None = None,
    gateway: FileSystemGateway | None = None,
    chunk_size: int = CHUNK_SIZE
) -> list[PairOutcome]:
    """Classify each pair independently, in input order."""
    gateway = gateway if gateway is not None else FileSystemGateway()

    outcomes = []
    for pair in pairs:
        outcome = compare_file_pair(pair, base_dir, gateway, chunk_size)
        if outcome.failure is not None:
            logger.warning(str(outcome.failure))
        else:
            logger.debug(f"{pair.a} <-> {pair.b}: {outcome.result}")
        outcomes.append(outcome)
    return outcomes

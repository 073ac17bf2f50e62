"""Persistent storage of comparison results in report directories."""

import json
import logging
from dataclasses import asdict, dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Iterator

import mmh3
import msgpack
import plyvel

from ..comparator import ComparisonResult, count_results
from ..failures import ScanFailure
from ..index import FileIndex
from ..tree import CmpResult, FileEntry

logger = logging.getLogger(__name__)

REPORT_FORMAT_VERSION = "1.0"
SEQUENCE_NUMBER_SIZE = 4


class Side(StrEnum):
    SOURCE = 'source'
    TARGET = 'target'

    @property
    def key_prefix(self) -> bytes:
        return b's' if self is Side.SOURCE else b't'


class ClassificationRecord:
    """Stored outcome of one file of a comparison.

    Attributes:
        side: Tree the file belongs to
        path: Relative path of the file within its tree
        size: File size in bytes
        checksum: CRC-32 of the content, None when it could not be read
        result: Classification, None if the file was never classified
        links: Relative paths of the counterpart file(s) in the other tree
    """

    def __init__(
            self,
            side: Side,
            path: str,
            size: int,
            checksum: int | None = None,
            result: CmpResult | None = None,
            links: tuple[str, ...] = ()):
        self.side = side
        self.path = path
        self.size = size
        self.checksum = checksum
        self.result = result
        self.links = tuple(links)

    @classmethod
    def from_entry(cls, side: Side, entry: FileEntry) -> "ClassificationRecord":
        classification = entry.classification
        if classification is None:
            return cls(side, entry.relative_path, entry.size, entry.checksum)
        return cls(side, entry.relative_path, entry.size, entry.checksum, classification.result,
                   classification.links)

    def to_msgpack(self) -> bytes:
        """Serialize to msgpack format for storage.

        Returns:
            Msgpack-encoded bytes containing [side, path, size, checksum, result, links]
        """
        result = msgpack.dumps([
            str(self.side),
            self.path,
            self.size,
            self.checksum,
            None if self.result is None else str(self.result),
            list(self.links),
        ])
        assert isinstance(result, bytes)
        return result

    @classmethod
    def from_msgpack(cls, data: bytes) -> "ClassificationRecord":
        decoded = msgpack.loads(data)
        assert isinstance(decoded, list)
        side, path, size, checksum, result, links = decoded
        return cls(Side(side), path, size, checksum, None if result is None else CmpResult(result), tuple(links))

    def __eq__(self, other):
        if not isinstance(other, ClassificationRecord):
            return NotImplemented
        return (self.side, self.path, self.size, self.checksum, self.result, self.links) == \
            (other.side, other.path, other.size, other.checksum, other.result, other.links)

    def __repr__(self):
        return f"ClassificationRecord({self.side}, {self.path!r}, size={self.size}, result={self.result})"


@dataclass
class ReportManifest:
    """Summary of a stored comparison.

    This is persisted as manifest.json in the report directory.
    """
    version: str = REPORT_FORMAT_VERSION
    """Report format version"""

    source: str = ""
    """Directory or snapshot the source tree came from"""

    target: str = ""
    """Directory or snapshot the target tree came from"""

    timestamp: str = ""
    """ISO format timestamp when the comparison was performed"""

    source_counts: dict[str, int] = field(default_factory=dict)
    """Number of source files per classification"""

    target_counts: dict[str, int] = field(default_factory=dict)
    """Number of target files per classification"""

    source_failures: int = 0
    """Number of failures met while scanning the source"""

    target_failures: int = 0
    """Number of failures met while scanning the target"""

    def to_dict(self) -> dict[str, Any]:
        """Convert manifest to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReportManifest":
        """Load manifest from dictionary."""
        return cls(**data)

    @classmethod
    def from_comparison(cls, comparison: ComparisonResult, source: str, target: str, timestamp: str,
                        source_failures: list[ScanFailure], target_failures: list[ScanFailure]) -> "ReportManifest":
        def counts(index: FileIndex) -> dict[str, int]:
            return {str(result): count for result, count in count_results(index.files).items()}

        return cls(
            source=source,
            target=target,
            timestamp=timestamp,
            source_counts=counts(comparison.source),
            target_counts=counts(comparison.target),
            source_failures=len(source_failures),
            target_failures=len(target_failures),
        )


class ReportStore:
    """Handles reading and writing comparison reports with LevelDB storage.

    Key layout: <side byte><16-byte path hash><4-byte big-endian sequence number>. The
    sequence number separates paths whose hashes collide.
    """

    def __init__(self, report_dir: Path) -> None:
        """Initialize report store.

        Args:
            report_dir: Directory holding manifest.json and the database
        """
        self.report_dir: Path = report_dir
        self.manifest_path: Path = report_dir / 'manifest.json'
        self.database_path: Path = report_dir / 'database'
        self._database: plyvel.DB | None = None

    def create_report_directory(self) -> None:
        self.report_dir.mkdir(parents=True, exist_ok=True)

    def open_database(self, *, create_if_missing: bool = False) -> None:
        """Open the LevelDB database.

        Args:
            create_if_missing: If True, create the database if it doesn't exist.
                              If False, raise FileNotFoundError if database doesn't exist.
        """
        if create_if_missing:
            self.database_path.mkdir(parents=True, exist_ok=True)
        elif not self.database_path.exists():
            raise FileNotFoundError(f"Report database not found: {self.database_path}")
        self._database = plyvel.DB(str(self.database_path), create_if_missing=create_if_missing)

    def destroy_database(self) -> None:
        """Remove the database with every stored record; the store must be closed."""
        if self._database is not None:
            raise RuntimeError("Cannot destroy an open database")
        if self.database_path.exists():
            plyvel.destroy_db(str(self.database_path))
            logger.info(f"Removed previous report database {self.database_path}")

    def close_database(self) -> None:
        if self._database is not None:
            self._database.close()
            self._database = None

    def __enter__(self) -> "ReportStore":
        self.open_database()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close_database()

    def _prefixed_db(self, side: Side, path: str):
        if self._database is None:
            raise RuntimeError("Database not opened. Use context manager or call open_database().")
        return self._database.prefixed_db(side.key_prefix + self._compute_path_hash(path))

    def read_record(self, side: Side, path: str) -> ClassificationRecord | None:
        """Look up the record of a relative path on one side, None if there is none."""
        prefixed_db = self._prefixed_db(side, path)

        for _, value in prefixed_db.iterator():
            record = ClassificationRecord.from_msgpack(value)
            if record.path == path:
                return record

        return None

    def write_record(self, record: ClassificationRecord) -> None:
        """Insert a record, replacing the stored record of the same side and path."""
        prefixed_db = self._prefixed_db(record.side, record.path)

        next_seq_num = 0
        for key, value in prefixed_db.iterator():
            if ClassificationRecord.from_msgpack(value).path == record.path:
                prefixed_db.put(key, record.to_msgpack())
                return
            next_seq_num = max(next_seq_num, int.from_bytes(key, byteorder='big') + 1)

        prefixed_db.put(next_seq_num.to_bytes(SEQUENCE_NUMBER_SIZE, byteorder='big'), record.to_msgpack())

    def iter_records(self, side: Side) -> Iterator[ClassificationRecord]:
        """All records of one side, in key order."""
        if self._database is None:
            raise RuntimeError("Database not opened. Use context manager or call open_database().")
        for _, value in self._database.iterator(prefix=side.key_prefix):
            yield ClassificationRecord.from_msgpack(value)

    def write_comparison(self, comparison: ComparisonResult) -> int:
        """Store a record for every file of both trees.

        Returns:
            Number of records written
        """
        if self._database is None:
            raise RuntimeError("Database not opened. Use context manager or call open_database().")

        written = 0
        for side, index in ((Side.SOURCE, comparison.source), (Side.TARGET, comparison.target)):
            for entry in index.files:
                self.write_record(ClassificationRecord.from_entry(side, entry))
                written += 1
        logger.info(f"Stored {written} classification records in {self.database_path}")
        return written

    def write_manifest(self, manifest: ReportManifest) -> None:
        with open(self.manifest_path, 'w', encoding='utf-8') as f:
            json.dump(manifest.to_dict(), f, indent=2, ensure_ascii=False)

    def read_manifest(self) -> ReportManifest:
        """Read existing report manifest.

        Raises:
            FileNotFoundError: If manifest.json doesn't exist
        """
        with open(self.manifest_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return ReportManifest.from_dict(data)

    @staticmethod
    def _compute_path_hash(path: str) -> bytes:
        """Compute 128-bit Murmur3 hash for a relative path.

        Returns:
            16 bytes representing the 128-bit hash value
        """
        hash_value = mmh3.hash128(path.encode('utf-8'), signed=False)
        return hash_value.to_bytes(16, byteorder='big')

"""Two-phase scan building a checksum-annotated directory tree."""

import asyncio
import contextlib
import logging
import os
from asyncio import TaskGroup
from pathlib import Path
from typing import Iterator, NamedTuple

from .checksum import CHUNK_SIZE, compute_crc32
from .failures import ScanFailure
from .gateway import FileSystemGateway
from .progress import (
    DEFAULT_INTERVAL,
    DEFAULT_SLOW_FILE_THRESHOLD,
    ProgressReporter,
    ProgressSink,
    ProgressState,
)
from .tree import ROOT_RELATIVE_PATH, DirectoryNode, FileEntry, join_relative
from .utils.processor import Processor
from .utils.throttler import Throttler

logger = logging.getLogger(__name__)


class ScanResult(NamedTuple):
    """A scanned tree together with every failure met while building it.

    Attributes:
        tree: Root directory of the scan; entities that could not be listed or stat'ed are
              missing, files whose content could not be read have checksum None
        failures: Failures in walk order (listing and metadata first, then content reads)
    """
    tree: DirectoryNode
    failures: list[ScanFailure]


class ScanEngine:
    """Builds a DirectoryTree in two strictly ordered phases.

    Phase A walks the root depth-first, listing and stat'ing every file. Phase B then
    traverses the finished tree and computes each file's CRC-32, either inline or on a
    Processor's pool. A failure is recorded and the walk continues; the caller decides
    what the accumulated failures mean.
    """

    def __init__(
        self,
        gateway: FileSystemGateway | None = None,
        processor: Processor | None = None,
        chunk_size: int = CHUNK_SIZE,
        progress_interval: float = DEFAULT_INTERVAL,
        slow_file_threshold: float = DEFAULT_SLOW_FILE_THRESHOLD
    ):
        """Initialize the scan engine.

        Args:
            gateway: Filesystem access; a default FileSystemGateway when None
            processor: Pool used to hash files in parallel in Phase B; when None, files are
                       hashed one after the other in the calling thread
            chunk_size: Read size for inline hashing (a Processor uses its own setting)
            progress_interval: Seconds between two progress snapshots
            slow_file_threshold: Seconds after which a file in progress is named in snapshots
        """
        self._gateway = gateway if gateway is not None else FileSystemGateway()
        self._processor = processor
        self._chunk_size = chunk_size
        self._progress_interval = progress_interval
        self._slow_file_threshold = slow_file_threshold

    def scan(self, root: str | os.PathLike, progress_sink: ProgressSink | None = None) -> ScanResult:
        """Scan a directory tree.

        Args:
            root: Directory to scan
            progress_sink: Receives periodic ProgressSnapshot values while the scan runs

        Returns:
            ScanResult with the (possibly partial) tree and the accumulated failures

        Raises:
            FileNotFoundError: root does not exist
            NotADirectoryError: root is not a directory
        """
        root_path = Path(root).absolute()
        if not root_path.exists():
            raise FileNotFoundError(f"Directory does not exist: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")

        state = ProgressState()
        failures: list[ScanFailure] = []

        if progress_sink is None:
            reporting = contextlib.nullcontext()
        else:
            reporting = ProgressReporter(state, progress_sink, self._progress_interval, self._slow_file_threshold)

        with reporting:
            logger.info(f"Listing {root_path}")
            tree = self._collect(root_path, ROOT_RELATIVE_PATH, state, failures)

            state.start_hashing()
            logger.info(f"Hashing files under {root_path}")
            if self._processor is None:
                self._hash_inline(tree, state, failures)
            else:
                failures.extend(asyncio.run(self._hash_in_pool(tree, state)))
            state.finish()

        logger.info(f"Scan of {root_path} finished with {len(failures)} failure(s)")
        return ScanResult(tree, failures)

    def _collect(self, path: Path, relative_path: str, state: ProgressState,
                 failures: list[ScanFailure]) -> DirectoryNode:
        """Phase A: build the node for path and, recursively, its subtree."""
        try:
            subdirectories = self._gateway.list_subdirectories(path)
        except ScanFailure as failure:
            # Nothing below an unreadable directory can be represented
            self._record(failure, failures)
            return DirectoryNode(str(path), relative_path)

        try:
            file_paths = self._gateway.list_files(path)
        except ScanFailure as failure:
            self._record(failure, failures)
            file_paths = []

        files = []
        for file_path in file_paths:
            try:
                size = self._gateway.stat_file(file_path)
            except ScanFailure as failure:
                self._record(failure, failures)
                continue

            files.append(FileEntry(file_path.name, relative_path, size))
            state.file_seen(size)

        children = [
            self._collect(subdirectory, join_relative(relative_path, subdirectory.name), state, failures)
            for subdirectory in subdirectories
        ]

        return DirectoryNode(str(path), relative_path, files, children)

    @staticmethod
    def _files_to_hash(tree: DirectoryNode) -> Iterator[tuple[Path, FileEntry]]:
        for directory in tree.walk():
            for entry in directory.files:
                yield Path(directory.absolute_path) / entry.name, entry

    def _hash_inline(self, tree: DirectoryNode, state: ProgressState, failures: list[ScanFailure]) -> None:
        """Phase B, sequential."""
        for path, entry in self._files_to_hash(tree):
            state.file_started(str(path))
            try:
                entry.checksum = compute_crc32(path, self._chunk_size)
            except ScanFailure as failure:
                self._record(failure, failures)
            finally:
                state.file_hashed(entry.size)

    async def _hash_in_pool(self, tree: DirectoryNode, state: ProgressState) -> list[ScanFailure]:
        """Phase B on the processor's pool.

        Each result is stored on its own entry, so completion order does not influence the
        tree. Failures are returned in tree pre-order for the same reason.
        """
        assert self._processor is not None
        processor = self._processor
        jobs = list(self._files_to_hash(tree))
        outcomes: list[ScanFailure | None] = [None] * len(jobs)

        async def hash_one(position: int, path: Path, entry: FileEntry):
            state.file_started(str(path))
            try:
                entry.checksum = await processor.crc32(path)
            except ScanFailure as failure:
                outcomes[position] = failure
            finally:
                state.file_hashed(entry.size)

        async with TaskGroup() as tg:
            throttler = Throttler(tg, processor.concurrency * 2)
            for position, (path, entry) in enumerate(jobs):
                await throttler.schedule(hash_one(position, path, entry))

        failures = []
        for failure in outcomes:
            if failure is not None:
                self._record(failure, failures)
        return failures

    @staticmethod
    def _record(failure: ScanFailure, failures: list[ScanFailure]) -> None:
        logger.warning(str(failure))
        failures.append(failure)

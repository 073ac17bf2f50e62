"""Pieces shared by the subcommands: scan setup and output destinations."""

import contextlib
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterator

from ..checksum import CHUNK_SIZE
from ..progress import DEFAULT_INTERVAL, DEFAULT_SLOW_FILE_THRESHOLD, ConsoleProgressSink
from ..scanner import ScanEngine, ScanResult
from ..utils.processor import Processor

logger = logging.getLogger(__name__)


@dataclass
class ScanOptions:
    """How directories are scanned by a command.

    Attributes:
        jobs: Worker processes hashing file content; 0 hashes inline in this process
        chunk_size: Read size for checksums in bytes
        progress_interval: Seconds between progress updates
        slow_file_threshold: Seconds after which the file being hashed is named
        show_progress: Render progress on stderr
    """
    jobs: int = 0
    chunk_size: int = CHUNK_SIZE
    progress_interval: float = DEFAULT_INTERVAL
    slow_file_threshold: float = DEFAULT_SLOW_FILE_THRESHOLD
    show_progress: bool = False


@contextlib.contextmanager
def scan_engine(options: ScanOptions) -> Iterator[ScanEngine]:
    """A ScanEngine configured from options, with its worker pool alive for the block."""
    if options.jobs < 0:
        raise ValueError(f"Number of jobs must not be negative: {options.jobs}")

    if options.jobs == 0:
        yield ScanEngine(
            chunk_size=options.chunk_size,
            progress_interval=options.progress_interval,
            slow_file_threshold=options.slow_file_threshold)
        return

    with Processor(options.jobs, options.chunk_size) as processor:
        yield ScanEngine(
            processor=processor,
            chunk_size=options.chunk_size,
            progress_interval=options.progress_interval,
            slow_file_threshold=options.slow_file_threshold)


def run_scan(engine: ScanEngine, root: Path, options: ScanOptions) -> ScanResult:
    sink = ConsoleProgressSink() if options.show_progress else None
    try:
        return engine.scan(root, sink)
    finally:
        if sink is not None:
            sink.clear()


@contextlib.contextmanager
def open_output(path: str | None, binary: bool = False) -> Iterator[IO]:
    """Yield the file at path opened for writing, or stdout when path is None or '-'."""
    if path is None or path == '-':
        yield sys.stdout.buffer if binary else sys.stdout
        return

    if binary:
        with open(path, 'wb') as f:
            yield f
    else:
        with open(path, 'w', encoding='utf-8') as f:
            yield f
    logger.info(f"Wrote {path}")

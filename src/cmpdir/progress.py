"""Progress counters of a scan and the time-driven loop that reports them.

The scan owns a ProgressState and is its only writer. A ProgressReporter thread polls
snapshots at a fixed interval and hands them to a sink; it never touches scan state.
"""

import logging
import sys
import threading
import time
from enum import StrEnum
from typing import Callable, NamedTuple, TextIO

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.5
DEFAULT_SLOW_FILE_THRESHOLD = 5.0


class ScanPhase(StrEnum):
    LISTING = 'Listing'  # Phase A: metadata collection
    HASHING = 'Hashing'  # Phase B: content checksums
    DONE = 'Done'


class ProgressSnapshot(NamedTuple):
    """Point-in-time view of a scan's progress.

    Attributes:
        phase: Current scan phase
        current_files: Files listed (Listing) or hashed (Hashing) so far
        total_files: Files to hash, known only once listing is over
        current_bytes: Bytes listed or hashed so far
        total_bytes: Bytes to hash, known only once listing is over
        elapsed: Seconds since the scan started
        slow_file: Path of the file in progress, if it has been for longer than the threshold
    """
    phase: ScanPhase
    current_files: int
    total_files: int | None
    current_bytes: int
    total_bytes: int | None
    elapsed: float
    slow_file: str | None = None


ProgressSink = Callable[[ProgressSnapshot], None]


class ProgressState:
    """Monotonic counters of one scan invocation."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._started = clock()
        self._phase = ScanPhase.LISTING
        self._files_seen = 0
        self._bytes_seen = 0
        self._files_hashed = 0
        self._bytes_hashed = 0
        self._current_file: str | None = None
        self._current_file_since = 0.0

    def file_seen(self, size: int) -> None:
        with self._lock:
            self._files_seen += 1
            self._bytes_seen += size

    def start_hashing(self) -> None:
        with self._lock:
            self._phase = ScanPhase.HASHING

    def file_started(self, path: str) -> None:
        with self._lock:
            self._current_file = path
            self._current_file_since = self._clock()

    def file_hashed(self, size: int) -> None:
        with self._lock:
            self._files_hashed += 1
            self._bytes_hashed += size
            if self._files_hashed == self._files_seen:
                self._current_file = None

    def finish(self) -> None:
        with self._lock:
            self._phase = ScanPhase.DONE
            self._current_file = None

    def snapshot(self, slow_file_threshold: float = DEFAULT_SLOW_FILE_THRESHOLD) -> ProgressSnapshot:
        with self._lock:
            now = self._clock()
            slow_file = None
            if self._current_file is not None and now - self._current_file_since >= slow_file_threshold:
                slow_file = self._current_file

            if self._phase == ScanPhase.LISTING:
                return ProgressSnapshot(
                    self._phase, self._files_seen, None, self._bytes_seen, None, now - self._started)

            return ProgressSnapshot(
                self._phase, self._files_hashed, self._files_seen, self._bytes_hashed, self._bytes_seen,
                now - self._started, slow_file)


class ProgressReporter:
    """Background thread emitting snapshots of a ProgressState at a fixed cadence.

    Use as a context manager around the work being reported. One final snapshot is emitted
    when the reporter stops, so a sink always sees the end state.
    """

    def __init__(self, state: ProgressState, sink: ProgressSink,
                 interval: float = DEFAULT_INTERVAL,
                 slow_file_threshold: float = DEFAULT_SLOW_FILE_THRESHOLD):
        if interval <= 0:
            raise ValueError(f"interval must be positive: {interval}")

        self._state = state
        self._sink = sink
        self._interval = interval
        self._slow_file_threshold = slow_file_threshold
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name='cmpdir-progress', daemon=True)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        self._thread.join()
        self._emit()

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            self._emit()

    def _emit(self) -> None:
        try:
            self._sink(self._state.snapshot(self._slow_file_threshold))
        except Exception:
            # Sink errors stay out of the scan
            logger.exception("Progress sink failed")


def size_with_suffix(size: int) -> str:
    """Human-readable size: B, KB, MB or GB with two decimals."""
    if size >= 1024 ** 3:
        return f"{size / 1024 ** 3:.2f} GB"
    elif size >= 1024 ** 2:
        return f"{size / 1024 ** 2:.2f} MB"
    elif size >= 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size} B"


def duration_to_string(seconds: float) -> str:
    """Elapsed time as [H:]MM:SS, or 'N s' below one minute."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02}:{secs:02}"
    if minutes:
        return f"{minutes:02}:{secs:02}"
    return f"{secs} s"


def _percentage(current: int, total: int) -> str:
    if total == 0:
        return "0.0%"
    return f"{current * 100.0 / total:.1f}%"


def format_snapshot(snapshot: ProgressSnapshot) -> str:
    if snapshot.total_files is None or snapshot.total_bytes is None:
        text = (f"{snapshot.phase}...    {snapshot.current_files:,} files, "
                f"{size_with_suffix(snapshot.current_bytes)}")
    else:
        text = (f"{snapshot.phase}    {snapshot.current_files} of {snapshot.total_files} files, "
                f"{_percentage(snapshot.current_files, snapshot.total_files)},    "
                f"{size_with_suffix(snapshot.current_bytes)} of {size_with_suffix(snapshot.total_bytes)} data, "
                f"{_percentage(snapshot.current_bytes, snapshot.total_bytes)}")

    text += f"    elapsed time: {duration_to_string(snapshot.elapsed)}"
    if snapshot.slow_file is not None:
        text += f"    Processing file: {snapshot.slow_file}"
    return text


class ConsoleProgressSink:
    """Renders snapshots on a single console line that is overwritten in place."""

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream if stream is not None else sys.stderr
        self._last_length = 0

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        self.update(format_snapshot(snapshot))

    def update(self, text: str) -> None:
        padding = max(0, self._last_length - len(text))
        self._stream.write('\r' + text + ' ' * padding)
        self._stream.flush()
        self._last_length = len(text) + padding

    def clear(self) -> None:
        self._stream.write('\r' + ' ' * self._last_length + '\r')
        self._stream.flush()
        self._last_length = 0

import asyncio
import logging
import multiprocessing
import pathlib
from multiprocessing.pool import Pool
from typing import Awaitable

from ..checksum import CHUNK_SIZE, compute_crc32
from .profiling import profile_worker

logger = logging.getLogger(__name__)


@profile_worker
def compute_crc32_for_path(path: pathlib.Path, chunk_size: int):
    return compute_crc32(path, chunk_size)


class Processor:
    """Process pool running checksum computations off the main process.

    Results are delivered to the running asyncio loop as awaitables, so a caller can keep
    many files in flight while it assigns each result to its own entry.
    """

    def __init__(self, concurrency: int | None = None, chunk_size: int = CHUNK_SIZE):
        if concurrency is None:
            concurrency = multiprocessing.cpu_count()
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1: {concurrency}")

        self._concurrency = concurrency
        self._chunk_size = chunk_size
        self._pool: Pool = Pool(self._concurrency)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self._pool.close()
        self._pool.join()

    @property
    def concurrency(self):
        return self._concurrency

    def crc32(self, path: pathlib.Path) -> Awaitable[int]:
        """Compute the CRC-32 of a file in a worker process.

        The awaitable raises ScanFailure (ContentReadFailure) if the file cannot be read."""
        logger.debug(f"Starting checksum computation for: {path}")

        async def log_and_compute():
            result = await self._evaluate(compute_crc32_for_path, path, self._chunk_size)
            logger.debug(f"Completed checksum computation for: {path} ({result:08X})")
            return result

        return log_and_compute()

    def _evaluate(self, func, *args):
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        self._pool.apply_async(func, args=args,
                               callback=lambda v: loop.call_soon_threadsafe(future.set_result, v),
                               error_callback=lambda e: loop.call_soon_threadsafe(future.set_exception, e))

        return future

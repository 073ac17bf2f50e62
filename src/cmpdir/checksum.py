"""Streaming CRC-32 of file content."""

import zlib
from pathlib import Path

from .failures import FailureKind, ScanFailure

# Default read size per chunk
CHUNK_SIZE = 4 * 1024 * 1024


def compute_crc32(path: Path | str, chunk_size: int = CHUNK_SIZE) -> int:
    """Compute the CRC-32 of a file by streaming its content.

    zlib.crc32 implements the standard reflected CRC-32 (polynomial 0xEDB88320, register
    preset to 0xFFFFFFFF, final complement). Feeding it chunk by chunk with the running
    value yields the same result for any chunk size.

    Args:
        path: File to read
        chunk_size: Number of bytes read per chunk

    Returns:
        Unsigned 32-bit checksum

    Raises:
        ScanFailure: ContentReadFailure if the file cannot be opened or read
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive: {chunk_size}")

    crc = 0
    try:
        with open(path, 'rb') as f:
            while chunk := f.read(chunk_size):
                crc = zlib.crc32(chunk, crc)
    except OSError as e:
        raise ScanFailure(FailureKind.CONTENT_READ, str(path), e) from e

    return crc & 0xFFFFFFFF

"""Typed wrapper over the raw filesystem calls used by a scan."""

import logging
import os
import stat
from pathlib import Path

from .failures import FailureKind, ScanFailure

logger = logging.getLogger(__name__)

# Platform artifacts never reported as files, matched case-insensitively by exact name
PLATFORM_ARTIFACTS = frozenset({'thumbs.db', '.ds_store'})


def is_platform_artifact(name: str) -> bool:
    return name.casefold() in PLATFORM_ARTIFACTS


class FileSystemGateway:
    """Stateless access to directory listings and file metadata.

    Every operation either returns its value or raises ScanFailure with the failing path
    and the underlying OSError as cause. Symbolic links are neither listed nor followed;
    only real directories and regular files are reported.
    """

    def list_subdirectories(self, path: Path) -> list[Path]:
        """List the child directories of path, sorted by name.

        Raises:
            ScanFailure: DirectoryListingFailure if the directory cannot be enumerated
        """
        try:
            with os.scandir(path) as entries:
                names = [entry.name for entry in entries if entry.is_dir(follow_symlinks=False)]
        except OSError as e:
            raise ScanFailure(FailureKind.DIRECTORY_LISTING, str(path), e) from e

        return [path / name for name in sorted(names)]

    def list_files(self, path: Path) -> list[Path]:
        """List the regular files of path, sorted by name, without platform artifacts.

        Raises:
            ScanFailure: FileListingFailure if the directory cannot be enumerated
        """
        try:
            with os.scandir(path) as entries:
                names = [entry.name for entry in entries if entry.is_file(follow_symlinks=False)]
        except OSError as e:
            raise ScanFailure(FailureKind.FILE_LISTING, str(path), e) from e

        result = []
        for name in sorted(names):
            if is_platform_artifact(name):
                logger.debug(f"Skipping platform artifact: {path / name}")
                continue
            result.append(path / name)
        return result

    def stat_file(self, path: Path) -> int:
        """Return the size of a regular file in bytes.

        Raises:
            ScanFailure: MetadataFailure if the path cannot be stat'ed or is not a regular file
        """
        try:
            st = path.stat(follow_symlinks=False)
        except OSError as e:
            raise ScanFailure(FailureKind.METADATA, str(path), e) from e

        if not stat.S_ISREG(st.st_mode):
            raise ScanFailure(FailureKind.METADATA, str(path), ValueError("not a regular file"))
        return st.st_size

"""Describe subcommand displaying stored classification records."""

import sys
from pathlib import Path
from typing import TextIO

from ..progress import size_with_suffix
from ..report.serialization import checksum_to_string
from ..report.store import ClassificationRecord, ReportStore, Side

SIDE_BOTH = 'both'


def normalize_relative_path(path: str) -> str:
    """Relative path as stored: '/' separators, no leading or trailing slash."""
    return path.replace('\\', '/').strip('/')


def format_record(record: ClassificationRecord) -> list[str]:
    lines = [
        f"[{record.side}] {record.path}",
        f"  Size:     {size_with_suffix(record.size)} ({record.size:,} bytes)",
        f"  Checksum: {checksum_to_string(record.checksum) or 'unavailable'}",
        f"  Result:   {record.result or 'Unclassified'}",
    ]
    if record.links:
        lines.append(f"  Links:    {record.links[0]}")
        lines.extend(f"            {link}" for link in record.links[1:])
    return lines


def do_describe(report_dir: Path, path: str, side: str = SIDE_BOTH, stream: TextIO | None = None) -> None:
    """Print the stored records of a relative path from a report written by compare --report.

    Args:
        report_dir: Report directory
        path: Relative path of a file within the source or target tree
        side: 'source', 'target' or 'both'
        stream: Destination; stdout when None

    Raises:
        FileNotFoundError: report_dir holds no report
        ValueError: No record exists for path on the requested side(s)
    """
    stream = stream if stream is not None else sys.stdout
    relative_path = normalize_relative_path(path)
    sides = [Side.SOURCE, Side.TARGET] if side == SIDE_BOTH else [Side(side)]

    store = ReportStore(report_dir)
    manifest = store.read_manifest()
    with store:
        records = [record for record in (store.read_record(s, relative_path) for s in sides) if record is not None]

    if not records:
        raise ValueError(f"No record for {relative_path} in {report_dir}")

    stream.write(f"Report:    {report_dir}\n")
    stream.write(f"Source:    {manifest.source}\n")
    stream.write(f"Target:    {manifest.target}\n")
    stream.write(f"Timestamp: {manifest.timestamp}\n")
    for record in records:
        stream.write("\n")
        for line in format_record(record):
            stream.write(line + "\n")

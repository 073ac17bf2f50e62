"""Scan subcommand writing a single tree as JSON or as a msgpack snapshot."""

from pathlib import Path

from ..failures import ScanFailure
from ..report.serialization import dump_json, scan_to_dict, tree_to_msgpack
from .common import ScanOptions, open_output, run_scan, scan_engine

FORMAT_JSON = 'json'
FORMAT_MSGPACK = 'msgpack'


def do_scan(root: Path, output: str | None = None, output_format: str = FORMAT_JSON,
            options: ScanOptions | None = None) -> list[ScanFailure]:
    """Scan root and write the resulting tree.

    Args:
        root: Directory to scan
        output: Destination file; stdout when None (JSON only)
        output_format: 'json' for the readable tree with failures, 'msgpack' for a snapshot
                       that the compare command can load in place of a directory
        options: Scan configuration

    Returns:
        Failures met during the scan
    """
    options = options if options is not None else ScanOptions()
    if output_format not in (FORMAT_JSON, FORMAT_MSGPACK):
        raise ValueError(f"Unknown output format: {output_format}")
    if output_format == FORMAT_MSGPACK and output in (None, '-'):
        raise ValueError("A msgpack snapshot needs an output file (-o)")

    with scan_engine(options) as engine:
        result = run_scan(engine, root, options)

    if output_format == FORMAT_MSGPACK:
        with open_output(output, binary=True) as f:
            f.write(tree_to_msgpack(result.tree))
    else:
        with open_output(output) as f:
            dump_json(scan_to_dict(result), f)

    return result.failures

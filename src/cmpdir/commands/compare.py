"""Compare subcommand classifying every file of two trees."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import NamedTuple

from ..comparator import ComparisonResult, compare_trees, summarize
from ..failures import ScanFailure
from ..report.serialization import comparison_to_dict, dump_json, tree_from_msgpack
from ..report.store import ReportManifest, ReportStore
from ..report.text import LEGEND, render_tree
from ..scanner import ScanEngine, ScanResult
from .common import ScanOptions, open_output, run_scan, scan_engine

logger = logging.getLogger(__name__)

FORMAT_JSON = 'json'
FORMAT_TREE = 'tree'


class CompareOutcome(NamedTuple):
    comparison: ComparisonResult
    source_failures: list[ScanFailure]
    target_failures: list[ScanFailure]

    @property
    def failures(self) -> list[ScanFailure]:
        return self.source_failures + self.target_failures


def load_side(path: Path, engine: ScanEngine, options: ScanOptions) -> ScanResult:
    """Scan a directory, or load a tree snapshot written by the scan command.

    Raises:
        FileNotFoundError: path does not exist
        ValueError: path is a file but not a tree snapshot
    """
    if path.is_dir():
        return run_scan(engine, path, options)
    if not path.exists():
        raise FileNotFoundError(f"Directory or snapshot does not exist: {path}")

    logger.info(f"Loading tree snapshot {path}")
    try:
        tree = tree_from_msgpack(path.read_bytes())
    except ValueError as e:
        raise ValueError(f"{path} is neither a directory nor a tree snapshot: {e}") from e
    return ScanResult(tree, [])


def write_report(report_dir: Path, outcome: CompareOutcome, source: Path, target: Path) -> None:
    """Persist the classification of every file and a manifest, replacing an earlier report."""
    store = ReportStore(report_dir)
    store.create_report_directory()
    store.destroy_database()
    store.open_database(create_if_missing=True)
    try:
        store.write_comparison(outcome.comparison)
    finally:
        store.close_database()

    store.write_manifest(ReportManifest.from_comparison(
        outcome.comparison,
        source=str(source.absolute()),
        target=str(target.absolute()),
        timestamp=datetime.now().isoformat(),
        source_failures=outcome.source_failures,
        target_failures=outcome.target_failures,
    ))


def do_compare(
    source: Path,
    target: Path,
    output: str | None = None,
    output_format: str = FORMAT_JSON,
    show_equal: bool = False,
    report_dir: Path | None = None,
    options: ScanOptions | None = None
) -> CompareOutcome:
    """Build both trees, classify them and write the result.

    Args:
        source: Source directory or tree snapshot
        target: Target directory or tree snapshot
        output: Destination file; stdout when None
        output_format: 'json' for both classified trees with failures, 'tree' for text
        show_equal: In text output, also list files classified Equal
        report_dir: If given, also store the result there for the describe command
        options: Scan configuration

    Returns:
        The comparison with the failures of both scans
    """
    options = options if options is not None else ScanOptions()
    if output_format not in (FORMAT_JSON, FORMAT_TREE):
        raise ValueError(f"Unknown output format: {output_format}")

    with scan_engine(options) as engine:
        source_result = load_side(source, engine, options)
        target_result = load_side(target, engine, options)

    comparison = compare_trees(source_result.tree, target_result.tree)
    outcome = CompareOutcome(comparison, source_result.failures, target_result.failures)

    with open_output(output) as f:
        if output_format == FORMAT_JSON:
            dump_json(comparison_to_dict(comparison, outcome.source_failures, outcome.target_failures), f)
        else:
            f.write(f"Source: {source_result.tree.absolute_path}\n")
            for line in render_tree(source_result.tree, show_equal):
                f.write(line + "\n")
            f.write(f"\nTarget: {target_result.tree.absolute_path}\n")
            for line in render_tree(target_result.tree, show_equal):
                f.write(line + "\n")
            f.write(f"\n{LEGEND}\n")

    if report_dir is not None:
        write_report(report_dir, outcome, source, target)

    print(f"Source: {summarize(comparison.source.files)}", file=sys.stderr)
    print(f"Target: {summarize(comparison.target.files)}", file=sys.stderr)
    if outcome.failures:
        print(f"{len(outcome.failures)} failure(s) while scanning", file=sys.stderr)

    return outcome

"""Pairs subcommand comparing explicitly listed file pairs."""

from pathlib import Path

from ..checksum import CHUNK_SIZE
from ..pairs import PairOutcome, compare_file_pairs, load_file_pairs
from ..report.serialization import dump_json, pair_outcome_to_dict
from .common import open_output


def do_pairs(pairs_file: Path, output: str | None = None, chunk_size: int = CHUNK_SIZE) -> list[PairOutcome]:
    """Compare the pairs listed in pairs_file and write one JSON outcome per pair.

    Relative paths in the pairs file are resolved against the directory holding it.
    """
    pairs = load_file_pairs(pairs_file)
    outcomes = compare_file_pairs(pairs, base_dir=pairs_file.parent, chunk_size=chunk_size)

    with open_output(output) as f:
        dump_json([pair_outcome_to_dict(outcome) for outcome in outcomes], f)

    return outcomes

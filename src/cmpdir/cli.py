import argparse
import logging
import sys
import textwrap
from pathlib import Path

import plyvel

from .checksum import CHUNK_SIZE
from .commands.common import ScanOptions
from .failures import ScanFailure
from .progress import DEFAULT_INTERVAL, DEFAULT_SLOW_FILE_THRESHOLD
from .settings import (
    SETTING_CHUNK_SIZE,
    SETTING_JOBS,
    SETTING_LOG_LEVEL,
    SETTING_LOG_PATH,
    SETTING_PROGRESS_INTERVAL,
    SETTING_SLOW_FILE_THRESHOLD,
    Settings,
)
from .utils.profiling import profile_main

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

EXIT_OK = 0
EXIT_CALLER_ERROR = 2
EXIT_FAILURES = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cmpdir',
        description='Compare two directory trees by path and content, classifying every file as Equal, Added, '
                    'Deleted, Moved, Modified, Duplicated or Deduplicated.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              cmpdir compare /backup/photos /home/user/photos
              cmpdir scan /home/user/photos -o photos.snapshot --format msgpack
              cmpdir compare photos.snapshot /home/user/photos --format tree
            ''').strip()
    )
    parser.add_argument(
        '--config',
        metavar='PATH',
        help='Path to a TOML settings file. If not provided, uses the CMPDIR_CONFIG environment variable or '
             'cmpdir.toml in the current directory if present.')
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log progress milestones to stderr (level INFO instead of WARNING)')
    parser.add_argument(
        '--log-file',
        metavar='PATH',
        help='Path to log file for operation logging. If not provided, uses logging.path from the settings or '
             'logs to stderr.')
    parser.add_argument(
        '--log-level',
        metavar='LEVEL',
        choices=LOG_LEVELS,
        help='Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to INFO when logging to a file.')
    parser.add_argument(
        '--jobs',
        type=int,
        metavar='N',
        help='Number of worker processes computing checksums; 0 computes them in this process. If not '
             'provided, uses scan.jobs from the settings or 0.')
    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Do not render scan progress on stderr')
    parser.add_argument(
        '--strict',
        action='store_true',
        help=f'Exit with status {EXIT_FAILURES} if any file or directory could not be read')
    subparsers = parser.add_subparsers(
        dest='command',
        title='Commands',
        description='Available commands',
        help='Use "cmpdir COMMAND --help" for command-specific help'
    )

    parser_scan = subparsers.add_parser(
        'scan',
        help='Scan one directory tree',
        description='Lists every file of a directory tree with its size and CRC-32 checksum. A msgpack snapshot '
                    'can later be compared in place of the directory.')
    parser_scan.add_argument(
        'directory',
        metavar='DIR',
        help='Directory to scan')
    parser_scan.add_argument(
        '-o', '--output',
        metavar='OUT',
        help='Output file (default: stdout, JSON only)')
    parser_scan.add_argument(
        '--format',
        choices=['json', 'msgpack'],
        default='json',
        help='json (default) writes the tree with failures, msgpack writes a snapshot')
    parser_scan.set_defaults(method=_scan)

    parser_compare = subparsers.add_parser(
        'compare',
        help='Compare two directory trees',
        description='Scans both trees and classifies every file of each. Files at the same path are Equal or '
                    'Modified; content found at another path is Moved; the remaining copies are Duplicated, '
                    'Deduplicated, Added or Deleted.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              cmpdir compare old/ new/
              cmpdir compare old/ new/ --format tree --show-equal
              cmpdir compare old/ new/ -o result.json --report old-vs-new.report

            SOURCE and TARGET may each be a directory or a snapshot written by
            "cmpdir scan --format msgpack".
            ''').strip())
    parser_compare.add_argument(
        'source',
        metavar='SOURCE',
        help='Source (earlier) directory or snapshot')
    parser_compare.add_argument(
        'target',
        metavar='TARGET',
        help='Target (later) directory or snapshot')
    parser_compare.add_argument(
        '-o', '--output',
        metavar='OUT',
        help='Output file (default: stdout)')
    parser_compare.add_argument(
        '--format',
        choices=['json', 'tree'],
        default='json',
        help='json (default) writes both classified trees, tree draws them as text')
    parser_compare.add_argument(
        '--show-equal',
        action='store_true',
        help='In tree format, also list files classified Equal')
    parser_compare.add_argument(
        '--report',
        metavar='DIR',
        help='Also store the classification of every file in this report directory, for "cmpdir describe"')
    parser_compare.set_defaults(method=_compare)

    parser_pairs = subparsers.add_parser(
        'pairs',
        help='Compare explicitly listed file pairs',
        description='Compares each pair of a JSON array of {"A": path, "B": path} records by size and CRC-32. '
                    'Relative paths are resolved against the directory of the pairs file.')
    parser_pairs.add_argument(
        'pairs_file',
        metavar='PAIRS_JSON',
        help='JSON file listing the pairs')
    parser_pairs.add_argument(
        '-o', '--output',
        metavar='OUT',
        help='Output file (default: stdout)')
    parser_pairs.set_defaults(method=_pairs)

    parser_describe = subparsers.add_parser(
        'describe',
        help='Show stored classification records',
        description='Displays the stored classification of a file from a report written by '
                    '"cmpdir compare --report".',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              cmpdir describe old-vs-new.report docs/readme.txt
              cmpdir describe --side target old-vs-new.report docs/readme.txt
            ''').strip())
    parser_describe.add_argument(
        'report_dir',
        metavar='REPORT_DIR',
        help='Report directory')
    parser_describe.add_argument(
        'path',
        metavar='PATH',
        help='Relative path of the file within its tree')
    parser_describe.add_argument(
        '--side',
        choices=['source', 'target', 'both'],
        default='both',
        help='Which tree to look the path up in (default: both)')
    parser_describe.set_defaults(method=_describe)

    return parser


def configure_logging(args: argparse.Namespace, settings: Settings) -> None:
    log_file = args.log_file or settings.get(SETTING_LOG_PATH)
    log_level = args.log_level or settings.get(SETTING_LOG_LEVEL)
    if log_level is not None and log_level not in LOG_LEVELS:
        raise ValueError(f"Invalid logging level in settings: {log_level}")

    if log_file:
        logging.basicConfig(
            filename=log_file,
            level=getattr(logging, log_level or 'INFO'),
            format=LOG_FORMAT
        )
    else:
        if log_level is None:
            log_level = 'INFO' if args.verbose else 'WARNING'
        logging.basicConfig(level=getattr(logging, log_level), format=LOG_FORMAT)


def _number_setting(settings: Settings, key: str, default, kind):
    value = settings.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or (kind is int and not isinstance(value, int)):
        raise ValueError(f"Setting {key} must be a number: {value!r}")
    return kind(value)


def scan_options(args: argparse.Namespace, settings: Settings) -> ScanOptions:
    """Scan configuration from the command line, falling back to the settings file."""
    jobs = args.jobs if args.jobs is not None else _number_setting(settings, SETTING_JOBS, 0, int)
    chunk_size = _number_setting(settings, SETTING_CHUNK_SIZE, CHUNK_SIZE, int)
    if chunk_size <= 0:
        raise ValueError(f"Setting {SETTING_CHUNK_SIZE} must be positive: {chunk_size}")

    return ScanOptions(
        jobs=jobs,
        chunk_size=chunk_size,
        progress_interval=_number_setting(settings, SETTING_PROGRESS_INTERVAL, DEFAULT_INTERVAL, float),
        slow_file_threshold=_number_setting(settings, SETTING_SLOW_FILE_THRESHOLD, DEFAULT_SLOW_FILE_THRESHOLD,
                                            float),
        show_progress=not args.no_progress and sys.stderr.isatty(),
    )


def _exit_status(failures: list[ScanFailure], strict: bool) -> int:
    if failures and strict:
        return EXIT_FAILURES
    return EXIT_OK


@profile_main
def cmpdir_main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help(sys.stderr)
        return EXIT_CALLER_ERROR

    try:
        settings = Settings.locate(args.config)
        configure_logging(args, settings)
        return args.method(args, settings)
    except (OSError, ValueError, RuntimeError, plyvel.Error) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CALLER_ERROR


def _scan(args: argparse.Namespace, settings: Settings) -> int:
    from .commands.scan import do_scan

    failures = do_scan(Path(args.directory), args.output, args.format, scan_options(args, settings))
    return _exit_status(failures, args.strict)


def _compare(args: argparse.Namespace, settings: Settings) -> int:
    from .commands.compare import do_compare

    outcome = do_compare(
        Path(args.source),
        Path(args.target),
        output=args.output,
        output_format=args.format,
        show_equal=args.show_equal,
        report_dir=Path(args.report) if args.report else None,
        options=scan_options(args, settings)
    )
    return _exit_status(outcome.failures, args.strict)


def _pairs(args: argparse.Namespace, settings: Settings) -> int:
    from .commands.pairs import do_pairs

    options = scan_options(args, settings)
    outcomes = do_pairs(Path(args.pairs_file), args.output, options.chunk_size)
    failures = [outcome.failure for outcome in outcomes if outcome.failure is not None]
    return _exit_status(failures, args.strict)


def _describe(args: argparse.Namespace, settings: Settings) -> int:
    from .commands.describe import do_describe

    do_describe(Path(args.report_dir), args.path, args.side)
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(cmpdir_main())

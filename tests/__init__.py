"""Tests for the cmpdir package.

Test Files and Coverage:
========================

| Test File           | Test Classes                      | Tested Constructs                      | Tested Functionalities                          |
|---------------------|-----------------------------------|----------------------------------------|-------------------------------------------------|
| test_tree.py        | FileEntryTest, DirectoryNodeTest  | FileEntry, DirectoryNode               | Relative paths, signatures, write-once classify |
| test_gateway.py     | FileSystemGatewayTest             | FileSystemGateway                      | Listing, artifacts, symlinks, metadata failures |
| test_checksum.py    | ComputeCrc32Test                  | compute_crc32()                        | Known values, chunking, read failures           |
| test_scanner.py     | ScanEngineTest                    | ScanEngine                             | Two phases, failures, determinism, pool         |
| test_index.py       | FileIndexTest                     | FileIndex                              | Path and content lookups, ordering              |
| test_comparator.py  | ComparatorTest                    | compare(), compare_trees()             | Three passes, scenarios, unhashed files         |
| test_pairs.py       | FilePairTest, LoadFilePairsTest   | compare_file_pair(), load_file_pairs() | Pair outcomes, pairs file validation            |
| test_progress.py    | ProgressStateTest, ...            | ProgressState, ProgressReporter        | Snapshots, slow files, rendering                |
| test_settings.py    | SettingsTest                      | Settings                               | Dotted lookup, file location                    |
| test_cli.py         | CliTest                           | cmpdir_main()                          | Subcommands, exit codes                         |

Subpackages: report/ (serialization, text rendering, report store), utils/ (processor,
throttler, profiling), commands/ (subcommand implementations).
"""

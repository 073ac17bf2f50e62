"""Tests for command implementation modules.

Test Files and Coverage:
========================

| Test File                | Test Classes        | Tested Constructs          | Tested Functionalities                        |
|--------------------------|---------------------|----------------------------|-----------------------------------------------|
| test_scan.py             | ScanCommandTest     | do_scan()                  | JSON and msgpack output, option validation    |
| test_compare.py          | CompareCommandTest  | do_compare(), load_side()  | Directories, snapshots, text output, reports  |
| test_pairs_command.py    | PairsCommandTest    | do_pairs()                 | Relative paths, JSON outcomes                 |
| test_describe.py         | DescribeCommandTest | do_describe()              | Record display, sides, missing records        |
"""

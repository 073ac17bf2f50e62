"""Tests for utility modules.

Test Files and Coverage:
========================

| Test File           | Test Classes      | Tested Constructs     | Tested Functionalities                   |
|---------------------|-------------------|-----------------------|------------------------------------------|
| test_processor.py   | ProcessorTest     | Processor             | Pooled CRC-32, failures across processes |
| test_throttler.py   | ThrottlerTest     | Throttler             | Concurrency bound, slot release          |
| test_profiling.py   | ProfilingTest     | profile_* decorators  | Session directories, profile files       |
"""

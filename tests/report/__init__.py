"""Tests for report module.

Test Files and Coverage:
========================

| Test File                  | Test Classes                 | Tested Constructs                          | Tested Functionalities                  |
|----------------------------|------------------------------|--------------------------------------------|-----------------------------------------|
| test_serialization.py      | JsonDocumentTest             | tree_to_dict(), comparison_to_dict(), ...  | Key order, classifications, failures    |
|                            | TreeSnapshotTest             | tree_to_msgpack(), tree_from_msgpack()     | Snapshot round trip, invalid data       |
| test_text.py               | RenderTreeTest               | render_tree()                              | Drawing characters, markers, filtering  |
| test_report_store.py       | ReportStoreTest              | ReportStore, ReportManifest                | DB write, record updates, collisions    |
|                            | ClassificationRecordTest     | ClassificationRecord                       | Msgpack serialization                   |
"""

import unittest

from cmpdir.comparator import compare, compare_trees, count_results, summarize
from cmpdir.index import FileIndex
from cmpdir.tree import CmpResult

from tests.tree_builder import build_tree, classifications


class ComparatorTest(unittest.TestCase):
    def _compare(self, source_files, target_files):
        source = build_tree(source_files, '/data/source')
        target = build_tree(target_files, '/data/target')
        compare_trees(source, target)
        return classifications(source), classifications(target)

    def test_identical_files_are_equal(self):
        source, target = self._compare(
            {'a.txt': (3, 0x1), 'd/b.txt': (4, 0x2)},
            {'a.txt': (3, 0x1), 'd/b.txt': (4, 0x2)})

        self.assertEqual({'a.txt': ('Equal', ('a.txt',)), 'd/b.txt': ('Equal', ('d/b.txt',))}, source)
        self.assertEqual({'a.txt': ('Equal', ('a.txt',)), 'd/b.txt': ('Equal', ('d/b.txt',))}, target)

    def test_same_path_different_content_is_modified(self):
        source, target = self._compare({'f': (1, 0x1)}, {'f': (2, 0x2)})

        self.assertEqual({'f': ('Modified', ('f',))}, source)
        self.assertEqual({'f': ('Modified', ('f',))}, target)

    def test_same_size_different_checksum_is_modified(self):
        source, target = self._compare({'f': (8, 0x1)}, {'f': (8, 0x2)})
        self.assertEqual('Modified', source['f'][0])

    def test_relocated_content_is_moved(self):
        source, target = self._compare({'old/name.txt': (10, 0xABC)}, {'new/name.txt': (10, 0xABC)})

        self.assertEqual({'old/name.txt': ('Moved', ('new/name.txt',))}, source)
        self.assertEqual({'new/name.txt': ('Moved', ('old/name.txt',))}, target)

    def test_unmatched_content_is_added_or_deleted(self):
        source, target = self._compare({'gone': (1, 0x1)}, {'new': (2, 0x2)})

        self.assertEqual({'gone': ('Deleted', ())}, source)
        self.assertEqual({'new': ('Added', ())}, target)

    def test_surplus_source_copy_is_deduplicated(self):
        source, target = self._compare(
            {'x.txt': (10, 0xAAAA), 'y.txt': (10, 0xAAAA)},
            {'x.txt': (10, 0xAAAA)})

        self.assertEqual({
            'x.txt': ('Equal', ('x.txt',)),
            'y.txt': ('Deduplicated', ('x.txt',)),
        }, source)
        self.assertEqual({'x.txt': ('Equal', ('x.txt',))}, target)

    def test_extra_target_copy_is_duplicated(self):
        source, target = self._compare(
            {'a.bin': (5, 0x1111)},
            {'b.bin': (5, 0x1111), 'c.bin': (5, 0x1111)})

        self.assertEqual({'a.bin': ('Moved', ('b.bin',))}, source)
        self.assertEqual({
            'b.bin': ('Moved', ('a.bin',)),
            'c.bin': ('Duplicated', ('a.bin',)),
        }, target)

    def test_duplicated_links_full_source_group(self):
        source, target = self._compare(
            {'s1': (5, 0x1), 's2': (5, 0x1)},
            {'t1': (5, 0x1), 't2': (5, 0x1), 't3': (5, 0x1)})

        self.assertEqual('Moved', source['s1'][0])
        self.assertEqual('Moved', source['s2'][0])
        self.assertEqual(('Duplicated', ('s1', 's2')), target['t3'])

    def test_moved_pairs_by_traversal_order(self):
        source, target = self._compare(
            {'d1/f': (4, 0x7), 'd2/f': (4, 0x7)},
            {'e2/f': (4, 0x7), 'e1/f': (4, 0x7)})

        self.assertEqual({'d1/f': ('Moved', ('e1/f',)), 'd2/f': ('Moved', ('e2/f',))}, source)
        self.assertEqual({'e1/f': ('Moved', ('d1/f',)), 'e2/f': ('Moved', ('d2/f',))}, target)

    def test_path_match_takes_precedence_over_content(self):
        source, target = self._compare({'a': (1, 0x1)}, {'a': (1, 0x2), 'b': (1, 0x1)})

        self.assertEqual({'a': ('Modified', ('a',))}, source)
        self.assertEqual({'a': ('Modified', ('a',)), 'b': ('Duplicated', ('a',))}, target)

    def test_unhashed_path_match_is_modified(self):
        source, target = self._compare({'f': (7, None)}, {'f': (7, 0xB)})

        self.assertEqual({'f': ('Modified', ('f',))}, source)
        self.assertEqual({'f': ('Modified', ('f',))}, target)

    def test_unhashed_files_never_match_by_content(self):
        source, target = self._compare(
            {'old': (7, None), 'keep': (1, 0x1)},
            {'new': (7, None), 'keep': (1, 0x1)})

        self.assertEqual(('Deleted', ()), source['old'])
        self.assertEqual(('Added', ()), target['new'])
        self.assertEqual('Equal', source['keep'][0])

    def test_every_file_classified(self):
        source, target = self._compare(
            {'a': (1, 0x1), 'b': (1, 0x1), 'c/d': (2, 0x2), 'e': (3, None), 'f': (9, 0x9)},
            {'a': (1, 0x2), 'x': (1, 0x1), 'c/d': (2, 0x2), 'c/e': (2, 0x2), 'g': (8, 0x8)})

        self.assertNotIn(None, source.values())
        self.assertNotIn(None, target.values())

    def test_repeated_comparison_is_identical(self):
        source = build_tree({'a': (1, 0x1), 'b': (1, 0x1), 'c': (2, 0x2)}, '/s')
        target = build_tree({'a': (1, 0x1), 'z': (1, 0x1), 'y': (1, 0x1), 'c': (3, 0x3)}, '/t')

        compare_trees(source, target)
        first = (classifications(source), classifications(target))
        compare_trees(source, target)
        second = (classifications(source), classifications(target))

        self.assertEqual(first, second)

    def test_compare_rejects_classified_trees(self):
        source = build_tree({'a': (1, 0x1)})
        target = build_tree({'a': (1, 0x1)})
        compare(FileIndex.from_tree(source), FileIndex.from_tree(target))

        with self.assertRaises(ValueError):
            compare(FileIndex.from_tree(source), FileIndex.from_tree(target))

    def test_empty_trees(self):
        self.assertEqual(({}, {}), self._compare({}, {}))

    def test_counts_and_summary(self):
        source = build_tree({'a': (1, 0x1), 'b': (1, 0x1), 'gone': (4, 0x4)})
        target = build_tree({'a': (1, 0x1)})
        result = compare_trees(source, target)

        self.assertEqual({CmpResult.EQUAL: 1, CmpResult.DELETED: 1, CmpResult.DEDUPLICATED: 1},
                         count_results(result.source.files))
        self.assertEqual("Equal 1, Deleted 1, Deduplicated 1", summarize(result.source.files))
        self.assertEqual("no files", summarize([]))


if __name__ == '__main__':
    unittest.main()

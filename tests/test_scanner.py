import io
import os
import tempfile
import unittest
from pathlib import Path

from cmpdir.failures import FailureKind, ScanFailure
from cmpdir.gateway import FileSystemGateway
from cmpdir.progress import ScanPhase
from cmpdir.report.serialization import dump_json, scan_to_dict, tree_to_dict
from cmpdir.scanner import ScanEngine
from cmpdir.utils.processor import Processor

from tests.tree_builder import write_files


class UnlistableGateway(FileSystemGateway):
    """Fails to list the subdirectories of one directory."""

    def __init__(self, unlistable: Path):
        self._unlistable = unlistable

    def list_subdirectories(self, path):
        if path == self._unlistable:
            raise ScanFailure(FailureKind.DIRECTORY_LISTING, str(path), PermissionError(13, 'Permission denied'))
        return super().list_subdirectories(path)


class PhantomFileGateway(FileSystemGateway):
    """Reports extra files, with the given sizes, that cannot be read."""

    def __init__(self, phantoms: dict[Path, int]):
        self._phantoms = phantoms

    def list_files(self, path):
        files = super().list_files(path)
        files.extend(phantom for phantom in self._phantoms if phantom.parent == path)
        return sorted(files)

    def stat_file(self, path):
        if path in self._phantoms:
            return self._phantoms[path]
        return super().stat_file(path)


class FlakyGateway(FileSystemGateway):
    """Fails to list the files of one directory and to stat one file."""

    def __init__(self, no_files: Path, no_stat: Path):
        self._no_files = no_files
        self._no_stat = no_stat

    def list_files(self, path):
        if path == self._no_files:
            raise ScanFailure(FailureKind.FILE_LISTING, str(path), PermissionError(13, 'Permission denied'))
        return super().list_files(path)

    def stat_file(self, path):
        if path == self._no_stat:
            raise ScanFailure(FailureKind.METADATA, str(path), FileNotFoundError(2, 'No such file or directory'))
        return super().stat_file(path)


class ScanEngineTest(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name) / 'root'
        self.root.mkdir()

    def tearDown(self):
        self._tmpdir.cleanup()

    def _scan_json(self, result) -> str:
        buffer = io.StringIO()
        dump_json(scan_to_dict(result), buffer)
        return buffer.getvalue()

    def test_builds_tree_with_checksums(self):
        write_files(self.root, {
            'top.txt': b'hello',
            'sub/inner.txt': b'123456789',
            'sub/deeper/empty': b'',
        })

        result = ScanEngine().scan(self.root)

        self.assertEqual([], result.failures)
        files = {entry.relative_path: (entry.size, entry.checksum) for entry in result.tree.iter_files()}
        self.assertEqual({
            'top.txt': (5, 0x3610A686),
            'sub/inner.txt': (9, 0xCBF43926),
            'sub/deeper/empty': (0, 0),
        }, files)
        self.assertEqual(['/', 'sub', 'sub/deeper'], [d.relative_path for d in result.tree.walk()])
        self.assertEqual('root', result.tree.name)

    def test_platform_artifacts_never_in_tree(self):
        write_files(self.root, {
            'Thumbs.db': b'x',
            'sub/.DS_STORE': b'x',
            'sub/THUMBS.DB': b'x',
            'sub/.ds_store': b'x',
            'sub/real.txt': b'x',
        })

        result = ScanEngine().scan(self.root)

        self.assertEqual(['sub/real.txt'], [entry.relative_path for entry in result.tree.iter_files()])

    def test_unchanged_directory_scans_identically(self):
        write_files(self.root, {
            'b/2.txt': b'two',
            'a/1.txt': b'one',
            'a/z/3.txt': b'three',
            'c.txt': b'c',
        })

        first = self._scan_json(ScanEngine().scan(self.root))
        second = self._scan_json(ScanEngine().scan(self.root))

        self.assertEqual(first, second)

    def test_unlistable_directory_keeps_other_entries(self):
        write_files(self.root, {
            'ok/file.txt': b'ok',
            'locked/hidden.txt': b'hidden',
            'locked/sub/deep.txt': b'deep',
            'top.txt': b'top',
        })

        result = ScanEngine(gateway=UnlistableGateway(self.root / 'locked')).scan(self.root)

        self.assertEqual(['ok/file.txt', 'top.txt'],
                         sorted(entry.relative_path for entry in result.tree.iter_files()))
        self.assertEqual(1, len(result.failures))
        self.assertEqual(FailureKind.DIRECTORY_LISTING, result.failures[0].kind)
        self.assertEqual(str(self.root / 'locked'), result.failures[0].path)
        locked = [d for d in result.tree.children if d.name == 'locked'][0]
        self.assertEqual([], locked.files)
        self.assertEqual([], locked.children)

    def test_file_listing_and_metadata_failures(self):
        write_files(self.root, {
            'a/x': b'x',
            'a/s/y': b'y',
            'b/w': b'w',
            'b/z': b'z',
        })

        gateway = FlakyGateway(self.root / 'a', self.root / 'b' / 'w')
        result = ScanEngine(gateway=gateway).scan(self.root)

        self.assertEqual(['a/s/y', 'b/z'], [entry.relative_path for entry in result.tree.iter_files()])
        self.assertEqual([(FailureKind.FILE_LISTING, str(self.root / 'a')),
                          (FailureKind.METADATA, str(self.root / 'b' / 'w'))],
                         [(failure.kind, failure.path) for failure in result.failures])
        self.assertEqual(['s'], [child.name for child in result.tree.children[0].children])

    @unittest.skipIf(not hasattr(os, 'geteuid') or os.geteuid() == 0, "permissions are not enforced for root")
    def test_permission_denied_directory(self):
        write_files(self.root, {
            'ok/file.txt': b'ok',
            'locked/hidden.txt': b'hidden',
        })
        locked = self.root / 'locked'
        locked.chmod(0)
        try:
            result = ScanEngine().scan(self.root)
        finally:
            locked.chmod(0o755)

        self.assertEqual(['ok/file.txt'], [entry.relative_path for entry in result.tree.iter_files()])
        self.assertEqual([(FailureKind.DIRECTORY_LISTING, str(locked))],
                         [(failure.kind, failure.path) for failure in result.failures])

    def test_unreadable_content_leaves_checksum_unset(self):
        write_files(self.root, {'sub/real.txt': b'real'})
        phantom = self.root / 'sub' / 'phantom.txt'

        result = ScanEngine(gateway=PhantomFileGateway({phantom: 4})).scan(self.root)

        entries = {entry.relative_path: entry for entry in result.tree.iter_files()}
        self.assertIsNone(entries['sub/phantom.txt'].checksum)
        self.assertEqual(4, entries['sub/phantom.txt'].size)
        self.assertIsNotNone(entries['sub/real.txt'].checksum)
        self.assertEqual([(FailureKind.CONTENT_READ, str(phantom))],
                         [(failure.kind, failure.path) for failure in result.failures])

    def test_missing_root(self):
        with self.assertRaises(FileNotFoundError):
            ScanEngine().scan(self.root / 'missing')

    def test_root_is_file(self):
        write_files(self.root, {'file.txt': b'x'})
        with self.assertRaises(NotADirectoryError):
            ScanEngine().scan(self.root / 'file.txt')

    def test_pool_matches_inline(self):
        write_files(self.root, {f"d{i % 3}/f{i}.bin": os.urandom(100 + i) for i in range(20)})
        write_files(self.root, {'same1': b'same', 'd1/same2': b'same'})

        inline = ScanEngine().scan(self.root)
        with Processor(2, chunk_size=64) as processor:
            pooled = ScanEngine(processor=processor).scan(self.root)

        self.assertEqual(tree_to_dict(inline.tree), tree_to_dict(pooled.tree))
        self.assertEqual([], pooled.failures)

    def test_pool_failures_in_tree_order(self):
        write_files(self.root, {'a/x.txt': b'x', 'b/y.txt': b'y'})

        gateway = PhantomFileGateway({self.root / 'b' / 'p2': 1, self.root / 'a' / 'p1': 1})

        with Processor(2) as processor:
            result = ScanEngine(gateway=gateway, processor=processor).scan(self.root)

        self.assertEqual([str(self.root / 'a' / 'p1'), str(self.root / 'b' / 'p2')],
                         [failure.path for failure in result.failures])
        self.assertTrue(all(failure.kind == FailureKind.CONTENT_READ for failure in result.failures))

    def test_progress_sink_receives_final_snapshot(self):
        write_files(self.root, {'a.txt': b'abc', 'b/c.txt': b'defg'})
        snapshots = []

        ScanEngine(progress_interval=0.01).scan(self.root, snapshots.append)

        self.assertTrue(snapshots)
        final = snapshots[-1]
        self.assertEqual(ScanPhase.DONE, final.phase)
        self.assertEqual(2, final.current_files)
        self.assertEqual(2, final.total_files)
        self.assertEqual(7, final.current_bytes)
        self.assertEqual(7, final.total_bytes)


if __name__ == '__main__':
    unittest.main()

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from cmpdir.utils.profiling import (
    PROFILE_ENV,
    SESSION_ENV,
    generate_profile_filename,
    get_profile_dir,
    profile_function,
    profile_main,
    profile_worker,
)


class ProfilingTest(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch.dict(os.environ)
        patcher.start()
        self.addCleanup(patcher.stop)
        os.environ.pop(PROFILE_ENV, None)
        os.environ.pop(SESSION_ENV, None)

    def _assert_session_name(self, name: str):
        timestamp, pid = name.split('_')
        self.assertTrue(timestamp.isdigit(), name)
        self.assertEqual(str(os.getpid()), pid)

    def test_disabled_by_default(self):
        self.assertIsNone(get_profile_dir())

        @profile_function
        def add(a: int, b: int) -> int:
            return a + b

        self.assertEqual(5, add(2, 3))

    def test_profile_dir_has_session_subdirectory(self):
        os.environ[PROFILE_ENV] = '/tmp/profiles'
        profile_dir = get_profile_dir()

        self.assertEqual(Path('/tmp/profiles'), profile_dir.parent)
        self._assert_session_name(profile_dir.name)

    def test_session_directory_from_environment(self):
        os.environ[PROFILE_ENV] = '/tmp/profiles'
        os.environ[SESSION_ENV] = '123_456'
        self.assertEqual(Path('/tmp/profiles/123_456'), get_profile_dir())

    def test_profile_filenames_unique(self):
        first = generate_profile_filename('worker')
        second = generate_profile_filename('worker')

        self.assertNotEqual(first, second)
        prefix, pid, sequence = first[:-len('.prof')].split('_')
        self.assertEqual('worker', prefix)
        self.assertEqual(str(os.getpid()), pid)
        self.assertTrue(sequence.isdigit())
        self.assertTrue(generate_profile_filename().startswith('profile_'))

    def test_profile_written_even_on_exception(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            os.environ[PROFILE_ENV] = tmpdir

            @profile_worker
            def failing() -> None:
                raise ValueError("boom")

            with self.assertRaises(ValueError):
                failing()

            profile_files = list(Path(tmpdir).glob('*/worker_*.prof'))
            self.assertEqual(1, len(profile_files))
            self.assertGreater(profile_files[0].stat().st_size, 0)

    def test_profile_main_pins_session_for_workers(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            os.environ[PROFILE_ENV] = tmpdir

            @profile_main
            def main() -> str:
                return os.environ.get(SESSION_ENV, 'not set')

            session = main()

            self._assert_session_name(session)
            subdirs = [d for d in Path(tmpdir).iterdir() if d.is_dir()]
            self.assertEqual([session], [d.name for d in subdirs])
            self.assertTrue(all(f.name.startswith('main_') for f in subdirs[0].glob('*.prof')))

    def test_wrapper_preserves_metadata(self):
        @profile_function
        def documented() -> int:
            """Documented."""
            return 42

        self.assertEqual('documented', documented.__name__)
        self.assertEqual('Documented.', documented.__doc__)


if __name__ == '__main__':
    unittest.main()

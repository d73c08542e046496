"""Tests for bundle extraction and directory walking."""

import os
import shutil
import tempfile
import unittest
import zipfile

from docmost_importer.importers.archive_extractor import ArchiveExtractor
from docmost_importer.models import ArchiveExtractionError


def make_zip(path, members):
    with zipfile.ZipFile(path, 'w') as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return path


class TestArchiveExtractor(unittest.TestCase):
    def setUp(self):
        self.work_dir = tempfile.mkdtemp()
        self.scratch_root = os.path.join(self.work_dir, 'scratch')
        self.extractor = ArchiveExtractor(temp_path=self.scratch_root)

    def tearDown(self):
        shutil.rmtree(self.work_dir, ignore_errors=True)

    def test_walk_lists_directories_before_their_contents(self):
        """Files of a directory come before its subdirectories, each directory before its contents."""
        archive = make_zip(os.path.join(self.work_dir, 'export.zip'), {
            'readme.md': '# Readme',
            'docs/a.md': '# A',
            'docs/z.md': '# Z',
            'docs/sub/b.md': '# B',
            'attachments/pic.png': b'png',
        })

        with self.extractor.extract(archive) as scratch_dir:
            entries = self.extractor.walk(scratch_dir)

        self.assertEqual(
            [entry.relative_path for entry in entries],
            [
                'readme.md',
                'attachments',
                'attachments/pic.png',
                'docs',
                'docs/a.md',
                'docs/z.md',
                'docs/sub',
                'docs/sub/b.md',
            ]
        )
        directories = {entry.relative_path for entry in entries if entry.is_directory}
        self.assertEqual(directories, {'attachments', 'docs', 'docs/sub'})

    def test_entries_point_into_scratch_dir(self):
        archive = make_zip(os.path.join(self.work_dir, 'export.zip'), {'docs/a.md': '# A'})

        with self.extractor.extract(archive) as scratch_dir:
            entries = self.extractor.walk(scratch_dir)
            page = [entry for entry in entries if entry.relative_path == 'docs/a.md'][0]
            self.assertTrue(page.absolute_path.startswith(scratch_dir))
            with open(page.absolute_path, encoding='utf-8') as f:
                self.assertEqual(f.read(), '# A')

    def test_scratch_dir_removed_after_block(self):
        archive = make_zip(os.path.join(self.work_dir, 'export.zip'), {'a.md': '# A'})

        with self.extractor.extract(archive) as scratch_dir:
            self.assertTrue(os.path.isdir(scratch_dir))

        self.assertFalse(os.path.exists(scratch_dir))
        self.assertEqual(os.listdir(self.scratch_root), [])

    def test_scratch_dir_removed_when_block_raises(self):
        archive = make_zip(os.path.join(self.work_dir, 'export.zip'), {'a.md': '# A'})
        seen = []

        with self.assertRaises(ValueError):
            with self.extractor.extract(archive) as scratch_dir:
                seen.append(scratch_dir)
                raise ValueError("stage failed")

        self.assertFalse(os.path.exists(seen[0]))

    def test_corrupt_archive_raises_and_cleans_up(self):
        broken = os.path.join(self.work_dir, 'broken.zip')
        with open(broken, 'wb') as f:
            f.write(b'this is not a zip file')

        with self.assertRaises(ArchiveExtractionError):
            with self.extractor.extract(broken):
                pass

        self.assertEqual(os.listdir(self.scratch_root), [])

    def test_member_escaping_root_is_rejected(self):
        archive = make_zip(os.path.join(self.work_dir, 'evil.zip'), {'../escaped.md': '# Gotcha'})

        with self.assertRaises(ArchiveExtractionError):
            with self.extractor.extract(archive):
                pass

        self.assertFalse(os.path.exists(os.path.join(self.scratch_root, 'escaped.md')))

    def test_scratch_dirs_are_unique(self):
        archive = make_zip(os.path.join(self.work_dir, 'export.zip'), {'a.md': '# A'})

        with self.extractor.extract(archive) as first, self.extractor.extract(archive) as second:
            self.assertNotEqual(first, second)


if __name__ == '__main__':
    unittest.main()

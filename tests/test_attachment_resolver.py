"""Tests for attachment storage and reference resolution."""

import os
import re
import shutil
import tempfile
import unittest

from docmost_importer.importers.attachment_resolver import (
    AttachmentResolver,
    attachment_keys,
    resolve_reference
)
from docmost_importer.importers.result_aggregator import ImportResultAggregator
from docmost_importer.models import FileEntry
from docmost_importer.storage import LocalBlobStorage

LOCATOR_PATTERN = re.compile(r'^/uploads/[0-9a-f]{32}\.png$')


class FlakyBlobStorage(LocalBlobStorage):
    """Fails for one attachment name."""

    def __init__(self, uploads_path, failing_name):
        super().__init__(uploads_path)
        self.failing_name = failing_name

    def store_blob(self, source_path, original_name):
        if original_name == self.failing_name:
            raise OSError("No space left on device")
        return super().store_blob(source_path, original_name)


class TestAttachmentKeys:
    """Test the keys an attachment is registered under."""

    def test_full_path_filename_and_conventional_dir(self):
        assert attachment_keys('export/attachments/pic.png') == [
            'export/attachments/pic.png',
            'pic.png',
            'attachments/pic.png',
        ]

    def test_every_conventional_dir_segment(self):
        keys = attachment_keys('media/images/logo.svg')
        assert 'media/logo.svg' in keys
        assert 'images/logo.svg' in keys

    def test_top_level_file_has_single_key(self):
        assert attachment_keys('pic.png') == ['pic.png']

    def test_unconventional_dir_not_added(self):
        assert attachment_keys('docs/pic.png') == ['docs/pic.png', 'pic.png']


class TestResolveReference:
    """Test lookup order for local references."""

    def test_dot_slash_prefix_is_stripped(self):
        attachment_map = {'images/pic.png': '/uploads/a.png'}
        assert resolve_reference('./images/pic.png', 'page.md', attachment_map) == '/uploads/a.png'

    def test_exact_match_wins_over_filename(self):
        attachment_map = {'a/logo.png': '/uploads/a.png', 'logo.png': '/uploads/b.png'}
        assert resolve_reference('a/logo.png', 'page.md', attachment_map) == '/uploads/a.png'
        assert resolve_reference('other/logo.png', 'page.md', attachment_map) == '/uploads/b.png'

    def test_relative_to_source_directory(self):
        attachment_map = {
            'docs/diagrams/flow.svg': '/uploads/flow.svg',
            'shared/x.png': '/uploads/x.png',
        }
        assert resolve_reference('diagrams/flow.svg', 'docs/page.md', attachment_map) == '/uploads/flow.svg'
        assert resolve_reference('../shared/x.png', 'docs/page.md', attachment_map) == '/uploads/x.png'

    def test_conventional_directory_fallback(self):
        attachment_map = {'media/clip.mp4': '/uploads/clip.mp4'}
        assert resolve_reference('video/clip.mp4', 'page.md', attachment_map) == '/uploads/clip.mp4'

    def test_unknown_reference(self):
        assert resolve_reference('missing.png', 'page.md', {'pic.png': '/uploads/a.png'}) is None

    def test_lookup_is_exact_only(self):
        attachment_map = {'my pic.png': '/uploads/a.png'}
        assert resolve_reference('my%20pic.png', 'page.md', attachment_map) is None


class TestAttachmentResolver(unittest.TestCase):
    def setUp(self):
        self.work_dir = tempfile.mkdtemp()
        self.source_dir = os.path.join(self.work_dir, 'bundle')
        self.uploads_dir = os.path.join(self.work_dir, 'uploads')
        self.aggregator = ImportResultAggregator()

    def tearDown(self):
        shutil.rmtree(self.work_dir, ignore_errors=True)

    def _entry(self, relative_path, data=b'data'):
        absolute_path = os.path.join(self.source_dir, *relative_path.split('/'))
        os.makedirs(os.path.dirname(absolute_path), exist_ok=True)
        with open(absolute_path, 'wb') as f:
            f.write(data)
        return FileEntry(relative_path=relative_path, absolute_path=absolute_path)

    def test_stores_attachments_under_all_keys(self):
        resolver = AttachmentResolver(LocalBlobStorage(self.uploads_dir))
        entries = [self._entry('docs/images/pic.png', b'PNG'), self._entry('other.png')]

        attachment_map = resolver.resolve_all(entries, self.aggregator)

        locator = attachment_map['docs/images/pic.png']
        self.assertRegex(locator, LOCATOR_PATTERN)
        self.assertEqual(attachment_map['pic.png'], locator)
        self.assertEqual(attachment_map['images/pic.png'], locator)
        self.assertNotEqual(attachment_map['other.png'], locator)

        stored = os.path.join(self.uploads_dir, locator.rsplit('/', 1)[1])
        with open(stored, 'rb') as f:
            self.assertEqual(f.read(), b'PNG')

        self.assertEqual(self.aggregator.attachments, 2)
        self.assertEqual(self.aggregator.errors, [])

    def test_failed_attachment_is_reported_and_skipped(self):
        resolver = AttachmentResolver(FlakyBlobStorage(self.uploads_dir, 'bad.png'))
        entries = [self._entry('assets/bad.png'), self._entry('assets/good.png')]

        attachment_map = resolver.resolve_all(entries, self.aggregator)

        self.assertNotIn('bad.png', attachment_map)
        self.assertIn('good.png', attachment_map)
        self.assertEqual(self.aggregator.attachments, 1)
        self.assertEqual(len(self.aggregator.errors), 1)
        self.assertEqual(self.aggregator.errors[0].file, 'assets/bad.png')
        self.assertIn('No space left', self.aggregator.errors[0].error)

    def test_no_attachments(self):
        resolver = AttachmentResolver(LocalBlobStorage(self.uploads_dir))
        self.assertEqual(resolver.resolve_all([], self.aggregator), {})
        self.assertFalse(os.path.exists(self.uploads_dir))


if __name__ == '__main__':
    unittest.main()

"""Tests for hierarchy reconstruction, index merging and pruning."""

import unittest

from docmost_importer.importers.result_aggregator import ImportResultAggregator
from docmost_importer.importers.tree_builder import (
    NoteTreeBuilder,
    is_index_file,
    prune_empty_notes
)
from docmost_importer.models import FileEntry, NoteData


def dirs(*paths):
    return [FileEntry(relative_path=path, absolute_path='/scratch/' + path, is_directory=True)
            for path in paths]


def files(*paths):
    return [FileEntry(relative_path=path, absolute_path='/scratch/' + path) for path in paths]


class FakeLoader:
    """Returns prepared notes by relative path; raises for paths in ``failing``."""

    def __init__(self, notes=None, failing=()):
        self.notes = notes or {}
        self.failing = set(failing)

    def __call__(self, entry):
        if entry.relative_path in self.failing:
            raise UnicodeDecodeError('utf-8', b'\xff', 0, 1, 'invalid start byte')
        if entry.relative_path in self.notes:
            return self.notes[entry.relative_path]
        title = entry.name.rsplit('.', 1)[0]
        return NoteData(
            title=title,
            content=f'<h1>{title}</h1>',
            relative_path=entry.relative_path
        )


class TestNoteTreeBuilder(unittest.TestCase):
    def setUp(self):
        self.aggregator = ImportResultAggregator()

    def build(self, content_entries, dir_entries, loader=None):
        builder = NoteTreeBuilder(loader or FakeLoader(), self.aggregator)
        return builder, builder.build(content_entries, dir_entries)

    def test_nested_directories(self):
        _, forest = self.build(
            files('top.md', 'docs/a.md', 'docs/api/b.md'),
            dirs('docs', 'docs/api')
        )

        titles = {node.title: node for node in forest}
        self.assertEqual(set(titles), {'docs', 'top'})

        docs = titles['docs']
        self.assertEqual({child.title for child in docs.children}, {'a', 'api'})
        api = [child for child in docs.children if child.title == 'api'][0]
        self.assertEqual([child.title for child in api.children], ['b'])

    def test_index_file_merged_into_directory(self):
        loader = FakeLoader({
            'guide/index.md': NoteData(
                title='Guide Home',
                content='<h1>Guide Home</h1><p>Welcome</p>',
                relative_path='guide/index.md',
                title_emoji='\U0001F4D8'
            )
        })

        builder, forest = self.build(files('guide/index.md'), dirs('guide'), loader)

        self.assertEqual(len(forest), 1)
        guide = forest[0]
        self.assertEqual(guide.title, 'Guide Home')
        self.assertEqual(guide.title_emoji, '\U0001F4D8')
        self.assertIn('Welcome', guide.content)
        self.assertEqual(guide.children, [])
        self.assertEqual(builder.stats['merged_index_files'], 1)

    def test_index_without_heading_takes_file_name_title(self):
        loader = FakeLoader({
            'guide/index.html': NoteData(
                title='index',
                content='<p>Body only</p>',
                relative_path='guide/index.html'
            )
        })

        _, forest = self.build(files('guide/index.html'), dirs('guide'), loader)

        self.assertEqual(forest[0].title, 'index')
        self.assertEqual(forest[0].content, '<p>Body only</p>')

    def test_untitled_index_keeps_directory_name(self):
        loader = FakeLoader({
            'guide/index.md': NoteData(
                title='Untitled',
                content='<p>Emoji only heading</p>',
                relative_path='guide/index.md',
                title_emoji='\U0001F389'
            )
        })

        _, forest = self.build(files('guide/index.md'), dirs('guide'), loader)

        self.assertEqual(forest[0].title, 'guide')
        self.assertEqual(forest[0].title_emoji, '\U0001F389')

    def test_top_level_index_is_a_regular_note(self):
        _, forest = self.build(files('index.md'), [])

        self.assertEqual([node.title for node in forest], ['index'])

    def test_empty_directories_are_pruned(self):
        _, forest = self.build(
            files('docs/a.md'),
            dirs('empty', 'docs', 'deep', 'deep/er', 'deep/er/est')
        )

        self.assertEqual([node.title for node in forest], ['docs'])

    def test_blank_content_file_is_pruned(self):
        loader = FakeLoader({
            'blank.md': NoteData(title='blank', content='  \n ', relative_path='blank.md')
        })

        _, forest = self.build(files('blank.md', 'kept.md'), [], loader)

        self.assertEqual([node.title for node in forest], ['kept'])

    def test_note_without_directory_entry_goes_to_root(self):
        builder, forest = self.build(files('missing/x.md'), [])

        self.assertEqual([node.relative_path for node in forest], ['missing/x.md'])
        self.assertEqual(builder.stats['orphan_notes'], 1)

    def test_duplicate_directory_entries_share_one_node(self):
        _, forest = self.build(
            files('docs/a.md', 'docs/b.md'),
            dirs('docs') + dirs('docs')
        )

        self.assertEqual(len(forest), 1)
        self.assertEqual({child.title for child in forest[0].children}, {'a', 'b'})

    def test_load_failure_is_reported_and_skipped(self):
        loader = FakeLoader(failing={'docs/bad.md'})

        builder, forest = self.build(files('docs/bad.md', 'docs/good.md'), dirs('docs'), loader)

        self.assertEqual([child.title for child in forest[0].children], ['good'])
        self.assertEqual(len(self.aggregator.errors), 1)
        self.assertEqual(self.aggregator.errors[0].file, 'docs/bad.md')
        self.assertEqual(builder.stats['failed'], 1)


class TestPruneEmptyNotes(unittest.TestCase):
    def test_keeps_ancestors_of_content(self):
        leaf = NoteData(title='leaf', content='<p>x</p>', relative_path='a/b/leaf.md')
        b = NoteData(title='b', content='', relative_path='a/b', children=[leaf])
        a = NoteData(title='a', content='', relative_path='a', children=[b])
        empty = NoteData(title='e', content='', relative_path='e')

        forest = prune_empty_notes([a, empty])

        self.assertEqual(forest, [a])
        self.assertEqual(a.children, [b])
        self.assertEqual(b.children, [leaf])

    def test_deep_tree_does_not_recurse(self):
        root = NoteData(title='n0', content='', relative_path='n0')
        node = root
        for depth in range(1, 3000):
            child = NoteData(title=f'n{depth}', content='', relative_path=f'n{depth}')
            node.children.append(child)
            node = child
        node.content = '<p>bottom</p>'

        forest = prune_empty_notes([root])

        self.assertEqual(forest, [root])
        self.assertEqual(root.count_descendants(), 2999)


class TestIsIndexFile:
    """Test index file detection."""

    def test_index_names(self):
        assert is_index_file('docs/index.md')
        assert is_index_file('docs/INDEX.HTML')
        assert not is_index_file('docs/index.htm')
        assert not is_index_file('docs/reindex.md')


if __name__ == '__main__':
    unittest.main()

"""Tests for IndexStore."""
import tempfile
import unittest
from pathlib import Path

from hitsave.index.settings import CaseSettings
from hitsave.index.store import (
    IndexStore,
    SourceItem,
    ItemKind,
    ArtifactAttribute,
    CaseIndexNotFound,
    INTERESTING_FILE_HIT,
    ATTRIBUTE_SET_NAME,
)

from ..test_utils import open_store


def _register_sample(store: IndexStore):
    store.register_item(SourceItem(1, None, 'evidence', ItemKind.DIRECTORY, '/evidence', Path('evidence')))
    store.register_item(SourceItem(2, 1, 'a.txt', ItemKind.FILE, '/evidence/a.txt', Path('evidence/a.txt')))
    store.register_item(SourceItem(3, 1, 'sub', ItemKind.DIRECTORY, '/evidence/sub', Path('evidence/sub')))
    store.register_item(SourceItem(4, 3, 'b.txt', ItemKind.FILE, '/evidence/sub/b.txt', Path('evidence/sub/b.txt')))
    store.register_item(SourceItem(300, 1, 'z.txt', ItemKind.FILE, '/evidence/z.txt', Path('evidence/z.txt')))


class IndexStoreTest(unittest.TestCase):
    """Tests for the case index primitives."""

    def test_missing_index_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(CaseIndexNotFound):
                IndexStore(CaseSettings(Path(tmpdir)), Path(tmpdir))

    def test_missing_case_directory_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            missing = Path(tmpdir) / 'missing'
            with self.assertRaises(FileNotFoundError):
                IndexStore(CaseSettings(missing), missing, create=True)

    def test_create_index_directory(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            case_path = Path(tmpdir) / 'case'
            with open_store(case_path):
                self.assertTrue((case_path / '.hitsave' / 'database').is_dir())

    def test_get_item(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(Path(tmpdir) / 'case') as store:
                _register_sample(store)

                item = store.get_item(2)
                self.assertEqual(2, item.item_id)
                self.assertEqual(1, item.parent_id)
                self.assertEqual('a.txt', item.name)
                self.assertEqual(ItemKind.FILE, item.kind)
                self.assertEqual('/evidence/a.txt', item.unique_path)
                self.assertEqual(Path('evidence/a.txt'), item.source_path)
                self.assertIsNone(item.md5)

                self.assertTrue(store.get_item(1).is_directory())
                self.assertIsNone(store.get_item(99))

    def test_list_children_in_id_order(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(Path(tmpdir) / 'case') as store:
                _register_sample(store)

                self.assertEqual([2, 3, 300], [child.item_id for child in store.list_children(1)])
                self.assertEqual([4], [child.item_id for child in store.list_children(3)])
                self.assertEqual([], list(store.list_children(2)))

    def test_list_items_in_id_order(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(Path(tmpdir) / 'case') as store:
                _register_sample(store)
                self.assertEqual([1, 2, 3, 4, 300], [item.item_id for item in store.list_items()])

    def test_lookup_path(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(Path(tmpdir) / 'case') as store:
                _register_sample(store)

                self.assertEqual(4, store.lookup_path('/evidence/sub/b.txt').item_id)
                self.assertIsNone(store.lookup_path('/evidence/nothing'))

    def test_update_digest(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(Path(tmpdir) / 'case') as store:
                _register_sample(store)

                store.update_digest(2, '0cc175b9c0f1b6a831c399e269772661')
                self.assertEqual('0cc175b9c0f1b6a831c399e269772661', store.get_item(2).md5)

                with self.assertRaises(ValueError):
                    store.update_digest(1, 'ff')
                with self.assertRaises(KeyError):
                    store.update_digest(99, 'ff')

    def test_artifacts(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(Path(tmpdir) / 'case') as store:
                _register_sample(store)

                first = store.add_artifact(
                    INTERESTING_FILE_HIT, 2, [ArtifactAttribute(ATTRIBUTE_SET_NAME, 'Docs', 'Documents')])
                second = store.add_artifact('other-kind', 3, [])
                third = store.add_artifact(INTERESTING_FILE_HIT, 1, [])

                self.assertEqual([1, 2, 3], [first, second, third])

                hits = list(store.list_artifacts(INTERESTING_FILE_HIT))
                self.assertEqual([1, 3], [hit.artifact_id for hit in hits])
                self.assertEqual(2, hits[0].item_id)
                self.assertEqual(
                    ArtifactAttribute(ATTRIBUTE_SET_NAME, 'Docs', 'Documents'),
                    hits[0].find_attribute(ATTRIBUTE_SET_NAME))
                self.assertIsNone(hits[1].find_attribute(ATTRIBUTE_SET_NAME))

                self.assertEqual(3, len(list(store.list_artifacts())))

    def test_persistence_across_reopen(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            case_path = Path(tmpdir) / 'case'
            with open_store(case_path) as store:
                _register_sample(store)
                store.write_manifest(IndexStore.MANIFEST_SOURCE_ROOT, '/mnt/source')

            with IndexStore(CaseSettings(case_path), case_path) as store:
                self.assertEqual(Path('/mnt/source'), store.source_root)
                self.assertEqual('b.txt', store.get_item(4).name)

    def test_truncate(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(Path(tmpdir) / 'case') as store:
                _register_sample(store)
                store.write_manifest(IndexStore.MANIFEST_SOURCE_ROOT, '/mnt/source')
                store.add_artifact(INTERESTING_FILE_HIT, 2, [])

                store.truncate()

                self.assertIsNone(store.source_root)
                self.assertEqual([], list(store.list_items()))
                self.assertEqual([], list(store.list_children(1)))
                self.assertIsNone(store.lookup_path('/evidence'))
                self.assertEqual([], list(store.list_artifacts()))

    def test_inspect(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with open_store(Path(tmpdir) / 'case') as store:
                _register_sample(store)
                store.write_manifest(IndexStore.MANIFEST_SOURCE_ROOT, '/mnt/source')
                store.add_artifact(
                    INTERESTING_FILE_HIT, 2, [ArtifactAttribute(ATTRIBUTE_SET_NAME, 'My Docs', '')])

                entries = list(store.inspect())

                self.assertIn('manifest-property source-root /mnt/source', entries)
                self.assertIn('item 2 file parent:1 md5:- /evidence/a.txt', entries)
                self.assertIn('child 1 2', entries)
                self.assertIn('path /evidence/sub/b.txt 4', entries)
                self.assertIn('artifact 1 interesting-file-hit item:2 set-name=My+Docs', entries)

    def test_names_that_are_not_valid_utf8(self):
        name = b'bad\xff.txt'.decode('utf-8', 'surrogateescape')
        with tempfile.TemporaryDirectory() as tmpdir:
            case_path = Path(tmpdir) / 'case'
            with open_store(case_path) as store:
                store.register_item(SourceItem(1, None, name, ItemKind.FILE, '/' + name, Path(name)))
                store.add_artifact(INTERESTING_FILE_HIT, 1, [ArtifactAttribute(ATTRIBUTE_SET_NAME, name, '')])
                entries = list(store.inspect())

            self.assertIn('item 1 file parent:None md5:- /bad%FF.txt', entries)
            self.assertIn('artifact 1 interesting-file-hit item:1 set-name=bad%FF.txt', entries)

            with open_store(case_path) as store:
                item = store.lookup_path('/' + name)
                self.assertEqual(name, item.name)
                self.assertEqual(Path(name), item.source_path)
                self.assertEqual(name, next(store.list_artifacts()).attributes[0].value)

    def test_closed_store_rejects_context(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = open_store(Path(tmpdir) / 'case')
            store.close()
            with self.assertRaises(BrokenPipeError):
                with store:
                    pass


if __name__ == '__main__':
    unittest.main()

import tempfile
import unittest
from pathlib import Path

from hitsave.commands.ingest import do_ingest, IngestArgs
from hitsave.commands.tag import do_tag, TagArgs
from hitsave.index.store import INTERESTING_FILE_HIT, ATTRIBUTE_SET_NAME, ArtifactAttribute

from ..test_utils import make_tree, open_store


class TagTest(unittest.TestCase):
    """Tests for do_tag()."""

    def test_tag_records_hits(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            source = Path(tmpdir) / 'source'
            make_tree(source, {'a.txt': b'a', 'docs': {'b.txt': b'b'}})

            with open_store(Path(tmpdir) / 'case') as store:
                do_ingest(store, IngestArgs(source))

                artifact_ids = do_tag(store, TagArgs('Docs', 'Documents', ['/a.txt', 'docs/b.txt', '/docs/']))

                self.assertEqual([1, 2, 3], artifact_ids)
                hits = list(store.list_artifacts(INTERESTING_FILE_HIT))
                self.assertEqual(
                    [store.lookup_path(p).item_id for p in ('/a.txt', '/docs/b.txt', '/docs')],
                    [hit.item_id for hit in hits])
                for hit in hits:
                    self.assertEqual(
                        [ArtifactAttribute(ATTRIBUTE_SET_NAME, 'Docs', 'Documents')], hit.attributes)

    def test_unknown_path_records_nothing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            source = Path(tmpdir) / 'source'
            make_tree(source, {'a.txt': b'a'})

            with open_store(Path(tmpdir) / 'case') as store:
                do_ingest(store, IngestArgs(source))

                with self.assertRaises(FileNotFoundError):
                    do_tag(store, TagArgs('Docs', '', ['/a.txt', '/missing.txt']))

                self.assertEqual([], list(store.list_artifacts()))

    def test_empty_set_name_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            source = Path(tmpdir) / 'source'
            make_tree(source, {'a.txt': b'a'})

            with open_store(Path(tmpdir) / 'case') as store:
                do_ingest(store, IngestArgs(source))

                with self.assertRaises(ValueError):
                    do_tag(store, TagArgs('', '', ['/a.txt']))

    def test_set_name_must_be_a_folder_name(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            source = Path(tmpdir) / 'source'
            make_tree(source, {'a.txt': b'a'})

            with open_store(Path(tmpdir) / 'case') as store:
                do_ingest(store, IngestArgs(source))

                for set_name in ('.', '..', 'Cases/2024', str(Path(tmpdir) / 'escaped')):
                    with self.assertRaises(ValueError):
                        do_tag(store, TagArgs(set_name, '', ['/a.txt']))

                self.assertEqual([], list(store.list_artifacts()))


if __name__ == '__main__':
    unittest.main()

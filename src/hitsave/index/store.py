import urllib.parse
from enum import StrEnum
from pathlib import Path
from typing import Iterator, NamedTuple

import msgpack
import plyvel

from .path import get_index_directory_path
from .settings import CaseSettings


# Artifact kinds
INTERESTING_FILE_HIT = 'interesting-file-hit'

# Attribute types
ATTRIBUTE_SET_NAME = 'set-name'

# Names read from the source tree keep undecodable bytes as lone surrogates (PEP 383).
UNICODE_ERRORS = 'surrogateescape'


def _pack(value) -> bytes:
    result = msgpack.dumps(value, unicode_errors=UNICODE_ERRORS)
    assert isinstance(result, bytes)
    return result


def _unpack(data: bytes):
    return msgpack.loads(data, unicode_errors=UNICODE_ERRORS)


def _encode_text(value: str) -> bytes:
    return value.encode('utf-8', UNICODE_ERRORS)


def _decode_text(data: bytes) -> str:
    return data.decode('utf-8', UNICODE_ERRORS)


class ItemKind(StrEnum):
    FILE = 'file'
    DIRECTORY = 'directory'


class SourceItem:
    """A file or directory of the source tree, as recorded in the case index.

    Attributes:
        item_id: Numeric identifier, unique within the case and stable until re-ingest
        parent_id: Identifier of the containing directory, None for top-level entries
        name: Entry name inside its parent directory
        kind: ItemKind.FILE or ItemKind.DIRECTORY
        unique_path: Logical path inside the source tree, in POSIX form rooted at '/'
        source_path: Path relative to the source root used to read the bytes
        md5: Hexadecimal MD5 digest, None until the digest stage has processed the file
    """

    def __init__(
            self,
            item_id: int,
            parent_id: int | None,
            name: str,
            kind: ItemKind,
            unique_path: str,
            source_path: Path,
            md5: str | None = None):
        self.item_id = item_id
        self.parent_id = parent_id
        self.name = name
        self.kind = ItemKind(kind)
        self.unique_path = unique_path
        self.source_path = source_path
        self.md5 = md5

    def is_directory(self) -> bool:
        return self.kind == ItemKind.DIRECTORY

    def to_msgpack(self) -> bytes:
        """Serialize as msgpack([parent_id, name, kind, unique_path, source_path_components, md5])."""
        return _pack([
            self.parent_id,
            self.name,
            str(self.kind),
            self.unique_path,
            [str(part) for part in self.source_path.parts],
            self.md5,
        ])

    @classmethod
    def from_msgpack(cls, item_id: int, data: bytes) -> "SourceItem":
        parent_id, name, kind, unique_path, source_path_components, md5 = _unpack(data)
        return cls(item_id, parent_id, name, ItemKind(kind), unique_path, Path(*source_path_components), md5)


class ArtifactAttribute(NamedTuple):
    """One attribute of a hit artifact.

    For ATTRIBUTE_SET_NAME the value is the set name and the context is its description.
    """
    type: str
    value: str
    context: str = ''


class HitArtifact(NamedTuple):
    artifact_id: int
    kind: str
    item_id: int
    attributes: list[ArtifactAttribute]

    def find_attribute(self, attribute_type: str) -> ArtifactAttribute | None:
        for attribute in self.attributes:
            if attribute.type == attribute_type:
                return attribute
        return None


class CaseIndexNotFound(FileNotFoundError):
    pass


def _encode_id(value: int) -> bytes:
    # Big-endian keeps LevelDB iteration in numeric order.
    return value.to_bytes(8, 'big')


def _decode_id(data: bytes) -> int:
    return int.from_bytes(data, 'big')


class IndexStore:
    """Low-level data operations layer for a case index.

    IndexStore owns the LevelDB database under <case>/.hitsave/database and exposes
    primitive operations over it:
    - Manifest properties (source root, ...)
    - Source items, keyed by numeric identifier
    - The parent/child relation between items, ordered by child identifier
    - A logical path lookup
    - Hit artifacts with their attributes

    Workflows such as ingesting a source tree or saving interesting files are built on
    top of these primitives by the command modules and the Case class.
    """
    __MANIFEST_PROPERTY_PREFIX = b'p'
    __ITEM_PREFIX = b'i'
    __CHILD_PREFIX = b'c'
    __PATH_PREFIX = b'n'
    __ARTIFACT_PREFIX = b'a'

    MANIFEST_SOURCE_ROOT = 'source-root'
    MANIFEST_PENDING_ACTION = 'truncating'

    def __init__(self, settings: CaseSettings, case_path: Path, create: bool = False):
        """Open the case index.

        Args:
            settings: Case settings
            case_path: Case root directory path
            create: Create the .hitsave directory if missing

        Raises:
            FileNotFoundError: Case directory does not exist
            NotADirectoryError: Case path is not a directory
            CaseIndexNotFound: Index directory missing and create=False
        """
        if not case_path.exists():
            raise FileNotFoundError(f"Case {case_path} does not exist")

        if not case_path.is_dir():
            raise NotADirectoryError(f"Case {case_path} is not a directory")

        index_path = get_index_directory_path(case_path)

        if create:
            index_path.mkdir(exist_ok=True)

        if not index_path.exists():
            raise CaseIndexNotFound(f"The index for case {case_path} has not been created")

        if not index_path.is_dir():
            raise NotADirectoryError(f"The index for case {case_path} is not a directory")

        database = plyvel.DB(str(index_path / 'database'), create_if_missing=True)

        self._case_path = case_path
        self._alive = True
        self._database = database
        self._manifest_database = database.prefixed_db(IndexStore.__MANIFEST_PROPERTY_PREFIX)
        self._item_database = database.prefixed_db(IndexStore.__ITEM_PREFIX)
        self._child_database = database.prefixed_db(IndexStore.__CHILD_PREFIX)
        self._path_database = database.prefixed_db(IndexStore.__PATH_PREFIX)
        self._artifact_database = database.prefixed_db(IndexStore.__ARTIFACT_PREFIX)
        self._settings = settings

    def __del__(self):
        self.close()

    def __enter__(self):
        if not self._alive:
            raise BrokenPipeError("Case index was closed")

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close LevelDB database and mark the store as closed."""
        if not getattr(self, '_alive', False):
            return

        self._alive = False
        self._database.close()
        self._database = None

    @property
    def case_path(self) -> Path:
        return self._case_path

    @property
    def source_root(self) -> Path | None:
        """Root of the ingested source tree, None before the first ingest."""
        value = self.read_manifest(IndexStore.MANIFEST_SOURCE_ROOT)
        return None if value is None else Path(value)

    def truncate(self):
        """Remove all items, relations and artifacts, and reset the source root."""
        self.write_manifest(IndexStore.MANIFEST_PENDING_ACTION, 'truncate')
        self.write_manifest(IndexStore.MANIFEST_SOURCE_ROOT, None)

        for database in (self._item_database, self._child_database, self._path_database,
                         self._artifact_database):
            batch = database.write_batch()
            for key in database.iterator(include_value=False):
                batch.delete(key)
            batch.write()

        self.write_manifest(IndexStore.MANIFEST_PENDING_ACTION, None)

    def write_manifest(self, entry: str, value: str | None) -> None:
        """Write or delete manifest property. None value deletes the key."""
        if value is None:
            self._manifest_database.delete(entry.encode())
        else:
            self._manifest_database.put(entry.encode(), _encode_text(value))

    def read_manifest(self, entry: str) -> str | None:
        value = self._manifest_database.get(entry.encode())

        if value is not None:
            value = _decode_text(value)

        return value

    def register_item(self, item: SourceItem) -> None:
        """Store an item along with its parent relation and logical path lookup."""
        key = _encode_id(item.item_id)
        with self._database.write_batch() as batch:
            batch.put(IndexStore.__ITEM_PREFIX + key, item.to_msgpack())
            if item.parent_id is not None:
                batch.put(IndexStore.__CHILD_PREFIX + _encode_id(item.parent_id) + key, b'')
            batch.put(IndexStore.__PATH_PREFIX + _encode_text(item.unique_path), key)

    def update_digest(self, item_id: int, md5: str | None) -> None:
        """Attach an MD5 digest to a file item.

        Raises:
            KeyError: No item with this identifier
            ValueError: The item is a directory
        """
        item = self.get_item(item_id)
        if item is None:
            raise KeyError(item_id)
        if item.is_directory():
            raise ValueError(f"Directory {item.unique_path} cannot carry a digest")

        item.md5 = md5
        self._item_database.put(_encode_id(item_id), item.to_msgpack())

    def get_item(self, item_id: int) -> SourceItem | None:
        value = self._item_database.get(_encode_id(item_id))

        if value is None:
            return None

        return SourceItem.from_msgpack(item_id, value)

    def list_items(self) -> Iterator[SourceItem]:
        """Iterate all items in identifier order."""
        for key, value in self._item_database.iterator():
            yield SourceItem.from_msgpack(_decode_id(key), value)

    def list_children(self, item_id: int) -> Iterator[SourceItem]:
        """Iterate the direct children of a directory item in identifier order."""
        children_database = self._child_database.prefixed_db(_encode_id(item_id))
        for key in children_database.iterator(include_value=False):
            child = self.get_item(_decode_id(key))
            if child is not None:
                yield child

    def lookup_path(self, unique_path: str) -> SourceItem | None:
        """Find an item by its logical path, e.g. '/docs/report.pdf'."""
        value = self._path_database.get(_encode_text(unique_path))

        if value is None:
            return None

        return self.get_item(_decode_id(value))

    def add_artifact(self, kind: str, item_id: int, attributes: list[ArtifactAttribute]) -> int:
        """Record a hit artifact and return its identifier.

        Identifiers are assigned sequentially starting from 1.
        """
        artifact_id = 1
        for key in self._artifact_database.iterator(include_value=False, reverse=True):
            artifact_id = _decode_id(key) + 1
            break

        self._artifact_database.put(
            _encode_id(artifact_id),
            _pack([kind, item_id, [list(attribute) for attribute in attributes]])
        )
        return artifact_id

    def list_artifacts(self, kind: str | None = None) -> Iterator[HitArtifact]:
        """Iterate artifacts in identifier order, optionally restricted to one kind."""
        for key, value in self._artifact_database.iterator():
            artifact_kind, item_id, attributes = _unpack(value)
            if kind is not None and artifact_kind != kind:
                continue
            yield HitArtifact(
                _decode_id(key),
                artifact_kind,
                item_id,
                [ArtifactAttribute(*attribute) for attribute in attributes]
            )

    def inspect(self) -> Iterator[str]:
        """Generate human-readable index entries for debugging and inspection.

        Yields:
            One line per manifest property, item, child relation, path lookup and artifact,
            with URL-encoded names and paths
        """
        for key, value in self._database.iterator():
            key: bytes
            if key.startswith(IndexStore.__MANIFEST_PROPERTY_PREFIX):
                entry = key[len(IndexStore.__MANIFEST_PROPERTY_PREFIX):].decode()
                quoted_value = urllib.parse.quote(_decode_text(value), errors=UNICODE_ERRORS)
                yield f'manifest-property {entry} {quoted_value}'
            elif key.startswith(IndexStore.__ITEM_PREFIX):
                item = SourceItem.from_msgpack(_decode_id(key[len(IndexStore.__ITEM_PREFIX):]), value)
                quoted_path = urllib.parse.quote(item.unique_path, errors=UNICODE_ERRORS)
                yield f'item {item.item_id} {item.kind} parent:{item.parent_id} md5:{item.md5 or "-"} {quoted_path}'
            elif key.startswith(IndexStore.__CHILD_PREFIX):
                ids = key[len(IndexStore.__CHILD_PREFIX):]
                yield f'child {_decode_id(ids[:8])} {_decode_id(ids[8:])}'
            elif key.startswith(IndexStore.__PATH_PREFIX):
                unique_path = _decode_text(key[len(IndexStore.__PATH_PREFIX):])
                quoted_path = urllib.parse.quote(unique_path, errors=UNICODE_ERRORS)
                yield f'path {quoted_path} {_decode_id(value)}'
            elif key.startswith(IndexStore.__ARTIFACT_PREFIX):
                artifact_kind, item_id, attributes = _unpack(value)
                rendered = ' '.join(
                    f'{attribute_type}={urllib.parse.quote_plus(attribute_value, errors=UNICODE_ERRORS)}'
                    for attribute_type, attribute_value, _ in attributes
                )
                yield f'artifact {_decode_id(key[len(IndexStore.__ARTIFACT_PREFIX):])} {artifact_kind} ' \
                      f'item:{item_id} {rendered}'.rstrip()
            else:
                yield f'OTHER {key} {value}'

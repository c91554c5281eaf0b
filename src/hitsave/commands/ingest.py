import logging
from pathlib import Path
from typing import NamedTuple

from ..index.store import IndexStore, ItemKind, SourceItem
from ..utils.walker import walk_tree

logger = logging.getLogger(__name__)


class IngestArgs(NamedTuple):
    """Arguments for the ingest operation."""
    source_path: Path  # Root of the read-only source tree


def do_ingest(store: IndexStore, args: IngestArgs) -> int:
    """Rebuild the item index from a source tree.

    Existing items and hit artifacts are discarded because item identifiers are
    reassigned. Identifiers are assigned from 1 in walk order (depth-first, children
    by name), so children of a directory are listed in name order. Entries that are
    neither regular files nor directories are skipped.

    Returns:
        Number of items registered

    Raises:
        FileNotFoundError: Source path does not exist
        NotADirectoryError: Source path is not a directory
    """
    source_path = args.source_path.absolute()
    if not source_path.exists():
        raise FileNotFoundError(f"Source {source_path} does not exist")

    if not source_path.is_dir():
        raise NotADirectoryError(f"Source {source_path} is not a directory")

    logger.info(f"Ingesting source tree {source_path}")

    store.truncate()

    next_id = 1
    for file_path, context in walk_tree(source_path):
        if context.is_dir():
            kind = ItemKind.DIRECTORY
        elif context.is_file():
            kind = ItemKind.FILE
        else:
            logger.debug(f"Skipping special file {file_path}")
            continue

        parent_id = context.parent.item_id
        context.item_id = next_id
        store.register_item(SourceItem(
            next_id, parent_id, context.name, kind, context.unique_path, context.relative_path))
        next_id += 1

    store.write_manifest(IndexStore.MANIFEST_SOURCE_ROOT, str(source_path))

    logger.info(f"Ingested {next_id - 1} items from {source_path}")
    return next_id - 1

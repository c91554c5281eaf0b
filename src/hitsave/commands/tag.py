import logging
from typing import NamedTuple

from ..index.store import IndexStore, ArtifactAttribute, INTERESTING_FILE_HIT, ATTRIBUTE_SET_NAME
from ..naming import is_valid_set_name

logger = logging.getLogger(__name__)


class TagArgs(NamedTuple):
    """Arguments for the tag operation."""
    set_name: str  # Name of the interesting file set
    description: str  # Description of the set
    paths: list[str]  # Logical paths of the items, e.g. '/docs/a.txt'


def do_tag(store: IndexStore, args: TagArgs) -> list[int]:
    """Record an interesting file hit for each path.

    All paths are resolved before anything is written, so an unknown path leaves the
    index unchanged.

    Returns:
        Identifiers of the new artifacts, in path order

    Raises:
        ValueError: The set name cannot be used as a folder name
        FileNotFoundError: A path is not in the index
    """
    if not is_valid_set_name(args.set_name):
        raise ValueError(f"Invalid set name {args.set_name!r}: it must be a single folder name")

    items = []
    for path in args.paths:
        unique_path = '/' + path.strip('/')
        item = store.lookup_path(unique_path)
        if item is None:
            raise FileNotFoundError(f"No indexed item at {unique_path}")
        items.append(item)

    artifact_ids = []
    for item in items:
        artifact_id = store.add_artifact(
            INTERESTING_FILE_HIT,
            item.item_id,
            [ArtifactAttribute(ATTRIBUTE_SET_NAME, args.set_name, args.description)]
        )
        logger.info(f"Tagged {item.unique_path} (id {item.item_id}) as {args.set_name}: artifact {artifact_id}")
        artifact_ids.append(artifact_id)

    return artifact_ids

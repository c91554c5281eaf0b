import logging
from asyncio import TaskGroup
from typing import NamedTuple

from ..index.store import IndexStore, SourceItem
from ..utils.processor import Processor
from ..utils.throttler import Throttler

logger = logging.getLogger(__name__)


class DigestArgs(NamedTuple):
    """Arguments for the digest operation."""
    processor: Processor  # Worker pool computing the digests
    recompute: bool = False  # Also digest files that already carry one


class DigestProcessor:
    """Computes MD5 digests of indexed files and stores them on the items."""

    def __init__(self, store: IndexStore, args: DigestArgs):
        self._store = store
        self._processor = args.processor
        self._recompute = args.recompute
        self._digested = 0

    async def run(self) -> int:
        source_root = self._store.source_root
        if source_root is None:
            raise RuntimeError("The case has not been ingested")

        async with TaskGroup() as tg:
            throttler = Throttler(tg, self._processor.concurrency * 2)

            for item in self._store.list_items():
                if item.is_directory():
                    continue
                if item.md5 is not None and not self._recompute:
                    continue
                await throttler.schedule(self._digest(item))

        return self._digested

    async def _digest(self, item: SourceItem):
        source_root = self._store.source_root
        try:
            md5 = await self._processor.md5(source_root / item.source_path)
        except OSError as e:
            # The item keeps no digest and is reported with an empty MD5.
            logger.warning(f"Unable to compute MD5 of {item.unique_path} (id {item.item_id}): {e}")
            return

        self._store.update_digest(item.item_id, md5)
        self._digested += 1


async def do_digest(store: IndexStore, args: DigestArgs) -> int:
    """Compute missing digests. Returns the number of files digested."""
    return await DigestProcessor(store, args).run()

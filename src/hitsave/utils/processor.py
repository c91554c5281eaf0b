"""Process pool for the digest stage.

Hashing is CPU bound, so files are read and hashed in worker processes while the
digest stage schedules work from an asyncio event loop.
"""
import asyncio
import hashlib
import logging
import os
import pathlib
from multiprocessing.pool import Pool

logger = logging.getLogger(__name__)


def compute_md5_for_path(path: pathlib.Path) -> str:
    with open(path, "rb") as f:
        # noinspection PyTypeChecker
        return hashlib.file_digest(f, hashlib.md5).hexdigest()


class Processor:
    """Runs digest jobs in a process pool and hands results back to the event loop.

    close() waits for submitted jobs; leaving the context with an exception stops the
    workers without waiting.
    """

    def __init__(self, concurrency: int | None = None):
        self._concurrency = concurrency or os.cpu_count() or 1
        self._pool = Pool(self._concurrency)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.close()
        else:
            self.terminate()

    def close(self):
        self._pool.close()
        self._pool.join()

    def terminate(self):
        self._pool.terminate()
        self._pool.join()

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def md5(self, path: pathlib.Path) -> str:
        """Lowercase hexadecimal MD5 digest of a file.

        Raises:
            OSError: The file could not be read
        """
        logger.debug(f"Hashing {path}")
        digest = await self._submit(compute_md5_for_path, path)
        logger.debug(f"MD5 {digest} for {path}")
        return digest

    def _submit(self, func, *args) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def resolve(value):
            if not future.done():
                future.set_result(value)

        def reject(error):
            if not future.done():
                future.set_exception(error)

        self._pool.apply_async(func, args,
                               callback=lambda value: loop.call_soon_threadsafe(resolve, value),
                               error_callback=lambda error: loop.call_soon_threadsafe(reject, error))
        return future

import asyncio
import logging
import os
from pathlib import Path
from typing import Iterator

from .utils.processor import Processor
from .index.store import IndexStore
from .index.settings import CaseSettings, SETTING_OUTPUT_DIRECTORY, SETTING_LOGGING_PATH
from .commands.ingest import do_ingest, IngestArgs
from .commands.digest import do_digest, DigestArgs
from .commands.tag import do_tag, TagArgs
from .commands.save import do_save, SaveArgs, SaveResult

INTERESTING_FILES_FOLDER = 'InterestingFiles'


class Case:
    """Workflow layer over a case index.

    A case is a directory holding a .hitsave index of one read-only source tree. The
    class composes IndexStore primitives into the operations offered to users:
    - ingest(): index the source tree
    - compute_digests(): attach MD5 digests to indexed files
    - tag(): record interesting file hits
    - save(): copy the hits of every interesting file set and write the reports

    Contrast with IndexStore, which only reads and writes index records.
    """

    def __init__(self, processor: Processor | None, path: str | os.PathLike, create: bool = False):
        """Open the case at path/.hitsave.

        Args:
            processor: Worker pool for digest computation, may be None if digests are not needed
            path: Case root directory path
            create: Create .hitsave directory if missing

        Raises:
            FileNotFoundError: Case directory does not exist
            NotADirectoryError: Case path is not a directory
            CaseIndexNotFound: Index directory missing and create=False
        """
        case_path = Path(path)

        settings = CaseSettings(case_path)

        self._store = IndexStore(settings, case_path, create)
        self._processor = processor
        self._settings = settings

    def __del__(self):
        self.close()

    def __enter__(self):
        self._store.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._store.__exit__(exc_type, exc_val, exc_tb)

    def close(self):
        if hasattr(self, '_store'):
            self._store.close()

    @property
    def case_path(self) -> Path:
        return self._store.case_path

    def configure_logging_from_settings(self) -> bool:
        """Send logging to the file named by the logging.path setting, if any.

        The current level is kept if logging was already configured.

        Returns:
            True if logging was configured, False otherwise
        """
        log_path_setting = self._settings.get(SETTING_LOGGING_PATH)
        if log_path_setting:
            log_path = str(log_path_setting)
            current_level = logging.root.level if logging.root.level != logging.NOTSET else logging.INFO

            for handler in logging.root.handlers[:]:
                logging.root.removeHandler(handler)

            logging.basicConfig(
                filename=log_path,
                level=current_level,
                format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            return True
        return False

    def default_output_path(self) -> Path:
        """<output directory>/InterestingFiles

        The output directory is the output.directory setting, relative to the case
        directory if not absolute, or <case>/output when unset.
        """
        output_directory = self._settings.get(SETTING_OUTPUT_DIRECTORY)
        if output_directory:
            base = self.case_path / Path(output_directory)
        else:
            base = self.case_path / 'output'
        return base / INTERESTING_FILES_FOLDER

    def ingest(self, source_path: str | os.PathLike) -> int:
        """Index the source tree, replacing any previous items and hits."""
        return do_ingest(self._store, IngestArgs(Path(source_path)))

    def compute_digests(self, recompute: bool = False) -> int:
        """Compute MD5 digests of indexed files that have none yet.

        Raises:
            RuntimeError: No processor was given or the case has not been ingested
        """
        if self._processor is None:
            raise RuntimeError("A processor is required to compute digests")

        return asyncio.run(do_digest(self._store, DigestArgs(self._processor, recompute)))

    def tag(self, set_name: str, description: str, paths: list[str]) -> list[int]:
        """Mark items, by logical path, as hits of an interesting file set."""
        return do_tag(self._store, TagArgs(set_name, description, paths))

    def save(self, output_path: str | os.PathLike | None = None) -> SaveResult:
        """Save all interesting file sets.

        Args:
            output_path: Output folder, default_output_path() if None

        Returns:
            SaveResult with status OK only if every hit of every set was saved
        """
        if output_path is None:
            output_path = self.default_output_path()

        return do_save(self._store, SaveArgs(Path(output_path)))

    def inspect(self) -> Iterator[str]:
        """Generate human-readable index entries for debugging and inspection."""
        yield from self._store.inspect()

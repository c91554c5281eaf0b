"""Save the files of interesting file set hits to an output folder.

For every interesting file set the hits are copied below <output>/<set name>/ and a
report <output>/<set name>/<set name>.xml lists what was saved:

    <output folder>/
        <set name>/
            <set name>.xml
            <file name>_<file id>.<ext>
            <directory name>_<directory id>/
                <directory name>/
                    <contents of the directory, including subdirectories>

A hit that cannot be saved is logged and skipped, the remaining hits are still saved and
reported, and the overall status becomes FAIL.
"""

import logging
import shutil
from enum import StrEnum
from pathlib import Path
from typing import Iterable, NamedTuple

from ..index.store import IndexStore, SourceItem, HitArtifact, INTERESTING_FILE_HIT, ATTRIBUTE_SET_NAME
from ..naming import is_valid_set_name, unique_directory_path, unique_file_path
from ..report.saved_items import SavedItemsReport

logger = logging.getLogger(__name__)


class SaveError(Exception):
    pass


class SaveStatus(StrEnum):
    OK = 'ok'
    FAIL = 'fail'


class SaveArgs(NamedTuple):
    """Arguments for the save operation."""
    output_path: Path  # Folder receiving one subfolder per interesting file set


class FileSet:
    """Hits sharing one set name, with the description of the first hit seen."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.hits: list[HitArtifact] = []


class GroupedHits(NamedTuple):
    file_sets: dict[str, FileSet]  # Keyed by set name, in set name order
    skipped_artifacts: list[int]  # Artifacts without a set name


class FileSetOutcome(NamedTuple):
    name: str
    report_path: Path | None  # None if the report was not written
    saved_items: int
    failed_hits: int
    status: SaveStatus


class SaveResult(NamedTuple):
    status: SaveStatus
    file_sets: list[FileSetOutcome]
    skipped_artifacts: list[int]


def group_hits(artifacts: Iterable[HitArtifact]) -> GroupedHits:
    """Partition hit artifacts by set name.

    The hits of each set keep their input order. An artifact without a set name attribute
    is logged and left out.
    """
    file_sets: dict[str, FileSet] = {}
    skipped: list[int] = []

    for artifact in artifacts:
        attribute = artifact.find_attribute(ATTRIBUTE_SET_NAME)
        if attribute is None or not attribute.value:
            logger.error(f"Failed to find set name attribute {ATTRIBUTE_SET_NAME} for {artifact.kind} artifact "
                         f"with id {artifact.artifact_id}")
            skipped.append(artifact.artifact_id)
            continue

        file_set = file_sets.get(attribute.value)
        if file_set is None:
            file_set = file_sets[attribute.value] = FileSet(attribute.value, attribute.context)
        file_set.hits.append(artifact)

    return GroupedHits({name: file_sets[name] for name in sorted(file_sets)}, skipped)


def create_directory(path: Path) -> None:
    """Create a directory and its parents. Existing directories are accepted.

    Raises:
        SaveError: The directory could not be created
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SaveError(f"Failed to create directory '{path}': {e}") from e


def copy_item(store: IndexStore, item: SourceItem, destination: Path) -> None:
    """Copy the bytes of a file item to destination.

    Raises:
        SaveError: The file could not be read or written
    """
    source = store.source_root / item.source_path
    try:
        shutil.copyfile(source, destination)
    except OSError as e:
        raise SaveError(f"Failed to copy {item.unique_path} (id {item.item_id}) to '{destination}': {e}") from e


class SaveProcessor:
    """Saves interesting file sets, one after another, to the output folder."""

    def __init__(self, store: IndexStore, args: SaveArgs):
        self._store = store
        self._output_path = args.output_path

    def run(self) -> SaveResult:
        logger.info("Save operations started")

        try:
            create_directory(self._output_path)
        except SaveError as e:
            logger.error(str(e))
            logger.info("Save operations finished")
            return SaveResult(SaveStatus.FAIL, [], [])

        grouped = group_hits(self._store.list_artifacts(INTERESTING_FILE_HIT))
        status = SaveStatus.FAIL if grouped.skipped_artifacts else SaveStatus.OK

        outcomes = []
        for file_set in grouped.file_sets.values():
            outcome = self.save_file_set(file_set)
            if outcome.status == SaveStatus.FAIL:
                status = SaveStatus.FAIL
            outcomes.append(outcome)

        logger.info("Save operations finished")
        return SaveResult(status, outcomes, grouped.skipped_artifacts)

    def save_file_set(self, file_set: FileSet) -> FileSetOutcome:
        """Save all hits of a set and write its report.

        A set name that is not a single folder name, or a set folder that cannot be
        created, aborts this set only. An item hit more than once in the set is saved once.
        """
        report = SavedItemsReport(file_set.name, file_set.description)

        if not is_valid_set_name(file_set.name):
            logger.error(f"Skipping interesting file set {file_set.name!r}: the name is not a valid folder name")
            return FileSetOutcome(file_set.name, None, 0, len(file_set.hits), SaveStatus.FAIL)

        set_folder = self._output_path / file_set.name
        try:
            create_directory(set_folder)
        except SaveError as e:
            logger.error(f"Skipping interesting file set {file_set.name}: {e}")
            return FileSetOutcome(file_set.name, None, 0, len(file_set.hits), SaveStatus.FAIL)

        logger.info(f"Saving {len(file_set.hits)} hits of interesting file set {file_set.name} to {set_folder}")

        failed_hits = 0
        saved_item_ids = set()
        for hit in file_set.hits:
            if hit.item_id in saved_item_ids:
                logger.warning(f"Item {hit.item_id} is hit more than once in {file_set.name}, "
                               f"skipping hit {hit.artifact_id}")
                continue
            saved_item_ids.add(hit.item_id)

            try:
                failed_files = self._save_hit(hit, set_folder, report)
            except SaveError as e:
                logger.error(f"Failed to save hit {hit.artifact_id} of {file_set.name}: {e}")
                failed_hits += 1
            else:
                if failed_files:
                    logger.error(f"Hit {hit.artifact_id} of {file_set.name} saved partially, "
                                 f"{failed_files} files failed")
                    failed_hits += 1

        report_path = set_folder / f'{file_set.name}.xml'
        try:
            report.write(report_path)
        except OSError as e:
            logger.error(f"Failed to write report '{report_path}': {e}")
            return FileSetOutcome(file_set.name, None, len(report.items), failed_hits, SaveStatus.FAIL)

        status = SaveStatus.FAIL if failed_hits else SaveStatus.OK
        return FileSetOutcome(file_set.name, report_path, len(report.items), failed_hits, status)

    def _save_hit(self, hit: HitArtifact, set_folder: Path, report: SavedItemsReport) -> int:
        """Save the item of a hit. Returns the number of files inside a saved directory that failed."""
        item = self._store.get_item(hit.item_id)
        if item is None:
            raise SaveError(f"No item with id {hit.item_id} in the index")

        if item.is_directory():
            return self.save_interesting_directory(item, set_folder, report)

        self.save_interesting_file(item, set_folder, report)
        return 0

    def save_interesting_file(self, file: SourceItem, set_folder: Path, report: SavedItemsReport) -> None:
        destination = unique_file_path(set_folder, file.name, file.item_id)
        copy_item(self._store, file, destination)
        report.add_item(file, destination)

    def save_interesting_directory(self, directory: SourceItem, set_folder: Path, report: SavedItemsReport) -> int:
        destination = unique_directory_path(set_folder, directory.name, directory.item_id)
        create_directory(destination)
        report.add_item(directory, destination)
        return self.save_directory_contents(destination, directory, report)

    def save_directory_contents(self, directory_path: Path, directory: SourceItem, report: SavedItemsReport) -> int:
        """Copy the contents of a directory recursively, keeping the original names.

        Nested directories are created but not reported; every file copied is reported
        as a sibling of the saved directory's own entry. A file that fails to copy is
        logged and skipped.

        Returns:
            Number of files that could not be copied

        Raises:
            SaveError: A subdirectory could not be created
        """
        failed_files = 0
        for child in self._store.list_children(directory.item_id):
            destination = directory_path / child.name
            if child.is_directory():
                create_directory(destination)
                failed_files += self.save_directory_contents(destination, child, report)
            else:
                try:
                    copy_item(self._store, child, destination)
                except SaveError as e:
                    logger.error(str(e))
                    failed_files += 1
                else:
                    report.add_item(child, destination)
        return failed_files


def do_save(store: IndexStore, args: SaveArgs) -> SaveResult:
    """Save every interesting file set of the case.

    Raises:
        RuntimeError: The case has not been ingested
    """
    if store.source_root is None:
        raise RuntimeError("The case has not been ingested")

    return SaveProcessor(store, args).run()

import functools
import os
import stat
from pathlib import Path
from typing import Iterator


class FileContext:
    """Context object for a file or directory encountered while walking a source tree.

    Contexts form a chain through their parents so that the path relative to the walk
    root can be computed without keeping the absolute path around. The root context has
    no name.
    """
    def __init__(self, parent, name: str | None, path: Path | None = None, st: os.stat_result | None = None):
        self._parent: FileContext | None = parent
        self._name: str | None = name
        self._stat: os.stat_result | None = st
        self._path: Path | None = path
        self.item_id: int | None = None

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def parent(self) -> 'FileContext':
        if self._parent is None:
            raise LookupError("no parent")

        return self._parent

    @property
    def stat(self) -> os.stat_result:
        if self._stat is None:
            if self._path is None:
                raise LookupError("stat not available and path not provided")
            self._stat = self._path.stat(follow_symlinks=False)
        return self._stat

    @functools.cached_property
    def relative_path(self) -> Path | None:
        """Path from the walk root, built from the parent's cached result."""
        if self._name is None:
            return None

        if self._parent is None:
            return Path(self._name)

        parent_path = self._parent.relative_path
        if parent_path is None:
            return Path(self._name)

        return parent_path / self._name

    @property
    def unique_path(self) -> str:
        """Logical path of the entry inside the source tree, e.g. '/docs/a.txt'."""
        if self.relative_path is None:
            return '/'
        return '/' + self.relative_path.as_posix()

    def is_file(self):
        return stat.S_ISREG(self.stat.st_mode)

    def is_dir(self):
        return stat.S_ISDIR(self.stat.st_mode)


def walk(path: Path, parent: FileContext) -> Iterator[tuple[Path, FileContext]]:
    """Depth-first, pre-order traversal with children visited in name order.

    Symlinks are reported but never followed.
    """
    for child in sorted(path.iterdir(), key=lambda p: p.name):
        context = FileContext(parent, child.name, path=child)
        yield child, context

        if context.is_dir():
            yield from walk(child, context)


def walk_tree(root: Path) -> Iterator[tuple[Path, FileContext]]:
    """Walk everything below root. The root itself is not yielded."""
    yield from walk(root, FileContext(None, None, root))

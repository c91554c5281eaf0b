"""Collision-free destination names for saved items.

Item identifiers are unique within a case, so suffixing them to the original name keeps
destinations distinct even when several hits share a name.
"""

import os
from pathlib import Path


def is_valid_set_name(name: str) -> bool:
    """Whether a set name can be used as a single folder name below the output folder.

    Rejects empty names, '.', '..', and names containing a path separator or NUL.
    """
    if name in ('', '.', '..'):
        return False
    if '\0' in name or os.sep in name:
        return False
    if os.altsep is not None and os.altsep in name:
        return False
    return True


def unique_file_name(name: str, item_id: int) -> str:
    """Insert '_<id>' before the extension of a file name.

    Names without a '.' or whose only '.' is the leading one of a hidden file get the
    suffix appended instead:

        >>> unique_file_name('doc.txt', 5)
        'doc_5.txt'
        >>> unique_file_name('.bashrc', 3)
        '.bashrc_3'
    """
    suffix = f'_{item_id}'
    pos = name.rfind('.')
    if pos > 0:
        return name[:pos] + suffix + name[pos:]
    return name + suffix


def unique_file_path(set_folder: Path, name: str, item_id: int) -> Path:
    """<set folder>/<name>_<id>.<ext>"""
    return set_folder / unique_file_name(name, item_id)


def unique_directory_path(set_folder: Path, name: str, item_id: int) -> Path:
    """<set folder>/<name>_<id>/<name>

    The extra level keeps the saved directory under its original name while the
    suffixed parent makes the location unique.
    """
    return set_folder / f'{name}_{item_id}' / name

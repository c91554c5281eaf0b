"""XML report listing the items saved for one interesting file set."""

import re
import urllib.parse
import xml.etree.ElementTree as ET
from os import PathLike
from pathlib import Path
from typing import NamedTuple

from ..index.store import SourceItem


class SavedFile(NamedTuple):
    path: str
    """Destination path of the copy"""

    original_path: str
    """Logical path of the file in the source tree"""

    md5: str = ''
    """MD5 digest, empty if no digest was computed"""


class SavedDirectory(NamedTuple):
    path: str
    """Destination path of the copy"""

    original_path: str
    """Logical path of the directory in the source tree"""


SavedItem = SavedFile | SavedDirectory

# Characters outside the XML 1.0 Char production, lone surrogates from undecodable file
# names, and carriage returns, which parsers normalize away.
_UNREPRESENTABLE = re.compile('[^\t\n\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]')

ENCODING_ATTRIBUTE = 'encoding'
PERCENT_ENCODING = 'percent'


def _needs_encoding(value: str) -> bool:
    return _UNREPRESENTABLE.search(value) is not None


def _percent_encode(value: str) -> str:
    return urllib.parse.quote(value, safe='/ ', errors='surrogateescape')


def _percent_decode(value: str) -> str:
    return urllib.parse.unquote(value, errors='surrogateescape')


def _text_element(parent: ET.Element, tag: str, value: str) -> ET.Element:
    element = ET.SubElement(parent, tag)
    if _needs_encoding(value):
        element.set(ENCODING_ATTRIBUTE, PERCENT_ENCODING)
        element.text = _percent_encode(value)
    else:
        element.text = value
    return element


def _read_text(parent: ET.Element, tag: str) -> str:
    element = parent.find(tag)
    if element is None or element.text is None:
        return ''
    if element.get(ENCODING_ATTRIBUTE) == PERCENT_ENCODING:
        return _percent_decode(element.text)
    return element.text


class SavedItemsReport:
    """Report of the files and directories saved for one interesting file set.

    Entries are kept in the order they were added. All items saved for a set are siblings
    under the root element, including the contents of saved directories:

        <InterestingFileSet name="..." description="...">
          <SavedDirectory>
            <Path>...</Path>
            <OriginalPath>...</OriginalPath>
          </SavedDirectory>
          <SavedFile>
            <Path>...</Path>
            <OriginalPath>...</OriginalPath>
            <MD5>...</MD5>
          </SavedFile>
        </InterestingFileSet>

    A value holding characters XML 1.0 cannot carry (control characters, or undecodable
    bytes of a file name) is written percent-encoded and its element is marked
    encoding="percent". For the set name and description the mark is on the root element.
    """
    ROOT_ELEMENT = 'InterestingFileSet'

    def __init__(self, set_name: str, description: str, items: list[SavedItem] | None = None):
        self.set_name = set_name
        self.description = description
        self.items: list[SavedItem] = items or []

    def add_item(self, item: SourceItem, path: str | PathLike) -> SavedItem:
        """Append the report node for an item saved at path."""
        if item.is_directory():
            entry = SavedDirectory(str(path), item.unique_path)
        else:
            entry = SavedFile(str(path), item.unique_path, item.md5 or '')
        self.items.append(entry)
        return entry

    def to_element(self) -> ET.Element:
        if _needs_encoding(self.set_name) or _needs_encoding(self.description):
            root = ET.Element(SavedItemsReport.ROOT_ELEMENT, {
                'name': _percent_encode(self.set_name),
                'description': _percent_encode(self.description),
                ENCODING_ATTRIBUTE: PERCENT_ENCODING,
            })
        else:
            root = ET.Element(SavedItemsReport.ROOT_ELEMENT, {'name': self.set_name, 'description': self.description})

        for entry in self.items:
            if isinstance(entry, SavedDirectory):
                element = ET.SubElement(root, 'SavedDirectory')
            else:
                element = ET.SubElement(root, 'SavedFile')
            _text_element(element, 'Path', entry.path)
            _text_element(element, 'OriginalPath', entry.original_path)
            if isinstance(entry, SavedFile):
                _text_element(element, 'MD5', entry.md5)

        return root

    def write(self, path: Path) -> None:
        """Write the report as indented UTF-8 XML."""
        tree = ET.ElementTree(self.to_element())
        ET.indent(tree, space='  ')
        with open(path, 'wb') as f:
            tree.write(f, encoding='utf-8', xml_declaration=True)
            f.write(b'\n')

    @classmethod
    def read(cls, path: Path) -> "SavedItemsReport":
        """Load a report written by write().

        Raises:
            ValueError: The document is not a saved items report
        """
        root = ET.parse(path).getroot()
        if root.tag != SavedItemsReport.ROOT_ELEMENT:
            raise ValueError(f"{path} is not a saved items report (root element {root.tag})")

        items: list[SavedItem] = []
        for element in root:
            saved_path = _read_text(element, 'Path')
            original_path = _read_text(element, 'OriginalPath')
            if element.tag == 'SavedDirectory':
                items.append(SavedDirectory(saved_path, original_path))
            elif element.tag == 'SavedFile':
                items.append(SavedFile(saved_path, original_path, _read_text(element, 'MD5')))
            else:
                raise ValueError(f"Unexpected element {element.tag} in {path}")

        set_name = root.get('name', '')
        description = root.get('description', '')
        if root.get(ENCODING_ATTRIBUTE) == PERCENT_ENCODING:
            set_name = _percent_decode(set_name)
            description = _percent_decode(description)

        return cls(set_name, description, items)

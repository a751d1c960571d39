import io
import re
from typing import Callable
from xml.etree.ElementTree import Element as XmlElement

from officeparser.extractors.util.zip_bomb import (
    DEFAULT_ZIP_BOMB_LIMITS,
    ZipBombLimits,
    open_zipfile,
)
from officeparser.extractors.util.zip_utils import (
    read_zip_bytes,
    read_zip_text,
    read_zip_xml_root,
)

_SLIDE_NUMBER_RE = re.compile(r"(\d+)\.xml$")


def member_number(path: str) -> int | None:
    """Return the trailing number of ``slide12.xml``-style member names."""
    match = _SLIDE_NUMBER_RE.search(path)
    return int(match.group(1)) if match else None


class ZipContext:
    """Reusable ZIP context with convenience helpers for reading OOXML/ODF files."""

    def __init__(
        self,
        file_like: io.BytesIO,
        limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
    ):
        self.file_like = file_like
        self.file_like.seek(0)
        self._zip = open_zipfile(self.file_like, limits=limits, source=type(self).__name__)
        self._names = self._zip.namelist()
        self._namelist = set(self._names)
        self._xml_cache: dict[str, XmlElement] = {}

    @property
    def namelist(self) -> set[str]:
        return self._namelist

    def exists(self, path: str) -> bool:
        return path in self._namelist

    def find_members(self, predicate: Callable[[str], bool]) -> list[str]:
        """Member paths accepted by ``predicate``, in archive order."""
        return [name for name in self._names if predicate(name)]

    def numbered_members(self, pattern: re.Pattern) -> list[str]:
        """Members matching ``pattern`` sorted by their trailing number; unnumbered last."""
        matches = self.find_members(lambda name: bool(pattern.fullmatch(name)))

        def sort_key(name: str) -> tuple[int, int, str]:
            number = member_number(name)
            return (0, number, name) if number is not None else (1, 0, name)

        return sorted(matches, key=sort_key)

    def read_xml_root(self, path: str) -> XmlElement:
        root = self._xml_cache.get(path)
        if root is None:
            root = read_zip_xml_root(self._zip, path)
            self._xml_cache[path] = root
        return root

    def read_optional_xml_root(self, path: str) -> XmlElement | None:
        if path not in self._namelist:
            return None
        return self.read_xml_root(path)

    def read_text(self, path: str) -> str:
        return read_zip_text(self._zip, path)

    def read_bytes(self, path: str) -> bytes:
        return read_zip_bytes(self._zip, path)

    def close(self) -> None:
        self._zip.close()

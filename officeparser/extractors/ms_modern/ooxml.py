"""
Shared plumbing for the Office Open XML parsers (DOCX, XLSX, PPTX).

Relationship resolution, core properties, media and chart attachments
and the encryption check live here so each format module only deals
with its own body structure.
"""

import io
import logging
import posixpath
import re
from xml.etree import ElementTree as ET

from officeparser.config import OfficeParserConfig
from officeparser.exceptions import FileEncryptedError, log_warning
from officeparser.extractors.chart_extractor import extract_chart_data
from officeparser.extractors.data_types import OfficeAttachment, OfficeMetadata
from officeparser.extractors.util.attachments import (
    apply_ocr,
    create_attachment,
    create_chart_attachment,
)
from officeparser.extractors.util.encryption import is_ooxml_encrypted
from officeparser.extractors.util.xml_utils import (
    parse_core_properties,
    parse_relationships,
)
from officeparser.extractors.util.zip_context import ZipContext

logger = logging.getLogger(__name__)

A_NS = "{http://schemas.openxmlformats.org/drawingml/2006/main}"
R_NS = "{http://schemas.openxmlformats.org/officeDocument/2006/relationships}"
C_NS = "{http://schemas.openxmlformats.org/drawingml/2006/chart}"
MC_NS = "{http://schemas.openxmlformats.org/markup-compatibility/2006}"

CHART_URI = "http://schemas.openxmlformats.org/drawingml/2006/chart"
CHART_MIME_TYPE = "application/vnd.openxmlformats-officedocument.drawingml.chart+xml"

CORE_PROPERTIES_PATH = "docProps/core.xml"


def rels_path_for(part: str) -> str:
    """``word/document.xml`` -> ``word/_rels/document.xml.rels``."""
    directory, name = posixpath.split(part)
    return posixpath.join(directory, "_rels", f"{name}.rels")


def resolve_target(part: str, target: str) -> str:
    """Resolve a relationship target relative to the part that owns it."""
    if target.startswith("/"):
        return target.lstrip("/")
    return posixpath.normpath(posixpath.join(posixpath.dirname(part), target))


def basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def raise_if_encrypted(file_like: io.BytesIO, label: str) -> None:
    file_like.seek(0)
    if is_ooxml_encrypted(file_like):
        raise FileEncryptedError(f"{label} is encrypted or password-protected")
    file_like.seek(0)


def raw_xml(element: ET.Element, config: OfficeParserConfig) -> str | None:
    if not config.include_raw_content:
        return None
    return ET.tostring(element, encoding="unicode")


class OoxmlContext(ZipContext):
    """ZIP context with relationship and attachment helpers shared by OOXML parsers."""

    def __init__(self, file_like: io.BytesIO, config: OfficeParserConfig):
        super().__init__(file_like, limits=config.zip_bomb_limits)
        self.config = config
        self._relationships: dict[str, dict[str, dict[str, str]]] = {}

    def relationships(self, part: str) -> dict[str, dict[str, str]]:
        """Relationships of ``part`` with targets resolved to archive paths."""
        cached = self._relationships.get(part)
        if cached is not None:
            return cached
        rels = parse_relationships(self.read_optional_xml_root(rels_path_for(part)))
        for rel in rels.values():
            if rel["target_mode"] == "External":
                rel["path"] = rel["target"]
            else:
                rel["path"] = resolve_target(part, rel["target"])
        self._relationships[part] = rels
        return rels

    def main_part(self, default: str) -> str:
        """Path of the main document part announced in ``_rels/.rels``."""
        root_rels = parse_relationships(self.read_optional_xml_root("_rels/.rels"))
        for rel in root_rels.values():
            if rel["type"].endswith("/officeDocument"):
                path = resolve_target("", rel["target"])
                if self.exists(path):
                    return path
        return default

    def core_metadata(self) -> OfficeMetadata:
        return parse_core_properties(self.read_optional_xml_root(CORE_PROPERTIES_PATH))

    def media_attachments(self, prefix: str) -> list[OfficeAttachment]:
        """Image attachments for every member under ``prefix`` (e.g. ``word/media/``)."""
        attachments = []
        for path in self.find_members(lambda name: name.startswith(prefix) and not name.endswith("/")):
            data = self.read_bytes(path)
            attachment = create_attachment(basename(path), data)
            apply_ocr(attachment, data, self.config)
            attachments.append(attachment)
        return attachments

    def chart_attachments(self, pattern: re.Pattern) -> list[OfficeAttachment]:
        """Chart attachments for chart parts matching ``pattern``."""
        attachments = []
        for path in self.numbered_members(pattern):
            data = self.read_bytes(path)
            attachment = create_chart_attachment(basename(path), data, CHART_MIME_TYPE)
            try:
                attachment.chart_data = extract_chart_data(data)
            except Exception as exc:
                log_warning(f"Failed to extract chart data from {path}:", self.config, exc)
            attachments.append(attachment)
        return attachments

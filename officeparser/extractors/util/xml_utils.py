import logging
from xml.etree import ElementTree as ET

from officeparser.extractors.data_types import OfficeMetadata

logger = logging.getLogger(__name__)

CP_NS = "{http://schemas.openxmlformats.org/package/2006/metadata/core-properties}"
DC_NS = "{http://purl.org/dc/elements/1.1/}"
DCTERMS_NS = "{http://purl.org/dc/terms/}"
REL_NS = "{http://schemas.openxmlformats.org/package/2006/relationships}"
OFFICE_NS = "{urn:oasis:names:tc:opendocument:xmlns:office:1.0}"
META_NS = "{urn:oasis:names:tc:opendocument:xmlns:meta:1.0}"


def local_name(tag: str) -> str:
    """``{namespace}name`` -> ``name``."""
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def _child_text(root: ET.Element, tag: str) -> str | None:
    element = root.find(f".//{tag}")
    if element is not None and element.text and element.text.strip():
        return element.text.strip()
    return None


def parse_core_properties(root: ET.Element | None) -> OfficeMetadata:
    """Metadata from an OOXML ``docProps/core.xml`` root."""
    metadata = OfficeMetadata()
    if root is None:
        return metadata
    logger.debug("Extracting core properties")
    metadata.title = _child_text(root, f"{DC_NS}title")
    metadata.author = _child_text(root, f"{DC_NS}creator")
    metadata.last_modified_by = _child_text(root, f"{CP_NS}lastModifiedBy")
    metadata.created = _child_text(root, f"{DCTERMS_NS}created")
    metadata.modified = _child_text(root, f"{DCTERMS_NS}modified")
    metadata.description = _child_text(root, f"{DC_NS}description")
    metadata.subject = _child_text(root, f"{DC_NS}subject")
    return metadata


def parse_odf_meta(root: ET.Element | None) -> OfficeMetadata:
    """Metadata from an ODF ``meta.xml`` root."""
    metadata = OfficeMetadata()
    if root is None:
        return metadata
    logger.debug("Extracting ODF meta")
    meta = root.find(f"{OFFICE_NS}meta")
    if meta is None:
        return metadata
    metadata.title = _child_text(meta, f"{DC_NS}title")
    metadata.author = _child_text(meta, f"{META_NS}initial-creator") or _child_text(
        meta, f"{DC_NS}creator"
    )
    metadata.last_modified_by = _child_text(meta, f"{DC_NS}creator")
    metadata.description = _child_text(meta, f"{DC_NS}description")
    metadata.subject = _child_text(meta, f"{DC_NS}subject")
    metadata.created = _child_text(meta, f"{META_NS}creation-date")
    metadata.modified = _child_text(meta, f"{DC_NS}date")
    return metadata


def parse_relationships(root: ET.Element | None) -> dict[str, dict[str, str]]:
    """``rId`` -> {type, target, target_mode} for a ``.rels`` part."""
    relationships: dict[str, dict[str, str]] = {}
    if root is None:
        return relationships
    for rel in root.findall(f".//{REL_NS}Relationship"):
        rel_id = rel.get("Id") or ""
        if not rel_id:
            continue
        relationships[rel_id] = {
            "type": rel.get("Type") or "",
            "target": rel.get("Target") or "",
            "target_mode": rel.get("TargetMode") or "",
        }
    return relationships

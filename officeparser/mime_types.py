"""
File type detection.

The file extension wins when it names a supported format. Otherwise the
leading bytes decide: PDF and RTF by signature, ZIP containers by their
members (the ODF ``mimetype`` entry, or the OOXML part folders).
"""

import io
import logging
import os
import zipfile

from officeparser.exceptions import FileEncryptedError
from officeparser.extractors.util.encryption import is_ooxml_encrypted

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ("docx", "pptx", "xlsx", "odt", "odp", "ods", "pdf", "rtf")

MIME_TYPE_MAPPING = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "pptx",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.oasis.opendocument.text": "odt",
    "application/vnd.oasis.opendocument.presentation": "odp",
    "application/vnd.oasis.opendocument.spreadsheet": "ods",
    "application/pdf": "pdf",
    "application/rtf": "rtf",
    "text/rtf": "rtf",
}

PDF_SIGNATURE = b"%PDF"
RTF_SIGNATURE = b"{\\rtf"
ZIP_SIGNATURE = b"PK\x03\x04"

# first part folder of each OOXML document kind
OOXML_PREFIXES = (
    ("word/", "docx"),
    ("ppt/", "pptx"),
    ("xl/", "xlsx"),
)


def extension_of(path: str | None) -> str:
    """Lower-case extension of ``path`` without the dot; ``""`` when there is none."""
    if not path:
        return ""
    return os.path.splitext(str(path))[1].lstrip(".").lower()


def is_supported_extension(extension: str) -> bool:
    return extension in SUPPORTED_EXTENSIONS


def _zip_file_type(data: bytes) -> str | None:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            names = zf.namelist()
            if "mimetype" in names:
                mime_type = zf.read("mimetype").decode("ascii", errors="ignore").strip()
                return MIME_TYPE_MAPPING.get(mime_type)
    except zipfile.BadZipFile:
        return None

    for prefix, file_type in OOXML_PREFIXES:
        if any(name.startswith(prefix) for name in names):
            return file_type
    return None


def detect_file_type(data: bytes, path: str | None = None) -> str | None:
    """
    Type tag (``"docx"``, ``"pdf"``, ...) for a file, or None when unknown.

    Raises:
        FileEncryptedError: If the bytes are a password-protected OOXML file.
    """
    extension = extension_of(path)
    if is_supported_extension(extension):
        logger.debug("Detected file type %s from extension", extension)
        return extension

    head = bytes(data[:8])
    file_type = None
    if head.startswith(PDF_SIGNATURE):
        file_type = "pdf"
    elif bytes(data[:32]).lstrip(b"\xef\xbb\xbf\r\n\t ").startswith(RTF_SIGNATURE):
        file_type = "rtf"
    elif head.startswith(ZIP_SIGNATURE):
        file_type = _zip_file_type(data)
    elif is_ooxml_encrypted(io.BytesIO(data)):
        raise FileEncryptedError("Password-protected Office documents are not supported")

    if file_type is None:
        logger.debug("Could not detect file type of %d bytes", len(data))
    else:
        logger.debug("Detected file type %s from content", file_type)
    return file_type

import io
import zipfile

import olefile

from officeparser.extractors.util.zip_bomb import open_zipfile


def _has_ole_encryption_stream(ole: olefile.OleFileIO) -> bool:
    for stream in ("EncryptionInfo", "EncryptedPackage"):
        if ole.exists(stream):
            return True
    return False


def is_ole_container(file_like: io.BytesIO) -> bool:
    file_like.seek(0)
    result = olefile.isOleFile(file_like)
    file_like.seek(0)
    return bool(result)


def is_ooxml_encrypted(file_like: io.BytesIO) -> bool:
    """Encrypted DOCX/XLSX/PPTX files are OLE containers, not ZIP archives."""
    if not is_ole_container(file_like):
        return False
    with olefile.OleFileIO(file_like) as ole:
        encrypted = _has_ole_encryption_stream(ole)
    file_like.seek(0)
    return encrypted


def is_odf_encrypted(file_like: io.BytesIO) -> bool:
    file_like.seek(0)
    if not zipfile.is_zipfile(file_like):
        file_like.seek(0)
        return False

    file_like.seek(0)
    with open_zipfile(file_like, source="is_odf_encrypted") as zf:
        try:
            manifest = zf.read("META-INF/manifest.xml").decode("utf-8", errors="ignore")
        except KeyError:
            manifest = ""

    file_like.seek(0)
    return (
        "encryption-data" in manifest
        or "manifest:encrypted" in manifest
        or "manifest:algorithm" in manifest
    )

import io
import logging
from typing import Callable

from officeparser.config import OfficeParserConfig
from officeparser.exceptions import ExtensionUnsupportedError
from officeparser.extractors.data_types import OfficeParserAST
from officeparser.mime_types import extension_of, is_supported_extension

logger = logging.getLogger(__name__)

Reader = Callable[[io.BytesIO, OfficeParserConfig | None, str | None], OfficeParserAST]


def get_reader(file_type: str) -> Reader:
    """Return the reader function for a file type tag (lazy import)."""
    if file_type == "docx":
        from officeparser.extractors.ms_modern.docx_extractor import read_docx

        return read_docx
    elif file_type == "xlsx":
        from officeparser.extractors.ms_modern.xlsx_extractor import read_xlsx

        return read_xlsx
    elif file_type == "pptx":
        from officeparser.extractors.ms_modern.pptx_extractor import read_pptx

        return read_pptx
    elif file_type == "odt":
        from officeparser.extractors.open_office.odf_extractor import read_odt

        return read_odt
    elif file_type == "odp":
        from officeparser.extractors.open_office.odf_extractor import read_odp

        return read_odp
    elif file_type == "ods":
        from officeparser.extractors.open_office.odf_extractor import read_ods

        return read_ods
    elif file_type == "pdf":
        from officeparser.extractors.pdf_extractor import read_pdf

        return read_pdf
    elif file_type == "rtf":
        from officeparser.extractors.ms_legacy.rtf_extractor import read_rtf

        return read_rtf
    else:
        raise ExtensionUnsupportedError(file_type)


def is_supported_file(path: str) -> bool:
    """Checks if the path names a supported file by its extension"""
    return is_supported_extension(extension_of(path))


def get_reader_for_path(path: str) -> Reader:
    """Reader for a file judged by its extension alone; the file need not exist.

    :raises ExtensionUnsupportedError: the extension is not covered by any reader
    """
    extension = extension_of(path)
    if not is_supported_extension(extension):
        logger.debug("File [%s] is not supported", path)
        raise ExtensionUnsupportedError(extension or path)
    logger.debug("Detected file type: %s for file: %s", extension, path)
    return get_reader(extension)

"""
officeparser: one document tree for office files.

Parses DOCX, XLSX, PPTX, ODT, ODP, ODS, PDF and RTF files into the same
:class:`OfficeParserAST`: a tree of paragraphs, headings, lists, tables,
slides, sheets and pages with formatting, notes and (optionally)
attachments. ``ast.to_text()`` linearises the tree into plain text.
"""

import io
import logging
import os
from pathlib import Path

from officeparser.config import DEFAULT_CONFIG, OfficeParserConfig
from officeparser.exceptions import (
    ExtensionUnsupportedError,
    ExtractionFailedError,
    FileCorruptedError,
    FileDoesNotExistError,
    FileEncryptedError,
    ImproperArgumentsError,
    ImproperBuffersError,
    InvalidInputError,
    LocationNotFoundError,
    OfficeErrorType,
    OfficeParserError,
    PdfWorkerMissingError,
    ZipBombError,
)
from officeparser.extractors.data_types import (
    ContentNode,
    OfficeAttachment,
    OfficeMetadata,
    OfficeParserAST,
    TextFormatting,
)
from officeparser.mime_types import detect_file_type, extension_of
from officeparser.router import get_reader, is_supported_file

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def read_docx(
    file_like: io.BytesIO, config: OfficeParserConfig | None = None, path: str | None = None
) -> OfficeParserAST:
    """Parse a DOCX file."""
    from officeparser.extractors.ms_modern.docx_extractor import read_docx as _read_docx

    return _read_docx(file_like, config, path)


def read_xlsx(
    file_like: io.BytesIO, config: OfficeParserConfig | None = None, path: str | None = None
) -> OfficeParserAST:
    """Parse an XLSX file."""
    from officeparser.extractors.ms_modern.xlsx_extractor import read_xlsx as _read_xlsx

    return _read_xlsx(file_like, config, path)


def read_pptx(
    file_like: io.BytesIO, config: OfficeParserConfig | None = None, path: str | None = None
) -> OfficeParserAST:
    """Parse a PPTX file."""
    from officeparser.extractors.ms_modern.pptx_extractor import read_pptx as _read_pptx

    return _read_pptx(file_like, config, path)


def read_odt(
    file_like: io.BytesIO, config: OfficeParserConfig | None = None, path: str | None = None
) -> OfficeParserAST:
    """Parse an ODT file."""
    from officeparser.extractors.open_office.odf_extractor import read_odt as _read_odt

    return _read_odt(file_like, config, path)


def read_odp(
    file_like: io.BytesIO, config: OfficeParserConfig | None = None, path: str | None = None
) -> OfficeParserAST:
    """Parse an ODP file."""
    from officeparser.extractors.open_office.odf_extractor import read_odp as _read_odp

    return _read_odp(file_like, config, path)


def read_ods(
    file_like: io.BytesIO, config: OfficeParserConfig | None = None, path: str | None = None
) -> OfficeParserAST:
    """Parse an ODS file."""
    from officeparser.extractors.open_office.odf_extractor import read_ods as _read_ods

    return _read_ods(file_like, config, path)


def read_pdf(
    file_like: io.BytesIO, config: OfficeParserConfig | None = None, path: str | None = None
) -> OfficeParserAST:
    """Parse a PDF file."""
    from officeparser.extractors.pdf_extractor import read_pdf as _read_pdf

    return _read_pdf(file_like, config, path)


def read_rtf(
    file_like: io.BytesIO, config: OfficeParserConfig | None = None, path: str | None = None
) -> OfficeParserAST:
    """Parse an RTF file."""
    from officeparser.extractors.ms_legacy.rtf_extractor import read_rtf as _read_rtf

    return _read_rtf(file_like, config, path)


def _load_input(file) -> tuple[bytes, str | None, str]:
    """``(data, path, file_type)`` for any accepted input."""
    if isinstance(file, (str, os.PathLike)):
        path = Path(file)
        if path.is_dir():
            raise LocationNotFoundError(str(path))
        if not path.exists():
            raise FileDoesNotExistError(str(path))
        data = path.read_bytes()
        file_type = detect_file_type(data, str(path))
        if file_type is None:
            raise ExtensionUnsupportedError(extension_of(str(path)) or path.name)
        return data, str(path), file_type

    if isinstance(file, io.BytesIO):
        data = file.getvalue()
    elif isinstance(file, (bytes, bytearray, memoryview)):
        data = bytes(file)
    else:
        raise InvalidInputError()

    file_type = detect_file_type(data)
    if file_type is None:
        raise ImproperBuffersError()
    return data, None, file_type


def parse_office(
    file: str | os.PathLike | bytes | bytearray | memoryview | io.BytesIO,
    config: OfficeParserConfig | None = None,
    **options,
) -> OfficeParserAST:
    """
    Parse an office file into the document tree.

    Args:
        file: Path of the file, or its complete content as bytes or BytesIO.
        config: Parser options; defaults apply when omitted.
        **options: Option overrides on top of ``config``, e.g.
            ``ignore_notes=True`` (camelCase names are accepted too).

    Returns:
        The parsed :class:`OfficeParserAST`.

    Raises:
        OfficeParserError: Every failure, with the kind on ``error_type``.

    Example:
        >>> import officeparser
        >>> ast = officeparser.parse_office("report.docx", ignore_notes=True)
        >>> print(ast.to_text())
    """
    config = OfficeParserConfig.from_options(config, **options)
    try:
        data, path, file_type = _load_input(file)
    except OfficeParserError as exc:
        if config.output_error_to_console:
            logger.error(exc.message)
        raise
    except OSError as exc:
        if config.output_error_to_console:
            logger.error("%s", exc)
        raise ImproperBuffersError(cause=exc) from exc

    logger.debug("Parsing %s as %s", path or "buffer", file_type)
    return get_reader(file_type)(io.BytesIO(data), config, path)


__all__ = [
    # Version
    "__version__",
    # Main functions
    "parse_office",
    "detect_file_type",
    "is_supported_file",
    "get_reader",
    # Format-specific readers
    "read_docx",
    "read_xlsx",
    "read_pptx",
    "read_odt",
    "read_odp",
    "read_ods",
    "read_pdf",
    "read_rtf",
    # Configuration and document tree
    "DEFAULT_CONFIG",
    "OfficeParserConfig",
    "OfficeParserAST",
    "OfficeMetadata",
    "OfficeAttachment",
    "ContentNode",
    "TextFormatting",
    # Errors
    "OfficeErrorType",
    "OfficeParserError",
    "ExtensionUnsupportedError",
    "ExtractionFailedError",
    "FileCorruptedError",
    "FileEncryptedError",
    "ZipBombError",
    "FileDoesNotExistError",
    "LocationNotFoundError",
    "ImproperArgumentsError",
    "ImproperBuffersError",
    "InvalidInputError",
    "PdfWorkerMissingError",
]

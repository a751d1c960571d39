"""
Error types raised by officeparser.

Every error carries a fixed ``[OfficeParser]: `` prefix and one of the
kinds in :class:`OfficeErrorType`. Parsers raise the specific subclasses;
:func:`wrap_error` converts anything else escaping a parse into a library
error so callers only ever need to catch :class:`OfficeParserError`.
"""

from __future__ import annotations

import logging
import zipfile
import zlib
from enum import Enum
from typing import TYPE_CHECKING
from xml.etree.ElementTree import ParseError

if TYPE_CHECKING:
    from officeparser.config import OfficeParserConfig

logger = logging.getLogger(__name__)

ERROR_HEADER = "[OfficeParser]: "

SUPPORTED_EXTENSIONS_TEXT = "docx, pptx, xlsx, odt, odp, ods, pdf, rtf"

# Low-level messages that mean the container itself is broken
_CORRUPTION_MARKERS = (
    "end of central directory record",
    "invalid XML",
    "Failed to open zip file",
    "invalid distance too far back",
)


class OfficeErrorType(str, Enum):
    EXTENSION_UNSUPPORTED = "EXTENSION_UNSUPPORTED"
    FILE_CORRUPTED = "FILE_CORRUPTED"
    FILE_DOES_NOT_EXIST = "FILE_DOES_NOT_EXIST"
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    IMPROPER_ARGUMENTS = "IMPROPER_ARGUMENTS"
    IMPROPER_BUFFERS = "IMPROPER_BUFFERS"
    INVALID_INPUT = "INVALID_INPUT"
    PDF_WORKER_MISSING = "PDF_WORKER_MISSING"


class OfficeParserError(Exception):
    """Base class of all officeparser errors."""

    error_type: OfficeErrorType | None = None

    def __init__(self, message: str, *, cause: Exception | None = None):
        if not message.startswith(ERROR_HEADER):
            message = ERROR_HEADER + message
        super().__init__(message)
        self.message = message
        self.__cause__ = cause


class ExtractionFailedError(OfficeParserError):
    """Raised for failures that do not map onto a more specific kind."""


class ExtensionUnsupportedError(OfficeParserError):
    """Raised when the file type is not one of the supported formats."""

    error_type = OfficeErrorType.EXTENSION_UNSUPPORTED

    def __init__(self, extension: str, *, cause: Exception | None = None):
        self.extension = extension
        super().__init__(
            f"Sorry, OfficeParser currently supports {SUPPORTED_EXTENSIONS_TEXT} files only. "
            f"Create a ticket in Issues on github to add support for {extension} files. "
            "Stay tuned for further updates.",
            cause=cause,
        )


class FileCorruptedError(OfficeParserError):
    """Raised when mandatory parts are missing or cross references are broken."""

    error_type = OfficeErrorType.FILE_CORRUPTED

    def __init__(
        self,
        file_path: str | None = None,
        message: str | None = None,
        *,
        cause: Exception | None = None,
    ):
        self.file_path = file_path
        if message is None:
            message = (
                f"Your file {file_path or '(buffer)'} seems to be corrupted. "
                "If you are sure it is fine, please create a ticket in Issues on github "
                "with the file to reproduce error."
            )
        super().__init__(message, cause=cause)


class FileEncryptedError(FileCorruptedError):
    """Raised when the document is encrypted or password-protected."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(None, message, cause=cause)


class ZipBombError(FileCorruptedError):
    """Raised when a ZIP container looks like a decompression bomb."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(None, message, cause=cause)


class FileDoesNotExistError(OfficeParserError):
    error_type = OfficeErrorType.FILE_DOES_NOT_EXIST

    def __init__(self, file_path: str, *, cause: Exception | None = None):
        self.file_path = file_path
        super().__init__(
            f"File {file_path} could not be found! Check if the file exists or verify "
            "if the relative path to the file is correct from your terminal's location.",
            cause=cause,
        )


class LocationNotFoundError(OfficeParserError):
    error_type = OfficeErrorType.LOCATION_NOT_FOUND

    def __init__(self, location: str, *, cause: Exception | None = None):
        self.location = location
        super().__init__(
            f"Entered location {location} is not reachable! Please make sure that the "
            "entered directory location exists. Check relative paths and reenter.",
            cause=cause,
        )


class ImproperArgumentsError(OfficeParserError):
    error_type = OfficeErrorType.IMPROPER_ARGUMENTS

    def __init__(self, message: str = "Improper arguments", *, cause=None):
        super().__init__(message, cause=cause)


class ImproperBuffersError(OfficeParserError):
    error_type = OfficeErrorType.IMPROPER_BUFFERS

    def __init__(
        self, message: str = "Error occured while reading the file buffers", *, cause=None
    ):
        super().__init__(message, cause=cause)


class InvalidInputError(OfficeParserError):
    error_type = OfficeErrorType.INVALID_INPUT

    def __init__(
        self,
        message: str = "Invalid input type: Expected a Buffer or a valid file path",
        *,
        cause=None,
    ):
        super().__init__(message, cause=cause)


class PdfWorkerMissingError(OfficeParserError):
    error_type = OfficeErrorType.PDF_WORKER_MISSING

    def __init__(
        self,
        message: str = "The PDF engine could not be loaded. Install the 'pypdf' package to parse PDF files.",
        *,
        cause=None,
    ):
        super().__init__(message, cause=cause)


def _looks_corrupted(exc: BaseException) -> bool:
    if isinstance(exc, (zipfile.BadZipFile, ParseError, zlib.error)):
        return True
    text = str(exc)
    return any(marker in text for marker in _CORRUPTION_MARKERS)


def wrap_error(
    exc: BaseException,
    config: "OfficeParserConfig | None" = None,
    file_path: str | None = None,
) -> OfficeParserError:
    """Convert any exception escaping a parse into an :class:`OfficeParserError`."""
    if isinstance(exc, OfficeParserError):
        wrapped = exc
    elif _looks_corrupted(exc):
        wrapped = FileCorruptedError(file_path, cause=exc)
    else:
        wrapped = ExtractionFailedError(str(exc) or type(exc).__name__, cause=exc)

    if config is not None and config.output_error_to_console:
        logger.error(wrapped.message)
    return wrapped


def log_warning(
    message: str,
    config: "OfficeParserConfig | None" = None,
    exc: BaseException | None = None,
) -> None:
    """Report a non-fatal failure; only visible on the console when opted in."""
    if exc is not None:
        message = f"{message} {exc}"
    if config is not None and config.output_error_to_console:
        logger.warning(ERROR_HEADER + message)
    else:
        logger.debug(message)

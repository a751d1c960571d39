from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any

from officeparser.exceptions import ImproperArgumentsError
from officeparser.extractors.util.zip_bomb import DEFAULT_ZIP_BOMB_LIMITS, ZipBombLimits

# camelCase option names, accepted next to the field names
OPTION_ALIASES = {
    "ignoreNotes": "ignore_notes",
    "newlineDelimiter": "newline_delimiter",
    "putNotesAtLast": "put_notes_at_last",
    "outputErrorToConsole": "output_error_to_console",
    "extractAttachments": "extract_attachments",
    "ocrLanguage": "ocr_language",
    "includeRawContent": "include_raw_content",
    "pdfWorkerSrc": "pdf_worker_src",
}


@dataclass(frozen=True)
class OfficeParserConfig:
    """
    Options controlling a single parse.

    A config is immutable; use :meth:`from_options` to derive a new one
    with some fields overridden.
    """

    # drop footnotes, endnotes and speaker notes entirely
    ignore_notes: bool = False
    newline_delimiter: str = "\n"
    # move all notes behind the main content instead of inline
    put_notes_at_last: bool = False
    output_error_to_console: bool = False
    extract_attachments: bool = False
    # run Tesseract over image attachments (needs extract_attachments)
    ocr: bool = False
    ocr_language: str = "eng"
    include_raw_content: bool = False
    # kept for parity with browser builds; pypdf needs no worker
    pdf_worker_src: str = ""
    zip_bomb_limits: ZipBombLimits = field(default=DEFAULT_ZIP_BOMB_LIMITS)

    @classmethod
    def from_options(
        cls, config: "OfficeParserConfig | None" = None, **options: Any
    ) -> "OfficeParserConfig":
        base = config if config is not None else cls()
        if not options:
            return base
        known = {item.name for item in fields(cls)}
        normalized: dict[str, Any] = {}
        for key, value in options.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ImproperArgumentsError(f"Improper arguments: unknown option {key}")
            normalized[name] = value
        return replace(base, **normalized)


DEFAULT_CONFIG = OfficeParserConfig()

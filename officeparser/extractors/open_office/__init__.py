"""
OpenDocument Parser Package
===========================

One shared parser for the OpenDocument family (ISO/IEC 26300):

.odt (Writer):
    Paragraphs, headings, lists, tables, frames, footnotes/endnotes.

.odp (Impress):
    One slide node per ``draw:page`` followed by its speaker notes.

.ods (Calc):
    One sheet node per ``table:table``; repeated rows and cells are
    expanded, empty ones skipped. Chart cell ranges are resolved against
    the parsed sheets.

Usage Example
-------------
    >>> from officeparser.extractors.open_office import read_odt
    >>> import io
    >>>
    >>> with open("letter.odt", "rb") as f:
    ...     ast = read_odt(io.BytesIO(f.read()))
    ...     print(ast.to_text())
"""

from officeparser.extractors.open_office.odf_extractor import (
    read_odf,
    read_odp,
    read_ods,
    read_odt,
)

__all__ = [
    "read_odf",
    "read_odp",
    "read_ods",
    "read_odt",
]

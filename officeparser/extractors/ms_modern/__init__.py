"""
Modern Microsoft Office Parser Package
======================================

Parsers for the Office Open XML formats (Office 2007 and later). All three
read the ZIP archive directly with ElementTree and build the shared
document tree from :mod:`officeparser.extractors.data_types`.

Supported Formats
-----------------

.docx (Word 2007+):
    Paragraphs, headings, lists, tables, hyperlinks, footnotes/endnotes,
    images and charts, with style inheritance resolved per run.

.pptx (PowerPoint 2007+):
    One slide node per slide: text shapes, tables, pictures, charts and
    groups, followed by speaker notes.

.xlsx (Excel 2007+):
    One sheet node per worksheet with rows and cells, rich-text runs and
    cell styles, plus anchored images and charts.

Common Archive Structure:
    document.docx/
    ├── [Content_Types].xml
    ├── _rels/.rels
    ├── docProps/core.xml
    └── word/ (or ppt/, xl/)
        ├── document.xml
        ├── _rels/document.xml.rels
        ├── media/
        └── charts/

Usage Example
-------------
    >>> from officeparser.extractors.ms_modern import read_docx
    >>> import io
    >>>
    >>> with open("report.docx", "rb") as f:
    ...     ast = read_docx(io.BytesIO(f.read()))
    ...     print(ast.to_text())

See Also
--------
- officeparser.extractors.open_office: OpenDocument formats
- OOXML specification: https://www.ecma-international.org/publications-and-standards/standards/ecma-376/
"""

from officeparser.extractors.ms_modern.docx_extractor import read_docx
from officeparser.extractors.ms_modern.pptx_extractor import read_pptx
from officeparser.extractors.ms_modern.xlsx_extractor import read_xlsx

__all__ = [
    "read_docx",
    "read_pptx",
    "read_xlsx",
]

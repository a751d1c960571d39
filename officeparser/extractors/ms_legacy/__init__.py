"""
Legacy Text Format Parser Package
=================================

Parsers for formats that are not ZIP/XML containers.

.rtf (Rich Text Format):
    Two passes: :mod:`rtf_tokenizer` builds the group/control/text tree,
    :mod:`rtf_extractor` interprets it into the shared document tree.

Usage Example
-------------
    >>> from officeparser.extractors.ms_legacy import read_rtf
    >>> import io
    >>>
    >>> with open("notes.rtf", "rb") as f:
    ...     ast = read_rtf(io.BytesIO(f.read()))
    ...     print(ast.to_text())
"""

from officeparser.extractors.ms_legacy.rtf_extractor import read_rtf

__all__ = [
    "read_rtf",
]

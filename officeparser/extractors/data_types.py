"""
Document tree shared by every format parser.

A parse returns one :class:`OfficeParserAST`. Its ``content`` is a list of
:class:`ContentNode` trees; binary parts (images, charts) live in
``attachments`` and are referenced from nodes by name only.
"""

import base64
import typing
from abc import abstractmethod
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Protocol

NODE_TYPES = frozenset(
    {
        "text",
        "paragraph",
        "heading",
        "list",
        "table",
        "row",
        "cell",
        "image",
        "chart",
        "note",
        "slide",
        "sheet",
        "page",
    }
)

ALIGNMENTS = ("left", "center", "right", "justify")

# leaves that flow with the surrounding runs of a paragraph
INLINE_TYPES = frozenset({"text", "image", "chart"})
SPLIT_TYPES = frozenset({"page", "slide", "sheet", "table", "row"})


@dataclass
class FileMetadataInterface:
    filename: str | None = None
    file_extension: str | None = None
    file_path: str | None = None
    folder_path: str | None = None

    def populate_from_path(self, path: str | Path | None) -> None:
        """Populate file metadata fields from a path."""
        if path is None:
            return
        p = Path(path)
        self.filename = p.name
        self.file_extension = p.suffix
        self.file_path = str(p.resolve()) if p.exists() else str(p)
        self.folder_path = (
            str(p.parent.resolve()) if p.parent.exists() else str(p.parent)
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TextFormatting:
    """Flat formatting record; inheritance happens only through :meth:`merged`."""

    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    strikethrough: bool | None = None
    color: str | None = None
    background_color: str | None = None
    # e.g. "12pt"
    size: str | None = None
    font: str | None = None
    subscript: bool | None = None
    superscript: bool | None = None
    alignment: str | None = None

    def merged(self, overrides: "TextFormatting | None") -> "TextFormatting":
        """Return a copy with every field set in ``overrides`` applied on top."""
        if overrides is None:
            return replace(self)
        values = {
            item.name: getattr(overrides, item.name)
            for item in fields(overrides)
            if getattr(overrides, item.name) is not None
        }
        return replace(self, **values)

    def is_empty(self) -> bool:
        return all(getattr(self, item.name) is None for item in fields(self))

    def to_dict(self) -> dict:
        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if getattr(self, item.name) is not None
        }


@dataclass
class StyleDefinition:
    """A named style as exposed on ``OfficeMetadata.style_map``."""

    formatting: TextFormatting = field(default_factory=TextFormatting)
    alignment: str | None = None
    # paragraph shading, inherited by runs without their own background
    background_color: str | None = None


# Node metadata, one variant per node type


@dataclass
class TextMetadata:
    style: str | None = None
    link: str | None = None
    # "internal" or "external"
    link_type: str | None = None


@dataclass
class ParagraphMetadata:
    alignment: str | None = None
    style: str | None = None


@dataclass
class HeadingMetadata:
    level: int = 1
    alignment: str | None = None
    style: str | None = None


@dataclass
class ListMetadata:
    # "ordered" or "unordered"
    list_type: str = "unordered"
    indentation: int = 0
    item_index: int = 0
    list_id: str = ""
    alignment: str = "left"
    style: str | None = None


@dataclass
class CellMetadata:
    row: int = 0
    col: int = 0
    row_span: int | None = None
    col_span: int | None = None


@dataclass
class ImageMetadata:
    attachment_name: str = ""
    alt_text: str | None = None


@dataclass
class ChartDataSet:
    name: str | None = None
    values: list[str] = field(default_factory=list)
    point_labels: list[str] = field(default_factory=list)


@dataclass
class ChartData:
    title: str | None = None
    chart_type: str | None = None
    x_axis_title: str | None = None
    y_axis_title: str | None = None
    data_sets: list[ChartDataSet] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    # title, then per data set: name, labels, values
    raw_texts: list[str] = field(default_factory=list)

    def rebuild_raw_texts(self) -> None:
        raw_texts = [self.title] if self.title else []
        for data_set in self.data_sets:
            if data_set.name:
                raw_texts.append(data_set.name)
            raw_texts.extend(self.labels)
            raw_texts.extend(data_set.values)
        self.raw_texts = raw_texts


@dataclass
class ChartMetadata:
    attachment_name: str = ""
    chart_data: ChartData | None = None


@dataclass
class NoteMetadata:
    note_id: str = ""
    # "footnote" or "endnote"; None for presentation speaker notes
    note_type: str | None = None
    slide_number: int | None = None


@dataclass
class SlideMetadata:
    slide_number: int = 0


@dataclass
class SheetMetadata:
    sheet_name: str = ""


@dataclass
class PageMetadata:
    page_number: int = 0


NodeMetadata = typing.Union[
    TextMetadata,
    ParagraphMetadata,
    HeadingMetadata,
    ListMetadata,
    CellMetadata,
    ImageMetadata,
    ChartMetadata,
    NoteMetadata,
    SlideMetadata,
    SheetMetadata,
    PageMetadata,
]


@dataclass
class ContentNode:
    type: str
    text: str = ""
    children: list["ContentNode"] = field(default_factory=list)
    formatting: TextFormatting | None = None
    metadata: NodeMetadata | None = None
    raw_content: str | None = None

    def __post_init__(self):
        if self.type not in NODE_TYPES:
            raise ValueError(f"Unknown content node type: {self.type}")


def clone_chart_data(chart_data: ChartData) -> ChartData:
    return ChartData(
        title=chart_data.title,
        chart_type=chart_data.chart_type,
        x_axis_title=chart_data.x_axis_title,
        y_axis_title=chart_data.y_axis_title,
        data_sets=[
            ChartDataSet(
                name=data_set.name,
                values=list(data_set.values),
                point_labels=list(data_set.point_labels),
            )
            for data_set in chart_data.data_sets
        ],
        labels=list(chart_data.labels),
        raw_texts=list(chart_data.raw_texts),
    )


def clone_node(node: ContentNode) -> ContentNode:
    """Structural deep copy of a node; the copy shares no mutable state."""
    metadata = node.metadata
    if metadata is not None:
        metadata = replace(metadata)
        if isinstance(metadata, ChartMetadata) and metadata.chart_data is not None:
            metadata.chart_data = clone_chart_data(metadata.chart_data)
    return ContentNode(
        type=node.type,
        text=node.text,
        children=[clone_node(child) for child in node.children],
        formatting=replace(node.formatting) if node.formatting is not None else None,
        metadata=metadata,
        raw_content=node.raw_content,
    )


def join_text(nodes: list[ContentNode], separator: str = "") -> str:
    return separator.join(node.text for node in nodes)


def _is_inline(node: ContentNode) -> bool:
    return node.type in INLINE_TYPES and not node.children


def node_to_text(node: ContentNode, delimiter: str = "\n") -> str:
    """
    Plain-text projection of one node.

    Adjacent inline leaves (runs, images, charts) are concatenated directly;
    every other boundary gets ``delimiter``. Children of pages, slides,
    sheets, tables and rows are always separated.
    """
    if not node.children:
        return node.text or ""
    always_split = node.type in SPLIT_TYPES
    text = ""
    previous = None
    for child in node.children:
        part = node_to_text(child, delimiter)
        if part == "":
            continue
        if previous is not None:
            if always_split or not (_is_inline(previous) and _is_inline(child)):
                text += delimiter
        text += part
        previous = child
    return text


def paragraph_text(children: list[ContentNode], delimiter: str = "\n") -> str:
    return node_to_text(ContentNode(type="paragraph", children=children), delimiter)


def refresh_text(nodes: list[ContentNode], delimiter: str = "\n") -> None:
    """Recompute ``text`` of every non-leaf node, children first."""
    for node in nodes:
        if node.children:
            refresh_text(node.children, delimiter)
            node.text = node_to_text(node, delimiter)


@dataclass
class OfficeAttachment:
    # "image" or "chart"
    type: str
    mime_type: str
    # base64 encoded payload
    data: str
    name: str
    extension: str
    ocr_text: str | None = None
    alt_text: str | None = None
    chart_data: ChartData | None = None

    def get_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass
class OfficeMetadata(FileMetadataInterface):
    title: str | None = None
    author: str | None = None
    last_modified_by: str | None = None
    created: str | None = None
    modified: str | None = None
    description: str | None = None
    subject: str | None = None
    pages: int | None = None
    # document-wide default run formatting (DOCX)
    formatting: TextFormatting | None = None
    style_map: dict[str, StyleDefinition] = field(default_factory=dict)


class ExtractionInterface(Protocol):
    @abstractmethod
    def iterator(self) -> typing.Iterator[str]:
        """
        Returns an iterator over the top-level units of the document as text.
        Slides for presentations, sheets for spreadsheets, pages for PDF files
        and block elements (paragraphs, tables, ...) for text documents.
        """
        ...

    @abstractmethod
    def get_full_text(self) -> str:
        """Full text of the document as one single block of text"""
        ...

    @abstractmethod
    def get_metadata(self) -> FileMetadataInterface:
        """Returns the metadata of the parsed file"""
        ...


@dataclass
class OfficeParserAST(ExtractionInterface):
    # docx, xlsx, pptx, odt, odp, ods, pdf or rtf
    type: str
    metadata: OfficeMetadata = field(default_factory=OfficeMetadata)
    content: list[ContentNode] = field(default_factory=list)
    attachments: list[OfficeAttachment] = field(default_factory=list)
    newline_delimiter: str = "\n"

    def to_text(self) -> str:
        """Linearise ``content`` into plain text; recomputed on every call."""
        return self.newline_delimiter.join(self.iterator())

    def iterator(self) -> typing.Iterator[str]:
        for node in self.content:
            text = node_to_text(node, self.newline_delimiter)
            if text != "":
                yield text

    def get_full_text(self) -> str:
        return self.to_text()

    def get_metadata(self) -> OfficeMetadata:
        return self.metadata

    def find_attachment(self, name: str) -> OfficeAttachment | None:
        for attachment in self.attachments:
            if attachment.name == name:
                return attachment
        return None

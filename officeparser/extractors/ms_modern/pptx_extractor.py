"""
PPTX Presentation Parser
========================

Builds the document tree for Microsoft PowerPoint .pptx files (Office Open
XML, PowerPoint 2007 and later) using direct XML parsing of the ZIP archive.

File Format Background
----------------------
The .pptx format is a ZIP archive containing XML files following the Office
Open XML (OOXML) standard. Key components:

    ppt/slides/slide1.xml, slide2.xml, ...: Individual slide content
    ppt/slides/_rels/slide1.xml.rels: Per-slide relationships (images, etc.)
    ppt/notesSlides/notesSlide1.xml, ...: Speaker notes
    ppt/media/: Embedded images and media
    ppt/charts/: Embedded charts
    docProps/core.xml: Metadata (title, author, dates)

XML Namespaces:
    - p: http://schemas.openxmlformats.org/presentationml/2006/main
    - a: http://schemas.openxmlformats.org/drawingml/2006/main
    - r: http://schemas.openxmlformats.org/officeDocument/2006/relationships

Slide Ordering
--------------
Slides are ordered by the number in their part name (``slide2.xml`` before
``slide10.xml``). Parts without a number come last.

Shape Types and Placeholders
----------------------------
    - p:sp: Text shapes; ``title``/``ctrTitle`` placeholders become headings
    - p:pic: Pictures
    - p:graphicFrame: Tables and charts
    - p:grpSp: Groups, walked recursively

Paragraphs with ``a:buAutoNum`` are ordered list items, paragraphs with a
bullet character or picture bullet are unordered list items. Consecutive
list paragraphs of the same kind on a slide share one list id.

Speaker Notes
-------------
Each slide's notes become a ``note`` node placed right after the slide, or
after the last slide when ``put_notes_at_last`` is set. Only the body
placeholder of a notes slide is read (not the slide image or number).
"""

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Callable
from xml.etree import ElementTree as ET

from officeparser.config import DEFAULT_CONFIG, OfficeParserConfig
from officeparser.exceptions import (
    FileCorruptedError,
    OfficeParserError,
    wrap_error,
)
from officeparser.extractors.data_types import (
    CellMetadata,
    ChartMetadata,
    ContentNode,
    HeadingMetadata,
    ImageMetadata,
    ListMetadata,
    NoteMetadata,
    OfficeParserAST,
    ParagraphMetadata,
    SlideMetadata,
    TextFormatting,
    TextMetadata,
    join_text,
    node_to_text,
)
from officeparser.extractors.ms_modern.ooxml import (
    A_NS,
    C_NS,
    CHART_URI,
    MC_NS,
    R_NS,
    OoxmlContext,
    basename,
    raise_if_encrypted,
    raw_xml,
)
from officeparser.extractors.util.attachments import link_attachments
from officeparser.extractors.util.zip_context import member_number

logger = logging.getLogger(__name__)

P_NS = "{http://schemas.openxmlformats.org/presentationml/2006/main}"

SLIDE_RE = re.compile(r"ppt/slides/slide\d*\.xml")
CHART_PART_RE = re.compile(r"ppt/charts/chart\d+\.xml")

TITLE_PLACEHOLDERS = ("title", "ctrTitle")

ALIGNMENT = {"l": "left", "ctr": "center", "r": "right", "just": "justify", "dist": "justify"}

# relationship type suffix -> simplified kind
REL_KINDS = {
    "/image": "image",
    "/hyperlink": "hyperlink",
    "/chart": "chart",
    "/slide": "slide",
    "/notesSlide": "notes",
}


@dataclass
class _SlideRel:
    kind: str
    target: str


@dataclass
class _SlideState:
    """Per-slide state threaded through the shape walkers."""

    config: OfficeParserConfig
    slide_number: int
    rels: dict[str, _SlideRel]
    list_sequence: int = 0
    previous_list_type: str | None = None
    # indentation level -> last item index
    level_counters: dict[int, int] = field(default_factory=dict)

    def reset_list(self) -> None:
        self.previous_list_type = None
        self.level_counters = {}


def _slide_rels(ctx: OoxmlContext, part: str) -> dict[str, _SlideRel]:
    simplified = {}
    for rel_id, rel in ctx.relationships(part).items():
        kind = next(
            (name for suffix, name in REL_KINDS.items() if rel["type"].endswith(suffix)),
            None,
        )
        if kind is None:
            continue
        target = rel["target"] if rel["target"].startswith("http") else basename(rel["path"])
        if kind == "notes":
            target = rel["path"]
        simplified[rel_id] = _SlideRel(kind=kind, target=target)
    return simplified


def _run_formatting(rpr: ET.Element | None) -> TextFormatting:
    formatting = TextFormatting()
    if rpr is None:
        return formatting
    if rpr.get("b") is not None:
        formatting.bold = rpr.get("b") in ("1", "true")
    if rpr.get("i") is not None:
        formatting.italic = rpr.get("i") in ("1", "true")
    if rpr.get("u") is not None:
        formatting.underline = rpr.get("u") != "none"
    if rpr.get("strike") is not None:
        formatting.strikethrough = rpr.get("strike") != "noStrike"

    size = rpr.get("sz")
    if size and size.isdigit():
        formatting.size = f"{int(size) / 100:g}pt"

    color = rpr.find(f"{A_NS}solidFill/{A_NS}srgbClr")
    if color is not None and color.get("val"):
        formatting.color = f"#{color.get('val')}"
    highlight = rpr.find(f"{A_NS}highlight/{A_NS}srgbClr")
    if highlight is not None and highlight.get("val"):
        formatting.background_color = f"#{highlight.get('val')}"

    latin = rpr.find(f"{A_NS}latin")
    if latin is not None and latin.get("typeface"):
        formatting.font = latin.get("typeface")

    baseline = rpr.get("baseline")
    if baseline:
        try:
            shift = int(baseline)
        except ValueError:
            shift = 0
        if shift < 0:
            formatting.subscript = True
        elif shift > 0:
            formatting.superscript = True
    return formatting


def _link(state: _SlideState, rpr: ET.Element | None) -> tuple[str | None, str | None]:
    click = rpr.find(f"{A_NS}hlinkClick") if rpr is not None else None
    if click is None:
        return None, None
    rel = state.rels.get(click.get(f"{R_NS}id") or "")
    if rel is not None and rel.kind == "hyperlink":
        return rel.target, "external"
    if rel is not None and rel.kind == "slide":
        return rel.target, "internal"
    action = click.get("action")
    if action:
        return action, "internal"
    return None, None


def _paragraph_runs(
    state: _SlideState, paragraph: ET.Element, alignment: str | None
) -> list[ContentNode]:
    config = state.config
    children = []
    for child in paragraph:
        if child.tag in (f"{A_NS}r", f"{A_NS}fld"):
            rpr = child.find(f"{A_NS}rPr")
            formatting = _run_formatting(rpr)
            formatting.alignment = alignment
            link, link_type = _link(state, rpr)
            children.append(
                ContentNode(
                    type="text",
                    text=child.findtext(f"{A_NS}t") or "",
                    formatting=formatting,
                    metadata=TextMetadata(link=link, link_type=link_type) if link else None,
                    raw_content=raw_xml(child, config),
                )
            )
        elif child.tag == f"{A_NS}br":
            children.append(ContentNode(type="text", text="\n"))
    return children


def _list_info(paragraph_props: ET.Element | None) -> str | None:
    if paragraph_props is None:
        return None
    if paragraph_props.find(f"{A_NS}buAutoNum") is not None:
        return "ordered"
    if (
        paragraph_props.find(f"{A_NS}buChar") is not None
        or paragraph_props.find(f"{A_NS}buBlip") is not None
    ):
        return "unordered"
    return None


def _next_list_item(state: _SlideState, list_type: str, level: int) -> tuple[str, int]:
    if state.previous_list_type != list_type:
        state.list_sequence += 1
        state.level_counters = {}
    state.previous_list_type = list_type

    index = state.level_counters[level] + 1 if level in state.level_counters else 0
    state.level_counters[level] = index
    for deeper in [lvl for lvl in state.level_counters if lvl > level]:
        del state.level_counters[deeper]
    return f"slide{state.slide_number}-list{state.list_sequence}", index


def _text_body_nodes(
    state: _SlideState, body: ET.Element | None, is_title: bool = False
) -> list[ContentNode]:
    """Heading, list or paragraph nodes for the ``a:p`` elements of a text body."""
    if body is None:
        return []
    nodes = []
    for paragraph in body.findall(f"{A_NS}p"):
        props = paragraph.find(f"{A_NS}pPr")
        alignment = ALIGNMENT.get(props.get("algn", "")) if props is not None else None
        children = _paragraph_runs(state, paragraph, alignment)
        text = join_text(children)
        if not text:
            continue
        raw_content = raw_xml(paragraph, state.config)

        if is_title:
            state.reset_list()
            nodes.append(
                ContentNode(
                    type="heading",
                    text=text,
                    children=children,
                    metadata=HeadingMetadata(level=1, alignment=alignment),
                    raw_content=raw_content,
                )
            )
            continue

        list_type = _list_info(props)
        if list_type is not None:
            try:
                level = int(props.get("lvl", "0"))
            except ValueError:
                level = 0
            list_id, index = _next_list_item(state, list_type, level)
            nodes.append(
                ContentNode(
                    type="list",
                    text=text,
                    children=children,
                    metadata=ListMetadata(
                        list_type=list_type,
                        indentation=level,
                        item_index=index,
                        list_id=list_id,
                        alignment=alignment or "left",
                    ),
                    raw_content=raw_content,
                )
            )
            continue

        state.reset_list()
        nodes.append(
            ContentNode(
                type="paragraph",
                text=text,
                children=children,
                metadata=ParagraphMetadata(alignment=alignment),
                raw_content=raw_content,
            )
        )
    return nodes


def _placeholder_type(shape: ET.Element, non_visual: str) -> str | None:
    placeholder = shape.find(f"{P_NS}{non_visual}/{P_NS}nvPr/{P_NS}ph")
    if placeholder is None:
        return None
    return placeholder.get("type", "body")


def _shape_nodes(state: _SlideState, shape: ET.Element) -> list[ContentNode]:
    is_title = _placeholder_type(shape, "nvSpPr") in TITLE_PLACEHOLDERS
    return _text_body_nodes(state, shape.find(f"{P_NS}txBody"), is_title)


def _picture_nodes(state: _SlideState, picture: ET.Element) -> list[ContentNode]:
    if not state.config.extract_attachments:
        return []
    blip = picture.find(f".//{A_NS}blip")
    rel = state.rels.get(blip.get(f"{R_NS}embed") or "") if blip is not None else None
    if rel is None or rel.kind != "image":
        return []
    properties = picture.find(f"{P_NS}nvPicPr/{P_NS}cNvPr")
    alt_text = properties.get("descr") if properties is not None else None
    return [
        ContentNode(
            type="image",
            metadata=ImageMetadata(attachment_name=rel.target, alt_text=alt_text or None),
            raw_content=raw_xml(picture, state.config),
        )
    ]


def _span(cell: ET.Element, attribute: str) -> int:
    try:
        return max(1, int(cell.get(attribute, "1")))
    except ValueError:
        return 1


def _table_node(state: _SlideState, table: ET.Element) -> ContentNode:
    delimiter = state.config.newline_delimiter
    rows = []
    for row_index, row in enumerate(table.findall(f"{A_NS}tr")):
        cells = []
        for col_index, cell in enumerate(row.findall(f"{A_NS}tc")):
            # continuation cells of a merge
            if cell.get("hMerge") == "1" or cell.get("vMerge") == "1":
                continue
            children = _text_body_nodes(state, cell.find(f"{A_NS}txBody"))
            state.reset_list()
            row_span = _span(cell, "rowSpan")
            col_span = _span(cell, "gridSpan")
            cell_node = ContentNode(
                type="cell",
                children=children,
                metadata=CellMetadata(
                    row=row_index,
                    col=col_index,
                    row_span=row_span if row_span > 1 else None,
                    col_span=col_span if col_span > 1 else None,
                ),
            )
            cell_node.text = node_to_text(cell_node, delimiter)
            cells.append(cell_node)
        row_node = ContentNode(type="row", children=cells)
        row_node.text = node_to_text(row_node, delimiter)
        rows.append(row_node)
    table_node = ContentNode(type="table", children=rows, raw_content=raw_xml(table, state.config))
    table_node.text = node_to_text(table_node, delimiter)
    return table_node


def _graphic_frame_nodes(state: _SlideState, frame: ET.Element) -> list[ContentNode]:
    graphic_data = frame.find(f"{A_NS}graphic/{A_NS}graphicData")
    if graphic_data is None:
        return []
    table = graphic_data.find(f"{A_NS}tbl")
    if table is not None:
        state.reset_list()
        return [_table_node(state, table)]
    if graphic_data.get("uri") == CHART_URI and state.config.extract_attachments:
        chart = graphic_data.find(f"{C_NS}chart")
        rel = state.rels.get(chart.get(f"{R_NS}id") or "") if chart is not None else None
        if rel is not None and rel.kind == "chart":
            return [ContentNode(type="chart", metadata=ChartMetadata(attachment_name=rel.target))]
    return []


def _group_nodes(state: _SlideState, group: ET.Element) -> list[ContentNode]:
    return _walk_shapes(state, group)


def _alternate_content_nodes(state: _SlideState, element: ET.Element) -> list[ContentNode]:
    choice = element.find(f"{MC_NS}Choice")
    return _walk_shapes(state, choice) if choice is not None else []


_SHAPE_HANDLERS: dict[str, Callable[[_SlideState, ET.Element], list[ContentNode]]] = {
    f"{P_NS}sp": _shape_nodes,
    f"{P_NS}pic": _picture_nodes,
    f"{P_NS}graphicFrame": _graphic_frame_nodes,
    f"{P_NS}grpSp": _group_nodes,
    f"{MC_NS}AlternateContent": _alternate_content_nodes,
}


def _walk_shapes(state: _SlideState, tree: ET.Element) -> list[ContentNode]:
    nodes = []
    for child in tree:
        handler = _SHAPE_HANDLERS.get(child.tag)
        if handler is not None:
            nodes.extend(handler(state, child))
    return nodes


def _notes_node(
    ctx: OoxmlContext, notes_path: str, slide_number: int, config: OfficeParserConfig
) -> ContentNode | None:
    root = ctx.read_optional_xml_root(notes_path)
    if root is None:
        return None
    state = _SlideState(config=config, slide_number=slide_number, rels=_slide_rels(ctx, notes_path))
    children = []
    for shape in root.iter(f"{P_NS}sp"):
        if _placeholder_type(shape, "nvSpPr") != "body":
            continue
        children.extend(_text_body_nodes(state, shape.find(f"{P_NS}txBody")))
    if not children:
        return None
    note = ContentNode(
        type="note",
        children=children,
        metadata=NoteMetadata(note_id=f"slide-note-{slide_number}", slide_number=slide_number),
    )
    note.text = node_to_text(note, config.newline_delimiter)
    return note


def _notes_path(ctx: OoxmlContext, rels: dict[str, _SlideRel], slide_path: str) -> str | None:
    for rel in rels.values():
        if rel.kind == "notes":
            return rel.target
    number = member_number(slide_path)
    if number is None:
        return None
    candidate = f"ppt/notesSlides/notesSlide{number}.xml"
    return candidate if ctx.exists(candidate) else None


def read_pptx(
    file_like: io.BytesIO,
    config: OfficeParserConfig | None = None,
    path: str | None = None,
) -> OfficeParserAST:
    """
    Parse a PowerPoint .pptx file into the document tree.

    Args:
        file_like: BytesIO object containing the complete PPTX file data.
        config: Parser options; defaults apply when omitted.
        path: Optional source path, used for file metadata and error messages.

    Returns:
        OfficeParserAST with ``type="pptx"``: one ``slide`` node per slide
        with content, each optionally followed by its speaker notes.

    Raises:
        FileEncryptedError: If the presentation is password-protected.
        FileCorruptedError: If the archive contains no slides.
    """
    config = config or DEFAULT_CONFIG
    try:
        raise_if_encrypted(file_like, "PPTX")
        ctx = OoxmlContext(file_like, config)
        try:
            slide_paths = ctx.numbered_members(SLIDE_RE)
            if not slide_paths:
                raise FileCorruptedError(path)

            content: list[ContentNode] = []
            trailing_notes: list[ContentNode] = []
            for slide_number, slide_path in enumerate(slide_paths, start=1):
                logger.debug("Processing slide [%d]: %s", slide_number, slide_path)
                rels = _slide_rels(ctx, slide_path)
                state = _SlideState(config=config, slide_number=slide_number, rels=rels)
                tree = ctx.read_xml_root(slide_path).find(f"{P_NS}cSld/{P_NS}spTree")
                children = _walk_shapes(state, tree) if tree is not None else []
                if children:
                    slide = ContentNode(
                        type="slide",
                        children=children,
                        metadata=SlideMetadata(slide_number=slide_number),
                    )
                    slide.text = node_to_text(slide, config.newline_delimiter)
                    content.append(slide)

                if config.ignore_notes:
                    continue
                notes_path = _notes_path(ctx, rels, slide_path)
                note = _notes_node(ctx, notes_path, slide_number, config) if notes_path else None
                if note is None:
                    continue
                if config.put_notes_at_last:
                    trailing_notes.append(note)
                else:
                    content.append(note)
            content.extend(trailing_notes)

            attachments = []
            if config.extract_attachments:
                attachments = ctx.media_attachments("ppt/media/")
                attachments.extend(ctx.chart_attachments(CHART_PART_RE))
                link_attachments(content, attachments, config)

            metadata = ctx.core_metadata()
        finally:
            ctx.close()
    except OfficeParserError:
        raise
    except Exception as exc:
        raise wrap_error(exc, config, path) from exc

    metadata.pages = len(slide_paths)
    metadata.populate_from_path(path)

    logger.info(
        "Extracted PPTX: %d slides, %d notes, %d attachments",
        len(slide_paths),
        sum(1 for node in content if node.type == "note"),
        len(attachments),
    )

    return OfficeParserAST(
        type="pptx",
        metadata=metadata,
        content=content,
        attachments=attachments,
        newline_delimiter=config.newline_delimiter,
    )

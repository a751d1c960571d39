"""
OpenDocument Parser
===================

Builds the document tree for OpenDocument text (.odt), presentation (.odp)
and spreadsheet (.ods) files created by LibreOffice, OpenOffice and other
ODF-compatible applications.

File Format Background
----------------------
ODF files are ZIP archives containing XML files following the OASIS
OpenDocument specification (ISO/IEC 26300). Key components:

    mimetype: File type identification (first member, stored uncompressed)
    content.xml: Document body and automatic styles
    styles.xml: Named styles, list styles, master pages
    meta.xml: Metadata (title, author, dates)
    Pictures/ (or media/): Embedded images
    Object 1/content.xml, ...: Embedded objects such as charts

The sub-type comes from the ``mimetype`` member and falls back to ``odt``
when the member is missing or unrecognised.

Document Structure in content.xml:
    - office:text: Paragraphs (text:p), headings (text:h), lists
      (text:list), tables (table:table), frames (draw:frame)
    - office:presentation: One draw:page per slide, speaker notes in
      presentation:notes
    - office:spreadsheet: One table:table per sheet

Lists
-----
ODF stores no item numbers, so indices are counted here: one counter per
list id and nesting depth, starting at 0 and resetting the deeper levels
whenever an item appears at a shallower level. Lists whose style has no
bullet character, number format or image are layout lists (typical for
presentation placeholders); their items are emitted as ordinary content.

Repeated Rows and Cells
-----------------------
``table:number-rows-repeated`` and ``table:number-columns-repeated`` are a
storage optimisation. They are expanded into independent copies with their
own row/column indices. Spreadsheets skip empty cells and rows; text and
presentation tables keep every cell of the grid.

Known Limitations
-----------------
- Formulas are not extracted (only the displayed text)
- Headers, footers and comments (office:annotation) are skipped
- Change tracking regions are ignored
"""

import io
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Callable
from xml.etree import ElementTree as ET

from officeparser.config import DEFAULT_CONFIG, OfficeParserConfig
from officeparser.exceptions import (
    FileCorruptedError,
    FileEncryptedError,
    OfficeParserError,
    log_warning,
    wrap_error,
)
from officeparser.extractors.chart_extractor import (
    extract_chart_data,
    resolve_chart_references,
)
from officeparser.extractors.data_types import (
    CellMetadata,
    ChartMetadata,
    ContentNode,
    HeadingMetadata,
    ImageMetadata,
    ListMetadata,
    NoteMetadata,
    OfficeAttachment,
    OfficeParserAST,
    ParagraphMetadata,
    SheetMetadata,
    SlideMetadata,
    TextFormatting,
    TextMetadata,
    clone_node,
    node_to_text,
    paragraph_text,
)
from officeparser.extractors.open_office.odf_styles import (
    DROP_CAP_SIZE,
    OdfStyles,
    load_styles,
)
from officeparser.extractors.util.attachments import (
    apply_ocr,
    create_attachment,
    create_chart_attachment,
    link_attachments,
)
from officeparser.extractors.util.encryption import is_odf_encrypted
from officeparser.extractors.util.xml_utils import parse_odf_meta
from officeparser.extractors.util.zip_context import ZipContext

logger = logging.getLogger(__name__)

OFFICE_NS = "{urn:oasis:names:tc:opendocument:xmlns:office:1.0}"
TEXT_NS = "{urn:oasis:names:tc:opendocument:xmlns:text:1.0}"
TABLE_NS = "{urn:oasis:names:tc:opendocument:xmlns:table:1.0}"
DRAW_NS = "{urn:oasis:names:tc:opendocument:xmlns:drawing:1.0}"
SVG_NS = "{urn:oasis:names:tc:opendocument:xmlns:svg-compatible:1.0}"
PRESENTATION_NS = "{urn:oasis:names:tc:opendocument:xmlns:presentation:1.0}"
CHART_NS = "{urn:oasis:names:tc:opendocument:xmlns:chart:1.0}"
XLINK_NS = "{http://www.w3.org/1999/xlink}"
XML_NS = "{http://www.w3.org/XML/1998/namespace}"

ODF_CHART_MIME_TYPE = "application/vnd.oasis.opendocument.chart"

OBJECT_CONTENT_RE = re.compile(r"(?:\./)?(Object \d+)/content\.xml")
MEDIA_RE = re.compile(r"(Pictures|media)/.+")

HEADING_FRAME_CLASSES = ("title", "sub-title")

# inline elements whose content never belongs to the running text
SKIPPED_INLINE = {
    f"{OFFICE_NS}annotation",
    f"{OFFICE_NS}annotation-end",
    f"{TEXT_NS}soft-page-break",
    f"{TEXT_NS}bookmark",
    f"{TEXT_NS}bookmark-start",
    f"{TEXT_NS}bookmark-end",
    f"{TEXT_NS}tracked-changes",
}


@dataclass
class _OdfState:
    """Per-parse state shared by the body walkers."""

    config: OfficeParserConfig
    styles: OdfStyles
    file_type: str
    ctx: ZipContext
    # list id -> nesting depth -> last item index
    list_counters: dict[str, dict[int, int]] = field(default_factory=dict)
    collected_notes: list[ContentNode] = field(default_factory=list)

    def raw(self, element: ET.Element) -> str | None:
        if not self.config.include_raw_content:
            return None
        return ET.tostring(element, encoding="unicode")


def _file_type(ctx: ZipContext, default: str) -> str:
    if not ctx.exists("mimetype"):
        return default
    mime = ctx.read_text("mimetype").strip()
    if "spreadsheet" in mime:
        return "ods"
    if "presentation" in mime:
        return "odp"
    if "text" in mime:
        return "odt"
    return default


def _int_attribute(element: ET.Element, name: str, default: int = 1) -> int:
    try:
        return max(1, int(element.get(name, str(default))))
    except ValueError:
        return default


def _last_segment(href: str) -> str:
    return href.rstrip("/").rsplit("/", 1)[-1]


def _object_name(href: str) -> str:
    """``./Object 1`` or ``Object 1/`` -> ``Object 1``."""
    href = href[2:] if href.startswith("./") else href
    return href.split("/")[0]


# =============================================================================
# Inline content
# =============================================================================


@dataclass
class _InlineScope:
    formatting: TextFormatting
    style: str | None
    link: str | None = None
    link_type: str | None = None


def _text(state: _OdfState, scope: _InlineScope, text: str) -> ContentNode:
    metadata = None
    if scope.style or scope.link:
        metadata = TextMetadata(style=scope.style, link=scope.link, link_type=scope.link_type)
    return ContentNode(type="text", text=text, formatting=replace(scope.formatting), metadata=metadata)


def _alt_text(frame: ET.Element) -> str | None:
    for tag in (f"{SVG_NS}title", f"{SVG_NS}desc"):
        element = frame.find(f".//{tag}")
        if element is not None and element.text:
            return element.text
    return None


def _image_node(state: _OdfState, frame: ET.Element, image: ET.Element) -> ContentNode:
    href = image.get(f"{XLINK_NS}href") or ""
    return ContentNode(
        type="image",
        metadata=ImageMetadata(
            attachment_name=_last_segment(href) if href else "",
            alt_text=_alt_text(frame),
        ),
        raw_content=state.raw(frame),
    )


def _chart_node(state: _OdfState, frame: ET.Element, drawn_object: ET.Element) -> ContentNode | None:
    href = drawn_object.get(f"{XLINK_NS}href")
    if not href:
        return None
    name = _object_name(href)
    node = ContentNode(
        type="chart",
        metadata=ChartMetadata(attachment_name=name),
        raw_content=state.raw(frame),
    )
    object_path = f"{name}/content.xml"
    if state.file_type != "ods" and state.ctx.exists(object_path):
        try:
            chart_data = extract_chart_data(state.ctx.read_bytes(object_path))
        except Exception as exc:
            log_warning(f"Failed to extract chart data from {object_path}:", state.config, exc)
        else:
            node.metadata.chart_data = chart_data
            node.text = state.config.newline_delimiter.join(chart_data.raw_texts)
    return node


def _frame_inline_nodes(state: _OdfState, frame: ET.Element) -> list[ContentNode]:
    image = frame.find(f".//{DRAW_NS}image")
    if image is not None:
        return [_image_node(state, frame, image)]
    drawn_object = frame.find(f".//{DRAW_NS}object")
    if drawn_object is not None:
        chart = _chart_node(state, frame, drawn_object)
        return [chart] if chart is not None else []
    return []


def _note_node(state: _OdfState, note: ET.Element) -> ContentNode | None:
    body = note.find(f"{TEXT_NS}note-body")
    if body is None:
        return None
    paragraphs = []
    for paragraph in body.iter(f"{TEXT_NS}p"):
        paragraphs.append(_paragraph_node(state, paragraph))
    node = ContentNode(
        type="note",
        children=paragraphs,
        metadata=NoteMetadata(
            note_id=note.get(f"{TEXT_NS}id") or note.get(f"{XML_NS}id") or "",
            note_type=note.get(f"{TEXT_NS}note-class") or "footnote",
        ),
    )
    node.text = node_to_text(node, state.config.newline_delimiter)
    return node


def _inline_nodes(state: _OdfState, element: ET.Element, scope: _InlineScope) -> list[ContentNode]:
    """Text, image, chart and note nodes for the mixed content of ``element``."""
    nodes = []
    if element.text:
        nodes.append(_text(state, scope, element.text))

    for child in element:
        tag = child.tag
        if tag == f"{TEXT_NS}s":
            count = _int_attribute(child, f"{TEXT_NS}c")
            nodes.append(_text(state, scope, " " * count))
        elif tag == f"{TEXT_NS}tab":
            nodes.append(_text(state, scope, "\t"))
        elif tag == f"{TEXT_NS}line-break":
            nodes.append(_text(state, scope, "\n"))
        elif tag == f"{TEXT_NS}span":
            span_style = child.get(f"{TEXT_NS}style-name")
            span_scope = replace(
                scope, formatting=scope.formatting.merged(state.styles.formatting(span_style))
            )
            nodes.extend(_inline_nodes(state, child, span_scope))
        elif tag == f"{TEXT_NS}a":
            href = child.get(f"{XLINK_NS}href") or ""
            link_scope = replace(
                scope, link=href, link_type="internal" if href.startswith("#") else "external"
            )
            nodes.extend(_inline_nodes(state, child, link_scope))
        elif tag == f"{TEXT_NS}note":
            if not state.config.ignore_notes:
                note = _note_node(state, child)
                if note is not None:
                    if state.config.put_notes_at_last:
                        state.collected_notes.append(note)
                    else:
                        nodes.append(note)
        elif tag == f"{DRAW_NS}frame":
            nodes.extend(_frame_inline_nodes(state, child))
        elif tag not in SKIPPED_INLINE:
            # fields (page numbers, dates, ...) and other wrappers
            nodes.extend(_inline_nodes(state, child, scope))

        if child.tail:
            nodes.append(_text(state, scope, child.tail))
    return nodes


def _apply_drop_cap(children: list[ContentNode], length: int) -> None:
    first = next((node for node in children if node.type == "text" and node.text), None)
    if first is None:
        return
    formatting = replace(first.formatting or TextFormatting(), size=DROP_CAP_SIZE)
    if len(first.text) <= length:
        first.formatting = formatting
        return
    drop_cap = ContentNode(
        type="text",
        text=first.text[:length],
        formatting=formatting,
        metadata=replace(first.metadata) if first.metadata is not None else None,
    )
    first.text = first.text[length:]
    children.insert(children.index(first), drop_cap)


def _paragraph_content(
    state: _OdfState, paragraph: ET.Element
) -> tuple[str, list[ContentNode], str | None, str | None]:
    """(text, children, alignment, style name) of a ``text:p``/``text:h``."""
    style_name = paragraph.get(f"{TEXT_NS}style-name")
    paragraph_style = state.styles.paragraph_style(style_name)
    scope = _InlineScope(formatting=state.styles.formatting(style_name), style=style_name)
    children = _inline_nodes(state, paragraph, scope)

    if not children:
        fallback = "".join(paragraph.itertext())
        if fallback.strip():
            children.append(ContentNode(type="text", text=fallback))

    if paragraph_style.drop_cap_length:
        _apply_drop_cap(children, paragraph_style.drop_cap_length)

    text = paragraph_text(children, state.config.newline_delimiter)
    return text, children, paragraph_style.alignment, style_name


def _paragraph_node(state: _OdfState, paragraph: ET.Element, force_heading: bool = False) -> ContentNode:
    text, children, alignment, style_name = _paragraph_content(state, paragraph)
    if paragraph.tag == f"{TEXT_NS}h":
        metadata = HeadingMetadata(
            level=_int_attribute(paragraph, f"{TEXT_NS}outline-level"),
            alignment=alignment,
            style=style_name,
        )
        node_type = "heading"
    elif force_heading or "title" in (style_name or "").lower():
        metadata = HeadingMetadata(level=1, alignment=alignment, style=style_name)
        node_type = "heading"
    else:
        metadata = ParagraphMetadata(alignment=alignment, style=style_name)
        node_type = "paragraph"
    return ContentNode(
        type=node_type,
        text=text,
        children=children,
        metadata=metadata,
        raw_content=state.raw(paragraph),
    )


# =============================================================================
# Block content
# =============================================================================


@dataclass
class _BlockScope:
    force_heading: bool = False
    # number of enclosing text:list elements
    list_depth: int = 0
    # style name inherited from the nearest styled ancestor list
    list_style: str | None = None


def _handle_paragraph(state: _OdfState, element: ET.Element, target: list, scope: _BlockScope) -> None:
    target.append(_paragraph_node(state, element, scope.force_heading))


def _handle_table(state: _OdfState, element: ET.Element, target: list, scope: _BlockScope) -> None:
    target.append(_table_node(state, element))


def _handle_list(state: _OdfState, element: ET.Element, target: list, scope: _BlockScope) -> None:
    own_style = element.get(f"{TEXT_NS}style-name")
    style_name = own_style or scope.list_style
    list_id = own_style or element.get(f"{XML_NS}id") or f"list-{len(target)}"
    list_style = state.styles.lists.get(style_name or "")
    items = element.findall(f"{TEXT_NS}list-item")
    nested = _BlockScope(
        force_heading=scope.force_heading,
        list_depth=scope.list_depth + 1,
        list_style=style_name,
    )

    if list_style is None or not list_style.visible:
        for item in items:
            _walk_blocks(state, item, target, nested)
        return

    depth = scope.list_depth
    counters = state.list_counters.setdefault(list_id, {})
    counters.setdefault(depth, -1)
    for item in items:
        counters[depth] += 1
        item_index = counters[depth]
        for deeper in counters:
            if deeper > depth:
                counters[deeper] = -1

        for child in item:
            if child.tag in (f"{TEXT_NS}p", f"{TEXT_NS}h"):
                text, children, alignment, paragraph_style = _paragraph_content(state, child)
                target.append(
                    ContentNode(
                        type="list",
                        text=text,
                        children=children,
                        metadata=ListMetadata(
                            list_type=list_style.list_type,
                            indentation=depth,
                            item_index=item_index,
                            list_id=list_id,
                            alignment=alignment or "left",
                            style=paragraph_style,
                        ),
                        raw_content=state.raw(child),
                    )
                )
            elif child.tag == f"{TEXT_NS}list":
                _handle_list(state, child, target, nested)


def _handle_frame(state: _OdfState, element: ET.Element, target: list, scope: _BlockScope) -> None:
    presentation_class = element.get(f"{PRESENTATION_NS}class")
    heading_scope = replace(
        scope, force_heading=scope.force_heading or presentation_class in HEADING_FRAME_CLASSES
    )
    text_box = element.find(f".//{DRAW_NS}text-box")
    if text_box is not None:
        _walk_blocks(state, text_box, target, heading_scope)
        return
    table = element.find(f".//{TABLE_NS}table")
    if table is not None:
        target.append(_table_node(state, table))
        return
    target.extend(_frame_inline_nodes(state, element))


def _handle_skipped(state: _OdfState, element: ET.Element, target: list, scope: _BlockScope) -> None:
    return None


_BLOCK_HANDLERS: dict[str, Callable[[_OdfState, ET.Element, list, _BlockScope], None]] = {
    f"{TEXT_NS}p": _handle_paragraph,
    f"{TEXT_NS}h": _handle_paragraph,
    f"{TABLE_NS}table": _handle_table,
    f"{TEXT_NS}list": _handle_list,
    f"{DRAW_NS}frame": _handle_frame,
    f"{OFFICE_NS}annotation": _handle_skipped,
    f"{TEXT_NS}tracked-changes": _handle_skipped,
    f"{TEXT_NS}sequence-decls": _handle_skipped,
    f"{OFFICE_NS}forms": _handle_skipped,
}


def _walk_blocks(
    state: _OdfState,
    parent: ET.Element,
    target: list[ContentNode],
    scope: _BlockScope | None = None,
) -> None:
    scope = scope or _BlockScope()
    for child in parent:
        _walk_element(state, child, target, scope)


def _walk_element(
    state: _OdfState, element: ET.Element, target: list[ContentNode], scope: _BlockScope
) -> None:
    handler = _BLOCK_HANDLERS.get(element.tag)
    if handler is not None:
        handler(state, element, target, scope)
    else:
        _walk_blocks(state, element, target, scope)


def _table_rows(table: ET.Element) -> list[ET.Element]:
    """Rows of a table, including those inside header and row groups."""
    rows = []
    for child in table:
        if child.tag == f"{TABLE_NS}table-row":
            rows.append(child)
        elif child.tag in (
            f"{TABLE_NS}table-header-rows",
            f"{TABLE_NS}table-rows",
            f"{TABLE_NS}table-row-group",
        ):
            rows.extend(_table_rows(child))
    return rows


def _cell_elements(row: ET.Element) -> list[ET.Element]:
    return [
        child
        for child in row
        if child.tag in (f"{TABLE_NS}table-cell", f"{TABLE_NS}covered-table-cell")
    ]


def _expand_row(cells: list[ContentNode], row_index: int, repeat: int) -> list[ContentNode]:
    """``repeat`` independent row nodes starting at ``row_index``."""
    rows = []
    for offset in range(repeat):
        children = cells if offset == 0 else [clone_node(cell) for cell in cells]
        for cell in children:
            cell.metadata.row = row_index + offset
        rows.append(ContentNode(type="row", children=children))
    return rows


def _table_node(state: _OdfState, table: ET.Element) -> ContentNode:
    """Text and presentation tables: every cell of the grid is kept."""
    delimiter = state.config.newline_delimiter
    rows: list[ContentNode] = []
    row_index = 0
    for row in _table_rows(table):
        cells: list[ContentNode] = []
        col_index = 0
        for cell in _cell_elements(row):
            repeat = _int_attribute(cell, f"{TABLE_NS}number-columns-repeated")
            if cell.tag == f"{TABLE_NS}covered-table-cell":
                col_index += repeat
                continue
            children: list[ContentNode] = []
            _walk_blocks(state, cell, children)
            col_span = _int_attribute(cell, f"{TABLE_NS}number-columns-spanned")
            row_span = _int_attribute(cell, f"{TABLE_NS}number-rows-spanned")
            for offset in range(repeat):
                node = ContentNode(
                    type="cell",
                    children=children if offset == 0 else [clone_node(child) for child in children],
                    metadata=CellMetadata(
                        row=row_index,
                        col=col_index,
                        row_span=row_span if row_span > 1 else None,
                        col_span=col_span if col_span > 1 else None,
                    ),
                    raw_content=state.raw(cell),
                )
                node.text = node_to_text(node, delimiter)
                cells.append(node)
                col_index += 1

        repeat_rows = _int_attribute(row, f"{TABLE_NS}number-rows-repeated")
        for row_node in _expand_row(cells, row_index, repeat_rows):
            row_node.text = node_to_text(row_node, delimiter)
            row_node.raw_content = state.raw(row)
            rows.append(row_node)
        row_index += repeat_rows

    table_node = ContentNode(type="table", children=rows, raw_content=state.raw(table))
    table_node.text = node_to_text(table_node, delimiter)
    return table_node


# =============================================================================
# Sub-type bodies
# =============================================================================


def _sheet_cell_children(
    state: _OdfState, cell: ET.Element
) -> tuple[str, list[ContentNode]]:
    base = state.styles.formatting(cell.get(f"{TABLE_NS}style-name"))
    paragraphs = cell.findall(f"{TEXT_NS}p")
    delimiter = state.config.newline_delimiter
    children: list[ContentNode] = []
    for paragraph in paragraphs:
        style_name = paragraph.get(f"{TEXT_NS}style-name")
        scope = _InlineScope(
            formatting=base.merged(state.styles.formatting(style_name)), style=style_name
        )
        nodes = [
            node
            for node in _inline_nodes(state, paragraph, scope)
            if node.type == "text" and node.text
        ]
        if not nodes:
            continue
        # paragraphs of one cell become lines of its text
        if children:
            children.append(ContentNode(type="text", text=delimiter, formatting=replace(base)))
        children.extend(nodes)
    for frame in cell.iter(f"{DRAW_NS}frame"):
        children.extend(_frame_inline_nodes(state, frame))
    return paragraph_text(children, delimiter), children


def _parse_spreadsheet(state: _OdfState, body: ET.Element) -> list[ContentNode]:
    spreadsheet = body.find(f"{OFFICE_NS}spreadsheet")
    if spreadsheet is None:
        return []
    sheets = []
    for index, table in enumerate(spreadsheet.findall(f"{TABLE_NS}table"), start=1):
        sheet_name = table.get(f"{TABLE_NS}name") or f"Sheet{index}"
        logger.debug("Reading sheet: [%s]", sheet_name)
        rows: list[ContentNode] = []
        row_index = 0
        for row in _table_rows(table):
            repeat_rows = _int_attribute(row, f"{TABLE_NS}number-rows-repeated")
            cells: list[ContentNode] = []
            col_index = 0
            for cell in _cell_elements(row):
                repeat = _int_attribute(cell, f"{TABLE_NS}number-columns-repeated")
                text, children = _sheet_cell_children(state, cell)
                # empty cells are skipped but still occupy their columns
                if not text and not children:
                    col_index += repeat
                    continue
                for offset in range(repeat):
                    node = ContentNode(
                        type="cell",
                        text=text,
                        children=children if offset == 0 else [clone_node(child) for child in children],
                        metadata=CellMetadata(row=row_index, col=col_index),
                        raw_content=state.raw(cell),
                    )
                    cells.append(node)
                    col_index += 1
            if cells:
                for row_node in _expand_row(cells, row_index, repeat_rows):
                    row_node.text = node_to_text(row_node, state.config.newline_delimiter)
                    row_node.raw_content = state.raw(row)
                    rows.append(row_node)
            row_index += repeat_rows

        sheet = ContentNode(
            type="sheet",
            children=rows,
            metadata=SheetMetadata(sheet_name=sheet_name),
            raw_content=state.raw(table),
        )
        sheet.text = node_to_text(sheet, state.config.newline_delimiter)
        sheets.append(sheet)
    return sheets


def _parse_presentation(state: _OdfState, body: ET.Element) -> list[ContentNode]:
    presentation = body.find(f"{OFFICE_NS}presentation")
    if presentation is None:
        return []
    config = state.config
    content: list[ContentNode] = []
    trailing_notes: list[ContentNode] = []
    for slide_number, page in enumerate(presentation.findall(f"{DRAW_NS}page"), start=1):
        logger.debug("Processing slide [%d]", slide_number)
        slide = ContentNode(
            type="slide",
            metadata=SlideMetadata(slide_number=slide_number),
            raw_content=state.raw(page),
        )
        note = None
        for child in page:
            if child.tag == f"{PRESENTATION_NS}notes":
                if not config.ignore_notes:
                    note = ContentNode(
                        type="note",
                        metadata=NoteMetadata(
                            note_id=f"slide-note-{slide_number}", slide_number=slide_number
                        ),
                    )
                    _walk_blocks(state, child, note.children)
                continue
            _walk_element(state, child, slide.children, _BlockScope())
        slide.text = node_to_text(slide, config.newline_delimiter)
        content.append(slide)

        if note is not None and note.children:
            note.text = node_to_text(note, config.newline_delimiter)
            if config.put_notes_at_last:
                trailing_notes.append(note)
            else:
                content.append(note)
    content.extend(trailing_notes)
    return content


def _parse_text(state: _OdfState, body: ET.Element) -> list[ContentNode]:
    text = body.find(f"{OFFICE_NS}text")
    content: list[ContentNode] = []
    if text is not None:
        _walk_blocks(state, text, content)
    return content


_BODY_PARSERS: dict[str, Callable[[_OdfState, ET.Element], list[ContentNode]]] = {
    "ods": _parse_spreadsheet,
    "odp": _parse_presentation,
    "odt": _parse_text,
}


# =============================================================================
# Attachments
# =============================================================================


def _chart_attachments(state: _OdfState) -> list[OfficeAttachment]:
    attachments = []
    for path in state.ctx.find_members(lambda name: bool(OBJECT_CONTENT_RE.fullmatch(name))):
        try:
            root = state.ctx.read_xml_root(path)
        except ET.ParseError as exc:
            log_warning(f"Failed to read embedded object {path}:", state.config, exc)
            continue
        if root.find(f".//{CHART_NS}chart") is None:
            continue
        name = OBJECT_CONTENT_RE.fullmatch(path).group(1)
        data = state.ctx.read_bytes(path)
        attachment = create_chart_attachment(name, data, ODF_CHART_MIME_TYPE)
        try:
            chart_data = extract_chart_data(data)
        except Exception as exc:
            log_warning(f"Failed to extract chart data from {path}:", state.config, exc)
        else:
            if chart_data.raw_texts:
                attachment.chart_data = chart_data
        attachments.append(attachment)
    return attachments


def _media_attachments(state: _OdfState) -> list[OfficeAttachment]:
    attachments = []
    for path in state.ctx.find_members(lambda name: bool(MEDIA_RE.fullmatch(name))):
        data = state.ctx.read_bytes(path)
        attachment = create_attachment(_last_segment(path), data)
        apply_ocr(attachment, data, state.config)
        attachments.append(attachment)
    return attachments


def read_odf(
    file_like: io.BytesIO,
    config: OfficeParserConfig | None = None,
    path: str | None = None,
    default_type: str = "odt",
) -> OfficeParserAST:
    """
    Parse an OpenDocument file into the document tree.

    Args:
        file_like: BytesIO object containing the complete ODF file data.
        config: Parser options; defaults apply when omitted.
        path: Optional source path, used for file metadata and error messages.
        default_type: Sub-type used when the ``mimetype`` member is missing
            or unrecognised.

    Returns:
        OfficeParserAST with ``type`` set to ``odt``, ``odp`` or ``ods``.

    Raises:
        FileEncryptedError: If the document is password-protected.
        FileCorruptedError: If content.xml is missing or the archive or its XML
            is unreadable.
    """
    config = config or DEFAULT_CONFIG
    try:
        if is_odf_encrypted(file_like):
            raise FileEncryptedError("ODF document is encrypted or password-protected")
        ctx = ZipContext(file_like, limits=config.zip_bomb_limits)
        try:
            file_type = _file_type(ctx, default_type)
            content_root = ctx.read_optional_xml_root("content.xml")
            if content_root is None:
                raise FileCorruptedError(path)
            styles = load_styles(ctx.read_optional_xml_root("styles.xml"), content_root)
            state = _OdfState(config=config, styles=styles, file_type=file_type, ctx=ctx)

            content: list[ContentNode] = []
            body = content_root.find(f"{OFFICE_NS}body")
            if body is not None:
                logger.debug("Extracting %s body", file_type)
                content = _BODY_PARSERS[file_type](state, body)

            attachments: list[OfficeAttachment] = []
            if config.extract_attachments:
                attachments = _chart_attachments(state) + _media_attachments(state)
                if file_type == "ods":
                    for attachment in attachments:
                        if attachment.chart_data is not None:
                            resolve_chart_references(attachment.chart_data, content)

            if config.put_notes_at_last:
                content.extend(state.collected_notes)
            link_attachments(content, attachments, config)

            metadata = parse_odf_meta(ctx.read_optional_xml_root("meta.xml"))
        finally:
            ctx.close()
    except OfficeParserError:
        raise
    except Exception as exc:
        raise wrap_error(exc, config, path) from exc

    metadata.style_map = styles.style_map()
    metadata.populate_from_path(path)

    logger.info(
        "Extracted %s: %d top-level nodes, %d attachments",
        file_type.upper(),
        len(content),
        len(attachments),
    )

    return OfficeParserAST(
        type=file_type,
        metadata=metadata,
        content=content,
        attachments=attachments,
        newline_delimiter=config.newline_delimiter,
    )


def read_odt(
    file_like: io.BytesIO,
    config: OfficeParserConfig | None = None,
    path: str | None = None,
) -> OfficeParserAST:
    return read_odf(file_like, config, path, default_type="odt")


def read_odp(
    file_like: io.BytesIO,
    config: OfficeParserConfig | None = None,
    path: str | None = None,
) -> OfficeParserAST:
    return read_odf(file_like, config, path, default_type="odp")


def read_ods(
    file_like: io.BytesIO,
    config: OfficeParserConfig | None = None,
    path: str | None = None,
) -> OfficeParserAST:
    return read_odf(file_like, config, path, default_type="ods")

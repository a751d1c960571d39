"""
DOCX Document Parser
====================

Builds the document tree for Microsoft Word .docx files (Office Open XML,
Word 2007 and later) using direct XML parsing of the ZIP archive.

File Format Background
----------------------
The .docx format is a ZIP archive containing XML parts:

    word/document.xml: Main document body (paragraphs, tables)
    word/styles.xml: Style definitions and document defaults
    word/numbering.xml: List numbering definitions
    word/footnotes.xml, word/endnotes.xml: Note bodies
    word/media/: Embedded images
    word/charts/: Embedded charts
    word/_rels/document.xml.rels: Relationships (images, hyperlinks)
    docProps/core.xml: Metadata (title, author, dates)

Formatting Resolution
---------------------
The formatting of a text run is built by explicit merging, in order:

    1. paragraph style (``w:pStyle``), with its ``w:basedOn`` chain
    2. paragraph-level run properties (``w:pPr/w:rPr``)
    3. run style (``w:rStyle``)
    4. direct run properties (``w:rPr``)
    5. paragraph shading, when the run has no background of its own

Lists
-----
Paragraphs with ``w:numPr`` become ``list`` nodes. The numbering format of
the level decides ordered vs. unordered (``bullet``). Item indices are
counted per ``numId`` and level, starting at 0 and continuing across
interruptions; deeper levels restart whenever a shallower item appears.

Known Limitations
-----------------
- Headers, footers and comments are not part of the tree
- Tracked changes are flattened (insertions kept, deletions dropped)
- Math (OMML) content is skipped
- Text boxes inside drawings are not descended into

Usage
-----
    >>> import io
    >>> from officeparser.extractors.ms_modern.docx_extractor import read_docx
    >>>
    >>> with open("document.docx", "rb") as f:
    ...     ast = read_docx(io.BytesIO(f.read()), path="document.docx")
    ...     print(ast.metadata.title)
    ...     print(ast.to_text()[:500])

See Also
--------
- OOXML WordprocessingML: ECMA-376 Part 1, section 17
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
    OfficeParserError,
    wrap_error,
)
from officeparser.extractors.data_types import (
    ALIGNMENTS,
    CellMetadata,
    ChartMetadata,
    ContentNode,
    HeadingMetadata,
    ImageMetadata,
    ListMetadata,
    NoteMetadata,
    OfficeParserAST,
    ParagraphMetadata,
    StyleDefinition,
    TextFormatting,
    TextMetadata,
    node_to_text,
    paragraph_text,
)
from officeparser.extractors.ms_modern.ooxml import (
    A_NS,
    C_NS,
    MC_NS,
    R_NS,
    OoxmlContext,
    basename,
    raise_if_encrypted,
    raw_xml,
)
from officeparser.extractors.util.attachments import link_attachments

logger = logging.getLogger(__name__)

W_NS = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"
WP_NS = "{http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing}"
V_NS = "{urn:schemas-microsoft-com:vml}"

DOCUMENT_PATH = "word/document.xml"
CHART_PART_RE = re.compile(r"word/charts/chart\d+\.xml")

HIGHLIGHT_COLORS = {
    "yellow": "#FFFF00",
    "green": "#00FF00",
    "cyan": "#00FFFF",
    "magenta": "#FF00FF",
    "blue": "#0000FF",
    "red": "#FF0000",
    "darkBlue": "#00008B",
    "darkCyan": "#008B8B",
    "darkGreen": "#006400",
    "darkMagenta": "#8B008B",
    "darkRed": "#8B0000",
    "darkYellow": "#808000",
    "darkGray": "#A9A9A9",
    "lightGray": "#D3D3D3",
    "black": "#000000",
    "white": "#FFFFFF",
}

JUSTIFICATION = {"both": "justify", "distribute": "justify", "start": "left", "end": "right"}

_HEADING_NAME_RE = re.compile(r"^heading\s*(\d+)$", re.IGNORECASE)


class _DocxContext(OoxmlContext):
    """Cached ZIP context; XML parts are parsed once and reused."""

    def __init__(self, file_like: io.BytesIO, config: OfficeParserConfig):
        super().__init__(file_like, config)
        self.document_path = self.main_part(DOCUMENT_PATH)

    @property
    def document_root(self) -> ET.Element | None:
        return self.read_optional_xml_root(self.document_path)

    @property
    def styles_root(self) -> ET.Element | None:
        return self.read_optional_xml_root("word/styles.xml")

    @property
    def numbering_root(self) -> ET.Element | None:
        return self.read_optional_xml_root("word/numbering.xml")

    @property
    def document_relationships(self) -> dict[str, dict[str, str]]:
        return self.relationships(self.document_path)


@dataclass
class _DocxState:
    """Per-parse state threaded through the paragraph walkers."""

    config: OfficeParserConfig
    relationships: dict[str, dict[str, str]]
    styles: dict[str, StyleDefinition] = field(default_factory=dict)
    style_names: dict[str, str] = field(default_factory=dict)
    default_paragraph_style: str | None = None
    # numId -> ilvl -> numFmt
    numbering: dict[str, dict[int, str]] = field(default_factory=dict)
    # numId -> ilvl -> last item index
    list_counters: dict[str, dict[int, int]] = field(default_factory=dict)
    footnotes: dict[str, list[ContentNode]] = field(default_factory=dict)
    endnotes: dict[str, list[ContentNode]] = field(default_factory=dict)
    collected_notes: list[ContentNode] = field(default_factory=list)


@dataclass
class _ParagraphScope:
    """What a run inside a given paragraph needs to know."""

    style_id: str | None
    formatting: TextFormatting
    background_color: str | None
    children: list[ContentNode] = field(default_factory=list)


# =============================================================================
# Formatting and styles
# =============================================================================


def _on_off(element: ET.Element | None) -> bool | None:
    if element is None:
        return None
    value = element.get(f"{W_NS}val")
    if value is None:
        return True
    return value in ("1", "true", "on")


def _val(parent: ET.Element | None, tag: str) -> str | None:
    if parent is None:
        return None
    element = parent.find(f"{W_NS}{tag}")
    if element is None:
        return None
    return element.get(f"{W_NS}val")


def _half_points(value: str) -> str | None:
    try:
        return f"{int(value) / 2:g}pt"
    except ValueError:
        return None


def _run_formatting(rpr: ET.Element | None) -> TextFormatting:
    """Formatting declared by one ``w:rPr`` element."""
    formatting = TextFormatting()
    if rpr is None:
        return formatting

    formatting.bold = _on_off(rpr.find(f"{W_NS}b"))
    formatting.italic = _on_off(rpr.find(f"{W_NS}i"))

    underline = rpr.find(f"{W_NS}u")
    if underline is not None:
        formatting.underline = underline.get(f"{W_NS}val") != "none"

    strike = _on_off(rpr.find(f"{W_NS}strike"))
    if strike is None:
        strike = _on_off(rpr.find(f"{W_NS}dstrike"))
    formatting.strikethrough = strike

    size = _val(rpr, "sz")
    if size:
        formatting.size = _half_points(size)

    color = _val(rpr, "color")
    if color and color != "auto":
        formatting.color = f"#{color}"

    shading = rpr.find(f"{W_NS}shd")
    if shading is not None:
        fill = shading.get(f"{W_NS}fill")
        if fill and fill != "auto":
            formatting.background_color = f"#{fill}"

    highlight = _val(rpr, "highlight")
    if highlight and highlight != "none":
        formatting.background_color = HIGHLIGHT_COLORS.get(highlight, highlight)

    fonts = rpr.find(f"{W_NS}rFonts")
    if fonts is not None:
        formatting.font = fonts.get(f"{W_NS}ascii") or fonts.get(f"{W_NS}hAnsi")

    vertical = _val(rpr, "vertAlign")
    if vertical == "subscript":
        formatting.subscript = True
    elif vertical == "superscript":
        formatting.superscript = True

    return formatting


def _alignment(ppr: ET.Element | None) -> str | None:
    value = _val(ppr, "jc")
    if value is None:
        return None
    value = JUSTIFICATION.get(value, value)
    return value if value in ALIGNMENTS else None


def _paragraph_background(ppr: ET.Element | None) -> str | None:
    if ppr is None:
        return None
    shading = ppr.find(f"{W_NS}shd")
    if shading is None:
        return None
    fill = shading.get(f"{W_NS}fill")
    return f"#{fill}" if fill and fill != "auto" else None


def _load_styles(state: _DocxState, root: ET.Element | None) -> TextFormatting:
    """Fill the style map; returns the document default run formatting."""
    if root is None:
        return TextFormatting()
    logger.debug("Extracting styles")

    raw: dict[str, tuple[str | None, StyleDefinition]] = {}
    for style in root.findall(f"{W_NS}style"):
        style_id = style.get(f"{W_NS}styleId")
        if not style_id:
            continue
        ppr = style.find(f"{W_NS}pPr")
        definition = StyleDefinition(
            formatting=_run_formatting(style.find(f"{W_NS}rPr")),
            alignment=_alignment(ppr),
            background_color=_paragraph_background(ppr),
        )
        raw[style_id] = (_val(style, "basedOn"), definition)
        name = _val(style, "name")
        if name:
            state.style_names[style_id] = name
        if (
            state.default_paragraph_style is None
            and style.get(f"{W_NS}type") == "paragraph"
            and style.get(f"{W_NS}default") in ("1", "true")
        ):
            state.default_paragraph_style = style_id

    def resolve(style_id: str, seen: frozenset) -> StyleDefinition:
        if style_id in state.styles:
            return state.styles[style_id]
        parent_id, definition = raw[style_id]
        if parent_id in raw and parent_id not in seen:
            parent = resolve(parent_id, seen | {style_id})
            definition = StyleDefinition(
                formatting=parent.formatting.merged(definition.formatting),
                alignment=definition.alignment or parent.alignment,
                background_color=definition.background_color or parent.background_color,
            )
        state.styles[style_id] = definition
        return definition

    for style_id in raw:
        resolve(style_id, frozenset({style_id}))

    if state.default_paragraph_style is None and "Normal" in state.styles:
        state.default_paragraph_style = "Normal"

    defaults = root.find(f"{W_NS}docDefaults/{W_NS}rPrDefault/{W_NS}rPr")
    return _run_formatting(defaults)


def _load_numbering(state: _DocxState, root: ET.Element | None) -> None:
    if root is None:
        return
    logger.debug("Extracting numbering definitions")
    abstract_formats: dict[str, dict[int, str]] = {}
    for abstract in root.findall(f"{W_NS}abstractNum"):
        abstract_id = abstract.get(f"{W_NS}abstractNumId")
        if abstract_id is None:
            continue
        levels: dict[int, str] = {}
        for level in abstract.findall(f"{W_NS}lvl"):
            try:
                ilvl = int(level.get(f"{W_NS}ilvl", "0"))
            except ValueError:
                continue
            levels[ilvl] = _val(level, "numFmt") or "decimal"
        abstract_formats[abstract_id] = levels

    for num in root.findall(f"{W_NS}num"):
        num_id = num.get(f"{W_NS}numId")
        abstract_id = _val(num, "abstractNumId")
        if num_id and abstract_id in abstract_formats:
            state.numbering[num_id] = dict(abstract_formats[abstract_id])


def _heading_level(state: _DocxState, style_id: str | None) -> int | None:
    if not style_id:
        return None
    suffix = style_id[len("Heading"):]
    if style_id.startswith("Heading") and suffix.isdigit():
        return int(suffix)
    if style_id == "Title":
        return 1
    name = state.style_names.get(style_id, "")
    match = _HEADING_NAME_RE.match(name)
    if match:
        return int(match.group(1))
    if name.lower() == "title":
        return 1
    return None


# =============================================================================
# Runs
# =============================================================================


def _text_node(text: str, formatting: TextFormatting, style: str | None, source, config) -> ContentNode:
    return ContentNode(
        type="text",
        text=text,
        formatting=replace(formatting),
        metadata=TextMetadata(style=style) if style else None,
        raw_content=raw_xml(source, config),
    )


def _drawing_nodes(state: _DocxState, drawing: ET.Element) -> list[ContentNode]:
    """Image or chart nodes for one ``w:drawing``/``w:pict`` element."""
    config = state.config
    chart = drawing.find(f".//{C_NS}chart")
    if chart is not None:
        rel = state.relationships.get(chart.get(f"{R_NS}id") or "")
        if rel is None:
            return []
        return [
            ContentNode(
                type="chart",
                metadata=ChartMetadata(attachment_name=basename(rel["path"])),
                raw_content=raw_xml(drawing, config),
            )
        ]

    alt_text = ""
    doc_pr = drawing.find(f".//{WP_NS}docPr")
    if doc_pr is not None:
        alt_text = doc_pr.get("descr") or doc_pr.get("title") or ""

    rel_id = ""
    blip = drawing.find(f".//{A_NS}blip")
    if blip is not None:
        rel_id = blip.get(f"{R_NS}embed") or ""
    else:
        image_data = drawing.find(f".//{V_NS}imagedata")
        if image_data is not None:
            rel_id = image_data.get(f"{R_NS}id") or ""

    rel = state.relationships.get(rel_id) if rel_id else None
    name = basename(rel["path"]) if rel else ""
    return [
        ContentNode(
            type="image",
            metadata=ImageMetadata(attachment_name=name, alt_text=alt_text or None),
            raw_content=raw_xml(drawing, config),
        )
    ]


def _note_node(state: _DocxState, note_type: str, note_id: str) -> ContentNode | None:
    notes = state.footnotes if note_type == "footnote" else state.endnotes
    bodies = notes.get(note_id)
    if bodies is None:
        return None
    note = ContentNode(
        type="note",
        children=bodies,
        metadata=NoteMetadata(note_id=note_id, note_type=note_type),
    )
    note.text = node_to_text(note, state.config.newline_delimiter)
    return note


def _handle_run(state: _DocxState, scope: _ParagraphScope, run: ET.Element) -> None:
    config = state.config
    rpr = run.find(f"{W_NS}rPr")

    formatting = scope.formatting
    run_style = _val(rpr, "rStyle") or scope.style_id
    if run_style and run_style in state.styles:
        formatting = formatting.merged(state.styles[run_style].formatting)
    formatting = formatting.merged(_run_formatting(rpr))
    if formatting.background_color is None and scope.background_color:
        formatting = replace(formatting, background_color=scope.background_color)

    node_style = run_style or state.default_paragraph_style

    def visit(element: ET.Element) -> None:
        tag = element.tag
        if tag == f"{W_NS}t":
            scope.children.append(
                _text_node(element.text or "", formatting, node_style, element, config)
            )
        elif tag == f"{W_NS}tab":
            scope.children.append(_text_node("\t", formatting, node_style, element, config))
        elif tag in (f"{W_NS}br", f"{W_NS}cr"):
            scope.children.append(_text_node("\n", formatting, node_style, element, config))
        elif tag == f"{W_NS}noBreakHyphen":
            scope.children.append(_text_node("-", formatting, node_style, element, config))
        elif tag in (f"{W_NS}drawing", f"{W_NS}pict"):
            if config.extract_attachments:
                scope.children.extend(_drawing_nodes(state, element))
        elif tag in (f"{W_NS}footnoteReference", f"{W_NS}endnoteReference"):
            if config.ignore_notes:
                return
            note_type = "footnote" if tag == f"{W_NS}footnoteReference" else "endnote"
            note = _note_node(state, note_type, element.get(f"{W_NS}id") or "")
            if note is None:
                return
            if config.put_notes_at_last:
                state.collected_notes.append(note)
            else:
                scope.children.append(note)
        elif tag == f"{MC_NS}AlternateContent":
            choice = element.find(f"{MC_NS}Choice")
            if choice is not None:
                for child in choice:
                    visit(child)

    for child in run:
        visit(child)


def _handle_hyperlink(state: _DocxState, scope: _ParagraphScope, link: ET.Element) -> None:
    anchor = link.get(f"{W_NS}anchor")
    rel = state.relationships.get(link.get(f"{R_NS}id") or "")
    if anchor:
        target, link_type = f"#{anchor}", "internal"
    elif rel is not None:
        target, link_type = rel["target"], "external"
    else:
        target, link_type = None, None

    start = len(scope.children)
    _walk_inline(state, scope, link)
    if target is None:
        return
    for node in scope.children[start:]:
        if node.type == "text":
            base = node.metadata if isinstance(node.metadata, TextMetadata) else TextMetadata()
            node.metadata = replace(base, link=target, link_type=link_type)


def _handle_container(state: _DocxState, scope: _ParagraphScope, element: ET.Element) -> None:
    _walk_inline(state, scope, element)


def _handle_sdt(state: _DocxState, scope: _ParagraphScope, element: ET.Element) -> None:
    content = element.find(f"{W_NS}sdtContent")
    if content is not None:
        _walk_inline(state, scope, content)


_INLINE_HANDLERS: dict[str, Callable[[_DocxState, _ParagraphScope, ET.Element], None]] = {
    f"{W_NS}r": _handle_run,
    f"{W_NS}hyperlink": _handle_hyperlink,
    f"{W_NS}ins": _handle_container,
    f"{W_NS}smartTag": _handle_container,
    f"{W_NS}fldSimple": _handle_container,
    f"{W_NS}customXml": _handle_container,
    f"{W_NS}sdt": _handle_sdt,
}


def _walk_inline(state: _DocxState, scope: _ParagraphScope, parent: ET.Element) -> None:
    for child in parent:
        handler = _INLINE_HANDLERS.get(child.tag)
        if handler is not None:
            handler(state, scope, child)


# =============================================================================
# Blocks
# =============================================================================


def _list_metadata(
    state: _DocxState, numpr: ET.Element, alignment: str | None, style_id: str | None
) -> ListMetadata | None:
    num_id = _val(numpr, "numId") or "0"
    if num_id == "0":
        return None
    try:
        ilvl = int(_val(numpr, "ilvl") or "0")
    except ValueError:
        ilvl = 0

    list_type = "ordered"
    item_index = 0
    if num_id in state.numbering:
        if state.numbering[num_id].get(ilvl, "decimal") == "bullet":
            list_type = "unordered"
        counters = state.list_counters.setdefault(num_id, {})
        item_index = counters[ilvl] + 1 if ilvl in counters else 0
        counters[ilvl] = item_index
        for deeper in [level for level in counters if level > ilvl]:
            del counters[deeper]

    return ListMetadata(
        list_type=list_type,
        indentation=ilvl,
        item_index=item_index,
        list_id=num_id,
        alignment=alignment or "left",
        style=style_id,
    )


def _parse_paragraph(state: _DocxState, paragraph: ET.Element) -> ContentNode:
    ppr = paragraph.find(f"{W_NS}pPr")
    style_id = _val(ppr, "pStyle")
    style = state.styles.get(style_id or "", StyleDefinition())

    formatting = replace(style.formatting)
    if ppr is not None:
        formatting = formatting.merged(_run_formatting(ppr.find(f"{W_NS}rPr")))

    scope = _ParagraphScope(
        style_id=style_id,
        formatting=formatting,
        background_color=_paragraph_background(ppr) or style.background_color,
    )
    _walk_inline(state, scope, paragraph)

    alignment = _alignment(ppr) or style.alignment
    text = paragraph_text(scope.children, state.config.newline_delimiter)
    raw_content = raw_xml(paragraph, state.config)

    numpr = ppr.find(f"{W_NS}numPr") if ppr is not None else None
    if numpr is not None:
        metadata = _list_metadata(state, numpr, alignment, style_id)
        if metadata is not None:
            return ContentNode(
                type="list", text=text, children=scope.children, metadata=metadata, raw_content=raw_content
            )

    level = _heading_level(state, style_id)
    if level is not None:
        return ContentNode(
            type="heading",
            text=text,
            children=scope.children,
            metadata=HeadingMetadata(level=level, alignment=alignment, style=style_id),
            raw_content=raw_content,
        )

    return ContentNode(
        type="paragraph",
        text=text,
        children=scope.children,
        metadata=ParagraphMetadata(alignment=alignment, style=style_id),
        raw_content=raw_content,
    )


def _parse_table(state: _DocxState, table: ET.Element) -> ContentNode:
    delimiter = state.config.newline_delimiter
    rows = []
    for row_index, row in enumerate(table.findall(f"{W_NS}tr")):
        cells = []
        col_index = 0
        for cell in row.findall(f"{W_NS}tc"):
            children = _parse_blocks(state, cell)
            span = 1
            tcpr = cell.find(f"{W_NS}tcPr")
            try:
                span = max(1, int(_val(tcpr, "gridSpan") or "1"))
            except ValueError:
                span = 1
            cell_node = ContentNode(
                type="cell",
                children=children,
                metadata=CellMetadata(
                    row=row_index, col=col_index, col_span=span if span > 1 else None
                ),
                raw_content=raw_xml(cell, state.config),
            )
            cell_node.text = node_to_text(cell_node, delimiter)
            cells.append(cell_node)
            col_index += span
        row_node = ContentNode(type="row", children=cells)
        row_node.text = node_to_text(row_node, delimiter)
        rows.append(row_node)
    table_node = ContentNode(type="table", children=rows, raw_content=raw_xml(table, state.config))
    table_node.text = node_to_text(table_node, delimiter)
    return table_node


def _parse_blocks(state: _DocxState, parent: ET.Element) -> list[ContentNode]:
    """Paragraphs and tables directly below ``parent`` (body, cell, sdtContent)."""
    nodes: list[ContentNode] = []
    for child in parent:
        if child.tag == f"{W_NS}p":
            nodes.append(_parse_paragraph(state, child))
        elif child.tag == f"{W_NS}tbl":
            nodes.append(_parse_table(state, child))
        elif child.tag == f"{W_NS}sdt":
            content = child.find(f"{W_NS}sdtContent")
            if content is not None:
                nodes.extend(_parse_blocks(state, content))
    return nodes


def _load_notes(ctx: _DocxContext, state: _DocxState) -> None:
    # numbered lists inside notes count apart from the body
    body_counters = state.list_counters
    state.list_counters = {}
    try:
        _parse_note_parts(ctx, state)
    finally:
        state.list_counters = body_counters


def _parse_note_parts(ctx: _DocxContext, state: _DocxState) -> None:
    for path, tag, target in (
        ("word/footnotes.xml", "footnote", state.footnotes),
        ("word/endnotes.xml", "endnote", state.endnotes),
    ):
        root = ctx.read_optional_xml_root(path)
        if root is None:
            continue
        logger.debug("Extracting %ss", tag)
        for note in root.findall(f"{W_NS}{tag}"):
            note_id = note.get(f"{W_NS}id")
            # -1 and 0 are the separator and continuation notes
            if not note_id or note_id in ("-1", "0"):
                continue
            target[note_id] = [_parse_paragraph(state, p) for p in note.iter(f"{W_NS}p")]


def read_docx(
    file_like: io.BytesIO,
    config: OfficeParserConfig | None = None,
    path: str | None = None,
) -> OfficeParserAST:
    """
    Parse a Word .docx file into the document tree.

    Args:
        file_like: BytesIO object containing the complete DOCX file data.
        config: Parser options; defaults apply when omitted.
        path: Optional source path, used for file metadata and error messages.

    Returns:
        OfficeParserAST with ``type="docx"``.

    Raises:
        FileEncryptedError: If the file is password-protected.
        FileCorruptedError: If ``word/document.xml`` is missing or unreadable.
    """
    config = config or DEFAULT_CONFIG
    try:
        raise_if_encrypted(file_like, "DOCX")
        ctx = _DocxContext(file_like, config)
        try:
            root = ctx.document_root
            body = root.find(f"{W_NS}body") if root is not None else None
            if body is None:
                raise FileCorruptedError(path)

            state = _DocxState(config=config, relationships=ctx.document_relationships)
            defaults = _load_styles(state, ctx.styles_root)
            _load_numbering(state, ctx.numbering_root)
            if not config.ignore_notes:
                _load_notes(ctx, state)

            logger.debug("Extracting body")
            content = _parse_blocks(state, body)
            if config.put_notes_at_last:
                content.extend(state.collected_notes)

            attachments = []
            if config.extract_attachments:
                attachments = ctx.media_attachments("word/media/")
                attachments.extend(ctx.chart_attachments(CHART_PART_RE))
                link_attachments(content, attachments, config)

            metadata = ctx.core_metadata()
        finally:
            ctx.close()
    except OfficeParserError:
        raise
    except Exception as exc:
        raise wrap_error(exc, config, path) from exc

    metadata.formatting = defaults
    metadata.style_map = dict(state.styles)
    metadata.populate_from_path(path)

    logger.info(
        "Extracted DOCX: %d blocks, %d attachments",
        len(content),
        len(attachments),
    )

    return OfficeParserAST(
        type="docx",
        metadata=metadata,
        content=content,
        attachments=attachments,
        newline_delimiter=config.newline_delimiter,
    )

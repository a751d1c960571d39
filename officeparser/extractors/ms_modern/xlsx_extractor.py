"""
XLSX Spreadsheet Parser
=======================

Builds the document tree for Microsoft Excel .xlsx files (Office Open XML,
Excel 2007 and later) from the raw worksheet XML.

File Format Background
----------------------
The .xlsx format is a ZIP archive containing XML files following the Office
Open XML (OOXML) standard. Key components:

    xl/workbook.xml: Workbook properties and sheet list
    xl/worksheets/sheet1.xml, sheet2.xml, ...: Individual sheet data
    xl/sharedStrings.xml: Shared string table (for cell text)
    xl/styles.xml: Fonts, fills and cell formats (cellXfs)
    xl/drawings/: Per-sheet drawings anchoring images and charts
    docProps/core.xml: Metadata (title, creator, dates)

Tree Shape
----------
One ``sheet`` node per worksheet, in workbook order. A sheet holds ``row``
nodes, a row holds ``cell`` nodes, and a cell holds one ``text`` node per
rich-text run (or a single one for plain values). Empty cells and rows
without cells are left out. Images and charts anchored on a sheet are
appended after its rows.

Cell references are parsed with openpyxl's coordinate helpers; everything
else is read with ElementTree so rich text and styles stay available.

Known Limitations
-----------------
- Formulas are not extracted (only cached values)
- Number formats are not applied; values are shown as stored
- Conditional formatting is ignored
- Pivot tables show only cached data
"""

import datetime
import io
import logging
import re
from dataclasses import dataclass, field, replace
from xml.etree import ElementTree as ET

from openpyxl import load_workbook
from openpyxl.utils.cell import coordinate_from_string
from openpyxl.utils.exceptions import CellCoordinatesException

from officeparser.config import DEFAULT_CONFIG, OfficeParserConfig
from officeparser.exceptions import (
    FileCorruptedError,
    OfficeParserError,
    log_warning,
    wrap_error,
)
from officeparser.extractors.chart_extractor import column_index
from officeparser.extractors.data_types import (
    CellMetadata,
    ChartMetadata,
    ContentNode,
    ImageMetadata,
    OfficeMetadata,
    OfficeParserAST,
    SheetMetadata,
    TextFormatting,
    join_text,
    node_to_text,
)
from officeparser.extractors.ms_modern.ooxml import (
    A_NS,
    C_NS,
    R_NS,
    OoxmlContext,
    basename,
    raise_if_encrypted,
    raw_xml,
)
from officeparser.extractors.util.attachments import link_attachments

logger = logging.getLogger(__name__)

S_NS = "{http://schemas.openxmlformats.org/spreadsheetml/2006/main}"
XDR_NS = "{http://schemas.openxmlformats.org/drawingml/2006/spreadsheetDrawing}"

WORKBOOK_PATH = "xl/workbook.xml"
WORKSHEET_RE = re.compile(r"xl/worksheets/sheet\d+\.xml")
CHART_PART_RE = re.compile(r"xl/charts/chart\d+\.xml")

THEME_FILL_COLORS = {
    "0": "#FFFFFF",
    "1": "#000000",
    "2": "#EEECE1",
    "3": "#1F497D",
}

HORIZONTAL_ALIGNMENT = {
    "left": "left",
    "center": "center",
    "centerContinuous": "center",
    "right": "right",
    "justify": "justify",
    "distributed": "justify",
}


@dataclass
class _SharedString:
    text: str
    # one formatted run per <r>; None for plain strings
    runs: list[tuple[str, TextFormatting]] | None = None


@dataclass
class _CellStyle:
    formatting: TextFormatting = field(default_factory=TextFormatting)


@dataclass
class _WorkbookStyles:
    fonts: list[TextFormatting] = field(default_factory=list)
    fills: list[str | None] = field(default_factory=list)
    cell_formats: list[_CellStyle] = field(default_factory=list)

    def for_cell(self, style_index: str | None) -> TextFormatting:
        if style_index is None:
            return TextFormatting()
        try:
            return self.cell_formats[int(style_index)].formatting
        except (ValueError, IndexError):
            return TextFormatting()


def _flag(element: ET.Element | None) -> bool | None:
    if element is None:
        return None
    return element.get("val", "1") not in ("0", "false")


def _rgb(element: ET.Element | None) -> str | None:
    if element is None:
        return None
    rgb = element.get("rgb")
    if not rgb:
        return None
    return f"#{rgb[-6:]}"


def _font_formatting(font: ET.Element | None) -> TextFormatting:
    """Formatting from a ``<font>`` (styles) or ``<rPr>`` (rich text) element."""
    formatting = TextFormatting()
    if font is None:
        return formatting
    formatting.bold = _flag(font.find(f"{S_NS}b"))
    formatting.italic = _flag(font.find(f"{S_NS}i"))
    underline = font.find(f"{S_NS}u")
    if underline is not None:
        formatting.underline = underline.get("val") != "none"
    formatting.strikethrough = _flag(font.find(f"{S_NS}strike"))

    size = font.find(f"{S_NS}sz")
    if size is not None and size.get("val"):
        formatting.size = f"{size.get('val')}pt"

    formatting.color = _rgb(font.find(f"{S_NS}color"))

    name = font.find(f"{S_NS}rFont")
    if name is None:
        name = font.find(f"{S_NS}name")
    if name is not None:
        formatting.font = name.get("val")

    vertical = font.find(f"{S_NS}vertAlign")
    if vertical is not None:
        if vertical.get("val") == "subscript":
            formatting.subscript = True
        elif vertical.get("val") == "superscript":
            formatting.superscript = True
    return formatting


def _fill_color(fill: ET.Element) -> str | None:
    pattern = fill.find(f"{S_NS}patternFill")
    if pattern is None or pattern.get("patternType") == "none":
        return None
    foreground = pattern.find(f"{S_NS}fgColor")
    if foreground is None:
        return None
    rgb = foreground.get("rgb")
    if rgb and rgb != "00000000":
        return f"#{rgb[-6:]}"
    theme = foreground.get("theme")
    if theme is not None:
        return THEME_FILL_COLORS.get(theme)
    return None


def _load_styles(root: ET.Element | None) -> _WorkbookStyles:
    styles = _WorkbookStyles()
    if root is None:
        return styles
    logger.debug("Extracting styles")

    styles.fonts = [_font_formatting(font) for font in root.findall(f"{S_NS}fonts/{S_NS}font")]
    styles.fills = [_fill_color(fill) for fill in root.findall(f"{S_NS}fills/{S_NS}fill")]

    for xf in root.findall(f"{S_NS}cellXfs/{S_NS}xf"):
        formatting = TextFormatting()
        try:
            formatting = replace(styles.fonts[int(xf.get("fontId", "0"))])
        except (ValueError, IndexError):
            pass
        try:
            formatting.background_color = styles.fills[int(xf.get("fillId", "0"))]
        except (ValueError, IndexError):
            pass
        alignment = xf.find(f"{S_NS}alignment")
        if alignment is not None:
            formatting.alignment = HORIZONTAL_ALIGNMENT.get(alignment.get("horizontal", ""))
        styles.cell_formats.append(_CellStyle(formatting=formatting))
    return styles


def _load_shared_strings(root: ET.Element | None) -> list[_SharedString]:
    if root is None:
        return []
    logger.debug("Extracting shared strings")
    strings = []
    for item in root.findall(f"{S_NS}si"):
        strings.append(_string_item(item))
    return strings


def _string_item(item: ET.Element) -> _SharedString:
    """A shared string ``<si>`` or an inline ``<is>`` element."""
    runs = item.findall(f"{S_NS}r")
    if runs:
        parsed = []
        for run in runs:
            text = "".join(t.text or "" for t in run.findall(f"{S_NS}t"))
            parsed.append((text, _font_formatting(run.find(f"{S_NS}rPr"))))
        return _SharedString(text="".join(text for text, _ in parsed), runs=parsed)
    return _SharedString(text="".join(t.text or "" for t in item.findall(f"{S_NS}t")))


def _cell_position(reference: str | None, row_index: int, next_col: int) -> tuple[int, int]:
    if not reference:
        return row_index, next_col
    try:
        letters, number = coordinate_from_string(reference)
        return number - 1, column_index(letters)
    except (CellCoordinatesException, ValueError):
        return row_index, next_col


def _cell_value(
    cell: ET.Element, shared_strings: list[_SharedString], path: str | None
) -> _SharedString | None:
    cell_type = cell.get("t")
    if cell_type == "inlineStr":
        inline = cell.find(f"{S_NS}is")
        texts = inline.findall(f"{S_NS}t") if inline is not None else []
        # only a single direct <t> is a usable inline string
        if len(texts) != 1:
            return None
        return _SharedString(text=texts[0].text or "")

    value = cell.find(f"{S_NS}v")
    if value is None or not value.text:
        return None
    if cell_type == "s":
        text = value.text.strip()
        if not text.isdigit() or int(text) >= len(shared_strings):
            raise FileCorruptedError(path)
        return shared_strings[int(text)]
    return _SharedString(text=value.text)


def _cell_node(
    value: _SharedString,
    base: TextFormatting,
    row: int,
    col: int,
    source: ET.Element,
    config: OfficeParserConfig,
) -> ContentNode:
    runs = value.runs if value.runs is not None else [(value.text, TextFormatting())]
    children = []
    for text, run_formatting in runs:
        formatting = base.merged(run_formatting)
        # cell fill and alignment always win over the run
        formatting.background_color = base.background_color or formatting.background_color
        formatting.alignment = base.alignment or formatting.alignment
        children.append(ContentNode(type="text", text=text, formatting=formatting))
    return ContentNode(
        type="cell",
        text=join_text(children),
        children=children,
        metadata=CellMetadata(row=row, col=col),
        raw_content=raw_xml(source, config),
    )


def _apply_merges(root: ET.Element, cells: dict[tuple[int, int], ContentNode]) -> None:
    for merge in root.findall(f"{S_NS}mergeCells/{S_NS}mergeCell"):
        start, _, end = (merge.get("ref") or "").partition(":")
        if not end:
            continue
        top, left = _cell_position(start, -1, -1)
        bottom, right = _cell_position(end, -1, -1)
        node = cells.get((top, left))
        if node is None or top < 0 or left < 0:
            continue
        metadata = node.metadata
        if bottom > top:
            metadata.row_span = bottom - top + 1
        if right > left:
            metadata.col_span = right - left + 1


def _parse_rows(
    root: ET.Element,
    shared_strings: list[_SharedString],
    styles: _WorkbookStyles,
    config: OfficeParserConfig,
    path: str | None,
) -> list[ContentNode]:
    rows = []
    cells_by_position: dict[tuple[int, int], ContentNode] = {}
    next_row = 0
    for row in root.findall(f"{S_NS}sheetData/{S_NS}row"):
        try:
            row_index = int(row.get("r", "")) - 1
        except ValueError:
            row_index = next_row
        next_row = row_index + 1

        cells = []
        next_col = 0
        for cell in row.findall(f"{S_NS}c"):
            position = _cell_position(cell.get("r"), row_index, next_col)
            next_col = position[1] + 1
            value = _cell_value(cell, shared_strings, path)
            if value is None or value.text == "":
                continue
            node = _cell_node(
                value, styles.for_cell(cell.get("s")), position[0], position[1], cell, config
            )
            cells_by_position[position] = node
            cells.append(node)
        if cells:
            row_node = ContentNode(type="row", children=cells, raw_content=raw_xml(row, config))
            row_node.text = node_to_text(row_node, config.newline_delimiter)
            rows.append(row_node)

    _apply_merges(root, cells_by_position)
    return rows


def _drawing_nodes(ctx: OoxmlContext, sheet_path: str) -> list[ContentNode]:
    """Image and chart nodes anchored on one sheet."""
    nodes = []
    for rel in ctx.relationships(sheet_path).values():
        if not rel["type"].endswith("/drawing"):
            continue
        drawing_path = rel["path"]
        root = ctx.read_optional_xml_root(drawing_path)
        if root is None:
            continue
        drawing_rels = ctx.relationships(drawing_path)

        for picture in root.iter(f"{XDR_NS}pic"):
            properties = picture.find(f"{XDR_NS}nvPicPr/{XDR_NS}cNvPr")
            alt_text = None
            if properties is not None:
                alt_text = properties.get("descr") or properties.get("name")
            blip = picture.find(f".//{A_NS}blip")
            target = drawing_rels.get(blip.get(f"{R_NS}embed") or "") if blip is not None else None
            nodes.append(
                ContentNode(
                    type="image",
                    metadata=ImageMetadata(
                        attachment_name=basename(target["path"]) if target else "",
                        alt_text=alt_text,
                    ),
                    raw_content=raw_xml(picture, ctx.config),
                )
            )

        for chart in root.iter(f"{C_NS}chart"):
            target = drawing_rels.get(chart.get(f"{R_NS}id") or "")
            if target is None:
                continue
            nodes.append(
                ContentNode(
                    type="chart",
                    metadata=ChartMetadata(attachment_name=basename(target["path"])),
                )
            )
    return nodes


def _sheet_parts(ctx: OoxmlContext, workbook_path: str) -> list[tuple[str, str]]:
    """(sheet name, part path) pairs in workbook order."""
    workbook = ctx.read_optional_xml_root(workbook_path)
    rels = ctx.relationships(workbook_path)
    parts = []
    if workbook is not None:
        for sheet in workbook.findall(f"{S_NS}sheets/{S_NS}sheet"):
            rel = rels.get(sheet.get(f"{R_NS}id") or "")
            if rel is None:
                continue
            parts.append((sheet.get("name") or basename(rel["path"]), rel["path"]))
    if parts:
        return parts
    return [
        (basename(path).rsplit(".", 1)[0], path)
        for path in ctx.numbered_members(WORKSHEET_RE)
    ]


def _read_metadata_with_openpyxl(file_like: io.BytesIO) -> OfficeMetadata:
    """Workbook properties read through openpyxl, for core parts ElementTree rejects."""
    file_like.seek(0)
    wb = load_workbook(file_like, read_only=True, data_only=True)
    props = wb.properties
    metadata = OfficeMetadata(
        title=props.title or None,
        author=props.creator or None,
        last_modified_by=props.lastModifiedBy or None,
        created=(
            props.created.isoformat()
            if isinstance(props.created, datetime.datetime)
            else None
        ),
        modified=(
            props.modified.isoformat()
            if isinstance(props.modified, datetime.datetime)
            else None
        ),
        description=props.description or None,
        subject=props.subject or None,
    )
    wb.close()
    return metadata


def read_xlsx(
    file_like: io.BytesIO,
    config: OfficeParserConfig | None = None,
    path: str | None = None,
) -> OfficeParserAST:
    """
    Parse an Excel .xlsx file into the document tree.

    Args:
        file_like: BytesIO object containing the complete XLSX file data.
        config: Parser options; defaults apply when omitted.
        path: Optional source path, used for file metadata and error messages.

    Returns:
        OfficeParserAST with ``type="xlsx"`` and one ``sheet`` node per worksheet.

    Raises:
        FileEncryptedError: If the workbook is password-protected.
        FileCorruptedError: If there are no worksheets, a sheet part is
            missing or a cell points outside the shared string table.
    """
    config = config or DEFAULT_CONFIG
    try:
        raise_if_encrypted(file_like, "XLSX")
        ctx = OoxmlContext(file_like, config)
        try:
            workbook_path = ctx.main_part(WORKBOOK_PATH)
            sheet_parts = _sheet_parts(ctx, workbook_path)
            if not sheet_parts:
                raise FileCorruptedError(path)

            shared_strings = _load_shared_strings(
                ctx.read_optional_xml_root("xl/sharedStrings.xml")
            )
            styles = _load_styles(ctx.read_optional_xml_root("xl/styles.xml"))

            content = []
            for sheet_name, sheet_path in sheet_parts:
                logger.debug("Reading sheet: [%s]", sheet_name)
                root = ctx.read_optional_xml_root(sheet_path)
                if root is None:
                    raise FileCorruptedError(path)
                children = _parse_rows(root, shared_strings, styles, config, path)
                if config.extract_attachments:
                    children.extend(_drawing_nodes(ctx, sheet_path))
                sheet = ContentNode(
                    type="sheet",
                    children=children,
                    metadata=SheetMetadata(sheet_name=sheet_name),
                )
                sheet.text = node_to_text(sheet, config.newline_delimiter)
                content.append(sheet)

            attachments = []
            if config.extract_attachments:
                attachments = ctx.media_attachments("xl/media/")
                attachments.extend(ctx.chart_attachments(CHART_PART_RE))
                link_attachments(content, attachments, config)

            try:
                metadata = ctx.core_metadata()
            except ET.ParseError as exc:
                log_warning("Unreadable docProps/core.xml, using openpyxl:", config, exc)
                try:
                    metadata = _read_metadata_with_openpyxl(file_like)
                except Exception as fallback_exc:
                    log_warning("openpyxl could not read workbook properties:", config, fallback_exc)
                    metadata = OfficeMetadata()
        finally:
            ctx.close()
    except OfficeParserError:
        raise
    except Exception as exc:
        raise wrap_error(exc, config, path) from exc

    metadata.populate_from_path(path)

    logger.info(
        "Extracted XLSX: %d sheets, %d total rows, %d attachments",
        len(content),
        sum(1 for sheet in content for child in sheet.children if child.type == "row"),
        len(attachments),
    )

    return OfficeParserAST(
        type="xlsx",
        metadata=metadata,
        content=content,
        attachments=attachments,
        newline_delimiter=config.newline_delimiter,
    )

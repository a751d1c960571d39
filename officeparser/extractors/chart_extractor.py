"""
Chart Data Extractor
====================

Turns chart XML into :class:`ChartData`, whatever the source schema.

File Format Background
----------------------
Three chart vocabularies show up inside office containers:

    c:  DrawingML charts (``xl/charts/chart1.xml``, ``ppt/charts/chart1.xml``).
        Series carry cached values (``c:numCache``/``c:strCache``).
    cx: Chartex, the Office 2016 schema for histograms, waterfalls,
        treemaps and friends. Data lives in ``cx:chartData`` and series
        point at it through ``cx:dataId``. Hierarchical categories have
        several ``cx:lvl`` elements; the first one is the innermost level.
    chart: ODF charts (``Object 1/content.xml`` in ODT/ODP/ODS). Either an
        embedded ``table:table`` with the data (presentations, text) or cell
        range addresses pointing into the spreadsheet (ODS).

All three produce the same ``ChartData`` shape. ``raw_texts`` always holds
the title, then for each data set its name, the category labels and the
values.

Cell range references
---------------------
ODS charts usually do not embed their values. The extractor leaves a
bracketed reference such as ``[Sheet1.$B$2:.$B$5]`` in place of the
values; :func:`resolve_chart_references` later replaces it with the cell
texts of the already parsed sheet nodes.

See Also
--------
- ECMA-376 Part 1, 21.2 (DrawingML charts)
- [MS-ODRAWXML] 2.24 (chartex)
- ODF 1.2 Part 1, chapter 11 (charts)
"""

import logging
import re
from xml.etree import ElementTree as ET

from openpyxl.utils.cell import column_index_from_string

from officeparser.extractors.data_types import (
    CellMetadata,
    ChartData,
    ChartDataSet,
    ContentNode,
    SheetMetadata,
)
from officeparser.extractors.util.xml_utils import local_name

logger = logging.getLogger(__name__)

C_NS = "{http://schemas.openxmlformats.org/drawingml/2006/chart}"
A_NS = "{http://schemas.openxmlformats.org/drawingml/2006/main}"
CX_NS = "{http://schemas.microsoft.com/office/drawing/2014/chartex}"
CHART_NS = "{urn:oasis:names:tc:opendocument:xmlns:chart:1.0}"
TABLE_NS = "{urn:oasis:names:tc:opendocument:xmlns:table:1.0}"
TEXT_NS = "{urn:oasis:names:tc:opendocument:xmlns:text:1.0}"
OFFICE_NS = "{urn:oasis:names:tc:opendocument:xmlns:office:1.0}"

CHARTEX_MARKER = "http://schemas.microsoft.com/office/drawing/2014/chartex"
ODF_CHART_MARKER = "urn:oasis:names:tc:opendocument:xmlns:chart:1.0"

# chartex series layoutId -> chart type
CHARTEX_LAYOUTS = {
    "boxWhisker": "boxWhisker",
    "clusteredColumn": "histogram",
    "funnel": "funnel",
    "paretoLine": "pareto",
    "regionMap": "regionMap",
    "sunburst": "sunburst",
    "treemap": "treemap",
    "waterfall": "waterfall",
}

_CELL_RE = re.compile(r"^([A-Za-z]+)(\d+)$")
# first space separated range; quoted sheet names may hold spaces
_FIRST_RANGE_RE = re.compile(r"(?:'[^']*'|[^ ])+")


# =============================================================================
# DrawingML (c:)
# =============================================================================


def _drawingml_text(element: ET.Element | None) -> str | None:
    """Text of a ``c:title``/``c:tx`` element: rich runs first, then cached values."""
    if element is None:
        return None
    containers = list(element.iter(f"{C_NS}rich")) or list(element.iter(f"{A_NS}p"))
    parts = [t.text or "" for container in containers for t in container.iter(f"{A_NS}t")]
    text = " ".join(parts).strip()
    if text:
        return text
    value = element.find(f".//{C_NS}v")
    if value is not None and value.text and value.text.strip():
        return value.text.strip()
    return None


def _cached_values(element: ET.Element | None) -> list[str]:
    if element is None:
        return []
    values = []
    for value in element.iter(f"{C_NS}v"):
        text = (value.text or "").strip()
        if text:
            values.append(text)
    return values


def _drawingml_chart_type(root: ET.Element) -> str | None:
    plot_area = root.find(f".//{C_NS}plotArea")
    if plot_area is None:
        return None
    for child in plot_area:
        name = local_name(child.tag)
        if name.endswith("Chart"):
            return name[: -len("Chart")]
    return None


def _extract_drawingml_chart(root: ET.Element) -> ChartData:
    chart = root.find(f"{C_NS}chart")
    scope = chart if chart is not None else root
    chart_data = ChartData(
        title=_drawingml_text(scope.find(f"{C_NS}title")),
        chart_type=_drawingml_chart_type(root),
    )

    cat_axes = list(root.iter(f"{C_NS}catAx")) + list(root.iter(f"{C_NS}dateAx"))
    val_axes = list(root.iter(f"{C_NS}valAx"))
    if cat_axes:
        chart_data.x_axis_title = _drawingml_text(cat_axes[0].find(f"{C_NS}title"))
        if val_axes:
            chart_data.y_axis_title = _drawingml_text(val_axes[0].find(f"{C_NS}title"))
    elif len(val_axes) >= 2:
        # scatter and bubble charts use two value axes
        chart_data.x_axis_title = _drawingml_text(val_axes[0].find(f"{C_NS}title"))
        chart_data.y_axis_title = _drawingml_text(val_axes[1].find(f"{C_NS}title"))
    elif val_axes:
        chart_data.y_axis_title = _drawingml_text(val_axes[0].find(f"{C_NS}title"))

    for series in root.iter(f"{C_NS}ser"):
        values_element = series.find(f"{C_NS}val")
        if values_element is None:
            values_element = series.find(f"{C_NS}yVal")
        point_labels = []
        for label in series.iter(f"{C_NS}dLbl"):
            text = _drawingml_text(label.find(f"{C_NS}tx"))
            if text:
                point_labels.append(text)
        chart_data.data_sets.append(
            ChartDataSet(
                name=_drawingml_text(series.find(f"{C_NS}tx")),
                values=_cached_values(values_element),
                point_labels=point_labels,
            )
        )

        categories = series.find(f"{C_NS}cat")
        if categories is None:
            categories = series.find(f"{C_NS}xVal")
        labels = _cached_values(categories)
        if labels and not chart_data.labels:
            chart_data.labels = labels

    chart_data.rebuild_raw_texts()
    return chart_data


# =============================================================================
# Chartex (cx:)
# =============================================================================


def _chartex_text(element: ET.Element | None) -> str | None:
    if element is None:
        return None
    value = element.find(f".//{CX_NS}v")
    if value is not None and value.text and value.text.strip():
        return value.text.strip()
    text = " ".join(t.text or "" for t in element.iter(f"{A_NS}t")).strip()
    return text or None


def _chartex_points(dimension: ET.Element | None) -> list[str]:
    """Points of the first (innermost) level, ordered by ``idx``."""
    if dimension is None:
        return []
    level = dimension.find(f"{CX_NS}lvl")
    if level is None:
        return []
    points = []
    for position, point in enumerate(level.findall(f"{CX_NS}pt")):
        text = (point.text or "").strip()
        if not text:
            continue
        try:
            index = int(point.get("idx", position))
        except ValueError:
            index = position
        points.append((index, text))
    return [text for _, text in sorted(points, key=lambda item: item[0])]


def _extract_chartex_chart(root: ET.Element) -> ChartData:
    chart = root.find(f"{CX_NS}chart")
    scope = chart if chart is not None else root
    chart_data = ChartData(title=_chartex_text(scope.find(f"{CX_NS}title")))

    data_by_id: dict[str, ET.Element] = {}
    for data in root.iter(f"{CX_NS}data"):
        data_by_id[data.get("id", str(len(data_by_id)))] = data

    for series in root.iter(f"{CX_NS}series"):
        layout = series.get("layoutId")
        if chart_data.chart_type is None and layout:
            chart_data.chart_type = CHARTEX_LAYOUTS.get(layout, layout)

        data_id = series.find(f"{CX_NS}dataId")
        data = data_by_id.get(data_id.get("val", "")) if data_id is not None else None
        values: list[str] = []
        if data is not None:
            num_dim = data.find(f"{CX_NS}numDim")
            values = _chartex_points(num_dim)
            labels = _chartex_points(data.find(f"{CX_NS}strDim"))
            if labels and not chart_data.labels:
                chart_data.labels = labels

        chart_data.data_sets.append(
            ChartDataSet(name=_chartex_text(series.find(f"{CX_NS}tx")), values=values)
        )

    for axis in root.iter(f"{CX_NS}axis"):
        title = _chartex_text(axis.find(f"{CX_NS}title"))
        if axis.find(f"{CX_NS}catScaling") is not None:
            chart_data.x_axis_title = chart_data.x_axis_title or title
        elif axis.find(f"{CX_NS}valScaling") is not None:
            chart_data.y_axis_title = chart_data.y_axis_title or title

    chart_data.rebuild_raw_texts()
    return chart_data


# =============================================================================
# ODF (chart:)
# =============================================================================


def _first_paragraph_text(element: ET.Element | None, direct: bool = False) -> str | None:
    if element is None:
        return None
    paragraph = (
        element.find(f"{TEXT_NS}p") if direct else element.find(f".//{TEXT_NS}p")
    )
    if paragraph is None:
        return None
    return "".join(paragraph.itertext()) or None


def _repeat_count(cell: ET.Element) -> int:
    try:
        return max(1, int(cell.get(f"{TABLE_NS}number-columns-repeated", "1")))
    except ValueError:
        return 1


def _extract_odf_chart(root: ET.Element) -> ChartData:
    chart = root.find(f".//{CHART_NS}chart")
    if chart is None:
        chart = root
    chart_class = chart.get(f"{CHART_NS}class")
    chart_data = ChartData(
        title=_first_paragraph_text(chart.find(f"{CHART_NS}title")),
        chart_type=chart_class.split(":", 1)[-1] if chart_class else None,
    )

    table = chart.find(f".//{TABLE_NS}table")
    if table is not None:
        rows: list[ET.Element] = []
        header_rows = table.find(f"{TABLE_NS}table-header-rows")
        if header_rows is not None:
            rows.extend(header_rows.findall(f"{TABLE_NS}table-row"))
        rows_parent = table.find(f"{TABLE_NS}table-rows")
        rows.extend((rows_parent if rows_parent is not None else table).findall(f"{TABLE_NS}table-row"))

        if rows:
            for cell in rows[0].findall(f"{TABLE_NS}table-cell")[1:]:
                name = _first_paragraph_text(cell, direct=True)
                for _ in range(_repeat_count(cell)):
                    chart_data.data_sets.append(ChartDataSet(name=name))

            for row in rows[1:]:
                cells = row.findall(f"{TABLE_NS}table-cell")
                if not cells:
                    continue
                label = _first_paragraph_text(cells[0], direct=True)
                if label:
                    chart_data.labels.append(label)
                index = 0
                for cell in cells[1:]:
                    value = (
                        cell.get(f"{OFFICE_NS}value")
                        or _first_paragraph_text(cell, direct=True)
                        or ""
                    )
                    for _ in range(_repeat_count(cell)):
                        if index < len(chart_data.data_sets):
                            chart_data.data_sets[index].values.append(value)
                        index += 1
    else:
        for series in chart.iter(f"{CHART_NS}series"):
            label_address = series.get(f"{CHART_NS}label-cell-address")
            values_address = series.get(f"{CHART_NS}values-cell-range-address")
            name = _first_paragraph_text(series)
            if not name and label_address:
                cell_ref = label_address.split(".")[-1].replace("$", "")
                name = f"Series {cell_ref}"
            data_set = ChartDataSet(name=name)
            if values_address:
                data_set.values.append(f"[{values_address}]")
            chart_data.data_sets.append(data_set)

        categories = chart.find(f".//{CHART_NS}categories")
        if categories is not None:
            category_range = categories.get(f"{TABLE_NS}cell-range-address")
            if category_range:
                chart_data.labels.append(f"[{category_range}]")

    for axis in chart.iter(f"{CHART_NS}axis"):
        title = _first_paragraph_text(axis.find(f"{CHART_NS}title"))
        dimension = axis.get(f"{CHART_NS}dimension")
        if dimension == "x":
            chart_data.x_axis_title = title
        elif dimension == "y":
            chart_data.y_axis_title = title

    chart_data.rebuild_raw_texts()
    return chart_data


def extract_chart_data(xml_bytes: bytes) -> ChartData:
    """
    Parse chart XML of any supported schema.

    The schema is picked from the namespaces named in the first bytes of
    the document, then from the namespace of the root element.

    Raises:
        xml.etree.ElementTree.ParseError: If the XML is malformed.
    """
    head = xml_bytes[:500].decode("utf-8", errors="ignore")
    root = ET.fromstring(xml_bytes)
    if CHARTEX_MARKER in head or root.tag.startswith(CX_NS):
        logger.debug("Extracting chartex chart")
        return _extract_chartex_chart(root)
    if ODF_CHART_MARKER in head or root.tag.startswith(OFFICE_NS) or root.tag.startswith(CHART_NS):
        logger.debug("Extracting ODF chart")
        return _extract_odf_chart(root)
    logger.debug("Extracting DrawingML chart")
    return _extract_drawingml_chart(root)


# =============================================================================
# Cell range resolution (ODS)
# =============================================================================


def column_index(letters: str) -> int:
    """Spreadsheet column letters to a zero-based index (A=0, Z=25, AA=26)."""
    return column_index_from_string(letters.upper()) - 1


def _parse_cell(reference: str) -> tuple[int, int] | None:
    match = _CELL_RE.match(reference.replace("$", ""))
    if not match:
        return None
    try:
        return int(match.group(2)) - 1, column_index(match.group(1))
    except ValueError:
        return None


def _split_address(address: str) -> tuple[str, str]:
    """``Sheet1.$A$1`` -> (``Sheet1``, ``$A$1``); the sheet part may be empty."""
    if "." not in address:
        return "", address
    sheet, cell = address.rsplit(".", 1)
    return sheet.strip("$").strip("'"), cell


def resolve_cell_range(reference: str, sheets: list[ContentNode]) -> list[str]:
    """
    Texts of the cells inside a bracketed range, row-major.

    Returns ``[reference]`` unchanged when the range cannot be resolved.
    """
    inner = reference.strip()
    if inner.startswith("[") and inner.endswith("]"):
        inner = inner[1:-1]
    # only the first range of a list is used
    match = _FIRST_RANGE_RE.match(inner)
    inner = match.group(0) if match else ""
    start, _, end = inner.partition(":")
    sheet_name, start_cell = _split_address(start)
    end_sheet, end_cell = _split_address(end) if end else (sheet_name, start_cell)
    start_pos = _parse_cell(start_cell)
    end_pos = _parse_cell(end_cell)
    if not sheet_name or start_pos is None or end_pos is None:
        return [reference]

    sheet = next(
        (
            node
            for node in sheets
            if node.type == "sheet"
            and isinstance(node.metadata, SheetMetadata)
            and node.metadata.sheet_name == sheet_name
        ),
        None,
    )
    if sheet is None:
        return [reference]

    top, bottom = sorted((start_pos[0], end_pos[0]))
    left, right = sorted((start_pos[1], end_pos[1]))
    found: list[tuple[int, int, str]] = []
    for row in sheet.children:
        for cell in row.children:
            metadata = cell.metadata
            if cell.type != "cell" or not isinstance(metadata, CellMetadata):
                continue
            if top <= metadata.row <= bottom and left <= metadata.col <= right:
                found.append((metadata.row, metadata.col, cell.text))
    if not found:
        return [reference]
    found.sort(key=lambda item: (item[0], item[1]))
    return [text for _, _, text in found]


def resolve_chart_references(chart_data: ChartData, sheets: list[ContentNode]) -> bool:
    """Replace bracketed references in values and labels; True if anything changed."""

    def expand(items: list[str]) -> tuple[list[str], bool]:
        expanded: list[str] = []
        changed = False
        for item in items:
            if item.startswith("["):
                resolved = resolve_cell_range(item, sheets)
                changed = changed or resolved != [item]
                expanded.extend(resolved)
            else:
                expanded.append(item)
        return expanded, changed

    any_changed = False
    for data_set in chart_data.data_sets:
        data_set.values, changed = expand(data_set.values)
        any_changed = any_changed or changed
    chart_data.labels, changed = expand(chart_data.labels)
    any_changed = any_changed or changed

    if any_changed:
        chart_data.rebuild_raw_texts()
    return any_changed

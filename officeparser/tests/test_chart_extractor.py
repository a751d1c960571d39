from unittest import TestCase

from officeparser.extractors.chart_extractor import (
    column_index,
    extract_chart_data,
    resolve_cell_range,
    resolve_chart_references,
)
from officeparser.extractors.data_types import (
    CellMetadata,
    ChartData,
    ChartDataSet,
    ContentNode,
    SheetMetadata,
)

tc = TestCase()

C = 'xmlns:c="http://schemas.openxmlformats.org/drawingml/2006/chart"'
A = 'xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main"'
CX = 'xmlns:cx="http://schemas.microsoft.com/office/drawing/2014/chartex"'


def _rich(text: str) -> str:
    return f"<c:tx><c:rich><a:p><a:r><a:t>{text}</a:t></a:r></a:p></c:rich></c:tx>"


def _cache(tag: str, values: list[str]) -> str:
    points = "".join(f'<c:pt idx="{index}"><c:v>{value}</c:v></c:pt>' for index, value in enumerate(values))
    return f"<{tag}>{points}</{tag}>"


def test_drawingml_chart() -> None:
    xml = (
        f"<c:chartSpace {C} {A}><c:chart>"
        f"<c:title>{_rich('Sales')}</c:title>"
        "<c:plotArea><c:layout/><c:barChart>"
        "<c:ser>"
        f"<c:tx><c:strRef>{_cache('c:strCache', ['2024'])}</c:strRef></c:tx>"
        f"<c:cat><c:strRef>{_cache('c:strCache', ['Q1', 'Q2'])}</c:strRef></c:cat>"
        f"<c:val><c:numRef>{_cache('c:numCache', ['5', '7'])}</c:numRef></c:val>"
        "</c:ser></c:barChart>"
        f"<c:catAx><c:title>{_rich('Quarter')}</c:title></c:catAx>"
        f"<c:valAx><c:title>{_rich('Units')}</c:title></c:valAx>"
        "</c:plotArea></c:chart></c:chartSpace>"
    )

    chart = extract_chart_data(xml.encode("utf-8"))

    tc.assertEqual("Sales", chart.title)
    tc.assertEqual("bar", chart.chart_type)
    tc.assertEqual("Quarter", chart.x_axis_title)
    tc.assertEqual("Units", chart.y_axis_title)
    tc.assertEqual(1, len(chart.data_sets))
    tc.assertEqual("2024", chart.data_sets[0].name)
    tc.assertEqual(["5", "7"], chart.data_sets[0].values)
    tc.assertEqual(["Q1", "Q2"], chart.labels)
    tc.assertEqual(["Sales", "2024", "Q1", "Q2", "5", "7"], chart.raw_texts)


def test_chartex_chart() -> None:
    xml = (
        f"<cx:chartSpace {CX} {A}><cx:chartData>"
        '<cx:data id="0">'
        '<cx:strDim type="cat"><cx:lvl ptCount="2"><cx:pt idx="1">B</cx:pt><cx:pt idx="0">A</cx:pt></cx:lvl></cx:strDim>'
        '<cx:numDim type="val"><cx:lvl ptCount="2"><cx:pt idx="0">1</cx:pt><cx:pt idx="1">2</cx:pt></cx:lvl></cx:numDim>'
        "</cx:data></cx:chartData>"
        "<cx:chart><cx:title><cx:tx><cx:txData><cx:v>Flow</cx:v></cx:txData></cx:tx></cx:title>"
        '<cx:plotArea><cx:plotAreaRegion><cx:series layoutId="waterfall">'
        '<cx:tx><cx:txData><cx:v>Cash</cx:v></cx:txData></cx:tx><cx:dataId val="0"/>'
        "</cx:series></cx:plotAreaRegion></cx:plotArea></cx:chart></cx:chartSpace>"
    )

    chart = extract_chart_data(xml.encode("utf-8"))

    tc.assertEqual("Flow", chart.title)
    tc.assertEqual("waterfall", chart.chart_type)
    tc.assertEqual(["A", "B"], chart.labels)
    tc.assertEqual("Cash", chart.data_sets[0].name)
    tc.assertEqual(["1", "2"], chart.data_sets[0].values)


def test_odf_chart_with_cell_ranges() -> None:
    xml = (
        '<office:document-content xmlns:office="urn:oasis:names:tc:opendocument:xmlns:office:1.0" '
        'xmlns:chart="urn:oasis:names:tc:opendocument:xmlns:chart:1.0" '
        'xmlns:table="urn:oasis:names:tc:opendocument:xmlns:table:1.0" '
        'xmlns:text="urn:oasis:names:tc:opendocument:xmlns:text:1.0">'
        '<office:body><office:chart><chart:chart chart:class="chart:circle">'
        "<chart:plot-area>"
        '<chart:axis chart:dimension="x"><chart:categories table:cell-range-address="Data.A2:Data.A3"/></chart:axis>'
        '<chart:series chart:values-cell-range-address="Data.B2:Data.B3" chart:label-cell-address="Data.$B$1"/>'
        "</chart:plot-area></chart:chart></office:chart></office:body></office:document-content>"
    )

    chart = extract_chart_data(xml.encode("utf-8"))

    tc.assertEqual("circle", chart.chart_type)
    tc.assertEqual("Series B1", chart.data_sets[0].name)
    tc.assertEqual(["[Data.B2:Data.B3]"], chart.data_sets[0].values)
    tc.assertEqual(["[Data.A2:Data.A3]"], chart.labels)


def test_column_index() -> None:
    tc.assertEqual(0, column_index("A"))
    tc.assertEqual(25, column_index("z"))
    tc.assertEqual(26, column_index("AA"))
    tc.assertEqual(701, column_index("ZZ"))


def _sheet(name: str, grid: list[list[str]]) -> ContentNode:
    rows = []
    for row_index, values in enumerate(grid):
        cells = [
            ContentNode(type="cell", text=value, metadata=CellMetadata(row=row_index, col=col))
            for col, value in enumerate(values)
        ]
        rows.append(ContentNode(type="row", children=cells))
    return ContentNode(type="sheet", children=rows, metadata=SheetMetadata(sheet_name=name))


SHEETS = [
    _sheet("Other", [["x"]]),
    _sheet("Data", [["Label", "Value"], ["North", "10"], ["South", "20"]]),
]


def test_resolve_cell_range_row_major() -> None:
    tc.assertEqual(["10", "20"], resolve_cell_range("[Data.$B$2:.$B$3]", SHEETS))
    tc.assertEqual(
        ["North", "10", "South", "20"], resolve_cell_range("[Data.A2:Data.B3]", SHEETS)
    )
    tc.assertEqual(["Value"], resolve_cell_range("[Data.B1]", SHEETS))


def test_resolve_cell_range_keeps_unresolvable_references() -> None:
    tc.assertEqual(["[Missing.A1:A2]"], resolve_cell_range("[Missing.A1:A2]", SHEETS))
    tc.assertEqual(["[A1:A2]"], resolve_cell_range("[A1:A2]", SHEETS))
    tc.assertEqual(["[Data.D9:D10]"], resolve_cell_range("[Data.D9:D10]", SHEETS))


def test_resolve_cell_range_with_quoted_sheet_name() -> None:
    sheets = [_sheet("My Sheet", [["10"], ["20"]])]

    tc.assertEqual(["10", "20"], resolve_cell_range("['My Sheet'.$A$1:.$A$2]", sheets))
    tc.assertEqual(
        ["10"], resolve_cell_range("[$'My Sheet'.$A$1 'My Sheet'.$A$2]", sheets)
    )


def test_resolve_chart_references() -> None:
    chart = ChartData(
        title="Regions",
        data_sets=[ChartDataSet(name="Sales", values=["[Data.B2:B3]"])],
        labels=["[Data.A2:A3]"],
    )

    tc.assertTrue(resolve_chart_references(chart, SHEETS))
    tc.assertEqual(["10", "20"], chart.data_sets[0].values)
    tc.assertEqual(["North", "South"], chart.labels)
    tc.assertEqual(["Regions", "Sales", "North", "South", "10", "20"], chart.raw_texts)

    tc.assertFalse(resolve_chart_references(chart, SHEETS))

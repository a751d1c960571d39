import io
import zipfile
from unittest import TestCase

import pytest

from officeparser.config import OfficeParserConfig
from officeparser.exceptions import FileCorruptedError, FileEncryptedError
from officeparser.extractors.data_types import (
    CellMetadata,
    HeadingMetadata,
    ListMetadata,
    NoteMetadata,
    SheetMetadata,
    SlideMetadata,
    node_to_text,
)
from officeparser.extractors.open_office.odf_extractor import read_odp, read_ods, read_odt

tc = TestCase()

NS = (
    'xmlns:office="urn:oasis:names:tc:opendocument:xmlns:office:1.0" '
    'xmlns:style="urn:oasis:names:tc:opendocument:xmlns:style:1.0" '
    'xmlns:text="urn:oasis:names:tc:opendocument:xmlns:text:1.0" '
    'xmlns:table="urn:oasis:names:tc:opendocument:xmlns:table:1.0" '
    'xmlns:draw="urn:oasis:names:tc:opendocument:xmlns:drawing:1.0" '
    'xmlns:fo="urn:oasis:names:tc:opendocument:xmlns:xsl-fo-compatible:1.0" '
    'xmlns:xlink="http://www.w3.org/1999/xlink" '
    'xmlns:presentation="urn:oasis:names:tc:opendocument:xmlns:presentation:1.0" '
    'xmlns:chart="urn:oasis:names:tc:opendocument:xmlns:chart:1.0" '
    'xmlns:dc="http://purl.org/dc/elements/1.1/" '
    'xmlns:meta="urn:oasis:names:tc:opendocument:xmlns:meta:1.0"'
)

MIME_PREFIX = "application/vnd.oasis.opendocument."


def _make_zip_bytesio(files: dict[str, str | bytes]) -> io.BytesIO:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    buffer.seek(0)
    return buffer


def _content(body: str, automatic_styles: str = "") -> str:
    return (
        f"<office:document-content {NS}>"
        f"<office:automatic-styles>{automatic_styles}</office:automatic-styles>"
        f"<office:body>{body}</office:body></office:document-content>"
    )


def _odf(kind: str, body: str, automatic_styles: str = "", parts: dict | None = None) -> io.BytesIO:
    files: dict[str, str | bytes] = {
        "mimetype": MIME_PREFIX + kind,
        "content.xml": _content(body, automatic_styles),
    }
    files.update(parts or {})
    return _make_zip_bytesio(files)


def _odt(text: str, automatic_styles: str = "", parts: dict | None = None) -> io.BytesIO:
    return _odf("text", f"<office:text>{text}</office:text>", automatic_styles, parts)


def test_odt_paragraphs_headings_and_styles() -> None:
    styles = (
        '<style:style style:name="P1" style:family="paragraph">'
        '<style:paragraph-properties fo:text-align="center"/>'
        '<style:text-properties fo:font-weight="bold" fo:font-size="14pt" fo:color="#FF0000"/>'
        "</style:style>"
        '<style:style style:name="T1" style:family="text">'
        '<style:text-properties fo:font-style="italic"/></style:style>'
    )
    ast = read_odt(
        _odt(
            '<text:h text:outline-level="2">Chapter</text:h>'
            '<text:p text:style-name="P1">Bold <text:span text:style-name="T1">both</text:span></text:p>',
            styles,
        )
    )

    tc.assertEqual("odt", ast.type)
    heading, paragraph = ast.content
    tc.assertEqual("heading", heading.type)
    tc.assertIsInstance(heading.metadata, HeadingMetadata)
    tc.assertEqual(2, heading.metadata.level)

    tc.assertEqual("paragraph", paragraph.type)
    tc.assertEqual("center", paragraph.metadata.alignment)
    tc.assertEqual("Bold both", paragraph.text)
    plain, span = paragraph.children
    tc.assertTrue(plain.formatting.bold)
    tc.assertEqual("14pt", plain.formatting.size)
    tc.assertEqual("#FF0000", plain.formatting.color)
    tc.assertNotEqual(True, plain.formatting.italic)
    tc.assertTrue(span.formatting.bold)
    tc.assertTrue(span.formatting.italic)
    tc.assertIn("P1", ast.metadata.style_map)
    tc.assertEqual("Chapter\nBold both", ast.to_text())


def test_odt_spaces_tabs_and_links() -> None:
    ast = read_odt(
        _odt(
            '<text:p>a<text:s text:c="3"/>b<text:tab/>c '
            '<text:a xlink:href="https://example.org">web</text:a> '
            '<text:a xlink:href="#part">here</text:a></text:p>'
        )
    )

    paragraph = ast.content[0]
    tc.assertEqual("a   b\tc web here", paragraph.text)
    links = [node for node in paragraph.children if node.metadata is not None and node.metadata.link]
    tc.assertEqual(["https://example.org", "#part"], [node.metadata.link for node in links])
    tc.assertEqual(["external", "internal"], [node.metadata.link_type for node in links])


NOTE_TEXT = (
    '<text:p>Claim<text:note text:id="ftn1" text:note-class="footnote">'
    "<text:note-citation>1</text:note-citation>"
    "<text:note-body><text:p>Note body</text:p></text:note-body></text:note></text:p>"
    "<text:p>After</text:p>"
)


def test_odt_note_inline() -> None:
    ast = read_odt(_odt(NOTE_TEXT))

    paragraph = ast.content[0]
    tc.assertEqual("Claim\nNote body", paragraph.text)
    note = paragraph.children[-1]
    tc.assertEqual("note", note.type)
    tc.assertIsInstance(note.metadata, NoteMetadata)
    tc.assertEqual("ftn1", note.metadata.note_id)
    tc.assertEqual("footnote", note.metadata.note_type)
    tc.assertEqual("Note body", note.text)
    tc.assertNotIn("1", ast.to_text())


def test_odt_notes_at_last_and_ignored() -> None:
    at_last = read_odt(_odt(NOTE_TEXT), OfficeParserConfig(put_notes_at_last=True))
    tc.assertEqual(["paragraph", "paragraph", "note"], [node.type for node in at_last.content])
    tc.assertEqual("Claim\nAfter\nNote body", at_last.to_text())

    ignored = read_odt(_odt(NOTE_TEXT), OfficeParserConfig(ignore_notes=True))
    tc.assertEqual("Claim\nAfter", ignored.to_text())


def test_odt_runs_stay_joined_next_to_a_footnote() -> None:
    styles = (
        '<style:style style:name="T1" style:family="text">'
        '<style:text-properties fo:font-weight="bold"/></style:style>'
    )
    ast = read_odt(
        _odt(
            '<text:p><text:span text:style-name="T1">Hel</text:span>lo'
            '<text:note text:id="ftn1" text:note-class="footnote">'
            "<text:note-citation>1</text:note-citation>"
            "<text:note-body><text:p>Note body</text:p></text:note-body></text:note></text:p>",
            styles,
        )
    )

    paragraph = ast.content[0]
    tc.assertEqual(["text", "text", "note"], [child.type for child in paragraph.children])
    tc.assertEqual("Hello\nNote body", paragraph.text)
    tc.assertEqual("Hello\nNote body", ast.to_text())


LIST_STYLES = (
    '<text:list-style style:name="L1">'
    '<text:list-level-style-number text:level="1" style:num-format="1"/>'
    '<text:list-level-style-number text:level="2" style:num-format="a"/>'
    "</text:list-style>"
    '<text:list-style style:name="L2">'
    '<text:list-level-style-bullet text:level="1" text:bullet-char="*"/>'
    "</text:list-style>"
    '<text:list-style style:name="L3">'
    '<text:list-level-style-bullet text:level="1"/>'
    "</text:list-style>"
)


def _items(*texts: str) -> str:
    return "".join(f"<text:list-item><text:p>{text}</text:p></text:list-item>" for text in texts)


def test_odt_interleaved_lists_keep_separate_counters() -> None:
    ast = read_odt(
        _odt(
            f'<text:list text:style-name="L1">{_items("one", "two")}</text:list>'
            f'<text:list text:style-name="L2">{_items("dot")}</text:list>'
            f'<text:list text:style-name="L1">{_items("three")}</text:list>',
            LIST_STYLES,
        )
    )

    tc.assertEqual(["list"] * 4, [node.type for node in ast.content])
    metadata = [node.metadata for node in ast.content]
    for item in metadata:
        tc.assertIsInstance(item, ListMetadata)
    tc.assertEqual(["L1", "L1", "L2", "L1"], [m.list_id for m in metadata])
    tc.assertEqual([0, 1, 0, 2], [m.item_index for m in metadata])
    tc.assertEqual(["ordered", "ordered", "unordered", "ordered"], [m.list_type for m in metadata])
    tc.assertEqual("one\ntwo\ndot\nthree", ast.to_text())


def test_odt_nested_list_items() -> None:
    ast = read_odt(
        _odt(
            '<text:list text:style-name="L1"><text:list-item><text:p>outer</text:p>'
            f"<text:list>{_items('inner')}</text:list></text:list-item></text:list>",
            LIST_STYLES,
        )
    )

    outer, inner = ast.content
    tc.assertEqual((0, 0), (outer.metadata.indentation, outer.metadata.item_index))
    tc.assertEqual(1, inner.metadata.indentation)
    tc.assertEqual(0, inner.metadata.item_index)
    # the nested list inherits the numbering of its parent style
    tc.assertEqual("ordered", inner.metadata.list_type)


def test_odt_list_without_markers_is_plain_content() -> None:
    ast = read_odt(_odt(f'<text:list text:style-name="L3">{_items("layout")}</text:list>', LIST_STYLES))

    tc.assertEqual(["paragraph"], [node.type for node in ast.content])


def test_odt_table_repeated_columns_are_independent() -> None:
    ast = read_odt(
        _odt(
            "<table:table><table:table-column/>"
            '<table:table-row><table:table-cell table:number-columns-repeated="5">'
            "<text:p>v</text:p></table:table-cell></table:table-row>"
            '<table:table-row><table:table-cell table:number-columns-spanned="2"><text:p>wide</text:p>'
            "</table:table-cell><table:covered-table-cell/><table:table-cell><text:p>end</text:p>"
            "</table:table-cell></table:table-row>"
            "</table:table>"
        )
    )

    table = ast.content[0]
    tc.assertEqual("table", table.type)
    first, second = table.children
    tc.assertEqual(5, len(first.children))
    tc.assertEqual([0, 1, 2, 3, 4], [cell.metadata.col for cell in first.children])
    tc.assertIsNot(first.children[0].children[0], first.children[1].children[0])
    first.children[1].children[0].text = "changed"
    tc.assertEqual("v", first.children[0].children[0].text)

    tc.assertEqual(["wide", "end"], [cell.text for cell in second.children])
    tc.assertEqual(2, second.children[0].metadata.col_span)
    tc.assertEqual(2, second.children[1].metadata.col)


def test_odt_inline_chart_from_embedded_table() -> None:
    chart = (
        f"<office:document-content {NS}><office:body><office:chart>"
        '<chart:chart chart:class="chart:bar">'
        "<chart:title><text:p>Revenue</text:p></chart:title>"
        "<chart:plot-area/>"
        "<table:table>"
        "<table:table-header-rows><table:table-row>"
        "<table:table-cell/><table:table-cell><text:p>Sales</text:p></table:table-cell>"
        "</table:table-row></table:table-header-rows>"
        "<table:table-rows>"
        '<table:table-row><table:table-cell><text:p>Q1</text:p></table:table-cell>'
        '<table:table-cell office:value="5"><text:p>5</text:p></table:table-cell></table:table-row>'
        '<table:table-row><table:table-cell><text:p>Q2</text:p></table:table-cell>'
        '<table:table-cell office:value="7"><text:p>7</text:p></table:table-cell></table:table-row>'
        "</table:table-rows></table:table>"
        "</chart:chart></office:chart></office:body></office:document-content>"
    )
    ast = read_odt(
        _odt(
            '<text:p><draw:frame draw:name="Chart"><draw:object xlink:href="./Object 1"/></draw:frame></text:p>',
            parts={"Object 1/content.xml": chart},
        )
    )

    node = ast.content[0].children[0]
    tc.assertEqual("chart", node.type)
    tc.assertEqual("Object 1", node.metadata.attachment_name)
    chart_data = node.metadata.chart_data
    tc.assertEqual("Revenue", chart_data.title)
    tc.assertEqual("bar", chart_data.chart_type)
    tc.assertEqual(["Q1", "Q2"], chart_data.labels)
    tc.assertEqual(["5", "7"], chart_data.data_sets[0].values)
    tc.assertEqual("Revenue Sales Q1 Q2 5 7", node.text)


def test_odt_metadata_from_meta_xml() -> None:
    meta = (
        f"<office:document-meta {NS}><office:meta>"
        "<dc:title>Minutes</dc:title><meta:initial-creator>Robin</meta:initial-creator>"
        "<dc:creator>Kim</dc:creator><meta:creation-date>2023-05-06T07:08:09</meta:creation-date>"
        "</office:meta></office:document-meta>"
    )
    ast = read_odt(_odt("<text:p>x</text:p>", parts={"meta.xml": meta}), path="notes/minutes.odt")

    tc.assertEqual("Minutes", ast.metadata.title)
    tc.assertEqual("Robin", ast.metadata.author)
    tc.assertEqual("Kim", ast.metadata.last_modified_by)
    tc.assertEqual("2023-05-06T07:08:09", ast.metadata.created)
    tc.assertEqual("minutes.odt", ast.metadata.filename)


def test_ods_sheets_skip_empty_cells_and_expand_repeats() -> None:
    sheet = (
        '<table:table table:name="Data">'
        "<table:table-row>"
        "<table:table-cell><text:p>a</text:p></table:table-cell>"
        '<table:table-cell table:number-columns-repeated="2"/>'
        "<table:table-cell><text:p>b</text:p></table:table-cell>"
        "</table:table-row>"
        '<table:table-row table:number-rows-repeated="2">'
        "<table:table-cell><text:p>r</text:p></table:table-cell>"
        "</table:table-row>"
        '<table:table-row table:number-rows-repeated="1000"><table:table-cell/></table:table-row>'
        "</table:table>"
        "<table:table><table:table-row><table:table-cell><text:p>x</text:p></table:table-cell>"
        "</table:table-row></table:table>"
    )
    ast = read_ods(_odf("spreadsheet", f"<office:spreadsheet>{sheet}</office:spreadsheet>"))

    tc.assertEqual("ods", ast.type)
    data, unnamed = ast.content
    tc.assertIsInstance(data.metadata, SheetMetadata)
    tc.assertEqual("Data", data.metadata.sheet_name)
    tc.assertEqual("Sheet2", unnamed.metadata.sheet_name)

    rows = data.children
    tc.assertEqual(3, len(rows))
    first = rows[0].children
    tc.assertEqual(["a", "b"], [cell.text for cell in first])
    tc.assertIsInstance(first[1].metadata, CellMetadata)
    tc.assertEqual([0, 3], [cell.metadata.col for cell in first])
    tc.assertEqual([1, 2], [row.children[0].metadata.row for row in rows[1:]])
    tc.assertIsNot(rows[1].children[0], rows[2].children[0])


def test_ods_cell_paragraphs_become_lines() -> None:
    sheet = (
        '<table:table table:name="Data"><table:table-row>'
        "<table:table-cell><text:p>first</text:p><text:p/><text:p>second</text:p></table:table-cell>"
        "</table:table-row></table:table>"
    )
    config = OfficeParserConfig(newline_delimiter=" / ")
    ast = read_ods(_odf("spreadsheet", f"<office:spreadsheet>{sheet}</office:spreadsheet>"), config)

    cell = ast.content[0].children[0].children[0]
    tc.assertEqual("first / second", cell.text)
    tc.assertEqual(node_to_text(cell, " / "), cell.text)
    tc.assertEqual("first / second", ast.to_text())


def test_ods_chart_ranges_resolve_against_sheet() -> None:
    rows = "".join(
        f'<table:table-row><table:table-cell office:value-type="float" office:value="{value}">'
        f"<text:p>{value}</text:p></table:table-cell></table:table-row>"
        for value in (10, 20, 30)
    )
    chart = (
        f"<office:document-content {NS}><office:body><office:chart>"
        '<chart:chart chart:class="chart:line"><chart:plot-area>'
        '<chart:series chart:values-cell-range-address="Sheet1.$A$1:.$A$3"/>'
        "</chart:plot-area></chart:chart></office:chart></office:body></office:document-content>"
    )
    buffer = _odf(
        "spreadsheet",
        f'<office:spreadsheet><table:table table:name="Sheet1">{rows}</table:table></office:spreadsheet>',
        parts={"Object 1/content.xml": chart},
    )

    ast = read_ods(buffer, OfficeParserConfig(extract_attachments=True))

    attachment = ast.find_attachment("Object 1")
    tc.assertIsNotNone(attachment)
    tc.assertEqual("chart", attachment.type)
    tc.assertEqual(["10", "20", "30"], attachment.chart_data.data_sets[0].values)
    tc.assertEqual(["10", "20", "30"], attachment.chart_data.raw_texts)


def _frame(text: str, presentation_class: str | None = None) -> str:
    css = f' presentation:class="{presentation_class}"' if presentation_class else ""
    return f"<draw:frame{css}><draw:text-box><text:p>{text}</text:p></draw:text-box></draw:frame>"


def _presentation() -> io.BytesIO:
    pages = (
        '<draw:page draw:name="p1">'
        + _frame("Title", "title")
        + _frame("Body")
        + "<presentation:notes>"
        + "<draw:page-thumbnail/>"
        + _frame("Speaker", "notes")
        + "</presentation:notes></draw:page>"
        + '<draw:page draw:name="p2">'
        + _frame("Second")
        + "</draw:page>"
        + '<draw:page draw:name="p3"/>'
    )
    return _odf("presentation", f"<office:presentation>{pages}</office:presentation>")


def test_odp_slides_and_notes() -> None:
    ast = read_odp(_presentation())

    tc.assertEqual("odp", ast.type)
    tc.assertEqual(["slide", "note", "slide", "slide"], [node.type for node in ast.content])
    first = ast.content[0]
    tc.assertIsInstance(first.metadata, SlideMetadata)
    tc.assertEqual(1, first.metadata.slide_number)
    tc.assertEqual("heading", first.children[0].type)
    tc.assertEqual(1, first.children[0].metadata.level)
    note = ast.content[1]
    tc.assertIsInstance(note.metadata, NoteMetadata)
    tc.assertEqual(1, note.metadata.slide_number)
    # empty slides keep their place
    tc.assertEqual(3, ast.content[3].metadata.slide_number)
    tc.assertEqual("Title\nBody\nSpeaker\nSecond", ast.to_text())


def test_odp_notes_at_last() -> None:
    ast = read_odp(_presentation(), OfficeParserConfig(put_notes_at_last=True))

    tc.assertEqual(["slide", "slide", "slide", "note"], [node.type for node in ast.content])
    tc.assertEqual("Title\nBody\nSecond\nSpeaker", ast.to_text())


def test_odf_encrypted_manifest() -> None:
    manifest = (
        '<manifest:manifest xmlns:manifest="urn:oasis:names:tc:opendocument:xmlns:manifest:1.0">'
        '<manifest:file-entry manifest:full-path="content.xml">'
        '<manifest:encryption-data manifest:checksum="x"/></manifest:file-entry>'
        "</manifest:manifest>"
    )
    buffer = _odt("<text:p>secret</text:p>", parts={"META-INF/manifest.xml": manifest})

    with pytest.raises(FileEncryptedError):
        read_odt(buffer)


def test_odf_missing_content_is_corrupted() -> None:
    with pytest.raises(FileCorruptedError):
        read_odt(_make_zip_bytesio({"mimetype": MIME_PREFIX + "text"}))

from pathlib import Path
from unittest import TestCase

import pytest

from officeparser.extractors.data_types import (
    CellMetadata,
    ChartData,
    ChartDataSet,
    ChartMetadata,
    ContentNode,
    OfficeAttachment,
    OfficeMetadata,
    OfficeParserAST,
    TextFormatting,
    clone_node,
    join_text,
    node_to_text,
    paragraph_text,
    refresh_text,
)

tc = TestCase()


def _run(text: str, **formatting) -> ContentNode:
    return ContentNode(type="text", text=text, formatting=TextFormatting(**formatting))


def _paragraph(*runs: ContentNode) -> ContentNode:
    return ContentNode(type="paragraph", text=join_text(list(runs)), children=list(runs))


def test_node_to_text_joins_runs_without_separator() -> None:
    paragraph = _paragraph(_run("Hello "), _run("world", bold=True))

    tc.assertEqual("Hello world", node_to_text(paragraph))
    tc.assertEqual("Hello world", paragraph.text)


def test_node_to_text_separates_blocks_and_drops_empties() -> None:
    row = ContentNode(
        type="row",
        children=[
            ContentNode(type="cell", children=[_paragraph(_run("a"))]),
            ContentNode(type="cell", children=[_paragraph(_run(""))]),
            ContentNode(type="cell", children=[_paragraph(_run("b"))]),
        ],
    )
    table = ContentNode(type="table", children=[row])

    tc.assertEqual("a\nb", node_to_text(table))
    tc.assertEqual("a | b", node_to_text(table, " | "))
    tc.assertEqual("leaf", node_to_text(ContentNode(type="text", text="leaf")))


def test_node_to_text_splits_only_around_block_children() -> None:
    note = ContentNode(type="note", children=[_paragraph(_run("Note body"))])
    image = ContentNode(type="image", text="scan")
    paragraph = ContentNode(
        type="paragraph", children=[_run("Hel"), _run("lo", bold=True), image, note, _run("tail")]
    )

    tc.assertEqual("Helloscan\nNote body\ntail", node_to_text(paragraph))
    tc.assertEqual("Helloscan | Note body | tail", node_to_text(paragraph, " | "))
    tc.assertEqual("Helloscan\nNote body\ntail", paragraph_text(paragraph.children))


def test_node_to_text_separates_leaves_of_containers() -> None:
    slide = ContentNode(
        type="slide",
        children=[ContentNode(type="image", text="first"), ContentNode(type="chart", text="second")],
    )

    tc.assertEqual("first\nsecond", node_to_text(slide))


def test_refresh_text_updates_every_container() -> None:
    image = ContentNode(type="image")
    cell = ContentNode(type="cell", children=[_paragraph(_run("a")), image])
    row = ContentNode(type="row", children=[cell], text="stale")
    refresh_text([row])
    tc.assertEqual("a", row.text)

    image.text = "ocr"
    refresh_text([row])

    tc.assertEqual("a\nocr", cell.text)
    tc.assertEqual("a\nocr", row.text)
    tc.assertEqual("ocr", image.text)


def test_ast_to_text_skips_empty_top_level_nodes() -> None:
    ast = OfficeParserAST(
        type="docx",
        content=[
            _paragraph(_run("one")),
            ContentNode(type="paragraph"),
            _paragraph(_run("two")),
        ],
        newline_delimiter="\r\n",
    )

    tc.assertEqual("one\r\ntwo", ast.to_text())
    tc.assertEqual(["one", "two"], list(ast.iterator()))
    tc.assertEqual(ast.to_text(), ast.get_full_text())
    tc.assertIs(ast.metadata, ast.get_metadata())


def test_content_node_rejects_unknown_types() -> None:
    with pytest.raises(ValueError):
        ContentNode(type="section")


def test_clone_node_shares_no_mutable_state() -> None:
    chart_data = ChartData(
        title="Sales",
        data_sets=[ChartDataSet(name="2024", values=["1", "2"])],
        labels=["Q1", "Q2"],
    )
    chart_data.rebuild_raw_texts()
    original = ContentNode(
        type="cell",
        children=[
            _paragraph(_run("x", bold=True)),
            ContentNode(type="chart", metadata=ChartMetadata("chart1.xml", chart_data)),
        ],
        metadata=CellMetadata(row=1, col=2),
    )

    copy = clone_node(original)
    copy.metadata.col = 5
    copy.children[0].children[0].formatting.bold = False
    copy.children[1].metadata.chart_data.data_sets[0].values.append("3")
    copy.children[1].metadata.chart_data.labels.append("Q3")

    tc.assertEqual(2, original.metadata.col)
    tc.assertTrue(original.children[0].children[0].formatting.bold)
    tc.assertEqual(["1", "2"], chart_data.data_sets[0].values)
    tc.assertEqual(["Q1", "Q2"], chart_data.labels)
    tc.assertEqual(["Sales", "2024", "Q1", "Q2", "1", "2"], chart_data.raw_texts)


def test_text_formatting_merge() -> None:
    base = TextFormatting(bold=True, size="12pt", font="Arial")
    overrides = TextFormatting(bold=False, color="#FF0000")

    merged = base.merged(overrides)

    tc.assertFalse(merged.bold)
    tc.assertEqual("12pt", merged.size)
    tc.assertEqual("#FF0000", merged.color)
    tc.assertEqual("Arial", merged.font)
    tc.assertTrue(base.bold)
    tc.assertIsNot(base, base.merged(None))
    tc.assertEqual(base, base.merged(None))


def test_text_formatting_to_dict_and_empty() -> None:
    tc.assertTrue(TextFormatting().is_empty())
    tc.assertFalse(TextFormatting(italic=False).is_empty())
    tc.assertEqual({"italic": False, "size": "9pt"}, TextFormatting(italic=False, size="9pt").to_dict())


def test_attachment_bytes_and_lookup() -> None:
    attachment = OfficeAttachment(
        type="image", mime_type="image/png", data="aGVsbG8=", name="image1.png", extension="png"
    )
    ast = OfficeParserAST(type="docx", attachments=[attachment])

    tc.assertEqual(b"hello", attachment.get_bytes())
    tc.assertIs(attachment, ast.find_attachment("image1.png"))
    tc.assertIsNone(ast.find_attachment("image2.png"))


def test_metadata_populate_from_path(tmp_path: Path) -> None:
    path = tmp_path / "notes" / "report.odt"
    path.parent.mkdir()
    path.write_bytes(b"")
    metadata = OfficeMetadata()

    metadata.populate_from_path(str(path))

    tc.assertEqual("report.odt", metadata.filename)
    tc.assertEqual(".odt", metadata.file_extension)
    tc.assertEqual(str(path.resolve()), metadata.file_path)
    tc.assertEqual(str(path.parent.resolve()), metadata.folder_path)

    untouched = OfficeMetadata()
    untouched.populate_from_path(None)
    tc.assertIsNone(untouched.filename)

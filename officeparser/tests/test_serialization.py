import io
import json
import logging
import unittest

import pytest

from officeparser.extractors.data_types import (
    CellMetadata,
    ChartData,
    ChartDataSet,
    ChartMetadata,
    ContentNode,
    HeadingMetadata,
    ImageMetadata,
    ListMetadata,
    NoteMetadata,
    OfficeAttachment,
    OfficeMetadata,
    OfficeParserAST,
    StyleDefinition,
    TextFormatting,
    TextMetadata,
)
from officeparser.extractors.ms_legacy.rtf_extractor import read_rtf
from officeparser.extractors.serialization import deserialize_ast, serialize_ast

logger = logging.getLogger(__name__)

tc = unittest.TestCase()
tc.maxDiff = None


def _sample_ast() -> OfficeParserAST:
    chart_data = ChartData(
        title="Sales",
        chart_type="bar",
        data_sets=[ChartDataSet(name="2024", values=["5", "7"])],
        labels=["Q1", "Q2"],
    )
    chart_data.rebuild_raw_texts()
    run = ContentNode(
        type="text",
        text="Intro",
        formatting=TextFormatting(bold=True, size="16pt"),
        metadata=TextMetadata(link="#top", link_type="internal"),
    )
    return OfficeParserAST(
        type="docx",
        metadata=OfficeMetadata(
            title="Report",
            author="Ana",
            formatting=TextFormatting(font="Calibri"),
            style_map={"Heading1": StyleDefinition(TextFormatting(bold=True), alignment="center")},
        ),
        content=[
            ContentNode(type="heading", text="Intro", children=[run], metadata=HeadingMetadata(level=1)),
            ContentNode(
                type="list",
                text="item",
                children=[ContentNode(type="text", text="item")],
                metadata=ListMetadata(list_type="ordered", list_id="7", item_index=2),
            ),
            ContentNode(
                type="table",
                children=[
                    ContentNode(
                        type="row",
                        children=[
                            ContentNode(
                                type="cell",
                                text="x",
                                metadata=CellMetadata(row=0, col=1, col_span=2),
                            )
                        ],
                    )
                ],
            ),
            ContentNode(type="image", metadata=ImageMetadata("image1.png", alt_text="Logo")),
            ContentNode(type="chart", metadata=ChartMetadata("chart1.xml", chart_data)),
            ContentNode(
                type="note",
                text="Source",
                children=[ContentNode(type="text", text="Source")],
                metadata=NoteMetadata(note_id="1", note_type="footnote"),
                raw_content="<w:footnote/>",
            ),
        ],
        attachments=[
            OfficeAttachment(
                type="image",
                mime_type="image/png",
                data="iVBORw0KGgo=",
                name="image1.png",
                extension="png",
                ocr_text="LOGO",
            ),
            OfficeAttachment(
                type="chart",
                mime_type="application/vnd.openxmlformats-officedocument.drawingml.chart+xml",
                data="PGM6Y2hhcnQvPg==",
                name="chart1.xml",
                extension="xml",
                chart_data=chart_data,
            ),
        ],
    )


def test_serialize_for_json() -> None:
    payload = serialize_ast(_sample_ast())

    tc.assertIsInstance(payload, dict)
    tc.assertEqual("OfficeParserAST", payload["_type"])
    tc.assertEqual("HeadingMetadata", payload["content"][0]["metadata"]["_type"])
    try:
        json.dumps(payload)
    except Exception as e:
        tc.fail("Unexpected exception: {}".format(e))


def test_round_trip_restores_types() -> None:
    original = _sample_ast()

    restored = deserialize_ast(json.loads(json.dumps(serialize_ast(original))))

    tc.assertEqual(original, restored)
    tc.assertIsInstance(restored.content[0].metadata, HeadingMetadata)
    tc.assertIsInstance(restored.content[0].children[0].formatting, TextFormatting)
    tc.assertIsInstance(restored.content[4].metadata.chart_data, ChartData)
    tc.assertIsInstance(restored.content[4].metadata.chart_data.data_sets[0], ChartDataSet)
    tc.assertIsInstance(restored.metadata.style_map["Heading1"], StyleDefinition)
    tc.assertEqual(original.to_text(), restored.to_text())


def test_round_trip_of_parsed_document() -> None:
    ast = read_rtf(
        io.BytesIO(rb"{\rtf1{\info{\title T}}\pard\b Bold\b0  plain{\footnote N}\par}"),
        path="/tmp/t.rtf",
    )

    restored = deserialize_ast(json.loads(json.dumps(serialize_ast(ast))))

    tc.assertEqual(ast, restored)
    tc.assertEqual("T", restored.metadata.title)
    tc.assertEqual(ast.to_text(), restored.to_text())


def test_deserialize_rejects_other_payloads() -> None:
    with pytest.raises(ValueError):
        deserialize_ast(["not", "a", "tree"])

    with pytest.raises(ValueError):
        deserialize_ast({"_type": "TextFormatting", "bold": True})

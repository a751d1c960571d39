import io
from unittest import TestCase

import pytest

from officeparser.config import OfficeParserConfig
from officeparser.exceptions import FileCorruptedError
from officeparser.extractors.data_types import (
    CellMetadata,
    HeadingMetadata,
    ListMetadata,
    NoteMetadata,
    TextMetadata,
)
from officeparser.extractors.ms_legacy import read_rtf

tc = TestCase()


def _read(data: bytes, config: OfficeParserConfig | None = None):
    return read_rtf(io.BytesIO(data), config)


def test_rtf_paragraphs_and_run_formatting() -> None:
    ast = _read(
        rb"{\rtf1\ansi{\fonttbl{\f0 Arial;}{\f1 Times New Roman;}}"
        rb"{\colortbl;\red255\green0\blue0;}"
        rb"\pard Hello {\b bold}\par"
        rb"\pard\qc\f1\fs28\cf1 Red\par}"
    )

    tc.assertEqual("rtf", ast.type)
    first, second = ast.content
    tc.assertEqual(["Hello ", "bold"], [run.text for run in first.children])
    tc.assertNotEqual(True, first.children[0].formatting.bold)
    tc.assertTrue(first.children[1].formatting.bold)

    tc.assertEqual("center", second.metadata.alignment)
    formatting = second.children[0].formatting
    tc.assertEqual("Times New Roman", formatting.font)
    tc.assertEqual("14pt", formatting.size)
    tc.assertEqual("#FF0000", formatting.color)
    tc.assertEqual("Hello bold\nRed", ast.to_text())


def test_rtf_group_formatting_does_not_leak() -> None:
    ast = _read(rb"{\rtf1 {\i slanted} upright\par}")

    slanted, upright = ast.content[0].children
    tc.assertTrue(slanted.formatting.italic)
    tc.assertNotEqual(True, upright.formatting.italic)
    tc.assertEqual(" upright", upright.text)


def test_rtf_unicode_and_hex_escapes() -> None:
    ast = _read(rb"{\rtf1\uc1 Caf\u233? ok\par na\'efve\par}")

    tc.assertEqual("Café ok\nnaïve", ast.to_text())


def test_rtf_skips_pictures_and_tables_of_fonts() -> None:
    ast = _read(rb"{\rtf1{\fonttbl{\f0 Arial;}}Before{\pict\pngblip 89504e470d0a}After\par}")

    tc.assertEqual("BeforeAfter", ast.to_text())


def test_rtf_table() -> None:
    row = rb"\trowd\cellx1000\cellx2000 \intbl %s\cell %s\cell\row"
    ast = _read(rb"{\rtf1" + row % (b"A", b"B") + row % (b"C", b"D") + rb"\pard After\par}")

    table, after = ast.content
    tc.assertEqual("table", table.type)
    tc.assertEqual(2, len(table.children))
    cells = [cell for row_node in table.children for cell in row_node.children]
    tc.assertEqual(["A", "B", "C", "D"], [cell.text for cell in cells])
    tc.assertIsInstance(cells[3].metadata, CellMetadata)
    tc.assertEqual((1, 1), (cells[3].metadata.row, cells[3].metadata.col))
    tc.assertEqual("paragraph", after.type)
    tc.assertEqual("A\nB\nC\nD\nAfter", ast.to_text())


def test_rtf_horizontally_merged_cells() -> None:
    ast = _read(
        rb"{\rtf1\trowd\clmgf\cellx1000\clmrg\cellx2000\cellx3000 "
        rb"\intbl Wide\cell\cell Last\cell\row\pard\par}"
    )

    cells = ast.content[0].children[0].children
    tc.assertEqual(["Wide", "Last"], [cell.text for cell in cells])
    tc.assertEqual(2, cells[0].metadata.col_span)
    tc.assertEqual(2, cells[1].metadata.col)


NOTES = (
    rb"{\rtf1\fet2 Claim{\super\chftn}"
    rb"{\footnote\ftnalt\pard\plain End text}"
    rb"{\footnote\pard\plain Foot text}\par After\par}"
)


def test_rtf_notes_inline() -> None:
    ast = _read(NOTES)

    paragraph = ast.content[0]
    tc.assertEqual("Claim\nEnd text\nFoot text", paragraph.text)
    notes = [child for child in paragraph.children if child.type == "note"]
    tc.assertEqual(2, len(notes))
    for note in notes:
        tc.assertIsInstance(note.metadata, NoteMetadata)
    tc.assertEqual(["1", "2"], [note.metadata.note_id for note in notes])
    tc.assertEqual(["endnote", "footnote"], [note.metadata.note_type for note in notes])
    tc.assertEqual("Claim\nEnd text\nFoot text\nAfter", ast.to_text())


def test_rtf_notes_at_last_and_ignored() -> None:
    at_last = _read(NOTES, OfficeParserConfig(put_notes_at_last=True))
    tc.assertEqual(["paragraph", "paragraph", "note", "note"], [node.type for node in at_last.content])
    tc.assertEqual("Claim\nAfter\nEnd text\nFoot text", at_last.to_text())

    ignored = _read(NOTES, OfficeParserConfig(ignore_notes=True))
    tc.assertEqual("Claim\nAfter", ignored.to_text())


def test_rtf_runs_stay_joined_next_to_a_footnote() -> None:
    ast = _read(rb"{\rtf1\ansi Plain \b bold\b0 tail{\footnote Note body}\par}")

    paragraph = ast.content[0]
    tc.assertEqual("note", paragraph.children[-1].type)
    tc.assertGreater(len(paragraph.children), 2)
    tc.assertEqual("Plain boldtail\nNote body", paragraph.text)
    tc.assertEqual("Plain boldtail\nNote body", ast.to_text())


def test_rtf_lists_from_list_table() -> None:
    ast = _read(
        rb"{\rtf1{\*\listtable{\list\listtemplateid1{\listlevel\levelnfc23 }{\listlevel\levelnfc0 }\listid7}}"
        rb"{\*\listoverridetable{\listoverride\listid7\ls1}}"
        rb"\pard\ls1 Bullet\par\pard\ls1\ilvl1 Sub\par\pard\ls1 Again\par}"
    )

    tc.assertEqual(["list", "list", "list"], [node.type for node in ast.content])
    metadata = [node.metadata for node in ast.content]
    for item in metadata:
        tc.assertIsInstance(item, ListMetadata)
    tc.assertEqual(["unordered", "ordered", "unordered"], [m.list_type for m in metadata])
    tc.assertEqual([0, 1, 0], [m.indentation for m in metadata])
    tc.assertEqual([0, 0, 1], [m.item_index for m in metadata])
    tc.assertEqual(1, len({m.list_id for m in metadata}))


def test_rtf_lists_from_marker_groups() -> None:
    ast = _read(rb"{\rtf1\pard{\listtext 1.\tab}First\par{\listtext 2.\tab}Second\par\pard Plain\par}")

    first, second, plain = ast.content
    tc.assertEqual(("list", "list", "paragraph"), (first.type, second.type, plain.type))
    tc.assertEqual("ordered", first.metadata.list_type)
    tc.assertEqual([0, 1], [first.metadata.item_index, second.metadata.item_index])
    tc.assertEqual(first.metadata.list_id, second.metadata.list_id)
    tc.assertEqual("First\nSecond\nPlain", ast.to_text())


def test_rtf_headings_from_stylesheet_and_outline_level() -> None:
    ast = _read(
        rb"{\rtf1{\stylesheet{\s0 Normal;}{\s1 heading 1;}{\s5 Quote;}}"
        rb"\pard\s1 Intro\par\pard\s0 Body\par\pard\s5 Cited\par\pard\outlinelevel2 Deep\par}"
    )

    tc.assertEqual(["heading", "paragraph", "paragraph", "heading"], [node.type for node in ast.content])
    tc.assertIsInstance(ast.content[0].metadata, HeadingMetadata)
    tc.assertEqual(1, ast.content[0].metadata.level)
    tc.assertEqual(3, ast.content[3].metadata.level)


def test_rtf_numbered_styles_without_stylesheet_are_headings() -> None:
    ast = _read(rb"{\rtf1\pard\s2 Section\par}")

    tc.assertEqual("heading", ast.content[0].type)
    tc.assertEqual(2, ast.content[0].metadata.level)


def test_rtf_hyperlinks() -> None:
    ast = _read(
        rb'{\rtf1 See {\field{\*\fldinst HYPERLINK "https://example.com"}{\fldrslt site}}'
        rb' and {\field{\*\fldinst HYPERLINK \\l "intro"}{\fldrslt jump}}\par}'
    )

    runs = ast.content[0].children
    links = [run for run in runs if isinstance(run.metadata, TextMetadata)]
    tc.assertEqual(["site", "jump"], [run.text for run in links])
    tc.assertEqual("https://example.com", links[0].metadata.link)
    tc.assertEqual("external", links[0].metadata.link_type)
    tc.assertEqual("#intro", links[1].metadata.link)
    tc.assertEqual("internal", links[1].metadata.link_type)
    tc.assertEqual("See site and jump", ast.to_text())


def test_rtf_info_metadata() -> None:
    ast = read_rtf(
        io.BytesIO(
            rb"{\rtf1{\info{\title Quarterly}{\author Ana}{\operator Lee}"
            rb"{\creatim\yr2024\mo3\dy5\hr9\min30}}\pard x\par}"
        ),
        path="/data/q.rtf",
    )

    tc.assertEqual("Quarterly", ast.metadata.title)
    tc.assertEqual("Ana", ast.metadata.author)
    tc.assertEqual("Lee", ast.metadata.last_modified_by)
    tc.assertEqual("2024-03-05T09:30:00", ast.metadata.created)
    tc.assertEqual("q.rtf", ast.metadata.filename)
    tc.assertEqual("x", ast.to_text())


def test_rtf_deeply_nested_groups() -> None:
    depth = 5000
    ast = _read(b"{\\rtf1 " + b"{" * depth + b"deep" + b"}" * depth + b"\\par}")

    tc.assertEqual("deep", ast.to_text())


def test_rtf_raw_content_only_when_requested() -> None:
    data = rb"{\rtf1\pard\b x\par}"

    tc.assertIsNone(_read(data).content[0].raw_content)
    raw = _read(data, OfficeParserConfig(include_raw_content=True)).content[0].raw_content
    tc.assertIn("\\b", raw)


def test_rtf_rejects_other_data() -> None:
    with pytest.raises(FileCorruptedError):
        _read(b"just some plain text")

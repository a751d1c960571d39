import io
import logging
import unittest
import zipfile
from pathlib import Path

import pytest

import officeparser
from officeparser.exceptions import (
    ExtensionUnsupportedError,
    FileDoesNotExistError,
    ImproperArgumentsError,
    ImproperBuffersError,
    InvalidInputError,
    LocationNotFoundError,
    OfficeErrorType,
)
from officeparser.extractors.ms_legacy.rtf_extractor import read_rtf
from officeparser.extractors.ms_modern.docx_extractor import read_docx
from officeparser.extractors.ms_modern.pptx_extractor import read_pptx
from officeparser.extractors.ms_modern.xlsx_extractor import read_xlsx
from officeparser.extractors.open_office.odf_extractor import read_odp, read_ods, read_odt
from officeparser.extractors.pdf_extractor import read_pdf
from officeparser.mime_types import detect_file_type, extension_of
from officeparser.router import get_reader, get_reader_for_path, is_supported_file

logger = logging.getLogger(__name__)

tc = unittest.TestCase()

RTF = rb"{\rtf1\pard Hello{\footnote Note}\par\pard World\par}"


def _make_zip_bytes(files: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def test_is_supported():
    for name in (
        "myfile.docx",
        "myfile.xlsx",
        "myfile.pptx",
        "myfile.odt",
        "myfile.odp",
        "myfile.ods",
        "myfile.pdf",
        "myfile.RTF",
    ):
        tc.assertTrue(is_supported_file(name), name)

    tc.assertFalse(is_supported_file("myfile.doc"))
    tc.assertFalse(is_supported_file("i-have-no-file-type"))


def test_router():
    tc.assertEqual(read_docx, get_reader("docx"))
    tc.assertEqual(read_xlsx, get_reader("xlsx"))
    tc.assertEqual(read_pptx, get_reader("pptx"))
    tc.assertEqual(read_odt, get_reader("odt"))
    tc.assertEqual(read_odp, get_reader("odp"))
    tc.assertEqual(read_ods, get_reader("ods"))
    tc.assertEqual(read_pdf, get_reader("pdf"))
    tc.assertEqual(read_rtf, get_reader("rtf"))

    tc.assertRaises(ExtensionUnsupportedError, get_reader, "doc")


def test_router_by_path():
    tc.assertEqual(read_docx, get_reader_for_path("/tmp/report.DOCX"))
    tc.assertEqual(read_ods, get_reader_for_path("budget.ods"))

    tc.assertRaises(ExtensionUnsupportedError, get_reader_for_path, "not_supported.misc")
    tc.assertRaises(ExtensionUnsupportedError, get_reader_for_path, "i-have-no-file-type")


def test_extension_of():
    tc.assertEqual("docx", extension_of("/a/b/Report.Docx"))
    tc.assertEqual("", extension_of("README"))
    tc.assertEqual("", extension_of(None))


def test_detect_file_type_by_extension_and_signature():
    tc.assertEqual("pptx", detect_file_type(b"", "deck.pptx"))
    tc.assertEqual("pdf", detect_file_type(b"%PDF-1.7\n..."))
    tc.assertEqual("rtf", detect_file_type(b"\xef\xbb\xbf\r\n{\\rtf1 x}"))
    tc.assertEqual("rtf", detect_file_type(RTF, "letter.txt"))
    tc.assertIsNone(detect_file_type(b"plain words"))


def test_detect_file_type_of_zip_containers():
    odp = _make_zip_bytes({"mimetype": b"application/vnd.oasis.opendocument.presentation"})
    docx = _make_zip_bytes({"[Content_Types].xml": b"<x/>", "word/document.xml": b"<x/>"})
    xlsx = _make_zip_bytes({"xl/workbook.xml": b"<x/>"})
    other = _make_zip_bytes({"readme.txt": b"hi"})
    drawing = _make_zip_bytes({"mimetype": b"application/vnd.oasis.opendocument.graphics"})

    tc.assertEqual("odp", detect_file_type(odp))
    tc.assertEqual("docx", detect_file_type(docx))
    tc.assertEqual("xlsx", detect_file_type(xlsx))
    tc.assertIsNone(detect_file_type(other))
    tc.assertIsNone(detect_file_type(drawing))


def test_parse_office_path_buffer_and_bytes(tmp_path: Path):
    path = tmp_path / "letter.txt"
    path.write_bytes(RTF)

    from_path = officeparser.parse_office(path)
    from_string = officeparser.parse_office(str(path))
    from_bytes = officeparser.parse_office(RTF)
    from_buffer = officeparser.parse_office(io.BytesIO(RTF))

    tc.assertEqual("rtf", from_path.type)
    tc.assertEqual("Hello\nNote\nWorld", from_path.to_text())
    tc.assertEqual("letter.txt", from_path.metadata.filename)
    tc.assertEqual(from_path.to_text(), from_string.to_text())
    tc.assertEqual(from_path.to_text(), from_bytes.to_text())
    tc.assertEqual(from_path.to_text(), from_buffer.to_text())
    tc.assertIsNone(from_bytes.metadata.filename)


def test_parse_office_options():
    ignored = officeparser.parse_office(RTF, ignoreNotes=True)
    delimited = officeparser.parse_office(
        RTF, officeparser.OfficeParserConfig(newline_delimiter=" / ")
    )

    tc.assertEqual("Hello\nWorld", ignored.to_text())
    tc.assertEqual("Hello / Note / World", delimited.to_text())

    with pytest.raises(ImproperArgumentsError):
        officeparser.parse_office(RTF, ignoreEverything=True)


def test_parse_office_input_errors(tmp_path: Path):
    junk = tmp_path / "data.xyz"
    junk.write_bytes(b"\x00\x01 nothing to see")

    with pytest.raises(ExtensionUnsupportedError) as excinfo:
        officeparser.parse_office(junk)
    tc.assertEqual(OfficeErrorType.EXTENSION_UNSUPPORTED, excinfo.value.error_type)
    tc.assertIn("xyz", excinfo.value.message)

    with pytest.raises(LocationNotFoundError):
        officeparser.parse_office(tmp_path)

    with pytest.raises(FileDoesNotExistError):
        officeparser.parse_office(tmp_path / "missing.docx")

    with pytest.raises(InvalidInputError):
        officeparser.parse_office(42)

    with pytest.raises(ImproperBuffersError):
        officeparser.parse_office(b"\x00\x01 nothing to see")


def test_parse_office_logs_errors_when_requested(tmp_path: Path, caplog):
    with caplog.at_level(logging.ERROR, logger="officeparser"):
        with pytest.raises(FileDoesNotExistError):
            officeparser.parse_office(tmp_path / "missing.rtf", outputErrorToConsole=True)

    tc.assertEqual(1, len(caplog.records))
    tc.assertTrue(caplog.records[0].getMessage().startswith("[OfficeParser]: "))

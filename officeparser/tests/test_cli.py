import json
from pathlib import Path

import pytest

import officeparser
from officeparser.cli import main
from officeparser.extractors.serialization import serialize_ast

RTF = rb"{\rtf1\pard Hello{\footnote Note}\par\pard World\par}"


@pytest.fixture
def rtf_path(tmp_path: Path) -> Path:
    path = tmp_path / "letter.rtf"
    path.write_bytes(RTF)
    return path


def test_cli_outputs_full_text_by_default(capsys, rtf_path: Path) -> None:
    expected = officeparser.parse_office(rtf_path).to_text()

    exit_code = main([str(rtf_path)])
    captured = capsys.readouterr()

    assert exit_code == 0
    assert captured.out == f"{expected}\n"
    assert captured.out == "Hello\nNote\nWorld\n"


def test_cli_outputs_json_with_flag(capsys, rtf_path: Path) -> None:
    expected = serialize_ast(officeparser.parse_office(rtf_path))

    exit_code = main(["--json", str(rtf_path)])
    captured = capsys.readouterr()

    assert exit_code == 0
    payload = json.loads(captured.out.strip())
    assert payload["_type"] == "OfficeParserAST"
    assert payload["type"] == "rtf"
    assert payload == json.loads(json.dumps(expected))


def test_cli_passes_parser_options(capsys, rtf_path: Path) -> None:
    exit_code = main(["--ignoreNotes", "--newlineDelimiter=|", str(rtf_path)])
    captured = capsys.readouterr()

    assert exit_code == 0
    assert captured.out == "Hello|World\n"


def test_cli_accepts_explicit_boolean_values(capsys, rtf_path: Path) -> None:
    exit_code = main([str(rtf_path), "--ignore_notes=false", "--putNotesAtLast=true"])
    captured = capsys.readouterr()

    assert exit_code == 0
    assert captured.out == "Hello\nWorld\nNote\n"


def test_cli_warns_on_unsupported_argument(capsys, rtf_path: Path) -> None:
    exit_code = main(["--json", "--not-a-real-flag", str(rtf_path)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "warning: unsupported arguments" in captured.err
    assert "--not-a-real-flag" in captured.err
    assert captured.out == ""


def test_cli_requires_a_path(capsys) -> None:
    exit_code = main([])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "usage: officeparser" in captured.err


def test_cli_reports_parse_errors(capsys, tmp_path: Path) -> None:
    exit_code = main([str(tmp_path / "missing.docx")])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert captured.err.startswith("officeparser: [OfficeParser]: ")
    assert "could not be found" in captured.err


def test_cli_prints_usage_for_unsupported_files(capsys, tmp_path: Path) -> None:
    path = tmp_path / "data.xyz"
    path.write_bytes(b"\x00\x01 nothing to see")

    exit_code = main([str(path)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "usage: officeparser" in captured.err
    assert "supports docx, pptx, xlsx" in captured.err

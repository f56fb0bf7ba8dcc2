"""Tests for the command-line interface."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from excel2csv.cli import main, validate_input
from excel2csv.errors import InputError


def test_missing_file_option_prints_usage(capsys) -> None:
	with pytest.raises(SystemExit) as excinfo:
		main([])
	assert excinfo.value.code == 2
	assert "usage: excel2csv" in capsys.readouterr().err


def test_wrong_extension_is_rejected(tmp_path: Path, caplog) -> None:
	source = tmp_path / "book.csv"
	source.write_text("a;b\n", encoding="utf-8")

	assert main(["-f", str(source), "-o", str(tmp_path / "output")]) == 1
	assert "Input file has not a valid extension (.xlsx)" in caplog.text
	assert not (tmp_path / "output").exists()


def test_missing_source_is_rejected(tmp_path: Path, caplog) -> None:
	assert main(["-f", str(tmp_path / "nope.xlsx"), "-o", str(tmp_path / "output")]) == 1
	assert "does not exist" in caplog.text


def test_validate_input(tmp_path: Path) -> None:
	source = tmp_path / "Book.XLSX"
	source.write_bytes(b"")
	assert validate_input(str(source)) == source

	with pytest.raises(InputError):
		validate_input(str(tmp_path / "Book.xls"))
	with pytest.raises(InputError):
		validate_input(str(tmp_path / "other.xlsx"))


def test_converts_workbook_into_output_layout(make_workbook, tmp_path: Path, caplog) -> None:
	source = make_workbook({"First Sheet": [["a", 1]], "Second": [["b", 2]]}, filename="Report.XLSX")
	output = tmp_path / "output"

	assert main(["--file", str(source), "--output", str(output)]) == 0

	target = output / "Report.XLSX"
	assert sorted(p.name for p in target.iterdir()) == ["First_Sheet.csv", "Second.csv"]
	assert (target / "Second.csv").read_text(encoding="utf-8") == '"b";"2";\n'
	assert "File Report.XLSX processed" in caplog.text


def test_verbose_sets_debug_level(make_workbook, tmp_path: Path) -> None:
	source = make_workbook({"S": [["x"]]})

	assert main(["-f", str(source), "-o", str(tmp_path / "output"), "-v"]) == 0
	assert logging.getLogger("excel2csv").level == logging.DEBUG


def test_default_level_is_info(make_workbook, tmp_path: Path) -> None:
	source = make_workbook({"S": [["x"]]})

	assert main(["-f", str(source), "-o", str(tmp_path / "output")]) == 0
	assert logging.getLogger("excel2csv").level == logging.INFO


def test_corrupt_workbook_exits_with_error(tmp_path: Path, caplog) -> None:
	source = tmp_path / "broken.xlsx"
	source.write_bytes(b"garbage")

	assert main(["-f", str(source), "-o", str(tmp_path / "output")]) == 1
	assert "is not a valid workbook" in caplog.text
	assert [r.levelno for r in caplog.records if r.levelno >= logging.ERROR] == [logging.ERROR]

#!/usr/bin/env python3
import re
from pathlib import Path
from typing import Any, Iterable, List

from openpyxl.cell.read_only import EmptyCell

from .formatter import format_cell

FIELD_TEMPLATE = '"{}";'
RECORD_TERMINATOR = "\n"


def sanitize_filename(name: str) -> str:
	# ASCII \W, so accented letters are replaced too
	return re.sub(r"\W+", "_", name, flags=re.ASCII)


def ensure_dir(path: Path) -> None:
	path.mkdir(parents=True, exist_ok=True)


def output_dir_for(source: Path, output_root: Path) -> Path:
	"""Per-workbook directory, named after the source file including its extension."""
	return output_root / source.name


def is_absent(cell: Any) -> bool:
	"""Read-only worksheets pad row gaps with EmptyCell; those cells do not exist."""
	return cell is None or isinstance(cell, EmptyCell)


def format_row(cells: Iterable[Any]) -> List[str]:
	return [format_cell(cell) for cell in cells if not is_absent(cell)]


def serialize_fields(fields: Iterable[str]) -> str:
	"""Wrap every field in quotes, terminate each with ';' and the record with a newline.

	Embedded quotes and semicolons are written as-is.
	"""
	return "".join(FIELD_TEMPLATE.format(field) for field in fields) + RECORD_TERMINATOR


def serialize_row(cells: Iterable[Any]) -> str:
	return serialize_fields(format_row(cells))


def has_content(fields: List[str]) -> bool:
	"""A record is written only when at least one field renders non-empty text."""
	return any(fields)

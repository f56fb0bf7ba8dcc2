#!/usr/bin/env python3
"""
Cell display formatting.

A cell is turned into a tagged value (CellKind plus raw value plus number
format) and rendered by the function registered for its kind.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict

from openpyxl.styles.numbers import is_date_format

from .errors import NumberFormatError
from .log import get_logger
from .numfmt import GENERAL, format_general, format_value

logger = get_logger(__name__)

_TEMPORAL = (datetime.datetime, datetime.date, datetime.time, datetime.timedelta)


class CellKind(str, Enum):
	"""Semantic type of a cell value."""

	TEXT = "text"
	NUMERIC = "numeric"
	DATE = "date"
	BOOLEAN = "boolean"
	FORMULA = "formula"
	ERROR = "error"
	BLANK = "blank"


@dataclass(frozen=True)
class Cell:
	"""A cell value tagged with its kind and number format."""

	kind: CellKind
	value: Any = None
	number_format: str = GENERAL

	@classmethod
	def from_openpyxl(cls, cell: Any) -> "Cell":
		"""Build a tagged cell from an openpyxl (read-only or regular) cell."""
		value = cell.value
		number_format = getattr(cell, "number_format", None) or GENERAL
		data_type = getattr(cell, "data_type", None)

		if value is None:
			kind = CellKind.BLANK
		elif data_type == "f" or hasattr(value, "text"):
			# ArrayFormula and DataTableFormula keep their source in .text
			kind = CellKind.FORMULA
		elif data_type == "e":
			kind = CellKind.ERROR
		elif isinstance(value, bool):
			kind = CellKind.BOOLEAN
		elif isinstance(value, _TEMPORAL):
			kind = CellKind.DATE
		elif isinstance(value, (int, float, Decimal)):
			kind = CellKind.DATE if is_date_format(number_format) else CellKind.NUMERIC
		else:
			kind = CellKind.TEXT
		return cls(kind, value, number_format)


def _render_text(cell: Cell) -> str:
	return str(cell.value)


def _render_number(cell: Cell) -> str:
	return format_value(cell.value, cell.number_format)


def _render_boolean(cell: Cell) -> str:
	return "TRUE" if cell.value else "FALSE"


def _render_formula(cell: Cell) -> str:
	text = str(getattr(cell.value, "text", cell.value) or "")
	return text[1:] if text.startswith("=") else text


def _render_blank(cell: Cell) -> str:
	return ""


_RENDERERS: Dict[CellKind, Callable[[Cell], str]] = {
	CellKind.TEXT: _render_text,
	CellKind.NUMERIC: _render_number,
	CellKind.DATE: _render_number,
	CellKind.BOOLEAN: _render_boolean,
	CellKind.FORMULA: _render_formula,
	CellKind.ERROR: _render_text,
	CellKind.BLANK: _render_blank,
}


def format_cell(cell: Any) -> str:
	"""
	Return the text a spreadsheet viewer displays for a cell.

	Accepts a tagged Cell or an openpyxl cell. A number format that cannot be
	rendered falls back to the General rendering of the raw value.
	"""
	if not isinstance(cell, Cell):
		cell = Cell.from_openpyxl(cell)
	try:
		return _RENDERERS[cell.kind](cell)
	except NumberFormatError as e:
		logger.debug("Falling back to raw value for format %r: %s", cell.number_format, e)
		return format_general(cell.value)

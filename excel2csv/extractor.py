#!/usr/bin/env python3
"""
Workbook to CSV extraction using openpyxl.

Each worksheet of an .xlsx workbook is written to its own file inside the
output directory, one quoted, semicolon-delimited record per non-blank row.
A sheet whose file cannot be written is logged and skipped; the remaining
sheets are still extracted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional
from xml.etree.ElementTree import ParseError
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ._convert_impl import ensure_dir, format_row, has_content, sanitize_filename, serialize_fields
from .errors import FormatError
from .log import get_logger


@dataclass
class ExtractionOptions:
	"""Options controlling how a workbook is written out."""

	formulas: bool = False  # write formula text instead of cached results
	extension: str = ".csv"
	encoding: str = "utf-8"


@dataclass
class ExtractionSummary:
	"""Outcome of one workbook extraction."""

	source: str
	output_dir: str
	written: List[str] = field(default_factory=list)
	failed: List[str] = field(default_factory=list)

	@property
	def sheet_count(self) -> int:
		return len(self.written) + len(self.failed)


class WorkbookExtractor:
	"""Extract every sheet of a workbook into per-sheet CSV files."""

	def __init__(
		self,
		excel_file_path: str | Path,
		output_dir: str | Path,
		options: Optional[ExtractionOptions] = None,
		logger: Optional[logging.Logger] = None,
	):
		self.excel_file_path = Path(excel_file_path)
		self.output_dir = Path(output_dir)
		self.options = options or ExtractionOptions()
		self.logger = logger or get_logger(__name__)
		self.workbook: Any = None

	def __enter__(self):
		self.open_workbook()
		return self

	def __exit__(self, exc_type, exc_val, exc_tb):
		self.close_workbook()

	def open_workbook(self) -> Any:
		"""
		Load the workbook in read-only mode.

		Raises:
			FormatError: the file is not a readable .xlsx container
			OSError: the file cannot be read
		"""
		try:
			# data_only=True yields cached formula results instead of formula text
			self.workbook = load_workbook(
				filename=str(self.excel_file_path),
				read_only=True,
				data_only=not self.options.formulas,
			)
		except (BadZipFile, InvalidFileException, KeyError, ParseError) as e:
			raise FormatError(
				f"File {self.excel_file_path.name} is not a valid workbook",
				file_path=str(self.excel_file_path),
				reason=str(e),
			) from e
		return self.workbook

	def close_workbook(self) -> None:
		if self.workbook is not None:
			self.workbook.close()
			self.workbook = None

	def extract(self) -> ExtractionSummary:
		if self.workbook is None:
			self.open_workbook()
		return self.extract_workbook(self.workbook)

	def extract_workbook(self, workbook: Any) -> ExtractionSummary:
		"""Write one file per sheet of an opened workbook, in document order."""
		sheets = [workbook[name] for name in workbook.sheetnames]
		self.logger.info("File %s has %d sheets", self.excel_file_path.name, len(sheets))
		ensure_dir(self.output_dir)

		summary = ExtractionSummary(source=str(self.excel_file_path), output_dir=str(self.output_dir))
		for ws in sheets:
			self.logger.debug("Processing sheet %s of %s", ws.title, self.excel_file_path.name)
			output_path = self.output_dir / f"{sanitize_filename(ws.title)}{self.options.extension}"
			if self.extract_sheet(ws, output_path):
				summary.written.append(str(output_path))
			else:
				summary.failed.append(ws.title)
		return summary

	def extract_sheet(self, worksheet: Any, output_path: Path) -> bool:
		"""
		Write the non-blank rows of a sheet to output_path, truncating it first.

		Chart sheets hold no cells and produce an empty file. Returns False when
		the file could not be written; the error is logged and no file is left.
		"""
		iter_rows = getattr(worksheet, "iter_rows", None)
		last_row = (getattr(worksheet, "max_row", None) or 1) - 1
		try:
			with open(output_path, "w", encoding=self.options.encoding, newline="") as f:
				if iter_rows is not None:
					for row_number, row in enumerate(iter_rows()):
						fields = format_row(row)
						if has_content(fields):
							f.write(serialize_fields(fields))
						self.logger.debug("Extracted from %s %5d/%d rows", worksheet.title, row_number, last_row)
		except OSError as e:
			self.logger.error("Could not create %s: %s", output_path.name, e)
			if output_path.is_file():
				output_path.unlink()
			return False
		self.logger.info("File %s has been created", output_path.name)
		return True

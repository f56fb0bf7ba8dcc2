from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Sequence

import pytest
from openpyxl import Workbook

from excel2csv.log import PACKAGE_LOGGER


@pytest.fixture(autouse=True)
def reset_package_logger():
	"""Undo handlers and levels installed by LoggingConfig.configure()."""
	logger = logging.getLogger(PACKAGE_LOGGER)
	yield
	for handler in logger.handlers[:]:
		logger.removeHandler(handler)
	logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
	"""Save a workbook built from {sheet name: rows} and return its path."""

	def _make(sheets: Dict[str, Sequence[List[object]]], filename: str = "book.xlsx") -> Path:
		wb = Workbook()
		wb.remove(wb.active)
		for name, rows in sheets.items():
			ws = wb.create_sheet(name)
			for row in rows:
				ws.append(row)
		path = tmp_path / filename
		wb.save(path)
		return path

	return _make

#!/usr/bin/env python3
"""
Exception classes for the excel2csv package.

Hierarchy:
	Excel2CsvError (base)
	├── InputError         source path missing or not an .xlsx file
	├── FormatError        source bytes are not a readable workbook container
	└── NumberFormatError  a cell's number format pattern cannot be rendered

Per-sheet write failures are plain OSError and are handled by the sheet extractor.
"""

from typing import Any, Dict, Optional


class Excel2CsvError(Exception):
	"""Base exception for all excel2csv errors."""

	def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
		super().__init__(message)
		self.message = message
		self.details = details or {}

	def __str__(self) -> str:
		if not self.details:
			return self.message
		extra = ", ".join(f"{k}={v}" for k, v in self.details.items())
		return f"{self.message} ({extra})"


class InputError(Excel2CsvError):
	"""Raised when the source file does not exist or has the wrong extension."""

	def __init__(self, message: str, file_path: Optional[str] = None):
		super().__init__(message, {"file_path": file_path} if file_path else None)
		self.file_path = file_path


class FormatError(Excel2CsvError):
	"""Raised when the source file cannot be parsed as a workbook."""

	def __init__(self, message: str, file_path: Optional[str] = None, reason: Optional[str] = None):
		details: Dict[str, Any] = {}
		if file_path:
			details["file_path"] = file_path
		if reason:
			details["reason"] = reason
		super().__init__(message, details)
		self.file_path = file_path


class NumberFormatError(Excel2CsvError):
	"""Raised when a number format pattern is malformed or unsupported."""

	def __init__(self, message: str, pattern: Optional[str] = None):
		super().__init__(message, {"pattern": pattern} if pattern is not None else None)
		self.pattern = pattern

#!/usr/bin/env python3
"""
Logging setup for excel2csv.

The CLI builds one LoggingConfig and calls configure() once. Only the package
logger ("excel2csv") is touched; the root logger is left alone so embedding
applications keep their own configuration.

Usage:
	from excel2csv.log import LoggingConfig, get_logger

	logger = LoggingConfig(verbose=True).configure()
	get_logger(__name__).debug("Processing sheet %s", name)
"""

import logging
import sys
from dataclasses import dataclass
from typing import Optional, TextIO

PACKAGE_LOGGER = "excel2csv"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
	"""Return a logger below the package logger."""
	if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
		return logging.getLogger(name)
	return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


@dataclass
class LoggingConfig:
	"""Verbosity and output stream for the package logger."""

	verbose: bool = False
	stream: Optional[TextIO] = None
	format_string: str = DEFAULT_FORMAT

	@property
	def level(self) -> int:
		return logging.DEBUG if self.verbose else logging.INFO

	def configure(self) -> logging.Logger:
		logger = logging.getLogger(PACKAGE_LOGGER)
		logger.setLevel(self.level)

		# Replace handlers from a previous configure() call
		for handler in logger.handlers[:]:
			if getattr(handler, "_excel2csv", False):
				logger.removeHandler(handler)

		handler = logging.StreamHandler(self.stream or sys.stderr)
		handler.setLevel(self.level)
		handler.setFormatter(logging.Formatter(self.format_string))
		handler._excel2csv = True  # type: ignore[attr-defined]
		logger.addHandler(handler)
		return logger

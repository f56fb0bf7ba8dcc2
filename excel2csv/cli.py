#!/usr/bin/env python3
"""
Command-line interface for the excel2csv package.
Usage:
  python -m excel2csv -f <excel_file> [-v] [-o OUTPUT] [--formulas]
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from ._convert_impl import ensure_dir, output_dir_for
from .errors import FormatError, InputError
from .extractor import ExtractionOptions, WorkbookExtractor
from .log import LoggingConfig

FILE_EXTENSION = ".xlsx"
DEFAULT_OUTPUT_ROOT = "output"


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog='excel2csv', description='Convert every sheet of an Excel workbook into a CSV file')
	parser.add_argument('-f', '--file', required=True, help='Excel file to convert to CSV')
	parser.add_argument('-v', '--verbose', action='store_true', help='See verbose log')
	parser.add_argument('-o', '--output', default=DEFAULT_OUTPUT_ROOT,
					   help=f'Root output directory (default: {DEFAULT_OUTPUT_ROOT})')
	parser.add_argument('--formulas', action='store_true', help='Write formula text instead of calculated values')
	return parser


def validate_input(file_path: str) -> Path:
	"""Check that the source exists and carries the .xlsx extension (any case)."""
	path = Path(file_path)
	if path.suffix.lower() != FILE_EXTENSION:
		raise InputError(f"Input file has not a valid extension ({FILE_EXTENSION})", file_path=str(path))
	if not path.is_file():
		raise InputError(f"Input file {path} does not exist", file_path=str(path))
	return path


def main(argv: Optional[List[str]] = None) -> int:
	args = build_parser().parse_args(argv)
	logger = LoggingConfig(verbose=args.verbose).configure()

	try:
		source = validate_input(args.file)
	except InputError as e:
		logger.error(e.message)
		return 1

	output_dir = output_dir_for(source, Path(args.output))
	ensure_dir(output_dir)
	logger.debug("Created directory for output files in %s", output_dir.resolve())

	options = ExtractionOptions(formulas=args.formulas)
	try:
		with WorkbookExtractor(source, output_dir, options=options, logger=logger) as extractor:
			summary = extractor.extract()
	except FormatError as e:
		logger.error(str(e))
		return 1
	except OSError as e:
		logger.error("Could not read %s: %s", source.name, e)
		return 1

	if summary.failed:
		logger.error("Sheets not written: %s", ", ".join(summary.failed))
	logger.info("File %s processed, %d of %d sheets written to %s",
				source.name, len(summary.written), summary.sheet_count, output_dir)
	return 0


if __name__ == "__main__":
	sys.exit(main())

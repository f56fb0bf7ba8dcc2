from ._convert_impl import sanitize_filename, serialize_row
from .errors import Excel2CsvError, FormatError, InputError, NumberFormatError
from .extractor import ExtractionOptions, ExtractionSummary, WorkbookExtractor
from .formatter import Cell, CellKind, format_cell
from .numfmt import format_value

__all__ = [
	"Cell",
	"CellKind",
	"Excel2CsvError",
	"ExtractionOptions",
	"ExtractionSummary",
	"FormatError",
	"InputError",
	"NumberFormatError",
	"WorkbookExtractor",
	"format_cell",
	"format_value",
	"sanitize_filename",
	"serialize_row",
]

__version__ = "0.1.0"

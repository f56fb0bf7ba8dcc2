"""Tests for Excel number format rendering."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from excel2csv.errors import NumberFormatError
from excel2csv.numfmt import format_general, format_value, parse_pattern


@pytest.mark.parametrize(
	("value", "expected"),
	[
		(42, "42"),
		(42.0, "42"),
		(-7, "-7"),
		(3.14159, "3.14159"),
		(0.1 + 0.2, "0.3"),
		(0.000015, "0.000015"),
		(123456789012, "1.23457E+11"),
		(1e-10, "1E-10"),
		(0.0, "0"),
		(1234567890.5, "1234567891"),
		(-2.5e-5, "-0.000025"),
	],
)
def test_general(value, expected) -> None:
	assert format_general(value) == expected
	assert format_value(value, "General") == expected


@pytest.mark.parametrize(
	("value", "pattern", "expected"),
	[
		(1234.5, "0.00", "1234.50"),
		(1234.5, "#,##0.00", "1,234.50"),
		(0, "#,##0.00", "0.00"),
		(2.675, "0.00", "2.68"),
		(5, "00000", "00005"),
		(0.5, "#.00", ".50"),
		(-5, "0.0", "-5.0"),
		(1234567, "#,##0,", "1,235"),
		(0.256, "0%", "26%"),
		(0.5, "0.0%", "50.0%"),
		(12345, "0.00E+00", "1.23E+04"),
		(0.00012, "0.0E+00", "1.2E-04"),
		(12345, "##0.0E+0", "12.3E+3"),
		(1.5, "# ?/?", "1 1/2"),
		(0.25, "?/?", "1/4"),
		(1.25, "# ?/8", "1 2/8"),
		(5551234567, "(###) ###-####", "(555) 123-4567"),
	],
)
def test_number_patterns(value, pattern, expected) -> None:
	assert format_value(value, pattern) == expected


def test_currency_and_literals() -> None:
	assert format_value(1234.5, '"$"#,##0.00') == "$1,234.50"
	assert format_value(1234.5, "[$€-407]#,##0.00") == "€1,234.50"
	assert format_value(3, '0 "kg"') == "3 kg"
	assert format_value(3, "[Red]0.00") == "3.00"


def test_sections_by_sign() -> None:
	pattern = '#,##0_);(#,##0);"zero"'
	assert format_value(1234, pattern) == "1,234 "
	assert format_value(-1234, pattern) == "(1,234)"
	assert format_value(0, pattern) == "zero"


def test_conditional_sections() -> None:
	pattern = '[>=100]"big";[<0]"negative";0'
	assert format_value(150, pattern) == "big"
	assert format_value(-3, pattern) == "negative"
	assert format_value(7, pattern) == "7"


def test_hidden_format_renders_nothing() -> None:
	assert format_value(12, ";;;") == ""


def test_text_values() -> None:
	assert format_value("abc", "General") == "abc"
	assert format_value("abc", '"pre-"@') == "pre-abc"
	assert format_value("abc", '0;-0;0;"<"@">"') == "<abc>"


def test_booleans_and_none() -> None:
	assert format_value(True, "General") == "TRUE"
	assert format_value(False, "0.00") == "FALSE"
	assert format_value(None, "0.00") == ""


@pytest.mark.parametrize(
	("value", "pattern", "expected"),
	[
		(datetime(2024, 1, 15), "yyyy-mm-dd", "2024-01-15"),
		(datetime(2024, 1, 15), "dd/mm/yy", "15/01/24"),
		(date(2024, 3, 5), "mmmm d, yyyy", "March 5, 2024"),
		(date(2024, 3, 5), "d-mmm-yy", "5-Mar-24"),
		(datetime(2024, 1, 15), "dddd", "Monday"),
		(datetime(2024, 1, 15, 13, 5, 9), "h:mm AM/PM", "1:05 PM"),
		(datetime(2024, 1, 15, 9, 5, 9), "hh:mm:ss", "09:05:09"),
		(datetime(2024, 1, 15, 9, 5, 9, 250000), "mm:ss.00", "05:09.25"),
		(time(13, 5, 9), "h:mm:ss", "13:05:09"),
		(timedelta(hours=26, minutes=3), "[h]:mm", "26:03"),
		(45306, "mm/dd/yyyy", "01/15/2024"),
		(45306.5, "yyyy-mm-dd hh:mm", "2024-01-15 12:00"),
		(datetime(2024, 1, 15), "mm-dd-yy", "1/15/24"),
		(45306, "mm-dd-yy", "1/15/24"),
	],
)
def test_date_patterns(value, pattern, expected) -> None:
	assert format_value(value, pattern) == expected


def test_date_with_number_pattern_uses_serial() -> None:
	assert format_value(datetime(2024, 1, 15), "0") == "45306"


def test_malformed_patterns_raise() -> None:
	with pytest.raises(NumberFormatError):
		format_value(1, '"unterminated')
	with pytest.raises(NumberFormatError):
		format_value(1, "0;0;0;@;0")
	with pytest.raises(NumberFormatError):
		format_value(-1, "yyyy-mm-dd")


def test_parse_pattern_is_cached() -> None:
	assert parse_pattern("0.00") is parse_pattern("0.00")

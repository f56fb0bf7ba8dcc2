#!/usr/bin/env python3
"""
Excel number format rendering.

Turns a cell value plus its number format pattern (as exposed by openpyxl in
``cell.number_format``) into the text a spreadsheet viewer shows. Rendering
follows en-US conventions: "." decimal point, "," thousands separator and
English month/day names.

Supported pattern features:
- up to four sections (positive;negative;zero;text) and [>=100] style conditions
- literals ("text", \\x), _x padding, *x fill (dropped), colors (dropped), [$€-407]
- digit placeholders 0 # ?, decimal point, thousands separator, trailing-comma scaling
- percent, scientific (0.00E+00), simple fractions (# ?/? and # ?/8)
- date/time codes y m d h s, AM/PM, A/P, fractional seconds, elapsed [h] [m] [s]
- General and @
"""

from __future__ import annotations

import datetime
import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from fractions import Fraction
from functools import lru_cache
from typing import Any, List, Optional, Set, Tuple

from openpyxl.styles.numbers import BUILTIN_FORMATS
from openpyxl.utils.datetime import from_excel, to_excel

from .errors import NumberFormatError

GENERAL = "General"

# openpyxl names built-in formats by their stored code, not by how Excel displays them
DISPLAY_FORMATS = {
	BUILTIN_FORMATS[14]: "m/d/yy",
}

MONTH_NAMES = (
	"January", "February", "March", "April", "May", "June",
	"July", "August", "September", "October", "November", "December",
)
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Token kinds
LIT = "lit"
DIGIT = "digit"
POINT = "point"
COMMA = "comma"
PERCENT = "percent"
EXP = "exp"
SLASH = "slash"
TEXT = "text"
GENERAL_TOKEN = "general"
DATE = "date"
ELAPSED = "elapsed"
AMPM = "ampm"

_CONDITION = re.compile(r"^(<=|>=|<>|<|>|=)\s*(-?\d+(?:\.\d+)?)$")
_ELAPSED = re.compile(r"^(h+|m+|s+)$", re.IGNORECASE)
_DATE_LETTERS = "ymdhs"

# Excel's time-only values sit on day zero, which datetime cannot express
_DAY_ZERO = datetime.date(1899, 12, 31)


@dataclass(frozen=True)
class Token:
	kind: str
	text: str


@dataclass(frozen=True)
class Section:
	tokens: Tuple[Token, ...]
	condition: Optional[Tuple[str, float]] = None

	@property
	def is_date(self) -> bool:
		return any(t.kind in (DATE, ELAPSED, AMPM) for t in self.tokens)

	@property
	def has_text(self) -> bool:
		return any(t.kind == TEXT for t in self.tokens)



# ---------------------------------------------------------------------------
# Pattern parsing
# ---------------------------------------------------------------------------

def _split_sections(pattern: str) -> List[str]:
	sections: List[str] = []
	current: List[str] = []
	i = 0
	while i < len(pattern):
		ch = pattern[i]
		if ch == '"':
			end = pattern.find('"', i + 1)
			if end < 0:
				raise NumberFormatError("Unterminated string literal", pattern)
			current.append(pattern[i:end + 1])
			i = end + 1
			continue
		if ch in "\\_*" and i + 1 < len(pattern):
			current.append(pattern[i:i + 2])
			i += 2
			continue
		if ch == "[":
			end = pattern.find("]", i)
			if end < 0:
				raise NumberFormatError("Unterminated bracket", pattern)
			current.append(pattern[i:end + 1])
			i = end + 1
			continue
		if ch == ";":
			sections.append("".join(current))
			current = []
		else:
			current.append(ch)
		i += 1
	sections.append("".join(current))
	return sections


def _tokenize(section: str) -> Section:
	tokens: List[Token] = []
	condition: Optional[Tuple[str, float]] = None
	i = 0
	n = len(section)
	while i < n:
		ch = section[i]
		lower = ch.lower()
		if ch == '"':
			end = section.find('"', i + 1)
			tokens.append(Token(LIT, section[i + 1:end]))
			i = end + 1
		elif ch == "\\":
			tokens.append(Token(LIT, section[i + 1:i + 2]))
			i += 2
		elif ch == "_":
			tokens.append(Token(LIT, " "))
			i += 2
		elif ch == "*":
			i += 2
		elif ch == "[":
			end = section.find("]", i)
			body = section[i + 1:end]
			i = end + 1
			if body.startswith("$"):
				symbol = body[1:].split("-", 1)[0]
				if symbol:
					tokens.append(Token(LIT, symbol))
			elif _ELAPSED.match(body):
				tokens.append(Token(ELAPSED, body.lower()))
			else:
				match = _CONDITION.match(body.strip())
				if match:
					condition = (match.group(1), float(match.group(2)))
				# anything else is a color or locale tag
		elif section[i:i + 7].lower() == "general":
			tokens.append(Token(GENERAL_TOKEN, GENERAL))
			i += 7
		elif section[i:i + 5].upper() == "AM/PM":
			tokens.append(Token(AMPM, section[i:i + 5]))
			i += 5
		elif section[i:i + 3].upper() == "A/P":
			tokens.append(Token(AMPM, section[i:i + 3]))
			i += 3
		elif ch in "0#?":
			tokens.append(Token(DIGIT, ch))
			i += 1
		elif ch == ".":
			tokens.append(Token(POINT, ch))
			i += 1
		elif ch == ",":
			tokens.append(Token(COMMA, ch))
			i += 1
		elif ch == "%":
			tokens.append(Token(PERCENT, ch))
			i += 1
		elif lower == "e" and i + 1 < n and section[i + 1] in "+-":
			tokens.append(Token(EXP, section[i:i + 2]))
			i += 2
		elif ch == "@":
			tokens.append(Token(TEXT, ch))
			i += 1
		elif ch == "/":
			tokens.append(Token(SLASH, ch))
			i += 1
		elif lower in _DATE_LETTERS:
			j = i
			while j < n and section[j].lower() == lower:
				j += 1
			tokens.append(Token(DATE, section[i:j].lower()))
			i = j
		else:
			tokens.append(Token(LIT, ch))
			i += 1
	return Section(tuple(tokens), condition)


@lru_cache(maxsize=512)
def parse_pattern(pattern: str) -> Tuple[Section, ...]:
	"""Split a number format pattern into tokenized sections."""
	raw_sections = _split_sections(pattern)
	if len(raw_sections) > 4:
		raise NumberFormatError("Too many sections", pattern)
	return tuple(_tokenize(s) for s in raw_sections)


# ---------------------------------------------------------------------------
# General
# ---------------------------------------------------------------------------

def format_general(value: Any) -> str:
	"""Render a value the way the General format shows it."""
	if value is None:
		return ""
	if isinstance(value, bool):
		return "TRUE" if value else "FALSE"
	if isinstance(value, int) and abs(value) < 10 ** 11:
		return str(value)
	if isinstance(value, (int, float, Decimal)):
		number = float(value)
		if number == 0:
			return "0"
		if not math.isfinite(number):
			return str(value)
		magnitude = abs(number)
		if magnitude >= 1e11 or magnitude < 1e-9:
			mantissa, exponent = f"{number:.5E}".split("E")
			if "." in mantissa:
				mantissa = mantissa.rstrip("0").rstrip(".")
			return f"{mantissa}E{int(exponent):+03d}"
		exact = _to_decimal(number)
		text = format(_quantize(exact, 9 - exact.adjusted()), "f")
		if "." in text:
			text = text.rstrip("0").rstrip(".")
		return text
	if isinstance(value, datetime.datetime):
		return value.isoformat(sep=" ")
	if isinstance(value, (datetime.date, datetime.time)):
		return value.isoformat()
	return str(value)


# ---------------------------------------------------------------------------
# Section selection
# ---------------------------------------------------------------------------

def _matches(condition: Tuple[str, float], number: float) -> bool:
	op, threshold = condition
	return {
		"<": number < threshold,
		"<=": number <= threshold,
		">": number > threshold,
		">=": number >= threshold,
		"=": number == threshold,
		"<>": number != threshold,
	}[op]


def _pick_number_section(sections: Tuple[Section, ...], number: float) -> Tuple[Section, bool]:
	"""Return the section for a number and whether a minus sign must be added."""
	numeric = sections[:3]
	if any(s.condition for s in numeric):
		fallback: Optional[Section] = None
		for section in numeric:
			if section.condition is None:
				fallback = fallback or section
				continue
			if _matches(section.condition, number):
				op, threshold = section.condition
				explicit_negative = op in ("<", "<=") and threshold <= 0
				return section, number < 0 and not explicit_negative
		chosen = fallback or numeric[-1]
		return chosen, number < 0
	if number < 0:
		if len(numeric) >= 2:
			return numeric[1], False
		return numeric[0], True
	if number == 0 and len(numeric) >= 3:
		return numeric[2], False
	return numeric[0], False


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

def _quantize(value: Decimal, places: int) -> Decimal:
	return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def _to_decimal(number: Any) -> Decimal:
	if isinstance(number, Decimal):
		return number
	if isinstance(number, int):
		return Decimal(number)
	return Decimal(repr(float(number)))


def _filler(placeholder: str) -> str:
	return {"0": "0", "?": " "}.get(placeholder, "")


def _group_thousands(digits: str) -> str:
	head = len(digits) % 3 or 3
	groups = [digits[:head]] + [digits[i:i + 3] for i in range(head, len(digits), 3)]
	return ",".join(g for g in groups if g)


def _classify_commas(tokens: Tuple[Token, ...]) -> Tuple[Set[int], Set[int]]:
	"""Split comma tokens into thousands separators and trailing scaling commas."""
	separators: Set[int] = set()
	scaling: Set[int] = set()
	for index, token in enumerate(tokens):
		if token.kind != COMMA or not any(t.kind == DIGIT for t in tokens[:index]):
			continue
		rest = tokens[index + 1:]
		next_kind = rest[0].kind if rest else None
		if next_kind in (COMMA, POINT, None) or not any(t.kind == DIGIT for t in rest):
			scaling.add(index)
		else:
			separators.add(index)
	return separators, scaling


def _render_fixed(tokens: Tuple[Token, ...], value: Decimal) -> str:
	"""Render a non-negative value through plain digit placeholders."""
	separators, scaling = _classify_commas(tokens)
	scale = len(scaling)
	point_index = next((i for i, t in enumerate(tokens) if t.kind == POINT), None)
	int_slots = [i for i, t in enumerate(tokens) if t.kind == DIGIT and (point_index is None or i < point_index)]
	frac_slots = [i for i, t in enumerate(tokens) if t.kind == DIGIT and point_index is not None and i > point_index]

	percent = sum(1 for t in tokens if t.kind == PERCENT)
	value = value.scaleb(2 * percent - 3 * scale)
	rounded = _quantize(value, len(frac_slots))
	int_digits, _, frac_digits = format(rounded, "f").partition(".")
	if int_digits == "0":
		int_digits = ""

	assigned = {}
	if separators:
		zeros = sum(1 for i in int_slots if tokens[i].text == "0")
		grouped = _group_thousands(int_digits.rjust(zeros, "0")) if (int_digits or zeros) else ""
		for position, slot in enumerate(int_slots):
			assigned[slot] = grouped if position == 0 else ""
	else:
		remaining = int_digits
		for position in range(len(int_slots) - 1, -1, -1):
			slot = int_slots[position]
			if position == 0:
				assigned[slot] = remaining or _filler(tokens[slot].text)
			elif remaining:
				assigned[slot] = remaining[-1]
				remaining = remaining[:-1]
			else:
				assigned[slot] = _filler(tokens[slot].text)

	frac_chars = list(frac_digits)
	for position in range(len(frac_slots) - 1, -1, -1):
		placeholder = tokens[frac_slots[position]].text
		if frac_chars[position] != "0" or placeholder == "0":
			break
		frac_chars[position] = _filler(placeholder)
	for position, slot in enumerate(frac_slots):
		assigned[slot] = frac_chars[position]

	out: List[str] = []
	for index, token in enumerate(tokens):
		if token.kind == DIGIT:
			out.append(assigned[index])
		elif token.kind == POINT:
			if index == point_index and not int_slots:
				out.append(int_digits)
			out.append(".")
		elif token.kind == COMMA:
			if index not in separators and index not in scaling:
				out.append(token.text)
		elif token.kind in (LIT, PERCENT, SLASH):
			out.append(token.text)
		elif token.kind == GENERAL_TOKEN:
			out.append(format_general(value))
	return "".join(out)


def _render_scientific(tokens: Tuple[Token, ...], value: Decimal) -> str:
	exp_index = next(i for i, t in enumerate(tokens) if t.kind == EXP)
	mantissa_tokens = tokens[:exp_index]
	exponent_tokens = tokens[exp_index + 1:]
	point_index = next((i for i, t in enumerate(mantissa_tokens) if t.kind == POINT), len(mantissa_tokens))
	int_placeholders = [t.text for t in mantissa_tokens[:point_index] if t.kind == DIGIT]
	frac_places = sum(1 for t in mantissa_tokens[point_index:] if t.kind == DIGIT)
	int_count = max(len(int_placeholders), 1)

	if value == 0:
		exponent = 0
	else:
		magnitude = value.adjusted()
		if int_count > 1 and "#" in int_placeholders:
			exponent = (magnitude // int_count) * int_count
		else:
			exponent = magnitude - (int_count - 1)
	mantissa = _quantize(value.scaleb(-exponent), frac_places)
	if value != 0 and mantissa >= Decimal(10) ** int_count:
		exponent += int_count if "#" in int_placeholders and int_count > 1 else 1
		mantissa = _quantize(value.scaleb(-exponent), frac_places)

	head = _render_fixed(mantissa_tokens, mantissa)
	marker = tokens[exp_index].text
	width = sum(1 for t in exponent_tokens if t.kind == DIGIT and t.text == "0")
	sign = "-" if exponent < 0 else ("+" if marker[1] == "+" else "")
	tail = "".join(t.text for t in exponent_tokens if t.kind == LIT)
	return f"{head}{marker[0]}{sign}{str(abs(exponent)).zfill(width)}{tail}"


def _render_fraction(tokens: Tuple[Token, ...], value: Decimal) -> str:
	slash = next(i for i, t in enumerate(tokens) if t.kind == SLASH)

	den_end = slash + 1
	while den_end < len(tokens) and (tokens[den_end].kind == DIGIT or tokens[den_end].text.isdigit()):
		den_end += 1
	den_text = "".join(t.text for t in tokens[slash + 1:den_end])
	if not den_text:
		raise NumberFormatError("Fraction without denominator")

	num_start = slash
	while num_start > 0 and tokens[num_start - 1].kind == DIGIT:
		num_start -= 1
	int_tokens = [t for t in tokens[:num_start] if t.kind == DIGIT]
	prefix = "".join(t.text for t in tokens[:num_start] if t.kind == LIT and not t.text.isspace())
	suffix = "".join(t.text for t in tokens[den_end:] if t.kind == LIT)

	whole = int(value) if int_tokens else 0
	remainder = Fraction(value) - whole
	if den_text[0] in "123456789" and den_text.isdigit():
		denominator = int(den_text)
		numerator = int(_quantize(Decimal(remainder.numerator * denominator) / Decimal(remainder.denominator), 0))
	else:
		approx = remainder.limit_denominator(10 ** len(den_text) - 1)
		numerator, denominator = approx.numerator, approx.denominator
	if int_tokens and numerator == denominator:
		whole += 1
		numerator = 0

	if numerator == 0:
		return f"{prefix}{whole}{suffix}"
	fraction = f"{numerator}/{denominator}"
	if whole:
		return f"{prefix}{whole} {fraction}{suffix}"
	return f"{prefix}{fraction}{suffix}"


def _format_number(number: Any, section: Section, minus: bool) -> str:
	tokens = section.tokens
	value = abs(_to_decimal(number))
	kinds = {t.kind for t in tokens}
	if EXP in kinds:
		body = _render_scientific(tokens, value)
	elif SLASH in kinds and DIGIT in kinds:
		body = _render_fraction(tokens, value)
	else:
		body = _render_fixed(tokens, value)
	return f"-{body}" if minus else body


# ---------------------------------------------------------------------------
# Dates and times
# ---------------------------------------------------------------------------

def _serial_to_datetime(serial: float) -> datetime.datetime:
	if serial < 0:
		raise NumberFormatError("Negative date serial")
	value = from_excel(serial)
	if isinstance(value, datetime.time):
		return datetime.datetime.combine(_DAY_ZERO, value)
	return value


def _normalize_temporal(value: Any) -> Tuple[datetime.datetime, float]:
	"""Return a datetime plus the Excel serial for a date-like or numeric value."""
	if isinstance(value, datetime.datetime):
		return value, to_excel(value)
	if isinstance(value, datetime.date):
		moment = datetime.datetime.combine(value, datetime.time())
		return moment, to_excel(moment)
	if isinstance(value, datetime.time):
		return datetime.datetime.combine(_DAY_ZERO, value), to_excel(value)
	if isinstance(value, datetime.timedelta):
		serial = to_excel(value)
		return _serial_to_datetime(serial), serial
	serial = float(value)
	return _serial_to_datetime(serial), serial


def _second_places(tokens: Tuple[Token, ...]) -> Tuple[Optional[int], int]:
	"""Locate a fractional-seconds point (ss.00) and its number of digits."""
	for index, token in enumerate(tokens):
		if token.kind == POINT and index > 0:
			places = 0
			for follower in tokens[index + 1:]:
				if follower.kind != DIGIT or follower.text != "0":
					break
				places += 1
			if places:
				return index, min(places, 3)
	return None, 0


def _round_datetime(moment: datetime.datetime, places: int) -> datetime.datetime:
	unit = 10 ** (6 - places)
	rounded = (moment.microsecond + unit // 2) // unit * unit
	return moment.replace(microsecond=0) + datetime.timedelta(microseconds=rounded)


def _resolve_minutes(tokens: Tuple[Token, ...]) -> List[bool]:
	"""Flag each m/mm date token that means minutes rather than month."""
	flags = [False] * len(tokens)
	codes = [(i, t) for i, t in enumerate(tokens) if t.kind in (DATE, ELAPSED)]
	for position, (index, token) in enumerate(codes):
		if token.kind != DATE or token.text[0] != "m" or len(token.text) > 2:
			continue
		previous = codes[position - 1][1] if position > 0 else None
		following = codes[position + 1][1] if position + 1 < len(codes) else None
		after_hour = previous is not None and previous.text.strip("[]")[0] == "h"
		before_second = following is not None and following.text.strip("[]")[0] == "s"
		flags[index] = after_hour or before_second
	return flags


def _format_date(value: Any, section: Section) -> str:
	tokens = section.tokens
	moment, serial = _normalize_temporal(value)
	fraction_point, places = _second_places(tokens)
	moment = _round_datetime(moment, places)
	scale = 10 ** places
	total = Decimal(repr(serial * 86400 * scale)).quantize(Decimal(1), rounding=ROUND_HALF_UP) / scale
	elapsed_seconds = int(total)
	fraction = moment.microsecond

	twelve_hour = any(t.kind == AMPM for t in tokens)
	minute_flags = _resolve_minutes(tokens)
	elapsed_unit = next((t.text[0] for t in tokens if t.kind == ELAPSED), None)

	if elapsed_unit is not None:
		minute = (elapsed_seconds // 60) % 60
		second = elapsed_seconds % 60
	else:
		minute = moment.minute
		second = moment.second

	out: List[str] = []
	skip_until = -1
	for index, token in enumerate(tokens):
		if index <= skip_until:
			continue
		code = token.text
		if token.kind == ELAPSED:
			width = len(code)
			if code[0] == "h":
				amount = elapsed_seconds // 3600
			elif code[0] == "m":
				amount = elapsed_seconds // 60
			else:
				amount = elapsed_seconds
			out.append(str(amount).zfill(width))
		elif token.kind == DATE:
			letter = code[0]
			if letter == "y":
				out.append(f"{moment.year:04d}" if len(code) > 2 else f"{moment.year % 100:02d}")
			elif letter == "m" and minute_flags[index]:
				out.append(f"{minute:02d}" if len(code) == 2 else str(minute))
			elif letter == "m":
				if len(code) == 1:
					out.append(str(moment.month))
				elif len(code) == 2:
					out.append(f"{moment.month:02d}")
				elif len(code) == 3:
					out.append(MONTH_NAMES[moment.month - 1][:3])
				elif len(code) == 5:
					out.append(MONTH_NAMES[moment.month - 1][0])
				else:
					out.append(MONTH_NAMES[moment.month - 1])
			elif letter == "d":
				if len(code) == 1:
					out.append(str(moment.day))
				elif len(code) == 2:
					out.append(f"{moment.day:02d}")
				elif len(code) == 3:
					out.append(DAY_NAMES[moment.weekday()][:3])
				else:
					out.append(DAY_NAMES[moment.weekday()])
			elif letter == "h":
				hour = moment.hour
				if twelve_hour:
					hour = hour % 12 or 12
				out.append(f"{hour:02d}" if len(code) > 1 else str(hour))
			elif letter == "s":
				out.append(f"{second:02d}" if len(code) > 1 else str(second))
		elif token.kind == AMPM:
			morning = moment.hour < 12
			if code.upper() == "AM/PM":
				out.append("AM" if morning else "PM")
			else:
				marker = "A" if morning else "P"
				out.append(marker.lower() if code[0].islower() else marker)
		elif index == fraction_point:
			out.append("." + f"{fraction:06d}"[:places])
			skip_until = index + places
		elif token.kind in (TEXT, GENERAL_TOKEN):
			continue
		else:
			out.append(code)
	return "".join(out)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _format_text(value: str, sections: Tuple[Section, ...]) -> str:
	if len(sections) == 4:
		section: Optional[Section] = sections[3]
	else:
		section = next((s for s in sections if s.has_text), None)
	if section is None:
		return value
	return "".join(value if t.kind == TEXT else t.text for t in section.tokens if t.kind in (TEXT, LIT))


def format_value(value: Any, pattern: Optional[str] = None) -> str:
	"""
	Render a value through an Excel number format pattern.

	Raises NumberFormatError when the pattern cannot be applied to the value.
	"""
	if value is None:
		return ""
	if isinstance(value, bool):
		return "TRUE" if value else "FALSE"
	pattern = pattern or GENERAL
	pattern = DISPLAY_FORMATS.get(pattern, pattern)
	try:
		sections = parse_pattern(pattern)
		if isinstance(value, str):
			return _format_text(value, sections)

		temporal = isinstance(value, (datetime.datetime, datetime.date, datetime.time, datetime.timedelta))
		if temporal:
			section = sections[0]
			if section.is_date:
				return _format_date(value, section)
			value = to_excel(value)

		section, minus = _pick_number_section(sections, value)
		if section.is_date:
			if minus or value < 0:
				raise NumberFormatError("Dates cannot be negative", pattern)
			return _format_date(value, section)
		if any(t.kind == GENERAL_TOKEN for t in section.tokens):
			body = "".join(
				format_general(abs(value)) if t.kind == GENERAL_TOKEN else t.text
				for t in section.tokens if t.kind in (GENERAL_TOKEN, LIT)
			)
			return f"-{body}" if minus else body
		if not any(t.kind == DIGIT for t in section.tokens):
			# literal-only sections such as "-" or the hidden ";;;" format
			literal = "".join(t.text for t in section.tokens if t.kind in (LIT, PERCENT, COMMA, POINT, SLASH))
			return literal if literal or len(sections) > 1 else format_general(value)
		return _format_number(value, section, minus)
	except NumberFormatError:
		raise
	except (ArithmeticError, InvalidOperation, IndexError, KeyError, ValueError, OverflowError, TypeError) as e:
		raise NumberFormatError(f"Cannot render value with pattern: {e}", pattern) from e

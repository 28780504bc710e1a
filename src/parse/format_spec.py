"""Parser for printf-style format templates.

The grammar is the ``java.util.Formatter`` family::

    %[argument_index$][flags][width][.precision][t|T]conversion

Only the syntax is validated here. Matching the parsed specifiers against
call arguments happens in ``contract.matching``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class ConversionCategory(str, Enum):
    """Value category a conversion expects from its argument."""

    GENERAL = "general"
    BOOLEAN = "boolean"
    CHARACTER = "character"
    INTEGER = "integer"
    FLOATING_POINT = "floating_point"
    DATE_TIME = "date_time"
    PERCENT_LITERAL = "percent_literal"
    LINE_SEPARATOR = "line_separator"


CONVERSION_CATEGORIES: dict[str, ConversionCategory] = {
    "b": ConversionCategory.BOOLEAN,
    "B": ConversionCategory.BOOLEAN,
    "h": ConversionCategory.GENERAL,
    "H": ConversionCategory.GENERAL,
    "s": ConversionCategory.GENERAL,
    "S": ConversionCategory.GENERAL,
    "c": ConversionCategory.CHARACTER,
    "C": ConversionCategory.CHARACTER,
    "d": ConversionCategory.INTEGER,
    "o": ConversionCategory.INTEGER,
    "x": ConversionCategory.INTEGER,
    "X": ConversionCategory.INTEGER,
    "e": ConversionCategory.FLOATING_POINT,
    "E": ConversionCategory.FLOATING_POINT,
    "f": ConversionCategory.FLOATING_POINT,
    "g": ConversionCategory.FLOATING_POINT,
    "G": ConversionCategory.FLOATING_POINT,
    "a": ConversionCategory.FLOATING_POINT,
    "A": ConversionCategory.FLOATING_POINT,
    "t": ConversionCategory.DATE_TIME,
    "T": ConversionCategory.DATE_TIME,
    "%": ConversionCategory.PERCENT_LITERAL,
    "n": ConversionCategory.LINE_SEPARATOR,
}

NON_CONSUMING = frozenset(
    {ConversionCategory.PERCENT_LITERAL, ConversionCategory.LINE_SEPARATOR}
)

DATE_TIME_SUFFIXES = frozenset("HIklMSLNpzZsQBbhAaCYyjmdeRTrDFc")

_NO_PRECISION = frozenset(
    {
        ConversionCategory.CHARACTER,
        ConversionCategory.INTEGER,
        ConversionCategory.DATE_TIME,
        ConversionCategory.LINE_SEPARATOR,
        ConversionCategory.PERCENT_LITERAL,
    }
)

# Flags each conversion accepts, keyed by lower-case conversion letter.
_ALLOWED_FLAGS: dict[str, str] = {
    "b": "-",
    "h": "-",
    "s": "-#",
    "c": "-",
    "d": "-+ 0,(",
    "o": "-#+ 0(",
    "x": "-#+ 0(",
    "e": "-#+ 0(",
    "f": "-#+ 0,(",
    "g": "-+ 0,(",
    "a": "-#+ 0",
    "t": "-",
    "%": "-",
}

_SPECIFIER = re.compile(
    r"%(?P<index>\d+\$)?"
    r"(?P<flags>[-#+ 0,(<]*)"
    r"(?P<width>\d+)?"
    r"(?P<precision>\.\d+)?"
    r"(?P<conversion>[tT][a-zA-Z]|[a-zA-Z%])"
)


class FormatSpecError(ValueError):
    """Raised when a template contains a syntactically invalid specifier."""


@dataclass(frozen=True)
class ConversionSpecifier:
    """One parsed conversion specifier, in template order."""

    text: str
    offset: int
    conversion: str
    category: ConversionCategory
    argument_index: int | None = None
    explicit_index: int | None = None
    relative: bool = False
    flags: str = ""
    width: int | None = None
    precision: int | None = None

    @property
    def consumes_argument(self) -> bool:
        return self.argument_index is not None


def _check_flags(flags: str, width: str | None, text: str) -> None:
    seen: set[str] = set()
    for flag in flags:
        if flag in seen:
            msg = f"duplicate flag '{flag}' in '{text}'"
            raise FormatSpecError(msg)
        seen.add(flag)
    if ("-" in seen or "0" in seen) and width is None:
        msg = f"missing width in '{text}'"
        raise FormatSpecError(msg)
    if "-" in seen and "0" in seen:
        msg = f"illegal flag combination in '{text}'"
        raise FormatSpecError(msg)


def _check_conversion_flags(letter: str, flags: str, text: str) -> None:
    allowed = _ALLOWED_FLAGS.get(letter.lower())
    if allowed is None:
        return
    for flag in flags:
        if flag not in allowed:
            msg = f"flag '{flag}' does not apply to conversion '{letter}' in '{text}'"
            raise FormatSpecError(msg)
    if "+" in flags and " " in flags:
        msg = f"illegal flag combination in '{text}'"
        raise FormatSpecError(msg)


def _parse_one(
    match: re.Match[str], previous_index: int | None, cursor: int
) -> tuple[ConversionSpecifier, int]:
    text = match.group(0)
    raw_conversion = match.group("conversion")
    letter = raw_conversion[0]
    category = CONVERSION_CATEGORIES.get(letter)
    if category is None:
        msg = f"unknown conversion '{letter}' in '{text}'"
        raise FormatSpecError(msg)

    if category is ConversionCategory.DATE_TIME:
        if len(raw_conversion) != 2 or raw_conversion[1] not in DATE_TIME_SUFFIXES:
            msg = f"unknown date/time conversion in '{text}'"
            raise FormatSpecError(msg)

    flags = match.group("flags") or ""
    width = match.group("width")
    precision = match.group("precision")
    raw_index = match.group("index")
    relative = "<" in flags
    formatting_flags = flags.replace("<", "", 1)

    if category is ConversionCategory.LINE_SEPARATOR and (
        flags or width or precision
    ):
        msg = f"line separator takes no flags, width or precision: '{text}'"
        raise FormatSpecError(msg)
    if precision is not None and category in _NO_PRECISION:
        msg = f"precision not allowed in '{text}'"
        raise FormatSpecError(msg)
    _check_flags(flags, width, text)
    _check_conversion_flags(letter, formatting_flags, text)

    explicit_index: int | None = None
    argument_index: int | None = None
    if category in NON_CONSUMING:
        pass
    elif relative:
        if previous_index is None:
            msg = f"no previous argument for '{text}'"
            raise FormatSpecError(msg)
        argument_index = previous_index
    elif raw_index is not None:
        explicit_index = int(raw_index[:-1])
        if explicit_index < 1:
            msg = f"illegal argument index {explicit_index} in '{text}'"
            raise FormatSpecError(msg)
        argument_index = explicit_index - 1
    else:
        argument_index = cursor
        cursor += 1

    specifier = ConversionSpecifier(
        text=text,
        offset=match.start(),
        conversion=raw_conversion,
        category=category,
        argument_index=argument_index,
        explicit_index=explicit_index,
        relative=relative,
        flags=formatting_flags,
        width=int(width) if width is not None else None,
        precision=int(precision[1:]) if precision is not None else None,
    )
    return specifier, cursor


def parse_format_string(template: str) -> list[ConversionSpecifier]:
    """Parse ``template`` into its conversion specifiers.

    Raises:
        FormatSpecError: when a specifier is unterminated or invalid.
    """
    specifiers: list[ConversionSpecifier] = []
    cursor = 0
    previous_index: int | None = None
    position = 0
    length = len(template)

    while True:
        position = template.find("%", position)
        if position < 0:
            break
        if position == length - 1:
            msg = f"unterminated format specifier at offset {position}"
            raise FormatSpecError(msg)

        match = _SPECIFIER.match(template, position)
        if match is None:
            msg = (
                f"unterminated or invalid format specifier "
                f"'{template[position:position + 8]}' at offset {position}"
            )
            raise FormatSpecError(msg)

        specifier, cursor = _parse_one(match, previous_index, cursor)
        if specifier.argument_index is not None:
            previous_index = specifier.argument_index
        specifiers.append(specifier)
        position = match.end()

    return specifiers


def count_used_arguments(specifiers: list[ConversionSpecifier]) -> int:
    """Number of argument slots the specifiers reach (highest index + 1)."""
    indices = [s.argument_index for s in specifiers if s.argument_index is not None]
    return max(indices) + 1 if indices else 0


__all__ = [
    "CONVERSION_CATEGORIES",
    "ConversionCategory",
    "ConversionSpecifier",
    "FormatSpecError",
    "NON_CONSUMING",
    "count_used_arguments",
    "parse_format_string",
]

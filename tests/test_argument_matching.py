from __future__ import annotations

import pytest

from contract.matching import is_compatible, match_arguments
from contract.models import ArgumentType, TypeCategory
from contract.results import CountMismatch, TypeMismatch
from parse.format_spec import ConversionCategory, parse_format_string


def _types(*categories: TypeCategory) -> list[ArgumentType]:
    return [ArgumentType(category=category) for category in categories]


def test_matching_arguments_produce_no_defect() -> None:
    specifiers = parse_format_string("%s=%d (%.1f) %c %b")

    result = match_arguments(
        specifiers,
        _types(
            TypeCategory.STRING,
            TypeCategory.INTEGER,
            TypeCategory.FLOATING_POINT,
            TypeCategory.CHARACTER,
            TypeCategory.GENERAL_OBJECT,
        ),
    )

    assert result is None


@pytest.mark.parametrize(
    ("template", "provided", "used"),
    [("%s %s", 1, 2), ("%s", 3, 1), ("no specifiers", 1, 0), ("%2$s", 1, 2)],
)
def test_count_mismatch_in_both_directions(template: str, provided: int, used: int) -> None:
    result = match_arguments(
        parse_format_string(template), _types(*[TypeCategory.STRING] * provided)
    )

    assert result == CountMismatch(used=used, provided=provided)
    assert result.message == f"extra format arguments: used {used}, provided {provided}"


def test_count_is_checked_before_types() -> None:
    result = match_arguments(
        parse_format_string("%d %d"), _types(TypeCategory.GENERAL_OBJECT)
    )

    assert isinstance(result, CountMismatch)


def test_first_type_mismatch_wins() -> None:
    result = match_arguments(
        parse_format_string("%s %d %f"),
        _types(TypeCategory.STRING, TypeCategory.STRING, TypeCategory.STRING),
    )

    assert result == TypeMismatch(
        specifier_index=1,
        specifier="%d",
        expected=ConversionCategory.INTEGER,
        actual=TypeCategory.STRING,
    )
    assert result.message == "format specifier '%d' (#1) expects integer, got string"


def test_specifier_index_counts_escapes() -> None:
    result = match_arguments(
        parse_format_string("%%%n%d"), _types(TypeCategory.FLOATING_POINT)
    )

    assert isinstance(result, TypeMismatch)
    assert result.specifier_index == 2


def test_explicit_indices_check_the_referenced_argument() -> None:
    specifiers = parse_format_string("%2$d %1$s")

    assert match_arguments(specifiers, _types(TypeCategory.STRING, TypeCategory.INTEGER)) is None
    mismatch = match_arguments(
        specifiers, _types(TypeCategory.INTEGER, TypeCategory.STRING)
    )
    assert isinstance(mismatch, TypeMismatch)
    assert mismatch.actual is TypeCategory.STRING


def test_single_array_argument_skips_arity_and_checks_elements() -> None:
    specifiers = parse_format_string("%d %d %d")
    ints = [ArgumentType(category=TypeCategory.ARRAY, element=TypeCategory.INTEGER)]
    objects = [ArgumentType(category=TypeCategory.ARRAY, element=TypeCategory.GENERAL_OBJECT)]

    assert match_arguments(specifiers, ints) is None
    mismatch = match_arguments(specifiers, objects)
    assert isinstance(mismatch, TypeMismatch)
    assert mismatch.actual is TypeCategory.GENERAL_OBJECT


def test_array_without_element_type_is_unknown() -> None:
    specifiers = parse_format_string("%d %f")

    assert match_arguments(specifiers, [ArgumentType(category=TypeCategory.ARRAY)]) is None


@pytest.mark.parametrize("actual", [TypeCategory.NULL, TypeCategory.UNKNOWN])
@pytest.mark.parametrize(
    "expected",
    [
        ConversionCategory.GENERAL,
        ConversionCategory.BOOLEAN,
        ConversionCategory.CHARACTER,
        ConversionCategory.INTEGER,
        ConversionCategory.FLOATING_POINT,
        ConversionCategory.DATE_TIME,
    ],
)
def test_null_and_unknown_are_always_compatible(
    expected: ConversionCategory, actual: TypeCategory
) -> None:
    assert is_compatible(expected, actual)


@pytest.mark.parametrize(
    ("expected", "actual", "ok"),
    [
        (ConversionCategory.CHARACTER, TypeCategory.INTEGER, True),
        (ConversionCategory.CHARACTER, TypeCategory.STRING, False),
        (ConversionCategory.INTEGER, TypeCategory.BOOLEAN, False),
        (ConversionCategory.INTEGER, TypeCategory.FLOATING_POINT, False),
        (ConversionCategory.FLOATING_POINT, TypeCategory.INTEGER, False),
        (ConversionCategory.DATE_TIME, TypeCategory.INTEGER, True),
        (ConversionCategory.DATE_TIME, TypeCategory.STRING, False),
        (ConversionCategory.BOOLEAN, TypeCategory.STRING, True),
        (ConversionCategory.GENERAL, TypeCategory.ARRAY, True),
    ],
)
def test_compatibility_table(
    expected: ConversionCategory, actual: TypeCategory, ok: bool
) -> None:
    assert is_compatible(expected, actual) is ok

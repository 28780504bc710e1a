"""Match parsed conversion specifiers against static argument types."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contract.models import ArgumentType, TypeCategory
from contract.results import CountMismatch, TypeMismatch
from parse.format_spec import ConversionCategory, count_used_arguments

if TYPE_CHECKING:
    from collections.abc import Sequence

    from parse.format_spec import ConversionSpecifier

_ANY = frozenset(TypeCategory)

# expected conversion category -> argument categories it accepts.
# NULL and UNKNOWN are accepted everywhere: a null prints as "null" and an
# unclassified argument must not produce a finding.
COMPATIBLE_CATEGORIES: dict[ConversionCategory, frozenset[TypeCategory]] = {
    ConversionCategory.GENERAL: _ANY,
    ConversionCategory.BOOLEAN: _ANY,
    ConversionCategory.CHARACTER: frozenset(
        {
            TypeCategory.CHARACTER,
            TypeCategory.INTEGER,
            TypeCategory.NULL,
            TypeCategory.UNKNOWN,
        }
    ),
    ConversionCategory.INTEGER: frozenset(
        {TypeCategory.INTEGER, TypeCategory.NULL, TypeCategory.UNKNOWN}
    ),
    ConversionCategory.FLOATING_POINT: frozenset(
        {TypeCategory.FLOATING_POINT, TypeCategory.NULL, TypeCategory.UNKNOWN}
    ),
    ConversionCategory.DATE_TIME: frozenset(
        {
            TypeCategory.DATE_TIME,
            TypeCategory.INTEGER,
            TypeCategory.NULL,
            TypeCategory.UNKNOWN,
        }
    ),
}


def is_compatible(expected: ConversionCategory, actual: TypeCategory) -> bool:
    return actual in COMPATIBLE_CATEGORIES.get(expected, _ANY)


def _array_element(arguments: Sequence[ArgumentType]) -> TypeCategory | None:
    if len(arguments) != 1 or arguments[0].category is not TypeCategory.ARRAY:
        return None
    return arguments[0].element or TypeCategory.UNKNOWN


def match_arguments(
    specifiers: Sequence[ConversionSpecifier],
    arguments: Sequence[ArgumentType],
) -> CountMismatch | TypeMismatch | None:
    """Check arity and per-specifier categories.

    A single array-typed argument stands for the whole variadic tail: its
    element category is matched against every specifier and, since the
    array length is unknown, arity is not checked.
    """
    element = _array_element(arguments)

    if element is None:
        used = count_used_arguments(list(specifiers))
        provided = len(arguments)
        if used != provided:
            return CountMismatch(used=used, provided=provided)

    for position, specifier in enumerate(specifiers):
        if specifier.argument_index is None:
            continue
        actual = (
            element
            if element is not None
            else arguments[specifier.argument_index].category
        )
        if not is_compatible(specifier.category, actual):
            return TypeMismatch(
                specifier_index=position,
                specifier=specifier.text,
                expected=specifier.category,
                actual=actual,
            )

    return None


__all__ = ["COMPATIBLE_CATEGORIES", "is_compatible", "match_arguments"]

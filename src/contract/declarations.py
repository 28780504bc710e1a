"""Structural checks for format method declarations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contract.results import Anchor, StructuralViolation, ViolationKind

if TYPE_CHECKING:
    from contract.models import MethodDeclaration


def validate_declaration(method: MethodDeclaration) -> StructuralViolation | None:
    """Report the first misuse of the FormatString/FormatMethod contract.

    Parameters are checked in declaration order and the first offending one
    decides the result. The "no string parameter" rule is checked last.
    """
    found_template = False
    found_string = False

    for index, param in enumerate(method.parameters):
        if param.is_string:
            found_string = True

        if not param.is_template:
            continue

        if not method.is_format_method:
            return StructuralViolation(
                kind=ViolationKind.MARKED_OUTSIDE_FORMAT_METHOD,
                message=(
                    "A parameter can only be annotated @FormatString in a method "
                    f"annotated @FormatMethod: {param.name}"
                ),
                anchor=Anchor.METHOD,
                parameter_index=index,
            )
        if not param.is_string:
            return StructuralViolation(
                kind=ViolationKind.MARKED_NON_STRING_PARAM,
                message="Only strings can be annotated @FormatString.",
                anchor=Anchor.PARAMETER,
                parameter_index=index,
            )
        if found_template:
            return StructuralViolation(
                kind=ViolationKind.MULTIPLE_MARKED_PARAMS,
                message="A method cannot have more than one @FormatString parameter.",
                anchor=Anchor.METHOD,
                parameter_index=index,
            )
        found_template = True

    if method.is_format_method and not found_string:
        return StructuralViolation(
            kind=ViolationKind.MISSING_STRING_PARAM,
            message="An @FormatMethod must contain at least one String parameter.",
            anchor=Anchor.METHOD,
        )

    return None


__all__ = ["validate_declaration"]

"""Template parameter location shared by declaration and call checks."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contract.models import MethodDeclaration


def locate_template_parameter(method: MethodDeclaration) -> int | None:
    """Return the index of the parameter carrying the format template.

    The first explicitly marked parameter wins; otherwise the first
    string-typed parameter is the template. Returns None when the method is
    not a format method or has no candidate parameter.
    """
    if not method.is_format_method:
        return None

    first_string: int | None = None
    for index, param in enumerate(method.parameters):
        if param.is_template:
            return index
        if first_string is None and param.is_string:
            first_string = index

    return first_string


__all__ = ["locate_template_parameter"]

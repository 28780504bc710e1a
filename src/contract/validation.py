"""Call-site validation for format methods."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contract.locator import locate_template_parameter
from contract.matching import match_arguments
from contract.resolver import resolve_constant
from contract.results import (
    CallDefect,
    ContractInvariantError,
    MalformedTemplate,
    UnresolvedTemplate,
)
from parse.format_spec import FormatSpecError, parse_format_string

if TYPE_CHECKING:
    from collections.abc import Mapping

    from contract.models import CallSite, Expression


def validate_call(
    call: CallSite, bindings: Mapping[str, Expression] | None = None
) -> CallDefect | None:
    """Validate one invocation against its callee's format contract.

    Locate the template slot, resolve it to a constant, parse it and match
    the trailing arguments. Each step may end the check early.

    Args:
        call: Facts for the invocation.
        bindings: Constant bindings visible at the call; defaults to
            ``call.constants``.

    Raises:
        ContractInvariantError: when the call has no argument in the
            template slot.
    """
    index = locate_template_parameter(call.callee)
    if index is None:
        return None

    if index >= len(call.arguments):
        msg = (
            f"call to {call.callee.name!r} has {len(call.arguments)} argument(s) "
            f"but the template is parameter {index}"
        )
        raise ContractInvariantError(msg)

    template_arg = call.arguments[index]
    template = resolve_constant(
        template_arg.expression,
        call.constants if bindings is None else bindings,
    )
    if template is None:
        return UnresolvedTemplate()

    try:
        specifiers = parse_format_string(template)
    except FormatSpecError as exc:
        return MalformedTemplate(reason=str(exc))

    trailing = [argument.type for argument in call.arguments[index + 1 :]]
    return match_arguments(specifiers, trailing)


__all__ = ["validate_call"]

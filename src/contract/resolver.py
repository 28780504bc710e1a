"""Compile-time constant resolution for template arguments."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contract.models import (
    ConcatExpr,
    ConditionalExpr,
    LiteralExpr,
    NameExpr,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from contract.models import Expression

_UNRESOLVED = object()


def _fold(
    expr: Expression,
    bindings: Mapping[str, Expression],
    visiting: frozenset[str],
) -> object:
    if isinstance(expr, LiteralExpr):
        return expr.value

    if isinstance(expr, NameExpr):
        if expr.identifier in visiting:
            return _UNRESOLVED
        bound = bindings.get(expr.identifier)
        if bound is None:
            return _UNRESOLVED
        return _fold(bound, bindings, visiting | {expr.identifier})

    if isinstance(expr, ConcatExpr):
        pieces: list[str] = []
        for part in expr.parts:
            value = _fold(part, bindings, visiting)
            if not isinstance(value, str):
                return _UNRESOLVED
            pieces.append(value)
        return "".join(pieces)

    if isinstance(expr, ConditionalExpr):
        test = _fold(expr.test, bindings, visiting)
        if not isinstance(test, bool):
            return _UNRESOLVED
        return _fold(expr.body if test else expr.orelse, bindings, visiting)

    return _UNRESOLVED


def resolve_constant(
    expr: Expression, bindings: Mapping[str, Expression] | None = None
) -> str | None:
    """Resolve ``expr`` to a constant string, or None when it is not provable.

    ``bindings`` maps names to the initializers of constant bindings (for
    Python, names annotated ``Final``). Names missing from it are treated as
    runtime values.
    """
    value = _fold(expr, bindings or {}, frozenset())
    if isinstance(value, str):
        return value
    return None


__all__ = ["resolve_constant"]

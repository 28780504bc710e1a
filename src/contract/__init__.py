"""Stable engine surface for formatcheck.

Hosts build the fact models, then call ``validate_declaration`` once per
method declaration and ``validate_call`` once per invocation. Treat these
exports as the authoritative host↔engine boundary.
"""

from contract.results import (
    CHECK_NAME,
    DIAGNOSTIC_SCHEMA_VERSION,
    Anchor,
    ContractInvariantError,
    CountMismatch,
    MalformedTemplate,
    StructuralViolation,
    TypeMismatch,
    UnresolvedTemplate,
    ViolationKind,
)

_MODEL_NAMES = {
    "ArgumentFacts",
    "ArgumentType",
    "CallSite",
    "ConcatExpr",
    "ConditionalExpr",
    "LiteralExpr",
    "MethodDeclaration",
    "NameExpr",
    "OpaqueExpr",
    "ParameterFacts",
    "SourceSpan",
    "TypeCategory",
}


def __getattr__(name: str) -> object:
    if name in _MODEL_NAMES:
        from contract import models

        return getattr(models, name)

    if name in {"validate_declaration", "validate_call", "locate_template_parameter"}:
        from contract.declarations import validate_declaration
        from contract.locator import locate_template_parameter
        from contract.validation import validate_call

        return {
            "validate_declaration": validate_declaration,
            "validate_call": validate_call,
            "locate_template_parameter": locate_template_parameter,
        }[name]

    msg = f"module 'contract' has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "CHECK_NAME",
    "DIAGNOSTIC_SCHEMA_VERSION",
    "Anchor",
    "ArgumentFacts",
    "ArgumentType",
    "CallSite",
    "ConcatExpr",
    "ConditionalExpr",
    "ContractInvariantError",
    "CountMismatch",
    "LiteralExpr",
    "MalformedTemplate",
    "MethodDeclaration",
    "NameExpr",
    "OpaqueExpr",
    "ParameterFacts",
    "SourceSpan",
    "StructuralViolation",
    "TypeCategory",
    "TypeMismatch",
    "UnresolvedTemplate",
    "ViolationKind",
    "locate_template_parameter",
    "validate_call",
    "validate_declaration",
]

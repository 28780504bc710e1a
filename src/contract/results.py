"""Validation outcomes reported by the contract engine.

Outcomes are plain data. ``None`` means "no defect"; anything else is exactly
one of the dataclasses below, carrying its own message and anchor.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from contract.models import TypeCategory
    from parse.format_spec import ConversionCategory

# Diagnostic schema version for DiagnosticRecord output.
DIAGNOSTIC_SCHEMA_VERSION = 1

CHECK_NAME = "FormatStringAnnotation"
CHECK_SUMMARY = "Invalid format string passed to formatting method."

UNRESOLVED_TEMPLATE_MESSAGE = (
    "Format strings must be either a literal or a compile-time constant."
)


class Anchor(str, Enum):
    """Which node a diagnostic should be attached to."""

    METHOD = "method"
    PARAMETER = "parameter"
    TEMPLATE_ARGUMENT = "template_argument"
    CALL = "call"


class ViolationKind(str, Enum):
    MARKED_OUTSIDE_FORMAT_METHOD = "marked_outside_format_method"
    MARKED_NON_STRING_PARAM = "marked_non_string_param"
    MULTIPLE_MARKED_PARAMS = "multiple_marked_params"
    MISSING_STRING_PARAM = "missing_string_param"


@dataclass(frozen=True)
class StructuralViolation:
    """A misuse of the annotation contract on a method declaration."""

    kind: ViolationKind
    message: str
    anchor: Anchor = Anchor.METHOD
    parameter_index: int | None = None


@dataclass(frozen=True)
class CountMismatch:
    used: int
    provided: int
    kind: str = "count_mismatch"
    anchor: Anchor = Anchor.CALL

    @property
    def message(self) -> str:
        # Too few and too many arguments share one wording.
        return f"extra format arguments: used {self.used}, provided {self.provided}"


@dataclass(frozen=True)
class TypeMismatch:
    specifier_index: int
    specifier: str
    expected: ConversionCategory
    actual: TypeCategory
    kind: str = "type_mismatch"
    anchor: Anchor = Anchor.CALL

    @property
    def message(self) -> str:
        return (
            f"format specifier '{self.specifier}' (#{self.specifier_index}) "
            f"expects {self.expected.value}, got {self.actual.value}"
        )


@dataclass(frozen=True)
class UnresolvedTemplate:
    kind: str = "unresolved_template"
    anchor: Anchor = Anchor.TEMPLATE_ARGUMENT

    @property
    def message(self) -> str:
        return UNRESOLVED_TEMPLATE_MESSAGE


@dataclass(frozen=True)
class MalformedTemplate:
    reason: str
    kind: str = "malformed_template"
    anchor: Anchor = Anchor.TEMPLATE_ARGUMENT

    @property
    def message(self) -> str:
        return f"invalid format string: {self.reason}"


CallDefect = Union[CountMismatch, TypeMismatch, UnresolvedTemplate, MalformedTemplate]


class ContractInvariantError(Exception):
    """Raised when host facts break an assumption the engine relies on."""


__all__ = [
    "CHECK_NAME",
    "CHECK_SUMMARY",
    "DIAGNOSTIC_SCHEMA_VERSION",
    "UNRESOLVED_TEMPLATE_MESSAGE",
    "Anchor",
    "CallDefect",
    "ContractInvariantError",
    "CountMismatch",
    "MalformedTemplate",
    "StructuralViolation",
    "TypeMismatch",
    "UnresolvedTemplate",
    "ViolationKind",
]

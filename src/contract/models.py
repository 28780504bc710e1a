"""Host fact models consumed by the contract validation engine.

Every model is an immutable snapshot built by a host (the Python frontend in
``parse`` or an external producer feeding ``formatcheck facts``). The engine
reads these models and never mutates them.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class TypeCategory(str, Enum):
    """Static type classification of a parameter or call argument."""

    INTEGER = "integer"
    FLOATING_POINT = "floating_point"
    CHARACTER = "character"
    BOOLEAN = "boolean"
    STRING = "string"
    DATE_TIME = "date_time"
    GENERAL_OBJECT = "general_object"
    ARRAY = "array"
    NULL = "null"
    UNKNOWN = "unknown"


class _Facts(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SourceSpan(_Facts):
    """Source location used to anchor a diagnostic."""

    path: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int


class ParameterFacts(_Facts):
    """One declared parameter of a method."""

    name: str
    type: TypeCategory = TypeCategory.UNKNOWN
    is_template: bool = Field(
        default=False, description="Parameter carries the FormatString mark"
    )
    is_varargs: bool = False
    span: SourceSpan | None = None

    @property
    def is_string(self) -> bool:
        return self.type is TypeCategory.STRING


class MethodDeclaration(_Facts):
    """Declaration facts for a method, as seen at its definition."""

    name: str
    qualified_name: str = ""
    is_format_method: bool = False
    parameters: tuple[ParameterFacts, ...] = ()
    span: SourceSpan | None = None


class ArgumentType(_Facts):
    """Static type descriptor of one actual call argument."""

    category: TypeCategory = TypeCategory.UNKNOWN
    element: TypeCategory | None = Field(
        default=None, description="Element category for array arguments"
    )


# ---------------------------------------------------------------------------
# Argument expressions
# ---------------------------------------------------------------------------
# The constant resolver only needs to tell literals, name references,
# concatenations and conditionals apart; everything else is opaque.


class LiteralExpr(_Facts):
    kind: Literal["literal"] = "literal"
    value: bool | int | float | str | None


class NameExpr(_Facts):
    kind: Literal["name"] = "name"
    identifier: str


class ConcatExpr(_Facts):
    kind: Literal["concat"] = "concat"
    parts: tuple[Expression, ...]


class ConditionalExpr(_Facts):
    kind: Literal["conditional"] = "conditional"
    test: Expression
    body: Expression
    orelse: Expression


class OpaqueExpr(_Facts):
    kind: Literal["opaque"] = "opaque"
    text: str = ""


Expression = Annotated[
    Union[LiteralExpr, NameExpr, ConcatExpr, ConditionalExpr, OpaqueExpr],
    Field(discriminator="kind"),
]

ConcatExpr.model_rebuild()
ConditionalExpr.model_rebuild()


class ArgumentFacts(_Facts):
    """One actual argument at a call site."""

    expression: Expression = Field(default_factory=OpaqueExpr)
    type: ArgumentType = Field(default_factory=ArgumentType)
    span: SourceSpan | None = None


class CallSite(_Facts):
    """Facts for one method invocation.

    ``constants`` maps names visible at the call to the initializer
    expression of a provably constant binding.
    """

    callee: MethodDeclaration
    arguments: tuple[ArgumentFacts, ...] = ()
    constants: dict[str, Expression] = Field(default_factory=dict)
    span: SourceSpan | None = None


__all__ = [
    "ArgumentFacts",
    "ArgumentType",
    "CallSite",
    "ConcatExpr",
    "ConditionalExpr",
    "Expression",
    "LiteralExpr",
    "MethodDeclaration",
    "NameExpr",
    "OpaqueExpr",
    "ParameterFacts",
    "SourceSpan",
    "TypeCategory",
]

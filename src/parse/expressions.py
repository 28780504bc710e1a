"""Expression and annotation classification for the Python frontend.

Turns tree-sitter expression nodes into the engine's ``Expression`` models
and static ``ArgumentType`` descriptors, and reads parameter annotations
(via ``ast``) into type categories and FormatString marks.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING

from contract.models import (
    ArgumentType,
    ConcatExpr,
    ConditionalExpr,
    LiteralExpr,
    NameExpr,
    OpaqueExpr,
    TypeCategory,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tree_sitter import Node

    from contract.models import Expression

UNKNOWN = ArgumentType()

_NAMED_CATEGORIES: dict[str, TypeCategory] = {
    "int": TypeCategory.INTEGER,
    "float": TypeCategory.FLOATING_POINT,
    "Decimal": TypeCategory.FLOATING_POINT,
    "bool": TypeCategory.BOOLEAN,
    "str": TypeCategory.STRING,
    "LiteralString": TypeCategory.STRING,
    "bytes": TypeCategory.GENERAL_OBJECT,
    "object": TypeCategory.GENERAL_OBJECT,
    "dict": TypeCategory.GENERAL_OBJECT,
    "Mapping": TypeCategory.GENERAL_OBJECT,
    "datetime": TypeCategory.DATE_TIME,
    "date": TypeCategory.DATE_TIME,
    "time": TypeCategory.DATE_TIME,
    "None": TypeCategory.NULL,
}

_SEQUENCE_NAMES = frozenset(
    {"list", "tuple", "set", "frozenset", "Sequence", "Iterable", "Collection"}
)
_TRANSPARENT_WRAPPERS = frozenset({"Final", "Optional", "ClassVar", "Required"})

# Calls whose result category is known from the callee alone.
_CONSTRUCTOR_CATEGORIES: dict[str, TypeCategory] = {
    "int": TypeCategory.INTEGER,
    "len": TypeCategory.INTEGER,
    "ord": TypeCategory.INTEGER,
    "float": TypeCategory.FLOATING_POINT,
    "Decimal": TypeCategory.FLOATING_POINT,
    "str": TypeCategory.STRING,
    "repr": TypeCategory.STRING,
    "chr": TypeCategory.CHARACTER,
    "bool": TypeCategory.BOOLEAN,
    "object": TypeCategory.GENERAL_OBJECT,
    "list": TypeCategory.GENERAL_OBJECT,
    "dict": TypeCategory.GENERAL_OBJECT,
    "set": TypeCategory.GENERAL_OBJECT,
    "tuple": TypeCategory.GENERAL_OBJECT,
    "datetime": TypeCategory.DATE_TIME,
    "date": TypeCategory.DATE_TIME,
    "datetime.datetime": TypeCategory.DATE_TIME,
    "datetime.date": TypeCategory.DATE_TIME,
    "datetime.now": TypeCategory.DATE_TIME,
    "datetime.utcnow": TypeCategory.DATE_TIME,
    "datetime.datetime.now": TypeCategory.DATE_TIME,
    "datetime.datetime.utcnow": TypeCategory.DATE_TIME,
    "date.today": TypeCategory.DATE_TIME,
    "datetime.date.today": TypeCategory.DATE_TIME,
}

_COLLECTION_NODES = frozenset(
    {
        "list",
        "tuple",
        "set",
        "dictionary",
        "list_comprehension",
        "set_comprehension",
        "dictionary_comprehension",
        "generator_expression",
        "lambda",
    }
)


def _decode_node_text(source_bytes: bytes, node: Node) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode("utf8", errors="ignore")


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------


def _last_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Call):
        return _last_name(node.func)
    if isinstance(node, ast.Constant) and node.value is None:
        return "None"
    return None


def _parse_annotation(text: str) -> ast.expr | None:
    try:
        tree = ast.parse(text.strip(), mode="eval")
    except SyntaxError:
        return None
    body = tree.body
    # Forward references: "int" -> int
    if isinstance(body, ast.Constant) and isinstance(body.value, str):
        return _parse_annotation(body.value)
    return body


def _subscript_args(node: ast.Subscript) -> list[ast.expr]:
    if isinstance(node.slice, ast.Tuple):
        return list(node.slice.elts)
    return [node.slice]


def _merge(categories: list[ArgumentType]) -> ArgumentType:
    """Collapse union members; NULL members do not change the category."""
    concrete = [c for c in categories if c.category is not TypeCategory.NULL]
    if not concrete:
        return ArgumentType(category=TypeCategory.NULL)
    first = concrete[0]
    if all(c == first for c in concrete):
        return first
    return UNKNOWN


def _classify_annotation(node: ast.expr) -> ArgumentType:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _merge([_classify_annotation(node.left), _classify_annotation(node.right)])

    if isinstance(node, ast.Subscript):
        outer = _last_name(node.value)
        args = _subscript_args(node)
        if outer in {"Annotated", *_TRANSPARENT_WRAPPERS}:
            return _classify_annotation(args[0])
        if outer == "Union":
            return _merge([_classify_annotation(arg) for arg in args])
        if outer == "Literal":
            values = [
                _literal_category(arg.value)
                for arg in args
                if isinstance(arg, ast.Constant)
            ]
            return _merge([ArgumentType(category=v) for v in values]) if values else UNKNOWN
        if outer in _SEQUENCE_NAMES:
            elements = [a for a in args if not isinstance(a, ast.Constant)]
            element = _merge([_classify_annotation(a) for a in elements])
            return ArgumentType(category=TypeCategory.ARRAY, element=element.category)
        if outer is not None and outer in _NAMED_CATEGORIES:
            return ArgumentType(category=_NAMED_CATEGORIES[outer])
        return UNKNOWN

    name = _last_name(node)
    if name in _SEQUENCE_NAMES:
        return ArgumentType(category=TypeCategory.ARRAY, element=TypeCategory.UNKNOWN)
    if name is not None and name in _NAMED_CATEGORIES:
        return ArgumentType(category=_NAMED_CATEGORIES[name])
    return UNKNOWN


def _has_marker(node: ast.expr, markers: frozenset[str]) -> bool:
    if _last_name(node) in markers and not isinstance(node, ast.Subscript):
        return True
    if isinstance(node, ast.Subscript) and _last_name(node.value) == "Annotated":
        return any(_last_name(meta) in markers for meta in _subscript_args(node)[1:])
    return False


def classify_annotation(
    text: str | None, markers: frozenset[str] = frozenset()
) -> tuple[ArgumentType, bool]:
    """Classify annotation source text.

    Returns the static type and whether the annotation carries one of the
    FormatString ``markers``. A bare marker annotation is string-typed.
    """
    if not text:
        return UNKNOWN, False
    node = _parse_annotation(text)
    if node is None:
        return UNKNOWN, False
    if markers and _has_marker(node, markers):
        if isinstance(node, ast.Subscript):
            return _classify_annotation(node), True
        return ArgumentType(category=TypeCategory.STRING), True
    return _classify_annotation(node), False


def is_final_annotation(text: str | None) -> bool:
    if not text:
        return False
    node = _parse_annotation(text)
    if node is None:
        return False
    if isinstance(node, ast.Subscript):
        node = node.value
    return _last_name(node) == "Final"


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


def _literal_category(value: object) -> TypeCategory:
    if value is None:
        return TypeCategory.NULL
    if isinstance(value, bool):
        return TypeCategory.BOOLEAN
    if isinstance(value, int):
        return TypeCategory.INTEGER
    if isinstance(value, float):
        return TypeCategory.FLOATING_POINT
    if isinstance(value, str):
        return TypeCategory.CHARACTER if len(value) == 1 else TypeCategory.STRING
    return TypeCategory.GENERAL_OBJECT


def _literal_value(source_bytes: bytes, node: Node) -> tuple[bool, object]:
    """Evaluate a literal node; returns (ok, value)."""
    if node.type == "true":
        return True, True
    if node.type == "false":
        return True, False
    if node.type == "none":
        return True, None
    if node.type not in {"string", "concatenated_string", "integer", "float"}:
        return False, None
    try:
        return True, ast.literal_eval(_decode_node_text(source_bytes, node))
    except (ValueError, SyntaxError, MemoryError, RecursionError):
        # f-strings and similar runtime-built literals
        return False, None


def _unwrap(node: Node) -> Node:
    while node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


def _concat_parts(node: Node) -> list[Node]:
    node = _unwrap(node)
    if node.type == "binary_operator":
        operator = node.child_by_field_name("operator")
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if operator is not None and operator.type == "+" and left and right:
            return [*_concat_parts(left), *_concat_parts(right)]
    return [node]


def to_expression(source_bytes: bytes, node: Node) -> Expression:
    """Convert a tree-sitter expression node to an engine ``Expression``."""
    node = _unwrap(node)
    text = _decode_node_text(source_bytes, node)

    ok, value = _literal_value(source_bytes, node)
    if ok:
        if isinstance(value, (bool, int, float, str)) or value is None:
            return LiteralExpr(value=value)
        return OpaqueExpr(text=text)

    if node.type == "identifier":
        return NameExpr(identifier=text)

    if node.type == "binary_operator":
        parts = _concat_parts(node)
        if len(parts) > 1:
            return ConcatExpr(parts=tuple(to_expression(source_bytes, p) for p in parts))

    if node.type == "conditional_expression":
        children = node.named_children
        if len(children) == 3:
            body, test, orelse = children
            return ConditionalExpr(
                test=to_expression(source_bytes, test),
                body=to_expression(source_bytes, body),
                orelse=to_expression(source_bytes, orelse),
            )

    return OpaqueExpr(text=text)


def callee_name(source_bytes: bytes, node: Node | None) -> str | None:
    """Dotted name of a call's function node, or None for complex callees."""
    if node is None:
        return None
    if node.type == "identifier":
        return _decode_node_text(source_bytes, node)
    if node.type == "attribute":
        obj = callee_name(source_bytes, node.child_by_field_name("object"))
        attr = node.child_by_field_name("attribute")
        if obj is None or attr is None:
            return None
        return f"{obj}.{_decode_node_text(source_bytes, attr)}"
    return None


def infer_type(
    source_bytes: bytes,
    node: Node,
    scope_types: Mapping[str, ArgumentType],
) -> ArgumentType:
    """Static type of an argument expression; UNKNOWN when not evident."""
    node = _unwrap(node)

    ok, value = _literal_value(source_bytes, node)
    if ok:
        return ArgumentType(category=_literal_category(value))

    if node.type in {"string", "concatenated_string"}:
        # f-strings
        return ArgumentType(category=TypeCategory.STRING)

    if node.type in _COLLECTION_NODES:
        return ArgumentType(category=TypeCategory.GENERAL_OBJECT)

    if node.type == "unary_operator":
        argument = node.child_by_field_name("argument")
        if argument is not None:
            inner = infer_type(source_bytes, argument, scope_types)
            if inner.category in {TypeCategory.INTEGER, TypeCategory.FLOATING_POINT}:
                return inner
        return UNKNOWN

    if node.type == "identifier":
        declared = scope_types.get(_decode_node_text(source_bytes, node), UNKNOWN)
        if declared.category is TypeCategory.ARRAY:
            # A sequence passed without * is one object.
            return ArgumentType(category=TypeCategory.GENERAL_OBJECT)
        return declared

    if node.type == "call":
        name = callee_name(source_bytes, node.child_by_field_name("function"))
        if name is not None and name in _CONSTRUCTOR_CATEGORIES:
            return ArgumentType(category=_CONSTRUCTOR_CATEGORIES[name])
        return UNKNOWN

    if node.type == "conditional_expression":
        children = node.named_children
        if len(children) == 3:
            body, _, orelse = children
            return _merge(
                [
                    infer_type(source_bytes, body, scope_types),
                    infer_type(source_bytes, orelse, scope_types),
                ]
            )

    return UNKNOWN


def infer_splat_type(
    source_bytes: bytes,
    node: Node,
    scope_types: Mapping[str, ArgumentType],
) -> ArgumentType:
    """Static type of the operand of ``*operand`` as an array descriptor."""
    node = _unwrap(node)
    if node.type == "identifier":
        declared = scope_types.get(_decode_node_text(source_bytes, node), UNKNOWN)
        if declared.category is TypeCategory.ARRAY:
            return declared
    return ArgumentType(category=TypeCategory.ARRAY, element=TypeCategory.UNKNOWN)


__all__ = [
    "UNKNOWN",
    "callee_name",
    "classify_annotation",
    "infer_splat_type",
    "infer_type",
    "is_final_annotation",
    "to_expression",
]

"""Tree-sitter based call-site extraction for Python files.

Each call is recorded with its positional arguments already converted to
engine facts (expression, static type, span) together with the constant
bindings visible at the call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from contract.models import ArgumentFacts, ArgumentType, TypeCategory
from parse.expressions import (
    UNKNOWN,
    _decode_node_text,
    callee_name,
    classify_annotation,
    infer_splat_type,
    infer_type,
    is_final_annotation,
    to_expression,
)
from parse.treesitter_declarations import make_span, parameter_type, parse_parameters

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from tree_sitter import Node

    from contract.models import Expression, SourceSpan

ScopeKind = Literal["module", "class", "function"]

_NESTED_SCOPES = frozenset({"function_definition", "class_definition", "lambda"})
_TARGET_PARENTS = frozenset({"assignment", "augmented_assignment", "for_statement"})
_SEQUENCE_DISPLAYS = frozenset({"list", "tuple"})


@dataclass
class _Scope:
    kind: ScopeKind
    name: str
    types: dict[str, ArgumentType] = field(default_factory=dict)
    constants: dict[str, Expression] = field(default_factory=dict)
    local_names: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class CallRecord:
    """One call expression with its positional arguments as engine facts."""

    callee: str | None
    span: SourceSpan
    enclosing_class: str | None
    callee_is_local: bool
    arguments: tuple[ArgumentFacts, ...]
    starred: frozenset[int]
    keywords: tuple[str, ...]
    has_dict_splat: bool
    constants: Mapping[str, Expression]


def _iter_scope_nodes(node: Node) -> Iterator[Node]:
    """Yield nodes belonging to the scope of ``node`` (not nested scopes)."""
    for child in node.children:
        if child.type == "decorated_definition":
            definition = child.child_by_field_name("definition")
            if definition is not None:
                yield definition
            continue
        yield child
        if child.type in _NESTED_SCOPES:
            continue
        yield from _iter_scope_nodes(child)


def _target_identifiers(source_bytes: bytes, node: Node) -> Iterator[str]:
    if node.type == "identifier":
        yield _decode_node_text(source_bytes, node)
        return
    if node.type in {"attribute", "subscript"}:
        return
    for child in node.named_children:
        yield from _target_identifiers(source_bytes, child)


def _collect_bindings(
    source_bytes: bytes,
    block: Node,
    scope: _Scope,
    markers: frozenset[str],
) -> None:
    """Record names assigned in ``block`` plus Final constants and annotations."""
    for node in _iter_scope_nodes(block):
        if node.type in {"function_definition", "class_definition"}:
            name_node = node.child_by_field_name("name")
            if name_node is not None:
                scope.local_names.add(_decode_node_text(source_bytes, name_node))
            continue

        if node.type == "named_expression":
            name_node = node.child_by_field_name("name")
            if name_node is not None:
                scope.local_names.add(_decode_node_text(source_bytes, name_node))
            continue

        if node.type == "as_pattern_target":
            scope.local_names.update(_target_identifiers(source_bytes, node))
            continue

        if node.type not in _TARGET_PARENTS:
            continue

        left = node.child_by_field_name("left")
        if left is None:
            continue
        names = list(_target_identifiers(source_bytes, left))
        scope.local_names.update(names)

        if node.type != "assignment" or left.type != "identifier":
            continue
        annotation_node = node.child_by_field_name("type")
        right = node.child_by_field_name("right")
        if annotation_node is None:
            continue
        annotation = _decode_node_text(source_bytes, annotation_node)
        name = names[0]
        declared, _ = classify_annotation(annotation, markers)
        if is_final_annotation(annotation) and right is not None:
            scope.constants[name] = to_expression(source_bytes, right)
            if declared.category is TypeCategory.UNKNOWN:
                declared = infer_type(source_bytes, right, {})
        scope.types[name] = declared


def _visible(scopes: list[_Scope]) -> tuple[dict[str, ArgumentType], dict[str, Expression], set[str]]:
    """Merge the bindings visible from the innermost scope.

    Class bodies are not enclosing scopes for the functions inside them, so a
    class scope only contributes when it is the innermost one.
    """
    types: dict[str, ArgumentType] = {}
    constants: dict[str, Expression] = {}
    function_locals: set[str] = set()
    last = len(scopes) - 1
    for position, scope in enumerate(scopes):
        if scope.kind == "class" and position != last:
            continue
        for name in scope.local_names:
            constants.pop(name, None)
            types[name] = UNKNOWN
        types.update(scope.types)
        constants.update(scope.constants)
        if scope.kind == "function":
            function_locals |= scope.local_names
    return types, constants, function_locals


def _enclosing_class(scopes: list[_Scope]) -> str | None:
    for scope in reversed(scopes):
        if scope.kind == "class":
            return scope.name
    return None


def _build_arguments(
    source_bytes: bytes,
    arguments_node: Node,
    relative_path: str,
    scope_types: Mapping[str, ArgumentType],
) -> tuple[list[ArgumentFacts], set[int], list[str], bool]:
    facts: list[ArgumentFacts] = []
    starred: set[int] = set()
    keywords: list[str] = []
    has_dict_splat = False

    for child in arguments_node.named_children:
        if child.type == "comment":
            continue
        if child.type == "keyword_argument":
            name_node = child.child_by_field_name("name")
            if name_node is not None:
                keywords.append(_decode_node_text(source_bytes, name_node))
            continue
        if child.type == "dictionary_splat":
            has_dict_splat = True
            continue
        if child.type == "list_splat":
            operand = child.named_children[0] if child.named_children else None
            if operand is not None and operand.type in _SEQUENCE_DISPLAYS:
                # *[a, b] and *(a, b) expand to known positional arguments.
                for element in operand.named_children:
                    if element.type == "comment":
                        continue
                    if element.type == "list_splat":
                        starred.add(len(facts))
                        facts.append(
                            ArgumentFacts(
                                type=infer_splat_type(source_bytes, element, scope_types),
                                span=make_span(relative_path, element),
                            )
                        )
                        continue
                    facts.append(_argument(source_bytes, element, relative_path, scope_types))
                continue
            starred.add(len(facts))
            facts.append(
                ArgumentFacts(
                    expression=to_expression(source_bytes, child),
                    type=(
                        infer_splat_type(source_bytes, operand, scope_types)
                        if operand is not None
                        else ArgumentType()
                    ),
                    span=make_span(relative_path, child),
                )
            )
            continue
        facts.append(_argument(source_bytes, child, relative_path, scope_types))

    return facts, starred, keywords, has_dict_splat


def _argument(
    source_bytes: bytes,
    node: Node,
    relative_path: str,
    scope_types: Mapping[str, ArgumentType],
) -> ArgumentFacts:
    return ArgumentFacts(
        expression=to_expression(source_bytes, node),
        type=infer_type(source_bytes, node, scope_types),
        span=make_span(relative_path, node),
    )


def _record_call(
    node: Node,
    *,
    source_bytes: bytes,
    relative_path: str,
    scopes: list[_Scope],
    out_records: list[CallRecord],
) -> None:
    arguments_node = node.child_by_field_name("arguments")
    if arguments_node is None or arguments_node.type != "argument_list":
        return

    callee = callee_name(source_bytes, node.child_by_field_name("function"))
    types, constants, function_locals = _visible(scopes)
    facts, starred, keywords, has_dict_splat = _build_arguments(
        source_bytes, arguments_node, relative_path, types
    )
    head = callee.split(".", 1)[0] if callee else None
    out_records.append(
        CallRecord(
            callee=callee,
            span=make_span(relative_path, node),
            enclosing_class=_enclosing_class(scopes),
            callee_is_local=head is not None
            and head in function_locals
            and head not in {"self", "cls"},
            arguments=tuple(facts),
            starred=frozenset(starred),
            keywords=tuple(keywords),
            has_dict_splat=has_dict_splat,
            constants=constants,
        )
    )


def _function_scope(
    source_bytes: bytes, node: Node, markers: frozenset[str]
) -> _Scope:
    name_node = node.child_by_field_name("name")
    scope = _Scope(
        kind="function",
        name=_decode_node_text(source_bytes, name_node) if name_node else "<function>",
    )
    for param in parse_parameters(source_bytes, node):
        declared, _ = parameter_type(param, markers)
        scope.local_names.add(param.name)
        scope.types[param.name] = declared
    body = node.child_by_field_name("body")
    if body is not None:
        _collect_bindings(source_bytes, body, scope, markers)
    return scope


def _traverse_calls(
    node: Node,
    *,
    source_bytes: bytes,
    relative_path: str,
    scopes: list[_Scope],
    markers: frozenset[str],
    out_records: list[CallRecord],
) -> None:
    pushed = False

    if node.type == "class_definition":
        name_node = node.child_by_field_name("name")
        scope = _Scope(
            kind="class",
            name=_decode_node_text(source_bytes, name_node) if name_node else "<class>",
        )
        body = node.child_by_field_name("body")
        if body is not None:
            _collect_bindings(source_bytes, body, scope, markers)
        scopes.append(scope)
        pushed = True
    elif node.type in {"function_definition", "lambda"}:
        scopes.append(_function_scope(source_bytes, node, markers))
        pushed = True

    if node.type == "call":
        _record_call(
            node,
            source_bytes=source_bytes,
            relative_path=relative_path,
            scopes=scopes,
            out_records=out_records,
        )

    for child in node.children:
        _traverse_calls(
            child,
            source_bytes=source_bytes,
            relative_path=relative_path,
            scopes=scopes,
            markers=markers,
            out_records=out_records,
        )

    if pushed:
        scopes.pop()


def module_scope_bindings(
    root_node: Node, source_bytes: bytes, markers: frozenset[str] = frozenset()
) -> tuple[dict[str, Expression], set[str]]:
    """Module-level Final constants and every module-level assigned name."""
    scope = _Scope(kind="module", name="<module>")
    _collect_bindings(source_bytes, root_node, scope, markers)
    return scope.constants, scope.local_names


def extract_calls_treesitter(
    root_node: Node,
    source_bytes: bytes,
    *,
    relative_path: str,
    markers: frozenset[str] = frozenset(),
    imported_constants: Mapping[str, Expression] | None = None,
) -> list[CallRecord]:
    """Extract all call sites from a parsed Python module.

    ``imported_constants`` are constants bound by imports; module-level
    assignments of the same name take precedence.
    """
    module_scope = _Scope(kind="module", name="<module>")
    _collect_bindings(source_bytes, root_node, module_scope, markers)
    for name, expr in (imported_constants or {}).items():
        if name not in module_scope.local_names:
            module_scope.constants.setdefault(name, expr)

    records: list[CallRecord] = []
    _traverse_calls(
        root_node,
        source_bytes=source_bytes,
        relative_path=relative_path,
        scopes=[module_scope],
        markers=markers,
        out_records=records,
    )
    return records


__all__ = ["CallRecord", "extract_calls_treesitter", "module_scope_bindings"]

"""Tree-sitter based extraction of format method declarations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from tree_sitter import Language, Node, Parser
from tree_sitter_python import language as get_python_language

from contract.models import (
    ArgumentType,
    MethodDeclaration,
    ParameterFacts,
    SourceSpan,
    TypeCategory,
)
from parse.expressions import (
    _decode_node_text,
    callee_name,
    classify_annotation,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

_PARSER: Parser | None = None

BindingKind = Literal["function", "method", "staticmethod", "classmethod", "local"]

_PARAMETER_NODES = frozenset(
    {
        "identifier",
        "typed_parameter",
        "default_parameter",
        "typed_default_parameter",
        "list_splat_pattern",
        "dictionary_splat_pattern",
    }
)


def _join(qualifier: str, name: str) -> str:
    return f"{qualifier}.{name}" if qualifier else name


def _get_parser() -> Parser:
    """Initialize and return the Tree-sitter parser with Python language."""
    global _PARSER
    if _PARSER is None:
        _PARSER = Parser(Language(get_python_language()))
    return _PARSER


def parse_source(source_bytes: bytes) -> Node:
    return _get_parser().parse(source_bytes).root_node


def make_span(relative_path: str, node: Node) -> SourceSpan:
    return SourceSpan(
        path=relative_path,
        start_line=node.start_point[0] + 1,
        start_col=node.start_point[1] + 1,
        end_line=node.end_point[0] + 1,
        end_col=node.end_point[1] + 1,
    )


@dataclass(frozen=True)
class ParsedParameter:
    """A parameter as written, before ``self``/``cls`` removal."""

    name: str
    annotation: str | None
    node: Node
    is_varargs: bool = False
    is_kwargs: bool = False
    keyword_only: bool = False


@dataclass(frozen=True)
class DeclarationSite:
    """A function declaration plus the facts needed to resolve calls to it."""

    method: MethodDeclaration
    module: str
    class_name: str | None
    binding: BindingKind
    keyword_only: frozenset[int] = field(default_factory=frozenset)

    @property
    def qualified_name(self) -> str:
        return self.method.qualified_name


def decorator_names(source_bytes: bytes, definition: Node) -> list[str]:
    """Dotted names of the decorators applied to a definition node."""
    parent = definition.parent
    if parent is None or parent.type != "decorated_definition":
        return []
    names: list[str] = []
    for child in parent.children:
        if child.type != "decorator" or not child.named_children:
            continue
        expr = child.named_children[0]
        if expr.type == "call":
            expr = expr.child_by_field_name("function") or expr
        name = callee_name(source_bytes, expr)
        if name is not None:
            names.append(name)
    return names


def _parameter_name(source_bytes: bytes, node: Node) -> tuple[str, bool, bool]:
    """Return (name, is_varargs, is_kwargs) for a parameter-ish node."""
    if node.type == "list_splat_pattern":
        inner = node.named_children[0] if node.named_children else node
        return _decode_node_text(source_bytes, inner), True, False
    if node.type == "dictionary_splat_pattern":
        inner = node.named_children[0] if node.named_children else node
        return _decode_node_text(source_bytes, inner), False, True
    return _decode_node_text(source_bytes, node), False, False


def parse_parameters(source_bytes: bytes, function: Node) -> list[ParsedParameter]:
    params_node = function.child_by_field_name("parameters")
    if params_node is None:
        return []

    params: list[ParsedParameter] = []
    keyword_only = False
    for child in params_node.named_children:
        if child.type == "keyword_separator":
            keyword_only = True
            continue
        if child.type not in _PARAMETER_NODES:
            continue

        annotation_node = child.child_by_field_name("type")
        annotation = (
            _decode_node_text(source_bytes, annotation_node)
            if annotation_node is not None
            else None
        )
        if child.type in {"default_parameter", "typed_default_parameter"}:
            name_node = child.child_by_field_name("name") or child
        elif child.type == "typed_parameter":
            name_node = child.named_children[0]
        else:
            name_node = child
        name, is_varargs, is_kwargs = _parameter_name(source_bytes, name_node)

        params.append(
            ParsedParameter(
                name=name,
                annotation=annotation,
                node=child,
                is_varargs=is_varargs,
                is_kwargs=is_kwargs,
                keyword_only=keyword_only and not is_kwargs,
            )
        )
        if is_varargs:
            keyword_only = True
    return params


def parameter_type(param: ParsedParameter, markers: frozenset[str]) -> tuple[ArgumentType, bool]:
    """Declared type of a parameter as seen inside the function body."""
    declared, marked = classify_annotation(param.annotation, markers)
    if param.is_varargs:
        return ArgumentType(category=TypeCategory.ARRAY, element=declared.category), marked
    if param.is_kwargs:
        return ArgumentType(category=TypeCategory.GENERAL_OBJECT), marked
    return declared, marked


def _binding_kind(class_name: str | None, decorators: list[str], nested: bool) -> BindingKind:
    if nested:
        return "local"
    if class_name is None:
        return "function"
    last = {name.rsplit(".", 1)[-1] for name in decorators}
    if "staticmethod" in last:
        return "staticmethod"
    if "classmethod" in last:
        return "classmethod"
    return "method"


def build_declaration(
    source_bytes: bytes,
    function: Node,
    *,
    relative_path: str,
    module: str,
    class_name: str | None,
    qualifier: str,
    nested: bool,
    decorator_filter: frozenset[str],
    markers: frozenset[str],
) -> DeclarationSite | None:
    name_node = function.child_by_field_name("name")
    if name_node is None:
        return None
    name = _decode_node_text(source_bytes, name_node)

    decorators = decorator_names(source_bytes, function)
    is_format_method = any(
        decorator.rsplit(".", 1)[-1] in decorator_filter for decorator in decorators
    )
    binding = _binding_kind(class_name, decorators, nested)

    parsed = parse_parameters(source_bytes, function)
    if binding in {"method", "classmethod"} and parsed and not parsed[0].is_varargs:
        # Receiver is bound implicitly at call sites.
        parsed = parsed[1:]

    parameters: list[ParameterFacts] = []
    keyword_only: set[int] = set()
    for index, param in enumerate(parsed):
        declared, marked = parameter_type(param, markers)
        parameters.append(
            ParameterFacts(
                name=param.name,
                type=declared.category,
                is_template=marked,
                is_varargs=param.is_varargs,
                span=make_span(relative_path, param.node),
            )
        )
        if param.keyword_only or param.is_kwargs:
            keyword_only.add(index)

    method = MethodDeclaration(
        name=name,
        qualified_name=_join(qualifier, name),
        is_format_method=is_format_method,
        parameters=tuple(parameters),
        span=make_span(relative_path, name_node),
    )
    return DeclarationSite(
        method=method,
        module=module,
        class_name=class_name,
        binding=binding,
        keyword_only=frozenset(keyword_only),
    )


def _walk(
    node: Node,
    *,
    source_bytes: bytes,
    relative_path: str,
    module: str,
    qualifier: str,
    class_name: str | None,
    nested: bool,
    decorator_filter: frozenset[str],
    markers: frozenset[str],
) -> Iterator[DeclarationSite]:
    for child in node.children:
        if child.type == "class_definition":
            name_node = child.child_by_field_name("name")
            body = child.child_by_field_name("body")
            if name_node is None or body is None:
                continue
            cls = _decode_node_text(source_bytes, name_node)
            yield from _walk(
                body,
                source_bytes=source_bytes,
                relative_path=relative_path,
                module=module,
                qualifier=_join(qualifier, cls),
                class_name=None if nested else cls,
                nested=nested,
                decorator_filter=decorator_filter,
                markers=markers,
            )
        elif child.type == "function_definition":
            site = build_declaration(
                source_bytes,
                child,
                relative_path=relative_path,
                module=module,
                class_name=class_name,
                qualifier=qualifier,
                nested=nested,
                decorator_filter=decorator_filter,
                markers=markers,
            )
            if site is None:
                continue
            yield site
            body = child.child_by_field_name("body")
            if body is not None:
                yield from _walk(
                    body,
                    source_bytes=source_bytes,
                    relative_path=relative_path,
                    module=module,
                    qualifier=f"{site.qualified_name}.<locals>",
                    class_name=None,
                    nested=True,
                    decorator_filter=decorator_filter,
                    markers=markers,
                )
        else:
            yield from _walk(
                child,
                source_bytes=source_bytes,
                relative_path=relative_path,
                module=module,
                qualifier=qualifier,
                class_name=class_name,
                nested=nested,
                decorator_filter=decorator_filter,
                markers=markers,
            )


def extract_declarations(
    root_node: Node,
    source_bytes: bytes,
    *,
    relative_path: str,
    module: str,
    decorators: frozenset[str],
    markers: frozenset[str],
) -> list[DeclarationSite]:
    """Extract every function declaration in a parsed module.

    All functions are returned, format methods or not: the structural check
    also applies to marked parameters of ordinary functions.
    """
    return list(
        _walk(
            root_node,
            source_bytes=source_bytes,
            relative_path=relative_path,
            module=module,
            qualifier=module,
            class_name=None,
            nested=False,
            decorator_filter=decorators,
            markers=markers,
        )
    )


__all__ = [
    "DeclarationSite",
    "ParsedParameter",
    "build_declaration",
    "decorator_names",
    "extract_declarations",
    "make_span",
    "parameter_type",
    "parse_parameters",
    "parse_source",
]

"""Repository check: index declarations, then validate declarations and calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from check.report import DiagnosticRecord, sort_records
from contract.declarations import validate_declaration
from contract.locator import locate_template_parameter
from contract.models import CallSite, LiteralExpr
from contract.resolver import resolve_constant
from contract.results import Anchor
from contract.validation import validate_call
from parse.ast_imports import extract_import_bindings
from parse.treesitter_calls import extract_calls_treesitter, module_scope_bindings
from parse.treesitter_declarations import extract_declarations, parse_source
from rules.config import load_config
from scan.files import find_python_files
from utils import path_to_module

if TYPE_CHECKING:
    from pathlib import Path

    from tree_sitter import Node

    from contract.models import Expression, MethodDeclaration, SourceSpan
    from contract.results import CallDefect, StructuralViolation
    from parse.treesitter_calls import CallRecord
    from parse.treesitter_declarations import DeclarationSite
    from rules.config import FormatCheckConfig

logger = logging.getLogger(__name__)

_RECEIVERS = frozenset({"self", "cls"})
_CLASS_CALLABLE = frozenset({"staticmethod", "classmethod"})


@dataclass
class ModuleSource:
    """One parsed module and the facts gathered about it in the first pass."""

    relative_path: str
    module: str
    source_bytes: bytes
    root_node: Node
    declarations: list[DeclarationSite]
    imports: dict[str, str]


@dataclass
class ProjectIndex:
    """Project-wide lookup tables built before any call is validated."""

    declarations: dict[str, DeclarationSite] = field(default_factory=dict)
    constants: dict[str, Expression] = field(default_factory=dict)

    def add_module(self, source: ModuleSource, markers: frozenset[str]) -> None:
        for site in source.declarations:
            if site.binding != "local":
                self.declarations[site.qualified_name] = site

        constants, _ = module_scope_bindings(
            source.root_node, source.source_bytes, markers
        )
        for name, expr in constants.items():
            value = resolve_constant(expr, constants)
            if value is not None:
                self.constants[_qualify(source.module, name)] = LiteralExpr(value=value)

    def imported_constants(self, source: ModuleSource) -> dict[str, Expression]:
        return {
            local: self.constants[target]
            for local, target in source.imports.items()
            if target in self.constants
        }

    def resolve(self, call: CallRecord, source: ModuleSource) -> DeclarationSite | None:
        """Find the declaration a call refers to, or None when unknown."""
        if call.callee is None or call.callee_is_local:
            return None

        head, _, rest = call.callee.partition(".")
        if not rest:
            local = self.declarations.get(_qualify(source.module, head))
            if local is not None and local.binding == "function":
                return local
            target = source.imports.get(head)
            if target is None:
                return None
            site = self.declarations.get(target)
            return site if site is not None and site.binding == "function" else None

        if head in _RECEIVERS:
            if call.enclosing_class is None or "." in rest:
                return None
            site = self.declarations.get(
                _qualify(source.module, f"{call.enclosing_class}.{rest}")
            )
            if site is None or (head == "cls" and site.binding not in _CLASS_CALLABLE):
                return None
            return site

        target = source.imports.get(head)
        qualified = (
            f"{target}.{rest}" if target is not None else _qualify(source.module, call.callee)
        )
        site = self.declarations.get(qualified)
        if site is None or site.binding == "method":
            # Instance methods called through the class take an explicit receiver.
            return None
        return site


@dataclass
class CheckResult:
    diagnostics: list[DiagnosticRecord] = field(default_factory=list)
    files_checked: int = 0
    declarations_checked: int = 0
    calls_checked: int = 0

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def _qualify(module: str, name: str) -> str:
    return f"{module}.{name}" if module else name


def _module_name(relative_path: str) -> str:
    try:
        return path_to_module(relative_path)
    except ValueError:
        return ""


def _load_module(
    path: Path, root: Path, config: FormatCheckConfig
) -> ModuleSource | None:
    relative_path = path.relative_to(root).as_posix()
    try:
        source_bytes = path.read_bytes()
    except OSError as exc:
        logger.warning("Skipping unreadable file %s: %s", relative_path, exc)
        return None

    module = _module_name(relative_path)
    root_node = parse_source(source_bytes)
    declarations = extract_declarations(
        root_node,
        source_bytes,
        relative_path=relative_path,
        module=module,
        decorators=config.decorator_names,
        markers=config.marker_names,
    )
    imports = extract_import_bindings(
        source_bytes,
        module,
        is_package=path.name == "__init__.py",
    )
    return ModuleSource(
        relative_path=relative_path,
        module=module,
        source_bytes=source_bytes,
        root_node=root_node,
        declarations=declarations,
        imports=imports,
    )


def violation_record(
    method: MethodDeclaration,
    violation: StructuralViolation,
    relative_path: str,
    fallback_line: int | None = None,
) -> DiagnosticRecord:
    span: SourceSpan | None = method.span
    if violation.anchor is Anchor.PARAMETER and violation.parameter_index is not None:
        span = method.parameters[violation.parameter_index].span or span
    return DiagnosticRecord.at(
        span,
        fallback_path=relative_path,
        fallback_line=fallback_line,
        check="declaration",
        kind=violation.kind.value,
        message=violation.message,
        symbol=method.qualified_name or method.name,
        anchor=violation.anchor.value,
    )


def defect_record(
    call: CallSite,
    defect: CallDefect,
    relative_path: str,
    fallback_line: int | None = None,
) -> DiagnosticRecord:
    span = call.span
    template_index = locate_template_parameter(call.callee)
    if defect.anchor is Anchor.TEMPLATE_ARGUMENT and template_index is not None:
        span = call.arguments[template_index].span or span
    return DiagnosticRecord.at(
        span,
        fallback_path=relative_path,
        fallback_line=fallback_line,
        check="call",
        kind=defect.kind,
        message=defect.message,
        symbol=call.callee.qualified_name or call.callee.name,
        anchor=defect.anchor.value,
    )


def bind_call(site: DeclarationSite, call: CallRecord) -> CallSite | None:
    """Map a call's positional arguments onto the callee's parameters.

    Returns None when the binding cannot be determined statically: keyword
    or ``**`` arguments that may fill a positional slot, a template reachable
    only by keyword or left to its default, or starred arguments whose length
    is unknown. Keywords naming keyword-only parameters do not affect the
    trailing arguments and are ignored.
    """
    method = site.method
    template = locate_template_parameter(method)
    if template is None:
        return None
    if template in site.keyword_only or call.has_dict_splat:
        return None

    positional = {
        param.name
        for index, param in enumerate(method.parameters)
        if index not in site.keyword_only and not param.is_varargs
    }
    if positional.intersection(call.keywords):
        return None

    if len(call.arguments) <= template:
        return None
    if any(index <= template for index in call.starred):
        return None
    trailing = len(call.arguments) - template - 1
    if any(index > template for index in call.starred) and trailing != 1:
        return None

    return CallSite(
        callee=method,
        arguments=call.arguments,
        constants=dict(call.constants),
        span=call.span,
    )


def _check_declarations(source: ModuleSource, result: CheckResult) -> None:
    for site in source.declarations:
        result.declarations_checked += 1
        violation = validate_declaration(site.method)
        if violation is not None:
            result.diagnostics.append(
                violation_record(site.method, violation, source.relative_path)
            )


def _check_calls(
    source: ModuleSource,
    index: ProjectIndex,
    markers: frozenset[str],
    result: CheckResult,
) -> None:
    calls = extract_calls_treesitter(
        source.root_node,
        source.source_bytes,
        relative_path=source.relative_path,
        markers=markers,
        imported_constants=index.imported_constants(source),
    )
    for record in calls:
        site = index.resolve(record, source)
        if site is None:
            continue
        call = bind_call(site, record)
        if call is None:
            continue

        result.calls_checked += 1
        defect = validate_call(call)
        if defect is None:
            continue

        result.diagnostics.append(
            defect_record(call, defect, source.relative_path)
        )


def run_check(root: Path, config: FormatCheckConfig | None = None) -> CheckResult:
    """Check every Python file under ``root``.

    Args:
        root: Repository root to analyze
        config: Optional configuration; loaded from ``formatcheck.toml``
            when omitted

    Returns:
        CheckResult with diagnostics sorted by location.
    """
    if config is None:
        config = load_config(root)

    markers = config.marker_names
    sources: list[ModuleSource] = []
    for path in find_python_files(
        root,
        include_patterns=config.include,
        exclude_patterns=config.exclude,
        nested_gitignore=config.nested_gitignore,
    ):
        source = _load_module(path, root, config)
        if source is not None:
            sources.append(source)

    index = ProjectIndex()
    for source in sources:
        index.add_module(source, markers)
    logger.debug(
        "Indexed %d declarations and %d constants",
        len(index.declarations),
        len(index.constants),
    )

    result = CheckResult(files_checked=len(sources))
    for source in sources:
        _check_declarations(source, result)
        _check_calls(source, index, markers, result)

    result.diagnostics = sort_records(result.diagnostics)
    logger.debug(
        "Checked %d declarations and %d calls in %d files",
        result.declarations_checked,
        result.calls_checked,
        result.files_checked,
    )
    return result


__all__ = [
    "CheckResult",
    "ModuleSource",
    "ProjectIndex",
    "bind_call",
    "defect_record",
    "run_check",
    "violation_record",
]

"""AST-based import binding analysis for call resolution."""

from __future__ import annotations

import ast

from utils import resolve_relative_import


def _process_import_node(node: ast.Import, bindings: dict[str, str]) -> None:
    """Process a standard import node (import x / import x.y as z)."""
    for name in node.names:
        if name.asname:
            bindings[name.asname] = name.name
        else:
            # ``import a.b`` binds ``a``.
            head = name.name.split(".", 1)[0]
            bindings[head] = head


def _process_import_from_node(
    node: ast.ImportFrom,
    bindings: dict[str, str],
    module_name: str,
    *,
    is_package: bool,
) -> None:
    """Process a from-import node (from x import y [as z])."""
    module = node.module or ""
    if node.level > 0:
        module = resolve_relative_import(
            module_name, module, node.level, is_package=is_package
        )

    for name in node.names:
        if name.name == "*":
            continue
        target = f"{module}.{name.name}" if module else name.name
        bindings[name.asname or name.name] = target


def extract_import_bindings(
    source: str | bytes,
    module_name: str,
    *,
    is_package: bool = False,
) -> dict[str, str]:
    """Map each name bound by an import statement to its qualified target.

    Args:
        source: Python source text
        module_name: Module doing the imports (for relative imports)
        is_package: True when the source is a package ``__init__``

    Returns:
        Dictionary of local name -> qualified name, e.g.
        ``{"log": "app.logging.log", "np": "numpy"}``.
    """
    bindings: dict[str, str] = {}

    try:
        tree = ast.parse(source)
    except (SyntaxError, ValueError):
        # Invalid syntax or null bytes: treat as no imports.
        return bindings

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            _process_import_node(node, bindings)
        elif isinstance(node, ast.ImportFrom):
            _process_import_from_node(
                node, bindings, module_name, is_package=is_package
            )

    return bindings


__all__ = ["extract_import_bindings"]

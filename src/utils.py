"""Shared utilities for formatcheck."""

from __future__ import annotations

from pathlib import Path


def path_to_module(file_path: str | Path) -> str:
    """Convert a repository-relative file path to a Python module name.

    Args:
        file_path: Relative file path (e.g., "src/formatcheck_demo/log.py")

    Returns:
        Module name (e.g., "formatcheck_demo.log")

    Raises:
        ValueError: when the path does not name a module (e.g. "__init__.py").

    Examples:
        >>> path_to_module("src/app/log.py")
        'app.log'
        >>> path_to_module("src/app/__init__.py")
        'app'
        >>> path_to_module(Path("foo/bar.py"))
        'foo.bar'
    """
    path_str = file_path.as_posix() if isinstance(file_path, Path) else str(file_path)
    parts = [part for part in path_str.replace("\\", "/").split("/") if part]

    # src/<package>/... maps to <package>.<submodules>.
    if len(parts) >= 2 and parts[0] == "src":
        parts = parts[1:]

    if parts and parts[-1].endswith(".py"):
        parts[-1] = parts[-1][:-3]

    if parts and parts[-1] == "__init__":
        parts = parts[:-1]

    if not parts:
        msg = f"path {path_str!r} does not map to a non-empty module name"
        raise ValueError(msg)

    return ".".join(parts)


def resolve_relative_import(
    importing_module: str,
    relative_module: str,
    level: int,
    *,
    is_package: bool = False,
) -> str:
    """Resolve a relative import to an absolute module name.

    Examples:
        >>> resolve_relative_import("pkg.sub.mod", "foo", 1)
        'pkg.sub.foo'
        >>> resolve_relative_import("pkg.sub", "foo", 1, is_package=True)
        'pkg.sub.foo'
        >>> resolve_relative_import("pkg.sub.mod", "bar", 2)
        'pkg.bar'
    """
    parts = importing_module.split(".")
    if is_package:
        parts.append("__init__")

    if level > len(parts):
        return relative_module or importing_module

    base_parts = parts[: len(parts) - level]
    if relative_module:
        return ".".join([*base_parts, relative_module])
    if base_parts:
        return ".".join(base_parts)
    return importing_module

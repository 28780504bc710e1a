from __future__ import annotations

import shutil
from pathlib import Path

from check.runner import CheckResult, run_check
from rules.config import FormatCheckConfig


def _copy_mini_repo_fixture(root: Path) -> None:
    fixture_repo = Path(__file__).parent / "fixtures" / "mini_repo"
    shutil.copytree(fixture_repo, root)


def _write(root: Path, relative: str, content: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _summary(result: CheckResult) -> list[tuple[str, int | None, str]]:
    return [(d.path, d.line, d.kind) for d in result.diagnostics]


def test_fixture_repo_diagnostics(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_repo_fixture(repo_root)

    result = run_check(repo_root)

    assert _summary(result) == [
        ("pkg_a/bad_declarations.py", 9, "missing_string_param"),
        ("pkg_a/bad_declarations.py", 13, "multiple_marked_params"),
        ("pkg_a/bad_declarations.py", 17, "marked_non_string_param"),
        ("pkg_a/bad_declarations.py", 20, "marked_outside_format_method"),
        ("pkg_a/core.py", 26, "count_mismatch"),
        ("pkg_a/use_core.py", 9, "type_mismatch"),
        ("pkg_a/use_core.py", 10, "unresolved_template"),
    ]
    assert result.files_checked == 4
    assert not result.ok


def test_fixture_repo_anchors_and_messages(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_repo_fixture(repo_root)

    by_kind = {d.kind: d for d in run_check(repo_root).diagnostics}

    non_string = by_kind["marked_non_string_param"]
    assert non_string.anchor == "parameter"
    assert non_string.col == 21
    assert non_string.symbol == "pkg_a.bad_declarations.object_template"

    outside = by_kind["marked_outside_format_method"]
    assert outside.message == (
        "A parameter can only be annotated @FormatString in a method "
        "annotated @FormatMethod: fmt"
    )

    count = by_kind["count_mismatch"]
    assert count.check == "call"
    assert count.anchor == "call"
    assert count.col == 16
    assert count.symbol == "pkg_a.core.Greeter.greet"
    assert count.message == "extra format arguments: used 1, provided 2"

    mismatch = by_kind["type_mismatch"]
    assert mismatch.message == "format specifier '%d' (#0) expects integer, got string"

    unresolved = by_kind["unresolved_template"]
    assert unresolved.anchor == "template_argument"
    assert unresolved.col == 9


def test_excluded_files_are_not_checked(tmp_path: Path) -> None:
    repo_root = tmp_path / "repo"
    _copy_mini_repo_fixture(repo_root)
    config = FormatCheckConfig(exclude=["pkg_a/bad_declarations.py"])

    result = run_check(repo_root, config)

    assert {d.path for d in result.diagnostics} == {"pkg_a/core.py", "pkg_a/use_core.py"}
    assert result.files_checked == 3


def test_module_imports_and_class_methods_resolve(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "app/fmt.py",
        """
from markers import FormatString, format_method


@format_method
def emit(fmt: FormatString, *args): ...


class Console:
    @classmethod
    @format_method
    def write(cls, fmt: str, *args): ...

    @classmethod
    def banner(cls) -> None:
        cls.write("%s %s", "only-one")
""".lstrip(),
    )
    _write(
        tmp_path,
        "app/main.py",
        """
import app.fmt as fmt_mod
from app import fmt
from app.fmt import Console


def main(level: int) -> None:
    fmt_mod.emit("%d", level)
    fmt.emit("%d", "xy")
    Console.write("%f", level)
    fmt.emit(fmt="%d")
    fmt.emit("%d", **{})
""".lstrip(),
    )

    result = run_check(tmp_path)

    assert _summary(result) == [
        ("app/fmt.py", 15, "count_mismatch"),
        ("app/main.py", 8, "type_mismatch"),
        ("app/main.py", 9, "type_mismatch"),
    ]
    assert [d.symbol for d in result.diagnostics] == [
        "app.fmt.Console.write",
        "app.fmt.emit",
        "app.fmt.Console.write",
    ]


def test_final_constants_resolve_across_scopes(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "svc.py",
        """
from typing import Final

from markers import FormatString, format_method

PREFIX: Final = "[%s] "
LINE: Final[str] = PREFIX + "%d"
mutable = "%d"


@format_method
def report(fmt: FormatString, *args): ...


def handler(name: str, count: int) -> None:
    local_fmt: Final = "%s=%s"
    report(LINE, name, count)
    report(local_fmt, name, count)
    report(PREFIX if True else LINE, name)
    report(mutable, count)
""".lstrip(),
    )

    result = run_check(tmp_path)

    assert _summary(result) == [("svc.py", 19, "unresolved_template")]


def test_array_and_ambiguous_starred_arguments(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "svc.py",
        """
from markers import FormatString, format_method


@format_method
def report(fmt: FormatString, *args): ...


def handler(counts: list[int], names: list[str], extra: int) -> None:
    report("%d %d", *counts)
    report("%d", *names)
    report("%d %d", extra, *counts)
    report(*names)
    report("%d", *[extra])
    report("%d", *["x", "y"])
""".lstrip(),
    )

    result = run_check(tmp_path)

    assert _summary(result) == [
        ("svc.py", 10, "type_mismatch"),
        ("svc.py", 14, "count_mismatch"),
    ]


def test_shadowed_and_unknown_callees_are_skipped(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "svc.py",
        """
from markers import FormatString, format_method


@format_method
def report(fmt: FormatString, *args): ...


def handler(report) -> None:
    report("%d", "not checked")


def other() -> None:
    unknown("%d", "not checked")
    report("%s", "checked")
""".lstrip(),
    )

    result = run_check(tmp_path)

    assert result.ok
    assert result.calls_checked == 1


def test_syntax_errors_do_not_abort_the_check(tmp_path: Path) -> None:
    _write(tmp_path, "ok.py", "x = 1\n")
    _write(tmp_path, "broken.py", "def (:\n")

    result = run_check(tmp_path)

    assert result.ok
    assert result.files_checked == 2


def test_keyword_arguments_after_the_template(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "svc.py",
        """
from markers import format_method


@format_method
def log(fmt: str, a: object, b: object): ...


@format_method
def emit(fmt: str, *args, sep: str = " "): ...


@format_method
def render(fmt: str = "%s", *args): ...


def main(x: int) -> None:
    log("%s %s", 1, b=2)
    emit("%s", x, sep=",")
    emit("%d %d", x, sep=",")
    render()
    render(fmt="%s")
""".lstrip(),
    )

    result = run_check(tmp_path)

    assert _summary(result) == [("svc.py", 19, "count_mismatch")]
    assert result.calls_checked == 2

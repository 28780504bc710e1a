from __future__ import annotations

from parse.ast_imports import extract_import_bindings
from utils import resolve_relative_import

SOURCE = """
import os.path
import numpy as np
from .log import log as emit
from ..util import helpers
from app.fmt import FMT
from wildcard import *
"""


def test_import_bindings_map_local_names_to_targets() -> None:
    bindings = extract_import_bindings(SOURCE, "pkg.sub.mod")

    assert bindings == {
        "os": "os",
        "np": "numpy",
        "emit": "pkg.sub.log.log",
        "helpers": "pkg.util.helpers",
        "FMT": "app.fmt.FMT",
    }


def test_package_init_resolves_relative_imports_against_itself() -> None:
    bindings = extract_import_bindings(
        "from .log import log\n", "pkg", is_package=True
    )

    assert bindings == {"log": "pkg.log.log"}


def test_invalid_source_has_no_bindings() -> None:
    assert extract_import_bindings("def (:\n", "pkg.mod") == {}
    assert extract_import_bindings(b"import os\x00\n", "pkg.mod") == {}


def test_resolve_relative_import_levels() -> None:
    assert resolve_relative_import("pkg.sub.mod", "foo", 1) == "pkg.sub.foo"
    assert resolve_relative_import("pkg.sub.mod", "bar", 2) == "pkg.bar"
    assert resolve_relative_import("pkg.sub.mod", "", 1) == "pkg.sub"
    assert resolve_relative_import("pkg.sub", "foo", 1, is_package=True) == "pkg.sub.foo"

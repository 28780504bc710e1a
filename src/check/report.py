"""Diagnostic records and their text/JSONL renderings."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING, Literal

import orjson
from pydantic import BaseModel, Field

from contract.results import CHECK_NAME, DIAGNOSTIC_SCHEMA_VERSION

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from contract.models import SourceSpan

CheckKind = Literal["declaration", "call", "facts"]


class DiagnosticRecord(BaseModel):
    """Schema for one reported diagnostic."""

    schema_version: int = Field(default=DIAGNOSTIC_SCHEMA_VERSION)
    check: CheckKind
    kind: str
    message: str
    path: str
    line: int | None = None
    col: int | None = None
    symbol: str | None = Field(
        default=None, description="Qualified name of the method involved"
    )
    anchor: str | None = None

    @classmethod
    def at(
        cls,
        span: SourceSpan | None,
        *,
        fallback_path: str,
        fallback_line: int | None = None,
        check: CheckKind,
        kind: str,
        message: str,
        symbol: str | None = None,
        anchor: str | None = None,
    ) -> DiagnosticRecord:
        """Build a record located at ``span``, or at the fallback location."""
        if span is None:
            path, line, col = fallback_path, fallback_line, None
        else:
            path, line, col = span.path, span.start_line, span.start_col
        return cls(
            check=check,
            kind=kind,
            message=message,
            path=path,
            line=line,
            col=col,
            symbol=symbol,
            anchor=anchor,
        )

    def location(self) -> str:
        parts = [self.path]
        if self.line is not None:
            parts.append(str(self.line))
            if self.col is not None:
                parts.append(str(self.col))
        return ":".join(parts)

    def render(self) -> str:
        return f"{self.location()}: [{CHECK_NAME}] {self.message}"


def sort_records(records: Iterable[DiagnosticRecord]) -> list[DiagnosticRecord]:
    return sorted(
        records,
        key=lambda record: (
            record.path,
            record.line or 0,
            record.col or 0,
            record.check,
            record.kind,
            record.message,
        ),
    )


def dumps_jsonl(records: Sequence[DiagnosticRecord]) -> bytes:
    return b"".join(
        orjson.dumps(record.model_dump(), option=orjson.OPT_SORT_KEYS) + b"\n"
        for record in records
    )


def write_jsonl(stream: IO[bytes], records: Sequence[DiagnosticRecord]) -> None:
    stream.write(dumps_jsonl(records))


def write_text(stream: IO[str], records: Sequence[DiagnosticRecord]) -> None:
    for record in records:
        stream.write(record.render())
        stream.write("\n")


def write_report(
    records: Sequence[DiagnosticRecord],
    *,
    fmt: str,
    out_path: Path | None,
    stdout: IO[str],
) -> None:
    """Write ``records`` to ``out_path`` (or ``stdout``) as text or JSONL."""
    if fmt == "jsonl":
        if out_path is None:
            stdout.write(dumps_jsonl(records).decode("utf-8"))
            return
        with out_path.open("wb") as handle:
            write_jsonl(handle, records)
        return

    if out_path is None:
        write_text(stdout, records)
        return
    with out_path.open("w", encoding="utf-8") as handle:
        write_text(handle, records)


__all__ = [
    "DiagnosticRecord",
    "dumps_jsonl",
    "sort_records",
    "write_jsonl",
    "write_report",
    "write_text",
]

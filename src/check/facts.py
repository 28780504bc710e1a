"""Validation of declaration and call facts supplied as JSONL.

Each line holds one record produced by an external host::

    {"kind": "declaration", "method": {...}}
    {"kind": "call", "call": {...}}

The nested objects follow the ``contract.models`` schemas.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated, Literal, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from check.report import DiagnosticRecord, sort_records
from check.runner import CheckResult, defect_record, violation_record
from contract.declarations import validate_declaration
from contract.models import CallSite, MethodDeclaration
from contract.results import ContractInvariantError
from contract.validation import validate_call

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class DeclarationFacts(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["declaration"]
    method: MethodDeclaration


class CallFacts(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["call"]
    call: CallSite


FactsRecord = Annotated[Union[DeclarationFacts, CallFacts], Field(discriminator="kind")]

_FACTS_ADAPTER: TypeAdapter[DeclarationFacts | CallFacts] = TypeAdapter(FactsRecord)


def _facts_error(
    path: str, line_number: int, kind: str, message: str
) -> DiagnosticRecord:
    return DiagnosticRecord(
        check="facts",
        kind=kind,
        message=message,
        path=path,
        line=line_number,
    )


def check_facts(path: Path) -> CheckResult:
    """Validate every record of a JSONL facts file.

    Lines that are not valid JSON or do not match the schema are reported as
    ``facts`` diagnostics carrying their line number; blank lines are skipped.

    Raises:
        OSError: when the file cannot be read.
    """
    result = CheckResult(files_checked=1)
    display_path = path.as_posix()

    with path.open("rb") as handle:
        for line_number, raw_line in enumerate(handle, 1):
            line = raw_line.strip()
            if not line:
                continue
            try:
                data = orjson.loads(line)
            except orjson.JSONDecodeError as exc:
                result.diagnostics.append(
                    _facts_error(
                        display_path, line_number, "invalid_json", f"Invalid JSON: {exc}."
                    )
                )
                continue

            try:
                record = _FACTS_ADAPTER.validate_python(data)
            except ValidationError as exc:
                result.diagnostics.append(
                    _facts_error(
                        display_path,
                        line_number,
                        "schema_error",
                        f"Schema validation failed: {exc}.",
                    )
                )
                continue

            if isinstance(record, DeclarationFacts):
                result.declarations_checked += 1
                violation = validate_declaration(record.method)
                if violation is not None:
                    result.diagnostics.append(
                        violation_record(
                            record.method, violation, display_path, line_number
                        )
                    )
                continue

            result.calls_checked += 1
            try:
                defect = validate_call(record.call)
            except ContractInvariantError as exc:
                logger.debug("Invalid call facts on line %d: %s", line_number, exc)
                result.diagnostics.append(
                    _facts_error(display_path, line_number, "contract_invariant", str(exc))
                )
                continue
            if defect is not None:
                result.diagnostics.append(
                    defect_record(record.call, defect, display_path, line_number)
                )

    result.diagnostics = sort_records(result.diagnostics)
    return result


__all__ = ["CallFacts", "DeclarationFacts", "FactsRecord", "check_facts"]

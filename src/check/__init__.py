"""Repository and facts-file checks built on the contract engine."""

from check.facts import check_facts
from check.report import DiagnosticRecord, write_report
from check.runner import CheckResult, run_check

__all__ = ["CheckResult", "DiagnosticRecord", "check_facts", "run_check", "write_report"]

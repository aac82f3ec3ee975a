"""Core rule engine and data structures."""

from templatelint.core.findings import Finding, FileResult, LintReport, RawMessage, Severity
from templatelint.core.engine import Linter
from templatelint.core.rules import Plugin, Rule, RuleConfigError, RuleMetadata, RuleRegistry
from templatelint.core.visitor import ActiveRule, RuleDispatcher

__all__ = [
    "ActiveRule",
    "Finding",
    "FileResult",
    "LintReport",
    "Linter",
    "Plugin",
    "RawMessage",
    "Rule",
    "RuleConfigError",
    "RuleDispatcher",
    "RuleMetadata",
    "RuleRegistry",
    "Severity",
]

"""
Template Linter

A static linter for component templates: HTML augmented with mustache
statements. Rules are configurable per project, extensible with plugins,
and can be switched off inline with ``template-lint`` comments.
"""

__version__ = "1.0.0"
__author__ = "Template Lint Team"

from templatelint.core.engine import Linter, create_linter
from templatelint.core.findings import Finding, Severity
from templatelint.core.rules import Plugin, Rule, RuleMetadata
from templatelint.config import ConfigLoadError, LintConfig

__all__ = [
    "ConfigLoadError",
    "Finding",
    "LintConfig",
    "Linter",
    "Plugin",
    "Rule",
    "RuleMetadata",
    "Severity",
    "create_linter",
]

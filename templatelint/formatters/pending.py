"""
Pending list formatter.

Prints the ``pending`` entries that would let every currently failing
module pass, so that a linter can be introduced into an existing project
and the list burned down over time.
"""

import json
from typing import Any, Dict, List, Optional

import yaml

from templatelint.core.findings import LintReport


def pending_entries(report: LintReport) -> List[Dict[str, Any]]:
    """One ``{moduleId, only}`` entry per module with rule violations."""
    entries = []
    for result in report.results:
        if not result.failing_rules:
            continue
        entries.append({
            "moduleId": result.module_id,
            "only": result.failing_rules,
        })
    return entries


class PendingFormatter:
    """Formats the pending list as a YAML snippet, or as JSON."""

    def __init__(self, config_name: Optional[str] = None, as_json: bool = False, indent: int = 2):
        self.config_name = config_name or ".template-lintrc.yml"
        self.as_json = as_json
        self.indent = indent

    def format_result(self, report: LintReport) -> str:
        entries = pending_entries(report)
        if self.as_json:
            return json.dumps(entries, indent=self.indent) + "\n"

        snippet = yaml.safe_dump({"pending": entries}, default_flow_style=False, sort_keys=False)
        return (
            f"Add the following to your `{self.config_name}` file to mark these files as pending.\n"
            f"\n"
            f"{snippet}"
        )

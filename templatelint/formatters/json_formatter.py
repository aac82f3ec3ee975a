"""
JSON output formatter for machine-readable results.
"""

import json

from templatelint.core.findings import LintReport


class JSONFormatter:
    """
    Formats lint results as JSON for machine consumption.

    The document maps each processed file's absolute path to its list of
    findings, including files without findings.
    """

    def __init__(self, indent: int = 2):
        self.indent = indent

    def format_result(self, report: LintReport) -> str:
        """Format a complete lint report as JSON."""
        return json.dumps(report.to_dict(), indent=self.indent) + "\n"

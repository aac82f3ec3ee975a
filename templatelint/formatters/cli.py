"""
CLI output formatter for human-readable results.
"""

import io
import sys
from typing import List

from rich.console import Console
from rich.text import Text

from templatelint.core.findings import Finding, LintReport, Severity


def supports_color() -> bool:
    """Check if the terminal supports color output."""
    if not hasattr(sys.stdout, "isatty"):
        return False
    if not sys.stdout.isatty():
        return False
    return True


class CLIFormatter:
    """
    Formats lint results for human-readable CLI output.

    Output looks like:

        /path/to/app/templates/application.hbs
          1:4  error  Non-translated string used  no-bare-strings

        ✖ 1 problems (1 errors, 0 warnings)
    """

    SEVERITY_STYLES = {
        Severity.ERROR: "red",
        Severity.WARNING: "yellow",
    }

    def __init__(self, use_color: bool = True, verbose: bool = False):
        self.use_color = use_color and supports_color()
        self.verbose = verbose

    def _format_finding(self, finding: Finding) -> List[Text]:
        """Format a single finding."""
        if finding.line is None:
            position = "-:-"
        else:
            position = f"{finding.line}:{finding.column if finding.column is not None else 0}"

        line = Text("  ")
        line.append(position, style="dim")
        line.append("  ")
        line.append(finding.severity.label, style=self.SEVERITY_STYLES.get(finding.severity, ""))
        line.append(f"  {finding.message}")
        if finding.rule:
            line.append("  ")
            line.append(finding.rule, style="dim")

        lines = [line]
        if self.verbose and finding.source:
            lines.append(Text(finding.source, style="dim"))
        return lines

    def render(self, report: LintReport) -> Text:
        """Build the styled report; empty when there are no findings."""
        output = Text()
        for result in report.results:
            if not result.findings:
                continue
            output.append(result.file_path, style="underline")
            output.append("\n")
            for finding in result.findings:
                for line in self._format_finding(finding):
                    output.append_text(line)
                    output.append("\n")
            output.append("\n")

        if report.total_findings:
            summary_style = "bold red" if report.error_count else "bold yellow"
            output.append(
                f"✖ {report.total_findings} problems "
                f"({report.error_count} errors, {report.warning_count} warnings)",
                style=summary_style,
            )
        return output

    def format_result(self, report: LintReport) -> str:
        """Format a complete lint report."""
        buffer = io.StringIO()
        console = Console(
            file=buffer,
            force_terminal=self.use_color,
            color_system="standard" if self.use_color else None,
            highlight=False,
            soft_wrap=True,
            emoji=False,
        )
        rendered = self.render(report)
        if rendered.plain:
            console.print(rendered)
        return buffer.getvalue()

"""
Output formatters for lint results.

Provides multiple output formats including:
- Human-readable CLI output
- JSON for machine processing
- Pending lists for adopting the linter in existing projects
"""

from templatelint.formatters.cli import CLIFormatter
from templatelint.formatters.json_formatter import JSONFormatter
from templatelint.formatters.pending import PendingFormatter

__all__ = [
    "CLIFormatter",
    "JSONFormatter",
    "PendingFormatter",
]


def get_formatter(format_name: str, **options):
    """Get a formatter by name, passing ``options`` to its constructor."""
    formatters = {
        "text": CLIFormatter,
        "cli": CLIFormatter,
        "json": JSONFormatter,
        "pending": PendingFormatter,
    }

    formatter_class = formatters.get(format_name.lower())
    if formatter_class:
        return formatter_class(**options)

    raise ValueError(f"Unknown format: {format_name}")

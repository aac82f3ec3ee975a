"""
Command-line interface for the template linter.

Lints template files, directories, glob patterns or standard input and
prints the findings as text, JSON, or a pending list.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from templatelint import __version__
from templatelint.config import ConfigLoadError
from templatelint.core.engine import Linter
from templatelint.core.findings import FileResult, LintReport
from templatelint.formatters import get_formatter
from templatelint.utils import expand_paths, module_id_for_path

STDIN_PATHS = ("-", "/dev/stdin")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="template-lint",
        description="Lint component templates for common mistakes and style issues.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  template-lint app/templates                   # Lint a directory
  template-lint app/templates/application.hbs   # Lint a single file
  template-lint 'app/**/*.hbs' --json           # Output as JSON
  template-lint . --print-pending               # Print a pending list
  template-lint --filename app/t.hbs < app/t.hbs  # Lint standard input
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Files, directories or glob patterns to lint; '-' reads standard input",
    )
    parser.add_argument(
        "--config-path",
        help="Path to a configuration file (default: .template-lintrc* in the working directory)",
    )
    parser.add_argument(
        "--filename",
        help="Path of the template read from standard input (required with standard input)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Report errors only",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Also print the source of each finding",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    parser.add_argument(
        "--print-pending",
        action="store_true",
        help="Print a pending list covering every failing module",
    )

    return parser


def configure_logging(debug: bool = False):
    """Send log records to stderr through rich."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=debug,
        rich_tracebacks=debug,
    )
    logger = logging.getLogger("templatelint")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False


def _reads_stdin(args: argparse.Namespace) -> bool:
    if any(path in STDIN_PATHS for path in args.paths):
        return True
    return not args.paths and not sys.stdin.isatty()


def lint_stdin(linter: Linter, filename: str) -> FileResult:
    """Lint a template read from standard input as if it lived at ``filename``."""
    source = sys.stdin.read()
    module_id = module_id_for_path(filename, linter.cwd)
    return FileResult(
        file_path=os.path.abspath(filename),
        module_id=module_id,
        findings=linter.verify(source, module_id),
    )


def cmd_lint(args: argparse.Namespace) -> int:
    """Lint the requested templates and print the report."""
    linter = Linter(config_path=args.config_path)

    results: List[FileResult] = []
    if _reads_stdin(args):
        results.append(lint_stdin(linter, args.filename))

    file_paths = expand_paths([path for path in args.paths if path not in STDIN_PATHS])
    report = LintReport(results + linter.verify_files(file_paths).results)

    if args.quiet:
        report = report.without_warnings()

    if args.print_pending:
        config_name = os.path.basename(linter.config_path) if linter.config_path else None
        formatter = get_formatter("pending", config_name=config_name, as_json=args.json)
    elif args.json:
        formatter = get_formatter("json")
    else:
        formatter = get_formatter("text", verbose=args.verbose)

    output = formatter.format_result(report)
    if output:
        sys.stdout.write(output)

    return 1 if report.has_errors else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    if _reads_stdin(args) and not args.filename:
        parser.error("--filename is required when reading from standard input")

    debug = bool(os.environ.get("DEBUG"))
    configure_logging(debug)

    try:
        return cmd_lint(args)
    except KeyboardInterrupt:
        print("\nLinting interrupted.", file=sys.stderr)
        return 130
    except ConfigLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if debug:
            raise
        return 1


if __name__ == "__main__":
    sys.exit(main())

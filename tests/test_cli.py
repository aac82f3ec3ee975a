"""
Tests for the command-line interface and output formatters.
"""

import io
import json
import logging
import pytest
import os
import sys

import yaml

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from templatelint.cli import main
from templatelint.core.findings import FileResult, Finding, LintReport, Severity
from templatelint.formatters import CLIFormatter, JSONFormatter, PendingFormatter, get_formatter


BARE_STRINGS_SOURCE = "<h2>Here too!!</h2>\n<div>Bare strings are bad...</div>\n"


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    """main() installs its own handler on the package logger."""
    logger = logging.getLogger("templatelint")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    monkeypatch.delenv("DEBUG", raising=False)
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A project with one template and a config enabling no-bare-strings."""
    templates = tmp_path / "app" / "templates"
    templates.mkdir(parents=True)
    (templates / "application.hbs").write_text(BARE_STRINGS_SOURCE)
    (tmp_path / ".template-lintrc.yml").write_text("rules:\n  no-bare-strings: true\n")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def output_lines(text):
    return [line.rstrip() for line in text.splitlines()]


class TestCLI:
    """Tests for running the linter from the command line."""

    def test_text_output(self, project, capsys):
        """Test the default human-readable output."""
        exit_code = main(["app/templates/application.hbs"])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert output_lines(captured.out) == [
            str(project / "app" / "templates" / "application.hbs"),
            "  1:4  error  Non-translated string used  no-bare-strings",
            "  2:5  error  Non-translated string used  no-bare-strings",
            "",
            "✖ 2 problems (2 errors, 0 warnings)",
        ]

    def test_directory_argument(self, project, capsys):
        """Test that directories are walked for templates."""
        assert main(["app"]) == 1
        assert "no-bare-strings" in capsys.readouterr().out

    def test_json_output(self, project, capsys):
        """Test JSON output keyed by absolute path."""
        exit_code = main(["app/templates/application.hbs", "--json"])

        data = json.loads(capsys.readouterr().out)
        path = str(project / "app" / "templates" / "application.hbs")
        assert exit_code == 1
        assert list(data) == [path]
        assert data[path][0] == {
            "message": "Non-translated string used",
            "moduleId": "app/templates/application",
            "line": 1,
            "column": 4,
            "source": "Here too!!",
            "rule": "no-bare-strings",
            "severity": 2,
        }

    def test_json_includes_clean_files(self, project, capsys):
        (project / "app" / "templates" / "clean.hbs").write_text("{{t 'hello'}}\n")
        main(["app/templates/clean.hbs", "--json"])
        assert json.loads(capsys.readouterr().out) == {
            str(project / "app" / "templates" / "clean.hbs"): [],
        }

    def test_print_pending(self, project, capsys):
        """Test printing a pending list for failing modules."""
        main(["app", "--print-pending"])

        out = capsys.readouterr().out
        header, blank, snippet = out.split("\n", 2)
        assert header == (
            "Add the following to your `.template-lintrc.yml` file to mark these files as pending."
        )
        assert blank == ""
        assert yaml.safe_load(snippet) == {
            "pending": [{"moduleId": "app/templates/application", "only": ["no-bare-strings"]}],
        }

    def test_print_pending_json(self, project, capsys):
        main(["app", "--print-pending", "--json"])
        assert json.loads(capsys.readouterr().out) == [
            {"moduleId": "app/templates/application", "only": ["no-bare-strings"]},
        ]

    def test_print_pending_skips_passing_modules(self, project, capsys):
        """Test that a stale pending module is not listed again."""
        (project / "app" / "templates" / "application.hbs").write_text("{{t 'hello'}}\n")
        (project / ".template-lintrc.yml").write_text(
            "rules:\n  no-bare-strings: true\npending:\n  - app/templates/application\n"
        )
        main(["app", "--print-pending", "--json"])
        assert json.loads(capsys.readouterr().out) == []

    def test_undecodable_template_does_not_abort(self, project, capsys):
        """Test that a file that is not valid UTF-8 is reported and the run continues."""
        (project / "app" / "templates" / "broken.hbs").write_bytes(b"<div>\xff\xfe</div>")
        assert main(["app", "--json"]) == 1

        data = json.loads(capsys.readouterr().out)
        broken = str(project / "app" / "templates" / "broken.hbs")
        application = str(project / "app" / "templates" / "application.hbs")
        assert sorted(data) == sorted([broken, application])
        assert [f["fatal"] for f in data[broken]] == [True]
        assert data[broken][0]["moduleId"] == "app/templates/broken"
        assert len(data[application]) == 2

    def test_pending_module_passes(self, project, capsys):
        """Test that warnings alone do not fail the run."""
        (project / ".template-lintrc.yml").write_text(
            "rules:\n  no-bare-strings: true\npending:\n  - app/templates/application\n"
        )
        assert main(["app"]) == 0
        assert "(0 errors, 2 warnings)" in capsys.readouterr().out

    def test_quiet_hides_warnings(self, project, capsys):
        (project / ".template-lintrc.yml").write_text(
            "rules:\n  no-bare-strings: true\npending:\n  - app/templates/application\n"
        )
        assert main(["app", "--quiet"]) == 0
        assert capsys.readouterr().out == ""

    def test_verbose_shows_source(self, project, capsys):
        main(["app", "--verbose"])
        assert "Bare strings are bad..." in output_lines(capsys.readouterr().out)

    def test_nonexistent_path(self, project, capsys):
        """Test that missing paths are skipped quietly."""
        assert main(["app/templates/does-not-exist.hbs"]) == 0
        assert capsys.readouterr().out == ""

    def test_explicit_config_path(self, project, capsys):
        (project / "strict.yml").write_text("rules:\n  no-bare-strings: false\n")
        assert main(["app", "--config-path", "strict.yml"]) == 0
        assert capsys.readouterr().out == ""

    def test_missing_config_path(self, project, capsys):
        """Test that a missing config file aborts with an error."""
        assert main(["app", "--config-path", "nope.yml"]) == 1
        assert capsys.readouterr().err.strip() == (
            "Error: The configuration file specified (nope.yml) could not be found. Aborting."
        )

    def test_broken_config(self, project, capsys):
        (project / ".template-lintrc.yml").write_text("rules: [unclosed\n")
        assert main(["app"]) == 1
        assert capsys.readouterr().err.startswith("Error: Error while loading")

    def test_stdin(self, project, monkeypatch, capsys):
        """Test linting a template piped on standard input."""
        monkeypatch.setattr(sys, "stdin", io.StringIO("<p>{{{html}}} text</p>"))
        assert main(["-", "--filename", "app/templates/piped.hbs", "--json"]) == 1

        data = json.loads(capsys.readouterr().out)
        path = str(project / "app" / "templates" / "piped.hbs")
        assert list(data) == [path]
        assert [f["moduleId"] for f in data[path]] == ["app/templates/piped"]

    def test_stdin_requires_filename(self, project, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO("<p>text</p>"))
        with pytest.raises(SystemExit) as info:
            main(["-", "--json"])
        assert info.value.code == 2
        assert "--filename is required" in capsys.readouterr().err
        assert [f["moduleId"] for f in data["<stdin>"]] == ["<stdin>"]

    def test_stdin_filename(self, project, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO("<p>text</p>"))
        (project / ".template-lintrc.yml").write_text(
            "rules:\n  no-bare-strings: true\npending:\n  - app/templates/piped\n"
        )
        assert main(["--filename", "app/templates/piped.hbs", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        path = str(project / "app" / "templates" / "piped.hbs")
        assert data[path][0]["moduleId"] == "app/templates/piped"
        assert data[path][0]["severity"] == 1

    def test_renamed_rule_warning(self, project, capsys):
        (project / ".template-lintrc.yml").write_text("rules:\n  bare-strings: true\n")
        assert main(["app"]) == 1
        captured = capsys.readouterr()
        assert "renamed" in captured.err
        assert "no-bare-strings" in captured.out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--version"])
        assert info.value.code == 0
        assert "template-lint" in capsys.readouterr().out


class TestFormatters:
    """Tests for the output formatters."""

    def make_report(self):
        return LintReport([
            FileResult("/project/a.hbs", "a", [
                Finding(message="Definition for rule 'x' was not found", module_id="a"),
                Finding(message="HTML comment detected", module_id="a", line=3, column=2,
                        source="<!-- c -->", rule="no-html-comments", severity=Severity.WARNING),
            ]),
            FileResult("/project/b.hbs", "b", []),
        ])

    def test_cli_formatter(self):
        """Test the text layout, including findings without a location."""
        text = CLIFormatter(use_color=False).format_result(self.make_report())
        assert output_lines(text) == [
            "/project/a.hbs",
            "  -:-  error  Definition for rule 'x' was not found",
            "  3:2  warning  HTML comment detected  no-html-comments",
            "",
            "✖ 2 problems (1 errors, 1 warnings)",
        ]

    def test_cli_formatter_empty(self):
        assert CLIFormatter(use_color=False).format_result(LintReport([FileResult("/p/a.hbs", "a")])) == ""

    def test_json_formatter(self):
        data = json.loads(JSONFormatter().format_result(self.make_report()))
        assert data["/project/b.hbs"] == []
        assert data["/project/a.hbs"][1]["severity"] == 1

    def test_pending_formatter(self):
        out = PendingFormatter(config_name="custom.yml").format_result(self.make_report())
        assert out.startswith("Add the following to your `custom.yml` file")
        assert yaml.safe_load(out.split("\n", 2)[2]) == {
            "pending": [{"moduleId": "a", "only": ["no-html-comments"]}],
        }

    def test_get_formatter(self):
        assert isinstance(get_formatter("json"), JSONFormatter)
        assert isinstance(get_formatter("text"), CLIFormatter)
        with pytest.raises(ValueError):
            get_formatter("xml")

    def test_get_formatter_options(self):
        formatter = get_formatter("pending", config_name="custom.yml", as_json=True)
        assert isinstance(formatter, PendingFormatter)
        assert json.loads(formatter.format_result(self.make_report())) == [
            {"moduleId": "a", "only": ["no-html-comments"]},
        ]
        assert get_formatter("text", verbose=True).verbose

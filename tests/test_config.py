"""
Tests for configuration loading and resolution.
"""

import json
import pytest
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from templatelint.config import (
    BUILTIN_CONFIGURATIONS, ConfigLoadError, ConfigResolver, LintConfig, PendingEntry,
    find_config, load_config, resolve_config,
)
from templatelint.core.rules import registry
from templatelint.utils import expand_paths, module_id_for_path, module_matches


class TestLoadConfig:
    """Tests for reading configuration files."""

    def test_yaml(self, tmp_path):
        path = tmp_path / ".template-lintrc.yml"
        path.write_text("rules:\n  no-bare-strings: true\npending:\n  - app/templates/legacy\n")
        assert load_config(path) == {
            "rules": {"no-bare-strings": True},
            "pending": ["app/templates/legacy"],
        }

    def test_json(self, tmp_path):
        path = tmp_path / ".template-lintrc.json"
        path.write_text(json.dumps({"rules": {"block-indentation": 4}}))
        assert load_config(path) == {"rules": {"block-indentation": 4}}

    def test_python(self, tmp_path):
        path = tmp_path / ".template-lintrc.py"
        path.write_text("config = {'rules': {'no-triple-curlies': True}}\n")
        assert load_config(path) == {"rules": {"no-triple-curlies": True}}

    def test_python_without_config(self, tmp_path):
        path = tmp_path / ".template-lintrc.py"
        path.write_text("rules = {}\n")
        with pytest.raises(ConfigLoadError):
            load_config(path)

    def test_python_that_raises(self, tmp_path):
        path = tmp_path / ".template-lintrc.py"
        path.write_text("raise RuntimeError('nope')\n")
        with pytest.raises(ConfigLoadError) as info:
            load_config(path)
        assert "Error while loading" in str(info.value)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / ".template-lintrc.yml"
        path.write_text("rules: [unclosed\n")
        with pytest.raises(ConfigLoadError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / ".template-lintrc"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigLoadError):
            load_config(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / ".template-lintrc.yml"
        path.write_text("")
        assert load_config(path) == {}

    def test_discovery_order(self, tmp_path):
        assert find_config(str(tmp_path)) is None
        (tmp_path / ".template-lintrc").write_text("rules: {}\n")
        (tmp_path / ".template-lintrc.yml").write_text("rules: {}\n")
        assert find_config(str(tmp_path)) == str(tmp_path / ".template-lintrc.yml")
        (tmp_path / ".template-lintrc.py").write_text("config = {}\n")
        assert find_config(str(tmp_path)) == str(tmp_path / ".template-lintrc.py")


class TestResolve:
    """Tests for resolving configuration into a LintConfig."""

    def test_defaults_without_file(self, tmp_path):
        resolver = ConfigResolver(registry.copy(), str(tmp_path))
        config = resolver.resolve()
        assert config.rules == {}
        assert resolver.config_path is None

    def test_discovered_file(self, tmp_path):
        (tmp_path / ".template-lintrc.yml").write_text("rules:\n  no-html-comments: true\n")
        resolver = ConfigResolver(registry.copy(), str(tmp_path))
        assert resolver.resolve().rules == {"no-html-comments": True}
        assert resolver.config_path == str(tmp_path / ".template-lintrc.yml")

    def test_explicit_mapping_wins_over_file(self, tmp_path):
        (tmp_path / ".template-lintrc.yml").write_text("rules:\n  no-html-comments: true\n")
        config = resolve_config({"rules": {"no-triple-curlies": True}}, cwd=str(tmp_path), registry=registry.copy())
        assert config.rules == {"no-triple-curlies": True}

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(ConfigLoadError) as info:
            resolve_config(config_path="nope.yml", cwd=str(tmp_path), registry=registry.copy())
        assert str(info.value) == "The configuration file specified (nope.yml) could not be found. Aborting."

    def test_relative_explicit_path(self, tmp_path):
        (tmp_path / "lint.yml").write_text("rules:\n  no-triple-curlies: true\n")
        config = resolve_config(config_path="lint.yml", cwd=str(tmp_path), registry=registry.copy())
        assert config.rules == {"no-triple-curlies": True}

    def test_extends_recommended(self):
        config = resolve_config(
            {"extends": "recommended", "rules": {"no-html-comments": False}},
            registry=registry.copy(),
        )
        expected = dict(BUILTIN_CONFIGURATIONS["recommended"]["rules"], **{"no-html-comments": False})
        assert config.rules == expected
        assert config.extends == ["recommended"]
        assert "no-html-comments" not in config.active_rules()

    def test_extends_file(self, tmp_path):
        (tmp_path / "base.yml").write_text(
            "rules:\n  no-bare-strings: true\npending:\n  - a/b\nignore:\n  - vendor/**\n"
        )
        (tmp_path / ".template-lintrc.yml").write_text(
            "extends: ./base.yml\nrules:\n  no-triple-curlies: true\npending:\n  - a/b\n  - c/d\n"
        )
        config = resolve_config(cwd=str(tmp_path), registry=registry.copy())
        assert config.rules == {"no-bare-strings": True, "no-triple-curlies": True}
        assert config.pending == [PendingEntry("a/b"), PendingEntry("c/d")]
        assert config.ignore == ["vendor/**"]

    def test_circular_extends(self, tmp_path):
        (tmp_path / "a.yml").write_text("extends: ./b.yml\n")
        (tmp_path / "b.yml").write_text("extends: ./a.yml\n")
        with pytest.raises(ConfigLoadError) as info:
            resolve_config(config_path="a.yml", cwd=str(tmp_path), registry=registry.copy())
        assert "Circular extends" in str(info.value)

    def test_unknown_extends(self):
        with pytest.raises(ConfigLoadError):
            resolve_config({"extends": "does-not-exist"}, registry=registry.copy())

    def test_deprecated_names_are_canonicalized(self):
        config = resolve_config({"rules": {"html-comments": True}}, registry=registry.copy())
        assert config.rules == {"no-html-comments": True}

    def test_canonical_name_wins(self):
        config = resolve_config(
            {"rules": {"triple-curlies": False, "no-triple-curlies": True}},
            registry=registry.copy(),
        )
        assert config.rules == {"no-triple-curlies": True}

    def test_rules_must_be_mapping(self):
        with pytest.raises(ConfigLoadError):
            resolve_config({"rules": ["no-bare-strings"]}, registry=registry.copy())

    def test_plugin_module_reference(self):
        with pytest.raises(ConfigLoadError) as info:
            resolve_config({"plugins": ["templatelint_no_such_plugin"]}, registry=registry.copy())
        assert "Cannot load plugin" in str(info.value)

    def test_resolved_config_round_trip(self):
        original = resolve_config(
            {"rules": {"no-bare-strings": True}, "pending": [{"moduleId": "a", "only": ["x"]}], "ignore": ["b"]},
            registry=registry.copy(),
        )
        again = resolve_config(original, registry=registry.copy())
        assert again.rules == original.rules
        assert again.pending == original.pending
        assert again.ignore == original.ignore


class TestPendingEntry:
    """Tests for pending list entries."""

    def test_bare_entry(self):
        entry = PendingEntry.from_raw("a/b")
        assert entry.only is None
        assert entry.to_dict() == "a/b"

    def test_only_entry(self):
        entry = PendingEntry.from_raw({"moduleId": "a/b", "only": "no-bare-strings"})
        assert entry.only == ["no-bare-strings"]
        assert entry.to_dict() == {"moduleId": "a/b", "only": ["no-bare-strings"]}

    @pytest.mark.parametrize("raw", [42, {"only": ["x"]}, {"moduleId": 1}])
    def test_invalid_entry(self, raw):
        with pytest.raises(ConfigLoadError):
            PendingEntry.from_raw(raw)

    def test_resolved_config_can_be_resolved_again(self):
        config = LintConfig(
            rules={"no-bare-strings": True},
            pending=[PendingEntry("a")],
            ignore=["b"],
        )
        resolved = ConfigResolver().resolve(config)
        assert resolved.rules == {"no-bare-strings": True}
        assert resolved.pending == [PendingEntry("a")]
        assert resolved.to_dict()["pending"] == ["a"]


class TestModulePaths:
    """Tests for module ids and path matching."""

    def test_module_id_for_path(self, tmp_path):
        path = tmp_path / "app" / "templates" / "components" / "foo-bar.hbs"
        assert module_id_for_path(str(path), str(tmp_path)) == "app/templates/components/foo-bar"

    def test_module_matches(self, tmp_path):
        cwd = str(tmp_path)
        absolute = str(tmp_path / "app" / "templates" / "application")
        assert module_matches("app/templates/application", "app/templates/application")
        assert module_matches("app/templates/application", absolute, cwd)
        assert module_matches(absolute, "app/templates/application", cwd)
        assert module_matches("./app/templates/application", "app/templates/application", cwd)
        assert not module_matches("templates/application", "app/templates/application", cwd)
        assert not module_matches("app/*", "app/templates/application", cwd)
        assert module_matches("app/*", "app/templates/application", cwd, allow_glob=True)

    def test_glob_matches_absolute_module_id(self, tmp_path):
        cwd = str(tmp_path)
        absolute = str(tmp_path / "app" / "templates" / "application")
        assert module_matches("app/templates/*", absolute, cwd, allow_glob=True)
        assert module_matches("./app/**", absolute, cwd, allow_glob=True)
        assert not module_matches("lib/*", absolute, cwd, allow_glob=True)
        assert not module_matches("app/templates/*", absolute, cwd)

    def test_expand_paths(self, tmp_path):
        templates = tmp_path / "app" / "templates"
        (templates / "components").mkdir(parents=True)
        (templates / "application.hbs").write_text("")
        (templates / "components" / "foo.handlebars").write_text("")
        (templates / "notes.txt").write_text("")
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "dep.hbs").write_text("")

        found = expand_paths([str(tmp_path), str(templates / "application.hbs"), str(tmp_path / "missing")])
        assert sorted(os.path.relpath(path, str(tmp_path)) for path in found) == [
            os.path.join("app", "templates", "application.hbs"),
            os.path.join("app", "templates", "components", "foo.handlebars"),
        ]

    def test_expand_glob(self, tmp_path):
        (tmp_path / "a.hbs").write_text("")
        (tmp_path / "b.txt").write_text("")
        assert expand_paths([str(tmp_path / "*")]) == [str(tmp_path / "a.hbs")]

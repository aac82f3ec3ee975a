"""
Configuration system for the template linter.

Configuration comes from an explicit mapping, a file passed on the command
line, or a ``.template-lintrc`` file discovered in the working directory.
A configuration can extend presets, plugin configurations and other files,
and can register plugins that contribute rules.

Example YAML config:

```yaml
extends: recommended
plugins:
  - my_company.template_rules
rules:
  no-bare-strings: ["&times;", "(", ")"]
  block-indentation: 4
  no-html-comments: false
pending:
  - app/templates/legacy
  - moduleId: app/templates/application
    only: [no-bare-strings]
ignore:
  - "app/templates/vendor/**"
```
"""

import importlib
import json
import logging
import os
import runpy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

import yaml

from templatelint.core.rules import Plugin, RuleRegistry, registry as default_registry
from templatelint.utils import module_matches

logger = logging.getLogger(__name__)


# Configuration file names, in discovery order
CONFIG_FILE_NAMES = [
    ".template-lintrc.py",
    ".template-lintrc.yml",
    ".template-lintrc.yaml",
    ".template-lintrc.json",
    ".template-lintrc",
]


class ConfigLoadError(Exception):
    """Raised when a configuration cannot be loaded or resolved."""
    pass


@dataclass
class PendingEntry:
    """
    A module whose violations are demoted to warnings.

    Without ``only`` every violation is demoted; otherwise only violations
    of the listed rules are.
    """
    module_id: str
    only: Optional[List[str]] = None

    @classmethod
    def from_raw(cls, raw: Union[str, Dict[str, Any], "PendingEntry"]) -> "PendingEntry":
        if isinstance(raw, PendingEntry):
            return raw
        if isinstance(raw, str):
            return cls(module_id=raw)
        if isinstance(raw, dict) and isinstance(raw.get("moduleId"), str):
            only = raw.get("only")
            if only is not None:
                if isinstance(only, str):
                    only = [only]
                only = list(only)
            return cls(module_id=raw["moduleId"], only=only)
        raise ConfigLoadError(f"Invalid pending entry: {raw!r}")

    def to_dict(self) -> Union[str, Dict[str, Any]]:
        if self.only is None:
            return self.module_id
        return {"moduleId": self.module_id, "only": list(self.only)}

    def matches(self, module_id: str, cwd: Optional[str] = None) -> bool:
        return module_matches(self.module_id, module_id, cwd)


@dataclass
class LintConfig:
    """A fully resolved configuration."""
    rules: Dict[str, Any] = field(default_factory=dict)
    pending: List[PendingEntry] = field(default_factory=list)
    ignore: List[str] = field(default_factory=list)
    extends: List[str] = field(default_factory=list)
    plugins: List[str] = field(default_factory=list)

    def active_rules(self) -> Dict[str, Any]:
        """Rules whose value turns them on."""
        return {
            name: value for name, value in self.rules.items()
            if value is not False and value is not None
        }

    def find_pending(self, module_id: str, cwd: Optional[str] = None) -> Optional[PendingEntry]:
        for entry in self.pending:
            if entry.matches(module_id, cwd):
                return entry
        return None

    @staticmethod
    def is_ignored_by(pattern: str, module_id: str, cwd: Optional[str] = None) -> bool:
        return module_matches(pattern, module_id, cwd, allow_glob=True)

    def is_ignored(self, module_id: str, cwd: Optional[str] = None) -> bool:
        return any(self.is_ignored_by(pattern, module_id, cwd) for pattern in self.ignore)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rules": dict(self.rules),
            "pending": [entry.to_dict() for entry in self.pending],
            "ignore": list(self.ignore),
            "extends": list(self.extends),
            "plugins": list(self.plugins),
        }


# Built-in presets usable from ``extends``
BUILTIN_CONFIGURATIONS: Dict[str, Dict[str, Any]] = {
    "recommended": {
        "rules": {
            "block-indentation": 2,
            "no-bare-strings": True,
            "no-html-comments": True,
            "no-shadowed-elements": True,
            "no-triple-curlies": True,
            "self-closing-void-elements": True,
        },
    },
}


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a configuration mapping from a file.

    ``.py`` files are executed and must bind a module-level ``config``;
    ``.json`` files are read as JSON; anything else is read as YAML, which
    accepts JSON as well.
    """
    path = Path(path)

    if not path.exists():
        raise ConfigLoadError(f"Configuration file not found: {path}")

    if path.suffix == ".py":
        try:
            namespace = runpy.run_path(str(path), run_name="__template_lint_config__")
        except Exception as e:
            raise ConfigLoadError(f"Error while loading {path}: {e}") from e
        if "config" not in namespace:
            raise ConfigLoadError(f"{path} must define a module-level `config` mapping")
        data = namespace["config"]
    else:
        try:
            content = path.read_text(encoding="utf-8")
            if path.suffix == ".json":
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigLoadError(f"Error while loading {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(f"Configuration in {path} must be a mapping, got {type(data).__name__}")
    return data


def find_config(cwd: Optional[str] = None) -> Optional[str]:
    """
    Find a configuration file in ``cwd``.

    Returns the path to the first config file found, or None.
    """
    directory = Path(cwd or os.getcwd())
    for name in CONFIG_FILE_NAMES:
        config_path = directory / name
        if config_path.is_file():
            return str(config_path)
    return None


@dataclass
class _Layer:
    rules: Dict[str, Any] = field(default_factory=dict)
    pending: List[PendingEntry] = field(default_factory=list)
    ignore: List[str] = field(default_factory=list)

    def merge(self, other: "_Layer"):
        self.rules.update(other.rules)
        for entry in other.pending:
            if entry not in self.pending:
                self.pending.append(entry)
        for pattern in other.ignore:
            if pattern not in self.ignore:
                self.ignore.append(pattern)


class ConfigResolver:
    """
    Resolves a configuration into a ``LintConfig``.

    Plugins are registered on ``registry`` as they are met, so the registry
    should be a copy owned by the caller.
    """

    def __init__(self, registry: Optional[RuleRegistry] = None, cwd: Optional[str] = None):
        self.registry = registry if registry is not None else default_registry
        self.cwd = cwd or os.getcwd()
        self.config_path: Optional[str] = None
        self._plugin_names: List[str] = []

    def resolve(
        self,
        config: Optional[Union[Dict[str, Any], LintConfig]] = None,
        config_path: Optional[str] = None,
    ) -> LintConfig:
        """
        Resolve ``config``, or the file at ``config_path``, or the discovered file.

        An explicit ``config`` always wins; files are only read without one.
        """
        if config is not None:
            if isinstance(config, LintConfig):
                # plugins of a resolved config are names, not references
                data = config.to_dict()
                data.pop("plugins")
            else:
                data = config
            base_dir = self.cwd
            source = "<config>"
        else:
            if config_path:
                path = Path(config_path)
                if not path.is_absolute():
                    path = Path(self.cwd) / path
                if not path.exists():
                    raise ConfigLoadError(
                        f"The configuration file specified ({config_path}) could not be found. Aborting."
                    )
            else:
                found = find_config(self.cwd)
                path = Path(found) if found else None

            if path is None:
                data = {}
                base_dir = self.cwd
                source = "<defaults>"
            else:
                logger.debug("Loading configuration from %s", path)
                self.config_path = str(path)
                data = load_config(path)
                base_dir = str(path.parent)
                source = str(path)

        layer = self._resolve_layer(data, base_dir, source, seen=set())

        extends = data.get("extends") or []
        if isinstance(extends, str):
            extends = [extends]

        return LintConfig(
            rules=layer.rules,
            pending=layer.pending,
            ignore=layer.ignore,
            extends=list(extends),
            plugins=list(self._plugin_names),
        )

    def _resolve_layer(self, data: Any, base_dir: str, source: str, seen: Set[str]) -> _Layer:
        if not isinstance(data, dict):
            raise ConfigLoadError(f"Configuration from {source} must be a mapping")

        for plugin_ref in data.get("plugins") or []:
            plugin = self.load_plugin(plugin_ref)
            self.registry.register_plugin(plugin)
            if plugin.name not in self._plugin_names:
                self._plugin_names.append(plugin.name)

        layer = _Layer()

        extends = data.get("extends") or []
        if isinstance(extends, str):
            extends = [extends]
        for ref in extends:
            layer.merge(self._resolve_extends(ref, base_dir, source, seen))

        rules = data.get("rules") or {}
        if not isinstance(rules, dict):
            raise ConfigLoadError(f"`rules` in {source} must be a mapping")

        ignore = data.get("ignore") or []
        if isinstance(ignore, str):
            ignore = [ignore]

        layer.merge(_Layer(
            rules=self._canonicalize(rules, source),
            pending=[PendingEntry.from_raw(entry) for entry in data.get("pending") or []],
            ignore=list(ignore),
        ))
        return layer

    def _resolve_extends(self, ref: Any, base_dir: str, source: str, seen: Set[str]) -> _Layer:
        if not isinstance(ref, str):
            raise ConfigLoadError(f"Invalid extends entry in {source}: {ref!r}")

        configuration = self.registry.get_configuration(ref)
        if configuration is not None:
            key = f"plugin:{ref}"
            next_base = base_dir
        elif ref in BUILTIN_CONFIGURATIONS:
            configuration = BUILTIN_CONFIGURATIONS[ref]
            key = f"builtin:{ref}"
            next_base = base_dir
        else:
            path = Path(ref)
            if not path.is_absolute():
                path = Path(base_dir) / path
            if not path.is_file():
                raise ConfigLoadError(f"Cannot find configuration for extends: {ref} (referenced from {source})")
            key = f"file:{path.resolve()}"
            configuration = None
            next_base = str(path.parent)

        if key in seen:
            raise ConfigLoadError(f"Circular extends detected: {ref} (referenced from {source})")

        if configuration is None:
            configuration = load_config(path)
        return self._resolve_layer(configuration, next_base, ref, seen | {key})

    def _canonicalize(self, rules: Dict[str, Any], source: str) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for name, value in rules.items():
            canonical = self.registry.canonical_name(name)
            if canonical != name:
                logger.warning(
                    "The `%s` rule has been renamed to `%s`; please update %s",
                    name, canonical, source,
                )
                if canonical in rules:
                    continue
            result[canonical] = value
        return result

    def load_plugin(self, ref: Any) -> Plugin:
        if isinstance(ref, Plugin):
            return ref
        if isinstance(ref, dict):
            try:
                return Plugin.from_dict(ref)
            except ValueError as e:
                raise ConfigLoadError(f"Invalid plugin: {e}") from e
        if isinstance(ref, str):
            module_name, _, attribute = ref.partition(":")
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise ConfigLoadError(f"Cannot load plugin '{ref}': {e}") from e
            target = getattr(module, attribute or "plugin", None)
            if not isinstance(target, (Plugin, dict)):
                raise ConfigLoadError(
                    f"Plugin '{ref}' must expose a Plugin or mapping as `{attribute or 'plugin'}`"
                )
            return self.load_plugin(target)
        raise ConfigLoadError(f"Invalid plugin reference: {ref!r}")


def resolve_config(
    config: Optional[Union[Dict[str, Any], LintConfig]] = None,
    config_path: Optional[str] = None,
    cwd: Optional[str] = None,
    registry: Optional[RuleRegistry] = None,
) -> LintConfig:
    """Resolve a configuration with a throwaway ``ConfigResolver``."""
    return ConfigResolver(registry, cwd).resolve(config, config_path)

"""
Rule engine building blocks.

This module provides the base class every lint rule derives from, the
plugin descriptor used to contribute extra rules and presets, the registry
mapping rule names to rule classes, and the context shared by all rules
during one walk of a template.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Type

from templatelint.core.directives import DirectiveScope
from templatelint.core.findings import MessageAccumulator, RawMessage
from templatelint.parsers.nodes import Node, Template


class RuleConfigError(Exception):
    """Raised by a rule that cannot interpret its configured value."""
    pass


@dataclass
class RuleMetadata:
    """Metadata for a rule."""
    rule_id: str
    name: str
    description: str
    deprecated_ids: List[str] = field(default_factory=list)


class WalkContext:
    """
    State shared by every rule during one walk of a template.

    Holds the parsed template, the message accumulator, and the stack of
    ancestors of the node currently being visited.
    """

    def __init__(
        self,
        template: Template,
        accumulator: MessageAccumulator,
        module_name: Optional[str] = None,
        directives: Optional[DirectiveScope] = None,
    ):
        self.template = template
        self.accumulator = accumulator
        self.module_name = module_name
        self.directives = directives or DirectiveScope()
        self.parents: List[Node] = []
        self.current_node: Optional[Node] = None

    @property
    def parent(self) -> Optional[Node]:
        """The direct parent of the node being visited."""
        return self.parents[-1] if self.parents else None

    def ancestors(self, node_type: Optional[type] = None) -> Iterator[Node]:
        """Iterate ancestors from the closest outwards, optionally filtered by type."""
        for node in reversed(self.parents):
            if node_type is None or isinstance(node, node_type):
                yield node

    def source_for(self, node: Node) -> str:
        return self.template.source_for(node)


class Rule(ABC):
    """
    Base class for all template lint rules.

    A rule instance lives for one walk. The dispatcher calls ``detect`` for
    every node; when it returns True, ``process`` runs and may call ``log``
    any number of times.
    """

    metadata: RuleMetadata

    def __init__(self, name: str, config: Any, context: WalkContext):
        self.name = name
        self.config = config
        self.context = context
        self.results = context.accumulator
        self.options = self.parse_config(config)

    def parse_config(self, config: Any) -> Any:
        """
        Turn the configured value into the options this rule runs with.

        Override to accept option values; the default only accepts ``True``.
        """
        if config is True:
            return True
        raise RuleConfigError(f"expected `true` but got {config!r}")

    @abstractmethod
    def detect(self, node: Node) -> bool:
        """Return True when ``process`` should run for this node."""
        pass

    @abstractmethod
    def process(self, node: Node) -> None:
        """Inspect a detected node and log any violations."""
        pass

    def log(
        self,
        message: str,
        node: Optional[Node] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source: Optional[str] = None,
    ):
        """
        Record a violation.

        The location and source default to ``node``, or to the node being
        processed when no node is given.
        """
        node = node or self.context.current_node
        if node is not None:
            if line is None:
                line = node.loc.start.line
            if column is None:
                column = node.loc.start.column
            if source is None:
                source = self.context.source_for(node)

        self.results.append(RawMessage(
            rule=self.name,
            message=message,
            line=line,
            column=column,
            source=source,
        ))

    def source_for(self, node: Node) -> str:
        """Return the template source of a node."""
        return self.context.source_for(node)


@dataclass
class Plugin:
    """
    A bundle of extra rules and named configurations.

    Configurations are referenced from ``extends`` as
    ``"<plugin name>:<configuration name>"``.
    """
    name: str
    rules: Dict[str, Type[Rule]] = field(default_factory=dict)
    configurations: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Plugins must have a name")
        for rule_name, rule_class in self.rules.items():
            if not (isinstance(rule_class, type) and issubclass(rule_class, Rule)):
                raise ValueError(
                    f"Rule '{rule_name}' of plugin '{self.name}' must be a subclass of templatelint Rule"
                )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Plugin":
        """Create a plugin from a mapping with ``name``, ``rules`` and ``configurations``."""
        known_fields = {"name", "rules", "configurations"}
        unknown = set(data) - known_fields
        if unknown:
            raise ValueError(f"Unknown plugin keys: {', '.join(sorted(unknown))}")
        return cls(
            name=data.get("name", ""),
            rules=dict(data.get("rules") or {}),
            configurations=dict(data.get("configurations") or {}),
        )


class RuleRegistry:
    """
    Registry mapping rule names to rule classes.

    Built-in rules register on the module-level ``registry``; each linter
    works on a ``copy()`` so that plugins never leak between instances.
    Iteration follows registration order.
    """

    def __init__(self):
        self._rules: Dict[str, Type[Rule]] = {}
        self._deprecated: Dict[str, str] = {}
        self._configurations: Dict[str, Dict[str, Any]] = {}

    def register(self, rule_class: Type[Rule], name: Optional[str] = None) -> Type[Rule]:
        """
        Register a rule class under its metadata id (or ``name``).

        Can be used as a decorator:

        @registry.register
        class MyRule(Rule):
            ...
        """
        rule_id = name or rule_class.metadata.rule_id
        self._rules[rule_id] = rule_class

        metadata = getattr(rule_class, "metadata", None)
        if metadata is not None:
            for old_id in metadata.deprecated_ids:
                self._deprecated[old_id] = rule_id

        return rule_class

    def get(self, name: str) -> Optional[Type[Rule]]:
        """Get a rule class by name."""
        return self._rules.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._rules

    def rule_names(self) -> List[str]:
        """Rule names in registration order."""
        return list(self._rules)

    def canonical_name(self, name: str) -> str:
        """Map a deprecated rule name onto its current name."""
        return self._deprecated.get(name, name)

    def register_plugin(self, plugin: Plugin):
        """Record a plugin's rules and configurations; later plugins win on name clashes."""
        for rule_name, rule_class in plugin.rules.items():
            self.register(rule_class, rule_name)
        for config_name, config in plugin.configurations.items():
            self._configurations[f"{plugin.name}:{config_name}"] = config

    def get_configuration(self, name: str) -> Optional[Dict[str, Any]]:
        """Get a plugin configuration by its ``plugin:config`` name."""
        return self._configurations.get(name)

    def copy(self) -> "RuleRegistry":
        clone = RuleRegistry()
        clone._rules = dict(self._rules)
        clone._deprecated = dict(self._deprecated)
        clone._configurations = dict(self._configurations)
        return clone


# Global registry of built-in rules
registry = RuleRegistry()


def rule(cls: Type[Rule]) -> Type[Rule]:
    """
    Decorator to register a rule with the global registry.

    Usage:
        @rule
        class MyRule(Rule):
            metadata = RuleMetadata(rule_id="my-rule", ...)
    """
    return registry.register(cls)

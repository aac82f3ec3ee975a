"""
Main linting engine for the template linter.

This module ties the pieces together: it resolves configuration once,
parses each template, runs the active rules over it and classifies the
resulting messages into findings.
"""

import logging
import os
import traceback
from typing import Any, Dict, Iterable, List, Optional, Union

from templatelint.config import ConfigResolver, LintConfig, PendingEntry
from templatelint.core.classifier import classify
from templatelint.core.findings import FileResult, Finding, LintReport, MessageAccumulator, Severity
from templatelint.core.rules import Plugin, registry
from templatelint.core.visitor import ActiveRule, RuleDispatcher
from templatelint.parsers import ParseWarning, TemplateSyntaxError, WarningCallback, get_parser
from templatelint.utils import calculate_location_display, module_id_for_path

# Import rules to register them with the registry
import templatelint.rules  # noqa: F401

logger = logging.getLogger(__name__)


class Linter:
    """
    Lints template source against a resolved configuration.

    The linter:
    1. Resolves the configuration (file, extends chain, plugins) once
    2. Parses each template it is given
    3. Runs every active rule over the template in a single walk
    4. Classifies raw messages into findings using pending and ignore lists

    Each linter works on its own copy of the rule registry, so plugins
    registered for one linter are invisible to others.
    """

    def __init__(
        self,
        config: Optional[Union[Dict[str, Any], LintConfig]] = None,
        config_path: Optional[str] = None,
        cwd: Optional[str] = None,
        plugins: Optional[Iterable[Union[Plugin, Dict[str, Any], str]]] = None,
        on_parse_warning: Optional[WarningCallback] = None,
        language: str = "handlebars",
    ):
        self.cwd = cwd or os.getcwd()
        self.registry = registry.copy()

        resolver = ConfigResolver(self.registry, self.cwd)
        for plugin in plugins or []:
            self.registry.register_plugin(resolver.load_plugin(plugin))

        self.config = resolver.resolve(config, config_path)
        self.config_path = resolver.config_path
        self.parser = get_parser(language)
        self.on_parse_warning = on_parse_warning or self._log_parse_warning
        self.dispatcher = RuleDispatcher(self.registry.canonical_name)

        logger.debug(
            "Linter ready with %d active rules from %s",
            len(self.config.active_rules()), self.config_path or "explicit configuration",
        )

    @staticmethod
    def _log_parse_warning(warning: ParseWarning):
        location = calculate_location_display(
            warning.module_name,
            (warning.line, warning.column) if warning.line is not None else None,
        )
        logger.info("%s %s", warning.message, location)

    def missing_rules(self) -> List[str]:
        """Configured rule names that no registered rule answers to."""
        return [name for name in self.config.rules if name not in self.registry]

    def active_rules(self) -> List[ActiveRule]:
        """Active rules in registry order."""
        configured = self.config.active_rules()
        return [
            ActiveRule(name, self.registry.get(name), configured[name])
            for name in self.registry.rule_names()
            if name in configured
        ]

    def verify(self, source: str, module_id: Optional[str] = None) -> List[Finding]:
        """
        Lint template source and return its findings.

        A template that fails to parse yields a single fatal finding.
        Ignored modules yield nothing, not even parse failures.
        """
        if module_id is not None and self.config.is_ignored(module_id, self.cwd):
            logger.debug("Skipping ignored module %s", module_id)
            return []

        try:
            template = self.parser.parse(source, module_name=module_id, on_warning=self.on_parse_warning)
        except TemplateSyntaxError as e:
            logger.debug("Failed to parse %s: %s", module_id or "<template>", e)
            return [Finding(
                message=e.message,
                module_id=module_id,
                line=e.line,
                column=e.column,
                source="".join(traceback.format_exception_only(type(e), e)).strip(),
                severity=Severity.ERROR,
                fatal=True,
            )]

        accumulator = self.dispatcher.run(
            template,
            self.active_rules(),
            MessageAccumulator(),
            module_name=module_id,
        )

        return classify(
            accumulator.messages,
            module_id,
            self.config,
            missing_rules=self.missing_rules(),
            cwd=self.cwd,
        )

    def verify_file(self, file_path: str) -> FileResult:
        """
        Read and lint a template file, deriving its module id from its path.

        A file that cannot be read or decoded yields a single fatal finding.
        """
        module_id = module_id_for_path(file_path, self.cwd)
        result = FileResult(file_path=os.path.abspath(file_path), module_id=module_id)
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                source = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Failed to read %s: %s", file_path, e)
            if not self.config.is_ignored(module_id, self.cwd):
                result.findings.append(Finding(
                    message=f"Could not read template: {e}",
                    module_id=module_id,
                    severity=Severity.ERROR,
                    fatal=True,
                ))
            return result

        result.findings.extend(self.verify(source, module_id))
        return result

    def verify_files(self, file_paths: Iterable[str]) -> LintReport:
        return LintReport([self.verify_file(path) for path in file_paths])

    def status_for_module(self, kind: str, module_id: str) -> Optional[Union[PendingEntry, str]]:
        """
        Look a module up in the pending or ignore list.

        Returns the matching pending entry or ignore pattern, or None.
        """
        if kind == "pending":
            return self.config.find_pending(module_id, self.cwd)
        if kind == "ignore":
            for pattern in self.config.ignore:
                if self.config.is_ignored_by(pattern, module_id, self.cwd):
                    return pattern
            return None
        raise ValueError(f"Unknown module status kind: {kind}")


def create_linter(config_path: Optional[str] = None, **kwargs) -> Linter:
    """
    Create a linter with configuration.

    Args:
        config_path: Optional path to a configuration file.
        **kwargs: Additional ``Linter`` arguments.

    Returns:
        Configured Linter instance.
    """
    return Linter(config_path=config_path, **kwargs)

"""
Single-pass rule dispatcher.

Walks a parsed template once, depth first in document order, and offers
every node to every active rule. Directive comments are tracked during the
walk so that disabled rules are never run for the nodes they cover.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence, Type

from templatelint.core.directives import parse_directive
from templatelint.core.findings import MessageAccumulator, MessageKind, RawMessage
from templatelint.core.rules import Rule, RuleConfigError, WalkContext
from templatelint.parsers.nodes import (
    AttrNode, Block, BlockStatement, ConcatStatement, ElementNode, Node, Template, TextNode,
)

logger = logging.getLogger(__name__)


@dataclass
class ActiveRule:
    """A rule selected for a walk along with its configured value."""
    name: str
    rule_class: Type[Rule]
    config: Any = True


def _is_whitespace(node: Node) -> bool:
    return isinstance(node, TextNode) and not node.chars.strip()


class RuleDispatcher:
    """
    Runs a set of rules over one template.

    A fault in one rule, whether raised while it is created or while it
    handles a node, is recorded as an internal-error message and never stops
    the walk for the other rules.
    """

    def __init__(self, canonical_name: Optional[Callable[[str], str]] = None):
        self.canonical_name = canonical_name
        self._context: Optional[WalkContext] = None
        self._rules: List[Rule] = []

    def run(
        self,
        template: Template,
        rules: Sequence[ActiveRule],
        accumulator: Optional[MessageAccumulator] = None,
        module_name: Optional[str] = None,
    ) -> MessageAccumulator:
        """
        Walk ``template`` with ``rules`` and return the accumulator.

        Rules are consulted in the order given for every node.
        """
        if accumulator is None:
            accumulator = MessageAccumulator()

        context = WalkContext(template, accumulator, module_name or template.module_name)
        self._context = context
        self._rules = self._instantiate(rules, context)

        try:
            self._visit(template)
        finally:
            self._context = None
            self._rules = []

        return accumulator

    def _instantiate(self, rules: Sequence[ActiveRule], context: WalkContext) -> List[Rule]:
        instances = []
        for active in rules:
            try:
                instances.append(active.rule_class(active.name, active.config, context))
            except RuleConfigError as e:
                context.accumulator.append(RawMessage(
                    rule=active.name,
                    message=f"Invalid configuration for rule '{active.name}': {e}",
                    kind=MessageKind.CONFIG_ERROR,
                ))
            except Exception as e:
                logger.debug("Rule %s could not be created", active.name, exc_info=True)
                context.accumulator.append(RawMessage(
                    rule=active.name,
                    message=f"Rule '{active.name}' failed while processing {context.template.type}: {e}",
                    kind=MessageKind.INTERNAL_ERROR,
                ))
        return instances

    def _visit_group(self, nodes: Iterable[Node], top_level: bool = False):
        """
        Visit a list of sibling nodes, applying directive comments.

        Directives at the top of the file, and top-level directives that
        only re-enable rules, change the file-wide settings. Any other
        directive covers the next sibling that is not whitespace.
        """
        directives = self._context.directives
        pending = None
        seen_content = False

        for node in list(nodes):
            directive = parse_directive(node, self.canonical_name)
            if directive is not None:
                self._visit(node)
                if top_level and (not seen_content or directive.only_enables):
                    directives.update_file_scope(directive.settings)
                else:
                    pending = dict(pending or {})
                    pending.update(directive.settings)
                continue

            if _is_whitespace(node):
                self._visit(node)
                continue

            seen_content = True
            if pending:
                directives.push(pending)
                try:
                    self._visit(node)
                finally:
                    directives.pop()
                pending = None
            else:
                self._visit(node)

    def _visit(self, node: Node):
        context = self._context
        self._dispatch(node)

        context.parents.append(node)
        try:
            if isinstance(node, Template):
                self._visit_group(node.body, top_level=True)
            elif isinstance(node, ElementNode):
                for attr in node.attributes:
                    self._visit(attr)
                for modifier in node.modifiers:
                    self._visit(modifier)
                self._visit_group(node.children)
            elif isinstance(node, AttrNode):
                if node.value is not None:
                    self._visit(node.value)
            elif isinstance(node, ConcatStatement):
                for part in node.parts:
                    self._visit(part)
            elif isinstance(node, BlockStatement):
                if node.program is not None:
                    self._visit(node.program)
                if node.inverse is not None:
                    self._visit(node.inverse)
            elif isinstance(node, Block):
                self._visit_group(node.body)
        finally:
            context.parents.pop()

    def _dispatch(self, node: Node):
        context = self._context
        for rule in self._rules:
            if not context.directives.is_enabled(rule.name):
                continue

            context.current_node = node
            try:
                if rule.detect(node):
                    rule.process(node)
            except Exception as e:
                logger.debug(
                    "Rule %s failed on %s at L%d:C%d",
                    rule.name, node.type, node.loc.start.line, node.loc.start.column,
                    exc_info=True,
                )
                context.accumulator.append(RawMessage(
                    rule=rule.name,
                    message=f"Rule '{rule.name}' failed while processing {node.type}: {e}",
                    line=node.loc.start.line,
                    column=node.loc.start.column,
                    kind=MessageKind.INTERNAL_ERROR,
                ))
        context.current_node = None

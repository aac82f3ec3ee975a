"""
Self-closing void element detection.

Void elements such as ``<hr>`` and ``<img>`` never have content, so
writing them as ``<hr />`` is redundant.
"""

from templatelint.core.rules import Rule, RuleMetadata, rule
from templatelint.parsers.nodes import ElementNode, Node, VOID_TAGS
from templatelint.utils import calculate_location_display


@rule
class SelfClosingVoidElementsRule(Rule):
    """Flags void elements written with a trailing ``/>``."""

    metadata = RuleMetadata(
        rule_id="self-closing-void-elements",
        name="Self-closing void elements",
        description="Disallows self-closing void elements.",
        deprecated_ids=["lint-self-closing-void-elements"],
    )

    def detect(self, node: Node) -> bool:
        return isinstance(node, ElementNode) and node.tag in VOID_TAGS

    def process(self, node: ElementNode):
        if self.source_for(node).rstrip().endswith("/>"):
            location = calculate_location_display(self.context.module_name, node.loc.start)
            self.log(f"Self-closing a void element is redundant {location}")

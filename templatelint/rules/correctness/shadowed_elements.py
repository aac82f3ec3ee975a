"""
Shadowed element detection.

Inside ``{{#foo-bar as |div|}}`` the tag ``<div>`` refers to the block
param, not to the HTML element, which is rarely what the author meant.
"""

from templatelint.core.rules import Rule, RuleMetadata, rule
from templatelint.parsers.nodes import Block, ElementNode, Node


@rule
class NoShadowedElementsRule(Rule):
    """Flags element tags that name a block param in scope."""

    metadata = RuleMetadata(
        rule_id="no-shadowed-elements",
        name="No shadowed elements",
        description="Disallows elements whose tag is shadowed by a block param.",
    )

    def detect(self, node: Node) -> bool:
        return isinstance(node, ElementNode)

    def process(self, node: ElementNode):
        # <Foo> and <foo.bar> are components, never plain HTML
        if node.tag[:1].isupper() or "." in node.tag or node.tag.startswith("@"):
            return

        for ancestor in self.context.ancestors():
            if isinstance(ancestor, (Block, ElementNode)) and node.tag in ancestor.block_params:
                self.log(f"Ambiguous element used (`{node.tag}`)")
                return

"""
Triple curly detection.

``{{{foo}}}`` inserts its value without HTML escaping, which opens the door
to cross-site scripting when the value is user controlled.
"""

from templatelint.core.rules import Rule, RuleMetadata, rule
from templatelint.parsers.nodes import MustacheStatement, Node


@rule
class NoTripleCurliesRule(Rule):
    """Flags unescaped ``{{{...}}}`` mustaches."""

    metadata = RuleMetadata(
        rule_id="no-triple-curlies",
        name="No triple curlies",
        description="Disallows unescaped mustache statements.",
        deprecated_ids=["triple-curlies"],
    )

    def detect(self, node: Node) -> bool:
        return isinstance(node, MustacheStatement) and not node.escaped

    def process(self, node: Node):
        self.log("Usage of triple curly brackets is unsafe")

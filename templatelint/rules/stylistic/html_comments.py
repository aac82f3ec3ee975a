"""
HTML comment detection.

HTML comments are shipped to the browser; mustache comments are stripped
at build time. ``template-lint`` directive comments are allowed.
"""

from templatelint.core.directives import is_directive_comment
from templatelint.core.rules import Rule, RuleMetadata, rule
from templatelint.parsers.nodes import CommentStatement, Node


@rule
class NoHtmlCommentsRule(Rule):
    """Flags ``<!-- -->`` comments that are not lint directives."""

    metadata = RuleMetadata(
        rule_id="no-html-comments",
        name="No HTML comments",
        description="Disallows HTML comments in favour of mustache comments.",
        deprecated_ids=["html-comments"],
    )

    def detect(self, node: Node) -> bool:
        return isinstance(node, CommentStatement) and not is_directive_comment(node)

    def process(self, node: Node):
        self.log("HTML comment detected")

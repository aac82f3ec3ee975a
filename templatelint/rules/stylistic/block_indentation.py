"""
Block indentation checks.

Forces multi-line elements and blocks to close at the column they open at,
and their children to be indented one level deeper.

passes:

    {{#each foo as |bar|}}
      <p>{{bar}}</p>
    {{/each}}

breaks:

    {{#each foo as |bar|}}
    <p>{{bar}}</p>
      {{/each}}

Valid configuration values:

  * ``true``: enabled with an indentation of 2
  * a positive integer: the number of spaces per level
"""

from typing import List, Optional

from templatelint.core.rules import Rule, RuleConfigError, RuleMetadata, rule
from templatelint.parsers.nodes import (
    BlockStatement, CommentStatement, ElementNode, MustacheCommentStatement,
    MustacheStatement, Node, Position, RAW_TEXT_TAGS, TextNode,
)

DEFAULT_INDENTATION = 2

# Elements whose content layout is significant
PRESERVE_WHITESPACE_TAGS = RAW_TEXT_TAGS | {"pre", "textarea"}


def _location(position: Position) -> str:
    return f"L{position.line}:C{position.column}"


@rule
class BlockIndentationRule(Rule):
    """Checks closing tag alignment and child indentation."""

    metadata = RuleMetadata(
        rule_id="block-indentation",
        name="Block indentation",
        description="Enforces consistent indentation of elements and blocks.",
    )

    def parse_config(self, config) -> int:
        if config is True:
            return DEFAULT_INDENTATION
        if isinstance(config, int) and not isinstance(config, bool) and config > 0:
            return config
        raise RuleConfigError(f"expected `true` or a positive integer but got {config!r}")

    def detect(self, node: Node) -> bool:
        if isinstance(node, ElementNode):
            return True
        return isinstance(node, BlockStatement) and not node.program.chained

    def process(self, node: Node):
        # nodes that start and end on the same line are fine
        if node.loc.start.line == node.loc.end.line:
            return

        self.check_closing(node)
        for child in self.children_of(node):
            self.check_child(node, child)

    def check_closing(self, node: Node):
        if node.close_loc is None:
            return

        start = node.loc.start
        actual = node.close_loc.start.column
        if actual == start.column:
            return

        if isinstance(node, ElementNode):
            name, closing = node.tag, f"</{node.tag}>"
        else:
            name, closing = node.path, f"{{{{/{node.path}}}}}"

        self.log(
            f"Incorrect indentation for `{name}` beginning at {_location(start)}. "
            f"Expected `{closing}` ending at {_location(node.loc.end)} to be at an indentation "
            f"of {start.column} but was found at {actual}.",
            node=node,
        )

    def children_of(self, node: Node) -> List[Node]:
        if isinstance(node, ElementNode):
            if node.tag.lower() in PRESERVE_WHITESPACE_TAGS:
                return []
            return node.children
        children = list(node.program.body)
        if node.inverse is not None and not node.inverse.chained:
            children.extend(node.inverse.body)
        return children

    def check_child(self, parent: Node, child: Node):
        position = self.content_start(child)
        if position is None or position.line == parent.loc.start.line:
            return

        # only children that begin their line have an indentation
        line = self.context.template.line_text(position.line)
        if line[:position.column].strip():
            return

        expected = parent.loc.start.column + self.options
        if position.column == expected:
            return

        display = self.display_name(child)
        self.log(
            f"Incorrect indentation for `{display}` beginning at {_location(position)}. "
            f"Expected `{display}` to be at an indentation of {expected} but was found at {position.column}.",
            line=position.line,
            column=position.column,
            source=self.source_for(parent),
        )

    def content_start(self, node: Node) -> Optional[Position]:
        """Where a node's first visible character is, or None for blank text."""
        if not isinstance(node, TextNode):
            return node.loc.start
        stripped = node.chars.lstrip()
        if not stripped:
            return None
        template = self.context.template
        offset = template.offset_of(node.loc.start) + len(node.chars) - len(stripped)
        return template.position_of(offset)

    @staticmethod
    def display_name(node: Node) -> str:
        if isinstance(node, ElementNode):
            return f"<{node.tag}>"
        if isinstance(node, BlockStatement):
            return f"{{{{#{node.path}}}}}"
        if isinstance(node, MustacheStatement):
            return f"{{{{{node.path}}}}}" if node.escaped else f"{{{{{{{node.path}}}}}}}"
        if isinstance(node, CommentStatement):
            return "<!--"
        if isinstance(node, MustacheCommentStatement):
            return "{{!"
        words = node.chars.split()
        return words[0] if words else ""

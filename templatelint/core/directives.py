"""
Inline ``template-lint`` directives.

Templates can switch rules on and off with comments:

    <!-- template-lint disable=true -->
    {{! template-lint no-bare-strings=false }}
    {{!-- template-lint no-triple-curlies=false block-indentation=false --}}

``disable=true`` turns every rule off and ``disable=false`` turns them all
back on; ``<rule>=false`` and ``<rule>=true`` act on a single rule.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from templatelint.parsers.nodes import CommentStatement, MustacheCommentStatement, Node

logger = logging.getLogger(__name__)

# Key standing for every rule in a directive frame
ALL = "*"

DIRECTIVE_RE = re.compile(r"^\s*template-lint(?:\s+(.*?))?\s*$", re.DOTALL)


@dataclass
class Directive:
    """The parsed settings of one directive comment."""
    node: Node
    settings: Dict[str, bool]

    @property
    def only_enables(self) -> bool:
        """True when the directive re-enables rules and disables none."""
        return all(self.settings.values())


def is_directive_comment(node: Node) -> bool:
    """Check whether a node is a ``template-lint`` comment."""
    if not isinstance(node, (CommentStatement, MustacheCommentStatement)):
        return False
    return DIRECTIVE_RE.match(node.value) is not None


def parse_directive(
    node: Node,
    canonical_name: Optional[Callable[[str], str]] = None,
) -> Optional[Directive]:
    """
    Parse a directive comment.

    Returns None for nodes that are not directives, and for directives with
    no usable ``key=value`` pair. ``canonical_name`` maps deprecated rule
    names onto their current names.
    """
    if not isinstance(node, (CommentStatement, MustacheCommentStatement)):
        return None
    match = DIRECTIVE_RE.match(node.value)
    if match is None:
        return None

    settings: Dict[str, bool] = {}
    for token in (match.group(1) or "").split():
        key, sep, value = token.partition("=")
        if not key or not sep or value not in ("true", "false"):
            logger.debug("Ignoring malformed template-lint directive %r at L%d", token, node.loc.start.line)
            continue

        enabled = value == "true"
        if key == "disable":
            settings[ALL] = not enabled
        else:
            if canonical_name is not None:
                key = canonical_name(key)
            settings[key] = enabled

    if not settings:
        logger.debug("Directive at L%d has no settings", node.loc.start.line)
        return None
    return Directive(node=node, settings=settings)


class DirectiveScope:
    """
    Stack of directive frames followed along with the traversal.

    The bottom frame holds the file-wide settings and is changed in place;
    every other frame covers a single node and its subtree. A rule's state
    comes from the topmost frame that mentions it or ``ALL``, and within a
    frame the rule's own entry wins over ``ALL``.
    """

    def __init__(self):
        self._frames: List[Dict[str, bool]] = [{}]

    @property
    def depth(self) -> int:
        return len(self._frames) - 1

    def update_file_scope(self, settings: Dict[str, bool]):
        file_frame = self._frames[0]
        if ALL in settings:
            file_frame.clear()
        file_frame.update(settings)

    def push(self, settings: Dict[str, bool]):
        self._frames.append(dict(settings))

    def pop(self):
        if len(self._frames) == 1:
            raise IndexError("Cannot pop the file directive frame")
        self._frames.pop()

    def is_enabled(self, rule_name: str) -> bool:
        for frame in reversed(self._frames):
            if rule_name in frame:
                return frame[rule_name]
            if ALL in frame:
                return frame[ALL]
        return True

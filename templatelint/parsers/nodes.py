"""
AST node types for component templates.

Lines are 1-based and columns 0-based, so the first character of a
template sits at ``L1:C0``.
"""

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Position:
    line: int
    column: int


@dataclass(frozen=True)
class SourceLocation:
    start: Position
    end: Position


@dataclass
class Node:
    """Base class for all template nodes."""
    loc: SourceLocation

    @property
    def type(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"{self.type}(line={self.loc.start.line}, column={self.loc.start.column})"


@dataclass(repr=False)
class TextNode(Node):
    chars: str = ""


@dataclass(repr=False)
class CommentStatement(Node):
    """An HTML comment: ``<!-- value -->``."""
    value: str = ""


@dataclass(repr=False)
class MustacheCommentStatement(Node):
    """A mustache comment: ``{{! value }}`` or ``{{!-- value --}}``."""
    value: str = ""


@dataclass(repr=False)
class MustacheStatement(Node):
    path: str = ""
    params: List[str] = field(default_factory=list)
    hash: Dict[str, str] = field(default_factory=dict)
    escaped: bool = True


@dataclass(repr=False)
class ElementModifierStatement(Node):
    path: str = ""
    params: List[str] = field(default_factory=list)
    hash: Dict[str, str] = field(default_factory=dict)


@dataclass(repr=False)
class ConcatStatement(Node):
    """A quoted attribute value mixing text and mustaches."""
    parts: List[Node] = field(default_factory=list)


@dataclass(repr=False)
class AttrNode(Node):
    name: str = ""
    value: Optional[Node] = None


@dataclass(repr=False)
class Block(Node):
    body: List[Node] = field(default_factory=list)
    block_params: List[str] = field(default_factory=list)
    chained: bool = False


@dataclass(repr=False)
class BlockStatement(Node):
    path: str = ""
    params: List[str] = field(default_factory=list)
    hash: Dict[str, str] = field(default_factory=dict)
    program: Optional[Block] = None
    inverse: Optional[Block] = None
    close_loc: Optional[SourceLocation] = None


@dataclass(repr=False)
class ElementNode(Node):
    tag: str = ""
    attributes: List[AttrNode] = field(default_factory=list)
    modifiers: List[ElementModifierStatement] = field(default_factory=list)
    children: List[Node] = field(default_factory=list)
    block_params: List[str] = field(default_factory=list)
    self_closing: bool = False
    close_loc: Optional[SourceLocation] = None

    def get_attribute(self, name: str) -> Optional[AttrNode]:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None


@dataclass(repr=False)
class Template(Node):
    body: List[Node] = field(default_factory=list)
    source: str = ""
    module_name: Optional[str] = None

    def __post_init__(self):
        self._line_starts = [0]
        for index, char in enumerate(self.source):
            if char == "\n":
                self._line_starts.append(index + 1)

    def offset_of(self, position: Position) -> int:
        """Translate a line/column position into a string offset."""
        line_index = min(max(position.line - 1, 0), len(self._line_starts) - 1)
        return self._line_starts[line_index] + position.column

    def position_of(self, offset: int) -> Position:
        line_index = bisect_right(self._line_starts, offset) - 1
        return Position(line_index + 1, offset - self._line_starts[line_index])

    def source_for(self, node: Node) -> str:
        """Return the exact source text a node was parsed from."""
        return self.source[self.offset_of(node.loc.start):self.offset_of(node.loc.end)]

    def line_text(self, line: int) -> str:
        """Return the text of a 1-based line without its newline."""
        if line < 1 or line > len(self._line_starts):
            return ""
        start = self._line_starts[line - 1]
        end = self.source.find("\n", start)
        return self.source[start:] if end == -1 else self.source[start:end]


# https://html.spec.whatwg.org/multipage/syntax.html#void-elements
VOID_TAGS = frozenset([
    "area", "base", "br", "col", "command", "embed", "hr", "img", "input",
    "keygen", "link", "meta", "param", "source", "track", "wbr",
])

RAW_TEXT_TAGS = frozenset(["script", "style"])

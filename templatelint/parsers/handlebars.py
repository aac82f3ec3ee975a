"""
Handlebars/HTML template parser.

A hand-written scanner that understands the subset of HTML and mustache
syntax used by component templates:

    <div class="a {{b}}" {{on "click" this.go}}>
      {{#each items as |item|}}
        {{item.name}}
      {{else}}
        {{! nothing }}
      {{/each}}
    </div>

It builds the tree defined in ``templatelint.parsers.nodes`` and records
the location of every node, including the closing tag of elements and
blocks so layout rules don't need to re-derive it.
"""

import re
from typing import Dict, List, Optional, Tuple, Union

from templatelint.parsers import register_parser
from templatelint.parsers.base import BaseParser, ParseWarning, TemplateSyntaxError, WarningCallback
from templatelint.parsers.nodes import (
    AttrNode, Block, BlockStatement, CommentStatement, ConcatStatement, ElementModifierStatement,
    ElementNode, MustacheCommentStatement, MustacheStatement, Node, Position, RAW_TEXT_TAGS,
    SourceLocation, Template, TextNode, VOID_TAGS,
)


TAG_NAME_RE = re.compile(r"[A-Za-z@:][\w\-.:@]*")
CLOSE_TAG_RE = re.compile(r"</\s*([A-Za-z@:][\w\-.:@]*)\s*>")
ATTR_NAME_RE = re.compile(r"[^\s\"'>/=]+")
BLOCK_PARAMS_RE = re.compile(r"\bas\s+\|([^|]*)\|")


class _Frame:
    """An open element or block on the parser stack."""

    def __init__(self, node: Union[Template, ElementNode, BlockStatement], body: List[Node]):
        self.node = node
        self.body = body


@register_parser("handlebars")
class HandlebarsParser(BaseParser):
    """Parser for ``.hbs`` component templates."""

    @property
    def language(self) -> str:
        return "handlebars"

    def parse(
        self,
        source: str,
        module_name: Optional[str] = None,
        on_warning: Optional[WarningCallback] = None,
    ) -> Template:
        return _TemplateBuilder(source, module_name, on_warning).build()


class _TemplateBuilder:
    """Single-use scanner state for one parse."""

    def __init__(self, source: str, module_name: Optional[str], on_warning: Optional[WarningCallback]):
        self.source = source
        self.module_name = module_name
        self.on_warning = on_warning
        self.pos = 0
        self.template = Template(
            loc=SourceLocation(Position(1, 0), Position(1, 0)),
            source=source,
            module_name=module_name,
        )
        self.stack: List[_Frame] = [_Frame(self.template, self.template.body)]

    # -- helpers -------------------------------------------------------------

    def position(self, offset: int) -> Position:
        return self.template.position_of(offset)

    def location(self, start: int, end: int) -> SourceLocation:
        return SourceLocation(self.position(start), self.position(end))

    def error(self, message: str, offset: int) -> TemplateSyntaxError:
        position = self.position(offset)
        return TemplateSyntaxError(message, position.line, position.column)

    def warn(self, message: str, offset: int):
        if self.on_warning is None:
            return
        position = self.position(offset)
        self.on_warning(ParseWarning(
            message=message,
            module_name=self.module_name,
            line=position.line,
            column=position.column,
        ))

    @property
    def body(self) -> List[Node]:
        return self.stack[-1].body

    # -- main loop -----------------------------------------------------------

    def build(self) -> Template:
        source = self.source
        while self.pos < len(source):
            if source.startswith("{{", self.pos):
                self._parse_mustache_in_content()
            elif source.startswith("<!--", self.pos):
                self.body.append(self._parse_html_comment())
            elif source.startswith("</", self.pos):
                self._parse_close_tag()
            elif self._at_open_tag():
                self._parse_element()
            else:
                self._parse_text()

        if len(self.stack) > 1:
            frame = self.stack[-1]
            start = self.template.offset_of(frame.node.loc.start)
            if isinstance(frame.node, ElementNode):
                raise self.error(f"Unclosed element `{frame.node.tag}`", start)
            raise self.error(f"Unclosed block `{frame.node.path}`", start)

        self.template.loc = self.location(0, len(source))
        return self.template

    def _at_open_tag(self) -> bool:
        return self.source[self.pos] == "<" and TAG_NAME_RE.match(self.source, self.pos + 1) is not None

    def _next_markup(self, start: int) -> int:
        """Offset of the next mustache, comment, or tag at or after ``start``."""
        source = self.source
        index = start
        while index < len(source):
            mustache = source.find("{{", index)
            angle = source.find("<", index)
            if mustache == -1 and angle == -1:
                return len(source)
            if angle == -1 or (mustache != -1 and mustache < angle):
                return mustache
            following = source[angle + 1:angle + 2]
            if following in ("/", "!") or TAG_NAME_RE.match(source, angle + 1):
                return angle
            index = angle + 1
        return len(source)

    def _parse_text(self):
        start = self.pos
        end = self._next_markup(start + 1)
        self.pos = end
        self.body.append(TextNode(loc=self.location(start, end), chars=self.source[start:end]))

    # -- comments ------------------------------------------------------------

    def _parse_html_comment(self) -> CommentStatement:
        start = self.pos
        end = self.source.find("-->", start + 4)
        if end == -1:
            raise self.error("Unclosed comment", start)
        self.pos = end + 3
        return CommentStatement(loc=self.location(start, self.pos), value=self.source[start + 4:end])

    def _parse_mustache_comment(self) -> MustacheCommentStatement:
        start = self.pos
        if self.source.startswith("{{!--", start):
            end = self.source.find("--}}", start + 5)
            if end == -1:
                raise self.error("Unclosed comment", start)
            value = self.source[start + 5:end]
            self.pos = end + 4
        else:
            end = self.source.find("}}", start + 3)
            if end == -1:
                raise self.error("Unclosed comment", start)
            value = self.source[start + 3:end]
            self.pos = end + 2
        return MustacheCommentStatement(loc=self.location(start, self.pos), value=value)

    # -- mustaches -----------------------------------------------------------

    def _find_mustache_end(self, start: int, closing: str) -> int:
        """Find ``closing`` after ``start``, skipping over quoted strings."""
        source = self.source
        index = start
        quote = None
        while index < len(source):
            char = source[index]
            if quote:
                if char == "\\":
                    index += 2
                    continue
                if char == quote:
                    quote = None
            elif char in ("\"", "'"):
                quote = char
            elif source.startswith(closing, index):
                return index
            index += 1
        return -1

    def _read_mustache(self) -> Tuple[int, str, bool]:
        """Consume one ``{{...}}`` or ``{{{...}}}``; returns (start, content, escaped)."""
        start = self.pos
        if self.source.startswith("{{{", start):
            end = self._find_mustache_end(start + 3, "}}}")
            if end == -1:
                raise self.error("Unterminated mustache statement", start)
            self.pos = end + 3
            content, escaped = self.source[start + 3:end], False
        else:
            end = self._find_mustache_end(start + 2, "}}")
            if end == -1:
                raise self.error("Unterminated mustache statement", start)
            self.pos = end + 2
            content, escaped = self.source[start + 2:end], True
        content = content.strip()
        if content.startswith("~"):
            content = content[1:]
        if content.endswith("~"):
            content = content[:-1]
        return start, content.strip(), escaped

    def _parse_mustache_in_content(self):
        if self.source.startswith("{{!", self.pos):
            self.body.append(self._parse_mustache_comment())
            return

        start, content, escaped = self._read_mustache()
        loc = self.location(start, self.pos)

        if not content:
            raise self.error("Empty mustache statement", start)
        if not escaped:
            path, params, hash_pairs, _ = self._parse_expression(content, start)
            self.body.append(MustacheStatement(loc=loc, path=path, params=params, hash=hash_pairs, escaped=False))
        elif content[0] == "#":
            self._open_block(content[1:].lstrip("*").strip(), start, loc)
        elif content[0] == "/":
            self._close_block(content[1:].strip(), start)
        elif content == "^" or content == "else" or content.startswith("else "):
            self._inverse(content, start, loc)
        elif content[0] == ">":
            raise self.error("Handlebars partials are not supported", start)
        else:
            path, params, hash_pairs, _ = self._parse_expression(content, start)
            self.body.append(MustacheStatement(loc=loc, path=path, params=params, hash=hash_pairs))

    def _open_block(self, content: str, start: int, loc: SourceLocation, chained: bool = False):
        if not content:
            raise self.error("Block statement is missing a path", start)
        path, params, hash_pairs, block_params = self._parse_expression(content, start)
        if path == "each" and len(params) == 3 and params[1] == "in":
            self.warn(
                f"Using `{{{{#each {params[0]} in {params[2]}}}}}` is deprecated, "
                f"use `{{{{#each {params[2]} as |{params[0]}|}}}}` instead",
                start,
            )
        program = Block(loc=loc, block_params=block_params)
        block = BlockStatement(loc=loc, path=path, params=params, hash=hash_pairs, program=program)
        self.body.append(block)
        self.stack.append(_Frame(block, program.body))
        program.chained = chained

    def _inverse(self, content: str, start: int, loc: SourceLocation):
        frame = self.stack[-1]
        if not isinstance(frame.node, BlockStatement):
            raise self.error("`{{else}}` used outside of a block", start)
        block = frame.node
        if block.inverse is not None:
            raise self.error(f"Block `{block.path}` already has an `{{{{else}}}}` section", start)
        self._finish_block_section(block.program, start)

        chained_content = content[len("else"):].strip() if content.startswith("else") else ""
        block.inverse = Block(loc=loc, chained=bool(chained_content))
        frame.body = block.inverse.body
        if chained_content:
            # {{else if foo}} opens a nested block sharing the outer closing tag
            self._open_block(chained_content, start, loc, chained=True)

    def _finish_block_section(self, section: Optional[Block], end: int):
        if section is not None:
            section.loc = SourceLocation(section.loc.start, self.position(end))

    def _close_block(self, name: str, start: int):
        close_loc = self.location(start, self.pos)
        while True:
            frame = self.stack[-1]
            if not isinstance(frame.node, BlockStatement):
                if isinstance(frame.node, ElementNode):
                    raise self.error(
                        f"Closing block `{{{{/{name}}}}}` did not match last open element `<{frame.node.tag}>`",
                        start,
                    )
                raise self.error(f"Closing block `{{{{/{name}}}}}` without an open block", start)
            block = frame.node
            self.stack.pop()
            self._finish_block_section(block.inverse or block.program, start)
            block.loc = SourceLocation(block.loc.start, close_loc.end)
            block.close_loc = close_loc
            if block.program is not None and block.program.chained:
                # an {{else if}} block ends where its parent's closing tag ends
                continue
            if block.path != name:
                raise self.error(f"`{block.path}` doesn't match `{name}`", start)
            return

    def _parse_expression(self, content: str, offset: int) -> Tuple[str, List[str], Dict[str, str], List[str]]:
        """Split a mustache body into path, params, hash pairs and block params."""
        block_params: List[str] = []
        match = BLOCK_PARAMS_RE.search(content)
        if match:
            block_params = match.group(1).split()
            content = content[:match.start()] + content[match.end():]

        tokens = self._tokenize_expression(content, offset)
        if not tokens:
            raise self.error("Empty mustache statement", offset)
        path, params, hash_pairs = tokens[0], [], {}
        for token in tokens[1:]:
            key, sep, value = token.partition("=")
            if sep and key and token[0] not in "\"'(" and " " not in key:
                hash_pairs[key] = value
            else:
                params.append(token)
        return path, params, hash_pairs, block_params

    def _tokenize_expression(self, content: str, offset: int) -> List[str]:
        tokens = []
        index = 0
        while index < len(content):
            if content[index].isspace():
                index += 1
                continue
            start = index
            depth = 0
            quote = None
            while index < len(content):
                char = content[index]
                if quote:
                    if char == quote:
                        quote = None
                elif char in ("\"", "'"):
                    quote = char
                elif char == "(":
                    depth += 1
                elif char == ")":
                    depth -= 1
                    if depth < 0:
                        raise self.error("Unbalanced `)` in mustache statement", offset)
                elif char.isspace() and depth == 0:
                    break
                index += 1
            if quote or depth:
                raise self.error("Unterminated expression in mustache statement", offset)
            tokens.append(content[start:index])
        return tokens

    # -- elements ------------------------------------------------------------

    def _skip_whitespace(self):
        while self.pos < len(self.source) and self.source[self.pos].isspace():
            self.pos += 1

    def _parse_element(self):
        start = self.pos
        name_match = TAG_NAME_RE.match(self.source, start + 1)
        tag = name_match.group(0)
        self.pos = name_match.end()

        element = ElementNode(loc=self.location(start, start), tag=tag)
        source = self.source
        while True:
            self._skip_whitespace()
            if self.pos >= len(source):
                raise self.error(f"Unclosed element start tag `<{tag}`", start)
            if source.startswith("/>", self.pos):
                self.pos += 2
                element.self_closing = True
                break
            if source[self.pos] == ">":
                self.pos += 1
                break
            if source.startswith("{{!", self.pos):
                self._parse_mustache_comment()
                continue
            if source.startswith("{{", self.pos):
                element.modifiers.append(self._parse_modifier())
                continue
            block_params = BLOCK_PARAMS_RE.match(source, self.pos)
            if block_params:
                element.block_params = block_params.group(1).split()
                self.pos = block_params.end()
                continue
            element.attributes.append(self._parse_attribute(start, tag))

        element.loc = self.location(start, self.pos)
        self.body.append(element)

        if element.self_closing or tag.lower() in VOID_TAGS:
            return
        if tag.lower() in RAW_TEXT_TAGS:
            self._parse_raw_text(element)
            return
        self.stack.append(_Frame(element, element.children))

    def _parse_raw_text(self, element: ElementNode):
        pattern = re.compile(r"</\s*" + re.escape(element.tag) + r"\s*>", re.IGNORECASE)
        match = pattern.search(self.source, self.pos)
        if match is None:
            raise self.error(f"Unclosed element `{element.tag}`", self.template.offset_of(element.loc.start))
        if match.start() > self.pos:
            element.children.append(TextNode(
                loc=self.location(self.pos, match.start()),
                chars=self.source[self.pos:match.start()],
            ))
        element.close_loc = self.location(match.start(), match.end())
        element.loc = SourceLocation(element.loc.start, element.close_loc.end)
        self.pos = match.end()

    def _parse_modifier(self) -> ElementModifierStatement:
        start, content, _ = self._read_mustache()
        if not content:
            raise self.error("Empty mustache statement", start)
        path, params, hash_pairs, _ = self._parse_expression(content, start)
        return ElementModifierStatement(loc=self.location(start, self.pos), path=path, params=params, hash=hash_pairs)

    def _parse_attribute(self, element_start: int, tag: str) -> AttrNode:
        start = self.pos
        match = ATTR_NAME_RE.match(self.source, start)
        if match is None:
            raise self.error(f"Invalid attribute in `<{tag}>`", start)
        name = match.group(0)
        self.pos = match.end()

        self._skip_whitespace()
        if not self.source.startswith("=", self.pos):
            self.pos = match.end()
            value = TextNode(loc=self.location(self.pos, self.pos), chars="")
            return AttrNode(loc=self.location(start, self.pos), name=name, value=value)

        self.pos += 1
        self._skip_whitespace()
        if self.pos >= len(self.source):
            raise self.error(f"Unclosed element start tag `<{tag}`", element_start)

        char = self.source[self.pos]
        if char in ("\"", "'"):
            value = self._parse_quoted_value(char, element_start, tag)
        elif self.source.startswith("{{", self.pos):
            mustache_start, content, escaped = self._read_mustache()
            path, params, hash_pairs, _ = self._parse_expression(content, mustache_start)
            value = MustacheStatement(
                loc=self.location(mustache_start, self.pos),
                path=path, params=params, hash=hash_pairs, escaped=escaped,
            )
        else:
            value_start = self.pos
            while self.pos < len(self.source) and not self.source[self.pos].isspace() \
                    and self.source[self.pos] != ">" and not self.source.startswith("/>", self.pos):
                self.pos += 1
            value = TextNode(loc=self.location(value_start, self.pos), chars=self.source[value_start:self.pos])

        return AttrNode(loc=self.location(start, self.pos), name=name, value=value)

    def _parse_quoted_value(self, quote: str, element_start: int, tag: str) -> Node:
        value_start = self.pos
        self.pos += 1
        parts: List[Node] = []
        text_start = self.pos
        while True:
            if self.pos >= len(self.source):
                raise self.error(f"Unclosed attribute value in `<{tag}>`", element_start)
            if self.source[self.pos] == quote:
                break
            if self.source.startswith("{{", self.pos):
                if self.pos > text_start:
                    parts.append(TextNode(loc=self.location(text_start, self.pos), chars=self.source[text_start:self.pos]))
                mustache_start, content, escaped = self._read_mustache()
                if not content:
                    raise self.error("Empty mustache statement", mustache_start)
                path, params, hash_pairs, _ = self._parse_expression(content, mustache_start)
                parts.append(MustacheStatement(
                    loc=self.location(mustache_start, self.pos),
                    path=path, params=params, hash=hash_pairs, escaped=escaped,
                ))
                text_start = self.pos
                continue
            self.pos += 1

        if self.pos > text_start:
            parts.append(TextNode(loc=self.location(text_start, self.pos), chars=self.source[text_start:self.pos]))
        self.pos += 1

        if all(isinstance(part, TextNode) for part in parts):
            chars = "".join(part.chars for part in parts)
            return TextNode(loc=self.location(value_start + 1, self.pos - 1), chars=chars)
        return ConcatStatement(loc=self.location(value_start, self.pos), parts=parts)

    def _parse_close_tag(self):
        start = self.pos
        match = CLOSE_TAG_RE.match(self.source, start)
        if match is None:
            raise self.error("Unterminated closing tag", start)
        tag = match.group(1)
        self.pos = match.end()

        if tag.lower() in VOID_TAGS:
            raise self.error(f"`<{tag}>` elements do not need end tags. You should remove it", start)

        frame = self.stack[-1]
        if isinstance(frame.node, Template):
            raise self.error(f"Closing tag `</{tag}>` without an open tag", start)
        if isinstance(frame.node, BlockStatement):
            raise self.error(
                f"Closing tag `</{tag}>` did not match last open block `{{{{#{frame.node.path}}}}}`",
                start,
            )
        element = frame.node
        if element.tag != tag:
            raise self.error(
                f"Closing tag `</{tag}>` did not match last open tag `<{element.tag}>` "
                f"(on line {element.loc.start.line})",
                start,
            )

        self.stack.pop()
        element.close_loc = self.location(start, self.pos)
        element.loc = SourceLocation(element.loc.start, element.close_loc.end)

"""
Bare string detection.

Text written directly into a template cannot be translated. This rule
flags text content, and the text of user-facing attributes, that is made of
more than punctuation and HTML entities.

Valid configuration values:

  * ``true``: enabled with the default allowlist
  * a list of strings: the allowlist to use instead of the default
  * a mapping with ``allowlist`` and/or ``globalAttributes``
"""

from typing import Any, Dict, List

from templatelint.core.rules import Rule, RuleConfigError, RuleMetadata, rule
from templatelint.parsers.nodes import (
    AttrNode, ConcatStatement, ElementNode, Node, RAW_TEXT_TAGS, TextNode,
)

DEFAULT_ALLOWLIST = [
    "(", ")", ",", ".", "&", "+", "-", "=", "*", "/", "#", "%", "!", "?", ":",
    "[", "]", "{", "}", "<", ">", "•", "—", " ", "|",
    "&lpar;", "&rpar;", "&comma;", "&period;", "&amp;", "&AMP;", "&plus;",
    "&minus;", "&equals;", "&ast;", "&midast;", "&sol;", "&num;", "&percnt;",
    "&excl;", "&quest;", "&colon;", "&lsqb;", "&lbrack;", "&rsqb;", "&rbrack;",
    "&lcub;", "&lbrace;", "&rcub;", "&rbrace;", "&lt;", "&LT;", "&gt;", "&GT;",
    "&bull;", "&bullet;", "&mdash;", "&ndash;", "&nbsp;", "&Tab;", "&NewLine;",
    "&verbar;", "&vert;", "&VerticalLine;",
]

DEFAULT_GLOBAL_ATTRIBUTES = ["title", "aria-label", "alt", "placeholder"]


@rule
class NoBareStringsRule(Rule):
    """
    Flags text that is not wrapped in a translation helper.

    ``<div>Hello</div>`` is reported; ``<div>{{t "hello"}}</div>`` and
    ``<div>&nbsp;|&nbsp;</div>`` are not.
    """

    metadata = RuleMetadata(
        rule_id="no-bare-strings",
        name="No bare strings",
        description="Disallows text content that is not translated.",
        deprecated_ids=["bare-strings"],
    )

    def parse_config(self, config: Any) -> Dict[str, List[str]]:
        if config is True:
            return {"allowlist": DEFAULT_ALLOWLIST, "globalAttributes": DEFAULT_GLOBAL_ATTRIBUTES}
        if isinstance(config, list) and all(isinstance(item, str) for item in config):
            return {"allowlist": config, "globalAttributes": DEFAULT_GLOBAL_ATTRIBUTES}
        if isinstance(config, dict):
            unknown = set(config) - {"allowlist", "globalAttributes"}
            if unknown:
                raise RuleConfigError(f"unknown options {', '.join(sorted(unknown))}")
            options = {
                "allowlist": config.get("allowlist", DEFAULT_ALLOWLIST),
                "globalAttributes": config.get("globalAttributes", DEFAULT_GLOBAL_ATTRIBUTES),
            }
            for key, value in options.items():
                if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                    raise RuleConfigError(f"`{key}` must be a list of strings")
            return options
        raise RuleConfigError(
            "expected `true`, a list of allowed strings, "
            f"or an object with `allowlist` and `globalAttributes`, but got {config!r}"
        )

    def detect(self, node: Node) -> bool:
        if isinstance(node, AttrNode):
            return node.name in self.options["globalAttributes"]
        if not isinstance(node, TextNode):
            return False
        if isinstance(self.context.parent, (AttrNode, ConcatStatement)):
            return False
        return not any(
            isinstance(ancestor, ElementNode) and ancestor.tag in RAW_TEXT_TAGS
            for ancestor in self.context.parents
        )

    def process(self, node: Node):
        if isinstance(node, TextNode):
            if self.is_bare(node.chars):
                self.log("Non-translated string used")
            return

        if isinstance(node.value, TextNode):
            texts = [node.value]
        elif isinstance(node.value, ConcatStatement):
            texts = [part for part in node.value.parts if isinstance(part, TextNode)]
        else:
            texts = []

        for text in texts:
            if self.is_bare(text.chars):
                self.log(f"Non-translated string used in `{node.name}` attribute", node=text)
                break

    def is_bare(self, text: str) -> bool:
        # longest entries first so "&nbsp;" is removed before "&"
        for allowed in sorted(self.options["allowlist"], key=len, reverse=True):
            text = text.replace(allowed, "")
        return text.strip() != ""

"""
Tests for inline template-lint directives and the rule dispatcher.
"""

import pytest
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from templatelint import Linter, Rule, RuleMetadata
from templatelint.core.directives import ALL, DirectiveScope, is_directive_comment, parse_directive
from templatelint.core.findings import MessageKind
from templatelint.core.visitor import ActiveRule, RuleDispatcher
from templatelint.parsers import parse
from templatelint.parsers.nodes import ElementNode, TextNode


BARE = {"no-bare-strings": True}


def positions(source, rules=BARE):
    linter = Linter(config={"rules": rules})
    return [(f.line, f.column) for f in linter.verify(source, "m")]


class ExplodingRule(Rule):
    metadata = RuleMetadata(rule_id="explodes", name="Explodes", description="Always fails.")

    def detect(self, node):
        return isinstance(node, ElementNode)

    def process(self, node):
        raise RuntimeError("boom")


class TextRule(Rule):
    metadata = RuleMetadata(rule_id="text", name="Text", description="Logs every text node.")

    def detect(self, node):
        return isinstance(node, TextNode) and node.chars.strip() != ""

    def process(self, node):
        self.log("text")


class TestParseDirective:
    """Tests for reading directive comments."""

    def test_disable_all(self):
        node = parse("{{! template-lint disable=true }}").body[0]
        assert is_directive_comment(node)
        assert parse_directive(node).settings == {ALL: False}

    def test_rule_settings(self):
        node = parse("<!-- template-lint no-bare-strings=false block-indentation=true -->").body[0]
        directive = parse_directive(node)
        assert directive.settings == {"no-bare-strings": False, "block-indentation": True}
        assert not directive.only_enables

    def test_canonical_names(self):
        node = parse("{{!-- template-lint bare-strings=false --}}").body[0]
        directive = parse_directive(node, {"bare-strings": "no-bare-strings"}.get)
        assert directive.settings == {"no-bare-strings": False}

    def test_ordinary_comments(self):
        assert parse_directive(parse("{{! just a comment }}").body[0]) is None
        assert not is_directive_comment(parse("<!-- template-linting -->").body[0])
        assert parse_directive(parse("<p></p>").body[0]) is None

    def test_malformed_tokens_are_skipped(self):
        node = parse("{{! template-lint oops no-bare-strings=maybe disable=false }}").body[0]
        assert parse_directive(node).settings == {ALL: True}

    def test_no_settings(self):
        assert parse_directive(parse("{{! template-lint }}").body[0]) is None


class TestDirectiveScope:
    """Tests for the directive frame stack."""

    def test_enabled_by_default(self):
        assert DirectiveScope().is_enabled("anything")

    def test_rule_entry_beats_all(self):
        scope = DirectiveScope()
        scope.update_file_scope({ALL: False, "no-triple-curlies": True})
        assert scope.is_enabled("no-triple-curlies")
        assert not scope.is_enabled("no-bare-strings")

    def test_pushed_frame_wins(self):
        scope = DirectiveScope()
        scope.update_file_scope({ALL: False})
        scope.push({"no-bare-strings": True})
        assert scope.depth == 1
        assert scope.is_enabled("no-bare-strings")
        scope.pop()
        assert not scope.is_enabled("no-bare-strings")

    def test_enable_all_resets_file_scope(self):
        scope = DirectiveScope()
        scope.update_file_scope({"no-bare-strings": False})
        scope.update_file_scope({ALL: True})
        assert scope.is_enabled("no-bare-strings")

    def test_file_frame_cannot_be_popped(self):
        with pytest.raises(IndexError):
            DirectiveScope().pop()


class TestDirectivesInTemplates:
    """Tests for directives applied while linting."""

    def test_disable_whole_file(self):
        assert positions("{{! template-lint disable=true }}\n<div>bare</div>\n<p>more</p>") == []

    def test_disable_next_sibling(self):
        source = "<div>bare</div>\n{{! template-lint no-bare-strings=false }}\n<p>bare</p>\n<p>again</p>"
        assert positions(source) == [(1, 5), (4, 3)]

    def test_disable_inside_element(self):
        source = "<div>\n  {{! template-lint no-bare-strings=false }}\n  <p>skip</p>\n  <p>flag</p>\n</div>"
        assert positions(source) == [(4, 5)]

    def test_disabled_subtree(self):
        source = "<div>\n  <!-- template-lint disable=true -->\n  <section><p>skip</p></section>\n</div>"
        assert positions(source) == []

    def test_re_enable(self):
        source = (
            "{{! template-lint disable=true }}\n<p>a</p>\n"
            "{{! template-lint disable=false }}\n<p>b</p>"
        )
        assert positions(source) == [(4, 3)]

    def test_deprecated_rule_name(self):
        assert positions("{{! template-lint bare-strings=false }}\n<p>x</p>") == []

    def test_only_named_rule_is_disabled(self):
        rules = {"no-bare-strings": True, "no-triple-curlies": True}
        source = "{{! template-lint no-bare-strings=false }}\n<p>x {{{y}}}</p>"
        assert positions(source, rules) == [(2, 5)]

    def test_directive_is_not_an_html_comment(self):
        rules = {"no-bare-strings": True, "no-html-comments": True}
        assert positions("<!-- template-lint no-bare-strings=false -->\n<p>x</p>", rules) == []


class TestRuleDispatcher:
    """Tests for running rules over a template."""

    def test_failing_rule_is_isolated(self):
        template = parse("<div>hello</div>")
        accumulator = RuleDispatcher().run(template, [
            ActiveRule("explodes", ExplodingRule),
            ActiveRule("text", TextRule),
        ])

        by_kind = {message.kind: message for message in accumulator}
        assert by_kind[MessageKind.INTERNAL_ERROR].message == (
            "Rule 'explodes' failed while processing ElementNode: boom"
        )
        assert (by_kind[MessageKind.INTERNAL_ERROR].line, by_kind[MessageKind.INTERNAL_ERROR].column) == (1, 0)
        assert [m.message for m in accumulator.for_rule("text")] == ["text"]

    def test_internal_errors_become_findings(self):
        linter = Linter(config={"rules": {"explodes": True}}, plugins=[
            {"name": "broken", "rules": {"explodes": ExplodingRule}},
        ])
        findings = linter.verify("<div></div>", "m")
        assert [f.message for f in findings] == ["Rule 'explodes' failed while processing ElementNode: boom"]
        assert findings[0].is_error

    def test_document_order(self):
        template = parse("<p>one</p>{{#if a}}two{{else}}three{{/if}}four")
        accumulator = RuleDispatcher().run(template, [ActiveRule("text", TextRule)])
        sources = [message.source for message in accumulator]
        assert sources == ["one", "two", "three", "four"]

    def test_fresh_accumulator_each_run(self):
        template = parse("<p>one</p>")
        dispatcher = RuleDispatcher()
        first = dispatcher.run(template, [ActiveRule("text", TextRule)])
        second = dispatcher.run(template, [ActiveRule("text", TextRule)])
        assert len(first) == len(second) == 1

"""Tests for rule dispatch and line-number bookkeeping."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from coreview.diff_parser import parse_diff_lines, parse_unified_diff
from coreview.engine import RuleEngine
from coreview.reporting import CollectingReporter
from coreview.rules import default_rules
from coreview.rules.base import BlockRule, LineRule
from coreview.rules.block_rules import MultilineWhitespaceRule
from coreview.rules.line_rules import FirstObjectRule, SpaceBeforeSemicolonRule

FIXTURE_DIR = Path(__file__).parent / "fixtures" / "diffs"


class ContainsRule(LineRule):
    def __init__(self, needle: str, rule_id: str = "contains", extensions=None) -> None:
        self.needle = needle
        self.rule_id = rule_id
        if extensions is not None:
            self.extensions = frozenset(extensions)

    def matches(self, text: str) -> bool:
        return self.needle in text

    def describe(self, text: str) -> str:
        return f"{self.rule_id}: {text.strip()}"


class AnyBlockRule(BlockRule):
    rule_id = "any_block"

    def matches(self, text: str) -> bool:
        return bool(text)

    def describe(self, text: str) -> str:
        return "block"


class ExplodingRule(LineRule):
    rule_id = "exploding"

    def matches(self, text: str) -> bool:
        raise RuntimeError("bad pattern")

    def describe(self, text: str) -> str:
        return "never"


class BrokenMessageRule(LineRule):
    rule_id = "broken_message"

    def matches(self, text: str) -> bool:
        return True

    def describe(self, text: str) -> str:
        raise KeyError("missing template")


class BrokenFilterRule(BlockRule):
    rule_id = "broken_filter"

    def applies_to(self, extension: str) -> bool:
        raise RuntimeError("no extension table")

    def matches(self, text: str) -> bool:
        return True

    def describe(self, text: str) -> str:
        return "never"


def _files(name: str = "objc_changes.diff"):
    return parse_unified_diff((FIXTURE_DIR / name).read_text(encoding="utf-8"))


def _scenario_files(extension: str = "m"):
    return parse_diff_lines(
        [
            f"diff --git a/Foo.{extension} b/Foo.{extension}",
            "@@ -1,3 +1,4 @@",
            " context",
            "+added one",
            "-removed",
            "+added two",
        ]
    )


def test_line_rule_reports_offset_within_hunk() -> None:
    findings = RuleEngine([ContainsRule("added two")]).scan(_scenario_files())
    assert [finding.location for finding in findings] == ["Foo.m:3"]
    assert findings[0].message == "contains: added two"


def test_every_added_line_maps_to_start_plus_offset() -> None:
    files = parse_diff_lines(
        ["diff --git a/a.m b/a.m", "@@ -40,2 +57,4 @@", " x", "+x", "-x", "+x", " x"]
    )
    findings = RuleEngine([ContainsRule("x")]).scan(files)
    assert [finding.line_number for finding in findings] == [57, 58, 59, 60]


def test_duplicate_lines_report_their_own_positions() -> None:
    files = parse_diff_lines(
        ["diff --git a/a.m b/a.m", "@@ -1 +10,3 @@", "+same;", "+other", "+same;"]
    )
    findings = RuleEngine([ContainsRule("same")]).scan(files)
    assert [finding.location for finding in findings] == ["a.m:10", "a.m:12"]


def test_block_rule_reports_once_at_hunk_start() -> None:
    files = parse_diff_lines(
        [
            "diff --git a/Foo.m b/Foo.m\n",
            "@@ -10,2 +10,5 @@\n",
            " int a;\n",
            "+\n",
            "+\n",
            "+\n",
            " int b;\n",
        ]
    )
    assert "\n\n\n" in files[0].hunks[0].text

    findings = RuleEngine([MultilineWhitespaceRule()]).scan(files)
    assert [finding.location for finding in findings] == ["Foo.m:10"]
    assert findings[0].rule_id == "multiline_whitespace"


def test_empty_input_produces_no_findings() -> None:
    engine = RuleEngine(default_rules())
    assert engine.scan(parse_diff_lines([])) == []


def test_extensionless_file_is_skipped_by_objc_rules() -> None:
    files = parse_diff_lines(["diff --git a/Makefile b/Makefile", "@@ -1 +1 @@", "+x"])
    assert files[0].extension == "Makefile"

    rule = ContainsRule("x", extensions={"h", "m"})
    assert rule.applies_to("Makefile") is False
    assert RuleEngine([rule]).scan(files) == []


def test_extension_filter_rejects_regardless_of_content() -> None:
    engine = RuleEngine([ContainsRule("added", extensions={"h"}), AnyBlockRule()])
    findings = engine.scan(_scenario_files("swift"))
    assert findings == []


def test_partition_is_stable_and_complete() -> None:
    rules = default_rules()
    engine = RuleEngine(rules)
    assert len(engine.block_rules) + len(engine.line_rules) == len(rules)
    assert all(isinstance(rule, BlockRule) for rule in engine.block_rules)
    assert all(isinstance(rule, LineRule) for rule in engine.line_rules)
    assert engine.block_rules == [rule for rule in rules if isinstance(rule, BlockRule)]
    assert engine.line_rules == [rule for rule in rules if isinstance(rule, LineRule)]


def test_unknown_rule_shape_is_rejected() -> None:
    with pytest.raises(TypeError, match="neither a LineRule nor a BlockRule"):
        RuleEngine([object()])  # type: ignore[list-item]


def test_block_findings_precede_line_findings_and_registration_order_holds() -> None:
    engine = RuleEngine(
        [
            ContainsRule("added", rule_id="second_line_rule"),
            AnyBlockRule(),
            ContainsRule("added one", rule_id="first_line_rule"),
        ]
    )
    findings = engine.scan(_scenario_files())
    assert [(finding.rule_id, finding.line_number) for finding in findings] == [
        ("any_block", 1),
        ("second_line_rule", 2),
        ("second_line_rule", 3),
        ("first_line_rule", 2),
    ]


def test_multiple_rules_on_same_line_are_not_deduplicated() -> None:
    engine = RuleEngine([ContainsRule("added", rule_id="a"), ContainsRule("two", rule_id="b")])
    findings = [finding for finding in engine.scan(_scenario_files()) if finding.line_number == 3]
    assert [finding.rule_id for finding in findings] == ["a", "b"]


def test_ordering_is_deterministic() -> None:
    first = RuleEngine(default_rules()).scan(_files())
    second = RuleEngine(default_rules()).scan(_files())
    assert first == second


def test_default_rules_on_fixture() -> None:
    findings = RuleEngine(default_rules()).scan(_files())
    assert [(finding.location, finding.rule_id) for finding in findings] == [
        ("Foo.m:22", "first_object"),
        ("Foo.h:6", "bool_getter"),
    ]
    assert findings[0].message == '"NSArray *items = @[][0];", firstObject?'
    assert findings[1].message == '"@property (nonatomic) BOOL enabled;", needs a getter set?'


def test_no_newline_marker_keeps_line_numbers_aligned() -> None:
    findings = RuleEngine([SpaceBeforeSemicolonRule()]).scan(_files("no_newline_marker.diff"))
    assert [finding.location for finding in findings] == ["Baz.m:2"]


def test_failing_rule_is_skipped_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    engine = RuleEngine([ExplodingRule(), ContainsRule("added two")])
    with caplog.at_level(logging.WARNING, logger="coreview.engine"):
        findings = engine.scan(_scenario_files())
    assert [finding.location for finding in findings] == ["Foo.m:3"]
    assert "exploding" in caplog.text
    assert "bad pattern" in caplog.text


def test_failing_describe_drops_only_that_finding(caplog: pytest.LogCaptureFixture) -> None:
    engine = RuleEngine([BrokenMessageRule(), ContainsRule("added two")])
    with caplog.at_level(logging.WARNING, logger="coreview.engine"):
        findings = engine.scan(_scenario_files())
    assert [(finding.location, finding.rule_id) for finding in findings] == [
        ("Foo.m:3", "contains")
    ]
    assert "broken_message" in caplog.text
    assert "missing template" in caplog.text


def test_failing_applies_to_excludes_rule_for_file(caplog: pytest.LogCaptureFixture) -> None:
    engine = RuleEngine([BrokenFilterRule(), ContainsRule("added one")])
    with caplog.at_level(logging.WARNING, logger="coreview.engine"):
        findings = engine.scan(_scenario_files())
    assert [(finding.location, finding.rule_id) for finding in findings] == [
        ("Foo.m:2", "contains")
    ]
    assert "broken_filter" in caplog.text
    assert "no extension table" in caplog.text


@pytest.mark.parametrize("separator", ["\x0c", "\u2028"])
def test_line_breaking_characters_do_not_shift_line_numbers(separator: str) -> None:
    files = parse_unified_diff(
        "diff --git a/Foo.m b/Foo.m\n"
        "@@ -1,2 +1,3 @@\n"
        f" int a; // page{separator}break\n"
        "+id x = items[0];\n"
    )
    findings = RuleEngine([FirstObjectRule()]).scan(files)
    assert [finding.location for finding in findings] == ["Foo.m:2"]


def test_run_hands_findings_to_reporter_in_order() -> None:
    reporter = CollectingReporter()
    count = RuleEngine(default_rules()).run(_files(), reporter)
    assert count == 2
    assert [finding.location for finding in reporter.findings] == ["Foo.m:22", "Foo.h:6"]


def test_applicable_rules_filters_by_extension() -> None:
    engine = RuleEngine(default_rules())
    foo_m, foo_h, makefile = _files()

    m_blocks, m_lines = engine.applicable_rules(foo_m)
    h_blocks, h_lines = engine.applicable_rules(foo_h)
    assert "line_length" in {rule.rule_id for rule in m_lines}
    assert "line_length" not in {rule.rule_id for rule in h_lines}
    assert len(m_blocks) == len(h_blocks) == len(engine.block_rules)
    assert engine.applicable_rules(makefile) == ([], [])

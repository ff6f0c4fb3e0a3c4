"""Rules evaluated once per hunk against its concatenated post-change text."""

from __future__ import annotations

from re import DOTALL, MULTILINE, compile

from coreview.rules.base import BlockRule, quote

TRAILING_BLANKS_RE = compile(r"[ |]*\n")
PARAGRAPH_BREAK_RE = compile(r"\n\s*\n")


class MultilineWhitespaceRule(BlockRule):
    """Two or more consecutive blank lines."""

    rule_id = "multiline_whitespace"
    pattern = compile(r"^\n\n+", MULTILINE)

    def matches(self, text: str) -> bool:
        return self.pattern.search(TRAILING_BLANKS_RE.sub("\n", text)) is not None

    def describe(self, text: str) -> str:
        return f"{quote(text)}, unneeded whitespace?"


class EmptyMethodRule(BlockRule):
    """Braces with nothing but whitespace between them."""

    rule_id = "empty_method"
    pattern = compile(r"\{\s*\}")

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def describe(self, text: str) -> str:
        return f"{quote(text)}, empty method?"


class EqualsAlignmentRule(BlockRule):
    """Paragraphs of assignments whose equals signs are not aligned."""

    rule_id = "equals_alignment"

    def __init__(self) -> None:
        self.failed_block: str | None = None

    def matches(self, text: str) -> bool:
        self.failed_block = None
        for block in PARAGRAPH_BREAK_RE.split(text):
            lines = block.split("\n")
            while lines and not lines[-1]:
                lines.pop()
            if not lines or not all("=" in line for line in lines):
                continue

            column = lines[0].index("=")
            if any(line.index("=") != column for line in lines):
                self.failed_block = block
                return True
        return False

    def describe(self, text: str) -> str:
        block = self.failed_block if self.failed_block is not None else text
        return '"' + block.lstrip() + '", alignment?'


class WeakSelfCaptureRule(BlockRule):
    """Block literals that may need a weak reference to self."""

    rule_id = "weak_self_capture"
    pattern = compile(r"\^.*\{\}", DOTALL)

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def describe(self, text: str) -> str:
        return f"{quote(text)}, weakself?"


class BlankLineInMethodRule(BlockRule):
    """Any blank line inside the changed region."""

    rule_id = "blank_line_in_method"

    def matches(self, text: str) -> bool:
        return "\n\n" in text

    def describe(self, text: str) -> str:
        return f"{quote(text)}, blank line in method?"

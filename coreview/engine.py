"""Rule dispatch over parsed diffs."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Protocol, TypeVar

from coreview.diff_parser import FileDiff, Hunk
from coreview.rules.base import BlockRule, Finding, LineRule, Rule

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Reporter(Protocol):
    """Receives findings one at a time, in engine order."""

    def report(self, finding: Finding) -> None:
        """Handle one finding before the next one is produced."""


class RuleEngine:
    """Routes each hunk to the rules that apply to its file.

    Block rules run once per hunk on the joined post-change text and report
    at the hunk's first line; line rules run per line and report at
    ``starting_line_number + offset``. Within a hunk every block-rule finding
    precedes every line-rule finding, and rules keep registration order.
    """

    def __init__(self, rules: Sequence[Rule]) -> None:
        self.rules = list(rules)
        self.block_rules: list[BlockRule] = []
        self.line_rules: list[LineRule] = []
        for rule in self.rules:
            if isinstance(rule, BlockRule):
                self.block_rules.append(rule)
            elif isinstance(rule, LineRule):
                self.line_rules.append(rule)
            else:
                raise TypeError(
                    f"{rule.__class__.__name__} is neither a LineRule nor a BlockRule"
                )

    def applicable_rules(self, file_diff: FileDiff) -> tuple[list[BlockRule], list[LineRule]]:
        """Filter both rule subsets by the file's extension."""
        extension = file_diff.extension
        block_rules = [rule for rule in self.block_rules if self._applies(rule, extension)]
        line_rules = [rule for rule in self.line_rules if self._applies(rule, extension)]
        return block_rules, line_rules

    def iter_findings(self, files: Iterable[FileDiff]) -> Iterator[Finding]:
        """Lazily yield findings file by file, hunk by hunk."""
        for file_diff in files:
            block_rules, line_rules = self.applicable_rules(file_diff)
            logger.debug(
                "%s: %d hunk(s), %d block rule(s), %d line rule(s)",
                file_diff.path,
                len(file_diff.hunks),
                len(block_rules),
                len(line_rules),
            )
            if not block_rules and not line_rules:
                continue
            for hunk in file_diff.hunks:
                yield from self._check_hunk(file_diff.name, hunk, block_rules, line_rules)

    def scan(self, files: Iterable[FileDiff]) -> list[Finding]:
        """Collect every finding into a list."""
        return list(self.iter_findings(files))

    def run(self, files: Iterable[FileDiff], reporter: Reporter) -> int:
        """Hand each finding to the reporter synchronously; return the count."""
        count = 0
        for finding in self.iter_findings(files):
            reporter.report(finding)
            count += 1
        return count

    def _check_hunk(
        self,
        filename: str,
        hunk: Hunk,
        block_rules: list[BlockRule],
        line_rules: list[LineRule],
    ) -> Iterator[Finding]:
        block_text = hunk.text
        for block_rule in block_rules:
            message = self._evaluate(block_rule, block_text)
            if message is not None:
                yield Finding(
                    filename=filename,
                    line_number=hunk.starting_line_number,
                    message=message,
                    rule_id=block_rule.rule_id,
                )

        for line_rule in line_rules:
            for offset, line in enumerate(hunk.added_lines):
                message = self._evaluate(line_rule, line)
                if message is not None:
                    yield Finding(
                        filename=filename,
                        line_number=hunk.starting_line_number + offset,
                        message=message,
                        rule_id=line_rule.rule_id,
                    )

    def _applies(self, rule: Rule, extension: str) -> bool:
        return bool(_guarded(rule, lambda: rule.applies_to(extension), default=False))

    def _evaluate(self, rule: Rule, text: str) -> str | None:
        if not _guarded(rule, lambda: rule.matches(text), default=False):
            return None
        return _guarded(rule, lambda: rule.describe(text), default=None)


def _guarded(rule: Rule, call: Callable[[], T], *, default: T) -> T:
    try:
        return call()
    except Exception as exc:  # one broken rule must not abort the scan
        logger.warning(
            "Rule %s failed and was skipped: %s: %s",
            rule.rule_id or rule.__class__.__name__,
            exc.__class__.__name__,
            exc,
        )
        return default

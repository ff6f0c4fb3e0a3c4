"""Rule contract and finding model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal, TypeAlias

DEFAULT_EXTENSIONS = frozenset({"h", "m"})


@dataclass(frozen=True, slots=True)
class Finding:
    """A single rule match at an exact file/line coordinate."""

    filename: str
    line_number: int
    message: str
    rule_id: str

    @property
    def location(self) -> str:
        return f"{self.filename}:{self.line_number}"


class _RuleBase:
    rule_id: str = ""
    extensions: frozenset[str] = DEFAULT_EXTENSIONS

    def applies_to(self, extension: str) -> bool:
        """Return True when files with this extension should be checked."""
        return extension in self.extensions

    def matches(self, text: str) -> bool:
        raise NotImplementedError

    def describe(self, text: str) -> str:
        raise NotImplementedError


class LineRule(_RuleBase):
    """Evaluated once per post-change line of a hunk."""

    scope: ClassVar[Literal["line"]] = "line"


class BlockRule(_RuleBase):
    """Evaluated once per hunk against the concatenated post-change text."""

    scope: ClassVar[Literal["block"]] = "block"


Rule: TypeAlias = LineRule | BlockRule


def quote(text: str) -> str:
    """Quote offending text the way every rule message starts."""
    return '"' + _chomp(text.lstrip()) + '"'


def _chomp(text: str) -> str:
    """Drop exactly one trailing line terminator."""
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith(("\n", "\r")):
        return text[:-1]
    return text

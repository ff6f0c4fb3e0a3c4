"""Unified diff parser primitives."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from re import compile

FILE_HEADER_PREFIX = "diff --git"
HUNK_HEADER_PREFIX = "@@"
NO_NEWLINE_PREFIX = "\\ "
NEW_FILE_PREFIX = "+++ "
NULL_PATH = "/dev/null"

NEW_START_RE = compile(r"\+(\d+)")
LINE_SPLIT_RE = compile(r"(?<=\n)")


class DiffParseError(ValueError):
    """Raised when diff input cannot yield correct line numbers."""


@dataclass(frozen=True, slots=True)
class Hunk:
    """A contiguous changed region within a file.

    ``added_lines[i]`` is the post-change line ``starting_line_number + i``
    as long as the diff was generated without elided gaps inside the hunk.
    """

    raw_lines: tuple[str, ...]
    starting_line_number: int
    added_lines: tuple[str, ...]

    @property
    def header(self) -> str:
        return self.raw_lines[0]

    @property
    def text(self) -> str:
        """Post-change text of the hunk, lines joined as-is."""
        return "".join(self.added_lines)


@dataclass(frozen=True, slots=True)
class FileDiff:
    """A parsed file-level diff."""

    header: str
    name: str
    extension: str
    path: str
    hunks: tuple[Hunk, ...] = ()


def parse_unified_diff(diff_text: str) -> list[FileDiff]:
    """Parse unified diff text into file/hunk models.

    Only ``\\n`` ends a line; form feeds and other Unicode line breaks stay
    inside the line that contains them.
    """
    return parse_diff_lines(line for line in LINE_SPLIT_RE.split(diff_text) if line)


def parse_diff_lines(lines: Iterable[str]) -> list[FileDiff]:
    """Split raw diff lines into per-file sections and parse each one.

    Lines before the first ``diff --git`` header are discarded.
    """
    sections: list[list[str]] = []
    for line in lines:
        if line.startswith(FILE_HEADER_PREFIX):
            sections.append([])
        if sections:
            sections[-1].append(line)
    return [parse_file_diff(section) for section in sections]


def parse_file_diff(section_lines: Sequence[str]) -> FileDiff:
    """Build a FileDiff from one section; the first line is the file header."""
    if not section_lines:
        raise DiffParseError("File section is empty")

    header = section_lines[0]
    name = _chomp(header.split("/")[-1])
    return FileDiff(
        header=header,
        name=name,
        extension=_chomp(name.split(".")[-1]),
        path=_new_path(section_lines, fallback=name),
        hunks=tuple(split_hunks(section_lines[1:])),
    )


def split_hunks(lines: Iterable[str]) -> list[Hunk]:
    """Group lines into hunks at ``@@`` boundaries, dropping leading metadata."""
    grouped: list[list[str]] = []
    for line in lines:
        if line.startswith(HUNK_HEADER_PREFIX):
            grouped.append([])
        if grouped:
            grouped[-1].append(line)
    return [parse_hunk(raw_lines) for raw_lines in grouped]


def parse_hunk(raw_lines: Sequence[str]) -> Hunk:
    """Derive the starting line number and post-change lines of one hunk."""
    if not raw_lines:
        raise DiffParseError("Hunk has no header line")

    return Hunk(
        raw_lines=tuple(raw_lines),
        starting_line_number=parse_starting_line_number(raw_lines[0]),
        added_lines=tuple(extract_added_lines(raw_lines[1:])),
    )


def parse_starting_line_number(header: str) -> int:
    """Return ``new_start`` from an ``@@ -a,b +c,d @@`` header."""
    match = NEW_START_RE.search(header)
    if match is None:
        raise DiffParseError(f"Invalid hunk header: {_chomp(header)}")
    return int(match.group(1))


def extract_added_lines(body_lines: Iterable[str]) -> list[str]:
    """Keep context and added lines, stripping one leading ``+`` marker."""
    added: list[str] = []
    for line in body_lines:
        if line.startswith("-") or line.startswith(NO_NEWLINE_PREFIX):
            continue
        added.append(line[1:] if line.startswith("+") else line)
    return added


def _new_path(section_lines: Sequence[str], *, fallback: str) -> str:
    for line in section_lines[1:]:
        if line.startswith(HUNK_HEADER_PREFIX):
            break
        if line.startswith(NEW_FILE_PREFIX):
            token = _chomp(line[len(NEW_FILE_PREFIX) :]).split("\t", 1)[0]
            if token != NULL_PATH:
                return _strip_ab_prefix(token)

    # Deleted or binary files carry no usable +++ line.
    header = _chomp(section_lines[0])[len(FILE_HEADER_PREFIX) :].strip()
    marker = header.rfind(" b/")
    if marker >= 0:
        return header[marker + 3 :]
    parts = header.split()
    if len(parts) == 2:
        return _strip_ab_prefix(parts[1])
    return fallback


def _strip_ab_prefix(path: str) -> str:
    if path.startswith("a/") or path.startswith("b/"):
        return path[2:]
    return path


def _chomp(value: str) -> str:
    return value.rstrip("\r\n")

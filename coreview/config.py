"""Configuration loading for coreview.

Settings come from the first of: an explicit ``--config`` file,
``.coreview.toml``, ``coreview.toml``, or ``[tool.coreview]`` in
``pyproject.toml``. Anything not set falls back to the dataclass defaults.
"""

from __future__ import annotations

import tomllib
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_FILENAMES = (".coreview.toml", "coreview.toml")
PYPROJECT_FILENAME = "pyproject.toml"
TOOL_KEY = "coreview"

DEFAULT_CONTEXT_LINES = 10
DEFAULT_MAX_LINE_LENGTH = 160
DEFAULT_EXTENSIONS = ("h", "m")

FORMATS = ("human", "json")
EDITORS = ("none", "xcode")

CONFIG_TEMPLATE = """\
format = "human"
context_lines = 10
editor = "xcode"
include = ["*.h", "*.m"]
exclude = ["Pods/**"]

[rules]
# enable = ["bool_getter", "comment", "multiline_whitespace"]
disable = ["extra_space"]

[rules.settings]
max_line_length = 160
extensions = ["h", "m"]
"""


@dataclass(slots=True)
class RuleSettings:
    """Tunables handed to the rule factories."""

    max_line_length: int = DEFAULT_MAX_LINE_LENGTH
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))

    def to_dict(self) -> dict[str, Any]:
        return {"max_line_length": self.max_line_length, "extensions": list(self.extensions)}


@dataclass(slots=True)
class AppConfig:
    """Resolved review settings and where they came from."""

    format: str = "human"
    context_lines: int = DEFAULT_CONTEXT_LINES
    editor: str = "xcode"
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    rule_enable: list[str] | None = None
    rule_disable: list[str] = field(default_factory=list)
    rule_settings: RuleSettings = field(default_factory=RuleSettings)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "context_lines": self.context_lines,
            "editor": self.editor,
            "include": list(self.include),
            "exclude": list(self.exclude),
            "rules": {
                "enable": None if self.rule_enable is None else list(self.rule_enable),
                "disable": list(self.rule_disable),
                "settings": self.rule_settings.to_dict(),
            },
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Return the config for ``repo``; an explicit path must exist."""
    repo = repo.resolve()
    if config_path is not None:
        explicit = config_path if config_path.is_absolute() else repo / config_path
        if not explicit.exists():
            raise ValueError(f"Config file does not exist: {explicit}")
        candidates: Iterator[Path] = iter([explicit])
    else:
        candidates = _discover(repo)

    for path in candidates:
        settings = _coreview_table(path)
        if settings is not None:
            return _build_config(settings, source=str(path))
    return AppConfig()


def default_config_template() -> str:
    """Return the starter ``.coreview.toml`` written by ``config-init``."""
    return CONFIG_TEMPLATE


def _discover(repo: Path) -> Iterator[Path]:
    for name in (*CONFIG_FILENAMES, PYPROJECT_FILENAME):
        path = repo / name
        if path.exists():
            yield path


def _coreview_table(path: Path) -> dict[str, Any] | None:
    """Return the coreview settings in ``path``, or None when it has none."""
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc

    tool = document.get("tool")
    section = tool.get(TOOL_KEY) if isinstance(tool, dict) else None
    if isinstance(section, dict):
        return section
    # A dedicated file is the table itself; pyproject.toml needs [tool.coreview].
    return None if path.name == PYPROJECT_FILENAME else document


def _build_config(table: dict[str, Any], *, source: str) -> AppConfig:
    rules = _table(table, "rules", "rules")
    settings = _table(rules, "settings", "rules.settings")
    enable = rules.get("enable")
    return AppConfig(
        format=_choice(table, "format", "human", FORMATS, "format"),
        context_lines=_positive_int(table, "context_lines", DEFAULT_CONTEXT_LINES, "context_lines"),
        editor=_choice(table, "editor", "xcode", EDITORS, "editor"),
        include=_string_list(table, "include", "include"),
        exclude=_string_list(table, "exclude", "exclude"),
        rule_enable=None if enable is None else _string_list(rules, "enable", "rules.enable"),
        rule_disable=_string_list(rules, "disable", "rules.disable"),
        rule_settings=RuleSettings(
            max_line_length=_positive_int(
                settings,
                "max_line_length",
                DEFAULT_MAX_LINE_LENGTH,
                "rules.settings.max_line_length",
            ),
            extensions=_string_list(settings, "extensions", "rules.settings.extensions")
            or list(DEFAULT_EXTENSIONS),
        ),
        source=source,
    )


def _table(parent: dict[str, Any], key: str, label: str) -> dict[str, Any]:
    value = parent.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"{label} must be a table")
    return value


def _string_list(parent: dict[str, Any], key: str, label: str) -> list[str]:
    value = parent.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{label} must be a list of strings")
    return list(value)


def _choice(
    parent: dict[str, Any], key: str, default: str, allowed: tuple[str, ...], label: str
) -> str:
    value = str(parent.get(key, default)).lower()
    if value not in allowed:
        raise ValueError(f"{label} must be one of: {', '.join(allowed)}")
    return value


def _positive_int(parent: dict[str, Any], key: str, default: int, label: str) -> int:
    value = parent.get(key, default)
    # bool is an int subclass; `true` is not a line count.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label} must be an integer")
    if value <= 0:
        raise ValueError(f"{label} must be > 0")
    return value

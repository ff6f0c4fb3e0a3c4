"""CLI entrypoint for coreview."""

from __future__ import annotations

import fnmatch
import json
import logging
import sys
from collections.abc import Iterator
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Any

import click
import typer

from coreview import __version__
from coreview.config import (
    CONFIG_FILENAMES,
    EDITORS,
    FORMATS,
    AppConfig,
    default_config_template,
    load_app_config,
)
from coreview.diff_parser import DiffParseError, FileDiff, parse_unified_diff
from coreview.editor import open_in_xcode
from coreview.engine import RuleEngine
from coreview.git import GitError, get_diff_between, get_working_tree_diff
from coreview.logging_utils import configure_logging
from coreview.output import render_human, render_json
from coreview.reporting import PromptReporter
from coreview.rules import build_rules, list_rule_info
from coreview.rules.base import Rule

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="coreview",
    no_args_is_help=True,
    help="Review the lines a git diff adds against pattern-based rules.",
)

RepoOption = Annotated[Path, typer.Option(help="Repository path.")]
FormatOption = Annotated[str, typer.Option(help="Output format: human|json.")]
ConfigOption = Annotated[
    Path | None, typer.Option("--config", help="Path to config TOML file.")
]


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("review")
def review_command(
    diff_file: Annotated[Path | None, typer.Option(help="Path to unified diff file.")] = None,
    stdin: Annotated[bool, typer.Option(help="Read unified diff from stdin.")] = False,
    repo: RepoOption = Path("."),
    base: Annotated[str | None, typer.Option(help="Base git revision.")] = None,
    head: Annotated[str | None, typer.Option(help="Head git revision.")] = None,
    context_lines: Annotated[
        int | None,
        typer.Option("--context-lines", "-U", help="Context lines requested from git."),
    ] = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    interactive: Annotated[
        bool,
        typer.Option(
            "--interactive/--no-interactive",
            help="Ask about each finding and open accepted ones in the editor.",
        ),
    ] = False,
    editor: Annotated[
        str | None, typer.Option(help="Editor for accepted findings: xcode|none.")
    ] = None,
    include: Annotated[list[str] | None, typer.Option(help="Include glob pattern.")] = None,
    exclude: Annotated[list[str] | None, typer.Option(help="Exclude glob pattern.")] = None,
    fail_on_findings: Annotated[
        bool, typer.Option("--fail-on-findings", help="Exit nonzero when anything matches.")
    ] = False,
    verbose: Annotated[
        int, typer.Option("--verbose", "-v", count=True, help="Increase log verbosity.")
    ] = 0,
    config_file: ConfigOption = None,
) -> None:
    """Run the rules over a diff and report each match."""
    configure_logging(verbose)
    app_config = _load_config_or_raise(repo, config_file)
    output_format = _checked_format(format or app_config.format)

    resolved_editor = (editor or app_config.editor).lower()
    if resolved_editor not in EDITORS:
        raise typer.BadParameter(
            f"editor must be one of: {', '.join(EDITORS)}", param_hint="--editor"
        )

    if diff_file and stdin:
        raise typer.BadParameter("Use either --diff-file or --stdin, not both.")

    if interactive and stdin:
        raise typer.BadParameter("--interactive needs stdin for prompts; use --diff-file.")

    if interactive and output_format == "json":
        raise typer.BadParameter("--interactive cannot be combined with --format json.")

    if (base is None) ^ (head is None):
        raise typer.BadParameter("Provide both --base and --head together.")

    resolved_context = context_lines if context_lines is not None else app_config.context_lines
    if resolved_context <= 0:
        raise typer.BadParameter("--context-lines must be > 0", param_hint="--context-lines")

    try:
        diff_text, input_source = _resolve_diff_input(
            diff_file=diff_file,
            stdin=stdin,
            repo=repo,
            base=base,
            head=head,
            context_lines=resolved_context,
        )
    except GitError as exc:
        raise typer.BadParameter(str(exc)) from exc
    logger.info("Reviewing diff from %s", input_source)

    try:
        files = parse_unified_diff(diff_text)
    except DiffParseError as exc:
        raise typer.BadParameter(str(exc), param_hint="diff") from exc

    include_patterns = include if include is not None else app_config.include
    exclude_patterns = exclude if exclude is not None else app_config.exclude
    filtered_files = _filter_files(files, includes=include_patterns, excludes=exclude_patterns)
    engine = RuleEngine(_build_configured_rules_or_raise(app_config))

    if interactive:
        reporter = PromptReporter(
            on_accept=open_in_xcode if resolved_editor == "xcode" else None,
        )
        count = engine.run(filtered_files, reporter)
    else:
        findings = engine.scan(filtered_files)
        count = len(findings)
        if output_format == "json":
            typer.echo(render_json(findings, input_source=input_source))
        else:
            typer.echo(render_human(findings))

    if fail_on_findings and count > 0:
        raise typer.Exit(code=1)


@app.command("rules")
def rules_command(
    repo: RepoOption = Path("."),
    format: FormatOption = "human",
    config_file: ConfigOption = None,
) -> None:
    """List every rule and whether the current config runs it."""
    output_format = _checked_format(format)
    app_config = _load_config_or_raise(repo, config_file)
    active_ids = {rule.rule_id for rule in _build_configured_rules_or_raise(app_config)}
    catalogue = [
        {**asdict(item), "enabled": item.rule_id in active_ids}
        for item in list_rule_info(app_config.rule_settings)
    ]

    if output_format == "json":
        payload = {"rules": catalogue, "meta": {"config_source": app_config.source}}
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    for entry in catalogue:
        if entry["enabled"]:
            marker = click.style("on ", fg="green")
        else:
            marker = click.style("off", dim=True)
        extensions = ",".join(entry["extensions"])
        typer.echo(
            f"{marker} {entry['rule_id']:<24} {entry['scope']:<5} "
            f"[{extensions}] {entry['description']}"
        )


@app.command("config")
def config_command(
    repo: RepoOption = Path("."),
    format: FormatOption = "human",
    config_file: ConfigOption = None,
) -> None:
    """Print the configuration a review in REPO would use."""
    output_format = _checked_format(format)
    app_config = _load_config_or_raise(repo, config_file)
    payload = app_config.to_dict()
    payload["active_rule_ids"] = [
        rule.rule_id for rule in _build_configured_rules_or_raise(app_config)
    ]

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    if payload["source"] is None:
        payload["source"] = "(built-in defaults)"
    for key, value in _flatten(payload):
        typer.echo(f"{key} = {value}")


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Where to write the starter config.")] = Path(
        CONFIG_FILENAMES[0]
    ),
    force: Annotated[bool, typer.Option("--force", help="Replace an existing file.")] = False,
) -> None:
    """Write a starter .coreview.toml."""
    target = out.resolve()
    if target.exists() and not force:
        raise typer.BadParameter(f"{target} already exists; pass --force to replace it.")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Created {target}")


def main() -> None:
    """Console script entrypoint."""
    app()


def _resolve_diff_input(
    *,
    diff_file: Path | None,
    stdin: bool,
    repo: Path,
    base: str | None,
    head: str | None,
    context_lines: int,
) -> tuple[str, str]:
    if diff_file is not None:
        diff_text = diff_file.read_text(encoding="utf-8", errors="replace")
        return (diff_text, f"diff_file:{diff_file}")

    if stdin:
        return (sys.stdin.read(), "stdin")

    if base is not None and head is not None:
        return (get_diff_between(repo, base, head, context_lines), "git_range")

    return (get_working_tree_diff(repo, context_lines), "git_working_tree")


def _filter_files(
    files: list[FileDiff], *, includes: list[str], excludes: list[str]
) -> list[FileDiff]:
    filtered: list[FileDiff] = []
    for file_diff in files:
        path = file_diff.path
        if includes and not any(fnmatch.fnmatch(path, pattern) for pattern in includes):
            continue
        if excludes and any(fnmatch.fnmatch(path, pattern) for pattern in excludes):
            continue
        filtered.append(file_diff)
    return filtered


def _load_config_or_raise(repo: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_configured_rules_or_raise(app_config: AppConfig) -> list[Rule]:
    try:
        return build_rules(
            enabled_rule_ids=app_config.rule_enable,
            disabled_rule_ids=app_config.rule_disable,
            settings=app_config.rule_settings,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc


def _checked_format(value: str) -> str:
    output_format = value.lower()
    if output_format not in FORMATS:
        raise typer.BadParameter(
            f"format must be one of: {', '.join(FORMATS)}", param_hint="--format"
        )
    return output_format


def _flatten(mapping: dict[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for key, value in mapping.items():
        if isinstance(value, dict):
            yield from _flatten(value, prefix=f"{prefix}{key}.")
        else:
            yield f"{prefix}{key}", value

"""Output rendering."""

from __future__ import annotations

import json
from collections import Counter
from datetime import UTC, datetime
from typing import Any

import click

from coreview import __version__
from coreview.rules.base import Finding


def render_human(findings: list[Finding]) -> str:
    """Render findings grouped by location order with a short summary."""
    if not findings:
        return click.style("No findings.", fg="green", bold=True)

    lines: list[str] = []
    for finding in findings:
        lines.append(f"{click.style(finding.location, bold=True)}  {finding.message}")
        lines.append(f"   rule: {finding.rule_id}")

    files = {finding.filename for finding in findings}
    lines.append(
        click.style(
            f"{len(findings)} finding(s) in {len(files)} file(s)",
            fg="yellow",
            bold=True,
        )
    )
    by_rule = Counter(finding.rule_id for finding in findings)
    for rule_id, count in sorted(by_rule.items(), key=lambda item: (-item[1], item[0])):
        lines.append(f"- {rule_id}: {count}")
    return "\n".join(lines)


def render_json(findings: list[Finding], *, input_source: str) -> str:
    """Render stable JSON output for CI and automation."""
    return json.dumps(build_json_payload(findings, input_source=input_source), sort_keys=True)


def build_json_payload(findings: list[Finding], *, input_source: str) -> dict[str, Any]:
    """Build stable JSON payload."""
    meta: dict[str, Any] = {
        "generated_at": datetime.now(tz=UTC)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z"),
        "input_source": input_source,
        "version": __version__,
    }
    return {
        "findings": [_serialize_finding(item) for item in findings],
        "meta": meta,
    }


def _serialize_finding(finding: Finding) -> dict[str, Any]:
    return {
        "location": finding.location,
        "filename": finding.filename,
        "line_number": finding.line_number,
        "rule_id": finding.rule_id,
        "message": finding.message,
    }

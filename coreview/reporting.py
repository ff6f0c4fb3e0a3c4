"""Reporters that consume engine findings."""

from __future__ import annotations

import logging
from collections.abc import Callable

import typer

from coreview.editor import EditorError
from coreview.rules.base import Finding

logger = logging.getLogger(__name__)


class CollectingReporter:
    """Buffers findings in arrival order."""

    def __init__(self) -> None:
        self.findings: list[Finding] = []

    def report(self, finding: Finding) -> None:
        self.findings.append(finding)


def _confirm(message: str) -> bool:
    return typer.confirm(message, default=False)


class PromptReporter:
    """Asks about each finding and hands accepted locations to ``on_accept``."""

    def __init__(
        self,
        on_accept: Callable[[str], None] | None = None,
        confirm: Callable[[str], bool] = _confirm,
    ) -> None:
        self.on_accept = on_accept
        self.confirm = confirm
        self.accepted: list[Finding] = []

    def report(self, finding: Finding) -> None:
        if not self.confirm(finding.message):
            return

        self.accepted.append(finding)
        if self.on_accept is None:
            typer.echo(finding.location)
            return
        try:
            self.on_accept(finding.location)
        except EditorError as exc:
            logger.warning("Could not open %s: %s", finding.location, exc)

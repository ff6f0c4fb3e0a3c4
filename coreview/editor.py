"""Hand a finding's location over to Xcode."""

from __future__ import annotations

import logging
from subprocess import CalledProcessError, run

logger = logging.getLogger(__name__)

OPEN_QUICKLY_SCRIPT = (
    'tell application "Xcode"',
    "activate",
    "delay 0.5",
    'tell application "System Events"',
    'keystroke "o" using {command down, shift down}',
    'keystroke "v" using {command down}',
    "keystroke return",
    "end tell",
    "end tell",
)


class EditorError(RuntimeError):
    """Raised when the editor hand-off fails."""


def open_in_xcode(location: str) -> None:
    """Copy ``file:line`` to the pasteboard and paste it into Open Quickly."""
    logger.info("Opening %s in Xcode", location)
    _run(["pbcopy"], input_text=location)
    args = ["osascript"]
    for statement in OPEN_QUICKLY_SCRIPT:
        args.extend(["-e", statement])
    _run(args)


def _run(args: list[str], input_text: str | None = None) -> None:
    try:
        run(args, input=input_text, check=True, capture_output=True, text=True)
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise EditorError(stderr or f"{args[0]} failed") from exc
    except FileNotFoundError as exc:
        raise EditorError(f"{args[0]} is not available on this system") from exc

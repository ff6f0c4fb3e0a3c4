"""Git subprocess helpers."""

from __future__ import annotations

from pathlib import Path
from subprocess import CalledProcessError, run

from coreview.config import DEFAULT_CONTEXT_LINES


class GitError(RuntimeError):
    """Raised when git command execution fails."""


def get_working_tree_diff(repo: Path, context_lines: int = DEFAULT_CONTEXT_LINES) -> str:
    """Return working tree diff with a wide context window."""
    return _run_git(repo, ["diff", "--no-color", f"-U{context_lines}"])


def get_diff_between(
    repo: Path, base: str, head: str, context_lines: int = DEFAULT_CONTEXT_LINES
) -> str:
    """Return diff between two revisions."""
    return _run_git(repo, ["diff", "--no-color", f"-U{context_lines}", f"{base}..{head}"])


def _run_git(repo: Path, args: list[str]) -> str:
    try:
        completed = run(
            ["git", *args],
            cwd=repo,
            check=True,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitError(stderr or f"git {' '.join(args)} failed") from exc
    except FileNotFoundError as exc:
        raise GitError("git executable not found") from exc

    return completed.stdout

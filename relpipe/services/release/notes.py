from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from relpipe.core.errors import PipelineError
from relpipe.core.result import Err, Ok, Result
from relpipe.platform.files import atomic_write_text
from relpipe.services.release.model import Change, TitleChanges


def _render_change(change: Change) -> str:
    line = f"* {change.subject} {change.hash}"
    if change.username:
        line += f" @{change.username}"
    return line


def render_release_notes(groups: Sequence[TitleChanges]) -> str:
    lines: list[str] = []
    for group in groups:
        if lines:
            lines.append("")
        lines.append(f"## {group.title}")
        lines.append("")
        lines.extend(_render_change(c) for c in group.changes)
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def write_release_notes(path: Path, groups: Sequence[TitleChanges]) -> Result[Path, PipelineError]:
    try:
        atomic_write_text(path, render_release_notes(groups))
    except OSError as e:
        return Err(
            PipelineError(
                kind="io_failed",
                message=f"failed to create release notes file {str(path)!r}",
                hint=str(e),
            )
        )
    return Ok(path)

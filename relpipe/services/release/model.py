from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from relpipe.core.config import ReleaseSettings

type ReleaseID = int


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """Parameters of one release target, fixed before the release is created."""

    tag: str
    commitish: str
    settings: ReleaseSettings

    @property
    def repository_slug(self) -> str:
        return f"{self.settings.repository_owner}/{self.settings.repository}"

    def with_notes_file(self, path: Path) -> ReleaseInfo:
        notes = replace(self.settings.notes, filename=str(path))
        return replace(self, settings=replace(self.settings, notes=notes))


@dataclass(frozen=True, slots=True)
class Change:
    hash: str
    author_name: str
    author_email: str
    subject: str
    body: str = ""
    # Provider login, empty when not resolved.
    username: str = ""


@dataclass(frozen=True, slots=True)
class TitleChanges:
    title: str
    changes: tuple[Change, ...]

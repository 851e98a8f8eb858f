from __future__ import annotations

from pathlib import Path

from relpipe.core.result import Ok
from relpipe.services.release.model import Change, TitleChanges
from relpipe.services.release.notes import render_release_notes, write_release_notes


def _change(subject: str, h: str, username: str = "") -> Change:
    return Change(hash=h, author_name="Ada", author_email="ada@example.com", subject=subject, username=username)


def test_render_groups() -> None:
    groups = [
        TitleChanges(title="Features", changes=(_change("Add zip", "a1b2c3d", "ada"),)),
        TitleChanges(title="Fixes", changes=(_change("Fix crash", "d4e5f6a"), _change("Fix typo", "0a1b2c3"))),
    ]
    assert render_release_notes(groups) == (
        "## Features\n"
        "\n"
        "* Add zip a1b2c3d @ada\n"
        "\n"
        "## Fixes\n"
        "\n"
        "* Fix crash d4e5f6a\n"
        "* Fix typo 0a1b2c3\n"
    )


def test_render_empty() -> None:
    assert render_release_notes([]) == ""


def test_write_release_notes(tmp_path: Path) -> None:
    path = tmp_path / "release-notes.md"
    groups = [TitleChanges(title="Fixes", changes=(_change("Fix", "abc"),))]
    assert write_release_notes(path, groups) == Ok(path)
    assert path.read_text(encoding="utf-8").startswith("## Fixes")

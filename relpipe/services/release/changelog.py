"""Commit collection and grouping for release notes.

The commit range ends at the tag when it already exists, otherwise at the
commitish being released, and starts at the closest earlier tag. Without an
earlier tag the whole history up to the end is used.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from relpipe.core.config import ReleaseNotesGroup
from relpipe.core.errors import PipelineError
from relpipe.core.result import Err, Ok, Result
from relpipe.git import GitError, Repository
from relpipe.services.release.model import Change, TitleChanges

CHANGELOG_REPO_ENV = "RELPIPE_CHANGELOG_GITREPO"

type ResolveUsername = Callable[[str, str], Result[str, PipelineError]]


@dataclass(frozen=True, slots=True)
class ChangelogOptions:
    tag: str
    commitish: str
    repo_path: Path | None = None
    # (commit hash, author email) -> provider username
    resolve_username: ResolveUsername | None = None


def _git_failed(e: GitError) -> PipelineError:
    return PipelineError(
        kind="git_failed",
        message=f"changelog: git {e.command} failed",
        hint=e.message,
    )


def collect_changes(options: ChangelogOptions) -> Result[list[Change], PipelineError]:
    repo = Repository(options.repo_path or Path.cwd())

    exists = repo.tag_exists(options.tag)
    if isinstance(exists, Err):
        return Err(_git_failed(exists.error))
    end = options.tag if exists.value else options.commitish

    start = repo.previous_tag(end)
    if isinstance(start, Err):
        return Err(_git_failed(start.error))

    log = repo.log(start.value, end)
    if isinstance(log, Err):
        return Err(_git_failed(log.error))

    changes: list[Change] = []
    for commit in log.value:
        username = ""
        if options.resolve_username is not None:
            resolved = options.resolve_username(commit.hash, commit.author_email)
            if isinstance(resolved, Err):
                return resolved
            username = resolved.value
        changes.append(
            Change(
                hash=commit.hash,
                author_name=commit.author_name,
                author_email=commit.author_email,
                subject=commit.subject,
                body=commit.body,
                username=username,
            )
        )
    return Ok(changes)


def group_by(
    changes: Iterable[Change], title_of: Callable[[Change], str | None]
) -> list[TitleChanges]:
    """Group changes under the title ``title_of`` returns, dropping None.

    Groups come in order of first appearance; members keep commit order.
    """
    grouped: dict[str, list[Change]] = {}
    for change in changes:
        title = title_of(change)
        if title is None:
            continue
        grouped.setdefault(title, []).append(change)
    return [TitleChanges(title=title, changes=tuple(members)) for title, members in grouped.items()]


def group_by_rules(
    changes: Iterable[Change], groups: Sequence[ReleaseNotesGroup]
) -> list[TitleChanges]:
    """First matching rule wins; an ignore rule or no match drops the change."""

    def title_of(change: Change) -> str | None:
        for group in groups:
            if group.pattern.search(change.subject):
                return None if group.ignore else group.title
        return None

    return group_by(changes, title_of)

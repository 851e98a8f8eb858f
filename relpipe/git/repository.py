"""Git repository access for changelog collection.

All operations shell out to the ``git`` CLI and return Result types.

Usage:
    repo = Repository(Path("."))
    match repo.log("v1.0.0", "main"):
        case Ok(commits):
            for c in commits:
                print(c.hash, c.subject)
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relpipe.core.result import Err, Ok, Result
from relpipe.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 60.0

# ASCII record/unit separators keep subjects and bodies unambiguous.
_RECORD_SEP = "\x1e"
_FIELD_SEP = "\x1f"
_LOG_FORMAT = f"{_RECORD_SEP}%h{_FIELD_SEP}%an{_FIELD_SEP}%ae{_FIELD_SEP}%s{_FIELD_SEP}%b"

_NO_PREVIOUS_TAG = ("no names found", "cannot describe", "no tags")
# Describing the parent of the root commit.
_NO_PARENT = ("unknown revision", "bad revision", "not a valid object name")

__all__ = ["Commit", "GitError", "Repository"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message (git's stderr when it printed one)
        returncode: Process return code, -1 when git never ran
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class Commit:
    hash: str
    author_name: str
    author_email: str
    subject: str
    body: str = ""


class Repository:
    """A local git checkout.

    Attributes:
        path: Path to the repository (any directory inside the work tree)
        git: git executable
    """

    def __init__(self, path: Path, *, git: str = "git") -> None:
        self.path = path
        self.git = git

    def tag_exists(self, tag: str) -> Result[bool, GitError]:
        match self._run("tag --list", ["tag", "--list", tag]):
            case Err() as err:
                return err
            case Ok(stdout):
                return Ok(tag in {line.strip() for line in stdout.splitlines()})

    def previous_tag(self, ref: str) -> Result[str | None, GitError]:
        """Find the closest tag reachable from the parent of ``ref``.

        Returns Ok(None) when there is no earlier tag.
        """
        match self._run("describe --tags", ["describe", "--tags", "--abbrev=0", f"{ref}^"]):
            case Ok(stdout):
                return Ok(stdout.strip() or None)
            case Err(e) as err:
                text = e.message.lower()
                if any(marker in text for marker in _NO_PREVIOUS_TAG + _NO_PARENT):
                    return Ok(None)
                return err

    def log(self, start: str | None, end: str) -> Result[list[Commit], GitError]:
        """List commits in ``start..end`` (or all of ``end`` when start is None), newest first."""
        rev_range = f"{start}..{end}" if start else end
        match self._run(f"log {rev_range}", ["log", f"--pretty=format:{_LOG_FORMAT}", rev_range, "--"]):
            case Err() as err:
                return err
            case Ok(stdout):
                return Ok(self._parse_log(stdout))

    def _parse_log(self, output: str) -> list[Commit]:
        commits: list[Commit] = []
        for record in output.split(_RECORD_SEP):
            if not record.strip():
                continue
            fields = record.split(_FIELD_SEP)
            if len(fields) < 4:
                continue
            body = fields[4].strip() if len(fields) > 4 else ""
            commits.append(
                Commit(
                    hash=fields[0].strip(),
                    author_name=fields[1].strip(),
                    author_email=fields[2].strip(),
                    subject=fields[3].strip(),
                    body=body,
                )
            )
        return commits

    def _run(self, command: str, args: list[str]) -> Result[str, GitError]:
        result = run_process(
            [self.git, "-C", str(self.path), *args],
            cwd=self.path,
            timeout=_GIT_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            e = result.error
            return Err(
                GitError(
                    command=command,
                    message=e.output or f"git {command} failed",
                    returncode=e.returncode,
                )
            )
        return result

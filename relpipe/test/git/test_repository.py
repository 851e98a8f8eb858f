from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

from relpipe.core.result import Err, Ok
from relpipe.git import Repository

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(repo: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
        env={
            "GIT_AUTHOR_NAME": "Ada",
            "GIT_AUTHOR_EMAIL": "ada@example.com",
            "GIT_COMMITTER_NAME": "Ada",
            "GIT_COMMITTER_EMAIL": "ada@example.com",
            "GIT_CONFIG_NOSYSTEM": "1",
            "HOME": str(repo),
            "PATH": os.environ.get("PATH", ""),
        },
    )
    return proc.stdout.strip()


def _commit(repo: Path, subject: str, body: str = "") -> str:
    args = ["commit", "--allow-empty", "-q", "-m", subject]
    if body:
        args += ["-m", body]
    _git(repo, *args)
    return _git(repo, "rev-parse", "HEAD")


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    _git(tmp_path, "init", "-q", "-b", "main")
    return tmp_path


def test_log_parses_fields(repo: Path) -> None:
    first = _commit(repo, "Initial commit")
    second = _commit(repo, "Fix crash | with pipes", "Longer body\n\nwith paragraphs")

    result = Repository(repo).log(None, "HEAD")

    assert isinstance(result, Ok)
    commits = result.value
    assert [c.subject for c in commits] == ["Fix crash | with pipes", "Initial commit"]
    assert second.startswith(commits[0].hash)
    assert first.startswith(commits[1].hash)
    assert commits[0].subject == "Fix crash | with pipes"
    assert commits[0].author_name == "Ada"
    assert commits[0].author_email == "ada@example.com"
    assert "with paragraphs" in commits[0].body
    assert commits[1].body == ""


def test_log_range(repo: Path) -> None:
    _commit(repo, "one")
    _git(repo, "tag", "v1.0.0")
    two = _commit(repo, "two")

    result = Repository(repo).log("v1.0.0", "HEAD")
    assert isinstance(result, Ok)
    assert len(result.value) == 1
    assert two.startswith(result.value[0].hash)


def test_tag_exists(repo: Path) -> None:
    _commit(repo, "one")
    _git(repo, "tag", "v1.0.0")
    r = Repository(repo)
    assert r.tag_exists("v1.0.0") == Ok(True)
    assert r.tag_exists("v2.0.0") == Ok(False)


def test_previous_tag(repo: Path) -> None:
    _commit(repo, "one")
    _git(repo, "tag", "v1.0.0")
    _commit(repo, "two")
    _git(repo, "tag", "v1.1.0")
    _commit(repo, "three")

    r = Repository(repo)
    assert r.previous_tag("v1.1.0") == Ok("v1.0.0")
    assert r.previous_tag("HEAD") == Ok("v1.1.0")
    assert r.previous_tag("v1.0.0") == Ok(None)


def test_previous_tag_without_tags(repo: Path) -> None:
    _commit(repo, "one")
    _commit(repo, "two")
    assert Repository(repo).previous_tag("HEAD") == Ok(None)


def test_not_a_repository(tmp_path: Path) -> None:
    result = Repository(tmp_path).log(None, "HEAD")
    assert isinstance(result, Err)
    assert result.error.command.startswith("log")


def test_missing_git_executable(tmp_path: Path) -> None:
    result = Repository(tmp_path, git="relpipe-no-such-git").tag_exists("v1.0.0")
    assert isinstance(result, Err)
    assert result.error.returncode == -1
    assert "relpipe-no-such-git" in result.error.message

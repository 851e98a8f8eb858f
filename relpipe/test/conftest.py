from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from relpipe.core.config import Config, load_config
from relpipe.core.result import Ok

SAMPLE_CONFIG = """\
project = "hello"

[build_settings]
binary = "hello"

[[builds]]
path = "unix"
  [[builds.os]]
  goos = "linux"
  archs = ["amd64", "arm64"]

[[archives]]
paths = ["builds/**"]
  [archives.archive_settings]
  name_template = "{project}_{version}_{os}-{arch}"
  extra_files = [{ source_path = "README.md", target_path = "README.md" }]
  [archives.archive_settings.type]
  format = "tar.gz"
  extension = ".tar.gz"

[[releases]]
path = "main"
paths = ["archives/**"]
  [releases.release_settings]
  type = "github"
  repository = "hello"
  repository_owner = "acme"
"""


type MakeProject = Callable[..., tuple[Path, Config]]


@pytest.fixture
def sample_config() -> str:
    return SAMPLE_CONFIG


@pytest.fixture
def make_project(tmp_path: Path) -> MakeProject:
    """Create a project dir with relpipe.toml, a README and built binaries.

    Returns (project_dir, config). Binaries are written under
    ``dist/<project>/<tag>/builds`` for every target unless listed in
    ``missing``.
    """

    def make(
        config_text: str = SAMPLE_CONFIG,
        *,
        tag: str = "v1.2.0",
        missing: tuple[str, ...] = (),
    ) -> tuple[Path, Config]:
        project_dir = tmp_path / "project"
        project_dir.mkdir(exist_ok=True)
        (project_dir / "relpipe.toml").write_text(config_text, encoding="utf-8")
        (project_dir / "README.md").write_text("# hello\n", encoding="utf-8")

        result = load_config(project_dir / "relpipe.toml")
        assert isinstance(result, Ok), result
        config = result.value

        builds = project_dir / "dist" / config.project / tag / "builds"
        for arch_path in config.arch_paths:
            if arch_path.path in missing:
                continue
            binary = builds / arch_path.path / arch_path.binary
            binary.parent.mkdir(parents=True, exist_ok=True)
            binary.write_bytes(f"binary for {arch_path.os}/{arch_path.arch}".encode())
        return project_dir, config

    return make

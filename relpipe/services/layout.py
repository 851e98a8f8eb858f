"""Dist directory layout and archive naming.

Everything the pipeline writes lives under ``<dist>/<project>/<tag>``:

    builds/<arch-path>/<binary>                  (input, produced elsewhere)
    archives/<arch-path>/<archive-name><ext>
    releases/<release-path>/checksum.txt
    releases/<release-path>/release-notes.md
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relpipe.core.config import ArchiveSettings, ArchPath, ReleaseGroup
from relpipe.core.naming import NameContext, format_name

__all__ = [
    "CHECKSUM_FILENAME",
    "RELEASE_NOTES_FILENAME",
    "DistLayout",
    "archive_name",
]

CHECKSUM_FILENAME = "checksum.txt"
RELEASE_NOTES_FILENAME = "release-notes.md"

DIST_ROOT_BUILDS = "builds"
DIST_ROOT_ARCHIVES = "archives"
DIST_ROOT_RELEASES = "releases"


def _from_slash(base: Path, slash_path: str) -> Path:
    return base.joinpath(*[part for part in slash_path.split("/") if part])


@dataclass(frozen=True, slots=True)
class DistLayout:
    dist_dir: Path
    project: str
    tag: str

    @property
    def root(self) -> Path:
        return self.dist_dir / self.project / self.tag

    def binary_file(self, arch_path: ArchPath) -> Path:
        return _from_slash(self.root / DIST_ROOT_BUILDS, arch_path.binary_path)

    def archive_dir(self, arch_path: ArchPath) -> Path:
        return _from_slash(self.root / DIST_ROOT_ARCHIVES, arch_path.path)

    def archive_file(self, settings: ArchiveSettings, arch_path: ArchPath) -> Path:
        return self.archive_dir(arch_path) / archive_name(
            settings, arch_path, project=self.project, tag=self.tag
        )

    def release_dir(self, release: ReleaseGroup) -> Path:
        return _from_slash(self.root / DIST_ROOT_RELEASES, release.path)


def archive_name(settings: ArchiveSettings, arch_path: ArchPath, *, project: str, tag: str) -> str:
    """Template, then replacements, then the format's extension."""
    ctx = NameContext(project=project, tag=tag, os=arch_path.os, arch=arch_path.arch)
    name = format_name(settings.name_template, ctx)
    name = settings.replacer.replace(name)
    return name + settings.type.extension

"""Typed configuration loading and access.

This module provides frozen dataclasses for the ``relpipe.toml`` structure.
Everything is validated once at load time; the pipeline only ever sees
resolved, immutable settings.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .naming import PathFilter, Replacer, validate_template
from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_bool,
    get_list,
    get_str,
    get_str_list,
    get_table,
    get_tables,
)

__all__ = [
    "ArchPath",
    "ArchiveGroup",
    "ArchiveSettings",
    "ArchiveType",
    "Config",
    "ConfigError",
    "ExtraFile",
    "ReleaseGroup",
    "ReleaseNotesGroup",
    "ReleaseNotesSettings",
    "ReleaseSettings",
    "ARCHIVE_FORMATS",
    "RELEASE_TYPES",
    "load_config",
]

ARCHIVE_FORMATS = ("tar.gz", "zip")
RELEASE_TYPES = ("github",)

DEFAULT_NAME_TEMPLATE = "{project}_{version}_{os}-{arch}"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None

    def pretty(self) -> str:
        if self.path is not None:
            return f"{self.path}: {self.message}"
        return self.message


@dataclass(frozen=True, slots=True)
class ArchPath:
    """One resolved OS/architecture build target.

    Attributes:
        path: Slash separated segment ``<build-path>/<os>/<arch>``.
        os: Target operating system (GOOS style, e.g. ``linux``).
        arch: Target architecture (GOARCH style, e.g. ``amd64``).
        binary: Binary file name, with ``.exe`` on Windows.
    """

    path: str
    os: str
    arch: str
    binary: str

    @property
    def build_path(self) -> str:
        return f"builds/{self.path}"

    @property
    def archive_path(self) -> str:
        return f"archives/{self.path}"

    @property
    def binary_path(self) -> str:
        """Binary location relative to the builds root."""
        return f"{self.path}/{self.binary}"


@dataclass(frozen=True, slots=True)
class ArchiveType:
    format: str = "tar.gz"
    extension: str = ".tar.gz"


@dataclass(frozen=True, slots=True)
class ExtraFile:
    source_path: str
    target_path: str


@dataclass(frozen=True, slots=True)
class ArchiveSettings:
    name_template: str = DEFAULT_NAME_TEMPLATE
    type: ArchiveType = field(default_factory=ArchiveType)
    binary_dir: str = ""
    extra_files: tuple[ExtraFile, ...] = ()
    replacements: tuple[tuple[str, str], ...] = ()

    @property
    def replacer(self) -> Replacer:
        return Replacer(self.replacements)


@dataclass(frozen=True, slots=True)
class ArchiveGroup:
    paths: tuple[str, ...]
    settings: ArchiveSettings

    @property
    def filter(self) -> PathFilter:
        return PathFilter(self.paths)


@dataclass(frozen=True, slots=True)
class ReleaseNotesGroup:
    """One grouping rule; ``pattern`` is searched in the commit subject."""

    pattern: re.Pattern[str]
    title: str = ""
    ignore: bool = False


@dataclass(frozen=True, slots=True)
class ReleaseNotesSettings:
    generate: bool = False
    filename: str = ""
    groups: tuple[ReleaseNotesGroup, ...] = ()


@dataclass(frozen=True, slots=True)
class ReleaseSettings:
    type: str = "github"
    name: str = ""
    repository: str = ""
    repository_owner: str = ""
    draft: bool = True
    prerelease: bool = False
    notes: ReleaseNotesSettings = field(default_factory=ReleaseNotesSettings)


@dataclass(frozen=True, slots=True)
class ReleaseGroup:
    path: str
    paths: tuple[str, ...]
    settings: ReleaseSettings

    @property
    def filter(self) -> PathFilter:
        return PathFilter(self.paths)

    @property
    def release_path(self) -> str:
        return f"releases/{self.path}"


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    project: str
    arch_paths: tuple[ArchPath, ...] = ()
    archives: tuple[ArchiveGroup, ...] = ()
    releases: tuple[ReleaseGroup, ...] = ()

    def for_each_archive_arch(
        self, build_filter: PathFilter | None = None
    ) -> list[tuple[ArchiveGroup, ArchPath]]:
        """Pair every archive group with the build targets it covers.

        ``build_filter`` narrows the targets further; None keeps all of them.
        """
        out: list[tuple[ArchiveGroup, ArchPath]] = []
        for group in self.archives:
            group_filter = group.filter
            for arch_path in self.arch_paths:
                if build_filter is not None and not build_filter.match(arch_path.build_path):
                    continue
                if group_filter.match(arch_path.build_path):
                    out.append((group, arch_path))
        return out

    def find_releases(self, release_filter: PathFilter) -> list[ReleaseGroup]:
        return [r for r in self.releases if release_filter.match(r.release_path)]


def _binary_name(binary: str, goos: str) -> str:
    if goos == "windows" and not binary.endswith(".exe"):
        return binary + ".exe"
    return binary


def _parse_arch_paths(data: Mapping[str, object], default_binary: str) -> list[ArchPath]:
    out: list[ArchPath] = []
    for build in get_tables(data, "builds"):
        build_path = (get_str(build, "path") or "").strip("/")
        if not build_path:
            raise ValueError("builds: every build needs a non-empty 'path'")
        binary = get_str(build, "binary") or default_binary
        for os_table in get_tables(build, "os"):
            goos = get_str(os_table, "goos")
            if goos is None:
                raise ValueError(f"builds.{build_path}: os entry without 'goos'")
            for goarch in get_str_list(os_table, "archs"):
                out.append(
                    ArchPath(
                        path=f"{build_path}/{goos}/{goarch}",
                        os=goos,
                        arch=goarch,
                        binary=_binary_name(binary, goos),
                    )
                )
    return out


def _parse_archive_type(table: StrDict | None) -> ArchiveType:
    if table is None:
        return ArchiveType()
    fmt = get_str(table, "format") or "tar.gz"
    if fmt not in ARCHIVE_FORMATS:
        raise ValueError(f"unsupported archive format {fmt!r} (supported: {', '.join(ARCHIVE_FORMATS)})")
    return ArchiveType(format=fmt, extension=get_str(table, "extension") or f".{fmt}")


def _parse_replacements(items: list[object] | None) -> tuple[tuple[str, str], ...]:
    pairs: list[tuple[str, str]] = []
    for item in items or []:
        pair = as_obj_list(item)
        if pair is not None and len(pair) == 2 and all(isinstance(p, str) for p in pair):
            pairs.append((str(pair[0]), str(pair[1])))
            continue
        d = as_str_dict(item)
        if d is not None and isinstance(d.get("old"), str) and isinstance(d.get("new"), str):
            pairs.append((str(d["old"]), str(d["new"])))
            continue
        raise ValueError(f"invalid replacement entry: {item!r}")
    return tuple(pairs)


def _parse_archive_settings(table: StrDict) -> ArchiveSettings:
    template = get_str(table, "name_template") or DEFAULT_NAME_TEMPLATE
    problem = validate_template(template)
    if problem is not None:
        raise ValueError(f"name_template {template!r}: {problem}")

    extra_files: list[ExtraFile] = []
    for ef in get_tables(table, "extra_files"):
        source = get_str(ef, "source_path")
        if source is None:
            raise ValueError("extra_files entry without 'source_path'")
        extra_files.append(
            ExtraFile(source_path=source, target_path=get_str(ef, "target_path") or Path(source).name)
        )

    return ArchiveSettings(
        name_template=template,
        type=_parse_archive_type(get_table(table, "type")),
        binary_dir=(get_str(table, "binary_dir") or "").strip("/"),
        extra_files=tuple(extra_files),
        replacements=_parse_replacements(get_list(table, "replacements")),
    )


def _parse_notes_settings(table: StrDict | None) -> ReleaseNotesSettings:
    if table is None:
        return ReleaseNotesSettings()
    groups: list[ReleaseNotesGroup] = []
    for g in get_tables(table, "groups"):
        regexp = get_str(g, "regexp")
        if regexp is None:
            raise ValueError("release notes group without 'regexp'")
        try:
            pattern = re.compile(regexp)
        except re.error as e:
            raise ValueError(f"invalid release notes regexp {regexp!r}: {e}") from e
        ignore = get_bool(g, "ignore")
        title = get_str(g, "title") or ""
        if not ignore and not title:
            raise ValueError(f"release notes group {regexp!r} needs a 'title' or 'ignore = true'")
        groups.append(ReleaseNotesGroup(pattern=pattern, title=title, ignore=ignore))
    return ReleaseNotesSettings(
        generate=get_bool(table, "generate"),
        filename=get_str(table, "filename") or "",
        groups=tuple(groups),
    )


def _parse_release_settings(table: StrDict) -> ReleaseSettings:
    release_type = get_str(table, "type") or "github"
    if release_type not in RELEASE_TYPES:
        raise ValueError(f"unsupported release type {release_type!r} (supported: {', '.join(RELEASE_TYPES)})")
    return ReleaseSettings(
        type=release_type,
        name=get_str(table, "name") or "",
        repository=get_str(table, "repository") or "",
        repository_owner=get_str(table, "repository_owner") or "",
        draft=get_bool(table, "draft", default=True),
        prerelease=get_bool(table, "prerelease"),
        notes=_parse_notes_settings(get_table(table, "release_notes_settings")),
    )


def config_from_dict(data: Mapping[str, object]) -> Config:
    """Create Config from a mapping (parsed TOML).

    Raises:
        ValueError: On any invalid or missing value.
    """
    project = get_str(data, "project")
    if project is None:
        raise ValueError("'project' is required")

    build_settings: StrDict = get_table(data, "build_settings") or {}
    default_binary = get_str(build_settings, "binary") or project

    archives = tuple(
        ArchiveGroup(
            paths=tuple(get_str_list(a, "paths") or ["builds/**"]),
            settings=_parse_archive_settings(get_table(a, "archive_settings") or {}),
        )
        for a in get_tables(data, "archives")
    )

    releases: list[ReleaseGroup] = []
    for r in get_tables(data, "releases"):
        path = (get_str(r, "path") or "").strip("/")
        if not path:
            raise ValueError("releases: every release needs a non-empty 'path'")
        releases.append(
            ReleaseGroup(
                path=path,
                paths=tuple(get_str_list(r, "paths") or ["archives/**"]),
                settings=_parse_release_settings(get_table(r, "release_settings") or {}),
            )
        )

    return Config(
        project=project,
        arch_paths=tuple(_parse_arch_paths(data, default_binary)),
        archives=archives,
        releases=tuple(releases),
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate configuration from a TOML file.

    Args:
        path: Path to relpipe.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(config_from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config: {e}", path=path))

"""Archive naming and path filters.

Naming templates use ``str.format`` fields: ``{project}``, ``{tag}``,
``{version}`` (the tag without a leading ``v``), ``{os}`` and ``{arch}``.
After substitution an ordered literal replacement pass runs over the name.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase

__all__ = [
    "NameContext",
    "Replacer",
    "PathFilter",
    "TEMPLATE_FIELDS",
    "format_name",
    "validate_template",
]

TEMPLATE_FIELDS = ("project", "tag", "version", "os", "arch")


@dataclass(frozen=True, slots=True)
class NameContext:
    project: str
    tag: str
    os: str
    arch: str

    @property
    def version(self) -> str:
        return self.tag.removeprefix("v")

    def as_dict(self) -> dict[str, str]:
        return {
            "project": self.project,
            "tag": self.tag,
            "version": self.version,
            "os": self.os,
            "arch": self.arch,
        }


def format_name(template: str, ctx: NameContext) -> str:
    return template.format_map(ctx.as_dict())


def validate_template(template: str) -> str | None:
    """Return an error message if the template references unknown fields."""
    sample = NameContext(project="p", tag="v1", os="linux", arch="amd64")
    try:
        format_name(template, sample)
    except KeyError as e:
        return f"unknown field {e} (known: {', '.join(TEMPLATE_FIELDS)})"
    except (ValueError, IndexError) as e:
        return str(e)
    return None


class Replacer:
    """Single pass literal replacement over an ordered list of pairs.

    At each position the first pair (in configured order) whose ``old``
    matches wins; replaced text is never rescanned.
    """

    def __init__(self, pairs: Sequence[tuple[str, str]]) -> None:
        self._pairs = tuple((old, new) for old, new in pairs if old)
        self._lookup = dict(reversed(self._pairs))
        self._pattern = (
            re.compile("|".join(re.escape(old) for old, _ in self._pairs))
            if self._pairs
            else None
        )

    @property
    def pairs(self) -> tuple[tuple[str, str], ...]:
        return self._pairs

    def replace(self, s: str) -> str:
        if self._pattern is None:
            return s
        return self._pattern.sub(lambda m: self._lookup[m.group(0)], s)


class PathFilter:
    """Glob filter over slash separated paths.

    ``*`` and ``**`` both match across ``/``; a leading ``/`` in patterns or
    paths is ignored. An empty filter matches nothing.
    """

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = tuple(p.strip().lstrip("/") for p in patterns if p.strip())

    def match(self, path: str) -> bool:
        candidate = path.lstrip("/")
        return any(fnmatchcase(candidate, pattern) for pattern in self.patterns)

    def __repr__(self) -> str:
        return f"PathFilter({list(self.patterns)!r})"

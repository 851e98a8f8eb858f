"""Console output abstraction.

Pipeline services report progress through ``ConsoleProtocol`` so they never
depend on rich directly. Archive and upload tasks report from worker
threads, so both implementations serialize their writes: one call is always
one whole line.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

from rich.console import Console
from rich.text import Text

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Kinds of console lines."""

    HEADER = auto()
    INFO = auto()
    SUCCESS = auto()
    ERROR = auto()
    HINT = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    def header(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def hint(self, message: str) -> None: ...


# (prefix, rich style) per line kind; errors and hints go to stderr.
_PREFIXES: dict[Style, tuple[str, str]] = {
    Style.HEADER: ("", "blue bold"),
    Style.INFO: ("info: ", "cyan"),
    Style.SUCCESS: ("OK ", "green"),
    Style.ERROR: ("error: ", "red bold"),
    Style.HINT: ("hint: ", "dim"),
}
_STDERR = frozenset({Style.ERROR, Style.HINT})


class RichConsole:
    """Console implementation using Rich.

    Messages are printed as plain text (file names may contain ``[``). With
    ``quiet=True`` only errors and hints are printed.
    """

    def __init__(self, *, quiet: bool = False) -> None:
        self._out = Console(highlight=False)
        self._err = Console(stderr=True, highlight=False)
        self._quiet = quiet
        self._lock = threading.Lock()

    def _emit(self, style: Style, message: str) -> None:
        to_stderr = style in _STDERR
        if self._quiet and not to_stderr:
            return
        prefix, rich_style = _PREFIXES[style]
        if style is Style.HEADER:
            line = Text(message, style=rich_style)
        else:
            line = Text.assemble((prefix, rich_style), message)
        with self._lock:
            if style is Style.HEADER:
                self._out.line()
            (self._err if to_stderr else self._out).print(line)

    def header(self, message: str) -> None:
        self._emit(Style.HEADER, message)

    def info(self, message: str) -> None:
        self._emit(Style.INFO, message)

    def success(self, message: str) -> None:
        self._emit(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._emit(Style.ERROR, message)

    def hint(self, message: str) -> None:
        self._emit(Style.HINT, message)


@dataclass(frozen=True, slots=True)
class OutputRecord:
    message: str
    style: Style


@dataclass
class MockConsole:
    """Console implementation that captures output for testing.

    Records keep the same prefixes ``RichConsole`` prints.
    """

    outputs: list[OutputRecord] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def _record(self, style: Style, message: str) -> None:
        prefix, _ = _PREFIXES[style]
        with self._lock:
            self.outputs.append(OutputRecord(prefix + message, style))

    def header(self, message: str) -> None:
        self._record(Style.HEADER, message)

    def info(self, message: str) -> None:
        self._record(Style.INFO, message)

    def success(self, message: str) -> None:
        self._record(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._record(Style.ERROR, message)

    def hint(self, message: str) -> None:
        self._record(Style.HINT, message)

    # Test helpers

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style is Style.ERROR for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]

"""Archive construction requests and the writer protocol."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Protocol

from relpipe.core.config import ArchiveSettings

__all__ = [
    "ArchiveFile",
    "ArchiveRequest",
    "ArchiveWriter",
    "WriterFactory",
    "close_in_order",
]


@dataclass(frozen=True, slots=True)
class ArchiveFile:
    """One entry to place into an archive.

    Attributes:
        source_path_abs: File on disk.
        target_path: Slash separated name inside the archive.
    """

    source_path_abs: Path
    target_path: str


@dataclass(frozen=True, slots=True)
class ArchiveRequest:
    """Everything needed to produce one archive file.

    The first file is always the primary binary.
    """

    settings: ArchiveSettings
    out_filename: Path
    files: tuple[ArchiveFile, ...]

    def __post_init__(self) -> None:
        if not self.files:
            raise ValueError(f"archive request for {self.out_filename} has no files")


class ArchiveWriter(Protocol):
    """An open archive.

    ``add`` always closes ``source`` before returning. ``finalize`` closes
    every layer down to the output sink. Both raise ``OSError`` on failure.
    """

    def add(self, target_path: str, source: BinaryIO) -> None: ...

    def finalize(self) -> None: ...


type WriterFactory = Callable[[BinaryIO], ArchiveWriter]


def close_in_order(closers: Iterable[Callable[[], object]]) -> None:
    """Run every close action in order, then raise the first failure.

    A failing close never prevents the later ones from running.
    """
    first: BaseException | None = None
    for close in closers:
        try:
            close()
        except Exception as e:  # noqa: BLE001
            if first is None:
                first = e
    if first is not None:
        if isinstance(first, OSError):
            raise first
        raise OSError(f"close failed: {first}") from first

"""Archive construction.

``build`` turns one ``ArchiveRequest`` into exactly one archive file, or
fails and leaves nothing behind at the output path.
"""

from __future__ import annotations

import tarfile
from pathlib import Path

from relpipe.core.cancel import Context
from relpipe.core.errors import PipelineError
from relpipe.core.result import Err, Ok, Result

from .model import ArchiveFile, ArchiveRequest, ArchiveWriter, WriterFactory, close_in_order
from .targz import TarGzArchive
from .ziparchive import ZipArchive

__all__ = [
    "ArchiveFile",
    "ArchiveRequest",
    "ArchiveWriter",
    "TarGzArchive",
    "ZipArchive",
    "WRITERS",
    "build",
    "close_in_order",
]

WRITERS: dict[str, WriterFactory] = {
    "tar.gz": TarGzArchive,
    "zip": ZipArchive,
}

_ARCHIVE_ERRORS = (OSError, ValueError, tarfile.TarError)


def _discard(archive: ArchiveWriter, out_path: Path) -> str | None:
    """Close what is open and remove the partial output.

    Returns a description of any cleanup failure.
    """
    problems: list[str] = []
    try:
        archive.finalize()
    except _ARCHIVE_ERRORS as e:
        problems.append(f"close: {e}")
    try:
        out_path.unlink(missing_ok=True)
    except OSError as e:
        problems.append(f"remove: {e}")
    return "; ".join(problems) or None


def build(request: ArchiveRequest, ctx: Context | None = None) -> Result[None, PipelineError]:
    """Write ``request.files`` in order into ``request.out_filename``."""
    fmt = request.settings.type.format
    factory = WRITERS.get(fmt)
    if factory is None:
        return Err(
            PipelineError(
                kind="invalid_config",
                message=f"unsupported archive format {fmt!r}",
                hint=f"supported: {', '.join(WRITERS)}",
            )
        )

    out_path = request.out_filename
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        sink = out_path.open("wb")
    except OSError as e:
        return Err(PipelineError(kind="io_failed", message=f"cannot create archive {out_path}", hint=str(e)))

    try:
        archive = factory(sink)
    except _ARCHIVE_ERRORS as e:
        sink.close()
        out_path.unlink(missing_ok=True)
        return Err(PipelineError(kind="io_failed", message=f"cannot open archive {out_path}", hint=str(e)))

    for entry in request.files:
        if ctx is not None and ctx.cancelled:
            _discard(archive, out_path)
            return Err(PipelineError(kind="cancelled", message=f"archive {out_path} cancelled"))
        try:
            source = entry.source_path_abs.open("rb")
            archive.add(entry.target_path, source)
        except _ARCHIVE_ERRORS as e:
            cleanup = _discard(archive, out_path)
            hint = str(e) if cleanup is None else f"{e}; cleanup: {cleanup}"
            return Err(
                PipelineError(
                    kind="io_failed",
                    message=f"failed to add {entry.source_path_abs} as {entry.target_path!r} to {out_path}",
                    hint=hint,
                )
            )

    try:
        archive.finalize()
    except _ARCHIVE_ERRORS as e:
        out_path.unlink(missing_ok=True)
        return Err(PipelineError(kind="io_failed", message=f"failed to finalize archive {out_path}", hint=str(e)))

    return Ok(None)

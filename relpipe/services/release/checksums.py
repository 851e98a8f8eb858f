"""Checksum file generation.

Digests are computed on the shared workforce but collected by index, so the
lines always follow the order of the input list.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from pathlib import Path

from relpipe.core.cancel import Context
from relpipe.core.errors import PipelineError
from relpipe.core.result import Err, Ok, Result
from relpipe.platform.files import atomic_write_text
from relpipe.workers import Workforce

_CHUNK_SIZE = 1024 * 1024


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def checksum_line(digest: str, filename: Path) -> str:
    return f"{digest}  {filename.name}"


def create_checksum_lines(
    workforce: Workforce, ctx: Context, filenames: Sequence[Path]
) -> Result[list[str], PipelineError]:
    """Return one ``"<sha256>  <basename>"`` line per file, in input order."""
    lines: list[str] = [""] * len(filenames)
    runner, _ = workforce.start(ctx)

    def digest_into(index: int, filename: Path) -> Result[None, PipelineError]:
        try:
            digest = sha256_file(filename)
        except OSError as e:
            return Err(
                PipelineError(
                    kind="io_failed",
                    message=f"checksum: failed to read {str(filename)!r}",
                    hint=str(e),
                )
            )
        lines[index] = checksum_line(digest, filename)
        return Ok(None)

    for index, filename in enumerate(filenames):
        runner.run(lambda index=index, filename=filename: digest_into(index, filename))

    result = runner.wait()
    if isinstance(result, Err):
        return result
    return Ok(lines)


def write_checksum_file(path: Path, lines: Sequence[str]) -> Result[None, PipelineError]:
    try:
        atomic_write_text(path, "".join(f"{line}\n" for line in lines))
    except OSError as e:
        return Err(
            PipelineError(
                kind="io_failed",
                message=f"failed to create checksum file {str(path)!r}",
                hint=str(e),
            )
        )
    return Ok(None)

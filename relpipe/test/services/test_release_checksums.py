from __future__ import annotations

import hashlib
import os
from pathlib import Path

from relpipe.core.cancel import Context
from relpipe.core.result import Err, Ok
from relpipe.services.release.checksums import (
    create_checksum_lines,
    sha256_file,
    write_checksum_file,
)
from relpipe.workers import Workforce


def _files(tmp_path: Path, n: int) -> list[Path]:
    out = []
    # Sizes decrease so later files tend to finish first.
    for i in range(n):
        p = tmp_path / f"hello_{i}.tar.gz"
        p.write_bytes(os.urandom((n - i) * 50_000))
        out.append(p)
    return out


def test_sha256_file(tmp_path: Path) -> None:
    p = tmp_path / "a"
    p.write_bytes(b"abc")
    assert sha256_file(p) == hashlib.sha256(b"abc").hexdigest()


def test_lines_follow_input_order(tmp_path: Path) -> None:
    files = _files(tmp_path, 8)

    with Workforce(num_workers=4) as workforce:
        result = create_checksum_lines(workforce, Context(), files)

    assert isinstance(result, Ok)
    assert len(result.value) == len(files)
    for line, path in zip(result.value, files, strict=True):
        assert line == f"{hashlib.sha256(path.read_bytes()).hexdigest()}  {path.name}"


def test_missing_file_fails_whole_batch(tmp_path: Path) -> None:
    files = _files(tmp_path, 2) + [tmp_path / "missing.zip"]

    with Workforce(num_workers=2) as workforce:
        result = create_checksum_lines(workforce, Context(), files)

    assert isinstance(result, Err)
    assert result.error.kind == "io_failed"
    assert "missing.zip" in result.error.message


def test_write_checksum_file(tmp_path: Path) -> None:
    path = tmp_path / "releases" / "main" / "checksum.txt"
    assert write_checksum_file(path, ["aa  a.zip", "bb  b.zip"]) == Ok(None)
    assert path.read_text(encoding="utf-8") == "aa  a.zip\nbb  b.zip\n"

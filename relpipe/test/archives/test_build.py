from __future__ import annotations

import tarfile
import zipfile
from pathlib import Path

import pytest

from relpipe.archives import ArchiveFile, ArchiveRequest, build
from relpipe.core.cancel import Context
from relpipe.core.config import ArchiveSettings, ArchiveType
from relpipe.core.result import Err, Ok


def _request(tmp_path: Path, fmt: str, files: list[ArchiveFile]) -> ArchiveRequest:
    ext = ".tar.gz" if fmt == "tar.gz" else f".{fmt}"
    return ArchiveRequest(
        settings=ArchiveSettings(type=ArchiveType(format=fmt, extension=ext)),
        out_filename=tmp_path / "out" / f"hello{ext}",
        files=tuple(files),
    )


def _sources(tmp_path: Path, n: int) -> list[ArchiveFile]:
    files = []
    for i in range(n):
        p = tmp_path / f"src{i}"
        p.write_bytes(f"content {i}".encode() * (i + 1))
        files.append(ArchiveFile(source_path_abs=p, target_path=f"dir/file{i}"))
    return files


def test_request_requires_a_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="no files"):
        ArchiveRequest(settings=ArchiveSettings(), out_filename=tmp_path / "x.tar.gz", files=())


def test_targz_has_n_entries_in_order(tmp_path: Path) -> None:
    files = _sources(tmp_path, 4)
    request = _request(tmp_path, "tar.gz", files)

    assert build(request) == Ok(None)

    with tarfile.open(request.out_filename, "r:gz") as tar:
        assert tar.getnames() == [f.target_path for f in files]
        for f in files:
            extracted = tar.extractfile(f.target_path)
            assert extracted is not None
            assert extracted.read() == f.source_path_abs.read_bytes()


def test_zip_has_n_entries_in_order(tmp_path: Path) -> None:
    files = _sources(tmp_path, 3)
    request = _request(tmp_path, "zip", files)

    assert build(request) == Ok(None)

    with zipfile.ZipFile(request.out_filename) as zf:
        assert zf.namelist() == [f.target_path for f in files]
        for f in files:
            assert zf.read(f.target_path) == f.source_path_abs.read_bytes()


def test_missing_source_leaves_no_output(tmp_path: Path) -> None:
    files = _sources(tmp_path, 1)
    files.append(ArchiveFile(source_path_abs=tmp_path / "missing", target_path="missing"))
    request = _request(tmp_path, "tar.gz", files)

    result = build(request)

    assert isinstance(result, Err)
    assert result.error.kind == "io_failed"
    assert "missing" in result.error.message
    assert not request.out_filename.exists()


def test_unknown_format(tmp_path: Path) -> None:
    request = _request(tmp_path, "rar", _sources(tmp_path, 1))
    result = build(request)
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_config"


def test_cancelled_context_leaves_no_output(tmp_path: Path) -> None:
    ctx = Context()
    ctx.cancel()
    request = _request(tmp_path, "zip", _sources(tmp_path, 2))

    result = build(request, ctx)

    assert isinstance(result, Err)
    assert result.error.kind == "cancelled"
    assert not request.out_filename.exists()

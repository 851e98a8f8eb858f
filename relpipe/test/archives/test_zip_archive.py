from __future__ import annotations

import io
import os
import time
import zipfile
from pathlib import Path

import pytest

from relpipe.archives import ZipArchive


def test_entries_match_sources(tmp_path: Path) -> None:
    binary = tmp_path / "hello.exe"
    binary.write_bytes(os.urandom(10_000))
    os.chmod(binary, 0o755)
    readme = tmp_path / "README.md"
    readme.write_bytes(b"# hello\n")
    out = tmp_path / "out.zip"

    archive = ZipArchive(out.open("wb"))
    archive.add("hello.exe", binary.open("rb"))
    archive.add("docs/README.md", readme.open("rb"))
    archive.finalize()

    with zipfile.ZipFile(out) as zf:
        assert zf.namelist() == ["hello.exe", "docs/README.md"]
        assert zf.read("hello.exe") == binary.read_bytes()
        assert zf.read("docs/README.md") == b"# hello\n"
        info = zf.getinfo("hello.exe")
        assert info.compress_type == zipfile.ZIP_DEFLATED
        assert (info.external_attr >> 16) & 0o777 == 0o755
        assert zf.testzip() is None


def test_old_mtime_is_clamped(tmp_path: Path) -> None:
    src = tmp_path / "old"
    src.write_bytes(b"x")
    os.utime(src, (0, 0))
    out = tmp_path / "out.zip"

    archive = ZipArchive(out.open("wb"))
    archive.add("old", src.open("rb"))
    archive.finalize()

    with zipfile.ZipFile(out) as zf:
        assert zf.getinfo("old").date_time == (1980, 1, 1, 0, 0, 0)


class _FailingSink(io.BytesIO):
    def close(self) -> None:
        raise OSError("sink close failed")


def test_finalize_reports_sink_failure_after_closing_zip(tmp_path: Path) -> None:
    src = tmp_path / "hello"
    src.write_bytes(b"x")
    sink = _FailingSink()
    archive = ZipArchive(sink)
    archive.add("hello", src.open("rb"))

    with pytest.raises(OSError, match="sink close failed"):
        archive.finalize()

    # The central directory was written before the sink close was attempted.
    with zipfile.ZipFile(io.BytesIO(sink.getvalue())) as zf:
        assert zf.read("hello") == b"x"


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
def test_entry_time_is_utc_regardless_of_local_zone(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    src = tmp_path / "hello"
    src.write_bytes(b"x")
    os.utime(src, (1_700_000_000, 1_700_000_000))  # 2023-11-14 22:13:20 UTC
    out = tmp_path / "out.zip"

    monkeypatch.setenv("TZ", "Asia/Tokyo")
    time.tzset()
    try:
        archive = ZipArchive(out.open("wb"))
        archive.add("hello", src.open("rb"))
        archive.finalize()
    finally:
        monkeypatch.undo()
        time.tzset()

    with zipfile.ZipFile(out) as zf:
        assert zf.getinfo("hello").date_time == (2023, 11, 14, 22, 13, 20)

"""Zip archive writer."""

from __future__ import annotations

import os
import shutil
import stat
import time
from typing import BinaryIO
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from .model import close_in_order

__all__ = ["ZipArchive"]

_COPY_CHUNK = 1024 * 1024


def _zip_date_time(mtime: float) -> tuple[int, int, int, int, int, int]:
    # Zip timestamps cover 1980..2107 and carry no zone; UTC keeps builds reproducible.
    t = time.gmtime(mtime)
    if t.tm_year < 1980:
        return (1980, 1, 1, 0, 0, 0)
    if t.tm_year > 2107:
        return (2107, 12, 31, 23, 59, 58)
    return (t.tm_year, t.tm_mon, t.tm_mday, t.tm_hour, t.tm_min, t.tm_sec)


class ZipArchive:
    """Writes a deflate compressed zip into ``out``.

    Layers, outermost first: zip (entries + compression) -> out.
    """

    def __init__(self, out: BinaryIO, *, compresslevel: int = 9) -> None:
        self._out = out
        self._zip = ZipFile(out, mode="w", compression=ZIP_DEFLATED, compresslevel=compresslevel)

    def add(self, target_path: str, source: BinaryIO) -> None:
        try:
            st = os.fstat(source.fileno())
            if not stat.S_ISREG(st.st_mode):
                raise OSError(f"not a regular file: {getattr(source, 'name', target_path)}")

            info = ZipInfo(target_path, date_time=_zip_date_time(st.st_mtime))
            info.compress_type = ZIP_DEFLATED
            info.external_attr = (stat.S_IFREG | stat.S_IMODE(st.st_mode)) << 16
            info.file_size = st.st_size
            with self._zip.open(info, mode="w") as dest:
                shutil.copyfileobj(source, dest, _COPY_CHUNK)
        finally:
            source.close()

    def finalize(self) -> None:
        close_in_order([self._zip.close, self._out.close])

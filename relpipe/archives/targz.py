"""tar + gzip archive writer."""

from __future__ import annotations

import gzip
import os
import stat
import tarfile
from typing import BinaryIO

from .model import close_in_order

__all__ = ["TarGzArchive"]


class TarGzArchive:
    """Streams a gzip compressed tarball into ``out``.

    Layers, outermost first: tar -> gzip -> out. The gzip header carries no
    file name or timestamp so identical inputs give identical bytes.
    """

    def __init__(self, out: BinaryIO, *, compresslevel: int = 9) -> None:
        self._out = out
        self._gz = gzip.GzipFile(filename="", mode="wb", fileobj=out, compresslevel=compresslevel, mtime=0)
        self._tar = tarfile.open(fileobj=self._gz, mode="w", format=tarfile.PAX_FORMAT)

    def add(self, target_path: str, source: BinaryIO) -> None:
        # Symlinks are followed: the entry holds the link target's content.
        try:
            st = os.fstat(source.fileno())
            if not stat.S_ISREG(st.st_mode):
                raise OSError(f"not a regular file: {getattr(source, 'name', target_path)}")

            info = tarfile.TarInfo(name=target_path)
            info.type = tarfile.REGTYPE
            info.size = st.st_size
            info.mode = stat.S_IMODE(st.st_mode)
            info.mtime = int(st.st_mtime)
            self._tar.addfile(info, source)
        finally:
            source.close()

    def finalize(self) -> None:
        close_in_order([self._tar.close, self._gz.close, self._out.close])

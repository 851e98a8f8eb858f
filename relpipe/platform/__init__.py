"""Filesystem and process helpers shared by the pipeline stages."""

from .files import atomic_write_text, recreate_dir
from .process import ProcessError, run

__all__ = ["ProcessError", "atomic_write_text", "recreate_dir", "run"]

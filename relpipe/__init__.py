"""Release pipeline for multi-platform binaries."""

__version__ = "0.1.0"

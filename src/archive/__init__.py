"""Crate archive delivery (raw output or extraction)."""

from .materializer import archive_dirname, extract_archive, write_raw

__all__ = ["archive_dirname", "extract_archive", "write_raw"]

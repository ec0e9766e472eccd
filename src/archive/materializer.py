"""Delivery of a downloaded crate archive: raw bytes or an extracted tree.

Crate archives are gzip-compressed tarballs holding a single top-level
``<name>-<version>/`` directory, so unpacking into the working directory
produces exactly that directory. The layout is checked after extraction,
not trusted.
"""
from __future__ import annotations

import io
import logging
import os
import shutil
import sys
import tarfile
import zlib
from pathlib import Path
from typing import BinaryIO, Optional, Union

from constants import Constants
from common.errors import ExtractionFailed, OutputWriteFailed, RelocationFailed

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def archive_dirname(name: str, version) -> str:
    """Name of the directory a crate archive unpacks to."""
    return f"{name}-{version}"


def write_raw(data: bytes, output: Optional[PathLike] = None, stdout: Optional[BinaryIO] = None) -> str:
    """Write the archive bytes unmodified to stdout or a file.

    Args:
        data: Archive bytes.
        output: File path; None or "-" selects stdout.
        stdout: Binary stream used for stdout, defaults to ``sys.stdout.buffer``.

    Returns:
        str: Description of where the bytes went.

    Raises:
        OutputWriteFailed: The file could not be opened or written.
    """
    if output is None or str(output) == Constants.STDOUT_MARKER:
        stream = stdout if stdout is not None else sys.stdout.buffer
        try:
            stream.write(data)
            stream.flush()
        except OSError as exc:
            raise OutputWriteFailed("<stdout>", str(exc)) from exc
        logger.debug("Crate's archive written to standard output")
        return "<stdout>"

    path = os.fspath(output)
    try:
        with open(path, "wb") as fh:
            fh.write(data)
    except OSError as exc:
        logger.debug("Failed to open output file %s: %s", path, exc)
        raise OutputWriteFailed(path, str(exc)) from exc
    logger.info("Crate's archive written to %s", path)
    return path


def _is_within(base: Path, target: Path) -> bool:
    try:
        target.relative_to(base)
    except ValueError:
        return False
    return True


def _check_members(archive: tarfile.TarFile, root: Path) -> None:
    """Refuse members that would land outside ``root``."""
    for member in archive.getmembers():
        if os.path.isabs(member.name):
            raise tarfile.TarError(f"absolute path in archive: {member.name}")
        target = (root / member.name).resolve()
        if not _is_within(root, target):
            raise tarfile.TarError(f"path escapes extraction directory: {member.name}")
        if member.issym() or member.islnk():
            link_base = target.parent if member.issym() else root
            link_target = (link_base / member.linkname).resolve()
            if os.path.isabs(member.linkname) or not _is_within(root, link_target):
                raise tarfile.TarError(f"link escapes extraction directory: {member.name}")
        if member.isdev():
            raise tarfile.TarError(f"device file in archive: {member.name}")


def unpack(data: bytes, workdir: Path) -> None:
    """Decode gzip+tar ``data`` into ``workdir``.

    Raises:
        ExtractionFailed: Corrupt stream, unsafe member or filesystem failure.
    """
    root = workdir.resolve()
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
            _check_members(archive, root)
            if hasattr(tarfile, "data_filter"):
                archive.extractall(path=root, filter="data")
            else:
                archive.extractall(path=root)
    except (tarfile.TarError, EOFError, zlib.error, OSError) as exc:
        raise ExtractionFailed(str(workdir), str(exc)) from exc


def extract_archive(
    data: bytes,
    name: str,
    version,
    destination: Optional[PathLike] = None,
    workdir: Optional[PathLike] = None,
) -> Path:
    """Unpack the archive and optionally move the result to ``destination``.

    Args:
        data: Gzipped tarball bytes.
        name: Crate name.
        version: Resolved version.
        destination: Where the extracted directory should end up, if not
            ``<workdir>/<name>-<version>``.
        workdir: Directory to unpack into, defaults to the CWD.

    Returns:
        Path: Final location of the extracted crate directory.

    Raises:
        ExtractionFailed: The archive could not be unpacked.
        RelocationFailed: Unpacking succeeded but the final move did not.
    """
    base = Path(workdir) if workdir is not None else Path.cwd()
    extracted = base / archive_dirname(name, version)
    logger.debug("Extracting crate archive to %s/", extracted)

    unpack(data, base)

    if destination is None:
        if not extracted.is_dir():
            logger.warning(
                "Archive did not contain the expected top-level directory %s/", extracted
            )
        logger.info("Crate content extracted to %s/", extracted)
        return extracted

    target = Path(destination)
    if not extracted.is_dir():
        raise RelocationFailed(
            str(extracted), str(target), "expected top-level directory not found in archive"
        )
    if target.exists():
        raise RelocationFailed(str(extracted), str(target), "destination already exists")
    try:
        shutil.move(str(extracted), str(target))
    except OSError as exc:
        logger.debug(
            "Failed to move extracted archive from %s to %s: %s", extracted, target, exc
        )
        raise RelocationFailed(str(extracted), str(target), str(exc)) from exc

    logger.info("Crate content extracted to %s/", target)
    return target

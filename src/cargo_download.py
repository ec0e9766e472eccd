"""cargo-download - fetch a crate's source archive from crates.io

    Resolves CRATE[=VERSION] against the registry, downloads the matching
    archive and writes it out raw or extracted.

    Returns:
        int: Exit code
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

import semantic_version

from args import parse_args
from archive.materializer import extract_archive, write_raw
from cli_config import DownloadConfig, build_config
from common.errors import CargoDownloadError, UsageError
from common.logging_utils import (
    configure_logging,
    extra_context,
    is_debug_enabled,
    level_from_name,
    verbosity_to_level,
)
from constants import ExitCodes
from registry.crates import CratesRegistryClient
from versioning.models import PackageSpec
from versioning.parser import parse_package_spec
from versioning.resolver import resolve_version

logger = logging.getLogger(__name__)


@dataclass
class DownloadOutcome:
    """What a pipeline run produced."""
    name: str
    version: semantic_version.Version
    size: int
    extracted: bool
    location: Union[str, Path]


def log_signature(config: DownloadConfig) -> None:
    """Log the program name and version."""
    version = f"v{config.app_version}" if config.app_version else "<UNKNOWN VERSION>"
    logger.info("%s %s", config.app_name, version)


def run_pipeline(
    spec: PackageSpec,
    config: DownloadConfig,
    *,
    client=None,
    extract: bool = False,
    output=None,
    workdir=None,
    stdout: Optional[BinaryIO] = None,
) -> DownloadOutcome:
    """Resolve, download and deliver one crate.

    Args:
        spec: Parsed package specification.
        config: Registry and application settings.
        client: Registry client; built from ``config`` when omitted.
        extract: Unpack the archive instead of writing raw bytes.
        output: Raw mode: file path or "-"/None for stdout. Extract mode:
            destination directory, or None to keep ``<name>-<version>``.
        workdir: Directory archives are unpacked into (default CWD).
        stdout: Binary stream standing in for stdout.

    Returns:
        DownloadOutcome: The resolved version and where the crate went.

    Raises:
        CargoDownloadError: Any stage failure; the run stops at the first one.
    """
    if client is None:
        client = CratesRegistryClient.from_config(config)

    resolution = resolve_version(spec, client)
    version = resolution.resolved_version
    if is_debug_enabled(logger):
        logger.debug(
            "Resolution finished",
            extra=extra_context(
                event="decision",
                component="cli",
                action="resolve",
                outcome=resolution.resolution_mode.value,
                target=spec.name,
                count=resolution.candidate_count,
            )
        )

    data = client.download(spec.name, version)

    if extract:
        location = extract_archive(data, spec.name, version, destination=output, workdir=workdir)
    else:
        location = write_raw(data, output=output, stdout=stdout)

    return DownloadOutcome(
        name=spec.name,
        version=version,
        size=len(data),
        extracted=extract,
        location=location,
    )


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)

    level = level_from_name(args.LOG_LEVEL)
    if level is None and args.VERBOSITY:
        level = verbosity_to_level(args.VERBOSITY)
    configure_logging(level=level, logfile=args.LOG_FILE)

    config = build_config(args)
    log_signature(config)

    try:
        spec = parse_package_spec(args.CRATE)
    except UsageError as e:
        sys.stderr.write(f"Failed to parse arguments: {e}\n")
        sys.exit(ExitCodes.USAGE_ERROR.value)

    try:
        run_pipeline(spec, config, extract=args.EXTRACT, output=args.OUTPUT)
    except CargoDownloadError as e:
        logger.error("Failed to fetch crate %s: %s", spec, e)
        sys.exit(e.exit_code.value)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()

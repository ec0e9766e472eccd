"""Error taxonomy for the download pipeline.

Each error carries the diagnostic context needed to tell a bad constraint
apart from a registry problem or a local filesystem failure, plus the exit
code the CLI maps it to.
"""
from __future__ import annotations

from typing import Optional

from constants import ExitCodes


class CargoDownloadError(Exception):
    """Base class for all pipeline failures."""

    exit_code = ExitCodes.TEMP_FAILURE


# Input / usage errors

class UsageError(CargoDownloadError):
    """The user's package specification is invalid."""

    exit_code = ExitCodes.USAGE_ERROR


class InvalidName(UsageError):
    """Package name is empty or has characters outside alphanumerics, '-' and '_'."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"invalid crate name `{name}`")


class InvalidVersionSyntax(UsageError):
    """A version inside the constraint is malformed."""

    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"invalid crate version `{text}`: {reason}")


class InvalidVersionRange(UsageError):
    """The version requirement grammar is malformed or unsupported."""

    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"incorrect crate version requirement `{text}`: {reason}")


# Registry / network / data errors

class RegistryError(CargoDownloadError):
    """Failure talking to the registry or interpreting what it returned."""


class RegistryUnavailable(RegistryError):
    """The version listing could not be fetched."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"registry request to {url} failed: {reason}")


class DownloadFailed(RegistryError):
    """The archive download could not be completed."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"download from {url} failed: {reason}")


class MalformedRegistryResponse(RegistryError):
    """The version listing did not have the expected shape."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"malformed response from {url}: {reason}")


class NoValidVersions(RegistryError):
    """The registry listed no parsable semantic versions."""

    def __init__(self, name: str, url: str, dropped: int = 0):
        self.name = name
        self.url = url
        self.dropped = dropped
        super().__init__(
            f"no valid versions of crate `{name}` found at {url} "
            f"({dropped} unparsable entries dropped)"
        )


class NoMatchingVersion(RegistryError):
    """No listed version satisfies the requirement."""

    def __init__(self, name: str, constraint: str, considered: int):
        self.name = name
        self.constraint = constraint
        self.considered = considered
        super().__init__(
            f"no version of crate `{name}` matches `{constraint}` "
            f"({considered} versions considered)"
        )


# Local I/O errors

class LocalIOError(CargoDownloadError):
    """Writing the result to the local filesystem failed."""

    exit_code = ExitCodes.IO_ERROR


class ExtractionFailed(LocalIOError):
    """The archive could not be decoded or unpacked."""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"couldn't extract crate to {target}/: {reason}")


class RelocationFailed(LocalIOError):
    """The extracted directory could not be moved to its destination."""

    def __init__(self, source: str, destination: str, reason: str):
        self.source = source
        self.destination = destination
        self.reason = reason
        super().__init__(
            f"failed to move extracted archive from {source} to {destination}: {reason}"
        )


class OutputWriteFailed(LocalIOError):
    """Raw archive bytes could not be written to the output sink."""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"failed to write crate archive to {target}: {reason}")

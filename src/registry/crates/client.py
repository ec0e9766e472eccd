"""crates.io registry client: version listing and archive download."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

import requests
import semantic_version

from constants import Constants, default_user_agent
from common.errors import (
    DownloadFailed,
    MalformedRegistryResponse,
    NoValidVersions,
    RegistryUnavailable,
)
from common.logging_utils import extra_context, is_debug_enabled, safe_url, trace, Timer
from versioning.models import VersionList

import registry.crates as crates_pkg

logger = logging.getLogger(__name__)


def parse_version_records(records: Any) -> Tuple[List[semantic_version.Version], List[str]]:
    """Parse the ``versions`` array of a listing into (versions, dropped).

    Records that are not objects, lack a string ``num`` field, or whose
    ``num`` is not a valid semantic version end up in ``dropped`` as their
    string form.
    """
    versions: List[semantic_version.Version] = []
    dropped: List[str] = []
    for record in records:
        num = record.get("num") if isinstance(record, dict) else None
        if not isinstance(num, str):
            dropped.append(repr(record))
            continue
        try:
            versions.append(semantic_version.Version(num))
        except ValueError:
            dropped.append(num)
    return versions, dropped


def _content_length(response: requests.Response) -> Optional[int]:
    value = response.headers.get("Content-Length")
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length >= 0 else None


class CratesRegistryClient:
    """Read-only client for the crates.io HTTP API."""

    def __init__(
        self,
        base_url: str = Constants.REGISTRY_URL_CRATES,
        timeout: float = Constants.REQUEST_TIMEOUT,
        user_agent: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent or default_user_agent()}

    @classmethod
    def from_config(cls, config) -> "CratesRegistryClient":
        """Build a client from a DownloadConfig."""
        return cls(
            base_url=config.registry_url,
            timeout=config.timeout,
            user_agent=config.user_agent,
        )

    def versions_url(self, name: str) -> str:
        return f"{self.base_url}/{name}/versions"

    def download_url(self, name: str, version) -> str:
        return f"{self.base_url}/{name}/{version}/download"

    def list_versions(self, name: str) -> VersionList:
        """Query the registry for every published version of ``name``.

        Args:
            name: Crate name.

        Returns:
            VersionList: Parsed versions in arrival order plus dropped entries.

        Raises:
            RegistryUnavailable: Connection failure, timeout or non-2xx status.
            MalformedRegistryResponse: Body is not a JSON object with a ``versions`` array.
            NoValidVersions: No entry parsed as a semantic version.
        """
        url = self.versions_url(name)
        logger.debug("Fetching versions of crate `%s` from %s", name, safe_url(url))
        status_code, _, data = crates_pkg.get_json(
            url,
            context="crates.io",
            headers={**self.headers, "Accept": "application/json"},
            timeout=self.timeout,
        )

        if not 200 <= status_code < 300:
            logger.warning(
                "HTTP non-2xx received",
                extra=extra_context(
                    event="http_response",
                    outcome="non_2xx",
                    status_code=status_code,
                    target=safe_url(url),
                    package_manager="cargo"
                )
            )
            raise RegistryUnavailable(url, f"HTTP {status_code}", status_code=status_code)

        if not isinstance(data, dict):
            raise MalformedRegistryResponse(url, "body is not a JSON object")
        records = data.get("versions")
        if not isinstance(records, list):
            raise MalformedRegistryResponse(url, "missing `versions` array")

        versions, dropped = parse_version_records(records)
        if dropped:
            logger.warning(
                "Dropped %d unparsable version entries of crate `%s`: %s",
                len(dropped), name, ", ".join(dropped),
            )
        if not versions:
            raise NoValidVersions(name, url, dropped=len(dropped))

        if is_debug_enabled(logger):
            logger.debug(
                "Version list parsed",
                extra=extra_context(
                    event="parse",
                    component="client",
                    action="list_versions",
                    outcome="success",
                    count=len(versions),
                    target=safe_url(url),
                    package_manager="cargo"
                )
            )
        return VersionList(name=name, url=url, versions=versions, dropped=dropped)

    def download(self, name: str, version) -> bytes:
        """Download the ``.crate`` archive of ``name`` at ``version``.

        The body is streamed into memory; a Content-Length header, when
        present, is used to detect truncated transfers.

        Raises:
            DownloadFailed: Non-2xx status, transport failure or truncated body.
        """
        url = self.download_url(name, version)
        logger.debug("Downloading crate `%s==%s` from %s", name, version, safe_url(url))

        with Timer() as timer:
            response = crates_pkg.safe_get(
                url,
                context="crates.io",
                error_cls=DownloadFailed,
                headers=self.headers,
                timeout=self.timeout,
                stream=True,
            )
            try:
                if not response.ok:
                    raise DownloadFailed(
                        url, f"HTTP {response.status_code}", status_code=response.status_code
                    )

                size_hint = _content_length(response)
                trace(
                    logger,
                    "Download size: %s",
                    f"{size_hint} bytes" if size_hint is not None else "<unknown>",
                )

                buffer = bytearray()
                try:
                    for chunk in response.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                        buffer.extend(chunk)
                except requests.RequestException as exc:
                    raise DownloadFailed(url, f"error while reading body: {exc}") from exc
            finally:
                response.close()

        # Content-Length counts encoded bytes when a Content-Encoding is applied
        if (
            size_hint is not None
            and not response.headers.get("Content-Encoding")
            and len(buffer) < size_hint
        ):
            raise DownloadFailed(
                url, f"truncated body: received {len(buffer)} of {size_hint} bytes"
            )

        if is_debug_enabled(logger):
            logger.debug(
                "Archive downloaded",
                extra=extra_context(
                    event="http_response",
                    component="client",
                    action="download",
                    outcome="success",
                    duration_ms=timer.duration_ms(),
                    count=len(buffer),
                    target=safe_url(url),
                    package_manager="cargo"
                )
            )
        logger.info("Crate `%s==%s` downloaded successfully (%d bytes)", name, version, len(buffer))
        return bytes(buffer)

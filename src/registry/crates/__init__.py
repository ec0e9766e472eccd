"""crates.io registry package.

This package provides crates.io support:
- client.py: version listing and archive download over the registry HTTP API

Public API is preserved at registry.crates without shims.
"""

# Patch points exposed for tests (e.g., monkeypatch in tests)
from common.http_client import get_json, safe_get  # noqa: F401

# Public API re-exports
from .client import CratesRegistryClient, parse_version_records  # noqa: F401

__all__ = [
    # Client
    "CratesRegistryClient",
    "parse_version_records",
    # Patch points for tests
    "get_json",
    "safe_get",
]

"""Tests for the crates.io registry client."""

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests
from semantic_version import Version

from common.errors import (
    DownloadFailed,
    MalformedRegistryResponse,
    NoValidVersions,
    RegistryUnavailable,
)
from registry.crates.client import CratesRegistryClient, parse_version_records

VERSIONS_URL = "https://crates.io/api/v1/crates/demo/versions"
DOWNLOAD_URL = "https://crates.io/api/v1/crates/demo/1.1.0/download"


@pytest.fixture
def client():
    """Client against the default registry root."""
    return CratesRegistryClient(user_agent="cargo-download-tests/1.0")


def make_download_response(chunks, status_code=200, headers=None):
    """Build a streamed response double."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.headers = headers or {}
    response.iter_content.return_value = chunks
    return response


class TestParseVersionRecords:
    """Version record filtering."""

    def test_drops_unparsable_entries(self):
        parsed, dropped = parse_version_records([
            {"num": "1.0.0"},
            {"num": "not-a-version"},
            {"num": "1.1.0-rc.1"},
            {"yanked": False},
            "1.2.0",
        ])
        assert parsed == [Version("1.0.0"), Version("1.1.0-rc.1")]
        assert dropped[0] == "not-a-version"
        assert len(dropped) == 3


class TestListVersions:
    """Querying the version listing endpoint."""

    @patch("registry.crates.get_json")
    def test_lists_versions(self, mock_get_json, client):
        mock_get_json.return_value = (200, {}, {
            "versions": [{"num": "1.0.0"}, {"num": "bogus"}, {"num": "1.1.0"}],
            "meta": {"total": 3},
        })

        listing = client.list_versions("demo")

        assert mock_get_json.call_args[0][0] == VERSIONS_URL
        headers = mock_get_json.call_args[1]["headers"]
        assert headers["User-Agent"] == "cargo-download-tests/1.0"
        assert listing.versions == [Version("1.0.0"), Version("1.1.0")]
        assert listing.dropped == ["bogus"]
        assert listing.url == VERSIONS_URL

    @patch("registry.crates.get_json")
    def test_dropped_entries_are_logged(self, mock_get_json, client, caplog):
        mock_get_json.return_value = (200, {}, {
            "versions": [{"num": "1.0.0"}, {"num": "bogus"}, {"num": "1.x"}],
        })

        with caplog.at_level(logging.WARNING, logger="registry.crates.client"):
            client.list_versions("demo")

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        message = warnings[0].getMessage()
        assert "Dropped 2 unparsable version entries" in message
        assert "bogus" in message
        assert "1.x" in message

    @patch("registry.crates.get_json")
    def test_clean_listing_logs_no_warning(self, mock_get_json, client, caplog):
        mock_get_json.return_value = (200, {}, {"versions": [{"num": "1.0.0"}]})

        with caplog.at_level(logging.WARNING, logger="registry.crates.client"):
            client.list_versions("demo")

        assert not [r for r in caplog.records if r.levelno == logging.WARNING]

    @patch("registry.crates.get_json")
    def test_uses_configured_root(self, mock_get_json):
        mock_get_json.return_value = (200, {}, {"versions": [{"num": "0.1.0"}]})
        client = CratesRegistryClient(base_url="http://localhost:8080/api/v1/crates/")

        client.list_versions("demo")

        assert mock_get_json.call_args[0][0] == "http://localhost:8080/api/v1/crates/demo/versions"

    @patch("registry.crates.get_json")
    def test_non_2xx_is_unavailable(self, mock_get_json, client):
        mock_get_json.return_value = (503, {}, None)
        with pytest.raises(RegistryUnavailable) as exc:
            client.list_versions("demo")
        assert exc.value.status_code == 503
        assert exc.value.url == VERSIONS_URL

    @patch("registry.crates.get_json")
    def test_transport_error_propagates(self, mock_get_json, client):
        mock_get_json.side_effect = RegistryUnavailable(VERSIONS_URL, "connection error")
        with pytest.raises(RegistryUnavailable):
            client.list_versions("demo")

    @pytest.mark.parametrize("body", [
        None,
        [],
        {"meta": {}},
        {"versions": {"num": "1.0.0"}},
    ])
    @patch("registry.crates.get_json")
    def test_malformed_body(self, mock_get_json, body, client):
        mock_get_json.return_value = (200, {}, body)
        with pytest.raises(MalformedRegistryResponse) as exc:
            client.list_versions("demo")
        assert exc.value.url == VERSIONS_URL

    @patch("registry.crates.get_json")
    def test_no_valid_versions(self, mock_get_json, client):
        mock_get_json.return_value = (200, {}, {"versions": [{"num": "junk"}, {"num": "1.0"}]})
        with pytest.raises(NoValidVersions) as exc:
            client.list_versions("demo")
        assert exc.value.dropped == 2

    @patch("registry.crates.get_json")
    def test_empty_version_array(self, mock_get_json, client):
        mock_get_json.return_value = (200, {}, {"versions": []})
        with pytest.raises(NoValidVersions):
            client.list_versions("demo")


class TestDownload:
    """Streaming archive download."""

    @patch("registry.crates.safe_get")
    def test_downloads_body(self, mock_safe_get, client):
        response = make_download_response([b"abc", b"def"], headers={"Content-Length": "6"})
        mock_safe_get.return_value = response

        data = client.download("demo", Version("1.1.0"))

        assert data == b"abcdef"
        assert mock_safe_get.call_args[0][0] == DOWNLOAD_URL
        kwargs = mock_safe_get.call_args[1]
        assert kwargs["stream"] is True
        assert kwargs["error_cls"] is DownloadFailed
        response.close.assert_called_once()

    @patch("registry.crates.safe_get")
    def test_without_size_hint(self, mock_safe_get, client):
        mock_safe_get.return_value = make_download_response([b"x" * 10])
        assert client.download("demo", "1.1.0") == b"x" * 10

    @patch("registry.crates.safe_get")
    def test_truncated_body(self, mock_safe_get, client):
        mock_safe_get.return_value = make_download_response([b"abc"], headers={"Content-Length": "10"})
        with pytest.raises(DownloadFailed) as exc:
            client.download("demo", "1.1.0")
        assert exc.value.url == DOWNLOAD_URL
        assert "truncated" in exc.value.reason

    @patch("registry.crates.safe_get")
    def test_encoded_body_skips_length_check(self, mock_safe_get, client):
        mock_safe_get.return_value = make_download_response(
            [b"abcdefghij"], headers={"Content-Length": "4", "Content-Encoding": "gzip"}
        )
        assert client.download("demo", "1.1.0") == b"abcdefghij"

    @patch("registry.crates.safe_get")
    def test_http_error_status(self, mock_safe_get, client):
        response = make_download_response([], status_code=404)
        mock_safe_get.return_value = response
        with pytest.raises(DownloadFailed) as exc:
            client.download("demo", "1.1.0")
        assert exc.value.status_code == 404
        response.close.assert_called_once()

    @patch("registry.crates.safe_get")
    def test_stream_error(self, mock_safe_get, client):
        response = make_download_response([])
        response.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("reset")
        mock_safe_get.return_value = response
        with pytest.raises(DownloadFailed) as exc:
            client.download("demo", "1.1.0")
        assert exc.value.url == DOWNLOAD_URL

"""Tests for the shared HTTP helpers."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from common.errors import DownloadFailed, RegistryUnavailable
from common.http_client import get_json, safe_get
from constants import Constants

URL = "https://crates.io/api/v1/crates/demo/versions"


def make_response(status_code=200, text="", headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    response.headers = headers or {}
    return response


class TestSafeGet:
    """Transport error mapping."""

    @patch("common.http_client.requests.get")
    def test_returns_response_regardless_of_status(self, mock_get):
        mock_get.return_value = make_response(404)
        res = safe_get(URL, context="crates.io")
        assert res.status_code == 404
        assert mock_get.call_args[1]["timeout"] == Constants.REQUEST_TIMEOUT

    @patch("common.http_client.requests.get")
    def test_passes_timeout_and_kwargs(self, mock_get):
        mock_get.return_value = make_response(200)
        safe_get(URL, context="crates.io", timeout=5, stream=True, headers={"User-Agent": "t"})
        kwargs = mock_get.call_args[1]
        assert kwargs["timeout"] == 5
        assert kwargs["stream"] is True
        assert kwargs["headers"] == {"User-Agent": "t"}

    @patch("common.http_client.requests.get")
    def test_timeout_raises_registry_unavailable(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")
        with pytest.raises(RegistryUnavailable) as exc:
            safe_get(URL, context="crates.io", timeout=1)
        assert exc.value.url == URL
        assert "timed out" in exc.value.reason

    @patch("common.http_client.requests.get")
    def test_connection_error_uses_requested_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(DownloadFailed) as exc:
            safe_get(URL, context="crates.io", error_cls=DownloadFailed)
        assert "connection error" in exc.value.reason


class TestGetJson:
    """JSON decoding."""

    @patch("common.http_client.requests.get")
    def test_parses_json(self, mock_get):
        mock_get.return_value = make_response(200, '{"versions": []}', {"Content-Type": "application/json"})
        status, headers, data = get_json(URL, context="crates.io")
        assert status == 200
        assert headers["Content-Type"] == "application/json"
        assert data == {"versions": []}

    @patch("common.http_client.requests.get")
    def test_undecodable_body(self, mock_get):
        mock_get.return_value = make_response(200, "<html>oops</html>")
        assert get_json(URL, context="crates.io")[2] is None

    @patch("common.http_client.requests.get")
    def test_non_2xx_has_no_body(self, mock_get):
        mock_get.return_value = make_response(500, '{"errors": []}')
        status, _, data = get_json(URL, context="crates.io")
        assert status == 500
        assert data is None

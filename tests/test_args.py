"""Tests for command line parsing."""

import pytest

from args import parse_args
from constants import ExitCodes


class TestParseArgs:
    """Flags and defaults."""

    def test_defaults(self):
        ns = parse_args(["serde"])
        assert ns.CRATE == "serde"
        assert ns.EXTRACT is False
        assert ns.OUTPUT is None
        assert ns.VERBOSITY == 0
        assert ns.LOG_LEVEL is None
        assert ns.CONFIG is None
        assert ns.REGISTRY_URL is None
        assert ns.TIMEOUT is None

    def test_spec_with_requirement(self):
        assert parse_args(["serde=^1.0"]).CRATE == "serde=^1.0"

    def test_extract_and_output(self):
        ns = parse_args(["-x", "-o", "vendor/serde", "serde"])
        assert ns.EXTRACT is True
        assert ns.OUTPUT == "vendor/serde"

    def test_verbose_count(self):
        assert parse_args(["-vv", "serde"]).VERBOSITY == 2

    def test_quiet_count(self):
        assert parse_args(["-q", "-q", "-q", "serde"]).VERBOSITY == -3

    def test_verbose_and_quiet_conflict(self):
        with pytest.raises(SystemExit) as exc:
            parse_args(["-v", "-q", "serde"])
        assert exc.value.code == ExitCodes.USAGE_ERROR.value

    def test_extract_to_stdout_rejected(self):
        with pytest.raises(SystemExit) as exc:
            parse_args(["-x", "-o", "-", "serde"])
        assert exc.value.code == ExitCodes.USAGE_ERROR.value

    def test_loglevel_is_case_insensitive(self):
        assert parse_args(["--loglevel", "trace", "serde"]).LOG_LEVEL == "TRACE"

    def test_registry_overrides(self):
        ns = parse_args(["--registry-url", "http://localhost:8080", "--timeout", "2.5", "serde"])
        assert ns.REGISTRY_URL == "http://localhost:8080"
        assert ns.TIMEOUT == 2.5

    def test_crate_is_required(self):
        with pytest.raises(SystemExit) as exc:
            parse_args([])
        assert exc.value.code == ExitCodes.USAGE_ERROR.value

    def test_unknown_flag_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc:
            parse_args(["--bogus", "serde"])
        assert exc.value.code == ExitCodes.USAGE_ERROR.value
        assert "unrecognized arguments" in capsys.readouterr().err

    def test_help_still_exits_cleanly(self, capsys):
        with pytest.raises(SystemExit) as exc:
            parse_args(["--help"])
        assert exc.value.code == 0

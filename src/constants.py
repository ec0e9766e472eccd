"""Constants used in the project."""

import logging
import os
from enum import Enum
from importlib import metadata

import yaml


class ExitCodes(Enum):
    """Exit codes for the program.

    Values follow the BSD sysexits convention.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    USAGE_ERROR = 64
    IO_ERROR = 74
    TEMP_FAILURE = 75


def _app_version():
    try:
        return metadata.version("cargo-download")
    except metadata.PackageNotFoundError:
        return None


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    APP_NAME = "cargo-download"
    APP_VERSION = _app_version()
    APP_URL = "https://github.com/Xion/cargo-download"

    REGISTRY_URL_CRATES = "https://crates.io/api/v1/crates"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "CARGO_DOWNLOAD_LOG_LEVEL"
    ENV_CONFIG = "CARGO_DOWNLOAD_CONFIG"
    ENV_REGISTRY_URL = "CARGO_DOWNLOAD_REGISTRY_URL"
    ENV_TIMEOUT = "CARGO_DOWNLOAD_TIMEOUT"
    DEFAULT_CONFIG_PATHS = [
        os.path.join("~", ".config", "cargo-download", "config.yml"),
        os.path.join("~", ".config", "cargo-download", "config.yaml"),
    ]
    STDOUT_MARKER = "-"


def default_user_agent():
    """Return the User-Agent header value sent to the registry."""
    version = Constants.APP_VERSION or "unknown"
    return f"{Constants.APP_NAME}/{version} (+{Constants.APP_URL})"


def _load_yaml_config(path=None):
    """Load the YAML configuration file, returning an empty dict when unavailable.

    An explicit path wins; otherwise ``$CARGO_DOWNLOAD_CONFIG`` and then the
    default locations are tried in order. Errors are logged, never raised.
    """
    candidates = []
    if path:
        candidates.append(path)
    else:
        env_path = os.environ.get(Constants.ENV_CONFIG)
        if env_path:
            candidates.append(env_path)
        candidates.extend(Constants.DEFAULT_CONFIG_PATHS)

    for candidate in candidates:
        full = os.path.expanduser(candidate)
        if not os.path.isfile(full):
            if path:
                logging.warning("Config file not found: %s", full)
            continue
        try:
            with open(full, "r", encoding="utf-8") as fh:
                cfg = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logging.warning("Ignoring unreadable config file %s: %s", full, exc)
            return {}
        if not isinstance(cfg, dict):
            logging.warning("Ignoring config file %s: top level is not a mapping", full)
            return {}
        return cfg
    return {}

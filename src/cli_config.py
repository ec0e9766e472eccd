"""Runtime configuration for the download pipeline.

Merges defaults from ``Constants``, the YAML config file, environment
variables and CLI flags (highest precedence) into a single immutable
``DownloadConfig`` that is handed to the pipeline.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from constants import Constants, _load_yaml_config, default_user_agent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadConfig:
    """Settings the pipeline needs from its surroundings."""
    registry_url: str = Constants.REGISTRY_URL_CRATES
    timeout: float = Constants.REQUEST_TIMEOUT
    user_agent: str = ""
    app_name: str = Constants.APP_NAME
    app_version: Optional[str] = Constants.APP_VERSION

    def __post_init__(self):
        # Normalize so URL joins never produce double slashes
        object.__setattr__(self, "registry_url", self.registry_url.rstrip("/"))
        if not self.user_agent:
            object.__setattr__(self, "user_agent", default_user_agent())


def _coerce_timeout(value: Any, source: str) -> Optional[float]:
    """Convert a timeout value to a positive float, or None if unusable."""
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid timeout %r from %s", value, source)
        return None
    if timeout <= 0:
        logger.warning("Ignoring non-positive timeout %r from %s", value, source)
        return None
    return timeout


def _registry_section(cfg: Dict[str, Any]) -> Dict[str, Any]:
    section = cfg.get("registry")
    if section is None:
        return {}
    if not isinstance(section, dict):
        logger.warning("Ignoring 'registry' config section: expected a mapping")
        return {}
    return section


def build_config(args=None) -> DownloadConfig:
    """Build the effective configuration from file, environment and CLI.

    Args:
        args: Parsed argparse namespace, or None to skip CLI overrides.

    Returns:
        DownloadConfig: The merged configuration.
    """
    values: Dict[str, Any] = {}

    section = _registry_section(_load_yaml_config(getattr(args, "CONFIG", None)))
    if section.get("url"):
        values["registry_url"] = str(section["url"])
    if section.get("timeout") is not None:
        timeout = _coerce_timeout(section["timeout"], "config file")
        if timeout is not None:
            values["timeout"] = timeout
    if section.get("user_agent"):
        values["user_agent"] = str(section["user_agent"])

    env_url = os.environ.get(Constants.ENV_REGISTRY_URL)
    if env_url and env_url.strip():
        values["registry_url"] = env_url.strip()
    env_timeout = os.environ.get(Constants.ENV_TIMEOUT)
    if env_timeout:
        timeout = _coerce_timeout(env_timeout, Constants.ENV_TIMEOUT)
        if timeout is not None:
            values["timeout"] = timeout

    if getattr(args, "REGISTRY_URL", None):
        values["registry_url"] = args.REGISTRY_URL
    if getattr(args, "TIMEOUT", None) is not None:
        timeout = _coerce_timeout(args.TIMEOUT, "--timeout")
        if timeout is not None:
            values["timeout"] = timeout

    config = DownloadConfig(**values)
    logger.debug("Effective registry URL: %s (timeout %ss)", config.registry_url, config.timeout)
    return config

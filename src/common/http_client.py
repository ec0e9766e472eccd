"""Shared HTTP helpers used by the registry client.

Encapsulates common request/timeout error handling so callers avoid
duplicating try/except blocks. Transport failures are raised as the
caller-chosen pipeline error instead of terminating the process.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple, Type

import requests

from constants import Constants
from common.errors import RegistryError, RegistryUnavailable
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


def safe_get(
    url: str,
    *,
    context: str,
    error_cls: Type[RegistryError] = RegistryUnavailable,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "crates.io").
        error_cls: Error raised on timeouts and connection failures.
        timeout: Seconds to wait; defaults to Constants.REQUEST_TIMEOUT.
        **kwargs: Passed through to requests.get.

    Returns:
        requests.Response: The HTTP response object, whatever its status.
    """
    safe_target = safe_url(url)
    timeout = Constants.REQUEST_TIMEOUT if timeout is None else timeout
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context
                )
            )
        try:
            res = requests.get(url, timeout=timeout, **kwargs)
        except requests.Timeout as exc:
            logger.debug(
                "%s request timed out after %s seconds",
                context,
                timeout,
            )
            raise error_cls(url, f"timed out after {timeout} seconds") from exc
        except requests.RequestException as exc:  # includes ConnectionError
            logger.debug("%s connection error: %s", context, exc)
            raise error_cls(url, f"connection error: {exc}") from exc

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response received",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success" if res.ok else "non_2xx",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context
                )
            )
        return res


def get_json(
    url: str,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse JSON response with DEBUG traces.

    Args:
        url: Target URL
        context: Human-readable source tag for logs
        headers: Optional request headers
        timeout: Seconds to wait

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none). The
        parsed body is None for non-2xx responses and undecodable bodies.

    Raises:
        RegistryUnavailable: On timeouts and connection failures.
    """
    res = safe_get(url, context=context, headers=headers, timeout=timeout)
    if not res.ok:
        return res.status_code, dict(res.headers), None

    try:
        parsed = json.loads(res.text)
    except json.JSONDecodeError:
        if is_debug_enabled(logger):
            logger.debug(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="json_decode_error",
                    status_code=res.status_code,
                    target=safe_url(url)
                )
            )
        return res.status_code, dict(res.headers), None

    if is_debug_enabled(logger):
        logger.debug(
            "Parsed JSON response",
            extra=extra_context(
                event="parse",
                component="http_client",
                action="get_json",
                outcome="success",
                status_code=res.status_code,
                target=safe_url(url)
            )
        )
    return res.status_code, dict(res.headers), parsed

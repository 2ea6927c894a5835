"""Blocking HTTP helpers and their awaitable wrappers.

Requests are issued with ``requests`` and moved off the event loop with
``asyncio.to_thread``. Every awaitable call is bounded twice: by the
``requests`` timeout and by ``asyncio.wait_for`` around the worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import requests

from outfit_app.config import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
JSON_ACCEPT = "application/json"
_TIMEOUT_GRACE_SECONDS = 1.0


class InvalidURLError(ValueError):
    """Raised when the provided URL is not a valid HTTP or HTTPS URL."""


class HttpFetchError(RuntimeError):
    """Raised when a remote resource cannot be retrieved successfully."""


def is_http_url(url: Optional[str]) -> bool:
    """True for absolute ``http``/``https`` URLs with a host."""

    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _validate_url(url: str) -> None:
    if not is_http_url(url):
        raise InvalidURLError(f"Unsupported or invalid URL: {url}")


def build_headers(
    accept: str = HTML_ACCEPT,
    user_agent: str = DEFAULT_USER_AGENT,
    extra: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    headers = {
        "User-Agent": user_agent,
        "Accept": accept,
        "Accept-Language": "en-US,en;q=0.9",
    }
    if extra:
        headers.update(extra)
    return headers


def _get(
    url: str,
    params: Optional[Mapping[str, Any]],
    headers: Optional[Mapping[str, str]],
    timeout: float,
) -> requests.Response:
    _validate_url(url)
    try:
        response = requests.get(url, params=params, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        raise HttpFetchError(f"Network error fetching {url}: {exc}") from exc

    if not 200 <= response.status_code < 300:
        logger.debug(
            "Non-success status",
            extra={"url": url, "status_code": response.status_code},
        )
        raise HttpFetchError(f"Failed to fetch {url}: HTTP {response.status_code}")
    return response


def get_text(
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 20.0,
) -> str:
    """Fetch a page and return its body as text.

    Raises:
        InvalidURLError: If the URL is not HTTP/HTTPS or missing a host.
        HttpFetchError: For network issues or non-2xx responses.
    """

    response = _get(url, params, headers or build_headers(), timeout)
    return response.text


def get_json(
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 15.0,
) -> Any:
    """Fetch a JSON document; malformed bodies raise :class:`HttpFetchError`."""

    response = _get(url, params, headers or build_headers(accept=JSON_ACCEPT), timeout)
    try:
        return response.json()
    except ValueError as exc:
        raise HttpFetchError(f"Malformed JSON from {url}") from exc


def is_reachable_image(url: str, timeout: float = 10.0, user_agent: str = DEFAULT_USER_AGENT) -> bool:
    """Metadata-only check that ``url`` answers 2xx with an image content type."""

    if not is_http_url(url):
        return False
    try:
        response = requests.head(
            url,
            headers={"User-Agent": user_agent},
            timeout=timeout,
            allow_redirects=True,
        )
    except requests.RequestException:
        return False
    content_type = response.headers.get("content-type") or response.headers.get("Content-Type") or ""
    return 200 <= response.status_code < 300 and content_type.lower().startswith("image/")


async def _run_bounded(func, bound: float, *args: Any, **kwargs: Any) -> Any:
    return await asyncio.wait_for(
        asyncio.to_thread(func, *args, **kwargs), timeout=bound + _TIMEOUT_GRACE_SECONDS
    )


async def fetch_text(
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 20.0,
) -> str:
    return await _run_bounded(get_text, timeout, url, params=params, headers=headers, timeout=timeout)


async def fetch_json(
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 15.0,
) -> Any:
    return await _run_bounded(get_json, timeout, url, params=params, headers=headers, timeout=timeout)


async def validate_image_url(
    url: Optional[str], timeout: float = 10.0, user_agent: str = DEFAULT_USER_AGENT
) -> bool:
    """Awaitable image check that reports ``False`` instead of raising."""

    if not url or not is_http_url(url):
        return False
    try:
        return await _run_bounded(is_reachable_image, timeout, url, timeout=timeout, user_agent=user_agent)
    except asyncio.TimeoutError:
        logger.debug("Image validation timed out", extra={"url": url})
        return False


__all__ = [
    "HttpFetchError",
    "InvalidURLError",
    "build_headers",
    "fetch_json",
    "fetch_text",
    "get_json",
    "get_text",
    "is_http_url",
    "is_reachable_image",
    "validate_image_url",
]

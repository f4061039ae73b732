"""
Shared `requests` session for the card API and the meta site.
"""

import logging
from typing import Any, Optional

import requests

from .config import settings
from .exceptions import PageNotFoundError, ScrapeError

logger = logging.getLogger(__name__)


def build_session(user_agent: Optional[str] = None) -> requests.Session:
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": user_agent or settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/json",
        }
    )
    return session


def _get(session: requests.Session, url: str, timeout: Optional[float]) -> requests.Response:
    try:
        response = session.get(url, timeout=timeout or settings.request_timeout)
    except requests.RequestException as e:
        raise ScrapeError(url, f"request failed: {e}") from e
    if response.status_code == 404:
        raise PageNotFoundError(url, "page not found (HTTP 404)")
    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        raise ScrapeError(url, f"HTTP {response.status_code}") from e
    return response


def fetch_text(session: requests.Session, url: str, timeout: Optional[float] = None) -> str:
    """
    GET `url` and return the body as text.

    Raises:
        PageNotFoundError: On HTTP 404.
        ScrapeError: On any other transport or HTTP failure.
    """
    response = _get(session, url, timeout)
    logger.debug(f"Fetched {url} ({len(response.content)} bytes)")
    return response.text


def fetch_json(session: requests.Session, url: str, timeout: Optional[float] = None) -> Any:
    """
    GET `url` and decode the JSON body.

    Raises:
        ScrapeError: On transport, HTTP or decoding failure.
    """
    response = _get(session, url, timeout)
    try:
        return response.json()
    except ValueError as e:
        raise ScrapeError(url, f"invalid JSON: {e}") from e

"""Authenticated GET requests against Garmin Connect.

Two API surfaces are supported: the bearer-token API host used by the
mobile app, and the cookie-session proxy behind the Connect web app.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import requests

from garmin_extractor.const import (
    BEARER_HEADERS,
    BROWSER_USER_AGENT,
    CONNECT_API_URL,
    CONNECT_HOST,
    CONNECT_PROXY_PREFIX,
    CONNECT_PROXY_URL,
    PROXY_HEADERS,
    REQUEST_TIMEOUT_S,
)
from garmin_extractor.exceptions import GarminAPIError

logger = logging.getLogger(__name__)


def _new_http_session() -> requests.Session:
    http = requests.Session()
    http.headers["User-Agent"] = BROWSER_USER_AGENT
    return http


@dataclass
class GarminSession:
    """Mutable authentication state for one process run.

    Only the single sync thread touches it; add a lock before sharing a
    session across threads, since re-authentication rewrites the cookie
    jar and the token together.
    """

    http: requests.Session = field(default_factory=_new_http_session)
    oauth2_token: Optional[str] = None
    display_name: Optional[str] = None

    @property
    def cookies(self) -> requests.cookies.RequestsCookieJar:
        return self.http.cookies


class RequestExecutor:
    """Issue GETs with one re-authentication retry on HTTP 401."""

    def __init__(
        self,
        session: GarminSession,
        reauthenticate: Optional[Callable[[], bool]] = None,
        timeout: float = REQUEST_TIMEOUT_S,
    ) -> None:
        self._session = session
        self._reauthenticate = reauthenticate
        self._timeout = timeout

    def build_request(self, path: str) -> tuple[str, dict[str, str]]:
        """Return ``(url, headers)`` for *path* under the current auth mode."""
        token = self._session.oauth2_token
        if token is not None:
            url = path if path.startswith("http") else CONNECT_API_URL + path
            url = url.replace(CONNECT_PROXY_URL, CONNECT_API_URL)
            headers = {**BEARER_HEADERS, "Authorization": f"Bearer {token.strip()}"}
            return url, headers

        if path.startswith("http"):
            url = path
        else:
            prefix = "" if path.startswith(CONNECT_PROXY_PREFIX) else CONNECT_PROXY_PREFIX
            separator = "" if path.startswith("/") else "/"
            url = f"{CONNECT_HOST}{prefix}{separator}{path}"
        return url, dict(PROXY_HEADERS)

    def execute(self, path: str, allow_retry: bool = True) -> str:
        """GET *path* and return the response body.

        Raises ``GarminAPIError`` carrying status code and reason.
        """
        url, headers = self.build_request(path)
        try:
            response = self._session.http.get(url, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.error("Error executing request to %s: %s", url, exc)
            raise GarminAPIError(f"Request to {url} failed: {exc}") from exc

        status = response.status_code
        if status < 400:
            return response.text

        if status == 401 and allow_retry and self._reauthenticate is not None:
            logger.info("Request to %s failed with 401, attempting token refresh...", url)
            if self._reauthenticate():
                return self.execute(path, allow_retry=False)

        logger.error("Error executing request to %s: %d %s", url, status, response.reason)
        raise GarminAPIError(
            f"Request to {url} failed: {status} {response.reason}",
            status_code=status,
            reason=response.reason,
        )

    def get_json(self, path: str, allow_retry: bool = True) -> Any:
        body = self.execute(path, allow_retry=allow_retry)
        if not body or not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError as exc:
            raise GarminAPIError(f"Response from {path} is not JSON: {exc}") from exc

"""Garmin Connect session management.

Authentication is an ordered chain of strategies, tried until one
resolves the account's display name:

1. manual garth token / bundle (``GARMIN_GARTH_TOKEN``)
2. manual session cookie (``GARMIN_SESSION_COOKIE``)
3. scripted refresh via the external refresh routine
4. interactive SSO login with username and password

Only the last one can fail hard, with ``InvalidCredentials`` or
``LoginBlocked``.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any, Callable, Optional

import requests

from garmin_extractor.config import GarminSettings
from garmin_extractor.const import (
    BROWSER_USER_AGENT,
    CONNECT_COOKIE_DOMAIN,
    CONNECT_HOST,
    CONNECT_URL,
    JWT_PREFIX,
    REQUEST_TIMEOUT_S,
    SESSION_COOKIE_NAMES,
    SOCIAL_PROFILE_PATH,
    SSO_COOKIE_DOMAIN,
    SSO_COOKIE_PREFIX,
    SSO_INVALID_CREDENTIALS_MARKER,
    SSO_PARAMS,
    SSO_SIGNIN_URL,
    SSO_TICKET_PATTERN,
    TICKET_HEADERS,
    USER_SETTINGS_PATH,
)
from garmin_extractor.exceptions import (
    GarminAPIError,
    GarminAuthError,
    InvalidCredentials,
    LoginBlocked,
    ParseFallbackExhausted,
)
from garmin_extractor.executor import GarminSession, RequestExecutor
from garmin_extractor.refresher import (
    CredentialRefresher,
    ScriptCredentialRefresher,
    update_env_file,
)

logger = logging.getLogger(__name__)

AuthStrategy = Callable[[], bool]

_TICKET_RE = re.compile(SSO_TICKET_PATTERN)


def extract_display_name(data: Any) -> str:
    """Pull the display name out of a profile or user-settings response."""
    if isinstance(data, dict):
        user_data = data.get("userData")
        candidates = [data.get("displayName"), data.get("userName")]
        if isinstance(user_data, dict):
            candidates += [user_data.get("displayName"), user_data.get("userName")]
        for candidate in candidates:
            if candidate is not None and str(candidate):
                return str(candidate)
    raise ParseFallbackExhausted("No display name in profile response")


def decode_bundle(raw: str) -> Any:
    """Base64-decode and JSON-parse a garth bundle.

    The standard alphabet is tried first, then the URL-safe one.  Missing
    padding is tolerated.
    """
    padded = raw + "=" * (-len(raw) % 4)
    try:
        decoded = base64.b64decode(padded, validate=True)
    except binascii.Error:
        decoded = base64.urlsafe_b64decode(padded)
    return json.loads(decoded.decode("utf-8"))


def build_sso_url() -> str:
    return requests.Request("GET", SSO_SIGNIN_URL, params=SSO_PARAMS).prepare().url


class SessionManager:
    """Owns the Garmin session and runs the authentication chain."""

    def __init__(
        self,
        settings: GarminSettings,
        session: GarminSession | None = None,
        refresher: CredentialRefresher | None = None,
    ) -> None:
        self.settings = settings
        self.session = session or GarminSession()
        if refresher is None and settings.token_script and settings.python_path:
            refresher = ScriptCredentialRefresher(
                script=settings.token_script,
                python_path=settings.python_path,
                username=settings.username,
                password=settings.password,
                timeout_s=settings.refresh_timeout_s,
            )
        self.refresher = refresher
        self.executor = RequestExecutor(
            self.session,
            reauthenticate=self._reauthenticate if refresher is not None else None,
        )
        self._refreshing = False

    @property
    def display_name(self) -> Optional[str]:
        return self.session.display_name

    # ------------------------------------------------------------------
    # Strategy chain
    # ------------------------------------------------------------------

    def strategies(self) -> list[tuple[str, AuthStrategy]]:
        return [
            ("manual garth token", self._try_manual_token),
            ("manual session cookie", self._try_session_cookie),
            ("scripted token refresh", self._try_scripted_refresh),
            ("interactive SSO login", self.login_interactive),
        ]

    def establish(self) -> Optional[str]:
        """Authenticate and return the display name.

        Returns None when a session was established but no display name
        could be resolved; identity-scoped endpoints are then skipped.
        """
        for name, strategy in self.strategies():
            if strategy():
                logger.info("Garmin session established via %s.", name)
                return self.display_name
            logger.debug("Garmin auth strategy '%s' did not resolve a profile", name)
        logger.warning("Garmin session has no display name; some metrics will be skipped")
        return self.display_name

    def _try_manual_token(self) -> bool:
        if not self.settings.garth_token:
            return False
        return self.apply_manual_token(self.settings.garth_token)

    def _try_session_cookie(self) -> bool:
        raw = self.settings.session_cookie
        if not raw:
            return False

        logger.info("Applying manual Garmin cookies...")
        if "=" in raw:
            for part in raw.split(";"):
                name, sep, value = part.strip().partition("=")
                if sep and name.strip():
                    self.add_cookie(name.strip(), value.strip())
                    logger.info("Applied cookie: %s", name.strip())
        else:
            for name in SESSION_COOKIE_NAMES:
                self.add_cookie(name, raw)
            logger.info("Applied session cookie (tried both SESSION and session).")
        return self.fetch_display_name() is not None

    def _try_scripted_refresh(self) -> bool:
        if self.refresher is None or self.display_name is not None:
            return False
        logger.info("No valid profile found yet. Attempting token refresh via script...")
        return self.refresh_garth_token()

    # ------------------------------------------------------------------
    # Credential bundles
    # ------------------------------------------------------------------

    def apply_manual_token(self, token: str | None) -> bool:
        """Apply a bare JWT or a base64 garth bundle as the bearer token.

        Returns True only if the display name resolves with it.  A token
        that does not resolve is dropped again.
        """
        if not token or not token.strip():
            return False
        raw = token.strip()

        if raw.startswith(JWT_PREFIX) and "." in raw:
            logger.info("Applying direct OAuth2 JWT...")
            if self._apply_bearer(raw):
                return True

        try:
            payload = decode_bundle(raw)
        except (ValueError, UnicodeDecodeError) as exc:
            if not raw.startswith(JWT_PREFIX):
                logger.error("Error parsing Garth bundle: %s", exc)
            return False

        if isinstance(payload, list):
            oauth2 = payload[1] if len(payload) >= 2 else None
            if isinstance(oauth2, dict) and "access_token" in oauth2:
                logger.info("Applying OAuth2 token from Garth bundle...")
                cookies = payload[2] if len(payload) >= 3 else None
                return self._apply_bearer(str(oauth2["access_token"]).strip(), cookies)
        elif isinstance(payload, dict) and "access_token" in payload:
            logger.info("Applying OAuth2 token from JSON object...")
            return self._apply_bearer(str(payload["access_token"]).strip())

        logger.warning("Garth bundle has no usable access_token; ignoring it")
        return False

    def _apply_bearer(self, token: str, cookie_domains: Any = None) -> bool:
        self.session.oauth2_token = token
        self.session.cookies.clear()
        if cookie_domains is not None:
            self.apply_garth_cookies(cookie_domains)
        if self.fetch_display_name() is not None:
            return True
        self.session.oauth2_token = None
        return False

    def apply_garth_cookies(self, domains: Any) -> None:
        """Replay ``{domain: {cookie_name: {"value": ...}}}`` into the jar."""
        if not isinstance(domains, dict):
            return
        for domain, cookies in domains.items():
            if not isinstance(cookies, dict):
                continue
            cookie_domain = domain if domain.startswith(".") else f".{domain}"
            for name, data in cookies.items():
                if isinstance(data, dict) and "value" in data:
                    self.add_cookie(name, str(data["value"]), cookie_domain)

    def add_cookie(self, name: str, value: str, domain: str | None = None) -> None:
        if domain is None:
            domain = (
                SSO_COOKIE_DOMAIN if name.startswith(SSO_COOKIE_PREFIX) else CONNECT_COOKIE_DOMAIN
            )
        self.session.cookies.set(name, value, domain=domain, path="/")

    # ------------------------------------------------------------------
    # Scripted refresh
    # ------------------------------------------------------------------

    def refresh_garth_token(self) -> bool:
        """Mint a fresh token via the refresher, apply it and persist it."""
        if self.refresher is None:
            logger.warning("Token refresh script or python path not configured.")
            return False

        logger.info("Refreshing Garmin token with credentials...")
        result = self.refresher.refresh(with_credentials=True)
        if result is None:
            logger.info("Credentials-based refresh failed, trying to resume existing session...")
            result = self.refresher.refresh(with_credentials=False)

        if result is not None and self.apply_manual_token(result):
            update_env_file(self.settings.env_file, self.settings.token_env_key, result)
            logger.info("Successfully applied refreshed token/bundle.")
            return True
        return False

    def _reauthenticate(self) -> bool:
        # Identity lookups during a refresh must not trigger another refresh
        if self._refreshing:
            return False
        self._refreshing = True
        try:
            return self.refresh_garth_token()
        finally:
            self._refreshing = False

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def fetch_display_name(self) -> Optional[str]:
        """Resolve the display name; None (with a warning) if unavailable."""
        try:
            try:
                data = self.executor.get_json(SOCIAL_PROFILE_PATH)
            except GarminAPIError:
                logger.info("Social profile failed, trying user-settings fallback...")
                data = self.executor.get_json(USER_SETTINGS_PATH)
            name = extract_display_name(data)
        except (GarminAPIError, ParseFallbackExhausted) as exc:
            logger.warning("Could not fetch display name: %s", exc)
            return None

        self.session.display_name = name
        return name

    # ------------------------------------------------------------------
    # Interactive SSO login
    # ------------------------------------------------------------------

    def login_interactive(self) -> bool:
        """Full SSO sign-in with username/password.

        Raises ``InvalidCredentials`` when Garmin rejects the password and
        ``LoginBlocked`` when no service ticket comes back.
        """
        if not self.settings.is_configured:
            raise InvalidCredentials("Garmin username/password not configured")

        logger.info("Logging in to Garmin Connect...")
        http = self.session.http
        try:
            self._get(CONNECT_URL)
            sso_url = build_sso_url()
            self._get(sso_url)

            response = http.post(
                sso_url,
                data={
                    "username": self.settings.username,
                    "password": self.settings.password,
                    "embed": "true",
                    "_eventId": "submit",
                },
                headers={"Referer": sso_url, "User-Agent": BROWSER_USER_AGENT},
                timeout=REQUEST_TIMEOUT_S,
            )
            response.raise_for_status()
            ticket_url = self.extract_ticket_url(response.text)
            logger.info("Login successful, ticket URL received.")

            logger.info("Exchanging ticket for session...")
            self._get(ticket_url, headers=TICKET_HEADERS)
            self._get(f"{CONNECT_URL}/")
        except requests.RequestException as exc:
            raise GarminAuthError(f"Login failed: {exc}") from exc

        logger.info("Garmin web session established.")
        return self.fetch_display_name() is not None

    @staticmethod
    def extract_ticket_url(html: str) -> str:
        match = _TICKET_RE.search(html)
        if match is None:
            if SSO_INVALID_CREDENTIALS_MARKER in html:
                raise InvalidCredentials(
                    "Garmin Login Failed: Invalid user name or password."
                )
            raise LoginBlocked(
                "Garmin Login Failed: Could not find ticket in response. "
                "Possible CAPTCHA or security block."
            )
        ticket_url = match.group(1).replace("\\/", "/")
        if not ticket_url.startswith("http"):
            separator = "" if ticket_url.startswith("/") else "/"
            ticket_url = f"{CONNECT_HOST}{separator}{ticket_url}"
        return ticket_url

    def _get(self, url: str, headers: dict[str, str] | None = None) -> requests.Response:
        response = self.session.http.get(url, headers=headers, timeout=REQUEST_TIMEOUT_S)
        response.raise_for_status()
        return response

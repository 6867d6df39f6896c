"""Standalone Garmin token refresh routine.

Run as ``python path/to/garth_refresh.py``.  Credentials come from
``GARMIN_EMAIL``/``EMAIL`` and ``GARMIN_PASSWORD``/``PASSWORD``; with none
set, only the saved garth token store is resumed.  On success two marker
lines are printed::

    Garth Bundle: <base64 garth dump>
    OAuth2 Access Token: <jwt>

The refresh bridge scrapes these from stdout.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from garminconnect import Garmin

from garmin_extractor.const import GARTH_BUNDLE_MARKER, OAUTH2_TOKEN_MARKER
from garmin_extractor.exceptions import GarminAuthError

logger = logging.getLogger(__name__)

_DEFAULT_TOKEN_DIR = Path(os.environ.get("GARMINTOKENS", "~/.garminconnect")).expanduser()


def _first_env(*keys: str) -> str | None:
    for key in keys:
        value = os.environ.get(key)
        if value:
            return value
    return None


def login(
    email: str | None,
    password: str | None,
    token_dir: Path | str = _DEFAULT_TOKEN_DIR,
) -> Garmin:
    """Return an authenticated garminconnect session.

    Two-phase login:
    1. If saved tokens exist, try token-based resume (fast, no MFA).
    2. If that fails and credentials are available, do a fresh SSO login.

    MFA cannot be answered from a subprocess, so an MFA challenge is a
    failure here.
    """
    token_dir = Path(token_dir)
    tokenstore = str(token_dir)

    if (token_dir / "oauth1_token.json").exists():
        try:
            client = Garmin()
            client.login(tokenstore=tokenstore)
            logger.info("Resumed session from saved tokens at %s", token_dir)
            return client
        except Exception:
            logger.info("Token resume failed, trying fresh SSO login")

    if not email or not password:
        raise GarminAuthError("No usable token store and no credentials supplied")

    try:
        client = Garmin(email=email, password=password, return_on_mfa=True)
        result = client.login()
    except Exception as exc:
        raise GarminAuthError(f"Login failed: {exc}") from exc

    if isinstance(result, tuple) and result and result[0] == "needs_mfa":
        raise GarminAuthError("MFA verification required; log in interactively once")

    token_dir.mkdir(parents=True, exist_ok=True)
    client.garth.dump(tokenstore)
    logger.info("Logged in via SSO and saved tokens to %s", token_dir)
    return client


def marker_lines(client: Garmin) -> list[str]:
    garth = client.garth
    lines = [f"{GARTH_BUNDLE_MARKER} {garth.dumps()}"]
    access_token = getattr(garth.oauth2_token, "access_token", None)
    if access_token:
        lines.append(f"{OAUTH2_TOKEN_MARKER} {access_token}")
    return lines


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    email = _first_env("GARMIN_EMAIL", "EMAIL")
    password = _first_env("GARMIN_PASSWORD", "PASSWORD")
    try:
        client = login(email, password)
    except GarminAuthError as exc:
        logger.error("Token refresh failed: %s", exc)
        return 1

    for line in marker_lines(client):
        print(line, flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())

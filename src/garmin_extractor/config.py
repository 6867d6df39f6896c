"""Environment-variable-based configuration for the Garmin extractor.

Values from a local ``.env`` file win over the process environment, so a
refreshed ``GARMIN_GARTH_TOKEN`` written back by the refresh bridge is
picked up on the next run.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

_DEFAULT_ENV_FILE = Path(".env")
_DEFAULT_BUCKET_MINUTES = 5
_DEFAULT_REFRESH_TIMEOUT_S = 120.0
TOKEN_ENV_KEY = "GARMIN_GARTH_TOKEN"


@dataclass(frozen=True)
class GarminSettings:
    """Credentials and tuning knobs for one Garmin account."""

    username: str | None = None
    password: str | None = None
    session_cookie: str | None = None
    garth_token: str | None = None
    token_script: str | None = None
    python_path: str | None = sys.executable
    env_file: Path = _DEFAULT_ENV_FILE
    bucket_minutes: int = _DEFAULT_BUCKET_MINUTES
    refresh_timeout_s: float = _DEFAULT_REFRESH_TIMEOUT_S
    token_env_key: str = TOKEN_ENV_KEY

    @property
    def is_configured(self) -> bool:
        return _has_text(self.username) and _has_text(self.password)

    @classmethod
    def from_env(cls, env_file: Path | str = _DEFAULT_ENV_FILE) -> "GarminSettings":
        """Build settings from ``env_file`` overlaid on ``os.environ``."""
        env_file = Path(env_file)
        file_values = dotenv_values(env_file) if env_file.exists() else {}

        def get(key: str) -> str | None:
            value = file_values.get(key)
            if value is None:
                value = os.environ.get(key)
            return value

        session_cookie = get("GARMIN_SESSION_COOKIE")
        if session_cookie is not None:
            session_cookie = session_cookie.strip()

        garth_token = get(TOKEN_ENV_KEY)
        if garth_token is not None:
            garth_token = re.sub(r"\s", "", garth_token)

        return cls(
            username=get("GARMIN_USERNAME"),
            password=get("GARMIN_PASSWORD"),
            session_cookie=session_cookie or None,
            garth_token=garth_token or None,
            token_script=get("GARMIN_TOKEN_SCRIPT") or None,
            python_path=get("GARMIN_PYTHON_PATH") or sys.executable,
            env_file=env_file,
            bucket_minutes=_bucket_minutes(get("GARMIN_BUCKET_MINUTES")),
            refresh_timeout_s=float(
                get("GARMIN_REFRESH_TIMEOUT") or _DEFAULT_REFRESH_TIMEOUT_S
            ),
        )


def _has_text(value: str | None) -> bool:
    return value is not None and bool(value.strip())


def _bucket_minutes(raw: str | None) -> int:
    if not raw or not raw.strip():
        return _DEFAULT_BUCKET_MINUTES
    minutes = int(raw)
    if minutes < 1:
        logger.warning(
            "GARMIN_BUCKET_MINUTES=%d is not positive; using %d",
            minutes,
            _DEFAULT_BUCKET_MINUTES,
        )
        return _DEFAULT_BUCKET_MINUTES
    return minutes

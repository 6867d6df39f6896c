"""Credential refresh bridge.

Garmin has no public login API, so fresh tokens come from an external
routine (``garth_refresh.py`` by default) run as a subprocess.  The
routine reports its result on marker lines; this module reads them back
and persists the winning credential to the ``.env`` file.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Iterable, Optional, Protocol

from garmin_extractor.const import (
    CREDENTIAL_ENV_KEYS,
    GARTH_BUNDLE_MARKER,
    OAUTH2_TOKEN_MARKER,
)

logger = logging.getLogger(__name__)


class CredentialRefresher(Protocol):
    """Anything that can mint a new credential bundle."""

    def refresh(self, with_credentials: bool) -> Optional[str]:
        """Return a raw bundle/token, or None when nothing usable came back."""
        ...


def parse_refresh_output(lines: Iterable[str]) -> Optional[str]:
    """Pick the credential out of the routine's output.

    A garth bundle beats a bare OAuth2 token; later lines overwrite
    earlier ones for the same marker.
    """
    bundle: Optional[str] = None
    token: Optional[str] = None
    for line in lines:
        if GARTH_BUNDLE_MARKER in line:
            bundle = line.split(GARTH_BUNDLE_MARKER, 1)[1].strip()
        elif OAUTH2_TOKEN_MARKER in line:
            token = line.split(OAUTH2_TOKEN_MARKER, 1)[1].strip()
    return bundle or token or None


class ScriptCredentialRefresher:
    """Run ``<python_path> <script>`` and scrape its merged stdout/stderr.

    With credentials, the account email/password are injected into the
    child environment; without, they are scrubbed so the routine resumes
    from its own token store.  The exit code is ignored.
    """

    def __init__(
        self,
        script: str | Path,
        python_path: str,
        username: str | None = None,
        password: str | None = None,
        timeout_s: float = 120.0,
    ) -> None:
        self.script = str(script)
        self.python_path = python_path
        self._username = username
        self._password = password
        self.timeout_s = timeout_s

    def _build_env(self, with_credentials: bool) -> dict[str, str]:
        env = dict(os.environ)
        credentials = {"username": self._username, "password": self._password}
        for field_name, keys in CREDENTIAL_ENV_KEYS.items():
            for key in keys:
                env.pop(key, None)
                if with_credentials and credentials[field_name] is not None:
                    env[key] = credentials[field_name]
        return env

    def refresh(self, with_credentials: bool) -> Optional[str]:
        mode = "credentials" if with_credentials else "resume"
        try:
            completed = subprocess.run(
                [self.python_path, self.script],
                env=self._build_env(with_credentials),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout_s,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.error(
                "Token refresh script (%s) timed out after %.0fs", mode, self.timeout_s
            )
            return None
        except (OSError, subprocess.SubprocessError) as exc:
            logger.error("Error running token refresh script: %s", exc)
            return None

        result = parse_refresh_output((completed.stdout or "").splitlines())
        if result is None:
            logger.info("Token refresh script (%s) printed no token", mode)
        return result


def update_env_file(env_file: Path | str, key: str, value: str) -> bool:
    """Rewrite ``key=...`` in *env_file*, or append it.

    Every other line is written back untouched, in order.  A missing file
    is left alone.
    """
    env_path = Path(env_file)
    if not env_path.exists():
        return False

    try:
        with env_path.open("r", encoding="utf-8", newline="") as fh:
            lines = fh.readlines()

        prefix = f"{key}="
        found = False
        for i, line in enumerate(lines):
            if line.strip().startswith(prefix):
                ending = line[len(line.rstrip("\r\n")):]
                lines[i] = f"{prefix}{value}{ending}"
                found = True
        if not found:
            if lines and not lines[-1].endswith(("\n", "\r")):
                lines[-1] += "\n"
            lines.append(f"{prefix}{value}\n")

        with env_path.open("w", encoding="utf-8", newline="") as fh:
            fh.writelines(lines)
    except OSError as exc:
        logger.warning("Could not update %s: %s", env_path, exc)
        return False

    logger.info("Updated %s with new %s.", env_path, key)
    return True

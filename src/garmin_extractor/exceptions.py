"""Custom exception hierarchy for the Garmin Connect extractor."""

from __future__ import annotations


class GarminClientError(Exception):
    """Base exception for all garmin_extractor errors."""


class GarminAuthError(GarminClientError):
    """Authentication failed (bad credentials, blocked login, etc.)."""


class InvalidCredentials(GarminAuthError):
    """Garmin SSO rejected the username/password pair."""


class LoginBlocked(GarminAuthError):
    """SSO returned no service ticket (CAPTCHA or automation block).

    A manual garth token or session cookie usually gets around this.
    """


class GarminAPIError(GarminClientError):
    """A Garmin Connect API call returned an error response."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


TransientHttpError = GarminAPIError


class ParseFallbackExhausted(GarminClientError):
    """None of the known response shapes carried the requested value."""

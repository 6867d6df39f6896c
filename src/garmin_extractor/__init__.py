"""Garmin Connect wellness extractor — all Garmin network I/O lives here."""

from garmin_extractor.auth import SessionManager
from garmin_extractor.client import GarminClient
from garmin_extractor.config import GarminSettings
from garmin_extractor.exceptions import (
    GarminAPIError,
    GarminAuthError,
    GarminClientError,
    InvalidCredentials,
    LoginBlocked,
    ParseFallbackExhausted,
    TransientHttpError,
)
from garmin_extractor.models import DailyMetrics, WellnessSample
from garmin_extractor.refresher import CredentialRefresher, ScriptCredentialRefresher

__all__ = [
    "CredentialRefresher",
    "DailyMetrics",
    "GarminAPIError",
    "GarminAuthError",
    "GarminClient",
    "GarminClientError",
    "GarminSettings",
    "InvalidCredentials",
    "LoginBlocked",
    "ParseFallbackExhausted",
    "ScriptCredentialRefresher",
    "SessionManager",
    "TransientHttpError",
    "WellnessSample",
]

"""Fixtures with realistic Garmin API response dicts for testing."""

from __future__ import annotations

import base64
import json
from unittest.mock import MagicMock

import pytest

from garmin_extractor.config import GarminSettings

# 2025-01-15T00:00:00Z
DAY_START_MS = 1736899200000


def _make_response(status: int = 200, body: object = None, reason: str = "OK") -> MagicMock:
    """Build a stand-in for ``requests.Response``."""
    response = MagicMock()
    response.status_code = status
    response.reason = reason
    if isinstance(body, str):
        response.text = body
    else:
        response.text = json.dumps(body) if body is not None else ""
    return response


def _encode_bundle(payload: object) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def encode_bundle():
    return _encode_bundle


@pytest.fixture
def day_start_ms() -> int:
    return DAY_START_MS


@pytest.fixture
def settings(tmp_path) -> GarminSettings:
    return GarminSettings(
        username="runner@example.com",
        password="hunter2",
        env_file=tmp_path / ".env",
    )


@pytest.fixture
def garmin_profile() -> dict:
    """Realistic socialProfile response."""
    return {
        "id": 12345678,
        "profileId": 87654321,
        "displayName": "a1b2c3d4-e5f6",
        "fullName": "Test Runner",
        "userName": "runner@example.com",
        "profileImageUrlMedium": None,
    }


@pytest.fixture
def garmin_body_battery_report() -> list:
    """bodyBattery/reports/daily with explicit min/max."""
    return [
        {
            "date": "2025-01-15",
            "charged": 62,
            "drained": 58,
            "min": 21,
            "max": 88,
            "bodyBatteryValuesArray": [
                [1736899200000, 45],
                [1736913600000, 88],
                [1736956800000, 21],
            ],
        }
    ]


@pytest.fixture
def garmin_daily_summary() -> dict:
    """usersummary daily response."""
    return {
        "calendarDate": "2025-01-15",
        "totalSteps": 12345,
        "restingHeartRate": 52,
        "minHeartRate": 48,
        "maxHeartRate": 171,
        "vo2Max": 51.0,
        "wellnessWeight": None,
        "averageStressLevel": 31,
    }


@pytest.fixture
def garmin_weight_range() -> dict:
    return {
        "startDate": "2025-01-15",
        "endDate": "2025-01-15",
        "weightUnitEntries": [
            {"samplePk": 1, "date": 1736930000000, "weight": 72450.0, "bmi": None},
        ],
    }


@pytest.fixture
def garmin_sleep_data() -> dict:
    """dailySleepData response (score only under sleepScores)."""
    return {
        "dailySleepDTO": {
            "calendarDate": "2025-01-15",
            "sleepTimeSeconds": 27000,
            "deepSleepSeconds": 5400,
            "lightSleepSeconds": 14400,
            "remSleepSeconds": 5400,
            "awakeSleepSeconds": 1800,
            "sleepScores": {
                "overall": {"value": 82, "qualifierKey": "GOOD"},
                "totalDuration": {"value": 75, "qualifierKey": "GOOD"},
            },
        }
    }


@pytest.fixture
def garmin_hrv_data() -> dict:
    """hrv-service response."""
    return {
        "userProfilePk": 87654321,
        "hrvSummary": {
            "calendarDate": "2025-01-15",
            "weeklyAvg": 52,
            "lastNightAvg": 48,
            "lastNight5MinHigh": 65,
            "status": "BALANCED",
        },
        "hrvReadings": [
            {"readingTimeGMT": "2025-01-15T02:00:00.0", "hrvValue": 45},
            {"readingTimeGMT": "2025-01-15T03:00:00.0", "hrvValue": 50},
        ],
    }


@pytest.fixture
def garmin_stress_data() -> dict:
    """dailyStress response with epoch-ms pairs (-1 = no reading)."""
    return {
        "calendarDate": "2025-01-15",
        "startTimestampGMT": "2025-01-15T00:00:00.0",
        "maxStressLevel": 78,
        "avgStressLevel": 31,
        "stressValueDescriptorsDTOList": [
            {"key": "timestamp", "index": 0},
            {"key": "stressLevel", "index": 1},
        ],
        "stressValuesArray": [
            [DAY_START_MS, 30],
            [DAY_START_MS + 180_000, -1],
            [DAY_START_MS + 300_000, 60],
        ],
    }


@pytest.fixture
def garmin_heart_rate_data() -> dict:
    """dailyHeartRate response."""
    return {
        "calendarDate": "2025-01-15",
        "restingHeartRate": 52,
        "heartRateValuesArray": [
            [DAY_START_MS, 50],
            [DAY_START_MS + 120_000, None],
            [DAY_START_MS + 300_000, 70],
        ],
    }

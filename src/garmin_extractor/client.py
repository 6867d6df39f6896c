"""High-level Garmin Connect client facade.

Fetches run strictly one request at a time, day by day; Garmin tends to
invalidate sessions that burst requests.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta, tzinfo
from functools import partial
from pathlib import Path
from typing import Any, Callable, Optional

from garmin_extractor.auth import SessionManager
from garmin_extractor.config import GarminSettings
from garmin_extractor.const import (
    BODY_BATTERY_PATH,
    DAILY_SUMMARY_PATH,
    HEART_RATE_PATH,
    HRV_PATH,
    RESTING_HR_METRIC_ID,
    RESTING_HR_STATS_PATH,
    SLEEP_PATH,
    STRESS_PATH,
    WEIGHT_RANGE_PATH,
)
from garmin_extractor.exceptions import GarminClientError
from garmin_extractor.metrics_mapper import (
    extract_body_battery,
    extract_daily_summary,
    extract_hrv,
    extract_resting_hr_stats,
    extract_sleep,
    extract_weight_range,
)
from garmin_extractor.models import DailyMetrics, WellnessSample
from garmin_extractor.refresher import CredentialRefresher
from garmin_extractor.series import (
    bucket_wellness_samples,
    parse_heart_rate_series,
    parse_stress_series,
)

logger = logging.getLogger(__name__)

# Raised by parsers on payload shapes no fallback anticipated
_PARSE_ERRORS = (ArithmeticError, AttributeError, LookupError, OSError, TypeError, ValueError)


class GarminClient:
    """Facade for Garmin Connect wellness metrics and stress/HR samples."""

    def __init__(
        self,
        settings: GarminSettings,
        session_manager: SessionManager | None = None,
        refresher: CredentialRefresher | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.settings = settings
        self._auth = session_manager or SessionManager(settings, refresher=refresher)
        self._tz = tz

    @classmethod
    def from_env(cls, env_file: Path | str = ".env") -> "GarminClient":
        return cls(GarminSettings.from_env(env_file))

    @property
    def display_name(self) -> Optional[str]:
        return self._auth.display_name

    def establish(self) -> Optional[str]:
        """Authenticate; returns the display name (None if unresolved)."""
        return self._auth.establish()

    # ------------------------------------------------------------------
    # Daily metrics
    # ------------------------------------------------------------------

    def get_metrics_for_last_days(
        self, days: int, end: date | None = None
    ) -> list[DailyMetrics]:
        """One ``DailyMetrics`` per day, newest first, ending at *end* (today)."""
        end = end or date.today()
        result: list[DailyMetrics] = []
        for offset in range(days):
            day = end - timedelta(days=offset)
            logger.info("Fetching Garmin metrics for %s...", day)
            result.append(self.get_metrics_for_date(day))
        return result

    def get_metrics_for_date(self, day: date) -> DailyMetrics:
        """Fetch every daily metric for *day*.

        Each endpoint is independent: a failure leaves only its own fields
        unset.
        """
        date_str = day.isoformat()
        metrics = DailyMetrics(date=date_str)
        name = self.display_name

        metrics.body_battery_lowest, metrics.body_battery_highest = self._fetch_parsed(
            "body battery",
            f"{BODY_BATTERY_PATH}?startDate={date_str}&endDate={date_str}",
            extract_body_battery,
            (None, None),
        )

        if name is not None:
            summary = self._fetch_parsed(
                "daily summary",
                DAILY_SUMMARY_PATH.format(display_name=name) + f"?calendarDate={date_str}",
                extract_daily_summary,
                {},
            )
            metrics.resting_heart_rate = summary.get("resting_heart_rate")
            metrics.vo2_max = summary.get("vo2_max")
            metrics.weight = summary.get("weight")

        if metrics.weight is None:
            metrics.weight = self._fetch_parsed(
                "weight",
                f"{WEIGHT_RANGE_PATH}?startDate={date_str}&endDate={date_str}",
                extract_weight_range,
            )

        if name is not None:
            metrics.sleep_score, metrics.sleep_duration_hours = self._fetch_parsed(
                "sleep",
                SLEEP_PATH.format(display_name=name)
                + f"?date={date_str}&nonSleepBufferMinutes=60",
                extract_sleep,
                (None, None),
            )

        if name is not None and not metrics.resting_heart_rate:
            fallback = self._fetch_parsed(
                "resting HR",
                RESTING_HR_STATS_PATH.format(display_name=name)
                + f"?fromDate={date_str}&untilDate={date_str}&metricId={RESTING_HR_METRIC_ID}",
                extract_resting_hr_stats,
            )
            if fallback is not None:
                metrics.resting_heart_rate = fallback

        metrics.hrv = self._fetch_parsed("HRV", HRV_PATH.format(date=date_str), extract_hrv)
        return metrics

    # ------------------------------------------------------------------
    # Wellness samples
    # ------------------------------------------------------------------

    def get_wellness_samples_for_last_days(
        self, days: int, end: date | None = None
    ) -> list[WellnessSample]:
        end = end or date.today()
        result: list[WellnessSample] = []
        for offset in range(days):
            day = end - timedelta(days=offset)
            logger.info("Fetching Garmin stress/HR samples for %s...", day)
            result.extend(self.get_wellness_samples_for_date(day))
        return result

    def get_wellness_samples_for_date(self, day: date) -> list[WellnessSample]:
        """Stress and heart-rate series for *day*, averaged into buckets."""
        date_str = day.isoformat()
        stress = self._fetch_parsed(
            "stress series",
            STRESS_PATH.format(date=date_str),
            partial(parse_stress_series, day=day, tz=self._tz),
            {},
        )

        heart_rate: dict[int, int] = {}
        name = self.display_name
        if name is not None:
            heart_rate = self._fetch_parsed(
                "heart rate series",
                HEART_RATE_PATH.format(display_name=name) + f"?date={date_str}",
                partial(parse_heart_rate_series, day=day, tz=self._tz),
                {},
            )
        else:
            logger.debug("Skipping heart rate series for %s: display name missing.", date_str)

        try:
            return list(
                bucket_wellness_samples(
                    stress, heart_rate, self.settings.bucket_minutes, tz=self._tz
                )
            )
        except _PARSE_ERRORS as exc:
            logger.warning("Failed to bucket stress/HR series for %s: %s", date_str, exc)
            return []

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fetch(self, label: str, path: str) -> Any:
        """GET *path* as JSON; log and return None on any client error."""
        try:
            return self._auth.executor.get_json(path)
        except GarminClientError as exc:
            logger.warning("Failed to fetch %s (%s): %s", label, path, exc)
            return None

    def _fetch_parsed(
        self, label: str, path: str, parser: Callable[[Any], Any], default: Any = None
    ) -> Any:
        """Fetch *path* and run *parser* on it; *default* if either step fails."""
        data = self._fetch(label, path)
        try:
            return parser(data)
        except _PARSE_ERRORS as exc:
            logger.warning("Failed to parse %s (%s): %s", label, path, exc)
            return default

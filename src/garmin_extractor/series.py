"""Series normalizer: raw Garmin stress / heart-rate arrays to fixed buckets.

Garmin encodes sample timestamps three ways depending on the endpoint
version: epoch milliseconds, epoch seconds, or an offset from the start
of the day.  Every entry is mapped to absolute epoch milliseconds, then
averaged into fixed-width buckets.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo
from typing import Any, Iterator, Optional, Sequence

from garmin_extractor.json_tree import (
    find_array,
    find_first_array,
    is_number,
    read_first_int,
    read_first_number,
    read_first_text,
)
from garmin_extractor.models import WellnessSample

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_MINUTES = 5

_EPOCH_MS_FLOOR = 1_000_000_000_000
_EPOCH_S_FLOOR = 1_000_000_000
_DAY_S = 86_400
_DAY_MS = 86_400_000

STRESS_SERIES_KEYS = ("stressValuesArray", "stressValues", "valuesArray", "values", "stress")
HEART_RATE_SERIES_KEYS = (
    "heartRateValuesArray",
    "heartRateValues",
    "hrValuesArray",
    "hrValues",
    "values",
)
STRESS_VALUE_KEYS = ("value", "stress", "stressLevel")
HEART_RATE_VALUE_KEYS = ("value", "heartRate", "hr", "bpm", "beatsPerMinute")

_BASE_NUMBER_KEYS = ("startTimestampLocal", "startTimestampGMT", "startTimestamp", "startTime")
_BASE_TEXT_KEYS = ("startTimestampLocal", "startTimestampGMT", "startTime", "calendarDate")
_ENTRY_TIMESTAMP_KEYS = (
    "timestamp",
    "timestampLocal",
    "timestampGMT",
    "timeOffset",
    "timeOffsetMillis",
    "startTimeInSeconds",
    "startTimeInMillis",
    "timeInSeconds",
    "timeInMillis",
    "time",
    "ts",
)
_DETECT_TIMESTAMP_KEYS = ("timestamp", "timestampLocal", "timestampGMT", "time", "ts")
_DETECT_VALUE_KEYS = ("value", "stress", "stressLevel", "heartRate", "hr", "bpm")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def normalize_epoch_millis(value: int) -> Optional[int]:
    """Absolute epoch ms from a value that is already ms or seconds."""
    if value <= 0:
        return None
    if value >= _EPOCH_MS_FLOOR:
        return value
    if value >= _EPOCH_S_FLOOR:
        return value * 1000
    return None


def to_epoch_millis(raw: int, base_ms: int) -> Optional[int]:
    """Map a raw entry timestamp to epoch ms.

    Small values are offsets from *base_ms*: up to one day they are
    seconds, up to one day in ms they are milliseconds.
    """
    if raw <= 0:
        return None
    if raw >= _EPOCH_MS_FLOOR:
        return raw
    if raw >= _EPOCH_S_FLOOR:
        return raw * 1000
    if raw <= _DAY_S:
        return base_ms + raw * 1000
    if raw <= _DAY_MS:
        return base_ms + raw
    return base_ms + raw * 1000


def _localize(dt: datetime, tz: tzinfo | None) -> datetime:
    if dt.tzinfo is not None:
        return dt
    if tz is None:
        return dt.astimezone()
    return dt.replace(tzinfo=tz)


def parse_timestamp_text(text: str | None, tz: tzinfo | None = None) -> Optional[int]:
    """Parse an ISO date, date-time or offset date-time to epoch ms.

    Naive values are interpreted in *tz* (system zone when ``None``).
    """
    if text is None or not text.strip():
        return None
    candidate = text.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    return int(_localize(parsed, tz).timestamp() * 1000)


def start_of_day_millis(day: date, tz: tzinfo | None = None) -> int:
    return int(_localize(datetime.combine(day, time.min), tz).timestamp() * 1000)


def resolve_base_epoch_ms(root: Any, day: date, tz: tzinfo | None = None) -> int:
    """Base time that offset-style entries are relative to."""
    number = read_first_int(root, _BASE_NUMBER_KEYS)
    if number is not None:
        normalized = normalize_epoch_millis(number)
        if normalized is not None:
            return normalized
    parsed = parse_timestamp_text(read_first_text(root, _BASE_TEXT_KEYS), tz)
    if parsed is not None:
        return parsed
    return start_of_day_millis(day, tz)


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


def extract_timestamp(entry: Any, base_ms: int) -> Optional[int]:
    if isinstance(entry, list):
        if entry and is_number(entry[0]):
            return to_epoch_millis(int(entry[0]), base_ms)
        return None
    if isinstance(entry, dict):
        direct = read_first_int(entry, _ENTRY_TIMESTAMP_KEYS)
        if direct is not None:
            return to_epoch_millis(direct, base_ms)
        return None
    if is_number(entry):
        return to_epoch_millis(int(entry), base_ms)
    return None


def extract_value(entry: Any, value_keys: Sequence[str]) -> Optional[int]:
    if isinstance(entry, list):
        if len(entry) > 1 and is_number(entry[1]):
            return round_half_up(entry[1])
        return None
    if isinstance(entry, dict):
        value = read_first_number(entry, value_keys)
        return round_half_up(value) if value is not None else None
    if is_number(entry):
        return round_half_up(entry)
    return None


def looks_like_series(node: list) -> bool:
    """Structural check used when no candidate key matched."""
    for entry in node:
        if (
            isinstance(entry, list)
            and len(entry) > 1
            and is_number(entry[0])
            and is_number(entry[1])
        ):
            return True
        if isinstance(entry, dict):
            if (
                read_first_int(entry, _DETECT_TIMESTAMP_KEYS) is not None
                and read_first_number(entry, _DETECT_VALUE_KEYS) is not None
            ):
                return True
    return False


def parse_series(
    root: Any,
    day: date,
    series_keys: Sequence[str],
    value_keys: Sequence[str],
    tz: tzinfo | None = None,
) -> dict[int, int]:
    """Return ``{epoch_ms: value}`` for the series found in *root*.

    Invalid timestamps and negative values (Garmin uses -1/-2 for
    "no reading") are dropped.
    """
    if root is None:
        return {}
    node = find_array(root, series_keys)
    if node is None:
        node = find_first_array(root, looks_like_series)
    if node is None:
        logger.debug("No series found for %s (keys %s)", day, series_keys[0])
        return {}

    base_ms = resolve_base_epoch_ms(root, day, tz)
    series: dict[int, int] = {}
    for entry in node:
        timestamp = extract_timestamp(entry, base_ms)
        value = extract_value(entry, value_keys)
        if timestamp is None or value is None or value < 0:
            continue
        series[timestamp] = value
    return series


# ---------------------------------------------------------------------------
# Bucketing
# ---------------------------------------------------------------------------


@dataclass
class Bucket:
    """Running sums for one bucket; stress and heart rate are independent."""

    stress_total: int = 0
    stress_count: int = 0
    heart_rate_total: int = 0
    heart_rate_count: int = 0

    def add_stress(self, value: int) -> None:
        self.stress_total += value
        self.stress_count += 1

    def add_heart_rate(self, value: int) -> None:
        self.heart_rate_total += value
        self.heart_rate_count += 1

    @property
    def stress_average(self) -> Optional[int]:
        if self.stress_count == 0:
            return None
        return round_half_up(self.stress_total / self.stress_count)

    @property
    def heart_rate_average(self) -> Optional[int]:
        if self.heart_rate_count == 0:
            return None
        return round_half_up(self.heart_rate_total / self.heart_rate_count)


def bucket_start(timestamp_ms: int, bucket_ms: int) -> int:
    return (timestamp_ms // bucket_ms) * bucket_ms


def bucket_wellness_samples(
    stress_series: dict[int, int],
    heart_rate_series: dict[int, int],
    bucket_minutes: int = DEFAULT_BUCKET_MINUTES,
    tz: tzinfo | None = None,
) -> Iterator[WellnessSample]:
    """Yield averaged samples ordered by bucket start.

    Each sample is dated by its own bucket, so buckets past midnight land
    on the following day.
    """
    bucket_ms = bucket_minutes * 60_000
    buckets: dict[int, Bucket] = {}
    for timestamp, value in stress_series.items():
        buckets.setdefault(bucket_start(timestamp, bucket_ms), Bucket()).add_stress(value)
    for timestamp, value in heart_rate_series.items():
        buckets.setdefault(bucket_start(timestamp, bucket_ms), Bucket()).add_heart_rate(value)

    for start in sorted(buckets):
        bucket = buckets.pop(start)
        moment = datetime.fromtimestamp(start / 1000, tz=tz)
        if tz is None:
            moment = moment.astimezone()
        yield WellnessSample(
            date=moment.date().isoformat(),
            timestamp=moment.replace(tzinfo=None).isoformat(timespec="seconds"),
            stress=bucket.stress_average,
            heart_rate=bucket.heart_rate_average,
        )


def parse_stress_series(root: Any, day: date, tz: tzinfo | None = None) -> dict[int, int]:
    return parse_series(root, day, STRESS_SERIES_KEYS, STRESS_VALUE_KEYS, tz)


def parse_heart_rate_series(root: Any, day: date, tz: tzinfo | None = None) -> dict[int, int]:
    return parse_series(root, day, HEART_RATE_SERIES_KEYS, HEART_RATE_VALUE_KEYS, tz)

"""Pure functions mapping raw Garmin wellness responses to metric values.

No I/O — takes decoded JSON from the request executor and returns plain
values.  Every extractor tolerates ``None`` and unexpected shapes by
returning ``None``; the caller leaves the matching field unset.
"""

from __future__ import annotations

from typing import Any, Optional

from garmin_extractor.json_tree import (
    MAX_DEPTH,
    find_array,
    is_number,
    read_first_number,
)

GRAMS_PER_KG = 1000.0
SECONDS_PER_HOUR = 3600.0

# Candidate HRV fields, most specific first
HRV_VALUE_KEYS = (
    "lastNightAvg",
    "overnightAvg",
    "hrvValue",
    "dailyAvg",
    "dailyHrv",
    "avgHrv",
    "averageHrv",
    "rmssdAvg",
    "rmssdAverage",
    "rmssd",
    "hrv",
)
HRV_NESTED_KEYS = ("hrvSummary", "summary", "data", "hrvStatus", "lastNight")
HRV_SERIES_KEYS = ("hrvValuesArray", "hrvValues", "rmssdValues", "values")
HRV_ENTRY_VALUE_KEYS = ("value", "hrvValue", "rmssd", "hrv")

SUMMARY_WEIGHT_KEYS = ("wellnessWeight", "weight")
RESTING_HR_METRIC_KEY = "WELLNESS_RESTING_HEART_RATE"


def _first(data: Any) -> Any:
    if isinstance(data, list):
        return data[0] if data else None
    return data


def _as_int(value: Any) -> Optional[int]:
    return int(value) if is_number(value) else None


# ---------------------------------------------------------------------------
# Body battery
# ---------------------------------------------------------------------------


def extract_body_battery(data: Any) -> tuple[Optional[int], Optional[int]]:
    """Return ``(lowest, highest)`` body battery for the day.

    Prefers the explicit ``min``/``max`` on the daily report; otherwise
    scans ``bodyBatteryValuesArray`` (``[timestamp, level, ...]`` rows).
    """
    if not isinstance(data, list) or not data:
        return (None, None)
    day = data[0]
    if not isinstance(day, dict):
        return (None, None)

    lowest = _as_int(day.get("min"))
    highest = _as_int(day.get("max"))
    if lowest is not None and highest is not None:
        return (lowest, highest)

    values = day.get("bodyBatteryValuesArray")
    if isinstance(values, list):
        scan_min, scan_max, found = 100, 0, False
        for entry in values:
            if isinstance(entry, list) and len(entry) >= 2 and is_number(entry[1]):
                level = int(entry[1])
                scan_min = min(scan_min, level)
                scan_max = max(scan_max, level)
                found = True
        if found:
            return (scan_min, scan_max)
    return (lowest, highest)


# ---------------------------------------------------------------------------
# Daily summary / weight
# ---------------------------------------------------------------------------


def extract_daily_summary(data: Any) -> dict[str, Any]:
    """Map the usersummary daily response.

    Returns keys ``resting_heart_rate``, ``vo2_max`` and ``weight`` (kg);
    values are None when missing.
    """
    if not isinstance(data, dict):
        return {"resting_heart_rate": None, "vo2_max": None, "weight": None}
    weight_g = read_first_number(data, SUMMARY_WEIGHT_KEYS)
    return {
        "resting_heart_rate": _as_int(data.get("restingHeartRate")),
        "vo2_max": read_first_number(data, ("vo2Max",)),
        "weight": weight_g / GRAMS_PER_KG if weight_g is not None else None,
    }


def extract_weight_range(data: Any) -> Optional[float]:
    """First ``weightUnitEntries`` weight in kg (Garmin reports grams)."""
    if not isinstance(data, dict):
        return None
    entries = data.get("weightUnitEntries")
    if not isinstance(entries, list) or not entries:
        return None
    weight_g = read_first_number(entries[0], ("weight",))
    return weight_g / GRAMS_PER_KG if weight_g is not None else None


# ---------------------------------------------------------------------------
# Sleep
# ---------------------------------------------------------------------------


def extract_sleep(data: Any) -> tuple[Optional[int], Optional[float]]:
    """Return ``(sleep_score, sleep_duration_hours)``.

    Score comes from ``sleepScore`` or ``sleepScores.overall.value``.
    """
    if not isinstance(data, dict):
        return (None, None)
    dto = data.get("dailySleepDTO")
    if not isinstance(dto, dict):
        return (None, None)

    seconds = read_first_number(dto, ("sleepTimeSeconds",))
    hours = seconds / SECONDS_PER_HOUR if seconds is not None else None

    score = _as_int(dto.get("sleepScore"))
    if score is None:
        scores = dto.get("sleepScores")
        overall = scores.get("overall") if isinstance(scores, dict) else None
        if isinstance(overall, dict):
            score = _as_int(overall.get("value"))
    return (score, hours)


# ---------------------------------------------------------------------------
# Resting HR fallback
# ---------------------------------------------------------------------------


def extract_resting_hr_stats(data: Any) -> Optional[int]:
    """Resting HR from the userstats wellness endpoint (metricId 60).

    Older responses are a flat list of ``{"value": ...}``; newer ones nest
    the list under ``allMetrics.metricsMap.WELLNESS_RESTING_HEART_RATE``.
    """
    entries = data if isinstance(data, list) else find_array(data, (RESTING_HR_METRIC_KEY,))
    entry = _first(entries)
    if not isinstance(entry, dict):
        return None
    return _as_int(entry.get("value"))


# ---------------------------------------------------------------------------
# HRV
# ---------------------------------------------------------------------------


def average_from_series(node: Any) -> Optional[float]:
    """Mean of an HRV series whose entries are pairs, objects or numbers."""
    if not isinstance(node, list):
        return None
    total = 0.0
    count = 0
    for entry in node:
        value: Optional[float] = None
        if isinstance(entry, list) and len(entry) > 1 and is_number(entry[1]):
            value = float(entry[1])
        elif isinstance(entry, dict):
            value = read_first_number(entry, HRV_ENTRY_VALUE_KEYS)
        elif is_number(entry):
            value = float(entry)
        if value is not None:
            total += value
            count += 1
    if count == 0:
        return None
    return total / count


def extract_hrv(root: Any, max_depth: int = MAX_DEPTH) -> Optional[float]:
    """Find an overnight HRV value (ms) in any known response layout."""
    if root is None or max_depth < 0:
        return None

    direct = read_first_number(root, HRV_VALUE_KEYS)
    if direct is not None:
        return direct

    if isinstance(root, dict):
        for key in HRV_NESTED_KEYS:
            nested = extract_hrv(root.get(key), max_depth - 1)
            if nested is not None:
                return nested
        for key in HRV_SERIES_KEYS:
            series = average_from_series(root.get(key))
            if series is not None:
                return series

    if isinstance(root, list):
        return average_from_series(root)
    return None

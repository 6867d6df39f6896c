"""Typed records produced by the extractor."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar


def _cell(value: Any) -> Any:
    return "" if value is None else value


@dataclass
class DailyMetrics:
    """Wellness metrics for one calendar date.

    ``None`` means Garmin had nothing for that date, never zero.
    """

    HEADERS: ClassVar[tuple[str, ...]] = (
        "Date",
        "Body Battery Max",
        "Body Battery Min",
        "Weight (kg)",
        "VO2 Max",
        "Resting HR",
        "Sleep Score",
        "Sleep Duration (h)",
        "HRV (ms)",
    )

    date: str
    body_battery_highest: int | None = None
    body_battery_lowest: int | None = None
    weight: float | None = None  # kg
    vo2_max: float | None = None
    resting_heart_rate: int | None = None
    hrv: float | None = None  # ms
    sleep_score: int | None = None
    sleep_duration_hours: float | None = None

    def to_row(self) -> list[Any]:
        return [
            _cell(self.date),
            _cell(self.body_battery_highest),
            _cell(self.body_battery_lowest),
            _cell(self.weight),
            _cell(self.vo2_max),
            _cell(self.resting_heart_rate),
            _cell(self.sleep_score),
            _cell(self.sleep_duration_hours),
            _cell(self.hrv),
        ]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WellnessSample:
    """One averaged stress / heart-rate bucket."""

    HEADERS: ClassVar[tuple[str, ...]] = ("Date", "Timestamp", "Stress", "Heart Rate")

    date: str
    timestamp: str  # bucket start, local ISO date-time
    stress: int | None = None
    heart_rate: int | None = None

    def to_row(self) -> list[Any]:
        return [
            _cell(self.date),
            _cell(self.timestamp),
            _cell(self.stress),
            _cell(self.heart_rate),
        ]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

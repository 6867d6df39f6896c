"""Tests for garmin_extractor.series — timestamp normalization and bucketing."""

from __future__ import annotations

import random
from datetime import date, timezone

import pytest

from garmin_extractor.series import (
    HEART_RATE_SERIES_KEYS,
    HEART_RATE_VALUE_KEYS,
    STRESS_SERIES_KEYS,
    STRESS_VALUE_KEYS,
    Bucket,
    bucket_wellness_samples,
    extract_timestamp,
    extract_value,
    looks_like_series,
    normalize_epoch_millis,
    parse_heart_rate_series,
    parse_series,
    parse_stress_series,
    parse_timestamp_text,
    resolve_base_epoch_ms,
    round_half_up,
    to_epoch_millis,
)

UTC = timezone.utc
DAY = date(2025, 1, 15)
BASE = 1736899200000  # 2025-01-15T00:00:00Z


# ---------------------------------------------------------------------------
# Timestamp normalization
# ---------------------------------------------------------------------------


class TestToEpochMillis:
    def test_absolute_millis(self):
        assert to_epoch_millis(1736900000000, BASE) == 1736900000000

    def test_absolute_seconds(self):
        assert to_epoch_millis(1736900000, BASE) == 1736900000000

    def test_small_offset_is_seconds(self):
        assert to_epoch_millis(300, BASE) == BASE + 300_000
        assert to_epoch_millis(86_400, BASE) == BASE + 86_400_000

    @pytest.mark.parametrize("raw", [86_401, 300_000, 5_000_000, 86_400_000])
    def test_larger_offset_is_millis(self, raw):
        assert to_epoch_millis(raw, BASE) == BASE + raw

    def test_catch_all_is_seconds(self):
        assert to_epoch_millis(86_400_001, BASE) == BASE + 86_400_001 * 1000

    @pytest.mark.parametrize("raw", [0, -5])
    def test_rejects_non_positive(self, raw):
        assert to_epoch_millis(raw, BASE) is None


class TestNormalizeEpochMillis:
    def test_millis(self):
        assert normalize_epoch_millis(BASE) == BASE

    def test_seconds(self):
        assert normalize_epoch_millis(BASE // 1000) == BASE

    @pytest.mark.parametrize("value", [0, -1, 86_400])
    def test_invalid(self, value):
        assert normalize_epoch_millis(value) is None


class TestParseTimestampText:
    def test_offset_date_time(self):
        assert parse_timestamp_text("2025-01-15T01:00:00+01:00", UTC) == BASE

    def test_instant(self):
        assert parse_timestamp_text("2025-01-15T00:00:00Z", UTC) == BASE

    def test_local_date_time_with_fraction(self):
        assert parse_timestamp_text("2025-01-15T00:00:00.0", UTC) == BASE

    def test_bare_date(self):
        assert parse_timestamp_text("2025-01-15", UTC) == BASE

    @pytest.mark.parametrize("text", [None, "", "yesterday"])
    def test_unparseable(self, text):
        assert parse_timestamp_text(text, UTC) is None


class TestResolveBaseEpochMs:
    def test_numeric_start(self):
        assert resolve_base_epoch_ms({"startTimestampGMT": BASE // 1000}, DAY, UTC) == BASE

    def test_invalid_numeric_falls_to_text(self):
        root = {"startTimestamp": 12, "startTime": "2025-01-15T06:00:00Z"}
        assert resolve_base_epoch_ms(root, DAY, UTC) == BASE + 6 * 3_600_000

    def test_calendar_date_text(self):
        assert resolve_base_epoch_ms({"calendarDate": "2025-01-15"}, DAY, UTC) == BASE

    def test_midnight_of_requested_day(self):
        assert resolve_base_epoch_ms({}, DAY, UTC) == BASE
        assert resolve_base_epoch_ms([], DAY, UTC) == BASE


# ---------------------------------------------------------------------------
# Entry extraction
# ---------------------------------------------------------------------------


class TestExtractEntry:
    def test_pair(self):
        assert extract_timestamp([BASE, 30], BASE) == BASE
        assert extract_value([BASE, 30], STRESS_VALUE_KEYS) == 30

    def test_pair_with_null_value(self):
        assert extract_value([BASE, None], HEART_RATE_VALUE_KEYS) is None

    def test_object_offset(self):
        entry = {"timeOffset": 600, "heartRate": 61.5}
        assert extract_timestamp(entry, BASE) == BASE + 600_000
        assert extract_value(entry, HEART_RATE_VALUE_KEYS) == 62

    def test_object_value_keys_are_per_series(self):
        entry = {"timestamp": BASE, "bpm": 70}
        assert extract_value(entry, STRESS_VALUE_KEYS) is None
        assert extract_value(entry, HEART_RATE_VALUE_KEYS) == 70

    def test_bare_number(self):
        assert extract_value(44, STRESS_VALUE_KEYS) == 44

    def test_half_up_rounding(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.4) == 2


class TestLooksLikeSeries:
    def test_pairs(self):
        assert looks_like_series([[BASE, 1]])

    def test_objects(self):
        assert looks_like_series([{"ts": BASE, "hr": 60}])

    def test_rejects_other_arrays(self):
        assert not looks_like_series([])
        assert not looks_like_series(["a", "b"])
        assert not looks_like_series([{"key": "timestamp", "index": 0}])


# ---------------------------------------------------------------------------
# parse_series
# ---------------------------------------------------------------------------


class TestParseSeries:
    def test_named_series(self, garmin_stress_data, day_start_ms):
        series = parse_series(
            garmin_stress_data, DAY, STRESS_SERIES_KEYS, STRESS_VALUE_KEYS, UTC
        )
        # -1 readings are dropped
        assert series == {day_start_ms: 30, day_start_ms + 300_000: 60}

    def test_nested_named_series(self):
        root = {"payload": {"heartRateValues": [[BASE, 55]]}}
        series = parse_series(root, DAY, HEART_RATE_SERIES_KEYS, HEART_RATE_VALUE_KEYS, UTC)
        assert series == {BASE: 55}

    def test_structural_fallback(self):
        root = {"descriptors": [{"key": "x"}], "readings": [{"time": 60, "hr": 58}]}
        series = parse_series(root, DAY, HEART_RATE_SERIES_KEYS, HEART_RATE_VALUE_KEYS, UTC)
        assert series == {BASE + 60_000: 58}

    def test_offsets_use_text_base(self):
        root = {"startTimestampLocal": "2025-01-15T00:00:00.0", "values": [[300, 20]]}
        series = parse_series(root, DAY, STRESS_SERIES_KEYS, STRESS_VALUE_KEYS, UTC)
        assert series == {BASE + 300_000: 20}

    def test_none_root(self):
        assert parse_series(None, DAY, STRESS_SERIES_KEYS, STRESS_VALUE_KEYS, UTC) == {}

    def test_no_series(self):
        assert parse_series({"foo": 1}, DAY, STRESS_SERIES_KEYS, STRESS_VALUE_KEYS, UTC) == {}


# ---------------------------------------------------------------------------
# Bucketing
# ---------------------------------------------------------------------------


class TestBucket:
    def test_empty_accumulators_are_unset(self):
        bucket = Bucket()
        bucket.add_stress(10)
        assert bucket.stress_average == 10
        assert bucket.heart_rate_average is None

    def test_mean_rounds_half_up(self):
        bucket = Bucket()
        bucket.add_heart_rate(60)
        bucket.add_heart_rate(61)
        assert bucket.heart_rate_average == 61


class TestBucketWellnessSamples:
    def test_two_buckets(self):
        stress = {BASE: 30, BASE + 300_000: 60}
        hr = {BASE: 50, BASE + 300_000: 70}
        samples = list(bucket_wellness_samples(stress, hr, 5, UTC))

        assert len(samples) == 2
        assert (samples[0].stress, samples[0].heart_rate) == (30, 50)
        assert (samples[1].stress, samples[1].heart_rate) == (60, 70)
        assert samples[0].timestamp == "2025-01-15T00:00:00"
        assert samples[1].timestamp == "2025-01-15T00:05:00"

    def test_averages_within_bucket(self):
        stress = {BASE: 20, BASE + 60_000: 30, BASE + 240_000: 31}
        samples = list(bucket_wellness_samples(stress, {}, 5, UTC))
        assert len(samples) == 1
        assert samples[0].stress == 27
        assert samples[0].heart_rate is None

    def test_independent_series(self):
        samples = list(bucket_wellness_samples({BASE: 10}, {BASE + 600_000: 80}, 5, UTC))
        assert [(s.stress, s.heart_rate) for s in samples] == [(10, None), (None, 80)]

    def test_order_independent(self):
        pairs = [(BASE + i * 37_000, (i * 7) % 100) for i in range(200)]
        expected = list(bucket_wellness_samples(dict(pairs), {}, 5, UTC))
        shuffled = pairs[:]
        random.Random(4).shuffle(shuffled)
        assert list(bucket_wellness_samples(dict(shuffled), {}, 5, UTC)) == expected

    def test_late_bucket_dated_next_day(self):
        late = BASE + 86_400_000 + 60_000
        samples = list(bucket_wellness_samples({late: 15}, {}, 5, UTC))
        assert samples[0].date == "2025-01-16"

    def test_configurable_bucket_size(self):
        stress = {BASE: 10, BASE + 300_000: 20}
        samples = list(bucket_wellness_samples(stress, {}, 15, UTC))
        assert len(samples) == 1
        assert samples[0].stress == 15


class TestPerStreamParsers:
    def test_end_to_end(self, garmin_stress_data, garmin_heart_rate_data):
        stress = parse_stress_series(garmin_stress_data, DAY, UTC)
        heart_rate = parse_heart_rate_series(garmin_heart_rate_data, DAY, UTC)
        samples = list(bucket_wellness_samples(stress, heart_rate, 5, UTC))

        assert [(s.stress, s.heart_rate) for s in samples] == [(30, 50), (60, 70)]
        assert all(s.date == "2025-01-15" for s in samples)

    def test_nothing_parsed(self):
        assert parse_stress_series(None, DAY, UTC) == {}
        assert parse_heart_rate_series({"x": 1}, DAY, UTC) == {}
        assert list(bucket_wellness_samples({}, {}, 5, UTC)) == []

    def test_non_finite_values_dropped(self, day_start_ms):
        root = {"stressValuesArray": [[day_start_ms, float("inf")], [day_start_ms + 60_000, 40]]}
        assert parse_stress_series(root, DAY, UTC) == {day_start_ms + 60_000: 40}

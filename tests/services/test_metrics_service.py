"""
Tests for metrics_service and the VideoRecord ingestion boundary:
numeric coercion, date parsing and per-video derived metrics.
"""

import math
from datetime import datetime, timezone

import pytest

from creatorlens.services.metrics_service import (
    metric_value,
    normalize_video,
    process_video,
    process_videos,
    resolve_metric,
    safe_ratio,
)
from creatorlens.services.models import ChartMetric, VideoRecord, coerce_number, parse_published_date, utc_now


# ============================================================================
# Boundary coercion
# ============================================================================

class TestCoerceNumber:
    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", float("nan"), float("inf"), -5, "-3"])
    def test_bad_values_become_zero(self, raw):
        assert coerce_number(raw) == 0.0

    def test_thousands_separator(self):
        assert coerce_number("1,234") == 1234.0

    def test_numeric_string(self):
        assert coerce_number(" 12.5 ") == 12.5

    def test_allow_negative(self):
        assert coerce_number("-3", allow_negative=True) == -3.0
        assert coerce_number(float("nan"), allow_negative=True) == 0.0


class TestParsePublishedDate:
    def test_date_only_string(self):
        assert parse_published_date("2024-03-02") == datetime(2024, 3, 2)

    def test_zulu_suffix_becomes_naive_utc(self):
        assert parse_published_date("2024-03-02T10:30:00Z") == datetime(2024, 3, 2, 10, 30)

    def test_offset_converted_to_utc(self):
        assert parse_published_date("2024-03-02T10:30:00+02:00") == datetime(2024, 3, 2, 8, 30)

    @pytest.mark.parametrize("raw", [None, "", "not a date", 12345])
    def test_unparseable(self, raw):
        assert parse_published_date(raw) is None


class TestUtcNow:
    def test_naive_utc(self):
        before = datetime.now(timezone.utc).replace(tzinfo=None)
        now = utc_now()
        after = datetime.now(timezone.utc).replace(tzinfo=None)
        assert now.tzinfo is None
        assert before <= now <= after


class TestNormalizeVideo:
    def test_missing_numerics_default_to_zero(self):
        record = normalize_video({"id": 7, "title": "Hola"})
        assert record.id == "7"
        assert record.views == 0
        assert record.duration_seconds == 0.0
        assert record.traffic_search == 0
        assert record.published_date is None

    def test_malformed_values_coerced(self):
        record = normalize_video({
            "views": "12,000",
            "likes": None,
            "saves": "n/a",
            "avg_time_watched": "7.5",
            "video_theme": "  ",
            "user_id": "ignored",
        })
        assert record.views == 12000
        assert record.likes == 0
        assert record.saves == 0
        assert record.avg_time_watched == 7.5
        assert record.video_theme is None

    def test_record_passes_through(self):
        record = VideoRecord(id="x")
        assert normalize_video(record) is record


# ============================================================================
# Derived metrics
# ============================================================================

class TestSafeRatio:
    def test_zero_denominator(self):
        assert safe_ratio(5, 0) == 0.0

    def test_scaled(self):
        assert safe_ratio(1, 4, 100) == 25.0


class TestProcessVideo:
    def test_rates(self):
        video = process_video({
            "id": "v1",
            "views": 10000,
            "likes": 800,
            "comments": 150,
            "shares": 50,
            "saves": 200,
            "new_followers": 30,
            "avg_time_watched": 12,
            "duration_seconds": 24,
            "traffic_for_you": 9000,
        })

        assert video.engagement_rate == pytest.approx(10.0)
        assert video.saves_per_1k == pytest.approx(20.0)
        assert video.followers_per_1k == pytest.approx(3.0)
        assert video.retention_rate == pytest.approx(50.0)
        assert video.completion_rate == pytest.approx(50.0)
        assert video.for_you_percentage == pytest.approx(90.0)
        assert video.performance_score == pytest.approx((10 + 50 + 20 + 90 + 3) / 5)
        assert video.views_norm == 10000.0
        assert video.followers_at_post_time == 1

    def test_zero_duration_retention_is_zero(self):
        video = process_video({"views": 100, "avg_time_watched": 8, "duration_seconds": 0})
        assert video.retention_rate == 0.0
        assert video.completion_rate == 0.0
        assert not math.isnan(video.performance_score)

    def test_zero_views_all_rates_zero(self):
        video = process_video({"likes": 10, "saves": 5, "traffic_for_you": 3})
        assert video.engagement_rate == 0.0
        assert video.saves_per_1k == 0.0
        assert video.for_you_percentage == 0.0
        assert video.performance_score == 0.0

    def test_normalize_by_account(self):
        video = process_video({"views": 5000}, followers_at_post_time=50000, normalize_by_account=True)
        assert video.views_norm == pytest.approx(0.1)
        assert video.followers_at_post_time == 50000

    def test_missing_follower_count_defaults_to_one(self):
        video = process_video({"views": 300}, followers_at_post_time=0, normalize_by_account=True)
        assert video.views_norm == 300.0

    def test_reprocessing_is_stable(self):
        first = process_video({"id": "v", "views": 1000, "saves": 10})
        second = process_video(first)
        assert second.saves_per_1k == first.saves_per_1k


class TestProcessVideos:
    def test_followers_by_video_id(self):
        videos = process_videos(
            [{"id": "a", "views": 100}, {"id": "b", "views": 100}],
            followers_by_video={"a": 1000},
            normalize_by_account=True,
        )
        assert videos[0].views_norm == pytest.approx(0.1)
        assert videos[1].views_norm == pytest.approx(100.0)


class TestResolveMetric:
    def test_known_metric(self):
        assert resolve_metric("views_norm") is ChartMetric.VIEWS_NORM

    def test_unknown_metric(self):
        with pytest.raises(ValueError, match="engagement_rate"):
            resolve_metric("likes")

    def test_metric_value(self):
        video = process_video({"views": 1000, "saves": 25})
        assert metric_value(video, ChartMetric.SAVES_PER_1K) == pytest.approx(25.0)

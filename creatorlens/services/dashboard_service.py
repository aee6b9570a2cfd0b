"""
Dashboard assembly.

build_dashboard() runs the whole aggregation pipeline for one selection
(date range + chart metric) and returns a DashboardSummary.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from ..core.config import Config, ScoringConfig
from .cohort_service import build_heatmap, bucket_by_duration
from .metrics_service import process_videos, resolve_metric
from .models import ChartMetric, DashboardSummary, DateRangePreset, VideoRecord, utc_now
from .pattern_service import generate_insights
from .scoring_service import growth_score, hit_rate, performance_scores, top_bottom_performers
from .traffic_service import (
    ALL_TRAFFIC_SOURCES,
    PRESET_DAYS,
    compute_deltas,
    filter_by_window,
    growth_trend,
    period_kpis,
    resolve_date_range,
    traffic_share,
    trailing_windows,
)


logger = logging.getLogger(__name__)


def build_dashboard(
    videos: Sequence[Union[VideoRecord, Mapping[str, Any]]],
    date_range: Union[str, DateRangePreset] = Config.DEFAULT_DATE_RANGE,
    metric: Union[str, ChartMetric] = Config.DEFAULT_CHART_METRIC,
    now: Optional[datetime] = None,
    normalize_by_account: bool = False,
    scoring_config: Optional[ScoringConfig] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    followers_by_video: Optional[Dict[str, int]] = None
) -> DashboardSummary:
    """
    Build the dashboard for a creator's library.

    Library-level scores, cohorts, heatmap and traffic composition use the
    videos inside the selected date range. Growth trend and traffic deltas
    always compare the last TREND_WINDOW_DAYS with the window before it,
    over the whole library.

    Args:
        videos: Raw rows or VideoRecords
        date_range: Date range preset ("7d", "14d", "30d", "90d", "custom", "all")
        metric: Chart metric for cohorts and heatmap. Hit rate and top/bottom
            performers always rank on views_norm
        now: Reference time (defaults to the current UTC time)
        normalize_by_account: Divide views by follower base for views_norm
        scoring_config: Weights and neutral threshold (defaults from config)
        start: Start of a custom range
        end: End of a custom range
        followers_by_video: Follower count at post time, by video id

    Returns:
        DashboardSummary

    Raises:
        ValueError: If the metric or date range is invalid
    """
    now = now or utc_now()
    scoring_config = scoring_config or ScoringConfig()
    chart_metric = resolve_metric(metric)
    window = resolve_date_range(date_range, now, start, end)

    processed = process_videos(videos, followers_by_video, normalize_by_account)
    selected = filter_by_window(processed, window)
    logger.info(
        f"Building dashboard: {len(selected)} of {len(processed)} videos in range {date_range}, "
        f"metric {chart_metric.value}"
    )

    top, bottom = top_bottom_performers(selected, ChartMetric.VIEWS_NORM)
    saves = [video.saves_per_1k for video in selected]

    trend_days = Config.TREND_WINDOW_DAYS
    current_window, previous_window = trailing_windows(now, trend_days)

    kpi_days = PRESET_DAYS.get(DateRangePreset(date_range), trend_days) if date_range else trend_days

    summary = DashboardSummary(
        video_count=len(selected),
        metric=chart_metric,
        growth_score=growth_score(selected, scoring_config.growth_weights),
        growth_trend=growth_trend(processed, now, trend_days, scoring_config.neutral_change_threshold),
        hit_rate=hit_rate(selected, ChartMetric.VIEWS_NORM),
        saves_per_1k=sum(saves) / len(saves) if saves else 0.0,
        performance_scores=performance_scores(selected),
        top_performers=[video.id for video in top],
        bottom_performers=[video.id for video in bottom],
        duration_cohorts=bucket_by_duration(selected, chart_metric),
        heatmap=build_heatmap(selected, chart_metric),
        traffic_deltas=compute_deltas(
            processed,
            ALL_TRAFFIC_SOURCES,
            current_window,
            previous_window,
            scoring_config.neutral_change_threshold
        ),
        traffic_shares=traffic_share(selected),
        kpis=period_kpis(processed, kpi_days, now),
        insights=generate_insights(selected),
    )

    logger.info(f"Dashboard ready: growth score {summary.growth_score:.2f}, hit rate {summary.hit_rate:.1f}%")
    return summary

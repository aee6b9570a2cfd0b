"""
Period-over-period comparisons.

Covers traffic-source deltas between two date windows, traffic composition,
headline KPIs against the previous period, the engagement growth trend and
ad-hoc comparison of two groups of videos.

Direction convention: a change is "neutral" when |change %| is at most
NEUTRAL_CHANGE_THRESHOLD (5 by default). When the previous value is 0 the
change percentage is reported as 0 and the direction as neutral, even if the
current value is positive. This is an approximation: the dashboard has no
"new" state for a source that appears from nothing.
"""

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..core.config import Config
from .models import (
    DateRange,
    DateRangePreset,
    Direction,
    GroupComparison,
    GrowthTrend,
    KPIValue,
    MetricDelta,
    ProcessedVideo,
    TrafficDelta,
    TrafficShare,
    VideoRecord,
    coerce_number,
)


logger = logging.getLogger(__name__)

NEUTRAL_CHANGE_THRESHOLD = Config.NEUTRAL_CHANGE_THRESHOLD

PRESET_DAYS: Dict[DateRangePreset, int] = {
    DateRangePreset.LAST_7_DAYS: 7,
    DateRangePreset.LAST_14_DAYS: 14,
    DateRangePreset.LAST_30_DAYS: 30,
    DateRangePreset.LAST_90_DAYS: 90,
}

COMPARISON_METRICS = (
    "retention_rate",
    "saves_per_1k",
    "for_you_percentage",
    "engagement_rate",
    "followers_per_1k",
)


class TrafficSource(str, Enum):
    """Traffic sources reported by TikTok analytics"""
    FOR_YOU = "for_you"
    FOLLOW = "follow"
    HASHTAG = "hashtag"
    SOUND = "sound"
    PROFILE = "profile"
    SEARCH = "search"

    @property
    def field(self) -> str:
        return f"traffic_{self.value}"

    @property
    def label(self) -> str:
        return TRAFFIC_SOURCE_LABELS[self]


TRAFFIC_SOURCE_LABELS: Dict[TrafficSource, str] = {
    TrafficSource.FOR_YOU: "For You",
    TrafficSource.FOLLOW: "Follow",
    TrafficSource.HASHTAG: "Hashtag",
    TrafficSource.SOUND: "Sound",
    TrafficSource.PROFILE: "Profile",
    TrafficSource.SEARCH: "Search",
}

ALL_TRAFFIC_SOURCES: Tuple[TrafficSource, ...] = tuple(TrafficSource)


# ============================================================================
# Windows
# ============================================================================

def trailing_windows(now: datetime, days: int = 7) -> Tuple[DateRange, DateRange]:
    """
    Current and previous windows of `days` days ending at `now`.

    Returns:
        (current, previous) where current = [now - days, open) and
        previous = [now - 2*days, now - days)
    """
    boundary = now - timedelta(days=days)
    current = DateRange(start=boundary, end=None)
    previous = DateRange(start=now - timedelta(days=days * 2), end=boundary)
    return current, previous


def resolve_date_range(
    preset: Union[str, DateRangePreset, None],
    now: datetime,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> Optional[DateRange]:
    """
    Turn a dashboard preset into a concrete window.

    Returns:
        DateRange, or None for "all" (no filtering)

    Raises:
        ValueError: If the preset is unknown or a custom range is inverted
    """
    if preset is None:
        return None

    try:
        preset = DateRangePreset(preset)
    except ValueError:
        options = ", ".join(p.value for p in DateRangePreset)
        raise ValueError(f"Unknown date range: {preset}. Use one of: {options}")

    if preset == DateRangePreset.ALL:
        return None
    if preset == DateRangePreset.CUSTOM:
        return DateRange(start=start, end=end)
    return DateRange(start=now - timedelta(days=PRESET_DAYS[preset]), end=None)


def filter_by_window(videos: Sequence[VideoRecord], window: Optional[DateRange]) -> List[VideoRecord]:
    """Videos published inside the window. None keeps everything."""
    if window is None:
        return list(videos)
    return [video for video in videos if window.contains(video.published_date)]


# ============================================================================
# Deltas
# ============================================================================

def percent_change(current: float, previous: float) -> float:
    """(current - previous) / previous * 100, or 0 when previous is not positive."""
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def classify_direction(change_percentage: float, neutral_threshold: float = NEUTRAL_CHANGE_THRESHOLD) -> Direction:
    if abs(change_percentage) <= neutral_threshold:
        return Direction.NEUTRAL
    return Direction.UP if change_percentage > 0 else Direction.DOWN


def _sum_field(videos: Sequence[VideoRecord], field: str) -> int:
    return sum(int(getattr(video, field, 0) or 0) for video in videos)


def compute_deltas(
    videos: Sequence[VideoRecord],
    sources: Sequence[TrafficSource],
    current_window: DateRange,
    previous_window: DateRange,
    neutral_threshold: float = NEUTRAL_CHANGE_THRESHOLD
) -> List[TrafficDelta]:
    """
    Compare attributed views per traffic source between two windows.

    Videos without a publish date belong to neither window.

    Args:
        videos: Library to compare
        sources: Traffic sources to report, in output order
        current_window: Current period
        previous_window: Previous period (must not overlap current_window)
        neutral_threshold: |change %| at or under which the direction is neutral

    Returns:
        One TrafficDelta per source
    """
    current_videos = filter_by_window(videos, current_window)
    previous_videos = filter_by_window(videos, previous_window)

    deltas = []
    for source in sources:
        source = TrafficSource(source)
        current = _sum_field(current_videos, source.field)
        previous = _sum_field(previous_videos, source.field)
        change = current - previous
        change_percentage = percent_change(current, previous)

        deltas.append(TrafficDelta(
            name=source.label,
            source=source.value,
            current=current,
            previous=previous,
            change=change,
            change_percentage=change_percentage,
            direction=classify_direction(change_percentage, neutral_threshold),
        ))

    return deltas


def traffic_share(
    videos: Sequence[VideoRecord],
    sources: Sequence[TrafficSource] = ALL_TRAFFIC_SOURCES
) -> List[TrafficShare]:
    """Composition of attributed views across sources; sources with no views are omitted."""
    totals = [(TrafficSource(source), _sum_field(videos, TrafficSource(source).field)) for source in sources]
    grand_total = sum(total for _, total in totals)

    return [
        TrafficShare(
            name=source.label,
            source=source.value,
            value=total,
            percentage=total / grand_total * 100 if grand_total > 0 else 0.0,
        )
        for source, total in totals
        if total > 0
    ]


# ============================================================================
# KPIs and trends
# ============================================================================

def _period_totals(videos: Sequence[VideoRecord]) -> Dict[str, float]:
    totals = {
        "views": 0.0,
        "saves": 0.0,
        "new_followers": 0.0,
        "traffic_for_you": 0.0,
        "weighted_avg_time": 0.0,
        "weighted_duration": 0.0,
    }
    for video in videos:
        totals["views"] += video.views
        totals["saves"] += video.saves
        totals["new_followers"] += video.new_followers
        totals["traffic_for_you"] += video.traffic_for_you
        totals["weighted_avg_time"] += video.avg_time_watched * video.views
        totals["weighted_duration"] += video.duration_seconds * video.views
    return totals


def _kpi_values(totals: Dict[str, float]) -> Dict[str, Optional[float]]:
    """KPI values for one period; None where the period has no denominator."""
    views = totals["views"]
    return {
        "saves_per_1k": totals["saves"] / views * 1000 if views > 0 else None,
        "followers_per_1k": totals["new_followers"] / views * 1000 if views > 0 else None,
        "for_you_share": totals["traffic_for_you"] / views * 100 if views > 0 else None,
        "retention": (
            totals["weighted_avg_time"] / totals["weighted_duration"] * 100
            if totals["weighted_duration"] > 0 else None
        ),
    }


def period_kpis(
    videos: Sequence[VideoRecord],
    days: int,
    now: datetime
) -> Dict[str, KPIValue]:
    """
    Headline KPIs for the last `days` days against the `days` before that.

    Retention is weighted by views. When the previous period has nothing to
    divide by, its value falls back to the current one so the delta reads 0.
    """
    current_window, previous_window = trailing_windows(now, days)
    current = _kpi_values(_period_totals(filter_by_window(videos, current_window)))
    previous = _kpi_values(_period_totals(filter_by_window(videos, previous_window)))

    kpis = {}
    for key, value in current.items():
        value = value or 0.0
        previous_value = previous[key] if previous[key] is not None else value
        delta_abs = value - previous_value
        kpis[key] = KPIValue(
            value=value,
            previous_value=previous_value,
            delta_abs=delta_abs,
            delta_pct=delta_abs / previous_value * 100 if previous_value > 0 else 0.0,
        )
    return kpis


def growth_trend(
    videos: Sequence[ProcessedVideo],
    now: datetime,
    days: int = Config.TREND_WINDOW_DAYS,
    neutral_threshold: float = NEUTRAL_CHANGE_THRESHOLD
) -> GrowthTrend:
    """Average engagement rate of the last `days` days against the window before it."""
    current_window, previous_window = trailing_windows(now, days)
    current = [v.engagement_rate for v in filter_by_window(videos, current_window)]
    previous = [v.engagement_rate for v in filter_by_window(videos, previous_window)]

    current_avg = sum(current) / len(current) if current else 0.0
    previous_avg = sum(previous) / len(previous) if previous else 0.0

    change = percent_change(current_avg, previous_avg)
    return GrowthTrend(
        direction=classify_direction(change, neutral_threshold),
        percentage=abs(change),
        current=current_avg,
        previous=previous_avg,
    )


def compare_groups(
    group_a: Sequence[ProcessedVideo],
    group_b: Sequence[ProcessedVideo],
    metrics: Sequence[str] = COMPARISON_METRICS
) -> GroupComparison:
    """Average each metric for both groups; relative delta is measured against group B."""
    def _average(group: Sequence[ProcessedVideo], metric: str) -> float:
        if not group:
            return 0.0
        return sum(coerce_number(getattr(video, metric, 0.0)) for video in group) / len(group)

    averages_a = {metric: _average(group_a, metric) for metric in metrics}
    averages_b = {metric: _average(group_b, metric) for metric in metrics}

    deltas = {
        metric: MetricDelta(
            absolute=averages_a[metric] - averages_b[metric],
            relative=percent_change(averages_a[metric], averages_b[metric]),
        )
        for metric in metrics
    }

    return GroupComparison(
        group_a_count=len(group_a),
        group_b_count=len(group_b),
        averages_a=averages_a,
        averages_b=averages_b,
        deltas=deltas,
    )

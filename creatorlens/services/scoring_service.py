"""
Composite scoring for videos and whole libraries.

Weights live in creatorlens.core.config (GROWTH_SCORE_WEIGHTS,
VIRAL_INDEX_WEIGHTS) and can be overridden per call or from a YAML file.

Bounds:
- weighted_score / growth_score: unbounded, not clamped
- hit_rate: [0, 100]
- viral_index: clamped to [0, 10]
- performance_scores: each component clamped to [0, 100]
"""

import logging
import math
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.config import GROWTH_SCORE_WEIGHTS, VIRAL_INDEX_WEIGHTS
from .metrics_service import metric_value, resolve_metric
from .models import (
    ChartMetric,
    OutlierVideo,
    PerformanceBadge,
    PerformanceScores,
    PerformanceTier,
    ProcessedVideo,
    ViralityStatus,
    ViralityTier,
    coerce_number,
)
from .stats_service import StatsService


logger = logging.getLogger(__name__)

VIRAL_INDEX_MAX = 10.0

# Metrics fed to the viral index as z-scores within the library
VIRAL_INDEX_Z_METRICS = ("retention_rate", "saves_per_1k", "followers_per_1k", "for_you_percentage")

# Badge floors on a 0-100 percentile scale
BADGE_TIERS: Tuple[Tuple[int, PerformanceTier], ...] = (
    (90, PerformanceTier.TOP),
    (70, PerformanceTier.GOOD),
    (40, PerformanceTier.AVERAGE),
)

# views / followers_at_post_time
VIRALITY_TIERS: Tuple[Tuple[float, ViralityTier], ...] = (
    (0.08, ViralityTier.VIRAL),
    (0.04, ViralityTier.GOOD),
    (0.02, ViralityTier.MEDIUM),
)

# Retention-vs-saves matrix
QUADRANT_RETENTION_THRESHOLD = 60.0
QUADRANT_SAVES_THRESHOLD = 20.0

# Library score inputs
VIRAL_VIEWS_THRESHOLD = 50_000
VIRAL_VIEWS_CAP = 1_000_000
RECENT_VIDEO_COUNT = 10


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _number(video: ProcessedVideo, key: str) -> float:
    return coerce_number(getattr(video, key, 0.0))


def weighted_score(metrics: Mapping[str, float], weights: Mapping[str, float]) -> float:
    """
    Weighted linear sum over the configured weight keys.

    Weights need not sum to 1. A metric missing from `metrics` counts as 0.
    """
    total = 0.0
    for key, weight in weights.items():
        total += coerce_number(metrics.get(key), allow_negative=True) * float(weight)
    return total


def growth_score(
    videos: Sequence[ProcessedVideo],
    weights: Optional[Mapping[str, float]] = None
) -> float:
    """
    Weighted blend of the library's average engagement, saves/1k and completion.

    Unbounded: a library with 80 saves/1k scores above 100. Callers that
    display it on a 0-100 gauge clamp at display time.
    """
    if not videos:
        return 0.0

    weights = weights if weights is not None else GROWTH_SCORE_WEIGHTS
    averages = {
        key: _mean([_number(video, key) for video in videos])
        for key in weights
    }
    return weighted_score(averages, weights)


def hit_rate(
    videos: Sequence[ProcessedVideo],
    metric: Union[str, ChartMetric] = ChartMetric.VIEWS_NORM
) -> float:
    """Percent of videos at or above the rank-based P75 of the metric."""
    if not videos:
        return 0.0

    chart_metric = resolve_metric(metric)
    values = [metric_value(video, chart_metric) for video in videos]
    p75 = StatsService.rank_quantile(values, 0.75)
    hits = sum(1 for value in values if value >= p75)
    return hits / len(values) * 100


def _viral_from_zscores(views: int, zscores: Mapping[str, float], weights: Mapping[str, float]) -> float:
    raw = float(weights.get("log_views", 0.0)) * math.log10(views + 1)
    for key, z in zscores.items():
        raw += float(weights.get(key, 0.0)) * z

    if not math.isfinite(raw):
        return 0.0
    return clamp(raw, 0.0, VIRAL_INDEX_MAX)


def _weighted_z_metrics(weights: Mapping[str, float]) -> List[str]:
    return [key for key in VIRAL_INDEX_Z_METRICS if float(weights.get(key, 0.0)) != 0]


def viral_index(
    video: ProcessedVideo,
    population: Optional[Sequence[ProcessedVideo]] = None,
    weights: Optional[Mapping[str, float]] = None
) -> float:
    """
    Viral index on a 0-10 scale.

    index = w_views * log10(views + 1) + sum(w_k * z_k), clamped to [0, 10],
    where z_k is the video's z-score for metric k within `population`
    (defaults to just the video, which zeroes every z term).

    Scoring a whole library this way is quadratic; use viral_scores() there.
    """
    weights = weights if weights is not None else VIRAL_INDEX_WEIGHTS
    population = population if population else [video]

    zscores = {
        key: StatsService.calculate_zscore(_number(video, key), [_number(member, key) for member in population])
        for key in _weighted_z_metrics(weights)
    }
    return _viral_from_zscores(video.views, zscores, weights)


def viral_scores(
    videos: Sequence[ProcessedVideo],
    weights: Optional[Mapping[str, float]] = None
) -> List[float]:
    """Viral index of every video against the whole library, in input order."""
    weights = weights if weights is not None else VIRAL_INDEX_WEIGHTS

    columns = {
        key: StatsService.calculate_zscores([_number(video, key) for video in videos])
        for key in _weighted_z_metrics(weights)
    }
    return [
        _viral_from_zscores(video.views, {key: column[i] for key, column in columns.items()}, weights)
        for i, video in enumerate(videos)
    ]


def viral_indices(
    videos: Sequence[ProcessedVideo],
    weights: Optional[Mapping[str, float]] = None
) -> Dict[str, float]:
    """Viral index for every video in a library, keyed by video id."""
    return {video.id: score for video, score in zip(videos, viral_scores(videos, weights))}


def performance_scores(videos: Sequence[ProcessedVideo]) -> PerformanceScores:
    """
    Library scores shown on the executive summary.

    Videos without views are ignored. "Recent" means the first
    RECENT_VIDEO_COUNT videos in the given order (callers pass newest first).
    """
    with_views = [video for video in videos if video.views > 0]
    if not with_views:
        return PerformanceScores()

    avg_engagement = _mean([v.engagement_rate for v in with_views])
    avg_watch_time = _mean([v.avg_time_watched for v in with_views])
    content_quality = min(100.0, avg_engagement * 50 + avg_watch_time / 30 * 50)

    recent = with_views[:RECENT_VIDEO_COUNT]
    viral_count = sum(1 for v in recent if v.views > VIRAL_VIEWS_THRESHOLD)
    avg_capped_views = _mean([min(v.views, VIRAL_VIEWS_CAP) for v in recent])
    viral_potential = min(100.0, viral_count / len(recent) * 40 + avg_capped_views / 10_000 * 60)

    avg_saves = _mean([v.saves for v in with_views])
    profile_traffic = sum(v.traffic_profile for v in with_views)
    total_traffic = sum(
        v.traffic_for_you + v.traffic_follow + v.traffic_hashtag
        + v.traffic_sound + v.traffic_profile + v.traffic_search
        for v in with_views
    )
    profile_share = profile_traffic / total_traffic * 100 if total_traffic > 0 else 0.0
    monetization_readiness = min(100.0, avg_saves / 100 * 40 + profile_share * 60)

    overall_growth = content_quality * 0.3 + viral_potential * 0.4 + monetization_readiness * 0.3

    return PerformanceScores(
        content_quality=content_quality,
        viral_potential=viral_potential,
        monetization_readiness=monetization_readiness,
        overall_growth=overall_growth,
    )


def performance_badge(percentile: float) -> PerformanceBadge:
    """Badge for a 0-100 percentile (>=90 top, >=70 good, >=40 average, else low)."""
    for floor, tier in BADGE_TIERS:
        if percentile >= floor:
            return PerformanceBadge(tier=tier, percentile_floor=floor)
    return PerformanceBadge(tier=PerformanceTier.LOW, percentile_floor=0)


def virality_status(views_norm: float, has_follower_history: bool = True) -> ViralityStatus:
    """
    Tier a video by views relative to its follower base.

    Without follower history the ratio is meaningless and the video is
    reported as medium.
    """
    if not has_follower_history:
        return ViralityStatus(is_viral=False, tier=ViralityTier.MEDIUM, has_sufficient_data=False)

    for floor, tier in VIRALITY_TIERS:
        if views_norm >= floor:
            return ViralityStatus(
                is_viral=tier == ViralityTier.VIRAL,
                tier=tier,
                has_sufficient_data=True
            )
    return ViralityStatus(is_viral=False, tier=ViralityTier.LOW, has_sufficient_data=True)


def performance_quadrant(retention: float, saves: float) -> str:
    """Quadrant of the retention-vs-saves matrix."""
    retention_side = "high_retention" if retention >= QUADRANT_RETENTION_THRESHOLD else "low_retention"
    saves_side = "high_saves" if saves >= QUADRANT_SAVES_THRESHOLD else "low_saves"
    return f"{retention_side}_{saves_side}"


def top_bottom_performers(
    videos: Sequence[ProcessedVideo],
    metric: Union[str, ChartMetric] = ChartMetric.VIEWS_NORM,
    fraction: float = 0.1
) -> Tuple[List[ProcessedVideo], List[ProcessedVideo]]:
    """Top and bottom `fraction` of the library by metric (at least one each)."""
    if not videos:
        return [], []

    chart_metric = resolve_metric(metric)
    ranked = sorted(videos, key=lambda v: metric_value(v, chart_metric), reverse=True)
    count = max(1, int(len(ranked) * fraction))
    return ranked[:count], ranked[-count:]


def find_outliers(
    videos: Sequence[ProcessedVideo],
    metric: str = "performance_score",
    method: str = "zscore",
    threshold: float = 2.0,
    trim_percent: float = 10.0
) -> List[OutlierVideo]:
    """
    Find standout videos on any numeric ProcessedVideo attribute.

    Args:
        videos: Library to scan
        metric: Attribute name (e.g. "saves_per_1k")
        method: "zscore" or "percentile"
        threshold: Z-score threshold, or top-N percent for "percentile"
        trim_percent: Trim for the z-score mean/std

    Returns:
        Outliers sorted by value, highest first

    Raises:
        ValueError: If the method is unknown
    """
    values = [_number(video, metric) for video in videos]

    if method == "zscore":
        hits = StatsService.calculate_zscore_outliers(values, threshold, trim_percent)
        results = [
            OutlierVideo(
                video_id=videos[index].id,
                value=values[index],
                z_score=zscore,
                percentile=StatsService.calculate_percentile(values[index], values),
            )
            for index, zscore in hits
        ]
    elif method == "percentile":
        results = [
            OutlierVideo(
                video_id=videos[index].id,
                value=value,
                z_score=StatsService.calculate_zscore(value, values),
                percentile=percentile,
            )
            for index, value, percentile in StatsService.calculate_percentile_outliers(values, threshold)
        ]
    else:
        raise ValueError(f"Unknown method: {method}. Use 'zscore' or 'percentile'")

    results.sort(key=lambda r: r.value, reverse=True)
    logger.debug(f"Detected {len(results)} outliers on {metric} using {method} method")
    return results

"""
Per-video derived metrics.

normalize_video() is the single ingestion boundary: raw rows go in, fully
populated VideoRecords come out. process_video() adds the rate metrics the
dashboard charts are built on. Every ratio is guarded so a zero denominator
yields 0.0.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .models import ChartMetric, ProcessedVideo, VideoRecord, coerce_number


logger = logging.getLogger(__name__)


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0.0 when the denominator is not positive."""
    if denominator <= 0:
        return 0.0
    return (numerator / denominator) * scale


def normalize_video(row: Union[VideoRecord, Mapping[str, Any]]) -> VideoRecord:
    """Coerce one raw row into a VideoRecord (missing numerics become 0)."""
    if isinstance(row, VideoRecord):
        return row
    return VideoRecord.model_validate(dict(row))


def normalize_videos(rows: Iterable[Union[VideoRecord, Mapping[str, Any]]]) -> List[VideoRecord]:
    return [normalize_video(row) for row in rows]


def engagement_rate(video: VideoRecord) -> float:
    """(likes + comments + shares) / views * 100"""
    return safe_ratio(video.likes + video.comments + video.shares, video.views, 100)


def saves_per_1k(video: VideoRecord) -> float:
    return safe_ratio(video.saves, video.views, 1000)


def followers_per_1k(video: VideoRecord) -> float:
    return safe_ratio(video.new_followers, video.views, 1000)


def retention_rate(video: VideoRecord) -> float:
    """Average share of the video watched, in percent. 0 when duration is unknown."""
    return safe_ratio(video.avg_time_watched, video.duration_seconds, 100)


def for_you_percentage(video: VideoRecord) -> float:
    return safe_ratio(video.traffic_for_you, video.views, 100)


def process_video(
    video: Union[VideoRecord, Mapping[str, Any]],
    followers_at_post_time: Optional[int] = None,
    normalize_by_account: bool = False
) -> ProcessedVideo:
    """
    Compute derived metrics for a single video.

    Args:
        video: VideoRecord or raw row
        followers_at_post_time: Follower count when the video was posted
        normalize_by_account: Divide views by the follower base for views_norm

    Returns:
        ProcessedVideo with every derived metric populated
    """
    record = normalize_video(video)

    followers = int(followers_at_post_time) if followers_at_post_time and followers_at_post_time > 0 else 1

    retention = retention_rate(record)
    rates = {
        "engagement_rate": engagement_rate(record),
        "saves_per_1k": saves_per_1k(record),
        "followers_per_1k": followers_per_1k(record),
        "retention_rate": retention,
        "completion_rate": retention,
        "for_you_percentage": for_you_percentage(record),
    }
    performance_score = (
        rates["engagement_rate"]
        + rates["retention_rate"]
        + rates["saves_per_1k"]
        + rates["for_you_percentage"]
        + rates["followers_per_1k"]
    ) / 5

    views_norm = record.views / followers if normalize_by_account else float(record.views)

    return ProcessedVideo(
        **record.model_dump(include=set(VideoRecord.model_fields)),
        **rates,
        followers_at_post_time=followers,
        views_norm=views_norm,
        performance_score=performance_score,
    )


def process_videos(
    videos: Iterable[Union[VideoRecord, Mapping[str, Any]]],
    followers_by_video: Optional[Dict[str, int]] = None,
    normalize_by_account: bool = False
) -> List[ProcessedVideo]:
    """Process a whole library. followers_by_video maps video id -> follower count."""
    followers_by_video = followers_by_video or {}
    processed = []
    for video in videos:
        record = normalize_video(video)
        processed.append(process_video(
            record,
            followers_at_post_time=followers_by_video.get(record.id),
            normalize_by_account=normalize_by_account
        ))
    return processed


def resolve_metric(metric: Union[str, ChartMetric]) -> ChartMetric:
    """
    Resolve a metric name to a ChartMetric.

    Raises:
        ValueError: If the name isn't a known chart metric
    """
    if isinstance(metric, ChartMetric):
        return metric
    try:
        return ChartMetric(metric)
    except ValueError:
        options = ", ".join(m.value for m in ChartMetric)
        raise ValueError(f"Unknown metric: {metric}. Use one of: {options}")


def metric_value(video: ProcessedVideo, metric: Union[str, ChartMetric]) -> float:
    """Value of the selected chart metric for a processed video (0.0 if unset)."""
    return coerce_number(getattr(video, resolve_metric(metric).value, 0.0))

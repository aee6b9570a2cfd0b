"""
Cohort bucketing for the dashboard charts.

- bucket_by(): first-match partition of videos into labelled buckets with a
  positional summary of one metric per bucket
- build_heatmap(): weekday x hour running averages
- group_by_field(): literal grouping on a categorical column
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Union

from .metrics_service import metric_value, resolve_metric
from .models import ChartMetric, CohortBucket, HeatmapCell, ProcessedVideo, VideoRecord, coerce_number
from .stats_service import StatsService


logger = logging.getLogger(__name__)

HEATMAP_DAYS = 7
HEATMAP_HOURS = 24


@dataclass(frozen=True)
class BucketDefinition:
    """A labelled bucket; videos go to the first definition whose predicate matches."""
    label: str
    predicate: Callable[[VideoRecord], bool]


def duration_between(lower: float, upper: Optional[float] = None) -> Callable[[VideoRecord], bool]:
    """Predicate for lower <= duration_seconds < upper (upper=None is unbounded)."""
    def _matches(video: VideoRecord) -> bool:
        duration = video.duration_seconds or 0
        if duration < lower:
            return False
        return upper is None or duration < upper
    return _matches


# Half-open so that fractional durations (14.5s) still land in a bucket.
DURATION_BUCKETS: List[BucketDefinition] = [
    BucketDefinition("0-14s", duration_between(0, 15)),
    BucketDefinition("15-24s", duration_between(15, 25)),
    BucketDefinition("25-35s", duration_between(25, 36)),
    BucketDefinition("36s+", duration_between(36)),
]


def bucket_by(
    videos: Sequence[VideoRecord],
    bucket_defs: Sequence[BucketDefinition],
    metric_selector: Callable[[VideoRecord], Optional[float]]
) -> List[CohortBucket]:
    """
    Partition videos into buckets and summarise a metric per bucket.

    Args:
        videos: Videos to partition
        bucket_defs: Bucket definitions, in priority order
        metric_selector: Extracts the metric from a video (None, NaN and
                unparseable values are read as 0)

    Returns:
        One CohortBucket per definition, in definition order
    """
    members: List[List[float]] = [[] for _ in bucket_defs]
    unassigned = 0

    for video in videos:
        for index, bucket in enumerate(bucket_defs):
            if bucket.predicate(video):
                members[index].append(coerce_number(metric_selector(video), allow_negative=True))
                break
        else:
            unassigned += 1

    if unassigned:
        logger.debug(f"{unassigned} video(s) matched no bucket")

    return [
        CohortBucket(label=bucket.label, **StatsService.summarize(values))
        for bucket, values in zip(bucket_defs, members)
    ]


def bucket_by_duration(
    videos: Sequence[ProcessedVideo],
    metric: Union[str, ChartMetric] = ChartMetric.ENGAGEMENT_RATE
) -> List[CohortBucket]:
    """Duration cohorts (0-14s, 15-24s, 25-35s, 36s+) for the selected chart metric."""
    chart_metric = resolve_metric(metric)
    return bucket_by(videos, DURATION_BUCKETS, lambda video: metric_value(video, chart_metric))


def build_heatmap(
    videos: Sequence[ProcessedVideo],
    metric: Union[str, ChartMetric] = ChartMetric.ENGAGEMENT_RATE
) -> List[HeatmapCell]:
    """
    Average the selected metric per weekday x hour of publication.

    Always returns all 168 cells, Sunday first, hour ascending. Averages are
    folded in one video at a time; videos without a publish date are skipped.
    """
    chart_metric = resolve_metric(metric)
    cells = [
        HeatmapCell(day_of_week=day, hour=hour)
        for day in range(HEATMAP_DAYS)
        for hour in range(HEATMAP_HOURS)
    ]

    for video in videos:
        if video.published_date is None:
            continue

        # Python weekday(): Monday = 0; heatmap rows start on Sunday.
        day = (video.published_date.weekday() + 1) % 7
        cell = cells[day * HEATMAP_HOURS + video.published_date.hour]

        cell.count += 1
        cell.average += (metric_value(video, chart_metric) - cell.average) / cell.count

    return cells


def group_by_field(videos: Sequence[VideoRecord], field: str) -> Dict[str, List[VideoRecord]]:
    """
    Group videos by the literal value of a categorical field.

    Unrecognised values form their own group; videos with no value are left out.
    """
    groups: Dict[str, List[VideoRecord]] = {}
    for video in videos:
        value = getattr(video, field, None)
        if isinstance(value, str) and value:
            groups.setdefault(value, []).append(video)
    return groups

"""
Services layer for CreatorLens.

Provides clean separation between data access (VideoService), per-video
metrics, statistics (StatsService) and the aggregation services the
dashboard is built from.
"""

from .models import (
    ChartMetric,
    DateRangePreset,
    Direction,
    DurationClass,
    SortOption,
    PerformanceTier,
    ViralityTier,
    VideoRecord,
    ProcessedVideo,
    DateRange,
    CohortBucket,
    HeatmapCell,
    TrafficDelta,
    TrafficShare,
    KPIValue,
    GrowthTrend,
    PerformanceScores,
    PerformanceBadge,
    ViralityStatus,
    ContentPattern,
    Insight,
    InsightType,
    InsightImpact,
    MetricDelta,
    GroupComparison,
    OutlierVideo,
    VideoFilters,
    DashboardSummary,
)

from .stats_service import StatsService
from .metrics_service import process_video, process_videos, normalize_video, normalize_videos
from .cohort_service import BucketDefinition, DURATION_BUCKETS, bucket_by, bucket_by_duration, build_heatmap
from .scoring_service import growth_score, hit_rate, viral_index, viral_scores, weighted_score
from .traffic_service import TrafficSource, compute_deltas, trailing_windows, classify_direction
from .video_service import VideoService, load_followers_from_file, load_videos_from_file, filter_videos, sort_videos
from .pattern_service import analyze_content_patterns, generate_insights
from .dashboard_service import build_dashboard

__all__ = [
    # Models
    'ChartMetric',
    'DateRangePreset',
    'Direction',
    'DurationClass',
    'SortOption',
    'PerformanceTier',
    'ViralityTier',
    'VideoRecord',
    'ProcessedVideo',
    'DateRange',
    'CohortBucket',
    'HeatmapCell',
    'TrafficDelta',
    'TrafficShare',
    'KPIValue',
    'GrowthTrend',
    'PerformanceScores',
    'PerformanceBadge',
    'ViralityStatus',
    'ContentPattern',
    'Insight',
    'InsightType',
    'InsightImpact',
    'MetricDelta',
    'GroupComparison',
    'OutlierVideo',
    'VideoFilters',
    'DashboardSummary',
    # Services
    'StatsService',
    'VideoService',
    'process_video',
    'process_videos',
    'normalize_video',
    'normalize_videos',
    'BucketDefinition',
    'DURATION_BUCKETS',
    'bucket_by',
    'bucket_by_duration',
    'build_heatmap',
    'growth_score',
    'hit_rate',
    'viral_index',
    'viral_scores',
    'weighted_score',
    'TrafficSource',
    'compute_deltas',
    'trailing_windows',
    'classify_direction',
    'load_followers_from_file',
    'load_videos_from_file',
    'analyze_content_patterns',
    'generate_insights',
    'filter_videos',
    'sort_videos',
    'build_dashboard',
]

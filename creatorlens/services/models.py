"""
Pydantic models for CreatorLens analytics services.

These models provide type-safe, validated data structures for:
- Raw video metric rows from the data provider (VideoRecord)
- Per-video derived metrics (ProcessedVideo)
- Cohorts and heatmap cells (CohortBucket, HeatmapCell)
- Period comparisons (TrafficDelta, KPIValue, GrowthTrend)
- Composite scores and badges (PerformanceScores, PerformanceBadge)
- Library filters and the assembled dashboard (VideoFilters, DashboardSummary)

All models use Pydantic v2. Numeric fields on VideoRecord are coerced at the
boundary so the aggregation code can assume fully populated records.
"""

import math
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# Enums
# ============================================================================

class ChartMetric(str, Enum):
    """Metric selectable for cohorts, heatmap and hit rate"""
    ENGAGEMENT_RATE = "engagement_rate"
    SAVES_PER_1K = "saves_per_1k"
    COMPLETION_RATE = "completion_rate"
    VIEWS_NORM = "views_norm"


class DateRangePreset(str, Enum):
    """Date range presets offered by the dashboard"""
    LAST_7_DAYS = "7d"
    LAST_14_DAYS = "14d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    CUSTOM = "custom"
    ALL = "all"


class Direction(str, Enum):
    """Direction of a period-over-period change"""
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class PerformanceTier(str, Enum):
    """Badge tier shown next to a video"""
    TOP = "top"
    GOOD = "good"
    AVERAGE = "average"
    LOW = "low"


class ViralityTier(str, Enum):
    """Tier based on views relative to the follower base"""
    VIRAL = "viral"
    GOOD = "good"
    MEDIUM = "medium"
    LOW = "low"


class InsightType(str, Enum):
    """Kind of rule that produced an insight"""
    PATTERN = "pattern"
    RECOMMENDATION = "recommendation"
    OPPORTUNITY = "opportunity"
    STRATEGY = "strategy"


class InsightImpact(str, Enum):
    """Expected impact of acting on an insight"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DurationClass(str, Enum):
    """Coarse duration classes used by the video library filters"""
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class SortOption(str, Enum):
    """Sort orders for the video library"""
    SAVES_PER_1K_DESC = "saves_per_1k_desc"
    ENGAGEMENT_RATE_DESC = "engagement_rate_desc"
    PERFORMANCE_SCORE_DESC = "performance_score_desc"
    VIRAL_INDEX_DESC = "viral_index_desc"
    VIEWS_DESC = "views_desc"
    PUBLISHED_DATE_DESC = "published_date_desc"


# ============================================================================
# Boundary coercion
# ============================================================================

COUNT_FIELDS = (
    "views", "likes", "comments", "shares", "saves", "new_followers",
    "traffic_for_you", "traffic_follow", "traffic_hashtag",
    "traffic_sound", "traffic_profile", "traffic_search",
)

SECONDS_FIELDS = ("avg_time_watched", "duration_seconds")

CATEGORICAL_FIELDS = ("video_type", "video_theme", "cta_type", "editing_style")


def coerce_number(value: Any, allow_negative: bool = False) -> float:
    """
    Coerce a raw numeric cell to a finite, non-negative float.

    None, blanks, unparseable strings, NaN/Infinity and negative values all
    become 0.0. Strings may carry thousands separators ("1,234").
    allow_negative keeps negative values for signed inputs such as z-scores.
    """
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or (number < 0 and not allow_negative):
        return 0.0
    return number


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, the form every stored date takes."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_published_date(value: Any) -> Optional[datetime]:
    """
    Parse a publish date into a naive UTC datetime.

    Accepts date, datetime and ISO-8601 strings (date-only strings become
    midnight). Returns None for anything unparseable.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


# ============================================================================
# Core Data Models
# ============================================================================

class VideoRecord(BaseModel):
    """
    TikTok video metrics row.

    Mirrors the `videos` table. Every numeric column may be missing in the
    source; missing or malformed values are stored as 0.
    """
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "7301234567890",
                "title": "3 errores al grabar con el móvil",
                "published_date": "2024-03-02",
                "views": 48210,
                "likes": 3120,
                "comments": 88,
                "shares": 140,
                "saves": 910,
                "new_followers": 230,
                "avg_time_watched": 11.4,
                "duration_seconds": 22,
                "traffic_for_you": 40120,
                "traffic_follow": 3100,
                "traffic_profile": 1800,
                "video_type": "tutorial",
            }
        },
    )

    id: str = Field(default="", description="Video ID")
    title: str = Field(default="", description="Video title")
    hook: Optional[str] = Field(None, description="Opening hook text")
    guion: Optional[str] = Field(None, description="Script text")

    published_date: Optional[datetime] = Field(None, description="When the video was published")

    # Volume metrics
    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)
    saves: int = Field(default=0, ge=0)
    new_followers: int = Field(default=0, ge=0)

    # Watch time (seconds)
    avg_time_watched: float = Field(default=0.0, ge=0)
    duration_seconds: float = Field(default=0.0, ge=0)

    # Views attributed by traffic source
    traffic_for_you: int = Field(default=0, ge=0)
    traffic_follow: int = Field(default=0, ge=0)
    traffic_hashtag: int = Field(default=0, ge=0)
    traffic_sound: int = Field(default=0, ge=0)
    traffic_profile: int = Field(default=0, ge=0)
    traffic_search: int = Field(default=0, ge=0)

    # Categorical
    video_type: Optional[str] = None
    video_theme: Optional[str] = None
    cta_type: Optional[str] = None
    editing_style: Optional[str] = None

    @field_validator("id", "title", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("hook", "guion", *CATEGORICAL_FIELDS, mode="before")
    @classmethod
    def _coerce_optional_text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value)
        return text if text.strip() else None

    @field_validator(*COUNT_FIELDS, mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> int:
        return int(coerce_number(value))

    @field_validator(*SECONDS_FIELDS, mode="before")
    @classmethod
    def _coerce_seconds(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("published_date", mode="before")
    @classmethod
    def _coerce_published_date(cls, value: Any) -> Optional[datetime]:
        return parse_published_date(value)


class ProcessedVideo(VideoRecord):
    """VideoRecord plus the per-video derived metrics."""
    engagement_rate: float = Field(default=0.0, description="(likes + comments + shares) / views * 100")
    saves_per_1k: float = Field(default=0.0, description="saves / views * 1000")
    followers_per_1k: float = Field(default=0.0, description="new_followers / views * 1000")
    retention_rate: float = Field(default=0.0, description="avg_time_watched / duration_seconds * 100")
    completion_rate: float = Field(default=0.0, description="Share of the video watched on average (%)")
    for_you_percentage: float = Field(default=0.0, description="traffic_for_you / views * 100")
    followers_at_post_time: int = Field(default=1, ge=0)
    views_norm: float = Field(default=0.0, description="Views, optionally normalised by follower base")
    performance_score: float = Field(default=0.0, description="Mean of the five rate metrics")


class DateRange(BaseModel):
    """Half-open window [start, end); either bound may be open."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_bound(cls, value: Any) -> Optional[datetime]:
        if value is None:
            return None
        parsed = parse_published_date(value)
        if parsed is None:
            raise ValueError(f"Invalid date bound: {value!r}")
        return parsed

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("Date range start must not be after its end")
        return self

    def contains(self, moment: Optional[datetime]) -> bool:
        if moment is None:
            return False
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment >= self.end:
            return False
        return True


# ============================================================================
# Derived Models
# ============================================================================

class CohortBucket(BaseModel):
    """Positional summary of one metric over the videos in a bucket."""
    label: str
    count: int = 0
    average: float = 0.0
    median: float = 0.0
    q1: float = 0.0
    q3: float = 0.0
    min: float = 0.0
    max: float = 0.0
    values: List[float] = Field(default_factory=list, description="Member values, ascending")


class HeatmapCell(BaseModel):
    """Running average of a metric for one weekday x hour cell."""
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday")
    hour: int = Field(..., ge=0, le=23)
    count: int = 0
    average: float = 0.0


class TrafficDelta(BaseModel):
    """Change in views from one traffic source between two windows."""
    name: str
    source: str
    current: int = 0
    previous: int = 0
    change: int = 0
    change_percentage: float = 0.0
    direction: Direction = Direction.NEUTRAL


class TrafficShare(BaseModel):
    """Share of attributed views for one traffic source."""
    name: str
    source: str
    value: int = 0
    percentage: float = 0.0


class KPIValue(BaseModel):
    """A headline metric with its change against the previous period."""
    value: float = 0.0
    previous_value: float = 0.0
    delta_abs: float = 0.0
    delta_pct: float = 0.0


class GrowthTrend(BaseModel):
    """Average engagement of the current window against the previous one."""
    direction: Direction = Direction.NEUTRAL
    percentage: float = Field(default=0.0, ge=0, description="Absolute change (%)")
    current: float = 0.0
    previous: float = 0.0


class PerformanceScores(BaseModel):
    """Library-level scores, each clamped to [0, 100]."""
    content_quality: float = 0.0
    viral_potential: float = 0.0
    monetization_readiness: float = 0.0
    overall_growth: float = 0.0


class PerformanceBadge(BaseModel):
    tier: PerformanceTier
    percentile_floor: int


class ViralityStatus(BaseModel):
    is_viral: bool = False
    tier: ViralityTier = ViralityTier.MEDIUM
    has_sufficient_data: bool = False


class ContentPattern(BaseModel):
    """Average performance of videos sharing one categorical value."""
    type: str = Field(..., description="theme, cta, editing_style or hook_type")
    value: str
    avg_engagement: float = 0.0
    avg_views: float = 0.0
    video_count: int = 0
    improvement_pct: float = 0.0


class Insight(BaseModel):
    """
    Rule-based finding about a library.

    Carries only ids, numbers and the subject value; titles and sentences are
    built by whatever renders it.
    """
    id: str = Field(..., description="best_theme, best_cta, monetization_opportunity or viral_pattern")
    type: InsightType
    impact: InsightImpact
    confidence: int = Field(..., ge=0, le=100)
    subject: Optional[str] = Field(default=None, description="Theme or CTA value the insight is about")
    metrics: Dict[str, float] = Field(default_factory=dict)


class MetricDelta(BaseModel):
    absolute: float = 0.0
    relative: float = 0.0


class GroupComparison(BaseModel):
    """Side-by-side averages for two hand-picked groups of videos."""
    group_a_count: int = 0
    group_b_count: int = 0
    averages_a: Dict[str, float] = Field(default_factory=dict)
    averages_b: Dict[str, float] = Field(default_factory=dict)
    deltas: Dict[str, MetricDelta] = Field(default_factory=dict)


class OutlierVideo(BaseModel):
    video_id: str
    value: float
    z_score: float
    percentile: float


class VideoFilters(BaseModel):
    """Filters for the video library. Unset fields don't filter."""
    theme: Optional[str] = None
    cta_type: Optional[str] = None
    editing_style: Optional[str] = None
    hook_type: Optional[str] = None
    video_type: Optional[str] = None
    durations: List[DurationClass] = Field(default_factory=list)
    date_range: Optional[DateRangePreset] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    search: str = ""

    # Percentile signals
    top_retention: bool = False
    top_saves: bool = False
    high_for_you: bool = False
    top_followers: bool = False


class DashboardSummary(BaseModel):
    """Everything the dashboard renders for one selection."""
    video_count: int = 0
    metric: ChartMetric = ChartMetric.ENGAGEMENT_RATE
    growth_score: float = 0.0
    growth_trend: GrowthTrend = Field(default_factory=GrowthTrend)
    hit_rate: float = 0.0
    saves_per_1k: float = 0.0
    performance_scores: PerformanceScores = Field(default_factory=PerformanceScores)
    top_performers: List[str] = Field(default_factory=list)
    bottom_performers: List[str] = Field(default_factory=list)
    duration_cohorts: List[CohortBucket] = Field(default_factory=list)
    heatmap: List[HeatmapCell] = Field(default_factory=list)
    traffic_deltas: List[TrafficDelta] = Field(default_factory=list)
    traffic_shares: List[TrafficShare] = Field(default_factory=list)
    kpis: Dict[str, KPIValue] = Field(default_factory=dict)
    insights: List[Insight] = Field(default_factory=list)

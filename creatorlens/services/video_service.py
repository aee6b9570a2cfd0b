"""
VideoService - Loads video metric rows and serves the video library.

Rows come from the Supabase `videos` table or from a CSV/JSON export and are
normalised into VideoRecords at this boundary. Filtering and sorting work on
ProcessedVideos so percentile signals can be evaluated.
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ..core.database import get_supabase_client, videos_table
from .metrics_service import normalize_videos
from .models import (
    CATEGORICAL_FIELDS,
    DurationClass,
    ProcessedVideo,
    SortOption,
    VideoFilters,
    VideoRecord,
    coerce_number,
    utc_now,
)
from .pattern_service import detect_hook_types
from .scoring_service import viral_scores
from .stats_service import StatsService
from .traffic_service import filter_by_window, resolve_date_range


logger = logging.getLogger(__name__)

# Percentile signals
TOP_PERCENTILE = 90.0
HIGH_FOR_YOU_PERCENTAGE = 75.0

# Duration classes (seconds)
SHORT_VIDEO_MAX = 20
LONG_VIDEO_MIN = 40

SEARCH_FIELDS = ("title", "hook", "guion")


class VideoService:
    """Reads a creator's videos from Supabase."""

    def __init__(self, client=None):
        self._db = client if client is not None else get_supabase_client()

    def fetch_videos(self, user_id: str) -> List[VideoRecord]:
        """
        Fetch all videos for a user, newest first.

        Args:
            user_id: Owner of the videos

        Returns:
            Normalised VideoRecords

        Raises:
            Exception: Whatever the Supabase client raised, after logging it
        """
        try:
            result = (
                videos_table(self._db)
                .select("*")
                .eq("user_id", user_id)
                .order("published_date", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to fetch videos for user {user_id}: {e}")
            raise

        rows = result.data or []
        logger.info(f"Fetched {len(rows)} videos for user {user_id}")
        return normalize_videos(rows)


def load_videos_from_file(path: Union[str, Path]) -> List[VideoRecord]:
    """
    Load videos from a CSV export (header row) or a JSON list of rows.

    A JSON object with a "videos" key is also accepted.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the format is unsupported or the JSON isn't a list of rows
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Video file not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        with open(file_path, "r", newline="", encoding="utf-8-sig") as f:
            rows: List[Dict[str, Any]] = list(csv.DictReader(f))
    elif suffix == ".json":
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("videos")
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise ValueError(f"Expected a list of video rows in {file_path}")
        rows = data
    else:
        raise ValueError(f"Unsupported video file format: {file_path.suffix or file_path.name}")

    logger.info(f"Loaded {len(rows)} videos from {file_path}")
    return normalize_videos(rows)


def load_followers_from_file(path: Union[str, Path]) -> Dict[str, int]:
    """
    Load follower counts at post time, keyed by video id.

    Accepts a CSV with `id` and `followers` columns, or a JSON object mapping
    video id to follower count. Rows with no positive count are dropped, so
    those videos are treated as having no follower history.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the format is unsupported or the JSON isn't an object
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Followers file not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        with open(file_path, "r", newline="", encoding="utf-8-sig") as f:
            pairs = [(row.get("id"), row.get("followers")) for row in csv.DictReader(f)]
    elif suffix == ".json":
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object of video id -> followers in {file_path}")
        pairs = list(data.items())
    else:
        raise ValueError(f"Unsupported followers file format: {file_path.suffix or file_path.name}")

    followers = {}
    for video_id, count in pairs:
        count = int(coerce_number(count))
        if video_id and count > 0:
            followers[str(video_id)] = count

    logger.info(f"Loaded follower counts for {len(followers)} videos from {file_path}")
    return followers


# ============================================================================
# Library
# ============================================================================

def duration_class(duration_seconds: float) -> DurationClass:
    """short < 20s, medium 20-40s, long > 40s"""
    if duration_seconds < SHORT_VIDEO_MAX:
        return DurationClass.SHORT
    if duration_seconds <= LONG_VIDEO_MIN:
        return DurationClass.MEDIUM
    return DurationClass.LONG


def _matches_search(video: VideoRecord, search: str) -> bool:
    needle = search.strip().lower()
    if not needle:
        return True
    return any(needle in (getattr(video, field) or "").lower() for field in SEARCH_FIELDS)


def filter_videos(
    videos: Sequence[ProcessedVideo],
    filters: Optional[VideoFilters] = None,
    now: Optional[datetime] = None
) -> List[ProcessedVideo]:
    """
    Apply the library filters.

    Percentile signals (top retention, top saves, top followers) rank each
    video against the full input list, not the already-filtered subset.

    Raises:
        ValueError: If the date range is invalid
    """
    filters = filters or VideoFilters()
    now = now or utc_now()

    retention_values = [v.retention_rate for v in videos]
    saves_values = [v.saves_per_1k for v in videos]
    followers_values = [v.followers_per_1k for v in videos]

    window = resolve_date_range(filters.date_range, now, filters.start, filters.end)
    candidates = filter_by_window(videos, window)

    results = []
    for video in candidates:
        if filters.theme and video.video_theme != filters.theme:
            continue
        if filters.cta_type and video.cta_type != filters.cta_type:
            continue
        if filters.editing_style and video.editing_style != filters.editing_style:
            continue
        if filters.video_type and video.video_type != filters.video_type:
            continue
        if filters.hook_type and filters.hook_type not in detect_hook_types(video.hook):
            continue
        if filters.durations and duration_class(video.duration_seconds) not in filters.durations:
            continue
        if not _matches_search(video, filters.search):
            continue

        if filters.top_retention and StatsService.calculate_percentile(video.retention_rate, retention_values) < TOP_PERCENTILE:
            continue
        if filters.top_saves and StatsService.calculate_percentile(video.saves_per_1k, saves_values) < TOP_PERCENTILE:
            continue
        if filters.top_followers and StatsService.calculate_percentile(video.followers_per_1k, followers_values) < TOP_PERCENTILE:
            continue
        if filters.high_for_you and video.for_you_percentage < HIGH_FOR_YOU_PERCENTAGE:
            continue

        results.append(video)

    logger.debug(f"Library filters kept {len(results)} of {len(videos)} videos")
    return results


def sort_videos(
    videos: Sequence[ProcessedVideo],
    sort_by: Union[str, SortOption] = SortOption.PUBLISHED_DATE_DESC
) -> List[ProcessedVideo]:
    """
    Sort the library, highest first. Videos without a publish date sort last
    under published_date_desc.

    Raises:
        ValueError: If the sort option is unknown
    """
    try:
        option = SortOption(sort_by)
    except ValueError:
        options = ", ".join(s.value for s in SortOption)
        raise ValueError(f"Unknown sort option: {sort_by}. Use one of: {options}")

    if option == SortOption.PUBLISHED_DATE_DESC:
        dated = [v for v in videos if v.published_date is not None]
        undated = [v for v in videos if v.published_date is None]
        return sorted(dated, key=lambda v: v.published_date, reverse=True) + undated

    if option == SortOption.VIRAL_INDEX_DESC:
        scored = list(zip(viral_scores(videos), videos))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [video for _, video in scored]

    attribute = {
        SortOption.SAVES_PER_1K_DESC: "saves_per_1k",
        SortOption.ENGAGEMENT_RATE_DESC: "engagement_rate",
        SortOption.PERFORMANCE_SCORE_DESC: "performance_score",
        SortOption.VIEWS_DESC: "views",
    }[option]
    return sorted(videos, key=lambda v: getattr(v, attribute), reverse=True)


def filter_options(videos: Sequence[VideoRecord]) -> Dict[str, List[str]]:
    """Sorted distinct values of each categorical column, for filter dropdowns."""
    return {
        field: sorted({getattr(video, field) for video in videos if getattr(video, field)})
        for field in CATEGORICAL_FIELDS
    }

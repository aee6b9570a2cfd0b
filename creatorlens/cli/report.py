"""
Report CLI Commands

Commands that run the aggregation layer over a creator's videos and print
the results as JSON.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import click
from tqdm import tqdm

from ..core.config import Config, load_scoring_config
from ..services.cohort_service import bucket_by_duration, build_heatmap
from ..services.dashboard_service import build_dashboard
from ..services.metrics_service import process_videos
from ..services.models import DateRangePreset, ChartMetric, VideoRecord, parse_published_date, utc_now
from ..services.pattern_service import generate_insights
from ..services.scoring_service import performance_badge, viral_scores, virality_status
from ..services.stats_service import StatsService
from ..services.traffic_service import (
    ALL_TRAFFIC_SOURCES,
    compute_deltas,
    filter_by_window,
    resolve_date_range,
    traffic_share,
    trailing_windows,
)
from ..services.video_service import VideoService, load_followers_from_file, load_videos_from_file


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)


RANGE_CHOICES = [preset.value for preset in DateRangePreset]
METRIC_CHOICES = [metric.value for metric in ChartMetric]


def source_options(func):
    """--file / --user-id, shared by every report command."""
    func = click.option("--user-id", help="Fetch this user's videos from Supabase")(func)
    func = click.option(
        "--file", "file_path",
        type=click.Path(dir_okay=False),
        help="CSV or JSON export of video metrics"
    )(func)
    return func


now_option = click.option("--now", help="Reference time (ISO-8601), defaults to the current UTC time")

followers_option = click.option(
    "--followers", "followers_path",
    type=click.Path(dir_okay=False),
    help="CSV (id, followers) or JSON object of follower counts at post time"
)


def _load_videos(file_path: Optional[str], user_id: Optional[str]) -> List[VideoRecord]:
    if bool(file_path) == bool(user_id):
        raise click.UsageError("Provide exactly one of --file or --user-id")

    try:
        if file_path:
            return load_videos_from_file(file_path)
        return VideoService().fetch_videos(user_id)
    except FileNotFoundError as e:
        raise click.BadParameter(str(e), param_hint="--file")
    except ValueError as e:
        raise click.UsageError(str(e))


def _load_followers(followers_path: Optional[str]) -> Dict[str, int]:
    if not followers_path:
        return {}

    try:
        return load_followers_from_file(followers_path)
    except FileNotFoundError as e:
        raise click.BadParameter(str(e), param_hint="--followers")
    except ValueError as e:
        raise click.UsageError(str(e))


def _reference_time(now: Optional[str]) -> datetime:
    if not now:
        return utc_now()
    parsed = parse_published_date(now)
    if parsed is None:
        raise click.BadParameter(f"Not an ISO-8601 date: {now}", param_hint="--now")
    return parsed


def _emit(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


@click.group(name="report")
def report_group():
    """Aggregate video metrics into dashboard reports."""
    pass


@report_group.command(name="dashboard")
@source_options
@now_option
@click.option("--range", "date_range", type=click.Choice(RANGE_CHOICES), default=Config.DEFAULT_DATE_RANGE,
              show_default=True, help="Date range preset")
@click.option("--start", help="Start of a custom range (ISO-8601)")
@click.option("--end", help="End of a custom range (ISO-8601)")
@click.option("--metric", type=click.Choice(METRIC_CHOICES), default=Config.DEFAULT_CHART_METRIC,
              show_default=True, help="Chart metric")
@click.option("--weights", "weights_path", type=click.Path(dir_okay=False), help="YAML file with scoring weights")
@click.option("--normalize-by-account", is_flag=True, help="Divide views by follower base")
@followers_option
def dashboard(file_path: Optional[str], user_id: Optional[str], now: Optional[str], date_range: str,
              start: Optional[str], end: Optional[str], metric: str, weights_path: Optional[str],
              normalize_by_account: bool, followers_path: Optional[str]):
    """
    Build the full dashboard summary.

    Example:
        creatorlens report dashboard --file videos.csv --range 30d --metric saves_per_1k
    """
    videos = _load_videos(file_path, user_id)
    reference = _reference_time(now)
    followers = _load_followers(followers_path)

    try:
        scoring_config = load_scoring_config(weights_path)
        summary = build_dashboard(
            videos,
            date_range=date_range,
            metric=metric,
            now=reference,
            normalize_by_account=normalize_by_account,
            scoring_config=scoring_config,
            start=start,
            end=end,
            followers_by_video=followers,
        )
    except FileNotFoundError as e:
        raise click.BadParameter(str(e), param_hint="--weights")
    except ValueError as e:
        raise click.UsageError(str(e))

    _emit(summary.model_dump(mode="json"))


@report_group.command(name="cohorts")
@source_options
@now_option
@click.option("--range", "date_range", type=click.Choice(RANGE_CHOICES), default=Config.DEFAULT_DATE_RANGE,
              show_default=True, help="Date range preset")
@click.option("--metric", type=click.Choice(METRIC_CHOICES), default=Config.DEFAULT_CHART_METRIC,
              show_default=True, help="Chart metric")
def cohorts(file_path: Optional[str], user_id: Optional[str], now: Optional[str], date_range: str, metric: str):
    """Duration cohorts (0-14s, 15-24s, 25-35s, 36s+) for a metric."""
    videos = _load_videos(file_path, user_id)

    try:
        window = resolve_date_range(date_range, _reference_time(now))
    except ValueError as e:
        raise click.UsageError(str(e))

    selected = filter_by_window(process_videos(videos), window)
    _emit([bucket.model_dump(mode="json") for bucket in bucket_by_duration(selected, metric)])


@report_group.command(name="heatmap")
@source_options
@now_option
@click.option("--range", "date_range", type=click.Choice(RANGE_CHOICES), default=Config.DEFAULT_DATE_RANGE,
              show_default=True, help="Date range preset")
@click.option("--metric", type=click.Choice(METRIC_CHOICES), default=Config.DEFAULT_CHART_METRIC,
              show_default=True, help="Chart metric")
def heatmap(file_path: Optional[str], user_id: Optional[str], now: Optional[str], date_range: str, metric: str):
    """Weekday x hour averages of a metric (Sunday first)."""
    videos = _load_videos(file_path, user_id)

    try:
        window = resolve_date_range(date_range, _reference_time(now))
    except ValueError as e:
        raise click.UsageError(str(e))

    selected = filter_by_window(process_videos(videos), window)
    _emit([cell.model_dump(mode="json") for cell in build_heatmap(selected, metric)])


@report_group.command(name="traffic")
@source_options
@now_option
@click.option("--days", type=click.IntRange(min=1), default=Config.TREND_WINDOW_DAYS, show_default=True,
              help="Window length in days")
@click.option("--weights", "weights_path", type=click.Path(dir_okay=False),
              help="YAML file with the neutral change threshold")
def traffic(file_path: Optional[str], user_id: Optional[str], now: Optional[str], days: int,
            weights_path: Optional[str]):
    """Traffic source deltas: last N days against the N days before."""
    videos = _load_videos(file_path, user_id)
    reference = _reference_time(now)

    try:
        scoring_config = load_scoring_config(weights_path)
    except FileNotFoundError as e:
        raise click.BadParameter(str(e), param_hint="--weights")
    except ValueError as e:
        raise click.UsageError(str(e))

    current_window, previous_window = trailing_windows(reference, days)
    deltas = compute_deltas(
        videos,
        ALL_TRAFFIC_SOURCES,
        current_window,
        previous_window,
        scoring_config.neutral_change_threshold
    )

    _emit({
        "deltas": [delta.model_dump(mode="json") for delta in deltas],
        "shares": [share.model_dump(mode="json") for share in traffic_share(filter_by_window(videos, current_window))],
    })


@report_group.command(name="viral")
@source_options
@click.option("--weights", "weights_path", type=click.Path(dir_okay=False), help="YAML file with viral index weights")
@click.option("--normalize-by-account", is_flag=True, help="Divide views by follower base")
@followers_option
@click.option("--limit", type=int, help="Only report the top N videos")
def viral(file_path: Optional[str], user_id: Optional[str], weights_path: Optional[str],
          normalize_by_account: bool, followers_path: Optional[str], limit: Optional[int]):
    """
    Viral index (0-10), performance badge and virality tier per video.

    Virality tiers need --normalize-by-account and a follower count for the
    video; other videos are reported as medium.

    Example:
        creatorlens report viral --user-id 42 --limit 10
    """
    videos = _load_videos(file_path, user_id)

    try:
        scoring_config = load_scoring_config(weights_path)
    except FileNotFoundError as e:
        raise click.BadParameter(str(e), param_hint="--weights")
    except ValueError as e:
        raise click.UsageError(str(e))

    followers = _load_followers(followers_path)
    processed = process_videos(videos, followers, normalize_by_account)
    performance = [video.performance_score for video in processed]
    indices = viral_scores(processed, scoring_config.viral_index_weights)

    rows = []
    scored = zip(processed, indices)
    for video, index in tqdm(scored, total=len(processed), desc="Scoring videos", disable=len(processed) < 100):
        percentile = StatsService.calculate_percentile(video.performance_score, performance)
        rows.append({
            "id": video.id,
            "title": video.title,
            "views": video.views,
            "viral_index": index,
            "performance_percentile": percentile,
            "badge": performance_badge(percentile).tier.value,
            "virality": virality_status(video.views_norm, normalize_by_account and video.id in followers).tier.value,
        })

    rows.sort(key=lambda row: row["viral_index"], reverse=True)
    if limit:
        rows = rows[:limit]

    _emit(rows)


@report_group.command(name="insights")
@source_options
@now_option
@click.option("--range", "date_range", type=click.Choice(RANGE_CHOICES), default=Config.DEFAULT_DATE_RANGE,
              show_default=True, help="Date range preset")
def insights(file_path: Optional[str], user_id: Optional[str], now: Optional[str], date_range: str):
    """Rule-based insights (best theme, best CTA, monetization, viral theme)."""
    videos = _load_videos(file_path, user_id)

    try:
        window = resolve_date_range(date_range, _reference_time(now))
    except ValueError as e:
        raise click.UsageError(str(e))

    selected = filter_by_window(process_videos(videos), window)
    _emit([insight.model_dump(mode="json") for insight in generate_insights(selected)])

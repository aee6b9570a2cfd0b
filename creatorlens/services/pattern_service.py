"""
Content pattern analysis.

Classifies opening hooks, finds which themes, CTAs, editing styles and hook
types engage better than the library average, and turns those patterns into
rule-based insights.
"""

import logging
import re
from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence, Set

from .models import ContentPattern, Insight, InsightImpact, InsightType, ProcessedVideo
from .scoring_service import performance_scores


logger = logging.getLogger(__name__)

# Hook categories shown in the content patterns table
HOW_TO_HOOK = "How-to/Tutorial"
QUESTION_HOOK = "Question Hook"
NEGATIVE_HOOK = "Negative Hook"
DIRECT_QUESTION_HOOK = "Direct Question"
DEMONSTRATIVE_HOOK = "Demonstrative"
STATEMENT_HOOK = "Statement Hook"

HOW_TO_KEYWORDS = ("how", "tutorial", "learn")
NEGATIVE_KEYWORDS = ("don't", "never", "stop", "avoid")
QUESTION_OPENERS = ("what", "why", "when", "where", "who")
DIRECT_QUESTION_OPENERS = ("did", "can", "will", "are")
DEMONSTRATIVE_OPENERS = ("this", "here", "check")

# Library filter tags
HOOK_TAG_QUESTION = "question"
HOOK_TAG_NUMBER = "number"
HOOK_TAG_HOW_TO = "how_to"
HOOK_TAGS = (HOOK_TAG_QUESTION, HOOK_TAG_NUMBER, HOOK_TAG_HOW_TO)

QUESTION_PREFIXES = ("¿cómo", "¿qué", "¿por qué", "¿cuál")
NUMBER_KEYWORDS = ("top ", " formas", " pasos", " tips")
HOW_TO_PREFIXES = ("aprende", "descubre")
LEADING_NUMBER = re.compile(r"^\d+\s")

PATTERN_FIELDS: Dict[str, Callable[[ProcessedVideo], Optional[str]]] = {
    "theme": lambda video: video.video_theme,
    "cta": lambda video: video.cta_type,
    "editing_style": lambda video: video.editing_style,
    "hook_type": lambda video: categorize_hook(video.hook) if video.hook else None,
}


def _first_word(text: str) -> str:
    words = text.split()
    return words[0] if words else ""


def categorize_hook(text: Optional[str]) -> str:
    """
    Put a hook into one of six broad categories.

    Rules are checked in order; the first match wins.

    Example:
        >>> categorize_hook("Why nobody talks about this")
        'Question Hook'
    """
    lowered = (text or "").strip().lower()
    first = _first_word(lowered)

    if any(keyword in lowered for keyword in HOW_TO_KEYWORDS):
        return HOW_TO_HOOK
    if first in QUESTION_OPENERS:
        return QUESTION_HOOK
    if any(keyword in lowered for keyword in NEGATIVE_KEYWORDS):
        return NEGATIVE_HOOK
    if first in DIRECT_QUESTION_OPENERS:
        return DIRECT_QUESTION_HOOK
    if first in DEMONSTRATIVE_OPENERS:
        return DEMONSTRATIVE_HOOK
    return STATEMENT_HOOK


def detect_hook_types(text: Optional[str]) -> Set[str]:
    """
    Tags used by the library's hook type filter. A hook can carry several.

    Recognises English and Spanish phrasing ("¿cómo...", "5 formas de...").
    """
    lowered = (text or "").strip().lower()
    if not lowered:
        return set()

    tags = set()
    if "?" in lowered or lowered.startswith(QUESTION_PREFIXES):
        tags.add(HOOK_TAG_QUESTION)
    if LEADING_NUMBER.match(lowered) or any(keyword in lowered for keyword in NUMBER_KEYWORDS):
        tags.add(HOOK_TAG_NUMBER)
    if "cómo" in lowered or "how to" in lowered or lowered.startswith(HOW_TO_PREFIXES):
        tags.add(HOOK_TAG_HOW_TO)
    return tags


def analyze_content_patterns(
    videos: Sequence[ProcessedVideo],
    min_videos: int = 2
) -> List[ContentPattern]:
    """
    Average engagement and views per theme, CTA, editing style and hook type.

    Videos without views are ignored. Groups smaller than `min_videos` are
    dropped. improvement_pct compares the group's engagement with the
    library average.

    Returns:
        Patterns sorted by average engagement, highest first
    """
    with_views = [video for video in videos if video.views > 0]
    if not with_views:
        return []

    overall_engagement = sum(v.engagement_rate for v in with_views) / len(with_views)

    patterns = []
    for pattern_type, selector in PATTERN_FIELDS.items():
        groups: Dict[str, List[ProcessedVideo]] = {}
        for video in with_views:
            value = selector(video)
            if value:
                groups.setdefault(value, []).append(video)

        for value, members in groups.items():
            if len(members) < min_videos:
                continue

            avg_engagement = sum(v.engagement_rate for v in members) / len(members)
            improvement = (
                (avg_engagement - overall_engagement) / overall_engagement * 100
                if overall_engagement > 0 else 0.0
            )
            patterns.append(ContentPattern(
                type=pattern_type,
                value=value,
                avg_engagement=avg_engagement,
                avg_views=sum(v.views for v in members) / len(members),
                video_count=len(members),
                improvement_pct=improvement,
            ))

    patterns.sort(key=lambda p: p.avg_engagement, reverse=True)
    logger.debug(f"Found {len(patterns)} content patterns across {len(with_views)} videos")
    return patterns


# ============================================================================
# Insights
# ============================================================================

INSIGHT_LIMIT = 6
MONETIZATION_READINESS_FLOOR = 60.0
VIRAL_PATTERN_MIN_VIEWS = 100_000

# Confidence grows with group size, capped per insight
BEST_THEME_CONFIDENCE_PER_VIDEO = 15
BEST_THEME_CONFIDENCE_CAP = 95
BEST_CTA_CONFIDENCE_PER_VIDEO = 12
BEST_CTA_CONFIDENCE_CAP = 90
MONETIZATION_CONFIDENCE = 85
VIRAL_PATTERN_CONFIDENCE = 80


def generate_insights(
    videos: Sequence[ProcessedVideo],
    patterns: Optional[Sequence[ContentPattern]] = None
) -> List[Insight]:
    """
    Rule-based insights for a library, at most INSIGHT_LIMIT of them.

    Rules, in order:
    - best_theme: highest-engagement theme with 2+ videos
    - best_cta: highest-engagement CTA with 2+ videos
    - monetization_opportunity: monetization readiness below 60
    - viral_pattern: most common theme among videos over 100k views

    Videos without views are ignored, as in analyze_content_patterns(). A
    library with no viewed videos gets no insights.

    Args:
        videos: Processed library
        patterns: Precomputed analyze_content_patterns(videos) result

    Returns:
        List of Insight
    """
    with_views = [video for video in videos if video.views > 0]
    if not with_views:
        return []
    if patterns is None:
        patterns = analyze_content_patterns(with_views)

    insights = []

    best_theme = next((p for p in patterns if p.type == "theme"), None)
    if best_theme and best_theme.video_count >= 2:
        insights.append(Insight(
            id="best_theme",
            type=InsightType.PATTERN,
            impact=InsightImpact.HIGH,
            confidence=min(BEST_THEME_CONFIDENCE_CAP, best_theme.video_count * BEST_THEME_CONFIDENCE_PER_VIDEO),
            subject=best_theme.value,
            metrics={
                "improvement_pct": best_theme.improvement_pct,
                "avg_engagement": best_theme.avg_engagement,
                "video_count": best_theme.video_count,
            },
        ))

    best_cta = next((p for p in patterns if p.type == "cta"), None)
    if best_cta and best_cta.video_count >= 2:
        insights.append(Insight(
            id="best_cta",
            type=InsightType.RECOMMENDATION,
            impact=InsightImpact.MEDIUM,
            confidence=min(BEST_CTA_CONFIDENCE_CAP, best_cta.video_count * BEST_CTA_CONFIDENCE_PER_VIDEO),
            subject=best_cta.value,
            metrics={
                "improvement_pct": best_cta.improvement_pct,
                "avg_views": best_cta.avg_views,
                "video_count": best_cta.video_count,
            },
        ))

    readiness = performance_scores(with_views).monetization_readiness
    if readiness < MONETIZATION_READINESS_FLOOR:
        insights.append(Insight(
            id="monetization_opportunity",
            type=InsightType.OPPORTUNITY,
            impact=InsightImpact.HIGH,
            confidence=MONETIZATION_CONFIDENCE,
            metrics={"monetization_readiness": readiness},
        ))

    viral = [video for video in with_views if video.views > VIRAL_PATTERN_MIN_VIEWS]
    themes = Counter(video.video_theme for video in viral if video.video_theme)
    if themes:
        theme, count = themes.most_common(1)[0]
        insights.append(Insight(
            id="viral_pattern",
            type=InsightType.STRATEGY,
            impact=InsightImpact.HIGH,
            confidence=VIRAL_PATTERN_CONFIDENCE,
            subject=theme,
            metrics={
                "viral_video_count": len(viral),
                "viral_share_pct": len(viral) / len(with_views) * 100,
                "theme_video_count": count,
            },
        ))

    logger.debug(f"Generated {len(insights)} insights from {len(with_views)} videos")
    return insights[:INSIGHT_LIMIT]

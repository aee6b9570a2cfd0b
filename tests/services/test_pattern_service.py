"""
Tests for pattern_service: hook categories, hook filter tags and content
pattern analysis.
"""

import pytest

from creatorlens.services.models import ContentPattern, InsightImpact, InsightType, ProcessedVideo
from creatorlens.services.pattern_service import (
    DEMONSTRATIVE_HOOK,
    DIRECT_QUESTION_HOOK,
    HOW_TO_HOOK,
    NEGATIVE_HOOK,
    QUESTION_HOOK,
    STATEMENT_HOOK,
    analyze_content_patterns,
    categorize_hook,
    detect_hook_types,
    generate_insights,
)


class TestCategorizeHook:
    @pytest.mark.parametrize("hook,category", [
        ("How I grew to 10k followers", HOW_TO_HOOK),
        ("Quick tutorial for beginners", HOW_TO_HOOK),
        ("Why nobody talks about this", QUESTION_HOOK),
        ("What you don't know about rent", QUESTION_HOOK),
        ("Stop doing this with your savings", NEGATIVE_HOOK),
        ("Never buy a used phone before watching", NEGATIVE_HOOK),
        ("Can you guess the price?", DIRECT_QUESTION_HOOK),
        ("This changed my mornings", DEMONSTRATIVE_HOOK),
        ("Check these three apps", DEMONSTRATIVE_HOOK),
        ("My morning routine", STATEMENT_HOOK),
        ("", STATEMENT_HOOK),
        (None, STATEMENT_HOOK),
    ])
    def test_categories(self, hook, category):
        assert categorize_hook(hook) == category

    def test_case_insensitive(self):
        assert categorize_hook("WHY this works") == QUESTION_HOOK


class TestDetectHookTypes:
    def test_spanish_question_with_how(self):
        assert detect_hook_types("¿Cómo ahorrar 100€ al mes?") == {"question", "how_to"}

    def test_inverted_question_mark_prefix(self):
        assert "question" in detect_hook_types("¿Qué pasa si dejas el azúcar")

    def test_leading_number(self):
        assert detect_hook_types("5 formas de ahorrar") == {"number"}

    def test_number_keywords(self):
        assert detect_hook_types("Mis mejores tips de cocina") == {"number"}
        assert "number" in detect_hook_types("Top apps for students")

    def test_how_to_prefixes(self):
        assert detect_hook_types("Aprende a cocinar arroz") == {"how_to"}
        assert detect_hook_types("how to edit faster") == {"how_to"}

    def test_plain_statement(self):
        assert detect_hook_types("Hola a todos") == set()

    def test_empty(self):
        assert detect_hook_types(None) == set()
        assert detect_hook_types("   ") == set()


class TestAnalyzeContentPatterns:
    def test_groups_themes_against_library_average(self):
        videos = [
            ProcessedVideo(id="1", views=100, engagement_rate=4, video_theme="finanzas"),
            ProcessedVideo(id="2", views=300, engagement_rate=6, video_theme="finanzas"),
            ProcessedVideo(id="3", views=100, engagement_rate=1, video_theme="humor"),
            ProcessedVideo(id="4", views=100, engagement_rate=1, video_theme="humor"),
            ProcessedVideo(id="5", views=0, engagement_rate=100, video_theme="finanzas"),
        ]

        patterns = analyze_content_patterns(videos)

        assert [(p.type, p.value) for p in patterns] == [("theme", "finanzas"), ("theme", "humor")]
        finanzas = patterns[0]
        assert finanzas.video_count == 2
        assert finanzas.avg_engagement == pytest.approx(5.0)
        assert finanzas.avg_views == pytest.approx(200.0)
        assert finanzas.improvement_pct == pytest.approx(200 / 3)
        assert patterns[1].improvement_pct == pytest.approx(-200 / 3)

    def test_small_groups_dropped(self):
        videos = [
            ProcessedVideo(views=100, engagement_rate=4, cta_type="follow"),
            ProcessedVideo(views=100, engagement_rate=4, cta_type="comment"),
        ]
        assert analyze_content_patterns(videos) == []
        assert len(analyze_content_patterns(videos, min_videos=1)) == 2

    def test_hook_type_patterns(self):
        videos = [
            ProcessedVideo(views=100, engagement_rate=3, hook="How to batch cook"),
            ProcessedVideo(views=100, engagement_rate=5, hook="Learn this in 30 seconds"),
        ]
        [pattern] = analyze_content_patterns(videos)
        assert pattern.type == "hook_type"
        assert pattern.value == HOW_TO_HOOK
        assert pattern.improvement_pct == pytest.approx(0.0)

    def test_no_views(self):
        assert analyze_content_patterns([ProcessedVideo(views=0, video_theme="x")]) == []


@pytest.fixture
def library():
    return [
        ProcessedVideo(id="1", views=200_000, engagement_rate=8, video_theme="finanzas", cta_type="follow"),
        ProcessedVideo(id="2", views=150_000, engagement_rate=6, video_theme="finanzas", cta_type="follow"),
        ProcessedVideo(id="3", views=1000, engagement_rate=2, video_theme="humor", cta_type="comment"),
        ProcessedVideo(id="4", views=1000, engagement_rate=4, video_theme="humor", cta_type="comment"),
    ]


class TestGenerateInsights:
    def test_rules_in_order(self, library):
        insights = generate_insights(library)

        assert [i.id for i in insights] == [
            "best_theme", "best_cta", "monetization_opportunity", "viral_pattern",
        ]

    def test_best_theme(self, library):
        best_theme = generate_insights(library)[0]

        assert best_theme.type == InsightType.PATTERN
        assert best_theme.impact == InsightImpact.HIGH
        assert best_theme.subject == "finanzas"
        assert best_theme.confidence == 30
        assert best_theme.metrics["avg_engagement"] == pytest.approx(7.0)
        assert best_theme.metrics["improvement_pct"] == pytest.approx(40.0)

    def test_best_cta(self, library):
        best_cta = generate_insights(library)[1]

        assert best_cta.type == InsightType.RECOMMENDATION
        assert best_cta.impact == InsightImpact.MEDIUM
        assert best_cta.subject == "follow"
        assert best_cta.confidence == 24
        assert best_cta.metrics["avg_views"] == pytest.approx(175_000.0)

    def test_viral_pattern(self, library):
        viral = generate_insights(library)[3]

        assert viral.type == InsightType.STRATEGY
        assert viral.subject == "finanzas"
        assert viral.metrics["viral_video_count"] == 2
        assert viral.metrics["viral_share_pct"] == pytest.approx(50.0)

    def test_confidence_caps(self, library):
        patterns = [
            ContentPattern(type="theme", value="finanzas", avg_engagement=7, video_count=7),
            ContentPattern(type="cta", value="follow", avg_views=500, video_count=8),
        ]
        insights = {i.id: i for i in generate_insights(library, patterns)}

        assert insights["best_theme"].confidence == 95
        assert insights["best_cta"].confidence == 90

    def test_no_monetization_insight_when_ready(self):
        videos = [ProcessedVideo(views=1000, engagement_rate=3, traffic_profile=10)]
        assert "monetization_opportunity" not in [i.id for i in generate_insights(videos)]

    def test_metrics_are_numbers(self, library):
        for insight in generate_insights(library):
            assert all(isinstance(value, (int, float)) for value in insight.metrics.values())

    def test_empty_library(self):
        assert generate_insights([]) == []
        assert generate_insights([ProcessedVideo(views=0, video_theme="x")]) == []

"""
Tests for the report CLI: JSON output of each command and conversion of
configuration errors into usage errors.
"""

import json

import pytest
from click.testing import CliRunner
from unittest.mock import MagicMock, patch

from creatorlens.cli.main import cli


NOW = "2024-03-15T12:00:00"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def videos_file(tmp_path):
    rows = [
        {"id": "a", "title": "Uno", "published_date": "2024-03-14T18:00:00", "views": 1000, "likes": 90,
         "comments": 5, "shares": 5, "saves": 40, "avg_time_watched": 9, "duration_seconds": 12,
         "traffic_for_you": 900, "traffic_follow": 100},
        {"id": "b", "title": "Dos", "published_date": "2024-03-05T09:00:00", "views": 800, "likes": 30,
         "saves": 8, "avg_time_watched": 10, "duration_seconds": 30, "traffic_for_you": 600,
         "traffic_follow": 200},
        {"id": "c", "title": "Tres", "published_date": "2024-02-20T09:00:00", "views": 0},
    ]
    path = tmp_path / "videos.json"
    path.write_text(json.dumps(rows), encoding="utf-8")
    return str(path)


def _json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestDashboardCommand:
    def test_outputs_summary(self, runner, videos_file):
        result = runner.invoke(cli, ["report", "dashboard", "--file", videos_file, "--now", NOW])
        payload = _json(result)
        assert payload["video_count"] == 3
        assert payload["metric"] == "engagement_rate"
        assert len(payload["heatmap"]) == 168

    def test_range_and_metric(self, runner, videos_file):
        result = runner.invoke(cli, [
            "report", "dashboard", "--file", videos_file, "--now", NOW,
            "--range", "7d", "--metric", "saves_per_1k",
        ])
        payload = _json(result)
        assert payload["video_count"] == 1
        assert payload["metric"] == "saves_per_1k"

    def test_weights_file(self, runner, videos_file, tmp_path):
        weights = tmp_path / "weights.yaml"
        weights.write_text("growth_weights:\n  engagement_rate: 0\n  saves_per_1k: 1\n  completion_rate: 0\n")
        result = runner.invoke(cli, [
            "report", "dashboard", "--file", videos_file, "--now", NOW, "--range", "7d",
            "--weights", str(weights),
        ])
        assert _json(result)["growth_score"] == pytest.approx(40.0)

    def test_missing_weights_file(self, runner, videos_file, tmp_path):
        result = runner.invoke(cli, [
            "report", "dashboard", "--file", videos_file, "--weights", str(tmp_path / "nope.yaml"),
        ])
        assert result.exit_code == 2
        assert "not found" in result.output

    def test_inverted_custom_range(self, runner, videos_file):
        result = runner.invoke(cli, [
            "report", "dashboard", "--file", videos_file, "--range", "custom",
            "--start", "2024-03-10", "--end", "2024-03-01",
        ])
        assert result.exit_code == 2

    def test_unknown_metric_rejected(self, runner, videos_file):
        result = runner.invoke(cli, ["report", "dashboard", "--file", videos_file, "--metric", "likes"])
        assert result.exit_code == 2


class TestSourceOptions:
    def test_requires_a_source(self, runner):
        result = runner.invoke(cli, ["report", "cohorts"])
        assert result.exit_code == 2
        assert "--file or --user-id" in result.output

    def test_rejects_both_sources(self, runner, videos_file):
        result = runner.invoke(cli, ["report", "cohorts", "--file", videos_file, "--user-id", "u1"])
        assert result.exit_code == 2

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["report", "cohorts", "--file", str(tmp_path / "missing.csv")])
        assert result.exit_code == 2

    def test_bad_now(self, runner, videos_file):
        result = runner.invoke(cli, ["report", "cohorts", "--file", videos_file, "--now", "yesterday"])
        assert result.exit_code == 2

    def test_user_id_reads_supabase(self, runner):
        service = MagicMock()
        service.fetch_videos.return_value = []
        with patch("creatorlens.cli.report.VideoService", return_value=service):
            result = runner.invoke(cli, ["report", "cohorts", "--user-id", "user-1", "--now", NOW])
        buckets = _json(result)
        service.fetch_videos.assert_called_once_with("user-1")
        assert all(bucket["count"] == 0 for bucket in buckets)


class TestCohortsAndHeatmap:
    def test_cohorts(self, runner, videos_file):
        result = runner.invoke(cli, ["report", "cohorts", "--file", videos_file, "--now", NOW, "--range", "all"])
        buckets = _json(result)
        assert [b["label"] for b in buckets] == ["0-14s", "15-24s", "25-35s", "36s+"]
        assert [b["count"] for b in buckets] == [2, 0, 1, 0]

    def test_heatmap(self, runner, videos_file):
        result = runner.invoke(cli, ["report", "heatmap", "--file", videos_file, "--now", NOW])
        cells = _json(result)
        assert len(cells) == 168
        # 2024-03-14 is a Thursday
        thursday_evening = cells[4 * 24 + 18]
        assert thursday_evening["count"] == 1
        assert thursday_evening["average"] == pytest.approx(10.0)


class TestTrafficCommand:
    def test_deltas_and_shares(self, runner, videos_file):
        result = runner.invoke(cli, ["report", "traffic", "--file", videos_file, "--now", NOW])
        payload = _json(result)
        for_you = next(d for d in payload["deltas"] if d["source"] == "for_you")
        assert for_you["current"] == 900
        assert for_you["previous"] == 600
        assert for_you["change_percentage"] == pytest.approx(50.0)
        assert for_you["direction"] == "up"
        assert {s["source"] for s in payload["shares"]} == {"for_you", "follow"}


class TestViralCommand:
    def test_rows_sorted_by_index(self, runner, videos_file):
        result = runner.invoke(cli, ["report", "viral", "--file", videos_file])
        rows = _json(result)
        assert [row["id"] for row in rows][-1] == "c"
        assert all(0 <= row["viral_index"] <= 10 for row in rows)
        assert rows[-1]["viral_index"] == 0.0

    def test_limit(self, runner, videos_file):
        result = runner.invoke(cli, ["report", "viral", "--file", videos_file, "--limit", "1"])
        assert len(_json(result)) == 1

    def test_normalize_without_follower_counts_is_not_viral(self, runner, tmp_path):
        path = tmp_path / "small.json"
        path.write_text(json.dumps([{"id": "x", "views": 3}, {"id": "y", "views": 5}]), encoding="utf-8")

        result = runner.invoke(cli, ["report", "viral", "--file", str(path), "--normalize-by-account"])

        assert {row["virality"] for row in _json(result)} == {"medium"}

    def test_normalize_with_follower_counts(self, runner, videos_file, tmp_path):
        followers = tmp_path / "followers.json"
        followers.write_text(json.dumps({"a": 10000, "b": 100000}), encoding="utf-8")

        result = runner.invoke(cli, [
            "report", "viral", "--file", videos_file, "--normalize-by-account",
            "--followers", str(followers),
        ])

        virality = {row["id"]: row["virality"] for row in _json(result)}
        # 1000 / 10k = 0.1, 800 / 100k = 0.008, c has no follower count
        assert virality == {"a": "viral", "b": "low", "c": "medium"}

    def test_missing_followers_file(self, runner, videos_file, tmp_path):
        result = runner.invoke(cli, [
            "report", "viral", "--file", videos_file, "--followers", str(tmp_path / "nope.json"),
        ])
        assert result.exit_code == 2


class TestVersion:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestInsightsCommand:
    def test_outputs_structured_insights(self, runner, videos_file):
        result = runner.invoke(cli, ["report", "insights", "--file", videos_file, "--range", "all"])
        insights = _json(result)
        # average saves (40 + 8) / 2 with no profile traffic
        assert [i["id"] for i in insights] == ["monetization_opportunity"]
        assert insights[0]["metrics"]["monetization_readiness"] == pytest.approx(9.6)
        assert insights[0]["impact"] == "high"

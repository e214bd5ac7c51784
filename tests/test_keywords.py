"""
Tests for keyword ranking aggregation
"""
import pytest
from datetime import date, timedelta

from models import KeywordRanking
from keywords import top_keywords, ranking_changes, average_position, keyword_trend


class TestTopKeywords:
    """Tests for keyword collapsing"""

    def test_collapse_keeps_best_position_and_highest_volume(self):
        today = date(2024, 6, 15)
        rankings = [
            KeywordRanking("homes", 5, today, 100),
            KeywordRanking("homes", 3, today, 50),
        ]
        result = top_keywords(rankings)

        assert len(result) == 1
        assert result[0]["position"] == 3
        assert result[0]["searchVolume"] == 100

    def test_sorted_by_position_and_limited(self):
        today = date(2024, 6, 15)
        rankings = [KeywordRanking(f"kw{i}", 20 - i, today, i) for i in range(15)]
        result = top_keywords(rankings, limit=10)

        assert len(result) == 10
        positions = [k["position"] for k in result]
        assert positions == sorted(positions)
        assert result[0]["keyword"] == "kw14"

    def test_empty(self):
        assert top_keywords([]) == []


class TestRankingChanges:
    """Tests for latest-vs-previous comparisons"""

    def test_improved_declined_stable(self):
        today = date(2024, 6, 15)
        yesterday = today - timedelta(days=1)
        rankings = [
            KeywordRanking("up", 3, today),
            KeywordRanking("up", 5, yesterday),
            KeywordRanking("down", 8, today),
            KeywordRanking("down", 4, yesterday),
            KeywordRanking("same", 6, today),
            KeywordRanking("same", 6, yesterday),
            KeywordRanking("single", 1, today),
        ]
        assert ranking_changes(rankings) == {"improved": 1, "declined": 1, "stable": 1}

    def test_order_independent(self):
        """Rows are compared by date, not by input order"""
        today = date(2024, 6, 15)
        rankings = [
            KeywordRanking("up", 5, today - timedelta(days=1)),
            KeywordRanking("up", 3, today),
        ]
        assert ranking_changes(rankings)["improved"] == 1

    def test_only_two_latest_observations_count(self):
        today = date(2024, 6, 15)
        rankings = [
            KeywordRanking("kw", 4, today),
            KeywordRanking("kw", 4, today - timedelta(days=1)),
            KeywordRanking("kw", 40, today - timedelta(days=2)),
        ]
        assert ranking_changes(rankings) == {"improved": 0, "declined": 0, "stable": 1}


class TestAveragePosition:
    """Tests for mean ranking"""

    def test_ignores_unranked_rows(self, sample_rankings):
        rankings = sample_rankings + [KeywordRanking("unranked", 0, date(2024, 6, 15))]
        assert average_position(rankings) == pytest.approx(5)

    def test_empty(self):
        assert average_position([]) == 0


class TestKeywordTrend:
    """Tests for keyword position history"""

    def test_groups_first_keywords(self, sample_rankings):
        trend = keyword_trend(sample_rankings, keywords=1)

        assert len(trend) == 1
        assert trend[0]["keyword"] == "real estate"
        assert [p["position"] for p in trend[0]["positions"]] == [3, 5]

    def test_points_limit(self):
        today = date(2024, 6, 15)
        rankings = [KeywordRanking("kw", i + 1, today - timedelta(days=i)) for i in range(10)]
        assert len(keyword_trend(rankings)[0]["positions"]) == 7

    def test_row_coercion(self):
        row = KeywordRanking.from_row({"keyword": "kw", "position": None, "date": "2024-06-15",
                                       "search_volume": "250"})
        assert row.position == 0
        assert row.search_volume == 250
        assert row.date == date(2024, 6, 15)

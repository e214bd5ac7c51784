"""
Tests for the site-wide SEO score
"""
import pytest

from scoring import calculate_seo_score, grade_for, traffic_points, keyword_points, issue_penalty


GOOD_VITALS = {"lcp": 2.0, "fid": 50, "cls": 0.05}


def score(**overrides):
    inputs = dict(
        total_pages=100,
        indexed_pages=80,
        organic_traffic=850,
        domain_authority=40,
        core_web_vitals=GOOD_VITALS,
        issues=[],
        keyword_count=6,
    )
    inputs.update(overrides)
    return calculate_seo_score(**inputs)


class TestGrades:
    """Tests for grade boundaries"""

    @pytest.mark.parametrize("value,grade", [
        (90, "A+"), (89, "A"), (80, "A"), (79, "B"), (70, "B"),
        (69, "C"), (60, "C"), (59, "D"), (50, "D"), (49, "F"), (0, "F"),
    ])
    def test_grade_for(self, value, grade):
        assert grade_for(value) == grade


class TestComponentPoints:
    """Tests for stepped components"""

    @pytest.mark.parametrize("traffic,points", [
        (20000, 15), (10001, 15), (10000, 12), (5001, 12), (5000, 8), (1001, 8),
        (1000, 5), (101, 5), (100, 0), (0, 0),
    ])
    def test_traffic_points(self, traffic, points):
        assert traffic_points(traffic) == points

    @pytest.mark.parametrize("count,points", [(51, 10), (50, 7), (21, 7), (20, 5), (11, 5), (10, 3), (1, 3), (0, 0)])
    def test_keyword_points(self, count, points):
        assert keyword_points(count) == points

    def test_issue_penalty_is_capped(self):
        issues = [{"priority": "high"}] * 3 + [{"priority": "medium"}] * 2 + [{"priority": "low"}]
        assert issue_penalty(issues) == {"critical": 3, "warnings": 2, "penalty": 10}

    def test_issue_penalty_counts(self):
        issues = [{"priority": "high"}, {"priority": "medium"}, {"priority": "medium"}]
        assert issue_penalty(issues)["penalty"] == 5


class TestCalculateSeoScore:
    """Tests for the composite score"""

    def test_weighted_sum(self):
        result = score()

        # 20 indexing + 8 authority + 20 vitals + 5 traffic + 3 keywords
        assert result.score == 56
        assert result.grade == "D"
        assert result.indexing_rate == pytest.approx(80)
        assert result.performance_score == 20

    def test_components_are_capped(self):
        result = score(indexed_pages=200, domain_authority=500, organic_traffic=50000, keyword_count=80)
        assert result.indexing_score == 25
        assert result.domain_authority_score == 20
        assert result.score == 90
        assert result.grade == "A+"

    def test_clamped_at_zero(self):
        issues = [{"priority": "high"}] * 5
        result = score(indexed_pages=0, domain_authority=0, organic_traffic=0, keyword_count=0,
                       core_web_vitals={"lcp": 9, "fid": 900, "cls": 1}, issues=issues)
        assert result.score == 0
        assert result.grade == "F"

    def test_zero_total_pages(self):
        result = score(total_pages=0)
        assert result.indexing_rate == 0
        assert result.indexing_score == 0

    def test_site_vitals_weights_differ_from_page_weights(self):
        result = score(core_web_vitals={"lcp": 3.0, "fid": 200, "cls": 0.2})
        assert result.performance_score == 11
        assert result.performance["cls"] == {"value": 0.2, "score": 3, "max": 6}

    def test_missing_vitals_count_as_zero(self):
        result = score(core_web_vitals={})
        assert result.performance_score == 20

    def test_to_dict_shape(self):
        data = score(issues=[{"priority": "high"}]).to_dict()

        assert set(data) == {"score", "grade", "breakdown"}
        breakdown = data["breakdown"]
        assert breakdown["indexing"] == {"rate": 80, "score": 20, "max": 25}
        assert breakdown["domainAuthority"]["max"] == 20
        assert breakdown["performance"]["total"] == 20
        assert breakdown["traffic"] == {"value": 850, "score": 5, "max": 15}
        assert breakdown["keywords"] == {"count": 6, "score": 3, "max": 10}
        assert breakdown["issues"] == {"critical": 1, "warnings": 0, "penalty": 3, "max": 10}
        assert data["score"] == 53

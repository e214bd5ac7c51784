"""
Tests for the on-page SEO audit
"""
import pytest

from audit import (
    SEOAuditor, audit_page, audit_score, check_title, check_description, check_headings,
    check_images, check_links, check_keywords, check_content_length, count_occurrences
)
from models import AuditIssue


GOOD_TITLE = "Luxury Villas for Sale in Lagos | HomeFinder"          # 44 chars
GOOD_DESCRIPTION = "x" * 140
GOOD_BODY = "Spacious villas with sea views. " * 10                # 320 chars


def clean_content(**overrides):
    """Page content that passes every check"""
    content = {
        "title": GOOD_TITLE,
        "description": GOOD_DESCRIPTION,
        "headings": [{"level": 1, "text": "Villas"}, {"level": 2, "text": "Featured"}],
        "images": [{"src": "/a.jpg", "alt": "Villa front"}],
        "links": [{"href": "/properties", "isExternal": False}],
        "body": GOOD_BODY,
    }
    content.update(overrides)
    return content


def issue(priority):
    return AuditIssue("warning", "Test", "m", "s", priority)


class TestTitleAndDescription:
    """Tests for title and meta description checks"""

    @pytest.mark.parametrize("title,message,priority", [
        (None, "Missing title tag", "high"),
        ("", "Missing title tag", "high"),
        ("x" * 29, "Title tag too short", "medium"),
        ("x" * 61, "Title tag too long", "medium"),
    ])
    def test_title_problems(self, title, message, priority):
        found = check_title(title)
        assert [(i.message, i.priority) for i in found] == [(message, priority)]
        assert found[0].category == "Title Tag"

    @pytest.mark.parametrize("length", [30, 60])
    def test_title_length_bounds_pass(self, length):
        assert check_title("x" * length) == []

    @pytest.mark.parametrize("description,message,priority", [
        (None, "Missing meta description", "medium"),
        ("x" * 119, "Meta description could be longer", "low"),
        ("x" * 161, "Meta description too long", "medium"),
    ])
    def test_description_problems(self, description, message, priority):
        found = check_description(description)
        assert [(i.message, i.priority) for i in found] == [(message, priority)]

    @pytest.mark.parametrize("length", [120, 160])
    def test_description_length_bounds_pass(self, length):
        assert check_description("x" * length) == []


class TestStructureChecks:
    """Tests for headings, images and links"""

    def test_missing_h1(self):
        found = check_headings([])
        assert [i.message for i in found] == ["Missing H1 tag"]
        assert found[0].type == "error"

    def test_multiple_h1_without_h2(self):
        found = check_headings([{"level": 1}, {"level": 1}])
        assert [i.message for i in found] == ["Multiple H1 tags found", "Consider adding H2 tags"]

    def test_single_h1_needs_no_h2(self):
        assert check_headings([{"level": 1}]) == []

    def test_images_missing_alt(self):
        found = check_images([{"alt": "ok"}, {"alt": "  "}, {}])
        assert found[0].message == "2 images missing alt text"
        assert check_images([{"alt": "ok"}]) == []

    def test_links(self):
        assert check_links([{"isExternal": True}])[0].message == "No internal links found"
        assert check_links([])[0].priority == "low"
        assert check_links([{"isExternal": True}, {"isExternal": False}]) == []


class TestKeywordAndContentChecks:
    """Tests for target keywords and content length"""

    def test_count_occurrences_is_literal_and_case_insensitive(self):
        assert count_occurrences("Real Estate", "real estate and REAL ESTATE") == 2
        assert count_occurrences("c++", "c++ and c+++") == 2

    def test_keyword_missing_everywhere(self):
        found = check_keywords("Villas", "Nice homes", ["lagos"])
        assert [i.message for i in found] == [
            'Target keyword "lagos" not found in title',
            'Target keyword "lagos" not found in content',
        ]

    def test_keyword_overuse(self):
        found = check_keywords("Lagos homes", "lagos " * 11, ["lagos"])
        assert [(i.message, i.priority) for i in found] == [('Target keyword "lagos" may be overused', "low")]
        assert check_keywords("Lagos homes", "lagos " * 10, ["lagos"]) == []

    def test_blank_keywords_are_skipped(self):
        assert check_keywords("", "", ["  "]) == []

    def test_content_length(self):
        assert check_content_length("x" * 299)[0].message == "Content is too short"
        assert check_content_length("x" * 300) == []


class TestAuditScore:
    """Tests for the audit score"""

    def test_deductions_per_priority(self):
        assert audit_score([]) == 100
        assert audit_score([issue("high"), issue("medium"), issue("low")]) == 65

    def test_score_floor(self):
        assert audit_score([issue("high")] * 6) == 0

    def test_clean_page(self):
        result = audit_page("/properties", clean_content(), ["villas"])
        assert result.issues == []
        assert result.score == 100
        assert result.recommendations == []

    def test_empty_page(self):
        result = audit_page("/empty", {})

        # title(high) + description(medium) + h1(high) + links(low) + content(medium)
        assert result.score == 100 - 20 - 10 - 20 - 5 - 10
        assert result.summary() == {
            "totalIssues": 5,
            "highPriorityIssues": 2,
            "mediumPriorityIssues": 2,
            "lowPriorityIssues": 1,
            "totalRecommendations": 3,
        }
        assert [r.category for r in result.recommendations] == [
            "Title Optimization", "Meta Description", "Internal Linking"
        ]


class TestSEOAuditor:
    """Tests for stored audits"""

    def test_audit_is_stored(self, db_manager):
        auditor = SEOAuditor(db_manager)
        result = auditor.audit("/properties", clean_content(images=[{"src": "/b.jpg"}]), ["villas"])

        assert result.id is not None
        assert result.created_at is not None

        stored = auditor.get_audit(result.id)
        assert stored.url == "/properties"
        assert stored.score == result.score == 90
        assert stored.issues == result.issues
        assert stored.recommendations[0].title == "Optimize Images"
        assert stored.target_keywords == ["villas"]

    def test_unknown_audit(self, db_manager):
        assert SEOAuditor(db_manager).get_audit(999) is None

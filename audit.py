"""
On-page SEO audit: title, meta description, headings, images, links, keywords and content length
"""
import logging
import re
from dataclasses import replace
from typing import Any, Dict, List, Optional

from database import DatabaseManager
from models import AuditIssue, AuditRecommendation, AuditResult
from utils import round_half_up, utcnow

logger = logging.getLogger(__name__)

TITLE_LENGTH = (30, 60)
DESCRIPTION_LENGTH = (120, 160)
MIN_CONTENT_LENGTH = 300
KEYWORD_OVERUSE = 10

# Score deductions per issue priority
PRIORITY_PENALTIES = {"high": 20, "medium": 10, "low": 5}

# issue category -> recommendation raised when any issue falls in it
CATEGORY_RECOMMENDATIONS = {
    "Title Tag": AuditRecommendation(
        "Title Optimization", "Optimize Page Title",
        "Create compelling, keyword-rich titles that accurately describe your content", "high", "low"),
    "Meta Description": AuditRecommendation(
        "Meta Description", "Write Compelling Meta Descriptions",
        "Create engaging meta descriptions that encourage clicks from search results", "medium", "low"),
    "Images": AuditRecommendation(
        "Image Optimization", "Optimize Images",
        "Add alt text and optimize image file sizes for better performance", "medium", "medium"),
    "Internal Linking": AuditRecommendation(
        "Internal Linking", "Improve Internal Linking",
        "Add relevant internal links to improve site structure and user experience", "medium", "medium"),
}


def _issue(type_: str, category: str, message: str, suggestion: str, priority: str) -> AuditIssue:
    return AuditIssue(type=type_, category=category, message=message, suggestion=suggestion, priority=priority)


def check_title(title: Optional[str]) -> List[AuditIssue]:
    low, high = TITLE_LENGTH
    if not title:
        return [_issue("error", "Title Tag", "Missing title tag",
                       f"Add a descriptive title tag between {low}-{high} characters", "high")]
    if len(title) < low:
        return [_issue("warning", "Title Tag", "Title tag too short",
                       f"Extend title to {low}-{high} characters for better SEO", "medium")]
    if len(title) > high:
        return [_issue("warning", "Title Tag", "Title tag too long",
                       f"Shorten title to under {high} characters to avoid truncation", "medium")]
    return []


def check_description(description: Optional[str]) -> List[AuditIssue]:
    low, high = DESCRIPTION_LENGTH
    if not description:
        return [_issue("warning", "Meta Description", "Missing meta description",
                       f"Add a compelling meta description between {low}-{high} characters", "medium")]
    if len(description) < low:
        return [_issue("info", "Meta Description", "Meta description could be longer",
                       f"Extend description to {low}-{high} characters for better click-through rates", "low")]
    if len(description) > high:
        return [_issue("warning", "Meta Description", "Meta description too long",
                       f"Shorten description to under {high} characters", "medium")]
    return []


def check_headings(headings: List[Dict[str, Any]]) -> List[AuditIssue]:
    issues = []
    h1_count = sum(1 for h in headings if h.get("level") == 1)
    h2_count = sum(1 for h in headings if h.get("level") == 2)

    if h1_count == 0:
        issues.append(_issue("error", "Heading Structure", "Missing H1 tag",
                             "Add a single H1 tag to define the main topic", "high"))
    elif h1_count > 1:
        issues.append(_issue("warning", "Heading Structure", "Multiple H1 tags found",
                             "Use only one H1 tag per page for better structure", "medium"))

    if h2_count == 0 and len(headings) > 1:
        issues.append(_issue("info", "Heading Structure", "Consider adding H2 tags",
                             "Use H2 tags to organize content sections", "low"))
    return issues


def check_images(images: List[Dict[str, Any]]) -> List[AuditIssue]:
    missing_alt = sum(1 for img in images if not (img.get("alt") or "").strip())
    if not missing_alt:
        return []
    return [_issue("warning", "Images", f"{missing_alt} images missing alt text",
                   "Add descriptive alt text to all images for accessibility and SEO", "medium")]


def check_links(links: List[Dict[str, Any]]) -> List[AuditIssue]:
    if any(not link.get("isExternal") for link in links):
        return []
    return [_issue("info", "Internal Linking", "No internal links found",
                   "Add internal links to related pages to improve site structure", "low")]


def count_occurrences(keyword: str, text: str) -> int:
    """Case-insensitive, non-overlapping literal occurrences of keyword in text"""
    return len(re.findall(re.escape(keyword.lower()), text.lower()))


def check_keywords(title: str, body: str, target_keywords: List[str]) -> List[AuditIssue]:
    issues = []
    for keyword in target_keywords:
        if not keyword.strip():
            continue

        if count_occurrences(keyword, title) == 0:
            issues.append(_issue("warning", "Keywords", f'Target keyword "{keyword}" not found in title',
                                 f'Include "{keyword}" in the page title for better relevance', "medium"))

        body_count = count_occurrences(keyword, body)
        if body_count == 0:
            issues.append(_issue("warning", "Keywords", f'Target keyword "{keyword}" not found in content',
                                 f'Naturally include "{keyword}" in the page content', "medium"))
        elif body_count > KEYWORD_OVERUSE:
            issues.append(_issue("warning", "Keywords", f'Target keyword "{keyword}" may be overused',
                                 "Reduce keyword density to avoid keyword stuffing", "low"))
    return issues


def check_content_length(body: str) -> List[AuditIssue]:
    # measured in characters of body text
    if len(body) >= MIN_CONTENT_LENGTH:
        return []
    return [_issue("warning", "Content", "Content is too short",
                   f"Add more valuable content (aim for {MIN_CONTENT_LENGTH}+ words)", "medium")]


def audit_score(issues: List[AuditIssue]) -> int:
    """100 minus a per-priority deduction for each issue, floored at 0"""
    penalty = sum(PRIORITY_PENALTIES.get(issue.priority, PRIORITY_PENALTIES["low"]) for issue in issues)
    return round_half_up(max(0, 100 - penalty))


def recommendations_for(issues: List[AuditIssue]) -> List[AuditRecommendation]:
    categories = {issue.category for issue in issues}
    return [replace(rec) for category, rec in CATEGORY_RECOMMENDATIONS.items() if category in categories]


def audit_page(url: str, content: Dict[str, Any], target_keywords: List[str] = None) -> AuditResult:
    """Run every on-page check over extracted page content"""
    target_keywords = target_keywords or []
    title = content.get("title") or ""
    body = content.get("body") or ""

    issues = []
    issues += check_title(title)
    issues += check_description(content.get("description"))
    issues += check_headings(content.get("headings") or [])
    issues += check_images(content.get("images") or [])
    issues += check_links(content.get("links") or [])
    if target_keywords:
        issues += check_keywords(title, body, target_keywords)
    issues += check_content_length(body)

    return AuditResult(
        url=url,
        score=audit_score(issues),
        issues=issues,
        recommendations=recommendations_for(issues),
        target_keywords=list(target_keywords),
    )


class SEOAuditor:
    """Audits submitted page content and keeps the results"""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def audit(self, url: str, content: Dict[str, Any], target_keywords: List[str] = None) -> AuditResult:
        logger.info(f"Auditing page: {url}")
        result = audit_page(url, content, target_keywords)
        result.created_at = utcnow().isoformat()
        result.id = self.db_manager.save_audit(result)
        logger.info(f"Audit for {url} found {len(result.issues)} issues, score {result.score}")
        return result

    def get_audit(self, audit_id: int) -> Optional[AuditResult]:
        return self.db_manager.get_audit(audit_id)

"""
Site-wide SEO health score
"""
from typing import Any, Dict, List

from models import ScoreBreakdown, Tier
from utils import clamp, round_half_up
from vitals import classify

# Site-summary weights: tier -> points (max 20 in total)
SITE_VITAL_POINTS = {
    "lcp": {Tier.GOOD: 7, Tier.NEEDS_IMPROVEMENT: 4, Tier.POOR: 0},
    "fid": {Tier.GOOD: 7, Tier.NEEDS_IMPROVEMENT: 4, Tier.POOR: 0},
    "cls": {Tier.GOOD: 6, Tier.NEEDS_IMPROVEMENT: 3, Tier.POOR: 0},
}

GRADES = [(90, "A+"), (80, "A"), (70, "B"), (60, "C"), (50, "D")]


def grade_for(score: float) -> str:
    for floor, grade in GRADES:
        if score >= floor:
            return grade
    return "F"


def traffic_points(organic_traffic: float) -> int:
    if organic_traffic > 10000:
        return 15
    if organic_traffic > 5000:
        return 12
    if organic_traffic > 1000:
        return 8
    if organic_traffic > 100:
        return 5
    return 0


def keyword_points(keyword_count: int) -> int:
    if keyword_count > 50:
        return 10
    if keyword_count > 20:
        return 7
    if keyword_count > 10:
        return 5
    if keyword_count > 0:
        return 3
    return 0


def issue_penalty(issues: List[Dict[str, Any]]) -> Dict[str, int]:
    critical = sum(1 for issue in issues if issue.get("priority") == "high")
    warnings = sum(1 for issue in issues if issue.get("priority") == "medium")
    return {"critical": critical, "warnings": warnings, "penalty": min(10, critical * 3 + warnings)}


def calculate_seo_score(total_pages: int, indexed_pages: int, organic_traffic: float,
                        domain_authority: float, core_web_vitals: Dict[str, float],
                        issues: List[Dict[str, Any]], keyword_count: int) -> ScoreBreakdown:
    """
    Combine six weighted dimensions into a 0-100 score and letter grade.

    Indexing rate (25), domain authority (20), Core Web Vitals (20), organic
    traffic (15) and keyword count (10) add up; the issue penalty (up to 10)
    is subtracted. The result is rounded, then clamped to [0, 100].
    """
    indexing_rate = indexed_pages / total_pages * 100 if total_pages > 0 else 0
    indexing_score = min(25, indexing_rate / 100 * 25)

    domain_authority_score = min(20, domain_authority / 100 * 20)

    performance = {}
    performance_score = 0
    for metric, points in SITE_VITAL_POINTS.items():
        value = core_web_vitals.get(metric) or 0
        earned = points[classify(metric, value)]
        performance[metric] = {"value": value, "score": earned, "max": points[Tier.GOOD]}
        performance_score += earned

    traffic_score = traffic_points(organic_traffic)
    keyword_score = keyword_points(keyword_count)
    penalty = issue_penalty(issues)

    total = (indexing_score + domain_authority_score + performance_score
             + traffic_score + keyword_score - penalty["penalty"])
    score = int(clamp(round_half_up(total), 0, 100))

    return ScoreBreakdown(
        score=score,
        grade=grade_for(score),
        indexing_rate=indexing_rate,
        indexing_score=indexing_score,
        domain_authority=domain_authority,
        domain_authority_score=domain_authority_score,
        performance=performance,
        performance_score=performance_score,
        organic_traffic=organic_traffic,
        traffic_score=traffic_score,
        keyword_count=keyword_count,
        keyword_score=keyword_score,
        critical_issues=penalty["critical"],
        warning_issues=penalty["warnings"],
        issue_penalty=penalty["penalty"],
    )

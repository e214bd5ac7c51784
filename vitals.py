"""
Core Web Vitals classification and page-level performance scoring
"""
from typing import Dict, List

from models import MonitoringSnapshot, Recommendation, Tier
from utils import clamp, round_half_up

# metric -> (good upper bound, needs-improvement upper bound)
THRESHOLDS = {
    "lcp": (2.5, 4.0),     # seconds
    "fid": (100, 300),     # milliseconds
    "cls": (0.1, 0.25),
    "fcp": (1.8, 3.0),     # seconds
    "ttfb": (800, 1800),   # milliseconds
}

# Page-detail weights: tier -> points
CWV_POINTS = {
    "lcp": {Tier.GOOD: 40, Tier.NEEDS_IMPROVEMENT: 20, Tier.POOR: 0},
    "fid": {Tier.GOOD: 30, Tier.NEEDS_IMPROVEMENT: 15, Tier.POOR: 0},
    "cls": {Tier.GOOD: 30, Tier.NEEDS_IMPROVEMENT: 15, Tier.POOR: 0},
}

VITAL_FIELDS = ("lcp", "fid", "cls", "fcp", "ttfb")


def classify(metric: str, value: float) -> Tier:
    """Classify a raw web-vital measurement against its fixed thresholds"""
    good, needs_improvement = THRESHOLDS[metric]
    if value <= good:
        return Tier.GOOD
    if value <= needs_improvement:
        return Tier.NEEDS_IMPROVEMENT
    return Tier.POOR


def classify_vitals(snapshot: MonitoringSnapshot) -> Dict[str, str]:
    return {metric: classify(metric, getattr(snapshot, metric)).value for metric in VITAL_FIELDS}


def core_web_vitals_score(lcp: float, fid: float, cls: float) -> int:
    """0-100 composite; all-zero input means no data and scores 0"""
    if lcp == 0 and fid == 0 and cls == 0:
        return 0
    values = {"lcp": lcp, "fid": fid, "cls": cls}
    return sum(CWV_POINTS[metric][classify(metric, value)] for metric, value in values.items())


def page_speed_score(desktop: float, mobile: float) -> int:
    if desktop == 0 and mobile == 0:
        return 0

    average = (desktop + mobile) / 2
    if average >= 90:
        return 100
    if average >= 80:
        return 80
    if average >= 70:
        return 60
    if average >= 50:
        return 40
    return 20


def mobile_usability_score(score: float) -> int:
    return round_half_up(clamp(score, 0, 100))


def performance_scores(snapshot: MonitoringSnapshot) -> Dict[str, int]:
    """Page-speed, CWV and mobile composites plus their rounded mean"""
    page_speed = page_speed_score(snapshot.page_speed_desktop, snapshot.page_speed_mobile)
    vitals = core_web_vitals_score(snapshot.lcp, snapshot.fid, snapshot.cls)
    mobile = mobile_usability_score(snapshot.mobile_usability_score)
    return {
        "overall": round_half_up((page_speed + vitals + mobile) / 3),
        "pageSpeed": page_speed,
        "coreWebVitals": vitals,
        "mobileUsability": mobile,
    }


def empty_metrics() -> Dict[str, object]:
    return {
        "pageSpeed": {"desktop": 0, "mobile": 0},
        "coreWebVitals": {metric: 0 for metric in VITAL_FIELDS},
        "mobileUsability": 0,
    }


def snapshot_metrics(snapshot: MonitoringSnapshot) -> Dict[str, object]:
    return {
        "pageSpeed": {"desktop": snapshot.page_speed_desktop, "mobile": snapshot.page_speed_mobile},
        "coreWebVitals": {metric: getattr(snapshot, metric) for metric in VITAL_FIELDS},
        "mobileUsability": snapshot.mobile_usability_score,
    }


def average_metrics(snapshots: List[MonitoringSnapshot]) -> Dict[str, object]:
    """Per-metric means over snapshots that carry a desktop page-speed reading"""
    valid = [s for s in snapshots if s.page_speed_desktop > 0]
    if not valid:
        return empty_metrics()

    def mean(name: str) -> float:
        return sum(getattr(s, name) for s in valid) / len(valid)

    return {
        "pageSpeed": {"desktop": mean("page_speed_desktop"), "mobile": mean("page_speed_mobile")},
        "coreWebVitals": {metric: mean(metric) for metric in VITAL_FIELDS},
        "mobileUsability": mean("mobile_usability_score"),
    }


def recommendations(snapshot: MonitoringSnapshot) -> List[Recommendation]:
    """Rule-based fixes for the weakest measurements of a snapshot"""
    found: List[Recommendation] = []

    if snapshot.page_speed_desktop < 50:
        found.append(Recommendation(
            "error", "Page Speed", "Desktop page speed is very slow",
            "Optimize images, minify CSS/JS, and enable compression", "high"))
    elif snapshot.page_speed_desktop < 80:
        found.append(Recommendation(
            "warning", "Page Speed", "Desktop page speed needs improvement",
            "Consider optimizing images and reducing server response time", "medium"))

    if snapshot.page_speed_mobile < 50:
        found.append(Recommendation(
            "error", "Mobile Performance", "Mobile page speed is very slow",
            "Optimize for mobile: reduce image sizes, minimize CSS/JS", "high"))

    lcp_tier = classify("lcp", snapshot.lcp)
    if lcp_tier is Tier.POOR:
        found.append(Recommendation(
            "error", "Core Web Vitals", "Largest Contentful Paint is too slow",
            "Optimize images, improve server response time, and eliminate render-blocking resources", "high"))
    elif lcp_tier is Tier.NEEDS_IMPROVEMENT:
        found.append(Recommendation(
            "warning", "Core Web Vitals", "Largest Contentful Paint needs improvement",
            "Consider optimizing images and reducing server response time", "medium"))

    if classify("fid", snapshot.fid) is Tier.POOR:
        found.append(Recommendation(
            "error", "Core Web Vitals", "First Input Delay is too high",
            "Reduce JavaScript execution time and break up long tasks", "high"))

    if classify("cls", snapshot.cls) is Tier.POOR:
        found.append(Recommendation(
            "error", "Core Web Vitals", "Cumulative Layout Shift is too high",
            "Add size attributes to images and avoid inserting content above existing content", "high"))

    if snapshot.mobile_usability_score < 80:
        found.append(Recommendation(
            "warning", "Mobile Usability", "Mobile usability score is low",
            "Ensure touch targets are large enough and text is readable without zooming", "medium"))

    return found

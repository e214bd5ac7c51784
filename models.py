"""
Data models for SEO Dashboard
"""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from datetime import datetime, date
from enum import Enum

from utils import parse_timestamp, parse_date, round_half_up


class Tier(Enum):
    """Web-vital classification band"""
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"
    POOR = "poor"


def coerce_number(value: Any) -> float:
    """Coerce a nullable/malformed numeric field to a number, 0 when unusable"""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return int(number) if number.is_integer() else number


@dataclass
class Event:
    """One user-interaction record from seo_events"""
    event: str
    timestamp: datetime
    session_id: Optional[str] = None
    referrer: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Event":
        return cls(
            event=row.get("event") or "",
            timestamp=parse_timestamp(row.get("timestamp")),
            session_id=row.get("session_id"),
            referrer=row.get("referrer") or None,
            url=row.get("url"),
        )


@dataclass
class MonitoringSnapshot:
    """Point-in-time performance measurement from seo_monitoring_data"""
    timestamp: datetime
    url: Optional[str] = None
    page_speed_desktop: float = 0
    page_speed_mobile: float = 0
    lcp: float = 0
    fid: float = 0
    cls: float = 0
    fcp: float = 0
    ttfb: float = 0
    mobile_usability_score: float = 0
    indexed_pages: int = 0
    organic_traffic: int = 0
    domain_authority: float = 0
    id: Optional[int] = None

    NUMERIC_FIELDS = (
        "page_speed_desktop", "page_speed_mobile", "lcp", "fid", "cls", "fcp", "ttfb",
        "mobile_usability_score", "indexed_pages", "organic_traffic", "domain_authority",
    )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "MonitoringSnapshot":
        values = {name: coerce_number(row.get(name)) for name in cls.NUMERIC_FIELDS}
        return cls(
            timestamp=parse_timestamp(row.get("timestamp")),
            url=row.get("url"),
            id=row.get("id"),
            **values
        )

    def to_row(self) -> Dict[str, Any]:
        row = {name: getattr(self, name) for name in self.NUMERIC_FIELDS}
        row["url"] = self.url
        row["timestamp"] = self.timestamp.isoformat()
        return row


@dataclass
class KeywordRanking:
    """One keyword/date observation from seo_keyword_rankings"""
    keyword: str
    position: int
    date: date
    search_volume: float = 0
    url: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "KeywordRanking":
        return cls(
            keyword=row.get("keyword") or "",
            position=coerce_number(row.get("position")),
            date=parse_date(row.get("date")),
            search_volume=coerce_number(row.get("search_volume")),
            url=row.get("url"),
        )


@dataclass
class SEOAlert:
    """Alert raised by monitoring; active alerts become dashboard issues"""
    alert_type: str
    severity: str
    title: str
    message: str
    url: Optional[str] = None
    threshold_value: Optional[float] = None
    current_value: Optional[float] = None
    metric_name: Optional[str] = None
    status: str = "active"
    id: Optional[int] = None
    created_at: Optional[str] = None
    acknowledged_at: Optional[str] = None
    resolved_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class DateRange:
    """Resolved period window"""
    period: str
    days: int
    start: datetime
    end: datetime


@dataclass
class SessionMetrics:
    """Derived session statistics"""
    total_sessions: int
    average_session_duration: float
    bounce_rate: float
    conversion_rate: float


@dataclass
class TrafficBreakdown:
    """Traffic counts per source; buckets may overlap"""
    organic: int = 0
    direct: int = 0
    referral: int = 0
    social: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "organic": self.organic,
            "direct": self.direct,
            "referral": self.referral,
            "social": self.social,
        }


@dataclass
class ScoreBreakdown:
    """Composite SEO health score and its weighted components"""
    score: int
    grade: str
    indexing_rate: float
    indexing_score: float
    domain_authority: float
    domain_authority_score: float
    performance: Dict[str, Dict[str, float]]
    performance_score: int
    organic_traffic: int
    traffic_score: int
    keyword_count: int
    keyword_score: int
    critical_issues: int
    warning_issues: int
    issue_penalty: int

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the dashboard's {score, grade, breakdown} shape"""
        return {
            "score": self.score,
            "grade": self.grade,
            "breakdown": {
                "indexing": {
                    "rate": round_half_up(self.indexing_rate),
                    "score": round_half_up(self.indexing_score),
                    "max": 25,
                },
                "domainAuthority": {
                    "value": self.domain_authority,
                    "score": round_half_up(self.domain_authority_score),
                    "max": 20,
                },
                "performance": dict(self.performance, total=self.performance_score, max=20),
                "traffic": {"value": self.organic_traffic, "score": self.traffic_score, "max": 15},
                "keywords": {"count": self.keyword_count, "score": self.keyword_score, "max": 10},
                "issues": {
                    "critical": self.critical_issues,
                    "warnings": self.warning_issues,
                    "penalty": self.issue_penalty,
                    "max": 10,
                },
            },
        }


@dataclass
class Recommendation:
    """Performance recommendation derived from the latest snapshot"""
    type: str  # 'error', 'warning', 'info'
    category: str
    message: str
    suggestion: str
    impact: str  # 'high', 'medium', 'low'


@dataclass
class SEOReport:
    """Generated SEO report"""
    title: str
    generated_at: str
    period: str
    report_type: str
    overview: Dict[str, Any]
    performance: Dict[str, Any]
    issues: List[Dict[str, Any]] = field(default_factory=list)
    keywords: List[Dict[str, Any]] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reportId": self.id,
            "title": self.title,
            "generatedAt": self.generated_at,
            "period": self.period,
            "reportType": self.report_type,
            "overview": self.overview,
            "performance": self.performance,
            "issues": self.issues,
            "keywords": self.keywords,
            "recommendations": self.recommendations,
        }


@dataclass
class AuditIssue:
    """Single on-page audit finding"""
    type: str  # 'error', 'warning', 'info'
    category: str
    message: str
    suggestion: str
    priority: str  # 'high', 'medium', 'low'


@dataclass
class AuditRecommendation:
    category: str
    title: str
    description: str
    impact: str
    effort: str


@dataclass
class AuditResult:
    """On-page audit outcome for one URL"""
    url: str
    score: int
    issues: List[AuditIssue] = field(default_factory=list)
    recommendations: List[AuditRecommendation] = field(default_factory=list)
    target_keywords: List[str] = field(default_factory=list)
    created_at: Optional[str] = None
    id: Optional[int] = None

    def summary(self) -> Dict[str, int]:
        high = sum(1 for i in self.issues if i.priority == "high")
        medium = sum(1 for i in self.issues if i.priority == "medium")
        return {
            "totalIssues": len(self.issues),
            "highPriorityIssues": high,
            "mediumPriorityIssues": medium,
            "lowPriorityIssues": len(self.issues) - high - medium,
            "totalRecommendations": len(self.recommendations),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "auditId": self.id,
            "url": self.url,
            "score": self.score,
            "issues": [issue.__dict__ for issue in self.issues],
            "recommendations": [rec.__dict__ for rec in self.recommendations],
            "summary": self.summary(),
            "targetKeywords": self.target_keywords,
            "timestamp": self.created_at,
        }

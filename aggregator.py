"""
SEO metrics aggregation - builds dashboard, analytics and performance payloads
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Optional
from datetime import datetime

from alerting import raise_alerts
from config import config as default_config, DashboardConfig
from database import DatabaseManager
from models import Event, KeywordRanking, MonitoringSnapshot, SEOAlert
from periods import resolve_period
from scoring import calculate_seo_score
from utils import parse_timestamp, utcnow
import keywords as keyword_stats
import traffic
import trends
import vitals

logger = logging.getLogger(__name__)

SEVERITY_TYPES = {"critical": "error", "high": "warning"}
SEVERITY_PRIORITIES = {"critical": "high", "high": "high", "medium": "medium"}


def latest_snapshot(snapshots: List[MonitoringSnapshot]) -> Optional[MonitoringSnapshot]:
    """Snapshot with the maximum timestamp, regardless of input order"""
    return max(snapshots, key=lambda s: s.timestamp) if snapshots else None


def alert_to_issue(alert: SEOAlert) -> Dict[str, Any]:
    return {
        "type": SEVERITY_TYPES.get(alert.severity, "info"),
        "message": alert.message,
        "url": alert.url,
        "priority": SEVERITY_PRIORITIES.get(alert.severity, "low"),
    }


class SEOAggregator:
    """Reads raw SEO data for a period and turns it into scored summaries"""

    def __init__(self, db_manager: DatabaseManager, settings: DashboardConfig = None):
        self.db_manager = db_manager
        self.config = settings or default_config

    async def _fetch_all(self, fetchers: Dict[str, tuple]) -> Dict[str, Any]:
        """
        Run independent blocking reads concurrently.

        `fetchers` maps a name to (callable, args, default). A read that raises
        is logged and replaced by its default so the other datasets survive.
        """
        loop = asyncio.get_running_loop()
        names = list(fetchers)
        tasks = [
            loop.run_in_executor(None, lambda f=fetchers[name]: f[0](*f[1]))
            for name in names
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        data = {}
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.error(f"Error fetching {name}: {result}")
                data[name] = fetchers[name][2]
            else:
                data[name] = result
        return data

    async def get_analytics(self, period: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Traffic, session, keyword and performance analytics for a period"""
        window = resolve_period(period, now)
        started = time.time()

        data = await self._fetch_all({
            "events": (self.db_manager.get_events, (window.start, window.end), []),
            "monitoring": (self.db_manager.get_monitoring_data, (window.start, window.end), []),
            "keywords": (self.db_manager.get_keyword_rankings,
                         (window.start.date(), window.end.date()), []),
        })
        events: List[Event] = data["events"]
        snapshots: List[MonitoringSnapshot] = data["monitoring"]
        rankings: List[KeywordRanking] = data["keywords"]

        sessions = traffic.session_metrics(events)
        latest = latest_snapshot(snapshots)
        current = vitals.snapshot_metrics(latest) if latest else vitals.empty_metrics()

        analytics = {
            "overview": {
                "totalEvents": len(events),
                "totalPageViews": sum(1 for e in events if e.event == traffic.PAGE_VIEW),
                "totalSessions": sessions.total_sessions,
                "averageSessionDuration": sessions.average_session_duration,
                "bounceRate": sessions.bounce_rate,
                "conversionRate": sessions.conversion_rate,
            },
            "traffic": traffic.classify_traffic(
                events, self.config.search_engine_markers, self.config.social_markers
            ).to_dict(),
            "keywords": {
                "totalKeywords": len(rankings),
                "topKeywords": keyword_stats.top_keywords(rankings, self.config.top_keywords_limit),
                "rankingChanges": keyword_stats.ranking_changes(rankings),
                "averagePosition": keyword_stats.average_position(rankings),
            },
            "performance": {
                "pageSpeed": current["pageSpeed"],
                "coreWebVitals": {k: current["coreWebVitals"][k] for k in ("lcp", "fid", "cls")},
                "mobileUsability": current["mobileUsability"],
            },
            "trends": {
                "trafficTrend": trends.traffic_trend(events, window.days, window.end),
                "keywordTrend": keyword_stats.keyword_trend(rankings),
                "performanceTrend": trends.recent_performance(snapshots),
            },
            "period": window.period,
        }

        logger.debug(f"Analytics for {window.period} built in {time.time() - started:.3f}s")
        return analytics

    async def get_performance(self, period: Optional[str] = None, url: Optional[str] = None,
                              now: Optional[datetime] = None) -> Dict[str, Any]:
        """Current, averaged and trended page performance with scores"""
        window = resolve_period(period, now)

        data = await self._fetch_all({
            "monitoring": (self.db_manager.get_monitoring_data, (window.start, window.end, url), None),
        })
        snapshots = data["monitoring"]

        if not snapshots:
            return self._default_performance(window.end)

        latest = latest_snapshot(snapshots)
        return {
            "current": vitals.snapshot_metrics(latest),
            "averages": vitals.average_metrics(snapshots),
            "trends": trends.performance_trend(snapshots, window.days, window.end),
            "scores": vitals.performance_scores(latest),
            "classification": vitals.classify_vitals(latest),
            "recommendations": [r.__dict__ for r in vitals.recommendations(latest)],
            "lastUpdated": latest.timestamp.isoformat(),
        }

    def _default_performance(self, now: datetime) -> Dict[str, Any]:
        return {
            "current": vitals.empty_metrics(),
            "averages": vitals.empty_metrics(),
            "trends": {"pageSpeed": [], "coreWebVitals": [], "mobileUsability": []},
            "scores": {"overall": 0, "pageSpeed": 0, "coreWebVitals": 0, "mobileUsability": 0},
            "classification": {},
            "recommendations": [],
            "lastUpdated": now.isoformat(),
        }

    async def get_dashboard(self, period: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Site overview with the composite SEO health score"""
        window = resolve_period(period, now)
        started = time.time()

        data = await self._fetch_all({
            "monitoring": (self.db_manager.get_monitoring_data, (window.start, window.end, None, 30), []),
            "alerts": (self.db_manager.get_alerts, ("active", 10), []),
            "keywords": (self.db_manager.get_keyword_rankings,
                         (window.start.date(), window.end.date()), []),
            "events": (self.db_manager.get_events, (window.start, window.end), []),
            "total_pages": (self.db_manager.count_total_pages,
                            (self.config.static_pages, self.config.total_pages_fallback),
                            self.config.total_pages_fallback),
        })

        latest = latest_snapshot(data["monitoring"])
        rankings: List[KeywordRanking] = data["keywords"]
        issues = [alert_to_issue(alert) for alert in data["alerts"]]

        indexed_pages = latest.indexed_pages if latest else 0
        organic_traffic = latest.organic_traffic if latest else 0
        domain_authority = latest.domain_authority if latest else 0
        core_web_vitals = {
            "lcp": latest.lcp if latest else 0,
            "fid": latest.fid if latest else 0,
            "cls": latest.cls if latest else 0,
        }

        seo_score = calculate_seo_score(
            total_pages=data["total_pages"],
            indexed_pages=indexed_pages,
            organic_traffic=organic_traffic,
            domain_authority=domain_authority,
            core_web_vitals=core_web_vitals,
            issues=issues,
            keyword_count=len({r.keyword for r in rankings}),
        )

        top_keywords = [
            {"keyword": k["keyword"], "position": k["position"], "traffic": k["searchVolume"]}
            for k in keyword_stats.top_keywords(rankings, self.config.top_keywords_limit)
        ]

        dashboard = {
            "overview": {
                "totalPages": data["total_pages"],
                "indexedPages": indexed_pages,
                "organicTraffic": organic_traffic,
                "averageRanking": round(keyword_stats.average_position(rankings), 2),
                "domainAuthority": domain_authority,
                "seoScore": seo_score.to_dict(),
            },
            "performance": {
                "pageSpeed": latest.page_speed_desktop if latest else 0,
                "mobileUsability": latest.mobile_usability_score if latest else 0,
                "coreWebVitals": core_web_vitals,
            },
            "content": {
                "topPerformingPages": traffic.top_pages(data["events"]),
                "topKeywords": top_keywords,
            },
            "issues": issues,
            "period": window.period,
            "lastUpdated": window.end.isoformat(),
        }

        logger.info(f"Dashboard built for {window.period} in {time.time() - started:.3f}s: "
                    f"score {seo_score.score} ({seo_score.grade})")
        return dashboard

    def store_performance_metrics(self, url: str, metrics: Dict[str, Any],
                                  now: Optional[datetime] = None) -> MonitoringSnapshot:
        """Persist a submitted performance measurement and raise its threshold alerts"""
        page_speed = metrics.get("pageSpeed") or {}
        web_vitals = metrics.get("coreWebVitals") or {}
        row = {
            "url": url,
            "timestamp": parse_timestamp(now or utcnow()),
            "page_speed_desktop": page_speed.get("desktop"),
            "page_speed_mobile": page_speed.get("mobile"),
            "mobile_usability_score": metrics.get("mobileUsability"),
        }
        row.update({metric: web_vitals.get(metric) for metric in vitals.VITAL_FIELDS})

        snapshot = MonitoringSnapshot.from_row(row)
        snapshot.id = self.db_manager.save_monitoring_snapshot(snapshot)
        raise_alerts(self.db_manager, snapshot)
        return snapshot

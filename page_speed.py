"""
PageSpeed Insights collection for monitoring snapshots
"""
import logging
from typing import Dict, List, Optional

from alerting import raise_alerts
from config import config
from database import DatabaseManager
from models import MonitoringSnapshot
from utils import RobustSession, retry_on_failure, utcnow

logger = logging.getLogger(__name__)

# Lighthouse audit id -> snapshot field
AUDITS = {
    "largest-contentful-paint": "lcp",
    "max-potential-fid": "fid",
    "cumulative-layout-shift": "cls",
    "first-contentful-paint": "fcp",
    "server-response-time": "ttfb",
}

# Lighthouse reports these in milliseconds; snapshots store them in seconds
SECONDS_FIELDS = ("lcp", "fcp")


class PageSpeedError(Exception):
    """Raised when a PageSpeed Insights run returns no usable result"""


class PageSpeedCollector:
    """Fetches Lighthouse results for a URL and stores them as monitoring snapshots"""

    def __init__(self, db_manager: DatabaseManager, api_key: str = None, session: RobustSession = None):
        self.db_manager = db_manager
        self.api_key = api_key if api_key is not None else config.pagespeed_api_key
        self.session = session or RobustSession(timeout=config.timeout)

    @retry_on_failure(max_retries=2, delay=2.0, exceptions=(PageSpeedError,))
    def fetch_strategy(self, url: str, strategy: str) -> Dict[str, float]:
        """Run one PageSpeed analysis ('mobile' or 'desktop')"""
        payload = self.session.get_json(
            config.pagespeed_endpoint,
            params={"url": url, "key": self.api_key, "strategy": strategy, "category": "performance"},
        )
        if not payload or "lighthouseResult" not in payload:
            raise PageSpeedError(f"No {strategy} PageSpeed result for {url}")

        lighthouse = payload["lighthouseResult"]
        audits = lighthouse.get("audits", {})

        result = {}
        for audit_id, field in AUDITS.items():
            value = (audits.get(audit_id) or {}).get("numericValue") or 0
            result[field] = value / 1000 if field in SECONDS_FIELDS else value

        score = (lighthouse.get("categories", {}).get("performance") or {}).get("score") or 0
        result["score"] = round(score * 100)
        return result

    def collect(self, url: str) -> Optional[MonitoringSnapshot]:
        """Collect mobile and desktop results; vitals come from the mobile run"""
        if not self.api_key:
            logger.warning("Google PageSpeed API key not configured")
            return None

        try:
            mobile = self.fetch_strategy(url, "mobile")
            desktop = self.fetch_strategy(url, "desktop")
        except PageSpeedError as e:
            logger.error(f"Error collecting PageSpeed data: {e}")
            return None

        return MonitoringSnapshot(
            timestamp=utcnow(),
            url=url,
            page_speed_desktop=desktop["score"],
            page_speed_mobile=mobile["score"],
            lcp=mobile["lcp"],
            fid=mobile["fid"],
            cls=mobile["cls"],
            fcp=mobile["fcp"],
            ttfb=mobile["ttfb"],
        )

    def collect_and_store(self, urls: List[str] = None) -> List[MonitoringSnapshot]:
        """Collect every URL and persist the successful snapshots"""
        stored = []
        for url in urls or config.collection_urls:
            snapshot = self.collect(url)
            if snapshot is None:
                continue
            snapshot.id = self.db_manager.save_monitoring_snapshot(snapshot)
            stored.append(snapshot)
            raise_alerts(self.db_manager, snapshot)
            logger.info(f"Successfully collected and stored data for {url}")
        return stored

"""
Threshold alerts raised from monitoring snapshots
"""
import logging
from typing import List

from database import DatabaseManager
from models import MonitoringSnapshot, SEOAlert, Tier
from vitals import THRESHOLDS, classify

logger = logging.getLogger(__name__)

# metric -> (severity, title, label, unit); raised when the metric leaves the good band
VITAL_ALERTS = {
    "lcp": ("high", "Poor LCP Performance", "Largest Contentful Paint", "s"),
    "fid": ("high", "Poor FID Performance", "First Input Delay", "ms"),
    "cls": ("medium", "Poor CLS Performance", "Cumulative Layout Shift", ""),
}

# field -> (minimum, severity, alert type, title, label); raised below the minimum
FLOOR_ALERTS = {
    "page_speed_mobile": (50, "high", "performance", "Poor Mobile Page Speed", "Mobile Page Speed score"),
    "page_speed_desktop": (70, "medium", "performance", "Poor Desktop Page Speed", "Desktop Page Speed score"),
    "organic_traffic": (100, "low", "traffic", "Low Organic Traffic", "Organic traffic"),
}


def generate_alerts(snapshot: MonitoringSnapshot) -> List[SEOAlert]:
    """Build (unsaved) alerts for every threshold the snapshot breaches"""
    alerts = []

    for metric, (severity, title, label, unit) in VITAL_ALERTS.items():
        value = getattr(snapshot, metric)
        if classify(metric, value) == Tier.GOOD:
            continue
        threshold = THRESHOLDS[metric][0]
        alerts.append(SEOAlert(
            alert_type="performance",
            severity=severity,
            title=title,
            message=f"{label} is {value}{unit}, which is above the recommended {threshold}{unit} threshold",
            url=snapshot.url,
            threshold_value=threshold,
            current_value=value,
            metric_name=metric,
        ))

    for field_name, (minimum, severity, alert_type, title, label) in FLOOR_ALERTS.items():
        value = getattr(snapshot, field_name)
        if value >= minimum:
            continue
        alerts.append(SEOAlert(
            alert_type=alert_type,
            severity=severity,
            title=title,
            message=f"{label} is {value}, which is below the recommended {minimum} threshold",
            url=snapshot.url,
            threshold_value=minimum,
            current_value=value,
            metric_name=field_name,
        ))

    return alerts


def raise_alerts(db_manager: DatabaseManager, snapshot: MonitoringSnapshot) -> List[SEOAlert]:
    """
    Store the alerts a snapshot triggers.

    A metric that already has an active alert for the same URL is skipped, so
    repeated collections do not stack duplicates until the alert is resolved.
    """
    created = []
    for alert in generate_alerts(snapshot):
        if db_manager.has_active_alert(alert.metric_name, alert.url):
            continue
        created.append(db_manager.create_alert(alert))

    if created:
        logger.info(f"Generated {len(created)} SEO alerts for {snapshot.url}")
    return created

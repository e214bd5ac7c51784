"""
Day-bucketed trend series for charting
"""
from datetime import date, datetime, timedelta
from typing import Dict, List

from models import Event, MonitoringSnapshot
from vitals import average_metrics


def trailing_days(days: int, now: datetime) -> List[date]:
    """The last `days` calendar days ending today, oldest first"""
    today = now.date()
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def traffic_trend(events: List[Event], days: int, now: datetime) -> List[Dict[str, object]]:
    """Event count per day; every day gets a bucket"""
    counts: Dict[date, int] = {}
    for event in events:
        day = event.timestamp.date()
        counts[day] = counts.get(day, 0) + 1

    return [{"date": day.isoformat(), "value": counts.get(day, 0)} for day in trailing_days(days, now)]


def performance_trend(snapshots: List[MonitoringSnapshot], days: int,
                      now: datetime) -> Dict[str, List[Dict[str, object]]]:
    """Daily averages per metric; days without snapshots are skipped"""
    by_day: Dict[date, List[MonitoringSnapshot]] = {}
    for snapshot in snapshots:
        by_day.setdefault(snapshot.timestamp.date(), []).append(snapshot)

    trend = {"pageSpeed": [], "coreWebVitals": [], "mobileUsability": []}
    for day in trailing_days(days, now):
        day_snapshots = by_day.get(day)
        if not day_snapshots:
            continue

        averages = average_metrics(day_snapshots)
        label = day.isoformat()
        vitals = averages["coreWebVitals"]
        trend["pageSpeed"].append({"date": label, **averages["pageSpeed"]})
        trend["coreWebVitals"].append({"date": label, "lcp": vitals["lcp"], "fid": vitals["fid"], "cls": vitals["cls"]})
        trend["mobileUsability"].append({"date": label, "score": averages["mobileUsability"]})

    return trend


def recent_performance(snapshots: List[MonitoringSnapshot], limit: int = 7) -> List[Dict[str, object]]:
    """The newest snapshots as chart points, newest first"""
    newest = sorted(snapshots, key=lambda s: s.timestamp, reverse=True)[:limit]
    return [
        {
            "date": s.timestamp.date().isoformat(),
            "pageSpeed": s.page_speed_desktop,
            "lcp": s.lcp,
            "cls": s.cls,
        }
        for s in newest
    ]

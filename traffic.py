"""
Traffic source classification and session metrics over SEO events
"""
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from config import config
from models import Event, SessionMetrics, TrafficBreakdown

PAGE_VIEW = "page_view"
CONVERSION = "conversion"


def _contains_any(referrer: Optional[str], markers: Iterable[str]) -> bool:
    if not referrer:
        return False
    referrer = referrer.lower()
    return any(marker.lower() in referrer for marker in markers if marker)


def is_organic(event: Event, markers: Sequence[str] = None) -> bool:
    return _contains_any(event.referrer, config.search_engine_markers if markers is None else markers)


def is_direct(event: Event) -> bool:
    return not event.referrer or event.referrer == "direct"


def is_social(event: Event, markers: Sequence[str] = None) -> bool:
    return _contains_any(event.referrer, config.social_markers if markers is None else markers)


def is_referral(event: Event, search_markers: Sequence[str] = None,
                social_markers: Sequence[str] = None) -> bool:
    return (not is_direct(event)
            and not is_organic(event, search_markers)
            and not is_social(event, social_markers))


def classify_traffic(events: List[Event], search_markers: Sequence[str] = None,
                     social_markers: Sequence[str] = None) -> TrafficBreakdown:
    """
    Count events per traffic source.

    Each bucket is an independent filter over the full event set, so an event
    whose referrer matches both a search-engine and a social marker is counted
    as organic and as social.
    """
    return TrafficBreakdown(
        organic=sum(1 for e in events if is_organic(e, search_markers)),
        direct=sum(1 for e in events if is_direct(e)),
        referral=sum(1 for e in events if is_referral(e, search_markers, social_markers)),
        social=sum(1 for e in events if is_social(e, social_markers)),
    )


def _session_spans(events: List[Event]) -> Dict[str, dict]:
    # start/end are the first and last page_view seen in input order
    sessions: Dict[str, dict] = {}
    for event in events:
        if event.event != PAGE_VIEW:
            continue
        session = sessions.get(event.session_id)
        if session is None:
            sessions[event.session_id] = {"start": event.timestamp, "end": event.timestamp, "views": 1}
        else:
            session["end"] = event.timestamp
            session["views"] += 1
    return sessions


def average_session_duration(events: List[Event]) -> float:
    """Mean session length in seconds; single-view sessions count as 0"""
    sessions = _session_spans(events)
    if not sessions:
        return 0
    durations = [(s["end"] - s["start"]).total_seconds() for s in sessions.values()]
    return sum(durations) / len(durations)


def bounce_rate(events: List[Event]) -> float:
    """Percentage of sessions with exactly one page view"""
    sessions = _session_spans(events)
    if not sessions:
        return 0
    single_page = sum(1 for s in sessions.values() if s["views"] == 1)
    return single_page / len(sessions) * 100


def conversion_rate(events: List[Event]) -> float:
    """Conversions per page view, as a percentage"""
    page_views = sum(1 for e in events if e.event == PAGE_VIEW)
    if page_views == 0:
        return 0
    conversions = sum(1 for e in events if e.event == CONVERSION)
    return conversions / page_views * 100


def session_metrics(events: List[Event]) -> SessionMetrics:
    return SessionMetrics(
        total_sessions=len(_session_spans(events)),
        average_session_duration=average_session_duration(events),
        bounce_rate=bounce_rate(events),
        conversion_rate=conversion_rate(events),
    )


def top_pages(events: List[Event], limit: int = 5) -> List[dict]:
    """Most viewed pages by page_view count"""
    views = Counter(e.url for e in events if e.event == PAGE_VIEW and e.url)
    return [
        {"url": url, "views": count, "ranking": rank}
        for rank, (url, count) in enumerate(views.most_common(limit), start=1)
    ]

"""
Reporting period resolution
"""
from datetime import datetime, timedelta
from typing import Optional

from models import DateRange
from utils import utcnow

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_PERIOD = "30d"


def normalize_period(token: Optional[str]) -> str:
    """Map a period token to a known period; unknown or missing tokens become 30d"""
    return token if token in PERIOD_DAYS else DEFAULT_PERIOD


def resolve_period(token: Optional[str], now: Optional[datetime] = None) -> DateRange:
    """Resolve a period token into a [start, end] window ending at now"""
    end = now or utcnow()
    period = normalize_period(token)
    days = PERIOD_DAYS[period]
    return DateRange(period=period, days=days, start=end - timedelta(days=days), end=end)

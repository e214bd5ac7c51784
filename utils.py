"""
Utility functions for error handling, retries, time parsing and common operations
"""
import math
import time
import random
import logging
import functools
from typing import Callable, Any, Optional, Union
from datetime import datetime, date, timezone
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

def retry_on_failure(max_retries: int = 3, delay: float = 1.0, backoff: float = 2.0,
                    exceptions: tuple = (Exception,)):
    """
    Decorator for retrying functions on failure with exponential backoff

    Args:
        max_retries: Maximum number of retry attempts
        delay: Initial delay between retries in seconds
        backoff: Multiplier for delay after each retry
        exceptions: Tuple of exceptions to catch and retry on
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            current_delay = delay
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt == max_retries:
                        logger.error(f"Function {func.__name__} failed after {max_retries} retries: {e}")
                        raise e

                    logger.warning(f"Attempt {attempt + 1} failed for {func.__name__}: {e}. Retrying in {current_delay:.2f}s")
                    time.sleep(current_delay + random.uniform(0, 1))  # Add jitter
                    current_delay *= backoff

            raise last_exception
        return wrapper
    return decorator

class RobustSession:
    """Requests session with adapter-level retries for JSON APIs"""

    def __init__(self, max_retries: int = 3, backoff_factor: float = 0.3, timeout: int = 30):
        self.session = requests.Session()
        self.timeout = timeout

        # Configure retry strategy
        retry_strategy = Retry(
            total=max_retries,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            backoff_factor=backoff_factor,
            raise_on_status=False
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update({
            'Accept': 'application/json',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive',
        })

    def get_json(self, url: str, **kwargs) -> Optional[dict]:
        """GET a JSON document, None on any HTTP or transport failure"""
        try:
            response = self.session.get(url, timeout=self.timeout, **kwargs)

            if response.status_code == 200:
                logger.debug(f"Successfully fetched {url}")
                return response.json()
            elif response.status_code == 403:
                logger.warning(f"Access forbidden for {url}")
                return None
            else:
                logger.warning(f"HTTP {response.status_code} for {url}")
                return None

        except requests.exceptions.Timeout:
            logger.error(f"Timeout error for {url}")
            return None
        except requests.exceptions.ConnectionError:
            logger.error(f"Connection error for {url}")
            return None
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error for {url}: {e}")
            return None
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            return None

    def close(self):
        self.session.close()

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def parse_timestamp(value: Union[str, datetime, None]) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime; epoch when unusable"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return EPOCH
    else:
        return EPOCH

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)

def parse_date(value: Union[str, date, None]) -> date:
    """Parse a YYYY-MM-DD date (or a full timestamp) into a date"""
    if isinstance(value, datetime):
        return parse_timestamp(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            logger.debug(f"Unparseable date: {value!r}")
    return EPOCH.date()

def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up"""
    return int(math.floor(value + 0.5))

def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))

# Performance monitoring utilities
class PerformanceMonitor:
    """Monitor and log performance metrics"""

    def __init__(self):
        self.start_time = None
        self.metrics = {}

    def start_timer(self, operation: str):
        """Start timing an operation"""
        self.start_time = time.time()
        self.metrics[operation] = {'start': self.start_time}

    def end_timer(self, operation: str):
        """End timing and log results"""
        if operation in self.metrics and self.start_time:
            duration = time.time() - self.start_time
            self.metrics[operation]['duration'] = duration
            logging.getLogger('performance').info(f"Operation '{operation}' completed in {duration:.2f} seconds")
            return duration
        return 0

    def get_metrics(self) -> dict:
        """Get all recorded metrics"""
        return self.metrics.copy()

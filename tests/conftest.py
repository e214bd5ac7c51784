"""
Pytest configuration and shared fixtures
"""
import pytest
import os
import tempfile
from datetime import datetime, timedelta, timezone

# Add project root to path
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config import DashboardConfig
from database import DatabaseManager
from models import Event, KeywordRanking, MonitoringSnapshot


FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        db_path = f.name

    yield db_path

    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def now():
    """Fixed clock for period and trend calculations"""
    return FIXED_NOW


@pytest.fixture
def test_config(temp_db, tmp_path):
    """Test configuration with temporary database and directories"""
    return DashboardConfig(
        db_path=temp_db,
        report_directory=str(tmp_path / "reports"),
        tasks_file=str(tmp_path / "tasks.pkl"),
        log_dir=str(tmp_path / "logs"),
        pagespeed_api_key="test-key",
        collection_urls=["https://example.com/"],
    )


@pytest.fixture
def db_manager(temp_db):
    """Database manager with temporary database"""
    return DatabaseManager(temp_db)


@pytest.fixture
def dashboard_app(test_config):
    """Application wired to the temporary database, no background threads"""
    from app import SEODashboardApp

    application = SEODashboardApp(test_config, start_background=False, configure_logging=False)
    yield application
    application.shutdown()


def make_event(seconds_before: float, session_id: str, event: str = "page_view",
               referrer: str = None, url: str = "/", now: datetime = FIXED_NOW) -> Event:
    return Event(event, now - timedelta(seconds=seconds_before), session_id, referrer, url)


@pytest.fixture
def session_events():
    """Three sessions: A with one view, B spanning 120s, C spanning 300s"""
    return [
        make_event(1000, "A", url="/"),
        make_event(900, "B", url="/properties"),
        make_event(780, "B", url="/properties/1"),
        make_event(700, "C", url="/"),
        make_event(400, "C", url="/blogs"),
    ]


@pytest.fixture
def sample_snapshot(now):
    """A healthy monitoring snapshot"""
    return MonitoringSnapshot(
        timestamp=now - timedelta(hours=1),
        url="/",
        page_speed_desktop=92,
        page_speed_mobile=78,
        lcp=2.1,
        fid=45,
        cls=0.05,
        fcp=1.8,
        ttfb=800,
        mobile_usability_score=88,
        indexed_pages=45,
        organic_traffic=850,
        domain_authority=42,
    )


@pytest.fixture
def sample_rankings(now):
    """Two observations for 'real estate', one for 'luxury homes'"""
    today = now.date()
    return [
        KeywordRanking("real estate", 3, today, 1200, "/"),
        KeywordRanking("luxury homes", 7, today, 600, "/"),
        KeywordRanking("real estate", 5, today - timedelta(days=1), 1100, "/"),
    ]

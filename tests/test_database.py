"""
Tests for database operations
"""
import pytest
import sqlite3
from datetime import timedelta

from database import DatabaseManager, PAGE_SOURCES
from models import KeywordRanking, MonitoringSnapshot, SEOAlert, SEOReport
from utils import utcnow
from conftest import make_event


class TestDatabaseManager:
    """Test class for database operations"""

    def test_database_initialization(self, db_manager):
        conn = sqlite3.connect(db_manager.db_path)
        cursor = conn.cursor()
        cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
        tables = [row[0] for row in cursor.fetchall()]
        conn.close()

        expected_tables = [
            'seo_events', 'seo_monitoring_data', 'seo_keyword_rankings',
            'seo_alerts', 'seo_reports'
        ] + [table for table, _ in PAGE_SOURCES]

        for table in expected_tables:
            assert table in tables

    def test_events_in_range_oldest_first(self, db_manager, now):
        db_manager.save_event(make_event(60, "s2"))
        db_manager.save_event(make_event(600, "s1", referrer="google.com"))
        db_manager.save_event(make_event(86400 * 10, "old"))

        events = db_manager.get_events(now - timedelta(days=1), now)

        assert [e.session_id for e in events] == ["s1", "s2"]
        assert events[0].referrer == "google.com"
        assert events[0].timestamp.tzinfo is not None

    def test_monitoring_data_newest_first(self, db_manager, sample_snapshot, now):
        older = MonitoringSnapshot(timestamp=now - timedelta(days=2), url="/properties", page_speed_desktop=70)
        db_manager.save_monitoring_snapshot(older)
        snapshot_id = db_manager.save_monitoring_snapshot(sample_snapshot)

        snapshots = db_manager.get_monitoring_data(now - timedelta(days=7), now)
        assert [s.id for s in snapshots][0] == snapshot_id
        assert snapshots[0].domain_authority == 42

        filtered = db_manager.get_monitoring_data(url="/properties")
        assert len(filtered) == 1
        assert filtered[0].page_speed_desktop == 70

        assert len(db_manager.get_monitoring_data(limit=1)) == 1

    def test_keyword_rankings_by_date(self, db_manager, sample_rankings, now):
        for ranking in sample_rankings:
            db_manager.save_keyword_ranking(ranking)
        db_manager.save_keyword_ranking(KeywordRanking("ancient", 1, now.date() - timedelta(days=100)))

        rows = db_manager.get_keyword_rankings(now.date() - timedelta(days=30), now.date())

        assert len(rows) == 3
        assert rows[-1].date == now.date() - timedelta(days=1)

    def test_count_total_pages(self, db_manager):
        db_manager.add_page("properties", "Villa", "active")
        db_manager.add_page("properties", "Sold flat", "sold")
        db_manager.add_page("blogs", "Market update", "published")
        db_manager.add_page("blogs", "Draft", "draft")
        db_manager.add_page("policies", "Privacy", "active")

        assert db_manager.count_pages("properties", "active") == 1
        assert db_manager.count_total_pages(["/", "/about"]) == 5

    def test_count_pages_rejects_unknown_table(self, db_manager):
        with pytest.raises(ValueError):
            db_manager.count_pages("users", "active")

    def test_count_total_pages_survives_missing_table(self, db_manager):
        conn = sqlite3.connect(db_manager.db_path)
        conn.execute("DROP TABLE blogs")
        conn.commit()
        conn.close()

        db_manager.add_page("properties", "Villa", "active")
        assert db_manager.count_total_pages(["/"]) == 2


class TestAlerts:
    """Tests for alert lifecycle"""

    def test_create_and_list(self, db_manager):
        alert = db_manager.create_alert(SEOAlert("performance", "high", "Slow LCP", "LCP above 4s", "/"))

        assert alert.id is not None
        assert alert.status == "active"
        assert alert.created_at is not None
        assert [a.id for a in db_manager.get_alerts()] == [alert.id]

    def test_status_transitions(self, db_manager):
        alert = db_manager.create_alert(SEOAlert("technical", "medium", "Missing meta", "No description"))

        acknowledged = db_manager.update_alert_status(alert.id, "acknowledged")
        assert acknowledged.acknowledged_at is not None
        assert acknowledged.resolved_at is None

        resolved = db_manager.update_alert_status(alert.id, "resolved")
        assert resolved.resolved_at is not None
        assert resolved.acknowledged_at is None
        assert db_manager.get_alerts("active") == []
        assert len(db_manager.get_alerts("resolved")) == 1

    def test_invalid_status(self, db_manager):
        with pytest.raises(ValueError):
            db_manager.update_alert_status(1, "snoozed")

    def test_unknown_alert(self, db_manager):
        assert db_manager.update_alert_status(999, "resolved") is None


class TestReportsAndMaintenance:
    """Tests for stored reports, cleanup and seeding"""

    def test_save_and_get_report(self, db_manager):
        report = SEOReport(
            title="SEO Performance Report",
            generated_at=utcnow().isoformat(),
            period="7d",
            report_type="summary",
            overview={"seoScore": 72, "grade": "B"},
            performance={"lcp": 2.1},
            issues=[{"type": "performance", "severity": "high"}],
            recommendations=["Keep going"],
        )
        report_id = db_manager.save_report(report)

        stored = db_manager.get_report(report_id)
        assert stored.id == report_id
        assert stored.overview["seoScore"] == 72
        assert stored.issues == report.issues
        assert db_manager.get_report(report_id + 1) is None

    def test_cleanup_old_data(self, db_manager):
        current = utcnow()
        db_manager.save_event(make_event(86400 * 40, "old", now=current))
        db_manager.save_event(make_event(60, "new", now=current))
        db_manager.save_monitoring_snapshot(MonitoringSnapshot(timestamp=current - timedelta(days=40)))

        db_manager.cleanup_old_data(30)

        events = db_manager.get_events(current - timedelta(days=365), current)
        assert [e.session_id for e in events] == ["new"]
        assert db_manager.get_monitoring_data() == []

    def test_seed_sample_data(self, db_manager, now):
        counts = db_manager.seed_sample_data(now)

        assert counts == {"monitoringRecords": 2, "keywordRecords": 6, "eventRecords": 5, "alertRecords": 2}
        assert len(db_manager.get_events(now - timedelta(days=1), now)) == 5
        assert len(db_manager.get_alerts()) == 2

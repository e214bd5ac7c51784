"""
Tests for threshold alerts raised from monitoring snapshots
"""
import pytest

from alerting import generate_alerts, raise_alerts
from models import MonitoringSnapshot


def healthy_snapshot(now, **overrides):
    """Snapshot sitting exactly on every alert threshold"""
    values = dict(
        timestamp=now, url="/properties", lcp=2.5, fid=100, cls=0.1,
        page_speed_mobile=50, page_speed_desktop=70, organic_traffic=100,
    )
    values.update(overrides)
    return MonitoringSnapshot(**values)


class TestGenerateAlerts:
    """Tests for alert thresholds"""

    def test_values_on_thresholds_raise_nothing(self, now):
        assert generate_alerts(healthy_snapshot(now)) == []

    @pytest.mark.parametrize("field,value,severity,alert_type,threshold", [
        ("lcp", 2.51, "high", "performance", 2.5),
        ("fid", 101, "high", "performance", 100),
        ("cls", 0.11, "medium", "performance", 0.1),
        ("page_speed_mobile", 49, "high", "performance", 50),
        ("page_speed_desktop", 69, "medium", "performance", 70),
        ("organic_traffic", 99, "low", "traffic", 100),
    ])
    def test_single_breach(self, now, field, value, severity, alert_type, threshold):
        alerts = generate_alerts(healthy_snapshot(now, **{field: value}))

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.metric_name == field
        assert alert.severity == severity
        assert alert.alert_type == alert_type
        assert alert.threshold_value == threshold
        assert alert.current_value == value
        assert alert.url == "/properties"
        assert alert.status == "active"

    def test_messages(self, now):
        alerts = generate_alerts(healthy_snapshot(now, lcp=3.2, page_speed_desktop=45))
        messages = {a.metric_name: a.message for a in alerts}

        assert messages["lcp"] == (
            "Largest Contentful Paint is 3.2s, which is above the recommended 2.5s threshold"
        )
        assert messages["page_speed_desktop"] == (
            "Desktop Page Speed score is 45, which is below the recommended 70 threshold"
        )

    def test_every_breach_reported(self, now):
        snapshot = MonitoringSnapshot(timestamp=now, url="/", lcp=5, fid=400, cls=0.3)
        metrics = [a.metric_name for a in generate_alerts(snapshot)]

        assert metrics == ["lcp", "fid", "cls", "page_speed_mobile", "page_speed_desktop", "organic_traffic"]


class TestRaiseAlerts:
    """Tests for storing snapshot alerts"""

    def test_alerts_are_stored(self, db_manager, now):
        created = raise_alerts(db_manager, healthy_snapshot(now, lcp=4.1, cls=0.2))

        assert [a.metric_name for a in created] == ["lcp", "cls"]
        assert all(a.id is not None for a in created)
        assert {a.metric_name for a in db_manager.get_alerts()} == {"lcp", "cls"}

    def test_active_alert_is_not_duplicated(self, db_manager, now):
        raise_alerts(db_manager, healthy_snapshot(now, lcp=4.1))
        assert raise_alerts(db_manager, healthy_snapshot(now, lcp=3.0)) == []
        assert len(db_manager.get_alerts()) == 1

    def test_same_metric_on_other_url_is_raised(self, db_manager, now):
        raise_alerts(db_manager, healthy_snapshot(now, lcp=4.1))
        created = raise_alerts(db_manager, healthy_snapshot(now, url="/blogs", lcp=4.1))

        assert len(created) == 1
        assert len(db_manager.get_alerts()) == 2

    def test_resolved_alert_can_be_raised_again(self, db_manager, now):
        first = raise_alerts(db_manager, healthy_snapshot(now, fid=250))[0]
        db_manager.update_alert_status(first.id, "resolved")

        again = raise_alerts(db_manager, healthy_snapshot(now, fid=250))
        assert len(again) == 1
        assert again[0].id != first.id

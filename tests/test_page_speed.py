"""
Tests for PageSpeed Insights collection
"""
import pytest
from unittest.mock import Mock, patch

from page_speed import PageSpeedCollector, PageSpeedError


def lighthouse_payload(score, lcp_ms, fid_ms, cls, fcp_ms, ttfb_ms):
    return {
        "lighthouseResult": {
            "categories": {"performance": {"score": score}},
            "audits": {
                "largest-contentful-paint": {"numericValue": lcp_ms},
                "max-potential-fid": {"numericValue": fid_ms},
                "cumulative-layout-shift": {"numericValue": cls},
                "first-contentful-paint": {"numericValue": fcp_ms},
                "server-response-time": {"numericValue": ttfb_ms},
            },
        }
    }


@pytest.fixture
def mock_session():
    session = Mock()

    def get_json(url, params=None):
        if params["strategy"] == "mobile":
            return lighthouse_payload(0.72, 3100, 180, 0.08, 1900, 620)
        return lighthouse_payload(0.935, 1200, 40, 0.01, 800, 300)

    session.get_json.side_effect = get_json
    return session


class TestPageSpeedCollector:
    """Tests for the PageSpeed collector"""

    def test_fetch_strategy_converts_units(self, db_manager, mock_session):
        collector = PageSpeedCollector(db_manager, api_key="key", session=mock_session)
        result = collector.fetch_strategy("https://example.com/", "mobile")

        assert result["score"] == 72
        assert result["lcp"] == pytest.approx(3.1)
        assert result["fcp"] == pytest.approx(1.9)
        assert result["fid"] == 180
        assert result["ttfb"] == 620

        params = mock_session.get_json.call_args.kwargs["params"]
        assert params["key"] == "key"
        assert params["category"] == "performance"

    def test_collect_uses_mobile_vitals(self, db_manager, mock_session):
        collector = PageSpeedCollector(db_manager, api_key="key", session=mock_session)
        snapshot = collector.collect("https://example.com/")

        assert snapshot.url == "https://example.com/"
        assert snapshot.page_speed_desktop == 94
        assert snapshot.page_speed_mobile == 72
        assert snapshot.lcp == pytest.approx(3.1)
        assert snapshot.cls == pytest.approx(0.08)

    def test_collect_without_api_key(self, db_manager, mock_session):
        collector = PageSpeedCollector(db_manager, api_key="", session=mock_session)

        assert collector.collect("https://example.com/") is None
        mock_session.get_json.assert_not_called()

    @patch('utils.time.sleep')
    def test_missing_result_is_retried_then_skipped(self, mock_sleep, db_manager):
        session = Mock()
        session.get_json.return_value = None
        collector = PageSpeedCollector(db_manager, api_key="key", session=session)

        with pytest.raises(PageSpeedError):
            collector.fetch_strategy("https://example.com/", "desktop")
        assert session.get_json.call_count == 3

        assert collector.collect("https://example.com/") is None

    def test_collect_and_store(self, db_manager, mock_session):
        collector = PageSpeedCollector(db_manager, api_key="key", session=mock_session)
        stored = collector.collect_and_store(["https://example.com/", "https://example.com/blogs"])

        assert len(stored) == 2
        assert all(s.id is not None for s in stored)
        assert len(db_manager.get_monitoring_data()) == 2

    def test_collect_and_store_raises_alerts(self, db_manager, mock_session):
        collector = PageSpeedCollector(db_manager, api_key="key", session=mock_session)
        collector.collect_and_store(["https://example.com/"])

        # mobile run: lcp 3.1s and fid 180ms breach; no traffic figures in PageSpeed data
        alerts = {a.metric_name: a for a in db_manager.get_alerts()}
        assert set(alerts) == {"lcp", "fid", "organic_traffic"}
        assert alerts["lcp"].url == "https://example.com/"
        assert alerts["lcp"].current_value == pytest.approx(3.1)

        collector.collect_and_store(["https://example.com/"])
        assert len(db_manager.get_alerts()) == 3

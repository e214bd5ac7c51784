"""
Database utilities for SEO Dashboard
"""
import sqlite3
import json
import logging
from typing import Optional, List, Dict, Any, Sequence
from datetime import datetime, date, timedelta

from models import (
    Event, MonitoringSnapshot, KeywordRanking, SEOAlert, SEOReport,
    AuditIssue, AuditRecommendation, AuditResult
)
from utils import parse_timestamp, utcnow

logger = logging.getLogger(__name__)

# Tables whose rows are public pages, with the status that makes a row live
PAGE_SOURCES = [
    ("properties", "active"),
    ("public_listings", "active"),
    ("blogs", "published"),
    ("policies", "active"),
]

ALERT_STATUSES = ("active", "acknowledged", "resolved")


def to_iso(value) -> str:
    """Normalize a timestamp to the stored ISO-8601 UTC form"""
    return parse_timestamp(value).isoformat(timespec="microseconds")


class DatabaseManager:
    """Manages SQLite database operations for SEO data"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.setup_database()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def setup_database(self):
        """Initialize SQLite database with complete schema"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        # SEO events table
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS seo_events (
                id INTEGER PRIMARY KEY,
                event TEXT NOT NULL,
                url TEXT,
                session_id TEXT,
                referrer TEXT,
                timestamp TEXT NOT NULL
            )
        ''')

        # Monitoring snapshots table
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS seo_monitoring_data (
                id INTEGER PRIMARY KEY,
                url TEXT,
                page_speed_desktop REAL,
                page_speed_mobile REAL,
                lcp REAL,
                fid REAL,
                cls REAL,
                fcp REAL,
                ttfb REAL,
                mobile_usability_score REAL,
                indexed_pages INTEGER,
                organic_traffic INTEGER,
                domain_authority REAL,
                timestamp TEXT NOT NULL
            )
        ''')

        # Keyword rankings table
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS seo_keyword_rankings (
                id INTEGER PRIMARY KEY,
                keyword TEXT NOT NULL,
                position INTEGER,
                search_volume INTEGER,
                url TEXT,
                date TEXT NOT NULL
            )
        ''')

        # Alerts table
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS seo_alerts (
                id INTEGER PRIMARY KEY,
                alert_type TEXT,
                severity TEXT,
                title TEXT,
                message TEXT,
                url TEXT,
                threshold_value REAL,
                current_value REAL,
                metric_name TEXT,
                status TEXT DEFAULT 'active',
                created_at TEXT,
                acknowledged_at TEXT,
                resolved_at TEXT,
                updated_at TEXT
            )
        ''')

        # Reports table
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS seo_reports (
                id INTEGER PRIMARY KEY,
                report_type TEXT,
                period TEXT,
                overall_score INTEGER,
                total_issues INTEGER,
                data TEXT,
                created_at TEXT
            )
        ''')

        # On-page audit results table
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS seo_audit_results (
                id INTEGER PRIMARY KEY,
                url TEXT NOT NULL,
                audit_type TEXT,
                score INTEGER,
                results TEXT,
                target_keywords TEXT,
                status TEXT,
                created_at TEXT
            )
        ''')

        # Page sources counted towards the total page count
        for table, _ in PAGE_SOURCES:
            cursor.execute(f'''
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY,
                    title TEXT,
                    status TEXT
                )
            ''')

        conn.commit()
        conn.close()
        logger.info("Database schema initialized successfully")

    # Writes

    def save_event(self, event: Event) -> int:
        """Save a single SEO event"""
        conn = self._connect()
        try:
            cursor = conn.execute('''
                INSERT INTO seo_events (event, url, session_id, referrer, timestamp)
                VALUES (?, ?, ?, ?, ?)
            ''', (event.event, event.url, event.session_id, event.referrer, to_iso(event.timestamp)))
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    def save_monitoring_snapshot(self, snapshot: MonitoringSnapshot) -> int:
        """Save a performance measurement"""
        row = snapshot.to_row()
        row["timestamp"] = to_iso(snapshot.timestamp)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)

        conn = self._connect()
        try:
            cursor = conn.execute(
                f"INSERT INTO seo_monitoring_data ({columns}) VALUES ({placeholders})",
                tuple(row.values())
            )
            conn.commit()
            logger.info(f"Saved monitoring snapshot for: {snapshot.url}")
            return cursor.lastrowid
        finally:
            conn.close()

    def save_keyword_ranking(self, ranking: KeywordRanking) -> int:
        """Save a keyword position observation"""
        conn = self._connect()
        try:
            cursor = conn.execute('''
                INSERT INTO seo_keyword_rankings (keyword, position, search_volume, url, date)
                VALUES (?, ?, ?, ?, ?)
            ''', (ranking.keyword, ranking.position, ranking.search_volume, ranking.url,
                  ranking.date.isoformat()))
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    def add_page(self, table: str, title: str, status: str) -> int:
        """Register a dynamic page (property, listing, blog, policy)"""
        if table not in dict(PAGE_SOURCES):
            raise ValueError(f"Unknown page table: {table}")

        conn = self._connect()
        try:
            cursor = conn.execute(f"INSERT INTO {table} (title, status) VALUES (?, ?)", (title, status))
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    # Range reads

    def get_events(self, start: datetime, end: datetime) -> List[Event]:
        """Events inside [start, end], oldest first"""
        conn = self._connect()
        try:
            rows = conn.execute('''
                SELECT * FROM seo_events
                WHERE timestamp >= ? AND timestamp <= ?
                ORDER BY timestamp ASC, id ASC
            ''', (to_iso(start), to_iso(end))).fetchall()
            return [Event.from_row(dict(row)) for row in rows]
        finally:
            conn.close()

    def get_monitoring_data(self, start: Optional[datetime] = None, end: Optional[datetime] = None,
                            url: Optional[str] = None, limit: Optional[int] = None) -> List[MonitoringSnapshot]:
        """Monitoring snapshots, newest first"""
        clauses, params = [], []
        if start is not None:
            clauses.append("timestamp >= ?")
            params.append(to_iso(start))
        if end is not None:
            clauses.append("timestamp <= ?")
            params.append(to_iso(end))
        if url:
            clauses.append("url = ?")
            params.append(url)

        query = "SELECT * FROM seo_monitoring_data"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY timestamp DESC, id DESC"
        if limit:
            query += " LIMIT ?"
            params.append(limit)

        conn = self._connect()
        try:
            rows = conn.execute(query, params).fetchall()
            return [MonitoringSnapshot.from_row(dict(row)) for row in rows]
        finally:
            conn.close()

    def get_keyword_rankings(self, start_date: date, end_date: date,
                             limit: Optional[int] = None) -> List[KeywordRanking]:
        """Keyword rows dated inside [start_date, end_date], newest first"""
        query = '''
            SELECT * FROM seo_keyword_rankings
            WHERE date >= ? AND date <= ?
            ORDER BY date DESC, id ASC
        '''
        params: List[Any] = [start_date.isoformat(), end_date.isoformat()]
        if limit:
            query += " LIMIT ?"
            params.append(limit)

        conn = self._connect()
        try:
            rows = conn.execute(query, params).fetchall()
            return [KeywordRanking.from_row(dict(row)) for row in rows]
        finally:
            conn.close()

    def count_pages(self, table: str, status: str) -> int:
        """Count rows of a page table in the given status"""
        if table not in dict(PAGE_SOURCES):
            raise ValueError(f"Unknown page table: {table}")

        conn = self._connect()
        try:
            row = conn.execute(f"SELECT COUNT(*) FROM {table} WHERE status = ?", (status,)).fetchone()
            return row[0] or 0
        finally:
            conn.close()

    def count_total_pages(self, static_pages: Sequence[str], fallback: int = 50) -> int:
        """Static public pages plus every live dynamic page"""
        try:
            total = len(static_pages)
            for table, status in PAGE_SOURCES:
                try:
                    total += self.count_pages(table, status)
                except sqlite3.Error as e:
                    logger.error(f"Error counting {table} pages: {e}")
            return total
        except Exception as e:
            logger.error(f"Error counting website pages: {e}")
            return fallback

    # Alerts

    def _row_to_alert(self, row: sqlite3.Row) -> SEOAlert:
        return SEOAlert(**dict(row))

    def get_alerts(self, status: str = "active", limit: int = 20) -> List[SEOAlert]:
        """Alerts in a given status, newest first"""
        conn = self._connect()
        try:
            rows = conn.execute('''
                SELECT * FROM seo_alerts WHERE status = ?
                ORDER BY created_at DESC, id DESC LIMIT ?
            ''', (status, limit)).fetchall()
            return [self._row_to_alert(row) for row in rows]
        finally:
            conn.close()

    def get_alert(self, alert_id: int) -> Optional[SEOAlert]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM seo_alerts WHERE id = ?", (alert_id,)).fetchone()
            return self._row_to_alert(row) if row else None
        finally:
            conn.close()

    def create_alert(self, alert: SEOAlert) -> SEOAlert:
        """Insert a new active alert"""
        now = to_iso(utcnow())
        conn = self._connect()
        try:
            cursor = conn.execute('''
                INSERT INTO seo_alerts
                (alert_type, severity, title, message, url, threshold_value, current_value,
                 metric_name, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, 'active', ?, ?)
            ''', (
                alert.alert_type, alert.severity, alert.title, alert.message, alert.url,
                alert.threshold_value, alert.current_value, alert.metric_name, now, now
            ))
            conn.commit()
            alert_id = cursor.lastrowid
            logger.info(f"Created {alert.severity} alert: {alert.title}")
        finally:
            conn.close()
        return self.get_alert(alert_id)

    def has_active_alert(self, metric_name: str, url: Optional[str]) -> bool:
        """Whether an active alert already exists for this metric on this URL"""
        conn = self._connect()
        try:
            row = conn.execute('''
                SELECT 1 FROM seo_alerts
                WHERE status = 'active' AND metric_name = ? AND url IS ?
                LIMIT 1
            ''', (metric_name, url)).fetchone()
            return row is not None
        finally:
            conn.close()

    def update_alert_status(self, alert_id: int, status: str) -> Optional[SEOAlert]:
        """Move an alert to a new status, stamping acknowledgement/resolution times"""
        if status not in ALERT_STATUSES:
            raise ValueError(f"Invalid alert status: {status}")

        now = to_iso(utcnow())
        conn = self._connect()
        try:
            cursor = conn.execute('''
                UPDATE seo_alerts
                SET status = ?, acknowledged_at = ?, resolved_at = ?, updated_at = ?
                WHERE id = ?
            ''', (
                status,
                now if status == "acknowledged" else None,
                now if status == "resolved" else None,
                now,
                alert_id
            ))
            conn.commit()
            if cursor.rowcount == 0:
                return None
        finally:
            conn.close()
        return self.get_alert(alert_id)

    # Reports

    def save_report(self, report: SEOReport) -> int:
        """Save a generated report"""
        conn = self._connect()
        try:
            cursor = conn.execute('''
                INSERT INTO seo_reports (report_type, period, overall_score, total_issues, data, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (
                report.report_type,
                report.period,
                report.overview.get("seoScore"),
                len(report.issues),
                json.dumps(report.to_dict()),
                report.generated_at
            ))
            conn.commit()
            logger.info(f"Saved {report.report_type} report for period {report.period}")
            return cursor.lastrowid
        finally:
            conn.close()

    def get_report(self, report_id: int) -> Optional[SEOReport]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM seo_reports WHERE id = ?", (report_id,)).fetchone()
        finally:
            conn.close()

        if not row:
            return None

        data = json.loads(row["data"])
        return SEOReport(
            id=row["id"],
            title=data["title"],
            generated_at=data["generatedAt"],
            period=data["period"],
            report_type=data["reportType"],
            overview=data["overview"],
            performance=data["performance"],
            issues=data["issues"],
            keywords=data["keywords"],
            recommendations=data["recommendations"],
        )

    # Audits

    def save_audit(self, result: AuditResult, audit_type: str = "comprehensive") -> int:
        """Save an on-page audit result"""
        conn = self._connect()
        try:
            cursor = conn.execute('''
                INSERT INTO seo_audit_results
                (url, audit_type, score, results, target_keywords, status, created_at)
                VALUES (?, ?, ?, ?, ?, 'completed', ?)
            ''', (
                result.url,
                audit_type,
                result.score,
                json.dumps({
                    "issues": [issue.__dict__ for issue in result.issues],
                    "recommendations": [rec.__dict__ for rec in result.recommendations],
                }),
                json.dumps(result.target_keywords),
                result.created_at
            ))
            conn.commit()
            logger.info(f"Saved audit for {result.url} with score {result.score}")
            return cursor.lastrowid
        finally:
            conn.close()

    def get_audit(self, audit_id: int) -> Optional[AuditResult]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM seo_audit_results WHERE id = ?", (audit_id,)).fetchone()
        finally:
            conn.close()

        if not row:
            return None

        results = json.loads(row["results"])
        return AuditResult(
            id=row["id"],
            url=row["url"],
            score=row["score"],
            issues=[AuditIssue(**issue) for issue in results["issues"]],
            recommendations=[AuditRecommendation(**rec) for rec in results["recommendations"]],
            target_keywords=json.loads(row["target_keywords"] or "[]"),
            created_at=row["created_at"],
        )

    # Maintenance

    def cleanup_old_data(self, days_to_keep: int = 30):
        """Remove old data from the database"""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        try:
            cutoff = utcnow() - timedelta(days=days_to_keep)

            for table in ("seo_events", "seo_monitoring_data"):
                cursor.execute(f"DELETE FROM {table} WHERE timestamp < ?", (to_iso(cutoff),))
            cursor.execute("DELETE FROM seo_keyword_rankings WHERE date < ?", (cutoff.date().isoformat(),))
            cursor.execute("DELETE FROM seo_alerts WHERE status = 'resolved' AND resolved_at < ?",
                           (to_iso(cutoff),))

            conn.commit()
            logger.info(f"Cleaned up data older than {days_to_keep} days")
        finally:
            conn.close()

    def seed_sample_data(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Populate a development database with a small, realistic data set"""
        now = now or utcnow()
        today = now.date()

        snapshots = [
            MonitoringSnapshot(timestamp=now - timedelta(hours=2), url="/", page_speed_desktop=92,
                               page_speed_mobile=78, lcp=2.1, fid=45, cls=0.05, fcp=1.8, ttfb=800,
                               mobile_usability_score=88, indexed_pages=45, organic_traffic=850,
                               domain_authority=42),
            MonitoringSnapshot(timestamp=now - timedelta(hours=1), url="/properties", page_speed_desktop=88,
                               page_speed_mobile=82, lcp=1.9, fid=38, cls=0.03, fcp=1.6, ttfb=750,
                               mobile_usability_score=90, indexed_pages=45, organic_traffic=650,
                               domain_authority=42),
        ]
        keywords = [
            ("real estate", 3, 1200, "/"),
            ("properties for sale", 5, 800, "/"),
            ("luxury homes", 7, 600, "/"),
            ("apartments for rent", 4, 900, "/properties"),
            ("commercial properties", 6, 400, "/properties"),
            ("about us", 2, 200, "/about"),
        ]
        events = [
            Event("page_view", now - timedelta(seconds=3600), "session_1", "google.com", "/"),
            Event("page_view", now - timedelta(seconds=3500), "session_1", "google.com", "/properties"),
            Event("conversion", now - timedelta(seconds=3400), "session_1", "google.com", "/contact"),
            Event("page_view", now - timedelta(seconds=1800), "session_2", "direct", "/"),
            Event("page_view", now - timedelta(seconds=900), "session_3", "facebook.com", "/about"),
        ]
        alerts = [
            SEOAlert("performance", "medium", "Page Speed Warning",
                     "Mobile page speed is below 80 for /properties page", "/properties", 80, 78,
                     "page_speed_mobile"),
            SEOAlert("technical", "low", "Missing Meta Description",
                     "Some pages are missing meta descriptions", "/contact", 1, 0, "meta_description"),
        ]

        for snapshot in snapshots:
            self.save_monitoring_snapshot(snapshot)
        for keyword, position, volume, url in keywords:
            self.save_keyword_ranking(KeywordRanking(keyword, position, today, volume, url))
        for event in events:
            self.save_event(event)
        for alert in alerts:
            self.create_alert(alert)

        logger.info("SEO sample data seeded successfully")
        return {
            "monitoringRecords": len(snapshots),
            "keywordRecords": len(keywords),
            "eventRecords": len(events),
            "alertRecords": len(alerts),
        }

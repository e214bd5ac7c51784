"""
Main application for the SEO Dashboard - orchestrates all components
"""
import argparse
import asyncio
import time
import logging
from typing import List, Dict, Any, Optional
import json

import uvicorn

from config import config as default_config, DashboardConfig
from database import DatabaseManager
from aggregator import SEOAggregator
from audit import SEOAuditor
from models import SEOAlert, SEOReport
from page_speed import PageSpeedCollector
from report import ReportGenerator
from scheduler import TaskManager
from monitoring import init_monitoring, setup_logging

logger = logging.getLogger(__name__)

class SEODashboardApp:
    """Main SEO Dashboard application"""

    def __init__(self, settings: DashboardConfig = None, start_background: bool = True,
                 configure_logging: bool = True):
        self.config = settings or default_config

        if configure_logging:
            setup_logging(self.config.log_level, self.config.log_dir)

        # Core components
        self.db_manager = DatabaseManager(self.config.db_path)
        self.aggregator = SEOAggregator(self.db_manager, self.config)
        self.report_generator = ReportGenerator(self.db_manager, self.aggregator,
                                                self.config.report_directory)
        self.collector = PageSpeedCollector(self.db_manager)
        self.auditor = SEOAuditor(self.db_manager)
        self.task_manager = TaskManager(self.db_manager, self.collector, self.report_generator,
                                        self.config.tasks_file, autostart=start_background)

        # Monitoring
        self.metrics_collector, self.health_checker = init_monitoring(
            self.config.db_path, start=start_background
        )

        logger.info("SEO Dashboard application initialized")

    async def _timed(self, name: str, coro):
        """Await an aggregation while recording its response time"""
        start_time = time.time()
        try:
            result = await coro
        except Exception:
            self.metrics_collector.record_error()
            raise
        response_time = time.time() - start_time
        self.metrics_collector.record_request(response_time)
        logger.debug(f"{name} served in {response_time:.3f}s")
        return result

    async def get_dashboard(self, period: Optional[str] = None) -> Dict[str, Any]:
        return await self._timed("dashboard", self.aggregator.get_dashboard(period))

    async def get_analytics(self, period: Optional[str] = None) -> Dict[str, Any]:
        return await self._timed("analytics", self.aggregator.get_analytics(period))

    async def get_performance(self, period: Optional[str] = None, url: Optional[str] = None) -> Dict[str, Any]:
        return await self._timed("performance", self.aggregator.get_performance(period, url))

    def store_performance(self, url: str, metrics: Dict[str, Any]) -> Dict[str, Any]:
        """Store a submitted performance measurement"""
        snapshot = self.aggregator.store_performance_metrics(url, metrics)
        logger.info(f"Stored performance metrics for {url}")
        return {"id": snapshot.id, "url": snapshot.url, "timestamp": snapshot.timestamp.isoformat()}

    def list_alerts(self, status: str = "active", limit: int = 20) -> List[SEOAlert]:
        return self.db_manager.get_alerts(status, limit)

    def create_alert(self, alert: SEOAlert) -> SEOAlert:
        return self.db_manager.create_alert(alert)

    def update_alert(self, alert_id: int, status: str) -> Optional[SEOAlert]:
        return self.db_manager.update_alert_status(alert_id, status)

    async def generate_report(self, period: Optional[str] = None, report_type: str = "comprehensive",
                              pdf: bool = False) -> Dict[str, Any]:
        """Generate and store a report, optionally writing its PDF"""
        report = await self._timed("report", self.report_generator.generate(period, report_type))
        result = report.to_dict()
        if pdf:
            result["pdfPath"] = self.report_generator.render_pdf(report)
        return result

    def get_report(self, report_id: int) -> Optional[SEOReport]:
        return self.db_manager.get_report(report_id)

    def render_report_pdf(self, report_id: int) -> Optional[str]:
        """Render a stored report to PDF; None when the report does not exist"""
        report = self.db_manager.get_report(report_id)
        if report is None:
            return None
        return self.report_generator.render_pdf(report)

    def audit_page(self, url: str, content: Dict[str, Any], target_keywords: List[str] = None) -> Dict[str, Any]:
        """Audit submitted page content and store the result"""
        return self.auditor.audit(url, content, target_keywords).to_dict()

    def collect_page_speed(self, urls: List[str] = None) -> Dict[str, Any]:
        """Collect PageSpeed data for the given or configured URLs"""
        targets = urls or self.config.collection_urls
        logger.info(f"Collecting PageSpeed data for {len(targets)} URLs")
        snapshots = self.collector.collect_and_store(targets)
        return {
            "success": len(snapshots) > 0,
            "collected": len(snapshots),
            "total_urls": len(targets),
            "urls": [s.url for s in snapshots]
        }

    def seed_sample_data(self) -> Dict[str, Any]:
        return {"success": True, "data": self.db_manager.seed_sample_data()}

    def get_system_status(self) -> Dict[str, Any]:
        """Get health, request metrics and task counts"""
        health = self.health_checker.check_health()
        tasks = self.task_manager.get_all_tasks()

        return {
            "timestamp": health["timestamp"],
            "health": health,
            "metrics": self.metrics_collector.get_metrics(),
            "active_tasks": len([t for t in tasks if t["status"] == "running"]),
            "total_tasks": len(tasks)
        }

    def cleanup_old_data(self, days_to_keep: int = 30):
        logger.info(f"Cleaning up data older than {days_to_keep} days")
        self.db_manager.cleanup_old_data(days_to_keep)
        logger.info("Data cleanup completed")

    def shutdown(self):
        """Gracefully shutdown the application"""
        logger.info("Shutting down SEO Dashboard application")

        try:
            self.task_manager.shutdown()
            self.metrics_collector.stop_collection()
            self.collector.session.close()
            logger.info("Application shutdown completed")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")

def create_cli():
    """Create command line interface"""
    parser = argparse.ArgumentParser(description="SEO Dashboard - scoring and performance analytics")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (("dashboard", "Show the SEO dashboard"),
                            ("analytics", "Show traffic and keyword analytics")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--period", default=default_config.default_period, help="7d, 30d or 90d")

    performance_parser = subparsers.add_parser("performance", help="Show page performance")
    performance_parser.add_argument("--period", default=default_config.default_period)
    performance_parser.add_argument("--url", help="Restrict to a single URL")

    report_parser = subparsers.add_parser("report", help="Generate an SEO report")
    report_parser.add_argument("--period", default=default_config.default_period)
    report_parser.add_argument("--type", dest="report_type", default="comprehensive")
    report_parser.add_argument("--pdf", action="store_true", help="Also write a PDF")

    alerts_parser = subparsers.add_parser("alerts", help="List alerts")
    alerts_parser.add_argument("--status", default="active")
    alerts_parser.add_argument("--limit", type=int, default=20)

    collect_parser = subparsers.add_parser("collect", help="Collect PageSpeed data")
    collect_parser.add_argument("urls", nargs="*", help="URLs to collect (defaults to configured URLs)")

    audit_parser = subparsers.add_parser("audit", help="Audit page content from a JSON file")
    audit_parser.add_argument("url")
    audit_parser.add_argument("--content", required=True, help="JSON file with title, description, headings, images, links, body")
    audit_parser.add_argument("--keywords", nargs="*", default=[], help="Target keywords")

    subparsers.add_parser("seed", help="Seed sample data")

    cleanup_parser = subparsers.add_parser("cleanup", help="Clean up old data")
    cleanup_parser.add_argument("--days", type=int, default=30, help="Days of data to keep")

    schedule_parser = subparsers.add_parser("schedule", help="Schedule recurring tasks")
    schedule_subparsers = schedule_parser.add_subparsers(dest="schedule_type")

    collection_parser = schedule_subparsers.add_parser("collection", help="Daily PageSpeed collection")
    collection_parser.add_argument("urls", nargs="*")
    collection_parser.add_argument("--time", default="06:00", help="Time to run (HH:MM)")

    daily_report_parser = schedule_subparsers.add_parser("report", help="Daily SEO report")
    daily_report_parser.add_argument("--period", default=default_config.default_period)
    daily_report_parser.add_argument("--time", default="07:00", help="Time to run (HH:MM)")

    schedule_cleanup_parser = schedule_subparsers.add_parser("cleanup", help="Periodic data cleanup")
    schedule_cleanup_parser.add_argument("--days", type=int, default=90)
    schedule_cleanup_parser.add_argument("--interval", type=int, default=7, help="Interval in days")

    subparsers.add_parser("status", help="Get system status")

    server_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    server_parser.add_argument("--host", default=default_config.api_host)
    server_parser.add_argument("--port", type=int, default=default_config.api_port, help="Server port")

    return parser

def print_json(data: Any):
    print(json.dumps(data, indent=2, default=str))

async def main(argv: List[str] = None):
    """Main application entry point"""
    parser = create_cli()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    if args.command == "serve":
        uvicorn.run("api:app", host=args.host, port=args.port)
        return

    app = SEODashboardApp(start_background=args.command == "schedule")

    try:
        if args.command == "dashboard":
            print_json(await app.get_dashboard(args.period))

        elif args.command == "analytics":
            print_json(await app.get_analytics(args.period))

        elif args.command == "performance":
            print_json(await app.get_performance(args.period, args.url))

        elif args.command == "report":
            print_json(await app.generate_report(args.period, args.report_type, args.pdf))

        elif args.command == "alerts":
            print_json([alert.__dict__ for alert in app.list_alerts(args.status, args.limit)])

        elif args.command == "collect":
            print_json(app.collect_page_speed(args.urls))

        elif args.command == "audit":
            with open(args.content, encoding="utf-8") as f:
                content = json.load(f)
            print_json(app.audit_page(args.url, content, args.keywords))

        elif args.command == "seed":
            print_json(app.seed_sample_data())

        elif args.command == "cleanup":
            app.cleanup_old_data(args.days)
            print(f"Cleaned up data older than {args.days} days")

        elif args.command == "status":
            print_json(app.get_system_status())

        elif args.command == "schedule":
            if args.schedule_type == "collection":
                task_id = app.task_manager.schedule_daily_collection(args.urls or None, args.time)
            elif args.schedule_type == "report":
                task_id = app.task_manager.schedule_daily_report(args.period, args.time)
            elif args.schedule_type == "cleanup":
                task_id = app.task_manager.schedule_data_cleanup(args.days, args.interval)
            else:
                parser.print_help()
                return
            print(f"Scheduled task: {task_id}")
            print("Scheduler running, press Ctrl+C to stop...")

            while True:
                await asyncio.sleep(60)
                status = app.get_system_status()
                print(f"System Status: {status['health']['overall_status']} - "
                      f"Tasks: {status['total_tasks']}")

    except KeyboardInterrupt:
        print("\nInterrupted by user")
    except Exception as e:
        logger.error(f"Application error: {e}")
        print(f"Error: {e}")
    finally:
        app.shutdown()

if __name__ == "__main__":
    asyncio.run(main())

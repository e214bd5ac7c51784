"""
Monitoring and logging system for the SEO Dashboard
"""
import logging
import time
import os
import sqlite3
import psutil
from typing import Dict, List, Any, Optional
from datetime import datetime
from dataclasses import dataclass, asdict
from threading import Lock
import threading

from config import config

logger = logging.getLogger(__name__)

# Configure logging with multiple handlers
def setup_logging(log_level: str = "INFO", log_dir: str = "logs"):
    """Setup console, file, error and performance logging"""

    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    simple_formatter = logging.Formatter(config.log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(simple_formatter)
    root_logger.addHandler(console_handler)

    # All logs
    file_handler = logging.FileHandler(os.path.join(log_dir, 'dashboard.log'), encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(file_handler)

    error_handler = logging.FileHandler(os.path.join(log_dir, 'errors.log'), encoding='utf-8')
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(error_handler)

    # Timings from PerformanceMonitor go to their own file only
    perf_handler = logging.FileHandler(os.path.join(log_dir, 'performance.log'), encoding='utf-8')
    perf_handler.setLevel(logging.INFO)
    perf_handler.setFormatter(simple_formatter)

    perf_logger = logging.getLogger('performance')
    perf_logger.handlers.clear()
    perf_logger.addHandler(perf_handler)
    perf_logger.setLevel(logging.INFO)
    perf_logger.propagate = False

    return root_logger


@dataclass
class SystemMetrics:
    """System resource usage sample"""
    timestamp: str
    cpu_usage: float
    memory_usage: float
    disk_usage: float
    active_threads: int
    database_size: float


class MetricsCollector:
    """Collects system samples and request counters for the dashboard service"""

    def __init__(self, db_path: str = None, collection_interval: int = 60):
        self.db_path = db_path or config.db_path
        self.metrics_lock = Lock()
        self.system_metrics: List[SystemMetrics] = []
        self.collection_interval = collection_interval
        self.is_collecting = False
        self.collection_thread = None

        self.requests_served = 0
        self.errors_count = 0
        self.response_times: List[float] = []

    def start_collection(self):
        """Start the background sampling thread"""
        if self.is_collecting:
            return

        self.is_collecting = True
        self.collection_thread = threading.Thread(target=self._collect_metrics_loop, daemon=True)
        self.collection_thread.start()
        logger.info("Metrics collection started")

    def stop_collection(self):
        self.is_collecting = False
        if self.collection_thread:
            self.collection_thread.join(timeout=5)
        logger.info("Metrics collection stopped")

    def _collect_metrics_loop(self):
        while self.is_collecting:
            try:
                self.collect_system_metrics()
                time.sleep(self.collection_interval)
            except Exception as e:
                logger.error(f"Error collecting metrics: {e}")
                time.sleep(5)

    def collect_system_metrics(self) -> SystemMetrics:
        """Take one psutil sample and keep it in memory"""
        database_size = 0
        if os.path.exists(self.db_path):
            database_size = os.path.getsize(self.db_path) / (1024 * 1024)  # MB

        metrics = SystemMetrics(
            timestamp=datetime.now().isoformat(),
            cpu_usage=psutil.cpu_percent(interval=None),
            memory_usage=psutil.virtual_memory().percent,
            disk_usage=psutil.disk_usage('/').percent,
            active_threads=threading.active_count(),
            database_size=database_size
        )

        with self.metrics_lock:
            self.system_metrics.append(metrics)
            # Keep only last 100 entries in memory
            if len(self.system_metrics) > 100:
                self.system_metrics.pop(0)

        return metrics

    def latest_system_metrics(self) -> Optional[SystemMetrics]:
        with self.metrics_lock:
            return self.system_metrics[-1] if self.system_metrics else None

    def record_request(self, response_time: float):
        """Record a served aggregation request"""
        with self.metrics_lock:
            self.requests_served += 1
            self.response_times.append(response_time)
            if len(self.response_times) > 1000:
                self.response_times.pop(0)

    def record_error(self):
        with self.metrics_lock:
            self.errors_count += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Request counters and the latest system sample"""
        with self.metrics_lock:
            avg_response_time = (
                sum(self.response_times) / len(self.response_times) if self.response_times else 0
            )
            success_rate = (
                (self.requests_served - self.errors_count) / self.requests_served * 100
                if self.requests_served > 0 else 100
            )
            latest = self.system_metrics[-1] if self.system_metrics else None

            return {
                'requests_served': self.requests_served,
                'errors_count': self.errors_count,
                'success_rate': round(max(success_rate, 0), 2),
                'avg_response_time': round(avg_response_time, 4),
                'system': asdict(latest) if latest else None,
            }


class HealthChecker:
    """System and database health checker"""

    def __init__(self, metrics_collector: MetricsCollector, db_path: str = None):
        self.metrics_collector = metrics_collector
        self.db_path = db_path or metrics_collector.db_path

    def check_health(self) -> Dict[str, Any]:
        """Check every component and derive an overall status"""
        health_status = {
            'timestamp': datetime.now().isoformat(),
            'overall_status': 'healthy',
            'components': {
                'system': self._check_system_health(),
                'database': self._check_database_health(),
            }
        }

        component_statuses = [comp['status'] for comp in health_status['components'].values()]
        if 'critical' in component_statuses:
            health_status['overall_status'] = 'critical'
        elif 'warning' in component_statuses:
            health_status['overall_status'] = 'warning'

        return health_status

    def _check_system_health(self) -> Dict[str, Any]:
        latest = self.metrics_collector.latest_system_metrics()
        if latest is None:
            latest = self.metrics_collector.collect_system_metrics()

        status = 'healthy'
        issues = []

        if latest.cpu_usage > 90:
            status = 'critical'
            issues.append(f"CPU usage critical: {latest.cpu_usage:.1f}%")
        elif latest.cpu_usage > 80:
            status = 'warning'
            issues.append(f"CPU usage high: {latest.cpu_usage:.1f}%")

        if latest.memory_usage > 95:
            status = 'critical'
            issues.append(f"Memory usage critical: {latest.memory_usage:.1f}%")
        elif latest.memory_usage > 85:
            if status != 'critical':
                status = 'warning'
            issues.append(f"Memory usage high: {latest.memory_usage:.1f}%")

        if latest.disk_usage > 90:
            if status != 'critical':
                status = 'warning'
            issues.append(f"Disk usage high: {latest.disk_usage:.1f}%")

        return {
            'status': status,
            'cpu_usage': latest.cpu_usage,
            'memory_usage': latest.memory_usage,
            'disk_usage': latest.disk_usage,
            'issues': issues
        }

    def _check_database_health(self) -> Dict[str, Any]:
        try:
            conn = sqlite3.connect(self.db_path, timeout=5)
            try:
                conn.execute("SELECT 1").fetchone()
            finally:
                conn.close()

            db_size = os.path.getsize(self.db_path) / (1024 * 1024)  # MB

            status = 'healthy'
            issues = []

            if db_size > 1000:  # 1GB
                status = 'warning'
                issues.append(f"Database size large: {db_size:.1f}MB")

            return {
                'status': status,
                'size_mb': round(db_size, 3),
                'issues': issues
            }

        except (sqlite3.Error, OSError) as e:
            logger.error(f"Database health check failed: {e}")
            return {
                'status': 'critical',
                'issues': ["Database unavailable"]
            }


def init_monitoring(db_path: str = None, start: bool = True):
    """Create the metrics collector and health checker, optionally start sampling"""
    metrics_collector = MetricsCollector(db_path)
    health_checker = HealthChecker(metrics_collector)

    if start:
        metrics_collector.start_collection()

    logger.info("Monitoring system initialized")
    return metrics_collector, health_checker

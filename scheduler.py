"""
Task scheduling for SEO data collection, reporting and cleanup
"""
import asyncio
import schedule
import logging
import threading
import time
from typing import Dict, List, Optional, Any
from datetime import datetime
from dataclasses import dataclass, asdict
from enum import Enum
import pickle
import os

from database import DatabaseManager
from page_speed import PageSpeedCollector
from report import ReportGenerator
from utils import PerformanceMonitor

logger = logging.getLogger(__name__)

class TaskStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

class TaskPriority(Enum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

@dataclass
class ScheduledTask:
    """Represents a scheduled task"""
    id: str
    name: str
    function: str
    args: List[Any]
    kwargs: Dict[str, Any]
    schedule_type: str  # 'daily', 'weekly', 'interval'
    schedule_value: Any  # "HH:MM" or seconds
    priority: TaskPriority
    status: TaskStatus
    created_at: str
    last_run: Optional[str] = None
    next_run: Optional[str] = None
    run_count: int = 0
    max_runs: Optional[int] = None
    retry_count: int = 0
    max_retries: int = 3
    timeout: int = 3600
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

class TaskScheduler:
    """Task scheduler with pickle persistence"""

    def __init__(self, db_manager: DatabaseManager, collector: PageSpeedCollector,
                 report_generator: ReportGenerator, persist_file: str = "tasks.pkl"):
        self.db_manager = db_manager
        self.collector = collector
        self.report_generator = report_generator
        self.persist_file = persist_file
        self.jobs = schedule.Scheduler()
        self.tasks: Dict[str, ScheduledTask] = {}
        self.scheduler_thread = None
        self.is_running = False
        self.performance_monitor = PerformanceMonitor()

        # Task function registry
        self.task_functions = {
            'collect_page_speed': self._collect_page_speed_task,
            'generate_report': self._generate_report_task,
            'cleanup_old_data': self._cleanup_old_data_task
        }

        self._load_tasks()

        logger.info("Task scheduler initialized")

    def add_task(self, task: ScheduledTask) -> str:
        """Add and schedule a new task"""
        self.tasks[task.id] = task
        self._schedule_task(task)
        self._save_tasks()

        logger.info(f"Added task '{task.name}' (ID: {task.id})")
        return task.id

    def remove_task(self, task_id: str) -> bool:
        if task_id not in self.tasks:
            return False

        self.jobs.clear(task_id)
        self.tasks[task_id].status = TaskStatus.CANCELLED
        del self.tasks[task_id]
        self._save_tasks()
        logger.info(f"Removed task {task_id}")
        return True

    def get_task(self, task_id: str) -> Optional[ScheduledTask]:
        return self.tasks.get(task_id)

    def list_tasks(self, status: Optional[TaskStatus] = None) -> List[ScheduledTask]:
        """List all tasks, highest priority first"""
        tasks = list(self.tasks.values())
        if status:
            tasks = [t for t in tasks if t.status == status]
        return sorted(tasks, key=lambda x: x.priority.value, reverse=True)

    def start_scheduler(self):
        if self.is_running:
            logger.warning("Scheduler is already running")
            return

        self.is_running = True
        self.scheduler_thread = threading.Thread(target=self._run_scheduler, daemon=True)
        self.scheduler_thread.start()
        logger.info("Task scheduler started")

    def stop_scheduler(self):
        self.is_running = False
        if self.scheduler_thread:
            self.scheduler_thread.join(timeout=5)
        logger.info("Task scheduler stopped")

    def _run_scheduler(self):
        while self.is_running:
            try:
                self.jobs.run_pending()
                time.sleep(1)
            except Exception as e:
                logger.error(f"Scheduler error: {e}")
                time.sleep(5)

    def _schedule_task(self, task: ScheduledTask):
        """Register the task with the schedule library"""
        if task.schedule_type == 'daily':
            job = self.jobs.every().day.at(task.schedule_value)
        elif task.schedule_type == 'weekly':
            job = self.jobs.every().week
        elif task.schedule_type == 'interval':
            job = self.jobs.every(task.schedule_value).seconds
        else:
            raise ValueError(f"Unknown schedule type: {task.schedule_type}")

        job.do(self.run_task, task.id).tag(task.id)

        jobs = self.jobs.get_jobs(task.id)
        if jobs and jobs[0].next_run:
            task.next_run = jobs[0].next_run.isoformat()

    def run_task(self, task_id: str):
        """Run a task to completion on a fresh event loop"""
        task = self.tasks.get(task_id)
        if task is None:
            return

        if task.max_runs and task.run_count >= task.max_runs:
            task.status = TaskStatus.COMPLETED
            self.jobs.clear(task_id)
            self._save_tasks()
            return

        try:
            asyncio.run(self._execute_task(task_id))
        except Exception as e:
            logger.error(f"Task execution error for {task_id}: {e}")

    async def _execute_task(self, task_id: str):
        task = self.tasks[task_id]
        task.status = TaskStatus.RUNNING
        task.last_run = datetime.now().isoformat()
        self._save_tasks()

        self.performance_monitor.start_timer(f"task_{task_id}")

        try:
            if task.function not in self.task_functions:
                raise ValueError(f"Unknown task function: {task.function}")

            task_func = self.task_functions[task.function]
            result = await asyncio.wait_for(
                task_func(*task.args, **task.kwargs),
                timeout=task.timeout
            )

            task.result = result
            task.status = TaskStatus.COMPLETED
            task.run_count += 1
            task.retry_count = 0
            task.error = None

            logger.info(f"Task '{task.name}' completed successfully")

        except asyncio.TimeoutError:
            task.error = f"Task timed out after {task.timeout} seconds"
            task.status = TaskStatus.FAILED
            logger.error(f"Task '{task.name}' timed out")

        except Exception as e:
            task.error = str(e)
            task.retry_count += 1

            if task.retry_count <= task.max_retries:
                task.status = TaskStatus.PENDING
                logger.warning(f"Task '{task.name}' failed, retry {task.retry_count}/{task.max_retries}: {e}")
            else:
                task.status = TaskStatus.FAILED
                logger.error(f"Task '{task.name}' failed permanently: {e}")

        finally:
            self.performance_monitor.end_timer(f"task_{task_id}")
            jobs = self.jobs.get_jobs(task_id)
            if jobs and jobs[0].next_run:
                task.next_run = jobs[0].next_run.isoformat()
            self._save_tasks()

    # Task function implementations
    async def _collect_page_speed_task(self, urls: List[str] = None) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        snapshots = await loop.run_in_executor(None, self.collector.collect_and_store, urls)
        return {"urls_collected": len(snapshots)}

    async def _generate_report_task(self, period: str = "30d",
                                    report_type: str = "comprehensive") -> Dict[str, Any]:
        report = await self.report_generator.generate(period, report_type)
        path = self.report_generator.render_pdf(report)
        return {"report_id": report.id, "seo_score": report.overview.get("seoScore"), "pdf": path}

    async def _cleanup_old_data_task(self, days_to_keep: int = 30) -> Dict[str, Any]:
        self.db_manager.cleanup_old_data(days_to_keep)
        return {"days_kept": days_to_keep, "cleanup_completed": True}

    def _save_tasks(self):
        """Save tasks to persistent storage"""
        try:
            serializable_tasks = {}
            for task_id, task in self.tasks.items():
                task_dict = asdict(task)
                task_dict['priority'] = task.priority.value
                task_dict['status'] = task.status.value
                serializable_tasks[task_id] = task_dict

            with open(self.persist_file, 'wb') as f:
                pickle.dump(serializable_tasks, f)
        except (OSError, pickle.PicklingError) as e:
            logger.error(f"Failed to save tasks: {e}")

    def _load_tasks(self):
        """Load tasks from persistent storage"""
        if not os.path.exists(self.persist_file):
            return

        try:
            with open(self.persist_file, 'rb') as f:
                serializable_tasks = pickle.load(f)

            for task_id, task_dict in serializable_tasks.items():
                task_dict['priority'] = TaskPriority(task_dict['priority'])
                task_dict['status'] = TaskStatus(task_dict['status'])

                task = ScheduledTask(**task_dict)
                self.tasks[task_id] = task

                if task.status in (TaskStatus.PENDING, TaskStatus.COMPLETED):
                    self._schedule_task(task)

            logger.info(f"Loaded {len(self.tasks)} tasks from storage")

        except (OSError, pickle.UnpicklingError, EOFError, TypeError, ValueError) as e:
            logger.error(f"Failed to load tasks: {e}")

class TaskManager:
    """High-level task management interface"""

    def __init__(self, db_manager: DatabaseManager, collector: PageSpeedCollector,
                 report_generator: ReportGenerator, persist_file: str = "tasks.pkl",
                 autostart: bool = True):
        self.scheduler = TaskScheduler(db_manager, collector, report_generator, persist_file)
        if autostart:
            self.scheduler.start_scheduler()

    def _new_task(self, prefix: str, name: str, function: str, args: List[Any],
                  schedule_type: str, schedule_value: Any, priority: TaskPriority) -> str:
        task = ScheduledTask(
            id=f"{prefix}_{int(datetime.now().timestamp() * 1000)}",
            name=name,
            function=function,
            args=args,
            kwargs={},
            schedule_type=schedule_type,
            schedule_value=schedule_value,
            priority=priority,
            status=TaskStatus.PENDING,
            created_at=datetime.now().isoformat()
        )
        return self.scheduler.add_task(task)

    def schedule_daily_collection(self, urls: List[str] = None, time: str = "06:00") -> str:
        """Schedule daily PageSpeed collection"""
        return self._new_task("daily_collection", "Daily PageSpeed Collection",
                              "collect_page_speed", [urls], "daily", time, TaskPriority.HIGH)

    def schedule_daily_report(self, period: str = "30d", time: str = "07:00") -> str:
        """Schedule a daily SEO report"""
        return self._new_task("daily_report", f"Daily SEO Report ({period})",
                              "generate_report", [period], "daily", time, TaskPriority.MEDIUM)

    def schedule_data_cleanup(self, days_to_keep: int = 90, interval_days: int = 7) -> str:
        """Schedule regular data cleanup"""
        return self._new_task("cleanup", "Data Cleanup", "cleanup_old_data", [days_to_keep],
                              "interval", interval_days * 24 * 3600, TaskPriority.LOW)

    def get_task_status(self, task_id: str) -> Optional[Dict[str, Any]]:
        task = self.scheduler.get_task(task_id)
        if task:
            return {
                "id": task.id,
                "name": task.name,
                "status": task.status.value,
                "priority": task.priority.value,
                "created_at": task.created_at,
                "last_run": task.last_run,
                "next_run": task.next_run,
                "run_count": task.run_count,
                "max_runs": task.max_runs,
                "result": task.result,
                "error": task.error
            }
        return None

    def cancel_task(self, task_id: str) -> bool:
        return self.scheduler.remove_task(task_id)

    def get_all_tasks(self) -> List[Dict[str, Any]]:
        """Get all tasks with their status"""
        return [self.get_task_status(task.id) for task in self.scheduler.list_tasks()]

    def shutdown(self):
        self.scheduler.stop_scheduler()

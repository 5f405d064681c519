"""
Weekday scheduling of activity reports
"""

import logging
import threading
from typing import Any, Dict, List, Optional

import schedule

from aircall_reports.config.settings import ReportConfig
from aircall_reports.notifications.slack import SlackNotifier
from aircall_reports.reports.generator import ActivityReportGenerator
from aircall_reports.reports.window import AFTERNOON, NIGHT

logger = logging.getLogger(__name__)

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday')


class ReportScheduler:
    """
    Runs the afternoon and night reports on weekdays
    """

    def __init__(
        self,
        generator: ActivityReportGenerator,
        notifier: SlackNotifier,
        config: Optional[ReportConfig] = None,
        poll_interval: float = 30
    ):
        """
        Initialize report scheduler

        Args:
            generator: Builds the activity summaries
            notifier: Delivers them to Slack
            config: Run times and time zone
            poll_interval: Seconds between checks for due jobs
        """
        self.generator = generator
        self.notifier = notifier
        self.config = config or ReportConfig()
        self.poll_interval = poll_interval

        self.scheduler = schedule.Scheduler()
        self.is_running = False
        self.stop_event = threading.Event()
        self.thread = None
        self.last_results: Dict[str, bool] = {}

    def register_jobs(self):
        """Schedule both reports for every weekday in the report time zone"""
        self.scheduler.clear()

        runs = (
            (AFTERNOON, self.config.afternoon_run_time),
            (NIGHT, self.config.night_run_time),
        )
        for period, at_time in runs:
            for day in WEEKDAYS:
                job = getattr(self.scheduler.every(), day)
                job.at(at_time, self.config.timezone).do(self.run_report, period).tag(period)

            logger.info(f"{period.capitalize()} report scheduled: weekdays at {at_time} {self.config.timezone}")

    def start(self):
        """Start the scheduler"""
        if self.is_running:
            logger.warning("Scheduler is already running")
            return

        logger.info("Starting report scheduler")
        self.register_jobs()

        self.is_running = True
        self.stop_event.clear()
        self.thread = threading.Thread(target=self._scheduler_loop, daemon=True)
        self.thread.start()

        logger.info("Report scheduler started successfully")

    def stop(self):
        """Stop the scheduler"""
        if not self.is_running:
            logger.warning("Scheduler is not running")
            return

        logger.info("Stopping report scheduler")
        self.is_running = False
        self.stop_event.set()

        if self.thread:
            self.thread.join(timeout=10)

        self.scheduler.clear()
        logger.info("Report scheduler stopped")

    def _scheduler_loop(self):
        while not self.stop_event.is_set():
            self.scheduler.run_pending()
            self.stop_event.wait(self.poll_interval)

    def run_report(self, period: str) -> bool:
        """
        Generate one report and send it to Slack

        Failures are logged, never raised, so the loop keeps running.

        Args:
            period: Period name

        Returns:
            True if the report reached Slack
        """
        logger.info(f"Running scheduled {period} report")

        try:
            summary = self.generator.generate(period)
            sent = self.notifier.send_activity_report(summary)
        except Exception as e:
            logger.error(f"Error running {period} report: {e}", exc_info=True)
            sent = False

        if sent:
            logger.info(f"{period.capitalize()} report completed successfully")
        else:
            logger.error(f"{period.capitalize()} report failed")

        self.last_results[period] = sent
        return sent

    def get_status(self) -> Dict[str, Any]:
        """
        Get scheduler status

        Returns:
            Status dictionary with the next run per report
        """
        jobs: List[Dict[str, Any]] = []
        for period in (AFTERNOON, NIGHT):
            runs = [job.next_run for job in self.scheduler.get_jobs(period) if job.next_run]
            jobs.append({
                'period': period,
                'scheduled': bool(runs),
                'next_run': min(runs).isoformat() if runs else None,
                'last_result': self.last_results.get(period)
            })

        return {
            'is_running': self.is_running,
            'timezone': self.config.timezone,
            'jobs': jobs
        }

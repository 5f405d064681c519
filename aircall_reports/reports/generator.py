"""
Activity report generation

Resolves the window, fetches the roster and walks it one agent at a
time, turning each agent's calls into an AgentActivity.
"""

import time
import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional

from aircall_reports.aircall.client import AircallClient
from aircall_reports.aircall.exceptions import UpstreamError
from aircall_reports.aircall.rate_limiter import RateLimiter
from aircall_reports.config.settings import ReportConfig
from aircall_reports.models import (
    ActivityFailed,
    ActivityOk,
    ActivitySummary,
    Agent,
    AgentOutcome,
    TimeWindow
)
from .aggregator import aggregate
from .window import TimeInput, period_label, resolve_window

logger = logging.getLogger(__name__)

FETCH_ERROR_MESSAGE = 'Failed to fetch call data'


class ActivityReportGenerator:
    """
    Builds ActivitySummary values from live Aircall data
    """

    def __init__(
        self,
        client: AircallClient,
        exclusions: Iterable[str] = (),
        config: Optional[ReportConfig] = None,
        agent_limiter: Optional[RateLimiter] = None
    ):
        """
        Initialize report generator

        Args:
            client: Aircall client
            exclusions: Display-name fragments left out of every report
            config: Window and pacing settings
            agent_limiter: Pacer applied before each agent's fetch
        """
        self.client = client
        self.exclusions = list(exclusions)
        self.config = config or ReportConfig()
        self.agent_limiter = agent_limiter or RateLimiter(
            self.config.agent_interval_seconds,
            name='aircall-agents'
        )

    def collect_outcome(self, agent: Agent, window: TimeWindow) -> AgentOutcome:
        """
        Fetch and aggregate one agent's calls

        Upstream failures become an ActivityFailed rather than an exception
        so one agent cannot abort the whole report.

        Args:
            agent: Roster entry
            window: Report window

        Returns:
            ActivityOk or ActivityFailed
        """
        try:
            batch = self.client.fetch_call_batch(window, agent.id)
        except UpstreamError as e:
            logger.error(f"Error processing user {agent.display_name} (ID: {agent.id}): {e}")
            return ActivityFailed(agent=agent, reason=FETCH_ERROR_MESSAGE)

        activity = replace(aggregate(batch.calls, agent), truncated=batch.truncated)

        logger.info(
            f"User {agent.display_name} activity: {activity.total_outbound_calls} outbound, "
            f"{activity.total_inbound_calls} inbound, {activity.total_talk_time_minutes} min talk time"
        )
        return ActivityOk(agent=agent, activity=activity)

    def collect_outcomes(self, roster: List[Agent], window: TimeWindow) -> List[AgentOutcome]:
        """
        Walk the roster sequentially, pacing between agents

        Args:
            roster: Agents to report on
            window: Report window

        Returns:
            One outcome per agent, in roster order
        """
        outcomes = []
        for agent in roster:
            self.agent_limiter.wait_if_needed()
            outcomes.append(self.collect_outcome(agent, window))
        return outcomes

    def generate(
        self,
        period: str,
        start: Optional[TimeInput] = None,
        end: Optional[TimeInput] = None,
        now: Optional[datetime] = None
    ) -> ActivitySummary:
        """
        Generate an activity summary

        Args:
            period: Period name or custom report label
            start: Explicit window start
            end: Explicit window end
            now: Reference instant for named periods

        Returns:
            ActivitySummary

        Raises:
            UpstreamError: If the roster cannot be fetched
            ValueError: If explicit bounds are not ISO-8601
        """
        started = time.monotonic()
        window = resolve_window(period, start, end, config=self.config, now=now)

        logger.info(f"Fetching {period} activity from {window.start_iso} to {window.end_iso}")

        roster = self.client.get_roster(self.exclusions)
        outcomes = self.collect_outcomes(roster, window)

        summary = ActivitySummary(
            period=period_label(period),
            window=window,
            users=[outcome.to_activity() for outcome in outcomes]
        )

        failed = len(summary.failed_agents)
        logger.info(
            f"Retrieved activity for {len(summary.users)} users "
            f"({failed} failed) in {time.monotonic() - started:.1f}s"
        )
        if summary.partial:
            logger.warning("Report is partial: at least one agent hit the page limit")

        return summary

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

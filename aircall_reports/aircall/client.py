"""
Aircall API Client
Fetches users and call records from the Aircall public API
"""

import time
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import requests

from aircall_reports.config.settings import ReportConfig
from aircall_reports.models import Agent, CallRecord, TimeWindow
from .auth import AircallAuth
from .rate_limiter import RateLimiter
from .retry import call_with_retry, is_rate_limited
from .exceptions import (
    UpstreamError,
    UpstreamRateLimited,
    AuthenticationError
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallBatch:
    """Result of one paginated call fetch"""
    calls: List[CallRecord]
    pages_fetched: int
    truncated: bool = False


def is_excluded(name: str, exclusions: Iterable[str]) -> bool:
    """
    Case-insensitive substring match in either direction

    Args:
        name: Agent display name
        exclusions: Configured name fragments

    Returns:
        True if the agent must be left out of reports
    """
    lowered = (name or '').lower()
    for excluded in exclusions:
        candidate = excluded.lower()
        if candidate in lowered or lowered in candidate:
            return True
    return False


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class AircallClient:
    """
    Client for the Aircall endpoints the reports need
    """

    ENDPOINTS = {
        'calls': '/calls',
        'users': '/users',
    }

    def __init__(
        self,
        auth: Optional[AircallAuth] = None,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        config: Optional[ReportConfig] = None,
        page_limiter: Optional[RateLimiter] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize Aircall API client

        Args:
            auth: Credentials used to build a session when none is given
            session: Ready-to-use authenticated session
            base_url: API base URL (defaults to the auth base URL)
            config: Page size, retry and timeout settings
            page_limiter: Pacer applied before every page request
            sleep: Sleep function used for retry backoff
        """
        self.config = config or ReportConfig()

        if session is None:
            auth = auth or AircallAuth()
            session = auth.create_session()
            base_url = base_url or auth.base_url

        self.session = session
        self.base_url = (base_url or AircallAuth.BASE_URL).rstrip('/')
        self.page_limiter = page_limiter or RateLimiter(
            self.config.page_interval_seconds,
            name='aircall-pages'
        )
        self.sleep = sleep

        logger.info("AircallClient initialized")

    def _make_request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET an Aircall endpoint and decode the JSON body

        Args:
            endpoint: API endpoint
            params: Query parameters

        Returns:
            Decoded response body

        Raises:
            UpstreamRateLimited: On HTTP 429
            AuthenticationError: On HTTP 401/403
            UpstreamError: On any other failure
        """
        url = f"{self.base_url}{endpoint}"

        try:
            logger.debug(f"GET {url} {params}")
            response = self.session.get(url, params=params, timeout=self.config.request_timeout)
        except requests.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise UpstreamError(f"Request failed: {e}") from e

        if response.status_code == 429:
            raise UpstreamRateLimited(
                "Rate limit exceeded",
                retry_after=_parse_retry_after(response.headers.get('Retry-After')),
                status_code=429
            )

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Aircall rejected credentials: {response.status_code}",
                status_code=response.status_code
            )

        if response.status_code >= 400:
            error_data = {}
            try:
                error_data = response.json()
            except ValueError:
                pass

            raise UpstreamError(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                response_data=error_data
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("Malformed JSON response", status_code=response.status_code) from e

        if not isinstance(data, dict):
            raise UpstreamError("Unexpected response shape", status_code=response.status_code)

        return data

    def _get_page(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return call_with_retry(
            lambda: self._make_request(endpoint, params),
            should_retry=is_rate_limited,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.backoff_base_seconds,
            sleep=self.sleep
        )

    def _collect_pages(
        self,
        endpoint: str,
        key: str,
        params: Dict[str, Any],
        label: str
    ) -> Tuple[List[Dict[str, Any]], int, bool]:
        """
        Fetch pages until a short page or the page ceiling

        Args:
            endpoint: API endpoint
            key: Body key holding the item list
            params: Query parameters repeated on every page
            label: Description used in log messages

        Returns:
            (items, pages fetched, truncated)
        """
        items: List[Dict[str, Any]] = []
        page_size = self.config.page_size
        page = 1

        while True:
            self.page_limiter.wait_if_needed()

            page_params = dict(params, per_page=page_size, page=page)
            data = self._get_page(endpoint, page_params)
            batch = data.get(key)
            if batch is None:
                batch = []
            elif not isinstance(batch, list):
                raise UpstreamError(f"Unexpected response shape: '{key}' is {type(batch).__name__}")
            items.extend(batch)

            logger.debug(f"{label}: page {page} returned {len(batch)} items")

            if len(batch) < page_size:
                return items, page, False

            if page >= self.config.max_pages:
                logger.warning(
                    f"Reached maximum page limit ({self.config.max_pages}) for {label}; "
                    f"returning {len(items)} items, results may be incomplete"
                )
                return items, page, True

            page += 1

    def fetch_call_batch(self, window: TimeWindow, agent_id: Any = None) -> CallBatch:
        """
        Fetch every call in a window, optionally narrowed to one agent

        Aircall does not reliably filter by user server-side, so agent
        scoping is applied to each fetched record locally.

        Args:
            window: Resolved report window
            agent_id: Keep only calls owned by this agent

        Returns:
            CallBatch

        Raises:
            UpstreamError: If any page fails or holds a malformed record;
                earlier pages are dropped
        """
        label = f"agent {agent_id}" if agent_id is not None else "all agents"
        logger.info(
            f"Fetching calls for {label} from {window.start_iso} to {window.end_iso} "
            f"({window.start_timestamp} to {window.end_timestamp})"
        )

        try:
            raw_calls, pages, truncated = self._collect_pages(
                self.ENDPOINTS['calls'],
                'calls',
                window.to_params(),
                label
            )
        except UpstreamError as e:
            logger.error(f"Error fetching calls for {label}: {e} (status {e.status_code})")
            raise

        try:
            calls = [CallRecord.from_api(call) for call in raw_calls]
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"Malformed call record for {label}: {e}")
            raise UpstreamError(f"Malformed call record: {e}") from e

        if agent_id is not None:
            calls = [call for call in calls if call.owner_agent_id == agent_id]

        logger.info(f"Fetched {len(raw_calls)} total calls over {pages} pages, {len(calls)} for {label}")

        return CallBatch(calls=calls, pages_fetched=pages, truncated=truncated)

    def fetch_calls_for_window(self, window: TimeWindow, agent_id: Any = None) -> List[CallRecord]:
        """
        Fetch the call records in a window

        Args:
            window: Resolved report window
            agent_id: Keep only calls owned by this agent

        Returns:
            List of call records
        """
        return self.fetch_call_batch(window, agent_id).calls

    def list_users(self) -> List[Agent]:
        """
        Get all users from Aircall

        Returns:
            Every user as an Agent
        """
        raw_users, _, _ = self._collect_pages(self.ENDPOINTS['users'], 'users', {}, 'users')
        try:
            return [Agent.from_api(user) for user in raw_users]
        except AttributeError as e:
            raise UpstreamError(f"Malformed user record: {e}") from e

    def get_roster(self, exclusions: Iterable[str] = ()) -> List[Agent]:
        """
        Get users eligible for reporting

        Args:
            exclusions: Display-name fragments to leave out

        Returns:
            Users in API order with exclusions removed

        Raises:
            UpstreamError: If the user list cannot be fetched
        """
        exclusions = list(exclusions)
        users = self.list_users()

        roster = []
        for user in users:
            if is_excluded(user.display_name, exclusions):
                logger.info(f"Excluding user from report: {user.display_name}")
                continue
            roster.append(user)

        logger.info(f"Retrieved {len(roster)} users ({len(users) - len(roster)} excluded)")
        return roster

    def test_connection(self) -> bool:
        """
        Test Aircall API connection

        Returns:
            True if the users endpoint answers
        """
        try:
            data = self._make_request(self.ENDPOINTS['users'], {'per_page': 1, 'page': 1})
            return 'users' in data
        except UpstreamError as e:
            logger.error(f"Aircall connection test failed: {e}")
            return False

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

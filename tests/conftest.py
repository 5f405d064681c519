"""
Shared fixtures for the report tests
"""

from unittest.mock import Mock

import pytest

from aircall_reports.aircall.client import AircallClient
from aircall_reports.aircall.rate_limiter import RateLimiter
from aircall_reports.config.settings import ReportConfig
from aircall_reports.models import Agent, CallRecord

BASE_URL = 'https://api.aircall.test/v1'


class FakeClock:
    """Monotonic clock that only moves when something sleeps"""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def make_response(status_code=200, payload=None, headers=None):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = payload if payload is not None else {}
    return response


def raw_call(call_id, direction='outbound', answered_at=1700000000, duration=60, user_id=1):
    return {
        'id': call_id,
        'direction': direction,
        'answered_at': answered_at,
        'duration': duration,
        'user': {'id': user_id} if user_id is not None else None,
    }


def raw_user(user_id, name, email=None):
    return {
        'id': user_id,
        'name': name,
        'email': email or f"{name.split()[0].lower()}@example.com",
        'availability_status': 'available',
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def retry_sleeps():
    return []


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def small_config():
    return ReportConfig(page_size=2, max_pages=3)


@pytest.fixture
def make_client(session, clock, retry_sleeps):
    """Build a client over the mock session with fake pacing and backoff"""

    def _make(config=None):
        return AircallClient(
            session=session,
            base_url=BASE_URL,
            config=config or ReportConfig(),
            page_limiter=RateLimiter(0.5, name='test-pages', clock=clock, sleep=clock.sleep),
            sleep=retry_sleeps.append
        )

    return _make


@pytest.fixture
def alice():
    return Agent(id=1, display_name='Alice Adams', email='alice@example.com', availability_status='available')


@pytest.fixture
def bob():
    return Agent(id=2, display_name='Bob Brown', email='bob@example.com', availability_status='offline')


@pytest.fixture
def mixed_calls():
    return [
        CallRecord(id=1, direction='outbound', answered_at=1700000000, duration=90, owner_agent_id=1),
        CallRecord(id=2, direction='outbound', answered_at=None, duration=25, owner_agent_id=1),
        CallRecord(id=3, direction='outbound', answered_at=1700000100, duration=30, owner_agent_id=1),
        CallRecord(id=4, direction='inbound', answered_at=1700000200, duration=150, owner_agent_id=1),
        CallRecord(id=5, direction='inbound', answered_at=None, duration=0, owner_agent_id=1),
    ]

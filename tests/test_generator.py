"""
Tests for end-to-end report generation over a mocked Aircall session
"""

import json
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from aircall_reports.aircall.exceptions import UpstreamError
from aircall_reports.aircall.rate_limiter import RateLimiter
from aircall_reports.config.settings import ReportConfig
from aircall_reports.models import ActivityFailed, ActivityOk
from aircall_reports.reports.generator import FETCH_ERROR_MESSAGE, ActivityReportGenerator
from aircall_reports.reports.window import resolve_window

from conftest import make_response, raw_call, raw_user

NOW = datetime(2025, 10, 7, 14, 0, tzinfo=ZoneInfo('America/Chicago'))

USERS = [
    raw_user(1, 'Alice Adams'),
    raw_user(2, 'Bob Brown'),
    raw_user(3, 'Front Desk Bot'),
]

CALLS = [
    raw_call(101, 'outbound', answered_at=1759849200, duration=120, user_id=1),
    raw_call(102, 'outbound', answered_at=None, duration=15, user_id=1),
    raw_call(103, 'inbound', answered_at=1759849800, duration=60, user_id=1),
    raw_call(201, 'outbound', answered_at=1759850000, duration=30, user_id=2),
    raw_call(301, 'outbound', answered_at=1759850100, duration=45, user_id=3),
    raw_call(401, 'outbound', answered_at=1759850200, duration=45, user_id=None),
]


def route(calls_responses=None):
    """Serve /users from USERS and /calls from a queue or the full CALLS list"""
    queue = list(calls_responses or [])

    def _get(url, params=None, timeout=None):
        if url.endswith('/users'):
            return make_response(payload={'users': USERS})
        if queue:
            return queue.pop(0)
        return make_response(payload={'calls': CALLS})

    return _get


@pytest.fixture
def generator(make_client, clock):
    def _make(exclusions=('desk',), config=None):
        config = config or ReportConfig()
        return ActivityReportGenerator(
            client=make_client(config),
            exclusions=exclusions,
            config=config,
            agent_limiter=RateLimiter(2.0, name='test-agents', clock=clock, sleep=clock.sleep)
        )
    return _make


def test_report_has_one_entry_per_roster_agent(session, generator):
    session.get.side_effect = route()

    summary = generator().generate('afternoon', now=NOW)

    assert [user.agent_id for user in summary.users] == [1, 2]
    assert summary.period == 'afternoon'


def test_excluded_agent_never_appears_even_with_calls(session, generator):
    session.get.side_effect = route()

    summary = generator().generate('afternoon', now=NOW)

    assert all(user.agent_id != 3 for user in summary.users)
    assert all(301 not in user.call_ids for user in summary.users)


def test_agent_stats_scoped_to_owned_calls(session, generator):
    session.get.side_effect = route()

    alice, bob = generator().generate('afternoon', now=NOW).users

    assert alice.call_ids == (101, 102, 103)
    assert alice.total_outbound_calls == 2
    assert alice.answered_outbound_calls == 1
    assert alice.total_inbound_calls == 1
    assert alice.total_talk_time_minutes == 3.0
    assert bob.call_ids == (201,)
    assert bob.total_talk_time_minutes == 0.5


def test_one_agent_failure_does_not_abort_report(session, generator):
    session.get.side_effect = route([make_response(status_code=500)])

    summary = generator().generate('afternoon', now=NOW)

    alice, bob = summary.users
    assert alice.fetch_error == FETCH_ERROR_MESSAGE
    assert alice.total_outbound_calls == 0
    assert alice.total_talk_time_minutes == 0
    assert alice.call_ids == ()
    assert alice.to_dict()['error'] == 'Failed to fetch call data'
    assert bob.fetch_error is None
    assert bob.call_ids == (201,)
    assert summary.failed_agents == [alice]


def test_exhausted_rate_limit_recorded_as_failure(session, generator, retry_sleeps):
    session.get.side_effect = route([make_response(status_code=429)] * 3)

    alice, bob = generator().generate('afternoon', now=NOW).users

    assert alice.fetch_error == FETCH_ERROR_MESSAGE
    assert bob.fetch_error is None
    assert retry_sleeps == [1.0, 2.0]


def test_roster_failure_propagates(session, generator):
    session.get.return_value = make_response(status_code=503)

    with pytest.raises(UpstreamError):
        generator().generate('afternoon', now=NOW)


def test_agents_are_paced(session, generator, clock):
    session.get.side_effect = route()

    gen = generator()
    gen.generate('afternoon', now=NOW)

    # roster page, agent 1 (page wait 0.5), agent 2 (agent wait tops up to 2.0)
    assert clock.sleeps == [0.5, 1.5]
    assert gen.agent_limiter.get_statistics()['acquisitions'] == 2


def test_window_and_label(session, generator):
    session.get.side_effect = route()

    summary = generator().generate('night', now=NOW)

    assert summary.period == 'Daily'
    assert summary.window == resolve_window('night', now=NOW)
    call_params = [c.kwargs['params'] for c in session.get.call_args_list if c.args[0].endswith('/calls')]
    assert all(p['from'] == summary.window.start_timestamp for p in call_params)
    assert all(p['to'] == summary.window.end_timestamp for p in call_params)


def test_explicit_bounds_override_period(session, generator):
    session.get.side_effect = route()

    summary = generator().generate('Week 41', '2025-10-06T07:00:00', '2025-10-10T19:00:00')

    assert summary.period == 'Week 41'
    assert summary.window.start_iso == '2025-10-06T12:00:00.000Z'
    assert summary.window.end_iso == '2025-10-11T00:00:00.000Z'


def test_same_window_same_data_gives_identical_summary(session, generator):
    session.get.side_effect = route()

    first = generator().generate('afternoon', now=NOW)
    second = generator().generate('afternoon', now=NOW)

    assert first == second
    assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)


def test_truncated_agent_marks_summary_partial(session, generator):
    config = ReportConfig(page_size=2, max_pages=1)
    session.get.side_effect = route()

    summary = generator(exclusions=['bob', 'desk'], config=config).generate('afternoon', now=NOW)

    assert summary.partial is True
    assert summary.users[0].truncated is True
    assert summary.to_dict()['partial'] is True
    assert summary.users[0].to_dict()['truncated'] is True


def test_summary_serialization(session, generator):
    session.get.side_effect = route()

    data = generator().generate('afternoon', now=NOW).to_dict()

    assert data['period'] == 'afternoon'
    assert data['startTime'] == '2025-10-07T14:00:00.000Z'
    assert data['partial'] is False
    alice = data['users'][0]
    assert alice['user_id'] == 1
    assert alice['totalCalls'] == 2
    assert alice['answeredCalls'] == 1
    assert alice['missedCalls'] == 1
    assert alice['callCount'] == 3
    assert 'error' not in alice


def test_collect_outcome_types(session, generator, alice):
    window = resolve_window('afternoon', now=NOW)
    session.get.side_effect = [make_response(status_code=500), make_response(payload={'calls': CALLS})]
    gen = generator()

    failed = gen.collect_outcome(alice, window)
    ok = gen.collect_outcome(alice, window)

    assert isinstance(failed, ActivityFailed)
    assert failed.reason == FETCH_ERROR_MESSAGE
    assert isinstance(ok, ActivityOk)
    assert ok.activity.call_ids == (101, 102, 103)


def _bad_duration_call():
    call = raw_call(101, user_id=1)
    call['duration'] = 'n/a'
    return call


@pytest.mark.parametrize('payload', [
    {'calls': 5},
    {'calls': ['garbage']},
    {'calls': [_bad_duration_call()]},
], ids=['calls-not-a-list', 'call-not-an-object', 'non-numeric-duration'])
def test_malformed_calls_payload_only_fails_that_agent(session, generator, payload):
    session.get.side_effect = route([make_response(payload=payload)])

    summary = generator().generate('afternoon', now=NOW)

    alice, bob = summary.users
    assert alice.fetch_error == FETCH_ERROR_MESSAGE
    assert alice.total_outbound_calls == 0
    assert bob.fetch_error is None
    assert bob.call_ids == (201,)
    assert bob.total_talk_time_minutes == 0.5


def test_numeric_string_duration_counts_as_talk_time(session, generator):
    call = raw_call(101, 'outbound', answered_at=1759849200, duration='120', user_id=1)
    session.get.side_effect = route([make_response(payload={'calls': [call]})])

    alice, _ = generator().generate('afternoon', now=NOW).users

    assert alice.fetch_error is None
    assert alice.total_talk_time_minutes == 2.0


def test_generator_closes_client_session(session, generator):
    session.get.side_effect = route()

    with generator() as gen:
        gen.generate('afternoon', now=NOW)
        session.close.assert_not_called()

    session.close.assert_called_once()

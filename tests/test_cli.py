"""
Tests for the report CLI
"""

import json
from datetime import datetime
from unittest.mock import Mock, patch
from zoneinfo import ZoneInfo

import pytest
from click.testing import CliRunner

from aircall_reports.aircall.exceptions import UpstreamError
from aircall_reports.cli.report_cli import cli
from aircall_reports.models import ActivitySummary, AgentActivity, CallRecord
from aircall_reports.reports.window import resolve_window

WINDOW = resolve_window('afternoon', now=datetime(2025, 10, 7, 14, tzinfo=ZoneInfo('America/Chicago')))

SUMMARY = ActivitySummary(
    period='afternoon',
    window=WINDOW,
    users=[
        AgentActivity(agent_id=1, name='Alice Adams', total_outbound_calls=4, answered_outbound_calls=3,
                      missed_outbound_calls=1, total_talk_time_minutes=12.5),
        AgentActivity(agent_id=2, name='Bob Brown', fetch_error='Failed to fetch call data'),
    ]
)


@pytest.fixture(autouse=True)
def credentials(monkeypatch):
    monkeypatch.setenv('AIRCALL_API_ID', 'id')
    monkeypatch.setenv('AIRCALL_API_TOKEN', 'token')
    monkeypatch.setenv('SLACK_API_TOKEN', 'xoxb-test')
    monkeypatch.setenv('SLACK_CHANNEL_ID', 'C123')


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def generator():
    generator = Mock()
    generator.__enter__ = Mock(return_value=generator)
    generator.__exit__ = Mock(return_value=False)
    generator.generate.return_value = SUMMARY
    with patch('aircall_reports.cli.report_cli.create_generator', return_value=generator):
        yield generator


@pytest.fixture
def notifier():
    notifier = Mock()
    notifier.send_activity_report.return_value = True
    with patch('aircall_reports.cli.report_cli.create_notifier', return_value=notifier):
        yield notifier


def test_report_dry_run_json(runner, generator, notifier):
    result = runner.invoke(cli, ['report', 'afternoon', '--dry-run', '--json'])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data['period'] == 'afternoon'
    assert data['users'][1]['error'] == 'Failed to fetch call data'
    notifier.send_activity_report.assert_not_called()
    generator.__exit__.assert_called_once()


def test_report_text_output(runner, generator, notifier):
    result = runner.invoke(cli, ['report', 'afternoon', '--dry-run'])

    assert result.exit_code == 0
    assert 'Alice Adams: 4 outbound (3 answered)' in result.output
    assert '[Failed to fetch call data]' in result.output
    assert 'Total: 4 outbound, 75% answered' in result.output


def test_report_sends_to_slack(runner, generator, notifier):
    result = runner.invoke(cli, ['report', 'night'])

    assert result.exit_code == 0
    generator.generate.assert_called_once_with('night', None, None)
    notifier.send_activity_report.assert_called_once_with(SUMMARY)
    assert 'Report sent to Slack' in result.output


def test_report_slack_failure_exits_nonzero(runner, generator, notifier):
    notifier.send_activity_report.return_value = False

    result = runner.invoke(cli, ['report', 'night'])

    assert result.exit_code == 1
    assert 'Failed to send report to Slack' in result.output


def test_report_explicit_bounds(runner, generator, notifier):
    result = runner.invoke(cli, [
        'report', 'Week 41', '--start', '2025-10-06T07:00:00', '--end', '2025-10-10T19:00:00', '--dry-run'
    ])

    assert result.exit_code == 0
    generator.generate.assert_called_once_with('Week 41', '2025-10-06T07:00:00', '2025-10-10T19:00:00')


def test_report_requires_both_bounds(runner, generator, notifier):
    result = runner.invoke(cli, ['report', 'custom', '--start', '2025-10-06T07:00:00'])

    assert result.exit_code == 2
    generator.generate.assert_not_called()


def test_report_roster_failure(runner, generator, notifier):
    generator.generate.side_effect = UpstreamError('API error: 503', status_code=503)

    result = runner.invoke(cli, ['report', 'afternoon', '--dry-run'])

    assert result.exit_code == 1
    assert 'Could not fetch the Aircall roster' in result.output
    generator.__exit__.assert_called_once()


def test_missing_credentials(runner, monkeypatch):
    monkeypatch.delenv('AIRCALL_API_TOKEN')

    result = runner.invoke(cli, ['report', 'afternoon', '--dry-run'])

    assert result.exit_code == 1
    assert 'AIRCALL_API_TOKEN' in result.output


def test_calls_command(runner):
    client = Mock()
    client.__enter__ = Mock(return_value=client)
    client.__exit__ = Mock(return_value=False)
    client.fetch_calls_for_window.return_value = [
        CallRecord(id=7, direction='outbound', answered_at=1, duration=42, owner_agent_id=1),
    ]

    with patch('aircall_reports.cli.report_cli.create_client', return_value=client):
        result = runner.invoke(cli, [
            'calls', '--start', '2025-10-07T00:00:00Z', '--end', '2025-10-08T00:00:00Z', '--agent', '1'
        ])

    assert result.exit_code == 0
    window, agent = client.fetch_calls_for_window.call_args.args
    assert window.start_iso == '2025-10-07T00:00:00.000Z'
    assert agent == 1
    assert '7\toutbound\tuser=1\tanswered=yes\t42s' in result.output
    assert '1 calls' in result.output


def test_check_command(runner):
    client = Mock()
    client.__enter__ = Mock(return_value=client)
    client.__exit__ = Mock(return_value=False)
    client.test_connection.return_value = True
    notifier = Mock()
    notifier.validate_connection.return_value = False

    with patch('aircall_reports.cli.report_cli.create_client', return_value=client), \
            patch('aircall_reports.cli.report_cli.create_notifier', return_value=notifier):
        result = runner.invoke(cli, ['check'])

    assert result.exit_code == 1
    assert 'Aircall: connected' in result.output
    assert 'Slack: failed' in result.output
    client.__exit__.assert_called_once()

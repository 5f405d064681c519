"""
CLI for generating and scheduling activity reports
"""

import json
import signal
import logging
from typing import Optional

import click

from aircall_reports.aircall import AircallAuth, AircallClient, UpstreamError
from aircall_reports.config.settings import ConfigurationError, Settings
from aircall_reports.notifications import SlackNotifier
from aircall_reports.reports import ActivityReportGenerator, resolve_window, summarize
from aircall_reports.scheduler import ReportScheduler

logger = logging.getLogger(__name__)


def load_settings(require_slack: bool) -> Settings:
    settings = Settings()
    try:
        settings.validate(require_slack=require_slack)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    return settings


def create_client(settings: Settings) -> AircallClient:
    """Create an Aircall client from settings"""
    auth = AircallAuth(
        api_id=settings.aircall_api_id,
        api_token=settings.aircall_api_token,
        base_url=settings.aircall_base_url
    )
    return AircallClient(auth=auth, config=settings.report_config())


def create_generator(settings: Settings) -> ActivityReportGenerator:
    return ActivityReportGenerator(
        client=create_client(settings),
        exclusions=settings.excluded_users,
        config=settings.report_config()
    )


def create_notifier(settings: Settings) -> SlackNotifier:
    return SlackNotifier(
        api_token=settings.slack_api_token,
        channel_id=settings.slack_channel_id,
        timezone=settings.report_timezone
    )


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose):
    """Aircall Activity Report CLI"""
    log_level = logging.DEBUG if verbose else getattr(logging, Settings().log_level, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@cli.command()
@click.argument('period')
@click.option('--start', help='Window start (ISO-8601); needs --end')
@click.option('--end', help='Window end (ISO-8601); needs --start')
@click.option('--dry-run', is_flag=True, help='Do not post to Slack')
@click.option('--json', 'as_json', is_flag=True, help='Print the summary as JSON')
def report(period: str, start: Optional[str], end: Optional[str], dry_run: bool, as_json: bool):
    """Generate a report for PERIOD (afternoon, night, hourly, today or a custom label)"""
    if bool(start) != bool(end):
        raise click.UsageError('--start and --end must be given together')

    settings = load_settings(require_slack=not dry_run)

    with create_generator(settings) as generator:
        try:
            summary = generator.generate(period, start, end)
        except UpstreamError as e:
            raise click.ClickException(f"Could not fetch the Aircall roster: {e}")
        except ValueError as e:
            raise click.ClickException(f"Invalid report window: {e}")

    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2))
    else:
        totals = summarize(summary.users)
        click.echo(f"\n{summary.period} report: {summary.window.start_iso} - {summary.window.end_iso}")
        click.echo("-" * 40)
        for user in summary.users:
            line = (
                f"{user.name}: {user.total_outbound_calls} outbound "
                f"({user.answered_outbound_calls} answered), {user.total_inbound_calls} inbound, "
                f"{user.total_talk_time_minutes} min"
            )
            if user.fetch_error:
                line += f" [{user.fetch_error}]"
            click.echo(line)
        click.echo("-" * 40)
        click.echo(
            f"Total: {totals['total_outbound_calls']} outbound, "
            f"{totals['answer_rate']}% answered, {totals['total_talk_time_minutes']} min"
        )

    if dry_run:
        return

    if not create_notifier(settings).send_activity_report(summary):
        raise click.ClickException('Failed to send report to Slack')

    click.echo('Report sent to Slack')


@cli.command()
@click.option('--start', required=True, help='Window start (ISO-8601)')
@click.option('--end', required=True, help='Window end (ISO-8601)')
@click.option('--agent', type=int, help='Only calls owned by this Aircall user ID')
def calls(start: str, end: str, agent: Optional[int]):
    """List raw call records in a window"""
    settings = load_settings(require_slack=False)
    config = settings.report_config()

    try:
        window = resolve_window('custom', start, end, config=config)
    except ValueError as e:
        raise click.ClickException(f"Invalid report window: {e}")

    with create_client(settings) as client:
        try:
            records = client.fetch_calls_for_window(window, agent)
        except UpstreamError as e:
            raise click.ClickException(f"Failed to fetch calls: {e}")

    for record in records:
        click.echo(
            f"{record.id}\t{record.direction}\tuser={record.owner_agent_id}\t"
            f"answered={'yes' if record.answered else 'no'}\t{record.duration}s"
        )
    click.echo(f"\n{len(records)} calls")


@cli.command()
def check():
    """Test Aircall and Slack connections"""
    settings = load_settings(require_slack=True)

    with create_client(settings) as client:
        aircall_ok = client.test_connection()
    slack_ok = create_notifier(settings).validate_connection()

    click.echo(f"Aircall: {'connected' if aircall_ok else 'failed'}")
    click.echo(f"Slack: {'connected' if slack_ok else 'failed'}")

    if not (aircall_ok and slack_ok):
        raise SystemExit(1)


@cli.command('schedule')
def run_schedule():
    """Run the weekday report scheduler until interrupted"""
    settings = load_settings(require_slack=True)
    scheduler = ReportScheduler(
        generator=create_generator(settings),
        notifier=create_notifier(settings),
        config=settings.report_config()
    )

    click.echo("Starting report scheduler...")
    scheduler.start()

    for job in scheduler.get_status()['jobs']:
        click.echo(f"{job['period']}: next run {job['next_run']}")
    click.echo("Press Ctrl+C to stop")

    def signal_handler(sig, frame):
        click.echo("\nStopping scheduler...")
        scheduler.stop()
        scheduler.generator.close()
        raise SystemExit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    signal.pause()


if __name__ == '__main__':
    cli()

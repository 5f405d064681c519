"""
Slack delivery for activity reports
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import requests

from aircall_reports.models import ActivitySummary, AgentActivity, percentage
from aircall_reports.reports.aggregator import summarize

logger = logging.getLogger(__name__)

SEPARATOR = '─' * 41

CALCULATION_DETAILS = (
    "📋 *Calculation Details:*\n"
    "• Total Calls = Outbound calls only\n"
    "• Total Talk Time = Inbound + Outbound call duration\n"
    "• Answer Rate = Answered outbound calls / Total outbound calls"
)


def _short_time(value: datetime) -> str:
    """Oct 7, 1:05 PM"""
    hour = value.hour % 12 or 12
    return f"{value:%b} {value.day}, {hour}:{value:%M} {value:%p}"


def _long_time(value: datetime) -> str:
    """Tuesday, October 7, 2025 at 1:05 PM"""
    hour = value.hour % 12 or 12
    return f"{value:%A, %B} {value.day}, {value.year} at {hour}:{value:%M} {value:%p}"


def _mrkdwn(text: str) -> Dict[str, str]:
    return {'type': 'mrkdwn', 'text': text}


class SlackNotifier:
    """Posts activity reports to a Slack channel through the Web API"""

    BASE_URL = 'https://slack.com/api'

    def __init__(
        self,
        api_token: str,
        channel_id: str,
        timezone: str = 'America/Chicago',
        session: Optional[requests.Session] = None,
        timeout: int = 30
    ):
        self.channel_id = channel_id
        self.tz = ZoneInfo(timezone)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f"Bearer {api_token}",
            'Content-Type': 'application/json; charset=utf-8'
        })

    def _post(self, method: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self.session.post(f"{self.BASE_URL}/{method}", json=payload or {}, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def validate_connection(self) -> bool:
        """
        Check the token and that the bot can see the target channel

        Returns:
            True if both checks pass
        """
        try:
            auth = self._post('auth.test')
            if not auth.get('ok'):
                logger.error(f"Slack authentication failed: {auth.get('error')}")
                return False

            logger.info(f"Connected to Slack as: {auth.get('user')}")

            response = self.session.get(
                f"{self.BASE_URL}/conversations.info",
                params={'channel': self.channel_id},
                timeout=self.timeout
            )
            response.raise_for_status()
            channel = response.json()
            if not channel.get('ok'):
                logger.error(f"Invalid channel ID or bot not in channel: {channel.get('error')}")
                return False

            logger.info(f"Target channel: #{channel['channel']['name']}")
            return True

        except (requests.RequestException, ValueError, KeyError) as e:
            logger.error(f"Error validating Slack connection: {e}")
            return False

    def _user_block(self, user: AgentActivity) -> Dict[str, Any]:
        outbound_rate = percentage(user.answered_outbound_calls, user.total_outbound_calls)
        inbound_rate = percentage(user.answered_inbound_calls, user.total_inbound_calls)

        fields = [
            _mrkdwn(f"*{user.name}*"),
            _mrkdwn(f"📞 *{user.total_outbound_calls}* outbound calls"),
            _mrkdwn(f"✅ *{user.answered_outbound_calls}* answered ({outbound_rate}%)"),
            _mrkdwn(f"📥 *{user.total_inbound_calls}* inbound calls"),
            _mrkdwn(f"📞 *{user.answered_inbound_calls}* inbound answered ({inbound_rate}%)"),
            _mrkdwn(f"⏱️ *{user.total_talk_time_minutes}* min total talk time"),
        ]

        if user.fetch_error:
            fields.append(_mrkdwn(f"⚠️ *Error:* {user.fetch_error}"))
        if user.truncated:
            fields.append(_mrkdwn("⚠️ *Incomplete:* page limit reached"))

        return {'type': 'section', 'fields': fields}

    def format_activity_message(
        self,
        summary: ActivitySummary,
        generated_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Render a summary as Slack blocks

        Args:
            summary: Report to render
            generated_at: Footer timestamp (defaults to now)

        Returns:
            Dictionary with 'blocks' and fallback 'text'
        """
        period = summary.period[:1].upper() + summary.period[1:]
        start = datetime.fromtimestamp(summary.window.start_timestamp, self.tz)
        end = datetime.fromtimestamp(summary.window.end_timestamp, self.tz)
        generated_at = (generated_at or datetime.now(self.tz)).astimezone(self.tz)

        totals = summarize(summary.users)

        blocks: List[Dict[str, Any]] = [
            {
                'type': 'header',
                'text': {'type': 'plain_text', 'text': f"📞 Call Activity Report - {period}"}
            },
            {
                'type': 'context',
                'elements': [_mrkdwn(f"📅 *Reporting Period:* {_short_time(start)} - {_short_time(end)}")]
            },
            {
                'type': 'section',
                'text': _mrkdwn(
                    f"📊 *Outbound Summary:* {totals['total_outbound_calls']} calls • "
                    f"{totals['answered_outbound_calls']} answered • {totals['answer_rate']}% answer rate"
                )
            },
            {
                'type': 'section',
                'text': _mrkdwn(
                    f"📞 *Inbound Summary:* {totals['total_inbound_calls']} calls • "
                    f"{totals['answered_inbound_calls']} answered • "
                    f"{int(totals['total_talk_time_minutes'] + 0.5)} min total talk time"
                )
            },
            {'type': 'divider'}
        ]

        if summary.partial:
            blocks.append({
                'type': 'context',
                'elements': [_mrkdwn("⚠️ Some agents hit the page limit; their numbers may be incomplete")]
            })

        ranked = sorted(summary.users, key=lambda user: user.total_outbound_calls, reverse=True)
        for index, user in enumerate(ranked):
            blocks.append(self._user_block(user))
            if index < len(ranked) - 1:
                blocks.append({'type': 'context', 'elements': [_mrkdwn(SEPARATOR)]})

        blocks.append({'type': 'divider'})
        blocks.append({'type': 'section', 'text': _mrkdwn(CALCULATION_DETAILS)})
        blocks.append({
            'type': 'context',
            'elements': [_mrkdwn(f"📊 Report generated on {_long_time(generated_at)}")]
        })

        text = (
            f"Call Activity Report - {period} | {totals['total_outbound_calls']} outbound calls, "
            f"{totals['answered_outbound_calls']} answered ({totals['answer_rate']}%), "
            f"{totals['total_inbound_calls']} inbound calls"
        )

        return {'blocks': blocks, 'text': text}

    def send_message(self, message: Dict[str, Any]) -> bool:
        """
        Post a message to the configured channel

        Args:
            message: Dictionary with 'blocks' and 'text'

        Returns:
            True if Slack accepted the message
        """
        payload = {
            'channel': self.channel_id,
            'blocks': message['blocks'],
            'text': message['text']
        }

        try:
            result = self._post('chat.postMessage', payload)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error sending to Slack: {e}")
            return False

        if result.get('ok'):
            logger.info("Successfully sent message to Slack")
            return True

        logger.error(f"Slack API error: {result.get('error')}")
        return False

    def send_activity_report(self, summary: ActivitySummary) -> bool:
        return self.send_message(self.format_activity_message(summary))

import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid"""
    pass


@dataclass(frozen=True)
class ReportConfig:
    """
    Tunables for window resolution, fetching and pacing.

    Defaults match the production Aircall limits we run against.
    """
    timezone: str = 'America/Chicago'

    # Window rules (local hours)
    afternoon_start_hour: int = 9
    afternoon_end_hour: int = 13
    full_day_start_hour: int = 7
    full_day_end_hour: int = 19

    # Fetching
    page_size: int = 50
    max_pages: int = 100
    max_attempts: int = 3
    backoff_base_seconds: float = 1.0
    request_timeout: int = 60

    # Pacing
    page_interval_seconds: float = 0.5
    agent_interval_seconds: float = 2.0

    # Schedule (local time, weekdays only)
    afternoon_run_time: str = '13:01'
    night_run_time: str = '18:30'


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


class Settings:
    def __init__(self):
        # Aircall
        self.aircall_api_id = os.getenv('AIRCALL_API_ID')
        self.aircall_api_token = os.getenv('AIRCALL_API_TOKEN')
        self.aircall_base_url = os.getenv('AIRCALL_BASE_URL', 'https://api.aircall.io/v1')
        self.aircall_timeout = int(os.getenv('AIRCALL_TIMEOUT', '60'))

        # Slack
        self.slack_api_token = os.getenv('SLACK_API_TOKEN')
        self.slack_channel_id = os.getenv('SLACK_CHANNEL_ID')

        # Reporting
        self.excluded_users = _split_csv(os.getenv('EXCLUDED_USERS', ''))
        self.report_timezone = os.getenv('REPORT_TIMEZONE', 'America/Chicago')

        # Logging
        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    def report_config(self) -> ReportConfig:
        """Build the report tunables from environment overrides"""
        return ReportConfig(
            timezone=self.report_timezone,
            request_timeout=self.aircall_timeout
        )

    def validate(self, require_slack: bool = True):
        """
        Check that credentials needed for a run are present

        Args:
            require_slack: Whether Slack credentials are required

        Raises:
            ConfigurationError: If a required value is missing
        """
        required = {
            'AIRCALL_API_ID': self.aircall_api_id,
            'AIRCALL_API_TOKEN': self.aircall_api_token,
        }
        if require_slack:
            required['SLACK_API_TOKEN'] = self.slack_api_token
            required['SLACK_CHANNEL_ID'] = self.slack_channel_id

        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

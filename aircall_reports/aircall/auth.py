"""
Aircall Basic authentication
Builds the authenticated HTTP session used by the client
"""

import base64
import logging
from typing import Dict, Optional

import requests
from requests.adapters import HTTPAdapter

from aircall_reports.config.settings import Settings

logger = logging.getLogger(__name__)


class AircallAuth:
    """
    HTTP Basic authentication for the Aircall public API

    Documentation: https://developer.aircall.io/api-references/#authentication
    """

    BASE_URL = "https://api.aircall.io/v1"

    def __init__(
        self,
        api_id: Optional[str] = None,
        api_token: Optional[str] = None,
        base_url: Optional[str] = None
    ):
        """
        Initialize Aircall authentication

        Args:
            api_id: Aircall API ID
            api_token: Aircall API token
            base_url: API base URL override
        """
        if not api_id or not api_token:
            settings = Settings()
            api_id = api_id or settings.aircall_api_id
            api_token = api_token or settings.aircall_api_token

        if not api_id or not api_token:
            raise ValueError("Aircall API ID and token are required")

        self.api_id = api_id
        self.api_token = api_token
        self.base_url = (base_url or self.BASE_URL).rstrip('/')

    def encode_credentials(self) -> str:
        raw = f"{self.api_id}:{self.api_token}".encode('utf-8')
        return base64.b64encode(raw).decode('utf-8')

    def get_auth_headers(self) -> Dict[str, str]:
        return {
            'Authorization': f"Basic {self.encode_credentials()}",
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        }

    def create_session(self) -> requests.Session:
        """
        Create an authenticated requests session

        Connection errors are not retried at the adapter level; the client
        decides what to retry.

        Returns:
            Configured requests Session
        """
        session = requests.Session()
        session.headers.update(self.get_auth_headers())

        adapter = HTTPAdapter(max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        logger.info(f"Aircall session created for {self.base_url}")
        return session

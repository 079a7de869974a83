"""Microsoft Graph (Outlook) calendar provider - HTTP client for event fetching."""

import logging
import time
from datetime import datetime, tzinfo
from pathlib import Path

import requests

from dayplanner.adapters.retry import CalendarApiError, IntegrationNotConfiguredError
from dayplanner.config import OUTLOOK_TOKEN_FILE, OutlookTokens
from dayplanner.core.commitments import parse_outlook_event
from dayplanner.core.slots import TimeSlot

logger = logging.getLogger(__name__)

GRAPH_BASE = "https://graph.microsoft.com/v1.0"
TOKEN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
SCOPES = "offline_access Calendars.Read"
REQUEST_TIMEOUT = 30


class OutlookCalendarProvider:
    """
    Outlook calendar provider.

    Implements CalendarProvider protocol. Handles token refresh and calendar
    view paging. No business logic - just I/O.
    """

    name = "outlook"

    def __init__(
        self,
        client_id: str,
        tenant: str = "common",
        timezone: str = "",
        tz: tzinfo | None = None,
        tokens: OutlookTokens | None = None,
        token_file: Path = OUTLOOK_TOKEN_FILE,
        session: requests.Session | None = None,
    ):
        self.client_id = client_id
        self.tenant = tenant
        self.timezone = timezone
        self.tz = tz
        self.token_file = token_file
        self.tokens = tokens or OutlookTokens.load(token_file)
        self._session = session or requests.Session()

    def _ensure_valid_token(self) -> None:
        """Refresh token if expired or expiring soon."""
        if not self.tokens.access_token:
            raise IntegrationNotConfiguredError("No Outlook access token configured.")

        # Refresh if expiring within 5 minutes
        if self.tokens.expires_at and time.time() >= self.tokens.expires_at - 300:
            self._refresh_token()

    def _refresh_token(self) -> None:
        """Refresh the access token."""
        if not self.tokens.refresh_token:
            raise CalendarApiError(401, "Outlook token expired and no refresh token is available")

        resp = self._session.post(
            TOKEN_URL.format(tenant=self.tenant),
            data={
                "client_id": self.client_id,
                "refresh_token": self.tokens.refresh_token,
                "grant_type": "refresh_token",
                "scope": SCOPES,
            },
            timeout=REQUEST_TIMEOUT,
        )

        if resp.status_code != 200:
            raise CalendarApiError(401, f"Outlook token refresh failed: {resp.text}")

        data = resp.json()
        self.tokens.access_token = data["access_token"]
        if "refresh_token" in data:
            self.tokens.refresh_token = data["refresh_token"]
        self.tokens.expires_at = int(time.time()) + data.get("expires_in", 3600)
        self.tokens.save(self.token_file)

    def _view_url(self, calendar_id: str) -> str:
        if not calendar_id or calendar_id == "primary":
            return f"{GRAPH_BASE}/me/calendarView"
        return f"{GRAPH_BASE}/me/calendars/{calendar_id}/calendarView"

    def _api_request(self, url: str, params: dict | None = None) -> dict:
        """Make authenticated API request."""
        self._ensure_valid_token()
        headers = {"Authorization": f"Bearer {self.tokens.access_token}"}
        if self.timezone:
            headers["Prefer"] = f'outlook.timezone="{self.timezone}"'

        resp = self._session.get(url, headers=headers, params=params, timeout=REQUEST_TIMEOUT)
        if not resp.ok:
            raise CalendarApiError(resp.status_code, f"Microsoft Graph error: {resp.text}")
        return resp.json()

    def get_events(self, user_id: str, calendar_id: str, start: datetime, end: datetime) -> list[dict]:
        """Fetch raw calendar view items for [start, end], following @odata.nextLink."""
        items: list[dict] = []
        url = self._view_url(calendar_id)
        params = {
            "startDateTime": (start if start.tzinfo else start.astimezone()).isoformat(),
            "endDateTime": (end if end.tzinfo else end.astimezone()).isoformat(),
            "$orderby": "start/dateTime",
        }

        while url:
            data = self._api_request(url, params)
            items.extend(data.get("value", []))
            url = data.get("@odata.nextLink")
            # nextLink already carries the query string
            params = None

        logger.debug(f"Outlook returned {len(items)} events for {user_id}")
        return items

    def parse_event(self, item: dict) -> TimeSlot:
        return parse_outlook_event(item, self.tz)

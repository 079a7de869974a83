"""Google Calendar API provider."""

import logging
from datetime import datetime, tzinfo
from pathlib import Path

from dayplanner.adapters.retry import CalendarApiError, IntegrationNotConfiguredError
from dayplanner.core.commitments import parse_google_event
from dayplanner.core.slots import TimeSlot

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]


def _rfc3339(dt: datetime) -> str:
    # Naive datetimes are local time
    return (dt if dt.tzinfo else dt.astimezone()).isoformat()


class GoogleCalendarProvider:
    """Fetches raw events from Google Calendar via the API."""

    name = "google"

    def __init__(
        self,
        config_folder: str,
        client_secret_file: str = "",
        timezone: str = "",
        tz: tzinfo | None = None,
    ):
        self.config_folder = config_folder
        self.client_secret_file = client_secret_file
        self.timezone = timezone
        self.tz = tz
        self._token_path = Path(config_folder).expanduser() / "token.json"

    def _get_credentials(self):
        """Load credentials from token.json, refreshing if needed."""
        from google.auth.exceptions import RefreshError
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        if not self._token_path.exists():
            raise IntegrationNotConfiguredError(
                f"No Google token at {self._token_path}. Run 'dayplanner cal-auth' first."
            )

        creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)

        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
            except RefreshError as e:
                raise CalendarApiError(401, f"Google token refresh failed: {e}") from e
            self._token_path.write_text(creds.to_json())
            self._token_path.chmod(0o600)

        return creds

    def _build_service(self):
        """Build a Google Calendar API service."""
        from googleapiclient.discovery import build

        creds = self._get_credentials()
        return build("calendar", "v3", credentials=creds, cache_discovery=False)

    def authenticate(self) -> bool:
        """Run OAuth flow for this account. Returns True on success."""
        from google_auth_oauthlib.flow import InstalledAppFlow

        if not self.client_secret_file:
            logger.error("No client secret file configured")
            return False

        secret_path = Path(self.client_secret_file).expanduser()
        if not secret_path.exists():
            logger.error(f"Client secret file not found: {secret_path}")
            return False

        flow = InstalledAppFlow.from_client_secrets_file(str(secret_path), SCOPES)
        creds = flow.run_local_server(port=0)

        self._token_path.parent.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(creds.to_json())
        self._token_path.chmod(0o600)
        return True

    def get_events(self, user_id: str, calendar_id: str, start: datetime, end: datetime) -> list[dict]:
        """Fetch raw event items overlapping [start, end], following pagination."""
        from googleapiclient.errors import HttpError

        service = self._build_service()
        params = {
            "calendarId": calendar_id or "primary",
            "timeMin": _rfc3339(start),
            "timeMax": _rfc3339(end),
            "singleEvents": True,
            "orderBy": "startTime",
        }
        if self.timezone:
            params["timeZone"] = self.timezone

        items: list[dict] = []
        page_token = None
        while True:
            if page_token:
                params["pageToken"] = page_token
            try:
                result = service.events().list(**params).execute()
            except HttpError as e:
                raise CalendarApiError(e.resp.status, f"Google Calendar API error: {e}") from e

            items.extend(result.get("items", []))
            page_token = result.get("nextPageToken")
            if not page_token:
                break

        logger.debug(f"Google returned {len(items)} events for {user_id}")
        return items

    def parse_event(self, item: dict) -> TimeSlot:
        return parse_google_event(item, self.tz)

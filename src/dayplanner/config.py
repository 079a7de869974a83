"""Configuration management for dayplanner."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

PLANNER_HOME = Path(os.environ.get("PLANNER_HOME", Path.home() / "dayplanner"))
CONFIG_FILE = PLANNER_HOME / "config" / "dayplanner.conf"
OUTLOOK_TOKEN_FILE = PLANNER_HOME / "config" / ".outlook_tokens.json"
DATA_DIR = PLANNER_HOME / "data"


@dataclass
class Config:
    """dayplanner configuration."""

    user_id: str = "local"
    timezone: str = "America/Toronto"
    data_dir: str = ""
    google_config_folder: str = ""
    google_client_secret_file: str = ""
    google_calendar_id: str = "primary"
    outlook_client_id: str = ""
    outlook_tenant: str = "common"
    outlook_calendar_id: str = "primary"
    outlook_token_file: str = ""

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_config_folder)

    @property
    def outlook_enabled(self) -> bool:
        return bool(self.outlook_client_id)

    def resolved_data_dir(self) -> Path:
        return Path(self.data_dir).expanduser() if self.data_dir else DATA_DIR

    def resolved_outlook_token_file(self) -> Path:
        return Path(self.outlook_token_file).expanduser() if self.outlook_token_file else OUTLOOK_TOKEN_FILE


@dataclass
class OutlookTokens:
    """OAuth tokens for Microsoft Graph."""

    access_token: str = ""
    refresh_token: str = ""
    expires_at: int = 0

    def save(self, path: Path = OUTLOOK_TOKEN_FILE) -> None:
        """Save tokens to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(
                {
                    "access_token": self.access_token,
                    "refresh_token": self.refresh_token,
                    "expires_at": self.expires_at,
                }
            )
        )
        path.chmod(0o600)

    @classmethod
    def load(cls, path: Path = OUTLOOK_TOKEN_FILE) -> "OutlookTokens":
        """Load tokens from file."""
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text())
            return cls(
                access_token=data.get("access_token", ""),
                refresh_token=data.get("refresh_token", ""),
                expires_at=data.get("expires_at", 0),
            )
        except (json.JSONDecodeError, KeyError):
            logger.warning(f"Ignoring unreadable Outlook token file {path}")
            return cls()


def _strip_value(value: str) -> str:
    """Handle quoted values with inline comments: "value" # comment"""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config() -> Config:
    """Load configuration from dayplanner.conf file."""
    config = Config()

    if not CONFIG_FILE.exists():
        return config

    for line in CONFIG_FILE.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        match key:
            case "user_id":
                config.user_id = value
            case "timezone":
                config.timezone = value
            case "data_dir":
                config.data_dir = value
            case "google_config_folder":
                config.google_config_folder = value
            case "google_client_secret_file":
                config.google_client_secret_file = value
            case "google_calendar_id":
                config.google_calendar_id = value
            case "outlook_client_id":
                config.outlook_client_id = value
            case "outlook_tenant":
                config.outlook_tenant = value
            case "outlook_calendar_id":
                config.outlook_calendar_id = value
            case "outlook_token_file":
                config.outlook_token_file = value
            case _:
                logger.warning(f"Unknown config key: {key.upper()}")

    return config

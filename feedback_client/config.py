import os
from dotenv import load_dotenv
from typing import Dict, Any
from functools import lru_cache

from feedback_client.exceptions import ConfigurationError

load_dotenv()

POLL_SETTING_NAMES = {
    "max_attempts": "FEEDBACK_POLL_MAX_ATTEMPTS",
    "poll_interval": "FEEDBACK_POLL_INTERVAL",
    "error_backoff": "FEEDBACK_POLL_ERROR_BACKOFF",
}

def validate_poll_config(max_attempts: int, poll_interval: float, error_backoff: float, names: Dict[str, str] = None) -> None:
    """Raise ConfigurationError if a poll budget or delay is unusable."""
    names = names or {}
    if max_attempts <= 0:
        raise ConfigurationError(f"{names.get('max_attempts', 'max_attempts')} must be positive", context={"value": max_attempts})
    for name, value in (("poll_interval", poll_interval), ("error_backoff", error_backoff)):
        if value < 0:
            raise ConfigurationError(f"{names.get(name, name)} must not be negative", context={"value": value})

class Settings:
    def __init__(self):
        # Evaluation backend
        self.FEEDBACK_API_BASE_URL: str = os.getenv("FEEDBACK_API_BASE_URL", "http://localhost:5001/api").rstrip("/")
        self.FEEDBACK_API_TOKEN: str = os.getenv("FEEDBACK_API_TOKEN", "")
        self.FEEDBACK_HTTP_TIMEOUT: float = float(os.getenv("FEEDBACK_HTTP_TIMEOUT", "30.0"))

        # Polling Settings
        self.FEEDBACK_POLL_MAX_ATTEMPTS: int = int(os.getenv("FEEDBACK_POLL_MAX_ATTEMPTS", "60"))
        self.FEEDBACK_POLL_INTERVAL: float = float(os.getenv("FEEDBACK_POLL_INTERVAL", "1.0"))
        self.FEEDBACK_POLL_ERROR_BACKOFF: float = float(os.getenv("FEEDBACK_POLL_ERROR_BACKOFF", "2.0"))

        # Logging
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def poll_config(self) -> Dict[str, Any]:
        """Get keyword arguments for FeedbackPoller."""
        return {
            "max_attempts": self.FEEDBACK_POLL_MAX_ATTEMPTS,
            "poll_interval": self.FEEDBACK_POLL_INTERVAL,
            "error_backoff": self.FEEDBACK_POLL_ERROR_BACKOFF,
        }

    def validate(self) -> None:
        """Raise ConfigurationError if the settings are unusable."""
        validate_poll_config(**self.poll_config, names=POLL_SETTING_NAMES)
        if self.FEEDBACK_HTTP_TIMEOUT < 0:
            raise ConfigurationError(
                "FEEDBACK_HTTP_TIMEOUT must not be negative",
                context={"value": self.FEEDBACK_HTTP_TIMEOUT},
            )
        if not self.FEEDBACK_API_BASE_URL:
            raise ConfigurationError("FEEDBACK_API_BASE_URL is required")

@lru_cache()
def get_settings():
    return Settings()

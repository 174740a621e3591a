"""Environment variable parsing and configuration."""

import os
from typing import Optional


def get_str(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get string env var."""
    return os.environ.get(key, default)


def get_int(key: str, default: int) -> int:
    """Get integer env var."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def get_bool(key: str, default: bool = False) -> bool:
    """Get boolean env var (0/1, true/false, yes/no)."""
    val = os.environ.get(key, "").lower()
    if not val:
        return default
    return val in ("1", "true", "yes", "on")


def get_float(key: str, default: float) -> float:
    """Get float env var."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


class Config:
    """Configuration loaded from environment variables."""

    def __init__(self):
        # Flag defaults
        self.prometheus_url = get_str("PROMPLOT_URL")
        self.slack_token = get_str("PROMPLOT_SLACK_TOKEN")

        # Remote endpoints
        self.slack_api_url = get_str("PROMPLOT_SLACK_API_URL", "https://slack.com/api")
        self.http_timeout_s = get_float("PROMPLOT_HTTP_TIMEOUT", 30.0)

        # Number of data points per plotted series
        self.samples = get_int("PROMPLOT_SAMPLES", 100)
        if self.samples <= 0:
            self.samples = 100

        # Output verbosity
        self.silent = get_bool("PROMPLOT_SILENT", False)
        self.debug = get_bool("PROMPLOT_DEBUG", False)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config

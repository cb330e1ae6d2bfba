"""
API Configuration Module

Server, CORS and request-logging settings for the dashboard API.
"""

from dataclasses import dataclass, field
from typing import List
import os


def _csv_env(name: str, default: str) -> List[str]:
    return [part.strip() for part in os.getenv(name, default).split(",") if part.strip()]


@dataclass
class APIConfig:
    """API configuration settings."""

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    title: str = "Rubicon Dashboard API"
    version: str = "1.0.0"
    description: str = "Market data, trading and knowledge-base API for the Rubicon dashboard"
    prefix: str = "/api"

    # The dashboard frontend reads cache state and throttle hints from these
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    exposed_headers: List[str] = field(default_factory=lambda: ["X-Cache", "Retry-After", "X-Process-Time"])

    slow_request_seconds: float = 5.0

    def __post_init__(self):
        """Override with environment variables if present."""
        self.host = os.getenv("API_HOST", self.host)
        self.port = int(os.getenv("API_PORT", str(self.port)))
        self.debug = os.getenv("API_DEBUG", str(self.debug)).lower() == "true"
        self.allowed_origins = _csv_env("API_ALLOWED_ORIGINS", ",".join(self.allowed_origins))
        self.slow_request_seconds = float(os.getenv("API_SLOW_REQUEST_SECONDS", str(self.slow_request_seconds)))


# Global API configuration instance
api_config = APIConfig()

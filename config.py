"""
Configuration management for the Survey Engine.

All environment variables are loaded here with their default values.
Required vs optional status is documented for each.
"""

import logging
import sys

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variable Reference:
    - RESEND_API_KEY: Resend API key used to send result emails (optional).
      When unset, result emails are skipped and the skip is logged.

    Everything else has a working default.
    """

    # Application settings
    app_name: str = "Survey Engine"
    app_version: str = "1.0.0"
    debug: bool = False

    # Result email delivery (Resend)
    resend_api_key: Optional[str] = None
    resend_base_url: str = "https://api.resend.com"
    email_from: str = "Survey Builder <onboarding@resend.dev>"

    # Outbound request settings
    request_timeout_seconds: int = 15
    rate_limit_per_second: float = 2.0

    # A "response created" trigger may be delivered more than once;
    # repeats for the same response id inside this window are ignored.
    notification_cache_ttl_seconds: int = 3600
    notification_cache_max_size: int = 1000

    # Bounds filled in for stored scale questions that lack them
    default_scale_min: int = 1
    default_scale_max: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()


def configure_logging() -> None:
    """Configure root logging once for the embedding application."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def get_service_status() -> dict:
    """
    Returns the configuration status of external services.

    Only outbound email is optional; the engine itself needs no services.
    """
    return {
        "email": "configured" if settings.resend_api_key else "disabled",
    }

"""
Tests for settings helpers.
"""

import logging

from config import configure_logging, get_service_status, settings


class TestServiceStatus:
    """Tests for get_service_status."""

    def test_email_disabled_without_key(self, monkeypatch):
        monkeypatch.setattr(settings, "resend_api_key", None)
        assert get_service_status() == {"email": "disabled"}

    def test_email_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "resend_api_key", "re_key")
        assert get_service_status() == {"email": "configured"}


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_does_not_raise(self):
        configure_logging()
        assert logging.getLogger("engine").getEffectiveLevel() <= logging.WARNING

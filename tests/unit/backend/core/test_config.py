"""
Unit Tests for configuration loading.

Loads the real config/settings/*.yaml files from the project root, so a
broken settings file fails here first.
"""

import pytest
from pydantic import ValidationError

from notevault.backend.core.config import AppConfig, get_database_url, get_redis_url
from notevault.backend.core.config_schema import NotesSchema, SecuritySchema


class TestAppConfig:
    def test_all_settings_files_validate(self):
        config = AppConfig()

        assert config.application.api_prefix == "/api/v1"
        assert config.notes.trash.retention_days == 30
        assert config.notes.trash.sweep_cron == "0 3 * * *"
        assert config.security.rate_limiting.per_ip.limit == 3000
        assert config.security.rate_limiting.per_ip.period_seconds == 300

    def test_unknown_keys_are_rejected(self):
        with pytest.raises(ValidationError):
            NotesSchema(
                default_max_size=10,
                trash={"retention_days": 30, "sweep_cron": "* * * * *"},
                attachments={"storage_path": "x", "max_file_bytes": 1},
                search={"max_results": 1},
                surprise=True,
            )

    def test_short_token_length_is_rejected(self):
        with pytest.raises(ValidationError):
            SecuritySchema(
                api_tokens={"ttl_days": 30, "byte_length": 4},
                passwords={"min_length": 8},
                rate_limiting={
                    "path_prefix": "/api/",
                    "per_ip": {"limit": 1, "period_seconds": 1},
                    "per_token": {"limit": 1, "period_seconds": 1},
                },
                default_session_timeout=3600,
            )


class TestUrls:
    def test_database_url_uses_driver_and_secret(self):
        url = get_database_url()

        assert url.startswith("postgresql+asyncpg://notevault:")
        assert url.endswith("@localhost:5432/notevault")

    def test_redis_url(self):
        assert get_redis_url().endswith("@localhost:6379/0")

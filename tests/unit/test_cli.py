"""
Unit Tests for cli.py user commands.

Tests the click entry point with the database session mocked out.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from cli import main
from notevault.backend.core.exceptions import ValidationError

SYNC_ARGS = [
    "--service", "sync-user",
    "--provider", "github",
    "--uid", "gh-42",
    "--email", "ada@example.com",
    "--name", "Ada",
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def users():
    """UserService stand-in handed to the command by the session helper."""
    service = MagicMock()
    service.upsert_federated_user = AsyncMock(
        return_value=MagicMock(id="user-1", email="ada@example.com")
    )

    async def with_user_service(call):
        return await call(service)

    with patch("cli.validate_project_root"), patch("cli.setup_logging"), patch(
        "cli._with_user_service", side_effect=with_user_service
    ):
        yield service


class TestSyncUser:
    def test_upserts_federated_user(self, runner, users):
        result = runner.invoke(main, SYNC_ARGS)

        assert result.exit_code == 0
        assert "Synced ada@example.com from github" in result.output
        users.upsert_federated_user.assert_awaited_once_with(
            "github", "gh-42", "Ada", "ada@example.com"
        )

    def test_missing_uid_fails(self, runner, users):
        result = runner.invoke(
            main,
            ["--service", "sync-user", "--provider", "github", "--email", "a@b.c", "--name", "A"],
        )

        assert result.exit_code == 1
        users.upsert_federated_user.assert_not_called()

    def test_invalid_user_reports_fields(self, runner, users):
        users.upsert_federated_user.side_effect = ValidationError.for_field(
            "email", "has already been taken"
        )

        result = runner.invoke(main, SYNC_ARGS)

        assert result.exit_code == 1
        assert "email: has already been taken" in result.output

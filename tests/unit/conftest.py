"""
Unit Test Fixtures.

Fixtures for unit tests - external dependencies are mocked.
Unit tests should be fast and isolated, never touching real databases.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Mock database session for unit tests.

    Usage:
        def test_service(mock_db_session: AsyncMock):
            service = NoteService(mock_db_session)
    """
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    return session


@pytest.fixture
def mock_broker() -> MagicMock:
    """
    Mock taskiq broker whose task() decorator returns the function unchanged.

    The decorator kwargs are recorded on broker.task.call_args_list.
    """
    broker = MagicMock()
    broker.task = MagicMock(side_effect=lambda **kwargs: (lambda fn: fn))
    return broker

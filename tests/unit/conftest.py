import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.services.retry import RetryPolicy
from tests.fixtures.in_memory_store import InMemoryStore


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    uow.audit_events.create = AsyncMock()
    return uow


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def no_delay_retry():
    """Retry policy without backoff sleeps"""
    return RetryPolicy(max_attempts=5, base_delay_seconds=0, max_delay_seconds=0)

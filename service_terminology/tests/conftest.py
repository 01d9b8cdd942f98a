"""
Shared fixtures for Terminology service tests.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from shared.errors import AuthError
from service_terminology.app.auth.session_cache import reset_session_cache


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta):
        self.now = self.now + delta


class CountingAuthenticator:
    """Authenticator stub issuing SESSION=<n>; tokens."""

    def __init__(self, delay: float = 0.0, error: AuthError = None):
        self.delay = delay
        self.error = error
        self.calls = []
        self.closed = False

    async def login(self, username: str, password: str, auth_url: str) -> str:
        self.calls.append((username, password, auth_url))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return f"SESSION={len(self.calls)};"

    async def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def clean_session_cache():
    """Make sure no process-wide session cache leaks between tests."""
    reset_session_cache()
    yield
    reset_session_cache()


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def authenticator():
    return CountingAuthenticator()


@pytest.fixture
def slow_authenticator():
    return CountingAuthenticator(delay=0.01)


@pytest.fixture
def make_authenticator():
    """Factory for authenticator stubs with custom delay or error."""
    return CountingAuthenticator

"""Pytest configuration and fixtures."""

import logging
import os
from datetime import date

import pytest
import pytest_asyncio
from dotenv import load_dotenv

from deskbook import FlashMessages, MemoryBackend, Member

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Load environment variables
load_dotenv()

TODAY = date(2024, 6, 3)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires live credentials)",
    )
    config.addinivalue_line(
        "markers", "destructive: mark test as potentially destructive (modifies data)"
    )


@pytest.fixture(scope="session")
def credentials():
    """Get Supabase credentials from environment variables.

    Returns:
        tuple: (url, anon_key, access_token)

    Raises:
        pytest.skip: If credentials are not available
    """
    url = os.getenv("SUPABASE_URL")
    anon_key = os.getenv("SUPABASE_ANON_KEY")
    access_token = os.getenv("SUPABASE_ACCESS_TOKEN")

    if not url or not anon_key or not access_token:
        pytest.skip("SUPABASE_URL, SUPABASE_ANON_KEY and SUPABASE_ACCESS_TOKEN environment variables not set")

    return url, anon_key, access_token


@pytest_asyncio.fixture
async def supabase_client(credentials):
    """Create an async Supabase client against the live project.

    Args:
        credentials: Credentials fixture

    Returns:
        AsyncSupabaseClient: Initialized client
    """
    from deskbook import AsyncSupabaseClient

    url, anon_key, access_token = credentials

    async with AsyncSupabaseClient(url=url, anon_key=anon_key, access_token=access_token) as client:
        yield client


@pytest.fixture
def alice():
    return Member(id="user-alice", email="alice@example.com", display_name="Alice")


@pytest.fixture
def bob():
    return Member(id="user-bob", email="bob@example.com", display_name="Bob")


@pytest.fixture
def backend(alice, bob):
    """In-memory backend with Alice signed in and Bob known."""
    backend = MemoryBackend(current_user=alice)
    backend.add_user(bob)
    return backend


@pytest.fixture
def office(backend):
    """Office with two desks and an empty layout."""
    office = backend.add_office("HQ", office_id="office-hq")
    backend.add_desk(office.id, "Desk 1", desk_id="desk-1")
    backend.add_desk(office.id, "Desk 2", desk_id="desk-2")
    return office


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock(1000.0)


@pytest.fixture
def flash(clock):
    return FlashMessages(clock=clock)

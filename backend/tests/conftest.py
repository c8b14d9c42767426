"""
Pytest configuration and shared fixtures for backend tests.

WHAT: Centralized test configuration with markers
WHY: Enable test organization, filtering, and shared test utilities
HOW: Define pytest markers, fixtures, and test helpers
"""

import pytest

from barter_inbox.core.session_manager import session_manager
from barter_inbox.marketplace.client_factory import reset_client
from tests.fixtures.fake_marketplace import FakeMarketplaceClient
from tests.fixtures import payloads


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (multiple components)"
    )


@pytest.fixture(autouse=True)
def reset_marketplace_factory():
    """
    Reset client factory and sessions around each test.

    WHAT: Clear factory override, HTTP pool and registered sessions
    WHY: Prevent test pollution between tests
    HOW: reset_client() and session_manager.clear() before and after
    """
    reset_client()
    session_manager.clear()
    yield
    reset_client()
    session_manager.clear()


@pytest.fixture
def fake_client() -> FakeMarketplaceClient:
    """Fake marketplace preloaded with the standard two-party inbox."""
    return payloads.standard_marketplace()

"""Shared fixtures for the intake gateway test suite."""

import os

# Keep the app module from building a Postgres engine at import time.
os.environ.setdefault("STORE_BACKEND", "memory")

import pytest

from intake_gateway.services.intake_service import IntakeService
from intake_gateway.services.rate_limiter import FixedWindowRateLimiter
from intake_gateway.storage.store import InMemorySubmissionStore
from tests.helpers import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rate_limiter(clock):
    return FixedWindowRateLimiter(window_seconds=300, max_requests=10, clock=clock)


@pytest.fixture
def store():
    return InMemorySubmissionStore()


@pytest.fixture
def service(store, rate_limiter):
    return IntakeService(store, rate_limiter)

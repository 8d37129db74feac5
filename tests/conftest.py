"""Pytest fixtures for video relay tests."""

from datetime import datetime, timezone

import pytest

from fakes import FakeClock, FakeScheduler
from video.polling import JobRegistry


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def scheduler(clock: FakeClock) -> FakeScheduler:
    return FakeScheduler(clock)


@pytest.fixture
def registry(clock: FakeClock, scheduler: FakeScheduler) -> JobRegistry:
    return JobRegistry(clock=clock, scheduler=scheduler)


@pytest.fixture
def sample_payload() -> dict:
    """Request body as the browser form sends it."""
    return {
        "prompt": "a cat",
        "duration": 8,
        "aspectRatio": "16:9",
    }

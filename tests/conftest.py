"""Shared fixtures for the meeting room tests."""

import pytest

from meeting_rooms.errors import AuthenticationFailure

from tests.helpers import FakeCalendarSource


@pytest.fixture
def source() -> FakeCalendarSource:
    return FakeCalendarSource()


@pytest.fixture
def failing_token_source() -> FakeCalendarSource:
    fake = FakeCalendarSource()
    fake.token_error = AuthenticationFailure("invalid_grant")
    return fake

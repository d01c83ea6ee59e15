"""
Pytest configuration and fixtures for testing.
"""

from datetime import datetime, time
from datetime import timezone as dt_timezone

import pytest
from django.core.cache import cache

from tests.factories import GroupFactory, MembershipFactory, UserFactory, VotingFactory

# 2024-01-01 is a Monday
MONDAY_9AM = datetime(2024, 1, 1, 9, 0, tzinfo=dt_timezone.utc)


@pytest.fixture(autouse=True)
def clear_cache():
    """Email rate limit counters live in the cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def monday_9am():
    return MONDAY_9AM


@pytest.fixture
def user_factory(db):
    """Factory for creating users."""

    def create_user(**kwargs):
        return UserFactory(**kwargs)

    return create_user


@pytest.fixture
def user(user_factory):
    """Provide a single test user."""
    return user_factory()


@pytest.fixture
def group(db):
    """Group voting on Mondays at 09:00 for 4 hours."""
    return GroupFactory(voting_days=["MONDAY"], voting_time=time(9, 0), voting_duration=4)


@pytest.fixture
def admin(group):
    """Active admin of ``group``."""
    return MembershipFactory(group=group, is_admin=True).user


@pytest.fixture
def member(group):
    """Active, non admin member of ``group``."""
    return MembershipFactory(group=group).user


@pytest.fixture
def voting(group, monday_9am):
    """Voting of ``group`` opened Monday at 09:00."""
    return VotingFactory(group=group, created_at=monday_9am, window_start=monday_9am, duration=4)

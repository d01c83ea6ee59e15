"""Tests for voting statistics."""

from datetime import timedelta

import pytest

from core.services.voting_stats_service import VotingStatsService
from tests.factories import VoteFactory, VotingFactory


class TestCalculateAverage:
    @pytest.mark.parametrize(
        "scores, expected",
        [
            ([], None),
            ([3], 3),
            ([4, 5], 5),
            ([1, 2], 2),
            ([1, 1, 2], 1),
            ([5, 5, 5, 4], 5),
        ],
    )
    def test_rounds_half_up(self, scores, expected):
        assert VotingStatsService.calculate_average(scores) == expected


@pytest.mark.django_db
class TestVotingAggregates:
    def test_update_average(self, voting):
        VoteFactory(voting=voting, score=2)
        VoteFactory(voting=voting, score=3)
        VoteFactory(voting=voting, user=None, score=5)

        average = VotingStatsService.update_average(voting)

        voting.refresh_from_db()
        assert average == 3
        assert voting.average == 3

    def test_update_average_without_votes(self, voting):
        assert VotingStatsService.update_average(voting) is None

        voting.refresh_from_db()
        assert voting.average is None

    def test_histogram_includes_empty_buckets(self, voting):
        VoteFactory(voting=voting, score=1)
        VoteFactory(voting=voting, score=4)
        VoteFactory(voting=voting, user=None, score=4)

        assert VotingStatsService.histogram(voting) == [
            {"score": 1, "count": 1},
            {"score": 2, "count": 0},
            {"score": 3, "count": 0},
            {"score": 4, "count": 2},
            {"score": 5, "count": 0},
        ]

    def test_moving_average_is_mean_of_averages(self, group, monday_9am):
        VotingFactory(group=group, created_at=monday_9am - timedelta(days=14), average=2)
        VotingFactory(group=group, created_at=monday_9am - timedelta(days=7), average=5)
        VotingFactory(group=group, created_at=monday_9am - timedelta(days=3), average=None)
        VotingFactory(group=group, created_at=monday_9am - timedelta(days=90), average=1)

        moving_average = VotingStatsService.moving_average(
            group, monday_9am - timedelta(days=59), monday_9am
        )

        assert moving_average == 3.5

    def test_update_moving_average(self, group, voting, monday_9am):
        VotingFactory(group=group, created_at=monday_9am - timedelta(days=7), average=1)
        voting.average = 4
        voting.save()

        VotingStatsService.update_moving_average(voting, monday_9am + timedelta(hours=1))

        voting.refresh_from_db()
        assert voting.moving_average == 2.5

    def test_stats_by_group(self, group, voting, monday_9am):
        rows = VotingStatsService.stats_by_group(
            group, monday_9am - timedelta(days=1), monday_9am + timedelta(days=1)
        )

        assert rows == [
            {
                "voting_id": voting.id,
                "created_at": voting.created_at,
                "average": None,
                "moving_average": None,
            }
        ]

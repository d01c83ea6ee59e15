"""
Voting statistics: per-voting average, score histogram and per-group moving
average.

Anonymous votes count toward every figure here; they just carry no author.
"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from django.db.models import Count
from django.utils import timezone

from core.models import MAX_SCORE, MIN_SCORE, Group, Vote, Voting


class VotingStatsService:
    """Aggregates computed from committed votes."""

    MOVING_AVERAGE_DAYS = 59

    @staticmethod
    def calculate_average(scores: Iterable[int]) -> Optional[int]:
        """
        Mean of ``scores`` rounded half up.

        Returns:
            Rounded mean, or None when there are no scores
        """
        scores = list(scores)
        if not scores:
            return None
        mean = Decimal(sum(scores)) / Decimal(len(scores))
        return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @staticmethod
    def update_average(voting: Voting) -> Optional[int]:
        """Recompute and store the average of ``voting`` from its votes."""
        scores = Vote.objects.filter(voting=voting).values_list("score", flat=True)
        average = VotingStatsService.calculate_average(scores)

        Voting.objects.update_average(voting.id, average)
        voting.average = average
        return average

    @staticmethod
    def moving_average(group: Group, start: datetime, end: datetime) -> Optional[float]:
        """
        Average of the voting averages of ``group`` between ``start`` and ``end``.

        Votings without any vote yet are left out.
        """
        averages = list(
            Voting.objects.in_range(group, start, end)
            .filter(average__isnull=False)
            .values_list("average", flat=True)
        )
        if not averages:
            return None
        return sum(averages) / len(averages)

    @staticmethod
    def update_moving_average(voting: Voting, now: Optional[datetime] = None) -> Optional[float]:
        now = now or timezone.now()
        start = now - timedelta(days=VotingStatsService.MOVING_AVERAGE_DAYS)

        moving_average = VotingStatsService.moving_average(voting.group, start, now)
        Voting.objects.filter(id=voting.id).update(moving_average=moving_average)
        voting.moving_average = moving_average
        return moving_average

    @staticmethod
    def histogram(voting: Voting) -> List[Dict[str, int]]:
        """
        Number of votes per score, ascending, empty buckets included.

        Returns:
            List of {'score': n, 'count': c} for every score from 1 to 5
        """
        counts = dict(
            Vote.objects.filter(voting=voting)
            .values("score")
            .annotate(count=Count("id"))
            .values_list("score", "count")
        )
        return [
            {"score": score, "count": counts.get(score, 0)}
            for score in range(MIN_SCORE, MAX_SCORE + 1)
        ]

    @staticmethod
    def stats_by_group(group: Group, start: datetime, end: datetime) -> List[Dict]:
        """Per-voting summary rows of ``group`` used for trend display."""
        return [
            {
                "voting_id": voting.id,
                "created_at": voting.created_at,
                "average": voting.average,
                "moving_average": voting.moving_average,
            }
            for voting in Voting.objects.in_range(group, start, end)
        ]

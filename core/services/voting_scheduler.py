"""
Voting window scheduler.

On every tick, opens a voting for each group whose schedule window is active
and has no voting yet, then queues the "voting opened" notification. Safe to
run repeatedly and concurrently: the (group, window_start) unique constraint
makes the creation idempotent.
"""

import logging
from datetime import datetime
from typing import List, Optional

from django.utils import timezone

from core.models import Group, Voting
from core.tasks import notify_voting_members

logger = logging.getLogger(__name__)


class VotingScheduler:
    """Creates votings for groups entering their voting window."""

    @staticmethod
    def _notify(voting: Voting) -> None:
        # A notification problem never undoes the voting
        try:
            notify_voting_members.delay(voting.id)
        except Exception as e:
            logger.error(f"Failed to queue notifications for voting {voting.id}: {e}")

    @staticmethod
    def schedule_votings(now: Optional[datetime] = None) -> List[Voting]:
        """
        Run one scheduling tick.

        Database errors propagate to the caller; nothing is assumed about
        eligibility when storage is unavailable.

        Args:
            now: Tick time (defaults to the current time)

        Returns:
            Votings created by this tick
        """
        now = now or timezone.now()
        created_votings = []

        for group in Group.objects.eligible_for_window(now):
            window_start, _ = group.window_bounds(now)
            voting, created = Voting.objects.create_if_absent(group, window_start, now)

            if not created:
                logger.debug(f"Voting for group {group.id} at {window_start} already exists")
                continue

            logger.info(f"Opened voting {voting.id} for group {group.name}")
            VotingScheduler._notify(voting)
            created_votings.append(voting)

        return created_votings

"""
Voting service: vote registration and voting queries.

Registration loads the caller's voting slot, runs the slot state machine and
only then writes. The write re-checks the duplicate condition under the
database's concurrency control so two near simultaneous submissions by the
same user cannot both land.
"""

import logging
from datetime import datetime
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from core.models import Group, User, Vote, VoteReceipt, Voting
from core.results import Check, ErrorCode, Result
from core.services.membership_service import MembershipService
from core.services.voting_slot import VoteInput, VotingSlot
from core.services.voting_stats_service import VotingStatsService
from core.utils.sanitization import clean_comment

logger = logging.getLogger(__name__)


class VotingService:
    """Mood voting logic"""

    @staticmethod
    def load_voting_slot(user: User, voting: Voting, now: Optional[datetime] = None) -> VotingSlot:
        """
        Build the validation context of ``user`` in ``voting``.

        Args:
            user: Authenticated user submitting the vote
            voting: Target voting (with its group)
            now: Reference instant for expiry

        Returns:
            VotingSlot snapshot
        """
        already_voted = (
            VoteReceipt.objects.filter(voting=voting, user=user).exists()
            or Vote.objects.find_by_user_and_voting(user, voting) is not None
        )

        return VotingSlot(
            voting_id=voting.id,
            user_id=user.id,
            expired=voting.has_expired(now),
            already_voted=already_voted,
            is_member=MembershipService.is_member(user, voting.group),
            anonymous_allowed=voting.group.anonymous_vote,
        )

    @staticmethod
    def register_vote(
        user: User,
        voting_id: int,
        score: Optional[int],
        comment: Optional[str] = None,
        anonymous: bool = False,
        now: Optional[datetime] = None,
    ) -> Result[Vote]:
        """
        Register the vote of ``user`` in a voting.

        Checks run in a fixed order (expiry, duplicate, score, membership,
        ownership, target voting, anonymity); the first failure is returned
        and nothing is written.

        Returns:
            Result with the stored Vote (``user`` is None when anonymous)
        """
        now = now or timezone.now()

        voting = Voting.objects.select_related("group").filter(id=voting_id).first()
        if voting is None:
            return Result.fail(ErrorCode.NOT_FOUND)

        slot = VotingService.load_voting_slot(user, voting, now)
        vote_input = VoteInput(
            voting_id=voting.id,
            user_id=user.id,
            score=score,
            comment=clean_comment(comment),
            anonymous=anonymous,
        )

        return slot.register_vote(vote_input).flat_map(
            lambda accepted: VotingService._save_vote(voting, user, accepted, now)
        )

    @staticmethod
    def _save_vote(voting: Voting, user: User, vote_input: VoteInput, now: datetime) -> Result[Vote]:
        with transaction.atomic():
            locked = Voting.objects.select_for_update().select_related("group").get(id=voting.id)

            try:
                with transaction.atomic():
                    VoteReceipt.objects.create(voting=locked, user=user, voted_at=now)
            except IntegrityError:
                logger.info(f"Concurrent duplicate vote rejected for user {user.id} in voting {voting.id}")
                return Result.fail(ErrorCode.USER_ALREADY_VOTED)

            vote = Vote.objects.create(
                voting=locked,
                user=None if vote_input.anonymous else user,
                score=vote_input.score,
                comment=vote_input.comment,
                created_at=now,
            )

            VotingStatsService.update_average(locked)
            VotingStatsService.update_moving_average(locked, now)

        voting.average = locked.average
        voting.moving_average = locked.moving_average

        logger.info(f"Registered {'anonymous ' if vote.is_anonymous else ''}vote in voting {voting.id}")
        return Result.ok(vote)

    @staticmethod
    def list_votings_group(group: Group, start: datetime, end: datetime) -> QuerySet:
        return Voting.objects.in_range(group, start, end)

    @staticmethod
    def list_votes_voting(voting: Voting) -> QuerySet:
        return Vote.objects.filter(voting=voting).select_related("user").order_by("created_at")

    @staticmethod
    def get_voting(user: User, voting_id: int) -> Result[Voting]:
        """Voting visible to ``user``: it must exist and the user must be a member."""
        voting = Voting.objects.select_related("group").filter(id=voting_id).first()

        return Result.check_with(
            voting,
            [
                lambda v: Check.check_is_true(v is not None, ErrorCode.NOT_FOUND),
                lambda v: Check.check_is_true(
                    MembershipService.is_member(user, v.group), ErrorCode.USER_NOT_IN_GROUP
                ),
            ],
            lambda v: v,
        )

    @staticmethod
    def list_user_votes_in_group(
        current_user: User,
        user: User,
        group: Group,
        start: datetime,
        end: datetime,
    ) -> Result[List[Vote]]:
        """
        Attributed votes of ``user`` in ``group`` between ``start`` and ``end``.

        Both the caller and the target user must be members of the group.
        Anonymous votes are never returned.
        """
        return Result.check_with(
            group,
            [
                lambda g: Check.check_is_true(
                    MembershipService.is_member(current_user, g), ErrorCode.USER_NOT_IN_GROUP
                ),
                lambda g: Check.check_is_true(
                    MembershipService.is_member(user, g), ErrorCode.USER_NOT_IN_GROUP
                ),
            ],
            lambda g: list(
                Vote.objects.filter(
                    user=user, voting__group=g, created_at__range=(start, end)
                ).order_by("created_at")
            ),
        )

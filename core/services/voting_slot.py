"""
Voting slot state machine.

A slot is the place where one user can drop one vote in one voting. It is
either open or closed (expired, or the user already voted); registering a
vote is a one-shot transition attempt validated by the checks below, always
in the same order.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from core.models import MAX_SCORE, MIN_SCORE
from core.results import Check, ErrorCode, Result


@dataclass(frozen=True)
class VoteInput:
    """A vote as submitted, before it is persisted."""

    voting_id: int
    user_id: int
    score: Optional[int]
    comment: str = ""
    anonymous: bool = False


@dataclass(frozen=True)
class VotingSlot:
    """Validation context of a (user, voting) pair."""

    voting_id: int
    user_id: int
    expired: bool
    already_voted: bool
    is_member: bool
    anonymous_allowed: bool

    @property
    def is_open(self) -> bool:
        return not self.expired and not self.already_voted

    def register_vote(self, vote: VoteInput) -> Result[VoteInput]:
        """
        Validate ``vote`` against this slot.

        Returns:
            Result with the vote when every check passed, otherwise the error
            of the first failing check
        """
        return Result.check_with(vote, slot_checkers(self), lambda accepted: accepted)


def voting_has_expired(slot: VotingSlot, vote: VoteInput) -> Check:
    return Check.check_is_false(slot.expired, ErrorCode.VOTING_HAS_EXPIRED)


def user_already_voted(slot: VotingSlot, vote: VoteInput) -> Check:
    return Check.check_is_false(slot.already_voted, ErrorCode.USER_ALREADY_VOTED)


def score_is_valid(slot: VotingSlot, vote: VoteInput) -> Check:
    valid = (
        isinstance(vote.score, int)
        and not isinstance(vote.score, bool)
        and MIN_SCORE <= vote.score <= MAX_SCORE
    )
    return Check.check_is_true(valid, ErrorCode.SCORE_IS_INVALID)


def user_is_in_group(slot: VotingSlot, vote: VoteInput) -> Check:
    return Check.check_is_true(slot.is_member, ErrorCode.USER_NOT_IN_GROUP)


def is_same_user(slot: VotingSlot, vote: VoteInput) -> Check:
    same = vote.user_id is not None and vote.user_id == slot.user_id
    return Check.check_is_true(same, ErrorCode.NOT_SAME_USER)


def vote_belongs_to_voting(slot: VotingSlot, vote: VoteInput) -> Check:
    return Check.check_is_true(
        vote.voting_id == slot.voting_id, ErrorCode.VOTE_DOESNT_BELONG_TO_VOTING
    )


def anonymous_vote_allowed(slot: VotingSlot, vote: VoteInput) -> Check:
    allowed = slot.anonymous_allowed or not vote.anonymous
    return Check.check_is_true(allowed, ErrorCode.ANONYMOUS_VOTE_NOT_ALLOWED)


SLOT_VALIDATORS = (
    voting_has_expired,
    user_already_voted,
    score_is_valid,
    user_is_in_group,
    is_same_user,
    vote_belongs_to_voting,
    anonymous_vote_allowed,
)


def slot_checkers(slot: VotingSlot) -> List[Callable[[VoteInput], Check]]:
    """Validators bound to ``slot``, in evaluation order."""
    return [lambda vote, validator=validator: validator(slot, vote) for validator in SLOT_VALIDATORS]

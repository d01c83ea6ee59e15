"""Tests for the voting slot state machine."""

import pytest

from core.results import ErrorCode
from core.services.voting_slot import VoteInput, VotingSlot


def make_slot(**overrides):
    values = {
        "voting_id": 10,
        "user_id": 1,
        "expired": False,
        "already_voted": False,
        "is_member": True,
        "anonymous_allowed": False,
    }
    values.update(overrides)
    return VotingSlot(**values)


def make_vote(**overrides):
    values = {"voting_id": 10, "user_id": 1, "score": 3}
    values.update(overrides)
    return VoteInput(**values)


class TestVotingSlot:
    def test_open_slot_accepts_valid_vote(self):
        vote = make_vote()

        result = make_slot().register_vote(vote)

        assert result.is_success
        assert result.success == vote

    def test_is_open(self):
        assert make_slot().is_open
        assert not make_slot(expired=True).is_open
        assert not make_slot(already_voted=True).is_open

    @pytest.mark.parametrize("score", [0, 6, None, -1, True, "3", 2.5])
    def test_invalid_scores(self, score):
        result = make_slot().register_vote(make_vote(score=score))

        assert result.error == ErrorCode.SCORE_IS_INVALID

    @pytest.mark.parametrize("score", [1, 2, 3, 4, 5])
    def test_valid_scores(self, score):
        assert make_slot().register_vote(make_vote(score=score)).is_success

    def test_not_a_member(self):
        result = make_slot(is_member=False).register_vote(make_vote())

        assert result.error == ErrorCode.USER_NOT_IN_GROUP

    def test_vote_on_behalf_of_someone_else(self):
        result = make_slot().register_vote(make_vote(user_id=2))

        assert result.error == ErrorCode.NOT_SAME_USER

    def test_vote_for_another_voting(self):
        result = make_slot().register_vote(make_vote(voting_id=11))

        assert result.error == ErrorCode.VOTE_DOESNT_BELONG_TO_VOTING

    @pytest.mark.parametrize(
        "anonymous_allowed, anonymous, error",
        [
            (False, False, None),
            (False, True, ErrorCode.ANONYMOUS_VOTE_NOT_ALLOWED),
            (True, False, None),
            (True, True, None),
        ],
    )
    def test_anonymity_policy(self, anonymous_allowed, anonymous, error):
        slot = make_slot(anonymous_allowed=anonymous_allowed)

        result = slot.register_vote(make_vote(anonymous=anonymous))

        assert result.error == error


class TestCheckOrder:
    """Every check fails at once: the earliest one in the order wins."""

    def test_expired_reported_first(self):
        slot = make_slot(expired=True, already_voted=True, is_member=False)
        vote = make_vote(score=0, user_id=2, voting_id=11, anonymous=True)

        assert slot.register_vote(vote).error == ErrorCode.VOTING_HAS_EXPIRED

    def test_already_voted_before_score(self):
        slot = make_slot(already_voted=True, is_member=False)

        assert slot.register_vote(make_vote(score=0)).error == ErrorCode.USER_ALREADY_VOTED

    def test_score_before_membership(self):
        slot = make_slot(is_member=False)

        assert slot.register_vote(make_vote(score=None)).error == ErrorCode.SCORE_IS_INVALID

    def test_membership_before_ownership(self):
        slot = make_slot(is_member=False)

        assert slot.register_vote(make_vote(user_id=2)).error == ErrorCode.USER_NOT_IN_GROUP

    def test_ownership_before_target_voting(self):
        result = make_slot().register_vote(make_vote(user_id=2, voting_id=11))

        assert result.error == ErrorCode.NOT_SAME_USER

    def test_target_voting_before_anonymity(self):
        result = make_slot().register_vote(make_vote(voting_id=11, anonymous=True))

        assert result.error == ErrorCode.VOTE_DOESNT_BELONG_TO_VOTING
